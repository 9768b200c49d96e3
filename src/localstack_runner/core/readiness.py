"""Wait for LocalStack to print its readiness marker."""

from __future__ import annotations

import time
from typing import Callable

import structlog

from localstack_runner import config
from localstack_runner.docker.client import RuntimeClient
from localstack_runner.errors import InitTimeoutError, LogFetchError

log = structlog.get_logger(__name__)


class ReadinessPoller:
    """Polls a container's stdout snapshot until a marker substring shows up.

    Args:
        runtime: Runtime client used to fetch logs.
        container_id: Container to watch.
        interval: Seconds to sleep between polls.
        clock: Monotonic time source (seconds).
        sleep: Sleep function.
    """

    def __init__(
        self,
        runtime: RuntimeClient,
        container_id: str,
        interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._runtime = runtime
        self._container_id = container_id
        self._interval = config.POLL_INTERVAL if interval is None else interval
        self._clock = clock
        self._sleep = sleep

    def is_ready(self, marker: str | None = None) -> bool:
        """Return True if the accumulated stdout contains `marker`.

        Log fetch failures count as "not ready yet".
        """
        marker = marker or config.READY_MARKER
        try:
            output = self._runtime.container_logs(self._container_id)
        except LogFetchError as exc:
            log.debug("readiness_log_fetch_failed", error=str(exc))
            return False
        if isinstance(output, bytes):
            output = output.decode("utf-8", errors="replace")
        return marker in output

    def wait(self, timeout_seconds: int = 0, marker: str | None = None) -> None:
        """Block until the marker appears.

        Args:
            timeout_seconds: Upper bound in seconds; 0 or less waits forever.
            marker: Substring to look for (default: config.READY_MARKER).

        Raises:
            InitTimeoutError: The marker was not seen within timeout_seconds.
        """
        marker = marker or config.READY_MARKER
        start = self._clock()
        polls = 0
        while True:
            if timeout_seconds > 0 and self._clock() - start > timeout_seconds:
                log.warning(
                    "readiness_timeout",
                    container_id=self._container_id[:12],
                    timeout_seconds=timeout_seconds,
                    polls=polls,
                )
                raise InitTimeoutError(timeout_seconds)
            polls += 1
            if self.is_ready(marker):
                break
            self._sleep(self._interval)

        log.info(
            "container_ready",
            container_id=self._container_id[:12],
            polls=polls,
            elapsed_s=round(self._clock() - start, 2),
        )
