"""LocalStack container lifecycle.

Stack owns at most one LocalStack container at a time. start() provisions the
image, creates and starts the container, waits for the readiness marker and
records the host endpoint; stop() tears it down. Both run under one
non-reentrant lock, so concurrent callers are serialized.

A background watcher thread stops the container once the shutdown event is
set (by the caller, a signal handler, or the atexit hook).
"""

from __future__ import annotations

import atexit
import os
import threading
from typing import Any, Callable

import structlog

from localstack_runner import config
from localstack_runner.core.options import StackOption
from localstack_runner.core.ports import (
    PortMap,
    endpoint_from_port_map,
    requested_port_map,
    resolve_host_port,
    to_docker_ports,
)
from localstack_runner.core.probe import FunctionalProbe
from localstack_runner.core.readiness import ReadinessPoller
from localstack_runner.docker.client import RuntimeClient
from localstack_runner.docker.image import ImageProvisioner
from localstack_runner.docker.volume import build_mounts
from localstack_runner.errors import NameConflictError, StopError

log = structlog.get_logger(__name__)

# Extra seconds the exit hook waits for the watcher beyond the stop grace period
_EXIT_JOIN_MARGIN = 5


def _exit_process(exc: BaseException) -> None:
    """Default fatal handler: a container we cannot stop at shutdown ends the process."""
    log.critical("stack_stop_failed_at_shutdown", error=str(exc))
    os._exit(1)


class Stack:
    """Manages the lifecycle of one LocalStack container.

    Args:
        client_factory: Returns a RuntimeClient; called once per start().
            Defaults to RuntimeClient (connects to the local Docker daemon).
        shutdown: Event that, once set, makes the watcher stop the container.
        fatal_handler: Called by the watcher with the StopError when the
            container cannot be stopped. Defaults to exiting the process.
        register_atexit: Register an atexit hook that sets `shutdown` and
            waits for the watcher.
        image: Image reference (default: config.LOCALSTACK_IMAGE).
        poll_interval: Seconds between readiness polls.
        stop_timeout: Grace period in seconds passed to the runtime on stop.
    """

    def __init__(
        self,
        client_factory: Callable[[], RuntimeClient] | None = None,
        shutdown: threading.Event | None = None,
        fatal_handler: Callable[[BaseException], Any] | None = None,
        register_atexit: bool = True,
        image: str | None = None,
        poll_interval: float | None = None,
        stop_timeout: int | None = None,
    ) -> None:
        self._client_factory = client_factory or RuntimeClient
        # A shutdown event we created is ours to fire when the with-block ends
        self._owns_shutdown = shutdown is None
        self._shutdown = shutdown or threading.Event()
        self._fatal_handler = fatal_handler or _exit_process
        self._poll_interval = config.POLL_INTERVAL if poll_interval is None else poll_interval
        self._stop_timeout = config.STOP_TIMEOUT if stop_timeout is None else stop_timeout

        # Guarded by _lock. Not reentrant: never call start()/stop() while holding it.
        self._lock = threading.Lock()
        self._runtime: RuntimeClient | None = None
        self._started = False
        self._container_id = ""
        self._port_map: PortMap = {}
        self._watcher: threading.Thread | None = None

        # Set by StackOption callables at start() time
        self.image = image or config.LOCALSTACK_IMAGE
        self.container_name = ""
        self.volume_mounts: dict[str, str] = {}
        self.init_complete_log_line = ""
        self.init_timeout = config.INIT_TIMEOUT
        self.reuse_existing = False
        self.wait_for_init = True

        self._atexit_registered = register_atexit
        if register_atexit:
            atexit.register(self.shutdown)

    # ── State ────────────────────────────────────────────────────────────────

    @property
    def started(self) -> bool:
        return self._started

    @property
    def container_id(self) -> str:
        return self._container_id

    @property
    def port_map(self) -> PortMap:
        return {spec: list(bindings) for spec, bindings in self._port_map.items()}

    def endpoint_url(self) -> str:
        """Return "http://localhost:<port>" for a running stack, "" otherwise."""
        if not self._container_id:
            return ""
        return endpoint_from_port_map(self._port_map)

    # ── Lifecycle ────────────────────────────────────────────────────────────

    def start(self, *options: StackOption, force_restart: bool = False) -> None:
        """Start LocalStack, or do nothing if it is already running.

        Args:
            *options: StackOption callables applied before provisioning.
            force_restart: Stop the running container first and start a new one.

        Raises:
            StackError: Any step failed (see localstack_runner.errors). The
                stack stays not-started; a created container is left running
                until cleanup_failed_start() stops it.
        """
        with self._lock:
            if self._started:
                if not force_restart:
                    log.debug("stack_already_started", container_id=self._container_id[:12])
                    return
                log.info("stack_restarting", container_id=self._container_id[:12])
                self._stop_locked()

            for option in options:
                option(self)

            previous, self._runtime = self._runtime, self._client_factory()
            if previous is not None and previous is not self._runtime:
                previous.close()
            self._start_locked()

    def stop(self) -> None:
        """Stop the container. Safe to call repeatedly and from any thread.

        Raises:
            StopError: The runtime refused to stop it; the stack stays started.
        """
        with self._lock:
            self._stop_locked()

    def is_functional(self) -> bool:
        """Return True if LocalStack answers a real SQS create/delete round trip."""
        with self._lock:
            if not self._started:
                return False
            endpoint = self.endpoint_url()
        return FunctionalProbe(endpoint).is_functional()

    def shutdown(self) -> None:
        """Signal the watcher and wait for it to stop the container."""
        self._shutdown.set()
        self.join_watcher(timeout=self._stop_timeout + _EXIT_JOIN_MARGIN)

    def join_watcher(self, timeout: float | None = None) -> bool:
        """Wait for the watcher thread to finish. Returns True if none is left running."""
        watcher = self._watcher
        if watcher is None:
            return True
        watcher.join(timeout)
        return not watcher.is_alive()

    def cleanup_failed_start(self) -> None:
        """Stop a container that a failed start() created but never marked started.

        Raises:
            StopError: The runtime refused to stop it; the ID stays recorded.
        """
        with self._lock:
            if self._started or not self._container_id:
                return
            self._runtime.stop_container(self._container_id, self._stop_timeout)
            log.info("stack_failed_start_cleaned", container_id=self._container_id[:12])
            self._container_id = ""

    def __enter__(self) -> "Stack":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
        self._release()

    def _release(self) -> None:
        # A caller-supplied event may be shared with other stacks; leave it alone.
        if self._owns_shutdown:
            self._shutdown.set()
            self.join_watcher(timeout=self._stop_timeout + _EXIT_JOIN_MARGIN)
        if self._atexit_registered:
            atexit.unregister(self.shutdown)
            self._atexit_registered = False

    # ── Internals (caller holds _lock) ───────────────────────────────────────

    def _start_locked(self) -> None:
        runtime = self._runtime
        self._port_map = requested_port_map()

        ImageProvisioner(runtime).ensure_image(self.image)

        try:
            container_id = runtime.create_container(
                self.image,
                ports=to_docker_ports(self._port_map),
                mounts=build_mounts(self.volume_mounts),
                name=self.container_name or None,
                auto_remove=True,
            )
        except NameConflictError:
            if not self.reuse_existing:
                raise
            # The other container is assumed healthy; nothing is attached.
            log.warning("stack_reusing_existing", name=self.container_name)
            return

        self._container_id = container_id
        runtime.start_container(container_id)

        if self.wait_for_init:
            poller = ReadinessPoller(runtime, container_id, interval=self._poll_interval)
            poller.wait(self.init_timeout, self.init_complete_log_line or config.READY_MARKER)

        binding = resolve_host_port(runtime, container_id)
        self._port_map = {config.FIXED_PORT: [binding]}
        self._started = True
        log.info("stack_started", container_id=container_id[:12], endpoint=self.endpoint_url())

        self._arm_watcher()

    def _stop_locked(self) -> None:
        if not self._started or not self._container_id:
            return
        self._runtime.stop_container(self._container_id, self._stop_timeout)
        log.info("stack_stopped", container_id=self._container_id[:12])
        self._container_id = ""
        self._started = False

    def _arm_watcher(self) -> None:
        # One watcher per instance; a forced restart keeps the live one.
        if self._watcher is not None and self._watcher.is_alive():
            return
        self._watcher = threading.Thread(
            target=self._watch, name="localstack-stack-watcher", daemon=True
        )
        self._watcher.start()

    def _watch(self) -> None:
        self._shutdown.wait()
        log.info("stack_watcher_fired")
        try:
            self.stop()
        except StopError as exc:
            self._fatal_handler(exc)
