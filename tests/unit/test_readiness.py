"""Unit tests for ReadinessPoller."""

from unittest.mock import MagicMock

import pytest

from localstack_runner.core.readiness import ReadinessPoller
from localstack_runner.errors import InitTimeoutError, LogFetchError


class FakeClock:
    """Monotonic clock that only advances when the poller sleeps."""

    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def make_poller(runtime, clock, interval=0.5):
    return ReadinessPoller(runtime, "abc123", interval=interval, clock=clock, sleep=clock.sleep)


def test_is_ready_substring_match():
    runtime = MagicMock()
    runtime.container_logs.return_value = b"boot\nLocalStack Ready.\n"
    poller = ReadinessPoller(runtime, "abc123")
    assert poller.is_ready("Ready.") is True
    assert poller.is_ready("Started") is False


def test_is_ready_default_marker():
    runtime = MagicMock()
    runtime.container_logs.return_value = b"Ready.\n"
    assert ReadinessPoller(runtime, "abc123").is_ready() is True


def test_log_fetch_error_means_not_ready():
    runtime = MagicMock()
    runtime.container_logs.side_effect = LogFetchError("daemon hiccup")
    assert ReadinessPoller(runtime, "abc123").is_ready("Ready.") is False


def test_wait_returns_on_first_poll_with_marker(clock):
    runtime = MagicMock()
    runtime.container_logs.side_effect = [b"", b"starting\n", b"starting\nReady.\n"]

    make_poller(runtime, clock).wait(timeout_seconds=0, marker="Ready.")

    assert runtime.container_logs.call_count == 3
    assert clock.sleeps == [0.5, 0.5]


def test_wait_survives_transient_log_errors(clock):
    runtime = MagicMock()
    runtime.container_logs.side_effect = [LogFetchError("gone"), LogFetchError("gone"), b"Ready."]

    make_poller(runtime, clock).wait(timeout_seconds=10)

    assert runtime.container_logs.call_count == 3


@pytest.mark.parametrize("timeout", [1, 2, 5])
def test_timeout_is_bounded_by_one_interval(clock, timeout):
    runtime = MagicMock()
    runtime.container_logs.return_value = b"still booting\n"
    start = clock.now

    with pytest.raises(InitTimeoutError) as exc_info:
        make_poller(runtime, clock).wait(timeout_seconds=timeout, marker="Ready.")

    elapsed = clock.now - start
    assert exc_info.value.timeout_seconds == timeout
    assert timeout <= elapsed <= timeout + 0.5


def test_zero_timeout_waits_until_ready(clock):
    runtime = MagicMock()
    runtime.container_logs.side_effect = [b""] * 200 + [b"Ready."]

    make_poller(runtime, clock).wait(timeout_seconds=0)

    # 200 failed polls = 100 seconds of simulated waiting
    assert clock.now - 100.0 == pytest.approx(100.0)


def test_timeout_error_is_a_builtin_timeout():
    assert issubclass(InitTimeoutError, TimeoutError)
