"""Exceptions raised by the LocalStack stack lifecycle.

Every fatal failure surfaces as a StackError subclass. Raw Docker SDK errors
are translated at the runtime-client boundary (docker/client.py) and chained
with `raise ... from exc`.
"""


class StackError(Exception):
    pass


class ClientInitError(StackError):
    pass


class ProvisionError(StackError):
    pass


class CreateError(StackError):
    pass


class NameConflictError(CreateError):
    """Raised when the requested container name is already taken."""

    def __init__(self, name: str, detail: str = "") -> None:
        self.name = name
        msg = f"container name {name!r} is already in use"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class StartError(StackError):
    pass


class InitTimeoutError(StackError, TimeoutError):
    """Readiness marker did not appear within the configured bound."""

    def __init__(self, timeout_seconds: int) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(f"init timeout exceeded ({timeout_seconds} seconds)")


class InspectError(StackError):
    pass


class StopError(StackError):
    pass


class LogFetchError(StackError):
    """Transient failure reading container logs. Never escapes the readiness poller."""
