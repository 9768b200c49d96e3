"""Start-time options for Stack.

Each option is a callable that mutates a Stack before provisioning, e.g.:

    stack.start(with_container_name("ls-it"), with_init_timeout(60))
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from localstack_runner.core.stack import Stack

StackOption = Callable[["Stack"], None]


def with_container_name(name: str) -> StackOption:
    def apply(stack: "Stack") -> None:
        stack.container_name = name

    return apply


def with_volume_mounts(mounts: dict[str, str]) -> StackOption:
    """Extra read-only bind mounts, keyed by container path."""

    def apply(stack: "Stack") -> None:
        stack.volume_mounts = dict(mounts)

    return apply


def with_init_complete_log_line(line: str) -> StackOption:
    def apply(stack: "Stack") -> None:
        stack.init_complete_log_line = line

    return apply


def with_init_timeout(seconds: int) -> StackOption:
    """Give up waiting for readiness after `seconds` (0 waits forever)."""

    def apply(stack: "Stack") -> None:
        stack.init_timeout = seconds

    return apply


def with_reuse_existing(reuse: bool = True) -> StackOption:
    """Treat a container-name collision as somebody else's running stack."""

    def apply(stack: "Stack") -> None:
        stack.reuse_existing = reuse

    return apply


def with_wait_for_init(wait: bool) -> StackOption:
    def apply(stack: "Stack") -> None:
        stack.wait_for_init = wait

    return apply
