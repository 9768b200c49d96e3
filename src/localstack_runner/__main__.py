"""CLI entry point: `localstack-runner` command."""

import argparse
import signal
import sys
import threading


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="localstack-runner",
        description="Run an ephemeral LocalStack container for integration tests",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Start and keep running until interrupted
    up_parser = subparsers.add_parser("up", help="Start LocalStack and wait for Ctrl-C")
    _add_stack_arguments(up_parser)

    # Start, run the SQS probe, stop
    check_parser = subparsers.add_parser("check", help="Start LocalStack and verify it serves requests")
    _add_stack_arguments(check_parser)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    # Configure logging before any localstack_runner imports use structlog
    from localstack_runner.logging_setup import configure_logging
    configure_logging(verbose=args.verbose)

    from localstack_runner.errors import StackError
    try:
        if args.command == "up":
            _run_up(args)
        elif args.command == "check":
            sys.exit(0 if _run_check(args) else 1)
    except StackError as exc:
        from rich.console import Console
        Console(stderr=True).print(f"[bold red]Error:[/] {exc}")
        sys.exit(1)


def _add_stack_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--name", default="", help="Container name")
    parser.add_argument(
        "--mount",
        action="append",
        default=[],
        metavar="CONTAINER_PATH=HOST_PATH",
        help="Extra read-only bind mount (repeatable)",
    )
    parser.add_argument("--timeout", type=int, default=None, help="Init timeout in seconds (0 = none)")
    parser.add_argument("--marker", default="", help="Readiness log line (default: 'Ready.')")
    parser.add_argument("--no-wait", action="store_true", help="Do not wait for the readiness marker")
    parser.add_argument("--reuse", action="store_true", help="Reuse a container with the same name")
    parser.add_argument("--force-restart", action="store_true", help="Restart if already running")
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show DEBUG-level logs on the terminal (default: INFO only)",
    )


def _parse_mounts(specs: list[str]) -> dict[str, str]:
    mounts: dict[str, str] = {}
    for spec in specs:
        container_path, sep, host_path = spec.partition("=")
        if not sep or not container_path or not host_path:
            raise SystemExit(f"invalid --mount {spec!r}, expected CONTAINER_PATH=HOST_PATH")
        mounts[container_path] = host_path
    return mounts


def _stack_options(args: argparse.Namespace) -> list:
    from localstack_runner.core import options

    opts = [
        options.with_volume_mounts(_parse_mounts(args.mount)),
        options.with_wait_for_init(not args.no_wait),
        options.with_reuse_existing(args.reuse),
    ]
    if args.name:
        opts.append(options.with_container_name(args.name))
    if args.marker:
        opts.append(options.with_init_complete_log_line(args.marker))
    if args.timeout is not None:
        opts.append(options.with_init_timeout(args.timeout))
    return opts


def _start_or_clean_up(stack, args: argparse.Namespace, console) -> None:
    """Start the stack; if start fails after creating the container, stop that container."""
    from localstack_runner.errors import StackError

    try:
        with console.status("Starting LocalStack..."):
            stack.start(*_stack_options(args), force_restart=args.force_restart)
    except StackError:
        stack.cleanup_failed_start()
        raise


def _run_up(args: argparse.Namespace) -> None:
    """Start the stack, print the endpoint and block until SIGINT/SIGTERM."""
    from rich.console import Console
    from localstack_runner.core.stack import Stack

    console = Console()
    shutdown = threading.Event()
    for signum in (signal.SIGINT, signal.SIGTERM):
        signal.signal(signum, lambda *_: shutdown.set())

    stack = Stack(shutdown=shutdown)
    _start_or_clean_up(stack, args, console)

    if not stack.started:
        console.print(f"[yellow]Container {args.name!r} already exists, leaving it alone.[/]")
        return

    console.print(f"[bold green]LocalStack ready[/] at [cyan]{stack.endpoint_url()}[/]  (Ctrl-C to stop)")
    shutdown.wait()
    console.print("Stopping LocalStack...")
    stack.shutdown()


def _run_check(args: argparse.Namespace) -> bool:
    """Start the stack, run the SQS probe and stop again."""
    from rich.console import Console
    from localstack_runner.core.stack import Stack

    console = Console()
    with Stack(register_atexit=False) as stack:
        _start_or_clean_up(stack, args, console)
        functional = stack.is_functional()

    if functional:
        console.print("[bold green]PASS[/]  LocalStack served an SQS create/delete round trip")
    else:
        console.print("[bold red]FAIL[/]  LocalStack did not serve an SQS create/delete round trip")
    return functional


if __name__ == "__main__":
    main()
