"""Shared fixtures for all tests."""

from unittest.mock import MagicMock

import pytest

from localstack_runner import config
from localstack_runner.core.stack import Stack
from localstack_runner.docker.client import RuntimeClient

CONTAINER_ID = "3f1c9a7e5b2d" + "0" * 52
HOST_PORT = "49153"


@pytest.fixture
def container_id() -> str:
    return CONTAINER_ID


@pytest.fixture
def host_port() -> str:
    return HOST_PORT


@pytest.fixture
def runtime():
    """Mock RuntimeClient for a LocalStack container that comes up cleanly."""
    client = MagicMock(spec=RuntimeClient)
    client.list_image_tags.return_value = [[config.LOCALSTACK_IMAGE]]
    client.create_container.return_value = CONTAINER_ID
    client.container_logs.return_value = b"LocalStack version: 3.0.2\nReady.\n"
    client.port_bindings.return_value = [{"HostIp": "0.0.0.0", "HostPort": HOST_PORT}]
    return client


@pytest.fixture
def fatal_handler():
    return MagicMock()


@pytest.fixture
def make_stack(runtime, fatal_handler):
    """Build Stacks wired to the mock runtime, without atexit hooks."""
    created: list[Stack] = []

    def factory(**kwargs) -> Stack:
        kwargs.setdefault("client_factory", lambda: runtime)
        kwargs.setdefault("register_atexit", False)
        kwargs.setdefault("poll_interval", 0.01)
        kwargs.setdefault("fatal_handler", fatal_handler)
        stack = Stack(**kwargs)
        created.append(stack)
        return stack

    yield factory

    # Release any watcher threads still blocked on their shutdown event
    for stack in created:
        stack._shutdown.set()
        stack.join_watcher(timeout=2)
