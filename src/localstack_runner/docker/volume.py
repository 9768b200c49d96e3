"""Bind mounts for the LocalStack container."""

from __future__ import annotations

from docker.types import Mount

from localstack_runner import config


def build_mounts(
    volume_mounts: dict[str, str] | None,
    socket_path: str | None = None,
) -> list[Mount]:
    """Build the mount list for a LocalStack container.

    Every caller-supplied mount is read-only. The host Docker socket is always
    appended read-write at the same path, since LocalStack starts sibling
    containers through it.

    Args:
        volume_mounts: Mapping of container path -> host path.
        socket_path: Docker control socket (default: config.DOCKER_SOCKET).

    Returns:
        len(volume_mounts) + 1 docker.types.Mount entries.
    """
    socket_path = socket_path or config.DOCKER_SOCKET
    mounts = [
        Mount(target=container_path, source=host_path, type="bind", read_only=True)
        for container_path, host_path in (volume_mounts or {}).items()
    ]
    mounts.append(Mount(target=socket_path, source=socket_path, type="bind"))
    return mounts
