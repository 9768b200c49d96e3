"""Docker API client for the LocalStack container lifecycle.

Thin wrapper around the Docker SDK exposing exactly the runtime operations the
stack needs: image list/pull, container create/start/stop, port inspection and
log snapshots. SDK errors are translated into localstack_runner.errors here so
the stack never handles docker.errors directly.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator

import docker
import docker.errors
import docker.utils
import structlog

from localstack_runner.errors import (
    ClientInitError,
    CreateError,
    InspectError,
    LogFetchError,
    NameConflictError,
    ProvisionError,
    StartError,
    StopError,
)

log = structlog.get_logger(__name__)

# requests transport errors (daemon went away mid-call) are OSError subclasses
_RUNTIME_ERRORS = (docker.errors.DockerException, OSError)

# Candidate socket paths in priority order.
# Docker Desktop on macOS does not create /var/run/docker.sock by default.
_DOCKER_SOCKET_CANDIDATES = [
    "/var/run/docker.sock",
    # Docker Desktop for Mac (4.x+)
    str(Path.home() / ".docker" / "run" / "docker.sock"),
    # Older Docker Desktop for Mac
    str(Path.home() / "Library" / "Containers" / "com.docker.docker" / "Data" / "docker.sock"),
]


def connect_docker() -> docker.DockerClient:
    """Return a docker.DockerClient, trying several socket paths on macOS.

    Tries DOCKER_HOST / docker.from_env() first (respects the env var),
    then falls back through known macOS Docker Desktop socket locations.

    Raises:
        ClientInitError: If no working Docker connection can be found.
    """
    try:
        client = docker.from_env()
        client.ping()
        log.debug("docker_connected", method="from_env")
        return client
    except _RUNTIME_ERRORS as exc:
        log.debug("docker_from_env_failed", error=str(exc))

    for socket_path in _DOCKER_SOCKET_CANDIDATES:
        if Path(socket_path).exists():
            try:
                client = docker.DockerClient(base_url=f"unix://{socket_path}")
                client.ping()
                log.info("docker_connected", method="socket_fallback", socket=socket_path)
                return client
            except _RUNTIME_ERRORS as exc:
                log.debug("docker_socket_failed", socket=socket_path, error=str(exc))
                continue

    raise ClientInitError(
        "Docker not available. Tried: DOCKER_HOST env var and socket paths: "
        + ", ".join(_DOCKER_SOCKET_CANDIDATES)
    )


class RuntimeClient:
    """Container-runtime operations used by the stack.

    Args:
        docker_sdk: An initialized docker.DockerClient instance.
            If None, a new one is created via connect_docker().
    """

    def __init__(self, docker_sdk: Any | None = None) -> None:
        if docker_sdk is None:
            docker_sdk = connect_docker()
        self._sdk = docker_sdk

    def close(self) -> None:
        """Release the SDK's HTTP connection pool."""
        self._sdk.close()

    def _get_container(self, container_id: str):
        return self._sdk.containers.get(container_id)

    # ── Images ───────────────────────────────────────────────────────────────

    def list_image_tags(self, reference: str) -> list[list[str]]:
        """Return the repo tags of every local image matching `reference`."""
        try:
            images = self._sdk.images.list(filters={"reference": reference})
        except _RUNTIME_ERRORS as exc:
            raise ProvisionError(f"could not list images for {reference}: {exc}") from exc
        return [list(image.tags) for image in images]

    def pull_image(self, reference: str) -> Iterator[dict]:
        """Start pulling `reference` and return the decoded progress stream.

        The caller must drain and close the returned stream.
        """
        repository, tag = docker.utils.parse_repository_tag(reference)
        try:
            return self._sdk.api.pull(repository, tag=tag or "latest", stream=True, decode=True)
        except _RUNTIME_ERRORS as exc:
            raise ProvisionError(f"could not pull image {reference}: {exc}") from exc

    # ── Containers ───────────────────────────────────────────────────────────

    def create_container(
        self,
        image: str,
        *,
        ports: dict,
        mounts: list,
        name: str | None = None,
        auto_remove: bool = True,
    ) -> str:
        """Create (but do not start) a container and return its ID.

        Args:
            image: Image reference.
            ports: Docker SDK port spec, e.g. {"4566/tcp": [("0.0.0.0", None)]}.
            mounts: List of docker.types.Mount.
            name: Optional container name.
            auto_remove: Remove the container once it stops.

        Raises:
            NameConflictError: `name` is already used by another container.
            CreateError: Any other creation failure.
        """
        try:
            container = self._sdk.containers.create(
                image,
                tty=True,
                ports=ports,
                mounts=mounts,
                auto_remove=auto_remove,
                name=name or None,
            )
        except docker.errors.APIError as exc:
            if name and exc.status_code == 409:
                raise NameConflictError(name, str(exc.explanation or exc)) from exc
            raise CreateError(f"could not create container: {exc}") from exc
        except _RUNTIME_ERRORS as exc:
            raise CreateError(f"could not create container: {exc}") from exc
        log.info("container_created", container_id=container.id[:12], image=image, name=name)
        return container.id

    def start_container(self, container_id: str) -> None:
        try:
            self._get_container(container_id).start()
        except _RUNTIME_ERRORS as exc:
            raise StartError(f"could not start container {container_id[:12]}: {exc}") from exc
        log.info("container_started", container_id=container_id[:12])

    def stop_container(self, container_id: str, timeout: int) -> None:
        """Stop a container, waiting up to `timeout` seconds before it is killed.

        A container that no longer exists (auto-removed) counts as stopped.
        """
        try:
            self._get_container(container_id).stop(timeout=timeout)
        except docker.errors.NotFound:
            log.warning("container_already_gone", container_id=container_id[:12])
            return
        except _RUNTIME_ERRORS as exc:
            raise StopError(f"could not stop container {container_id[:12]}: {exc}") from exc
        log.info("container_stopped", container_id=container_id[:12])

    def port_bindings(self, container_id: str, port_spec: str) -> list[dict]:
        """Return the host bindings Docker assigned to `port_spec` (e.g. "4566/tcp").

        Each binding is a dict with "HostIp" and "HostPort" keys.
        """
        try:
            attrs = self._get_container(container_id).attrs
        except _RUNTIME_ERRORS as exc:
            raise InspectError(f"could not inspect container {container_id[:12]}: {exc}") from exc
        ports = (attrs.get("NetworkSettings") or {}).get("Ports") or {}
        return list(ports.get(port_spec) or [])

    def container_logs(self, container_id: str) -> bytes:
        """Return a snapshot of the container's accumulated stdout."""
        try:
            return self._get_container(container_id).logs(
                stdout=True, stderr=False, stream=False, follow=False
            )
        except _RUNTIME_ERRORS as exc:
            raise LogFetchError(f"could not read logs of {container_id[:12]}: {exc}") from exc
