"""Host port bindings for LocalStack's fixed edge port."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from localstack_runner import config
from localstack_runner.docker.client import RuntimeClient
from localstack_runner.errors import InspectError

log = structlog.get_logger(__name__)

@dataclass(frozen=True)
class PortBinding:
    host_ip: str
    host_port: str

    def to_docker(self) -> tuple[str, int | None]:
        """Docker SDK form: (ip, port) with None asking for an ephemeral port."""
        return (self.host_ip, int(self.host_port) if self.host_port else None)


PortMap = dict[str, list[PortBinding]]


def requested_port_map(port_spec: str | None = None) -> PortMap:
    """Port map sent with container creation: any interface, ephemeral host port."""
    return {port_spec or config.FIXED_PORT: [PortBinding(host_ip="0.0.0.0", host_port="")]}


def to_docker_ports(port_map: PortMap) -> dict:
    return {spec: [b.to_docker() for b in bindings] for spec, bindings in port_map.items()}


def resolve_host_port(
    runtime: RuntimeClient,
    container_id: str,
    port_spec: str | None = None,
) -> PortBinding:
    """Look up the host port Docker assigned to `port_spec` after start.

    Returns:
        A binding on "localhost" with the assigned host port.

    Raises:
        InspectError: Inspection failed or reported no binding for the port.
    """
    port_spec = port_spec or config.FIXED_PORT
    bindings = runtime.port_bindings(container_id, port_spec)
    if not bindings or not bindings[0].get("HostPort"):
        raise InspectError(f"no host binding reported for {port_spec} on {container_id[:12]}")
    binding = PortBinding(host_ip="localhost", host_port=str(bindings[0]["HostPort"]))
    log.debug("host_port_resolved", port_spec=port_spec, host_port=binding.host_port)
    return binding


def endpoint_from_port_map(port_map: PortMap, port_spec: str | None = None) -> str:
    """Return "http://<ip>:<port>" for the resolved binding, or "" if unresolved."""
    bindings = port_map.get(port_spec or config.FIXED_PORT) or []
    if not bindings or not bindings[0].host_port:
        return ""
    return f"http://{bindings[0].host_ip}:{bindings[0].host_port}"
