"""Aggregate pipeline state — the structure snapshots are taken of.

These models are mutable on purpose: the live instance is owned by
``StateStore`` and only ever touched under its lock.  Everything handed to
callers is a deep copy.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

from pipestate.models.status import Status


class PortForward(BaseModel):
    """An active port-forward from a local port into the cluster."""

    model_config = ConfigDict(frozen=True)

    local_port: int
    remote_port: int
    pod_name: str = ""
    container_name: str = ""
    namespace: str = ""
    port_name: str = ""
    resource_type: str = ""
    resource_name: str = ""


class BuildState(BaseModel):
    """Per-artifact build status, keyed by image name."""

    artifacts: dict[str, Status] = {}
    errors: dict[str, str] = {}  # last failure description per artifact


class DeployState(BaseModel):
    status: Status = Status.NOT_STARTED
    error: str | None = None


class StatusCheckState(BaseModel):
    """Post-deploy status check, overall and per resource.

    Resource ids look like ``"namespace:kind/name"``.
    """

    status: Status = Status.NOT_STARTED
    resources: dict[str, Status] = {}
    details: dict[str, str] = {}  # latest message or error per resource
    message: str | None = None
    error: str | None = None


class FileSyncState(BaseModel):
    status: Status = Status.NOT_STARTED
    image: str = ""
    file_count: int = 0
    error: str | None = None


class State(BaseModel):
    """Full pipeline state: build, deploy, status check, ports, file sync."""

    build_state: BuildState = BuildState()
    deploy_state: DeployState = DeployState()
    status_check_state: StatusCheckState = StatusCheckState()
    forwarded_ports: dict[int, PortForward] = {}
    file_sync_state: FileSyncState = FileSyncState()

    @property
    def artifact_names(self) -> list[str]:
        return sorted(self.build_state.artifacts)


def init_state(artifact_names: Iterable[str] = ()) -> State:
    """Return a fresh ``State`` with every artifact ``NOT_STARTED``."""
    return State(
        build_state=BuildState(
            artifacts={name: Status.NOT_STARTED for name in artifact_names}
        ),
    )
