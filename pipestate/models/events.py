"""Pipeline events — one immutable record per state transition.

Every event carries its ``kind``, a UTC timestamp and a human-readable
``entry`` line.  ``EndOfStream`` is the poison pill that terminates a
tail; it is its own kind so no log text can ever be mistaken for it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from pipestate.models.state import PortForward, State
from pipestate.models.status import Status


class EventKind(str, Enum):
    BUILD = "build"
    DEPLOY = "deploy"
    STATUS_CHECK = "status_check"
    RESOURCE_STATUS_CHECK = "resource_status_check"
    PORT = "port"
    FILE_SYNC = "file_sync"
    LOG = "log"
    STATE_RESET = "state_reset"
    END_OF_STREAM = "end_of_stream"


class ResetPhase(str, Enum):
    """Pipeline boundary at which a reset happened."""

    BUILD = "build"
    DEPLOY = "deploy"


class EventBase(BaseModel):
    """Fields shared by every event variant."""

    model_config = ConfigDict(frozen=True)

    kind: EventKind
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    entry: str = ""


class BuildEvent(EventBase):
    kind: EventKind = EventKind.BUILD
    artifact: str
    status: Status
    error: str | None = None


class DeployEvent(EventBase):
    kind: EventKind = EventKind.DEPLOY
    status: Status
    error: str | None = None


class StatusCheckEvent(EventBase):
    kind: EventKind = EventKind.STATUS_CHECK
    status: Status
    message: str | None = None
    error: str | None = None


class ResourceStatusCheckEvent(EventBase):
    kind: EventKind = EventKind.RESOURCE_STATUS_CHECK
    resource: str
    status: Status
    message: str | None = None
    error: str | None = None


class PortEvent(EventBase):
    kind: EventKind = EventKind.PORT
    port_forward: PortForward


class FileSyncEvent(EventBase):
    kind: EventKind = EventKind.FILE_SYNC
    image: str
    file_count: int
    status: Status
    error: str | None = None


class LogEntry(EventBase):
    """A textual build/deploy log line — no state transition."""

    kind: EventKind = EventKind.LOG


class StateResetEvent(EventBase):
    """Emitted once per reset, carrying the freshly reset snapshot."""

    kind: EventKind = EventKind.STATE_RESET
    phase: ResetPhase
    state: State


class EndOfStream(EventBase):
    kind: EventKind = EventKind.END_OF_STREAM


Event = (
    BuildEvent
    | DeployEvent
    | StatusCheckEvent
    | ResourceStatusCheckEvent
    | PortEvent
    | FileSyncEvent
    | LogEntry
    | StateResetEvent
    | EndOfStream
)

# Registry for deserialization by kind
EVENT_TYPE_MAP: dict[EventKind, type[EventBase]] = {
    EventKind.BUILD: BuildEvent,
    EventKind.DEPLOY: DeployEvent,
    EventKind.STATUS_CHECK: StatusCheckEvent,
    EventKind.RESOURCE_STATUS_CHECK: ResourceStatusCheckEvent,
    EventKind.PORT: PortEvent,
    EventKind.FILE_SYNC: FileSyncEvent,
    EventKind.LOG: LogEntry,
    EventKind.STATE_RESET: StateResetEvent,
    EventKind.END_OF_STREAM: EndOfStream,
}


def is_end_of_stream(event: EventBase) -> bool:
    return event.kind is EventKind.END_OF_STREAM
