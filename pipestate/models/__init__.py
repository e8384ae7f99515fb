"""pipestate data models — all Pydantic v2."""

from pipestate.models.config import ArtifactConfig, BuildConfig
from pipestate.models.events import (
    EVENT_TYPE_MAP,
    BuildEvent,
    DeployEvent,
    EndOfStream,
    Event,
    EventBase,
    EventKind,
    FileSyncEvent,
    LogEntry,
    PortEvent,
    ResetPhase,
    ResourceStatusCheckEvent,
    StateResetEvent,
    StatusCheckEvent,
)
from pipestate.models.state import (
    BuildState,
    DeployState,
    FileSyncState,
    PortForward,
    State,
    StatusCheckState,
    init_state,
)
from pipestate.models.status import TERMINAL_STATUSES, VALID_TRANSITIONS, Status

__all__ = [
    # status
    "Status",
    "TERMINAL_STATUSES",
    "VALID_TRANSITIONS",
    # state
    "BuildState",
    "DeployState",
    "FileSyncState",
    "PortForward",
    "State",
    "StatusCheckState",
    "init_state",
    # events
    "EventKind",
    "EventBase",
    "Event",
    "BuildEvent",
    "DeployEvent",
    "StatusCheckEvent",
    "ResourceStatusCheckEvent",
    "PortEvent",
    "FileSyncEvent",
    "LogEntry",
    "ResetPhase",
    "StateResetEvent",
    "EndOfStream",
    "EVENT_TYPE_MAP",
    # config
    "ArtifactConfig",
    "BuildConfig",
]
