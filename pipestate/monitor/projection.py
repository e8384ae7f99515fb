"""StateProjection — rebuild pipeline state purely from events.

The projection never holds state of its own.  Every call replays the
event log from the beginning, so its result is exactly what a remote
observer tailing the stream would have reconstructed.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from pipestate.core.event_log import EventLog
from pipestate.models.events import (
    BuildEvent,
    DeployEvent,
    EventBase,
    FileSyncEvent,
    PortEvent,
    ResourceStatusCheckEvent,
    StateResetEvent,
    StatusCheckEvent,
)
from pipestate.models.state import State, init_state
from pipestate.models.status import Status


def apply_event(state: State, event: EventBase) -> State:
    """Fold one event into *state* and return the resulting state.

    ``StateResetEvent`` replaces the state wholesale; log lines and the
    end-of-stream pill leave it untouched.
    """
    if isinstance(event, StateResetEvent):
        return event.state.model_copy(deep=True)

    if isinstance(event, BuildEvent):
        state.build_state.artifacts[event.artifact] = event.status
        if event.error is None:
            state.build_state.errors.pop(event.artifact, None)
        else:
            state.build_state.errors[event.artifact] = event.error

    elif isinstance(event, DeployEvent):
        state.deploy_state.status = event.status
        state.deploy_state.error = event.error

    elif isinstance(event, StatusCheckEvent):
        check = state.status_check_state
        check.status = event.status
        if event.message is not None:
            check.message = event.message
        check.error = event.error

    elif isinstance(event, ResourceStatusCheckEvent):
        check = state.status_check_state
        check.resources[event.resource] = event.status
        detail = event.error if event.status is Status.FAILED else event.message
        if detail is None:
            check.details.pop(event.resource, None)
        else:
            check.details[event.resource] = detail

    elif isinstance(event, PortEvent):
        state.forwarded_ports[event.port_forward.local_port] = event.port_forward

    elif isinstance(event, FileSyncEvent):
        sync = state.file_sync_state
        sync.status = event.status
        sync.image = event.image
        sync.file_count = event.file_count
        sync.error = event.error

    return state


def project(events: Iterable[EventBase], artifact_names: Iterable[str] = ()) -> State:
    """Replay *events* on top of a fresh state seeded with *artifact_names*."""
    state = init_state(artifact_names)
    for event in events:
        state = apply_event(state, event)
    return state


class StateProjection:
    """Pure read-only projection over an ``EventLog``.

    Parameters
    ----------
    log:
        The event log to replay.
    artifact_names:
        The artifacts the run was initialized with.
    """

    def __init__(self, log: EventLog, artifact_names: Iterable[str] = ()) -> None:
        self._log = log
        self._artifact_names = list(artifact_names)

    def snapshot(self) -> State:
        """Replay the whole log history into a fresh ``State``."""
        return project(self._log.history(), self._artifact_names)

    def follow(self) -> Iterator[State]:
        """Yield the reconstructed state after every live event.

        Blocks between events; ends when the log is closed.
        """
        state = init_state(self._artifact_names)
        for event in self._log.iter_events():
            state = apply_event(state, event)
            yield state.model_copy(deep=True)
