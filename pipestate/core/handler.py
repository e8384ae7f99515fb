"""Event handler — the only way collaborators change pipeline state.

Every milestone method:
1. locks the ``StateStore`` and mutates exactly the named field(s),
2. appends the matching event to the ``EventLog``,
3. releases the lock.

Events therefore land in the log in the same order as the mutations
they describe, so a tailer can rebuild the state from events alone.  The
log never takes the store lock, so the store -> log lock order cannot
deadlock.  A snapshot never shows half a transition.  Phase failures are data, not
errors: nothing here raises because a build, deploy or check failed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from pipestate.core.event_log import EventLog
from pipestate.core.resetters import reset_on_build, reset_on_deploy
from pipestate.core.state_store import StateStore
from pipestate.models.config import BuildConfig
from pipestate.models.events import (
    BuildEvent,
    DeployEvent,
    EventBase,
    FileSyncEvent,
    LogEntry,
    PortEvent,
    ResetPhase,
    ResourceStatusCheckEvent,
    StateResetEvent,
    StatusCheckEvent,
)
from pipestate.models.state import PortForward, State
from pipestate.models.status import Status, can_transition

logger = logging.getLogger(__name__)

ErrorLike = BaseException | str


def _describe(err: ErrorLike) -> str:
    return str(err)


class EventHandler:
    """Records pipeline milestones into a store and an event log.

    Parameters
    ----------
    store:
        The run's state.  An empty one is created if not provided.
    log:
        The run's event log.  A fresh one is created if not provided.
    """

    def __init__(
        self,
        store: StateStore | None = None,
        log: EventLog | None = None,
    ) -> None:
        self._store = store if store is not None else StateStore()
        self._log = log if log is not None else EventLog()

    @classmethod
    def for_artifacts(cls, artifact_names: Iterable[str]) -> EventHandler:
        """Create a handler whose build state tracks *artifact_names*."""
        return cls(StateStore(artifact_names))

    @classmethod
    def from_build_config(cls, build_config: BuildConfig) -> EventHandler:
        return cls.for_artifacts(build_config.image_names)

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def log(self) -> EventLog:
        return self._log

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def get_state(self) -> State:
        """Point-in-time deep copy of the whole state."""
        return self._store.snapshot()

    def for_each_event(self, callback: Callable[[EventBase], None]) -> None:
        """Tail the event log from the start; see ``EventLog.tail``."""
        self._log.tail(callback)

    def close(self) -> None:
        """End the event stream for every tailer."""
        self._log.close()

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build_in_progress(self, artifact: str) -> None:
        self._build(artifact, Status.IN_PROGRESS, f"Build started for artifact {artifact}")

    def build_complete(self, artifact: str) -> None:
        self._build(artifact, Status.COMPLETE, f"Build completed for artifact {artifact}")

    def build_failed(self, artifact: str, err: ErrorLike) -> None:
        self._build(
            artifact,
            Status.FAILED,
            f"Build failed for artifact {artifact}",
            error=_describe(err),
        )

    def _build(
        self, artifact: str, status: Status, entry: str, *, error: str | None = None
    ) -> None:
        def mutate(state: State) -> bool:
            build = state.build_state
            if not can_transition(build.artifacts.get(artifact), status):
                return False
            build.artifacts[artifact] = status
            if error is None:
                build.errors.pop(artifact, None)
            else:
                build.errors[artifact] = error
            return True

        self._commit(
            mutate,
            BuildEvent(artifact=artifact, status=status, error=error, entry=entry),
        )

    # ------------------------------------------------------------------
    # Deploy
    # ------------------------------------------------------------------

    def deploy_in_progress(self) -> None:
        self._deploy(Status.IN_PROGRESS, "Deploy started")

    def deploy_complete(self) -> None:
        self._deploy(Status.COMPLETE, "Deploy complete")

    def deploy_failed(self, err: ErrorLike) -> None:
        self._deploy(Status.FAILED, "Deploy failed", error=_describe(err))

    def _deploy(self, status: Status, entry: str, *, error: str | None = None) -> None:
        def mutate(state: State) -> bool:
            deploy = state.deploy_state
            if not can_transition(deploy.status, status):
                return False
            deploy.status = status
            deploy.error = error
            return True

        self._commit(mutate, DeployEvent(status=status, error=error, entry=entry))

    # ------------------------------------------------------------------
    # Status check
    # ------------------------------------------------------------------

    def status_check_event_started(self) -> None:
        self._status_check(Status.STARTED, "Status check started")

    def status_check_event_in_progress(self, message: str) -> None:
        self._status_check(
            Status.IN_PROGRESS, f"Status check in progress: {message}", message=message
        )

    def status_check_event_succeeded(self) -> None:
        self._status_check(Status.SUCCEEDED, "Status check succeeded")

    def status_check_event_failed(self, err: ErrorLike) -> None:
        self._status_check(Status.FAILED, "Status check failed", error=_describe(err))

    def _status_check(
        self,
        status: Status,
        entry: str,
        *,
        message: str | None = None,
        error: str | None = None,
    ) -> None:
        def mutate(state: State) -> bool:
            check = state.status_check_state
            if not can_transition(check.status, status):
                return False
            check.status = status
            if message is not None:
                check.message = message
            check.error = error
            return True

        self._commit(
            mutate,
            StatusCheckEvent(status=status, message=message, error=error, entry=entry),
        )

    def resource_status_check_event_updated(self, resource: str, message: str) -> None:
        self._resource_status_check(
            resource,
            Status.IN_PROGRESS,
            f"Resource {resource} status updated: {message}",
            detail=message,
        )

    def resource_status_check_event_succeeded(self, resource: str) -> None:
        self._resource_status_check(
            resource, Status.SUCCEEDED, f"Resource {resource} status completed successfully"
        )

    def resource_status_check_event_failed(self, resource: str, err: ErrorLike) -> None:
        error = _describe(err)
        self._resource_status_check(
            resource,
            Status.FAILED,
            f"Resource {resource} status failed: {error}",
            detail=error,
            failed=True,
        )

    def _resource_status_check(
        self,
        resource: str,
        status: Status,
        entry: str,
        *,
        detail: str | None = None,
        failed: bool = False,
    ) -> None:
        def mutate(state: State) -> bool:
            check = state.status_check_state
            if not can_transition(check.resources.get(resource), status):
                return False
            check.resources[resource] = status
            if detail is None:
                check.details.pop(resource, None)
            else:
                check.details[resource] = detail
            return True

        self._commit(
            mutate,
            ResourceStatusCheckEvent(
                resource=resource,
                status=status,
                message=None if failed else detail,
                error=detail if failed else None,
                entry=entry,
            ),
        )

    # ------------------------------------------------------------------
    # Port forwarding
    # ------------------------------------------------------------------

    def port_forwarded(
        self,
        local_port: int,
        remote_port: int,
        pod_name: str,
        container_name: str,
        namespace: str,
        port_name: str,
        resource_type: str,
        resource_name: str,
    ) -> None:
        forward = PortForward(
            local_port=local_port,
            remote_port=remote_port,
            pod_name=pod_name,
            container_name=container_name,
            namespace=namespace,
            port_name=port_name,
            resource_type=resource_type,
            resource_name=resource_name,
        )

        def mutate(state: State) -> bool:
            state.forwarded_ports[local_port] = forward
            return True

        self._commit(
            mutate,
            PortEvent(
                port_forward=forward,
                entry=(
                    f"Forwarding {resource_type}/{resource_name} "
                    f"port {remote_port} to local port {local_port}"
                ),
            ),
        )

    # ------------------------------------------------------------------
    # File sync
    # ------------------------------------------------------------------

    def file_sync_in_progress(self, file_count: int, image: str) -> None:
        self._file_sync(
            file_count, image, Status.IN_PROGRESS, f"File sync started for {file_count} files for {image}"
        )

    def file_sync_succeeded(self, file_count: int, image: str) -> None:
        self._file_sync(
            file_count, image, Status.SUCCEEDED, f"File sync succeeded for {file_count} files for {image}"
        )

    def file_sync_failed(self, file_count: int, image: str, err: ErrorLike) -> None:
        self._file_sync(
            file_count,
            image,
            Status.FAILED,
            f"File sync failed for {file_count} files for {image}",
            error=_describe(err),
        )

    def _file_sync(
        self,
        file_count: int,
        image: str,
        status: Status,
        entry: str,
        *,
        error: str | None = None,
    ) -> None:
        def mutate(state: State) -> bool:
            sync = state.file_sync_state
            # Every file change starts a new sync, even after a finished one.
            if status is not Status.IN_PROGRESS and not can_transition(sync.status, status):
                return False
            sync.status = status
            sync.image = image
            sync.file_count = file_count
            sync.error = error
            return True

        self._commit(
            mutate,
            FileSyncEvent(
                image=image, file_count=file_count, status=status, error=error, entry=entry
            ),
        )

    # ------------------------------------------------------------------
    # Log lines
    # ------------------------------------------------------------------

    def log_event(self, entry: str) -> None:
        """Append a textual log line; the state is not touched."""
        self._log.append(LogEntry(entry=entry))

    # ------------------------------------------------------------------
    # Resets
    # ------------------------------------------------------------------

    def reset_state_on_build(self) -> None:
        """Start of a build cycle: everything back to not started."""
        fresh = self._reset(reset_on_build, ResetPhase.BUILD, "State reset on build")
        logger.info(
            "State reset for new build cycle (%d artifacts)",
            len(fresh.build_state.artifacts),
        )

    def reset_state_on_deploy(self) -> None:
        """Start of a deploy cycle: build results and ports are kept."""
        self._reset(reset_on_deploy, ResetPhase.DEPLOY, "State reset on deploy")
        logger.info("State reset for new deploy cycle")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _commit(self, mutate: Callable[[State], bool], event: EventBase) -> None:
        """Apply *mutate* and, if it applied, log *event* under the same lock."""

        def publish(applied: bool) -> None:
            if applied:
                self._log.append(event)

        if not self._store.update(mutate, on_commit=publish):
            logger.warning("Ignoring %r: phase already finished", event.entry)
            return
        logger.debug("%s", event.entry)

    def _reset(
        self, transform: Callable[[State], State], phase: ResetPhase, entry: str
    ) -> State:
        def publish(fresh: State) -> None:
            self._log.append(StateResetEvent(phase=phase, state=fresh, entry=entry))

        return self._store.replace(transform, on_commit=publish)
