"""Reset transforms applied at pipeline cycle boundaries.

The pipeline cycles Build -> Deploy -> StatusCheck.  A new build cycle
invalidates everything downstream, including port-forwards; a new deploy
cycle keeps the build results and the forwards.

Both functions are pure: they take a state and return a new one.
``EventHandler`` applies them atomically through ``StateStore.replace``.
"""

from __future__ import annotations

from pipestate.models.state import (
    BuildState,
    DeployState,
    FileSyncState,
    State,
    StatusCheckState,
)
from pipestate.models.status import Status


def reset_on_build(state: State) -> State:
    """Everything back to ``NOT_STARTED``; forwarded ports dropped."""
    return State(
        build_state=BuildState(
            artifacts={name: Status.NOT_STARTED for name in state.build_state.artifacts}
        ),
        deploy_state=DeployState(),
        status_check_state=StatusCheckState(),
        forwarded_ports={},
        file_sync_state=FileSyncState(),
    )


def reset_on_deploy(state: State) -> State:
    """Deploy and status check back to ``NOT_STARTED``; the rest is kept."""
    return state.model_copy(
        update={
            "deploy_state": DeployState(),
            "status_check_state": StatusCheckState(),
        },
        deep=True,
    )
