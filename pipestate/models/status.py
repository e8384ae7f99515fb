"""Phase status model — one closed enumeration shared by every phase."""

from __future__ import annotations

from enum import Enum


class Status(str, Enum):
    """Progress of a single pipeline phase or tracked item.

    Builds and deploys report ``COMPLETE``; status checks and file syncs
    report ``STARTED`` / ``SUCCEEDED``.  The semantics are identical.
    """

    NOT_STARTED = "Not Started"
    STARTED = "Started"
    IN_PROGRESS = "In Progress"
    COMPLETE = "Complete"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: frozenset[Status] = frozenset(
    {Status.COMPLETE, Status.SUCCEEDED, Status.FAILED}
)

# Terminal statuses have no outgoing transitions; only a reset leaves them.
# IN_PROGRESS -> IN_PROGRESS carries repeated progress messages.
VALID_TRANSITIONS: dict[Status, set[Status]] = {
    Status.NOT_STARTED: {
        Status.STARTED,
        Status.IN_PROGRESS,
        Status.COMPLETE,
        Status.SUCCEEDED,
        Status.FAILED,
    },
    Status.STARTED: {
        Status.IN_PROGRESS,
        Status.COMPLETE,
        Status.SUCCEEDED,
        Status.FAILED,
    },
    Status.IN_PROGRESS: {
        Status.IN_PROGRESS,
        Status.COMPLETE,
        Status.SUCCEEDED,
        Status.FAILED,
    },
    Status.COMPLETE: set(),
    Status.SUCCEEDED: set(),
    Status.FAILED: set(),
}


def can_transition(current: Status | None, target: Status) -> bool:
    """Return whether ``current -> target`` is allowed.

    ``None`` stands for a key that is not tracked yet and behaves like
    ``NOT_STARTED``.
    """
    return target in VALID_TRANSITIONS[current or Status.NOT_STARTED]
