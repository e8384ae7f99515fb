"""Canonical mutable pipeline state behind a single lock.

The live ``State`` never leaves this object.  Readers get deep copies,
writers hand in a function that runs while the lock is held.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from typing import TypeVar

from pipestate.models.state import State, init_state

T = TypeVar("T")


class StateStore:
    """Owns the live ``State`` of one pipeline run.

    Parameters
    ----------
    artifact_names:
        Image names of the configured artifacts; each starts ``NOT_STARTED``.
    state:
        Start from an existing state instead (copied, never aliased).
    """

    def __init__(
        self,
        artifact_names: Iterable[str] = (),
        *,
        state: State | None = None,
    ) -> None:
        if state is not None:
            self._state = state.model_copy(deep=True)
        else:
            self._state = init_state(artifact_names)
        self._lock = threading.Lock()

    def snapshot(self) -> State:
        """Return a deep copy of the current state."""
        with self._lock:
            return self._state.model_copy(deep=True)

    def update(
        self,
        mutate: Callable[[State], T],
        *,
        on_commit: Callable[[T], None] | None = None,
    ) -> T:
        """Apply *mutate* to the live state in place.

        *mutate* runs under the lock and should touch a single field.
        Its return value is passed back to the caller.  *on_commit*, if
        given, receives that value before the lock is released, so
        whatever it records is ordered exactly like the mutation.
        """
        with self._lock:
            result = mutate(self._state)
            if on_commit is not None:
                on_commit(result)
            return result

    def replace(
        self,
        transform: Callable[[State], State],
        *,
        on_commit: Callable[[State], None] | None = None,
    ) -> State:
        """Swap the whole state for ``transform(current)``.

        *transform* receives a private copy.  Returns a copy of the new
        state, taken before the lock is released; *on_commit* receives
        that same copy while the lock is still held.
        """
        with self._lock:
            self._state = transform(self._state.model_copy(deep=True))
            fresh = self._state.model_copy(deep=True)
            if on_commit is not None:
                on_commit(fresh)
            return fresh
