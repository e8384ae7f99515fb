"""Append-only, in-memory event log with blocking multi-reader tails.

Design:
- Append-only: ``append()`` and ``close()`` are the only writers.
- One ``threading.Condition`` guards the sequence; appends are linearized
  by it and every tailer sees that same order.
- Each tailer owns a private read cursor and replays from index 0.
- Tailers that have caught up sleep on the condition; no polling.
- ``close()`` appends the ``EndOfStream`` pill.  A tailer returns when it
  reaches the pill; the pill is never handed to the callback.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator

from pipestate.models.events import EndOfStream, EventBase, is_end_of_stream

logger = logging.getLogger(__name__)


class EventLog:
    """Thread-safe append-only event sequence.

    Usage
    -----
    >>> log = EventLog()
    >>> log.append(LogEntry(entry="hello"))
    >>> log.close()
    >>> log.tail(print)   # prints the entry, returns at the pill
    """

    def __init__(self) -> None:
        self._events: list[EventBase] = []
        self._cond = threading.Condition()
        self._closed = False

    # ------------------------------------------------------------------
    # Writers
    # ------------------------------------------------------------------

    def append(self, event: EventBase) -> None:
        """Append *event* and wake every blocked tailer.

        Passing an ``EndOfStream`` is equivalent to ``close()``.
        """
        with self._cond:
            if self._closed:
                logger.debug("Event log closed; dropping %s event", event.kind.value)
                return
            self._events.append(event)
            if is_end_of_stream(event):
                self._closed = True
            self._cond.notify_all()

    def close(self) -> None:
        """Terminate the stream.  Idempotent."""
        self.append(EndOfStream(entry="end of stream"))

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._events)

    def history(self) -> list[EventBase]:
        """Return a copy of every event appended so far, pill included."""
        with self._cond:
            return list(self._events)

    def iter_events(self) -> Iterator[EventBase]:
        """Yield every event from the start, blocking for new ones.

        Stops at the ``EndOfStream`` pill.  The lock is never held while
        the consumer runs.
        """
        cursor = 0
        while True:
            with self._cond:
                while cursor >= len(self._events):
                    self._cond.wait()
                batch = self._events[cursor:]
            for event in batch:
                cursor += 1
                if is_end_of_stream(event):
                    return
                yield event

    def tail(self, callback: Callable[[EventBase], None]) -> None:
        """Deliver every event, past and future, to *callback* in order.

        Blocks until the stream is closed.  An exception raised by
        *callback* cancels this tail only and propagates to the caller.
        """
        events = self.iter_events()
        try:
            for event in events:
                callback(event)
        except Exception as exc:
            logger.debug("Tail cancelled by callback: %s", exc)
            raise
        finally:
            events.close()
