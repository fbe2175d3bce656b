from __future__ import annotations

"""
In-process event log.

The engine publishes events only after a transition has been committed.
Delivery beyond this process (webhooks, queues, websockets) is left to
subscribers. A failing subscriber is logged and skipped; it never undoes the
committed state or blocks later subscribers.
"""

import logging
from threading import RLock
from typing import Callable, List, Optional, Tuple

from stewards.records.events import Event, EventType

log = logging.getLogger(__name__)

Subscriber = Callable[[Event], None]


class EventLog:
    def __init__(self, *, max_history: Optional[int] = 10_000) -> None:
        self._history: List[Event] = []
        self._subs: List[Subscriber] = []
        self._max = max_history
        self._lock = RLock()

    def subscribe(self, fn: Subscriber) -> Callable[[], None]:
        """Register `fn`; returns a callable that removes it again."""
        with self._lock:
            self._subs.append(fn)

        def _unsubscribe() -> None:
            with self._lock:
                if fn in self._subs:
                    self._subs.remove(fn)

        return _unsubscribe

    def publish(self, event: Event) -> None:
        with self._lock:
            self._history.append(event)
            if self._max is not None and len(self._history) > self._max:
                del self._history[: len(self._history) - self._max]
            subs = list(self._subs)
        for fn in subs:
            try:
                fn(event)
            except Exception:
                log.exception("events: subscriber %r failed on %s", fn, event.etype.value)

    def history(self, etype: Optional[EventType] = None) -> Tuple[Event, ...]:
        with self._lock:
            if etype is None:
                return tuple(self._history)
            return tuple(e for e in self._history if e.etype == etype)

    def clear(self) -> None:
        with self._lock:
            self._history.clear()


__all__ = ["EventLog", "Subscriber"]
