"""Event emission for the AMM engine.

Events raised during an operation are buffered. When the operation commits
the engine appends them to the log while it still holds the pool mutexes,
then notifies subscribers after releasing them. An aborted operation
records nothing.

Subscribers are observers: an exception raised by one is logged and does
not reach the caller of the operation that produced the event.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager

import structlog

from amm.models.events import Event

logger = structlog.get_logger()

Subscriber = Callable[[Event], None]


class EventLog:
    """Append-only log of committed events with subscriber fan-out."""

    def __init__(self) -> None:
        self._events: list[Event] = []
        self._subscribers: list[Subscriber] = []
        self._local = threading.local()
        self._lock = threading.Lock()

    @property
    def events(self) -> list[Event]:
        with self._lock:
            return list(self._events)

    def of_type(self, event_type: type[Event]) -> list[Event]:
        return [e for e in self.events if isinstance(e, event_type)]

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def emit(self, event: Event) -> None:
        """Record and publish an event, or buffer it if an operation is in progress."""
        buffer = getattr(self._local, "buffer", None)
        if buffer is not None:
            buffer.append(event)
            return
        self.commit([event])
        self.notify([event])

    @contextmanager
    def buffered(self) -> Iterator[list[Event]]:
        """Collect events emitted in this block.

        The caller decides what to do with the collected list on success
        (see commit and notify). On failure the events are dropped. Nested
        blocks share the outermost buffer.
        """
        if getattr(self._local, "buffer", None) is not None:
            yield self._local.buffer
            return
        self._local.buffer = []
        try:
            yield self._local.buffer
        except BaseException:
            discarded = len(self._local.buffer)
            if discarded:
                logger.debug("events_discarded", count=discarded)
            raise
        finally:
            self._local.buffer = None

    def commit(self, events: list[Event]) -> None:
        """Append events to the log."""
        with self._lock:
            self._events.extend(events)
        for event in events:
            logger.info("event_emitted", event_name=event.name, **event.model_dump())

    def notify(self, events: list[Event]) -> None:
        """Hand committed events to every subscriber."""
        for event in events:
            for subscriber in list(self._subscribers):
                try:
                    subscriber(event)
                except Exception:
                    logger.exception("subscriber_failed", event_name=event.name, subscriber=repr(subscriber))
