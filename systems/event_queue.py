"""
systems/event_queue.py
======================
Synchronous event bus for Ascend OS.

Architecture
------------
Game systems (session, economy, storage) post events here instead of
calling a notification layer directly.  Whatever shell hosts the session
(the line-oriented driver in ``main.py``, a desktop UI, a test) subscribes
to the types it cares about and renders them however it likes.

Dispatch
--------
``post`` only enqueues.  ``flush`` delivers every pending event to its
subscribers in posting order; events posted by a handler during a flush are
delivered in the same flush, after the ones already queued.

Subscriber protocol
-------------------
Any callable ``handler(event: Event) -> None``.  A handler that raises is
logged and skipped; the remaining handlers and events are still delivered.
"""

from __future__ import annotations

import enum
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Event types
# ---------------------------------------------------------------------------

class EventType(enum.Enum):
    """Every event type the session and its systems can post."""

    # --- World ---
    WORLD_GENERATED    = "world_generated"     # live tree rebuilt
    NODE_MODIFIED      = "node_modified"       # rename / mark / scan applied
    NODE_CONSUMED      = "node_consumed"       # node removed from live tree
    FILE_READ          = "file_read"           # text file opened
    SIGNAL_TRACED      = "signal_traced"       # trace finished (any outcome)
    AUTOMARK_USED      = "automark_used"       # folder auto-marked on entry

    # --- Loot ---
    PACKAGE_OPENED     = "package_opened"
    MODULE_INSTALLED   = "module_installed"

    # --- Economy ---
    RESOURCE_CHANGED   = "resource_changed"    # data / counters changed
    BOOST_EXPIRED      = "boost_expired"       # active boost bank ran dry

    # --- Lifecycle ---
    ASCENSION_READY    = "ascension_ready"     # goal executable opened
    ASCENSION_COMPLETE = "ascension_complete"  # moved to the next iteration
    SEED_CHANGED       = "seed_changed"
    SAVE_IMPORTED      = "save_imported"
    SESSION_RESET      = "session_reset"
    SAVE_FAILED        = "save_failed"
    QUIT_REQUESTED     = "quit_requested"


# ---------------------------------------------------------------------------
# Event dataclass
# ---------------------------------------------------------------------------

@dataclass
class Event:
    """Record handed to subscribers.

    Parameters
    ----------
    type:
        The ``EventType`` that identifies this event.
    payload:
        Flat dict with string keys.
    source:
        Debug tag for the poster (e.g. ``"GameSession"``).
    """

    type:    EventType
    payload: dict[str, Any] = field(default_factory=dict)
    source:  str            = ""

    def __repr__(self) -> str:
        src = f" from={self.source!r}" if self.source else ""
        return f"<Event {self.type.name}{src}>"


Handler = Callable[[Event], None]


# ---------------------------------------------------------------------------
# EventQueue
# ---------------------------------------------------------------------------

class EventQueue:
    """Pending-event buffer plus a subscriber table.

    Usage
    -----
        from systems.event_queue import event_queue, EventType

        event_queue.subscribe(EventType.PACKAGE_OPENED, on_package)
        session.open_node(node_id)     # posts PACKAGE_OPENED
        event_queue.flush()            # on_package(event) runs here
    """

    def __init__(self) -> None:
        self._pending: list[Event] = []
        self._subscribers: defaultdict[EventType, list[Handler]] = defaultdict(list)
        self._flushing: bool = False

    # ------------------------------------------------------------------
    # Subscription management
    # ------------------------------------------------------------------

    def subscribe(self, event_type: EventType, handler: Handler) -> None:
        """Register *handler* for *event_type*.  Duplicates are ignored."""
        handlers = self._subscribers[event_type]
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, event_type: EventType, handler: Handler) -> None:
        """Remove *handler* from *event_type*.  Safe if never registered."""
        handlers = self._subscribers[event_type]
        if handler in handlers:
            handlers.remove(handler)

    def unsubscribe_all(self, handler: Handler) -> None:
        """Remove *handler* from every event type."""
        for handlers in self._subscribers.values():
            if handler in handlers:
                handlers.remove(handler)

    # ------------------------------------------------------------------
    # Posting
    # ------------------------------------------------------------------

    def post(self, event: Event) -> None:
        """Enqueue *event* for the next ``flush()``."""
        self._pending.append(event)
        log.debug("Enqueued %r", event)

    def post_immediate(
        self,
        event_type: EventType,
        payload:    dict[str, Any] | None = None,
        source:     str = "",
    ) -> None:
        """Build and enqueue an ``Event`` in one call."""
        self.post(Event(type=event_type, payload=payload or {}, source=source))

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def flush(self) -> None:
        """Deliver all pending events, including ones posted mid-flush."""
        if self._flushing:
            return

        self._flushing = True
        try:
            i = 0
            while i < len(self._pending):
                event    = self._pending[i]
                handlers = list(self._subscribers.get(event.type, []))
                if not handlers:
                    log.debug("No subscribers for %r", event)
                for handler in handlers:
                    try:
                        handler(event)
                    except Exception:
                        log.exception("Handler %r raised while processing %r", handler, event)
                i += 1
        finally:
            self._pending.clear()
            self._flushing = False

    def clear(self) -> None:
        """Drop pending events and all subscribers."""
        self._pending.clear()
        self._subscribers.clear()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def __repr__(self) -> str:
        return f"<EventQueue pending={self.pending_count}>"


#: Shared instance.  Import this directly rather than constructing your own.
event_queue: EventQueue = EventQueue()
