"""
Wayfarer — engine/events.py
Event Bus: typed pub-sub for exploration events.
================================================
Version:     0.1
Stack:       Python 3.11+ | Pydantic v2 | bespoke pub-sub
Status:      Production-ready.

Architecture notes
------------------
- All events share one Pydantic envelope; data stays flat and
  JSON-serializable so the TravelJournal can write it verbatim.
- Wildcard key "*" receives every emitted event (used by the journal).
- Per-handler errors are reported to stderr and emission continues.
- Events are emitted AFTER the graph has been committed; a denied move
  emits only EVT_TRAVERSAL_DENIED.
"""

from __future__ import annotations

import sys
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

# ============================================================
# CANONICAL EVENT KEYS
# Never use raw strings. Add new keys here only.
# ============================================================

EVT_NODE_DISCOVERED       = "exploration.node_discovered"
EVT_NODE_REVISITED        = "exploration.node_revisited"
EVT_EDGE_TRAVERSED        = "exploration.edge_traversed"
EVT_TRAVERSAL_DENIED      = "exploration.traversal_denied"
EVT_TELEPORTED            = "exploration.teleported"
EVT_STEPPED_BACK          = "exploration.stepped_back"
EVT_NODE_CLEARED          = "exploration.node_cleared"
EVT_HEADING_CHANGED       = "exploration.heading_changed"

WILDCARD = "*"


class ExplorationEvent(BaseModel):
    """Base envelope. The journal receives these directly."""
    event_key: str
    source: str                     # node id the event originates from
    target: Optional[str] = None    # node id the event points at, if any
    data: Dict[str, Any] = Field(default_factory=dict)


HandlerFn = Callable[[ExplorationEvent], None]


class EventBus:
    """
    Bespoke pub-sub. Pass instance at construction; there is no global singleton.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[HandlerFn]] = {}

    def subscribe(self, event_key: str, handler: HandlerFn) -> None:
        self._subscribers.setdefault(event_key, []).append(handler)

    def unsubscribe(self, event_key: str, handler: HandlerFn) -> None:
        if event_key in self._subscribers:
            self._subscribers[event_key] = [
                h for h in self._subscribers[event_key] if h != handler
            ]

    def emit(self, event: ExplorationEvent) -> None:
        targets = (
            self._subscribers.get(event.event_key, [])
            + self._subscribers.get(WILDCARD, [])
        )
        for handler in targets:
            try:
                handler(event)
            except Exception as exc:  # noqa: BLE001
                print(
                    f"[EventBus] Handler error on '{event.event_key}': {exc}",
                    file=sys.stderr,
                )
