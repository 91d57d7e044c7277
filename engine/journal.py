"""
Wayfarer — engine/journal.py
Travel Journal: append-only JSONL log of exploration events.
============================================================
Version:     0.1
Stack:       Python 3.11+ | stdlib json | bespoke EventBus
Status:      Passive observer. Never mutates the graph.

Architecture notes
------------------
- The journal is a PASSIVE wildcard subscriber. It never emits events.
- Append-only JSONL. Written entries are immutable.
- Significance gate (int 1-5): events below JOURNAL_SIGNIFICANCE_MIN are
  discarded silently.
- Step numbers are injected by the session via advance_step(); the journal
  never reads the system clock.
- This is an event log for debugging and narration, not a save format;
  a graph cannot be rebuilt from it.

Significance Scoring Reference (JOURNAL_SIGNIFICANCE_MIN = 2)
-------------------------------------------------------------
  1: ambient (heading changes)
  2: routine travel (edge traversed, revisit, step back, denial)
  3: notable (new node discovered, teleport)
  4: significant (tableau cleared at a node)
  5: session markers (bypass the gate)
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from engine.events import (
    EVT_EDGE_TRAVERSED,
    EVT_HEADING_CHANGED,
    EVT_NODE_CLEARED,
    EVT_NODE_DISCOVERED,
    EVT_NODE_REVISITED,
    EVT_STEPPED_BACK,
    EVT_TELEPORTED,
    EVT_TRAVERSAL_DENIED,
    WILDCARD,
    EventBus,
    ExplorationEvent,
)

JOURNAL_SIGNIFICANCE_MIN: int = 2

EVT_SESSION_OPENED = "journal.session_opened"
EVT_SESSION_CLOSED = "journal.session_closed"

_SIGNIFICANCE_TABLE: Dict[str, int] = {
    EVT_HEADING_CHANGED:   1,
    EVT_EDGE_TRAVERSED:    2,
    EVT_NODE_REVISITED:    2,
    EVT_STEPPED_BACK:      2,
    EVT_TRAVERSAL_DENIED:  2,
    EVT_NODE_DISCOVERED:   3,
    EVT_TELEPORTED:        3,
    EVT_NODE_CLEARED:      4,
}


def score_significance(event: ExplorationEvent) -> int:
    """Unlisted keys default to 1 (below the default gate)."""
    return _SIGNIFICANCE_TABLE.get(event.event_key, 1)


@dataclass(frozen=True)
class JournalEntry:
    entry_id: str
    step: int
    event_type: str
    source: str
    target: Any
    data: Dict[str, Any]
    significance: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entry_id":     self.entry_id,
            "step":         self.step,
            "event_type":   self.event_type,
            "source":       self.source,
            "target":       self.target,
            "data":         self.data,
            "significance": self.significance,
        }


class TravelJournal:
    def __init__(
        self,
        bus: EventBus,
        journal_path: Path,
        significance_min: int = JOURNAL_SIGNIFICANCE_MIN,
    ):
        self.bus = bus
        self.journal_path = journal_path
        self.significance_min = significance_min
        self.step = 0

        self.journal_path.parent.mkdir(parents=True, exist_ok=True)
        bus.subscribe(WILDCARD, self._on_event)

    def open_session(self) -> None:
        marker = ExplorationEvent(event_key=EVT_SESSION_OPENED, source="system", data={"step": self.step})
        self._inscribe(marker, significance=5)

    def close_session(self) -> None:
        marker = ExplorationEvent(event_key=EVT_SESSION_CLOSED, source="system", data={"step": self.step})
        self._inscribe(marker, significance=5)

    def advance_step(self, steps: int = 1) -> None:
        self.step += steps

    def detach(self) -> None:
        self.bus.unsubscribe(WILDCARD, self._on_event)

    def _on_event(self, event: ExplorationEvent) -> None:
        significance = score_significance(event)
        if significance < self.significance_min:
            return
        self._inscribe(event, significance=significance)

    def _inscribe(self, event: ExplorationEvent, significance: int) -> JournalEntry:
        entry = JournalEntry(
            entry_id=str(uuid.uuid4()),
            step=self.step,
            event_type=event.event_key,
            source=event.source,
            target=event.target,
            data=dict(event.data),
            significance=significance,
        )
        with open(self.journal_path, "a", encoding="utf-8") as fh:
            fh.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")
        return entry


class JournalReader:
    """Read-only query interface for a journal JSONL file."""

    def __init__(self, journal_path: Path) -> None:
        self.journal_path = journal_path

    def all_entries(self) -> List[Dict[str, Any]]:
        if not self.journal_path.exists():
            return []
        entries = []
        with open(self.journal_path, "r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if line:
                    entries.append(json.loads(line))
        return entries

    def by_event_type(self, event_type: str) -> List[Dict[str, Any]]:
        return [e for e in self.all_entries() if e.get("event_type") == event_type]

    def by_significance(self, minimum: int) -> List[Dict[str, Any]]:
        return [e for e in self.all_entries() if e.get("significance", 0) >= minimum]

    def discoveries(self) -> List[Dict[str, Any]]:
        return self.by_event_type(EVT_NODE_DISCOVERED)
