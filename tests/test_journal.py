"""
Wayfarer — tests/test_journal.py
Travel journal significance gate and JSONL round trip.
"""

import json
import tempfile
from pathlib import Path

from engine.events import (
    EVT_HEADING_CHANGED,
    EVT_NODE_CLEARED,
    EVT_NODE_DISCOVERED,
    EventBus,
    ExplorationEvent,
)
from engine.journal import (
    EVT_SESSION_CLOSED,
    EVT_SESSION_OPENED,
    JournalReader,
    TravelJournal,
    score_significance,
)

def test_significance_table():
    assert score_significance(ExplorationEvent(event_key=EVT_HEADING_CHANGED, source="origin")) == 1
    assert score_significance(ExplorationEvent(event_key=EVT_NODE_CLEARED, source="origin")) == 4
    assert score_significance(ExplorationEvent(event_key="unknown.key", source="origin")) == 1

def test_gate_drops_ambient_events():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "nested" / "journal.jsonl"
        bus = EventBus()
        journal = TravelJournal(bus=bus, journal_path=path)

        bus.emit(ExplorationEvent(event_key=EVT_HEADING_CHANGED, source="origin", data={"heading": "E"}))
        journal.advance_step()
        bus.emit(ExplorationEvent(event_key=EVT_NODE_DISCOVERED, source="origin", target="node-0--1", data={"x": 0, "y": -1}))

        entries = JournalReader(path).all_entries()
        assert len(entries) == 1
        entry = entries[0]
        assert entry["event_type"] == EVT_NODE_DISCOVERED
        assert entry["target"] == "node-0--1"
        assert entry["step"] == 1
        assert entry["significance"] == 3
        assert entry["data"] == {"x": 0, "y": -1}

def test_session_markers_bypass_gate():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "journal.jsonl"
        journal = TravelJournal(bus=EventBus(), journal_path=path, significance_min=5)
        journal.open_session()
        journal.close_session()

        reader = JournalReader(path)
        assert [e["event_type"] for e in reader.all_entries()] == [EVT_SESSION_OPENED, EVT_SESSION_CLOSED]
        assert len(reader.by_significance(5)) == 2

def test_detach_stops_writing():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "journal.jsonl"
        bus = EventBus()
        journal = TravelJournal(bus=bus, journal_path=path)
        journal.detach()
        bus.emit(ExplorationEvent(event_key=EVT_NODE_CLEARED, source="origin"))
        assert JournalReader(path).all_entries() == []

def test_lines_are_valid_json():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "journal.jsonl"
        bus = EventBus()
        TravelJournal(bus=bus, journal_path=path)
        for i in range(3):
            bus.emit(ExplorationEvent(event_key=EVT_NODE_DISCOVERED, source="origin", target=f"node-{i}-0"))

        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 3
        ids = {json.loads(line)["entry_id"] for line in lines}
        assert len(ids) == 3
        assert len(JournalReader(path).discoveries()) == 3

def test_reader_on_missing_file():
    assert JournalReader(Path("does/not/exist.jsonl")).all_entries() == []
