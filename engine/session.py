"""
Wayfarer — engine/session.py
Exploration Session: wires the graph, rule engine, camera, EventBus and journal.
==============================================================================
Version:     0.1
Stack:       Python 3.11+ | bespoke EventBus
Status:      Integration entry point. Single owner of all mutable map state.

Ordering
--------
Every move is validated by the rule engine strictly before the graph is
touched. A denied move emits EVT_TRAVERSAL_DENIED and nothing else; the
graph, trail and heading stay exactly as they were.

Teleport is a developer tool: it skips the rule engine, creates no edge and
accepts any integer coordinate.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from engine.camera import CameraController, CameraState
from engine.data_loader import ViewSettings, WorldDef
from engine.events import (
    EVT_EDGE_TRAVERSED,
    EVT_HEADING_CHANGED,
    EVT_NODE_CLEARED,
    EVT_NODE_DISCOVERED,
    EVT_NODE_REVISITED,
    EVT_STEPPED_BACK,
    EVT_TELEPORTED,
    EVT_TRAVERSAL_DENIED,
    EventBus,
    ExplorationEvent,
)
from engine.journal import TravelJournal
from engine.passability import TraversalRule, TraversalVerdict, evaluate_traversal
from engine.projection import Projector, rotation_for
from world.coords import AlignmentMode, Direction, GridCoordinate, turn
from world.exploration import ExplorationEdge, ExplorationGraph, ExplorationNode
from world.regions import Region, blocking_rectangles, extract_regions
from world.ruleset import PointOfInterest, Ruleset

# Resolves "is the content at this node fully resolved" for a node id.
TableauCheck = Callable[[str], bool]


class ExplorationSession:
    """
    Core executor for the exploration map.
    Owns the ExplorationGraph, CameraController, EventBus and (optionally) a TravelJournal.
    """

    def __init__(
        self,
        ruleset: Optional[Ruleset] = None,
        origin: GridCoordinate = GridCoordinate(0, 0),
        heading: Direction = Direction.N,
        alignment: AlignmentMode = AlignmentMode.MAP,
        pathing_locked: bool = True,
        bus: Optional[EventBus] = None,
        settings: Optional[ViewSettings] = None,
        tableau_cleared: Optional[TableauCheck] = None,
        journal_path: Optional[Path] = None,
        pois: Iterable[PointOfInterest] = (),
    ):
        self.ruleset = ruleset if ruleset is not None else Ruleset()
        self.settings = settings if settings is not None else ViewSettings()
        self.bus = bus if bus is not None else EventBus()

        self.graph = ExplorationGraph(origin=origin, heading=heading)
        self.current_id = self.graph.origin_id
        self.heading = heading
        self.alignment = alignment
        self.pathing_locked = pathing_locked
        self.traversal_count = 0
        self.last_verdict: Optional[TraversalVerdict] = None

        self._tableau_cleared = tableau_cleared
        self._pois: Dict[GridCoordinate, PointOfInterest] = {}
        for poi in pois:
            self._pois.setdefault(poi.coordinate, poi)
        self._rotation = rotation_for(heading, alignment)

        self.camera = CameraController(
            viewport=self.settings.viewport,
            cell_size=self.settings.cell_size,
            zoom_min=self.settings.zoom_min,
            zoom_max=self.settings.zoom_max,
            zoom_factor=self.settings.zoom_factor,
        )

        self.journal: Optional[TravelJournal] = None
        if journal_path is not None:
            self.journal = TravelJournal(bus=self.bus, journal_path=journal_path)

    @classmethod
    def from_world(cls, world: WorldDef, **kwargs) -> "ExplorationSession":
        """Starts a session at the world's spawn point, under its authored rules."""
        settings = kwargs.get("settings") or ViewSettings()
        kwargs.setdefault("alignment", settings.alignment)
        kwargs.setdefault("pathing_locked", settings.pathing_locked)
        return cls(
            ruleset=world.to_ruleset(),
            origin=world.spawn.to_coordinate(),
            heading=world.spawn_heading,
            pois=world.to_pois(),
            **kwargs,
        )

    def open_session(self) -> None:
        if self.journal is not None:
            self.journal.open_session()

    def close_session(self) -> None:
        if self.journal is not None:
            self.journal.close_session()
            self.journal.detach()

    # ----------------------------------------------------------
    # Snapshots
    # ----------------------------------------------------------

    @property
    def current_node(self) -> ExplorationNode:
        return self.graph.get_node(self.current_id)

    @property
    def current_coordinate(self) -> GridCoordinate:
        return self.current_node.coordinate

    @property
    def nodes(self) -> List[ExplorationNode]:
        return self.graph.nodes

    @property
    def edges(self) -> List[ExplorationEdge]:
        return self.graph.edges

    @property
    def trail(self) -> Tuple[str, ...]:
        return self.graph.trail.snapshot()

    @property
    def camera_state(self) -> CameraState:
        return self.camera.state

    @property
    def rotation(self) -> float:
        return self._rotation

    @property
    def pois(self) -> List[PointOfInterest]:
        return list(self._pois.values())

    def poi_at(self, coordinate: GridCoordinate) -> Optional[PointOfInterest]:
        return self._pois.get(coordinate)

    @property
    def current_poi(self) -> Optional[PointOfInterest]:
        return self._pois.get(self.current_coordinate)

    def tableau_cleared_at_current(self) -> bool:
        if self.current_node.cleared:
            return True
        if self._tableau_cleared is None:
            return False
        return bool(self._tableau_cleared(self.current_id))

    # ----------------------------------------------------------
    # Traversal
    # ----------------------------------------------------------

    def can_advance(self, direction: Direction) -> TraversalVerdict:
        """Dry-run of advance(); never mutates or emits."""
        direction = Direction(direction)
        target = self.current_coordinate.step(direction)
        return evaluate_traversal(
            self.current_node,
            target,
            self.ruleset,
            self.tableau_cleared_at_current(),
            self.pathing_locked,
        )

    def advance(self, direction: Direction) -> TraversalVerdict:
        direction = Direction(direction)
        source_id = self.current_id
        target = self.current_coordinate.step(direction)
        cleared_here = self.tableau_cleared_at_current()

        verdict = evaluate_traversal(
            self.current_node, target, self.ruleset, cleared_here, self.pathing_locked
        )
        self.last_verdict = verdict
        if not verdict.allowed:
            self.bus.emit(ExplorationEvent(
                event_key=EVT_TRAVERSAL_DENIED,
                source=source_id,
                data={
                    "direction": direction.value,
                    "x": target.x,
                    "y": target.y,
                    "rule": verdict.rule.value,
                    "reason": verdict.reason,
                },
            ))
            return verdict

        # Commit
        newly_cleared = cleared_here and not self.current_node.cleared
        if cleared_here:
            self.graph.mark_cleared(source_id)

        discovered = self.graph.node_at(target) is None
        target_id = self.graph.upsert_node(target, direction)
        edge_id = self.graph.upsert_edge(source_id, target_id)
        self.graph.append_trail(target_id)
        self.current_id = target_id
        self.traversal_count += 1
        heading_changed = self._apply_heading(direction)

        if self.journal is not None:
            self.journal.advance_step()

        # Notify
        if newly_cleared:
            self.bus.emit(ExplorationEvent(event_key=EVT_NODE_CLEARED, source=source_id))
        if heading_changed:
            self._emit_heading(source_id)
        node = self.graph.get_node(target_id)
        self.bus.emit(ExplorationEvent(
            event_key=EVT_NODE_DISCOVERED if discovered else EVT_NODE_REVISITED,
            source=source_id,
            target=target_id,
            data={"x": node.x, "y": node.y, "z": node.z, "visits": node.visits},
        ))
        self.bus.emit(ExplorationEvent(
            event_key=EVT_EDGE_TRAVERSED,
            source=source_id,
            target=target_id,
            data={
                "edge_id": edge_id,
                "direction": direction.value,
                "traversals": self.graph.edge_between(source_id, target_id).traversals,
            },
        ))
        return verdict

    def teleport(self, x: int, y: int) -> str:
        """Jumps to (x, y) without consulting the rules. Returns the node id."""
        target = GridCoordinate(x, y)
        source_id = self.current_id
        existing = self.graph.node_at(target)
        heading = existing.heading if existing is not None else self.heading

        target_id = self.graph.upsert_node(target, heading)
        self.graph.append_trail(target_id)
        self.current_id = target_id
        self.last_verdict = TraversalVerdict(True, TraversalRule.UNLOCKED, "teleport")

        if self.journal is not None:
            self.journal.advance_step()
        node = self.graph.get_node(target_id)
        self.bus.emit(ExplorationEvent(
            event_key=EVT_TELEPORTED,
            source=source_id,
            target=target_id,
            data={"x": node.x, "y": node.y, "visits": node.visits, "discovered": existing is None},
        ))
        return target_id

    def step_backward(self) -> bool:
        """Retraces one trail step. False when already at the start of the trail."""
        removed = self.graph.pop_trail()
        if removed is None:
            return False
        self.current_id = self.graph.trail.last
        self.bus.emit(ExplorationEvent(
            event_key=EVT_STEPPED_BACK,
            source=removed,
            target=self.current_id,
        ))
        return True

    # ----------------------------------------------------------
    # Heading, alignment, rules
    # ----------------------------------------------------------

    def turn(self, clockwise: bool = True) -> Direction:
        self.set_heading(turn(self.heading, clockwise))
        return self.heading

    def set_heading(self, heading: Direction) -> None:
        if self._apply_heading(Direction(heading)):
            self._emit_heading(self.current_id)

    def set_alignment(self, alignment: AlignmentMode) -> None:
        self.alignment = AlignmentMode(alignment)
        self._rotation = rotation_for(self.heading, self.alignment)

    def toggle_alignment(self) -> AlignmentMode:
        flipped = AlignmentMode.MAP if self.alignment == AlignmentMode.PLAYER else AlignmentMode.PLAYER
        self.set_alignment(flipped)
        return self.alignment

    def set_pathing_locked(self, locked: bool) -> None:
        self.pathing_locked = locked

    def mark_current_cleared(self) -> None:
        if self.current_node.cleared:
            return
        self.graph.mark_cleared(self.current_id)
        self.bus.emit(ExplorationEvent(event_key=EVT_NODE_CLEARED, source=self.current_id))

    def _apply_heading(self, heading: Direction) -> bool:
        if heading == self.heading:
            return False
        self.heading = heading
        self._rotation = rotation_for(self.heading, self.alignment)
        return True

    def _emit_heading(self, node_id: str) -> None:
        self.bus.emit(ExplorationEvent(
            event_key=EVT_HEADING_CHANGED,
            source=node_id,
            data={"heading": self.heading.value},
        ))

    # ----------------------------------------------------------
    # Rendering helpers
    # ----------------------------------------------------------

    def projector(self) -> Projector:
        return self.camera.projector_for(self.current_coordinate, self._rotation)

    def regions(self) -> Tuple[Region, ...]:
        return extract_regions(self.ruleset.blocked_coordinates)

    def blocking_rectangles(self) -> List[Tuple[float, float, float, float]]:
        return blocking_rectangles(self.regions(), self.projector())

    def hover(self, px: float, py: float) -> Optional[GridCoordinate]:
        return self.camera.pointer_move(px, py, self.current_coordinate, self._rotation)
