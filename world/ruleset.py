"""
Wayfarer — world/ruleset.py
Static data authored per world: blocked cells, blocked links,
conditional links, the forced rail and points of interest.
=====================================================================
Version:     0.1
Stack:       Python 3.11+
Status:      Immutable for the lifetime of a session.

Design notes
------------
- Every collection defaults to empty and the rail defaults to inactive,
  so rule evaluation never branches on missing data.
- Lookup indexes are built once in __post_init__; the public fields stay
  plain tuples so a Ruleset is hashable and cheap to compare.
- A conditional edge has ONE locked flag; its reverse direction (when
  bidirectional) shares it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Tuple

from world.coords import GridCoordinate

TERRAIN_TYPES: Tuple[str, ...] = ("mountain", "canyon", "ridge", "cliff")
REQUIREMENT_SOURCE_CLEARED = "source_tableau_cleared"

Link = Tuple[GridCoordinate, GridCoordinate]


@dataclass(frozen=True)
class LightBlocker:
    """Opaque hint forwarded to the lighting renderer."""
    cast_height: float = 5.0
    softness: float = 4.0


@dataclass(frozen=True)
class BlockedCell:
    coordinate: GridCoordinate
    terrain: str = "mountain"
    reason: Optional[str] = None
    light_blocker: Optional[LightBlocker] = None

    def __post_init__(self) -> None:
        if self.terrain not in TERRAIN_TYPES:
            raise ValueError(f"Unknown terrain {self.terrain!r}; expected one of {TERRAIN_TYPES}")


@dataclass(frozen=True)
class BlockedEdge:
    source: GridCoordinate
    target: GridCoordinate
    bidirectional: bool = True
    reason: Optional[str] = None


@dataclass(frozen=True)
class ConditionalEdge:
    source: GridCoordinate
    target: GridCoordinate
    bidirectional: bool = True
    locked: bool = True
    requirement: str = REQUIREMENT_SOURCE_CLEARED
    reason: Optional[str] = None


@dataclass(frozen=True)
class ForcedRail:
    path: Tuple[GridCoordinate, ...] = ()
    lock_until_path_complete: bool = True
    label: Optional[str] = None

    @property
    def active(self) -> bool:
        return self.lock_until_path_complete and len(self.path) >= 2

    def required_next(self, coordinate: GridCoordinate) -> Optional[GridCoordinate]:
        """
        The only legal next step from coordinate while the rail is active,
        or None when the rail places no constraint (off-rail or at the end).
        """
        if not self.active:
            return None
        try:
            index = self.path.index(coordinate)
        except ValueError:
            return None
        if index >= len(self.path) - 1:
            return None
        return self.path[index + 1]


@dataclass(frozen=True)
class PointOfInterest:
    """
    Authored content pinned to a cell. The map never interprets poi_id;
    it is handed through to whatever resolves the tableau at that cell.
    """
    coordinate: GridCoordinate
    poi_id: str
    label: Optional[str] = None


@dataclass(frozen=True)
class Ruleset:
    blocked_cells: Tuple[BlockedCell, ...] = ()
    blocked_edges: Tuple[BlockedEdge, ...] = ()
    conditional_edges: Tuple[ConditionalEdge, ...] = ()
    forced_rail: ForcedRail = field(default_factory=ForcedRail)

    _cells: Dict[GridCoordinate, BlockedCell] = field(init=False, repr=False, compare=False)
    _blocked_links: Dict[Link, BlockedEdge] = field(init=False, repr=False, compare=False)
    _conditional_links: Dict[Link, ConditionalEdge] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Accept lists from callers; store tuples so the ruleset stays hashable
        object.__setattr__(self, "blocked_cells", tuple(self.blocked_cells))
        object.__setattr__(self, "blocked_edges", tuple(self.blocked_edges))
        object.__setattr__(self, "conditional_edges", tuple(self.conditional_edges))

        cells = {cell.coordinate: cell for cell in self.blocked_cells}

        blocked_links: Dict[Link, BlockedEdge] = {}
        for edge in self.blocked_edges:
            blocked_links.setdefault((edge.source, edge.target), edge)
            if edge.bidirectional:
                blocked_links.setdefault((edge.target, edge.source), edge)

        conditional_links: Dict[Link, ConditionalEdge] = {}
        for edge in self.conditional_edges:
            conditional_links.setdefault((edge.source, edge.target), edge)
            if edge.bidirectional:
                conditional_links.setdefault((edge.target, edge.source), edge)

        object.__setattr__(self, "_cells", cells)
        object.__setattr__(self, "_blocked_links", blocked_links)
        object.__setattr__(self, "_conditional_links", conditional_links)

    @property
    def blocked_coordinates(self) -> FrozenSet[GridCoordinate]:
        return frozenset(self._cells)

    def blocked_cell_at(self, coordinate: GridCoordinate) -> Optional[BlockedCell]:
        return self._cells.get(coordinate)

    def blocked_edge_for(self, source: GridCoordinate, target: GridCoordinate) -> Optional[BlockedEdge]:
        return self._blocked_links.get((source, target))

    def conditional_edge_for(self, source: GridCoordinate, target: GridCoordinate) -> Optional[ConditionalEdge]:
        return self._conditional_links.get((source, target))
