"""
Wayfarer — engine/data_loader.py
JIT Data Loaders for TOML world and view data powered by Pydantic.
=============================================================================================
Version:     0.1
Stack:       Python 3.11+ | Pydantic v2 | tomllib
Status:      Core data validation and loading layer.
"""

import tomllib
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from world.coords import AlignmentMode, Direction, GridCoordinate
from world.ruleset import (
    REQUIREMENT_SOURCE_CLEARED,
    BlockedCell,
    BlockedEdge,
    ConditionalEdge,
    ForcedRail,
    LightBlocker,
    PointOfInterest,
    Ruleset,
)

# ================================================================================
# SCHEMAS
# ================================================================================

class PointDef(BaseModel):
    model_config = ConfigDict(frozen=True)
    x: int
    y: int

    def to_coordinate(self) -> GridCoordinate:
        return GridCoordinate(self.x, self.y)

class LightBlockerDef(BaseModel):
    model_config = ConfigDict(frozen=True)
    cast_height: float = 5.0
    softness: float = 4.0

class BlockedCellDef(BaseModel):
    model_config = ConfigDict(frozen=True)
    x: int
    y: int
    terrain: str = "mountain" # "mountain" | "canyon" | "ridge" | "cliff"
    reason: Optional[str] = None
    light_blocker: Optional[LightBlockerDef] = None

class BlockedEdgeDef(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)
    source: PointDef = Field(alias="from")
    target: PointDef = Field(alias="to")
    bidirectional: bool = True
    reason: Optional[str] = None

class ConditionalEdgeDef(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)
    source: PointDef = Field(alias="from")
    target: PointDef = Field(alias="to")
    bidirectional: bool = True
    locked: bool = True
    requirement: str = REQUIREMENT_SOURCE_CLEARED
    reason: Optional[str] = None

class ForcedRailDef(BaseModel):
    model_config = ConfigDict(frozen=True)
    path: List[PointDef] = Field(default_factory=list)
    lock_until_path_complete: bool = True
    label: Optional[str] = None

class PoiDef(BaseModel):
    model_config = ConfigDict(frozen=True)
    x: int
    y: int
    poi_id: str
    label: Optional[str] = None

class WorldDef(BaseModel):
    model_config = ConfigDict(frozen=True)
    id: str
    name: str
    spawn: PointDef = PointDef(x=0, y=0)
    spawn_heading: Direction = Direction.N
    blocked_cells: List[BlockedCellDef] = Field(default_factory=list)
    blocked_edges: List[BlockedEdgeDef] = Field(default_factory=list)
    conditional_edges: List[ConditionalEdgeDef] = Field(default_factory=list)
    forced_rail: ForcedRailDef = Field(default_factory=ForcedRailDef)
    pois: List[PoiDef] = Field(default_factory=list)

    def to_ruleset(self) -> Ruleset:
        """Converts authored data into the engine's immutable Ruleset."""
        cells = [
            BlockedCell(
                coordinate=GridCoordinate(c.x, c.y),
                terrain=c.terrain,
                reason=c.reason,
                light_blocker=LightBlocker(**c.light_blocker.model_dump()) if c.light_blocker else None,
            )
            for c in self.blocked_cells
        ]
        edges = [
            BlockedEdge(
                source=e.source.to_coordinate(),
                target=e.target.to_coordinate(),
                bidirectional=e.bidirectional,
                reason=e.reason,
            )
            for e in self.blocked_edges
        ]
        conditionals = [
            ConditionalEdge(
                source=e.source.to_coordinate(),
                target=e.target.to_coordinate(),
                bidirectional=e.bidirectional,
                locked=e.locked,
                requirement=e.requirement,
                reason=e.reason,
            )
            for e in self.conditional_edges
        ]
        rail = ForcedRail(
            path=tuple(p.to_coordinate() for p in self.forced_rail.path),
            lock_until_path_complete=self.forced_rail.lock_until_path_complete,
            label=self.forced_rail.label,
        )
        return Ruleset(
            blocked_cells=tuple(cells),
            blocked_edges=tuple(edges),
            conditional_edges=tuple(conditionals),
            forced_rail=rail,
        )

    def to_pois(self) -> List[PointOfInterest]:
        return [
            PointOfInterest(coordinate=GridCoordinate(p.x, p.y), poi_id=p.poi_id, label=p.label)
            for p in self.pois
        ]

class ViewSettings(BaseModel):
    model_config = ConfigDict(frozen=True)
    cell_size: float = Field(default=3.0, gt=0)
    viewport_width: int = Field(default=80, gt=0)
    viewport_height: int = Field(default=44, gt=0)
    zoom_min: float = Field(default=0.25, gt=0)
    zoom_max: float = Field(default=5.0, gt=0)
    zoom_factor: float = Field(default=1.15, gt=1)
    alignment: AlignmentMode = AlignmentMode.MAP
    pathing_locked: bool = True

    @property
    def viewport(self) -> tuple:
        return (self.viewport_width, self.viewport_height)

# ================================================================================
# LOADERS & CACHE (JIT)
# ================================================================================

_WORLD_CACHE: Dict[str, WorldDef] = {}
_VIEW_SETTINGS_CACHE: Optional[ViewSettings] = None


DATA_DIR = Path(__file__).parent.parent / "data"

def get_world_def(world_id: str) -> WorldDef:
    """JIT loads a world definition from TOML."""
    if world_id in _WORLD_CACHE:
        return _WORLD_CACHE[world_id]

    path = DATA_DIR / "worlds" / f"{world_id}.toml"
    if not path.exists():
        raise FileNotFoundError(f"World definition not found: {path}")

    world = load_world_file(path)
    _WORLD_CACHE[world_id] = world
    return world

def load_world_file(path: Path) -> WorldDef:
    """Loads a world definition from an explicit path. Not cached."""
    with open(path, "rb") as f:
        data = tomllib.load(f)
    return WorldDef(**data)

def get_world_ids() -> List[str]:
    path = DATA_DIR / "worlds"
    if not path.exists():
        return []
    return sorted(file.stem for file in path.glob("*.toml"))

def get_view_settings() -> ViewSettings:
    """Loads view settings from TOML. Cached globally; defaults when absent."""
    global _VIEW_SETTINGS_CACHE
    if _VIEW_SETTINGS_CACHE is not None:
        return _VIEW_SETTINGS_CACHE

    path = DATA_DIR / "view.toml"
    if not path.exists():
        _VIEW_SETTINGS_CACHE = ViewSettings()
        return _VIEW_SETTINGS_CACHE

    with open(path, "rb") as f:
        data = tomllib.load(f)

    _VIEW_SETTINGS_CACHE = ViewSettings(**data.get("view", {}))
    return _VIEW_SETTINGS_CACHE
