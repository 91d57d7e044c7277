"""
Wayfarer — world/coords.py
Grid coordinates, compass headings and map alignment.
=====================================================
Version:     0.1
Stack:       Python 3.11+
Status:      Core value types. No state lives here.

World space is an unbounded integer grid. x grows east, y grows south,
so N is (0, -1) and the heading order is clockwise starting at N.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple


class InvalidCoordinateError(ValueError):
    """Raised when a coordinate is not a finite integer (or finite number for screen space)."""


def _as_grid_int(value: Any, axis: str) -> int:
    # bool is an int subclass; a True coordinate is always a caller bug
    if isinstance(value, bool):
        raise InvalidCoordinateError(f"{axis} must be an integer, got bool {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise InvalidCoordinateError(f"{axis} must be a finite integer, got {value!r}")
        return int(value)
    raise InvalidCoordinateError(f"{axis} must be an integer, got {type(value).__name__}")


def require_finite(value: Any, axis: str) -> float:
    """Returns value as float, rejecting NaN, infinities and non-numbers."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidCoordinateError(f"{axis} must be a number, got {type(value).__name__}")
    value = float(value)
    if not math.isfinite(value):
        raise InvalidCoordinateError(f"{axis} must be finite, got {value!r}")
    return value


@dataclass(frozen=True)
class GridCoordinate:
    x: int
    y: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "x", _as_grid_int(self.x, "x"))
        object.__setattr__(self, "y", _as_grid_int(self.y, "y"))

    def step(self, direction: "Direction") -> "GridCoordinate":
        dx, dy = direction.delta
        return GridCoordinate(self.x + dx, self.y + dy)

    def key(self) -> str:
        return f"{self.x},{self.y}"

    def as_tuple(self) -> Tuple[int, int]:
        return (self.x, self.y)

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


class Direction(str, Enum):
    N = "N"
    NE = "NE"
    E = "E"
    SE = "SE"
    S = "S"
    SW = "SW"
    W = "W"
    NW = "NW"

    @property
    def index(self) -> int:
        return DIRECTIONS.index(self)

    @property
    def delta(self) -> Tuple[int, int]:
        return COMPASS_DELTA[self]


DIRECTIONS: Tuple[Direction, ...] = tuple(Direction)

COMPASS_DELTA: Dict[Direction, Tuple[int, int]] = {
    Direction.N:  (0, -1),
    Direction.NE: (1, -1),
    Direction.E:  (1, 0),
    Direction.SE: (1, 1),
    Direction.S:  (0, 1),
    Direction.SW: (-1, 1),
    Direction.W:  (-1, 0),
    Direction.NW: (-1, -1),
}


def turn(direction: Direction, clockwise: bool) -> Direction:
    """Rotates a heading one compass step (45 degrees)."""
    delta = 1 if clockwise else -1
    return DIRECTIONS[(direction.index + delta) % len(DIRECTIONS)]


class AlignmentMode(str, Enum):
    PLAYER = "player"   # heading always points up
    MAP = "map"         # north always points up
