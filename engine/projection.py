"""
Wayfarer — engine/projection.py
Coordinate Projector: world grid <-> screen space for any camera state.
=======================================================================
Version:     0.1
Stack:       Python 3.11+ | NumPy
Status:      Pure. A Projector is an immutable snapshot of the view.

Pipeline (world -> screen)
--------------------------
  1. translate relative to the camera origin (current node)
  2. scale by cell_size * zoom
  3. rotate by `rotation` degrees (screen y points down)
  4. add pan, then recenter on the viewport midpoint

screen_to_world runs the exact inverse. The round trip is the property
pointer picking and click-to-teleport rely on.

Rotation convention
-------------------
  map alignment    -> 0
  player alignment -> -(heading_index * 45) so the heading points up
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np

from world.coords import (
    AlignmentMode,
    Direction,
    GridCoordinate,
    InvalidCoordinateError,
    require_finite,
)

HEADING_STEP_DEGREES: float = 45.0


def rotation_for(heading: Direction, alignment: AlignmentMode) -> float:
    if alignment == AlignmentMode.MAP:
        return 0.0
    # Normalise -0.0 so north reads as 0 in both modes
    return -(heading.index * HEADING_STEP_DEGREES) or 0.0


@dataclass(frozen=True)
class Projector:
    origin_x: float
    origin_y: float
    cell_size: float
    viewport: Tuple[float, float]
    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    rotation: float = 0.0

    _cos: float = field(init=False, repr=False, compare=False)
    _sin: float = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.cell_size <= 0 or self.zoom <= 0:
            raise ValueError(f"cell_size and zoom must be positive (got {self.cell_size}, {self.zoom})")
        radians = math.radians(self.rotation)
        object.__setattr__(self, "_cos", math.cos(radians))
        object.__setattr__(self, "_sin", math.sin(radians))

    @classmethod
    def centered_on(cls, origin: GridCoordinate, **kwargs) -> "Projector":
        return cls(origin_x=origin.x, origin_y=origin.y, **kwargs)

    @property
    def scale(self) -> float:
        return self.cell_size * self.zoom

    @property
    def center(self) -> Tuple[float, float]:
        return (self.viewport[0] / 2.0, self.viewport[1] / 2.0)

    def world_to_screen(self, x: float, y: float) -> Tuple[float, float]:
        x = require_finite(x, "x")
        y = require_finite(y, "y")
        rx = (x - self.origin_x) * self.scale
        ry = (y - self.origin_y) * self.scale
        cx, cy = self.center
        px = rx * self._cos - ry * self._sin + self.pan_x + cx
        py = rx * self._sin + ry * self._cos + self.pan_y + cy
        return (px, py)

    def screen_to_world(self, px: float, py: float) -> Tuple[float, float]:
        px = require_finite(px, "px")
        py = require_finite(py, "py")
        cx, cy = self.center
        ux = px - cx - self.pan_x
        uy = py - cy - self.pan_y
        # Inverse rotation is the transpose
        rx = ux * self._cos + uy * self._sin
        ry = -ux * self._sin + uy * self._cos
        return (rx / self.scale + self.origin_x, ry / self.scale + self.origin_y)

    def world_to_screen_many(self, points: np.ndarray) -> np.ndarray:
        """Projects an (N, 2) array of world points; used for region loops."""
        pts = np.asarray(points, dtype=float).reshape(-1, 2)
        if not np.all(np.isfinite(pts)):
            raise InvalidCoordinateError("world points must be finite")
        rel = (pts - (self.origin_x, self.origin_y)) * self.scale
        rot = np.array([[self._cos, self._sin], [-self._sin, self._cos]])
        cx, cy = self.center
        return rel @ rot + (self.pan_x + cx, self.pan_y + cy)

    def screen_to_grid(self, px: float, py: float) -> GridCoordinate:
        """Nearest grid cell under a screen point (hover read-out, click picking)."""
        wx, wy = self.screen_to_world(px, py)
        return GridCoordinate(math.floor(wx + 0.5), math.floor(wy + 0.5))
