"""
Wayfarer — engine/camera.py
Camera Controller: cursor-anchored zoom, drag-to-pan, hover read-out, reset.
===========================================================================
Version:     0.1
Stack:       Python 3.11+
Status:      Synchronous. Mutated only by discrete input events.

Modes
-----
  IDLE      pointer motion updates the hover read-out only
  DRAGGING  primary button held; motion deltas feed pan 1:1 (zoom-independent)

Wheel zoom keeps the world point under the cursor fixed:
  pan' = (cursor - center) - (cursor - center - pan) * (new_zoom / old_zoom)

Design Variables
----------------
  DEFAULT_ZOOM_MIN     0.25
  DEFAULT_ZOOM_MAX     5.0
  DEFAULT_ZOOM_FACTOR  1.15   (zoom in; zoom out uses the reciprocal)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from engine.projection import Projector
from world.coords import GridCoordinate, require_finite

DEFAULT_ZOOM_MIN: float = 0.25
DEFAULT_ZOOM_MAX: float = 5.0
DEFAULT_ZOOM_FACTOR: float = 1.15
PRIMARY_BUTTON: int = 1


class CameraMode(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class CameraState:
    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0


class CameraController:
    def __init__(
        self,
        viewport: Tuple[float, float],
        cell_size: float,
        zoom_min: float = DEFAULT_ZOOM_MIN,
        zoom_max: float = DEFAULT_ZOOM_MAX,
        zoom_factor: float = DEFAULT_ZOOM_FACTOR,
    ):
        if not 0 < zoom_min <= 1.0 <= zoom_max:
            raise ValueError(f"Zoom bounds must bracket 1.0 (got {zoom_min}..{zoom_max})")
        if zoom_factor <= 1.0:
            raise ValueError(f"zoom_factor must be > 1 (got {zoom_factor})")

        self.viewport = viewport
        self.cell_size = cell_size
        self.zoom_min = zoom_min
        self.zoom_max = zoom_max
        self.zoom_factor = zoom_factor

        self.zoom = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0

        self.mode = CameraMode.IDLE
        self.hover: Optional[GridCoordinate] = None
        self._last_pointer: Tuple[float, float] = (0.0, 0.0)

    @property
    def state(self) -> CameraState:
        return CameraState(zoom=self.zoom, pan_x=self.pan_x, pan_y=self.pan_y)

    @property
    def last_pointer(self) -> Tuple[float, float]:
        """Most recent pointer position seen by any gesture."""
        return self._last_pointer

    @property
    def center(self) -> Tuple[float, float]:
        return (self.viewport[0] / 2.0, self.viewport[1] / 2.0)

    def projector_for(self, origin: GridCoordinate, rotation: float = 0.0) -> Projector:
        return Projector.centered_on(
            origin,
            cell_size=self.cell_size,
            viewport=self.viewport,
            zoom=self.zoom,
            pan_x=self.pan_x,
            pan_y=self.pan_y,
            rotation=rotation,
        )

    # ----------------------------------------------------------
    # Pointer gestures
    # ----------------------------------------------------------

    def pointer_down(self, x: float, y: float, button: int = PRIMARY_BUTTON) -> bool:
        """Starts a drag on the primary button. Returns True when a drag began."""
        if button != PRIMARY_BUTTON:
            return False
        self._last_pointer = (require_finite(x, "x"), require_finite(y, "y"))
        self.mode = CameraMode.DRAGGING
        return True

    def pointer_move(
        self,
        x: float,
        y: float,
        origin: GridCoordinate,
        rotation: float = 0.0,
    ) -> Optional[GridCoordinate]:
        """
        While dragging, accumulates the screen delta into pan.
        Otherwise refreshes and returns the hovered grid coordinate.
        """
        x = require_finite(x, "x")
        y = require_finite(y, "y")
        if self.mode == CameraMode.DRAGGING:
            last_x, last_y = self._last_pointer
            self.pan_x += x - last_x
            self.pan_y += y - last_y
            self._last_pointer = (x, y)
            return self.hover

        self._last_pointer = (x, y)
        self.hover = self.projector_for(origin, rotation).screen_to_grid(x, y)
        return self.hover

    def pointer_up(self) -> None:
        self.mode = CameraMode.IDLE

    def pointer_leave(self) -> None:
        """Pointer left the view (or the gesture was cancelled)."""
        self.mode = CameraMode.IDLE
        self.hover = None

    def wheel(self, x: float, y: float, delta_y: float) -> float:
        """
        Negative delta_y zooms in (scroll up), positive zooms out, zero is ignored.
        Returns the new zoom.
        """
        x = require_finite(x, "x")
        y = require_finite(y, "y")
        if delta_y == 0:
            return self.zoom
        factor = self.zoom_factor if delta_y < 0 else 1.0 / self.zoom_factor
        new_zoom = max(self.zoom_min, min(self.zoom_max, self.zoom * factor))
        ratio = new_zoom / self.zoom

        cx, cy = self.center
        self.pan_x = (x - cx) - (x - cx - self.pan_x) * ratio
        self.pan_y = (y - cy) - (y - cy - self.pan_y) * ratio
        self.zoom = new_zoom
        return new_zoom

    # ----------------------------------------------------------
    # Resets
    # ----------------------------------------------------------

    def reset(self) -> None:
        """Full recenter (double-click): identity zoom and pan."""
        self.zoom = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0

    def center_on_player(self) -> None:
        """Drop the pan but keep the current zoom."""
        self.pan_x = 0.0
        self.pan_y = 0.0
