"""
Wayfarer — ui/renderer.py
TCOD Renderer: root console, presentation and line primitives.
==============================================================
Version:     0.1
Stack:       Python 3.11+ | tcod
Status:      Production-ready.
"""

from __future__ import annotations
from typing import Optional, Sequence, Tuple
import math
import tcod

Color = Tuple[int, int, int]

class Renderer:
    """
    Manages the tcod root console and rendering loop.
    Screen-space floats from the projector are rounded to tiles here.
    """
    def __init__(self, width: int, height: int, title: str = "Wayfarer"):
        self.width = width
        self.height = height
        self.title = title
        self.root_console = tcod.console.Console(width, height)
        self.context: Optional[tcod.context.Context] = None

    def clear(self) -> None:
        """Clear the console with black."""
        self.root_console.clear()

    def present(self, context: tcod.context.Context) -> None:
        """Present the current console to the screen."""
        context.present(self.root_console)

    @staticmethod
    def to_tile(px: float, py: float) -> Tuple[int, int]:
        return (math.floor(px), math.floor(py))

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def put(self, px: float, py: float, char: str, fg: Color, bg: Optional[Color] = None) -> bool:
        """Draws one glyph at a screen point. Off-console points are skipped."""
        x, y = self.to_tile(px, py)
        if not self.in_bounds(x, y):
            return False
        self.root_console.print(x, y, char, fg=fg, bg=bg)
        return True

    def draw_line(self, start: Tuple[float, float], end: Tuple[float, float], char: str, fg: Color) -> int:
        """Bresenham line between two screen points. Returns tiles drawn."""
        x0, y0 = self.to_tile(*start)
        x1, y1 = self.to_tile(*end)
        drawn = 0
        for x, y in tcod.los.bresenham((x0, y0), (x1, y1)).tolist():
            if self.in_bounds(x, y):
                self.root_console.print(x, y, char, fg=fg)
                drawn += 1
        return drawn

    def draw_polyline(self, points: Sequence[Tuple[float, float]], char: str, fg: Color, closed: bool = True) -> int:
        drawn = 0
        count = len(points)
        if count < 2:
            return 0
        segments = count if closed else count - 1
        for index in range(segments):
            drawn += self.draw_line(points[index], points[(index + 1) % count], char, fg)
        return drawn
