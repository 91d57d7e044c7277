"""
Wayfarer — world/regions.py
Region Boundary Extractor: blocked cells -> obstacle regions -> closed loops.
===========================================================================
Version:     0.1
Stack:       Python 3.11+ | NumPy (via engine.projection)
Status:      Pure and memoised on the blocked-cell set.

Algorithm
---------
  1. Partition the cells into 4-connected components (BFS, N/E/S/W only).
  2. For each cell, emit a unit segment for every side whose neighbour is
     not in the region. Segments are directed so the filled area is on the
     right-hand side when walking them in screen space (y points down):
     outer boundaries run clockwise on screen, holes counter-clockwise.
  3. Stitch segments into loops by following start-corner -> end-corner.
     At a pinch corner (two cells touching diagonally) the sharpest right
     turn is taken, which keeps each loop hugging its own cells.
  4. Corners sit at cell centre +/- 0.5 and stay in world space; the caller
     pushes them through a Projector before drawing.

Loops shorter than MIN_LOOP_POINTS are discarded. A loop that cannot close
(malformed input) is kept only if it reached MIN_LOOP_POINTS.
"""

from __future__ import annotations

import hashlib
from collections import deque
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

from world.coords import GridCoordinate

MIN_LOOP_POINTS: int = 4

# Integer lattice corner; corner (i, j) is world point (i - 0.5, j - 0.5)
Corner = Tuple[int, int]
Segment = Tuple[Corner, Corner]
Point = Tuple[float, float]
Loop = Tuple[Point, ...]

_NEIGHBOURS: Tuple[Tuple[int, int], ...] = ((0, -1), (1, 0), (0, 1), (-1, 0))


@dataclass(frozen=True)
class Region:
    region_id: str
    seed: int                               # stable per-shape seed for decorative jitter
    cells: Tuple[GridCoordinate, ...]       # sorted by (x, y)
    loops: Tuple[Loop, ...]

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y) of the footprint in world space."""
        xs = [c.x for c in self.cells]
        ys = [c.y for c in self.cells]
        return (min(xs) - 0.5, min(ys) - 0.5, max(xs) + 0.5, max(ys) + 0.5)

    @property
    def area(self) -> float:
        return sum(loop_signed_area(loop) for loop in self.loops)


# ================================================================================
# PARTITION
# ================================================================================

def partition_cells(cells: Iterable[GridCoordinate]) -> List[List[GridCoordinate]]:
    """Splits cells into 4-connected components. Components come back sorted."""
    remaining: Set[GridCoordinate] = set(cells)
    components: List[List[GridCoordinate]] = []

    for start in sorted(remaining, key=lambda c: (c.x, c.y)):
        if start not in remaining:
            continue
        remaining.discard(start)
        queue = deque([start])
        component = [start]
        while queue:
            cell = queue.popleft()
            for dx, dy in _NEIGHBOURS:
                neighbour = GridCoordinate(cell.x + dx, cell.y + dy)
                if neighbour in remaining:
                    remaining.discard(neighbour)
                    component.append(neighbour)
                    queue.append(neighbour)
        components.append(sorted(component, key=lambda c: (c.x, c.y)))

    return components


def region_identity(cells: Sequence[GridCoordinate]) -> Tuple[str, int]:
    """Deterministic (id, seed) for a shape, independent of input order."""
    canonical = ";".join(f"{c.x},{c.y}" for c in sorted(cells, key=lambda c: (c.x, c.y)))
    digest = hashlib.sha1(canonical.encode("utf-8")).hexdigest()
    return f"region-{digest[:12]}", int(digest[:8], 16)


# ================================================================================
# BOUNDARY
# ================================================================================

def boundary_segments(region: Iterable[GridCoordinate]) -> List[Segment]:
    """Directed unit segments around the region footprint."""
    members = set(region)
    segments: List[Segment] = []
    for cell in sorted(members, key=lambda c: (c.x, c.y)):
        x, y = cell.x, cell.y
        tl, tr = (x, y), (x + 1, y)
        br, bl = (x + 1, y + 1), (x, y + 1)
        if GridCoordinate(x, y - 1) not in members:
            segments.append((tl, tr))
        if GridCoordinate(x + 1, y) not in members:
            segments.append((tr, br))
        if GridCoordinate(x, y + 1) not in members:
            segments.append((br, bl))
        if GridCoordinate(x - 1, y) not in members:
            segments.append((bl, tl))
    return segments


def _turn_rank(incoming: Tuple[int, int], outgoing: Tuple[int, int]) -> int:
    # Screen y points down: right of (dx, dy) is (-dy, dx)
    dx, dy = incoming
    if outgoing == (-dy, dx):
        return 0
    if outgoing == incoming:
        return 1
    if outgoing == (dy, -dx):
        return 2
    return 3


def _direction(segment: Segment) -> Tuple[int, int]:
    (ax, ay), (bx, by) = segment
    return (bx - ax, by - ay)


def stitch_loops(segments: Sequence[Segment]) -> List[List[Corner]]:
    """Chains directed segments into loops of corners (start corner not repeated)."""
    by_start: Dict[Corner, List[int]] = {}
    for index, (start, _end) in enumerate(segments):
        by_start.setdefault(start, []).append(index)

    used = [False] * len(segments)
    loops: List[List[Corner]] = []

    for first in range(len(segments)):
        if used[first]:
            continue
        used[first] = True
        loop_start, current_end = segments[first]
        corners = [loop_start]
        incoming = _direction(segments[first])
        closed = False

        while True:
            if current_end == loop_start:
                closed = True
                break
            candidates = [i for i in by_start.get(current_end, []) if not used[i]]
            if not candidates:
                break
            chosen = min(candidates, key=lambda i: _turn_rank(incoming, _direction(segments[i])))
            used[chosen] = True
            corners.append(current_end)
            incoming = _direction(segments[chosen])
            current_end = segments[chosen][1]

        if not closed:
            # Malformed input: keep whatever the walk reached if it is a usable shape
            corners.append(current_end)
        if len(corners) >= MIN_LOOP_POINTS:
            loops.append(corners)

    return loops


def _to_world(corners: List[Corner]) -> Loop:
    return tuple((i - 0.5, j - 0.5) for i, j in corners)


def loop_signed_area(loop: Sequence[Point]) -> float:
    """Shoelace area. Positive for outer boundaries, negative for holes."""
    total = 0.0
    count = len(loop)
    for index in range(count):
        x1, y1 = loop[index]
        x2, y2 = loop[(index + 1) % count]
        total += x1 * y2 - x2 * y1
    return total / 2.0


# ================================================================================
# EXTRACTION & CACHE
# ================================================================================

_REGION_CACHE: Dict[FrozenSet[GridCoordinate], Tuple[Region, ...]] = {}
_REGION_CACHE_LIMIT = 32


def extract_regions(cells: Iterable[GridCoordinate]) -> Tuple[Region, ...]:
    """Regions for a blocked-cell set. Cached on the set's contents."""
    key = frozenset(cells)
    cached = _REGION_CACHE.get(key)
    if cached is not None:
        return cached

    regions = []
    for component in partition_cells(key):
        region_id, seed = region_identity(component)
        loops = tuple(_to_world(c) for c in stitch_loops(boundary_segments(component)))
        regions.append(Region(region_id=region_id, seed=seed, cells=tuple(component), loops=loops))

    result = tuple(regions)
    if len(_REGION_CACHE) >= _REGION_CACHE_LIMIT:
        _REGION_CACHE.clear()
    _REGION_CACHE[key] = result
    return result


def clear_region_cache() -> None:
    _REGION_CACHE.clear()


def blocking_rectangles(regions: Iterable[Region], projector) -> List[Tuple[float, float, float, float]]:
    """
    Screen-space (left, top, right, bottom) box around each region's projected
    bounding box, the opaque occluder input the lighting renderer consumes.
    Holes are covered by their region's box and never add a box of their own.
    """
    rects: List[Tuple[float, float, float, float]] = []
    for region in regions:
        min_x, min_y, max_x, max_y = region.bounds
        corners = ((min_x, min_y), (max_x, min_y), (max_x, max_y), (min_x, max_y))
        projected = projector.world_to_screen_many(corners)
        left, top = projected.min(axis=0)
        right, bottom = projected.max(axis=0)
        rects.append((float(left), float(top), float(right), float(bottom)))
    return rects


def find_region(regions: Iterable[Region], coordinate: GridCoordinate) -> Optional[Region]:
    for region in regions:
        if coordinate in region.cells:
            return region
    return None
