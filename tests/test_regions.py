import pytest

from engine.projection import Projector
from world.coords import GridCoordinate as G
from world.regions import (
    MIN_LOOP_POINTS,
    _REGION_CACHE,
    blocking_rectangles,
    boundary_segments,
    clear_region_cache,
    extract_regions,
    find_region,
    loop_signed_area,
    partition_cells,
    region_identity,
    stitch_loops,
)

def ring_with_hole():
    return [G(x, y) for x in range(3) for y in range(3) if (x, y) != (1, 1)]

@pytest.fixture(autouse=True)
def fresh_cache():
    clear_region_cache()
    yield
    clear_region_cache()

def test_single_cell_is_one_square_loop():
    (region,) = extract_regions([G(0, 0)])
    (loop,) = region.loops
    assert len(loop) == 4
    assert set(loop) == {(-0.5, -0.5), (0.5, -0.5), (0.5, 0.5), (-0.5, 0.5)}
    assert loop_signed_area(loop) == pytest.approx(1.0)

def test_ring_with_hole_has_outer_and_inner_loop():
    (region,) = extract_regions(ring_with_hole())
    assert len(region.loops) == 2
    areas = sorted(loop_signed_area(loop) for loop in region.loops)
    assert areas == pytest.approx([-1.0, 9.0])
    assert region.area == pytest.approx(8.0)

def test_partition_uses_four_connectivity():
    cells = [G(0, 0), G(1, 0), G(5, 5), G(6, 6)]
    components = partition_cells(cells)
    assert components == [[G(0, 0), G(1, 0)], [G(5, 5)], [G(6, 6)]]

def test_diagonal_pinch_stays_two_regions():
    regions = extract_regions([G(0, 0), G(1, 1)])
    assert len(regions) == 2
    for region in regions:
        assert len(region.loops) == 1
        assert region.area == pytest.approx(1.0)

def test_pinch_corner_inside_one_region():
    # The hole at (1,1) touches the open corner at (2,2) through a single lattice point
    cells = [G(x, y) for x in range(3) for y in range(3) if (x, y) not in ((1, 1), (2, 2))]
    regions = extract_regions(cells)
    assert len(regions) == 1
    (region,) = regions
    assert region.area == pytest.approx(7.0)
    for loop in region.loops:
        assert len(loop) >= MIN_LOOP_POINTS

def test_segment_count_equals_exposed_sides():
    segments = boundary_segments([G(0, 0), G(1, 0)])
    assert len(segments) == 6

def test_short_or_broken_chains_are_dropped():
    broken = [((0, 0), (1, 0)), ((1, 0), (2, 0))]
    assert stitch_loops(broken) == []

def test_unclosed_chain_kept_once_long_enough():
    chain = [((0, 0), (1, 0)), ((1, 0), (1, 1)), ((1, 1), (0, 1))]
    (loop,) = stitch_loops(chain)
    assert loop == [(0, 0), (1, 0), (1, 1), (0, 1)]

def test_region_identity_is_order_independent():
    cells = ring_with_hole()
    assert region_identity(cells) == region_identity(list(reversed(cells)))
    region_id, seed = region_identity(cells)
    assert region_id.startswith("region-") and len(region_id) == len("region-") + 12
    assert isinstance(seed, int)
    assert region_identity([G(0, 0)]) != region_identity([G(0, 1)])

def test_extraction_is_memoised_on_cell_set():
    first = extract_regions(ring_with_hole())
    second = extract_regions(list(reversed(ring_with_hole())))
    assert first is second
    assert len(_REGION_CACHE) == 1

def test_empty_input():
    assert extract_regions([]) == ()

def test_bounds_and_lookup():
    regions = extract_regions(ring_with_hole() + [G(10, 10)])
    ring = find_region(regions, G(2, 2))
    assert ring.bounds == (-0.5, -0.5, 2.5, 2.5)
    assert find_region(regions, G(1, 1)) is None

def test_blocking_rectangles_in_screen_space():
    projector = Projector(origin_x=0, origin_y=0, cell_size=10, viewport=(100, 100))
    rects = blocking_rectangles(extract_regions([G(0, 0), G(1, 0)]), projector)
    assert rects == [pytest.approx((45.0, 45.0, 65.0, 55.0))]

def test_blocking_rectangles_cover_holes_with_one_box():
    projector = Projector(origin_x=0, origin_y=0, cell_size=10, viewport=(100, 100))
    rects = blocking_rectangles(extract_regions(ring_with_hole()), projector)
    assert rects == [pytest.approx((45.0, 45.0, 75.0, 75.0))]
