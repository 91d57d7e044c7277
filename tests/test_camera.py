import math
import pytest

from engine.camera import CameraController, CameraMode, CameraState
from world.coords import GridCoordinate, InvalidCoordinateError

ORIGIN = GridCoordinate(0, 0)

def make_camera(**kwargs):
    return CameraController(viewport=(190, 190), cell_size=26, **kwargs)

def test_initial_state():
    cam = make_camera()
    assert cam.state == CameraState(zoom=1.0, pan_x=0.0, pan_y=0.0)
    assert cam.mode == CameraMode.IDLE
    assert cam.hover is None

def test_drag_pans_one_to_one_regardless_of_zoom():
    cam = make_camera()
    cam.wheel(95, 95, -1)
    cam.wheel(95, 95, -1)
    assert cam.pointer_down(100, 100)
    assert cam.mode == CameraMode.DRAGGING
    cam.pointer_move(130, 90, ORIGIN)
    cam.pointer_move(140, 80, ORIGIN)
    assert (cam.pan_x, cam.pan_y) == pytest.approx((40.0, -20.0))
    cam.pointer_up()
    assert cam.mode == CameraMode.IDLE

def test_secondary_button_does_not_drag():
    cam = make_camera()
    assert cam.pointer_down(10, 10, button=3) is False
    assert cam.mode == CameraMode.IDLE

def test_hover_reads_nearest_cell():
    cam = make_camera()
    assert cam.pointer_move(95 + 26, 95 - 26 * 2, ORIGIN) == GridCoordinate(1, -2)
    assert cam.hover == GridCoordinate(1, -2)
    # Hover is relative to the current node
    assert cam.pointer_move(95, 95, GridCoordinate(7, 7)) == GridCoordinate(7, 7)

def test_hover_frozen_while_dragging():
    cam = make_camera()
    cam.pointer_move(95, 95, ORIGIN)
    cam.pointer_down(95, 95)
    cam.pointer_move(300, 300, ORIGIN)
    assert cam.hover == ORIGIN

def test_pointer_leave_cancels_drag_and_hover():
    cam = make_camera()
    cam.pointer_move(95, 95, ORIGIN)
    cam.pointer_down(95, 95)
    cam.pointer_leave()
    assert cam.mode == CameraMode.IDLE
    assert cam.hover is None

def test_wheel_zoom_direction_and_clamp():
    cam = make_camera()
    assert cam.wheel(95, 95, -120) == pytest.approx(1.15)
    assert cam.wheel(95, 95, 120) == pytest.approx(1.0)
    for _ in range(100):
        cam.wheel(95, 95, -1)
    assert cam.zoom == pytest.approx(5.0)
    for _ in range(100):
        cam.wheel(95, 95, 1)
    assert cam.zoom == pytest.approx(0.25)

def test_wheel_without_vertical_delta_leaves_camera_alone():
    cam = make_camera()
    cam.pan_x, cam.pan_y = 12.0, -4.0
    assert cam.wheel(40, 150, 0) == pytest.approx(1.0)
    assert cam.state == CameraState(zoom=1.0, pan_x=12.0, pan_y=-4.0)

@pytest.mark.parametrize("rotation", [0.0, -45.0, -180.0, -315.0])
def test_wheel_keeps_point_under_cursor_fixed(rotation):
    cam = make_camera()
    cam.pan_x, cam.pan_y = 17.0, -33.0
    cursor = (40.0, 150.0)
    before = cam.projector_for(ORIGIN, rotation).screen_to_world(*cursor)
    cam.wheel(*cursor, -1)
    cam.wheel(*cursor, -1)
    after = cam.projector_for(ORIGIN, rotation).screen_to_world(*cursor)
    assert after == pytest.approx(before, abs=1e-9)

def test_reset_and_center_on_player():
    cam = make_camera()
    cam.wheel(20, 20, -1)
    cam.pointer_down(0, 0)
    cam.pointer_move(10, 10, ORIGIN)
    cam.pointer_up()

    zoom = cam.zoom
    cam.center_on_player()
    assert cam.state == CameraState(zoom=zoom, pan_x=0.0, pan_y=0.0)

    cam.reset()
    assert cam.state == CameraState()

def test_invalid_configuration_rejected():
    with pytest.raises(ValueError):
        make_camera(zoom_min=2.0)
    with pytest.raises(ValueError):
        make_camera(zoom_factor=1.0)

def test_non_finite_pointer_rejected():
    cam = make_camera()
    with pytest.raises(InvalidCoordinateError):
        cam.wheel(math.nan, 0, -1)
    with pytest.raises(InvalidCoordinateError):
        cam.pointer_move(0, math.inf, ORIGIN)
    assert cam.state == CameraState()
