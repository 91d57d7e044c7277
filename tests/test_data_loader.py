import pytest
from pydantic import ValidationError

import engine.data_loader as data_loader
from engine.data_loader import (
    ViewSettings,
    WorldDef,
    get_view_settings,
    get_world_def,
    get_world_ids,
    load_world_file,
)
from engine.passability import can_traverse
from world.coords import AlignmentMode, Direction, GridCoordinate as G

def test_load_tutorial_valley():
    world = get_world_def("tutorial_valley")
    assert world.id == "tutorial_valley"
    assert world.name == "Tutorial Valley"
    assert world.spawn.to_coordinate() == G(22, 22)
    assert world.spawn_heading == Direction.N
    assert len(world.blocked_cells) == 16
    assert world.forced_rail.label == "Tutorial Path"

def test_world_def_is_cached():
    assert get_world_def("tutorial_valley") is get_world_def("tutorial_valley")

def test_world_ids_listed():
    assert "tutorial_valley" in get_world_ids()

def test_missing_world_raises():
    with pytest.raises(FileNotFoundError):
        get_world_def("no_such_world")

def test_tutorial_ruleset():
    rules = get_world_def("tutorial_valley").to_ruleset()
    cell = rules.blocked_cell_at(G(-2, 1))
    assert cell.terrain == "mountain"
    assert cell.reason == "Mountain pass"
    assert cell.light_blocker.cast_height == 8
    assert rules.blocked_edge_for(G(0, -1), G(0, 0)).reason == "Collapsed bridge"
    assert rules.forced_rail.active
    assert rules.forced_rail.required_next(G(22, 22)) == G(22, 21)

    # Rail step is gated on clearing the spawn tableau
    assert not can_traverse(G(22, 22), G(22, 21), rules, tableau_cleared_at_current=False)
    assert can_traverse(G(22, 22), G(22, 21), rules, tableau_cleared_at_current=True)

def test_tutorial_pois():
    world = get_world_def("tutorial_valley")
    pois = {p.coordinate: p for p in world.to_pois()}
    assert len(pois) == 7
    assert pois[G(22, 22)].poi_id == "poi_start"
    assert pois[G(0, 3)].label == "Canyon ambush"
    assert pois[G(1, 2)].label is None

def test_poi_requires_id():
    with pytest.raises(ValidationError):
        WorldDef(id="tiny", name="Tiny", pois=[{"x": 0, "y": 0}])
    assert WorldDef(id="tiny", name="Tiny").to_pois() == []

def test_aliases_and_defaults():
    world = WorldDef(
        id="tiny",
        name="Tiny",
        blocked_edges=[{"from": {"x": 0, "y": 0}, "to": {"x": 1, "y": 0}}],
        conditional_edges=[{"source": {"x": 1, "y": 1}, "target": {"x": 2, "y": 1}}],
    )
    rules = world.to_ruleset()
    assert rules.blocked_edges[0].bidirectional is True
    conditional = rules.conditional_edges[0]
    assert conditional.locked is True
    assert conditional.requirement == "source_tableau_cleared"
    assert not rules.forced_rail.active
    assert world.spawn.to_coordinate() == G(0, 0)

def test_defs_are_frozen():
    world = WorldDef(id="tiny", name="Tiny")
    with pytest.raises(ValidationError):
        world.name = "Renamed"

def test_bad_terrain_rejected_on_conversion():
    world = WorldDef(id="bad", name="Bad", blocked_cells=[{"x": 0, "y": 0, "terrain": "lava"}])
    with pytest.raises(ValueError):
        world.to_ruleset()

def test_load_world_file(tmp_path):
    path = tmp_path / "custom.toml"
    path.write_text(
        'id = "custom"\nname = "Custom"\nspawn = { x = 3, y = -4 }\nspawn_heading = "SW"\n'
        '[[blocked_cells]]\nx = 4\ny = -4\nterrain = "cliff"\n',
        encoding="utf-8",
    )
    world = load_world_file(path)
    assert world.spawn_heading == Direction.SW
    assert world.to_ruleset().blocked_coordinates == frozenset({G(4, -4)})

def test_view_settings():
    settings = get_view_settings()
    assert settings.zoom_min == 0.25
    assert settings.zoom_max == 5.0
    assert settings.zoom_factor == 1.15
    assert settings.alignment == AlignmentMode.MAP
    assert settings.viewport == (settings.viewport_width, settings.viewport_height)

def test_view_settings_defaults_when_file_missing(tmp_path, monkeypatch):
    monkeypatch.setattr(data_loader, "DATA_DIR", tmp_path)
    monkeypatch.setattr(data_loader, "_VIEW_SETTINGS_CACHE", None)
    assert get_view_settings() == ViewSettings()

def test_view_settings_validation():
    with pytest.raises(ValidationError):
        ViewSettings(zoom_factor=1.0)
    with pytest.raises(ValidationError):
        ViewSettings(cell_size=0)
