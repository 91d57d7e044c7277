"""
Wayfarer — ui/screens.py
Implementations of the UI Screen States.
"""
from pathlib import Path
from typing import List, Optional, Tuple
import math
import tcod
from tcod import libtcodpy

from ui.states import BaseState, Engine
from ui.renderer import Renderer, Color
from engine.data_loader import get_view_settings, get_world_def, get_world_ids
from engine.journal import JournalReader
from engine.session import ExplorationSession
from world.coords import Direction, InvalidCoordinateError


TERRAIN_GLYPHS = {
    "mountain": ("^", (170, 160, 150)),
    "canyon":   ("=", (180, 110, 60)),
    "ridge":    ("n", (140, 140, 110)),
    "cliff":    ("#", (120, 120, 130)),
}
REGION_OUTLINE: Color = (90, 80, 70)
EDGE_COLOR: Color = (70, 70, 90)
TRAIL_COLOR: Color = (200, 170, 80)
NODE_COLOR: Color = (150, 200, 255)
CLEARED_COLOR: Color = (120, 255, 120)
DENIED_COLOR: Color = (255, 90, 90)
HINT_COLOR: Color = (60, 120, 60)
POI_COLOR: Color = (255, 140, 200)

# Screen-space arrow glyphs, clockwise from "up"
ARROWS = ("↑", "↗", "→", "↘", "↓", "↙", "←", "↖")

MOVE_KEYS = {
    tcod.event.KeySym.UP: Direction.N,
    tcod.event.KeySym.K: Direction.N,
    tcod.event.KeySym.U: Direction.NE,
    tcod.event.KeySym.RIGHT: Direction.E,
    tcod.event.KeySym.L: Direction.E,
    tcod.event.KeySym.N: Direction.SE,
    tcod.event.KeySym.DOWN: Direction.S,
    tcod.event.KeySym.J: Direction.S,
    tcod.event.KeySym.B: Direction.SW,
    tcod.event.KeySym.LEFT: Direction.W,
    tcod.event.KeySym.H: Direction.W,
    tcod.event.KeySym.Y: Direction.NW,
}

HUD_ROWS = 6
TELEPORT_BUTTON = 3  # SDL right button
JOURNAL_PATH = Path("sessions/journal.jsonl")


def arrow_for(dx: float, dy: float) -> str:
    """Nearest of the 8 arrow glyphs for a screen-space direction (y down)."""
    angle = math.degrees(math.atan2(dx, -dy)) % 360.0
    return ARROWS[int((angle + 22.5) // 45) % 8]


class MainMenuState(BaseState):
    """The title screen: pick a world to explore."""

    def __init__(self, engine: Engine):
        super().__init__(engine)
        self.world_ids = get_world_ids()
        self.error: Optional[str] = None

    def on_render(self, renderer: Renderer) -> None:
        cx = renderer.width // 2
        cy = renderer.height // 2 - 5
        renderer.root_console.print(cx, cy, "Wayfarer", fg=(255, 255, 0), alignment=libtcodpy.CENTER)
        for i, world_id in enumerate(self.world_ids[:9]):
            renderer.root_console.print(cx, cy + 2 + i, f"[{i + 1}] {world_id}", alignment=libtcodpy.CENTER)
        row = cy + 3 + min(len(self.world_ids), 9)
        renderer.root_console.print(cx, row, "[O]pen Field (no rules)", alignment=libtcodpy.CENTER)
        renderer.root_console.print(cx, row + 1, "[Q]uit", alignment=libtcodpy.CENTER)
        if self.error:
            renderer.root_console.print(cx, row + 3, self.error, fg=DENIED_COLOR, alignment=libtcodpy.CENTER)

    def ev_keydown(self, event: tcod.event.KeyDown) -> None:
        if event.sym in (tcod.event.KeySym.Q, tcod.event.KeySym.ESCAPE):
            self.engine.running = False
        elif event.sym == tcod.event.KeySym.O:
            session = ExplorationSession(settings=get_view_settings())
            self.engine.change_state(MapState(self.engine, session, title="Open Field"))
        elif tcod.event.KeySym.N1 <= event.sym <= tcod.event.KeySym.N9:
            index = event.sym - tcod.event.KeySym.N1
            if index < len(self.world_ids):
                self._start(self.world_ids[index])

    def _start(self, world_id: str) -> None:
        try:
            world = get_world_def(world_id)
        except (FileNotFoundError, ValueError) as e:
            self.error = f"Failed to load {world_id}: {e}"
            return
        session = ExplorationSession.from_world(
            world, settings=get_view_settings(), journal_path=JOURNAL_PATH
        )
        session.open_session()
        self.engine.change_state(MapState(self.engine, session, title=world.name))


class MapState(BaseState):
    """The exploration map: graph, trail, obstacle regions and camera gestures."""

    def __init__(self, engine: Engine, session: ExplorationSession, title: str = ""):
        super().__init__(engine)
        self.session = session
        self.title = title
        self.message = ""

    # ----------------------------------------------------------
    # Rendering
    # ----------------------------------------------------------

    def on_render(self, renderer: Renderer) -> None:
        projector = self.session.projector()

        # 1. Obstacle regions (outline first, terrain glyphs on top)
        for region in self.session.regions():
            for loop in region.loops:
                renderer.draw_polyline(projector.world_to_screen_many(loop).tolist(), ".", REGION_OUTLINE)
        for cell in self.session.ruleset.blocked_cells:
            char, fg = TERRAIN_GLYPHS.get(cell.terrain, ("#", (128, 128, 128)))
            renderer.put(*projector.world_to_screen(cell.coordinate.x, cell.coordinate.y), char, fg)

        # 2. Edges, then the trail over them
        nodes = {node.id: node for node in self.session.nodes}
        for edge in self.session.edges:
            a, b = nodes[edge.from_id], nodes[edge.to_id]
            shade = min(255, 70 + edge.traversals * 25)
            renderer.draw_line(
                projector.world_to_screen(a.x, a.y),
                projector.world_to_screen(b.x, b.y),
                ".", (EDGE_COLOR[0], EDGE_COLOR[1], shade),
            )
        trail = self.session.trail
        for from_id, to_id in zip(trail, trail[1:]):
            if self.session.graph.edge_between(from_id, to_id) is None:
                continue  # teleport hop
            a, b = nodes[from_id], nodes[to_id]
            renderer.draw_line(projector.world_to_screen(a.x, a.y), projector.world_to_screen(b.x, b.y), ":", TRAIL_COLOR)

        # 3. Move hints around the current node
        current = self.session.current_node
        for direction in Direction:
            verdict = self.session.can_advance(direction)
            target = current.coordinate.step(direction)
            if verdict.allowed and self.session.graph.node_at(target) is None:
                renderer.put(*projector.world_to_screen(target.x, target.y), "+", HINT_COLOR)

        # 4. Nodes, dimmed by depth tier
        for node in nodes.values():
            dim = node.z * 15
            fg = CLEARED_COLOR if node.cleared else NODE_COLOR
            renderer.put(*projector.world_to_screen(node.x, node.y), "o", tuple(max(0, c - dim) for c in fg))

        # 5. Points of interest
        for poi in self.session.pois:
            renderer.put(*projector.world_to_screen(poi.coordinate.x, poi.coordinate.y), "!", POI_COLOR)

        # 6. Player and heading chevron
        cx, cy = projector.world_to_screen(current.x, current.y)
        dx, dy = self.session.heading.delta
        ax, ay = projector.world_to_screen(current.x + dx * 0.5, current.y + dy * 0.5)
        renderer.put(ax, ay, arrow_for(ax - cx, ay - cy), (255, 255, 0))
        renderer.put(cx, cy, "@", (0, 255, 255))

        self._render_hud(renderer)

    def _render_hud(self, renderer: Renderer) -> None:
        top = renderer.height - HUD_ROWS
        console = renderer.root_console
        console.draw_rect(0, top, renderer.width, HUD_ROWS, ch=ord(" "), bg=(10, 10, 20))

        node = self.session.current_node
        cam = self.session.camera_state
        lock = "locked" if self.session.pathing_locked else "UNLOCKED"
        console.print(1, top, f"{self.title}  {node.id} ({node.x}, {node.y})  visits {node.visits}", fg=(255, 255, 255))
        console.print(
            1, top + 1,
            f"heading {self.session.heading.value}  view {self.session.alignment.value}  "
            f"zoom {cam.zoom:.2f}  rules {lock}  nodes {len(self.session.nodes)}  moves {self.session.traversal_count}",
            fg=(180, 180, 180),
        )
        poi = self.session.current_poi
        if poi is not None:
            console.print(1, top + 2, f"here: {poi.label or poi.poi_id}", fg=POI_COLOR)
        hover = self.session.camera.hover
        if hover is not None:
            hover_poi = self.session.poi_at(hover)
            note = f"  {hover_poi.label or hover_poi.poi_id}" if hover_poi is not None else ""
            console.print(renderer.width // 2, top + 2, f"cursor {hover.x}, {hover.y}{note}", fg=(150, 150, 200))

        verdict = self.session.last_verdict
        if self.message:
            console.print(1, top + 3, self.message, fg=(200, 200, 120))
        elif verdict is not None and not verdict.allowed:
            console.print(1, top + 3, f"Blocked: {verdict.reason}", fg=DENIED_COLOR)

        console.print(1, renderer.height - 2, "[Arrows/hjklyubn] Move  [Space] Forward  [q/e] Turn  [BkSp] Back", fg=(150, 150, 150))
        console.print(1, renderer.height - 1, "[Tab] Align  [r] Reset  [c] Center  [x] Clear  [t] Teleport  [p] Rules  [g] Journal", fg=(150, 150, 150))

    # ----------------------------------------------------------
    # Input
    # ----------------------------------------------------------

    def _advance(self, direction: Direction) -> None:
        self.message = ""
        self.session.advance(direction)

    def ev_keydown(self, event: tcod.event.KeyDown) -> None:
        sym = event.sym
        if sym == tcod.event.KeySym.ESCAPE:
            self.session.close_session()
            self.engine.change_state(MainMenuState(self.engine))
        elif sym in MOVE_KEYS:
            self._advance(MOVE_KEYS[sym])
        elif sym == tcod.event.KeySym.SPACE:
            self._advance(self.session.heading)
        elif sym == tcod.event.KeySym.Q:
            self.session.turn(clockwise=False)
        elif sym == tcod.event.KeySym.E:
            self.session.turn(clockwise=True)
        elif sym == tcod.event.KeySym.BACKSPACE:
            if not self.session.step_backward():
                self.message = "Already at the start of the trail"
        elif sym == tcod.event.KeySym.TAB:
            self.session.toggle_alignment()
        elif sym == tcod.event.KeySym.R:
            self.session.camera.reset()
        elif sym == tcod.event.KeySym.C:
            self.session.camera.center_on_player()
        elif sym == tcod.event.KeySym.X:
            self.session.mark_current_cleared()
            self.message = "Tableau cleared"
        elif sym == tcod.event.KeySym.P:
            self.session.set_pathing_locked(not self.session.pathing_locked)
        elif sym == tcod.event.KeySym.T:
            self.engine.push_state(TeleportPromptState(self.engine, self))
        elif sym == tcod.event.KeySym.G:
            self.engine.push_state(JournalState(self.engine, self))

    def ev_mousemotion(self, event: tcod.event.MouseMotion) -> None:
        x, y = event.position
        self.session.hover(float(x), float(y))

    def ev_mousebuttondown(self, event: tcod.event.MouseButtonDown) -> None:
        x, y = event.position
        if int(event.button) == TELEPORT_BUTTON:
            target = self.session.projector().screen_to_grid(float(x), float(y))
            self.session.teleport(target.x, target.y)
            self.message = f"Teleported to {target.x}, {target.y}"
            return
        self.session.camera.pointer_down(float(x), float(y), int(event.button))

    def ev_mousebuttonup(self, event: tcod.event.MouseButtonUp) -> None:
        self.session.camera.pointer_up()

    def ev_mousewheel(self, event: tcod.event.MouseWheel) -> None:
        # tcod wheel y is positive when scrolling up; the camera zooms in on negative deltas
        x, y = self.session.camera.last_pointer
        self.session.camera.wheel(x, y, -event.y)

    def ev_windowleave(self, event: tcod.event.WindowEvent) -> None:
        self.session.camera.pointer_leave()


class TeleportPromptState(BaseState):
    """Developer overlay: type "x,y" and jump there without rule checks."""

    def __init__(self, engine: Engine, map_state: MapState):
        super().__init__(engine)
        self.map_state = map_state
        self.buffer = ""
        self.error: Optional[str] = None

    def on_render(self, renderer: Renderer) -> None:
        win_w, win_h = 36, 7
        x = (renderer.width - win_w) // 2
        y = (renderer.height - win_h) // 2
        renderer.root_console.draw_frame(
            x, y, win_w, win_h,
            "Teleport", clear=True, fg=(255, 255, 255), bg=(0, 0, 0)
        )
        renderer.root_console.print(x + 2, y + 2, f"x,y: {self.buffer}_", fg=(255, 255, 0))
        if self.error:
            renderer.root_console.print(x + 2, y + 3, self.error[:win_w - 4], fg=DENIED_COLOR)
        renderer.root_console.print(x + 2, y + win_h - 2, "[Enter] Go  [ESC] Cancel", fg=(200, 200, 200))

    def ev_textinput(self, event: tcod.event.TextInput) -> None:
        for char in event.text:
            if char.isdigit() or char in ",- ":
                self.buffer += char

    def ev_keydown(self, event: tcod.event.KeyDown) -> None:
        if event.sym == tcod.event.KeySym.ESCAPE:
            self.engine.pop_state()
        elif event.sym == tcod.event.KeySym.BACKSPACE:
            self.buffer = self.buffer[:-1]
        elif event.sym in (tcod.event.KeySym.RETURN, tcod.event.KeySym.KP_ENTER):
            self._submit()

    def _submit(self) -> None:
        try:
            x, y = parse_coordinate(self.buffer)
            self.map_state.session.teleport(x, y)
        except InvalidCoordinateError as e:
            self.error = str(e)
            return
        self.map_state.message = f"Teleported to {x}, {y}"
        self.engine.pop_state()


def parse_coordinate(text: str) -> Tuple[int, int]:
    """Parses "x,y" (whitespace tolerant) into integers."""
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 2:
        raise InvalidCoordinateError(f"Expected x,y but got {text!r}")
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        raise InvalidCoordinateError(f"Expected integers but got {text!r}") from None


class JournalState(BaseState):
    """Screen for viewing recent travel journal entries."""

    def __init__(self, engine: Engine, map_state: MapState):
        super().__init__(engine)
        self.map_state = map_state
        self.lines: List[str] = []
        self._load_history()

    def _load_history(self) -> None:
        journal = self.map_state.session.journal
        if journal is None:
            return
        reader = JournalReader(journal.journal_path)
        for entry in reader.by_significance(minimum=3)[-30:]:
            target = entry.get("target") or ""
            self.lines.append(f"#{entry.get('step', 0):04}: {entry['event_type']} {target}")

    def on_render(self, renderer: Renderer) -> None:
        win_w, win_h = 60, 25
        x = (renderer.width - win_w) // 2
        y = (renderer.height - win_h) // 2

        renderer.root_console.draw_frame(
            x, y, win_w, win_h,
            "Travel Journal", clear=True, fg=(255, 255, 255), bg=(0, 0, 0)
        )

        if not self.lines:
            renderer.root_console.print(x + 2, y + 2, "(Nothing notable yet)", fg=(128, 128, 128))
        else:
            for i, line in enumerate(self.lines):
                if y + 2 + i >= y + win_h - 2: break
                renderer.root_console.print(x + 2, y + 2 + i, line[:win_w - 4])

        renderer.root_console.print(x + 2, y + win_h - 2, "[ESC/G] to close", fg=(200, 200, 200))

    def ev_keydown(self, event: tcod.event.KeyDown) -> None:
        if event.sym in (tcod.event.KeySym.ESCAPE, tcod.event.KeySym.G):
            self.engine.pop_state()
