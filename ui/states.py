"""
Wayfarer — ui/states.py
State Machine defining the UI screens and event routing logic.

Screens live on a stack. Full screens replace the stack; overlays (teleport
prompt, journal) are pushed on top and popped to return to the map. Only
the top state receives input, and every state on the stack is drawn
bottom-up so overlays sit over a live map.
"""

from __future__ import annotations
from typing import Any, List
import tcod

from ui.renderer import Renderer

class BaseState(tcod.event.EventDispatch[Any]):
    """
    Protocol for a screen state.
    Intercepts tcod events and renders to the console.
    """
    def __init__(self, engine: "Engine"):
        super().__init__()
        self.engine = engine

    def on_render(self, renderer: Renderer) -> None:
        """Called every frame to draw to the console."""
        pass


class Engine:
    """
    Central loop controller handling TCOD context, Renderer, and the state stack.
    """
    def __init__(self, renderer: Renderer, initial_state_cls: type[BaseState]):
        self.renderer = renderer
        self.stack: List[BaseState] = [initial_state_cls(self)]
        self.running = True

    @property
    def active_state(self) -> BaseState:
        return self.stack[-1]

    def change_state(self, new_state: BaseState) -> None:
        """Replaces every state with new_state."""
        self.stack = [new_state]

    def push_state(self, overlay: BaseState) -> None:
        self.stack.append(overlay)

    def pop_state(self) -> None:
        """Closes the top overlay. The bottom state is never popped."""
        if len(self.stack) > 1:
            self.stack.pop()

    def render(self) -> None:
        self.renderer.clear()
        for state in self.stack:
            state.on_render(self.renderer)

    def handle_event(self, event: tcod.event.Event) -> None:
        if isinstance(event, tcod.event.Quit):
            self.running = False
            return
        self.active_state.dispatch(event)

    def run(self) -> None:
        """Main blocking event loop."""
        with tcod.context.new_terminal(
            self.renderer.width,
            self.renderer.height,
            title=self.renderer.title,
            vsync=True,
        ) as context:
            self.renderer.context = context

            while self.running:
                self.render()
                self.renderer.present(context)

                # Mouse positions arrive in pixels; states work in tiles
                for event in tcod.event.wait():
                    self.handle_event(context.convert_event(event))
                    if not self.running:
                        break
