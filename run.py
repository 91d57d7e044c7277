"""
Wayfarer — run.py
Main entry point for the Wayfarer exploration map.
"""

import sys
from pathlib import Path

# Ensure we can import wayfarer packages
project_root = Path(__file__).parent.resolve()
sys.path.insert(0, str(project_root))

from engine.data_loader import get_view_settings
from ui.renderer import Renderer
from ui.states import Engine
from ui.screens import HUD_ROWS, MainMenuState

def main():
    settings = get_view_settings()
    renderer = Renderer(
        width=settings.viewport_width,
        height=settings.viewport_height + HUD_ROWS,
        title="Wayfarer",
    )
    engine = Engine(renderer=renderer, initial_state_cls=MainMenuState)
    engine.run()

if __name__ == "__main__":
    main()
