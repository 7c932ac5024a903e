"""Game state resource describing the active high-level mode."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class GameMode(Enum):
    """High-level modes of a play session."""
    MENU = "menu"
    PLAYING = "playing"
    PAUSED = "paused"
    ANIMATING = "animating"
    GAME_OVER = "game_over"


@dataclass
class GameState:
    """Singleton component storing the currently active game mode."""
    mode: GameMode = GameMode.MENU
    previous_mode: Optional[GameMode] = None
