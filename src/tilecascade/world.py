import random

from esper import World

from tilecascade.components.game_state import GameMode, GameState
from tilecascade.components.session import Session
from tilecascade.config import GameConfig, validate_config
from tilecascade.events.bus import EventBus


def create_world(
    event_bus: EventBus,
    config: GameConfig | None = None,
    *,
    initial_mode: GameMode = GameMode.MENU,
    rng: random.Random | None = None,
) -> World:
    """Build a world holding the validated config, the game state and the session counters.

    Raises ConfigError when the configuration is out of range.
    """
    config = validate_config(config or GameConfig())
    world = World()
    setattr(world, "random", rng or random.Random())
    setattr(world, "config", config)

    # Register the global game state resource alongside the session counters.
    world.create_entity(
        GameState(mode=initial_mode),
        Session(remaining_time=config.timer.default_time),
    )
    return world
