from __future__ import annotations

import logging
from typing import Any, Dict, FrozenSet

from esper import World

from tilecascade.components.game_state import GameMode, GameState
from tilecascade.events.bus import EventBus, GameEvent

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[GameMode, FrozenSet[GameMode]] = {
    GameMode.MENU: frozenset({GameMode.PLAYING}),
    GameMode.PLAYING: frozenset({GameMode.ANIMATING, GameMode.PAUSED, GameMode.GAME_OVER}),
    GameMode.ANIMATING: frozenset({GameMode.PLAYING, GameMode.GAME_OVER}),
    GameMode.PAUSED: frozenset({GameMode.PLAYING, GameMode.MENU}),
    GameMode.GAME_OVER: frozenset({GameMode.MENU}),
}


def get_game_state(world: World) -> GameState:
    """Return the shared GameState component, creating it if absent."""
    for _, state in world.get_component(GameState):
        return state
    state = GameState()
    world.create_entity(state)
    return state


def can_transition(current: GameMode, target: GameMode) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def set_game_mode(world: World, event_bus: EventBus, mode: GameMode, **data: Any) -> bool:
    """Move to ``mode`` if the transition is legal and emit a change event.

    Returns True when the game ends up in ``mode`` (including when it already was).
    """
    state = get_game_state(world)
    if state.mode == mode:
        return True
    if not can_transition(state.mode, mode):
        logger.warning("Illegal state transition %s -> %s ignored", state.mode.value, mode.value)
        return False
    previous_mode = state.mode
    state.previous_mode = previous_mode
    state.mode = mode
    logger.info("State change: %s -> %s", previous_mode.value, mode.value)
    event_bus.emit(GameEvent.STATE_CHANGE, previous_mode=previous_mode, new_mode=mode, data=data)
    return True


def reset_game_mode(world: World, event_bus: EventBus) -> None:
    """Force the game back to MENU regardless of the transition table."""
    state = get_game_state(world)
    previous_mode = state.mode
    state.previous_mode = None
    state.mode = GameMode.MENU
    if previous_mode != GameMode.MENU:
        event_bus.emit(GameEvent.STATE_CHANGE, previous_mode=previous_mode, new_mode=GameMode.MENU, data={"reason": "reset"})
