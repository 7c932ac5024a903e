from enum import Enum
from typing import Callable, Dict

from blinker import Signal


class GameEvent(str, Enum):
    """Closed set of event names exchanged over the EventBus."""

    # ========================================================================
    # SYSTEM & TIMING
    # ========================================================================
    TICK = "tick"                                  # payload: dt=float (seconds)

    # ========================================================================
    # REQUESTS (consumed by the engine)
    # ========================================================================
    SWAP_REQUEST = "swap_request"                  # payload: pos1=(x,y), pos2=(x,y), tile1=Tile|None, tile2=Tile|None
    PAUSE_REQUEST = "pause_request"                # payload: None
    RESUME_REQUEST = "resume_request"              # payload: None
    RESTART_REQUEST = "restart_request"            # payload: None
    RESET_REQUEST = "reset_request"                # payload: None

    # ========================================================================
    # SWAP & MATCH
    # ========================================================================
    SWAP_START = "swap_start"                      # payload: pos1, pos2, tile1, tile2
    SWAP_COMPLETE = "swap_complete"                # payload: pos1, pos2, tile1, tile2
    SWAP_REVERT = "swap_revert"                    # payload: pos1, pos2, tile1, tile2
    MATCH_FOUND = "match_found"                    # payload: matches=list[Match], total_tiles=int, combo_count=int, special_tile=SpecialTileInfo|None
    MATCH_NONE = "match_none"                      # payload: pos1, pos2

    # ========================================================================
    # TILE LIFECYCLE
    # ========================================================================
    TILE_REMOVE_START = "tile_remove_start"        # payload: tiles=list[Tile]
    TILE_REMOVE_COMPLETE = "tile_remove_complete"  # payload: tiles=list[Tile], positions=list[(x,y)]
    TILE_FALL_START = "tile_fall_start"            # payload: movements=list[GravityMove]
    TILE_FALL_COMPLETE = "tile_fall_complete"      # payload: movements=list[GravityMove]
    TILE_SPAWN_START = "tile_spawn_start"          # payload: tiles=list[Tile]
    TILE_SPAWN_COMPLETE = "tile_spawn_complete"    # payload: tiles=list[Tile]

    # ========================================================================
    # SPECIAL TILES
    # ========================================================================
    SPECIAL_TILE_CREATED = "special_tile_created"        # payload: tile=Tile, kind=SpecialKind, position=(x,y)
    SPECIAL_TILE_ACTIVATED = "special_tile_activated"    # payload: tile=Tile, partner=Tile, positions=list[(x,y)]
    SPECIAL_COMBO_ACTIVATED = "special_combo_activated"  # payload: tile1=Tile, tile2=Tile, combo=ComboEffect

    # ========================================================================
    # SCORE & PROGRESS
    # ========================================================================
    SCORE_UPDATE = "score_update"                  # payload: score=int, delta=int, combo=int, multiplier=float, ...
    COMBO_TRIGGER = "combo_trigger"                # payload: combo_count=int, multiplier=float
    MOVES_UPDATE = "moves_update"                  # payload: moves=int

    # ========================================================================
    # BOARD
    # ========================================================================
    BOARD_STABLE = "board_stable"                  # payload: combo_count=int, score=int
    MOVES_NONE = "moves_none"                      # payload: None
    BOARD_SHUFFLE_START = "board_shuffle_start"    # payload: attempt=int
    BOARD_SHUFFLE_COMPLETE = "board_shuffle_complete"  # payload: score=int, time=float, attempt=int
    BOARD_RESET = "board_reset"                    # payload: None

    # ========================================================================
    # TIMER
    # ========================================================================
    TIMER_UPDATE = "timer_update"                  # payload: time=float
    TIMER_WARNING = "timer_warning"                # payload: time=float

    # ========================================================================
    # GAME FLOW & STATE
    # ========================================================================
    GAME_START = "game_start"                      # payload: None
    GAME_RESET = "game_reset"                      # payload: None
    GAME_OVER = "game_over"                        # payload: reason=str, final_score=int, moves=int
    STATE_CHANGE = "state_change"                  # payload: previous_mode=GameMode, new_mode=GameMode, data=dict

    # ========================================================================
    # INPUT & ANIMATION
    # ========================================================================
    INPUT_ENABLED = "input_enabled"                # payload: None
    INPUT_DISABLED = "input_disabled"              # payload: None
    ANIMATION_START = "animation_start"            # payload: kind=AnimationKind, items=list, batch=int
    ANIMATION_COMPLETE = "animation_complete"      # payload: kind=AnimationKind, items=list, batch=int

    # ========================================================================
    # ERRORS
    # ========================================================================
    ERROR = "error"                                # payload: error_type=ErrorType, message=str, error=Exception, context=dict


class EventBus:
    """Simple event bus leveraging blinker Signal objects."""

    def __init__(self):
        self._signals: Dict[GameEvent, Signal] = {}

    def subscribe(self, name: GameEvent, fn: Callable) -> None:
        sig = self._signals.setdefault(name, Signal(name.value))
        # weak=False keeps bound methods alive so systems not kept in a variable still receive events.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: GameEvent, fn: Callable) -> None:
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def once(self, name: GameEvent, fn: Callable) -> Callable:
        def _wrapper(sender, **payload):
            self.unsubscribe(name, _wrapper)
            fn(sender, **payload)

        self.subscribe(name, _wrapper)
        return _wrapper

    def emit(self, name: GameEvent, **payload) -> None:
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)

    def listener_count(self, name: GameEvent) -> int:
        sig = self._signals.get(name)
        if sig is None:
            return 0
        return len(sig.receivers)

    def clear(self) -> None:
        self._signals.clear()
