"""Cascade driver and session state machine.

The engine accepts swap requests, resolves special activations or ordinary
matches, runs the remove -> gravity -> refill loop until the board is stable,
reshuffles dead boards and runs the session clock. Every board mutation
happens between awaits; each animation batch is one suspension point.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence, Set, Tuple

from esper import World

from tilecascade import constants as C
from tilecascade.components.game_state import GameMode
from tilecascade.components.tile import Tile
from tilecascade.config import GameConfig
from tilecascade.errors import LogicError, report_error
from tilecascade.events.bus import EventBus, GameEvent
from tilecascade.systems.animation import AnimationKind
from tilecascade.systems.board import BoardSystem
from tilecascade.systems.board_ops import Position
from tilecascade.systems.match import MatchSystem
from tilecascade.systems.special_tiles import SpecialTileSystem
from tilecascade.utils.game_state import can_transition, get_game_state, reset_game_mode, set_game_mode
from tilecascade.utils.scoring import calculate_score
from tilecascade.utils.session import get_or_create_session

logger = logging.getLogger(__name__)


class Animator(Protocol):
    async def play(self, kind: AnimationKind, items: Sequence[Any], duration: float) -> None: ...


class GameEngine:
    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        config: GameConfig | None = None,
        board: BoardSystem | None = None,
        matcher: MatchSystem | None = None,
        specials: SpecialTileSystem | None = None,
        animator: Animator | None = None,
    ):
        self.world = world
        self.event_bus = event_bus
        self.config = config or getattr(world, "config", None) or GameConfig()
        self.board = board or BoardSystem(world, event_bus, self.config)
        self.matcher = matcher or MatchSystem(world, event_bus, self.board)
        self.specials = specials or SpecialTileSystem(world, event_bus, self.board, self.config)
        self.animator = animator
        self.session = get_or_create_session(world)
        self._tasks: Set[asyncio.Task] = set()
        event_bus.subscribe(GameEvent.SWAP_REQUEST, self.on_swap_request)
        event_bus.subscribe(GameEvent.TICK, self.on_tick)
        event_bus.subscribe(GameEvent.PAUSE_REQUEST, self.on_pause_request)
        event_bus.subscribe(GameEvent.RESUME_REQUEST, self.on_resume_request)
        event_bus.subscribe(GameEvent.RESTART_REQUEST, self.on_restart_request)
        event_bus.subscribe(GameEvent.RESET_REQUEST, self.on_reset_request)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def mode(self) -> GameMode:
        return get_game_state(self.world).mode

    @property
    def dimensions(self) -> Tuple[int, int]:
        return self.board.rows, self.board.cols

    def get_tile(self, x: int, y: int) -> Optional[Tile]:
        return self.board.get_tile(x, y)

    def get_game_data(self) -> Dict[str, Any]:
        return {
            "score": self.session.score,
            "moves": self.session.moves,
            "combo_count": self.session.combo_count,
            "remaining_time": self.session.remaining_time,
            "state": self.mode,
        }

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------
    def on_swap_request(self, sender, **kwargs):
        pos1 = kwargs.get("pos1")
        pos2 = kwargs.get("pos2")
        if pos1 is None or pos2 is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("Swap request %s -> %s ignored: no running event loop", pos1, pos2)
            return
        task = loop.create_task(self.handle_swap(tuple(pos1), tuple(pos2)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def on_tick(self, sender, **kwargs):
        self.update(kwargs.get("dt", 0.0))

    def on_pause_request(self, sender, **kwargs):
        self.pause()

    def on_resume_request(self, sender, **kwargs):
        self.resume()

    def on_restart_request(self, sender, **kwargs):
        if self.session.processing:
            logger.warning("Restart ignored while a cascade is in flight")
            return
        self.restart()

    def on_reset_request(self, sender, **kwargs):
        if self.session.processing:
            logger.warning("Reset ignored while a cascade is in flight")
            return
        self.reset()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def init(self) -> None:
        """Zero the session counters and build a fresh, playable board."""
        session = self.session
        session.score = 0
        session.moves = 0
        session.combo_count = 0
        session.processing = False
        session.remaining_time = self.config.timer.default_time
        session.timer_running = False
        session.timer_warning_sent = False
        self.board.create_board()
        self.board.ensure_no_initial_matches()
        self.matcher.clear_cache()
        self._ensure_playable()
        logger.debug("Board ready:\n%s", self.board.describe())

    def start(self) -> None:
        if not set_game_mode(self.world, self.event_bus, GameMode.PLAYING):
            return
        session = self.session
        session.timer_running = True
        session.timer_warning_sent = False
        session.remaining_time = self.config.timer.default_time
        self.event_bus.emit(GameEvent.TIMER_UPDATE, time=session.remaining_time)
        self.event_bus.emit(GameEvent.GAME_START)
        self.event_bus.emit(GameEvent.INPUT_ENABLED)
        logger.info("Game started")

    def pause(self) -> None:
        if self.mode != GameMode.PLAYING:
            return
        set_game_mode(self.world, self.event_bus, GameMode.PAUSED)
        self.session.timer_running = False
        self.event_bus.emit(GameEvent.INPUT_DISABLED)
        logger.info("Game paused")

    def resume(self) -> None:
        if self.mode != GameMode.PAUSED:
            return
        set_game_mode(self.world, self.event_bus, GameMode.PLAYING)
        self.session.timer_running = True
        self.event_bus.emit(GameEvent.INPUT_ENABLED)
        logger.info("Game resumed")

    def restart(self) -> None:
        logger.info("Restarting game")
        self.reset()
        self.event_bus.emit(GameEvent.BOARD_RESET)
        self.start()

    def reset(self) -> None:
        """Back to menu with a fresh board, bypassing the transition table."""
        self.init()
        reset_game_mode(self.world, self.event_bus)
        self.event_bus.emit(GameEvent.GAME_RESET)
        logger.info("Game reset")

    def update(self, dt: float) -> None:
        session = self.session
        if not session.timer_running or self.mode != GameMode.PLAYING:
            return
        timer = self.config.timer
        session.remaining_time -= dt
        self.event_bus.emit(GameEvent.TIMER_UPDATE, time=max(0.0, session.remaining_time))
        if not session.timer_warning_sent and 0 < session.remaining_time <= timer.warning_time:
            session.timer_warning_sent = True
            self.event_bus.emit(GameEvent.TIMER_WARNING, time=session.remaining_time)
        if session.remaining_time <= 0:
            session.remaining_time = 0.0
            session.timer_running = False
            self._end_game("time_up")

    def check_game_over(self) -> bool:
        if self.mode == GameMode.GAME_OVER:
            return True
        if self.matcher.has_valid_moves():
            return False
        if not can_transition(self.mode, GameMode.GAME_OVER):
            logger.debug("No valid moves, but game over is unreachable from %s", self.mode.value)
            return False
        logger.info("No valid moves left")
        self.event_bus.emit(GameEvent.MOVES_NONE)
        return self._end_game("no_moves")

    def _end_game(self, reason: str) -> bool:
        session = self.session
        session.timer_running = False
        if not set_game_mode(self.world, self.event_bus, GameMode.GAME_OVER, reason=reason, final_score=session.score):
            return False
        self.event_bus.emit(GameEvent.GAME_OVER, reason=reason, final_score=session.score, moves=session.moves)
        logger.info("Game over (%s): score=%d moves=%d", reason, session.score, session.moves)
        return True

    # ------------------------------------------------------------------
    # Swap handling
    # ------------------------------------------------------------------
    async def handle_swap(self, pos1: Position, pos2: Position) -> None:
        session = self.session
        if session.processing:
            logger.debug("Swap %s -> %s ignored: cascade in flight", pos1, pos2)
            return
        if self.mode != GameMode.PLAYING:
            logger.debug("Swap %s -> %s ignored in mode %s", pos1, pos2, self.mode.value)
            return
        if not self.board.is_adjacent(pos1, pos2):
            logger.warning("Swap %s -> %s ignored: cells are not adjacent", pos1, pos2)
            return
        tile1 = self.board.get_tile(*pos1)
        tile2 = self.board.get_tile(*pos2)
        if tile1 is None or tile2 is None:
            logger.warning("Swap %s -> %s ignored: no tile at one of the cells", pos1, pos2)
            return

        session.processing = True
        set_game_mode(self.world, self.event_bus, GameMode.ANIMATING)
        self.event_bus.emit(GameEvent.INPUT_DISABLED)
        try:
            await self._resolve_swap(pos1, pos2, tile1, tile2)
        except Exception as exc:
            report_error(self.event_bus, exc, context={"pos1": pos1, "pos2": pos2})
            self._recover()
        finally:
            session.processing = False
            if self.mode == GameMode.ANIMATING:
                set_game_mode(self.world, self.event_bus, GameMode.PLAYING)
            self.event_bus.emit(GameEvent.INPUT_ENABLED)

    def _recover(self) -> None:
        try:
            self.reset()
        except Exception as exc:
            report_error(self.event_bus, exc, context={"stage": "recovery"})

    async def _resolve_swap(self, pos1: Position, pos2: Position, tile1: Tile, tile2: Tile) -> None:
        swap_payload = dict(pos1=pos1, pos2=pos2, tile1=tile1, tile2=tile2)
        self.event_bus.emit(GameEvent.SWAP_START, **swap_payload)
        self.board.swap_tiles(pos1, pos2)
        self.matcher.clear_cache()

        activation: List[Position] = []
        trigger = None
        if tile1.is_special and tile2.is_special:
            trigger = tile1
            combo = self.specials.detect_special_combo(tile1, tile2)
            if combo is not None:
                activation = combo.positions
                logger.info("Special combo: %s", combo.description)
                self.event_bus.emit(GameEvent.SPECIAL_COMBO_ACTIVATED, tile1=tile1, tile2=tile2, combo=combo)
        elif tile1.is_special or tile2.is_special:
            trigger, partner = (tile1, tile2) if tile1.is_special else (tile2, tile1)
            activation = self.specials.detect_special_tile_activation(trigger, partner)
            if activation:
                logger.info("Special %s activated on %d cells", trigger.special_kind.value, len(activation))
                self.event_bus.emit(
                    GameEvent.SPECIAL_TILE_ACTIVATED, tile=trigger, partner=partner, positions=activation
                )

        self.event_bus.emit(GameEvent.SWAP_COMPLETE, **swap_payload)
        await self._play(AnimationKind.SWAP, [(pos1, pos2)], self.config.animation.swap_duration)

        if activation:
            self._add_move()
            bonus = self.specials.calculate_special_bonus(trigger.special_kind, len(activation))
            self._add_score(bonus, combo=1, multiplier=1.0, is_special=True, special_kind=trigger.special_kind)
            await self._remove(self._tiles_at(activation))
            self.session.combo_count = 1
            await self.process_fall_and_fill()
            self.matcher.clear_cache()
            await self.process_matches()
            return

        if self.matcher.find_matches():
            self._add_move()
            self.session.combo_count = 1
            await self.process_matches()
            return

        self.board.swap_tiles(pos1, pos2)
        self.matcher.clear_cache()
        self.event_bus.emit(GameEvent.SWAP_REVERT, **swap_payload)
        await self._play(AnimationKind.SWAP, [(pos2, pos1)], self.config.animation.swap_duration)
        self.event_bus.emit(GameEvent.MATCH_NONE, pos1=pos1, pos2=pos2)

    # ------------------------------------------------------------------
    # Cascade
    # ------------------------------------------------------------------
    async def process_matches(self) -> None:
        session = self.session
        while True:
            matches = self.matcher.find_matches()
            if not matches:
                break
            special = self.specials.detect_special_tile_generation(matches)
            self.event_bus.emit(
                GameEvent.MATCH_FOUND,
                matches=matches,
                total_tiles=sum(len(match) for match in matches),
                combo_count=session.combo_count,
                special_tile=special,
            )
            breakdown = calculate_score(matches, session.combo_count, self.config.scoring)
            self._add_score(
                breakdown.score,
                combo=session.combo_count,
                multiplier=breakdown.multiplier,
                base_points=breakdown.base_points,
                tiles_cleared=breakdown.tiles_cleared,
            )
            if session.combo_count > 1:
                self.event_bus.emit(
                    GameEvent.COMBO_TRIGGER, combo_count=session.combo_count, multiplier=breakdown.multiplier
                )

            reserved = special.position if special is not None else None
            doomed: Dict[int, Tile] = {}
            for match in matches:
                for tile in match.tiles:
                    if (tile.x, tile.y) != reserved:
                        doomed.setdefault(tile.id, tile)
            await self._remove(list(doomed.values()), special=special)

            await self.process_fall_and_fill()
            self.matcher.clear_cache()
            logger.debug("Cascade step %d done, score=%d", session.combo_count, session.score)
            session.combo_count += 1

        self.event_bus.emit(GameEvent.BOARD_STABLE, combo_count=session.combo_count, score=session.score)
        await self.check_and_handle_no_moves()

    async def process_fall_and_fill(self) -> None:
        animation = self.config.animation
        movements = self.board.apply_gravity()
        if movements:
            self.event_bus.emit(GameEvent.TILE_FALL_START, movements=movements)
            await self._play(AnimationKind.FALL, movements, animation.fall_duration)
            self.event_bus.emit(GameEvent.TILE_FALL_COMPLETE, movements=movements)
        spawned = self.board.fill_board()
        if spawned:
            self.event_bus.emit(GameEvent.TILE_SPAWN_START, tiles=spawned)
            await self._play(AnimationKind.SPAWN, spawned, animation.spawn_duration)
            self.event_bus.emit(GameEvent.TILE_SPAWN_COMPLETE, tiles=spawned)

    async def check_and_handle_no_moves(self) -> None:
        """Shuffle until a valid move exists, giving up after MAX_SHUFFLE_ATTEMPTS."""
        for attempt in range(1, C.MAX_SHUFFLE_ATTEMPTS + 1):
            if self.matcher.has_valid_moves():
                return
            logger.info("No valid moves; shuffling (attempt %d)", attempt)
            self.event_bus.emit(GameEvent.MOVES_NONE)
            self.event_bus.emit(GameEvent.BOARD_SHUFFLE_START, attempt=attempt)
            await asyncio.sleep(self.config.animation.shuffle_delay)
            self.board.shuffle_board()
            self.matcher.clear_cache()
            self.event_bus.emit(
                GameEvent.BOARD_SHUFFLE_COMPLETE,
                score=self.session.score,
                time=self.session.remaining_time,
                attempt=attempt,
            )
        if not self.matcher.has_valid_moves():
            raise LogicError(
                "Board still has no valid moves after shuffling",
                details={"attempts": C.MAX_SHUFFLE_ATTEMPTS},
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _ensure_playable(self) -> None:
        for _ in range(C.MAX_SHUFFLE_ATTEMPTS):
            if self.matcher.has_valid_moves():
                return
            self.board.shuffle_board()
            self.matcher.clear_cache()
        if not self.matcher.has_valid_moves():
            raise LogicError(
                "Unable to build a board with a valid move",
                details={"attempts": C.MAX_SHUFFLE_ATTEMPTS},
            )

    def _tiles_at(self, positions: Sequence[Position]) -> List[Tile]:
        tiles = (self.board.get_tile(x, y) for x, y in positions)
        return [tile for tile in tiles if tile is not None]

    async def _remove(self, tiles: List[Tile], special=None) -> None:
        self.event_bus.emit(GameEvent.TILE_REMOVE_START, tiles=tiles)
        await self._play(AnimationKind.REMOVE, tiles, self.config.animation.remove_duration)
        positions = [(tile.x, tile.y) for tile in tiles]
        self.board.remove_tiles(positions)
        if special is not None:
            x, y = special.position
            promoted = self.board.create_special_tile(x, y, special.kind)
            if promoted is not None:
                self.event_bus.emit(
                    GameEvent.SPECIAL_TILE_CREATED, tile=promoted, kind=special.kind, position=(x, y)
                )
        self.event_bus.emit(GameEvent.TILE_REMOVE_COMPLETE, tiles=tiles, positions=positions)

    async def _play(self, kind: AnimationKind, items: Sequence[Any], duration: float) -> None:
        if self.animator is not None:
            await self.animator.play(kind, items, duration)
        else:
            await asyncio.sleep(duration)

    def _add_move(self) -> None:
        self.session.moves += 1
        self.event_bus.emit(GameEvent.MOVES_UPDATE, moves=self.session.moves)

    def _add_score(self, delta: int, **details: Any) -> None:
        self.session.score += delta
        self.event_bus.emit(GameEvent.SCORE_UPDATE, score=self.session.score, delta=delta, **details)
