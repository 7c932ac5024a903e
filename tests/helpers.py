from __future__ import annotations

import random
from typing import Any, Dict, List, Optional, Sequence, Tuple

from esper import World

from tilecascade.config import AnimationConfig, BoardConfig, GameConfig
from tilecascade.events.bus import EventBus, GameEvent
from tilecascade.systems.board import BoardSystem
from tilecascade.systems.game_engine import GameEngine
from tilecascade.world import create_world


def pattern_layout(rows: int, cols: int, tile_types: int = 5) -> List[List[int]]:
    """Match-free layout: neighbours differ by 1 along a row and by 2 along a column."""
    return [[(x + 2 * y) % tile_types for x in range(cols)] for y in range(rows)]


def stalemate_layout(rows: int, cols: int) -> List[List[int]]:
    """Three-type diagonal layout that has neither matches nor a matching swap."""
    return [[(x + y) % 3 for x in range(cols)] for y in range(rows)]


def make_config(rows: int = 8, cols: int = 8, tile_types: int = 5) -> GameConfig:
    return GameConfig(
        board=BoardConfig(rows=rows, cols=cols, tile_types=tile_types),
        animation=AnimationConfig(
            swap_duration=0.0,
            remove_duration=0.0,
            fall_duration=0.0,
            spawn_duration=0.0,
            shuffle_delay=0.0,
        ),
    )


def build_board(
    layout: Optional[Sequence[Sequence[int]]] = None,
    *,
    rows: int = 8,
    cols: int = 8,
    tile_types: int = 5,
    seed: int = 1234,
) -> Tuple[EventBus, World, BoardSystem]:
    if layout is not None:
        rows, cols = len(layout), len(layout[0])
    bus = EventBus()
    world = create_world(bus, make_config(rows, cols, tile_types), rng=random.Random(seed))
    board = BoardSystem(world, bus)
    if layout is not None:
        board.populate(layout)
    else:
        board.create_board()
    return bus, world, board


def build_engine(
    layout: Optional[Sequence[Sequence[int]]] = None,
    *,
    rows: int = 5,
    cols: int = 5,
    tile_types: int = 6,
    seed: int = 1234,
    animator: Any = None,
    start: bool = True,
) -> Tuple[EventBus, World, GameEngine]:
    """Engine on a zero-duration config; ``layout`` replaces the random board after init."""
    if layout is not None:
        rows, cols = len(layout), len(layout[0])
    bus = EventBus()
    world = create_world(bus, make_config(rows, cols, tile_types), rng=random.Random(seed))
    engine = GameEngine(world, bus, animator=animator)
    engine.init()
    if layout is not None:
        engine.board.populate(layout)
        engine.matcher.clear_cache()
    if start:
        engine.start()
    return bus, world, engine


def record(bus: EventBus, event: GameEvent) -> List[Dict[str, Any]]:
    """Collect the payload of every emission of ``event``."""
    received: List[Dict[str, Any]] = []
    bus.subscribe(event, lambda sender, **payload: received.append(payload))
    return received


def board_types(board: BoardSystem) -> List[List[Optional[int]]]:
    rows = []
    for y in range(board.rows):
        row = []
        for x in range(board.cols):
            tile = board.get_tile(x, y)
            row.append(tile.type if tile is not None else None)
        rows.append(row)
    return rows


def assert_board_consistent(board: BoardSystem) -> None:
    """Every cell is filled and every tile knows its own slot."""
    for y in range(board.rows):
        for x in range(board.cols):
            tile = board.get_tile(x, y)
            assert tile is not None, f"Empty cell at {(x, y)}"
            assert (tile.x, tile.y) == (x, y), f"Tile {tile.id} thinks it is at {(tile.x, tile.y)}, slot {(x, y)}"
