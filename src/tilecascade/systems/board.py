from __future__ import annotations

import logging
import random
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional, Sequence

from esper import World

from tilecascade import constants as C
from tilecascade.components.board import Board
from tilecascade.components.tile import SpecialKind, Tile
from tilecascade.config import GameConfig
from tilecascade.errors import LogicError
from tilecascade.events.bus import EventBus
from tilecascade.systems.board_ops import (
    GravityMove,
    Position,
    find_all_matches,
    has_run_at,
    in_bounds,
    iter_tiles,
    tile_at,
    type_lookup,
)

logger = logging.getLogger(__name__)


class BoardSystem:
    """Owns the board entity and every tile entity placed on it.

    Tiles are esper entities carrying a ``Tile`` component; the board grid
    stores their entity ids. Every mutation goes through this system so a
    tile's ``x``/``y`` always equals the slot that holds it.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        config: GameConfig | None = None,
        rng: random.Random | None = None,
    ):
        self.world = world
        self.event_bus = event_bus
        self.config = config or getattr(world, "config", None) or GameConfig()
        candidate_rng = rng or getattr(world, "random", None)
        self.rng = candidate_rng if isinstance(candidate_rng, random.Random) else random.Random()
        board_cfg = self.config.board
        self.board_entity = self.world.create_entity()
        self.world.add_component(
            self.board_entity,
            Board(rows=board_cfg.rows, cols=board_cfg.cols, tile_types=board_cfg.tile_types),
        )

    @property
    def board(self) -> Board:
        return self.world.component_for_entity(self.board_entity, Board)

    @property
    def rows(self) -> int:
        return self.board.rows

    @property
    def cols(self) -> int:
        return self.board.cols

    @property
    def tile_types(self) -> int:
        return self.board.tile_types

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    def _random_type(self) -> int:
        return self.rng.randrange(self.tile_types)

    def _spawn_tile(self, tile_type: int, x: int, y: int) -> Tile:
        entity = self.world.create_entity()
        tile = Tile(id=entity, type=tile_type, x=x, y=y)
        self.world.add_component(entity, tile)
        self.board.grid[y][x] = entity
        return tile

    def _clear_all(self) -> None:
        board = self.board
        for y in range(board.rows):
            for x in range(board.cols):
                entity = board.grid[y][x]
                if entity is not None:
                    self.world.delete_entity(entity, immediate=True)
                    board.grid[y][x] = None

    def create_board(self) -> None:
        """Replace every cell with a fresh tile of uniformly random type."""
        self._clear_all()
        for y in range(self.rows):
            for x in range(self.cols):
                self._spawn_tile(self._random_type(), x, y)
        logger.debug("Created %dx%d board with %d tile types", self.cols, self.rows, self.tile_types)

    def populate(self, layout: Sequence[Sequence[int]]) -> None:
        """Replace every tile using an explicit type grid given as ``layout[y][x]``."""
        if len(layout) != self.rows or any(len(row) != self.cols for row in layout):
            raise ValueError(f"Layout must be {self.rows} rows of {self.cols} types")
        self._clear_all()
        for y, row in enumerate(layout):
            for x, tile_type in enumerate(row):
                self._spawn_tile(int(tile_type), x, y)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------
    def is_valid_position(self, x: int, y: int) -> bool:
        return in_bounds(self.board, x, y)

    def get_tile(self, x: int, y: int) -> Optional[Tile]:
        return tile_at(self.world, self.board, x, y)

    def set_tile(self, x: int, y: int, tile: Optional[Tile]) -> None:
        if not self.is_valid_position(x, y):
            logger.warning("Ignoring set_tile at invalid position (%s, %s)", x, y)
            return
        grid = self.board.grid
        if tile is not None:
            # A tile occupies one cell; vacate the one it is leaving.
            old_x, old_y = tile.x, tile.y
            if (old_x, old_y) != (x, y) and self.is_valid_position(old_x, old_y) and grid[old_y][old_x] == tile.id:
                grid[old_y][old_x] = None
            tile.set_position(x, y)
        grid[y][x] = tile.id if tile is not None else None

    def all_tiles(self) -> List[Tile]:
        return list(iter_tiles(self.world, self.board))

    def get_empty_positions(self) -> List[Position]:
        board = self.board
        return [
            (x, y)
            for y in range(board.rows)
            for x in range(board.cols)
            if board.grid[y][x] is None
        ]

    @staticmethod
    def is_adjacent(a: Position, b: Position) -> bool:
        ax, ay = a
        bx, by = b
        return (abs(ax - bx) == 1 and ay == by) or (abs(ay - by) == 1 and ax == bx)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def swap_tiles(self, a: Position, b: Position) -> bool:
        if not (self.is_valid_position(*a) and self.is_valid_position(*b)):
            return False
        tile_a = self.get_tile(*a)
        tile_b = self.get_tile(*b)
        if tile_a is None or tile_b is None:
            return False
        self.set_tile(a[0], a[1], tile_b)
        self.set_tile(b[0], b[1], tile_a)
        return True

    @contextmanager
    def simulated_swap(self, a: Position, b: Position) -> Iterator[bool]:
        """Swap two cells for the duration of the block, restoring them on every exit path."""
        swapped = self.swap_tiles(a, b)
        try:
            yield swapped
        finally:
            if swapped:
                self.swap_tiles(a, b)

    def remove_tiles(self, positions: Iterable[Position]) -> List[Tile]:
        """Empty the given cells and destroy their tiles; invalid or empty cells are skipped."""
        removed: List[Tile] = []
        board = self.board
        for x, y in positions:
            if not self.is_valid_position(x, y):
                continue
            entity = board.grid[y][x]
            if entity is None:
                continue
            removed.append(self.world.component_for_entity(entity, Tile))
            board.grid[y][x] = None
            self.world.delete_entity(entity, immediate=True)
        return removed

    def apply_gravity(self) -> List[GravityMove]:
        """Compact each column toward the bottom row and report the tiles that moved."""
        board = self.board
        moves: List[GravityMove] = []
        for x in range(board.cols):
            write_y = board.rows - 1
            for y in range(board.rows - 1, -1, -1):
                entity = board.grid[y][x]
                if entity is None:
                    continue
                if y != write_y:
                    tile: Tile = self.world.component_for_entity(entity, Tile)
                    board.grid[write_y][x] = entity
                    board.grid[y][x] = None
                    tile.set_position(x, write_y)
                    moves.append(GravityMove(tile=tile, source=(x, y), target=(x, write_y)))
                write_y -= 1
        return moves

    def fill_board(self) -> List[Tile]:
        """Spawn a random tile in every empty cell, column by column."""
        board = self.board
        spawned: List[Tile] = []
        for x in range(board.cols):
            for y in range(board.rows):
                if board.grid[y][x] is None:
                    spawned.append(self._spawn_tile(self._random_type(), x, y))
        return spawned

    def would_create_match(self, x: int, y: int) -> bool:
        """True if the tile at (x, y) sits in a run of three ordinary tiles."""
        tile = self.get_tile(x, y)
        if tile is None or tile.is_special:
            return False
        return has_run_at(type_lookup(self.world, self.board, skip_special=True), x, y)

    def ensure_no_initial_matches(self) -> None:
        """Retype matched tiles until no match remains.

        Each tile of a match takes the first type that does not line up with
        its neighbours, or a random one if every type does. After
        ``MAX_MATCH_FIX_PASSES`` unsuccessful passes the board is regenerated;
        after ``MAX_BOARD_REGENERATIONS`` regenerations a LogicError is raised.
        """
        for regeneration in range(C.MAX_BOARD_REGENERATIONS + 1):
            if regeneration:
                logger.warning(
                    "Initial matches persisted after %d passes; regenerating board (%d/%d)",
                    C.MAX_MATCH_FIX_PASSES,
                    regeneration,
                    C.MAX_BOARD_REGENERATIONS,
                )
                self.create_board()
            for _ in range(C.MAX_MATCH_FIX_PASSES):
                matches = find_all_matches(self.world, self.board)
                if not matches:
                    return
                for match in matches:
                    for tile in match.tiles:
                        self._retype_safely(tile)
            if not find_all_matches(self.world, self.board):
                return
        raise LogicError(
            "Unable to build a board without initial matches",
            details={"regenerations": C.MAX_BOARD_REGENERATIONS},
        )

    def _retype_safely(self, tile: Tile) -> None:
        for candidate in range(self.tile_types):
            tile.type = candidate
            if not self.would_create_match(tile.x, tile.y):
                return
        tile.type = self._random_type()

    def shuffle_board(self) -> None:
        """Permute the tile types across occupied cells, then remove any match it produced."""
        tiles = self.all_tiles()
        types = [tile.type for tile in tiles]
        self.rng.shuffle(types)
        for tile, tile_type in zip(tiles, types):
            tile.type = tile_type
        self.ensure_no_initial_matches()
        logger.info("Board shuffled (%d tiles)", len(tiles))

    def create_special_tile(self, x: int, y: int, kind: SpecialKind) -> Optional[Tile]:
        if not self.is_valid_position(x, y):
            logger.warning("Ignoring special tile at invalid position (%s, %s)", x, y)
            return None
        tile = self.get_tile(x, y)
        if tile is None:
            return None
        tile.set_special(kind)
        logger.debug("Promoted tile %s at (%s, %s) to %s", tile.id, x, y, kind.value)
        return tile

    def describe(self) -> str:
        """Text dump of the type grid; ``-`` marks empty cells and ``*`` special tiles."""
        lines = []
        for y in range(self.rows):
            cells = []
            for x in range(self.cols):
                tile = self.get_tile(x, y)
                if tile is None:
                    cells.append("-")
                else:
                    cells.append(f"{tile.type}{'*' if tile.is_special else ''}")
            lines.append(" ".join(cells))
        return "\n".join(lines)
