from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, List, Optional, Tuple

from esper import World

from tilecascade.components.board import Board
from tilecascade.components.tile import Tile

Position = Tuple[int, int]
# (x, y) -> tile type, or None when the cell does not take part in the run.
TypeLookup = Callable[[int, int], Optional[int]]

MIN_MATCH_LENGTH = 3


class MatchDirection(Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass(slots=True)
class Match:
    """A maximal run of same-typed tiles found by one row or column scan."""

    tiles: List[Tile]
    direction: MatchDirection

    def __len__(self) -> int:
        return len(self.tiles)

    @property
    def length(self) -> int:
        return len(self.tiles)

    @property
    def tile_type(self) -> int:
        return self.tiles[0].type if self.tiles else -1

    def positions(self) -> List[Position]:
        return [(tile.x, tile.y) for tile in self.tiles]


@dataclass(slots=True)
class GravityMove:
    tile: Tile
    source: Position
    target: Position


def in_bounds(board: Board, x: int, y: int) -> bool:
    return 0 <= x < board.cols and 0 <= y < board.rows


def tile_at(world: World, board: Board, x: int, y: int) -> Tile | None:
    if not in_bounds(board, x, y):
        return None
    entity = board.grid[y][x]
    if entity is None:
        return None
    return world.component_for_entity(entity, Tile)


def iter_tiles(world: World, board: Board) -> Iterator[Tile]:
    """Yield every tile on the board in row-major order."""
    for y in range(board.rows):
        for x in range(board.cols):
            tile = tile_at(world, board, x, y)
            if tile is not None:
                yield tile


def type_lookup(world: World, board: Board, *, skip_special: bool = False) -> TypeLookup:
    def _lookup(x: int, y: int) -> Optional[int]:
        tile = tile_at(world, board, x, y)
        if tile is None or (skip_special and tile.is_special):
            return None
        return tile.type

    return _lookup


def run_length(lookup: TypeLookup, x: int, y: int, dx: int, dy: int) -> int:
    """Length of the same-type run through (x, y) along the (dx, dy) axis."""
    tile_type = lookup(x, y)
    if tile_type is None:
        return 0
    count = 1
    for step in (1, -1):
        cx, cy = x + dx * step, y + dy * step
        while lookup(cx, cy) == tile_type:
            count += 1
            cx += dx * step
            cy += dy * step
    return count


def has_run_at(lookup: TypeLookup, x: int, y: int) -> bool:
    return (
        run_length(lookup, x, y, 1, 0) >= MIN_MATCH_LENGTH
        or run_length(lookup, x, y, 0, 1) >= MIN_MATCH_LENGTH
    )


def _scan_line(cells: List[Tile | None], direction: MatchDirection) -> List[Match]:
    matches: List[Match] = []
    run: List[Tile] = []
    for tile in cells:
        if tile is not None and run and tile.type == run[-1].type:
            run.append(tile)
            continue
        if len(run) >= MIN_MATCH_LENGTH:
            matches.append(Match(tiles=run, direction=direction))
        run = [tile] if tile is not None else []
    if len(run) >= MIN_MATCH_LENGTH:
        matches.append(Match(tiles=run, direction=direction))
    return matches


def find_all_matches(world: World, board: Board) -> List[Match]:
    """Detect every horizontal then vertical run of length >= 3.

    Runs are not merged across axes, so a tile at an L or T corner shows up in
    one horizontal and one vertical match.
    """
    matches: List[Match] = []
    for y in range(board.rows):
        row = [tile_at(world, board, x, y) for x in range(board.cols)]
        matches.extend(_scan_line(row, MatchDirection.HORIZONTAL))
    for x in range(board.cols):
        column = [tile_at(world, board, x, y) for y in range(board.rows)]
        matches.extend(_scan_line(column, MatchDirection.VERTICAL))
    return matches
