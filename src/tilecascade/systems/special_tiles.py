from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from esper import World

from tilecascade import constants as C
from tilecascade.components.tile import SpecialKind, Tile
from tilecascade.config import GameConfig
from tilecascade.events.bus import EventBus
from tilecascade.systems.board import BoardSystem
from tilecascade.systems.board_ops import Match, MatchDirection, Position

logger = logging.getLogger(__name__)

LINE_KINDS = (SpecialKind.ROW_CLEAR, SpecialKind.COL_CLEAR)


class ComboKind(Enum):
    BOMB_BOMB = "bomb_bomb"
    BOMB_LINE = "bomb_line"
    COLOR_BOMB = "color_bomb"
    CROSS = "cross"


@dataclass(slots=True)
class SpecialTileInfo:
    kind: SpecialKind
    position: Position
    match_direction: MatchDirection
    match_length: int
    l_shape: bool = False


@dataclass(slots=True)
class ComboEffect:
    kind: ComboKind
    positions: List[Position] = field(default_factory=list)
    description: str = ""


def _unique(positions: Iterable[Position]) -> List[Position]:
    return list(dict.fromkeys(positions))


def _match_center(match: Match) -> Position:
    tile = match.tiles[len(match.tiles) // 2]
    return tile.x, tile.y


class SpecialTileSystem:
    """Rules for creating special tiles and for what they destroy when triggered."""

    def __init__(self, world: World, event_bus: EventBus, board: BoardSystem, config: GameConfig | None = None):
        self.world = world
        self.event_bus = event_bus
        self.board = board
        self.config = config or getattr(world, "config", None) or GameConfig()

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------
    def detect_special_tile_generation(self, matches: Sequence[Match]) -> Optional[SpecialTileInfo]:
        """Pick at most one special tile to create from a cascade step's matches.

        Longest match first: length >= 5 gives a color bomb, exactly 4 a bomb,
        both at the run's middle tile. Only when no match qualifies is a
        horizontal/vertical crossing turned into a line clear at the crossing.
        """
        if not matches:
            return None
        for match in sorted(matches, key=len, reverse=True):
            if len(match) >= C.COLOR_BOMB_MATCH_LENGTH:
                return SpecialTileInfo(SpecialKind.COLOR_BOMB, _match_center(match), match.direction, len(match))
            if len(match) == C.BOMB_MATCH_LENGTH:
                return SpecialTileInfo(SpecialKind.BOMB, _match_center(match), match.direction, len(match))
        return self._detect_crossing(matches)

    def _detect_crossing(self, matches: Sequence[Match]) -> Optional[SpecialTileInfo]:
        for i, first in enumerate(matches):
            for second in matches[i + 1:]:
                if first.direction == second.direction:
                    continue
                shared = set(second.positions())
                for position in first.positions():
                    if position in shared:
                        kind = (
                            SpecialKind.ROW_CLEAR
                            if first.direction is MatchDirection.HORIZONTAL
                            else SpecialKind.COL_CLEAR
                        )
                        return SpecialTileInfo(
                            kind, position, first.direction, len(first) + len(second), l_shape=True
                        )
        return None

    # ------------------------------------------------------------------
    # Activation
    # ------------------------------------------------------------------
    def _block(self, x: int, y: int, radius: int) -> List[Position]:
        return [
            (x + dx, y + dy)
            for dy in range(-radius, radius + 1)
            for dx in range(-radius, radius + 1)
            if self.board.is_valid_position(x + dx, y + dy)
        ]

    def _row(self, y: int) -> List[Position]:
        return [(x, y) for x in range(self.board.cols) if self.board.get_tile(x, y) is not None]

    def _column(self, x: int) -> List[Position]:
        return [(x, y) for y in range(self.board.rows) if self.board.get_tile(x, y) is not None]

    def _occupied(self) -> List[Position]:
        return [(tile.x, tile.y) for tile in self.board.all_tiles()]

    def detect_special_tile_activation(self, tile: Tile, partner: Optional[Tile] = None) -> List[Position]:
        kind = tile.special_kind
        if kind is SpecialKind.BOMB:
            return self._block(tile.x, tile.y, self.config.special_tiles.bomb_range)
        if kind is SpecialKind.COLOR_BOMB:
            if partner is None:
                return []
            targets = [(t.x, t.y) for t in self.board.all_tiles() if t.type == partner.type]
            return _unique(targets + [(tile.x, tile.y)])
        if kind is SpecialKind.ROW_CLEAR:
            return self._row(tile.y)
        if kind is SpecialKind.COL_CLEAR:
            return self._column(tile.x)
        return []

    def detect_special_combo(self, first: Tile, second: Tile) -> Optional[ComboEffect]:
        if not (first.is_special and second.is_special):
            return None
        kinds = (first.special_kind, second.special_kind)
        if kinds == (SpecialKind.BOMB, SpecialKind.BOMB):
            combo = ComboEffect(
                ComboKind.BOMB_BOMB,
                self._block(first.x, first.y, C.BOMB_COMBO_RANGE),
                "double bomb: 5x5 blast",
            )
        elif SpecialKind.BOMB in kinds and (kinds[0] in LINE_KINDS or kinds[1] in LINE_KINDS):
            bomb, line = (first, second) if first.special_kind is SpecialKind.BOMB else (second, first)
            reach = range(-C.LINE_COMBO_RANGE, C.LINE_COMBO_RANGE + 1)
            if line.special_kind is SpecialKind.ROW_CLEAR:
                rows = [bomb.y + d for d in reach if 0 <= bomb.y + d < self.board.rows]
                positions = [p for y in rows for p in self._row(y)]
                description = "bomb + row clear: three rows"
            else:
                cols = [bomb.x + d for d in reach if 0 <= bomb.x + d < self.board.cols]
                positions = [p for x in cols for p in self._column(x)]
                description = "bomb + column clear: three columns"
            combo = ComboEffect(ComboKind.BOMB_LINE, positions, description)
        elif SpecialKind.COLOR_BOMB in kinds:
            combo = ComboEffect(ComboKind.COLOR_BOMB, self._occupied(), "color bomb combo: whole board")
        elif set(kinds) == set(LINE_KINDS):
            row_tile, col_tile = (first, second) if first.special_kind is SpecialKind.ROW_CLEAR else (second, first)
            combo = ComboEffect(
                ComboKind.CROSS,
                _unique(self._row(row_tile.y) + self._column(col_tile.x)),
                "cross: full row and column",
            )
        else:
            return None
        if not combo.positions:
            return None
        logger.debug("Special combo %s covers %d cells", combo.kind.value, len(combo.positions))
        return combo

    def calculate_special_bonus(self, kind: SpecialKind, tiles_cleared: int) -> int:
        scoring = self.config.scoring
        factors = {
            SpecialKind.BOMB: scoring.special_tile_multiplier,
            SpecialKind.COLOR_BOMB: C.COLOR_BOMB_BONUS_FACTOR,
            SpecialKind.ROW_CLEAR: C.LINE_CLEAR_BONUS_FACTOR,
            SpecialKind.COL_CLEAR: C.LINE_CLEAR_BONUS_FACTOR,
        }
        factor = factors.get(kind, 0)
        return math.floor(tiles_cleared * scoring.base_score * factor)
