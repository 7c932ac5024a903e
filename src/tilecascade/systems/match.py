import logging
from typing import List, Optional, Tuple

from esper import World

from tilecascade.events.bus import EventBus
from tilecascade.systems.board import BoardSystem
from tilecascade.systems.board_ops import Match, Position, find_all_matches, has_run_at, type_lookup

logger = logging.getLogger(__name__)


class MatchSystem:
    """Finds runs on the board and answers whether any swap can still make one."""

    def __init__(self, world: World, event_bus: EventBus, board: BoardSystem):
        self.world = world
        self.event_bus = event_bus
        self.board = board
        self._valid_moves_cache: Optional[bool] = None
        self._cache_hash: Optional[str] = None

    def find_matches(self) -> List[Match]:
        return find_all_matches(self.world, self.board.board)

    def check_match_at_position(self, x: int, y: int) -> bool:
        if self.board.get_tile(x, y) is None:
            return False
        return has_run_at(type_lookup(self.world, self.board.board), x, y)

    def _swap_candidates(self):
        board = self.board
        for y in range(board.rows):
            for x in range(board.cols):
                if board.get_tile(x, y) is None:
                    continue
                for adj in ((x + 1, y), (x, y + 1)):
                    if board.get_tile(*adj) is None:
                        continue
                    yield (x, y), adj

    def _swap_creates_match(self, a: Position, b: Position) -> bool:
        with self.board.simulated_swap(a, b):
            return self.check_match_at_position(*a) or self.check_match_at_position(*b)

    def has_valid_moves(self) -> bool:
        """True if some right/down swap produces a match; cached per board layout."""
        board_hash = self.board_hash()
        if self._valid_moves_cache is not None and self._cache_hash == board_hash:
            return self._valid_moves_cache
        result = any(self._swap_creates_match(a, b) for a, b in self._swap_candidates())
        self._valid_moves_cache = result
        self._cache_hash = board_hash
        if not result:
            logger.debug("No valid moves on board:\n%s", self.board.describe())
        return result

    def find_possible_moves(self) -> List[Tuple[Position, Position]]:
        return [(a, b) for a, b in self._swap_candidates() if self._swap_creates_match(a, b)]

    def board_hash(self) -> str:
        cells = []
        for y in range(self.board.rows):
            for x in range(self.board.cols):
                tile = self.board.get_tile(x, y)
                cells.append(str(tile.type) if tile is not None else "-")
        return "".join(cells)

    def clear_cache(self) -> None:
        self._valid_moves_cache = None
        self._cache_hash = None
