from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(slots=True)
class Board:
    """Grid of tile entity ids indexed ``grid[y][x]``; ``None`` marks an empty cell."""
    rows: int
    cols: int
    tile_types: int
    grid: List[List[Optional[int]]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.grid:
            self.grid = [[None] * self.cols for _ in range(self.rows)]
