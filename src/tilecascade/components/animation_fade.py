from dataclasses import dataclass
from typing import Tuple


@dataclass(slots=True)
class FadeAnimation:
    batch: int
    pos: Tuple[int, int]
    tile_id: int
    alpha: float = 1.0  # fades to 0 before the tile is removed
