from dataclasses import dataclass
from typing import Tuple


@dataclass(slots=True)
class FallAnimation:
    batch: int
    src: Tuple[int, int]
    dst: Tuple[int, int]
    tile_id: int
    linear: float = 0.0
