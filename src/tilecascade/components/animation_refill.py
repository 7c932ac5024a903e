from dataclasses import dataclass
from typing import Tuple


@dataclass(slots=True)
class RefillAnimation:
    """A freshly spawned tile dropping into ``pos`` from above the board."""

    batch: int
    pos: Tuple[int, int]
    tile_id: int
    linear: float = 0.0
