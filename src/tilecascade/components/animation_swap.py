from dataclasses import dataclass
from typing import Tuple


@dataclass(slots=True)
class SwapAnimation:
    """Two cells trading places; ``progress`` runs 0..1."""

    batch: int
    src: Tuple[int, int]
    dst: Tuple[int, int]
    progress: float = 0.0
