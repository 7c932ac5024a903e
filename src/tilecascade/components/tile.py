from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class SpecialKind(Enum):
    """Special-tile tag; NONE marks an ordinary tile."""
    NONE = "none"
    BOMB = "bomb"
    COLOR_BOMB = "color_bomb"
    ROW_CLEAR = "row_clear"
    COL_CLEAR = "col_clear"


@dataclass(slots=True)
class Tile:
    """A single typed game piece stored on its own entity.

    ``id`` is the owning entity id and never changes while the tile lives.
    ``x``/``y`` always mirror the grid slot holding the tile; only BoardSystem
    moves tiles, through ``set_position``.
    """

    id: int
    type: int
    x: int
    y: int
    special_kind: SpecialKind = SpecialKind.NONE

    @property
    def is_special(self) -> bool:
        return self.special_kind is not SpecialKind.NONE

    def is_normal(self) -> bool:
        return not self.is_special

    def set_position(self, x: int, y: int) -> None:
        self.x = x
        self.y = y

    def set_special(self, kind: SpecialKind) -> None:
        self.special_kind = kind

    def reset_special(self) -> None:
        self.special_kind = SpecialKind.NONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "x": self.x,
            "y": self.y,
            "is_special": self.is_special,
            "special_kind": self.special_kind.value,
        }
