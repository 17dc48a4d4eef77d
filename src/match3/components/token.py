from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SpecialKind(Enum):
    """Closed set of special-token behaviours."""
    ROW_CLEAR = "row_clear"
    COLUMN_CLEAR = "column_clear"
    AREA_BOMB = "area_bomb"
    BLOCK_BOMB = "block_bomb"
    COLOR_BOMB = "color_bomb"


@dataclass(frozen=True, slots=True)
class Token:
    """Single matchable unit occupying one grid cell.

    Tokens are immutable; moving a token between cells moves the same object,
    so `id` stays stable across frames. Destroyed tokens are simply dropped.
    """
    id: int
    kind: str
    special: Optional[SpecialKind] = None

    @property
    def is_special(self) -> bool:
        return self.special is not None
