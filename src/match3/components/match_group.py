from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from match3.components.grid import Position


class Orientation(Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    MIXED = "mixed"
    SQUARE = "square"


@dataclass(frozen=True, slots=True)
class MatchGroup:
    """Maximal cluster of overlapping runs/blocks of one kind.

    ``positions`` keeps detection order (row runs, then column runs, then 2x2
    windows) with duplicates removed; the placement tie-break relies on it.
    """
    kind: str
    orientation: Orientation
    positions: Tuple[Position, ...]

    @property
    def size(self) -> int:
        return len(self.positions)

    def __contains__(self, pos: object) -> bool:
        return pos in self.positions
