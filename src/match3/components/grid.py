from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from match3.components.token import SpecialKind, Token

Position = Tuple[int, int]


def is_adjacent(a: Position, b: Position) -> bool:
    """True iff the Manhattan distance between a and b is exactly one."""
    ar, ac = a
    br, bc = b
    return abs(ar - br) + abs(ac - bc) == 1


@dataclass(slots=True)
class Grid:
    """Rectangular matrix of cells, each empty (None) or holding a Token.

    Row 0 is the top row; gravity pulls tokens towards the last row.
    """
    rows: int
    cols: int
    cells: List[List[Optional[Token]]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.rows <= 0 or self.cols <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {self.rows}x{self.cols}")
        if not self.cells:
            self.cells = [[None] * self.cols for _ in range(self.rows)]
        elif len(self.cells) != self.rows or any(len(row) != self.cols for row in self.cells):
            raise ValueError("Grid cells do not match the declared dimensions")

    def in_bounds(self, pos: Position) -> bool:
        row, col = pos
        return 0 <= row < self.rows and 0 <= col < self.cols

    def get(self, pos: Position) -> Optional[Token]:
        row, col = pos
        return self.cells[row][col]

    def set(self, pos: Position, token: Optional[Token]) -> None:
        row, col = pos
        self.cells[row][col] = token

    def kind_at(self, pos: Position) -> Optional[str]:
        token = self.get(pos)
        return token.kind if token is not None else None

    def swap(self, a: Position, b: Position) -> None:
        (ar, ac), (br, bc) = a, b
        self.cells[ar][ac], self.cells[br][bc] = self.cells[br][bc], self.cells[ar][ac]

    def copy(self) -> Grid:
        # Tokens are immutable, so copying the row lists is a full deep copy of the grid state.
        return Grid(rows=self.rows, cols=self.cols, cells=[list(row) for row in self.cells])

    def overwrite_from(self, other: Grid) -> None:
        """Commit another grid of identical shape into this one, cell by cell."""
        if (other.rows, other.cols) != (self.rows, self.cols):
            raise ValueError("Cannot commit a grid with different dimensions")
        for row in range(self.rows):
            for col in range(self.cols):
                self.cells[row][col] = other.cells[row][col]

    def positions(self) -> Iterator[Position]:
        for row in range(self.rows):
            for col in range(self.cols):
                yield (row, col)

    def occupied(self) -> List[Position]:
        return [pos for pos in self.positions() if self.get(pos) is not None]

    def empty_count(self) -> int:
        return sum(1 for row in self.cells for token in row if token is None)

    def kinds(self) -> List[List[Optional[str]]]:
        return [[token.kind if token else None for token in row] for row in self.cells]

    def specials(self) -> List[Tuple[Position, SpecialKind]]:
        found: List[Tuple[Position, SpecialKind]] = []
        for pos in self.positions():
            token = self.get(pos)
            if token is not None and token.special is not None:
                found.append((pos, token.special))
        return found

    def pretty(self) -> str:
        """Human-readable dump: first letter of the kind, upper-cased for specials."""
        lines: List[str] = []
        for row in self.cells:
            out: List[str] = []
            for token in row:
                if token is None:
                    out.append(".")
                elif token.special is not None:
                    out.append(token.kind[:1].upper())
                else:
                    out.append(token.kind[:1])
            lines.append(" ".join(out))
        return "\n".join(lines)
