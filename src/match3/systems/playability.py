from __future__ import annotations

import logging
import random
from typing import List, Optional, Tuple

from match3.components.grid import Grid, Position
from match3.components.token import Token
from match3.components.token_factory import TokenFactory
from match3.constants import MAX_GENERATION_ATTEMPTS, MAX_SHUFFLE_ATTEMPTS, MIN_RUN_LENGTH
from match3.systems.match_detection import find_match_groups

logger = logging.getLogger(__name__)


class GenerationExhaustedError(RuntimeError):
    """The palette/dimension pairing cannot produce a playable grid within budget."""


def adjacent_pairs(grid: Grid):
    # Row-major, right neighbour before down neighbour.
    for row in range(grid.rows):
        for col in range(grid.cols):
            if col + 1 < grid.cols:
                yield (row, col), (row, col + 1)
            if row + 1 < grid.rows:
                yield (row, col), (row + 1, col)


def find_valid_swaps(grid: Grid, *, include_blocks: bool = True) -> List[Tuple[Position, Position]]:
    """Enumerate adjacent swaps that would produce a match.

    Every pair is trial-swapped on a scratch copy and fully re-scanned, so
    no heuristic can miss a move.
    """
    scratch = grid.copy()
    swaps: List[Tuple[Position, Position]] = []
    for a, b in adjacent_pairs(scratch):
        scratch.swap(a, b)
        if find_match_groups(scratch, include_blocks=include_blocks):
            swaps.append((a, b))
        scratch.swap(a, b)
    return swaps


def has_valid_moves(grid: Grid, *, include_blocks: bool = True) -> bool:
    scratch = grid.copy()
    for a, b in adjacent_pairs(scratch):
        scratch.swap(a, b)
        matched = bool(find_match_groups(scratch, include_blocks=include_blocks))
        scratch.swap(a, b)
        if matched:
            return True
    return False


def shuffle_tokens(grid: Grid, rng: random.Random) -> None:
    """Fisher-Yates permutation of the occupied tokens, written back row-major."""
    positions = grid.occupied()
    tokens: List[Token] = [grid.get(pos) for pos in positions]
    for i in range(len(tokens) - 1, 0, -1):
        j = rng.randint(0, i)
        tokens[i], tokens[j] = tokens[j], tokens[i]
    for pos, token in zip(positions, tokens):
        grid.set(pos, token)


def creates_match_at(
    kinds: List[List[Optional[str]]],
    row: int,
    col: int,
    kind: str,
    *,
    include_blocks: bool = True,
) -> bool:
    """True if placing ``kind`` at (row, col) completes a run or block with cells above/left."""
    span = MIN_RUN_LENGTH - 1
    if col >= span and all(kinds[row][col - k] == kind for k in range(1, span + 1)):
        return True
    if row >= span and all(kinds[row - k][col] == kind for k in range(1, span + 1)):
        return True
    if include_blocks and row >= 1 and col >= 1:
        if kinds[row - 1][col] == kind and kinds[row][col - 1] == kind and kinds[row - 1][col - 1] == kind:
            return True
    return False


def generate_grid(
    rows: int,
    cols: int,
    factory: TokenFactory,
    rng: random.Random,
    *,
    max_attempts: int = MAX_GENERATION_ATTEMPTS,
    include_blocks: bool = True,
) -> Grid:
    """Fill a fresh grid with no existing matches and at least one valid move."""
    choices = factory.palette()
    for attempt in range(max_attempts):
        kinds: List[List[Optional[str]]] = [[None] * cols for _ in range(rows)]
        valid_layout = True
        for row in range(rows):
            for col in range(cols):
                available = [
                    kind for kind in choices
                    if not creates_match_at(kinds, row, col, kind, include_blocks=include_blocks)
                ]
                if not available:
                    valid_layout = False
                    break
                kinds[row][col] = rng.choice(available)
            if not valid_layout:
                break
        if not valid_layout:
            continue
        grid = Grid(rows=rows, cols=cols)
        for row in range(rows):
            for col in range(cols):
                grid.set((row, col), factory.create(kinds[row][col]))
        if find_match_groups(grid, include_blocks=include_blocks):
            continue
        if not has_valid_moves(grid, include_blocks=include_blocks):
            continue
        logger.debug("Generated %dx%d grid after %d attempt(s)", rows, cols, attempt + 1)
        return grid
    raise GenerationExhaustedError(
        f"Unable to generate a playable {rows}x{cols} grid from {len(choices)} kinds "
        f"in {max_attempts} attempts"
    )


def ensure_playable(
    grid: Grid,
    factory: TokenFactory,
    rng: random.Random,
    *,
    max_shuffles: int = MAX_SHUFFLE_ATTEMPTS,
    max_generation_attempts: int = MAX_GENERATION_ATTEMPTS,
    include_blocks: bool = True,
) -> Tuple[Grid, bool]:
    """Return a playable grid and whether it had to be altered.

    Shuffles ``grid`` in place until a valid move exists without leaving a
    ready-made match behind; past the shuffle budget a new grid is generated.
    """
    if has_valid_moves(grid, include_blocks=include_blocks):
        return grid, False
    for attempt in range(max_shuffles):
        shuffle_tokens(grid, rng)
        if find_match_groups(grid, include_blocks=include_blocks):
            continue
        if has_valid_moves(grid, include_blocks=include_blocks):
            logger.info("Reshuffled unplayable grid after %d attempt(s)", attempt + 1)
            return grid, True
    logger.info("Shuffle budget of %d exhausted; regenerating grid", max_shuffles)
    fresh = generate_grid(
        grid.rows,
        grid.cols,
        factory,
        rng,
        max_attempts=max_generation_attempts,
        include_blocks=include_blocks,
    )
    return fresh, True
