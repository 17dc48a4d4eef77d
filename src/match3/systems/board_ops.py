from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from esper import World

from match3.components.board import Board
from match3.components.engine_config import EngineConfig
from match3.components.grid import Grid, Position
from match3.components.token import Token
from match3.components.token_factory import TokenFactory

Layout = Sequence[Sequence[Optional[str]]]


class LayoutError(ValueError):
    """Raised when a starting layout is empty, ragged or uses unknown kinds."""


@dataclass(slots=True)
class GravityMove:
    source: Position
    target: Position
    token: Token


def get_token_factory(world: World) -> TokenFactory:
    for _, factory in world.get_component(TokenFactory):
        return factory
    raise RuntimeError("TokenFactory not found")


def get_engine_config(world: World) -> EngineConfig:
    for _, config in world.get_component(EngineConfig):
        return config
    raise RuntimeError("EngineConfig not found")


def get_board_entity(world: World) -> int:
    for entity, _ in world.get_component(Board):
        return entity
    raise RuntimeError("Board entity not found")


def get_board_grid(world: World) -> Grid:
    return world.component_for_entity(get_board_entity(world), Grid)


def board_dimensions(world: World) -> tuple[int, int] | None:
    for _, board in world.get_component(Board):
        return board.rows, board.cols
    return None


def world_random(world: World) -> random.Random:
    candidate = getattr(world, "random", None)
    if isinstance(candidate, random.Random):
        return candidate
    rng = random.Random()
    setattr(world, "random", rng)
    return rng


def grid_from_layout(layout: Layout, factory: TokenFactory) -> Grid:
    """Build a grid from rows of kind names; ``None`` marks an empty cell."""
    rows = [list(row) for row in layout]
    if not rows or not rows[0]:
        raise LayoutError("Layout must contain at least one row and one column")
    width = len(rows[0])
    for index, row in enumerate(rows):
        if len(row) != width:
            raise LayoutError(f"Layout row {index} has {len(row)} cells, expected {width}")
    grid = Grid(rows=len(rows), cols=width)
    for r, row in enumerate(rows):
        for c, kind in enumerate(row):
            if kind is None:
                continue
            if not factory.has_kind(kind):
                raise LayoutError(f"Unknown token kind {kind!r} at {(r, c)}")
            grid.set((r, c), factory.create(kind))
    return grid


def remove_positions(grid: Grid, positions: Iterable[Position]) -> List[Token]:
    removed: List[Token] = []
    for pos in positions:
        token = grid.get(pos)
        if token is None:
            continue
        removed.append(token)
        grid.set(pos, None)
    return removed


def compute_gravity_moves(grid: Grid) -> List[GravityMove]:
    moves: List[GravityMove] = []
    for col in range(grid.cols):
        write_row = grid.rows - 1
        for row in range(grid.rows - 1, -1, -1):
            token = grid.cells[row][col]
            if token is None:
                continue
            if row != write_row:
                moves.append(GravityMove(source=(row, col), target=(write_row, col), token=token))
            write_row -= 1
    return moves


def collapse_columns(grid: Grid) -> List[GravityMove]:
    """Compact every column downward; empty cells float to the top."""
    moves = compute_gravity_moves(grid)
    for move in moves:
        grid.set(move.source, None)
    for move in moves:
        grid.set(move.target, move.token)
    return moves


def refill_empty_cells(grid: Grid, factory: TokenFactory, rng: random.Random) -> List[Position]:
    spawned: List[Position] = []
    for pos in grid.positions():
        if grid.get(pos) is not None:
            continue
        grid.set(pos, factory.random_token(rng))
        spawned.append(pos)
    return spawned


def columns_settled(grid: Grid) -> bool:
    """True if every column's occupied cells are contiguous from the bottom."""
    for col in range(grid.cols):
        seen_token = False
        for row in range(grid.rows):
            occupied = grid.cells[row][col] is not None
            if seen_token and not occupied:
                return False
            seen_token = seen_token or occupied
    return True
