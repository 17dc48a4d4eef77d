from __future__ import annotations

import random
from typing import List, Optional, Sequence, Tuple

from match3.components.engine_config import EngineConfig
from match3.components.grid import Grid
from match3.components.token_factory import TokenFactory
from match3.engine import Engine, build_engine
from match3.events.bus import EventBus
from match3.systems.board_ops import grid_from_layout

TEST_KINDS = ("A", "B", "x", "y", "z")


def filler_rows(rows: int = 9, cols: int = 9) -> List[List[str]]:
    """Diagonal x/y/z pattern: no matches and no valid moves."""
    return [["xyz"[(r + c) % 3] for c in range(cols)] for r in range(rows)]


def checkerboard_rows(rows: int = 5, cols: int = 5) -> List[List[str]]:
    return [["xz"[(r + c) % 2] for c in range(cols)] for r in range(rows)]


def scenario_layout() -> List[List[str]]:
    rows = filler_rows()
    rows[4][2] = "A"
    rows[4][3] = "A"
    rows[4][4] = "B"
    rows[4][5] = "A"
    return rows


def rows_from_strings(lines: Sequence[str]) -> List[List[Optional[str]]]:
    return [[None if ch == "." else ch for ch in line] for line in lines]


def make_grid(layout, factory: TokenFactory | None = None) -> Tuple[Grid, TokenFactory]:
    factory = factory or TokenFactory(kinds=list(TEST_KINDS))
    if layout and isinstance(layout[0], str):
        layout = rows_from_strings(layout)
    return grid_from_layout(layout, factory), factory


def make_engine(
    layout=None,
    *,
    bus: EventBus | None = None,
    seed: int = 1234,
    kinds: Sequence[str] = TEST_KINDS,
    **config_overrides,
) -> Engine:
    config = EngineConfig(kinds=tuple(kinds), **config_overrides)
    return build_engine(bus, layout=layout, config=config, rng=random.Random(seed))
