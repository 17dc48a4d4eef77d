"""Wiring helper that assembles the world, event bus and systems."""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

from esper import World

from match3.components.engine_config import EngineConfig
from match3.components.grid import Grid, Position
from match3.components.resolution import ResolutionResult
from match3.constants import GRID_COLS, GRID_ROWS
from match3.events.bus import EventBus
from match3.systems.board import BoardSystem
from match3.systems.board_ops import Layout
from match3.systems.cascade import CascadeSystem
from match3.systems.hints import Hint, HintSystem
from match3.world import create_world


@dataclass(slots=True)
class Engine:
    world: World
    event_bus: EventBus
    board: BoardSystem
    cascade: CascadeSystem
    hints: HintSystem

    @property
    def grid(self) -> Grid:
        return self.board.grid

    def swap(self, a: Position, b: Position) -> ResolutionResult:
        return self.cascade.attempt_swap(a, b)

    def free_swap(self, a: Position, b: Position) -> ResolutionResult:
        return self.cascade.force_swap(a, b)

    def point_blank(self, target: Position) -> ResolutionResult:
        return self.cascade.point_blank(target)

    def hint(self) -> Optional[Hint]:
        return self.hints.current_hint()


def build_engine(
    event_bus: EventBus | None = None,
    *,
    rows: int = GRID_ROWS,
    cols: int = GRID_COLS,
    layout: Optional[Layout] = None,
    config: EngineConfig | None = None,
    rng: random.Random | None = None,
) -> Engine:
    bus = event_bus or EventBus()
    world = create_world(config=config, rng=rng)
    board = BoardSystem(world, bus, rows, cols, layout=layout)
    cascade = CascadeSystem(world, bus)
    hints = HintSystem(world, bus)
    return Engine(world=world, event_bus=bus, board=board, cascade=cascade, hints=hints)
