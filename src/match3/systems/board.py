from typing import Optional

from esper import World

from match3.components.board import Board
from match3.components.grid import Grid, Position
from match3.components.token import SpecialKind, Token
from match3.constants import GRID_COLS, GRID_ROWS
from match3.events.bus import EventBus, EVENT_BOARD_RESET
from match3.systems.board_ops import (
    Layout,
    get_engine_config,
    get_token_factory,
    grid_from_layout,
    world_random,
)
from match3.systems.playability import ensure_playable, generate_grid


class BoardSystem:
    """Owns the authoritative board entity and its lifecycle.

    The grid comes either from a fixed layout supplied by the level provider
    or from the generator, and is made playable once before play starts.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        rows: int = GRID_ROWS,
        cols: int = GRID_COLS,
        *,
        layout: Optional[Layout] = None,
    ):
        self.world = world
        self.event_bus = event_bus
        self.board_entity = self.world.create_entity()
        self.world.add_component(self.board_entity, Board(rows=rows, cols=cols))
        self._init_board(rows, cols, layout)

    def _init_board(self, rows: int, cols: int, layout: Optional[Layout]) -> None:
        config = get_engine_config(self.world)
        factory = get_token_factory(self.world)
        rng = world_random(self.world)
        if layout is not None:
            grid = grid_from_layout(layout, factory)
        else:
            grid = generate_grid(
                rows,
                cols,
                factory,
                rng,
                max_attempts=config.max_generation_attempts,
                include_blocks=config.include_block_matches,
            )
        grid, _ = ensure_playable(
            grid,
            factory,
            rng,
            max_shuffles=config.max_shuffle_attempts,
            max_generation_attempts=config.max_generation_attempts,
            include_blocks=config.include_block_matches,
        )
        self.world.add_component(self.board_entity, Board(rows=grid.rows, cols=grid.cols))
        self.world.add_component(self.board_entity, grid)

    @property
    def grid(self) -> Grid:
        return self.world.component_for_entity(self.board_entity, Grid)

    def snapshot(self) -> Grid:
        return self.grid.copy()

    def reset(self, layout: Optional[Layout] = None) -> None:
        board: Board = self.world.component_for_entity(self.board_entity, Board)
        self._init_board(board.rows, board.cols, layout)
        grid = self.grid
        self.event_bus.emit(EVENT_BOARD_RESET, rows=grid.rows, cols=grid.cols)

    def place(self, pos: Position, kind: str, special: Optional[SpecialKind] = None) -> Token:
        """Put a freshly minted token on the authoritative grid (level scripting)."""
        factory = get_token_factory(self.world)
        if not factory.has_kind(kind):
            raise ValueError(f"Unknown token kind {kind!r}")
        grid = self.grid
        if not grid.in_bounds(pos):
            raise ValueError(f"Position {pos} is outside the board")
        token = factory.create(kind, special)
        grid.set(pos, token)
        return token
