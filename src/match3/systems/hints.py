from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from esper import World

from match3.components.grid import Grid, Position
from match3.events.bus import EventBus, EVENT_HINT_REQUEST, EVENT_HINT_FOUND, EVENT_HINT_NONE
from match3.systems.board_ops import get_board_grid, get_engine_config
from match3.systems.match_detection import find_match_groups
from match3.systems.playability import adjacent_pairs

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Hint:
    primary: Position
    secondary: Position
    matches: Tuple[Position, ...]


def find_hint(grid: Grid, *, include_blocks: bool = True) -> Optional[Hint]:
    """First adjacent swap (row-major, right then down) that yields a match."""
    scratch = grid.copy()
    for a, b in adjacent_pairs(scratch):
        scratch.swap(a, b)
        groups = find_match_groups(scratch, include_blocks=include_blocks)
        scratch.swap(a, b)
        if not groups:
            continue
        touching = [group for group in groups if a in group or b in group]
        chosen = touching or groups
        matches = sorted({pos for group in chosen for pos in group.positions})
        return Hint(primary=a, secondary=b, matches=tuple(matches))
    return None


class HintSystem:
    """Answers idle-player hint requests against the authoritative board."""

    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_HINT_REQUEST, self.on_hint_request)

    def current_hint(self) -> Optional[Hint]:
        config = get_engine_config(self.world)
        return find_hint(get_board_grid(self.world), include_blocks=config.include_block_matches)

    def on_hint_request(self, sender, **kwargs):
        hint = self.current_hint()
        if hint is None:
            logger.warning("No hint available on a board that should be playable")
            self.event_bus.emit(EVENT_HINT_NONE)
            return
        self.event_bus.emit(EVENT_HINT_FOUND, hint=hint)
