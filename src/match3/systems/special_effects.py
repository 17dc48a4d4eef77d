"""Special-token creation, detonation areas and chain propagation.

All area computations read the grid as it stands; nothing is cleared until
the full removal set (including chained detonations) has been accumulated.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from match3.components.grid import Grid, Position
from match3.components.match_group import MatchGroup, Orientation
from match3.components.resolution import CreatedSpecial
from match3.components.token import SpecialKind
from match3.components.token_factory import TokenFactory
from match3.constants import AREA_BOMB_RADIUS, BLOCK_BOMB_RADIUS, COLOR_BOMB_MIN_GROUP, SPECIAL_MIN_GROUP
from match3.systems.board_ops import remove_positions

Swap = Tuple[Position, Position]


@dataclass(slots=True)
class ClearOutcome:
    removed: List[Position] = field(default_factory=list)
    created: List[CreatedSpecial] = field(default_factory=list)
    detonated: List[Position] = field(default_factory=list)


def special_for_group(group: MatchGroup) -> Optional[SpecialKind]:
    if group.size < SPECIAL_MIN_GROUP:
        return None
    if group.orientation is Orientation.SQUARE:
        return SpecialKind.BLOCK_BOMB
    if group.size >= COLOR_BOMB_MIN_GROUP:
        return SpecialKind.COLOR_BOMB
    if group.orientation is Orientation.MIXED:
        return SpecialKind.AREA_BOMB
    if group.orientation is Orientation.HORIZONTAL:
        return SpecialKind.ROW_CLEAR
    return SpecialKind.COLUMN_CLEAR


def placement_for_group(group: MatchGroup, swap: Optional[Swap] = None) -> Position:
    """Swap-primary, then swap-secondary, else the middle of detection order."""
    if swap is not None:
        for pos in swap:
            if pos in group.positions:
                return pos
    return group.positions[len(group.positions) // 2]


def token_kind_for_placement(grid: Grid, group: MatchGroup, placement: Position, palette: Sequence[str]) -> str:
    kind = grid.kind_at(placement)
    if kind is not None:
        return kind
    if group.positions:
        kind = grid.kind_at(group.positions[0])
        if kind is not None:
            return kind
    return palette[0]


def _square(grid: Grid, origin: Position, radius: int) -> List[Position]:
    row, col = origin
    return [
        (r, c)
        for r in range(max(0, row - radius), min(grid.rows, row + radius + 1))
        for c in range(max(0, col - radius), min(grid.cols, col + radius + 1))
    ]


def detonation_area(
    grid: Grid,
    origin: Position,
    special: SpecialKind,
    target_kind: Optional[str] = None,
) -> List[Position]:
    """Cells cleared by ``special`` detonating at ``origin``, row-major, origin included."""
    row, col = origin
    if special is SpecialKind.ROW_CLEAR:
        area = [(row, c) for c in range(grid.cols)]
    elif special is SpecialKind.COLUMN_CLEAR:
        area = [(r, col) for r in range(grid.rows)]
    elif special is SpecialKind.AREA_BOMB:
        area = _square(grid, origin, AREA_BOMB_RADIUS)
    elif special is SpecialKind.BLOCK_BOMB:
        area = _square(grid, origin, BLOCK_BOMB_RADIUS)
    elif special is SpecialKind.COLOR_BOMB:
        if target_kind is None:
            area = grid.occupied()
        else:
            area = [pos for pos in grid.positions() if grid.kind_at(pos) == target_kind]
    else:
        raise ValueError(f"Unhandled special kind: {special!r}")
    if origin not in area:
        area.append(origin)
        area.sort()
    return area


def propagate_chain(
    grid: Grid,
    seeds: Iterable[Position],
    *,
    processed: Optional[Set[Position]] = None,
) -> Tuple[List[Position], List[Position]]:
    """Expand ``seeds`` with the areas of every special they sweep up.

    Returns the accumulated positions in discovery order and the origins that
    detonated. Positions in ``processed`` are accumulated but never detonated.
    """
    accumulated = list(dict.fromkeys(seeds))
    seen = set(accumulated)
    done = set(processed or ())
    queue = deque(accumulated)
    detonated: List[Position] = []
    while queue:
        pos = queue.popleft()
        if pos in done:
            continue
        done.add(pos)
        token = grid.get(pos)
        if token is None or token.special is None:
            continue
        detonated.append(pos)
        for hit in detonation_area(grid, pos, token.special):
            if hit in seen:
                continue
            seen.add(hit)
            accumulated.append(hit)
            queue.append(hit)
    return accumulated, detonated


def detonate_at(grid: Grid, origin: Position, target_kind: Optional[str] = None) -> Tuple[List[Position], List[Position]]:
    """Removal set for destroying the token at ``origin`` directly."""
    token = grid.get(origin)
    if token is None:
        return [], []
    if token.special is None:
        return propagate_chain(grid, [origin])
    area = detonation_area(grid, origin, token.special, target_kind)
    accumulated, detonated = propagate_chain(grid, [origin] + area, processed={origin})
    return accumulated, [origin] + detonated


def clear_match_groups(
    grid: Grid,
    groups: Sequence[MatchGroup],
    factory: TokenFactory,
    *,
    swap: Optional[Swap] = None,
) -> ClearOutcome:
    """Clear ``groups`` in place, creating specials where the policy calls for one."""
    outcome = ClearOutcome()
    placements: dict[Position, CreatedSpecial] = {}
    seeds: List[Position] = []
    for group in groups:
        seeds.extend(group.positions)
        special = special_for_group(group)
        if special is None:
            continue
        placement = placement_for_group(group, swap)
        if placement in placements:
            continue
        kind = token_kind_for_placement(grid, group, placement, factory.kinds)
        placements[placement] = CreatedSpecial(position=placement, special=special, kind=kind)

    accumulated, outcome.detonated = propagate_chain(grid, seeds)
    # New specials replace their group rather than being cleared with it.
    outcome.removed = [
        pos for pos in accumulated
        if pos not in placements and grid.get(pos) is not None
    ]
    remove_positions(grid, outcome.removed)
    for created in placements.values():
        grid.set(created.position, factory.create(created.kind, created.special))
        outcome.created.append(created)
    return outcome
