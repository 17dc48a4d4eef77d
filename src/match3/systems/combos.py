from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from match3.components.grid import Grid, Position
from match3.components.token import SpecialKind
from match3.systems.special_effects import detonation_area, propagate_chain

BOMB_KINDS = (SpecialKind.AREA_BOMB, SpecialKind.BLOCK_BOMB)


@dataclass(slots=True)
class ComboOutcome:
    """Removal set produced by swapping one or two specials together."""
    rule: str
    positions: List[Position] = field(default_factory=list)
    detonated: List[Position] = field(default_factory=list)

    @property
    def effective(self) -> bool:
        return bool(self.positions)


def resolve_combo(grid: Grid, a: Position, b: Position) -> Optional[ComboOutcome]:
    """Compute the combo triggered by the (already swapped) tokens at a and b.

    Returns None when a cell is empty or neither token is special. The grid is
    only read; clearing is left to the caller.
    """
    token_a, token_b = grid.get(a), grid.get(b)
    if token_a is None or token_b is None:
        return None
    special_a, special_b = token_a.special, token_b.special
    if special_a is None and special_b is None:
        return None

    seeds: List[Position] = []
    if special_a is SpecialKind.COLOR_BOMB and special_b is SpecialKind.COLOR_BOMB:
        rule = "double_color"
        seeds = grid.occupied()
    elif special_a == special_b and special_a in BOMB_KINDS:
        rule = "double_bomb"
        seeds = grid.occupied()
    elif SpecialKind.COLOR_BOMB in (special_a, special_b):
        rule = "color"
        bomb_pos, partner_pos = (a, b) if special_a is SpecialKind.COLOR_BOMB else (b, a)
        partner = grid.get(partner_pos)
        target = partner.kind
        seeds = detonation_area(grid, bomb_pos, SpecialKind.COLOR_BOMB, target)
        if partner.special is not None:
            # The partner's shape is stamped on every cell of the targeted kind.
            targets = [pos for pos in grid.positions() if grid.kind_at(pos) == target]
            for origin in targets or [partner_pos]:
                seeds.extend(detonation_area(grid, origin, partner.special))
    elif special_a is not None and special_b is not None:
        rule = "pair"
        seeds.extend(detonation_area(grid, a, special_a))
        seeds.extend(detonation_area(grid, b, special_b))
        for special in (special_a, special_b):
            if special in BOMB_KINDS:
                seeds.extend(detonation_area(grid, a, special))
                seeds.extend(detonation_area(grid, b, special))
    else:
        rule = "single"
        origin, special = (a, special_a) if special_a is not None else (b, special_b)
        seeds = detonation_area(grid, origin, special)

    accumulated, detonated = propagate_chain(grid, seeds, processed={a, b})
    positions = [pos for pos in accumulated if grid.get(pos) is not None]
    swapped_specials = [pos for pos, token in ((a, token_a), (b, token_b)) if token.special is not None]
    return ComboOutcome(rule=rule, positions=positions, detonated=swapped_specials + detonated)
