"""Cascade driver: validate an action, resolve it on a working copy, commit.

Every public action runs synchronously to a stable, playable grid. Rejected
actions never touch the authoritative grid; accepted ones overwrite it cell by
cell only after resolution and the playability check have finished.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from esper import World

from match3.components.engine_config import EngineConfig
from match3.components.grid import Grid, Position, is_adjacent
from match3.components.match_group import MatchGroup
from match3.components.resolution import (
    CascadeStep,
    CreatedSpecial,
    FailureReason,
    Frame,
    FramePhase,
    REJECTION_PHASES,
    ResolutionPhase,
    ResolutionResult,
)
from match3.events.bus import (
    EventBus,
    EVENT_SWAP_REQUEST,
    EVENT_FREE_SWAP_REQUEST,
    EVENT_POINT_BLANK_REQUEST,
    EVENT_SWAP_INVALID,
    EVENT_COMBO_TRIGGERED,
    EVENT_MATCH_FOUND,
    EVENT_SPECIAL_CREATED,
    EVENT_MATCH_CLEARED,
    EVENT_CASCADE_STEP,
    EVENT_CASCADE_COMPLETE,
    EVENT_BOARD_RESHUFFLED,
    EVENT_BOARD_CHANGED,
)
from match3.systems.board_ops import (
    collapse_columns,
    get_board_grid,
    get_engine_config,
    get_token_factory,
    refill_empty_cells,
    remove_positions,
    world_random,
)
from match3.systems.combos import resolve_combo
from match3.systems.engine_state_utils import get_or_create_engine_state
from match3.systems.match_detection import find_match_groups
from match3.systems.playability import ensure_playable
from match3.systems.special_effects import clear_match_groups, detonate_at

logger = logging.getLogger(__name__)

ACTION_SWAP = "swap"
ACTION_FREE_SWAP = "free_swap"
ACTION_POINT_BLANK = "point_blank"


class CascadeSystem:
    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_SWAP_REQUEST, self.on_swap_request)
        self.event_bus.subscribe(EVENT_FREE_SWAP_REQUEST, self.on_free_swap_request)
        self.event_bus.subscribe(EVENT_POINT_BLANK_REQUEST, self.on_point_blank_request)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------
    def on_swap_request(self, sender, **kwargs):
        src = kwargs.get('src')
        dst = kwargs.get('dst')
        if src is None or dst is None:
            return
        self.attempt_swap(src, dst)

    def on_free_swap_request(self, sender, **kwargs):
        src = kwargs.get('src')
        dst = kwargs.get('dst')
        if src is None or dst is None:
            return
        self.force_swap(src, dst)

    def on_point_blank_request(self, sender, **kwargs):
        target = kwargs.get('target')
        if target is None:
            return
        self.point_blank(target)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def attempt_swap(self, a: Sequence[int], b: Sequence[int]) -> ResolutionResult:
        """Ordinary player swap; must produce a match or a combo."""
        return self._resolve_swap(tuple(a), tuple(b), action=ACTION_SWAP, require_match=True)

    def force_swap(self, a: Sequence[int], b: Sequence[int]) -> ResolutionResult:
        """Free-swap booster: the swap stands even without a match."""
        return self._resolve_swap(tuple(a), tuple(b), action=ACTION_FREE_SWAP, require_match=False)

    def point_blank(self, target: Sequence[int]) -> ResolutionResult:
        """Point-blank destroy booster: detonate or remove the token at ``target``."""
        target = tuple(target)
        state = get_or_create_engine_state(self.world)
        state.begin(ACTION_POINT_BLANK)
        grid = get_board_grid(self.world)
        if not grid.in_bounds(target):
            return self._reject(ACTION_POINT_BLANK, FailureReason.OUT_OF_BOUNDS, target, None)
        token = grid.get(target)
        if token is None:
            return self._reject(ACTION_POINT_BLANK, FailureReason.NO_MATCH, target, None)

        working = grid.copy()
        result = ResolutionResult(valid=True)
        state.enter(ResolutionPhase.RESOLVING)
        positions, detonated = detonate_at(working, target)
        phase = FramePhase.SPECIAL_DETONATION if token.is_special else FramePhase.MATCH_REVEAL
        self._apply_wave(working, result, 1, positions, combo=False, phase=phase, detonated=detonated)
        logger.debug("Point-blank at %s removed %d cell(s), %d detonation(s)", target, len(positions), len(detonated))
        groups = find_match_groups(working, include_blocks=self._config().include_block_matches)
        self._cascade(working, result, groups, depth=1, swap=None)
        return self._commit(working, result, ACTION_POINT_BLANK)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    def _resolve_swap(self, a: Position, b: Position, *, action: str, require_match: bool) -> ResolutionResult:
        state = get_or_create_engine_state(self.world)
        state.begin(action)
        grid = get_board_grid(self.world)
        if not (grid.in_bounds(a) and grid.in_bounds(b)):
            return self._reject(action, FailureReason.OUT_OF_BOUNDS, a, b)
        if not is_adjacent(a, b):
            return self._reject(action, FailureReason.NOT_ADJACENT, a, b)

        config = self._config()
        working = grid.copy()
        working.swap(a, b)
        result = ResolutionResult(valid=True)
        depth = 0

        combo = resolve_combo(working, a, b)
        combo_fired = combo is not None and combo.effective
        if combo_fired:
            state.enter(ResolutionPhase.RESOLVING)
            depth = 1
            self.event_bus.emit(EVENT_COMBO_TRIGGERED, src=a, dst=b, rule=combo.rule, positions=list(combo.positions))
            self._apply_wave(
                working, result, depth, combo.positions,
                combo=True, phase=FramePhase.SPECIAL_DETONATION, detonated=combo.detonated,
            )
            logger.debug("Combo %s at %s/%s removed %d cell(s)", combo.rule, a, b, len(combo.positions))

        groups = find_match_groups(working, include_blocks=config.include_block_matches)
        if not groups and not combo_fired and require_match:
            return self._reject(action, FailureReason.NO_MATCH, a, b)
        if not combo_fired:
            state.enter(ResolutionPhase.RESOLVING)
        self._cascade(working, result, groups, depth=depth, swap=None if combo_fired else (a, b))
        return self._commit(working, result, action)

    def _cascade(
        self,
        working: Grid,
        result: ResolutionResult,
        groups: List[MatchGroup],
        *,
        depth: int,
        swap: Optional[Tuple[Position, Position]],
    ) -> int:
        config = self._config()
        factory = get_token_factory(self.world)
        state = get_or_create_engine_state(self.world)
        while groups:
            depth += 1
            state.cascade_depth = depth
            flat_positions = sorted({pos for group in groups for pos in group.positions})
            self.event_bus.emit(EVENT_MATCH_FOUND, depth=depth, groups=list(groups), positions=flat_positions)
            before = working.copy()
            # The swap only drives placement for the wave it produced.
            outcome = clear_match_groups(working, groups, factory, swap=swap)
            swap = None
            if config.capture_frames:
                phase = FramePhase.SPECIAL_DETONATION if outcome.detonated else FramePhase.MATCH_REVEAL
                result.frames.append(Frame(phase, before, tuple(outcome.removed)))
            step = CascadeStep(
                index=depth,
                removed=outcome.removed,
                score=self._score(len(outcome.removed), depth, combo=False),
                created=outcome.created,
                detonated=list(outcome.detonated),
            )
            self._settle(working, result)
            result.add_step(step)
            self._emit_step(step, before, outcome.created)
            logger.debug(
                "Cascade step %d: %d group(s), %d removed, %d special(s) created",
                depth, len(groups), len(outcome.removed), len(outcome.created),
            )
            groups = find_match_groups(working, include_blocks=config.include_block_matches)
        state.enter(ResolutionPhase.STABILIZING)
        return depth

    def _apply_wave(
        self,
        working: Grid,
        result: ResolutionResult,
        depth: int,
        positions: List[Position],
        *,
        combo: bool,
        phase: FramePhase,
        detonated: Sequence[Position] = (),
    ) -> None:
        """Clear an externally computed removal set (combo or booster) as one step."""
        state = get_or_create_engine_state(self.world)
        state.cascade_depth = depth
        before = working.copy()
        removed = [pos for pos in positions if working.get(pos) is not None]
        remove_positions(working, removed)
        if self._config().capture_frames:
            result.frames.append(Frame(phase, before, tuple(removed)))
        step = CascadeStep(
            index=depth,
            removed=removed,
            score=self._score(len(removed), depth, combo=combo),
            combo=combo,
            detonated=list(detonated),
        )
        self._settle(working, result)
        result.add_step(step)
        self._emit_step(step, before, [])

    def _settle(self, working: Grid, result: ResolutionResult) -> None:
        collapse_columns(working)
        refill_empty_cells(working, get_token_factory(self.world), world_random(self.world))
        if self._config().capture_frames:
            result.frames.append(Frame(FramePhase.POST_COLLAPSE, working.copy()))

    def _commit(self, working: Grid, result: ResolutionResult, action: str) -> ResolutionResult:
        config = self._config()
        state = get_or_create_engine_state(self.world)
        state.enter(ResolutionPhase.PLAYABILITY_CHECK)
        final, changed = ensure_playable(
            working,
            get_token_factory(self.world),
            world_random(self.world),
            max_shuffles=config.max_shuffle_attempts,
            max_generation_attempts=config.max_generation_attempts,
            include_blocks=config.include_block_matches,
        )
        result.reshuffled = changed
        if changed:
            self.event_bus.emit(EVENT_BOARD_RESHUFFLED, action=action)
        if config.capture_frames:
            result.frames.append(Frame(FramePhase.FINAL, final.copy()))
        get_board_grid(self.world).overwrite_from(final)
        state.enter(ResolutionPhase.COMMITTED)
        state.last_result = result
        self.event_bus.emit(EVENT_CASCADE_COMPLETE, action=action, result=result)
        self.event_bus.emit(EVENT_BOARD_CHANGED, reason=action)
        return result

    def _reject(
        self,
        action: str,
        reason: FailureReason,
        src: Position,
        dst: Optional[Position],
    ) -> ResolutionResult:
        state = get_or_create_engine_state(self.world)
        state.enter(REJECTION_PHASES[reason])
        result = ResolutionResult.rejected(reason)
        state.last_result = result
        logger.debug("Rejected %s %s/%s: %s", action, src, dst, reason.value)
        self.event_bus.emit(EVENT_SWAP_INVALID, action=action, src=src, dst=dst, reason=reason)
        return result

    def _emit_step(self, step: CascadeStep, before: Grid, created: List[CreatedSpecial]) -> None:
        for special in created:
            self.event_bus.emit(EVENT_SPECIAL_CREATED, depth=step.index, special=special)
        kinds = [(row, col, before.kind_at((row, col))) for row, col in step.removed]
        self.event_bus.emit(EVENT_MATCH_CLEARED, depth=step.index, positions=list(step.removed), kinds=kinds)
        self.event_bus.emit(EVENT_CASCADE_STEP, step=step)

    def _score(self, removed_count: int, depth: int, *, combo: bool) -> int:
        config = self._config()
        score = removed_count * config.base_score * depth
        if combo:
            score *= config.combo_multiplier
        return int(round(score))

    def _config(self) -> EngineConfig:
        return get_engine_config(self.world)
