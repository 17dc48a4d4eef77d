"""Result types handed to the presentation layer and external trackers."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional, Tuple

from match3.components.grid import Grid, Position
from match3.components.token import SpecialKind


class FailureReason(Enum):
    OUT_OF_BOUNDS = "out-of-bounds"
    NOT_ADJACENT = "not-adjacent"
    NO_MATCH = "no-match"


class ResolutionPhase(Enum):
    """States of the cascade driver for a single action."""
    IDLE = auto()
    VALIDATING = auto()
    RESOLVING = auto()
    STABILIZING = auto()
    PLAYABILITY_CHECK = auto()
    COMMITTED = auto()
    REJECTED_OUT_OF_BOUNDS = auto()
    REJECTED_NOT_ADJACENT = auto()
    REJECTED_NO_MATCH = auto()


REJECTION_PHASES: Dict[FailureReason, ResolutionPhase] = {
    FailureReason.OUT_OF_BOUNDS: ResolutionPhase.REJECTED_OUT_OF_BOUNDS,
    FailureReason.NOT_ADJACENT: ResolutionPhase.REJECTED_NOT_ADJACENT,
    FailureReason.NO_MATCH: ResolutionPhase.REJECTED_NO_MATCH,
}


class FramePhase(Enum):
    MATCH_REVEAL = "match-reveal"
    SPECIAL_DETONATION = "special-detonation"
    POST_COLLAPSE = "post-collapse"
    FINAL = "final"


@dataclass(frozen=True, slots=True)
class CreatedSpecial:
    position: Position
    special: SpecialKind
    kind: str


@dataclass(slots=True)
class CascadeStep:
    """Outcome of one clear -> collapse -> refill wave."""
    index: int
    removed: List[Position]
    score: int
    created: List[CreatedSpecial] = field(default_factory=list)
    combo: bool = False
    # Origins of specials that went off during this wave.
    detonated: List[Position] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Frame:
    """Read-only grid snapshot for animation sequencing."""
    phase: FramePhase
    grid: Grid
    removed: Tuple[Position, ...] = ()


@dataclass(slots=True)
class ResolutionResult:
    valid: bool
    reason: Optional[FailureReason] = None
    steps: List[CascadeStep] = field(default_factory=list)
    frames: List[Frame] = field(default_factory=list)
    total_removed: int = 0
    total_score: int = 0
    reshuffled: bool = False

    @classmethod
    def rejected(cls, reason: FailureReason) -> ResolutionResult:
        return cls(valid=False, reason=reason)

    def add_step(self, step: CascadeStep) -> None:
        self.steps.append(step)
        self.total_removed += len(step.removed)
        self.total_score += step.score

    @property
    def cascade_count(self) -> int:
        return len(self.steps)

    def removed_positions(self) -> List[Position]:
        """Every removed position across all steps, in step order, duplicates kept."""
        return [pos for step in self.steps for pos in step.removed]

    def removal_counts(self) -> Dict[Position, int]:
        """Per-position removal counts for layered-obstacle trackers."""
        return dict(Counter(self.removed_positions()))

    def created_specials(self) -> List[CreatedSpecial]:
        return [special for step in self.steps for special in step.created]
