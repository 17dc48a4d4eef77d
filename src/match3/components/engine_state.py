from dataclasses import dataclass, field
from typing import List, Optional

from match3.components.resolution import ResolutionPhase, ResolutionResult


@dataclass(slots=True)
class EngineState:
    """Tracks the cascade driver's state shared across systems."""

    phase: ResolutionPhase = ResolutionPhase.IDLE
    action: Optional[str] = None
    cascade_depth: int = 0
    history: List[ResolutionPhase] = field(default_factory=list)
    last_result: Optional[ResolutionResult] = None

    def enter(self, phase: ResolutionPhase) -> None:
        self.phase = phase
        self.history.append(phase)

    def begin(self, action: str) -> None:
        self.action = action
        self.cascade_depth = 0
        self.history = []
        self.enter(ResolutionPhase.VALIDATING)
