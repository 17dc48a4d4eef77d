from dataclasses import dataclass, field
from typing import Tuple

from match3.constants import (
    BASE_MATCH_SCORE,
    COMBO_SCORE_MULTIPLIER,
    MAX_GENERATION_ATTEMPTS,
    MAX_SHUFFLE_ATTEMPTS,
    TOKEN_KINDS,
)


@dataclass(slots=True)
class EngineConfig:
    """Tunables for resolution, scoring and playability repair.

    Lives on a singleton entity; systems read it through ``get_engine_config``.
    """
    kinds: Tuple[str, ...] = field(default=TOKEN_KINDS)
    base_score: int = BASE_MATCH_SCORE
    combo_multiplier: float = COMBO_SCORE_MULTIPLIER
    max_shuffle_attempts: int = MAX_SHUFFLE_ATTEMPTS
    max_generation_attempts: int = MAX_GENERATION_ATTEMPTS
    include_block_matches: bool = True
    capture_frames: bool = True

    def __post_init__(self) -> None:
        self.kinds = tuple(self.kinds)
        if len(set(self.kinds)) < 3:
            raise ValueError("EngineConfig needs at least three distinct token kinds")
        if self.base_score <= 0:
            raise ValueError(f"base_score must be positive, got {self.base_score}")
        if self.combo_multiplier <= 1:
            raise ValueError(f"combo_multiplier must be greater than 1, got {self.combo_multiplier}")
        if self.max_shuffle_attempts < 0:
            raise ValueError("max_shuffle_attempts cannot be negative")
        if self.max_generation_attempts <= 0:
            raise ValueError("max_generation_attempts must be positive")
