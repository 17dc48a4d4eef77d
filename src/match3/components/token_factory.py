import random
from dataclasses import dataclass, field
from typing import List, Optional

from match3.components.token import SpecialKind, Token


@dataclass(slots=True)
class TokenFactory:
    """Token palette and identity counter stored on a single entity.

    Every token the engine creates (initial generation, refill, special
    placement) is minted here so ids stay unique for the lifetime of a world.
    """
    kinds: List[str] = field(default_factory=list)
    next_id: int = 1

    def __post_init__(self) -> None:
        # Preserve order while dropping duplicates and blanks.
        seen: set[str] = set()
        filtered: List[str] = []
        for name in self.kinds:
            if name and name not in seen:
                filtered.append(name)
                seen.add(name)
        if not filtered:
            raise ValueError("TokenFactory requires at least one token kind")
        self.kinds = filtered

    def palette(self) -> List[str]:
        return list(self.kinds)

    def has_kind(self, kind: str) -> bool:
        return kind in self.kinds

    def create(self, kind: str, special: Optional[SpecialKind] = None) -> Token:
        token = Token(id=self.next_id, kind=kind, special=special)
        self.next_id += 1
        return token

    def random_kind(self, rng: random.Random) -> str:
        return rng.choice(self.kinds)

    def random_token(self, rng: random.Random) -> Token:
        return self.create(self.random_kind(rng))
