from dataclasses import dataclass

@dataclass(slots=True)
class Board:
    """Tags the entity whose Grid component is the authoritative board."""
    rows: int
    cols: int
