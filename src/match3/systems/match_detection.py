"""Match detector: straight runs and 2x2 blocks, grouped by shared cells.

Discovery order is row runs (row-major), then column runs (column-major),
then 2x2 windows (row-major). Overlapping candidates are merged with a
union-find whose roots are always the earliest candidate, so group order and
each group's position order follow discovery order.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from match3.components.grid import Grid, Position
from match3.components.match_group import MatchGroup, Orientation
from match3.constants import MIN_RUN_LENGTH


@dataclass(slots=True)
class _Candidate:
    kind: str
    orientation: Orientation
    positions: List[Position]


def _row_runs(grid: Grid) -> List[_Candidate]:
    found: List[_Candidate] = []
    for r in range(grid.rows):
        run: List[Position] = []
        last_kind = None
        for c in range(grid.cols):
            kind = grid.kind_at((r, c))
            if kind is not None and kind == last_kind:
                run.append((r, c))
            else:
                if len(run) >= MIN_RUN_LENGTH:
                    found.append(_Candidate(last_kind, Orientation.HORIZONTAL, run))
                run = [(r, c)] if kind is not None else []
                last_kind = kind
        if len(run) >= MIN_RUN_LENGTH:
            found.append(_Candidate(last_kind, Orientation.HORIZONTAL, run))
    return found


def _column_runs(grid: Grid) -> List[_Candidate]:
    found: List[_Candidate] = []
    for c in range(grid.cols):
        run: List[Position] = []
        last_kind = None
        for r in range(grid.rows):
            kind = grid.kind_at((r, c))
            if kind is not None and kind == last_kind:
                run.append((r, c))
            else:
                if len(run) >= MIN_RUN_LENGTH:
                    found.append(_Candidate(last_kind, Orientation.VERTICAL, run))
                run = [(r, c)] if kind is not None else []
                last_kind = kind
        if len(run) >= MIN_RUN_LENGTH:
            found.append(_Candidate(last_kind, Orientation.VERTICAL, run))
    return found


def _square_blocks(grid: Grid) -> List[_Candidate]:
    found: List[_Candidate] = []
    for r in range(grid.rows - 1):
        for c in range(grid.cols - 1):
            window = [(r, c), (r, c + 1), (r + 1, c), (r + 1, c + 1)]
            kind = grid.kind_at(window[0])
            if kind is None:
                continue
            if all(grid.kind_at(pos) == kind for pos in window[1:]):
                found.append(_Candidate(kind, Orientation.SQUARE, window))
    return found


def find_match_groups(grid: Grid, *, include_blocks: bool = True) -> List[MatchGroup]:
    candidates = _row_runs(grid) + _column_runs(grid)
    if include_blocks:
        candidates += _square_blocks(grid)
    if not candidates:
        return []

    parent = list(range(len(candidates)))

    def find(i: int) -> int:
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    def union(i: int, j: int) -> None:
        ri, rj = find(i), find(j)
        if ri == rj:
            return
        # Keep the earliest-discovered candidate as root.
        if ri < rj:
            parent[rj] = ri
        else:
            parent[ri] = rj

    owner: Dict[Position, int] = {}
    for index, candidate in enumerate(candidates):
        for pos in candidate.positions:
            if pos in owner:
                union(index, owner[pos])
            else:
                owner[pos] = index

    members: Dict[int, List[int]] = {}
    for index in range(len(candidates)):
        members.setdefault(find(index), []).append(index)

    groups: List[MatchGroup] = []
    for root in sorted(members):
        parts = [candidates[i] for i in members[root]]
        positions = list(dict.fromkeys(pos for part in parts for pos in part.positions))
        orientations = {part.orientation for part in parts}
        orientation = orientations.pop() if len(orientations) == 1 else Orientation.MIXED
        groups.append(MatchGroup(kind=parts[0].kind, orientation=orientation, positions=tuple(positions)))
    return groups


def has_match(grid: Grid, *, include_blocks: bool = True) -> bool:
    return bool(find_match_groups(grid, include_blocks=include_blocks))
