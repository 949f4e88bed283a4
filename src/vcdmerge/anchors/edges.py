from __future__ import annotations
from typing import Dict, Iterable, List, Optional

from .base import AnchorPolicy, ResetChange, logic_level

DIRECTIONS = {"rise": "1", "fall": "0"}


class EdgeAnchor(AnchorPolicy):
    """
    Anchor on the Nth rising or falling edge of the reset signal.

    An edge is a change to level '1' (rise) or '0' (fall) from any other
    level. The first value an identifier receives is its initial state and
    never counts as an edge.

    `occurrence` is 1-based; negative values count from the end, so
    EdgeAnchor("rise", -1) anchors on the last release of an active-low reset.
    """

    def __init__(self, direction: str = "rise", occurrence: int = 1):
        if direction not in DIRECTIONS:
            raise ValueError(f"Edge direction must be one of {sorted(DIRECTIONS)}, got '{direction}'")
        if occurrence == 0:
            raise ValueError("Edge occurrence is 1-based (or negative from the end), got 0")
        self.direction = direction
        self.occurrence = occurrence

    @property
    def name(self) -> str:
        return self.direction

    def edges(self, changes: Iterable[ResetChange]) -> List[int]:
        target = DIRECTIONS[self.direction]
        levels: Dict[str, str] = {}
        times = []
        for time, ident, value in changes:
            level = logic_level(value)
            previous = levels.get(ident)
            levels[ident] = level
            if previous is not None and previous != target and level == target:
                times.append(time)
        return times

    def find_anchor(self, changes: Iterable[ResetChange], start: int = 0) -> Optional[int]:
        times = self.edges(changes)
        index = self.occurrence - 1 if self.occurrence > 0 else self.occurrence
        if -len(times) <= index < len(times):
            return times[index]
        return None

    def __repr__(self) -> str:
        return f"EdgeAnchor({self.direction}, occurrence={self.occurrence})"
