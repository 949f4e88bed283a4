from __future__ import annotations
from typing import Dict, Iterable, Optional

from .base import AnchorPolicy, ResetChange, canonical_value

UNKNOWN = "x"


class FirstChangeAnchor(AnchorPolicy):
    """
    Anchor on the first change whose value differs from the signal's initial value.

    Values assigned at or before `start` (the first `$dumpvars` block, at #0
    or wherever the dump was switched on) define the initial value; a signal
    not set there starts as 'x'. With several declarations of the reset
    signal each identifier is compared against its own initial value and the
    earliest qualifying change wins.
    """

    @property
    def name(self) -> str:
        return "first-change"

    def find_anchor(self, changes: Iterable[ResetChange], start: int = 0) -> Optional[int]:
        initial: Dict[str, str] = {}
        for time, ident, value in changes:
            value = canonical_value(value)
            if time <= start:
                initial[ident] = value
                continue
            if value != initial.get(ident, UNKNOWN):
                return time
        return None
