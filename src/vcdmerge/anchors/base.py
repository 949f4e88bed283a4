from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Tuple

# (time, identifier, value) for one change on the reset signal
ResetChange = Tuple[int, str, str]


def _extension(bit: str) -> str:
    # VCD left-extends a vector with 0 after a leading 0/1, else with the bit itself
    return "0" if bit in "01" else bit


def canonical_value(value: str) -> str:
    """
    Spelling-independent form of a value, so that 'b0001' and 'b1' compare
    equal (likewise 'bxx1' and 'bx1'). Leading bits are only dropped when
    left-extension restores them: 'b0x' stays 'b0x', since 'bx' is all x.
    Scalars are returned unchanged.
    """
    if len(value) > 1 and value[0] == "b":
        bits = value[1:].lower()
        fill = _extension(bits[0])
        rest = bits.lstrip(fill)
        if not rest:
            return "b" + fill
        if _extension(rest[0]) != fill:
            rest = fill + rest
        return "b" + rest
    return value


def logic_level(value: str) -> str:
    """
    Collapses any value to a single logic level '0', '1', 'x' or 'z'.
    A vector is '0' when all bits are 0, '1' when it is non-zero and fully
    known, 'z' when all bits float, and 'x' otherwise.
    """
    if len(value) == 1:
        return value
    sigil, body = value[0], value[1:]
    if sigil == "r":
        try:
            return "0" if float(body) == 0.0 else "1"
        except ValueError:
            return "x"
    bits = set(body)
    if bits <= {"0"}:
        return "0"
    if bits <= {"0", "1"}:
        return "1"
    if bits <= {"z", "Z"}:
        return "z"
    return "x"


class AnchorPolicy(ABC):
    """
    Decides which change of the reset signal is the alignment anchor of a file.

    Policies see only the reset signal's changes, in trace order, and return
    the anchor timestamp or None when the trace has no qualifying transition.
    `start` is the timestamp of the trace's initial values (its first
    `$dumpvars`). Policies hold no per-file state, so one instance can scan
    many files.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Returns the policy name (e.g., 'first-change', 'rise')."""
        ...

    @abstractmethod
    def find_anchor(self, changes: Iterable[ResetChange], start: int = 0) -> Optional[int]:
        """Return the anchor timestamp, or None if no change qualifies."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name})"
