from __future__ import annotations
from typing import Iterator, List, Optional, Set, Tuple
import numpy as np

# --- Timescale units, smallest first ---
TIME_UNITS = ("fs", "ps", "ns", "us", "ms", "s")
TIME_MAGNITUDES = (1, 10, 100)

# --- Scope item kinds ---
ITEM_SCOPE = "scope"
ITEM_VAR = "var"


class Timescale:
    """`$timescale` value: magnitude (1, 10 or 100) and unit."""

    __slots__ = ("magnitude", "unit")

    def __init__(self, magnitude: int, unit: str):
        self.magnitude = magnitude
        self.unit = unit

    @classmethod
    def parse(cls, text: str) -> "Timescale":
        """
        Accepts both spellings found in the wild: '1ns' and '1 ns'.
        Raises ValueError on anything else.
        """
        compact = "".join(text.split())
        digits = ""
        while compact and compact[0].isdigit():
            digits += compact[0]
            compact = compact[1:]
        if not digits:
            raise ValueError(f"Timescale '{text}' has no magnitude")
        magnitude = int(digits)
        if magnitude not in TIME_MAGNITUDES:
            raise ValueError(f"Timescale magnitude {magnitude} not one of {TIME_MAGNITUDES}")
        if compact not in TIME_UNITS:
            raise ValueError(f"Timescale unit '{compact}' not one of {TIME_UNITS}")
        return cls(magnitude, compact)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Timescale):
            return NotImplemented
        return self.magnitude == other.magnitude and self.unit == other.unit

    def __hash__(self) -> int:
        return hash((self.magnitude, self.unit))

    def __str__(self) -> str:
        return f"{self.magnitude} {self.unit}"

    def __repr__(self) -> str:
        return f"Timescale({self.magnitude}, '{self.unit}')"


class Scope:
    """
    One node of a ScopeTree.

    `items` keeps declaration order: (ITEM_SCOPE, scope index) or
    (ITEM_VAR, variable index) tuples.
    """

    __slots__ = ("name", "kind", "parent", "items")

    def __init__(self, name: Optional[str], kind: Optional[str], parent: Optional[int]):
        self.name = name
        self.kind = kind
        self.parent = parent
        self.items: List[Tuple[str, int]] = []

    @property
    def children(self) -> List[int]:
        return [i for k, i in self.items if k == ITEM_SCOPE]

    @property
    def variables(self) -> List[int]:
        return [i for k, i in self.items if k == ITEM_VAR]

    def __repr__(self) -> str:
        return f"Scope({self.kind} {self.name}, parent={self.parent}, items={len(self.items)})"


class ScopeTree:
    """
    Arena of Scope nodes linked by index.

    Invariants:
    - Node 0 is the unnamed document root; it holds top-level scopes and any
      variable declared outside a `$scope`.
    - A node's parent index is always smaller than its own index.
    """

    ROOT = 0

    def __init__(self):
        self.nodes: List[Scope] = [Scope(None, None, None)]

    def add(self, name: str, kind: str, parent: int) -> int:
        index = len(self.nodes)
        self.nodes.append(Scope(name, kind, parent))
        self.nodes[parent].items.append((ITEM_SCOPE, index))
        return index

    def attach_variable(self, scope: int, var_index: int) -> None:
        self.nodes[scope].items.append((ITEM_VAR, var_index))

    def path(self, index: int) -> Tuple[str, ...]:
        """Scope names from the top-level scope down to `index` (root excluded)."""
        names = []
        while index is not None and index != self.ROOT:
            node = self.nodes[index]
            names.append(node.name)
            index = node.parent
        return tuple(reversed(names))

    def __getitem__(self, index: int) -> Scope:
        return self.nodes[index]

    def __len__(self) -> int:
        return len(self.nodes)


class VariableDeclaration:
    """A `$var` declaration. `identifier` is unique only within its own document."""

    __slots__ = ("var_type", "width", "identifier", "name", "bit_range", "scope", "path")

    def __init__(
        self,
        var_type: str,
        width: int,
        identifier: str,
        name: str,
        bit_range: Optional[str] = None,
        scope: int = ScopeTree.ROOT,
        path: Tuple[str, ...] = (),
    ):
        self.var_type = var_type
        self.width = width
        self.identifier = identifier
        self.name = name
        self.bit_range = bit_range
        self.scope = scope
        self.path = path

    @property
    def qualified_name(self) -> str:
        return ".".join(self.path + (self.name,))

    def __repr__(self) -> str:
        return f"VariableDeclaration({self.var_type} {self.width} {self.identifier} {self.qualified_name})"


class ChangeGroup:
    """
    Value changes recorded at one timestamp.

    `changes` is an ordered list of (identifier, value) pairs. Values keep
    their VCD spelling: scalars are one of '0', '1', 'x', 'z'; vectors and
    reals keep their sigil ('b0101', 'r1.5').

    `paused` holds the positions in `changes` that were written inside a
    `$dumpoff` block: the placeholder values of a paused dump, not real
    activity.
    """

    __slots__ = ("time", "changes", "paused")

    def __init__(self, time: int, changes: Optional[List[Tuple[str, str]]] = None):
        self.time = time
        self.changes = changes if changes is not None else []
        self.paused: Set[int] = set()

    def __eq__(self, other) -> bool:
        if not isinstance(other, ChangeGroup):
            return NotImplemented
        return self.time == other.time and self.changes == other.changes

    def __repr__(self) -> str:
        return f"ChangeGroup(#{self.time}, {self.changes})"


class Document:
    """
    One parsed VCD file.

    Invariants:
    - `groups` timestamps are strictly increasing (one group per timestamp).
    - Every identifier referenced by `groups` is declared in `variables`.

    `dumpvars_time` is the timestamp of the first `$dumpvars` block, which
    need not be #0 when the dump was switched on late.
    """

    __slots__ = ("timescale", "date", "version", "scopes", "variables", "groups",
                 "dumpvars_time")

    def __init__(self, timescale: Optional[Timescale] = None, date: Optional[str] = None,
                 version: Optional[str] = None):
        self.timescale = timescale
        self.date = date
        self.version = version
        self.scopes = ScopeTree()
        self.variables: List[VariableDeclaration] = []
        self.groups: List[ChangeGroup] = []
        self.dumpvars_time: Optional[int] = None

    @property
    def initial_time(self) -> int:
        """Timestamp whose values are the trace's initial state."""
        if self.dumpvars_time is not None:
            return self.dumpvars_time
        return self.groups[0].time if self.groups else 0

    def declare(self, var: VariableDeclaration) -> int:
        index = len(self.variables)
        self.variables.append(var)
        self.scopes.attach_variable(var.scope, index)
        return index

    def iter_changes(self, identifiers, paused: bool = True) -> Iterator[Tuple[int, str, str]]:
        """
        Yields (time, identifier, value) for every change on `identifiers`, in
        order. With paused=False the `$dumpoff` placeholders are left out.
        """
        wanted = set(identifiers)
        for group in self.groups:
            for pos, (ident, value) in enumerate(group.changes):
                if ident in wanted and (paused or pos not in group.paused):
                    yield group.time, ident, value

    def times(self) -> np.ndarray:
        """Group timestamps as an int64 column."""
        return np.fromiter((g.time for g in self.groups), dtype=np.int64, count=len(self.groups))

    def __repr__(self) -> str:
        return (f"Document(timescale={self.timescale}, vars={len(self.variables)}, "
                f"scopes={len(self.scopes) - 1}, groups={len(self.groups)})")
