"""
Namespace Unifier
=================
Gives every input trace its own root scope in the merged output, renames
signals whose qualified names still collide with an earlier file, and hands
out fresh short identifiers that are unique across all files.

Identifier codes come from a fixed alphabet (printable ASCII 33..126) in
shortest-first order: '!', '"', ..., '~', '!!', '"!', ... The code for the
Nth allocation depends only on N, so output is reproducible.
"""

from __future__ import annotations
import logging
from typing import Dict, Iterator, Optional, Sequence, Set, Tuple

from vcdmerge.core import Document, VariableDeclaration
from vcdmerge.errors import NamespaceError
from vcdmerge.resync import find_reset_variables

logger = logging.getLogger(__name__)

ID_ALPHABET = "".join(chr(c) for c in range(33, 127))


def short_code(n: int) -> str:
    """Nth identifier code (0-based), bijective base-94, least significant char first."""
    if n < 0:
        raise ValueError(f"Identifier index must be non-negative, got {n}")
    base = len(ID_ALPHABET)
    chars = []
    n += 1
    while n > 0:
        n, r = divmod(n - 1, base)
        chars.append(ID_ALPHABET[r])
    return "".join(chars)


def default_root_name(file_index: int) -> str:
    return f"trace{file_index}"


class RemapTable:
    """
    Per-file renaming, built once by the unifier and read-only afterwards.

    - identifiers: original identifier -> output identifier
    - names: original qualified name -> output qualified name (root included)
    - leaf_names: variable index -> output leaf name
    - dropped: original identifiers left out of the output
    """

    __slots__ = ("file_index", "root", "identifiers", "names", "leaf_names", "dropped")

    def __init__(self, file_index: int, root: str):
        self.file_index = file_index
        self.root = root
        self.identifiers: Dict[str, str] = {}
        self.names: Dict[str, str] = {}
        self.leaf_names: Dict[int, str] = {}
        self.dropped: Set[str] = set()

    def renamed(self) -> Dict[str, str]:
        """Qualified names whose leaf had to change."""
        prefix = self.root + "."
        return {old: new for old, new in self.names.items() if new != prefix + old}

    def __repr__(self) -> str:
        return (f"RemapTable(file={self.file_index}, root='{self.root}', "
                f"ids={len(self.identifiers)}, renamed={len(self.renamed())})")


class UnifiedNamespace:
    """Documents spliced under their root scopes, plus the remap tables."""

    __slots__ = ("documents", "tables")

    def __init__(self, documents: Sequence[Document], tables: Sequence[RemapTable]):
        self.documents = list(documents)
        self.tables = list(tables)

    def declarations(self) -> Iterator[Tuple[int, VariableDeclaration, str, str]]:
        """Yields (file index, declaration, output qualified name, output identifier)."""
        for doc, table in zip(self.documents, self.tables):
            for var in doc.variables:
                if var.identifier in table.dropped:
                    continue
                yield (table.file_index, var, table.names[var.qualified_name],
                       table.identifiers[var.identifier])


class NamespaceUnifier:
    """
    Single-threaded barrier of the pipeline: it must see every file's names.

    `scope_names` overrides the default root names ('trace0', 'trace1', ...).
    Caller-supplied roots may repeat; clashing signals of a later file then get
    a '_f<file index>' suffix on their leaf name.
    With `dedupe_reset`, only file 0 keeps its reset signal declarations.
    """

    def __init__(self, reset_signal: Optional[str] = None,
                 scope_names: Optional[Sequence[str]] = None, dedupe_reset: bool = False):
        self.reset_signal = reset_signal
        self.scope_names = list(scope_names) if scope_names is not None else None
        self.dedupe_reset = dedupe_reset

    def root_name(self, file_index: int) -> str:
        if self.scope_names is not None:
            return self.scope_names[file_index]
        return default_root_name(file_index)

    def unify(self, documents: Sequence[Document]) -> UnifiedNamespace:
        if self.scope_names is not None and len(self.scope_names) != len(documents):
            raise ValueError(f"Got {len(self.scope_names)} scope names for {len(documents)} files")

        seen: Set[str] = set()
        next_code = 0
        tables = []

        for i, doc in enumerate(documents):
            self._check_identifiers(doc, i)
            table = RemapTable(i, self.root_name(i))

            if self.dedupe_reset and i > 0 and self.reset_signal:
                table.dropped = {v.identifier for v in find_reset_variables(doc, self.reset_signal)}

            self._rename(doc, table, seen)

            for var in doc.variables:
                if var.identifier in table.dropped:
                    continue
                table.identifiers[var.identifier] = short_code(next_code)
                next_code += 1

            seen.update(table.names[var.qualified_name] for var in doc.variables
                        if var.identifier not in table.dropped)
            tables.append(table)

        logger.debug("unified %d files, %d identifiers", len(documents), next_code)
        return UnifiedNamespace(documents, tables)

    def _check_identifiers(self, doc: Document, file_index: int) -> None:
        owners: Dict[str, VariableDeclaration] = {}
        for var in doc.variables:
            other = owners.setdefault(var.identifier, var)
            if other is not var:
                raise NamespaceError(
                    f"Identifier {var.identifier!r} declared for both "
                    f"'{other.qualified_name}' and '{var.qualified_name}'",
                    file_index=file_index)

    def _rename(self, doc: Document, table: RemapTable, seen: Set[str]) -> None:
        taken = seen | {f"{table.root}.{var.qualified_name}" for var in doc.variables}
        leaves: Dict[str, str] = {}

        for index, var in enumerate(doc.variables):
            original = var.qualified_name
            if original not in leaves:
                leaf = var.name
                if f"{table.root}.{original}" in seen:
                    leaf = self._disambiguate(table, var, taken)
                scoped = ".".join((table.root,) + var.path + (leaf,))
                if leaf != var.name:
                    taken.add(scoped)
                    logger.info("file %d: renamed '%s' to '%s'", table.file_index, original, scoped)
                table.names[original] = scoped
                leaves[original] = leaf
            table.leaf_names[index] = leaves[original]

    @staticmethod
    def _disambiguate(table: RemapTable, var: VariableDeclaration, taken: Set[str]) -> str:
        """Leaf name with a file-index suffix that no taken qualified name uses."""
        prefix = ".".join((table.root,) + var.path)
        leaf = f"{var.name}_f{table.file_index}"
        candidate = leaf
        n = 2
        while f"{prefix}.{candidate}" in taken:
            candidate = f"{leaf}_{n}"
            n += 1
        return candidate
