import datetime
import logging

from vcdmerge.core import ITEM_SCOPE, ITEM_VAR, ScopeTree

logger = logging.getLogger(__name__)

VERSION_TEXT = "vcdmerge"
ROOT_SCOPE_KIND = "module"


def change_line(identifier, value):
    """'1!' for scalars, 'b1010 !' / 'r0.5 !' for vectors and reals."""
    if len(value) == 1:
        return f"{value}{identifier}"
    return f"{value} {identifier}"


class VcdWriter:
    """
    Serializes a merged trace.

    Every input trace is written under its own root `$scope module <root>`,
    with remapped identifiers and renamed leaves. The first change group, when
    it sits at #0, is written as the `$dumpvars` block.
    """

    def __init__(self, namespace, groups, timescale, offsets=None, date=None):
        self.namespace = namespace
        self.groups = groups
        self.timescale = timescale
        self.offsets = offsets
        self.date = date

    def write(self, f):
        self._write_header(f)
        for doc, table in zip(self.namespace.documents, self.namespace.tables):
            f.write(f"$scope {ROOT_SCOPE_KIND} {table.root} $end\n")
            self._write_scope(f, doc, table, ScopeTree.ROOT)
            f.write("$upscope $end\n")
        f.write("$enddefinitions $end\n")
        self._write_changes(f)
        logger.debug("wrote %d change groups", len(self.groups))

    def _write_header(self, f):
        date_str = self.date or datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        f.write(f"$date\n  {date_str}\n$end\n")
        f.write(f"$version\n  {VERSION_TEXT}\n$end\n")
        if self.offsets is not None:
            f.write("$comment\n")
            for table, offset in zip(self.namespace.tables, self.offsets):
                f.write(f"  {table.root} offset {int(offset)}\n")
            f.write("$end\n")
        f.write(f"$timescale\n  {self.timescale}\n$end\n")

    def _write_scope(self, f, doc, table, index):
        for kind, item in doc.scopes[index].items:
            if kind == ITEM_SCOPE:
                scope = doc.scopes[item]
                f.write(f"$scope {scope.kind} {scope.name} $end\n")
                self._write_scope(f, doc, table, item)
                f.write("$upscope $end\n")
            elif kind == ITEM_VAR:
                var = doc.variables[item]
                if var.identifier in table.dropped:
                    continue
                ident = table.identifiers[var.identifier]
                name = table.leaf_names[item]
                if var.bit_range:
                    name = f"{name} {var.bit_range}"
                f.write(f"$var {var.var_type} {var.width} {ident} {name} $end\n")

    def _write_changes(self, f):
        groups = self.groups
        if groups and groups[0].time == 0:
            f.write("#0\n$dumpvars\n")
            for ident, value in groups[0].changes:
                f.write(change_line(ident, value) + "\n")
            f.write("$end\n")
            groups = groups[1:]

        for group in groups:
            f.write(f"#{group.time}\n")
            for ident, value in group.changes:
                f.write(change_line(ident, value) + "\n")
