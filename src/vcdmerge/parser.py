"""
VCD Parser
==========
Reads a Value Change Dump stream into a `Document`.

Supported grammar:
- Header: `$date`, `$version`, `$timescale`, `$scope`/`$upscope`, `$var`,
  terminated by `$enddefinitions $end`. Any other `$keyword` (e.g. vendor
  `$comment` or `$attrbegin`) is skipped up to its `$end`.
- Body: `#<time>` markers, scalar changes (`1!`), vector/real changes
  (`b1010 "`, `r0.5 #`), and the `$dumpvars`/`$dumpall`/`$dumpon`/`$dumpoff`
  blocks, whose changes belong to the current time. Changes inside
  `$dumpoff` are kept but tagged in `ChangeGroup.paused`, and the time of the
  first `$dumpvars` is kept as `Document.dumpvars_time`.

Identifiers are opaque: any run of non-whitespace characters.
"""

import logging

from vcdmerge.core import Document, ChangeGroup, ScopeTree, Timescale, VariableDeclaration
from vcdmerge.errors import ParseError

logger = logging.getLogger(__name__)

SCALAR_VALUES = "01xXzZ"
VECTOR_SIGILS = "bBrR"
DUMP_BLOCKS = ("$dumpvars", "$dumpall", "$dumpon", "$dumpoff")
END = "$end"


class VcdParser:
    """
    Token-driven VCD parser. One instance parses one stream.
    `file_index` is only used to label errors.
    """

    def __init__(self, file_index=None):
        self.file_index = file_index
        self.line = 0
        self._tokens = None
        self._declared = set()
        self.doc = None

    def parse(self, stream):
        self._tokens = self._tokenize(stream)
        self._declared = set()
        self.doc = Document()

        self._parse_header()
        self._parse_body()

        logger.debug("file %s: %d variables, %d change groups",
                     self.file_index, len(self.doc.variables), len(self.doc.groups))
        return self.doc

    # ---- tokens ----

    def _tokenize(self, stream):
        for line_no, line in enumerate(stream, 1):
            if isinstance(line, bytes):
                line = line.decode("utf-8", errors="replace")
            for token in line.split():
                yield token, line_no

    def _next(self):
        """Next token, or None at end of stream."""
        item = next(self._tokens, None)
        if item is None:
            return None
        token, self.line = item
        return token

    def _block(self, keyword):
        """Collects the tokens of `keyword ... $end`."""
        tokens = []
        while True:
            token = self._next()
            if token is None:
                raise self._error(f"Unterminated {keyword} block")
            if token == END:
                return tokens
            tokens.append(token)

    def _error(self, message):
        return ParseError(message, file_index=self.file_index, line=self.line or None)

    # ---- header ----

    def _parse_header(self):
        doc = self.doc
        current = ScopeTree.ROOT

        while True:
            token = self._next()
            if token is None:
                raise self._error("Header ended without $enddefinitions")

            if token == "$enddefinitions":
                self._block(token)
                break
            elif token == "$timescale":
                text = " ".join(self._block(token))
                try:
                    doc.timescale = Timescale.parse(text)
                except ValueError as e:
                    raise self._error(str(e)) from e
            elif token == "$date":
                doc.date = " ".join(self._block(token))
            elif token == "$version":
                doc.version = " ".join(self._block(token))
            elif token == "$scope":
                parts = self._block(token)
                if len(parts) != 2:
                    raise self._error(f"Malformed $scope: {' '.join(parts)!r}")
                kind, name = parts
                current = doc.scopes.add(name, kind, current)
            elif token == "$upscope":
                self._block(token)
                if current == ScopeTree.ROOT:
                    raise self._error("$upscope without matching $scope")
                current = doc.scopes[current].parent
            elif token == "$var":
                self._parse_var(self._block(token), current)
            elif token.startswith("$"):
                # $comment and vendor extensions
                self._block(token)
            else:
                raise self._error(f"Unexpected token in header: {token!r}")

        if current != ScopeTree.ROOT:
            raise self._error(f"Scope '{doc.scopes[current].name}' not closed before $enddefinitions")
        if doc.timescale is None:
            raise self._error("Header declares no $timescale")

    def _parse_var(self, parts, scope):
        # $var wire 8 # data [7:0] $end
        if len(parts) < 4:
            raise self._error(f"Malformed $var: {' '.join(parts)!r}")
        var_type, width, identifier, name = parts[:4]
        try:
            width = int(width)
        except ValueError:
            raise self._error(f"Non-numeric $var width: {width!r}") from None
        bit_range = " ".join(parts[4:]) or None

        var = VariableDeclaration(var_type, width, identifier, name, bit_range,
                                  scope=scope, path=self.doc.scopes.path(scope))
        self.doc.declare(var)
        self._declared.add(identifier)

    # ---- body ----

    def _parse_body(self):
        time = 0
        open_block = None

        while True:
            token = self._next()
            if token is None:
                break

            head = token[0]
            if head == "#":
                time = self._parse_time(token, time)
                self._group_at(time)
            elif token in DUMP_BLOCKS:
                if open_block is not None:
                    raise self._error(f"{token} inside unterminated {open_block}")
                open_block = token
                if token == "$dumpvars" and self.doc.dumpvars_time is None:
                    self.doc.dumpvars_time = time
            elif token == END:
                if open_block is None:
                    raise self._error("$end without an open block")
                open_block = None
            elif head == "$":
                self._block(token)
            elif head in SCALAR_VALUES:
                identifier = token[1:]
                if not identifier:
                    raise self._error(f"Scalar change {token!r} has no identifier")
                self._record(time, identifier, head.lower(), open_block == "$dumpoff")
            elif head in VECTOR_SIGILS:
                if len(token) < 2:
                    raise self._error(f"Vector change {token!r} has no value")
                identifier = self._next()
                if identifier is None:
                    raise self._error(f"Vector change {token!r} has no identifier")
                self._record(time, identifier, head.lower() + token[1:], open_block == "$dumpoff")
            else:
                raise self._error(f"Unexpected token in value changes: {token!r}")

        if open_block is not None:
            raise self._error(f"Unterminated {open_block} block")

    def _parse_time(self, token, previous):
        try:
            time = int(token[1:])
        except ValueError:
            raise self._error(f"Non-numeric time marker {token!r}") from None
        if time < 0:
            raise self._error(f"Negative time marker {token!r}")
        if time < previous:
            raise self._error(f"Time marker #{time} goes back from #{previous}")
        return time

    def _group_at(self, time):
        groups = self.doc.groups
        if groups and groups[-1].time == time:
            return groups[-1]
        group = ChangeGroup(time)
        groups.append(group)
        return group

    def _record(self, time, identifier, value, paused=False):
        if identifier not in self._declared:
            raise self._error(f"Value change for undeclared identifier {identifier!r}")
        group = self._group_at(time)
        if paused:
            group.paused.add(len(group.changes))
        group.changes.append((identifier, value))


def parse_document(stream, file_index=None):
    """Parses one VCD stream (text or binary lines) into a Document."""
    return VcdParser(file_index).parse(stream)
