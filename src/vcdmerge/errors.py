"""
VcdMerge Errors
===============
Every failure of a merge is one of these. They carry the input file index
and, where it applies, the 1-based line number, so the caller can print a
precise diagnostic.

Stream failures are not wrapped: the stream's own OSError reaches the caller.
"""


class MergeError(Exception):
    """Base class for all merge failures."""

    def __init__(self, message, file_index=None, line=None):
        super().__init__(message)
        self.message = message
        self.file_index = file_index
        self.line = line

    def __str__(self):
        where = []
        if self.file_index is not None:
            where.append(f"file {self.file_index}")
        if self.line is not None:
            where.append(f"line {self.line}")
        if where:
            return f"{', '.join(where)}: {self.message}"
        return self.message


class ParseError(MergeError):
    """Malformed header, unterminated block, unknown identifier or bad time marker."""


class NamespaceError(MergeError):
    """Two declarations of one file share an identifier."""


class ResetSignalNotFound(MergeError):
    """The configured reset signal is not declared in a file."""


class NoResetTransition(MergeError):
    """The reset signal is declared but never changes value."""


class TimescaleMismatch(MergeError):
    """Input files declare different timescales."""

    def __init__(self, message, file_index=None, expected=None, found=None):
        super().__init__(message, file_index=file_index)
        self.expected = expected
        self.found = found
