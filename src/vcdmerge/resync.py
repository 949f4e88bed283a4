"""
Reset Resynchronizer
====================
Finds the reset transition of every trace and derives the per-file time
offsets that put all of those transitions on the same merged timestamp.

File 0 is the reference: offset[i] = anchor[0] - anchor[i].
"""

from __future__ import annotations
import logging
from typing import List, Optional, Sequence

import numpy as np

from vcdmerge.anchors import AnchorPolicy, DEFAULT_POLICY
from vcdmerge.core import Document, VariableDeclaration
from vcdmerge.errors import NoResetTransition, ResetSignalNotFound

logger = logging.getLogger(__name__)


def find_reset_variables(document: Document, reset_signal: str) -> List[VariableDeclaration]:
    """
    All declarations of the reset signal. A bare name matches declaration leaf
    names, a dotted name matches qualified names.
    """
    return [
        var for var in document.variables
        if var.name == reset_signal or var.qualified_name == reset_signal
    ]


class Resynchronizer:
    """Locates anchors with an AnchorPolicy and turns them into offsets."""

    def __init__(self, reset_signal: str, policy: Optional[AnchorPolicy] = None):
        self.reset_signal = reset_signal
        self.policy = policy or DEFAULT_POLICY

    def anchor(self, document: Document, file_index: int) -> int:
        """Anchor timestamp of one file, in that file's own time units."""
        variables = find_reset_variables(document, self.reset_signal)
        if not variables:
            raise ResetSignalNotFound(
                f"Reset signal '{self.reset_signal}' is not declared", file_index=file_index)

        identifiers = {var.identifier for var in variables}
        # $dumpoff placeholders are a paused dump, never a reset transition
        changes = document.iter_changes(identifiers, paused=False)
        anchor = self.policy.find_anchor(changes, document.initial_time)
        if anchor is None:
            raise NoResetTransition(
                f"Reset signal '{self.reset_signal}' has no qualifying transition "
                f"(policy {self.policy.name})", file_index=file_index)

        logger.info("file %d: reset '%s' anchor at #%d", file_index, self.reset_signal, anchor)
        return anchor

    @staticmethod
    def offsets(anchors: Sequence[int]) -> np.ndarray:
        anchors = np.asarray(anchors, dtype=np.int64)
        if anchors.size == 0:
            return anchors
        return anchors[0] - anchors

    def align(self, documents: Sequence[Document]) -> np.ndarray:
        """Offsets for every document, scanning them in order."""
        return self.offsets([self.anchor(doc, i) for i, doc in enumerate(documents)])
