"""
VcdMerge Pipeline
=================
Core entry point: N readable VCD streams in, one merged VCD stream out.

    streams -> parse (parallel) -> timescale check -> namespace barrier
            -> anchor scan (parallel) -> offsets -> k-way merge -> writer

Nothing is written to `output` until every stage has succeeded, so a failed
merge leaves the output stream untouched.
"""

from __future__ import annotations
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from vcdmerge.anchors import AnchorPolicy, policy_from_name
from vcdmerge.core import Document, Timescale
from vcdmerge.errors import TimescaleMismatch
from vcdmerge.merger import merge_groups
from vcdmerge.namespace import NamespaceUnifier
from vcdmerge.parser import parse_document
from vcdmerge.resync import Resynchronizer
from vcdmerge.writer import VcdWriter

logger = logging.getLogger(__name__)


class MergeResult:
    """Summary of a successful merge."""

    __slots__ = ("timescale", "roots", "anchors", "offsets", "base", "groups_written",
                 "variables_written", "renamed")

    def __init__(self, timescale, roots, anchors, offsets, base, groups_written,
                 variables_written, renamed):
        self.timescale = timescale
        self.roots = roots
        self.anchors = anchors
        self.offsets = offsets
        self.base = base
        self.groups_written = groups_written
        self.variables_written = variables_written
        self.renamed = renamed

    def __repr__(self) -> str:
        return (f"MergeResult(files={len(self.roots)}, timescale={self.timescale}, "
                f"offsets={self.offsets}, groups={self.groups_written})")


def check_timescales(documents: Sequence[Document]) -> Timescale:
    """Timescale shared by all documents; mismatches are fatal, never rescaled."""
    reference = documents[0].timescale
    for i, doc in enumerate(documents[1:], 1):
        if doc.timescale != reference:
            raise TimescaleMismatch(
                f"Timescale {doc.timescale} differs from file 0's {reference}",
                file_index=i, expected=reference, found=doc.timescale)
    return reference


def run_each(func: Callable[..., Any], calls: Sequence[tuple], jobs: Optional[int] = None) -> List[Any]:
    """
    Runs func(*args) for every entry of `calls`, on worker threads unless
    jobs == 1. Results come back in call order; the failure of the lowest
    call index is the one raised and calls not yet started are cancelled.
    """
    if jobs == 1 or len(calls) <= 1:
        return [func(*args) for args in calls]

    with ThreadPoolExecutor(max_workers=jobs) as pool:
        futures = [pool.submit(func, *args) for args in calls]
        try:
            return [future.result() for future in futures]
        except BaseException:
            for future in futures:
                future.cancel()
            raise


def merge_vcd(
    inputs: Sequence[Any],
    reset_signal: str,
    output: Any,
    anchor: Union[str, AnchorPolicy, None] = None,
    occurrence: int = 1,
    scope_names: Optional[Sequence[str]] = None,
    dedupe_reset: bool = False,
    jobs: Optional[int] = None,
    date: Optional[str] = None,
) -> MergeResult:
    """
    Merge `inputs` (already-open readable streams) into `output` (an
    already-open writable text stream), aligned on `reset_signal`.

    Input order defines file indices, root scope names and the alignment
    reference (file 0). Raises a MergeError subclass on bad input; stream
    failures propagate as OSError.
    """
    if not inputs:
        raise ValueError("At least one input stream is required")
    if isinstance(anchor, AnchorPolicy):
        policy = anchor
    else:
        policy = policy_from_name(anchor or "first-change", occurrence)

    # 1. Parse every stream independently
    documents = run_each(parse_document, [(stream, i) for i, stream in enumerate(inputs)], jobs)
    timescale = check_timescales(documents)

    # 2. Barrier: names must be seen all together
    unifier = NamespaceUnifier(reset_signal, scope_names=scope_names, dedupe_reset=dedupe_reset)
    namespace = unifier.unify(documents)

    # 3. Anchors are per-file again
    resync = Resynchronizer(reset_signal, policy)
    anchors = run_each(resync.anchor, [(doc, i) for i, doc in enumerate(documents)], jobs)
    offsets = resync.offsets(anchors)
    for i, offset in enumerate(offsets):
        logger.info("file %d: offset %+d", i, int(offset))

    # 4. Merge and serialize
    groups, base = merge_groups(namespace, offsets)
    VcdWriter(namespace, groups, timescale, offsets=offsets, date=date).write(output)

    renamed: Dict[int, Dict[str, str]] = {
        t.file_index: t.renamed() for t in namespace.tables if t.renamed()
    }
    return MergeResult(
        timescale=timescale,
        roots=[t.root for t in namespace.tables],
        anchors=[int(a) for a in anchors],
        offsets=[int(o) for o in offsets],
        base=int(base),
        groups_written=len(groups),
        variables_written=sum(1 for _ in namespace.declarations()),
        renamed=renamed,
    )
