"""
Change-Group Merger
===================
K-way merge of the time-shifted change groups of every trace.

Groups of different files that land on the same shifted timestamp become one
merged group: files are concatenated in input order and each file keeps its
own change order. The merged sequence is then moved so that it starts at #0.
"""

from __future__ import annotations
import heapq
import logging
from typing import Dict, List, Sequence, Tuple

import numpy as np

from vcdmerge.core import ChangeGroup
from vcdmerge.namespace import UnifiedNamespace

logger = logging.getLogger(__name__)


def merge_groups(namespace: UnifiedNamespace, offsets: Sequence[int]) -> Tuple[List[ChangeGroup], int]:
    """
    Returns (merged groups, base) where `base` is the shifted timestamp that
    became #0 in the output.
    """
    documents, tables = namespace.documents, namespace.tables
    offsets = np.asarray(offsets, dtype=np.int64)
    if len(offsets) != len(documents):
        raise ValueError(f"Got {len(offsets)} offsets for {len(documents)} files")

    # Shifted timestamps per file; negative values are fine until normalization
    columns = [doc.times() + offsets[i] for i, doc in enumerate(documents)]

    heap = [(int(col[0]), i, 0) for i, col in enumerate(columns) if col.size]
    heapq.heapify(heap)

    merged: List[ChangeGroup] = []
    while heap:
        time = heap[0][0]
        group = ChangeGroup(time)
        owners: Dict[str, int] = {}
        sources_had_changes = False

        # Ties pop in file-index order
        while heap and heap[0][0] == time:
            _, i, pos = heapq.heappop(heap)
            table = tables[i]
            source = documents[i].groups[pos]
            sources_had_changes |= bool(source.changes)

            for ident, value in source.changes:
                if ident in table.dropped:
                    continue
                out_ident = table.identifiers[ident]
                assert owners.setdefault(out_ident, i) == i, \
                    f"identifier {out_ident!r} written by files {owners[out_ident]} and {i}"
                group.changes.append((out_ident, value))

            if pos + 1 < columns[i].size:
                heapq.heappush(heap, (int(columns[i][pos + 1]), i, pos + 1))

        if group.changes or not sources_had_changes:
            merged.append(group)

    base = merged[0].time if merged else 0
    if base:
        for group in merged:
            group.time -= base

    logger.debug("merged %d files into %d groups (base #%d)", len(documents), len(merged), base)
    return merged, base
