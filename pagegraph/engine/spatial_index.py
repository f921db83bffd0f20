"""Spatial index over shape records, keyed by their reduced-precision rectangles.

shapely's STRtree is immutable, so inserts and deletes only touch a dict and
mark the tree stale; the tree is rebuilt on the next query. Query results are
plain lists ordered by insertion sequence (or by distance for ``nearest``) so
that a page always processes in the same order.
"""

from __future__ import annotations

import itertools
import logging

import numpy as np
from shapely.geometry import box
from shapely.strtree import STRtree

from pagegraph.engine.records import ShapeRecord
from pagegraph.utils.geometry import Bounds, rect_distance

logger = logging.getLogger(__name__)


class SpatialIndex:
    """Insert / delete / overlap search / nearest search over ShapeRecords."""

    def __init__(self) -> None:
        # shape_id -> (insertion sequence, record)
        self._entries: dict[int, tuple[int, ShapeRecord]] = {}
        self._seq = itertools.count()
        self._tree: STRtree | None = None
        self._items: list[tuple[int, ShapeRecord]] = []
        self._stale = False
        # Number of STRtree builds so far
        self.rebuilds = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, record: ShapeRecord) -> bool:
        entry = self._entries.get(record.shape_id)
        return entry is not None and entry[1] is record

    def insert(self, record: ShapeRecord) -> None:
        self._entries[record.shape_id] = (next(self._seq), record)
        self._stale = True

    def delete(self, record: ShapeRecord) -> bool:
        """Remove ``record``. Returns False if it was not indexed."""
        entry = self._entries.get(record.shape_id)
        if entry is None or entry[1] is not record:
            return False
        del self._entries[record.shape_id]
        self._stale = True
        return True

    def records(self) -> list[ShapeRecord]:
        return [rec for _, rec in sorted(self._entries.values(), key=lambda e: e[0])]

    def _ensure_tree(self) -> None:
        if not self._stale and (self._tree is not None or not self._entries):
            return
        self._items = sorted(self._entries.values(), key=lambda e: e[0])
        if self._items:
            self._tree = STRtree([box(*rec.index_bounds) for _, rec in self._items])
        else:
            self._tree = None
        self._stale = False
        self.rebuilds += 1
        logger.debug("Rebuilt spatial index with %d entries", len(self._items))

    def _query(self, bounds: Bounds) -> list[tuple[int, ShapeRecord]]:
        self._ensure_tree()
        if self._tree is None:
            return []
        hits = np.asarray(self._tree.query(box(*bounds)), dtype=np.int64)
        found = [self._items[i] for i in sorted(hits.tolist())]
        # STRtree compares envelopes; re-check on the exact float32 keys
        return [e for e in found if rect_distance(e[1].index_bounds, bounds) == 0.0]

    def search(self, bounds: Bounds) -> list[ShapeRecord]:
        """All records whose rectangle intersects ``bounds`` (touching counts)."""
        return [rec for _, rec in self._query(bounds)]

    def nearest(self, bounds: Bounds, max_distance: float, max_count: int | None = None) -> list[ShapeRecord]:
        """Records within ``max_distance`` of ``bounds``, closest first."""
        x0, y0, x1, y1 = bounds
        grown = (x0 - max_distance, y0 - max_distance, x1 + max_distance, y1 + max_distance)
        scored = []
        for seq, rec in self._query(grown):
            d = rect_distance(rec.index_bounds, bounds)
            if d <= max_distance:
                scored.append((d, seq, rec))
        scored.sort(key=lambda s: (s[0], s[1]))
        if max_count is not None:
            scored = scored[:max_count]
        return [rec for _, _, rec in scored]
