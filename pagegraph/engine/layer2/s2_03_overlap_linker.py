"""S2.03 — Overlap Linking.

2-D shapes drawn with the same symbol that overlap without one containing the
other are parts of one visual object; link them.
"""

from __future__ import annotations

import logging

from pagegraph.engine.context import PageContext
from pagegraph.engine.records import either_encloses
from pagegraph.engine.registry import Layer, stage

logger = logging.getLogger(__name__)


@stage(
    id="S2.03",
    layer=Layer.GROUPING,
    dependencies=["S2.02"],
    description="Link overlapping 2-D shapes that share a symbol",
)
def link_overlapping_shapes(ctx: PageContext) -> None:
    linked = 0
    for record in ctx.shapes:
        if record.is_1d() or not record.symbol_name:
            continue

        for other in ctx.search(record):
            if other is record or other.is_1d():
                continue
            if other.symbol_name != record.symbol_name or either_encloses(record, other):
                continue
            if ctx.create_edge(record, other, "linked"):
                linked += 1

    logger.debug("Linked %d overlapping shape pairs", linked)
