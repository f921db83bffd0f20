"""S3.02 — 1-D to 1-D Connection Inference.

Lines of the same colour and pattern that cross are wired together. Only the
first crossing along the line is recorded, even if the two paths meet more
than once.
"""

from __future__ import annotations

import logging

from pagegraph.engine.context import PageContext
from pagegraph.engine.records import ShapeRecord
from pagegraph.engine.registry import Layer, stage
from pagegraph.utils.geometry import first_intersection

logger = logging.getLogger(__name__)


def same_line_style(a: ShapeRecord, b: ShapeRecord) -> bool:
    return a.line_color == b.line_color and a.line_pattern == b.line_pattern


@stage(
    id="S3.02",
    layer=Layer.INFERENCE,
    dependencies=["S3.01"],
    description="Connect crossing lines that share colour and pattern",
)
def infer_1d_connections(ctx: PageContext) -> None:
    joined = 0
    for record in ctx.shapes:
        if not record.is_1d():
            continue

        attached = {n.shape_id for n in ctx.neighbors(record)}
        for other in ctx.search(record):
            if other is record or not other.is_1d() or other.shape_id in attached:
                continue
            if not same_line_style(record, other):
                continue
            point = first_intersection(record.geometry, other.geometry)
            if point is None:
                continue
            if ctx.create_edge(record, other, "inferred-1d", point):
                joined += 1

    logger.debug("Joined %d crossing line pairs", joined)
