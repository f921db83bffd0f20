"""S0.02 — Connection Collection.

Turn author-drawn connections into "real" edges. Each end resolves to the
shape itself or, if it has no record, its nearest ancestor that does. Only
runs if the page's SemanticHelper allows it.
"""

from __future__ import annotations

import logging

from pagegraph.engine.context import PageContext
from pagegraph.engine.records import ShapeRecord
from pagegraph.engine.registry import Layer, stage
from pagegraph.exceptions import UnresolvedShapeError
from pagegraph.models.page import ConnectionPart
from pagegraph.utils.geometry import Point2

logger = logging.getLogger(__name__)


def _resolve(ctx: PageContext, shape_id: int, role: str) -> ShapeRecord:
    record = ctx.find_shape_or_parent(shape_id)
    if record is None:
        raise UnresolvedShapeError(shape_id, f"connection '{role}' shape has no live record or ancestor")
    return record


def _connection_point(record: ShapeRecord, part: ConnectionPart) -> Point2 | None:
    if not record.is_1d():
        return None
    if part == ConnectionPart.BEGIN:
        return record.start
    if part == ConnectionPart.END:
        return record.end
    return None


@stage(
    id="S0.02",
    layer=Layer.COLLECTION,
    dependencies=["S0.01"],
    description="Create 'real' edges from author-drawn connections",
)
def collect_connections(ctx: PageContext) -> None:
    if not ctx.helper.allow_real_connections():
        logger.debug("Real connections disabled by helper")
        return

    created = 0
    for conn in ctx.page.connections:
        from_record = _resolve(ctx, conn.from_shape, "from")
        to_record = _resolve(ctx, conn.to_shape, "to")
        point = _connection_point(from_record, conn.from_part)
        if ctx.create_edge(from_record, to_record, "real", point):
            created += 1

    logger.debug("Collected %d real connections (%d given)", created, len(ctx.page.connections))
