"""S4.02 — Connection Point Deduper.

Drops line edges that merely restate a connection through a shared box: if
both ends of an edge are attached to the same 2-D shape and the edge's
coordinate lies inside that shape, the edge is redundant.
"""

from __future__ import annotations

import logging

from pagegraph.engine.context import PageContext
from pagegraph.engine.graph import Edge, edge_point
from pagegraph.engine.records import ShapeRecord
from pagegraph.engine.registry import Layer, stage
from pagegraph.utils.geometry import bounds_contain_point

logger = logging.getLogger(__name__)


def connected_2d_ids(ctx: PageContext, record: ShapeRecord) -> set[int]:
    return {n.shape_id for n in ctx.neighbors(record) if not n.is_1d()}


def redundant_edges(ctx: PageContext, record: ShapeRecord) -> list[Edge]:
    tolerance = ctx.config.connection_point_tolerance
    mine: set[int] | None = None
    doomed: list[Edge] = []

    for edge in ctx.edges(record):
        point = edge_point(edge[3])
        if point is None:
            continue
        if mine is None:
            mine = connected_2d_ids(ctx, record)

        other = ctx.partner(edge, record)
        for shared_id in sorted(mine & connected_2d_ids(ctx, other)):
            shared = ctx.get_shape(shared_id)
            if shared is not None and bounds_contain_point(shared.bounds, point, tolerance):
                doomed.append(edge)
                break
    return doomed


@stage(
    id="S4.02",
    layer=Layer.CLEANUP,
    dependencies=["S4.01"],
    description="Delete line edges implied by a shared 2-D connection",
)
def dedupe_connection_points(ctx: PageContext) -> None:
    removed = 0
    for record in ctx.shapes:
        if not record.is_1d():
            continue
        for edge in redundant_edges(ctx, record):
            ctx.remove_edge(edge)
            removed += 1
    logger.debug("Removed %d redundant connection points", removed)
