"""S1.01 — Boring Shape Filter.

Only interesting shapes, or shapes something is already connected to, make it
into the spatial index. Everything else is dropped.

An uninteresting "Group" whose whole subtree has no text and no symbol is
collapsed: it becomes interesting, takes over its children's edges as
"real-moved" and the children go away. One labelled or named descendant
anywhere in the subtree cancels the collapse.
"""

from __future__ import annotations

import logging

from pagegraph.engine.context import PageContext
from pagegraph.engine.records import ShapeRecord
from pagegraph.engine.registry import Layer, stage
from pagegraph.engine.graph import edge_point

logger = logging.getLogger(__name__)

GROUP_TYPE = "Group"


def _collapsible_children(ctx: PageContext, group: ShapeRecord) -> list[ShapeRecord]:
    """Live descendants of ``group``, or [] if any of them carries text or a symbol."""
    children: list[ShapeRecord] = []
    for desc in ctx.tree.descendants(group.shape_id):
        child = ctx.get_shape(desc.id)
        if child is None:
            continue
        if child.has_text or child.symbol_name:
            return []
        children.append(child)
    return children


def collapse_group(ctx: PageContext, group: ShapeRecord, children: list[ShapeRecord]) -> None:
    group.is_interesting = True
    absorbed = {c.shape_id for c in children}
    absorbed.add(group.shape_id)

    for child in children:
        for edge in ctx.edges(child):
            other = ctx.partner(edge, child)
            if other.shape_id not in absorbed:
                ctx.create_edge(group, other, "real-moved", edge_point(edge[3]))
            ctx.remove_edge(edge)
        ctx.remove_shape(child)


@stage(
    id="S1.01",
    layer=Layer.FILTERING,
    dependencies=["S0.02"],
    description="Drop uninteresting shapes, collapse featureless groups, fill the spatial index",
)
def remove_boring_shapes(ctx: PageContext) -> None:
    collapsed = 0
    # Hierarchy order matters here: groups are seen before their children
    for record in ctx.shapes:
        if record.removed:
            continue

        if not record.is_interesting and record.shape_type == GROUP_TYPE:
            children = _collapsible_children(ctx, record)
            if children:
                collapse_group(ctx, record, children)
                collapsed += 1

        if record.is_interesting or ctx.has_edges(record):
            ctx.index.insert(record)
        else:
            ctx.remove_shape(record)

    purged = ctx.clean_shapes()
    logger.debug("Kept %d shapes, dropped %d, collapsed %d groups", ctx.num_shapes, purged, collapsed)
