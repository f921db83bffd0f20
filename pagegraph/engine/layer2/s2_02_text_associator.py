"""S2.02 — Text Association.

Free-floating text (a textbox: text but no master) labels the closest shape
without text of its own. A shape that merely encloses the textbox is only
used if nothing else qualifies.
"""

from __future__ import annotations

import logging

from pagegraph.engine.context import PageContext
from pagegraph.engine.graph import edge_point
from pagegraph.engine.records import ShapeRecord
from pagegraph.engine.registry import Layer, stage

logger = logging.getLogger(__name__)


def assign_text(ctx: PageContext, textbox: ShapeRecord, target: ShapeRecord) -> None:
    ctx.set_property(target, "label", ctx.get_property(textbox, "label"))
    ctx.set_property(target, "text_ref", textbox.shape_id)
    ctx.set_property(target, "text_ref_why", "associate_with_shape")
    target.has_text = True
    target.text_center = textbox.text_center

    # The textbox's connections now belong to the shape it labels
    for edge in ctx.edges(textbox):
        other = ctx.partner(edge, textbox)
        if other is not target:
            ctx.create_edge(other, target, "reparent", edge_point(edge[3]))
        ctx.remove_edge(edge)

    ctx.helper.on_assign_text(textbox, target)
    ctx.remove_shape(textbox)


def associate_textbox(ctx: PageContext, textbox: ShapeRecord) -> bool:
    radius = ctx.helper.text_search_radius(textbox)
    fallback: ShapeRecord | None = None

    for other in ctx.nearest(textbox, radius):
        if other is textbox or other.has_text:
            continue
        if not ctx.helper.on_text_candidate(textbox, other):
            continue
        if other.encloses(textbox):
            if fallback is None:
                fallback = other
            continue
        assign_text(ctx, textbox, other)
        return True

    if fallback is not None:
        assign_text(ctx, textbox, fallback)
        return True
    return False


@stage(
    id="S2.02",
    layer=Layer.GROUPING,
    dependencies=["S2.01"],
    description="Attach free-floating text to the nearest unlabelled shape",
)
def associate_text(ctx: PageContext) -> None:
    associated = 0
    for record in ctx.shapes:
        if not record.is_textbox or record.removed:
            continue
        if associate_textbox(ctx, record):
            associated += 1

    ctx.clean_shapes()
    logger.debug("Associated %d textboxes with shapes", associated)
