"""S0.01 — Shape Collection.

Walk the page's shape hierarchy parent-first, build one ShapeRecord and one
vertex per shape. A text-only child that exactly overlays an ancestor (same
left edge and width) donates its text to that ancestor instead of becoming a
vertex of its own.
"""

from __future__ import annotations

import logging

from pagegraph.engine.context import PageContext
from pagegraph.engine.records import ShapeRecord
from pagegraph.engine.registry import Layer, stage
from pagegraph.models.page import ShapeDescriptor

logger = logging.getLogger(__name__)


def _vertex_properties(ctx: PageContext, desc: ShapeDescriptor, record: ShapeRecord) -> dict:
    x, y = record.center
    return {
        "label": desc.text or "",
        "shape_id": desc.id,
        "group": "",
        "group_id": None,
        "in_secondary_group": False,
        "is_1d": desc.is_1d,
        "name": desc.name,
        "page_name": ctx.page.name,
        "symbol_name": desc.symbol_name,
        "type": desc.shape_type,
        "x": x,
        "y": y,
    }


def reassign_text_to_parent(ctx: PageContext, desc: ShapeDescriptor, record: ShapeRecord) -> bool:
    """Give ``desc``'s text to the nearest matching textless ancestor, if any."""
    tol = ctx.config.text_reassign_tolerance
    x = record.bounds[0]
    width = record.width

    match: ShapeRecord | None = None
    duplicates: list[ShapeRecord] = []

    for ancestor in ctx.tree.ancestors(desc.id):
        parent = ctx.get_shape(ancestor.id)
        if parent is None:
            continue
        if abs(width - parent.width) > tol or abs(parent.bounds[0] - x) > tol:
            break
        if not parent.has_text:
            # Stacked textless copies of the same box are noise
            if match is not None:
                duplicates.append(match)
            match = parent

    if match is None:
        return False

    ctx.set_property(match, "label", desc.text)
    ctx.set_property(match, "text_ref", desc.id)
    ctx.set_property(match, "text_ref_why", "reassign_to_parent")
    match.has_text = True
    match.is_interesting = True
    match.text_center = record.text_center

    ctx.helper.on_reassign_to_parent(match, desc)

    for dup in duplicates:
        ctx.remove_shape(dup)
    return True


@stage(
    id="S0.01",
    layer=Layer.COLLECTION,
    description="Build shape records and vertices from the shape hierarchy",
)
def collect_shapes(ctx: PageContext) -> None:
    reassigned = 0
    for desc, matrix in ctx.tree.walk():
        record = ShapeRecord.from_descriptor(desc, matrix, ctx.config)

        if record.has_text and reassign_text_to_parent(ctx, desc, record):
            reassigned += 1
            continue

        ctx.add_shape(record, _vertex_properties(ctx, desc, record))
        ctx.helper.on_create(record, desc)

    ctx.clean_shapes()
    logger.debug("Collected %d shapes (%d text reassignments)", ctx.num_shapes, reassigned)
