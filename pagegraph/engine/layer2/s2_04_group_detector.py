"""S2.04 — Group Detection.

A labelled 2-D shape that visually encloses other 2-D shapes acts as a group.

Enclosed shapes from a different hierarchy make it a formal group: they are
stamped with the label's text and id, and the label itself leaves the graph.
If the label is already grouped, or everything it encloses sits under the
same topmost parent, the group is only secondary: members are flagged and the
label stays.
"""

from __future__ import annotations

import logging

from pagegraph.engine.context import PageContext
from pagegraph.engine.records import GroupRecord, ShapeRecord
from pagegraph.engine.registry import Layer, stage

logger = logging.getLogger(__name__)


def split_candidates(ctx: PageContext, label: ShapeRecord) -> tuple[list[ShapeRecord], list[ShapeRecord]]:
    """Enclosed 2-D shapes, as (primary, secondary)."""
    in_group = ctx.get_property(label, "group_id") is not None
    topmost = ctx.find_topmost_parent_with_geom(label)

    primary: list[ShapeRecord] = []
    secondary: list[ShapeRecord] = []
    for other in ctx.search(label):
        if other is label or other.is_1d() or not label.encloses(other):
            continue
        if not in_group and (topmost is None or topmost is not ctx.find_topmost_parent_with_geom(other)):
            primary.append(other)
        else:
            secondary.append(other)
    return primary, secondary


@stage(
    id="S2.04",
    layer=Layer.GROUPING,
    dependencies=["S2.03"],
    description="Detect labelled shapes that visually group other shapes",
)
def detect_groups(ctx: PageContext) -> None:
    for label in ctx.shapes:
        if label.removed or label.is_1d() or not label.has_text:
            continue

        primary, secondary = split_candidates(ctx, label)
        name = ctx.get_property(label, "label")

        if primary:
            for child in primary:
                ctx.set_property(child, "group", name)
                ctx.set_property(child, "group_id", label.shape_id)
            ctx.groups.append(GroupRecord(label=label, children=primary, formal=True))
            ctx.remove_shape(label)
            ctx.helper.on_group(label, primary)

        elif secondary:
            for child in secondary:
                ctx.set_property(child, "in_secondary_group", True)
                ctx.set_property(child, "secondary_group", name)
                child.secondary_group_count += 1
            ctx.secondary_groups.append(GroupRecord(label=label, children=secondary, formal=False))
            ctx.helper.on_secondary_group(label, secondary)

    ctx.clean_shapes()
    logger.debug("Found %d groups, %d secondary groups", len(ctx.groups), len(ctx.secondary_groups))
