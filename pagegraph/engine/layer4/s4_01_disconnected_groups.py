"""S4.01 — Disconnected Group Connector.

A group whose text-bearing members ended up mostly without edges is wired to
whatever its label touched, then the label is dropped. Formal groups gather
shapes overlapping the label's footprint. Secondary groups first reuse the
lines already attached to the label and fall back to the footprint search.
"""

from __future__ import annotations

import logging

from pagegraph.engine.context import PageContext
from pagegraph.engine.records import GroupRecord, ShapeRecord
from pagegraph.engine.registry import Layer, stage
from pagegraph.utils.geometry import is_inside_or_on_boundary, path_intersects

logger = logging.getLogger(__name__)


def _eligible(group: GroupRecord, child: ShapeRecord) -> bool:
    if child.removed or child.is_1d() or not child.has_text:
        return False
    # Members claimed by more than one secondary group do not vote
    return group.formal or child.secondary_group_count <= 1


def group_is_mostly_disconnected(ctx: PageContext, group: GroupRecord) -> bool:
    disconnected = 0
    total = 0
    for child in group.children:
        if not _eligible(group, child):
            continue
        if not ctx.has_edges(child):
            disconnected += 1
        total += 1
    return disconnected != 0 and (disconnected >= total // 2 or disconnected == total)


def _touches_endpoint(label: ShapeRecord, line: ShapeRecord) -> bool:
    return is_inside_or_on_boundary(label.geometry, line.start) or is_inside_or_on_boundary(
        label.geometry, line.end
    )


def gather_overlapping(ctx: PageContext, group: GroupRecord, ignore_1d: bool = False) -> list[ShapeRecord]:
    """Shapes outside the group that overlap the label's footprint."""
    label = group.label
    members = {c.shape_id for c in group.children}
    found: list[ShapeRecord] = []

    for other in ctx.search(label):
        if other is label or other.shape_id in members:
            continue
        if other.is_1d():
            if ignore_1d or not _touches_endpoint(label, other):
                continue
        elif not ctx.has_edges(other) or not path_intersects(label.geometry, other.geometry):
            continue
        found.append(other)
    return found


def gather_from_label_edges(ctx: PageContext, group: GroupRecord) -> list[ShapeRecord]:
    """Lines already attached to a secondary group's label that plausibly belong to the group.

    Author-drawn edges qualify outright, including ones moved onto a
    collapsed group ("real-moved").
    """
    label = group.label
    found: list[ShapeRecord] = []

    for edge in ctx.edges(label):
        other = ctx.partner(edge, label)
        if not other.is_1d():
            continue
        qualifies = (
            edge[3].get("type", "").startswith("real")
            or _touches_endpoint(label, other)
            or any(
                n is not label and not n.is_1d() and path_intersects(label.geometry, n.geometry)
                for n in ctx.neighbors(other)
            )
        )
        if qualifies:
            found.append(other)

    if not found:
        found = gather_overlapping(ctx, group, ignore_1d=True)
    return found


def connect_disconnected_group(ctx: PageContext, group: GroupRecord, found: list[ShapeRecord]) -> int:
    """Fan out edges from every eligible member to every found shape."""
    if not found:
        return 0

    if not group.label.removed:
        ctx.remove_shape(group.label)

    created = 0
    for child in group.children:
        if not _eligible(group, child):
            continue
        for other in found:
            if ctx.create_edge(child, other, "inferred-disconnected-group"):
                created += 1
    return created


@stage(
    id="S4.01",
    layer=Layer.CLEANUP,
    dependencies=["S3.02"],
    description="Wire mostly disconnected groups to what their label touched",
)
def connect_disconnected_groups(ctx: PageContext) -> None:
    connected = 0
    edges = 0

    for group in ctx.groups:
        if not group_is_mostly_disconnected(ctx, group):
            continue
        found = gather_overlapping(ctx, group)
        if found:
            edges += connect_disconnected_group(ctx, group, found)
            connected += 1

    for group in ctx.secondary_groups:
        if group.label.removed or not group_is_mostly_disconnected(ctx, group):
            continue
        found = gather_from_label_edges(ctx, group)
        if found:
            edges += connect_disconnected_group(ctx, group, found)
            connected += 1

    ctx.clean_shapes()
    logger.debug("Connected %d disconnected groups with %d edges", connected, edges)
