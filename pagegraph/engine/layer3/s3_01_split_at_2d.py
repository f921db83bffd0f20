"""S3.01 — 1-D to 2-D Connection Inference. ★★★ CRITICAL

Lines that run into boxes are connected to them. A line that ends inside a
box gets a direct "inferred-2d" edge. A line that passes through a box
mid-span is cut at every boundary crossing into synthetic segments, each
linked to the box it crosses, and the original line is removed.

Construction for a line with mid-span crossings:
1. Existing edges are re-filed by which end of the line they touch; edges
   touching neither end add their shape to the mid-span set.
2. The flattened path is walked from the start. Crossings within one straight
   piece are taken in order of distance from the line's start point.
3. Each crossing closes the current segment: it is linked to the previous
   segment (or the start shapes) and to the crossed shape.
4. The last segment is linked to the last crossed shape and the end shapes.
5. If the line had text, the segment nearest to the text centre takes it.
"""

from __future__ import annotations

import logging
import math

from pagegraph.engine.context import PageContext
from pagegraph.engine.records import ShapeRecord
from pagegraph.engine.registry import Layer, stage
from pagegraph.utils.geometry import (
    Point2,
    Polyline,
    find_intersections,
    is_inside_or_on_boundary,
    path_distance,
    path_intersects,
)

logger = logging.getLogger(__name__)


def _real_partners(ctx: PageContext, line: ShapeRecord) -> set[int]:
    return {ctx.partner_id(e, line) for e in ctx.edges(line) if e[3].get("type") == "real"}


def attach_to_2d(ctx: PageContext, line: ShapeRecord) -> list[ShapeRecord]:
    """Connect line ends to the boxes they sit in; return boxes crossed mid-span."""
    attached = _real_partners(ctx, line)
    mid_span: list[ShapeRecord] = []

    for other in ctx.search(line):
        if other is line or other.is_1d() or other.is_textbox:
            continue
        if other.shape_id in attached:
            continue
        if not path_intersects(line.geometry, other.geometry):
            continue

        if is_inside_or_on_boundary(other.geometry, line.start):
            ctx.create_edge(line, other, "inferred-2d", line.start)
        elif is_inside_or_on_boundary(other.geometry, line.end):
            ctx.create_edge(line, other, "inferred-2d", line.end)
        else:
            mid_span.append(other)

    return mid_span


def refile_existing_edges(
    ctx: PageContext, line: ShapeRecord, mid_span: list[ShapeRecord]
) -> tuple[list[ShapeRecord], list[ShapeRecord]]:
    """Detach every edge of ``line``; sort the partners into start/end/mid-span."""
    to_start: list[ShapeRecord] = []
    to_end: list[ShapeRecord] = []

    for edge in ctx.edges(line):
        other = ctx.partner(edge, line)
        if is_inside_or_on_boundary(other.geometry, line.start):
            to_start.append(other)
        elif is_inside_or_on_boundary(other.geometry, line.end):
            to_end.append(other)
        elif other not in mid_span:
            mid_span.append(other)
        ctx.remove_edge(edge)

    return to_start, to_end


def _finish(current: list[Polyline]) -> list[Polyline]:
    polylines = [pl for pl in current if len(pl) > 1]
    if not polylines:
        # Cut exactly on a vertex: keep a zero-length stub
        p = current[-1][-1]
        polylines = [[p, p]]
    return polylines


class _TextTracker:
    """Remembers the segment closest to the original line's text."""

    def __init__(self, line: ShapeRecord) -> None:
        self.center = line.text_center if line.has_text else None
        self.best: ShapeRecord | None = None
        self.distance = math.inf

    def offer(self, segment: ShapeRecord) -> None:
        if self.center is None:
            return
        d = path_distance(segment.geometry, self.center)
        if d < self.distance:
            self.best, self.distance = segment, d


def split_line(ctx: PageContext, line: ShapeRecord, mid_span: list[ShapeRecord]) -> int:
    """Cut ``line`` wherever it crosses a mid-span shape. Returns segments made."""
    to_start, to_end = refile_existing_edges(ctx, line, mid_span)

    tol = ctx.config.intersection_tolerance
    origin = line.start
    text = _TextTracker(line)

    current: list[Polyline] = []
    junction: Point2 = line.start
    last_segment: ShapeRecord | None = None
    last_crossed: ShapeRecord | None = None
    made = 0

    for polyline in line.polylines:
        current.append([polyline[0]])
        for a, b in zip(polyline, polyline[1:]):
            crossings: list[tuple[ShapeRecord, Point2]] = []
            for other in mid_span:
                for point in find_intersections(other.geometry, (a, b), tol):
                    crossings.append((other, point))
            crossings.sort(key=lambda c: math.dist(origin, c[1]))

            for other, point in crossings:
                # Leaving the box we just entered is not a new connection
                if other is last_crossed:
                    continue

                current[-1].append(point)
                segment = ctx.clone_1d_shape(_finish(current), line)
                made += 1
                text.offer(segment)

                if last_segment is None:
                    for shape in to_start:
                        ctx.create_edge(segment, shape, "inferred2d-split-start", junction)
                else:
                    ctx.create_edge(last_segment, segment, "inferred2d-split-middle", junction)
                ctx.create_edge(segment, other, "inferred2d-split-middle", point)

                last_segment, last_crossed = segment, other
                current = [[point]]
                junction = point

            current[-1].append(b)

    segment = ctx.clone_1d_shape(_finish(current), line)
    made += 1
    text.offer(segment)

    if last_crossed is not None:
        ctx.create_edge(last_crossed, segment, "inferred2d-split-next-end", junction)
    else:
        for shape in to_start:
            ctx.create_edge(segment, shape, "inferred2d-split-start", junction)
    for shape in to_end:
        ctx.create_edge(segment, shape, "inferred2d-split-end", line.end)

    if text.best is not None:
        best = text.best
        best.has_text = True
        best.text_center = line.text_center
        ctx.set_property(best, "label", ctx.get_property(line, "label"))
        ctx.set_property(best, "text_ref", line.shape_id)
        ctx.set_property(best, "text_ref_why", "reassign_2d_closest")
        ctx.helper.on_assign_text(line, best)

    ctx.remove_shape(line)
    return made


@stage(
    id="S3.01",
    layer=Layer.INFERENCE,
    dependencies=["S2.04"],
    description="Connect lines to the boxes they touch, splitting lines that pass through boxes",
)
def infer_2d_connections(ctx: PageContext) -> None:
    lines_split = 0
    segments = 0
    for record in ctx.shapes:
        if not record.is_1d() or record.removed:
            continue
        mid_span = attach_to_2d(ctx, record)
        if mid_span:
            segments += split_line(ctx, record, mid_span)
            lines_split += 1

    ctx.clean_shapes()
    logger.debug("Split %d lines into %d segments", lines_split, segments)
