"""Shared test fixtures and page builders."""

from __future__ import annotations

import pytest

from pagegraph.engine.context import PageContext
from pagegraph.engine.graph import edge_types
from pagegraph.engine.pipeline import Pipeline
from pagegraph.engine.policy import SemanticHelper
from pagegraph.models.page import ConnectionDescriptor, ConnectionPart, PageDescriptor, ShapeDescriptor


def box(shape_id: int, x: float, y: float, w: float, h: float, **kwargs) -> ShapeDescriptor:
    """A rectangle whose local origin sits at (x, y) on its parent."""
    kwargs.setdefault("has_master", True)
    return ShapeDescriptor(
        id=shape_id,
        width=w,
        height=h,
        transform=(1.0, 0.0, 0.0, 1.0, x, y),
        path=f"M0 0 L{w} 0 L{w} {h} L0 {h} Z",
        **kwargs,
    )


def line(shape_id: int, *points: tuple[float, float], **kwargs) -> ShapeDescriptor:
    """A straight polyline connector drawn in page coordinates."""
    first, rest = points[0], points[1:]
    d = f"M{first[0]} {first[1]} " + " ".join(f"L{x} {y}" for x, y in rest)
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return ShapeDescriptor(
        id=shape_id,
        is_1d=True,
        path=d,
        width=max(xs) - min(xs),
        height=max(ys) - min(ys),
        **kwargs,
    )


def connect(a: int, b: int, part: ConnectionPart = ConnectionPart.OTHER) -> ConnectionDescriptor:
    return ConnectionDescriptor(from_shape=a, from_part=part, to_shape=b)


def make_page(*shapes: ShapeDescriptor, connections: list[ConnectionDescriptor] | None = None) -> PageDescriptor:
    return PageDescriptor(id=1, name="Page-1", shapes=list(shapes), connections=connections or [])


def run_page(page: PageDescriptor, until: str | None = None, helper: SemanticHelper | None = None) -> PageContext:
    """Run the full pipeline, or only up to and including ``until``."""
    ctx = PageContext(page=page, helper=helper or SemanticHelper(use_real_connections=True, text_radius=0.5))
    pipeline = Pipeline()
    if until is None:
        return pipeline.run(ctx)
    return pipeline.run_until(ctx, until)


def edge_set(ctx: PageContext) -> dict[tuple[int, int], str]:
    return edge_types(ctx.graph)


# Scenario pages

SINGLE_BOX_PAGE = make_page(box(1, 0, 0, 100, 50, text="Pump", has_master=False))

# Line from (0, 0) to (10, 0) with a box around each end
LINE_BETWEEN_BOXES_PAGE = make_page(
    line(1, (0, 0), (10, 0)),
    box(2, -1, -1, 2, 2),
    box(3, 9, -1, 2, 2),
)

# Same, plus a box crossed mid-span
LINE_THROUGH_BOX_PAGE = make_page(
    line(1, (0, 0), (10, 0)),
    box(2, -1, -1, 2, 2),
    box(3, 9, -1, 2, 2),
    box(4, 4, -1, 2, 2),
)

# Label enclosing three labelled boxes; box 5 straddles the label edge
# and is already wired to box 6
DISCONNECTED_GROUP_PAGE = make_page(
    box(1, 0, 0, 100, 100, text="Rack"),
    box(2, 10, 10, 10, 10, text="A"),
    box(3, 40, 10, 10, 10, text="B"),
    box(4, 70, 10, 10, 10, text="C"),
    box(5, 90, 50, 20, 20),
    box(6, 200, 50, 20, 20),
    connections=[connect(5, 6)],
)

# X and Y both glued to Z; the X-Y glue point lies inside Z
SHARED_CONNECTION_PAGE = make_page(
    line(1, (0, 0), (10, 0)),
    line(2, (10, 0), (20, 0)),
    box(3, 8, -2, 4, 4, has_master=False),
    connections=[
        connect(1, 2, ConnectionPart.END),
        connect(1, 3, ConnectionPart.END),
        connect(2, 3, ConnectionPart.BEGIN),
    ],
)


@pytest.fixture
def helper() -> SemanticHelper:
    return SemanticHelper(use_real_connections=True, text_radius=0.5)


@pytest.fixture
def line_through_box_page() -> PageDescriptor:
    return LINE_THROUGH_BOX_PAGE


@pytest.fixture
def disconnected_group_page() -> PageDescriptor:
    return DISCONNECTED_GROUP_PAGE


@pytest.fixture
def shared_connection_page() -> PageDescriptor:
    return SHARED_CONNECTION_PAGE
