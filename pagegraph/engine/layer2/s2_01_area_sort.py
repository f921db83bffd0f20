"""S2.01 — Area Sort.

Order the shape table largest first. Every later stage relies on this order
(containers are seen before their contents); nothing may re-sort afterwards.
"""

from __future__ import annotations

from pagegraph.engine.context import PageContext
from pagegraph.engine.records import order_by_largest_area
from pagegraph.engine.registry import Layer, stage


@stage(
    id="S2.01",
    layer=Layer.GROUPING,
    dependencies=["S1.01"],
    description="Sort shapes by descending area",
)
def sort_by_area(ctx: PageContext) -> None:
    order_by_largest_area(ctx.shapes)
