"""Tests for the pipeline orchestrator."""

import pytest

from pagegraph.engine.context import PageContext
from pagegraph.engine.pipeline import Pipeline, build_page_graph
from pagegraph.engine.registry import Layer, StageRegistry, StageSpec
from pagegraph.exceptions import InternalConsistencyError
from pagegraph.main import process_page
from pagegraph.models.page import PageDescriptor
from tests.conftest import LINE_BETWEEN_BOXES_PAGE


def test_pipeline_runs_stages():
    reg = StageRegistry()
    results = []

    def s1(ctx: PageContext) -> None:
        results.append("s1")

    def s2(ctx: PageContext) -> None:
        results.append("s2")

    reg.register(StageSpec(id="S0.02", layer=Layer.COLLECTION, fn=s2, dependencies=["S0.01"]))
    reg.register(StageSpec(id="S0.01", layer=Layer.COLLECTION, fn=s1))

    ctx = Pipeline(registry=reg).run(PageContext(page=PageDescriptor()))

    assert results == ["s1", "s2"]
    assert ctx.completed_stages == {"S0.01", "S0.02"}


def test_pipeline_aborts_on_page_error():
    reg = StageRegistry()
    ran = []

    def fail(ctx: PageContext) -> None:
        raise InternalConsistencyError(5, "broken")

    def after(ctx: PageContext) -> None:
        ran.append("after")

    reg.register(StageSpec(id="S0.01", layer=Layer.COLLECTION, fn=fail))
    reg.register(StageSpec(id="S0.02", layer=Layer.COLLECTION, fn=after, dependencies=["S0.01"]))

    ctx = PageContext(page=PageDescriptor())
    with pytest.raises(InternalConsistencyError):
        Pipeline(registry=reg).run(ctx)

    assert ran == []
    assert "S0.01" not in ctx.completed_stages


def test_run_until_stops_early():
    ctx = Pipeline().run_until(PageContext(page=LINE_BETWEEN_BOXES_PAGE), "S1.01")

    assert ctx.completed_stages == {"S0.01", "S0.02", "S1.01"}
    assert len(ctx.index) == 3
    assert ctx.graph.number_of_edges() == 0


def test_run_layer():
    pipeline = Pipeline()
    ctx = PageContext(page=LINE_BETWEEN_BOXES_PAGE)
    pipeline.run_layer(ctx, Layer.COLLECTION)

    assert ctx.completed_stages == {"S0.01", "S0.02"}
    assert ctx.graph.number_of_nodes() == 3


def test_empty_page():
    graph = build_page_graph(PageDescriptor(name="blank"))
    assert graph.number_of_nodes() == 0


def test_process_page_returns_graph():
    graph = process_page(LINE_BETWEEN_BOXES_PAGE)
    assert sorted(graph.nodes) == [1, 2, 3]
    assert graph.number_of_edges() == 2
