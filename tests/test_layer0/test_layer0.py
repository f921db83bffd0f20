"""Tests for Layer 0 stages — shape and connection collection."""

from pagegraph.engine.policy import SemanticHelper
from pagegraph.models.page import ConnectionPart, ShapeDescriptor
from tests.conftest import box, connect, edge_set, line, make_page, run_page


def _text_child(shape_id, w, h, text):
    return ShapeDescriptor(id=shape_id, width=w, height=h, text=text)


def test_one_vertex_per_shape():
    page = make_page(box(1, 0, 0, 10, 10, name="Box.1", symbol_name="Server"), line(2, (20, 0), (30, 0)))
    ctx = run_page(page, until="S0.01")

    assert sorted(ctx.graph.nodes) == [1, 2]
    props = ctx.graph.nodes[1]
    assert props["name"] == "Box.1"
    assert props["symbol_name"] == "Server"
    assert props["page_name"] == "Page-1"
    assert props["is_1d"] is False
    assert (props["x"], props["y"]) == (5.0, 5.0)
    assert ctx.graph.nodes[2]["is_1d"] is True


def test_text_child_moves_to_matching_parent():
    page = make_page(box(1, 0, 0, 50, 20, children=[_text_child(2, 50, 20, "Core switch")]))
    ctx = run_page(page, until="S0.01")

    assert list(ctx.graph.nodes) == [1]
    props = ctx.graph.nodes[1]
    assert props["label"] == "Core switch"
    assert props["text_ref"] == 2
    assert props["text_ref_why"] == "reassign_to_parent"
    assert ctx.get_shape(1).has_text


def test_text_child_skips_mismatched_parent():
    page = make_page(box(1, 0, 0, 60, 20, children=[_text_child(2, 50, 20, "Core switch")]))
    ctx = run_page(page, until="S0.01")

    assert sorted(ctx.graph.nodes) == [1, 2]
    assert ctx.graph.nodes[1]["label"] == ""


def test_stacked_textless_copies_collapse():
    inner = box(2, 0, 0, 50, 20, children=[_text_child(3, 50, 20, "DB")])
    page = make_page(box(1, 0, 0, 50, 20, children=[inner]))
    ctx = run_page(page, until="S0.01")

    assert list(ctx.graph.nodes) == [1]
    assert ctx.graph.nodes[1]["label"] == "DB"


def test_real_connection_carries_endpoint():
    page = make_page(
        line(1, (0, 0), (10, 0)),
        box(2, 10, -1, 2, 2),
        connections=[connect(1, 2, ConnectionPart.END)],
    )
    ctx = run_page(page, until="S0.02")

    assert edge_set(ctx) == {(1, 2): "real"}
    data = ctx.graph.edges[1, 2, "real"]
    assert (data["x"], data["y"]) == (10.0, 0.0)


def test_connection_to_folded_child_resolves_to_parent():
    page = make_page(
        box(1, 0, 0, 50, 20, children=[_text_child(2, 50, 20, "API")]),
        line(3, (60, 10), (50, 10)),
        connections=[connect(3, 2, ConnectionPart.BEGIN)],
    )
    ctx = run_page(page, until="S0.02")

    assert edge_set(ctx) == {(1, 3): "real"}
    assert ctx.graph.edges[1, 3, "real"]["x"] == 60.0


def test_real_connections_can_be_disabled():
    page = make_page(line(1, (0, 0), (10, 0)), box(2, 10, -1, 2, 2), connections=[connect(1, 2)])
    ctx = run_page(page, until="S0.02", helper=SemanticHelper(use_real_connections=False))

    assert ctx.graph.number_of_edges() == 0
