"""Tests for the stage registry."""

import pytest

from pagegraph.engine.context import PageContext
from pagegraph.engine.pipeline import load_stages
from pagegraph.engine.registry import Layer, StageRegistry, StageSpec, get_registry


def _noop(ctx: PageContext) -> None:
    pass


def test_register_and_get():
    reg = StageRegistry()
    spec = StageSpec(id="S0.01", layer=Layer.COLLECTION, fn=_noop)
    reg.register(spec)
    assert reg.get("S0.01") is spec
    assert reg.count == 1


def test_duplicate_id_rejected():
    reg = StageRegistry()
    reg.register(StageSpec(id="S0.01", layer=Layer.COLLECTION, fn=_noop))
    with pytest.raises(ValueError, match="Duplicate"):
        reg.register(StageSpec(id="S0.01", layer=Layer.COLLECTION, fn=_noop))


def test_get_layer():
    reg = StageRegistry()
    reg.register(StageSpec(id="S0.01", layer=Layer.COLLECTION, fn=_noop))
    reg.register(StageSpec(id="S1.01", layer=Layer.FILTERING, fn=_noop))
    layer0 = reg.get_layer(Layer.COLLECTION)
    assert len(layer0) == 1
    assert layer0[0].id == "S0.01"


def test_resolve_order_with_deps():
    reg = StageRegistry()
    reg.register(StageSpec(id="S3.01", layer=Layer.INFERENCE, fn=_noop, dependencies=["S0.02"]))
    reg.register(StageSpec(id="S0.02", layer=Layer.COLLECTION, fn=_noop))
    reg.register(StageSpec(id="S4.02", layer=Layer.CLEANUP, fn=_noop))
    ids = [s.id for s in reg.resolve_order({"S3.01"})]
    assert ids == ["S0.02", "S3.01"]


def test_cycle_detected():
    reg = StageRegistry()
    reg.register(StageSpec(id="S2.01", layer=Layer.GROUPING, fn=_noop, dependencies=["S2.02"]))
    reg.register(StageSpec(id="S2.02", layer=Layer.GROUPING, fn=_noop, dependencies=["S2.01"]))
    with pytest.raises(ValueError, match="Circular"):
        reg.resolve_order()


def test_all_stages_registered_in_order():
    load_stages()
    ids = [s.id for s in get_registry().resolve_order()]
    assert ids == [
        "S0.01", "S0.02", "S1.01", "S2.01", "S2.02", "S2.03",
        "S2.04", "S3.01", "S3.02", "S4.01", "S4.02",
    ]
