"""pagegraph stage engine."""

from pagegraph.engine.registry import stage, Layer, get_registry
from pagegraph.engine.context import PageContext
from pagegraph.engine.records import GroupRecord, ShapeRecord
from pagegraph.engine.pipeline import Pipeline, build_page_graph

__all__ = [
    "stage",
    "Layer",
    "get_registry",
    "PageContext",
    "GroupRecord",
    "ShapeRecord",
    "Pipeline",
    "build_page_graph",
]
