"""Pipeline orchestrator — runs stages in dependency order, one page at a time."""

from __future__ import annotations

import importlib
import logging
import pkgutil
import time

import networkx as nx

from pagegraph.engine.config import PipelineConfig
from pagegraph.engine.context import PageContext
from pagegraph.engine.policy import SemanticHelper
from pagegraph.engine.registry import Layer, StageRegistry, get_registry
from pagegraph.exceptions import PageProcessingError
from pagegraph.models.page import PageDescriptor

logger = logging.getLogger(__name__)

_LAYER_PACKAGES = ["layer0", "layer1", "layer2", "layer3", "layer4"]


def load_stages() -> None:
    """Import all stage modules so @stage decorators fire."""
    for layer_name in _LAYER_PACKAGES:
        package_name = f"pagegraph.engine.{layer_name}"
        package = importlib.import_module(package_name)
        for _, module_name, _ in pkgutil.iter_modules(package.__path__):
            importlib.import_module(f"{package_name}.{module_name}")


class Pipeline:
    """Orchestrates the stage pipeline.

    Stages run strictly in sequence. A PageProcessingError from any stage
    aborts the page: it is logged and re-raised, nothing partial is kept.
    """

    def __init__(
        self,
        registry: StageRegistry | None = None,
        config: PipelineConfig | None = None,
    ) -> None:
        if registry is None:
            load_stages()
            registry = get_registry()
        self.registry = registry
        self.config = config or PipelineConfig()

    def run(self, ctx: PageContext) -> PageContext:
        """Run every stage on the given context."""
        start = time.perf_counter()
        ordered = self.registry.resolve_order()

        logger.info("Page %r: %d stages queued, %d shapes in hierarchy", ctx.page.name, len(ordered), len(ctx.tree))

        for spec in ordered:
            t0 = time.perf_counter()
            try:
                spec.fn(ctx)
            except PageProcessingError as e:
                logger.error("  %s aborted page %r at shape %s: %s", spec.id, ctx.page.name, e.shape_id, e.invariant)
                raise
            ctx.completed_stages.add(spec.id)
            elapsed = (time.perf_counter() - t0) * 1000
            logger.debug("  %s completed in %.1fms", spec.id, elapsed)

        total = (time.perf_counter() - start) * 1000
        logger.info(
            "Page %r complete: %d vertices, %d edges in %.0fms",
            ctx.page.name,
            ctx.graph.number_of_nodes(),
            ctx.graph.number_of_edges(),
            total,
        )
        return ctx

    def run_layer(self, ctx: PageContext, layer: Layer) -> PageContext:
        """Run only stages in a specific layer."""
        for spec in self.registry.get_layer(layer):
            spec.fn(ctx)
            ctx.completed_stages.add(spec.id)
        return ctx

    def run_until(self, ctx: PageContext, stage_id: str) -> PageContext:
        """Run ``stage_id`` and everything it depends on."""
        for spec in self.registry.resolve_order({stage_id}):
            spec.fn(ctx)
            ctx.completed_stages.add(spec.id)
        return ctx


def create_pipeline(config: PipelineConfig | None = None) -> Pipeline:
    """Factory function for creating a pipeline instance."""
    return Pipeline(config=config)


def build_page_graph(
    page: PageDescriptor,
    helper: SemanticHelper | None = None,
    config: PipelineConfig | None = None,
) -> nx.MultiDiGraph:
    """Turn one page into its connectivity graph."""
    pipeline = create_pipeline(config)
    ctx = PageContext(page=page, helper=helper or SemanticHelper(), config=pipeline.config)
    return pipeline.run(ctx).graph
