"""Entry point: environment-driven logging plus one-call page processing."""

from __future__ import annotations

import logging

import networkx as nx
from dotenv import load_dotenv

from pagegraph.config import settings
from pagegraph.engine.config import PipelineConfig
from pagegraph.engine.pipeline import build_page_graph
from pagegraph.engine.policy import SemanticHelper
from pagegraph.models.page import PageDescriptor

load_dotenv()

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    level_name = (level or settings.pagegraph_log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def process_page(
    page: PageDescriptor,
    helper: SemanticHelper | None = None,
    config: PipelineConfig | None = None,
) -> nx.MultiDiGraph:
    """Build the connectivity graph for ``page`` with logging configured."""
    configure_logging()
    logger.debug("Processing page %r (%s environment)", page.name, settings.pagegraph_env)
    return build_page_graph(page, helper=helper, config=config)
