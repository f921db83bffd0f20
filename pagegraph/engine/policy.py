"""SemanticHelper — per-document policy consulted by the pipeline.

The stock helper accepts everything and observes nothing. Subclass it to veto
text association, change search distances, ignore author-drawn connections or
watch what the pipeline does.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pagegraph.config import settings

if TYPE_CHECKING:
    from pagegraph.engine.records import ShapeRecord
    from pagegraph.models.page import ShapeDescriptor


class SemanticHelper:
    def __init__(
        self,
        use_real_connections: bool | None = None,
        text_radius: float | None = None,
    ) -> None:
        self.use_real_connections = (
            settings.pagegraph_use_real_connections if use_real_connections is None else use_real_connections
        )
        self.text_radius = settings.pagegraph_text_search_radius if text_radius is None else text_radius

    # -- policy -------------------------------------------------------------

    def allow_real_connections(self) -> bool:
        """Ingest connections drawn by the author?"""
        return self.use_real_connections

    def text_search_radius(self, textbox: ShapeRecord) -> float:
        """How far from a textbox to look for a shape to label."""
        return self.text_radius

    def on_text_candidate(self, textbox: ShapeRecord, candidate: ShapeRecord) -> bool:
        """Return False to stop ``textbox`` labelling ``candidate``."""
        return True

    # -- observers ----------------------------------------------------------

    def on_create(self, record: ShapeRecord, shape: ShapeDescriptor) -> None:
        pass

    def on_reassign_to_parent(self, parent: ShapeRecord, shape: ShapeDescriptor) -> None:
        pass

    def on_group(self, label: ShapeRecord, children: list[ShapeRecord]) -> None:
        pass

    def on_secondary_group(self, label: ShapeRecord, children: list[ShapeRecord]) -> None:
        pass

    def on_assign_text(self, source: ShapeRecord, target: ShapeRecord) -> None:
        pass

    def on_clone_1d(self, original: ShapeRecord, segment: ShapeRecord) -> None:
        pass
