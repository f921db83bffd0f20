"""PageContext — the single mutable state object flowing through all stages.

Owns the shape table, the spatial index and the graph for one page.
Removal is two-phase: ``remove_shape`` only flags a record, ``clean_shapes``
purges every flagged record from all three structures at once. Queries made
through the context never return flagged records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import networkx as nx

from pagegraph.engine.config import PipelineConfig
from pagegraph.engine.graph import Edge, add_edge, incident_edges, neighbor_ids, new_graph
from pagegraph.engine.hierarchy import ShapeTree
from pagegraph.engine.policy import SemanticHelper
from pagegraph.engine.records import GroupRecord, ShapeRecord
from pagegraph.engine.spatial_index import SpatialIndex
from pagegraph.exceptions import InternalConsistencyError
from pagegraph.models.page import PageDescriptor
from pagegraph.utils.geometry import Point2, Polyline

logger = logging.getLogger(__name__)


@dataclass
class PageContext:
    """Shared state for one page run."""

    page: PageDescriptor
    helper: SemanticHelper = field(default_factory=SemanticHelper)
    config: PipelineConfig = field(default_factory=PipelineConfig)
    graph: nx.MultiDiGraph = field(default_factory=new_graph)
    index: SpatialIndex = field(default_factory=SpatialIndex)

    # Shape table: id lookup plus processing order
    shapes_map: dict[int, ShapeRecord] = field(default_factory=dict)
    shapes: list[ShapeRecord] = field(default_factory=list)
    # Synthetic records created mid-stage: in shapes_map at once,
    # indexed and appended to the processing order on clean
    pending: list[ShapeRecord] = field(default_factory=list)

    groups: list[GroupRecord] = field(default_factory=list)
    secondary_groups: list[GroupRecord] = field(default_factory=list)

    completed_stages: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        self.tree = ShapeTree(self.page)
        self._next_synthetic_id = self.config.synthetic_id_start

    @property
    def num_shapes(self) -> int:
        return len(self.shapes)

    # -- shape table --------------------------------------------------------

    def add_shape(self, record: ShapeRecord, properties: dict[str, Any]) -> None:
        """Register a new record and its vertex."""
        self.graph.add_node(record.shape_id, **properties)
        self.shapes_map[record.shape_id] = record
        self.shapes.append(record)

    def get_shape(self, shape_id: int) -> ShapeRecord | None:
        record = self.shapes_map.get(shape_id)
        if record is not None and not record.removed:
            return record
        return None

    def find_shape_or_parent(self, shape_id: int) -> ShapeRecord | None:
        """The shape's own live record, else the nearest ancestor that has one."""
        record = self.get_shape(shape_id)
        if record is not None or shape_id not in self.tree:
            return record
        for ancestor in self.tree.ancestors(shape_id):
            record = self.get_shape(ancestor.id)
            if record is not None:
                return record
        return None

    def find_topmost_parent_with_geom(self, record: ShapeRecord) -> ShapeRecord | None:
        """Outermost live ancestor (or the shape itself) that has its own geometry."""
        found = record if record.has_geometry else None
        if record.shape_id not in self.tree:
            return found
        for ancestor in self.tree.ancestors(record.shape_id):
            candidate = self.get_shape(ancestor.id)
            if candidate is not None and candidate.has_geometry:
                found = candidate
        return found

    def remove_shape(self, record: ShapeRecord) -> None:
        """Flag ``record``; it disappears everywhere on the next ``clean_shapes``."""
        record.removed = True

    def clean_shapes(self) -> int:
        """Purge flagged records from table, index and graph; admit pending ones."""
        removed = [r for r in self.shapes_map.values() if r.removed]
        for record in removed:
            self.index.delete(record)
            if self.graph.has_node(record.shape_id):
                self.graph.remove_node(record.shape_id)
            self.shapes_map.pop(record.shape_id, None)

        admitted = [r for r in self.pending if not r.removed]
        for record in admitted:
            self.index.insert(record)
        self.shapes = [r for r in self.shapes if not r.removed]
        self.shapes.extend(admitted)
        self.pending.clear()

        if removed:
            logger.debug("Purged %d shapes, %d remain", len(removed), len(self.shapes))
        return len(removed)

    def set_property(self, record: ShapeRecord, key: str, value: Any) -> None:
        self.graph.nodes[record.shape_id][key] = value

    def get_property(self, record: ShapeRecord, key: str, default: Any = None) -> Any:
        return self.graph.nodes[record.shape_id].get(key, default)

    # -- spatial queries ----------------------------------------------------

    def search(self, record: ShapeRecord) -> list[ShapeRecord]:
        """Live records whose index rectangle overlaps ``record``'s."""
        return [r for r in self.index.search(record.index_bounds) if not r.removed]

    def nearest(self, record: ShapeRecord, max_distance: float) -> list[ShapeRecord]:
        hits = self.index.nearest(record.index_bounds, max_distance, len(self.index))
        return [r for r in hits if not r.removed]

    # -- edges --------------------------------------------------------------

    def create_edge(self, a: ShapeRecord, b: ShapeRecord, edge_type: str, point: Point2 | None = None) -> bool:
        """Connect two shapes. A no-op if they are already connected by any edge."""
        if a is b:
            return False
        return add_edge(self.graph, a.shape_id, b.shape_id, edge_type, point)

    def edges(self, record: ShapeRecord) -> list[Edge]:
        """Edges of ``record`` whose other end is still live."""
        live = []
        for edge in incident_edges(self.graph, record.shape_id):
            other = self.shapes_map.get(self.partner_id(edge, record))
            if other is not None and not other.removed:
                live.append(edge)
        return live

    def has_edges(self, record: ShapeRecord) -> bool:
        return bool(self.edges(record))

    def partner_id(self, edge: Edge, record: ShapeRecord) -> int:
        u, v = edge[0], edge[1]
        if u == record.shape_id:
            return v
        if v == record.shape_id:
            return u
        raise InternalConsistencyError(
            record.shape_id, "edge has neither endpoint equal to the shape under inspection", f"{u} -> {v}"
        )

    def partner(self, edge: Edge, record: ShapeRecord) -> ShapeRecord:
        pid = self.partner_id(edge, record)
        other = self.get_shape(pid)
        if other is None:
            raise InternalConsistencyError(pid, "edge points at a shape with no live record")
        return other

    def neighbors(self, record: ShapeRecord) -> list[ShapeRecord]:
        found = []
        for nid in neighbor_ids(self.graph, record.shape_id):
            other = self.get_shape(nid)
            if other is not None:
                found.append(other)
        return found

    def remove_edge(self, edge: Edge) -> None:
        u, v, key, _ = edge
        if self.graph.has_edge(u, v, key):
            self.graph.remove_edge(u, v, key)

    # -- synthetic shapes ---------------------------------------------------

    def next_synthetic_id(self) -> int:
        shape_id = self._next_synthetic_id
        self._next_synthetic_id -= 1
        return shape_id

    def clone_1d_shape(self, polylines: list[Polyline], original: ShapeRecord) -> ShapeRecord:
        """A new line segment cut from ``original``.

        The segment is in the graph and resolvable by id at once; it joins the
        spatial index on the next ``clean_shapes`` so queries made while a stage
        is still cutting lines do not force an index rebuild.
        """
        shape_id = self.next_synthetic_id()
        record = ShapeRecord.segment_of(shape_id, original, polylines)

        properties = dict(self.graph.nodes[original.shape_id])
        properties.update(label="", shape_id=shape_id, shape_ref=original.shape_id)
        properties.pop("text_ref", None)
        properties.pop("text_ref_why", None)
        properties["x"], properties["y"] = record.center

        self.graph.add_node(shape_id, **properties)
        self.shapes_map[shape_id] = record
        self.pending.append(record)
        self.helper.on_clone_1d(original, record)
        return record
