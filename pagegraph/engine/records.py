"""ShapeRecord / GroupRecord — the per-shape state the stages work on.

Every surviving diagram shape (or synthetic line segment) has exactly one
ShapeRecord, owned by the page's shape table. The spatial index and the graph
refer to records by ``shape_id`` only.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray
from shapely.geometry.base import BaseGeometry

from pagegraph.engine.config import PipelineConfig
from pagegraph.models.page import ShapeDescriptor
from pagegraph.utils.geometry import (
    Bounds,
    Point2,
    Polyline,
    flatten_path,
    parse_path_data,
    polyline_geometry,
    rect_boundary,
    transform_point,
    transform_polylines,
)


def reduced_precision(bounds: Bounds) -> Bounds:
    """Single-precision copy of ``bounds`` used as the spatial index key."""
    return tuple(float(v) for v in np.asarray(bounds, dtype=np.float32))  # type: ignore[return-value]


def area32(width: float, height: float) -> float:
    """Area in the same single precision as the index rectangles."""
    return float(np.float32(width) * np.float32(height))


def overlap_area32(a: Bounds, b: Bounds) -> float:
    x_overlap = max(0.0, min(a[2], b[2]) - max(a[0], b[0]))
    y_overlap = max(0.0, min(a[3], b[3]) - max(a[1], b[1]))
    return area32(x_overlap, y_overlap)


def is_interesting(desc: ShapeDescriptor) -> bool:
    return bool(desc.symbol_name) or desc.is_1d or desc.has_master or desc.has_text


@dataclass(eq=False)
class ShapeRecord:
    """One diagram shape, in page coordinates."""

    shape_id: int
    # Exact bounds (minx, miny, maxx, maxy); use for every geometric test
    bounds: Bounds
    # float32 bounds; only for the spatial index and enclosure comparisons
    index_bounds: Bounds
    area: float

    # 1-D shapes: flattened path (one polyline per sub-path) plus endpoints
    polylines: list[Polyline] | None = None
    start: Point2 | None = None
    end: Point2 | None = None
    # 2-D shapes: boundary path
    boundary: BaseGeometry | None = None
    line_geometry: BaseGeometry | None = None

    has_geometry: bool = False
    has_text: bool = False
    is_textbox: bool = False
    is_interesting: bool = False
    removed: bool = False
    text_center: Point2 | None = None

    symbol_name: str = ""
    shape_type: str = ""
    line_color: str | None = None
    line_pattern: int | None = None

    # How many secondary groups claimed this shape
    secondary_group_count: int = 0

    @classmethod
    def from_descriptor(
        cls,
        desc: ShapeDescriptor,
        matrix: NDArray[np.float64],
        config: PipelineConfig,
    ) -> ShapeRecord:
        decimals = config.coordinate_decimals
        polylines: list[Polyline] | None = None
        boundary: BaseGeometry | None = None

        # Some 1-D shapes carry no path of their own; treat them as boxes
        if desc.is_1d and desc.path is not None:
            path = parse_path_data(desc.path, desc.id)
            polylines = transform_polylines(
                flatten_path(path, config.flatten_tolerance), matrix, decimals
            )
            has_geometry = True
            outline = polyline_geometry(polylines)
        else:
            boundary = rect_boundary(desc.width, desc.height, matrix, decimals)
            has_geometry = desc.path is not None
            outline = boundary

        has_text = desc.has_text
        record = cls._build(
            shape_id=desc.id,
            outline=outline,
            polylines=polylines,
            boundary=boundary,
            has_geometry=has_geometry,
        )
        record.is_interesting = is_interesting(desc)
        record.has_text = has_text
        record.is_textbox = has_text and not desc.has_master and not desc.has_master_shape
        record.text_center = transform_point(matrix, desc.local_text_center) if has_text else None
        record.symbol_name = desc.symbol_name
        record.shape_type = desc.shape_type
        record.line_color = desc.line_color
        record.line_pattern = desc.line_pattern
        return record

    @classmethod
    def segment_of(cls, shape_id: int, original: ShapeRecord, polylines: list[Polyline]) -> ShapeRecord:
        """A synthetic piece of ``original``'s line."""
        record = cls._build(
            shape_id=shape_id,
            outline=polyline_geometry(polylines),
            polylines=polylines,
            boundary=None,
            has_geometry=True,
        )
        record.is_interesting = original.is_interesting
        record.symbol_name = original.symbol_name
        record.shape_type = original.shape_type
        record.line_color = original.line_color
        record.line_pattern = original.line_pattern
        return record

    @classmethod
    def _build(cls, *, shape_id, outline, polylines, boundary, has_geometry) -> ShapeRecord:
        bounds = tuple(float(v) for v in outline.bounds)
        index_bounds = reduced_precision(bounds)
        area = area32(index_bounds[2] - index_bounds[0], index_bounds[3] - index_bounds[1])
        start = end = None
        if polylines is not None:
            start = polylines[0][0]
            end = polylines[-1][-1]
        return cls(
            shape_id=shape_id,
            bounds=bounds,  # type: ignore[arg-type]
            index_bounds=index_bounds,
            area=area,
            polylines=polylines,
            start=start,
            end=end,
            boundary=boundary,
            line_geometry=outline if polylines is not None else None,
            has_geometry=has_geometry,
        )

    def is_1d(self) -> bool:
        return self.polylines is not None

    @property
    def geometry(self) -> BaseGeometry:
        """The 1-D path or the 2-D boundary, whichever this shape has."""
        return self.line_geometry if self.polylines is not None else self.boundary

    @property
    def center(self) -> Point2:
        x0, y0, x1, y1 = self.index_bounds
        return (x0 + (x1 - x0) / 2, y0 + (y1 - y0) / 2)

    @property
    def width(self) -> float:
        return self.bounds[2] - self.bounds[0]

    def encloses(self, other: ShapeRecord) -> bool:
        """Visual containment: the index rectangles overlap by all of ``other``'s area."""
        return overlap_area32(self.index_bounds, other.index_bounds) >= other.area

    def __repr__(self) -> str:
        return f"<ShapeRecord {self.shape_id}>"


def either_encloses(a: ShapeRecord, b: ShapeRecord) -> bool:
    return overlap_area32(a.index_bounds, b.index_bounds) >= min(a.area, b.area)


def order_by_largest_area(records: list[ShapeRecord]) -> None:
    """Sort in place, largest first. Stable for equal areas."""
    records.sort(key=lambda r: -r.area)


@dataclass(eq=False)
class GroupRecord:
    """A label shape and the shapes it visually contains."""

    label: ShapeRecord
    children: list[ShapeRecord] = field(default_factory=list)
    formal: bool = True

    def __repr__(self) -> str:
        kind = "formal" if self.formal else "secondary"
        return f"<GroupRecord {kind} {self.label.shape_id} ({len(self.children)} children)>"
