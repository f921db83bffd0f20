"""Leaf-node geometry helpers. No engine imports.

Paths come in as SVG path data, are flattened into polylines and handed to
shapely for every predicate. Points are plain ``(x, y)`` tuples.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray
from shapely.geometry import LineString, MultiLineString, Point, Polygon
from shapely.geometry.base import BaseGeometry
from svgpathtools import Line, Path, parse_path

from pagegraph.exceptions import MalformedGeometryError

Point2 = tuple[float, float]
Polyline = list[Point2]
Bounds = tuple[float, float, float, float]

# Curves are split at least this many times before the flatness test,
# so S-shaped segments whose midpoint sits on the chord are not missed.
_MIN_CURVE_SPLITS = 4
_MAX_CURVE_DEPTH = 12

# Distance below which a point counts as lying on a 1-D path.
ON_PATH_EPS = 1e-9


# ---------------------------------------------------------------------------
# Affine transforms
# ---------------------------------------------------------------------------


def affine_matrix(values: Sequence[float]) -> NDArray[np.float64]:
    """Build a 3x3 homogeneous matrix from SVG-style (a, b, c, d, e, f)."""
    a, b, c, d, e, f = values
    return np.array([[a, c, e], [b, d, f], [0.0, 0.0, 1.0]], dtype=np.float64)


def identity() -> NDArray[np.float64]:
    return np.eye(3, dtype=np.float64)


def compose(parent: NDArray[np.float64], local: NDArray[np.float64]) -> NDArray[np.float64]:
    """Local-to-page transform of a child given its parent's local-to-page transform."""
    return parent @ local


def apply_affine(matrix: NDArray[np.float64], points: Sequence[Point2]) -> NDArray[np.float64]:
    """Transform an Nx2 point sequence."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    homo = np.hstack([pts, np.ones((len(pts), 1))])
    return (homo @ matrix.T)[:, :2]


def transform_point(matrix: NDArray[np.float64], point: Point2) -> Point2:
    x, y = apply_affine(matrix, [point])[0]
    return (float(x), float(y))


def round_points(points: NDArray[np.float64], decimals: int) -> Polyline:
    """Round coordinates to kill floating-point noise from transforms."""
    rounded = np.round(points, decimals) + 0.0  # +0.0 folds -0.0 into 0.0
    return [(float(x), float(y)) for x, y in rounded]


# ---------------------------------------------------------------------------
# Path parsing and flattening
# ---------------------------------------------------------------------------


def parse_path_data(d: str, shape_id: int | None = None) -> Path:
    """Parse SVG path data. The data must open with a move-to."""
    stripped = d.strip()
    if not stripped or stripped[0] not in "Mm":
        raise MalformedGeometryError(shape_id, "path must begin with a move-to", stripped[:20])
    path = parse_path(stripped)
    if len(path) == 0:
        raise MalformedGeometryError(shape_id, "path has no drawable segments", stripped[:20])
    return path


def _chord_distance(p: complex, a: complex, b: complex) -> float:
    ab = b - a
    if abs(ab) < 1e-15:
        return abs(p - a)
    t = ((p - a).real * ab.real + (p - a).imag * ab.imag) / (abs(ab) ** 2)
    t = min(1.0, max(0.0, t))
    return abs(p - (a + t * ab))


def _flatten_curve(seg, t0: float, t1: float, p0: complex, p1: complex,
                   tolerance: float, depth: int, out: list[complex]) -> None:
    tm = (t0 + t1) / 2
    pm = seg.point(tm)
    if depth < _MIN_CURVE_SPLITS or (
        depth < _MAX_CURVE_DEPTH and _chord_distance(pm, p0, p1) > tolerance
    ):
        _flatten_curve(seg, t0, tm, p0, pm, tolerance, depth + 1, out)
        _flatten_curve(seg, tm, t1, pm, p1, tolerance, depth + 1, out)
    else:
        out.append(p1)


def flatten_path(path: Path, tolerance: float) -> list[list[Point2]]:
    """Flatten a path into straight polylines, one per continuous sub-path.

    Straight segments are kept exactly; curves are subdivided until the
    midpoint of each piece is within ``tolerance`` of its chord.
    """
    polylines: list[list[complex]] = []
    current: list[complex] = []
    for seg in path:
        if not current or abs(seg.start - current[-1]) > 1e-12:
            if len(current) > 1:
                polylines.append(current)
            current = [seg.start]
        if isinstance(seg, Line):
            current.append(seg.end)
        else:
            _flatten_curve(seg, 0.0, 1.0, seg.start, seg.end, tolerance, 0, current)
    if len(current) > 1:
        polylines.append(current)
    return [[(p.real, p.imag) for p in pl] for pl in polylines]


def transform_polylines(
    polylines: Sequence[Sequence[Point2]],
    matrix: NDArray[np.float64],
    decimals: int,
) -> list[Polyline]:
    return [round_points(apply_affine(matrix, pl), decimals) for pl in polylines]


def polyline_geometry(polylines: Sequence[Sequence[Point2]]) -> BaseGeometry:
    """Shapely geometry for a 1-D path."""
    parts = [list(pl) for pl in polylines if len(pl) > 1]
    if len(parts) == 1:
        return LineString(parts[0])
    return MultiLineString(parts)


def rect_boundary(width: float, height: float, matrix: NDArray[np.float64], decimals: int) -> BaseGeometry:
    """The 2-D boundary of a shape: its local bounds rectangle mapped to the page."""
    corners = round_points(
        apply_affine(matrix, [(0.0, 0.0), (width, 0.0), (width, height), (0.0, height)]),
        decimals,
    )
    poly = Polygon(corners)
    if poly.area <= 0.0:
        # Zero-width or zero-height shapes degrade to their outline
        return LineString(corners + [corners[0]])
    return poly


# ---------------------------------------------------------------------------
# Predicates and measurements
# ---------------------------------------------------------------------------


def path_intersects(a: BaseGeometry, b: BaseGeometry) -> bool:
    """True when two paths touch or cross; a closed path includes its interior."""
    return bool(a.intersects(b))


def is_inside_or_on_boundary(geom: BaseGeometry, point: Point2) -> bool:
    pt = Point(point)
    return bool(geom.covers(pt)) or geom.distance(pt) <= ON_PATH_EPS


def path_distance(geom: BaseGeometry, point: Point2) -> float:
    return float(geom.distance(Point(point)))


def _collect_points(geom: BaseGeometry, out: list[Point2]) -> None:
    if geom.is_empty:
        return
    kind = geom.geom_type
    if kind == "Point":
        out.append((geom.x, geom.y))
    elif kind in ("LineString", "LinearRing"):
        # Collinear overlap: the overlap's ends are where the paths meet
        coords = list(geom.coords)
        out.append(coords[0])
        out.append(coords[-1])
    elif hasattr(geom, "geoms"):
        for part in geom.geoms:
            _collect_points(part, out)


def _dedupe(points: list[Point2], tolerance: float) -> list[Point2]:
    kept: list[Point2] = []
    for p in points:
        if all(math.dist(p, q) > tolerance for q in kept):
            kept.append(p)
    return kept


def find_intersections(geom: BaseGeometry, segment: tuple[Point2, Point2], tolerance: float) -> list[Point2]:
    """Points where a straight segment crosses the outline of ``geom``.

    Closed shapes are cut at their boundary, 1-D paths along their length.
    Crossings closer than ``tolerance`` to one another are merged.
    """
    outline = geom.boundary if geom.geom_type in ("Polygon", "MultiPolygon") else geom
    hit = outline.intersection(LineString(segment))
    points: list[Point2] = []
    _collect_points(hit, points)
    return _dedupe([(float(x), float(y)) for x, y in points], tolerance)


def first_intersection(a: BaseGeometry, b: BaseGeometry) -> Point2 | None:
    """The intersection of two paths reached first when walking along ``a``."""
    hit = a.intersection(b)
    points: list[Point2] = []
    _collect_points(hit, points)
    if not points:
        return None
    points.sort(key=lambda p: a.project(Point(p)))
    x, y = points[0]
    return (float(x), float(y))


def bounds_contain_point(bounds: Bounds, point: Point2, tolerance: float) -> bool:
    """Does a ±tolerance box around ``point`` touch ``bounds``?"""
    minx, miny, maxx, maxy = bounds
    x, y = point
    return (
        x + tolerance >= minx
        and x - tolerance <= maxx
        and y + tolerance >= miny
        and y - tolerance <= maxy
    )


def rect_distance(a: Bounds, b: Bounds) -> float:
    """Euclidean gap between two axis-aligned rectangles; 0 when they touch."""
    dx = max(0.0, b[0] - a[2], a[0] - b[2])
    dy = max(0.0, b[1] - a[3], a[1] - b[3])
    return math.hypot(dx, dy)
