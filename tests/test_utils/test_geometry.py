"""Tests for geometry helpers."""

import numpy as np
import pytest
from shapely.geometry import LineString, Point, Polygon

from pagegraph.exceptions import MalformedGeometryError
from pagegraph.utils.geometry import (
    affine_matrix,
    bounds_contain_point,
    find_intersections,
    first_intersection,
    flatten_path,
    is_inside_or_on_boundary,
    parse_path_data,
    path_distance,
    path_intersects,
    polyline_geometry,
    rect_boundary,
    rect_distance,
    round_points,
)

SQUARE = Polygon([(0, 0), (10, 0), (10, 10), (0, 10)])


def test_parse_requires_move_to():
    with pytest.raises(MalformedGeometryError) as exc:
        parse_path_data("L 5 5", shape_id=3)
    assert exc.value.shape_id == 3

    with pytest.raises(MalformedGeometryError):
        parse_path_data("   ")


def test_flatten_keeps_straight_segments():
    path = parse_path_data("M0 0 L10 0 L10 10")
    assert flatten_path(path, 0.01) == [[(0.0, 0.0), (10.0, 0.0), (10.0, 10.0)]]


def test_flatten_splits_subpaths():
    path = parse_path_data("M0 0 L5 0 M10 0 L15 0")
    assert flatten_path(path, 0.01) == [[(0.0, 0.0), (5.0, 0.0)], [(10.0, 0.0), (15.0, 0.0)]]


def test_flatten_curve_within_tolerance():
    path = parse_path_data("M0 0 Q5 10 10 0")
    (polyline,) = flatten_path(path, 0.01)
    geom = LineString(polyline)

    assert polyline[0] == (0.0, 0.0)
    assert polyline[-1] == (10.0, 0.0)
    for t in np.linspace(0, 1, 11):
        p = path.point(t)
        assert geom.distance(Point(p.real, p.imag)) < 0.05


def test_round_points_clears_noise():
    pts = np.array([[1.000000000001, -0.0000000000001]])
    assert round_points(pts, 8) == [(1.0, 0.0)]


def test_rect_boundary_rotated():
    m = affine_matrix((0, 1, -1, 0, 0, 0))
    poly = rect_boundary(4, 2, m, 8)
    assert poly.bounds == (-2.0, 0.0, 0.0, 4.0)


def test_rect_boundary_degenerate():
    geom = rect_boundary(5, 0, affine_matrix((1, 0, 0, 1, 0, 0)), 8)
    assert geom.geom_type == "LineString"
    assert geom.length == pytest.approx(10.0)


def test_inside_or_on_boundary():
    assert is_inside_or_on_boundary(SQUARE, (5, 5))
    assert is_inside_or_on_boundary(SQUARE, (10, 5))
    assert not is_inside_or_on_boundary(SQUARE, (10.1, 5))
    assert is_inside_or_on_boundary(LineString([(0, 0), (10, 0)]), (3, 0))


def test_path_intersects_includes_interior():
    inner = LineString([(2, 2), (3, 3)])
    assert path_intersects(SQUARE, inner)
    assert not path_intersects(SQUARE, LineString([(20, 0), (30, 0)]))


def test_find_intersections_with_box():
    points = find_intersections(SQUARE, ((-5, 5), (15, 5)), 0.01)
    assert sorted(points) == [(0.0, 5.0), (10.0, 5.0)]


def test_find_intersections_merges_corner_hits():
    points = find_intersections(SQUARE, ((-5, -5), (5, 5)), 0.01)
    assert points == [(0.0, 0.0)]


def test_find_intersections_with_line():
    other = polyline_geometry([[(5, -5), (5, 5)], [(8, -5), (8, 5)]])
    points = find_intersections(other, ((0, 0), (10, 0)), 0.01)
    assert sorted(points) == [(5.0, 0.0), (8.0, 0.0)]


def test_first_intersection_along_path():
    zigzag = LineString([(0, 0), (10, 0), (10, 2), (0, 2)])
    post = LineString([(5, -1), (5, 3)])
    assert first_intersection(zigzag, post) == (5.0, 0.0)
    assert first_intersection(zigzag, LineString([(20, 20), (30, 30)])) is None


def test_path_distance():
    assert path_distance(LineString([(0, 0), (10, 0)]), (5, 3)) == pytest.approx(3.0)


def test_bounds_contain_point_tolerance():
    bounds = (0.0, 0.0, 10.0, 10.0)
    assert bounds_contain_point(bounds, (10.000001, 5), 1e-5)
    assert not bounds_contain_point(bounds, (10.001, 5), 1e-5)


def test_rect_distance():
    assert rect_distance((0, 0, 1, 1), (1, 0, 2, 1)) == 0.0
    assert rect_distance((0, 0, 1, 1), (4, 5, 6, 6)) == pytest.approx(5.0)
