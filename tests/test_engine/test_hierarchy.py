"""Tests for the shape hierarchy lookups."""

import numpy as np
import pytest

from pagegraph.engine.hierarchy import ShapeTree
from pagegraph.exceptions import MalformedPageError
from pagegraph.models.page import ShapeDescriptor
from pagegraph.utils.geometry import transform_point
from tests.conftest import box, make_page


def _nested_page():
    inner = box(3, 1, 1, 2, 2)
    middle = box(2, 10, 0, 5, 5, children=[inner])
    return make_page(box(1, 100, 100, 20, 20, children=[middle]), box(4, 0, 0, 1, 1))


def test_walk_is_parent_first():
    tree = ShapeTree(_nested_page())
    assert [desc.id for desc, _ in tree.walk()] == [1, 2, 3, 4]


def test_walk_accumulates_transforms():
    tree = ShapeTree(_nested_page())
    matrices = {desc.id: m for desc, m in tree.walk()}

    assert transform_point(matrices[3], (0.0, 0.0)) == (111.0, 101.0)
    assert np.allclose(matrices[4], np.eye(3))


def test_scaled_parent():
    child = ShapeDescriptor(id=2, transform=(1, 0, 0, 1, 5, 5))
    parent = ShapeDescriptor(id=1, transform=(2, 0, 0, 2, 0, 0), children=[child])
    matrices = {desc.id: m for desc, m in ShapeTree(make_page(parent)).walk()}

    assert transform_point(matrices[2], (1.0, 1.0)) == (12.0, 12.0)


def test_ancestors_and_descendants():
    tree = ShapeTree(_nested_page())

    assert [a.id for a in tree.ancestors(3)] == [2, 1]
    assert list(tree.ancestors(1)) == []
    assert [d.id for d in tree.descendants(1)] == [2, 3]
    assert tree.parent_id(2) == 1
    assert tree.parent_id(4) is None
    assert 3 in tree
    assert 99 not in tree
    assert len(tree) == 4


def test_duplicate_ids_rejected():
    page = make_page(box(1, 0, 0, 1, 1, children=[box(1, 0, 0, 1, 1)]))
    with pytest.raises(MalformedPageError) as exc:
        ShapeTree(page)
    assert exc.value.shape_id == 1
