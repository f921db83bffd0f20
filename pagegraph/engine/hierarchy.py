"""ShapeTree — lookups over the page's shape hierarchy."""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np
from numpy.typing import NDArray

from pagegraph.exceptions import MalformedPageError
from pagegraph.models.page import PageDescriptor, ShapeDescriptor
from pagegraph.utils.geometry import affine_matrix, compose, identity


class ShapeTree:
    """Id and parent lookups plus the depth-first walk with page transforms."""

    def __init__(self, page: PageDescriptor) -> None:
        self.page = page
        self._by_id: dict[int, ShapeDescriptor] = {}
        self._parent: dict[int, int | None] = {}

        stack: list[tuple[ShapeDescriptor, int | None]] = [(s, None) for s in reversed(page.shapes)]
        while stack:
            shape, parent_id = stack.pop()
            if shape.id in self._by_id:
                raise MalformedPageError(shape.id, "shape ids must be unique within a page")
            self._by_id[shape.id] = shape
            self._parent[shape.id] = parent_id
            stack.extend((child, shape.id) for child in reversed(shape.children))

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, shape_id: int) -> bool:
        return shape_id in self._by_id

    def get(self, shape_id: int) -> ShapeDescriptor | None:
        return self._by_id.get(shape_id)

    def parent_id(self, shape_id: int) -> int | None:
        return self._parent.get(shape_id)

    def ancestors(self, shape_id: int) -> Iterator[ShapeDescriptor]:
        """Parent first, root last."""
        pid = self._parent.get(shape_id)
        while pid is not None:
            yield self._by_id[pid]
            pid = self._parent[pid]

    def descendants(self, shape_id: int) -> Iterator[ShapeDescriptor]:
        """Depth-first, parent before child, excluding the shape itself."""
        stack = list(reversed(self._by_id[shape_id].children))
        while stack:
            shape = stack.pop()
            yield shape
            stack.extend(reversed(shape.children))

    def walk(self) -> Iterator[tuple[ShapeDescriptor, NDArray[np.float64]]]:
        """Every shape, parent before child, with its local-to-page transform."""
        stack: list[tuple[ShapeDescriptor, NDArray[np.float64]]] = [
            (s, identity()) for s in reversed(self.page.shapes)
        ]
        while stack:
            shape, parent_matrix = stack.pop()
            matrix = compose(parent_matrix, affine_matrix(shape.transform))
            yield shape, matrix
            stack.extend((child, matrix) for child in reversed(shape.children))
