"""Exceptions raised while turning a diagram page into a graph."""

from __future__ import annotations


class PageGraphError(Exception):
    """Base exception for all pagegraph errors."""
    pass


class PageProcessingError(PageGraphError):
    """A page cannot be processed. Carries the offending shape and the broken invariant."""

    def __init__(self, shape_id: int | None, invariant: str, message: str = "") -> None:
        self.shape_id = shape_id
        self.invariant = invariant
        self.message = message or invariant
        super().__init__(f"shape {shape_id}: {invariant}" + (f" ({message})" if message else ""))


class MalformedGeometryError(PageProcessingError):
    """Raised when a shape's geometry cannot be interpreted."""
    pass


class MalformedPageError(PageProcessingError):
    """Raised when the shape hierarchy itself is inconsistent."""
    pass


class UnresolvedShapeError(PageProcessingError):
    """Raised when a connection names a shape with no live record or ancestor."""
    pass


class InternalConsistencyError(PageProcessingError):
    """Raised when graph and shape table disagree."""
    pass
