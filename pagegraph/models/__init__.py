from pagegraph.models.page import (
    ConnectionDescriptor,
    ConnectionPart,
    PageDescriptor,
    ShapeDescriptor,
)

__all__ = [
    "ConnectionDescriptor",
    "ConnectionPart",
    "PageDescriptor",
    "ShapeDescriptor",
]
