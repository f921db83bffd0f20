"""Pre-parsed page model — the shape hierarchy handed over by the file-format layer."""

from __future__ import annotations

import enum

from pydantic import BaseModel, Field


class ConnectionPart(str, enum.Enum):
    BEGIN = "begin"
    END = "end"
    OTHER = "other"


class ShapeDescriptor(BaseModel):
    """One shape as found in the document, coordinates local to its parent."""

    id: int = Field(ge=0)
    name: str = ""
    shape_type: str = "Shape"
    symbol_name: str = ""
    text: str | None = None
    # Local coordinates; defaults to the centre of the local bounds
    text_center: tuple[float, float] | None = None
    has_master: bool = False
    has_master_shape: bool = False
    is_1d: bool = False
    # SVG path data, local coordinates
    path: str | None = None
    width: float = 0.0
    height: float = 0.0
    # Local-to-parent affine (a, b, c, d, e, f) as in SVG matrix()
    transform: tuple[float, float, float, float, float, float] = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)
    line_color: str | None = None
    line_pattern: int | None = None
    children: list[ShapeDescriptor] = Field(default_factory=list)

    @property
    def has_text(self) -> bool:
        return bool(self.text)

    @property
    def local_text_center(self) -> tuple[float, float]:
        if self.text_center is not None:
            return self.text_center
        return (self.width / 2, self.height / 2)


class ConnectionDescriptor(BaseModel):
    """An author-drawn glue between two shapes."""

    from_shape: int
    from_part: ConnectionPart = ConnectionPart.OTHER
    to_shape: int


class PageDescriptor(BaseModel):
    """A single diagram page."""

    id: int = 0
    name: str = ""
    shapes: list[ShapeDescriptor] = Field(default_factory=list)
    connections: list[ConnectionDescriptor] = Field(default_factory=list)
