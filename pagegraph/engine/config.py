"""Pipeline configuration — tolerances and constants used by the stages."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class PipelineConfig:
    """Numeric knobs for one page run. All distances are in page units."""

    # Text reassignment: child and ancestor must share left edge and width
    text_reassign_tolerance: float = 1e-4

    # Curve flattening before splitting lines
    flatten_tolerance: float = 0.01

    # Near-duplicate merge distance for boundary crossings
    intersection_tolerance: float = 0.01

    # Half-size of the query box used by the connection point deduper
    connection_point_tolerance: float = 1e-5

    # Rounding applied to every transformed coordinate
    coordinate_decimals: int = 8

    # Synthetic shapes count down from here; real ids are >= 0
    synthetic_id_start: int = -42
