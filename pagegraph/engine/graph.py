"""Helpers over the networkx property graph.

Vertices are keyed by shape id. Between any two shapes there is at most one
edge, stored from the lower id to the higher id, whatever its type.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import networkx as nx

from pagegraph.utils.geometry import Point2

Edge = tuple[int, int, Any, dict[str, Any]]


def new_graph() -> nx.MultiDiGraph:
    return nx.MultiDiGraph()


def canonical_pair(a: int, b: int) -> tuple[int, int]:
    return (a, b) if a <= b else (b, a)


def add_edge(graph: nx.MultiDiGraph, a: int, b: int, edge_type: str, point: Point2 | None = None) -> bool:
    """Add the edge between ``a`` and ``b`` unless one already exists.

    An existing edge wins even if its type differs. Returns True if created.
    """
    u, v = canonical_pair(a, b)
    if graph.has_edge(u, v):
        return False
    attrs: dict[str, Any] = {"type": edge_type}
    if point is not None:
        attrs["x"], attrs["y"] = point
    graph.add_edge(u, v, key=edge_type, **attrs)
    return True


def incident_edges(graph: nx.MultiDiGraph, node: int) -> list[Edge]:
    """Every edge touching ``node``, outgoing first."""
    out = list(graph.out_edges(node, keys=True, data=True))
    inc = [e for e in graph.in_edges(node, keys=True, data=True) if e[0] != e[1]]
    return out + inc


def neighbor_ids(graph: nx.MultiDiGraph, node: int) -> Iterator[int]:
    seen: set[int] = set()
    for u, v, _, _ in incident_edges(graph, node):
        other = v if u == node else u
        if other not in seen:
            seen.add(other)
            yield other


def edge_point(data: dict[str, Any]) -> Point2 | None:
    if "x" in data and "y" in data:
        return (data["x"], data["y"])
    return None


def edge_types(graph: nx.MultiDiGraph) -> dict[tuple[int, int], str]:
    """Canonical pair -> edge type, for inspection and tests."""
    return {(u, v): data["type"] for u, v, data in graph.edges(data=True)}
