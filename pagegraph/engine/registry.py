"""Stage registry — every pipeline stage is a standalone function registered via decorator.

Usage:
    @stage(id="S2.03", layer=Layer.GROUPING, dependencies=["S2.02"])
    def link_overlapping_shapes(ctx: PageContext) -> None:
        for record in ctx.shapes:
            ...

Adding a new stage = creating one file with the decorator. Nothing else changes.
"""

from __future__ import annotations

import enum
import heapq
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from pagegraph.engine.context import PageContext

logger = logging.getLogger(__name__)


class Layer(enum.IntEnum):
    COLLECTION = 0
    FILTERING = 1
    GROUPING = 2
    INFERENCE = 3
    CLEANUP = 4


@dataclass
class StageSpec:
    id: str
    layer: Layer
    fn: Callable[["PageContext"], None]
    dependencies: list[str] = field(default_factory=list)
    description: str = ""


class StageRegistry:
    """Registry of pipeline stages."""

    def __init__(self) -> None:
        self._stages: dict[str, StageSpec] = {}

    def register(self, spec: StageSpec) -> None:
        if spec.id in self._stages:
            raise ValueError(f"Duplicate stage ID: {spec.id}")
        self._stages[spec.id] = spec
        logger.debug("Registered stage %s (%s)", spec.id, spec.layer.name)

    def get(self, stage_id: str) -> StageSpec:
        return self._stages[stage_id]

    def get_layer(self, layer: Layer) -> list[StageSpec]:
        specs = [s for s in self._stages.values() if s.layer == layer]
        return sorted(specs, key=lambda s: s.id)

    def all(self) -> list[StageSpec]:
        return sorted(self._stages.values(), key=lambda s: (s.layer, s.id))

    def _with_dependencies(self, stage_ids: set[str]) -> dict[str, StageSpec]:
        wanted: set[str] = set()
        pending = list(stage_ids)
        while pending:
            sid = pending.pop()
            if sid in wanted or sid not in self._stages:
                continue
            wanted.add(sid)
            pending.extend(self._stages[sid].dependencies)
        return {sid: s for sid, s in self._stages.items() if sid in wanted}

    def resolve_order(self, requested_ids: set[str] | None = None) -> list[StageSpec]:
        """Dependency order, ties broken by stage id. ``None`` means every stage."""
        pool = dict(self._stages) if requested_ids is None else self._with_dependencies(requested_ids)

        blockers = {sid: sum(dep in pool for dep in s.dependencies) for sid, s in pool.items()}
        dependents: dict[str, list[str]] = {sid: [] for sid in pool}
        for sid, s in pool.items():
            for dep in s.dependencies:
                if dep in pool:
                    dependents[dep].append(sid)

        ready = [sid for sid, n in blockers.items() if n == 0]
        heapq.heapify(ready)
        ordered: list[StageSpec] = []
        while ready:
            sid = heapq.heappop(ready)
            ordered.append(pool[sid])
            for nxt in dependents[sid]:
                blockers[nxt] -= 1
                if blockers[nxt] == 0:
                    heapq.heappush(ready, nxt)

        if len(ordered) != len(pool):
            stuck = sorted(sid for sid, n in blockers.items() if n > 0)
            raise ValueError(f"Circular dependency detected among: {stuck}")
        return ordered

    @property
    def count(self) -> int:
        return len(self._stages)


# Module-level singleton
_registry = StageRegistry()


def get_registry() -> StageRegistry:
    return _registry


def stage(
    *,
    id: str,
    layer: Layer,
    dependencies: list[str] | None = None,
    description: str = "",
):
    """Decorator to register a stage function."""

    def decorator(fn: Callable[["PageContext"], None]):
        spec = StageSpec(
            id=id,
            layer=layer,
            fn=fn,
            dependencies=dependencies or [],
            description=description,
        )
        _registry.register(spec)
        return fn

    return decorator
