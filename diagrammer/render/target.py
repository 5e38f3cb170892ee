"""Render target contract and the in-process implementation.

A render target is an abstract 2D scene graph: it stores primitives in
z-order, applies node transforms and notifies subscribers whenever a
node's geometry changes.  Geometry is never mutated in place; every
change installs a new ``NodeGeometry`` with a higher version.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from typing import Callable, Iterable

from diagrammer.geometry import NodeGeometry
from diagrammer.scene.models import CanvasConfig

from .primitives import NodePrimitive, Primitive

log = logging.getLogger(__name__)

TransformListener = Callable[[str, NodeGeometry], None]

_TRANSFORM_FIELDS = {"x", "y", "w", "h", "rotation", "scale"}


class RenderTarget(ABC):

    def __init__(self):
        self._transform_listeners: list[TransformListener] = []

    @abstractmethod
    def add(self, primitive: Primitive) -> None: ...

    @abstractmethod
    def remove(self, primitive_id: str) -> Primitive | None: ...

    @abstractmethod
    def get(self, primitive_id: str) -> Primitive | None: ...

    @abstractmethod
    def primitives(self) -> list[Primitive]:
        """All primitives, bottom to top."""

    @abstractmethod
    def clear(self) -> None: ...

    @abstractmethod
    def set_transform(self, node_id: str, **changes: float) -> NodeGeometry: ...

    @abstractmethod
    def edit_points(self, node_id: str, points: Iterable[tuple[float, float]]) -> NodeGeometry: ...

    @abstractmethod
    def configure(self, canvas: CanvasConfig) -> None: ...

    @abstractmethod
    def snapshot(self) -> object: ...

    @abstractmethod
    def restore(self, snap: object) -> None: ...

    # ── Notification ───────────────────────────────────────────────

    def subscribe(self, listener: TransformListener) -> None:
        self._transform_listeners.append(listener)

    def unsubscribe(self, listener: TransformListener) -> None:
        if listener in self._transform_listeners:
            self._transform_listeners.remove(listener)

    def _notify(self, node_id: str, geometry: NodeGeometry) -> None:
        for listener in list(self._transform_listeners):
            listener(node_id, geometry)


class MemoryRenderTarget(RenderTarget):
    """Dict-backed render target; insertion order is z-order."""

    def __init__(self):
        super().__init__()
        self._items: dict[str, Primitive] = {}
        self.canvas = CanvasConfig()

    def add(self, primitive: Primitive) -> None:
        if primitive.id in self._items:
            raise ValueError(f"Primitive already exists: {primitive.id}")
        self._items[primitive.id] = primitive

    def remove(self, primitive_id: str) -> Primitive | None:
        return self._items.pop(primitive_id, None)

    def get(self, primitive_id: str) -> Primitive | None:
        return self._items.get(primitive_id)

    def primitives(self) -> list[Primitive]:
        return list(self._items.values())

    def clear(self) -> None:
        self._items.clear()

    def configure(self, canvas: CanvasConfig) -> None:
        self.canvas = canvas.model_copy(deep=True)

    def set_transform(self, node_id: str, **changes: float) -> NodeGeometry:
        prim = self._node(node_id)
        unknown = set(changes) - _TRANSFORM_FIELDS
        if unknown:
            raise ValueError(f"Not a transform field: {', '.join(sorted(unknown))}")
        prim.geometry = prim.geometry.evolve(**changes)
        self._notify(node_id, prim.geometry)
        return prim.geometry

    def edit_points(self, node_id: str, points: Iterable[tuple[float, float]]) -> NodeGeometry:
        prim = self._node(node_id)
        prim.geometry = prim.geometry.evolve(points=list(points))
        self._notify(node_id, prim.geometry)
        return prim.geometry

    def snapshot(self) -> tuple[dict[str, Primitive], CanvasConfig]:
        return (copy.deepcopy(self._items), self.canvas.model_copy(deep=True))

    def restore(self, snap: tuple[dict[str, Primitive], CanvasConfig]) -> None:
        items, canvas = snap
        self._items = copy.deepcopy(items)
        self.canvas = canvas.model_copy(deep=True)
        log.debug("Render target restored (%d primitives)", len(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def _node(self, node_id: str) -> NodePrimitive:
        prim = self._items.get(node_id)
        if not isinstance(prim, NodePrimitive):
            raise KeyError(node_id)
        return prim
