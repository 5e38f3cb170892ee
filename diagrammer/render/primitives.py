"""Render primitives — one tagged dataclass per logical element kind.

A primitive's ``id`` is always the id of the logical record it draws.
The logical fields that the drawing alone cannot express (port list,
marker types, label text, opaque ``data``) travel in a typed ``meta``
object, which the exporter reads back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

from diagrammer.assets.models import AssetRecord
from diagrammer.geometry import NodeGeometry
from diagrammer.routing.models import Point, RoutedPath
from diagrammer.scene.models import (
    ConnectorLabel, ConnectorStyle, NodeLabel, NodeStyle, Port, TextStyle, Waypoint,
)


# ── Metadata ───────────────────────────────────────────────────────


@dataclass
class NodeMeta:
    kind: str = "shape"
    shape_type: str = "rect"
    icon_ref: str | None = None
    ports: list[Port] = field(default_factory=list)
    ports_declared: bool = False        # False = default ports, not exported
    label: NodeLabel | None = None
    style: NodeStyle | None = None
    locked: bool = False
    data: dict[str, Any] | None = None
    placeholder: bool = False           # stands in for a dangling reference


@dataclass
class ConnectorMeta:
    routing_type: str = "straight"
    style: ConnectorStyle = field(default_factory=ConnectorStyle)
    label: ConnectorLabel | None = None
    waypoints: list[Waypoint] | None = None
    data: dict[str, Any] | None = None


@dataclass
class TextMeta:
    content: str
    style: TextStyle = field(default_factory=TextStyle)
    width: float | None = None
    data: dict[str, Any] | None = None


# ── Primitives ─────────────────────────────────────────────────────


@dataclass
class NodePrimitive:
    kind: ClassVar[str] = "node"

    id: str
    geometry: NodeGeometry
    meta: NodeMeta
    icon: AssetRecord | None = None

    @property
    def icon_missing(self) -> bool:
        """An icon node whose asset could not be resolved draws a placeholder."""
        return self.meta.icon_ref is not None and self.icon is None


@dataclass
class ConnectorPrimitive:
    kind: ClassVar[str] = "connector"

    id: str
    meta: ConnectorMeta
    path: RoutedPath | None = None
    source_port: str | None = None      # resolved port ids (None = node centre)
    target_port: str | None = None
    start_angle: float = 0.0            # marker orientation, degrees
    end_angle: float = 0.0
    label_anchor: Point | None = None


@dataclass
class TextPrimitive:
    kind: ClassVar[str] = "text"

    id: str
    x: float
    y: float
    meta: TextMeta


Primitive = Union[NodePrimitive, ConnectorPrimitive, TextPrimitive]
