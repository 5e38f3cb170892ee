"""Generated layouts → Scene.

A figure generator describes a diagram as a flat list of objects placed
in percent coordinates (0-100 of the canvas) plus connectors that refer
to objects by ``element_index``::

    {"diagramDescription": "...",
     "layout": {"objects": [...], "connectors": [...]}}

``generated_layout_to_scene`` turns that into a Scene with absolute
coordinates.  Text-label shapes become Text records; connectors naming
unknown indices, or the same object at both ends, are dropped with a
warning log.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any

from diagrammer.config import DEFAULTS

from .factories import generate_id
from .models import (
    CanvasConfig, Connector, ConnectorLabel, ConnectorStyle, Endpoint, Node,
    NodeLabel, NodeStyle, Scene, SceneMetadata, Text, TextStyle, Waypoint,
)

log = logging.getLogger(__name__)

ICON_TARGET_SIZE = 200.0
DEFAULT_ICON_SCALE = 0.5

_FONT_SIZES = {"small": 10, "medium": 13, "large": 16}
_SHAPE_TYPES = {"circle": "ellipse", "oval": "ellipse", "rectangle": "rect"}
_ROUTING = ("straight", "orthogonal", "curved")
_DASHES = {"dashed": [10, 5], "dotted": [2, 5]}
_MARKERS = ("arrow", "open-arrow", "diamond", "circle")
_SUBTYPE_FILLS = {
    "simple_shape": "#E5E7EB",
    "text_label": "#FFFFFF",
    "complex_shape": "#DBEAFE",
}
_HEX6 = re.compile(r"^#[0-9A-Fa-f]{6}$")
_HEX3 = re.compile(r"^#[0-9A-Fa-f]{3}$")


def generated_layout_to_scene(
    response: dict[str, Any],
    *,
    canvas_width: float = DEFAULTS.canvas_width,
    canvas_height: float = DEFAULTS.canvas_height,
    name: str | None = None,
    description: str | None = None,
) -> Scene:
    layout = response.get("layout") or {}
    nodes: list[Node] = []
    texts: list[Text] = []
    connectors: list[Connector] = []
    index_to_id: dict[int, str] = {}

    for obj in layout.get("objects", []):
        x = obj.get("x", 0) / 100.0 * canvas_width
        y = obj.get("y", 0) / 100.0 * canvas_height
        index = obj.get("element_index")

        if obj.get("type") == "icon":
            node_id = generate_id("node")
            index_to_id[index] = node_id
            size = ICON_TARGET_SIZE * (obj.get("scale") if obj.get("scale") is not None else DEFAULT_ICON_SCALE)
            nodes.append(Node(
                id=node_id,
                kind="icon",
                icon_ref=obj.get("icon_id"),
                x=x, y=y, w=size, h=size,
                rotation=obj.get("rotation") or 0,
                label=NodeLabel(text=obj["label"], placement=_placement(obj.get("labelPosition")))
                if obj.get("label") else None,
                data={"iconName": obj.get("icon_name"), "elementIndex": index, "generated": True},
            ))
        elif obj.get("type") == "shape" and obj.get("shape_subtype") == "text_label":
            props = obj.get("text_properties") or {}
            texts.append(Text(
                id=generate_id("text"),
                x=x, y=y,
                content=obj.get("text_content") or obj.get("label") or "",
                style=TextStyle(
                    font_size=_FONT_SIZES.get(props.get("font_size"), 13),
                    text_align=props.get("text_alignment") if props.get("text_alignment") in ("left", "right") else "center",
                ),
                data={"elementIndex": index, "generated": True},
            ))
        elif obj.get("type") == "shape":
            node_id = generate_id("node")
            index_to_id[index] = node_id
            content = obj.get("text_content")
            props = obj.get("text_properties") or {}
            subtype = obj.get("shape_subtype")
            nodes.append(Node(
                id=node_id,
                kind="shape",
                shape_type=_SHAPE_TYPES.get(obj.get("shape_type"), "rect"),
                x=x, y=y,
                w=obj.get("width") or 100,
                h=obj.get("height") or _shape_height(content),
                rotation=obj.get("rotation") or 0,
                label=NodeLabel(text=content, placement="center",
                                font_size=_FONT_SIZES.get(props.get("font_size"), 13))
                if content else None,
                style=NodeStyle(
                    fill=obj.get("fill_color") or _SUBTYPE_FILLS.get(subtype, "#E5E7EB"),
                    stroke=obj.get("stroke_color") or "#333333",
                    stroke_width=obj.get("stroke_width") or 2,
                ),
                data={"shapeSubtype": subtype, "elementIndex": index, "generated": True},
            ))

    for conn in layout.get("connectors", []):
        src = index_to_id.get(conn.get("from"))
        dst = index_to_id.get(conn.get("to"))
        if src is None or dst is None:
            log.warning("Generated connector names unknown objects: %s -> %s", conn.get("from"), conn.get("to"))
            continue
        if src == dst:
            log.warning("Generated connector %s -> %s loops on itself, skipped", conn.get("from"), conn.get("to"))
            continue
        routing = conn.get("type") if conn.get("type") in _ROUTING else "straight"
        connectors.append(Connector(
            id=generate_id("conn"),
            from_=Endpoint(node_id=src),
            to=Endpoint(node_id=dst),
            routing_type=routing,
            waypoints=[Waypoint(x=w["x"], y=w["y"]) for w in conn["waypoints"]]
            if conn.get("waypoints") else None,
            style=ConnectorStyle(
                stroke=_normalize_color(conn.get("color")),
                width=max(1, min(5, conn.get("strokeWidth") or 2)),
                dash=_DASHES.get(conn.get("style")),
                arrow_start=_marker(conn.get("startMarker")),
                arrow_end=_marker(conn.get("endMarker")),
            ),
            label=ConnectorLabel(text=conn["label"]) if conn.get("label") else None,
            data={"relationshipCategory": conn.get("relationship_category"), "generated": True},
        ))

    log.info("Generated layout: %d nodes, %d connectors, %d texts",
             len(nodes), len(connectors), len(texts))
    return Scene(
        canvas_config=CanvasConfig(width=canvas_width, height=canvas_height),
        nodes=nodes,
        connectors=connectors,
        texts=texts,
        metadata=SceneMetadata(
            name=name or "Generated Figure",
            description=description or response.get("diagramDescription"),
            created=datetime.now(timezone.utc).isoformat(),
            tags=["generated"],
        ),
    )


def _placement(position: str | None) -> str:
    return position if position in ("top", "left", "right") else "bottom"


def _shape_height(content: str | None) -> float:
    if not content:
        return 40.0
    return 40.0 + content.count("\n") * 20.0


def _marker(name: str | None) -> str:
    return name if name in _MARKERS else "none"


def _normalize_color(color: str | None) -> str:
    if color and _HEX6.match(color):
        return color
    if color and _HEX3.match(color):
        return "#" + "".join(c * 2 for c in color[1:])
    return "#000000"
