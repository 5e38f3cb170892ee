"""Scene document models — the portable, persisted diagram format.

The scene is the only artifact that is written to storage or sent over
the wire.  Keys are camelCase on the wire and snake_case in Python;
every model accepts both.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from diagrammer.config import DEFAULTS


COMPASS_OFFSETS: dict[str, tuple[float, float]] = {
    "n": (0.5, 0.0),
    "ne": (1.0, 0.0),
    "e": (1.0, 0.5),
    "se": (1.0, 1.0),
    "s": (0.5, 1.0),
    "sw": (0.0, 1.0),
    "w": (0.0, 0.5),
    "nw": (0.0, 0.0),
    "center": (0.5, 0.5),
}

MarkerType = Literal[
    "none", "arrow", "open-arrow", "diamond", "circle", "block", "tee",
]
RoutingType = Literal["straight", "orthogonal", "curved"]


class SceneModel(BaseModel):
    """Base for all document models: camelCase aliases, both names accepted."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ── Nodes and ports ────────────────────────────────────────────────


class PortOffset(SceneModel):
    x: float = Field(ge=0, le=1)        # fraction of node width
    y: float = Field(ge=0, le=1)        # fraction of node height


class Port(SceneModel):
    id: str
    position_name: str = "center"       # compass name or a custom name
    offset: PortOffset | None = None    # required for custom names


class NodeLabel(SceneModel):
    text: str
    placement: Literal["top", "bottom", "left", "right", "center", "inside"] = "bottom"
    font_size: float | None = None
    color: str | None = None


class NodeStyle(SceneModel):
    fill: str | None = None
    stroke: str | None = None
    stroke_width: float | None = None
    opacity: float | None = Field(default=None, ge=0, le=1)


class Node(SceneModel):
    """A positioned, sizable, rotatable entity.

    ``x`` / ``y`` are the top-left corner of the unrotated box.  A node
    without them is "unpositioned" and gets its place from the layout.
    """

    id: str
    kind: Literal["shape", "icon", "group"] = "shape"
    shape_type: Literal["rect", "ellipse", "diamond", "hexagon", "triangle"] = "rect"
    x: float | None = None
    y: float | None = None
    w: float = Field(default=DEFAULTS.node_width, gt=0)
    h: float = Field(default=DEFAULTS.node_height, gt=0)
    rotation: float = 0.0
    scale: float = Field(default=1.0, gt=0)
    icon_ref: str | None = None
    ports: list[Port] = Field(default_factory=list)
    label: NodeLabel | None = None
    style: NodeStyle | None = None
    locked: bool = False
    data: dict[str, Any] | None = None

    @property
    def positioned(self) -> bool:
        return self.x is not None and self.y is not None


# ── Connectors ─────────────────────────────────────────────────────


class Endpoint(SceneModel):
    node_id: str
    port_id: str | None = None          # None = choose the best port


class ConnectorStyle(SceneModel):
    stroke: str = "#374151"
    width: float = 2
    dash: list[float] | None = None
    arrow_start: MarkerType = "none"
    arrow_end: MarkerType = "arrow"
    opacity: float | None = Field(default=None, ge=0, le=1)


class ConnectorLabel(SceneModel):
    text: str
    position: float = Field(default=0.5, ge=0, le=1)    # along the path
    font_size: float | None = None
    color: str | None = None


class Waypoint(SceneModel):
    x: float
    y: float


class Connector(SceneModel):
    id: str
    from_: Endpoint = Field(alias="from")
    to: Endpoint
    routing_type: RoutingType = "straight"
    style: ConnectorStyle = Field(default_factory=ConnectorStyle)
    label: ConnectorLabel | None = None
    waypoints: list[Waypoint] | None = None
    data: dict[str, Any] | None = None

    def node_ids(self) -> tuple[str, str]:
        return (self.from_.node_id, self.to.node_id)


# ── Texts ──────────────────────────────────────────────────────────


class TextStyle(SceneModel):
    font_size: float = 16
    font_family: str = "Inter"
    font_weight: Literal[
        "normal", "bold", "100", "200", "300", "400", "500", "600", "700", "800", "900",
    ] = "normal"
    font_style: Literal["normal", "italic"] = "normal"
    color: str = "#000000"
    text_align: Literal["left", "center", "right"] = "left"
    rotation: float = 0.0


class Text(SceneModel):
    id: str
    x: float
    y: float
    content: str
    style: TextStyle = Field(default_factory=TextStyle)
    width: float | None = None          # wrapping width
    data: dict[str, Any] | None = None


# ── Canvas and layout configuration ────────────────────────────────


class CanvasGrid(SceneModel):
    enabled: bool = False
    size: float = 20
    color: str = "#e5e7eb"
    snap: bool = False


class CanvasConfig(SceneModel):
    width: float = DEFAULTS.canvas_width
    height: float = DEFAULTS.canvas_height
    background: str = DEFAULTS.canvas_background
    grid: CanvasGrid | None = None


class GridLayout(SceneModel):
    type: Literal["grid"] = "grid"
    start_x: float = 50
    start_y: float = 50
    cols: int = Field(default=10, ge=1)
    cell_w: float = Field(default=120, gt=0)
    cell_h: float = Field(default=120, gt=0)
    padding: float = Field(default=15, ge=0)    # margin before and between cells


class FlowLRLayout(SceneModel):
    type: Literal["flowLR"] = "flowLR"
    start_x: float = 50
    start_y: float = 50
    row_gap: float = 100
    col_gap: float = 150
    max_width: float = DEFAULTS.canvas_width


class FlowTBLayout(SceneModel):
    type: Literal["flowTB"] = "flowTB"
    start_x: float = 50
    start_y: float = 50
    row_gap: float = 100
    col_gap: float = 150
    max_height: float = DEFAULTS.canvas_height


class HierarchicalLayout(SceneModel):
    type: Literal["hierarchical"] = "hierarchical"
    direction: Literal["TB", "LR", "BT", "RL"] = "TB"
    level_gap: float = 150
    node_gap: float = 80
    start_x: float = 100
    start_y: float = 100


class ForceLayout(SceneModel):
    type: Literal["force"] = "force"
    iterations: int = Field(default=DEFAULTS.force_iterations, ge=0)
    repulsion: float = DEFAULTS.force_repulsion
    attraction: float = DEFAULTS.force_attraction
    damping: float = Field(default=DEFAULTS.force_damping, ge=0, le=1)
    gravity: float = DEFAULTS.force_gravity
    center_x: float = DEFAULTS.force_center_x
    center_y: float = DEFAULTS.force_center_y
    seeds: dict[str, tuple[float, float]] = Field(default_factory=dict)


LayoutConfig = Annotated[
    Union[GridLayout, FlowLRLayout, FlowTBLayout, HierarchicalLayout, ForceLayout],
    Field(discriminator="type"),
]


class SceneMetadata(SceneModel):
    name: str | None = None
    description: str | None = None
    author: str | None = None
    created: str | None = None
    modified: str | None = None
    tags: list[str] | None = None


# ── Top level ──────────────────────────────────────────────────────


class Scene(SceneModel):
    version: str = DEFAULTS.scene_version
    canvas_config: CanvasConfig = Field(default_factory=CanvasConfig)
    layout: LayoutConfig | None = None
    nodes: list[Node] = Field(default_factory=list)
    connectors: list[Connector] = Field(default_factory=list)
    texts: list[Text] = Field(default_factory=list)
    metadata: SceneMetadata | None = None
