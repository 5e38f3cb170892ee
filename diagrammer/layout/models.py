"""Layout output dataclasses."""

from __future__ import annotations

from dataclasses import dataclass

from diagrammer.geometry import NodeGeometry, geometry_bounds
from diagrammer.scene.models import Node


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned extent of a set of node footprints."""

    min_x: float = 0.0
    min_y: float = 0.0
    max_x: float = 0.0
    max_y: float = 0.0

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @classmethod
    def of_nodes(cls, nodes: list[Node]) -> Bounds:
        """Bounds of every positioned node, rotation and scale included."""
        geoms = [NodeGeometry.from_node(n) for n in nodes if n.positioned]
        return cls(*geometry_bounds(geoms))


@dataclass
class LayoutResult:
    """New node list (copies) plus the bounds of the laid-out scene."""

    nodes: list[Node]
    bounds: Bounds

    @property
    def positions(self) -> dict[str, tuple[float, float]]:
        return {n.id: (n.x, n.y) for n in self.nodes}


def scaled_size(node: Node) -> tuple[float, float]:
    return (node.w * node.scale, node.h * node.scale)


def place(node: Node, x: float, y: float) -> Node:
    return node.model_copy(update={"x": x, "y": y})
