"""Port geometry — local offsets, world positions, exit angles, port choice."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from shapely.geometry import Polygon

from diagrammer.geometry import NodeGeometry
from diagrammer.scene.factories import generate_default_ports
from diagrammer.scene.models import COMPASS_OFFSETS, Node, Port


@dataclass(frozen=True)
class ResolvedPort:
    """A port resolved to world coordinates."""

    id: str | None                      # None = synthesised node centre
    node_id: str
    index: int                          # position in the node's port list, -1 if synthesised
    position_name: str
    x: float
    y: float
    offset: tuple[float, float]         # normalised 0..1
    angle: float | None                 # outward normal in degrees, None for the centre

    @property
    def point(self) -> tuple[float, float]:
        return (self.x, self.y)

    @property
    def is_center(self) -> bool:
        return self.angle is None


def node_ports(node: Node) -> list[Port]:
    """Declared ports of ``node``, or the default compass set."""
    if node.ports:
        return list(node.ports)
    return generate_default_ports(node.id)


def port_local_offset(port: Port) -> tuple[float, float]:
    if port.offset is not None:
        return (port.offset.x, port.offset.y)
    try:
        return COMPASS_OFFSETS[port.position_name]
    except KeyError:
        raise ValueError(
            f"Port '{port.id}' has custom position '{port.position_name}' and no offset"
        ) from None


def calculate_absolute_port_position(
    geometry: NodeGeometry,
    offset: tuple[float, float],
) -> tuple[float, float]:
    """World position of a normalised offset on a node (scale → rotate → translate)."""
    ox, oy = offset
    return geometry.to_world(ox * geometry.w, oy * geometry.h)


def node_footprint(geometry: NodeGeometry) -> Polygon:
    """World polygon of a node, built with the same transform as its ports."""
    return geometry.footprint()


def get_port_exit_angle(offset: tuple[float, float], rotation: float = 0.0) -> float | None:
    """Outward normal of a port in degrees (0 = +X, 90 = +Y / down).

    Returns None for a port at the box centre, which has no direction.
    """
    dx = offset[0] - 0.5
    dy = offset[1] - 0.5
    if abs(dx) < 1e-12 and abs(dy) < 1e-12:
        return None
    angle = math.degrees(math.atan2(dy, dx)) + rotation
    # normalise to (-180, 180]
    angle = (angle + 180.0) % 360.0 - 180.0
    if angle == -180.0:
        angle = 180.0
    return angle


def resolve_ports_absolute(
    node_id: str,
    geometry: NodeGeometry,
    ports: Sequence[Port],
) -> list[ResolvedPort]:
    resolved = []
    for index, port in enumerate(ports):
        offset = port_local_offset(port)
        x, y = calculate_absolute_port_position(geometry, offset)
        resolved.append(ResolvedPort(
            id=port.id,
            node_id=node_id,
            index=index,
            position_name=port.position_name,
            x=x,
            y=y,
            offset=offset,
            angle=get_port_exit_angle(offset, geometry.rotation),
        ))
    return resolved


def find_nearest_port(
    ports: Sequence[ResolvedPort],
    x: float,
    y: float,
    max_distance: float = math.inf,
) -> ResolvedPort | None:
    """Closest port to (x, y) within ``max_distance``; ties go to the lowest index."""
    nearest = None
    best = max_distance
    for port in ports:
        dist = math.hypot(port.x - x, port.y - y)
        if dist < best:
            best = dist
            nearest = port
    return nearest


def center_port(
    ports: Sequence[ResolvedPort],
    node_id: str,
    geometry: NodeGeometry,
) -> ResolvedPort:
    """The node's centre port, synthesised when the node declares none."""
    for port in ports:
        if port.is_center:
            return port
    cx, cy = geometry.center
    return ResolvedPort(
        id=None, node_id=node_id, index=-1, position_name="center",
        x=cx, y=cy, offset=(0.5, 0.5), angle=None,
    )


def _faces_away(port: ResolvedPort, target: tuple[float, float]) -> bool:
    rad = math.radians(port.angle)
    nx, ny = math.cos(rad), math.sin(rad)
    return nx * (target[0] - port.x) + ny * (target[1] - port.y) < 0


def choose_best_ports(
    ports_a: Sequence[ResolvedPort],
    geom_a: NodeGeometry,
    ports_b: Sequence[ResolvedPort],
    geom_b: NodeGeometry,
) -> tuple[ResolvedPort, ResolvedPort]:
    """Pick the port pair that joins two nodes with the shortest path.

    Only ports with an outward normal are considered.  A pair is
    discarded when both normals point away from the other node's
    centre.  Ties keep the first pair in (i, j) order.  When no pair
    survives, the nodes are joined centre to centre.
    """
    center_a = geom_a.center
    center_b = geom_b.center

    best = None
    best_dist = math.inf
    for pa in ports_a:
        if pa.is_center:
            continue
        away_a = _faces_away(pa, center_b)
        for pb in ports_b:
            if pb.is_center:
                continue
            if away_a and _faces_away(pb, center_a):
                continue
            dist = math.hypot(pa.x - pb.x, pa.y - pb.y)
            if dist < best_dist:
                best_dist = dist
                best = (pa, pb)

    if best is None:
        node_a = ports_a[0].node_id if ports_a else ""
        node_b = ports_b[0].node_id if ports_b else ""
        return (
            center_port(ports_a, node_a, geom_a),
            center_port(ports_b, node_b, geom_b),
        )
    return best
