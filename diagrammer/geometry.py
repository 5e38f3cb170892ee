"""
Node geometry — the owned, versioned transform of one node.

Coordinates are canvas pixels, origin top-left, Y down.  ``x`` / ``y``
is the top-left corner of the scaled, unrotated box; rotation is in
degrees, clockwise on screen, about the box centre.

Every world-space derivation (ports, footprints, bounds) applies the
node transform in one fixed order: scale → rotate → translate.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Sequence

from shapely import affinity
from shapely.geometry import Point, Polygon, box as shapely_box

Vertex = tuple[float, float]


@dataclass(frozen=True)
class NodeGeometry:
    """Immutable snapshot of a node transform.

    ``points`` is an optional outline in local box coordinates
    (0..w, 0..h) owned by this geometry; an empty tuple means the
    plain box.  Any change produces a new instance with ``version + 1``.
    """

    x: float
    y: float
    w: float
    h: float
    rotation: float = 0.0
    scale: float = 1.0
    points: tuple[Vertex, ...] = ()
    version: int = 0

    @property
    def scaled_size(self) -> tuple[float, float]:
        return (self.w * self.scale, self.h * self.scale)

    @property
    def center(self) -> Vertex:
        sw, sh = self.scaled_size
        return (self.x + sw / 2, self.y + sh / 2)

    @classmethod
    def from_node(cls, node, version: int = 0) -> NodeGeometry:
        """Geometry of a positioned scene node (unpositioned nodes sit at the origin)."""
        return cls(
            x=node.x or 0.0,
            y=node.y or 0.0,
            w=node.w,
            h=node.h,
            rotation=node.rotation,
            scale=node.scale,
            version=version,
        )

    def evolve(self, **changes) -> NodeGeometry:
        """Return a new geometry with ``changes`` applied and the version bumped."""
        if "points" in changes:
            changes["points"] = tuple((float(px), float(py)) for px, py in changes["points"])
        return replace(self, version=self.version + 1, **changes)

    def to_world(self, lx: float, ly: float) -> Vertex:
        """Map a local box point (0..w, 0..h) to world coordinates."""
        # scale about the box centre
        sx = (lx - self.w / 2) * self.scale
        sy = (ly - self.h / 2) * self.scale
        # rotate
        rad = math.radians(self.rotation)
        cos, sin = math.cos(rad), math.sin(rad)
        rx = sx * cos - sy * sin
        ry = sx * sin + sy * cos
        # translate
        cx, cy = self.center
        return (cx + rx, cy + ry)

    def footprint(self) -> Polygon:
        """World-space polygon of the node (shapely)."""
        if len(self.points) >= 3:
            local = Polygon(self.points)
        else:
            local = shapely_box(0, 0, self.w, self.h)
        local = affinity.translate(local, -self.w / 2, -self.h / 2)
        shape = affinity.scale(local, self.scale, self.scale, origin=(0, 0))
        shape = affinity.rotate(shape, self.rotation, origin=(0, 0))
        cx, cy = self.center
        return affinity.translate(shape, cx, cy)

    def contains(self, x: float, y: float) -> bool:
        return self.footprint().intersects(Point(x, y))


def geometry_bounds(geometries: Sequence[NodeGeometry]) -> tuple[float, float, float, float]:
    """Return (min_x, min_y, max_x, max_y) over the footprints of ``geometries``."""
    if not geometries:
        return (0.0, 0.0, 0.0, 0.0)
    boxes = [g.footprint().bounds for g in geometries]
    return (
        min(b[0] for b in boxes),
        min(b[1] for b in boxes),
        max(b[2] for b in boxes),
        max(b[3] for b in boxes),
    )
