"""Force-directed layout.

Deterministic: unpositioned nodes start from explicit ``seeds`` or from
a sunflower spiral around the centre, never from random positions, so
identical inputs always converge to identical outputs.  Positioned
nodes take part in the forces but never move.

Each iteration is O(n²) in the number of nodes; beyond a few hundred
nodes prefer the grid or hierarchical layouts.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from diagrammer.scene.models import Connector, ForceLayout, Node

from .models import Bounds, LayoutResult, place, scaled_size

log = logging.getLogger(__name__)

_GOLDEN_ANGLE = math.pi * (3 - math.sqrt(5))
_SPIRAL_SPACING = 60.0


@dataclass
class _Body:
    x: float        # centre
    y: float
    vx: float = 0.0
    vy: float = 0.0
    fixed: bool = False


def spiral_seed(index: int, center_x: float, center_y: float) -> tuple[float, float]:
    """Deterministic start centre for the ``index``-th unseeded node."""
    r = _SPIRAL_SPACING * math.sqrt(index + 1)
    theta = index * _GOLDEN_ANGLE
    return (center_x + r * math.cos(theta), center_y + r * math.sin(theta))


def apply_force_layout(
    nodes: Sequence[Node],
    connectors: Sequence[Connector] = (),
    config: ForceLayout | None = None,
) -> LayoutResult:
    cfg = config or ForceLayout()
    if len(nodes) > 500:
        log.warning("Force layout on %d nodes: O(n^2) per iteration", len(nodes))

    bodies: dict[str, _Body] = {}
    spiral_index = 0
    for node in nodes:
        w, h = scaled_size(node)
        if node.positioned:
            bodies[node.id] = _Body(node.x + w / 2, node.y + h / 2, fixed=True)
        elif node.id in cfg.seeds:
            sx, sy = cfg.seeds[node.id]
            bodies[node.id] = _Body(sx + w / 2, sy + h / 2)
        else:
            cx, cy = spiral_seed(spiral_index, cfg.center_x, cfg.center_y)
            spiral_index += 1
            bodies[node.id] = _Body(cx, cy)

    ids = [n.id for n in nodes]
    edges = [
        c.node_ids() for c in connectors
        if c.from_.node_id in bodies and c.to.node_id in bodies
        and c.from_.node_id != c.to.node_id
    ]

    for it in range(cfg.iterations):
        cooling = 1 - it / cfg.iterations

        # Repulsion
        for a_id in ids:
            a = bodies[a_id]
            for b_id in ids:
                if a_id == b_id:
                    continue
                b = bodies[b_id]
                dx = a.x - b.x
                dy = a.y - b.y
                dist = max(1.0, math.hypot(dx, dy))
                force = cfg.repulsion * cooling / (dist * dist)
                a.vx += dx / dist * force
                a.vy += dy / dist * force

        # Attraction
        for src, dst in edges:
            a, b = bodies[src], bodies[dst]
            dx = b.x - a.x
            dy = b.y - a.y
            dist = math.hypot(dx, dy)
            if dist == 0:
                continue
            force = dist * cfg.attraction * cooling
            fx = dx / dist * force
            fy = dy / dist * force
            a.vx += fx
            a.vy += fy
            b.vx -= fx
            b.vy -= fy

        # Centring, integration, damping
        for nid in ids:
            body = bodies[nid]
            if body.fixed:
                body.vx = body.vy = 0.0
                continue
            body.vx += (cfg.center_x - body.x) * cfg.gravity * cooling
            body.vy += (cfg.center_y - body.y) * cfg.gravity * cooling
            body.x += body.vx
            body.y += body.vy
            body.vx *= cfg.damping
            body.vy *= cfg.damping

    out = []
    for node in nodes:
        if node.positioned:
            out.append(node.model_copy())
            continue
        body = bodies[node.id]
        w, h = scaled_size(node)
        out.append(place(node, body.x - w / 2, body.y - h / 2))
    return LayoutResult(out, Bounds.of_nodes(out))
