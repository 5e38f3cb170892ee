"""Connector routing — straight, orthogonal (Manhattan) and curved paths.

Every router is a pure function of its inputs: the same endpoints and
options always produce the same path.  Endpoints may be resolved ports
(their exit angle steers the route) or plain ``(x, y)`` points.

Degenerate requests, where both ends coincide, return a
``RoutedPath`` flagged ``degenerate`` instead of raising.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence, Union

from diagrammer.ports.geometry import ResolvedPort
from diagrammer.scene.models import Waypoint

from .models import Point, RoutedPath, RouterConfig

log = logging.getLogger(__name__)

Endpoint = Union[ResolvedPort, Point]
WaypointLike = Union[Waypoint, Point]

_DEFAULT_CONFIG = RouterConfig()


# ── Endpoint helpers ───────────────────────────────────────────────


def _xy(p: Endpoint | WaypointLike) -> Point:
    if isinstance(p, (ResolvedPort, Waypoint)):
        return (float(p.x), float(p.y))
    return (float(p[0]), float(p[1]))


def _angle(p: Endpoint) -> float | None:
    return p.angle if isinstance(p, ResolvedPort) else None


def _exit_axis(p: Endpoint) -> str:
    """'h' or 'v' — the axis a route leaves ``p`` along."""
    angle = _angle(p)
    if angle is None:
        return "h"
    rad = math.radians(angle)
    return "h" if abs(math.cos(rad)) >= abs(math.sin(rad)) - 1e-9 else "v"


def _exit_sign(p: Endpoint, axis: str, fallback: float) -> float:
    angle = _angle(p)
    if angle is None:
        return 1.0 if fallback >= 0 else -1.0
    rad = math.radians(angle)
    component = math.cos(rad) if axis == "h" else math.sin(rad)
    return 1.0 if component >= 0 else -1.0


def _same(a: Point, b: Point, tol: float) -> bool:
    return abs(a[0] - b[0]) <= tol and abs(a[1] - b[1]) <= tol


def _degenerate(routing_type: str, a: Point) -> RoutedPath:
    log.debug("Degenerate %s route at (%.1f, %.1f)", routing_type, a[0], a[1])
    return RoutedPath(routing_type, degenerate=True, anchor=a)


def _polyline(routing_type: str, pts: Sequence[Point]) -> RoutedPath:
    return RoutedPath(
        routing_type,
        segments=tuple((pts[i], pts[i + 1]) for i in range(len(pts) - 1)),
    )


def _simplify_path(pts: list[Point], tol: float) -> list[Point]:
    """Drop duplicate points and interior points on a straight run."""
    deduped: list[Point] = []
    for p in pts:
        if not deduped or not _same(deduped[-1], p, tol):
            deduped.append(p)
    if len(deduped) < 3:
        return deduped

    result = [deduped[0]]
    for i in range(1, len(deduped) - 1):
        prev = result[-1]
        curr = deduped[i]
        nxt = deduped[i + 1]
        cross = (curr[0] - prev[0]) * (nxt[1] - curr[1]) - (curr[1] - prev[1]) * (nxt[0] - curr[0])
        if abs(cross) > tol:
            result.append(curr)
    result.append(deduped[-1])
    return result


# ── Straight ───────────────────────────────────────────────────────


def route_straight(a: Endpoint, b: Endpoint, *, config: RouterConfig = _DEFAULT_CONFIG) -> RoutedPath:
    pa, pb = _xy(a), _xy(b)
    if _same(pa, pb, config.tolerance):
        return _degenerate("straight", pa)
    return _polyline("straight", [pa, pb])


# ── Orthogonal ─────────────────────────────────────────────────────


def route_orthogonal(
    a: Endpoint,
    b: Endpoint,
    *,
    waypoints: Sequence[WaypointLike] | None = None,
    min_segment: float | None = None,
    config: RouterConfig = _DEFAULT_CONFIG,
) -> RoutedPath:
    """Manhattan route from ``a`` to ``b``.

    Without waypoints the shape follows the exit axes of the two ends:

      perpendicular axes  L-shape, one bend
      parallel axes       Z-shape with the middle leg halfway, two bends;
                          a straight line when the ends are aligned

    Ends closer than ``min_segment`` on both axes are joined directly.
    """
    tol = config.tolerance
    stub = config.min_segment if min_segment is None else min_segment
    pa, pb = _xy(a), _xy(b)

    if waypoints:
        pts = [pa]
        for wp in [_xy(w) for w in waypoints] + [pb]:
            prev = pts[-1]
            if abs(prev[0] - wp[0]) > tol and abs(prev[1] - wp[1]) > tol:
                pts.append((wp[0], prev[1]))
            pts.append(wp)
        pts = _simplify_path(pts, tol)
        if len(pts) < 2:
            return _degenerate("orthogonal", pa)
        return _polyline("orthogonal", pts)

    if _same(pa, pb, tol):
        return _degenerate("orthogonal", pa)

    dx = pb[0] - pa[0]
    dy = pb[1] - pa[1]
    axis_a = _exit_axis(a)
    axis_b = _exit_axis(b)

    if abs(dx) < stub and abs(dy) < stub:
        pts = [pa, pb]
    elif axis_a != axis_b:
        corner = (pb[0], pa[1]) if axis_a == "h" else (pa[0], pb[1])
        pts = [pa, corner, pb]
    elif axis_a == "h":
        if abs(dy) <= tol:
            pts = [pa, pb]
        elif abs(dx) < 2 * stub:
            out_x = pa[0] + _exit_sign(a, "h", dx) * stub
            pts = [pa, (out_x, pa[1]), (out_x, pb[1]), pb]
        else:
            mid_x = pa[0] + dx / 2
            pts = [pa, (mid_x, pa[1]), (mid_x, pb[1]), pb]
    else:
        if abs(dx) <= tol:
            pts = [pa, pb]
        elif abs(dy) < 2 * stub:
            out_y = pa[1] + _exit_sign(a, "v", dy) * stub
            pts = [pa, (pa[0], out_y), (pb[0], out_y), pb]
        else:
            mid_y = pa[1] + dy / 2
            pts = [pa, (pa[0], mid_y), (pb[0], mid_y), pb]

    return _polyline("orthogonal", _simplify_path(pts, tol))


# ── Curved ─────────────────────────────────────────────────────────


def route_curved(
    a: Endpoint,
    b: Endpoint,
    *,
    waypoints: Sequence[WaypointLike] | None = None,
    offset_ratio: float | None = None,
    config: RouterConfig = _DEFAULT_CONFIG,
) -> RoutedPath:
    """Bezier route from ``a`` to ``b``.

    The control point of the single quadratic sits on the left normal
    of a→b: ``mid + ratio · (-dy, dx)``.  The sign never depends on
    anything but the order of the ends.
    """
    ratio = config.curve_offset_ratio if offset_ratio is None else offset_ratio
    pa, pb = _xy(a), _xy(b)
    wps = [_xy(w) for w in waypoints or ()]

    if not wps:
        if _same(pa, pb, config.tolerance):
            return _degenerate("curved", pa)
        dx = pb[0] - pa[0]
        dy = pb[1] - pa[1]
        ctrl = ((pa[0] + pb[0]) / 2 - ratio * dy, (pa[1] + pb[1]) / 2 + ratio * dx)
        return RoutedPath("curved", segments=((pa, ctrl, pb),))

    if len(wps) == 1:
        return RoutedPath("curved", segments=((pa, wps[0], pb),))

    # Catmull-Rom through every point, as cubic Beziers
    pts = [pa] + wps + [pb]
    segments = []
    for i in range(len(pts) - 1):
        p0 = pts[max(0, i - 1)]
        p1 = pts[i]
        p2 = pts[i + 1]
        p3 = pts[min(len(pts) - 1, i + 2)]
        c1 = (p1[0] + (p2[0] - p0[0]) / 6, p1[1] + (p2[1] - p0[1]) / 6)
        c2 = (p2[0] - (p3[0] - p1[0]) / 6, p2[1] - (p3[1] - p1[1]) / 6)
        segments.append((p1, c1, c2, p2))
    return RoutedPath("curved", segments=tuple(segments))


# ── Dispatch ───────────────────────────────────────────────────────


def route(
    a: Endpoint,
    b: Endpoint,
    routing_type: str = "straight",
    *,
    waypoints: Sequence[WaypointLike] | None = None,
    config: RouterConfig = _DEFAULT_CONFIG,
) -> RoutedPath:
    """Route with the algorithm named by ``routing_type``; unknown names route straight."""
    if routing_type == "orthogonal":
        return route_orthogonal(a, b, waypoints=waypoints, config=config)
    if routing_type == "curved":
        return route_curved(a, b, waypoints=waypoints, config=config)
    if routing_type != "straight":
        log.warning("Unknown routing type %r, routing straight", routing_type)
    return route_straight(a, b, config=config)
