"""Parametric sampling along a routed path (label anchors, marker angles).

Polylines are sampled by arc-length fraction.  Curves are sampled by
Bezier parameter inside a segment; ``t`` is first split across the
segments of a multi-segment curve by their estimated lengths.  Curve
tangents come from the analytic Bezier derivative.
"""

from __future__ import annotations

import math

from .models import Point, RoutedPath, Segment

_FLATTEN_STEPS = 32


def _lerp(a: Point, b: Point, u: float) -> Point:
    return (a[0] + (b[0] - a[0]) * u, a[1] + (b[1] - a[1]) * u)


def bezier_point(seg: Segment, u: float) -> Point:
    if len(seg) == 2:
        return _lerp(seg[0], seg[1], u)
    if len(seg) == 3:
        p0, p1, p2 = seg
        m = 1 - u
        return (
            m * m * p0[0] + 2 * m * u * p1[0] + u * u * p2[0],
            m * m * p0[1] + 2 * m * u * p1[1] + u * u * p2[1],
        )
    p0, p1, p2, p3 = seg
    m = 1 - u
    return (
        m ** 3 * p0[0] + 3 * m * m * u * p1[0] + 3 * m * u * u * p2[0] + u ** 3 * p3[0],
        m ** 3 * p0[1] + 3 * m * m * u * p1[1] + 3 * m * u * u * p2[1] + u ** 3 * p3[1],
    )


def bezier_derivative(seg: Segment, u: float) -> Point:
    if len(seg) == 2:
        return (seg[1][0] - seg[0][0], seg[1][1] - seg[0][1])
    if len(seg) == 3:
        p0, p1, p2 = seg
        m = 1 - u
        return (
            2 * m * (p1[0] - p0[0]) + 2 * u * (p2[0] - p1[0]),
            2 * m * (p1[1] - p0[1]) + 2 * u * (p2[1] - p1[1]),
        )
    p0, p1, p2, p3 = seg
    m = 1 - u
    return (
        3 * m * m * (p1[0] - p0[0]) + 6 * m * u * (p2[0] - p1[0]) + 3 * u * u * (p3[0] - p2[0]),
        3 * m * m * (p1[1] - p0[1]) + 6 * m * u * (p2[1] - p1[1]) + 3 * u * u * (p3[1] - p2[1]),
    )


def segment_length(seg: Segment) -> float:
    if len(seg) == 2:
        return math.dist(seg[0], seg[1])
    total = 0.0
    prev = seg[0]
    for i in range(1, _FLATTEN_STEPS + 1):
        pt = bezier_point(seg, i / _FLATTEN_STEPS)
        total += math.dist(prev, pt)
        prev = pt
    return total


def get_path_length(path: RoutedPath) -> float:
    return sum(segment_length(seg) for seg in path.segments)


def _locate(path: RoutedPath, t: float) -> tuple[Segment, float]:
    """Segment containing fraction ``t`` of the path and the local parameter."""
    t = min(max(t, 0.0), 1.0)
    lengths = [segment_length(seg) for seg in path.segments]
    total = sum(lengths)
    if total <= 0:
        return path.segments[0], 0.0

    target = t * total
    acc = 0.0
    for seg, length in zip(path.segments, lengths):
        if length > 0 and acc + length >= target:
            return seg, (target - acc) / length
        acc += length
    return path.segments[-1], 1.0


def get_point_along_path(path: RoutedPath, t: float) -> Point:
    """Point at fraction ``t`` (0..1) of the path."""
    if not path.segments:
        return path.anchor if path.anchor is not None else (0.0, 0.0)
    seg, u = _locate(path, t)
    return bezier_point(seg, u)


def get_angle_along_path(path: RoutedPath, t: float) -> float:
    """Direction of travel in degrees at fraction ``t`` of the path."""
    if not path.segments:
        return 0.0
    seg, u = _locate(path, t)
    dx, dy = bezier_derivative(seg, u)
    if abs(dx) < 1e-12 and abs(dy) < 1e-12:
        # control point coincides with an end; use the chord
        dx = seg[-1][0] - seg[0][0]
        dy = seg[-1][1] - seg[0][1]
    return math.degrees(math.atan2(dy, dx))
