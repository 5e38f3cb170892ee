"""Routing output dataclasses and configuration."""

from __future__ import annotations

from dataclasses import dataclass

from diagrammer.config import DEFAULTS

Point = tuple[float, float]
Segment = tuple[Point, ...]     # 2 = line, 3 = quadratic, 4 = cubic


# ── Output dataclasses ─────────────────────────────────────────────


@dataclass(frozen=True)
class RoutedPath:
    """Geometry of one routed connector.

    ``segments`` are chained: each one starts where the previous ended.
    A degenerate path (both ends coincide) has no segments and keeps
    the coincident point in ``anchor``.
    """

    routing_type: str
    segments: tuple[Segment, ...] = ()
    degenerate: bool = False
    anchor: Point | None = None

    @property
    def is_polyline(self) -> bool:
        return all(len(seg) == 2 for seg in self.segments)

    @property
    def vertices(self) -> list[Point]:
        """On-path points: the start plus every segment end."""
        if not self.segments:
            return [self.anchor] if self.anchor is not None else []
        return [self.segments[0][0]] + [seg[-1] for seg in self.segments]

    @property
    def points(self) -> list[Point]:
        """Polyline vertices, or the full control polygon for curves."""
        if not self.segments:
            return self.vertices
        pts = [self.segments[0][0]]
        for seg in self.segments:
            pts.extend(seg[1:])
        return pts

    @property
    def bends(self) -> int:
        return max(len(self.vertices) - 2, 0)

    @property
    def start(self) -> Point | None:
        return self.segments[0][0] if self.segments else self.anchor

    @property
    def end(self) -> Point | None:
        return self.segments[-1][-1] if self.segments else self.anchor

    def to_svg(self) -> str:
        if not self.segments:
            return ""
        x0, y0 = self.segments[0][0]
        parts = [f"M {_fmt(x0)} {_fmt(y0)}"]
        for seg in self.segments:
            cmd = {2: "L", 3: "Q", 4: "C"}[len(seg)]
            coords = " ".join(f"{_fmt(x)} {_fmt(y)}" for x, y in seg[1:])
            parts.append(f"{cmd} {coords}")
        return " ".join(parts)


def _fmt(v: float) -> str:
    return f"{v:.3f}".rstrip("0").rstrip(".")


# ── Router configuration ──────────────────────────────────────────


@dataclass
class RouterConfig:
    """Tuneable routing parameters, defaults from ``DEFAULTS``."""

    min_segment: float = DEFAULTS.orthogonal_min_segment
    curve_offset_ratio: float = DEFAULTS.curve_offset_ratio
    tolerance: float = DEFAULTS.tolerance
