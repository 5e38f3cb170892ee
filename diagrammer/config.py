"""Shared defaults for the diagram engine.

Schema defaults, the layout engine, the router and the operations
manager all take their numeric knobs from the one frozen dataclass
below, so a node that the schema sizes at 80×80 is also what the layout
engine reserves space for and what the router treats as a box.

Per-call options (layout configs, RouterConfig) override these values;
nothing mutates DEFAULTS at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DiagramDefaults:
    """Engine-wide defaults.

    Distances are in canvas pixels, angles in degrees.
    """

    scene_version: str = "1.0.0"
    """Version written into every exported scene document."""

    node_width: float = 80.0
    node_height: float = 80.0
    """Size of a node that does not declare ``w`` / ``h``."""

    canvas_width: float = 1920.0
    canvas_height: float = 1080.0
    canvas_background: str = "#ffffff"

    curve_offset_ratio: float = 0.3
    """Perpendicular control-point offset of a curved connector,
    as a fraction of the straight-line distance between its ends."""

    orthogonal_min_segment: float = 20.0
    """Shortest leg an orthogonal route will emit next to a port."""

    aspect_tolerance: float = 0.05
    """Relative aspect-ratio change above which a replaced icon forces
    the node box (and therefore ports and routes) to be re-derived."""

    tolerance: float = 1e-6
    """Coordinate tolerance for round trips and degenerate checks."""

    # ── Force layout ───────────────────────────────────────────────

    force_iterations: int = 100
    force_repulsion: float = 5000.0
    force_attraction: float = 0.01
    force_damping: float = 0.9
    force_gravity: float = 0.001
    force_center_x: float = 500.0
    force_center_y: float = 400.0


# Module-level singleton — importable everywhere.
DEFAULTS = DiagramDefaults()
