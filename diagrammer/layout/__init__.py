"""Layout — bulk placement of nodes that carry no coordinates.

Every layout is a pure function ``(nodes, connectors, config) → LayoutResult``
that returns copies and leaves positioned nodes where they are.

Submodules:
  models        LayoutResult and Bounds (shapely footprints).
  grid          Grid, flow left-to-right and flow top-to-bottom packing.
  hierarchical  BFS levels from connector direction.
  force         Deterministic force-directed simulation.
  engine        ``apply_layout`` dispatch.
"""

from .models import Bounds, LayoutResult
from .grid import apply_grid_layout, apply_flow_lr_layout, apply_flow_tb_layout
from .hierarchical import apply_hierarchical_layout, assign_levels
from .force import apply_force_layout, spiral_seed
from .engine import apply_layout

__all__ = [
    # Models
    "Bounds", "LayoutResult",
    # Algorithms
    "apply_grid_layout", "apply_flow_lr_layout", "apply_flow_tb_layout",
    "apply_hierarchical_layout", "assign_levels",
    "apply_force_layout", "spiral_seed",
    # Dispatch
    "apply_layout",
]
