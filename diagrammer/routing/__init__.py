"""Routing — connector paths between two resolved points.

Submodules:
  models     RoutedPath output and RouterConfig.
  engine     Straight, orthogonal and curved routers plus ``route`` dispatch.
  sampling   Point / angle / length along a routed path.
"""

from .models import RoutedPath, RouterConfig
from .engine import route, route_straight, route_orthogonal, route_curved
from .sampling import get_point_along_path, get_angle_along_path, get_path_length

__all__ = [
    # Models
    "RoutedPath", "RouterConfig",
    # Engine
    "route", "route_straight", "route_orthogonal", "route_curved",
    # Sampling
    "get_point_along_path", "get_angle_along_path", "get_path_length",
]
