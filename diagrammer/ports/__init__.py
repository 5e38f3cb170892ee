"""Ports — attachment points on nodes and the connectors bound to them.

Submodules:
  geometry   Offsets, world positions, exit angles, nearest / best port choice.
  resolver   PortResolver: per-node cache with dirty tracking.
  registry   AttachmentRegistry: connector → port bindings.
"""

from .geometry import (
    ResolvedPort,
    node_ports,
    port_local_offset,
    calculate_absolute_port_position,
    node_footprint,
    get_port_exit_angle,
    resolve_ports_absolute,
    find_nearest_port,
    choose_best_ports,
    center_port,
)
from .resolver import PortResolver
from .registry import Attachment, Binding, AttachmentRegistry

__all__ = [
    # Geometry
    "ResolvedPort", "node_ports", "port_local_offset",
    "calculate_absolute_port_position", "node_footprint", "get_port_exit_angle",
    "resolve_ports_absolute", "find_nearest_port", "choose_best_ports",
    "center_port",
    # Cache
    "PortResolver",
    # Registry
    "Attachment", "Binding", "AttachmentRegistry",
]
