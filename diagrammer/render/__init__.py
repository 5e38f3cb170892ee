"""Render — the live object graph a Scene is imported into.

Submodules:
  primitives  Tagged node / connector / text primitives with typed metadata.
  target      RenderTarget contract and MemoryRenderTarget.
  tree        RenderTree: target + port cache + attachment registry.
"""

from diagrammer.geometry import NodeGeometry

from .primitives import (
    NodeMeta, ConnectorMeta, TextMeta,
    NodePrimitive, ConnectorPrimitive, TextPrimitive, Primitive,
)
from .target import RenderTarget, MemoryRenderTarget
from .tree import RenderTree

__all__ = [
    # Geometry
    "NodeGeometry",
    # Primitives
    "NodeMeta", "ConnectorMeta", "TextMeta",
    "NodePrimitive", "ConnectorPrimitive", "TextPrimitive", "Primitive",
    # Target
    "RenderTarget", "MemoryRenderTarget",
    # Tree
    "RenderTree",
]
