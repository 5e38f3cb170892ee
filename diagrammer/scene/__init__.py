"""Scene — the portable diagram document.

Submodules:
  models        Pydantic document models (Scene, Node, Connector, Text, layouts).
  validation    Structural / referential checks (validate_scene).
  parsing       Raw document reading and strict parsing (parse_scene).
  serialization JSON conversion (scene_to_dict, scene_to_json).
  factories     Id generation, default ports, empty / clone / merge scenes.
  generated     Percent-coordinate generated layouts to Scene.
"""

from .models import (
    COMPASS_OFFSETS, SceneModel,
    Scene, Node, Port, PortOffset, NodeLabel, NodeStyle,
    Connector, Endpoint, ConnectorStyle, ConnectorLabel, Waypoint,
    Text, TextStyle, CanvasConfig, CanvasGrid, SceneMetadata,
    GridLayout, FlowLRLayout, FlowTBLayout, HierarchicalLayout, ForceLayout,
    LayoutConfig,
)
from .validation import (
    ValidationIssue, ValidationResult, validate_scene, STRUCTURAL, REFERENTIAL,
)
from .parsing import SceneValidationError, parse_scene, read_scene_document
from .serialization import scene_to_dict, scene_to_json
from .factories import (
    generate_id, generate_default_ports, empty_scene, clone_scene, merge_scenes,
)
from .generated import generated_layout_to_scene

__all__ = [
    # Models
    "COMPASS_OFFSETS", "SceneModel",
    "Scene", "Node", "Port", "PortOffset", "NodeLabel", "NodeStyle",
    "Connector", "Endpoint", "ConnectorStyle", "ConnectorLabel", "Waypoint",
    "Text", "TextStyle", "CanvasConfig", "CanvasGrid", "SceneMetadata",
    "GridLayout", "FlowLRLayout", "FlowTBLayout", "HierarchicalLayout", "ForceLayout",
    "LayoutConfig",
    # Validation
    "ValidationIssue", "ValidationResult", "validate_scene",
    "STRUCTURAL", "REFERENTIAL",
    # Parsing
    "SceneValidationError", "parse_scene", "read_scene_document",
    # Serialization
    "scene_to_dict", "scene_to_json",
    # Factories
    "generate_id", "generate_default_ports", "empty_scene", "clone_scene", "merge_scenes",
    # Generated layouts
    "generated_layout_to_scene",
]
