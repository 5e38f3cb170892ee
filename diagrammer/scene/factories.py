"""Id generation, default port synthesis and whole-scene helpers."""

from __future__ import annotations

import uuid

from diagrammer.config import DEFAULTS

from .models import CanvasConfig, Port, Scene


DEFAULT_PORT_NAMES = ("n", "e", "s", "w", "center")


def generate_id(prefix: str = "elem") -> str:
    """Return a collision-resistant id such as ``node_3f2a9c81d0e4``."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def generate_default_ports(node_id: str) -> list[Port]:
    """Four compass ports plus a centre port, for nodes that declare none."""
    return [
        Port(id=f"{node_id}-{name}", position_name=name)
        for name in DEFAULT_PORT_NAMES
    ]


# ── Scene helpers ──────────────────────────────────────────────────

def empty_scene(
    width: float = DEFAULTS.canvas_width,
    height: float = DEFAULTS.canvas_height,
    background: str = DEFAULTS.canvas_background,
) -> Scene:
    """Return a fresh scene with no elements on a canvas of the given size."""
    return Scene(canvas_config=CanvasConfig(width=width, height=height, background=background))


def clone_scene(scene: Scene) -> Scene:
    return scene.model_copy(deep=True)


def merge_scenes(base: Scene, overlay: Scene, offset_x: float = 0, offset_y: float = 0) -> Scene:
    """Append ``overlay``'s elements to a copy of ``base``.

    Overlay nodes and texts are shifted by the offset; unpositioned
    overlay nodes stay unpositioned so the layout still places them.
    Canvas, layout and metadata come from ``base``.  Ids are not
    de-duplicated: validate the result before importing it.
    """
    merged = clone_scene(base)
    for node in overlay.nodes:
        if node.positioned:
            node = node.model_copy(update={"x": node.x + offset_x, "y": node.y + offset_y}, deep=True)
        else:
            node = node.model_copy(deep=True)
        merged.nodes.append(node)
    merged.connectors.extend(c.model_copy(deep=True) for c in overlay.connectors)
    for text in overlay.texts:
        merged.texts.append(text.model_copy(update={"x": text.x + offset_x, "y": text.y + offset_y}, deep=True))
    return merged
