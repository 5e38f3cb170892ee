"""Scene serialization — convert Scene to JSON-safe dicts and text."""

from __future__ import annotations

import json

from .models import Scene


def scene_to_dict(scene: Scene) -> dict:
    """Convert a Scene to a JSON-serializable dict with camelCase keys."""
    return scene.model_dump(mode="json", by_alias=True, exclude_none=True)


def scene_to_json(scene: Scene, pretty: bool = True) -> str:
    return json.dumps(scene_to_dict(scene), indent=2 if pretty else None)
