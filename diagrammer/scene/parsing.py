"""Scene parsing — turn raw documents (dict / JSON / file) into a Scene."""

from __future__ import annotations

import json
from typing import Any, IO, Union

from .models import Scene
from .validation import ValidationIssue, validate_scene


SceneSource = Union[dict, str, bytes, IO[str], IO[bytes]]


class SceneValidationError(Exception):
    """Raised when a document cannot be turned into a valid Scene."""

    def __init__(self, errors: list[ValidationIssue]):
        self.errors = errors
        summary = "; ".join(str(e) for e in errors[:5])
        if len(errors) > 5:
            summary += f" (+{len(errors) - 5} more)"
        super().__init__(f"Invalid scene: {summary}")


def read_scene_document(source: SceneSource) -> dict:
    """Read a raw scene document from a dict, JSON text or file-like object."""
    if isinstance(source, dict):
        return source
    if hasattr(source, "read"):
        source = source.read()
    if isinstance(source, bytes):
        source = source.decode("utf-8")
    try:
        data: Any = json.loads(source)
    except (TypeError, ValueError) as exc:
        raise SceneValidationError([
            ValidationIssue("", f"Invalid JSON: {exc}", "invalid_json"),
        ]) from exc
    if not isinstance(data, dict):
        raise SceneValidationError([
            ValidationIssue("", "Scene must be a JSON object", "invalid_type"),
        ])
    return data


def parse_scene(data: SceneSource) -> Scene:
    """Parse and fully validate a scene document.

    Raises ``SceneValidationError`` on any error, structural or
    referential.  The import pipeline uses ``validate_scene`` directly
    so it can degrade referential problems instead.
    """
    result = validate_scene(read_scene_document(data))
    if not result.valid:
        raise SceneValidationError(result.errors)
    return result.scene
