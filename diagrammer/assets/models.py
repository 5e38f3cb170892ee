"""Asset records and vector-markup helpers."""

from __future__ import annotations

import base64
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass


class AssetBackendError(Exception):
    """Raised by an asset backend when a lookup cannot be served."""


@dataclass(frozen=True)
class AssetRecord:
    id: str
    name: str
    vector_markup: str                  # SVG source
    thumbnail: str | None = None
    category: str | None = None

    @property
    def aspect_ratio(self) -> float | None:
        return markup_aspect_ratio(self.vector_markup)

    @classmethod
    def from_dict(cls, data: dict) -> AssetRecord:
        """Build a record from a JSON object (camelCase or snake_case keys)."""
        markup = data.get("vector_markup", data.get("vectorMarkup", data.get("svg_content")))
        if not data.get("id") or markup is None:
            raise AssetBackendError(f"Malformed asset record: {sorted(data)}")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            vector_markup=markup,
            thumbnail=data.get("thumbnail"),
            category=data.get("category"),
        )


def svg_to_data_url(markup: str) -> str:
    encoded = base64.b64encode(markup.encode("utf-8")).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"


_LENGTH = re.compile(r"^\s*([0-9]*\.?[0-9]+)")


def _length(value: str | None) -> float | None:
    if not value:
        return None
    m = _LENGTH.match(value)
    return float(m.group(1)) if m else None


def markup_aspect_ratio(markup: str) -> float | None:
    """Width / height of an SVG document, from its viewBox or width/height.

    Returns None when the markup is not parseable or carries no size.
    """
    try:
        root = ET.fromstring(markup)
    except ET.ParseError:
        return None

    view_box = root.get("viewBox")
    if view_box:
        parts = view_box.replace(",", " ").split()
        if len(parts) == 4:
            try:
                w, h = float(parts[2]), float(parts[3])
            except ValueError:
                w = h = 0.0
            if w > 0 and h > 0:
                return w / h

    w = _length(root.get("width"))
    h = _length(root.get("height"))
    if w and h:
        return w / h
    return None
