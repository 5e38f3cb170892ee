"""Network scene fixture — hardcoded scene document for end-to-end testing.

A tiny two-tier network diagram:

    gateway ──c1──▶ server.in      (orthogonal, target port pinned)
    gateway ──c2──▶ db             (straight, labelled, ports chosen)

Nodes:
  - gateway:  shape, UI-placed at (0, 0), default ports
  - server:   shape at (200, 0), declared ports in / top / tap (custom)
  - db:       icon node at (0, 200), iconRef "database"

One caption text at (10, 320).  No layout: every node is positioned.
"""

from __future__ import annotations

from diagrammer.assets import AssetRecord

SQUARE_SVG = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 64 64"><rect width="64" height="64"/></svg>'
WIDE_SVG = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 128 64"><rect width="128" height="64"/></svg>'
NEAR_SQUARE_SVG = '<svg xmlns="http://www.w3.org/2000/svg" width="66" height="64"></svg>'


def make_network_scene() -> dict:
    """Return the network scene as a camelCase JSON document."""
    return {
        "version": "1.0.0",
        "canvasConfig": {"width": 1000, "height": 800, "background": "#fafafa"},
        "nodes": [
            {"id": "gateway", "kind": "shape", "shapeType": "rect", "x": 0, "y": 0, "w": 80, "h": 80,
             "label": {"text": "Gateway"}},
            {"id": "server", "kind": "shape", "shapeType": "rect", "x": 200, "y": 0, "w": 80, "h": 80,
             "ports": [
                 {"id": "in", "positionName": "w"},
                 {"id": "top", "positionName": "n"},
                 {"id": "tap", "positionName": "tap", "offset": {"x": 0.25, "y": 1.0}},
             ],
             "data": {"rack": 4}},
            {"id": "db", "kind": "icon", "x": 0, "y": 200, "w": 64, "h": 64, "iconRef": "database"},
        ],
        "connectors": [
            {"id": "c1", "from": {"nodeId": "gateway"}, "to": {"nodeId": "server", "portId": "in"},
             "routingType": "orthogonal"},
            {"id": "c2", "from": {"nodeId": "gateway"}, "to": {"nodeId": "db"},
             "label": {"text": "sql", "position": 0.5}},
        ],
        "texts": [
            {"id": "caption", "x": 10, "y": 320, "content": "Tier 1",
             "style": {"fontSize": 14, "fontWeight": "bold"}},
        ],
    }


def make_assets() -> list[AssetRecord]:
    """Icon records matching the fixture's icon references."""
    return [
        AssetRecord(id="database", name="Database", vector_markup=SQUARE_SVG, category="storage"),
        AssetRecord(id="database-wide", name="Database (wide)", vector_markup=WIDE_SVG, category="storage"),
        AssetRecord(id="database-near", name="Database (near square)", vector_markup=NEAR_SQUARE_SVG),
        AssetRecord(id="router", name="Router", vector_markup=SQUARE_SVG, category="network"),
    ]
