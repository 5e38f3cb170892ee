"""Export pipeline — render tree → scene document.

Records are rebuilt from each primitive's typed metadata and geometry.
Connector endpoints come from the attachment registry, never from a
nearest-port search, so pinned ports survive a round trip exactly.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone
from pathlib import Path

from diagrammer.render import ConnectorPrimitive, NodePrimitive, RenderTree, TextPrimitive
from diagrammer.scene import (
    Connector, Endpoint, Node, Scene, SceneMetadata, Text, scene_to_json, validate_scene,
)

from .models import ExportResult

log = logging.getLogger(__name__)


def node_record(prim: NodePrimitive) -> Node:
    g = prim.geometry
    meta = prim.meta
    return Node(
        id=prim.id,
        kind=meta.kind,
        shape_type=meta.shape_type,
        x=g.x,
        y=g.y,
        w=g.w,
        h=g.h,
        rotation=g.rotation,
        scale=g.scale,
        icon_ref=meta.icon_ref,
        ports=copy.deepcopy(meta.ports) if meta.ports_declared else [],
        label=copy.deepcopy(meta.label),
        style=copy.deepcopy(meta.style),
        locked=meta.locked,
        data=copy.deepcopy(meta.data),
    )


def connector_record(prim: ConnectorPrimitive, tree: RenderTree) -> Connector:
    binding = tree.registry.endpoints(prim.id)
    if binding is None:
        raise ValueError(f"Connector {prim.id} has no attachment")
    return Connector(
        id=prim.id,
        from_=Endpoint(
            node_id=binding.source.node_id,
            port_id=binding.source.port_id if binding.source.pinned else None,
        ),
        to=Endpoint(
            node_id=binding.target.node_id,
            port_id=binding.target.port_id if binding.target.pinned else None,
        ),
        routing_type=prim.meta.routing_type,
        style=copy.deepcopy(prim.meta.style),
        label=copy.deepcopy(prim.meta.label),
        waypoints=copy.deepcopy(prim.meta.waypoints),
        data=copy.deepcopy(prim.meta.data),
    )


def text_record(prim: TextPrimitive) -> Text:
    return Text(
        id=prim.id,
        x=prim.x,
        y=prim.y,
        content=prim.meta.content,
        style=copy.deepcopy(prim.meta.style),
        width=prim.meta.width,
        data=copy.deepcopy(prim.meta.data),
    )


def build_scene(tree: RenderTree, include_metadata: bool = False) -> Scene:
    """Rebuild the logical Scene from the render tree."""
    nodes, connectors, texts = [], [], []
    for prim in tree.target.primitives():
        if isinstance(prim, NodePrimitive):
            nodes.append(node_record(prim))
        elif isinstance(prim, ConnectorPrimitive):
            connectors.append(connector_record(prim, tree))
        elif isinstance(prim, TextPrimitive):
            texts.append(text_record(prim))

    # records are detached from the tree; edits go through the ops layer
    metadata = copy.deepcopy(tree.metadata)
    if include_metadata:
        stamp = datetime.now(timezone.utc).isoformat()
        metadata = (metadata.model_copy(update={"modified": stamp}) if metadata
                    else SceneMetadata(modified=stamp))

    return Scene(
        version=tree.version,
        canvas_config=copy.deepcopy(tree.canvas),
        layout=copy.deepcopy(tree.layout),
        nodes=nodes,
        connectors=connectors,
        texts=texts,
        metadata=metadata,
    )


def export_scene(
    tree: RenderTree,
    *,
    pretty: bool = True,
    validate: bool = True,
    include_metadata: bool = False,
) -> ExportResult:
    """Export ``tree`` as a scene document.  Never raises."""
    result = ExportResult()
    try:
        scene = build_scene(tree, include_metadata)
        result.stats.nodes_exported = len(scene.nodes)
        result.stats.connectors_exported = len(scene.connectors)
        result.stats.texts_exported = len(scene.texts)

        if validate:
            validation = validate_scene(scene)
            if not validation.valid:
                result.errors = [str(e) for e in validation.errors]
                log.warning("Export: self-validation failed with %d errors", len(result.errors))
                return result

        result.scene = scene
        result.json = scene_to_json(scene, pretty=pretty)
        result.success = True
        log.info("Export: %d nodes, %d connectors, %d texts",
                 result.stats.nodes_exported, result.stats.connectors_exported,
                 result.stats.texts_exported)
    except Exception as exc:
        log.exception("Export failed")
        result.errors.append(f"Export failed: {exc}")
    return result


def write_scene_file(tree: RenderTree, path: str | Path, **options) -> ExportResult:
    """Export ``tree`` and write the JSON to ``path`` when the export succeeds."""
    result = export_scene(tree, **options)
    if not result.success:
        return result
    try:
        Path(path).write_text(result.json, encoding="utf-8")
        log.info("Export: wrote %s", path)
    except OSError as exc:
        log.exception("Export: cannot write %s", path)
        result.success = False
        result.errors.append(f"Cannot write {path}: {exc}")
    return result
