"""Import pipeline — scene document → render tree.

Stages, in order:

  1. read + validate     structural errors abort; referential errors
                         are downgraded to warnings
  2. clear / configure   optional clear, then canvas and layout settings
  3. icons               one batched lookup for every icon reference
                         (the only suspension point)
  4. placeholders        nodes for connector endpoints that name no node
  5. layout              unpositioned nodes get the scene layout, or the
                         default grid when the scene declares none
  6. primitives          nodes, then connectors (ports resolved, attachments
                         registered, routed), then texts

An optional ``on_progress(fraction, message)`` callback hears about each
stage and each node and connector as it is created.

Nothing raises out of ``import_scene``: every outcome is an ImportResult.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from diagrammer.assets import IconResolver
from diagrammer.layout import apply_grid_layout, apply_layout
from diagrammer.render import RenderTree
from diagrammer.scene import (
    Node, Scene, SceneValidationError, read_scene_document, validate_scene,
)
from diagrammer.scene.parsing import SceneSource

from .models import ImportResult

log = logging.getLogger(__name__)

PLACEHOLDER_DATA = {"placeholder": "missing-node"}

ProgressCallback = Callable[[float, str], None]


async def import_scene(
    source: SceneSource | Scene,
    tree: RenderTree,
    *,
    resolver: IconResolver | None = None,
    clear: bool = True,
    on_progress: ProgressCallback | None = None,
) -> ImportResult:
    """Import a scene document into ``tree``.

    ``on_progress(fraction, message)`` is called as each stage starts,
    with ``fraction`` rising from 0 to 1.  On an internal failure the
    tree is restored to its state before the call.
    """
    result = ImportResult()
    started = time.perf_counter()
    snap = tree.snapshot()
    try:
        await _run(source, tree, resolver, clear, result, on_progress)
    except Exception as exc:
        log.exception("Import failed")
        tree.restore(snap)
        result.success = False
        result.errors.append(f"Import failed: {exc}")
    result.stats.time_ms = (time.perf_counter() - started) * 1000.0
    return result


async def _run(source, tree: RenderTree, resolver, clear: bool, result: ImportResult,
               on_progress: ProgressCallback | None) -> None:
    def progress(fraction: float, message: str) -> None:
        if on_progress is not None:
            on_progress(fraction, message)

    progress(0.05, "Validating scene")
    # ── 1. Read and validate ──
    try:
        raw = source if isinstance(source, Scene) else read_scene_document(source)
    except SceneValidationError as exc:
        result.errors.extend(str(e) for e in exc.errors)
        return

    validation = validate_scene(raw)
    if validation.structural_errors:
        result.errors.extend(str(e) for e in validation.structural_errors)
        log.warning("Import aborted: %d structural errors", len(result.errors))
        return
    for issue in validation.referential_errors:
        # port problems are reported once, when the connector is bound
        if issue.code != "invalid_port_reference":
            result.warnings.append(str(issue))
    result.warnings.extend(str(w) for w in validation.warnings if w.code != "missing_position")

    scene = validation.scene
    log.info("Import: %d nodes, %d connectors, %d texts",
             len(scene.nodes), len(scene.connectors), len(scene.texts))

    # ── 2. Clear and configure ──
    progress(0.1, "Configuring canvas")
    if clear:
        tree.clear()
    tree.configure(scene.canvas_config, layout=scene.layout,
                   version=scene.version, metadata=scene.metadata)

    nodes = [n for n in scene.nodes if _fresh(tree, n.id, "node", result)]
    connectors = [c for c in scene.connectors if _fresh(tree, c.id, "connector", result)]
    texts = [t for t in scene.texts if _fresh(tree, t.id, "text", result)]

    # ── 3. Icons (single batched lookup) ──
    progress(0.2, "Loading icons")
    icon_ids = list(dict.fromkeys(n.icon_ref for n in nodes if n.icon_ref))
    icons = {}
    if icon_ids:
        if resolver is not None:
            icons = await resolver.resolve_many(icon_ids)
        else:
            result.warnings.append(f"No asset resolver: {len(icon_ids)} icons left unresolved")
    result.stats.icons_fetched = sum(1 for rec in icons.values() if rec is not None)

    # ── 4. Placeholders for dangling node references ──
    node_ids = {n.id for n in nodes} | {p.id for p in tree.nodes()}
    other_ids = {c.id for c in connectors} | {t.id for t in texts} | {
        p.id for p in tree.target.primitives() if p.kind != "node"
    }
    placeholders: set[str] = set()
    kept_connectors = []
    for conn in connectors:
        missing = [nid for nid in conn.node_ids() if nid not in node_ids]
        if any(nid in other_ids for nid in missing):
            result.warnings.append(
                f"Connector {conn.id} skipped: endpoint id is not a node ({', '.join(missing)})"
            )
            continue
        for nid in dict.fromkeys(missing):
            nodes.append(Node(id=nid, data=dict(PLACEHOLDER_DATA)))
            node_ids.add(nid)
            placeholders.add(nid)
            result.warnings.append(f"Created placeholder node {nid} for connector {conn.id}")
        kept_connectors.append(conn)

    # ── 5. Layout ──
    progress(0.3, "Applying layout")
    if any(not n.positioned for n in nodes):
        if scene.layout is not None:
            nodes = apply_layout(nodes, kept_connectors, scene.layout).nodes
        else:
            count = sum(1 for n in nodes if not n.positioned)
            result.warnings.append(f"{count} nodes without position and no layout: using grid layout")
            nodes = apply_grid_layout(nodes, kept_connectors).nodes

    # ── 6. Primitives ──
    progress(0.4, "Creating nodes")
    for i, node in enumerate(nodes):
        progress(0.4 + 0.3 * i / len(nodes), f"Creating node {i + 1}/{len(nodes)}")
        icon = icons.get(node.icon_ref) if node.icon_ref else None
        if node.icon_ref and icon is None:
            result.warnings.append(f"Icon not found: {node.icon_ref} (node {node.id}), using placeholder")
        tree.add_node(node, icon=icon, placeholder=node.id in placeholders)
        result.stats.nodes_imported += 1

    progress(0.7, "Creating connectors")
    for i, conn in enumerate(kept_connectors):
        progress(0.7 + 0.15 * i / len(kept_connectors),
                 f"Creating connector {i + 1}/{len(kept_connectors)}")
        _, warnings = tree.add_connector(conn)
        result.warnings.extend(warnings)
        result.stats.connectors_imported += 1

    progress(0.85, "Creating texts")
    for text in texts:
        tree.add_text(text)
        result.stats.texts_imported += 1

    result.success = True
    progress(1.0, "Import complete")
    for warning in result.warnings:
        log.warning("Import: %s", warning)
    log.info("Import done: %d nodes, %d connectors, %d texts, %d icons",
             result.stats.nodes_imported, result.stats.connectors_imported,
             result.stats.texts_imported, result.stats.icons_fetched)


def _fresh(tree: RenderTree, element_id: str, kind: str, result: ImportResult) -> bool:
    if tree.has_id(element_id):
        result.warnings.append(f"Skipped {kind} {element_id}: id already exists")
        return False
    return True
