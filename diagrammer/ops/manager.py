"""DiagramManager — the command layer over a render tree.

Every single call snapshots the render tree (primitives, attachments,
scene settings) first and restores it when the call fails, so a failed
op leaves the scene exactly as it was.  Batches run op by op and are
not transactional: a failing op does not undo earlier ones.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from pydantic import ValidationError

from diagrammer.assets import IconResolver
from diagrammer.config import DEFAULTS
from diagrammer.layout import apply_layout
from diagrammer.pipeline import ExportResult, build_scene, export_scene, import_scene
from diagrammer.pipeline.exporter import connector_record, node_record, text_record
from diagrammer.render import RenderTree
from diagrammer.scene import (
    COMPASS_OFFSETS, Connector, GridLayout, Node, Scene, SceneModel, Text, generate_id,
)

from .models import (
    AddConnectorOp, AddNodeOp, AddTextOp, DiagramOp, DuplicateNodeOp, MoveNodeOp,
    OpResult, RemoveConnectorOp, RemoveNodeOp, RemoveTextOp, ReplaceIconOp,
    ResizeNodeOp, UpdateConnectorOp, UpdateNodeOp, UpdateTextOp, parse_op,
)

log = logging.getLogger(__name__)

_TRANSFORM_FIELDS = ("x", "y", "w", "h", "rotation", "scale")

_OP_SUBJECT = {"addNode": "node", "addConnector": "connector", "addText": "text"}


class OperationError(Exception):
    """A single op failed; the message is reported in ``OpResult.error``."""


class DiagramManager:

    def __init__(self, tree: RenderTree | None = None, resolver: IconResolver | None = None):
        self.tree = tree if tree is not None else RenderTree()
        self.resolver = resolver
        self._handlers = {
            "addNode": self._add_node,
            "removeNode": self._remove_node,
            "updateNode": self._update_node,
            "moveNode": self._move_node,
            "resizeNode": self._resize_node,
            "duplicateNode": self._duplicate_node,
            "replaceIcon": self._replace_icon,
            "addConnector": self._add_connector,
            "removeConnector": self._remove_connector,
            "updateConnector": self._update_connector,
            "addText": self._add_text,
            "removeText": self._remove_text,
            "updateText": self._update_text,
        }

    # ── Execution ──────────────────────────────────────────────────

    async def execute(self, op: DiagramOp | dict) -> OpResult:
        """Run one op; on failure the tree is restored to its prior state."""
        if isinstance(op, dict):
            try:
                op = parse_op(op)
            except ValidationError as exc:
                kind = _OP_SUBJECT.get(op.get("type"), "op")
                return OpResult(False, f"invalid {kind}: {_first_error(exc)}")

        snap = self.tree.snapshot()
        try:
            affected = await self._handlers[op.type](op)
        except OperationError as exc:
            self.tree.restore(snap)
            log.info("Op %s failed: %s", op.type, exc)
            return OpResult(False, str(exc))
        except Exception as exc:
            self.tree.restore(snap)
            log.exception("Op %s raised", op.type)
            return OpResult(False, f"internal error: {exc}")
        return OpResult(True, affected_ids=affected)

    async def execute_batch(self, ops: Iterable[DiagramOp | dict]) -> list[OpResult]:
        """Run ops in order; earlier successes stand when a later op fails."""
        results = []
        for op in ops:
            results.append(await self.execute(op))
        failed = sum(1 for r in results if not r.success)
        if failed:
            log.warning("Batch: %d of %d ops failed", failed, len(results))
        return results

    # ── Convenience wrappers ───────────────────────────────────────

    async def add_node(self, node: Node | dict) -> OpResult:
        return await self.execute({"type": "addNode", "node": _raw(node)})

    async def remove_node(self, node_id: str) -> OpResult:
        return await self.execute(RemoveNodeOp(node_id=node_id))

    async def update_node(self, node_id: str, changes: dict[str, Any]) -> OpResult:
        return await self.execute(UpdateNodeOp(node_id=node_id, changes=changes))

    async def move_node(self, node_id: str, x: float, y: float) -> OpResult:
        return await self.execute(MoveNodeOp(node_id=node_id, x=x, y=y))

    async def resize_node(self, node_id: str, w: float, h: float) -> OpResult:
        return await self.execute(ResizeNodeOp(node_id=node_id, w=w, h=h))

    async def duplicate_node(self, node_id: str, offset_x: float = 20, offset_y: float = 20,
                             new_id: str | None = None) -> OpResult:
        return await self.execute(DuplicateNodeOp(
            node_id=node_id, offset_x=offset_x, offset_y=offset_y, new_id=new_id,
        ))

    async def replace_icon(self, node_id: str, new_icon_id: str) -> OpResult:
        return await self.execute(ReplaceIconOp(node_id=node_id, new_icon_id=new_icon_id))

    async def add_connector(self, connector: Connector | dict) -> OpResult:
        return await self.execute({"type": "addConnector", "connector": _raw(connector)})

    async def remove_connector(self, connector_id: str) -> OpResult:
        return await self.execute(RemoveConnectorOp(connector_id=connector_id))

    async def update_connector(self, connector_id: str, changes: dict[str, Any]) -> OpResult:
        return await self.execute(UpdateConnectorOp(connector_id=connector_id, changes=changes))

    async def add_text(self, text: Text | dict) -> OpResult:
        return await self.execute({"type": "addText", "text": _raw(text)})

    async def remove_text(self, text_id: str) -> OpResult:
        return await self.execute(RemoveTextOp(text_id=text_id))

    async def update_text(self, text_id: str, changes: dict[str, Any]) -> OpResult:
        return await self.execute(UpdateTextOp(text_id=text_id, changes=changes))

    # ── Whole-scene commands ───────────────────────────────────────

    async def load_scene(self, data) -> OpResult:
        """Replace the tree contents with an imported scene."""
        snap = self.tree.snapshot()
        result = await import_scene(data, self.tree, resolver=self.resolver, clear=True)
        if not result.success:
            self.tree.restore(snap)
            return OpResult(False, "; ".join(result.errors))
        return OpResult(True, affected_ids=[p.id for p in self.tree.target.primitives()])

    def export_scene(self, **options) -> ExportResult:
        return export_scene(self.tree, **options)

    def clear(self) -> None:
        self.tree.clear()

    # ── Getters ────────────────────────────────────────────────────

    def get_scene(self) -> Scene:
        return build_scene(self.tree)

    def get_node(self, node_id: str) -> Node | None:
        prim = self.tree.node(node_id)
        return node_record(prim) if prim else None

    def get_connector(self, connector_id: str) -> Connector | None:
        prim = self.tree.connector(connector_id)
        return connector_record(prim, self.tree) if prim else None

    def get_text(self, text_id: str) -> Text | None:
        prim = self.tree.text(text_id)
        return text_record(prim) if prim else None

    def get_all_nodes(self) -> list[Node]:
        return [node_record(p) for p in self.tree.nodes()]

    def get_all_connectors(self) -> list[Connector]:
        return [connector_record(p, self.tree) for p in self.tree.connectors()]

    def get_all_texts(self) -> list[Text]:
        return [text_record(p) for p in self.tree.texts()]

    # ── Node handlers ──────────────────────────────────────────────

    async def _add_node(self, op: AddNodeOp) -> list[str]:
        node = op.node
        self._require_new_id(node.id)
        _check_ports(node)
        if not node.positioned:
            node = self._place(node)
        icon = await self._lookup_icon(node.icon_ref) if node.icon_ref else None
        if node.icon_ref and icon is None:
            log.warning("addNode %s: icon %s not found, using placeholder", node.id, node.icon_ref)
        self.tree.add_node(node, icon=icon)
        return [node.id]

    async def _remove_node(self, op: RemoveNodeOp) -> list[str]:
        self._require_node(op.node_id)
        removed = self.tree.remove_node(op.node_id)
        return [op.node_id] + removed

    async def _update_node(self, op: UpdateNodeOp) -> list[str]:
        prim = self._require_node(op.node_id)
        current = node_record(prim)
        updated = _merge(current, op.changes, "node")
        if updated.id != current.id:
            raise OperationError("cannot change id")
        if not updated.positioned:
            raise OperationError("invalid node: x and y are required")
        _check_ports(updated)

        meta = prim.meta
        meta.kind = updated.kind
        meta.shape_type = updated.shape_type
        meta.label = updated.label
        meta.style = updated.style
        meta.locked = updated.locked
        meta.data = updated.data
        if updated.icon_ref != meta.icon_ref:
            meta.icon_ref = updated.icon_ref
            prim.icon = await self._lookup_icon(updated.icon_ref) if updated.icon_ref else None

        if updated.ports != current.ports:
            self.tree.set_node_ports(op.node_id, updated.ports)

        transform = {
            f: getattr(updated, f) for f in _TRANSFORM_FIELDS
            if getattr(updated, f) != getattr(current, f)
        }
        if transform:
            self.tree.target.set_transform(op.node_id, **transform)
        return [op.node_id] + self.tree.registry.node_attachments(op.node_id)

    async def _move_node(self, op: MoveNodeOp) -> list[str]:
        prim = self._require_node(op.node_id)
        if prim.meta.locked:
            raise OperationError("node is locked")
        self.tree.target.set_transform(op.node_id, x=op.x, y=op.y)
        return [op.node_id] + self.tree.registry.node_attachments(op.node_id)

    async def _resize_node(self, op: ResizeNodeOp) -> list[str]:
        prim = self._require_node(op.node_id)
        if prim.meta.locked:
            raise OperationError("node is locked")
        if op.w <= 0 or op.h <= 0:
            raise OperationError("invalid size")
        self.tree.target.set_transform(op.node_id, w=op.w, h=op.h)
        return [op.node_id] + self.tree.registry.node_attachments(op.node_id)

    async def _duplicate_node(self, op: DuplicateNodeOp) -> list[str]:
        prim = self._require_node(op.node_id)
        new_id = op.new_id or generate_id("node")
        self._require_new_id(new_id)
        source = node_record(prim)
        clone = source.model_copy(update={
            "id": new_id,
            "x": source.x + op.offset_x,
            "y": source.y + op.offset_y,
        }, deep=True)
        self.tree.add_node(clone, icon=prim.icon)
        return [new_id]

    async def _replace_icon(self, op: ReplaceIconOp) -> list[str]:
        prim = self._require_node(op.node_id)
        if prim.meta.kind != "icon":
            raise OperationError("node is not an icon node")
        record = await self._lookup_icon(op.new_icon_id)
        if record is None:
            raise OperationError("icon not found")

        geom = prim.geometry
        old_aspect = (prim.icon.aspect_ratio if prim.icon else None) or geom.w / geom.h
        new_aspect = record.aspect_ratio
        prim.icon = record
        prim.meta.icon_ref = record.id

        affected = [op.node_id]
        if new_aspect and abs(new_aspect - old_aspect) / old_aspect > DEFAULTS.aspect_tolerance:
            log.info("replaceIcon %s: aspect %.3f → %.3f, re-deriving box",
                     op.node_id, old_aspect, new_aspect)
            self.tree.target.set_transform(op.node_id, h=geom.w / new_aspect)
            affected += self.tree.registry.node_attachments(op.node_id)
        return affected

    # ── Connector handlers ─────────────────────────────────────────

    async def _add_connector(self, op: AddConnectorOp) -> list[str]:
        conn = op.connector
        self._require_new_id(conn.id)
        self._check_endpoints(conn)
        self.tree.add_connector(conn)
        return [conn.id]

    async def _remove_connector(self, op: RemoveConnectorOp) -> list[str]:
        if not self.tree.remove_connector(op.connector_id):
            raise OperationError("connector not found")
        return [op.connector_id]

    async def _update_connector(self, op: UpdateConnectorOp) -> list[str]:
        prim = self.tree.connector(op.connector_id)
        if prim is None:
            raise OperationError("connector not found")
        current = connector_record(prim, self.tree)
        updated = _merge(current, op.changes, "connector")
        if updated.id != current.id:
            raise OperationError("cannot change id")
        self._check_endpoints(updated)

        prim.meta.routing_type = updated.routing_type
        prim.meta.style = updated.style
        prim.meta.label = updated.label
        prim.meta.waypoints = updated.waypoints
        prim.meta.data = updated.data
        for end_name, old, new in (("from", current.from_, updated.from_), ("to", current.to, updated.to)):
            if new != old:
                self.tree.registry.rebind(op.connector_id, end_name, new.node_id, new.port_id)
        self.tree.reroute_connector(op.connector_id)
        return [op.connector_id]

    # ── Text handlers ──────────────────────────────────────────────

    async def _add_text(self, op: AddTextOp) -> list[str]:
        self._require_new_id(op.text.id)
        self.tree.add_text(op.text)
        return [op.text.id]

    async def _remove_text(self, op: RemoveTextOp) -> list[str]:
        if not self.tree.remove_text(op.text_id):
            raise OperationError("text not found")
        return [op.text_id]

    async def _update_text(self, op: UpdateTextOp) -> list[str]:
        prim = self.tree.text(op.text_id)
        if prim is None:
            raise OperationError("text not found")
        updated = _merge(text_record(prim), op.changes, "text")
        if updated.id != op.text_id:
            raise OperationError("cannot change id")
        prim.x, prim.y = updated.x, updated.y
        prim.meta.content = updated.content
        prim.meta.style = updated.style
        prim.meta.width = updated.width
        prim.meta.data = updated.data
        return [op.text_id]

    # ── Helpers ────────────────────────────────────────────────────

    def _require_node(self, node_id: str):
        prim = self.tree.node(node_id)
        if prim is None:
            raise OperationError("node not found")
        return prim

    def _require_new_id(self, element_id: str) -> None:
        if self.tree.has_id(element_id):
            raise OperationError("duplicate id")

    def _check_endpoints(self, conn: Connector) -> None:
        for end in (conn.from_, conn.to):
            prim = self.tree.node(end.node_id)
            if prim is None:
                raise OperationError("node not found")
            if end.port_id is not None and end.port_id not in {p.id for p in prim.meta.ports}:
                raise OperationError("port not found")

    def _place(self, node: Node) -> Node:
        """Position a new node with the scene layout among the existing nodes."""
        existing = [node_record(p) for p in self.tree.nodes()]
        layout = self.tree.layout or GridLayout()
        result = apply_layout(existing + [node], [], layout)
        return result.nodes[-1]

    async def _lookup_icon(self, icon_id: str):
        if self.resolver is None:
            return None
        return await self.resolver.resolve(icon_id)


def _raw(model: SceneModel | dict) -> dict:
    if isinstance(model, dict):
        return model
    return model.model_dump(by_alias=True, exclude_none=True)


def _merge(record: SceneModel, changes: dict[str, Any], kind: str) -> SceneModel:
    """Apply ``changes`` (field names or camelCase aliases) to a copy of ``record``."""
    cls = type(record)
    names: dict[str, str] = {}
    for name, info in cls.model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name

    data = record.model_dump()
    for key, value in changes.items():
        if key not in names:
            raise OperationError(f"invalid {kind}: unknown field '{key}'")
        data[names[key]] = value
    try:
        return cls.model_validate(data)
    except ValidationError as exc:
        raise OperationError(f"invalid {kind}: {_first_error(exc)}") from exc


def _check_ports(node: Node) -> None:
    seen: set[str] = set()
    for port in node.ports:
        if port.id in seen:
            raise OperationError(f"invalid node: duplicate port id '{port.id}'")
        seen.add(port.id)
        if port.position_name not in COMPASS_OFFSETS and port.offset is None:
            raise OperationError(f"invalid node: port '{port.id}' requires an offset")


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    loc = ".".join(str(p) for p in err["loc"])
    return f"{loc}: {err['msg']}" if loc else err["msg"]
