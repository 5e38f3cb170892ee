"""RenderTree — the live counterpart of a Scene.

Owns a render target plus the runtime state that ties its primitives
to the logical document: the port cache, the attachment registry and
the scene-level settings (canvas, layout, version, metadata).

Geometry changes arrive as transform-changed notifications from the
target.  Each one marks the node's ports dirty and re-routes exactly
the connectors attached to that node.
"""

from __future__ import annotations

import logging

from diagrammer.assets.models import AssetRecord
from diagrammer.config import DEFAULTS
from diagrammer.geometry import NodeGeometry
from diagrammer.ports import (
    Attachment, AttachmentRegistry, PortResolver, ResolvedPort,
    center_port, choose_best_ports, find_nearest_port, node_ports,
)
from diagrammer.routing import RouterConfig, get_angle_along_path, get_point_along_path, route
from diagrammer.scene.factories import generate_default_ports
from diagrammer.scene.models import (
    CanvasConfig, Connector, LayoutConfig, Node, Port, SceneMetadata, Text,
)

from .primitives import (
    ConnectorMeta, ConnectorPrimitive, NodeMeta, NodePrimitive, TextMeta, TextPrimitive,
)
from .target import MemoryRenderTarget, RenderTarget

log = logging.getLogger(__name__)


class RenderTree:

    def __init__(self, target: RenderTarget | None = None, router_config: RouterConfig | None = None):
        self.target = target if target is not None else MemoryRenderTarget()
        self.ports = PortResolver()
        self.registry = AttachmentRegistry()
        self.router_config = router_config or RouterConfig()
        self.version = DEFAULTS.scene_version
        self.canvas = CanvasConfig()
        self.layout: LayoutConfig | None = None
        self.metadata: SceneMetadata | None = None
        self.reroute_count = 0
        self.target.subscribe(self._on_transform)

    # ── Scene-level settings ───────────────────────────────────────

    def configure(
        self,
        canvas: CanvasConfig,
        *,
        layout: LayoutConfig | None = None,
        version: str | None = None,
        metadata: SceneMetadata | None = None,
    ) -> None:
        self.canvas = canvas.model_copy(deep=True)
        self.layout = layout.model_copy(deep=True) if layout is not None else None
        self.version = version or DEFAULTS.scene_version
        self.metadata = metadata.model_copy(deep=True) if metadata is not None else None
        self.target.configure(self.canvas)

    def clear(self) -> None:
        self.target.clear()
        self.registry.clear()
        self.ports.invalidate_all()
        self.canvas = CanvasConfig()
        self.layout = None
        self.metadata = None
        self.version = DEFAULTS.scene_version

    # ── Queries ────────────────────────────────────────────────────

    def get(self, element_id: str):
        return self.target.get(element_id)

    def node(self, node_id: str) -> NodePrimitive | None:
        prim = self.target.get(node_id)
        return prim if isinstance(prim, NodePrimitive) else None

    def connector(self, connector_id: str) -> ConnectorPrimitive | None:
        prim = self.target.get(connector_id)
        return prim if isinstance(prim, ConnectorPrimitive) else None

    def text(self, text_id: str) -> TextPrimitive | None:
        prim = self.target.get(text_id)
        return prim if isinstance(prim, TextPrimitive) else None

    def nodes(self) -> list[NodePrimitive]:
        return [p for p in self.target.primitives() if isinstance(p, NodePrimitive)]

    def connectors(self) -> list[ConnectorPrimitive]:
        return [p for p in self.target.primitives() if isinstance(p, ConnectorPrimitive)]

    def texts(self) -> list[TextPrimitive]:
        return [p for p in self.target.primitives() if isinstance(p, TextPrimitive)]

    def has_id(self, element_id: str) -> bool:
        return self.target.get(element_id) is not None

    def counts(self) -> dict[str, int]:
        return {
            "nodes": len(self.nodes()),
            "connectors": len(self.connectors()),
            "texts": len(self.texts()),
        }

    def resolved_ports(self, node_id: str) -> list[ResolvedPort]:
        prim = self.node(node_id)
        if prim is None:
            raise KeyError(node_id)
        return self.ports.resolve(node_id, prim.geometry, prim.meta.ports)

    # ── Nodes ──────────────────────────────────────────────────────

    def add_node(self, node: Node, icon: AssetRecord | None = None, placeholder: bool = False) -> NodePrimitive:
        """Add a positioned node.  Nodes without ports get the default set."""
        if not node.positioned:
            raise ValueError(f"Node '{node.id}' has no position")
        # the primitive owns its records; callers keep theirs
        node = node.model_copy(deep=True)
        meta = NodeMeta(
            kind=node.kind,
            shape_type=node.shape_type,
            icon_ref=node.icon_ref,
            ports=node_ports(node),
            ports_declared=bool(node.ports),
            label=node.label,
            style=node.style,
            locked=node.locked,
            data=node.data,
            placeholder=placeholder,
        )
        prim = NodePrimitive(node.id, NodeGeometry.from_node(node), meta, icon)
        self.target.add(prim)
        return prim

    def remove_node(self, node_id: str) -> list[str]:
        """Remove a node and every connector naming it; return the connector ids."""
        removed = self.registry.remove_node(node_id)
        for cid in removed:
            self.target.remove(cid)
        self.target.remove(node_id)
        self.ports.forget(node_id)
        return removed

    def set_node_ports(self, node_id: str, ports: list[Port]) -> None:
        """Replace a node's ports; ends pinned to a vanished port are unpinned."""
        prim = self.node(node_id)
        prim.meta.ports_declared = bool(ports)
        prim.meta.ports = [p.model_copy(deep=True) for p in ports] if ports else generate_default_ports(node_id)
        valid = {p.id for p in prim.meta.ports}
        for cid in self.registry.node_attachments(node_id):
            binding = self.registry.endpoints(cid)
            for end_name in ("from", "to"):
                att = binding.end(end_name)
                if att.node_id == node_id and att.pinned and att.port_id not in valid:
                    self.registry.rebind(cid, end_name, node_id, None)
        self.ports.mark_dirty(node_id)
        self.reroute_node(node_id)

    # ── Connectors ─────────────────────────────────────────────────

    def add_connector(self, conn: Connector) -> tuple[ConnectorPrimitive, list[str]]:
        """Bind and route a connector; returns the primitive and any warnings.

        Both endpoint nodes must exist.  A port id the node does not
        have is reported and the end falls back to best-port choice.
        """
        conn = conn.model_copy(deep=True)
        warnings: list[str] = []
        ends = []
        for end_name, end in (("from", conn.from_), ("to", conn.to)):
            prim = self.node(end.node_id)
            if prim is None:
                raise KeyError(end.node_id)
            port_id = end.port_id
            if port_id is not None and port_id not in {p.id for p in prim.meta.ports}:
                warnings.append(
                    f"Connector {conn.id}: unknown port {end.node_id}:{port_id} "
                    f"on '{end_name}', choosing best port"
                )
                port_id = None
            ends.append(Attachment(end.node_id, port_id, pinned=port_id is not None))

        meta = ConnectorMeta(
            routing_type=conn.routing_type,
            style=conn.style,
            label=conn.label,
            waypoints=conn.waypoints,
            data=conn.data,
        )
        prim = ConnectorPrimitive(conn.id, meta)
        self.target.add(prim)
        self.registry.attach(conn.id, ends[0], ends[1])
        self.reroute_connector(conn.id)
        return prim, warnings

    def remove_connector(self, connector_id: str) -> bool:
        if self.connector(connector_id) is None:
            return False
        self.registry.detach(connector_id)
        self.target.remove(connector_id)
        return True

    def rebind(self, connector_id: str, end: str, node_id: str, port_id: str | None) -> None:
        """Manually re-attach one end of a connector (e.g. after a drag)."""
        prim = self.node(node_id)
        if prim is None:
            raise KeyError(node_id)
        if port_id is not None and port_id not in {p.id for p in prim.meta.ports}:
            raise KeyError(port_id)
        self.registry.rebind(connector_id, end, node_id, port_id)
        self.reroute_connector(connector_id)

    def reroute_node(self, node_id: str) -> list[str]:
        cids = self.registry.node_attachments(node_id)
        for cid in cids:
            self.reroute_connector(cid)
        return cids

    def reroute_connector(self, connector_id: str) -> ConnectorPrimitive:
        prim = self.connector(connector_id)
        binding = self.registry.endpoints(connector_id)
        if prim is None or binding is None:
            raise KeyError(connector_id)

        source, target = self._pick_ports(binding.source, binding.target)
        self.registry.set_resolved_port(connector_id, "from", source.id)
        self.registry.set_resolved_port(connector_id, "to", target.id)

        path = route(
            source, target, prim.meta.routing_type,
            waypoints=prim.meta.waypoints, config=self.router_config,
        )
        prim.path = path
        prim.source_port = source.id
        prim.target_port = target.id
        # markers point into their node
        if source.angle is not None:
            prim.start_angle = _wrap(source.angle + 180.0)
        else:
            prim.start_angle = _wrap(get_angle_along_path(path, 0.0) + 180.0)
        if target.angle is not None:
            prim.end_angle = _wrap(target.angle + 180.0)
        else:
            prim.end_angle = get_angle_along_path(path, 1.0)
        prim.label_anchor = (
            get_point_along_path(path, prim.meta.label.position) if prim.meta.label else None
        )
        self.reroute_count += 1
        return prim

    def _pick_ports(self, a: Attachment, b: Attachment) -> tuple[ResolvedPort, ResolvedPort]:
        geom_a = self.node(a.node_id).geometry
        geom_b = self.node(b.node_id).geometry
        ports_a = self.resolved_ports(a.node_id)
        ports_b = self.resolved_ports(b.node_id)
        pa = _port_by_id(ports_a, a.port_id) if a.pinned else None
        pb = _port_by_id(ports_b, b.port_id) if b.pinned else None

        if pa is None and pb is None:
            return choose_best_ports(ports_a, geom_a, ports_b, geom_b)
        if pa is None:
            pa = _nearest(ports_a, a.node_id, geom_a, pb)
        if pb is None:
            pb = _nearest(ports_b, b.node_id, geom_b, pa)
        return pa, pb

    # ── Texts ──────────────────────────────────────────────────────

    def add_text(self, text: Text) -> TextPrimitive:
        text = text.model_copy(deep=True)
        prim = TextPrimitive(
            text.id, text.x, text.y,
            TextMeta(content=text.content, style=text.style, width=text.width, data=text.data),
        )
        self.target.add(prim)
        return prim

    def remove_text(self, text_id: str) -> bool:
        if self.text(text_id) is None:
            return False
        self.target.remove(text_id)
        return True

    # ── Snapshot / restore ─────────────────────────────────────────

    def snapshot(self) -> dict:
        return {
            "target": self.target.snapshot(),
            "registry": self.registry.snapshot(),
            "canvas": self.canvas.model_copy(deep=True),
            "layout": self.layout,
            "version": self.version,
            "metadata": self.metadata,
        }

    def restore(self, snap: dict) -> None:
        self.target.restore(snap["target"])
        self.registry.restore(snap["registry"])
        self.canvas = snap["canvas"]
        self.layout = snap["layout"]
        self.version = snap["version"]
        self.metadata = snap["metadata"]
        self.ports.invalidate_all()

    # ── Notifications ──────────────────────────────────────────────

    def _on_transform(self, node_id: str, geometry: NodeGeometry) -> None:
        self.ports.mark_dirty(node_id)
        cids = self.reroute_node(node_id)
        if cids:
            log.debug("Node %s v%d: re-routed %d connectors", node_id, geometry.version, len(cids))


def _port_by_id(ports: list[ResolvedPort], port_id: str | None) -> ResolvedPort | None:
    for port in ports:
        if port.id == port_id:
            return port
    return None


def _nearest(ports, node_id, geometry, towards: ResolvedPort) -> ResolvedPort:
    candidates = [p for p in ports if not p.is_center]
    return find_nearest_port(candidates, towards.x, towards.y) or center_port(ports, node_id, geometry)


def _wrap(angle: float) -> float:
    return (angle + 180.0) % 360.0 - 180.0
