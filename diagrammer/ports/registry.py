"""Attachment registry — live connector → port bindings.

The registry is the source of truth for connector endpoints at export
time.  An end is *pinned* when its port was named explicitly (in the
imported document, by an op, or by a manual drag via ``rebind``);
unpinned ends are re-chosen by best-port search whenever the
connector is re-routed.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass


@dataclass
class Attachment:
    node_id: str
    port_id: str | None = None
    pinned: bool = False


@dataclass
class Binding:
    """Both ends of one connector."""

    connector_id: str
    source: Attachment
    target: Attachment

    def end(self, name: str) -> Attachment:
        if name == "from":
            return self.source
        if name == "to":
            return self.target
        raise ValueError(f"Unknown connector end: {name!r}")


class AttachmentRegistry:

    def __init__(self):
        self._bindings: dict[str, Binding] = {}
        self._by_node: dict[str, set[str]] = {}

    # ── Binding lifecycle ──────────────────────────────────────────

    def attach(self, connector_id: str, source: Attachment, target: Attachment) -> Binding:
        if connector_id in self._bindings:
            self.detach(connector_id)
        binding = Binding(connector_id, source, target)
        self._bindings[connector_id] = binding
        self._index(connector_id, source.node_id)
        self._index(connector_id, target.node_id)
        return binding

    def detach(self, connector_id: str) -> Binding | None:
        binding = self._bindings.pop(connector_id, None)
        if binding is None:
            return None
        for node_id in (binding.source.node_id, binding.target.node_id):
            ids = self._by_node.get(node_id)
            if ids is not None:
                ids.discard(connector_id)
                if not ids:
                    del self._by_node[node_id]
        return binding

    def rebind(self, connector_id: str, end: str, node_id: str, port_id: str | None) -> Binding:
        """Move one end of a connector, pinning it to ``port_id``."""
        binding = self._bindings[connector_id]
        att = binding.end(end)
        other = binding.target if end == "from" else binding.source
        if att.node_id != node_id:
            ids = self._by_node.get(att.node_id)
            if ids is not None and other.node_id != att.node_id:
                ids.discard(connector_id)
                if not ids:
                    del self._by_node[att.node_id]
            self._index(connector_id, node_id)
        att.node_id = node_id
        att.port_id = port_id
        att.pinned = port_id is not None
        return binding

    def set_resolved_port(self, connector_id: str, end: str, port_id: str | None) -> None:
        """Record the port an unpinned end currently resolves to."""
        att = self._bindings[connector_id].end(end)
        if not att.pinned:
            att.port_id = port_id

    def remove_node(self, node_id: str) -> list[str]:
        """Detach every connector touching ``node_id``; return their ids."""
        connector_ids = sorted(self._by_node.get(node_id, ()))
        for cid in connector_ids:
            self.detach(cid)
        return connector_ids

    def clear(self) -> None:
        self._bindings.clear()
        self._by_node.clear()

    # ── Queries ────────────────────────────────────────────────────

    def endpoints(self, connector_id: str) -> Binding | None:
        return self._bindings.get(connector_id)

    def node_attachments(self, node_id: str) -> list[str]:
        """Ids of connectors with an end on ``node_id``, sorted."""
        return sorted(self._by_node.get(node_id, ()))

    def connector_ids(self) -> list[str]:
        return list(self._bindings)

    def __contains__(self, connector_id: str) -> bool:
        return connector_id in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)

    # ── Snapshot / restore ─────────────────────────────────────────

    def snapshot(self) -> tuple[dict[str, Binding], dict[str, set[str]]]:
        return copy.deepcopy((self._bindings, self._by_node))

    def restore(self, snap: tuple[dict[str, Binding], dict[str, set[str]]]) -> None:
        bindings, by_node = copy.deepcopy(snap)
        self._bindings = bindings
        self._by_node = by_node

    def _index(self, connector_id: str, node_id: str) -> None:
        self._by_node.setdefault(node_id, set()).add(connector_id)
