"""Per-node cache of resolved port positions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from diagrammer.geometry import NodeGeometry
from diagrammer.scene.models import Port

from .geometry import ResolvedPort, resolve_ports_absolute

log = logging.getLogger(__name__)


@dataclass
class _CacheEntry:
    version: int
    ports: tuple[Port, ...]
    resolved: list[ResolvedPort]
    dirty: bool = False


class PortResolver:
    """Caches resolved ports per node.

    An entry is reused while the node's geometry version and port list
    are unchanged and nobody has called ``mark_dirty`` for it.  The
    render target's transform-changed notification drives
    ``mark_dirty``.
    """

    def __init__(self):
        self._cache: dict[str, _CacheEntry] = {}
        self.hits = 0
        self.misses = 0

    def resolve(
        self,
        node_id: str,
        geometry: NodeGeometry,
        ports: Sequence[Port],
    ) -> list[ResolvedPort]:
        key = tuple(ports)
        entry = self._cache.get(node_id)
        if (
            entry is not None
            and not entry.dirty
            and entry.version == geometry.version
            and entry.ports == key
        ):
            self.hits += 1
            return entry.resolved

        self.misses += 1
        resolved = resolve_ports_absolute(node_id, geometry, ports)
        self._cache[node_id] = _CacheEntry(geometry.version, key, resolved)
        return resolved

    def mark_dirty(self, node_id: str) -> None:
        entry = self._cache.get(node_id)
        if entry is not None:
            entry.dirty = True

    def is_dirty(self, node_id: str) -> bool:
        entry = self._cache.get(node_id)
        return entry is None or entry.dirty

    def forget(self, node_id: str) -> None:
        self._cache.pop(node_id, None)

    def invalidate_all(self) -> None:
        log.debug("Port cache cleared (%d entries)", len(self._cache))
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
