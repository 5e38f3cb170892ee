"""Layered layout driven by connector direction."""

from __future__ import annotations

from collections import deque
from typing import Sequence

from diagrammer.scene.models import Connector, HierarchicalLayout, Node

from .models import Bounds, LayoutResult, place, scaled_size


def assign_levels(nodes: Sequence[Node], connectors: Sequence[Connector]) -> dict[str, int]:
    """BFS level of every node, starting from nodes without incoming edges.

    Nodes only reachable through a cycle never get a root; the first
    of them in input order seeds another BFS pass at level 0.
    """
    ids = [n.id for n in nodes]
    known = set(ids)
    children: dict[str, list[str]] = {nid: [] for nid in ids}
    indegree: dict[str, int] = {nid: 0 for nid in ids}
    for conn in connectors:
        src, dst = conn.node_ids()
        if src in known and dst in known and src != dst:
            children[src].append(dst)
            indegree[dst] += 1

    levels: dict[str, int] = {}

    def bfs(seeds: list[str]) -> None:
        queue = deque((s, 0) for s in seeds)
        while queue:
            nid, level = queue.popleft()
            if nid in levels:
                continue
            levels[nid] = level
            for child in children[nid]:
                if child not in levels:
                    queue.append((child, level + 1))

    bfs([nid for nid in ids if indegree[nid] == 0])
    for nid in ids:
        if nid not in levels:
            bfs([nid])
    return levels


def apply_hierarchical_layout(
    nodes: Sequence[Node],
    connectors: Sequence[Connector] = (),
    config: HierarchicalLayout | None = None,
) -> LayoutResult:
    cfg = config or HierarchicalLayout()
    levels = assign_levels(nodes, connectors)
    horizontal = cfg.direction in ("LR", "RL")
    reverse = cfg.direction in ("BT", "RL")

    order = sorted(set(levels.values()), reverse=reverse)
    level_rank = {level: i for i, level in enumerate(order)}
    slot_offset = {level: 0.0 for level in order}

    placed: dict[str, Node] = {}
    for node in nodes:
        if node.positioned:
            continue
        level = levels[node.id]
        along = level_rank[level] * cfg.level_gap
        across = slot_offset[level]
        w, h = scaled_size(node)
        slot_offset[level] += max(w, h) + cfg.node_gap
        if horizontal:
            placed[node.id] = place(node, cfg.start_x + along, cfg.start_y + across)
        else:
            placed[node.id] = place(node, cfg.start_x + across, cfg.start_y + along)

    out = [placed.get(n.id) or n.model_copy() for n in nodes]
    return LayoutResult(out, Bounds.of_nodes(out))
