"""Layout dispatch on the ``type`` of a layout config."""

from __future__ import annotations

import logging
from typing import Sequence

from diagrammer.scene.models import (
    Connector, FlowLRLayout, FlowTBLayout, ForceLayout, GridLayout,
    HierarchicalLayout, LayoutConfig, Node,
)

from .force import apply_force_layout
from .grid import apply_flow_lr_layout, apply_flow_tb_layout, apply_grid_layout
from .hierarchical import apply_hierarchical_layout
from .models import LayoutResult

log = logging.getLogger(__name__)

_LAYOUTS = {
    "grid": apply_grid_layout,
    "flowLR": apply_flow_lr_layout,
    "flowTB": apply_flow_tb_layout,
    "hierarchical": apply_hierarchical_layout,
    "force": apply_force_layout,
}

_CONFIGS = {
    "grid": GridLayout,
    "flowLR": FlowLRLayout,
    "flowTB": FlowTBLayout,
    "hierarchical": HierarchicalLayout,
    "force": ForceLayout,
}


def apply_layout(
    nodes: Sequence[Node],
    connectors: Sequence[Connector],
    config: LayoutConfig | dict,
) -> LayoutResult:
    """Run the layout algorithm named by ``config.type``."""
    if isinstance(config, dict):
        kind = config.get("type", "grid")
        if kind not in _CONFIGS:
            raise ValueError(f"Unknown layout type: {kind!r}")
        config = _CONFIGS[kind].model_validate(config)

    unpositioned = sum(1 for n in nodes if not n.positioned)
    log.info("Layout %s: %d of %d nodes unpositioned", config.type, unpositioned, len(nodes))
    return _LAYOUTS[config.type](nodes, connectors, config)
