"""Grid layout and the greedy flow layouts (left-to-right, top-to-bottom)."""

from __future__ import annotations

from typing import Sequence

from diagrammer.scene.models import Connector, FlowLRLayout, FlowTBLayout, GridLayout, Node

from .models import Bounds, LayoutResult, place, scaled_size


def apply_grid_layout(
    nodes: Sequence[Node],
    connectors: Sequence[Connector] = (),
    config: GridLayout | None = None,
) -> LayoutResult:
    """Pack unpositioned nodes row-major into cells, centred in each cell.

    Cell ``i`` starts at ``start + padding + i · (cell + padding)`` on
    each axis, so ``padding`` is both the outer margin and the gutter.
    """
    cfg = config or GridLayout()
    out: list[Node] = []
    index = 0
    for node in nodes:
        if node.positioned:
            out.append(node.model_copy())
            continue
        row, col = divmod(index, cfg.cols)
        cell_x = cfg.start_x + cfg.padding + col * (cfg.cell_w + cfg.padding)
        cell_y = cfg.start_y + cfg.padding + row * (cfg.cell_h + cfg.padding)
        w, h = scaled_size(node)
        out.append(place(node, cell_x + (cfg.cell_w - w) / 2, cell_y + (cfg.cell_h - h) / 2))
        index += 1
    return LayoutResult(out, Bounds.of_nodes(out))


def apply_flow_lr_layout(
    nodes: Sequence[Node],
    connectors: Sequence[Connector] = (),
    config: FlowLRLayout | None = None,
) -> LayoutResult:
    """Place unpositioned nodes left to right, wrapping past ``max_width``."""
    cfg = config or FlowLRLayout()
    out: list[Node] = []
    cur_x, cur_y = cfg.start_x, cfg.start_y
    row_height = 0.0
    for node in nodes:
        if node.positioned:
            out.append(node.model_copy())
            continue
        w, h = scaled_size(node)
        if cur_x + w > cfg.max_width and cur_x > cfg.start_x:
            cur_x = cfg.start_x
            cur_y += row_height + cfg.row_gap
            row_height = 0.0
        out.append(place(node, cur_x, cur_y))
        row_height = max(row_height, h)
        cur_x += w + cfg.col_gap
    return LayoutResult(out, Bounds.of_nodes(out))


def apply_flow_tb_layout(
    nodes: Sequence[Node],
    connectors: Sequence[Connector] = (),
    config: FlowTBLayout | None = None,
) -> LayoutResult:
    """Place unpositioned nodes top to bottom, wrapping past ``max_height``."""
    cfg = config or FlowTBLayout()
    out: list[Node] = []
    cur_x, cur_y = cfg.start_x, cfg.start_y
    col_width = 0.0
    for node in nodes:
        if node.positioned:
            out.append(node.model_copy())
            continue
        w, h = scaled_size(node)
        if cur_y + h > cfg.max_height and cur_y > cfg.start_y:
            cur_y = cfg.start_y
            cur_x += col_width + cfg.col_gap
            col_width = 0.0
        out.append(place(node, cur_x, cur_y))
        col_width = max(col_width, w)
        cur_y += h + cfg.row_gap
    return LayoutResult(out, Bounds.of_nodes(out))
