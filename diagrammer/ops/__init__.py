"""Ops — programmatic mutation of a render tree.

Submodules:
  models    Op models (pydantic, tagged on ``type``) and OpResult.
  manager   DiagramManager: single ops with rollback, non-transactional batches.
"""

from .models import (
    DiagramOp, OpResult, parse_op,
    AddNodeOp, RemoveNodeOp, UpdateNodeOp, MoveNodeOp, ResizeNodeOp,
    DuplicateNodeOp, ReplaceIconOp,
    AddConnectorOp, RemoveConnectorOp, UpdateConnectorOp,
    AddTextOp, RemoveTextOp, UpdateTextOp,
)
from .manager import DiagramManager, OperationError

__all__ = [
    # Models
    "DiagramOp", "OpResult", "parse_op",
    "AddNodeOp", "RemoveNodeOp", "UpdateNodeOp", "MoveNodeOp", "ResizeNodeOp",
    "DuplicateNodeOp", "ReplaceIconOp",
    "AddConnectorOp", "RemoveConnectorOp", "UpdateConnectorOp",
    "AddTextOp", "RemoveTextOp", "UpdateTextOp",
    # Manager
    "DiagramManager", "OperationError",
]
