"""Operation models — one pydantic model per command, tagged on ``type``.

Ops arrive either as Python objects or as JSON (e.g. a batch posted to
the HTTP surface); ``parse_op`` turns a raw dict into the right model.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Any, Literal, Union

from pydantic import Field, TypeAdapter

from diagrammer.scene.models import Connector, Node, SceneModel, Text


class AddNodeOp(SceneModel):
    type: Literal["addNode"] = "addNode"
    node: Node


class RemoveNodeOp(SceneModel):
    type: Literal["removeNode"] = "removeNode"
    node_id: str


class UpdateNodeOp(SceneModel):
    type: Literal["updateNode"] = "updateNode"
    node_id: str
    changes: dict[str, Any]


class MoveNodeOp(SceneModel):
    type: Literal["moveNode"] = "moveNode"
    node_id: str
    x: float
    y: float


class ResizeNodeOp(SceneModel):
    type: Literal["resizeNode"] = "resizeNode"
    node_id: str
    w: float
    h: float


class DuplicateNodeOp(SceneModel):
    type: Literal["duplicateNode"] = "duplicateNode"
    node_id: str
    offset_x: float = 20
    offset_y: float = 20
    new_id: str | None = None


class ReplaceIconOp(SceneModel):
    type: Literal["replaceIcon"] = "replaceIcon"
    node_id: str
    new_icon_id: str


class AddConnectorOp(SceneModel):
    type: Literal["addConnector"] = "addConnector"
    connector: Connector


class RemoveConnectorOp(SceneModel):
    type: Literal["removeConnector"] = "removeConnector"
    connector_id: str


class UpdateConnectorOp(SceneModel):
    type: Literal["updateConnector"] = "updateConnector"
    connector_id: str
    changes: dict[str, Any]


class AddTextOp(SceneModel):
    type: Literal["addText"] = "addText"
    text: Text


class RemoveTextOp(SceneModel):
    type: Literal["removeText"] = "removeText"
    text_id: str


class UpdateTextOp(SceneModel):
    type: Literal["updateText"] = "updateText"
    text_id: str
    changes: dict[str, Any]


DiagramOp = Annotated[
    Union[
        AddNodeOp, RemoveNodeOp, UpdateNodeOp, MoveNodeOp, ResizeNodeOp,
        DuplicateNodeOp, ReplaceIconOp,
        AddConnectorOp, RemoveConnectorOp, UpdateConnectorOp,
        AddTextOp, RemoveTextOp, UpdateTextOp,
    ],
    Field(discriminator="type"),
]

_OP_ADAPTER = TypeAdapter(DiagramOp)


def parse_op(data: dict) -> DiagramOp:
    """Validate a raw op dict; raises ``pydantic.ValidationError``."""
    return _OP_ADAPTER.validate_python(data)


@dataclass
class OpResult:
    success: bool
    error: str | None = None
    affected_ids: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.success

    def to_dict(self) -> dict:
        out: dict = {"success": self.success, "affectedIds": self.affected_ids}
        if self.error is not None:
            out["error"] = self.error
        return out
