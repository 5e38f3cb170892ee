"""Scene validation — structural and referential checks on a raw document.

``validate_scene`` never raises.  Problems are reported as
``ValidationIssue`` records, each tagged with the tier it belongs to:

  structural   the document cannot be turned into a Scene at all
               (types, required fields, duplicate ids, custom ports
               without an offset).  Import aborts on these.
  referential  the document parses but names something that does not
               exist (a connector endpoint or port).  Import degrades
               these to warnings and substitutes placeholders.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .models import COMPASS_OFFSETS, Scene


STRUCTURAL = "structural"
REFERENTIAL = "referential"


@dataclass
class ValidationIssue:
    path: str
    message: str
    code: str
    tier: str = STRUCTURAL

    def __str__(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message


@dataclass
class ValidationResult:
    """Outcome of ``validate_scene`` — valid when there are no errors."""

    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)
    scene: Scene | None = None          # set when the document parsed

    @property
    def valid(self) -> bool:
        return len(self.errors) == 0

    @property
    def structural_errors(self) -> list[ValidationIssue]:
        return [e for e in self.errors if e.tier == STRUCTURAL]

    @property
    def referential_errors(self) -> list[ValidationIssue]:
        return [e for e in self.errors if e.tier == REFERENTIAL]


def _pydantic_issues(exc: PydanticValidationError) -> list[ValidationIssue]:
    return [
        ValidationIssue(
            path=".".join(str(p) for p in err["loc"]),
            message=err["msg"],
            code=err["type"],
        )
        for err in exc.errors()
    ]


def validate_scene(data: Any) -> ValidationResult:
    """Validate a raw scene document (dict or Scene). Never raises."""
    result = ValidationResult()

    if isinstance(data, Scene):
        scene = data
    else:
        if not isinstance(data, dict):
            result.errors.append(ValidationIssue(
                "", f"Scene must be an object, got {type(data).__name__}", "invalid_type",
            ))
            return result
        try:
            scene = Scene.model_validate(data)
        except PydanticValidationError as exc:
            result.errors.extend(_pydantic_issues(exc))
            return result

    # ── Ids unique across nodes, connectors and texts ──
    seen: set[str] = set()
    duplicates: list[str] = []
    for kind, ids in (
        ("node", [n.id for n in scene.nodes]),
        ("connector", [c.id for c in scene.connectors]),
        ("text", [t.id for t in scene.texts]),
    ):
        for eid in ids:
            if eid in seen:
                duplicates.append(f"{kind}:{eid}")
            seen.add(eid)
    if duplicates:
        result.errors.append(ValidationIssue(
            "", f"Duplicate IDs found: {', '.join(duplicates)}", "duplicate_ids",
        ))

    # ── Port definitions ──
    for node in scene.nodes:
        port_ids: set[str] = set()
        for port in node.ports:
            path = f"nodes.{node.id}.ports.{port.id}"
            if port.id in port_ids:
                result.errors.append(ValidationIssue(
                    path, f"Duplicate port id '{port.id}' on node '{node.id}'",
                    "duplicate_port_id",
                ))
            port_ids.add(port.id)
            if port.position_name not in COMPASS_OFFSETS and port.offset is None:
                result.errors.append(ValidationIssue(
                    path, f"Custom port '{port.position_name}' requires an offset",
                    "missing_offset",
                ))

    # ── Connector references ──
    nodes_by_id = {n.id: n for n in scene.nodes}
    for conn in scene.connectors:
        for end_name, end in (("from", conn.from_), ("to", conn.to)):
            path = f"connectors.{conn.id}.{end_name}"
            node = nodes_by_id.get(end.node_id)
            if node is None:
                result.errors.append(ValidationIssue(
                    f"{path}.nodeId",
                    f"Connector references non-existent node: {end.node_id}",
                    "invalid_reference", REFERENTIAL,
                ))
                continue
            # Nodes without declared ports get the default set at import
            if end.port_id is not None and node.ports:
                if end.port_id not in {p.id for p in node.ports}:
                    result.errors.append(ValidationIssue(
                        f"{path}.portId",
                        f"Connector references non-existent port: "
                        f"{end.node_id}:{end.port_id}",
                        "invalid_port_reference", REFERENTIAL,
                    ))

    # ── Warnings ──
    for node in scene.nodes:
        if node.kind == "icon" and not node.icon_ref:
            result.warnings.append(ValidationIssue(
                f"nodes.{node.id}", "Icon node missing iconRef", "missing_icon_ref",
            ))
    if scene.layout is None:
        for node in scene.nodes:
            if not node.positioned:
                result.warnings.append(ValidationIssue(
                    f"nodes.{node.id}",
                    "Node missing position (x/y) and no layout specified",
                    "missing_position",
                ))

    if not result.structural_errors:
        result.scene = scene
    return result
