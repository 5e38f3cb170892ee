"""Import / export result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field

from diagrammer.scene.models import Scene


@dataclass
class ImportStats:
    nodes_imported: int = 0
    connectors_imported: int = 0
    texts_imported: int = 0
    icons_fetched: int = 0
    time_ms: float = 0.0


@dataclass
class ImportResult:
    success: bool = False
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    stats: ImportStats = field(default_factory=ImportStats)

    @property
    def ok(self) -> bool:
        return self.success and not self.errors


@dataclass
class ExportStats:
    nodes_exported: int = 0
    connectors_exported: int = 0
    texts_exported: int = 0


@dataclass
class ExportResult:
    success: bool = False
    json: str = ""
    scene: Scene | None = None
    errors: list[str] = field(default_factory=list)
    stats: ExportStats = field(default_factory=ExportStats)
