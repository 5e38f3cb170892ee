"""Pipeline — conversion between scene documents and render trees.

Submodules:
  models     ImportResult / ExportResult dataclasses.
  importer   Scene document → render tree (async, one batched icon lookup).
  exporter   Render tree → scene document, file output.
"""

from .models import ImportResult, ImportStats, ExportResult, ExportStats
from .importer import import_scene
from .exporter import export_scene, build_scene, write_scene_file

__all__ = [
    # Models
    "ImportResult", "ImportStats", "ExportResult", "ExportStats",
    # Import
    "import_scene",
    # Export
    "export_scene", "build_scene", "write_scene_file",
]
