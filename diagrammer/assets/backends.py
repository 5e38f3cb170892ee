"""Asset backends — the read contract of the asset storage service.

The engine only ever asks a backend for records by id (in batches) and
for free-text search.  Storage, auth and transport belong to the
backend; two in-process implementations ship here.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Protocol, Sequence

from .models import AssetBackendError, AssetRecord

log = logging.getLogger(__name__)


class AssetBackend(Protocol):

    async def fetch_many(self, ids: Sequence[str]) -> dict[str, AssetRecord]:
        """Records for the ids that exist; missing ids are simply absent."""
        ...

    async def search(
        self, query: str, *, category: str | None = None, limit: int = 50,
    ) -> list[AssetRecord]:
        ...


def _matches(record: AssetRecord, query: str, category: str | None) -> bool:
    if category is not None and record.category != category:
        return False
    return query.lower() in record.name.lower()


class MemoryAssetBackend:
    """Backend over a dict of records; counts calls for tests."""

    def __init__(self, records: Iterable[AssetRecord] = ()):
        self._records = {r.id: r for r in records}
        self.fetch_calls: list[list[str]] = []

    def add(self, record: AssetRecord) -> None:
        self._records[record.id] = record

    async def fetch_many(self, ids: Sequence[str]) -> dict[str, AssetRecord]:
        self.fetch_calls.append(list(ids))
        return {i: self._records[i] for i in ids if i in self._records}

    async def search(self, query, *, category=None, limit=50):
        hits = [r for r in self._records.values() if _matches(r, query, category)]
        return hits[:limit]


class DirectoryAssetBackend:
    """Backend over a folder of ``*.json`` records and bare ``*.svg`` files.

    A bare SVG becomes a record whose id and name are the file stem.
    The folder is read once, on first use.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self._records: dict[str, AssetRecord] | None = None

    def _load(self) -> dict[str, AssetRecord]:
        if self._records is not None:
            return self._records
        if not self.directory.is_dir():
            raise AssetBackendError(f"Asset directory not found: {self.directory}")

        records: dict[str, AssetRecord] = {}
        try:
            for path in sorted(self.directory.glob("*.json")):
                with open(path, encoding="utf-8") as f:
                    record = AssetRecord.from_dict(json.load(f))
                records[record.id] = record
            for path in sorted(self.directory.glob("*.svg")):
                if path.stem in records:
                    continue
                records[path.stem] = AssetRecord(
                    id=path.stem,
                    name=path.stem,
                    vector_markup=path.read_text(encoding="utf-8"),
                )
        except (OSError, ValueError) as exc:
            raise AssetBackendError(f"Failed to read assets from {self.directory}: {exc}") from exc

        log.info("Loaded %d assets from %s", len(records), self.directory)
        self._records = records
        return records

    async def fetch_many(self, ids: Sequence[str]) -> dict[str, AssetRecord]:
        records = self._load()
        return {i: records[i] for i in ids if i in records}

    async def search(self, query, *, category=None, limit=50):
        hits = [r for r in self._load().values() if _matches(r, query, category)]
        return hits[:limit]
