"""IconResolver — cached, batched, deduplicated asset lookup.

One resolver owns one memory cache and one pending-request map.
Concurrent lookups of the same id share a single ``asyncio.Future``,
so N simultaneous requests produce one backend fetch.  Backend
failures (``AssetBackendError``) are reported as misses.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from .backends import AssetBackend
from .models import AssetBackendError, AssetRecord

log = logging.getLogger(__name__)


class IconResolver:

    def __init__(self, backend: AssetBackend):
        self._backend = backend
        self._cache: dict[str, AssetRecord] = {}
        self._pending: dict[str, asyncio.Future] = {}
        self._closed = False
        self.hits = 0
        self.fetches = 0

    # ── Lifecycle ──────────────────────────────────────────────────

    async def __aenter__(self) -> IconResolver:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def close(self) -> None:
        self._closed = True
        for fut in self._pending.values():
            if not fut.done():
                fut.set_result(None)
        self._pending.clear()
        self._cache.clear()

    @property
    def closed(self) -> bool:
        return self._closed

    # ── Lookup ─────────────────────────────────────────────────────

    async def resolve(self, asset_id: str) -> AssetRecord | None:
        results = await self.resolve_many([asset_id])
        return results[asset_id]

    async def resolve_many(self, asset_ids: Iterable[str]) -> dict[str, AssetRecord | None]:
        """Resolve every id with at most one backend call for the uncached ones."""
        self._check_open()
        ids = list(dict.fromkeys(asset_ids))
        results: dict[str, AssetRecord | None] = {}
        waiting: dict[str, asyncio.Future] = {}
        to_fetch: list[str] = []

        for aid in ids:
            if aid in self._cache:
                self.hits += 1
                results[aid] = self._cache[aid]
            elif aid in self._pending:
                waiting[aid] = self._pending[aid]
            else:
                to_fetch.append(aid)

        if to_fetch:
            loop = asyncio.get_running_loop()
            futures = {aid: loop.create_future() for aid in to_fetch}
            self._pending.update(futures)
            try:
                fetched = await self._fetch(to_fetch)
                for aid, fut in futures.items():
                    results[aid] = fetched.get(aid)
                    if not fut.done():
                        fut.set_result(results[aid])
            finally:
                # waiters see a miss if the fetch raised
                for aid, fut in futures.items():
                    if not fut.done():
                        fut.set_result(None)
                    self._pending.pop(aid, None)

        for aid, fut in waiting.items():
            results[aid] = await fut

        return {aid: results.get(aid) for aid in ids}

    async def _fetch(self, ids: list[str]) -> dict[str, AssetRecord]:
        self.fetches += 1
        log.debug("Fetching %d assets", len(ids))
        try:
            records = await self._backend.fetch_many(ids)
        except AssetBackendError as exc:
            log.warning("Asset fetch failed for %d ids: %s", len(ids), exc)
            return {}
        for aid in ids:
            if aid in records:
                self._cache[aid] = records[aid]
            else:
                log.warning("Asset not found: %s", aid)
        return records

    async def preload(self, asset_ids: Iterable[str]) -> None:
        await self.resolve_many(asset_ids)

    async def search(
        self, query: str, *, category: str | None = None, limit: int = 50,
    ) -> list[AssetRecord]:
        self._check_open()
        try:
            return await self._backend.search(query, category=category, limit=limit)
        except AssetBackendError as exc:
            log.warning("Asset search failed for %r: %s", query, exc)
            return []

    # ── Cache management ───────────────────────────────────────────

    def cached(self, asset_id: str) -> AssetRecord | None:
        return self._cache.get(asset_id)

    def clear_cache(self) -> None:
        self._cache.clear()

    def stats(self) -> dict:
        return {
            "memory_size": len(self._cache),
            "pending": len(self._pending),
            "hits": self.hits,
            "fetches": self.fetches,
        }

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("IconResolver is closed")
