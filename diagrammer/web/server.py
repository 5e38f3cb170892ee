"""
FastAPI web server — validate, import, export and edit one in-process diagram.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel

from diagrammer.assets import DirectoryAssetBackend, IconResolver, MemoryAssetBackend
from diagrammer.ops import DiagramManager
from diagrammer.pipeline import import_scene
from diagrammer.render import RenderTree
from diagrammer.scene import scene_to_dict, validate_scene

log = logging.getLogger(__name__)

# ── .env loader ────────────────────────────────────────────────────

def _load_env():
    root = Path(__file__).resolve().parents[2]
    for name in (".env", ".env.local"):
        p = root / name
        if p.exists():
            for line in p.read_text(encoding="utf-8").splitlines():
                line = line.strip()
                if line and "=" in line and not line.startswith("#"):
                    k, v = line.split("=", 1)
                    k = k.strip()
                    v = v.strip().strip('"').strip("'")
                    if k and k not in os.environ:
                        os.environ[k] = v

_load_env()

# ── App ────────────────────────────────────────────────────────────

app = FastAPI(title="Diagrammer")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Session state (persists across requests) ───────────────────────

def _make_resolver() -> IconResolver:
    assets_dir = os.environ.get("DIAGRAMMER_ASSETS_DIR")
    if assets_dir:
        log.info("Assets served from %s", assets_dir)
        return IconResolver(DirectoryAssetBackend(assets_dir))
    return IconResolver(MemoryAssetBackend())


_resolver = _make_resolver()
_tree = RenderTree()
_manager = DiagramManager(_tree, resolver=_resolver)
# imports and ops await icon fetches mid-mutation; one writer at a time
_lock = asyncio.Lock()


# ── Models ─────────────────────────────────────────────────────────

class BatchRequest(BaseModel):
    ops: list[dict[str, Any]]


# ── Helpers ────────────────────────────────────────────────────────

async def _read_json(request: Request) -> Any:
    body = await request.body()
    try:
        return json.loads(body)
    except ValueError as exc:
        raise HTTPException(400, f"Invalid JSON: {exc}")


def _issue(issue) -> dict:
    return {"path": issue.path, "message": issue.message, "code": issue.code, "tier": issue.tier}


# ── Routes ─────────────────────────────────────────────────────────

@app.post("/api/validate")
async def validate(request: Request):
    """Validate a scene document without touching the current diagram."""
    result = validate_scene(await _read_json(request))
    return {
        "valid": result.valid,
        "errors": [_issue(e) for e in result.errors],
        "warnings": [_issue(w) for w in result.warnings],
    }


@app.post("/api/scene/import")
async def import_document(request: Request):
    """Replace the current diagram with the posted scene document."""
    body = await request.body()
    async with _lock:
        snap = _tree.snapshot()
        result = await import_scene(body, _tree, resolver=_resolver, clear=True)
        if not result.success:
            _tree.restore(snap)
    if not result.success:
        raise HTTPException(422, {"errors": result.errors, "warnings": result.warnings})
    return {
        "success": True,
        "warnings": result.warnings,
        "stats": {
            "nodesImported": result.stats.nodes_imported,
            "connectorsImported": result.stats.connectors_imported,
            "textsImported": result.stats.texts_imported,
            "iconsFetched": result.stats.icons_fetched,
            "timeMs": result.stats.time_ms,
        },
    }


@app.get("/api/scene")
def get_scene():
    return scene_to_dict(_manager.get_scene())


@app.get("/api/scene/download")
def download_scene(name: str = "diagram"):
    result = _manager.export_scene(pretty=True, include_metadata=True)
    if not result.success:
        raise HTTPException(500, "; ".join(result.errors))
    return Response(
        content=result.json.encode("utf-8"),
        media_type="application/json",
        headers={"Content-Disposition": f"attachment; filename={name}.json"},
    )


@app.post("/api/ops")
async def run_op(request: Request):
    op = await _read_json(request)
    if not isinstance(op, dict):
        raise HTTPException(400, "Op must be a JSON object.")
    async with _lock:
        result = await _manager.execute(op)
    return result.to_dict()


@app.post("/api/ops/batch")
async def run_batch(req: BatchRequest):
    async with _lock:
        results = await _manager.execute_batch(req.ops)
    return {"results": [r.to_dict() for r in results]}


@app.get("/api/assets/stats")
def asset_stats():
    return _resolver.stats()


# ── Entry point ────────────────────────────────────────────────────

def main(host: str = "127.0.0.1", port: int = 8000):
    import uvicorn
    uvicorn.run("diagrammer.web.server:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
