"""
web/spa.py -- Static asset server with single-page-app fallback.

In production the built frontend (index.html + hashed assets) lives in
STATIC_DIR. Any GET that no API route matched lands here:
  - an existing file under STATIC_DIR is served as-is;
  - anything else gets index.html so the client-side router can take over.

In development (STATIC_DIR empty) the frontend runs on its own dev server, so
this router only answers with a short JSON notice.

Paths under api/ never fall back to index.html -- a typo in an API path must
stay a 404, not a 200 with HTML.

Route registration order matters: this router must be included AFTER every
API router (asgi.py does that), or its catch-all path would shadow them.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, JSONResponse

from core.config import get_settings
from core.errors import NotFound

logger = logging.getLogger("useradmin.web")

router = APIRouter()


def _static_root() -> Path | None:
    static_dir = get_settings().static_dir
    if not static_dir:
        return None
    return Path(static_dir).resolve()


def _resolve_asset(root: Path, path: str) -> Path | None:
    """Return the file under root for path, or None if missing or outside root."""
    if not path:
        return None
    candidate = (root / path).resolve()
    if not candidate.is_relative_to(root):
        logger.warning("Refused static path outside STATIC_DIR: %s", path)
        return None
    return candidate if candidate.is_file() else None


@router.get("/{full_path:path}", include_in_schema=False)
def spa_fallback(request: Request, full_path: str):
    if full_path == "api" or full_path.startswith("api/"):
        raise NotFound(f"No API route for /{full_path}", message_key="not_found")

    root = _static_root()
    if root is None:
        return JSONResponse(
            {
                "message": "Development mode: the frontend is served by its own dev server (http://localhost:3000).",
                "status": "ok",
                "env": "development",
            }
        )

    asset = _resolve_asset(root, full_path)
    if asset is not None:
        return FileResponse(asset)

    index = root / "index.html"
    if not index.is_file():
        logger.error("STATIC_DIR %s has no index.html", root)
        raise NotFound("index.html missing", message_key="not_found")
    return FileResponse(index)
