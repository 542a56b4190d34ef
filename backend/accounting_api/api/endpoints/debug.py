# backend/accounting_api/api/endpoints/debug.py
# Troubleshooting routes for proxy deployments. Mounted only when ENABLE_DEBUG_ROUTES is on.
from fastapi import APIRouter, Request
from typing import Any, Dict
import logging

from accounting_api.uploads import client_logo_dir

logger = logging.getLogger(__name__)

router = APIRouter()

PROXY_HEADERS = ["host", "x-forwarded-prefix", "x-forwarded-path", "x-original-uri"]


@router.get("/debug-path")
async def debug_path(request: Request) -> Dict[str, Any]:
    """
    Show how the current request's base path was resolved.
    """
    query_string = request.url.query
    return {
        "originalUrl": getattr(request.state, "original_url", None),
        "url": request.url.path + (f"?{query_string}" if query_string else ""),
        "path": request.url.path,
        "basePath": getattr(request.state, "base_path", ""),
        "basePathSource": getattr(request.state, "base_path_source", None),
        "headers": {name: request.headers.get(name) for name in PROXY_HEADERS},
    }


@router.get("/test-uploads")
async def test_uploads(request: Request) -> Dict[str, Any]:
    """
    List the client logo upload directory and confirm /uploads is mounted.
    """
    logo_dir = client_logo_dir()
    static_configured = any(getattr(route, "path", None) == "/uploads" for route in request.app.routes)
    if not logo_dir.is_dir():
        return {"error": "Uploads directory does not exist", "uploadsDir": str(logo_dir)}

    try:
        files = sorted(path.name for path in logo_dir.iterdir() if path.is_file())
    except OSError as e:
        logger.warning("Could not read uploads directory %s: %s", logo_dir, e)
        return {"error": str(e), "uploadsDir": str(logo_dir)}

    return {"uploadsDir": str(logo_dir), "files": files, "staticConfigured": static_configured}
