import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from accounting_api.core.base_path import is_reserved_base_path
from accounting_api.core.config import settings

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"

IMAGE_HEADERS = {
    "Cache-Control": "public, max-age=31536000",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def content_type_for(filename: str) -> str:
    return CONTENT_TYPES.get(Path(filename).suffix.lower(), DEFAULT_CONTENT_TYPE)


def is_safe_filename(filename: str) -> bool:
    return not (".." in filename or "/" in filename or "\\" in filename)


def client_logo_dir() -> Path:
    return Path(settings.UPLOADS_DIR) / settings.CLIENT_LOGO_SUBDIR


class UploadsStaticFiles(StaticFiles):
    """
    StaticFiles for the uploads directory: fixed content types and
    long-lived, cross-origin friendly headers on images.
    """

    def file_response(self, full_path, *args, **kwargs) -> Response:
        response = super().file_response(full_path, *args, **kwargs)
        if isinstance(response, FileResponse):
            content_type = content_type_for(str(full_path))
            response.headers["content-type"] = content_type
            if content_type != DEFAULT_CONTENT_TYPE:
                response.headers.update(IMAGE_HEADERS)
        return response


# Client logos are matched with and without a proxy prefix in front of /uploads,
# e.g. /uploads/client-logos/7.png and /staging/uploads/client-logos/7.png
router = APIRouter()


def serve_client_logo(filename: str, base_path: Optional[str] = None) -> Response:
    if base_path and is_reserved_base_path(base_path):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Not found"})

    # Security: prevent path traversal before touching the filesystem
    if not is_safe_filename(filename):
        logger.error("Invalid filename (path traversal attempt): %s", filename)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid filename"})

    file_path = client_logo_dir() / filename
    if not file_path.is_file():
        logger.info("Logo file not found: %s", file_path)
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Logo not found"})

    logger.debug("Serving logo %s (base path: %s)", filename, base_path or "none")
    return FileResponse(file_path, media_type=content_type_for(filename), headers=IMAGE_HEADERS)


@router.get("/uploads/client-logos/{filename}", include_in_schema=False)
async def read_client_logo(filename: str) -> Response:
    return serve_client_logo(filename)


@router.get("/{base_path}/uploads/client-logos/{filename}", include_in_schema=False)
async def read_prefixed_client_logo(base_path: str, filename: str) -> Response:
    return serve_client_logo(filename, base_path=base_path)


@router.options("/uploads/client-logos/{filename}", include_in_schema=False)
@router.options("/{base_path}/uploads/client-logos/{filename}", include_in_schema=False)
async def client_logo_preflight(request: Request) -> Response:
    return Response(status_code=status.HTTP_200_OK, headers={
        key: value for key, value in IMAGE_HEADERS.items() if key.startswith("Access-Control")
    })
