# backend/accounting_api/api/endpoints/client_logos.py
from fastapi import APIRouter, HTTPException, status, File, UploadFile
from pathlib import Path
from typing import Any
import logging
import shutil

from accounting_api import schemas
from accounting_api.core.config import settings
from accounting_api.uploads import CONTENT_TYPES, client_logo_dir

logger = logging.getLogger(__name__)

router = APIRouter()

ALLOWED_MIME_TYPES = ["image/jpeg", "image/png", "image/gif", "image/svg+xml", "image/webp"]


@router.post("/{client_id}", response_model=schemas.ClientLogo)
async def upload_client_logo(
    client_id: int,
    *,
    logo_file: UploadFile = File(...)
) -> Any:
    """
    Upload or replace a client's logo.
    The file is served back from /uploads/client-logos/<client_id><ext>.
    """
    if logo_file.content_type not in ALLOWED_MIME_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid image type. Allowed types: JPEG, PNG, GIF, SVG, WebP.")

    logos_path = client_logo_dir()
    logos_path.mkdir(parents=True, exist_ok=True)

    file_extension = Path(logo_file.filename if logo_file.filename else "logo.png").suffix.lower()
    if file_extension not in CONTENT_TYPES:
        file_extension = ".png"

    filename = f"{client_id}{file_extension}"
    file_location_on_server = logos_path / filename

    # A previous logo with another extension would otherwise shadow or linger
    for old_extension in CONTENT_TYPES:
        old_file_path_on_server = logos_path / f"{client_id}{old_extension}"
        if old_extension != file_extension and old_file_path_on_server.exists():
            try:
                old_file_path_on_server.unlink()
                logger.info("Deleted old logo: %s", old_file_path_on_server)
            except OSError as e_del:
                logger.error("Error deleting old logo %s: %s", old_file_path_on_server, e_del)

    try:
        with open(file_location_on_server, "wb+") as file_object:
            shutil.copyfileobj(logo_file.file, file_object)
    except OSError as e:
        logger.error("Error saving logo file %s: %s", file_location_on_server, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not save logo file.")
    finally:
        logo_file.file.close()

    return schemas.ClientLogo(
        client_id=client_id,
        logo_url=f"/uploads/{settings.CLIENT_LOGO_SUBDIR}/{filename}",
    )
