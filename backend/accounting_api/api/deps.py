from typing import Optional
from fastapi import Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from accounting_api.db.session import get_db
from accounting_api import crud, models
from accounting_api.documents.types import DocumentTypeEnum


async def get_valid_template(
    template_id: uuid.UUID, # Path parameter from the endpoint
    db: AsyncSession = Depends(get_db),
    client_id: Optional[int] = Query(None, alias="clientId"),
) -> models.DocumentTemplate:
    """
    Dependency to get a document template by ID.
    When the caller names a client, the template must belong to it.
    Raises HTTPException if not found or not authorized.
    """
    template = await crud.document_template.get_document_template(db, template_id)
    if not template:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found")
    if client_id is not None and template.client_id != client_id:
        # This ensures one client cannot read or edit another client's layouts
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to access this template")
    return template


async def get_valid_cheque_template(
    template: models.DocumentTemplate = Depends(get_valid_template),
) -> models.DocumentTemplate:
    """
    Same as get_valid_template, restricted to cheque layouts.
    """
    if template.document_type != DocumentTypeEnum.CHEQUE:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cheque template not found")
    return template
