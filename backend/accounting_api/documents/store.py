import logging
import uuid
from typing import Any, Dict, Optional

from pydantic import TypeAdapter
from sqlalchemy.ext.asyncio import AsyncSession

from accounting_api import crud
from accounting_api.schemas.document_template import (
    DocumentTemplate,
    DocumentTemplateCreate,
    DocumentTemplateUpdate,
)

logger = logging.getLogger(__name__)

_create_adapter = TypeAdapter(DocumentTemplateCreate)


class TemplateNotFound(LookupError):
    pass


class DatabaseTemplateStore:
    """
    Persists editing sessions through the document template CRUD layer.
    Payloads are validated here too, so a bad save never reaches the database.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, payload: Dict[str, Any]) -> DocumentTemplate:
        template_in = _create_adapter.validate_python(payload)
        db_obj = await crud.document_template.create_document_template(self.db, template_in=template_in)
        return DocumentTemplate.model_validate(db_obj)

    async def update(
        self, template_id: uuid.UUID, payload: Dict[str, Any], expected_version: Optional[int]
    ) -> DocumentTemplate:
        db_obj = await crud.document_template.get_document_template(self.db, template_id)
        if db_obj is None:
            raise TemplateNotFound(f"Template {template_id} not found")

        # Re-run the per-type checks (required fields, page size) on the full payload
        _create_adapter.validate_python({**payload, "documentType": db_obj.document_type.value})

        obj_in = DocumentTemplateUpdate.model_validate({**payload, "expectedVersion": expected_version})
        db_obj = await crud.document_template.update_document_template(self.db, db_obj=db_obj, obj_in=obj_in)
        logger.info("Saved template %s at version %s", db_obj.id, db_obj.version)
        return DocumentTemplate.model_validate(db_obj)
