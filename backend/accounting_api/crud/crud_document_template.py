# backend/accounting_api/crud/crud_document_template.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import update as sqlalchemy_update
import copy
import logging
import uuid
from typing import List, Optional, Union

from accounting_api.documents.registry import DOCUMENT_TYPES
from accounting_api.documents.types import DocumentTypeEnum
from accounting_api.models.document_template import DocumentTemplate as DocumentTemplateModel
from accounting_api.schemas.document_template import (
    ChequeTemplateCreate,
    DocumentTemplateUpdate,
    InvoiceTemplateCreate,
)

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_NAMES = {
    DocumentTypeEnum.CHEQUE: "Default Cheque",
    DocumentTypeEnum.INVOICE: "Default Invoice",
}


class DefaultTemplateDeletionError(ValueError):
    pass


class TemplateVersionConflict(ValueError):
    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"Template was modified by someone else (expected version {expected}, found {actual}). Reload and try again."
        )
        self.expected = expected
        self.actual = actual


def _dump_sections(sections) -> list:
    return [section.model_dump(by_alias=True, exclude_none=True) for section in sections]


async def get_document_template(db: AsyncSession, template_id: uuid.UUID) -> Optional[DocumentTemplateModel]:
    """
    Get a single document template by its ID.
    """
    result = await db.execute(select(DocumentTemplateModel).filter(DocumentTemplateModel.id == template_id))
    return result.scalars().first()

async def get_document_templates(
    db: AsyncSession,
    *,
    client_id: Optional[int] = None,
    document_type: Optional[DocumentTypeEnum] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[DocumentTemplateModel]:
    """
    List templates, optionally for one client and/or document type.
    Defaults come first, then by name.
    """
    query = select(DocumentTemplateModel)
    if client_id is not None:
        query = query.filter(DocumentTemplateModel.client_id == client_id)
    if document_type is not None:
        query = query.filter(DocumentTemplateModel.document_type == document_type)
    result = await db.execute(
        query.order_by(DocumentTemplateModel.is_default.desc(), DocumentTemplateModel.name)
        .offset(skip)
        .limit(limit)
    )
    return result.scalars().all()

async def get_default_document_template(
    db: AsyncSession, *, client_id: int, document_type: DocumentTypeEnum
) -> Optional[DocumentTemplateModel]:
    """
    Get the client's default template for a document type.
    """
    result = await db.execute(
        select(DocumentTemplateModel)
        .filter(DocumentTemplateModel.client_id == client_id)
        .filter(DocumentTemplateModel.document_type == document_type)
        .filter(DocumentTemplateModel.is_default == True)
    )
    return result.scalars().first()

async def _unset_other_defaults(
    db: AsyncSession, *, client_id: int, document_type: DocumentTypeEnum, keep_id: Optional[uuid.UUID] = None
) -> None:
    query = (
        sqlalchemy_update(DocumentTemplateModel)
        .where(DocumentTemplateModel.client_id == client_id)
        .where(DocumentTemplateModel.document_type == document_type)
        .where(DocumentTemplateModel.is_default == True)
    )
    if keep_id is not None:
        query = query.where(DocumentTemplateModel.id != keep_id) # Don't unset itself
    await db.execute(query.values(is_default=False))

async def create_document_template(
    db: AsyncSession, *, template_in: Union[ChequeTemplateCreate, InvoiceTemplateCreate]
) -> DocumentTemplateModel:
    """
    Create a new document template.
    If template_in.is_default is True, the client's previous default for the same type is unset.
    """
    document_type = DocumentTypeEnum(template_in.document_type)
    if template_in.is_default:
        await _unset_other_defaults(db, client_id=template_in.client_id, document_type=document_type)

    db_obj = DocumentTemplateModel(
        client_id=template_in.client_id,
        document_type=document_type,
        name=template_in.name,
        description=template_in.description,
        is_default=template_in.is_default,
        is_active=template_in.is_active,
        sections=_dump_sections(template_in.sections),
        page_width=template_in.page_width,
        page_height=template_in.page_height,
        ui_preferences=(
            template_in.ui_preferences.model_dump(by_alias=True, exclude_none=True)
            if template_in.ui_preferences else None
        ),
        version=1,
    )

    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    logger.info("Created %s template %s for client %s", document_type.value, db_obj.id, db_obj.client_id)
    return db_obj

async def update_document_template(
    db: AsyncSession, *, db_obj: DocumentTemplateModel, obj_in: DocumentTemplateUpdate
) -> DocumentTemplateModel:
    """
    Update an existing document template and bump its version.
    Raises TemplateVersionConflict when obj_in.expected_version is stale; nothing is written then.
    The version is checked by the UPDATE itself, so two writers that loaded the same
    version cannot both succeed.
    """
    expected_version = obj_in.expected_version
    if expected_version is not None and expected_version != db_obj.version:
        raise TemplateVersionConflict(expected_version, db_obj.version)

    update_data = obj_in.model_dump(exclude_unset=True, exclude={"expected_version", "client_id"})
    if obj_in.sections is not None:
        update_data["sections"] = _dump_sections(obj_in.sections)
    if "ui_preferences" in update_data:
        update_data["ui_preferences"] = (
            obj_in.ui_preferences.model_dump(by_alias=True, exclude_none=True)
            if obj_in.ui_preferences else None
        )

    if update_data.get("is_default") is True and not db_obj.is_default:
        # If setting this template as default, unset any other default
        await _unset_other_defaults(
            db, client_id=db_obj.client_id, document_type=db_obj.document_type, keep_id=db_obj.id
        )

    query = sqlalchemy_update(DocumentTemplateModel).where(DocumentTemplateModel.id == db_obj.id)
    if expected_version is not None:
        query = query.where(DocumentTemplateModel.version == expected_version)
    result = await db.execute(
        query.values(**update_data, version=DocumentTemplateModel.version + 1)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        # Another writer got there first (or deleted the row); drop the default unsetting too
        template_id = db_obj.id
        await db.rollback()
        current = await get_document_template(db, template_id)
        logger.info("Version conflict on template %s (expected %s)", template_id, expected_version)
        raise TemplateVersionConflict(expected_version, current.version if current else None)

    await db.commit()
    await db.refresh(db_obj)
    return db_obj

async def delete_document_template(db: AsyncSession, *, db_obj: DocumentTemplateModel) -> DocumentTemplateModel:
    """
    Delete a document template. Default templates cannot be deleted.
    """
    if db_obj.is_default:
        # Another template has to become the default first
        raise DefaultTemplateDeletionError("Cannot delete the default template.")

    await db.delete(db_obj)
    await db.commit()
    return db_obj

async def create_default_template(
    db: AsyncSession, *, client_id: int, document_type: DocumentTypeEnum
) -> DocumentTemplateModel:
    """
    Create the built-in layout for a document type as the client's default.
    """
    doc_type = DOCUMENT_TYPES[document_type]
    template_data = {
        "client_id": client_id,
        "document_type": document_type.value,
        "name": DEFAULT_TEMPLATE_NAMES[document_type],
        "description": doc_type.description,
        "is_default": True,
        "sections": copy.deepcopy(doc_type.default_sections),
        "page_width": doc_type.page_width,
        "page_height": doc_type.page_height,
    }
    template_class = ChequeTemplateCreate if document_type == DocumentTypeEnum.CHEQUE else InvoiceTemplateCreate
    return await create_document_template(db, template_in=template_class.model_validate(template_data))

async def initialize_default_templates(db: AsyncSession, *, client_id: int) -> int:
    """
    Give the client a default template for every document type that lacks one.
    Returns the number of templates created.
    """
    count = 0
    for document_type in DOCUMENT_TYPES:
        existing = await get_default_document_template(db, client_id=client_id, document_type=document_type)
        if existing:
            continue
        await create_default_template(db, client_id=client_id, document_type=document_type)
        count += 1
    return count
