# backend/accounting_api/api/endpoints/document_templates.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List, Optional, Union
import copy
import logging

from accounting_api import crud, models, schemas
from accounting_api.api import deps
from accounting_api.db.session import get_db
from accounting_api.documents import rendering
from accounting_api.documents.registry import DOCUMENT_TYPES, get_document_type
from accounting_api.documents.types import DocumentTypeEnum
from accounting_api.crud.crud_document_template import (
    DEFAULT_TEMPLATE_NAMES,
    DefaultTemplateDeletionError,
    TemplateVersionConflict,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def check_template_update(db_template: models.DocumentTemplate, template_in: schemas.DocumentTemplateUpdate) -> None:
    """
    Per-type rules the partial update schema cannot check on its own.
    Raises 422 before anything is written.
    """
    doc_type = get_document_type(db_template.document_type)
    errors = []
    if template_in.sections is not None:
        missing = doc_type.missing_required(schemas.section_field_keys(template_in.sections))
        if missing:
            errors.append(f"Missing required fields: {', '.join(missing)}")
    if doc_type.fixed_page_size:
        for name, value, expected in (
            ("pageWidth", template_in.page_width, doc_type.page_width),
            ("pageHeight", template_in.page_height, doc_type.page_height),
        ):
            if value is not None and value != expected:
                errors.append(f"{name} is fixed at {expected} for {doc_type.document_type.value} templates")
    if errors:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="; ".join(errors))


@router.get("/", response_model=List[schemas.DocumentTemplateSummary])
async def read_document_templates(
    db: AsyncSession = Depends(get_db),
    document_type: Optional[DocumentTypeEnum] = Query(None, alias="documentType"),
    client_id: Optional[int] = Query(None, alias="clientId"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
) -> Any:
    """
    Retrieve document templates, default templates first.
    """
    templates = await crud.document_template.get_document_templates(
        db, client_id=client_id, document_type=document_type, skip=skip, limit=limit
    )
    return [schemas.DocumentTemplateSummary.model_validate(template) for template in templates]


@router.get("/registry")
async def read_document_type_registry() -> Dict[str, Any]:
    """
    Field palette, required fields, page size and default sections for every document type.
    """
    return {document_type.value: doc_type.to_dict() for document_type, doc_type in DOCUMENT_TYPES.items()}


@router.post("/initialize", response_model=schemas.InitializeTemplatesResult)
async def initialize_client_templates(
    client_id: int = Query(..., alias="clientId"),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Create the built-in default template for each document type the client has no default for.
    """
    count = await crud.document_template.initialize_default_templates(db, client_id=client_id)
    logger.info("Initialized %d default templates for client %s", count, client_id)
    return {"count": count}


@router.get("/default/{document_type}", response_model=schemas.DocumentTemplate)
async def read_default_template(
    document_type: DocumentTypeEnum,
    client_id: int = Query(..., alias="clientId"),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Get the client's default template for a document type.
    If the client has none yet, an unsaved scaffold (id null) built from the registry is returned.
    """
    template = await crud.document_template.get_default_document_template(
        db, client_id=client_id, document_type=document_type
    )
    if template:
        return template

    doc_type = DOCUMENT_TYPES[document_type]
    return schemas.DocumentTemplate(
        client_id=client_id,
        document_type=document_type,
        name=DEFAULT_TEMPLATE_NAMES[document_type],
        description=doc_type.description,
        is_default=True,
        sections=copy.deepcopy(doc_type.default_sections),
        page_width=doc_type.page_width,
        page_height=doc_type.page_height,
    )


@router.post("/", response_model=schemas.DocumentTemplate, status_code=status.HTTP_201_CREATED)
async def create_new_document_template(
    *,
    db: AsyncSession = Depends(get_db),
    # documentType selects the model; cheque layouts are checked for required fields and page size
    template_in: Union[schemas.ChequeTemplateCreate, schemas.InvoiceTemplateCreate],
) -> Any:
    """
    Create a new document template.
    """
    template = await crud.document_template.create_document_template(db=db, template_in=template_in)
    return template


@router.get("/{template_id}", response_model=schemas.DocumentTemplate)
async def read_document_template_by_id(
    template: models.DocumentTemplate = Depends(deps.get_valid_template),
) -> Any:
    """
    Get a specific document template by ID.
    """
    return template


@router.put("/{template_id}", response_model=schemas.DocumentTemplate)
async def update_existing_document_template(
    *,
    db: AsyncSession = Depends(get_db),
    template_in: schemas.DocumentTemplateUpdate,
    db_template: models.DocumentTemplate = Depends(deps.get_valid_template),
) -> Any:
    """
    Update a document template.
    Send expectedVersion to be told (409) when someone else saved in between.
    """
    check_template_update(db_template, template_in)

    if template_in.client_id is not None and template_in.client_id != db_template.client_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A template cannot be moved to another client.")

    try:
        template = await crud.document_template.update_document_template(db=db, db_obj=db_template, obj_in=template_in)
    except TemplateVersionConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return template


@router.delete("/{template_id}", response_model=schemas.DocumentTemplate)
async def delete_existing_document_template(
    *,
    db: AsyncSession = Depends(get_db),
    db_template: models.DocumentTemplate = Depends(deps.get_valid_template),
) -> Any:
    """
    Delete a document template. The default template of a document type cannot be deleted.
    """
    try:
        deleted_template = await crud.document_template.delete_document_template(db=db, db_obj=db_template)
    except DefaultTemplateDeletionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return deleted_template # Returns the deleted object data


@router.get("/{template_id}/layout", response_model=schemas.DocumentLayout)
async def read_template_layout(
    sample: bool = Query(False, description="Fill fields with sample data"),
    db_template: models.DocumentTemplate = Depends(deps.get_valid_template),
) -> Any:
    """
    The template flattened onto one page: absolute field positions and section separators.
    """
    template = schemas.DocumentTemplate.model_validate(db_template)
    return rendering.build_layout(template, use_sample_data=sample)


@router.get("/{template_id}/preview", response_class=HTMLResponse)
async def preview_template(
    db_template: models.DocumentTemplate = Depends(deps.get_valid_template),
) -> HTMLResponse:
    """
    HTML preview of the template filled with sample data.
    """
    template = schemas.DocumentTemplate.model_validate(db_template)
    try:
        html_content = rendering.render_document_html(template, use_sample_data=True)
    except Exception as e:
        logger.exception("Error rendering preview for template %s", template.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Error rendering preview: {e}")
    return HTMLResponse(content=html_content)


@router.post("/{template_id}/pdf", response_class=Response)
async def render_template_pdf(
    render_in: schemas.DocumentRenderRequest,
    db_template: models.DocumentTemplate = Depends(deps.get_valid_template),
) -> Response:
    """
    Print the template to PDF with the given field values.
    """
    template = schemas.DocumentTemplate.model_validate(db_template)
    try:
        pdf_bytes = await rendering.render_document_pdf(
            template, render_in.values, use_sample_data=render_in.use_sample_data
        )
    except Exception as e:
        logger.exception("Error generating PDF for template %s", template.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Error generating PDF: {e}")

    filename = f"{template.document_type.value}-{template.name.replace('/', '-').replace(' ', '_')}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )
