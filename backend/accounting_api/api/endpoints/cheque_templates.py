# backend/accounting_api/api/endpoints/cheque_templates.py
# Flat view of cheque document templates: one fieldPositions map in page coordinates.
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List, Optional

from accounting_api import crud, models, schemas
from accounting_api.api import deps
from accounting_api.db.session import get_db
from accounting_api.documents.layout import layout_template
from accounting_api.documents.types import CHEQUE_HEIGHT, POINTS_PER_INCH, DocumentTypeEnum, missing_required_fields
from accounting_api.crud.crud_document_template import DefaultTemplateDeletionError, TemplateVersionConflict

router = APIRouter()

CHEQUE_SECTION_ID = "cheque"
CHEQUE_SECTION_NAME = "Cheque"


def to_cheque_view(db_template: models.DocumentTemplate) -> schemas.ChequeTemplate:
    template = schemas.DocumentTemplate.model_validate(db_template)
    # Multi-section cheques are flattened onto the page
    layout = layout_template(
        template.sections,
        document_type=DocumentTypeEnum.CHEQUE,
        page_width=template.page_width,
        page_height=template.page_height,
    )
    return schemas.ChequeTemplate(
        id=template.id,
        client_id=template.client_id,
        name=template.name,
        description=template.description,
        is_default=template.is_default,
        is_active=template.is_active,
        field_positions={placed.field_key: placed.position for placed in layout.fields},
        page_width=template.page_width,
        page_height=template.page_height,
        version=template.version,
        created_at=template.created_at,
        updated_at=template.updated_at,
    )


def to_sections(field_positions: Dict[str, schemas.FieldPosition]) -> List[schemas.TemplateSection]:
    return [
        schemas.TemplateSection(
            id=CHEQUE_SECTION_ID,
            name=CHEQUE_SECTION_NAME,
            height_inches=CHEQUE_HEIGHT / POINTS_PER_INCH,
            field_positions=field_positions,
        )
    ]


def check_required_fields(field_positions: Dict[str, schemas.FieldPosition]) -> None:
    missing = missing_required_fields(DocumentTypeEnum.CHEQUE, field_positions.keys())
    if missing:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Missing required fields: {', '.join(missing)}",
        )


@router.get("/", response_model=List[schemas.ChequeTemplate])
async def read_cheque_templates(
    db: AsyncSession = Depends(get_db),
    client_id: Optional[int] = Query(None, alias="clientId"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
) -> Any:
    """
    Retrieve cheque templates, default first.
    """
    templates = await crud.document_template.get_document_templates(
        db, client_id=client_id, document_type=DocumentTypeEnum.CHEQUE, skip=skip, limit=limit
    )
    return [to_cheque_view(template) for template in templates]


@router.get("/default/current", response_model=schemas.ChequeTemplate)
async def read_current_default_cheque_template(
    client_id: int = Query(..., alias="clientId"),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Get the client's default cheque template, creating the built-in one if the client has none.
    """
    template = await crud.document_template.get_default_document_template(
        db, client_id=client_id, document_type=DocumentTypeEnum.CHEQUE
    )
    if not template:
        template = await crud.document_template.create_default_template(
            db, client_id=client_id, document_type=DocumentTypeEnum.CHEQUE
        )
    return to_cheque_view(template)


@router.post("/", response_model=schemas.ChequeTemplate, status_code=status.HTTP_201_CREATED)
async def create_new_cheque_template(
    *,
    db: AsyncSession = Depends(get_db),
    template_in: schemas.ChequeTemplateIn,
) -> Any:
    """
    Create a cheque template from a flat fieldPositions map.
    """
    check_required_fields(template_in.field_positions)
    document_in = schemas.ChequeTemplateCreate(
        document_type=DocumentTypeEnum.CHEQUE.value,
        client_id=template_in.client_id,
        name=template_in.name,
        description=template_in.description,
        is_default=template_in.is_default,
        is_active=template_in.is_active,
        sections=to_sections(template_in.field_positions),
    )
    template = await crud.document_template.create_document_template(db=db, template_in=document_in)
    return to_cheque_view(template)


@router.get("/{template_id}", response_model=schemas.ChequeTemplate)
async def read_cheque_template_by_id(
    template: models.DocumentTemplate = Depends(deps.get_valid_cheque_template),
) -> Any:
    """
    Get a specific cheque template by ID.
    """
    return to_cheque_view(template)


@router.put("/{template_id}", response_model=schemas.ChequeTemplate)
async def update_existing_cheque_template(
    *,
    db: AsyncSession = Depends(get_db),
    template_in: schemas.ChequeTemplateUpdateIn,
    db_template: models.DocumentTemplate = Depends(deps.get_valid_cheque_template),
) -> Any:
    """
    Update a cheque template. A new fieldPositions map replaces the whole layout.
    """
    update_data = template_in.model_dump(exclude_unset=True, exclude={"field_positions", "client_id"})
    if template_in.field_positions is not None:
        check_required_fields(template_in.field_positions)
        update_data["sections"] = to_sections(template_in.field_positions)

    try:
        template = await crud.document_template.update_document_template(
            db=db, db_obj=db_template, obj_in=schemas.DocumentTemplateUpdate(**update_data)
        )
    except TemplateVersionConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return to_cheque_view(template)


@router.delete("/{template_id}", response_model=schemas.ChequeTemplate)
async def delete_existing_cheque_template(
    *,
    db: AsyncSession = Depends(get_db),
    db_template: models.DocumentTemplate = Depends(deps.get_valid_cheque_template),
) -> Any:
    """
    Delete a cheque template. The default cheque template cannot be deleted.
    """
    view = to_cheque_view(db_template)
    try:
        await crud.document_template.delete_document_template(db=db, db_obj=db_template)
    except DefaultTemplateDeletionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return view
