# backend/accounting_api/schemas/document_template.py
from pydantic import BaseModel, ConfigDict, Field, constr, model_serializer, model_validator
from pydantic.alias_generators import to_camel
from typing import Annotated, Dict, List, Literal, Optional, Union
from datetime import datetime
import uuid

from accounting_api.documents.types import (
    CHEQUE_HEIGHT,
    CHEQUE_WIDTH,
    INVOICE_HEIGHT,
    INVOICE_WIDTH,
    DocumentTypeEnum,
    missing_required_fields,
)

# Template JSON travels in camelCase (fieldPositions, heightInches, fontSize ...)
class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class FieldPosition(CamelModel):
    # Points, relative to the top-left corner of the owning section
    x: float
    y: float
    width: Optional[float] = None
    height: Optional[float] = None
    font_size: Optional[float] = None
    font_family: Optional[str] = None
    alignment: Optional[Literal["left", "center", "right"]] = None
    format: Optional[str] = None
    # Visual element styling
    field_type: Optional[Literal["text", "line", "box", "micr", "static", "image", "table"]] = None
    line_width: Optional[float] = None
    line_color: Optional[str] = None
    line_style: Optional[Literal["solid", "dashed", "dotted"]] = None
    underline: Optional[bool] = None
    border: Optional[bool] = None
    border_width: Optional[float] = None
    text_content: Optional[str] = None

    @model_serializer(mode="wrap")
    def _drop_unset_properties(self, handler):
        # Only the properties a field actually has are persisted and returned
        data = handler(self)
        return {key: value for key, value in data.items() if value is not None}


class TemplateSection(CamelModel):
    id: constr(min_length=1, max_length=100)
    name: str
    height_inches: float = Field(ge=0)
    field_positions: Dict[str, FieldPosition] = Field(default_factory=dict)


class UiPreferences(CamelModel):
    zoom: Optional[float] = None
    show_grid: Optional[bool] = None
    snap_to_grid: Optional[bool] = None
    active_section_id: Optional[str] = None


def section_field_keys(sections: List[TemplateSection]) -> List[str]:
    return [key for section in sections for key in section.field_positions]


# Shared base properties
class DocumentTemplateBase(CamelModel):
    client_id: int
    name: constr(min_length=1, max_length=255)
    description: Optional[str] = None
    is_default: bool = False
    is_active: bool = True
    sections: List[TemplateSection] = Field(min_length=1)
    ui_preferences: Optional[UiPreferences] = None


# Cheques print on fixed 8.5" x 3.5" stock and must carry every required field
class ChequeTemplateCreate(DocumentTemplateBase):
    document_type: Literal["cheque"]
    page_width: float = CHEQUE_WIDTH
    page_height: float = CHEQUE_HEIGHT

    @model_validator(mode="after")
    def check_cheque_layout(self):
        if self.page_width != CHEQUE_WIDTH or self.page_height != CHEQUE_HEIGHT:
            raise ValueError(f"Cheque templates are fixed at {CHEQUE_WIDTH}x{CHEQUE_HEIGHT} points")
        missing = missing_required_fields(DocumentTypeEnum.CHEQUE, section_field_keys(self.sections))
        if missing:
            raise ValueError(f"Missing required fields: {', '.join(missing)}")
        return self


class InvoiceTemplateCreate(DocumentTemplateBase):
    document_type: Literal["invoice"]
    page_width: float = Field(INVOICE_WIDTH, gt=0)
    page_height: float = Field(INVOICE_HEIGHT, gt=0)


# Properties to receive on template creation, tagged by documentType
DocumentTemplateCreate = Annotated[
    Union[ChequeTemplateCreate, InvoiceTemplateCreate],
    Field(discriminator="document_type"),
]


def reject_explicit_nulls(model: BaseModel, names) -> None:
    # Omitted means "leave as is"; null would clear a NOT NULL column
    nulls = [name for name in names if name in model.model_fields_set and getattr(model, name) is None]
    if nulls:
        raise ValueError(f"{', '.join(to_camel(name) for name in nulls)} cannot be null")


# Properties to receive on template update (all fields optional)
class DocumentTemplateUpdate(CamelModel):
    client_id: Optional[int] = None
    name: Optional[constr(min_length=1, max_length=255)] = None
    description: Optional[str] = None
    is_default: Optional[bool] = None
    is_active: Optional[bool] = None
    sections: Optional[List[TemplateSection]] = Field(None, min_length=1)
    page_width: Optional[float] = Field(None, gt=0)
    page_height: Optional[float] = Field(None, gt=0)
    ui_preferences: Optional[UiPreferences] = None
    # Version the editor loaded; a mismatch means someone else saved in between
    expected_version: Optional[int] = None

    @model_validator(mode="after")
    def check_nulls(self):
        reject_explicit_nulls(self, ("client_id", "name", "is_default", "is_active", "sections", "page_width", "page_height"))
        return self


# Properties to return to client
class DocumentTemplate(CamelModel):
    id: Optional[uuid.UUID] = None # None for an unsaved scaffold
    client_id: int
    document_type: DocumentTypeEnum
    name: str
    description: Optional[str] = None
    is_default: bool = False
    is_active: bool = True
    sections: List[TemplateSection]
    page_width: float
    page_height: float
    ui_preferences: Optional[UiPreferences] = None
    version: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Properties for a summary list of templates
class DocumentTemplateSummary(CamelModel):
    id: uuid.UUID
    client_id: int
    document_type: DocumentTypeEnum
    name: str
    description: Optional[str] = None
    is_default: bool
    is_active: bool
    page_width: float
    page_height: float
    version: int
    updated_at: Optional[datetime] = None


class InitializeTemplatesResult(BaseModel):
    count: int


# --- Flat cheque template view (single section, fieldPositions at the top level) ---
class ChequeTemplateIn(CamelModel):
    client_id: int
    name: constr(min_length=1, max_length=255)
    description: Optional[str] = None
    is_default: bool = False
    is_active: bool = True
    field_positions: Dict[str, FieldPosition]


class ChequeTemplateUpdateIn(CamelModel):
    client_id: Optional[int] = None
    name: Optional[constr(min_length=1, max_length=255)] = None
    description: Optional[str] = None
    is_default: Optional[bool] = None
    is_active: Optional[bool] = None
    field_positions: Optional[Dict[str, FieldPosition]] = None
    expected_version: Optional[int] = None

    @model_validator(mode="after")
    def check_nulls(self):
        reject_explicit_nulls(self, ("client_id", "name", "is_default", "is_active", "field_positions"))
        return self


class ChequeTemplate(CamelModel):
    id: uuid.UUID
    client_id: int
    name: str
    description: Optional[str] = None
    is_default: bool
    is_active: bool
    field_positions: Dict[str, FieldPosition]
    page_width: float
    page_height: float
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --- Layout / rendering ---
class PlacedField(CamelModel):
    section_id: str
    field_key: str
    base_field_id: str
    label: str
    # Printed text, None for lines/boxes and when no values were supplied
    value: Optional[str] = None
    # Absolute page coordinates
    position: FieldPosition


class DocumentLayout(CamelModel):
    document_type: DocumentTypeEnum
    page_width: float
    page_height: float
    section_offsets: List[float]
    # y of each boundary between two sections
    separators: List[float]
    fields: List[PlacedField]


class DocumentRenderRequest(CamelModel):
    # Field key (or canonical id) -> printed text. Missing keys fall back to sample data.
    values: Dict[str, str] = Field(default_factory=dict)
    use_sample_data: bool = True
