"""
In-memory editing session for one document template.

The session owns an exclusive copy of the template while it is edited:
fields can be added, moved, resized, restyled and removed, and the result
is persisted on an explicit save(). User mistakes (duplicate canonical
field, deleting a required field, saving without required fields) never
raise; they leave the session unchanged and record a Notice, the way the
editor UI shows a toast.

    Loading -> Ready -> (Editing <-> Saving) -> Ready | SaveError
"""
import copy
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Protocol

from accounting_api.documents.registry import (
    DEFAULT_ALIGNMENT,
    DEFAULT_FIELD_HEIGHT,
    DEFAULT_FIELD_WIDTH,
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    NEW_FIELD_X,
    NEW_FIELD_Y,
    FieldDefinition,
    get_document_type,
)
from accounting_api.documents.types import base_field_id
from accounting_api.schemas.document_template import (
    DocumentTemplate,
    FieldPosition,
    TemplateSection,
    UiPreferences,
)

logger = logging.getLogger(__name__)

NEW_TEMPLATE_NAMES = {
    "cheque": "New Cheque Template",
    "invoice": "New Invoice Template",
}


class EditorState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    EDITING = "editing"
    SAVING = "saving"
    SAVE_ERROR = "save_error"


@dataclass
class Notice:
    level: str # info | warning | error
    title: str
    message: str


@dataclass
class EditorField:
    element_id: str # UI element id, unique within the session
    field_key: str # key persisted in fieldPositions
    section_id: str
    label: str
    position: FieldPosition
    is_required: bool = False

    @property
    def base_field_id(self) -> str:
        return base_field_id(self.field_key)


@dataclass
class EditorSection:
    id: str
    name: str
    height_inches: float


class TemplateStore(Protocol):
    async def create(self, payload: Dict[str, Any]) -> DocumentTemplate: ...

    async def update(
        self, template_id: uuid.UUID, payload: Dict[str, Any], expected_version: Optional[int]
    ) -> DocumentTemplate: ...


# position properties, by python name and by camelCase alias
_POSITION_NAMES: Dict[str, str] = {}
for _name, _info in FieldPosition.model_fields.items():
    _POSITION_NAMES[_name] = _name
    _POSITION_NAMES[_info.alias or _name] = _name


def _element_id(section_id: str, field_key: str) -> str:
    return f"{section_id}-{field_key}"


class TemplateEditingSession:
    def __init__(self, document_type, client_id: int):
        self.doc_type = get_document_type(document_type)
        self.client_id = client_id
        self.state = EditorState.LOADING

        self.template_id: Optional[uuid.UUID] = None
        self.version: Optional[int] = None
        self.name = NEW_TEMPLATE_NAMES[self.doc_type.document_type.value]
        self.description: Optional[str] = None
        self.is_default = False
        self.ui_preferences: Optional[UiPreferences] = None
        self.page_width = self.doc_type.page_width
        self.page_height = self.doc_type.page_height

        self.sections: List[EditorSection] = []
        self.fields: List[EditorField] = []
        self.selected_element_id: Optional[str] = None
        self.notices: List[Notice] = []
        self.last_error: Optional[str] = None

    # --- loading ---

    def load(self, template: Optional[DocumentTemplate] = None) -> None:
        """
        Start from a persisted template, or from the document type's default scaffold.
        """
        if template is None:
            sections = [TemplateSection.model_validate(s) for s in copy.deepcopy(self.doc_type.default_sections)]
        else:
            if template.document_type != self.doc_type.document_type:
                raise ValueError(
                    f"Cannot edit a {template.document_type.value} template in a {self.doc_type.document_type.value} session"
                )
            sections = template.sections
            self.template_id = template.id
            self.version = template.version
            self.name = template.name
            self.description = template.description
            self.is_default = template.is_default
            self.ui_preferences = template.ui_preferences
            self.page_width = template.page_width
            self.page_height = template.page_height

        self.sections = [EditorSection(s.id, s.name, s.height_inches) for s in sections]
        self.fields = []
        for section in sections:
            for field_key, position in section.field_positions.items():
                self.fields.append(self._make_field(section.id, field_key, position))

        self.selected_element_id = None
        self.state = EditorState.READY

    def _make_field(self, section_id: str, field_key: str, position: FieldPosition) -> EditorField:
        canonical = base_field_id(field_key)
        definition = self.doc_type.get_field(canonical)
        return EditorField(
            element_id=_element_id(section_id, field_key),
            field_key=field_key,
            section_id=section_id,
            label=definition.label if definition else canonical,
            position=position.model_copy(),
            is_required=canonical in self.doc_type.required_fields,
        )

    # --- lookups ---

    def get_field(self, element_id: str) -> Optional[EditorField]:
        for editor_field in self.fields:
            if editor_field.element_id == element_id:
                return editor_field
        return None

    def get_section(self, section_id: str) -> Optional[EditorSection]:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    @property
    def selected_field(self) -> Optional[EditorField]:
        return self.get_field(self.selected_element_id) if self.selected_element_id else None

    def field_keys(self) -> List[str]:
        return [editor_field.field_key for editor_field in self.fields]

    def missing_required_fields(self) -> List[str]:
        return self.doc_type.missing_required(self.field_keys())

    # --- notices ---

    def _notify(self, level: str, title: str, message: str) -> None:
        self.notices.append(Notice(level, title, message))
        log = logger.warning if level == "error" else logger.info
        log("%s: %s", title, message)

    def _touch(self) -> None:
        self._require_loaded()
        self.state = EditorState.EDITING

    def _require_loaded(self) -> None:
        if self.state == EditorState.LOADING:
            raise RuntimeError("Template has not been loaded yet")

    # --- field operations ---

    def _next_field_key(self, definition: FieldDefinition) -> str:
        taken = set(self.field_keys())
        if definition.id not in taken:
            return definition.id
        suffix = 2
        while f"{definition.id}-{suffix}" in taken:
            suffix += 1
        return f"{definition.id}-{suffix}"

    def add_field(self, definition, section_id: Optional[str] = None) -> Optional[str]:
        """
        Put a palette field on the template at the default position and select it.
        Returns the new element id, or None when the field is already present.
        """
        self._require_loaded()
        if isinstance(definition, str):
            field_id = definition
            definition = self.doc_type.get_field(field_id)
            if definition is None:
                self._notify("error", "Unknown Field", f'"{field_id}" is not a {self.doc_type.document_type.value} field')
                return None

        # Canonical fields are singletons per template
        if not definition.repeatable and definition.id in {f.base_field_id for f in self.fields}:
            self._notify("warning", "Field Already Exists", f'The field "{definition.label}" is already on the canvas')
            return None

        if section_id is None:
            active = self.ui_preferences.active_section_id if self.ui_preferences else None
            section_id = active if active and self.get_section(active) else (self.sections[0].id if self.sections else None)
        if section_id is None or self.get_section(section_id) is None:
            self._notify("error", "Unknown Section", f'Section "{section_id}" does not exist')
            return None

        position = FieldPosition(
            x=NEW_FIELD_X,
            y=NEW_FIELD_Y,
            width=definition.default_width or DEFAULT_FIELD_WIDTH,
            height=definition.default_height or DEFAULT_FIELD_HEIGHT,
            font_size=definition.font_size or DEFAULT_FONT_SIZE,
            font_family=DEFAULT_FONT_FAMILY,
            alignment=definition.alignment or DEFAULT_ALIGNMENT,
            format=definition.format,
            field_type=definition.field_type,
            text_content=definition.text_content,
        )
        new_field = self._make_field(section_id, self._next_field_key(definition), position)
        self.fields.append(new_field)
        self.selected_element_id = new_field.element_id
        self._touch()
        return new_field.element_id

    def move_field(self, element_id: str, x: float, y: float) -> None:
        editor_field = self.get_field(element_id)
        if editor_field is None:
            return
        editor_field.position = editor_field.position.model_copy(update={"x": x, "y": y})
        self._touch()

    def resize_field(self, element_id: str, width: float, height: float) -> None:
        editor_field = self.get_field(element_id)
        if editor_field is None:
            return
        editor_field.position = editor_field.position.model_copy(update={"width": width, "height": height})
        self._touch()

    def update_field_properties(self, element_id: str, updates: Mapping[str, Any]) -> None:
        """
        Merge font/alignment/format/styling changes into the field's position.
        Keys may be camelCase (fontSize) or snake_case (font_size).
        """
        editor_field = self.get_field(element_id)
        if editor_field is None:
            return
        data = editor_field.position.model_dump(exclude_none=True)
        for key, value in updates.items():
            name = _POSITION_NAMES.get(key)
            if name is None:
                raise KeyError(f"Unknown field property: {key}")
            data[name] = value
        editor_field.position = FieldPosition.model_validate(data)
        self._touch()

    def delete_field(self, element_id: str) -> bool:
        editor_field = self.get_field(element_id)
        if editor_field is None:
            return False

        if editor_field.base_field_id in self.doc_type.required_fields:
            self._notify(
                "error",
                "Cannot Delete Required Field",
                f'The field "{editor_field.label}" is required for {self.doc_type.document_type.value} templates',
            )
            return False

        self.fields.remove(editor_field)
        self.selected_element_id = None
        self._touch()
        return True

    def select_field(self, element_id: Optional[str]) -> None:
        self.selected_element_id = element_id if element_id is None or self.get_field(element_id) else None

    # --- section operations ---

    def add_section(self, name: str, height_inches: float) -> str:
        self._require_loaded()
        taken = {section.id for section in self.sections}
        number = len(self.sections) + 1
        while f"section-{number}" in taken:
            number += 1
        section = EditorSection(f"section-{number}", name, height_inches)
        self.sections.append(section)
        self._touch()
        return section.id

    def resize_section(self, section_id: str, height_inches: float) -> None:
        section = self.get_section(section_id)
        if section is None:
            return
        section.height_inches = height_inches
        self._touch()

    def remove_section(self, section_id: str) -> bool:
        section = self.get_section(section_id)
        if section is None:
            return False
        in_section = [f for f in self.fields if f.section_id == section_id]
        required = [f.label for f in in_section if f.is_required]
        if required:
            self._notify(
                "error",
                "Cannot Remove Section",
                f'Section "{section.name}" holds required fields: {", ".join(required)}',
            )
            return False
        if len(self.sections) == 1:
            self._notify("error", "Cannot Remove Section", "A template needs at least one section")
            return False

        self.sections.remove(section)
        self.fields = [f for f in self.fields if f.section_id != section_id]
        if self.selected_element_id and self.get_field(self.selected_element_id) is None:
            self.selected_element_id = None
        self._touch()
        return True

    # --- persistence ---

    def to_sections(self) -> List[TemplateSection]:
        """
        Sections in stacking order, with fieldPositions keyed by field key (not element id).
        """
        sections = []
        for section in self.sections:
            positions = {
                f.field_key: f.position.model_copy()
                for f in self.fields
                if f.section_id == section.id
            }
            sections.append(
                TemplateSection(
                    id=section.id,
                    name=section.name,
                    height_inches=section.height_inches,
                    field_positions=positions,
                )
            )
        return sections

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            "documentType": self.doc_type.document_type.value,
            "clientId": self.client_id,
            "name": self.name,
            "description": self.description,
            "isDefault": self.is_default,
            "isActive": True,
            "sections": [section.model_dump(by_alias=True) for section in self.to_sections()],
            "pageWidth": self.page_width,
            "pageHeight": self.page_height,
        }
        if self.ui_preferences is not None:
            payload["uiPreferences"] = self.ui_preferences.model_dump(by_alias=True, exclude_none=True)
        return payload

    async def save(self, store: TemplateStore) -> bool:
        """
        Validate required fields, then create or update through the store.
        On any failure the in-memory edits are kept so the save can be retried.
        """
        self._require_loaded()
        self.state = EditorState.SAVING
        self.last_error = None

        missing = self.missing_required_fields()
        if missing:
            # Blocks the store call entirely
            return self._save_failed(f"Missing required fields: {', '.join(missing)}")

        payload = self.to_payload()
        try:
            if self.template_id is None:
                saved = await store.create(payload)
            else:
                saved = await store.update(self.template_id, payload, self.version)
        except Exception as e:
            logger.exception("Saving template %s failed", self.template_id or "(new)")
            return self._save_failed(str(e) or "Failed to save template")

        self.template_id = saved.id
        self.version = saved.version
        self.state = EditorState.READY
        self._notify(
            "info", "Template Saved", f"Your {self.doc_type.document_type.value} template has been saved successfully"
        )
        return True

    def _save_failed(self, message: str) -> bool:
        self.last_error = message
        self.state = EditorState.SAVE_ERROR
        self._notify("error", "Error", message)
        return False
