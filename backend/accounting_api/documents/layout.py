"""
Flattens a sectioned template onto one page.

Sections are authored independently: every field's ``y`` is local to its
section. For printing, sections stack top to bottom in list order, so a
field's page ``y`` is its local ``y`` plus the heights of all sections
above it (inches x 72).
"""
import re
from itertools import accumulate
from typing import Any, List, Mapping, Optional, Sequence

from accounting_api.documents.registry import get_document_type
from accounting_api.documents.types import POINTS_PER_INCH, base_field_id
from accounting_api.schemas.document_template import (
    DocumentLayout,
    FieldPosition,
    PlacedField,
    TemplateSection,
)

# Drawn, never filled with data
NON_TEXT_FIELD_TYPES = {"line", "box", "image", "table"}
_NON_NUMERIC_RE = re.compile(r"[^0-9.]")


def section_heights(sections: Sequence[TemplateSection]) -> List[float]:
    return [(section.height_inches or 0) * POINTS_PER_INCH for section in sections]


def section_offsets(sections: Sequence[TemplateSection]) -> List[float]:
    """Top edge of each section on the page, in points."""
    heights = section_heights(sections)
    if not heights:
        return []
    return [0.0] + list(accumulate(heights))[:-1]


def total_height(sections: Sequence[TemplateSection]) -> float:
    return sum(section_heights(sections))


def format_value(position: FieldPosition, value: Any) -> Optional[str]:
    """
    Text printed for a field: static text prints its textContent,
    currency values get a "$" and two decimals.
    """
    if position.field_type == "static":
        return position.text_content or ""
    if position.field_type in NON_TEXT_FIELD_TYPES or value is None:
        return None

    text = str(value)
    if position.format == "currency" and not text.startswith("$"):
        digits = _NON_NUMERIC_RE.sub("", text)
        try:
            return f"${float(digits):.2f}"
        except ValueError:
            # Not a number, print as given
            return text
    return text


def layout_template(
    sections: Sequence[TemplateSection],
    *,
    document_type,
    page_width: float,
    page_height: Optional[float] = None,
    values: Optional[Mapping[str, Any]] = None,
) -> DocumentLayout:
    """
    Place every field of every section on one page.
    ``values`` maps a field key, or its canonical id, to the data printed in it.
    """
    doc_type = get_document_type(document_type)
    offsets = section_offsets(sections)
    values = values or {}

    placed: List[PlacedField] = []
    for section, offset in zip(sections, offsets):
        for field_key, position in section.field_positions.items():
            canonical = base_field_id(field_key)
            definition = doc_type.get_field(canonical)
            raw_value = values.get(field_key, values.get(canonical))
            placed.append(
                PlacedField(
                    section_id=section.id,
                    field_key=field_key,
                    base_field_id=canonical,
                    label=definition.label if definition else canonical,
                    value=format_value(position, raw_value),
                    position=position.model_copy(update={"y": position.y + offset}),
                )
            )

    height = total_height(sections)
    if not height:
        # Sections without physical heights, fall back to the stored page size
        height = page_height or doc_type.page_height

    return DocumentLayout(
        document_type=doc_type.document_type,
        page_width=page_width,
        page_height=height,
        section_offsets=offsets,
        separators=offsets[1:],
        fields=placed,
    )
