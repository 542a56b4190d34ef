from accounting_api.documents.layout import format_value, layout_template, section_offsets
from accounting_api.schemas.document_template import FieldPosition, TemplateSection


def _sections():
    return [
        TemplateSection(
            id="a",
            name="A",
            height_inches=1.0,
            field_positions={"companyName": FieldPosition(x=10, y=5, width=200, height=30)},
        ),
        TemplateSection(
            id="b",
            name="B",
            height_inches=0.5,
            field_positions={"clientName": FieldPosition(x=20, y=10, width=200, height=30)},
        ),
    ]


def test_field_y_is_offset_by_sections_above() -> None:
    layout = layout_template(_sections(), document_type="invoice", page_width=612)
    by_key = {placed.field_key: placed for placed in layout.fields}

    assert by_key["companyName"].position.y == 5
    assert by_key["clientName"].position.y == 82
    assert by_key["clientName"].position.x == 20
    assert by_key["clientName"].section_id == "b"


def test_page_height_and_separators() -> None:
    layout = layout_template(_sections(), document_type="invoice", page_width=612)
    assert layout.section_offsets == [0, 72]
    assert layout.separators == [72]
    assert layout.page_height == 108
    assert layout.page_width == 612


def test_sections_without_height_fall_back_to_page_height() -> None:
    sections = [TemplateSection(id="only", name="Only", height_inches=0)]
    layout = layout_template(sections, document_type="cheque", page_width=612, page_height=252)
    assert layout.page_height == 252


def test_source_sections_are_not_modified() -> None:
    sections = _sections()
    layout_template(sections, document_type="invoice", page_width=612)
    assert sections[1].field_positions["clientName"].y == 10


def test_offsets_are_empty_without_sections() -> None:
    assert section_offsets([]) == []


def test_suffixed_keys_resolve_labels() -> None:
    sections = [
        TemplateSection(
            id="s",
            name="S",
            height_inches=1,
            field_positions={"horizontalLine-2": FieldPosition(x=0, y=0, field_type="line")},
        )
    ]
    placed = layout_template(sections, document_type="cheque", page_width=612).fields[0]
    assert placed.base_field_id == "horizontalLine"
    assert placed.label == "Horizontal Line"
    assert placed.value is None


def test_values_are_formatted() -> None:
    currency = FieldPosition(x=0, y=0, format="currency")
    assert format_value(currency, "5877.1") == "$5877.10"
    assert format_value(currency, "$5,877.14") == "$5,877.14"
    assert format_value(FieldPosition(x=0, y=0), "Memo") == "Memo"
    assert format_value(FieldPosition(x=0, y=0, field_type="static", text_content="INVOICE"), None) == "INVOICE"
    assert format_value(FieldPosition(x=0, y=0, field_type="box"), "ignored") is None


def test_values_lookup_by_key_then_canonical_id() -> None:
    sections = [
        TemplateSection(
            id="s",
            name="S",
            height_inches=3.5,
            field_positions={
                "memo": FieldPosition(x=0, y=0),
                "staticText-2": FieldPosition(x=0, y=40, field_type="static", text_content="VOID"),
            },
        )
    ]
    layout = layout_template(sections, document_type="cheque", page_width=612, values={"memo": "Rent"})
    values = {placed.field_key: placed.value for placed in layout.fields}
    assert values == {"memo": "Rent", "staticText-2": "VOID"}
