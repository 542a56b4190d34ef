import asyncio
import uuid
from typing import Any, Dict, List, Optional

import pytest

from accounting_api.db.session import SessionLocal
from accounting_api.documents.editor import EditorState, TemplateEditingSession
from accounting_api.documents.store import DatabaseTemplateStore
from accounting_api.schemas.document_template import DocumentTemplate


class FakeStore:
    def __init__(self, fail_with: Optional[Exception] = None):
        self.fail_with = fail_with
        self.calls: List[Dict[str, Any]] = []

    async def create(self, payload):
        self.calls.append(payload)
        if self.fail_with:
            raise self.fail_with
        return DocumentTemplate.model_validate({**payload, "id": uuid.uuid4(), "version": 1})

    async def update(self, template_id, payload, expected_version):
        self.calls.append(payload)
        if self.fail_with:
            raise self.fail_with
        return DocumentTemplate.model_validate({**payload, "id": template_id, "version": (expected_version or 0) + 1})


def _cheque_session() -> TemplateEditingSession:
    session = TemplateEditingSession("cheque", client_id=1)
    session.load()
    return session


def _payload_keys(payload) -> List[str]:
    return [key for section in payload["sections"] for key in section["fieldPositions"]]


def test_new_session_starts_from_scaffold() -> None:
    session = TemplateEditingSession("cheque", client_id=1)
    assert session.state == EditorState.LOADING
    session.load()
    assert session.state == EditorState.READY
    assert sorted(session.field_keys()) == sorted(
        ["date", "payeeName", "amountNumeric", "amountWords", "memo", "signature"]
    )
    assert all(field.is_required for field in session.fields)
    assert session.template_id is None


def test_editing_before_load_is_an_error() -> None:
    session = TemplateEditingSession("invoice", client_id=1)
    with pytest.raises(RuntimeError):
        session.add_field("notes")


def test_adding_a_canonical_field_twice_keeps_one() -> None:
    session = _cheque_session()
    assert session.add_field("payeeName") is None
    assert session.add_field("payeeName") is None
    assert session.notices[-1].title == "Field Already Exists"

    store = FakeStore()
    assert asyncio.run(session.save(store)) is True
    assert _payload_keys(store.calls[0]).count("payeeName") == 1


def test_add_field_uses_defaults_and_selects_it() -> None:
    session = _cheque_session()
    element_id = session.add_field("bankName")
    assert element_id == "cheque-bankName"
    assert session.selected_element_id == element_id
    assert session.state == EditorState.EDITING

    position = session.get_field(element_id).position
    assert (position.x, position.y) == (50, 50)
    assert (position.width, position.height) == (200, 30)
    assert position.font_size == 12
    assert position.font_family == "Helvetica"
    assert position.alignment == "left"


def test_repeatable_elements_get_suffixed_keys() -> None:
    session = _cheque_session()
    session.add_field("horizontalLine")
    session.add_field("horizontalLine")
    session.add_field("horizontalLine")
    assert [key for key in session.field_keys() if key.startswith("horizontalLine")] == [
        "horizontalLine", "horizontalLine-2", "horizontalLine-3",
    ]


def test_unknown_field_is_reported() -> None:
    session = _cheque_session()
    assert session.add_field("invoiceNumber") is None
    assert session.notices[-1].level == "error"


def test_required_field_cannot_be_deleted() -> None:
    session = _cheque_session()
    assert session.delete_field("cheque-memo") is False
    assert "memo" in session.field_keys()
    assert session.notices[-1].title == "Cannot Delete Required Field"
    assert "Memo" in session.notices[-1].message


def test_delete_optional_field_clears_selection() -> None:
    session = _cheque_session()
    element_id = session.add_field("companyName")
    assert session.delete_field(element_id) is True
    assert "companyName" not in session.field_keys()
    assert session.selected_element_id is None


def test_move_resize_and_restyle() -> None:
    session = _cheque_session()
    session.move_field("cheque-memo", 40, 200)
    session.resize_field("cheque-memo", 300, 24)
    session.update_field_properties("cheque-memo", {"fontSize": 10, "alignment": "center", "underline": True})

    position = session.get_field("cheque-memo").position
    assert (position.x, position.y, position.width, position.height) == (40, 200, 300, 24)
    assert position.font_size == 10
    assert position.alignment == "center"
    assert position.underline is True


def test_unknown_property_is_rejected() -> None:
    session = _cheque_session()
    with pytest.raises(KeyError):
        session.update_field_properties("cheque-memo", {"colour": "red"})


def test_sections() -> None:
    session = _cheque_session()
    section_id = session.add_section("Stub", 3.5)
    element_id = session.add_field("stubNetPay", section_id=section_id)
    assert session.get_field(element_id).section_id == section_id

    session.resize_section(section_id, 2.0)
    assert session.get_section(section_id).height_inches == 2.0

    # The cheque section holds the required fields
    assert session.remove_section("cheque") is False
    assert session.remove_section(section_id) is True
    assert "stubNetPay" not in session.field_keys()


def test_payload_is_camel_case_and_keyed_by_field_key() -> None:
    session = _cheque_session()
    session.add_field("horizontalLine")
    payload = session.to_payload()
    assert payload["documentType"] == "cheque"
    assert payload["pageWidth"] == 612
    section = payload["sections"][0]
    assert section["heightInches"] == 3.5
    assert section["fieldPositions"]["horizontalLine"]["fieldType"] == "line"
    assert "fontSize" in section["fieldPositions"]["memo"]


def test_save_without_required_fields_never_reaches_the_store() -> None:
    template = DocumentTemplate(
        id=uuid.uuid4(),
        client_id=1,
        document_type="cheque",
        name="Broken",
        sections=[{"id": "cheque", "name": "Cheque", "heightInches": 3.5,
                   "fieldPositions": {"date": {"x": 0, "y": 0}}}],
        page_width=612,
        page_height=252,
        version=3,
    )
    session = TemplateEditingSession("cheque", client_id=1)
    session.load(template)

    store = FakeStore()
    assert asyncio.run(session.save(store)) is False
    assert store.calls == []
    assert session.state == EditorState.SAVE_ERROR
    assert session.last_error.startswith("Missing required fields: payeeName")


def test_failed_save_keeps_edits_and_can_be_retried() -> None:
    session = _cheque_session()
    session.move_field("cheque-memo", 33, 44)

    assert asyncio.run(session.save(FakeStore(fail_with=RuntimeError("connection refused")))) is False
    assert session.state == EditorState.SAVE_ERROR
    assert session.last_error == "connection refused"
    assert session.get_field("cheque-memo").position.x == 33

    # Editing again leaves the error state
    session.move_field("cheque-memo", 35, 44)
    assert session.state == EditorState.EDITING

    store = FakeStore()
    assert asyncio.run(session.save(store)) is True
    assert session.state == EditorState.READY
    assert session.version == 1
    assert store.calls[0]["sections"][0]["fieldPositions"]["memo"]["x"] == 35


def test_second_save_updates_with_version() -> None:
    session = _cheque_session()
    store = FakeStore()
    asyncio.run(session.save(store))
    first_id = session.template_id

    session.add_field("chequeNumber")
    asyncio.run(session.save(store))
    assert session.template_id == first_id
    assert session.version == 2


def test_loading_the_wrong_document_type_fails() -> None:
    template = DocumentTemplate(
        client_id=1, document_type="invoice", name="Invoice",
        sections=[{"id": "body", "name": "Body", "heightInches": 11}], page_width=612, page_height=792,
    )
    with pytest.raises(ValueError):
        TemplateEditingSession("cheque", client_id=1).load(template)


def test_database_store_round_trip_and_conflict() -> None:
    async def scenario():
        async with SessionLocal() as db:
            store = DatabaseTemplateStore(db)

            session = TemplateEditingSession("cheque", client_id=501)
            session.load()
            session.add_field("staticText")
            session.update_field_properties("cheque-staticText", {"textContent": "VOID AFTER 90 DAYS"})
            assert await session.save(store) is True
            assert session.version == 1

            # Someone else saves the same template in between
            other = TemplateEditingSession("cheque", client_id=501)
            other.load(await store.update(session.template_id, session.to_payload(), 1))
            assert other.version == 2

            session.move_field("cheque-memo", 10, 10)
            assert await session.save(store) is False
            assert session.state == EditorState.SAVE_ERROR
            assert "modified by someone else" in session.last_error

            reloaded = TemplateEditingSession("cheque", client_id=501)
            reloaded.load(await store.update(other.template_id, other.to_payload(), other.version))
            return reloaded

    reloaded = asyncio.run(scenario())
    assert reloaded.version == 3
    static = reloaded.get_field("cheque-staticText")
    assert static.position.text_content == "VOID AFTER 90 DAYS"
