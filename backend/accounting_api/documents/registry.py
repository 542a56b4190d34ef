"""
Field palette and per-document-type metadata.

Each document type carries its own page geometry, required canonical
fields and default section scaffold. Field keys stored on a template are
either a canonical field id ("payeeName") or, for repeatable visual
elements, the id plus a numeric suffix ("horizontalLine-2").
"""
from dataclasses import asdict, dataclass, field
from typing import Dict, FrozenSet, List, Optional

from accounting_api.documents.types import (
    CHEQUE_HEIGHT,
    CHEQUE_WIDTH,
    INVOICE_HEIGHT,
    INVOICE_WIDTH,
    REQUIRED_FIELDS,
    DocumentTypeEnum,
    base_field_id,
    missing_required_fields,
)

DEFAULT_FIELD_WIDTH = 100
DEFAULT_FIELD_HEIGHT = 30
DEFAULT_FONT_SIZE = 12
DEFAULT_FONT_FAMILY = "Helvetica"
DEFAULT_ALIGNMENT = "left"
NEW_FIELD_X = 50
NEW_FIELD_Y = 50


@dataclass(frozen=True)
class FieldDefinition:
    id: str
    label: str
    category: str
    default_width: Optional[float] = None
    default_height: Optional[float] = None
    format: Optional[str] = None
    field_type: Optional[str] = None
    font_size: Optional[float] = None
    alignment: Optional[str] = None
    text_content: Optional[str] = None
    # Visual elements may appear any number of times, everything else is a singleton
    repeatable: bool = False

    @property
    def is_static(self) -> bool:
        return self.field_type == "static"

    def to_dict(self) -> dict:
        data = asdict(self)
        return {
            "id": data["id"],
            "label": data["label"],
            "category": data["category"],
            "defaultWidth": data["default_width"],
            "defaultHeight": data["default_height"],
            "format": data["format"],
            "fieldType": data["field_type"],
            "fontSize": data["font_size"],
            "alignment": data["alignment"],
            "textContent": data["text_content"],
            "repeatable": data["repeatable"],
        }


def _visual_elements(*, include_micr: bool) -> List[FieldDefinition]:
    elements = [
        FieldDefinition("horizontalLine", "Horizontal Line", "Visual Elements", 400, 1, field_type="line", repeatable=True),
        FieldDefinition("verticalLine", "Vertical Line", "Visual Elements", 1, 200, field_type="line", repeatable=True),
        FieldDefinition("box", "Box / Border", "Visual Elements", 200, 100, field_type="box", repeatable=True),
    ]
    if include_micr:
        elements.append(FieldDefinition("micrLine", "MICR Line", "Visual Elements", 500, 15, field_type="micr"))
    elements.append(
        FieldDefinition("staticText", "Static Text", "Visual Elements", 200, 30, field_type="static", repeatable=True)
    )
    return elements


CHEQUE_FIELD_DEFINITIONS: List[FieldDefinition] = [
    FieldDefinition("date", "Date", "Essential", 120, 30, format="date"),
    FieldDefinition("payeeName", "Pay to the Order of", "Essential", 400, 30),
    FieldDefinition("amountNumeric", "Amount ($)", "Essential", 100, 30, format="currency"),
    FieldDefinition("amountWords", "Amount in Words", "Essential", 450, 30),
    FieldDefinition("memo", "Memo", "Essential", 350, 30),
    FieldDefinition("signature", "Signature Line", "Essential", 120, 30),
    FieldDefinition("companyName", "Company Name", "Optional", 300, 30),
    FieldDefinition("companyAddress", "Company Address", "Optional", 300, 50),
    FieldDefinition("chequeNumber", "Cheque Number", "Optional", 80, 30),
    FieldDefinition("bankName", "Bank Name", "Optional", 200, 30),
    FieldDefinition("transitNumber", "Transit Number", "Optional", 100, 30),
    FieldDefinition("accountNumber", "Account Number", "Optional", 150, 30),
    # Cheque stubs and payment details
    FieldDefinition("billId", "Bill ID / Reference", "Line Items", 100, 25, format="text"),
    FieldDefinition("subtotal", "Subtotal (Without Tax)", "Line Items", 120, 25, format="currency"),
    FieldDefinition("taxAmount", "Tax Amount", "Line Items", 120, 25, format="currency"),
    FieldDefinition("totalAmount", "Total Amount (With Tax)", "Line Items", 120, 25, format="currency"),
    *_visual_elements(include_micr=True),
    # Pay stub, for vendor payments and payroll
    FieldDefinition("stubHours", "Hours", "Pay Stub", 80, 25, format="number"),
    FieldDefinition("stubRate", "Rate", "Pay Stub", 80, 25, format="currency"),
    FieldDefinition("stubGrossPay", "Gross Pay", "Pay Stub", 100, 25, format="currency"),
    FieldDefinition("stubDeductions", "Deductions", "Pay Stub", 100, 25, format="currency"),
    FieldDefinition("stubNetPay", "Net Pay", "Pay Stub", 100, 25, format="currency"),
    FieldDefinition("stubYtdGross", "YTD Gross", "Pay Stub", 100, 25, format="currency"),
    FieldDefinition("stubYtdDeductions", "YTD Deductions", "Pay Stub", 100, 25, format="currency"),
    FieldDefinition("stubYtdNet", "YTD Net", "Pay Stub", 100, 25, format="currency"),
]

INVOICE_FIELD_DEFINITIONS: List[FieldDefinition] = [
    FieldDefinition("logo", "Company Logo", "Header", 100, 50, field_type="image"),
    FieldDefinition("companyName", "Company Name", "Header", 200, 30, font_size=14),
    FieldDefinition("companyAddress", "Company Address", "Header", 200, 50, font_size=10),
    FieldDefinition("companyPhone", "Company Phone", "Header", 150, 20, font_size=10),
    FieldDefinition("invoiceTitle", "Invoice Title", "Header", 150, 30, font_size=24, alignment="right",
                    field_type="static", text_content="INVOICE"),
    FieldDefinition("invoiceNumber", "Invoice Number", "Invoice Details", 120, 25, font_size=10),
    FieldDefinition("invoiceDate", "Invoice Date", "Invoice Details", 120, 25, font_size=10, format="date"),
    FieldDefinition("poNumber", "P.O. Number", "Invoice Details", 120, 25, font_size=10),
    FieldDefinition("businessNumber", "Business Number", "Invoice Details", 150, 25, font_size=10),
    FieldDefinition("dueDate", "Due Date", "Invoice Details", 120, 25, font_size=10, format="date"),
    FieldDefinition("servicesProvidedToLabel", "Services Provided to:", "Client Information", 150, 20, font_size=10,
                    field_type="static", text_content="Services Provided to:"),
    FieldDefinition("clientName", "Client Name", "Client Information", 200, 30, font_size=12),
    FieldDefinition("clientAddress", "Client Address", "Client Information", 200, 50, font_size=10),
    FieldDefinition("itemsTable", "Items Table", "Line Items", 500, 200, field_type="table"),
    FieldDefinition("itemDescription", "Item Description", "Line Items", 250, 25, font_size=10),
    FieldDefinition("itemSubDescription", "Item Sub Description", "Line Items", 250, 25, font_size=10),
    FieldDefinition("itemQuantity", "Quantity", "Line Items", 80, 25, font_size=10, format="number"),
    FieldDefinition("itemRate", "Rate", "Line Items", 80, 25, font_size=10, format="currency"),
    FieldDefinition("itemAmount", "Amount", "Line Items", 100, 25, font_size=10, format="currency"),
    FieldDefinition("netInvoice", "Net Invoice", "Summary", 120, 25, font_size=10, alignment="right", format="currency"),
    FieldDefinition("taxLabel", "Tax Label (e.g., HST)", "Summary", 80, 25, font_size=10, alignment="right",
                    field_type="static", text_content="HST"),
    FieldDefinition("taxAmount", "Tax Amount", "Summary", 120, 25, font_size=10, alignment="right", format="currency"),
    FieldDefinition("totalAmount", "Total Amount", "Summary", 120, 30, font_size=14, alignment="right", format="currency"),
    FieldDefinition("subtotal", "Subtotal", "Summary", 120, 25, font_size=10, alignment="right", format="currency"),
    FieldDefinition("paymentTerms", "Payment Terms", "Additional", 200, 30, font_size=10),
    FieldDefinition("notes", "Notes", "Additional", 300, 50, font_size=10),
    *_visual_elements(include_micr=False),
]


def _position(x, y, width, height, **extra) -> dict:
    position = {
        "x": x,
        "y": y,
        "width": width,
        "height": height,
        "fontSize": DEFAULT_FONT_SIZE,
        "fontFamily": DEFAULT_FONT_FAMILY,
        "alignment": DEFAULT_ALIGNMENT,
    }
    position.update(extra)
    return position


# Positions are local to their section, in points
DEFAULT_CHEQUE_SECTIONS = [
    {
        "id": "cheque",
        "name": "Cheque",
        "heightInches": 3.5,
        "fieldPositions": {
            "date": _position(480, 30, 120, 30, format="date"),
            "payeeName": _position(80, 80, 400, 30),
            "amountNumeric": _position(500, 80, 100, 30, format="currency"),
            "amountWords": _position(30, 115, 450, 30),
            "memo": _position(30, 190, 350, 30),
            "signature": _position(450, 190, 120, 30),
        },
    },
]

DEFAULT_INVOICE_SECTIONS = [
    {
        "id": "header",
        "name": "Header",
        "heightInches": 2.0,
        "fieldPositions": {
            "companyName": _position(36, 30, 200, 30, fontSize=14),
            "companyAddress": _position(36, 62, 200, 50, fontSize=10),
            "invoiceTitle": _position(426, 30, 150, 30, fontSize=24, alignment="right",
                                      fieldType="static", textContent="INVOICE"),
            "invoiceNumber": _position(456, 70, 120, 25, fontSize=10),
            "invoiceDate": _position(456, 95, 120, 25, fontSize=10, format="date"),
        },
    },
    {
        "id": "body",
        "name": "Line Items",
        "heightInches": 6.0,
        "fieldPositions": {
            "clientName": _position(36, 10, 200, 30),
            "itemsTable": _position(36, 60, 540, 200, fieldType="table"),
        },
    },
    {
        "id": "footer",
        "name": "Summary",
        "heightInches": 3.0,
        "fieldPositions": {
            "subtotal": _position(456, 10, 120, 25, fontSize=10, alignment="right", format="currency"),
            "taxAmount": _position(456, 35, 120, 25, fontSize=10, alignment="right", format="currency"),
            "totalAmount": _position(456, 60, 120, 30, fontSize=14, alignment="right", format="currency"),
            "notes": _position(36, 110, 300, 50, fontSize=10),
        },
    },
]


@dataclass(frozen=True)
class DocumentTypeInfo:
    document_type: DocumentTypeEnum
    description: str
    data_source: str
    page_width: float
    page_height: float
    fixed_page_size: bool
    required_fields: FrozenSet[str]
    fields: List[FieldDefinition] = field(default_factory=list)
    default_sections: List[dict] = field(default_factory=list)

    def get_field(self, field_id: str) -> Optional[FieldDefinition]:
        field_id = base_field_id(field_id)
        for definition in self.fields:
            if definition.id == field_id:
                return definition
        return None

    def missing_required(self, field_keys) -> List[str]:
        """Required canonical fields absent from field_keys, in declaration order."""
        return missing_required_fields(self.document_type, field_keys)

    def to_dict(self) -> dict:
        return {
            "description": self.description,
            "requiredFields": list(REQUIRED_FIELDS[self.document_type]),
            "dataSource": self.data_source,
            "pageWidth": self.page_width,
            "pageHeight": self.page_height,
            "defaultSections": self.default_sections,
            "fields": [definition.to_dict() for definition in self.fields],
        }


DOCUMENT_TYPES: Dict[DocumentTypeEnum, DocumentTypeInfo] = {
    DocumentTypeEnum.CHEQUE: DocumentTypeInfo(
        document_type=DocumentTypeEnum.CHEQUE,
        description="Printed cheque on 8.5\" x 3.5\" stock",
        data_source="payments",
        page_width=CHEQUE_WIDTH,
        page_height=CHEQUE_HEIGHT,
        fixed_page_size=True,
        required_fields=frozenset(REQUIRED_FIELDS[DocumentTypeEnum.CHEQUE]),
        fields=CHEQUE_FIELD_DEFINITIONS,
        default_sections=DEFAULT_CHEQUE_SECTIONS,
    ),
    DocumentTypeEnum.INVOICE: DocumentTypeInfo(
        document_type=DocumentTypeEnum.INVOICE,
        description="Client invoice",
        data_source="invoices",
        page_width=INVOICE_WIDTH,
        page_height=INVOICE_HEIGHT,
        fixed_page_size=False,
        required_fields=frozenset(),
        fields=INVOICE_FIELD_DEFINITIONS,
        default_sections=DEFAULT_INVOICE_SECTIONS,
    ),
}


def get_document_type(document_type) -> DocumentTypeInfo:
    return DOCUMENT_TYPES[DocumentTypeEnum(document_type)]
