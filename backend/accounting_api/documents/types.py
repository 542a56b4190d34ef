import re
from enum import Enum
from typing import Dict, Iterable, List

POINTS_PER_INCH = 72

# Standard cheque dimensions (8.5" x 3.5" at 72 DPI)
CHEQUE_WIDTH = 612
CHEQUE_HEIGHT = 252
# US letter
INVOICE_WIDTH = 612
INVOICE_HEIGHT = 792


class DocumentTypeEnum(str, Enum):
    CHEQUE = "cheque"
    INVOICE = "invoice"


# Order matters only for error messages
REQUIRED_FIELDS: Dict[DocumentTypeEnum, List[str]] = {
    DocumentTypeEnum.CHEQUE: ["date", "payeeName", "amountNumeric", "amountWords", "memo", "signature"],
    # Invoices can be laid out freely
    DocumentTypeEnum.INVOICE: [],
}

_SUFFIX_RE = re.compile(r"^(.+?)(-\d+)?$")


def base_field_id(field_key: str) -> str:
    """'horizontalLine-2' -> 'horizontalLine'"""
    match = _SUFFIX_RE.match(field_key)
    return match.group(1) if match else field_key


def missing_required_fields(document_type, field_keys: Iterable[str]) -> List[str]:
    present = {base_field_id(key) for key in field_keys}
    return [key for key in REQUIRED_FIELDS[DocumentTypeEnum(document_type)] if key not in present]
