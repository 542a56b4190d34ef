import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from pathlib import Path
from typing import Dict, Mapping, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from accounting_api.documents.layout import layout_template
from accounting_api.documents.types import DocumentTypeEnum
from accounting_api.schemas.document_template import DocumentLayout, DocumentTemplate

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
LAYOUT_TEMPLATE_NAME = "document_layout.html"

jinja_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(['html', 'xml'])
)


def _print_date(value: date) -> str:
    # Cheques print DD/MM/YYYY
    return value.strftime("%d/%m/%Y")


def sample_data(document_type, today: Optional[date] = None) -> Dict[str, str]:
    """
    Placeholder values for previews, keyed by canonical field id.
    """
    today = today or date.today()
    if DocumentTypeEnum(document_type) == DocumentTypeEnum.CHEQUE:
        return {
            "date": _print_date(today),
            "payeeName": "Granella Investments Ltd.",
            "amountNumeric": "$5,877.14",
            "amountWords": "*FIVE THOUSAND EIGHT HUNDRED SEVENTY-SEVEN AND 14 / 100*",
            "memo": "Invoice Payment",
            "signature": "",
            "companyName": "Your Company Name",
            "companyAddress": "123 Main Street, Toronto, ON M1A 2B3",
            "bankName": "TD Canada Trust",
            "transitNumber": "12345",
            "accountNumber": "6789012",
            "chequeNumber": "0000004952",
            "billId": "1125",
            "subtotal": "$5,877.14",
            "taxAmount": "$0.00",
            "totalAmount": "$5,877.14",
            "stubHours": "40.00",
            "stubRate": "$25.00",
            "stubGrossPay": "$1,000.00",
            "stubDeductions": "$200.00",
            "stubNetPay": "$800.00",
            "stubYtdGross": "$12,000.00",
            "stubYtdDeductions": "$2,400.00",
            "stubYtdNet": "$9,600.00",
        }
    return {
        "companyName": "Your Company Name",
        "companyAddress": "123 Main Street, Toronto, ON M1A 2B3",
        "companyPhone": "+1 (416) 555-1234",
        "businessNumber": "123456789 RT0001",
        "invoiceTitle": "INVOICE",
        "invoiceNumber": "INV-2024-001",
        "invoiceDate": _print_date(today),
        "poNumber": "PO-12345",
        "dueDate": _print_date(today + timedelta(days=30)),
        "servicesProvidedToLabel": "Services Provided to:",
        "clientName": "ABC Corporation",
        "clientAddress": "456 Business Ave, Suite 200, Toronto, ON M2B 3C4",
        "itemDescription": "Professional Services",
        "itemSubDescription": "Consulting and advisory services for Q1 2024",
        "itemQuantity": "10",
        "itemRate": "$150.00",
        "itemAmount": "$1,500.00",
        "subtotal": "$1,500.00",
        "netInvoice": "$1,500.00",
        "taxLabel": "HST",
        "taxAmount": "$195.00",
        "totalAmount": "$1,695.00",
        "paymentTerms": "Net 30",
        "notes": "Thank you for your business!",
    }


def build_layout(
    template: DocumentTemplate,
    values: Optional[Mapping[str, str]] = None,
    *,
    use_sample_data: bool = True,
) -> DocumentLayout:
    merged: Dict[str, str] = sample_data(template.document_type) if use_sample_data else {}
    merged.update(values or {})
    return layout_template(
        template.sections,
        document_type=template.document_type,
        page_width=template.page_width,
        page_height=template.page_height,
        values=merged,
    )


def render_document_html(
    template: DocumentTemplate,
    values: Optional[Mapping[str, str]] = None,
    *,
    use_sample_data: bool = True,
) -> str:
    """
    Render a template as a single absolutely-positioned HTML page (units are pt).
    In preview mode (sample data on) fields without a value show their label.
    """
    layout = build_layout(template, values, use_sample_data=use_sample_data)
    micr = None
    if any(f.position.field_type == "micr" for f in layout.fields):
        source = {**sample_data(template.document_type), **(values or {})}
        micr = {
            "transit": source.get("transitNumber", ""),
            "account": source.get("accountNumber", ""),
            "cheque": source.get("chequeNumber", ""),
        }

    html_template = jinja_env.get_template(LAYOUT_TEMPLATE_NAME)
    return html_template.render(
        template=template,
        layout=layout,
        show_labels=use_sample_data,
        micr=micr,
    )


async def render_document_pdf(
    template: DocumentTemplate,
    values: Optional[Mapping[str, str]] = None,
    *,
    use_sample_data: bool = False,
) -> bytes:
    html_content = render_document_html(template, values, use_sample_data=use_sample_data)

    # WeasyPrint needs system libraries (pango), only load it when a PDF is asked for
    from weasyprint import HTML # type: ignore

    loop = asyncio.get_event_loop()
    with ThreadPoolExecutor() as pool:
        pdf_bytes = await loop.run_in_executor(
            pool,
            lambda: HTML(string=html_content, base_url=str(TEMPLATE_DIR.parent)).write_pdf()
        )
    logger.info("Rendered %s template %s to PDF (%d bytes)", template.document_type.value, template.id, len(pdf_bytes))
    return pdf_bytes
