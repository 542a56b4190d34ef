# backend/accounting_api/models/__init__.py
from .document_template import DocumentTemplate
