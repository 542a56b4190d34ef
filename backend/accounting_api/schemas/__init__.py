from .document_template import (
    FieldPosition, TemplateSection, UiPreferences, DocumentTypeEnum,
    DocumentTemplate, DocumentTemplateCreate, DocumentTemplateUpdate, DocumentTemplateSummary,
    ChequeTemplateCreate, InvoiceTemplateCreate, InitializeTemplatesResult,
    ChequeTemplate, ChequeTemplateIn, ChequeTemplateUpdateIn,
    PlacedField, DocumentLayout, DocumentRenderRequest, section_field_keys,
)
from .client_logo import ClientLogo
