from . import crud_document_template as document_template
