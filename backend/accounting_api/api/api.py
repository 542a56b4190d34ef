from fastapi import APIRouter

# Import endpoint modules
from accounting_api.api.endpoints import document_templates
from accounting_api.api.endpoints import cheque_templates
from accounting_api.api.endpoints import client_logos

api_router = APIRouter()

api_router.include_router(document_templates.router, prefix="/document-templates", tags=["Document Templates"])
api_router.include_router(cheque_templates.router, prefix="/cheque-templates", tags=["Cheque Templates"])
api_router.include_router(client_logos.router, prefix="/client-logos", tags=["Client Logos"])
