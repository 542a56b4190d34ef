from accounting_api.api.api import api_router
