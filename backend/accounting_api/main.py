import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from accounting_api.api import api_router
from accounting_api.api.endpoints import debug
from accounting_api.core.base_path import BasePathResolver
from accounting_api.core.config import settings
from accounting_api.middleware import BasePathMiddleware, RequestLogMiddleware
from accounting_api import uploads

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

UPLOADS_DIR = Path(settings.UPLOADS_DIR)
# Ensure the uploads directory exists (client-logos and other subdirs are created by endpoints)
UPLOADS_DIR.mkdir(parents=True, exist_ok=True)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_STR}/openapi.json",
    version=settings.PROJECT_VERSION
)

# --- BEGIN MIDDLEWARE SETUP ---
# Starlette runs the middleware added last first:
# request log -> base path stripping -> CORS -> routing
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,  # List of origins that are allowed to make requests
    allow_credentials=True, # Allow cookies to be included in requests (if you use them)
    allow_methods=["*"],    # Allow all methods (GET, POST, PUT, DELETE, etc.)
    allow_headers=["*"],    # Allow all headers
)
app.add_middleware(BasePathMiddleware, resolver=BasePathResolver(env_base_path=settings.BASE_PATH))
app.add_middleware(RequestLogMiddleware)
# --- END MIDDLEWARE SETUP ---

# Client logo routes go before the /uploads mount so they win for /uploads/client-logos/*
app.include_router(uploads.router)
app.mount("/uploads", uploads.UploadsStaticFiles(directory=UPLOADS_DIR, check_dir=False), name="uploads")

# Include the main API router
app.include_router(api_router, prefix=settings.API_STR)

if settings.ENABLE_DEBUG_ROUTES:
    app.include_router(debug.router, tags=["Debug"])
    logger.info("Debug routes enabled: /debug-path, /test-uploads")

@app.get("/")
async def read_root():
    return {"message": f"Welcome to {settings.PROJECT_NAME}!"}

@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    """
    return {"status": "ok", "message": f"{settings.PROJECT_NAME} is healthy!"}
