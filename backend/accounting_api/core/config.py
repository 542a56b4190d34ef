from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from pathlib import Path
import logging
import urllib.parse

logger = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).resolve().parent.parent.parent # This is backend/

class Settings(BaseSettings):
    PROJECT_NAME: str = "Accounting API"
    PROJECT_VERSION: str = "0.1.0"
    API_STR: str = "/api"
    SERVER_HOST: str = "http://localhost:5000"
    LOG_LEVEL: str = "INFO"

    # Reverse proxy prefix (e.g. "/staging"). Only consulted when no proxy header names one.
    BASE_PATH: Optional[str] = None

    # Uploaded files (client logos etc.) are served from here under /uploads
    UPLOADS_DIR: Path = BACKEND_DIR / "uploads"
    CLIENT_LOGO_SUBDIR: str = "client-logos"

    # /debug-path and /test-uploads, turn off in production
    ENABLE_DEBUG_ROUTES: bool = True

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:3001",
    ]

    # Database
    POSTGRES_SERVER: Optional[str] = None
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_DB: Optional[str] = None
    POSTGRES_PORT: int = 5432
    DATABASE_URL: Optional[str] = None # Used as-is when set, otherwise built from POSTGRES_*

    model_config = SettingsConfigDict(
        # four .parent calls to get to project root
        env_file=Path(__file__).resolve().parent.parent.parent.parent / ".env",
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=True
    )

settings = Settings()

# Construct DATABASE_URL after settings are loaded
if not settings.DATABASE_URL:
    if settings.POSTGRES_USER and settings.POSTGRES_PASSWORD and \
       settings.POSTGRES_SERVER and settings.POSTGRES_DB:
        # URL-encode the password
        encoded_password = urllib.parse.quote_plus(settings.POSTGRES_PASSWORD)
        settings.DATABASE_URL = (
            f"postgresql+asyncpg://{settings.POSTGRES_USER}:{encoded_password}@"
            f"{settings.POSTGRES_SERVER}:{settings.POSTGRES_PORT}/{settings.POSTGRES_DB}"
        )
    else:
        logger.warning("Database URL could not be constructed. Check DATABASE_URL or POSTGRES_* variables in .env.")
