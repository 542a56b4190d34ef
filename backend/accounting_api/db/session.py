from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool
from accounting_api.core.config import settings
import logging
from fastapi import HTTPException

logger = logging.getLogger(__name__)

engine = None
SessionLocal = None

if not settings.DATABASE_URL:
    logger.error("DATABASE_URL is not set. Please check your environment variables and configuration.")
else:
    # Mask password in log
    display_db_url = settings.DATABASE_URL
    if settings.POSTGRES_PASSWORD:
        display_db_url = display_db_url.replace(settings.POSTGRES_PASSWORD, "********")
    logger.info(f"Attempting to connect to database: {display_db_url}")

    engine_options = {"pool_pre_ping": True}
    if settings.DATABASE_URL.startswith("sqlite"):
        # aiosqlite connections are bound to the loop that opened them
        engine_options["poolclass"] = NullPool

    try:
        engine = create_async_engine(settings.DATABASE_URL, **engine_options)
        SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False
        )
        logger.info("Database engine and SessionLocal configured successfully.")
    except Exception as e:
        logger.error(f"Failed to create database engine or SessionLocal: {e}")


async def get_db() -> AsyncSession:
    """
    Dependency to get a database session.
    Ensures the session is closed after the request.
    """
    if not SessionLocal:
        logger.error("SessionLocal is not initialized. Database connection might have failed during app startup.")
        raise HTTPException(
            status_code=503, # Service Unavailable
            detail="Database connection is not available."
        )

    db: AsyncSession = SessionLocal()
    try:
        yield db
    finally:
        await db.close()
