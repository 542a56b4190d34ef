import asyncio
import logging
from accounting_api.db.session import engine
from accounting_api.db.base_class import Base
# Import models so Base knows about them
from accounting_api.models.document_template import DocumentTemplate  # noqa: F401

# Logger for the init_db function and module-level messages
logger = logging.getLogger(__name__)

async def init_db(drop_existing: bool = False):
    logger.info("Initializing database...")
    if not engine:
        logger.error("Database engine (from accounting_api.db.session) is not initialized. Cannot create tables.")
        return

    async with engine.begin() as conn:
        try:
            if drop_existing:
                logger.info("Dropping all tables...")
                await conn.run_sync(Base.metadata.drop_all)
                logger.info("Tables dropped.")

            logger.info("Creating all tables...")
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Tables created successfully.")
        except Exception as e:
            logger.error(f"Error during table creation: {e}")
            raise # Re-raise the exception after logging

    logger.info("Database initialization complete.")

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(levelname)s:%(name)s:%(message)s')

    # Logger for messages specific to this __main__ execution block
    main_logger = logging.getLogger("__main__")

    from accounting_api.core.config import settings

    if not settings.DATABASE_URL:
        main_logger.error("DATABASE_URL not set in settings. Exiting.")
    elif not engine:
        main_logger.error("Database engine in accounting_api.db.session is None. Exiting.")
    else:
        db_url_display = str(settings.DATABASE_URL)
        if settings.POSTGRES_PASSWORD:
            db_url_display = db_url_display.replace(str(settings.POSTGRES_PASSWORD), '********')

        main_logger.info(f"Attempting DB initialization for: {db_url_display}")
        try:
            asyncio.run(init_db())
        except Exception:
            main_logger.exception("An error occurred during asyncio.run(init_db())")
