import argparse
import asyncio
import logging
import sys

from taswira.config import settings
from taswira.database import crud, init_db
from taswira.utils.logging_config import configure_logging
from taswira.web_app import create_app, run_web_server

configure_logging(settings.LOG_LEVEL)

logger = logging.getLogger(__name__)

# Flush stdout immediately (important for Docker)
sys.stdout.reconfigure(line_buffering=True)


async def seed():
    """Create tables and insert the default catalog"""
    database = init_db(settings.database_url)
    try:
        await database.create_tables()
        async with database.get_session() as session:
            inserted = await crud.seed_catalog(session, force=True)
        logger.info(f"✓ Catalog seeded, {inserted} styles inserted")
    finally:
        await database.close()


async def main():
    """Main entry point"""
    try:
        logger.info("="*60)
        logger.info("Starting Taswira server...")
        logger.info(f"Log level: {settings.LOG_LEVEL}")
        logger.info(f"Image provider: {settings.IMAGE_PROVIDER}")
        logger.info(f"Public URL: {settings.PUBLIC_BASE_URL}")
        logger.info("="*60)

        if not settings.OPENAI_API_KEY:
            logger.warning("OPENAI_API_KEY is not set - analysis and image generation will fail")
        if not settings.is_kie_enabled:
            logger.warning("KIE_AI_API_KEY is not set - video generation will fail")

        logger.info("Initializing database...")
        logger.info(f"Database URL: {settings.database_url.split('@')[-1]}")  # Hide credentials
        init_db(settings.database_url)
        logger.info("✓ Database initialized")

        app = create_app()
        runner = await run_web_server(app, settings.HOST, settings.PORT)

        logger.info("="*60)
        logger.info(f"🚀 Serving on {settings.HOST}:{settings.PORT}")
        logger.info("Press Ctrl+C to stop")
        logger.info("="*60)

        try:
            await asyncio.Event().wait()
        finally:
            await runner.cleanup()

    except Exception as e:
        logger.critical(f"Fatal error during server startup: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Taswira product photo and video service")
    parser.add_argument("--seed", action="store_true", help="create tables, seed the default catalog and exit")
    args = parser.parse_args()

    try:
        asyncio.run(seed() if args.seed else main())
    except (KeyboardInterrupt, SystemExit):
        logger.info("="*60)
        logger.info("Server stopped by user")
        logger.info("="*60)
    except Exception as e:
        logger.critical(f"Unhandled exception: {e}", exc_info=True)
        sys.exit(1)
