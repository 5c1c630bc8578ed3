"""
aiohttp application: JSON API for the wizard and catalog, plus /media files
"""
import logging
from typing import Optional

from aiohttp import web

from taswira.config import settings
from taswira.database import crud, get_db, init_db
from taswira.handlers import setup_routes
from taswira.middlewares import DbSessionMiddleware, error_middleware
from taswira.services.media_store import MediaStore
from taswira.services.wizard import WizardService

logger = logging.getLogger(__name__)

# Multipart overhead on top of the image itself
UPLOAD_OVERHEAD = 1024 * 1024


async def _on_startup(app: web.Application):
    database = get_db()
    if database is None:
        logger.info("Initializing database...")
        logger.info(f"Database URL: {settings.database_url.split('@')[-1]}")  # Hide credentials
        database = init_db(settings.database_url)

    await database.create_tables()
    logger.info("✓ Tables ready")

    if app["seed_catalog"]:
        async with database.get_session() as session:
            inserted = await crud.seed_catalog(session)
        if inserted:
            logger.info(f"✓ Seeded {inserted} default styles")


async def _on_cleanup(app: web.Application):
    await app["wizard"].shutdown()
    database = get_db()
    if database is not None:
        await database.close()
    logger.info("Web server stopped")


def create_app(
    wizard: Optional[WizardService] = None,
    media_store: Optional[MediaStore] = None,
    seed_catalog: Optional[bool] = None
) -> web.Application:
    """
    Create aiohttp application

    Args:
        wizard: Wizard service (built from settings when omitted)
        media_store: Storage served under /media
        seed_catalog: Insert default categories into an empty catalog on startup
    """
    media_store = media_store or (wizard.media if wizard else MediaStore())
    db_middleware = DbSessionMiddleware()

    app = web.Application(
        middlewares=[error_middleware, web.middleware(db_middleware)],
        client_max_size=settings.max_upload_bytes + UPLOAD_OVERHEAD
    )
    app["wizard"] = wizard or WizardService(media_store=media_store)
    app["db_middleware"] = db_middleware
    app["seed_catalog"] = settings.SEED_CATALOG if seed_catalog is None else seed_catalog

    setup_routes(app, media_dir=media_store.root)

    app.on_startup.append(_on_startup)
    app.on_cleanup.append(_on_cleanup)
    return app


async def run_web_server(app: web.Application, host: str, port: int) -> web.AppRunner:
    """Start the app on host:port and return the runner for shutdown"""
    runner = web.AppRunner(app)
    await runner.setup()

    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"Web server started on http://{host}:{port}")
    return runner
