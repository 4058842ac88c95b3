"""
FastAPI Application - Permission Sync
Host application that syncs declared permissions on startup
"""

from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI

from permsync.config import settings
from permsync.core.database import AsyncSessionLocal, init_db
from permsync.core.logging import configure_logging, get_logger
from permsync.core.permission_sync import PermissionSyncListener, StartupContext
from permsync.core.registry import registry
from permsync.schemas.sync import SyncStatus
from permsync.services.permission_store import SqlPermissionRepository

logger = get_logger(__name__)


class AppPermissionSync(PermissionSyncListener):
    """Startup listener for this application."""

    async def custom_execute(self, context: StartupContext) -> None:
        logger.info(
            "app_starting",
            project=settings.PROJECT_NAME,
            environment=settings.ENVIRONMENT,
            database=settings.DATABASE_URL.split("@")[1] if "@" in settings.DATABASE_URL else "configured",
        )


def default_listener() -> PermissionSyncListener:
    repository = SqlPermissionRepository(AsyncSessionLocal)
    return AppPermissionSync.from_settings(repository, registry, settings)


def create_app(
    listener_factory: Callable[[], PermissionSyncListener] | None = None,
    create_tables: bool | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        listener_factory: Builds the startup listener (defaults to AppPermissionSync)
        create_tables: Create tables before syncing (defaults to DB_CREATE_TABLES)
    """
    make_listener = listener_factory or default_listener
    should_create_tables = settings.DB_CREATE_TABLES if create_tables is None else create_tables

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Lifespan context manager for startup and shutdown events"""
        # Startup
        configure_logging()
        if should_create_tables:
            await init_db()

        outcome = await make_listener().run(StartupContext(app=app))
        app.state.permission_sync = outcome
        if outcome.status in (SyncStatus.ERROR, SyncStatus.PARTIAL_FAILURE):
            logger.warning("permission_sync_incomplete", status=outcome.status.value, error=outcome.error)

        yield
        # Shutdown
        logger.info("app_stopping", project=settings.PROJECT_NAME)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Syncs code-declared permissions to the permission table",
        version=settings.VERSION,
        lifespan=lifespan,
    )

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint - API information"""
        return {
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "status": "running",
        }

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint, including the last permission sync status"""
        outcome = getattr(app.state, "permission_sync", None)
        return {
            "status": "healthy",
            "permission_sync": outcome.status.value if outcome else "pending",
        }

    return app


app = create_app()
