"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from recipebox.admin.router import router as admin_router
from recipebox.auth.router import router as auth_router
from recipebox.config import Settings, get_settings
from recipebox.dependencies import AppServices
from recipebox.health.router import router as health_router
from recipebox.middleware import setup_middleware
from recipebox.notifications.router import router as notifications_router
from recipebox.recipes.router import router as recipes_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the shared services on startup unless they were injected."""
    owned = getattr(app.state, "services", None) is None
    if owned:
        app.state.services = AppServices.from_settings(app.state.settings)
    logger.info("app_started", provider=app.state.services.dispatcher.provider.name)

    yield

    if owned:
        await app.state.services.close()


def create_app(services: AppServices | None = None, settings: Settings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Passing ``services`` skips building the database engine and email
    provider from configuration.
    """
    settings = settings or (services.settings if services is not None else get_settings())

    app = FastAPI(
        title="RecipeBox API",
        description="Backend API for RecipeBox, a recipe sharing site",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.services = services

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(notifications_router)
    app.include_router(recipes_router)
    app.include_router(admin_router)

    return app


app = create_app()
