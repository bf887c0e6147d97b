"""Shared FastAPI dependencies.

Everything a request needs is built once at startup and held on
``app.state.services``; handlers reach it only through these functions.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from recipebox.config import Settings, get_settings
from recipebox.database import build_engine, build_session_factory
from recipebox.email.service import EmailDispatcher
from recipebox.notifications.orchestrator import NotificationOrchestrator
from recipebox.notifications.store import NotificationStore


@dataclass
class AppServices:
    """Process-wide collaborators shared by all requests."""

    settings: Settings
    session_factory: async_sessionmaker[AsyncSession]
    store: NotificationStore
    dispatcher: EmailDispatcher
    orchestrator: NotificationOrchestrator
    engine: AsyncEngine | None = None

    @classmethod
    def assemble(
        cls,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        dispatcher: EmailDispatcher,
        engine: AsyncEngine | None = None,
    ) -> AppServices:
        """Wire the store and orchestrator around a session factory and dispatcher."""
        store = NotificationStore(session_factory)
        orchestrator = NotificationOrchestrator(session_factory, store, dispatcher)
        return cls(
            settings=settings,
            session_factory=session_factory,
            store=store,
            dispatcher=dispatcher,
            orchestrator=orchestrator,
            engine=engine,
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> AppServices:
        """Build the production object graph from configuration."""
        settings = settings or get_settings()
        engine = build_engine(settings.database_url, settings.database_pool_size)
        return cls.assemble(
            settings,
            build_session_factory(engine),
            EmailDispatcher.from_settings(settings),
            engine=engine,
        )

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


def get_services(request: Request) -> AppServices:
    return request.app.state.services


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session for the duration of one request."""
    factory = get_services(request).session_factory
    async with factory() as session:
        yield session


def get_store(request: Request) -> NotificationStore:
    return get_services(request).store


def get_orchestrator(request: Request) -> NotificationOrchestrator:
    return get_services(request).orchestrator


def get_app_settings(request: Request) -> Settings:
    return get_services(request).settings


get_db = get_session
