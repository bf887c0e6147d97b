"""Shared test fixtures.

Every test gets its own SQLite database file (aiosqlite) with the schema
created from the ORM metadata, plus a recording email provider; nothing
touches the network.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from recipebox.auth.jwt import create_access_token
from recipebox.auth.password import hash_password
from recipebox.config import Settings
from recipebox.database import build_engine, build_session_factory
from recipebox.db.base import Base
from recipebox.db.models import ROLE_ADMIN, ROLE_USER, Recipe, User
from recipebox.dependencies import AppServices
from recipebox.email.service import BaseEmailProvider, EmailDeliveryError, EmailDispatcher
from recipebox.main import create_app
from recipebox.notifications.orchestrator import NotificationOrchestrator
from recipebox.notifications.store import NotificationStore

TEST_PASSWORD = "secret123"
SITE_URL = "https://recipebox.test"


@dataclass
class SentEmail:
    sender: str
    to: str
    subject: str
    text: str
    html: str | None


@dataclass
class FakeEmailProvider(BaseEmailProvider):
    """Records deliveries; can be told to fail or to hang."""

    sent: list[SentEmail] = field(default_factory=list)
    fail: bool = False
    delay: float = 0.0
    reachable: bool = True

    name = "fake"

    async def deliver(
        self,
        sender: str,
        to_email: str,
        subject: str,
        text_body: str,
        html_body: str | None,
    ) -> str:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            msg = "550 mailbox unavailable"
            raise EmailDeliveryError(msg)
        self.sent.append(SentEmail(sender, to_email, subject, text_body, html_body))
        return f"<{len(self.sent)}@fake>"

    async def verify(self) -> bool:
        return self.reachable


@pytest.fixture(scope="session")
def password_hash() -> str:
    return hash_password(TEST_PASSWORD)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'recipebox.db'}",
        jwt_secret="test-secret-key-with-enough-length-for-hs256",
        email_provider="console",
        site_url=SITE_URL,
        log_format="console",
    )


@pytest_asyncio.fixture
async def engine(settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    engine = build_engine(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest.fixture
def email_provider() -> FakeEmailProvider:
    return FakeEmailProvider()


@pytest.fixture
def dispatcher(email_provider: FakeEmailProvider) -> EmailDispatcher:
    return EmailDispatcher(
        email_provider,
        from_address="noreply@recipebox.test",
        site_url=SITE_URL,
        timeout_seconds=0.5,
    )


@pytest.fixture
def services(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    dispatcher: EmailDispatcher,
) -> AppServices:
    return AppServices.assemble(settings, session_factory, dispatcher)


@pytest.fixture
def store(services: AppServices) -> NotificationStore:
    return services.store


@pytest.fixture
def orchestrator(services: AppServices) -> NotificationOrchestrator:
    return services.orchestrator


@pytest_asyncio.fixture
async def client(services: AppServices) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to an app wired to the per-test services."""
    app = create_app(services=services)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Data builders
# ---------------------------------------------------------------------------


@pytest.fixture
def create_user(
    session_factory: async_sessionmaker[AsyncSession],
    password_hash: str,
) -> Callable[..., Awaitable[User]]:
    async def _create(
        login: str,
        name: str | None = None,
        email: str | None = None,
        role: str = ROLE_USER,
    ) -> User:
        async with session_factory() as session:
            user = User(
                login=login,
                name=name or login.title(),
                email=email,
                password_hash=password_hash,
                role=role,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _create


@pytest.fixture
def create_admin(create_user: Callable[..., Awaitable[User]]) -> Callable[..., Awaitable[User]]:
    async def _create(login: str = "admin") -> User:
        return await create_user(login, name="Admin", email="admin@recipebox.test", role=ROLE_ADMIN)

    return _create


@pytest.fixture
def create_recipe(session_factory: async_sessionmaker[AsyncSession]) -> Callable[..., Awaitable[Recipe]]:
    async def _create(user_id: int | None, title: str = "Borscht") -> Recipe:
        async with session_factory() as session:
            recipe = Recipe(user_id=user_id, title=title, description=f"How to cook {title}")
            session.add(recipe)
            await session.commit()
            await session.refresh(recipe)
            return recipe

    return _create


@pytest.fixture
def auth_headers(settings: Settings) -> Callable[[User], dict[str, str]]:
    def _headers(user: User) -> dict[str, str]:
        token = create_access_token(user.id, user.role, settings)
        return {"Authorization": f"Bearer {token}"}

    return _headers
