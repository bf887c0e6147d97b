"""Tests for NotificationOrchestrator: in-app write first, email best-effort."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from recipebox.email.types import EmailNotificationType
from recipebox.notifications.orchestrator import NotificationOrchestrator
from recipebox.notifications.store import NotificationStore

RATING_EVENT = {"user_name": "Alice", "recipe_title": "Borscht", "rating": 5, "link": "/recipes/42"}


class _BrokenSession:
    async def __aenter__(self):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    async def __aexit__(self, *exc_info):
        return False


class _UnreachableSession:
    async def __aenter__(self):
        raise ConnectionRefusedError(111, "Connect call failed ('127.0.0.1', 5432)")

    async def __aexit__(self, *exc_info):
        return False


@pytest.mark.asyncio
async def test_new_rating_creates_row_and_email(orchestrator, store, email_provider, create_user):
    owner = await create_user("owner", email="owner@example.com")

    assert await orchestrator.notify(owner.id, EmailNotificationType.NEW_RATING, RATING_EVENT) is True

    records = await store.list_for_user(owner.id)
    assert len(records) == 1
    assert "Alice" in records[0].text
    assert "Borscht" in records[0].text
    assert "5" in records[0].text
    assert records[0].link == "/recipes/42"
    assert await store.unread_count(owner.id) == 1

    assert len(email_provider.sent) == 1
    sent = email_provider.sent[0]
    assert sent.to == "owner@example.com"
    assert sent.subject == "⭐ New rating on your recipe"
    assert "Alice" in sent.html
    assert "Borscht" in sent.html
    assert "5" in sent.html


@pytest.mark.asyncio
async def test_email_failure_keeps_in_app_notification(orchestrator, store, email_provider, create_user):
    owner = await create_user("owner", email="owner@example.com")
    email_provider.fail = True

    assert await orchestrator.notify(owner.id, EmailNotificationType.NEW_RATING, RATING_EVENT) is True

    assert await store.unread_count(owner.id) == 1
    assert email_provider.sent == []


@pytest.mark.asyncio
async def test_email_timeout_keeps_in_app_notification(orchestrator, store, email_provider, create_user):
    owner = await create_user("owner", email="owner@example.com")
    email_provider.delay = 2.0

    assert await orchestrator.notify(owner.id, EmailNotificationType.WELCOME, {"user_name": "Owner"}) is True
    assert await store.unread_count(owner.id) == 1


@pytest.mark.asyncio
async def test_no_email_address_means_no_email(orchestrator, store, email_provider, create_user):
    owner = await create_user("owner", email=None)

    assert await orchestrator.notify(owner.id, EmailNotificationType.WELCOME, {"user_name": "Owner"}) is True

    assert await store.unread_count(owner.id) == 1
    assert email_provider.sent == []


@pytest.mark.asyncio
async def test_send_email_flag_off(orchestrator, store, email_provider, create_user):
    owner = await create_user("owner", email="owner@example.com")

    await orchestrator.notify(owner.id, EmailNotificationType.ADMIN_UNBAN, {}, send_email=False)

    records = await store.list_for_user(owner.id)
    assert records[0].text == "Your account has been unbanned by an administrator"
    assert email_provider.sent == []


@pytest.mark.asyncio
async def test_unknown_target_user(orchestrator, email_provider):
    assert await orchestrator.notify(424242, EmailNotificationType.WELCOME, {"user_name": "Ghost"}) is False
    assert email_provider.sent == []


@pytest.mark.asyncio
async def test_generic_event_without_data(orchestrator, store, create_user):
    owner = await create_user("owner")
    assert await orchestrator.notify(owner.id, EmailNotificationType.RECIPE_UPDATED) is True
    records = await store.list_for_user(owner.id)
    assert records[0].text == "New notification"
    assert records[0].link is None


@pytest.mark.asyncio
async def test_storage_failure_is_reported_not_raised(session_factory, dispatcher, email_provider, create_user):
    owner = await create_user("owner", email="owner@example.com")
    broken_store = NotificationStore(lambda: _BrokenSession())
    orchestrator = NotificationOrchestrator(session_factory, broken_store, dispatcher)

    assert await orchestrator.notify(owner.id, EmailNotificationType.NEW_RATING, RATING_EVENT) is False
    # email delivery does not depend on the in-app write
    assert len(email_provider.sent) == 1


@pytest.mark.asyncio
async def test_recipient_lookup_failure_is_reported_not_raised(store, dispatcher, email_provider):
    orchestrator = NotificationOrchestrator(lambda: _BrokenSession(), store, dispatcher)
    assert await orchestrator.notify(1, EmailNotificationType.WELCOME, {"user_name": "x"}) is False
    assert email_provider.sent == []


@pytest.mark.asyncio
async def test_unreachable_database_on_lookup_is_reported_not_raised(store, dispatcher, email_provider):
    orchestrator = NotificationOrchestrator(_UnreachableSession, store, dispatcher)
    assert await orchestrator.notify(1, EmailNotificationType.WELCOME, {"user_name": "x"}) is False
    assert email_provider.sent == []


@pytest.mark.asyncio
async def test_unreachable_database_on_write_is_reported_not_raised(
    session_factory, dispatcher, email_provider, create_user
):
    owner = await create_user("owner", email="owner@example.com")
    orchestrator = NotificationOrchestrator(session_factory, NotificationStore(_UnreachableSession), dispatcher)

    assert await orchestrator.notify(owner.id, EmailNotificationType.NEW_RATING, RATING_EVENT) is False
    assert len(email_provider.sent) == 1


@pytest.mark.asyncio
async def test_unrenderable_email_keeps_in_app_notification(orchestrator, store, email_provider, create_user):
    owner = await create_user("owner", email="owner@example.com")

    stored = await orchestrator.notify(owner.id, EmailNotificationType.ADMIN_ACTION, {"message": "hi", "link": 42})

    assert stored is True
    assert await store.unread_count(owner.id) == 1
    assert email_provider.sent == []


@pytest.mark.asyncio
async def test_dispatcher_crash_does_not_escape_notify(orchestrator, store, email_provider, create_user, monkeypatch):
    owner = await create_user("owner", email="owner@example.com")

    async def explode(*args, **kwargs):
        msg = "provider exploded"
        raise RuntimeError(msg)

    monkeypatch.setattr(orchestrator.dispatcher, "send_notification", explode)

    assert await orchestrator.notify(owner.id, EmailNotificationType.RECIPE_UPDATED, {"message": "hi"}) is True
    assert await store.unread_count(owner.id) == 1
