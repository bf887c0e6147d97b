"""Turn domain events into in-app notifications and emails.

Callers commit the business fact first (the rating, the ban, ...) and only
then call notify(). Self-action exclusion and reviewer identity are the
caller's responsibility; the orchestrator trusts the event data it is given.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from recipebox.db.models import User
from recipebox.email.service import EmailDispatcher
from recipebox.email.types import EmailNotificationType
from recipebox.notifications.store import STORAGE_ERRORS, NotificationStore

logger = structlog.get_logger()

DEFAULT_TEXT = "New notification"


def _generic_text(data: Mapping[str, Any]) -> str:
    return data.get("message") or DEFAULT_TEXT


IN_APP_TEXT: dict[EmailNotificationType, Callable[[Mapping[str, Any]], str]] = {
    EmailNotificationType.NEW_RATING: lambda d: (
        f'{d.get("user_name")} rated your recipe "{d.get("recipe_title")}" {d.get("rating")} ⭐'
    ),
    EmailNotificationType.NEW_REVIEW: lambda d: (
        f'{d.get("user_name")} left a review on your recipe "{d.get("recipe_title")}"'
    ),
    EmailNotificationType.ADMIN_BAN: lambda d: (
        f"Your account has been banned by an administrator. Reason: {d.get('reason') or 'not specified'}"
    ),
    EmailNotificationType.ADMIN_UNBAN: lambda _d: "Your account has been unbanned by an administrator",
    EmailNotificationType.WELCOME: lambda d: f"Welcome to RecipeBox, {d.get('user_name')}!",
    EmailNotificationType.ADMIN_ACTION: _generic_text,
    EmailNotificationType.RECIPE_UPDATED: _generic_text,
}


def in_app_text(type_: EmailNotificationType | str, data: Mapping[str, Any]) -> str:
    """Deterministic in-app text for an event."""
    try:
        known = EmailNotificationType(type_)
    except ValueError:
        return _generic_text(data)
    return IN_APP_TEXT[known](data)


@dataclass(frozen=True)
class Recipient:
    user_id: int
    name: str
    email: str | None


class NotificationOrchestrator:
    """Single entry point from domain events to notification delivery."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        store: NotificationStore,
        dispatcher: EmailDispatcher,
    ) -> None:
        self._session_factory = session_factory
        self.store = store
        self.dispatcher = dispatcher

    async def _resolve_recipient(self, user_id: int) -> Recipient | None:
        async with self._session_factory() as session:
            result = await session.execute(select(User.id, User.name, User.email).where(User.id == user_id))
            row = result.one_or_none()
        if row is None:
            return None
        return Recipient(user_id=row.id, name=row.name, email=row.email)

    async def notify(
        self,
        target_user_id: int,
        event_type: EmailNotificationType | str,
        event_data: Mapping[str, Any] | None = None,
        send_email: bool = True,
    ) -> bool:
        """
        Persist an in-app notification and optionally email the target.

        The in-app write is awaited before any email work starts. Email
        failure does not undo the in-app notification. Never raises.

        Returns:
            True if the in-app notification was stored.
        """
        data: Mapping[str, Any] = event_data or {}
        log = logger.bind(user_id=target_user_id, event_type=str(getattr(event_type, "value", event_type)))

        try:
            recipient = await self._resolve_recipient(target_user_id)
        except STORAGE_ERRORS:
            log.exception("notify_recipient_lookup_failed")
            return False
        if recipient is None:
            log.warning("notify_recipient_not_found")
            return False

        stored = await self.store.create(recipient.user_id, in_app_text(event_type, data), data.get("link"))
        if not stored:
            log.warning("notify_in_app_not_stored")

        if send_email and recipient.email:
            try:
                sent = await self.dispatcher.send_notification(recipient.email, event_type, data)
            except Exception:
                log.exception("notify_email_failed", email=recipient.email)
                sent = False
            if sent:
                log.info("notify_email_sent", email=recipient.email)
            else:
                log.warning("notify_email_not_sent", email=recipient.email)

        return stored
