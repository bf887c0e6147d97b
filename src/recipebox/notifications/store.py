"""Notification persistence.

Every ``try_*`` method returns a StoreResult carrying either a value or the
StorageFault that prevented it. The plain methods collapse faults to safe
defaults (False, empty list, zero) so that notification reads never break
the page being rendered; the fault is still logged.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Generic, TypeVar

import structlog
from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from recipebox.db.models import Notification

logger = structlog.get_logger()

T = TypeVar("T")

# Driver-level connection failures (asyncpg raises these unwrapped) count as
# storage faults alongside SQLAlchemy errors.
STORAGE_ERRORS: tuple[type[BaseException], ...] = (SQLAlchemyError, OSError, TimeoutError)


class StorageFault(Exception):
    """A notification storage operation could not be completed."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(f"{operation} failed: {cause}")
        self.operation = operation
        self.cause = cause


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    value: T | None = None
    fault: StorageFault | None = None

    @property
    def ok(self) -> bool:
        return self.fault is None

    def unwrap_or(self, default: T) -> T:
        if self.fault is not None or self.value is None:
            return default
        return self.value


@dataclass(frozen=True)
class NotificationRecord:
    """Read-side view of a notification row."""

    id: int
    user_id: int
    text: str
    link: str | None
    is_read: bool
    created_at: datetime

    @classmethod
    def from_row(cls, row: Notification) -> NotificationRecord:
        return cls(
            id=row.id,
            user_id=row.user_id,
            text=row.text,
            link=row.link,
            is_read=row.is_read,
            created_at=row.created_at,
        )


class NotificationStore:
    """CRUD over the notifications table, one short transaction per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Result-returning core
    # ------------------------------------------------------------------

    async def try_create(self, user_id: int, text: str, link: str | None = None) -> StoreResult[int]:
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(
                    insert(Notification)
                    .values(user_id=user_id, text=text, link=link, is_read=False)
                    .returning(Notification.id)
                )
                notification_id = result.scalar_one()
        except STORAGE_ERRORS as exc:
            return StoreResult(fault=StorageFault("create", exc))
        return StoreResult(value=notification_id)

    async def try_list_for_user(self, user_id: int, limit: int) -> StoreResult[list[NotificationRecord]]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Notification)
                    .where(Notification.user_id == user_id)
                    .order_by(Notification.created_at.desc(), Notification.id.desc())
                    .limit(limit)
                )
                rows = [NotificationRecord.from_row(n) for n in result.scalars().all()]
        except STORAGE_ERRORS as exc:
            return StoreResult(fault=StorageFault("list_for_user", exc))
        return StoreResult(value=rows)

    async def try_unread_count(self, user_id: int) -> StoreResult[int]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(func.count())
                    .select_from(Notification)
                    .where(Notification.user_id == user_id, Notification.is_read.is_(False))
                )
                count = result.scalar_one()
        except STORAGE_ERRORS as exc:
            return StoreResult(fault=StorageFault("unread_count", exc))
        return StoreResult(value=count)

    async def try_mark_read(self, notification_id: int, user_id: int) -> StoreResult[int]:
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(
                    update(Notification)
                    .where(Notification.id == notification_id, Notification.user_id == user_id)
                    .values(is_read=True)
                )
                updated = result.rowcount
        except STORAGE_ERRORS as exc:
            return StoreResult(fault=StorageFault("mark_read", exc))
        return StoreResult(value=updated)

    async def try_mark_all_read(self, user_id: int) -> StoreResult[int]:
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(
                    update(Notification)
                    .where(Notification.user_id == user_id, Notification.is_read.is_(False))
                    .values(is_read=True)
                )
                updated = result.rowcount
        except STORAGE_ERRORS as exc:
            return StoreResult(fault=StorageFault("mark_all_read", exc))
        return StoreResult(value=updated)

    # ------------------------------------------------------------------
    # Fault-collapsing adapters
    # ------------------------------------------------------------------

    async def create(self, user_id: int, text: str, link: str | None = None) -> bool:
        """Insert an unread notification. Returns False (logged) if the write failed."""
        result = await self.try_create(user_id, text, link)
        if result.fault is not None:
            if isinstance(result.fault.cause, IntegrityError):
                logger.warning("notification_owner_missing", user_id=user_id)
            else:
                logger.error("notification_create_failed", user_id=user_id, error=str(result.fault))
            return False
        logger.info("notification_created", user_id=user_id, notification_id=result.value)
        return True

    async def list_for_user(self, user_id: int, limit: int = 10) -> list[NotificationRecord]:
        """Newest-first notifications for a user, or [] if storage is unavailable."""
        result = await self.try_list_for_user(user_id, limit)
        if result.fault is not None:
            logger.error("notification_list_failed", user_id=user_id, error=str(result.fault))
        return result.unwrap_or([])

    async def unread_count(self, user_id: int) -> int:
        """Unread notification count, or 0 if storage is unavailable."""
        result = await self.try_unread_count(user_id)
        if result.fault is not None:
            logger.error("notification_count_failed", user_id=user_id, error=str(result.fault))
        return result.unwrap_or(0)

    async def mark_read(self, notification_id: int, user_id: int) -> bool:
        """
        Mark one notification read if it belongs to ``user_id``.

        A foreign or unknown id is a silent no-op and still returns True;
        False means the storage call itself failed.
        """
        result = await self.try_mark_read(notification_id, user_id)
        if result.fault is not None:
            logger.error(
                "notification_mark_read_failed",
                notification_id=notification_id,
                user_id=user_id,
                error=str(result.fault),
            )
            return False
        return True

    async def mark_all_read(self, user_id: int) -> bool:
        """Mark every unread notification of the user read."""
        result = await self.try_mark_all_read(user_id)
        if result.fault is not None:
            logger.error("notification_mark_all_read_failed", user_id=user_id, error=str(result.fault))
            return False
        return True


@dataclass(frozen=True)
class NotificationHeader:
    """What every authenticated page shows: unread badge plus latest items."""

    unread_count: int = 0
    recent: tuple[NotificationRecord, ...] = ()


async def load_header(store: NotificationStore, user_id: int | None, limit: int = 5) -> NotificationHeader:
    """Header context for a page render; anonymous visitors get an empty header."""
    if user_id is None:
        return NotificationHeader()
    count = await store.unread_count(user_id)
    recent = await store.list_for_user(user_id, limit)
    return NotificationHeader(unread_count=count, recent=tuple(recent))
