"""Administrator moderation: ban, unban and cascading delete of users."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError

from recipebox.db.models import (
    Notification,
    Rating,
    Recipe,
    RecipeCategory,
    RecipeStep,
    Review,
    User,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

DEFAULT_BAN_REASON = "No reason given"


class AdminActionError(Exception):
    """A moderation action failed and was rolled back."""


class SelfModerationError(PermissionError):
    """An administrator tried to ban or delete their own account."""


class UserNotFoundError(LookupError):
    """The target user does not exist."""


async def _get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        msg = f"User {user_id} not found"
        raise UserNotFoundError(msg)
    return user


async def ban_user(db: AsyncSession, admin_id: int, user_id: int, reason: str | None = None) -> User:
    """
    Ban a user and strip attribution from their content.

    Recipes and reviews are kept but re-owned to anonymous (user_id NULL);
    the user's ratings are deleted. Commits on success.

    Raises:
        SelfModerationError: admin_id == user_id.
        UserNotFoundError: Unknown user.
        AdminActionError: The database rejected the change (rolled back).
    """
    if admin_id == user_id:
        msg = "You cannot ban your own account"
        raise SelfModerationError(msg)

    user = await _get_user(db, user_id)
    try:
        user.is_banned = True
        user.ban_reason = (reason or "").strip() or DEFAULT_BAN_REASON
        user.banned_at = datetime.now(timezone.utc)
        await db.execute(update(Recipe).where(Recipe.user_id == user_id).values(user_id=None))
        await db.execute(delete(Rating).where(Rating.user_id == user_id))
        await db.execute(update(Review).where(Review.user_id == user_id).values(user_id=None))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("user_ban_failed", user_id=user_id, admin_id=admin_id)
        msg = "Failed to ban user"
        raise AdminActionError(msg) from e

    logger.info("user_banned", user_id=user_id, admin_id=admin_id, reason=user.ban_reason)
    return user


async def unban_user(db: AsyncSession, user_id: int) -> User:
    """Clear the ban flags. Content anonymized by the ban stays anonymous."""
    user = await _get_user(db, user_id)
    try:
        user.is_banned = False
        user.ban_reason = None
        user.banned_at = None
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("user_unban_failed", user_id=user_id)
        msg = "Failed to unban user"
        raise AdminActionError(msg) from e

    logger.info("user_unbanned", user_id=user_id)
    return user


async def delete_user(db: AsyncSession, admin_id: int, user_id: int) -> str:
    """
    Hard-delete a user and everything they own in one transaction.

    Order: steps, recipe-category links, ratings and reviews on the user's
    recipes, the recipes, ratings and reviews by the user, notifications,
    the user. Any failure rolls the whole deletion back.

    Returns:
        The deleted user's login.

    Raises:
        SelfModerationError: admin_id == user_id.
        UserNotFoundError: Unknown user.
        AdminActionError: Any statement failed; nothing was changed.
    """
    if admin_id == user_id:
        msg = "You cannot delete your own account"
        raise SelfModerationError(msg)

    user = await _get_user(db, user_id)
    login = user.login
    try:
        recipe_ids = select(Recipe.id).where(Recipe.user_id == user_id)
        await db.execute(delete(RecipeStep).where(RecipeStep.recipe_id.in_(recipe_ids)))
        await db.execute(delete(RecipeCategory).where(RecipeCategory.recipe_id.in_(recipe_ids)))
        await db.execute(delete(Rating).where(Rating.recipe_id.in_(recipe_ids)))
        await db.execute(delete(Review).where(Review.recipe_id.in_(recipe_ids)))
        await db.execute(delete(Recipe).where(Recipe.user_id == user_id))
        await db.execute(delete(Rating).where(Rating.user_id == user_id))
        await db.execute(delete(Review).where(Review.user_id == user_id))
        await db.execute(delete(Notification).where(Notification.user_id == user_id))
        await db.execute(delete(User).where(User.id == user_id))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("user_delete_failed", user_id=user_id, admin_id=admin_id)
        msg = "Failed to delete user"
        raise AdminActionError(msg) from e

    logger.info("user_deleted", user_id=user_id, login=login, admin_id=admin_id)
    return login
