"""User registration and login business logic."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from recipebox.auth.password import hash_password, validate_new_password, verify_password
from recipebox.db.models import ROLE_USER, User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


class DuplicateUserError(ValueError):
    """Login or email already taken."""


class InvalidCredentialsError(ValueError):
    """Unknown login or wrong password."""


class BannedUserError(PermissionError):
    """The account is banned."""

    def __init__(self, reason: str | None) -> None:
        self.reason = reason
        super().__init__(f"Your account is banned. Reason: {reason or 'not specified'}")


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_login(db: AsyncSession, login: str) -> User | None:
    result = await db.execute(select(User).where(User.login == login))
    return result.scalar_one_or_none()


async def register_user(
    db: AsyncSession,
    login: str,
    name: str,
    email: str | None,
    password: str,
    password_confirm: str,
) -> User:
    """
    Register a new user with the 'user' role.

    Raises:
        PasswordValidationError: If the passwords differ or are too short/long.
        DuplicateUserError: If the login or email is already registered.
    """
    validate_new_password(password, password_confirm)

    email = email.lower().strip() if email else None
    conditions = [User.login == login]
    if email:
        conditions.append(User.email == email)
    existing = await db.execute(select(User.id).where(or_(*conditions)).limit(1))
    if existing.first() is not None:
        msg = "A user with this email or login already exists"
        raise DuplicateUserError(msg)

    user = User(
        login=login,
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=ROLE_USER,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        msg = "A user with this email or login already exists"
        raise DuplicateUserError(msg) from e
    await db.refresh(user)

    logger.info("user_created", user_id=user.id, login=login)
    return user


async def authenticate(db: AsyncSession, login: str, password: str) -> User:
    """
    Check login credentials.

    Raises:
        InvalidCredentialsError: Unknown login or wrong password.
        BannedUserError: The account is banned (checked before the password).
    """
    user = await get_user_by_login(db, login)
    if user is None:
        msg = "Invalid login or password"
        raise InvalidCredentialsError(msg)
    if user.is_banned:
        raise BannedUserError(user.ban_reason)
    if not verify_password(password, user.password_hash):
        msg = "Invalid login or password"
        raise InvalidCredentialsError(msg)
    return user
