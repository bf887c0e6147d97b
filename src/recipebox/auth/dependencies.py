"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from recipebox.auth.jwt import verify_token
from recipebox.config import Settings
from recipebox.db.models import User
from recipebox.dependencies import get_app_settings, get_session
from recipebox.users.service import get_user_by_id

_bearer = HTTPBearer()
_optional_bearer = HTTPBearer(auto_error=False)


async def _user_from_token(token: str, db: AsyncSession, settings: Settings) -> User:
    try:
        payload = verify_token(token, settings)
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    user = await get_user_by_id(db, int(payload["sub"]))
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    if user.is_banned:
        raise HTTPException(status_code=403, detail="Account is banned")
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(_bearer),
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> User:
    """
    Extract and verify JWT, return User model.

    Raises 401 on a bad token or unknown user, 403 once the user is banned.
    """
    return await _user_from_token(credentials.credentials, db, settings)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_optional_bearer),
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> User | None:
    """Like get_current_user, but anonymous requests yield None."""
    if credentials is None:
        return None
    return await _user_from_token(credentials.credentials, db, settings)


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Reject non-admin users with 403."""
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Administrator access required")
    return user
