"""Authentication router: /api/v1/auth/register and /api/v1/auth/login."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from recipebox.auth.jwt import create_access_token
from recipebox.auth.password import PasswordValidationError
from recipebox.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from recipebox.config import Settings
from recipebox.db.models import User
from recipebox.dependencies import get_app_settings, get_orchestrator, get_session
from recipebox.email.types import EmailNotificationType
from recipebox.notifications.orchestrator import NotificationOrchestrator
from recipebox.users.service import (
    BannedUserError,
    DuplicateUserError,
    InvalidCredentialsError,
    authenticate,
    register_user,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


def _issue_token(user: User, settings: Settings) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id, user.role, settings),
        token_type="bearer",
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
    orchestrator: NotificationOrchestrator = Depends(get_orchestrator),
) -> TokenResponse:
    """Register a user, then send the welcome notification."""
    try:
        user = await register_user(
            db,
            login=body.login,
            name=body.name,
            email=body.email,
            password=body.password,
            password_confirm=body.password_confirm,
        )
    except PasswordValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except DuplicateUserError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    await db.commit()

    await orchestrator.notify(user.id, EmailNotificationType.WELCOME, {"user_name": user.name})
    return _issue_token(user, settings)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> TokenResponse:
    """Login with login + password."""
    try:
        user = await authenticate(db, body.login, body.password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    except BannedUserError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e

    logger.info("user_logged_in", user_id=user.id)
    return _issue_token(user, settings)
