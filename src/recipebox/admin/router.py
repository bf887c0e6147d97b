"""Admin moderation endpoints: ban, unban and delete users."""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from recipebox.admin.schemas import BanRequest, DeleteResponse, ModerationResponse
from recipebox.admin.service import (
    AdminActionError,
    SelfModerationError,
    UserNotFoundError,
    ban_user,
    delete_user,
    unban_user,
)
from recipebox.auth.dependencies import require_admin
from recipebox.db.models import User
from recipebox.dependencies import get_orchestrator, get_session
from recipebox.email.types import EmailNotificationType
from recipebox.notifications.orchestrator import NotificationOrchestrator

router = APIRouter(prefix="/api/v1/admin", tags=["Admin"])


@router.post("/users/{user_id}/ban", response_model=ModerationResponse)
async def ban(
    user_id: int,
    body: BanRequest | None = Body(None),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
    orchestrator: NotificationOrchestrator = Depends(get_orchestrator),
) -> ModerationResponse:
    """Ban a user, anonymize their content and tell them why."""
    reason = body.reason if body is not None else None
    try:
        user = await ban_user(db, admin.id, user_id, reason)
    except SelfModerationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except AdminActionError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e

    await orchestrator.notify(
        user.id,
        EmailNotificationType.ADMIN_BAN,
        {
            "reason": user.ban_reason,
            "banned_at": user.banned_at.strftime("%Y-%m-%d %H:%M UTC") if user.banned_at else None,
        },
    )
    return ModerationResponse(
        user_id=user.id,
        is_banned=user.is_banned,
        ban_reason=user.ban_reason,
        banned_at=user.banned_at,
    )


@router.post("/users/{user_id}/unban", response_model=ModerationResponse)
async def unban(
    user_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
    orchestrator: NotificationOrchestrator = Depends(get_orchestrator),
) -> ModerationResponse:
    try:
        user = await unban_user(db, user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except AdminActionError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e

    await orchestrator.notify(user.id, EmailNotificationType.ADMIN_UNBAN, {})
    return ModerationResponse(user_id=user.id, is_banned=user.is_banned)


@router.post("/users/{user_id}/delete", response_model=DeleteResponse)
async def delete(
    user_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> DeleteResponse:
    """Delete a user with all their recipes, ratings, reviews and notifications."""
    try:
        login = await delete_user(db, admin.id, user_id)
    except SelfModerationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except AdminActionError as e:
        raise HTTPException(status_code=500, detail="Failed to delete user") from e

    return DeleteResponse(user_id=user_id, login=login)
