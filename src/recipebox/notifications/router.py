"""Notification API endpoints.

Reads degrade to empty results when storage is unavailable; mutations
report ``{"success": false}`` instead of an error status.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from recipebox.auth.dependencies import get_current_user
from recipebox.config import Settings
from recipebox.db.models import User
from recipebox.dependencies import get_app_settings, get_store
from recipebox.notifications.schemas import (
    NotificationHeaderResponse,
    NotificationListResponse,
    NotificationResponse,
    SuccessResponse,
    UnreadCountResponse,
)
from recipebox.notifications.store import NotificationStore, load_header

router = APIRouter(prefix="/api/v1", tags=["Notifications"])


@router.get("/notifications", response_model=NotificationListResponse)
async def list_notifications(
    limit: int | None = Query(None, ge=1, le=200),
    user: User = Depends(get_current_user),
    store: NotificationStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> NotificationListResponse:
    """Newest-first notifications of the current user."""
    records = await store.list_for_user(user.id, limit or settings.notification_page_limit)
    unread = await store.unread_count(user.id)
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(r) for r in records],
        unread_count=unread,
    )


@router.get("/notifications/header", response_model=NotificationHeaderResponse)
async def notification_header(
    user: User = Depends(get_current_user),
    store: NotificationStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> NotificationHeaderResponse:
    """Unread count and latest items for the page header."""
    header = await load_header(store, user.id, settings.notification_header_limit)
    return NotificationHeaderResponse(
        unread_count=header.unread_count,
        notifications=[NotificationResponse.model_validate(r) for r in header.recent],
    )


@router.get("/notifications/count", response_model=UnreadCountResponse)
async def unread_count(
    user: User = Depends(get_current_user),
    store: NotificationStore = Depends(get_store),
) -> UnreadCountResponse:
    return UnreadCountResponse(unread_count=await store.unread_count(user.id))


@router.post("/notifications/{notification_id}/read", response_model=SuccessResponse)
async def mark_notification_read(
    notification_id: int,
    user: User = Depends(get_current_user),
    store: NotificationStore = Depends(get_store),
) -> SuccessResponse:
    """Mark one of the caller's notifications read. Foreign ids are ignored."""
    return SuccessResponse(success=await store.mark_read(notification_id, user.id))


@router.post("/notifications/read-all", response_model=SuccessResponse)
async def mark_all_read(
    user: User = Depends(get_current_user),
    store: NotificationStore = Depends(get_store),
) -> SuccessResponse:
    return SuccessResponse(success=await store.mark_all_read(user.id))
