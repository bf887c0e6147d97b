"""Pydantic schemas for notification endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: int
    text: str
    link: str | None = None
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    unread_count: int


class NotificationHeaderResponse(BaseModel):
    """Unread badge plus the latest few notifications for the page header."""

    unread_count: int
    notifications: list[NotificationResponse]


class UnreadCountResponse(BaseModel):
    unread_count: int


class SuccessResponse(BaseModel):
    success: bool
