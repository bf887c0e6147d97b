"""Pydantic schemas for admin moderation endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class BanRequest(BaseModel):
    reason: str | None = Field(None, max_length=512)


class ModerationResponse(BaseModel):
    user_id: int
    is_banned: bool
    ban_reason: str | None = None
    banned_at: datetime | None = None


class DeleteResponse(BaseModel):
    user_id: int
    login: str
    deleted: bool = True
