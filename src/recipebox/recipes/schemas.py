"""Pydantic schemas for rating and review endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RatingRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)


class RatingResponse(BaseModel):
    id: int
    recipe_id: int
    rating: int


class ReviewRequest(BaseModel):
    """A review or reply. ``author_name`` is only used for anonymous reviewers."""

    text: str = Field(..., min_length=1, max_length=5000)
    author_name: str | None = Field(None, max_length=128)
    parent_id: int | None = None


class ReviewResponse(BaseModel):
    id: int
    recipe_id: int
    author_name: str
    text: str
    parent_id: int | None = None
