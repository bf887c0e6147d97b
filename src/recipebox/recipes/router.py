"""Rating and review endpoints.

Each handler commits the rating or review first and only then notifies the
recipe owner, so a notification never refers to a rolled-back fact.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from recipebox.auth.dependencies import get_current_user, get_optional_user
from recipebox.db.models import User
from recipebox.dependencies import get_orchestrator, get_session
from recipebox.email.types import EmailNotificationType
from recipebox.notifications.orchestrator import NotificationOrchestrator
from recipebox.recipes.schemas import RatingRequest, RatingResponse, ReviewRequest, ReviewResponse
from recipebox.recipes.service import (
    DuplicateRatingError,
    RecipeNotFoundError,
    ReviewValidationError,
    SelfRatingError,
    add_review,
    rate_recipe,
    recipe_link,
)

router = APIRouter(prefix="/api/v1/recipes", tags=["Recipes"])


@router.post("/{recipe_id}/rating", response_model=RatingResponse, status_code=201)
async def submit_rating(
    recipe_id: int,
    body: RatingRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    orchestrator: NotificationOrchestrator = Depends(get_orchestrator),
) -> RatingResponse:
    """Rate a recipe once. Owners cannot rate their own recipes."""
    user_name = user.name
    try:
        outcome = await rate_recipe(db, recipe_id, user, body.rating)
    except RecipeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except SelfRatingError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    except DuplicateRatingError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    await db.commit()

    if outcome.notify_user_id is not None:
        await orchestrator.notify(
            outcome.notify_user_id,
            EmailNotificationType.NEW_RATING,
            {
                "user_name": user_name,
                "recipe_title": outcome.recipe.title,
                "rating": outcome.rating.rating,
                "link": recipe_link(outcome.recipe.id),
            },
        )

    return RatingResponse(id=outcome.rating.id, recipe_id=outcome.recipe.id, rating=outcome.rating.rating)


@router.post("/{recipe_id}/reviews", response_model=ReviewResponse, status_code=201)
async def submit_review(
    recipe_id: int,
    body: ReviewRequest,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
    orchestrator: NotificationOrchestrator = Depends(get_orchestrator),
) -> ReviewResponse:
    """Leave a review or a reply; anonymous visitors must give a name."""
    try:
        outcome = await add_review(
            db,
            recipe_id,
            user,
            body.text,
            author_name=body.author_name,
            parent_id=body.parent_id,
        )
    except RecipeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ReviewValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    await db.commit()

    if outcome.notify_user_id is not None:
        await orchestrator.notify(
            outcome.notify_user_id,
            EmailNotificationType.NEW_REVIEW,
            {
                "user_name": outcome.reviewer_name,
                "recipe_title": outcome.recipe.title,
                "review_text": outcome.review.text,
                "link": recipe_link(outcome.recipe.id),
            },
        )

    return ReviewResponse(
        id=outcome.review.id,
        recipe_id=outcome.recipe.id,
        author_name=outcome.reviewer_name,
        text=outcome.review.text,
        parent_id=outcome.review.parent_id,
    )
