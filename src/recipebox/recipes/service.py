"""Rating and review business rules.

These functions flush but do not commit; the request handler commits the
business fact and only then notifies the recipe owner.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from recipebox.db.models import Rating, Recipe, Review, User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

MIN_SCORE = 1
MAX_SCORE = 5


class RecipeNotFoundError(LookupError):
    """The recipe does not exist."""


class SelfRatingError(PermissionError):
    """A user tried to rate their own recipe."""


class DuplicateRatingError(Exception):
    """The user has already rated this recipe."""


class ReviewValidationError(ValueError):
    """Review identity or threading rules were violated."""


@dataclass(frozen=True)
class RatingOutcome:
    rating: Rating
    recipe: Recipe
    notify_user_id: int | None


@dataclass(frozen=True)
class ReviewOutcome:
    review: Review
    recipe: Recipe
    reviewer_name: str
    notify_user_id: int | None


def recipe_link(recipe_id: int) -> str:
    return f"/recipes/{recipe_id}"


async def get_recipe(db: AsyncSession, recipe_id: int) -> Recipe:
    result = await db.execute(select(Recipe).where(Recipe.id == recipe_id))
    recipe = result.scalar_one_or_none()
    if recipe is None:
        msg = f"Recipe {recipe_id} not found"
        raise RecipeNotFoundError(msg)
    return recipe


async def _has_rated(db: AsyncSession, recipe_id: int, user_id: int) -> bool:
    result = await db.execute(
        select(Rating.id).where(Rating.recipe_id == recipe_id, Rating.user_id == user_id)
    )
    return result.first() is not None


async def rate_recipe(db: AsyncSession, recipe_id: int, user: User, score: int) -> RatingOutcome:
    """
    Record a user's score for a recipe.

    The (recipe, user) unique constraint is the only serialization point
    between concurrent submissions; the losing insert is reported as
    DuplicateRatingError.

    Raises:
        RecipeNotFoundError: Unknown recipe.
        SelfRatingError: The user owns the recipe (nothing is written).
        ValueError: Score outside 1..5.
        DuplicateRatingError: The pair is already rated.
    """
    user_id = user.id
    recipe = await get_recipe(db, recipe_id)
    if recipe.user_id is not None and recipe.user_id == user_id:
        msg = "You cannot rate your own recipe"
        raise SelfRatingError(msg)
    if not MIN_SCORE <= score <= MAX_SCORE:
        msg = f"Rating must be between {MIN_SCORE} and {MAX_SCORE}"
        raise ValueError(msg)

    rating = Rating(recipe_id=recipe_id, user_id=user_id, rating=score)
    db.add(rating)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        if await _has_rated(db, recipe_id, user_id):
            msg = "You have already rated this recipe"
            raise DuplicateRatingError(msg) from e
        raise

    logger.info("recipe_rated", recipe_id=recipe_id, user_id=user_id, rating=score)
    return RatingOutcome(rating=rating, recipe=recipe, notify_user_id=recipe.user_id)


async def add_review(
    db: AsyncSession,
    recipe_id: int,
    user: User | None,
    text: str,
    author_name: str | None = None,
    parent_id: int | None = None,
) -> ReviewOutcome:
    """
    Add a review or a single-level reply.

    Registered reviewers are identified by user_id (author_name is ignored);
    guests must supply author_name. A reply's parent must be a top-level
    review of the same recipe.

    Raises:
        RecipeNotFoundError: Unknown recipe.
        ReviewValidationError: Empty text, missing guest name, or bad parent.
    """
    recipe = await get_recipe(db, recipe_id)

    text = (text or "").strip()
    if not text:
        msg = "Review text cannot be empty"
        raise ReviewValidationError(msg)

    if user is not None:
        reviewer_name = user.name
        guest_name = None
    else:
        guest_name = (author_name or "").strip()
        if not guest_name:
            msg = "Anonymous reviews require an author name"
            raise ReviewValidationError(msg)
        reviewer_name = guest_name

    if parent_id is not None:
        result = await db.execute(select(Review).where(Review.id == parent_id))
        parent = result.scalar_one_or_none()
        if parent is None or parent.recipe_id != recipe.id:
            msg = "Parent review not found for this recipe"
            raise ReviewValidationError(msg)
        if parent.parent_id is not None:
            msg = "Replies cannot be nested more than one level"
            raise ReviewValidationError(msg)

    review = Review(
        recipe_id=recipe.id,
        user_id=user.id if user is not None else None,
        author_name=guest_name,
        text=text,
        parent_id=parent_id,
    )
    db.add(review)
    await db.flush()

    reviewer_id = user.id if user is not None else None
    notify_user_id = recipe.user_id if recipe.user_id is not None and recipe.user_id != reviewer_id else None

    logger.info("review_added", recipe_id=recipe.id, review_id=review.id, user_id=reviewer_id)
    return ReviewOutcome(review=review, recipe=recipe, reviewer_name=reviewer_name, notify_user_id=notify_user_id)
