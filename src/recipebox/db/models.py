"""ORM models for users, recipes, ratings, reviews and notifications."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    false,
    func,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from recipebox.db.base import Base

# SQLite only autoincrements INTEGER PRIMARY KEY columns
PrimaryKey = BigInteger().with_variant(Integer(), "sqlite")

ROLE_USER = "user"
ROLE_ADMIN = "admin"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Maps to the 'users' table."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(PrimaryKey, primary_key=True, autoincrement=True)
    login: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320), unique=True, nullable=True)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=ROLE_USER, server_default=ROLE_USER)
    is_banned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    ban_reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    banned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


# ---------------------------------------------------------------------------
# Recipes
# ---------------------------------------------------------------------------


class Category(Base):
    """Recipe category; inactive categories are hidden from non-admin views."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(PrimaryKey, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())


class RecipeCategory(Base):
    """Association between recipes and categories."""

    __tablename__ = "recipe_categories"

    recipe_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("recipes.id"), primary_key=True)
    category_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("categories.id"), primary_key=True)


class Recipe(Base):
    """A published recipe. ``user_id`` is null once the author is anonymized."""

    __tablename__ = "recipes"

    id: Mapped[int] = mapped_column(PrimaryKey, primary_key=True, autoincrement=True)
    user_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    cooking_time: Mapped[int | None] = mapped_column(Integer, nullable=True)
    image: Mapped[str | None] = mapped_column(String(512), nullable=True)
    ingredients_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())

    steps: Mapped[list[RecipeStep]] = relationship(
        "RecipeStep", order_by="RecipeStep.step_number", lazy="selectin"
    )


class RecipeStep(Base):
    """Ordered cooking step with an optional image."""

    __tablename__ = "recipe_steps"

    id: Mapped[int] = mapped_column(PrimaryKey, primary_key=True, autoincrement=True)
    recipe_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("recipes.id"), nullable=False, index=True)
    step_number: Mapped[int] = mapped_column(Integer, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    image: Mapped[str | None] = mapped_column(String(512), nullable=True)


# ---------------------------------------------------------------------------
# Ratings & reviews
# ---------------------------------------------------------------------------


class Rating(Base):
    """One score per (recipe, user) pair."""

    __tablename__ = "ratings"
    __table_args__ = (UniqueConstraint("recipe_id", "user_id", name="uq_ratings_recipe_user"),)

    id: Mapped[int] = mapped_column(PrimaryKey, primary_key=True, autoincrement=True)
    recipe_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("recipes.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False, index=True)
    rating: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Review(Base):
    """Recipe review by a registered user (user_id) or a guest (author_name)."""

    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(PrimaryKey, primary_key=True, autoincrement=True)
    recipe_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("recipes.id"), nullable=False, index=True)
    user_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    author_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=True
    )
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class Notification(Base):
    """Persisted in-app notification owned by a single user."""

    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_user_unread", "user_id", "is_read"),)

    id: Mapped[int] = mapped_column(PrimaryKey, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    link: Mapped[str | None] = mapped_column(String(512), nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
