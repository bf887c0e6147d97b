"""Closed set of notification event types shared by in-app and email delivery."""

from enum import Enum


class EmailNotificationType(str, Enum):
    NEW_RATING = "NEW_RATING"
    NEW_REVIEW = "NEW_REVIEW"
    ADMIN_BAN = "ADMIN_BAN"
    ADMIN_UNBAN = "ADMIN_UNBAN"
    ADMIN_ACTION = "ADMIN_ACTION"
    RECIPE_UPDATED = "RECIPE_UPDATED"
    WELCOME = "WELCOME"
