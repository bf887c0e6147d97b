"""
Email templates for RecipeBox notifications.

All templates use inline CSS for maximum email client compatibility.
Branded with a warm orange (#FF7043) header.

Every notification type maps to a subject line and a content fragment
builder. Fragments are wrapped in the shared branded layout by base_layout().
"""

from __future__ import annotations

import html
import re
from collections.abc import Callable, Mapping
from typing import Any

from recipebox.email.types import EmailNotificationType

# Color constants
ORANGE = "#FF7043"
ORANGE_DARK = "#FF5722"
BG_PAGE = "#F9F9F9"
BG_CARD = "#FFFFFF"
BG_QUOTE = "#F0F0F0"
TEXT_PRIMARY = "#333333"
TEXT_SECONDARY = "#777777"
BORDER = "#EEEEEE"

APP_NAME = "RecipeBox"
DEFAULT_SITE_URL = "http://localhost:3000"

GENERIC_SUBJECT = "🔔 New notification from RecipeBox"

SUBJECTS: dict[EmailNotificationType, str] = {
    EmailNotificationType.NEW_RATING: "⭐ New rating on your recipe",
    EmailNotificationType.NEW_REVIEW: "💬 New review on your recipe",
    EmailNotificationType.ADMIN_BAN: "🚫 Your account has been banned",
    EmailNotificationType.ADMIN_UNBAN: "✅ Your account has been unbanned",
    EmailNotificationType.WELCOME: "👋 Welcome to RecipeBox!",
}

ContentBuilder = Callable[[Mapping[str, Any], str], str]


def _esc(value: Any) -> str:
    return html.escape("" if value is None else str(value))


def _absolute(link: str | None, site_url: str) -> str:
    if not link:
        return site_url
    if link.startswith("/"):
        return site_url.rstrip("/") + link
    return link


def _coerce_type(type_: EmailNotificationType | str) -> EmailNotificationType | None:
    if isinstance(type_, EmailNotificationType):
        return type_
    try:
        return EmailNotificationType(type_)
    except ValueError:
        return None


def base_layout(content: str, site_url: str = DEFAULT_SITE_URL) -> str:
    """Wrap a content fragment in the branded email layout."""
    settings_url = _esc(_absolute("/notifications", site_url))
    return f"""\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{APP_NAME}</title>
</head>
<body style="margin: 0; padding: 0; font-family: Arial, sans-serif; line-height: 1.6; color: {TEXT_PRIMARY};">
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%">
        <tr>
            <td align="center" style="padding: 20px;">
                <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="600" style="max-width: 600px; width: 100%;">
                    <tr>
                        <td align="center" style="background: linear-gradient(135deg, {ORANGE} 0%, {ORANGE_DARK} 100%); color: #FFFFFF; padding: 20px; border-radius: 10px 10px 0 0;">
                            <h2 style="margin: 0;">🍳 {APP_NAME}</h2>
                        </td>
                    </tr>
                    <tr>
                        <td style="background-color: {BG_PAGE}; padding: 30px; border: 1px solid {BORDER}; border-radius: 0 0 10px 10px;">
                            {content}
                            <div style="text-align: center; margin-top: 20px; color: {TEXT_SECONDARY}; font-size: 12px;">
                                <p>You received this email because you have notifications enabled on {APP_NAME}.</p>
                                <p><a href="{settings_url}" style="color: {ORANGE};">Notification settings</a></p>
                            </div>
                        </td>
                    </tr>
                </table>
            </td>
        </tr>
    </table>
</body>
</html>"""


def _button(url: str, label: str) -> str:
    """Render an orange call-to-action link."""
    return (
        f'<p><a href="{_esc(url)}" style="display: inline-block; padding: 12px 24px; '
        f"background: {ORANGE}; color: #FFFFFF; text-decoration: none; border-radius: 5px; "
        f'margin: 10px 0;">{label}</a></p>'
    )


def _card(inner: str) -> str:
    return (
        f'<div style="background: {BG_CARD}; padding: 15px; margin: 10px 0; '
        f'border-radius: 5px; border-left: 4px solid {ORANGE};">\n{inner}\n</div>'
    )


def _new_rating(data: Mapping[str, Any], site_url: str) -> str:
    return _card(
        f"<h3>⭐ New rating on your recipe!</h3>\n"
        f"<p><strong>{_esc(data.get('user_name'))}</strong> rated your recipe "
        f"<strong>&quot;{_esc(data.get('recipe_title'))}&quot;</strong> "
        f"<strong>{_esc(data.get('rating'))} out of 5</strong> ⭐</p>\n"
        f"{_button(_absolute(data.get('link'), site_url), 'View recipe')}"
    )


def _new_review(data: Mapping[str, Any], site_url: str) -> str:
    return _card(
        f"<h3>💬 New review on your recipe!</h3>\n"
        f"<p><strong>{_esc(data.get('user_name'))}</strong> left a review on your recipe "
        f"<strong>&quot;{_esc(data.get('recipe_title'))}&quot;</strong>:</p>\n"
        f'<blockquote style="background: {BG_QUOTE}; padding: 10px; border-left: 3px solid {ORANGE}; '
        f'margin: 15px 0;">&quot;{_esc(data.get("review_text"))}&quot;</blockquote>\n'
        f"{_button(_absolute(data.get('link'), site_url), 'View all reviews')}"
    )


def _admin_ban(data: Mapping[str, Any], _site_url: str) -> str:
    banned_at = data.get("banned_at")
    date_line = f"<p><strong>Date:</strong> {_esc(banned_at)}</p>\n" if banned_at else ""
    return _card(
        "<h3>🚫 Your account has been banned</h3>\n"
        "<p>A site administrator has banned your account.</p>\n"
        f"<p><strong>Reason:</strong> {_esc(data.get('reason') or 'Not specified')}</p>\n"
        f"{date_line}"
        "<p>If you believe this is a mistake, please contact the site administration.</p>"
    )


def _admin_unban(_data: Mapping[str, Any], site_url: str) -> str:
    return _card(
        "<h3>✅ Your account has been unbanned</h3>\n"
        "<p>A site administrator has lifted the ban on your account.</p>\n"
        "<p>You can use all features of the site again.</p>\n"
        f"{_button(site_url, 'Back to the site')}"
    )


def _welcome(data: Mapping[str, Any], site_url: str) -> str:
    return _card(
        f"<h3>👋 Welcome to {APP_NAME}!</h3>\n"
        f"<p>Thanks for signing up, <strong>{_esc(data.get('user_name'))}</strong>!</p>\n"
        "<p>Now you can:</p>\n"
        "<ul>\n"
        "<li>Publish your own recipes</li>\n"
        "<li>Rate and review recipes from other cooks</li>\n"
        "<li>Keep track of the recipes you like</li>\n"
        "</ul>\n"
        f"{_button(_absolute('/recipes/create', site_url), 'Create your first recipe')}"
    )


def _generic(data: Mapping[str, Any], site_url: str) -> str:
    link = data.get("link")
    button = _button(_absolute(link, site_url), "Details") if link else ""
    return _card(
        "<h3>🔔 New notification</h3>\n"
        f"<p>{_esc(data.get('message') or 'You have a new notification on the site.')}</p>\n"
        f"{button}"
    )


CONTENT_BUILDERS: dict[EmailNotificationType, ContentBuilder] = {
    EmailNotificationType.NEW_RATING: _new_rating,
    EmailNotificationType.NEW_REVIEW: _new_review,
    EmailNotificationType.ADMIN_BAN: _admin_ban,
    EmailNotificationType.ADMIN_UNBAN: _admin_unban,
    EmailNotificationType.ADMIN_ACTION: _generic,
    EmailNotificationType.RECIPE_UPDATED: _generic,
    EmailNotificationType.WELCOME: _welcome,
}


def subject(type_: EmailNotificationType | str) -> str:
    """Subject line for a notification type; generic for anything unknown."""
    known = _coerce_type(type_)
    if known is None:
        return GENERIC_SUBJECT
    return SUBJECTS.get(known, GENERIC_SUBJECT)


def content(
    type_: EmailNotificationType | str,
    data: Mapping[str, Any],
    site_url: str = DEFAULT_SITE_URL,
) -> str:
    """HTML content fragment for a notification type and its event data."""
    known = _coerce_type(type_)
    builder = CONTENT_BUILDERS.get(known, _generic) if known is not None else _generic
    return builder(data, site_url)


_TAG_RE = re.compile(r"<[^>]*>")
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")


def html_to_text(markup: str) -> str:
    """Plain-text fallback: drop tags, unescape entities, squeeze blank lines."""
    without_head = re.sub(r"<head>.*?</head>", "", markup, flags=re.DOTALL | re.IGNORECASE)
    text = html.unescape(_TAG_RE.sub("", without_head))
    lines = [line.strip() for line in text.splitlines()]
    return _BLANK_LINES_RE.sub("\n\n", "\n".join(lines)).strip()

