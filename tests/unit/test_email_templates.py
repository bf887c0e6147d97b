"""Tests for email subjects, content fragments and the plain-text fallback."""

from recipebox.email import templates
from recipebox.email.types import EmailNotificationType

SITE = "https://recipebox.test"


class TestSubjects:
    def test_new_rating_subject(self):
        assert templates.subject(EmailNotificationType.NEW_RATING) == "⭐ New rating on your recipe"

    def test_subject_accepts_plain_string(self):
        assert templates.subject("NEW_REVIEW") == templates.SUBJECTS[EmailNotificationType.NEW_REVIEW]

    def test_unknown_type_gets_generic_subject(self):
        assert templates.subject("SOMETHING_ELSE") == templates.GENERIC_SUBJECT

    def test_types_without_own_subject_fall_back(self):
        assert templates.subject(EmailNotificationType.ADMIN_ACTION) == templates.GENERIC_SUBJECT
        assert templates.subject(EmailNotificationType.RECIPE_UPDATED) == templates.GENERIC_SUBJECT


class TestContent:
    def test_new_rating_content(self):
        html = templates.content(
            EmailNotificationType.NEW_RATING,
            {"user_name": "Alice", "recipe_title": "Borscht", "rating": 5, "link": "/recipes/42"},
            SITE,
        )
        assert "Alice" in html
        assert "Borscht" in html
        assert "5 out of 5" in html
        assert f'href="{SITE}/recipes/42"' in html

    def test_new_review_quotes_review_text(self):
        html = templates.content(
            EmailNotificationType.NEW_REVIEW,
            {"user_name": "Bob", "recipe_title": "Pelmeni", "review_text": "Tasty!", "link": "/recipes/7"},
            SITE,
        )
        assert "<blockquote" in html
        assert "Tasty!" in html
        assert "View all reviews" in html

    def test_event_data_is_escaped(self):
        html = templates.content(
            EmailNotificationType.NEW_RATING,
            {"user_name": "<script>alert(1)</script>", "recipe_title": "A & B", "rating": 3},
            SITE,
        )
        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "A &amp; B" in html

    def test_ban_without_reason(self):
        html = templates.content(EmailNotificationType.ADMIN_BAN, {"reason": None}, SITE)
        assert "Not specified" in html
        assert "Date:" not in html

    def test_ban_with_reason_and_date(self):
        html = templates.content(
            EmailNotificationType.ADMIN_BAN,
            {"reason": "Spam", "banned_at": "2026-10-18 12:00 UTC"},
            SITE,
        )
        assert "Spam" in html
        assert "2026-10-18 12:00 UTC" in html

    def test_welcome_links_to_recipe_creation(self):
        html = templates.content(EmailNotificationType.WELCOME, {"user_name": "Carol"}, SITE)
        assert "Carol" in html
        assert f"{SITE}/recipes/create" in html

    def test_generic_uses_message(self):
        html = templates.content("UNKNOWN", {"message": "Your recipe was featured"}, SITE)
        assert "Your recipe was featured" in html
        assert "Details" not in html

    def test_absolute_link_is_kept(self):
        html = templates.content(
            EmailNotificationType.ADMIN_ACTION,
            {"message": "See this", "link": "https://elsewhere.example/x"},
            SITE,
        )
        assert 'href="https://elsewhere.example/x"' in html


class TestLayout:
    def test_base_layout_wraps_content(self):
        page = templates.base_layout("<p>Hello</p>", SITE)
        assert page.startswith("<!DOCTYPE html>")
        assert "<p>Hello</p>" in page
        assert f"{SITE}/notifications" in page
        assert "RecipeBox" in page

    def test_html_to_text(self):
        text = templates.html_to_text("<h3>Title</h3>\n\n\n<p>A &amp; B</p>")
        assert text == "Title\n\nA & B"

    def test_html_to_text_drops_head(self):
        page = templates.base_layout("<p>Body</p>", SITE)
        text = templates.html_to_text(page)
        assert "<" not in text
        assert "Body" in text
        assert "viewport" not in text
