"""Tests for EmailDispatcher delivery semantics and provider selection."""

import pytest

from recipebox.config import Settings
from recipebox.email.service import (
    ConsoleProvider,
    EmailDispatcher,
    ResendProvider,
    SMTPProvider,
    create_provider,
)
from recipebox.email.types import EmailNotificationType


class TestSend:
    @pytest.mark.asyncio
    async def test_html_send_wraps_layout_and_derives_text(self, dispatcher, email_provider):
        ok = await dispatcher.send("owner@example.com", "Hello", "<p>Fish &amp; chips</p>")
        assert ok is True
        assert len(email_provider.sent) == 1
        sent = email_provider.sent[0]
        assert sent.to == "owner@example.com"
        assert sent.sender == "RecipeBox <noreply@recipebox.test>"
        assert sent.html is not None
        assert sent.html.startswith("<!DOCTYPE html>")
        assert "<p>Fish &amp; chips</p>" in sent.html
        assert sent.text == "Fish & chips"

    @pytest.mark.asyncio
    async def test_plain_text_send(self, dispatcher, email_provider):
        ok = await dispatcher.send("owner@example.com", "Hello", "Just text", is_html=False)
        assert ok is True
        assert email_provider.sent[0].html is None
        assert email_provider.sent[0].text == "Just text"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("to", "subject", "body"),
        [(None, "s", "b"), ("", "s", "b"), ("a@example.com", "", "b"), ("a@example.com", "s", "")],
    )
    async def test_missing_parameters_return_false(self, dispatcher, email_provider, to, subject, body):
        assert await dispatcher.send(to, subject, body) is False
        assert email_provider.sent == []

    @pytest.mark.asyncio
    async def test_transport_failure_returns_false(self, dispatcher, email_provider):
        email_provider.fail = True
        assert await dispatcher.send("owner@example.com", "Hello", "<p>x</p>") is False

    @pytest.mark.asyncio
    async def test_timeout_returns_false(self, email_provider):
        email_provider.delay = 1.0
        dispatcher = EmailDispatcher(email_provider, "noreply@recipebox.test", timeout_seconds=0.05)
        assert await dispatcher.send("owner@example.com", "Hello", "<p>x</p>") is False
        assert email_provider.sent == []

    @pytest.mark.asyncio
    async def test_send_notification_uses_type_subject(self, dispatcher, email_provider):
        ok = await dispatcher.send_notification(
            "owner@example.com",
            EmailNotificationType.NEW_RATING,
            {"user_name": "Alice", "recipe_title": "Borscht", "rating": 5, "link": "/recipes/42"},
        )
        assert ok is True
        sent = email_provider.sent[0]
        assert sent.subject == "⭐ New rating on your recipe"
        assert "https://recipebox.test/recipes/42" in sent.html
        assert "Alice" in sent.text

    @pytest.mark.asyncio
    async def test_send_notification_with_unrenderable_data_returns_false(self, dispatcher, email_provider):
        ok = await dispatcher.send_notification(
            "owner@example.com",
            EmailNotificationType.ADMIN_ACTION,
            {"message": "hi", "link": 42},
        )
        assert ok is False
        assert email_provider.sent == []


class TestVerify:
    @pytest.mark.asyncio
    async def test_verify_reports_provider_state(self, dispatcher, email_provider):
        assert await dispatcher.verify() is True
        email_provider.reachable = False
        assert await dispatcher.verify() is False

    @pytest.mark.asyncio
    async def test_console_provider_is_always_reachable(self):
        dispatcher = EmailDispatcher(ConsoleProvider(), "noreply@recipebox.test")
        assert await dispatcher.verify() is True
        assert await dispatcher.send("a@example.com", "Hi", "<p>Hi</p>") is True


class TestCreateProvider:
    @pytest.mark.parametrize(
        ("name", "cls"),
        [("smtp", SMTPProvider), ("SMTP", SMTPProvider), ("resend", ResendProvider), ("console", ConsoleProvider)],
    )
    def test_known_providers(self, name, cls):
        assert isinstance(create_provider(Settings(email_provider=name)), cls)

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unsupported email provider"):
            create_provider(Settings(email_provider="carrier-pigeon"))

    def test_smtp_provider_gets_timeout(self):
        provider = create_provider(Settings(email_provider="smtp", email_timeout_seconds=3.0))
        assert provider.timeout == 3.0
