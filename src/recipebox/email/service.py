"""
Email dispatch with provider abstraction.

Supports SMTP (default), the Resend API, and a console provider that only
logs (for local development). The provider is chosen from configuration and
handed to EmailDispatcher at startup.

Delivery is best-effort: EmailDispatcher.send never raises, it logs and
returns False on any transport failure or timeout.
"""

from __future__ import annotations

import asyncio
import ssl
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid
from typing import TYPE_CHECKING, Any

import structlog

from recipebox.email import templates
from recipebox.email.types import EmailNotificationType

if TYPE_CHECKING:
    from recipebox.config import Settings

logger = structlog.get_logger()


class EmailDeliveryError(Exception):
    """Raised by a provider when the transport rejects or fails a message."""


class BaseEmailProvider(ABC):
    """Abstract base class for email delivery providers."""

    name = "base"

    @abstractmethod
    async def deliver(
        self,
        sender: str,
        to_email: str,
        subject: str,
        text_body: str,
        html_body: str | None,
    ) -> str:
        """Send a message. Returns the transport's message id, raises on failure."""
        ...

    async def verify(self) -> bool:
        """Check that the transport is reachable."""
        return True


class SMTPProvider(BaseEmailProvider):
    """Send emails via SMTP using aiosmtplib."""

    name = "smtp"

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        use_tls: bool = True,
        timeout: float = 5.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def _tls_context(self) -> ssl.SSLContext | None:
        return ssl.create_default_context() if self.use_tls else None

    async def deliver(
        self,
        sender: str,
        to_email: str,
        subject: str,
        text_body: str,
        html_body: str | None,
    ) -> str:
        """Send via SMTP."""
        import aiosmtplib

        msg = MIMEMultipart("alternative")
        msg["From"] = sender
        msg["To"] = to_email
        msg["Subject"] = subject
        message_id = make_msgid(domain=self.host)
        msg["Message-ID"] = message_id
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        if html_body is not None:
            msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            await aiosmtplib.send(
                msg,
                hostname=self.host,
                port=self.port,
                username=self.username or None,
                password=self.password or None,
                start_tls=self.use_tls,
                tls_context=self._tls_context(),
                timeout=self.timeout,
            )
        except aiosmtplib.SMTPException as exc:
            raise EmailDeliveryError(str(exc)) from exc
        return message_id

    async def verify(self) -> bool:
        """Open and close an SMTP session."""
        import aiosmtplib

        client = aiosmtplib.SMTP(
            hostname=self.host,
            port=self.port,
            username=self.username or None,
            password=self.password or None,
            start_tls=self.use_tls,
            tls_context=self._tls_context(),
            timeout=self.timeout,
        )
        try:
            async with client:
                await client.noop()
        except (aiosmtplib.SMTPException, OSError):
            logger.warning("smtp_verify_failed", host=self.host, port=self.port, exc_info=True)
            return False
        return True


class ResendProvider(BaseEmailProvider):
    """Send emails via Resend API."""

    name = "resend"

    def __init__(self, api_key: str, timeout: float = 5.0) -> None:
        self.api_key = api_key
        self.timeout = timeout

    async def deliver(
        self,
        sender: str,
        to_email: str,
        subject: str,
        text_body: str,
        html_body: str | None,
    ) -> str:
        """Send via Resend HTTP API."""
        import httpx

        payload: dict[str, Any] = {
            "from": sender,
            "to": [to_email],
            "subject": subject,
            "text": text_body,
        }
        if html_body is not None:
            payload["html"] = html_body

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    "https://api.resend.com/emails",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json=payload,
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise EmailDeliveryError(str(exc)) from exc
        return str(response.json().get("id", ""))


class ConsoleProvider(BaseEmailProvider):
    """Log outgoing mail instead of sending it."""

    name = "console"

    async def deliver(
        self,
        sender: str,
        to_email: str,
        subject: str,
        text_body: str,
        html_body: str | None,
    ) -> str:
        message_id = f"<{uuid.uuid4()}@console>"
        logger.info("email_console", to=to_email, subject=subject, message_id=message_id, body=text_body)
        return message_id


def create_provider(settings: Settings) -> BaseEmailProvider:
    """Build the configured provider."""
    provider_name = settings.email_provider.lower()
    if provider_name == "smtp":
        return SMTPProvider(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            timeout=settings.email_timeout_seconds,
        )
    if provider_name == "resend":
        return ResendProvider(api_key=settings.resend_api_key, timeout=settings.email_timeout_seconds)
    if provider_name == "console":
        return ConsoleProvider()
    msg = f"Unsupported email provider: {provider_name}"
    raise ValueError(msg)


class EmailDispatcher:
    """
    Outbound transactional email for RecipeBox.

    Wraps every content fragment in the branded layout, derives the
    plain-text part, and bounds each delivery with a timeout.
    """

    def __init__(
        self,
        provider: BaseEmailProvider,
        from_address: str,
        from_name: str = templates.APP_NAME,
        site_url: str = templates.DEFAULT_SITE_URL,
        timeout_seconds: float = 5.0,
    ) -> None:
        self.provider = provider
        self.sender = formataddr((from_name, from_address))
        self.site_url = site_url
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, settings: Settings, provider: BaseEmailProvider | None = None) -> EmailDispatcher:
        return cls(
            provider=provider or create_provider(settings),
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
            site_url=settings.site_url,
            timeout_seconds=settings.email_timeout_seconds,
        )

    async def send(self, to: str | None, subject: str, body: str, *, is_html: bool = True) -> bool:
        """
        Send one email.

        ``body`` is an HTML content fragment when ``is_html`` is set (it gets the
        branded layout, and the text part is derived by stripping markup);
        otherwise it is sent as plain text only.

        Returns True on success, False on missing parameters, transport
        failure or timeout.
        """
        if not to or not subject or not body:
            logger.error("email_missing_parameters", to=to, subject=subject)
            return False

        if is_html:
            html_body: str | None = templates.base_layout(body, self.site_url)
            text_body = templates.html_to_text(body)
        else:
            html_body = None
            text_body = body

        try:
            message_id = await asyncio.wait_for(
                self.provider.deliver(self.sender, to, subject, text_body, html_body),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error("email_send_timeout", to=to, provider=self.provider.name, timeout=self.timeout_seconds)
            return False
        except Exception:
            logger.exception("email_send_failed", to=to, provider=self.provider.name)
            return False

        logger.info("email_sent", to=to, subject=subject, provider=self.provider.name, message_id=message_id)
        return True

    async def send_notification(
        self,
        to: str | None,
        type_: EmailNotificationType | str,
        data: Mapping[str, Any],
    ) -> bool:
        """
        Render the subject and content for a notification event and send it.

        Event data that cannot be rendered is logged and reported as not sent.
        """
        try:
            subject = templates.subject(type_)
            body = templates.content(type_, data, self.site_url)
        except Exception:
            logger.exception("email_render_failed", to=to, event_type=str(getattr(type_, "value", type_)))
            return False
        return await self.send(to, subject, body)

    async def verify(self) -> bool:
        """Check transport connectivity; never raises."""
        try:
            return await asyncio.wait_for(self.provider.verify(), timeout=self.timeout_seconds)
        except Exception:
            logger.warning("email_verify_failed", provider=self.provider.name, exc_info=True)
            return False
