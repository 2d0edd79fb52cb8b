"""Outbound mail delivery.

``HttpMailer`` posts JSON to a transactional mail API. ``ConsoleMailer``
only logs, and is used when no API URL is configured.
"""

from typing import Annotated

import httpx
import structlog
from fastapi import Depends

from stockroom.config import settings
from stockroom.core.errors import DeliveryError


logger = structlog.get_logger()


class Mailer:
    """Interface for sending a single HTML email."""

    async def send_mail(self, to: str, subject: str, html: str) -> None:
        """Send an email.

        Raises:
            DeliveryError: If the message could not be handed off
        """
        raise NotImplementedError


class HttpMailer(Mailer):
    """Mailer that posts to an HTTP mail API with a bearer key."""

    def __init__(
        self,
        api_url: str,
        api_key: str | None = None,
        sender: str = settings.mail_from,
        timeout: float = settings.mail_timeout_seconds,
    ) -> None:
        self.api_url = api_url
        self.api_key = api_key
        self.sender = sender
        self.timeout = timeout

    async def send_mail(self, to: str, subject: str, html: str) -> None:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        payload = {"from": self.sender, "to": [to], "subject": subject, "html": html}

        async with httpx.AsyncClient() as client:
            try:
                response = await client.post(
                    self.api_url,
                    json=payload,
                    headers=headers,
                    timeout=self.timeout,
                )
                response.raise_for_status()
            except httpx.HTTPError as exc:
                logger.error(
                    "mail_delivery_failed",
                    to=to,
                    subject=subject,
                    error=str(exc),
                )
                raise DeliveryError() from exc

        logger.info("mail_sent", to=to, subject=subject)


class ConsoleMailer(Mailer):
    """Mailer that writes messages to the log instead of sending them."""

    async def send_mail(self, to: str, subject: str, html: str) -> None:
        logger.info("mail_logged", to=to, subject=subject, html=html)


def get_mailer() -> Mailer:
    """Return the configured mailer."""
    if settings.mail_api_url:
        return HttpMailer(settings.mail_api_url, settings.mail_api_key)
    return ConsoleMailer()


MailerDep = Annotated[Mailer, Depends(get_mailer)]
