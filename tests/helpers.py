"""Test doubles and small helpers shared across test modules."""

import re
from dataclasses import dataclass, field
from uuid import UUID

from stockroom.core.email.mailer import Mailer


TOKEN_IN_LINK = re.compile(r"token=([A-Za-z0-9_\-.]+)")


@dataclass
class SentMail:
    to: str
    subject: str
    html: str

    def tokens(self) -> list[str]:
        """Distinct tokens embedded in the links of the message, in order."""
        return list(dict.fromkeys(TOKEN_IN_LINK.findall(self.html)))


@dataclass
class RecordingMailer(Mailer):
    """Mailer that keeps messages in memory."""

    sent: list[SentMail] = field(default_factory=list)

    async def send_mail(self, to: str, subject: str, html: str) -> None:
        self.sent.append(SentMail(to=to, subject=subject, html=html))

    def last_to(self, address: str) -> SentMail:
        return next(mail for mail in reversed(self.sent) if mail.to == address)


def bearer(token: str, tenant_id: UUID | str | None = None) -> dict[str, str]:
    """Authorization (and optionally tenant) headers for a request."""
    headers = {"Authorization": f"Bearer {token}"}
    if tenant_id is not None:
        headers["X-Tenant-ID"] = str(tenant_id)
    return headers


def error_code(response) -> str:
    """The error code of a Problem Details response."""
    return response.json()["type"].rsplit("/", 1)[-1]
