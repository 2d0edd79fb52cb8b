"""HTML bodies for account emails."""

from html import escape
from urllib.parse import urlencode

from stockroom.config import settings


_BUTTON = (
    '<p style="text-align: center; margin: 30px 0;">'
    '<a href="{url}" style="background: #2f6f5e; color: white; padding: 12px 30px; '
    'text-decoration: none; border-radius: 6px; display: inline-block;">{label}</a>'
    "</p>"
    '<p style="color: #666; font-size: 14px;">Or copy this link: {url}</p>'
)

_LAYOUT = (
    "<html><body style=\"font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', "
    'Roboto, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">'
    "{body}</body></html>"
)


def frontend_link(path: str, **params: str) -> str:
    """Build a link into the web frontend with query parameters."""
    return f"{settings.frontend_url.rstrip('/')}{path}?{urlencode(params)}"


def _button(url: str, label: str) -> str:
    return _BUTTON.format(url=escape(url, quote=True), label=escape(label))


def password_reset_email(name: str, reset_url: str, expires_minutes: int) -> tuple[str, str]:
    """Build the password reset email.

    Returns:
        (subject, html)
    """
    body = (
        f"<h1>Reset your password</h1><p>Hi {escape(name)},</p>"
        "<p>We received a request to reset your password.</p>"
        f"{_button(reset_url, 'Reset password')}"
        f'<p style="color: #666; font-size: 14px;">This link expires in {expires_minutes} minutes. '
        "If you didn't ask for it, you can ignore this email.</p>"
    )
    return "Reset your Stockroom password", _LAYOUT.format(body=body)


def invitation_email(
    name: str,
    tenant_name: str,
    accept_url: str,
    setup_url: str | None = None,
    setup_expires_minutes: int | None = None,
) -> tuple[str, str]:
    """Build the tenant invitation email.

    New users also get a link to choose their password.

    Returns:
        (subject, html)
    """
    body = (
        f"<h1>You're invited to {escape(tenant_name)}</h1><p>Hi {escape(name)},</p>"
        f"<p>You have been invited to join <strong>{escape(tenant_name)}</strong> on Stockroom.</p>"
        f"{_button(accept_url, 'Accept invitation')}"
    )
    if setup_url:
        body += (
            "<p>You don't have a password yet. Set one first:</p>"
            f"{_button(setup_url, 'Set password')}"
            f'<p style="color: #666; font-size: 14px;">The password link expires in '
            f"{setup_expires_minutes} minutes.</p>"
        )
    return f"Invitation to join {tenant_name}", _LAYOUT.format(body=body)
