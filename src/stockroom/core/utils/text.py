"""Text processing utilities."""

import re
import secrets
import string

from stockroom.core.constants import MAX_SLUG_LENGTH, SLUG_SUFFIX_LENGTH


_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def normalize_email(email: str) -> str:
    """Trim and lower-case an email address.

    Examples:
        >>> normalize_email("  A@X.com ")
        'a@x.com'
    """
    return email.strip().lower()


def email_local_part(email: str) -> str:
    """Return the part of an email address before the ``@``."""
    return email.split("@", 1)[0]


def generate_slug(name: str, max_length: int = MAX_SLUG_LENGTH) -> str:
    """Generate a URL-safe slug from a name.

    Args:
        name: The input string to slugify
        max_length: Maximum length of output slug (default 63)

    Returns:
        URL-safe lowercase slug, or "workspace" when nothing usable remains

    Examples:
        >>> generate_slug("Acme Supplies Ltd.")
        'acme-supplies-ltd'
        >>> generate_slug("  ")
        'workspace'
    """
    slug = name.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-_\s]+", "-", slug).strip("-")
    return slug[:max_length].rstrip("-") or "workspace"


def slug_with_suffix(slug: str, max_length: int = MAX_SLUG_LENGTH) -> str:
    """Append a random suffix to a slug, keeping it within ``max_length``."""
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(SLUG_SUFFIX_LENGTH))
    base = slug[: max_length - SLUG_SUFFIX_LENGTH - 1].rstrip("-")
    return f"{base}-{suffix}"
