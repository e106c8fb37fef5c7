"""Helpers for the shared secret Telegram echoes back on every webhook call."""

from __future__ import annotations

import secrets


SECRET_BYTES = 24
WEBHOOK_SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"


def generate_webhook_secret() -> str:
    """Generate a secret usable as a Telegram ``secret_token``.

    Telegram allows only A-Z, a-z, 0-9, ``_`` and ``-``, which is exactly
    the URL-safe base64 alphabet.
    """
    return secrets.token_urlsafe(SECRET_BYTES)


def verify_webhook_secret(received: str | None, expected: str | None) -> bool:
    """Accept any request when no secret is configured, else require a match."""
    if not expected:
        return True
    if received is None:
        return False
    return secrets.compare_digest(received.encode("utf-8"), expected.encode("utf-8"))
