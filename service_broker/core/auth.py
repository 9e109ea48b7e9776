"""Authentication helpers for broker Basic auth."""

from __future__ import annotations

import base64
import binascii
import hmac


def parse_basic_auth(header: str) -> tuple[str, str] | None:
    """Decode an ``Authorization: Basic ...`` header into (username, password)."""
    if not header or not header.startswith("Basic "):
        return None

    try:
        decoded = base64.b64decode(header[len("Basic "):], validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None

    username, sep, password = decoded.partition(":")
    if not sep:
        return None
    return username, password


def is_authorized(header: str, username: str, password: str) -> bool:
    """Check a request's Authorization header against the broker credentials.

    Auth is disabled when no credentials are configured.
    """
    if not username or not password:
        return True

    credentials = parse_basic_auth(header)
    if credentials is None:
        return False

    given_user, given_password = credentials
    user_ok = hmac.compare_digest(given_user.encode("utf-8"), username.encode("utf-8"))
    password_ok = hmac.compare_digest(given_password.encode("utf-8"), password.encode("utf-8"))
    return user_ok and password_ok
