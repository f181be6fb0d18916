# leaddesk/services/admin_auth.py
"""
Stateless admin session tokens.

A token is ``base64url("<identity>|<expires_at_ms>|<hex hmac-sha256>")``.
Nothing is stored server-side: verification recomputes the signature with the
configured secret, so a token stays valid until it expires.
"""
from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import math
import time
from typing import Any, Dict, Optional

from leaddesk.core.config import settings

ADMIN_COOKIE_NAME = "pma_admin_session"


def sanitize(value: Any) -> str:
    return str(value or "").strip()


def _now_ms() -> int:
    return int(time.time() * 1000)


def _expected_identity() -> str:
    return sanitize(settings.admin_username)


def _sign(payload: str) -> str:
    secret = settings.session_secret().encode("utf-8")
    return hmac.new(secret, payload.encode("utf-8"), hashlib.sha256).hexdigest()


def _safe_equal(a: str, b: str) -> bool:
    a_bytes = a.encode("utf-8")
    b_bytes = b.encode("utf-8")
    # compare_digest leaks length anyway; bail out early on mismatch.
    if len(a_bytes) != len(b_bytes):
        return False
    return hmac.compare_digest(a_bytes, b_bytes)


def _b64url_encode(raw: str) -> str:
    return base64.urlsafe_b64encode(raw.encode("utf-8")).rstrip(b"=").decode("ascii")


def _b64url_decode(token: str) -> str:
    padded = token + "=" * (-len(token) % 4)
    data = base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)
    return data.decode("utf-8")


def validate_credentials(username: Any, password: Any) -> bool:
    """Exact match of the trimmed pair against the configured admin account."""
    expected_username = sanitize(settings.admin_username)
    expected_password = sanitize(settings.admin_password)
    return sanitize(username) == expected_username and sanitize(password) == expected_password


def issue_token(*, now_ms: Optional[int] = None) -> str:
    """Mint a session token for the configured admin identity.

    ``now_ms`` overrides the clock, mostly so tests can mint expired tokens.
    """
    issued_at = _now_ms() if now_ms is None else now_ms
    expires_at = issued_at + settings.admin_session_ttl_seconds * 1000
    payload = f"{_expected_identity()}|{expires_at}"
    return _b64url_encode(f"{payload}|{_sign(payload)}")


def verify_token(token: Any, *, now_ms: Optional[int] = None) -> bool:
    """Return True only for an unexpired, untampered token of the admin identity.

    Every failure returns False; callers cannot tell which check failed.
    """
    if not token:
        return False

    try:
        decoded = _b64url_decode(str(token))
    except (binascii.Error, ValueError):
        # UnicodeDecodeError is a ValueError
        return False

    parts = decoded.split("|")
    if len(parts) != 3:
        return False
    identity, expires_raw, signature = parts
    if not identity or not expires_raw or not signature:
        return False

    try:
        expires_at = float(expires_raw)
    except ValueError:
        return False
    current = _now_ms() if now_ms is None else now_ms
    if not math.isfinite(expires_at) or expires_at <= current:
        return False

    if identity != _expected_identity():
        return False

    expected_signature = _sign(f"{identity}|{expires_raw}")
    return _safe_equal(signature, expected_signature)


def parse_cookie_header(cookie_header: Optional[str]) -> Dict[str, str]:
    jar: Dict[str, str] = {}
    for entry in (cookie_header or "").split(";"):
        name, _, value = entry.partition("=")
        name = name.strip()
        if not name:
            continue
        jar[name] = value.strip()
    return jar


def is_authenticated(request: Any) -> bool:
    """Check the session cookie on anything exposing ``headers.get``."""
    headers = getattr(request, "headers", None)
    cookie_header = headers.get("cookie") if headers is not None else ""
    token = parse_cookie_header(cookie_header).get(ADMIN_COOKIE_NAME, "")
    return verify_token(token)


def _cookie_attributes(max_age: int) -> str:
    secure = "; Secure" if settings.is_production else ""
    return f"Path=/; HttpOnly; SameSite=Lax; Max-Age={max_age}{secure}"


def build_session_cookie(token: str) -> str:
    return f"{ADMIN_COOKIE_NAME}={token}; {_cookie_attributes(settings.admin_session_ttl_seconds)}"


def build_logout_cookie() -> str:
    return f"{ADMIN_COOKIE_NAME}=; {_cookie_attributes(0)}"
