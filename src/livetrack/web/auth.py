"""Inbound webhook authentication.

Webhook callers must present the shared bearer key. If the caller also
signs the body and a secret is configured, the HMAC-SHA256 signature is
verified as well.
"""

from __future__ import annotations

import hashlib
import hmac
import re
from collections.abc import Mapping

from livetrack.exceptions import TrackerAuthenticationError, TrackerSignatureError

SIGNATURE_HEADERS: tuple[str, ...] = (
    "X-Webhook-Signature",
    "X-Signature",
    "X-Hub-Signature-256",
)

_BEARER_PREFIX = re.compile(r"^Bearer\s+", re.IGNORECASE)
_SHA256_PREFIX = re.compile(r"^sha256=", re.IGNORECASE)


def bearer_token(authorization: str | None) -> str:
    """Token from an ``Authorization`` header value (prefix optional)."""
    header = (authorization or "").strip()
    return _BEARER_PREFIX.sub("", header).strip()


def verify_bearer(authorization: str | None, expected: str) -> None:
    expected = expected.strip()
    got = bearer_token(authorization)
    if not expected or not got or not hmac.compare_digest(got.encode("utf-8"), expected.encode("utf-8")):
        raise TrackerAuthenticationError("bearer mismatch")


def compute_signature(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def find_signature(headers: Mapping[str, str]) -> str | None:
    for name in SIGNATURE_HEADERS:
        value = headers.get(name)
        if value:
            return value
    return None


def verify_signature(body: bytes, signature: str | None, secret: str | None) -> None:
    """Check *signature* when both it and *secret* are present."""
    if not signature or not secret:
        return
    provided = _SHA256_PREFIX.sub("", signature.strip()).lower()
    if not hmac.compare_digest(compute_signature(body, secret).encode("utf-8"), provided.encode("utf-8")):
        raise TrackerSignatureError("bad signature")


def authenticate_webhook(
    headers: Mapping[str, str],
    body: bytes,
    *,
    bearer_key: str,
    secret_key: str | None,
) -> None:
    """Raise :class:`TrackerAuthenticationError` unless the call is authentic."""
    verify_bearer(headers.get("Authorization"), bearer_key)
    verify_signature(body, find_signature(headers), secret_key)
