"""
Shopify webhook signature verification.

Shopify signs every webhook body with HMAC-SHA256 keyed by the app's shared
secret and sends the base64 digest in X-Shopify-Hmac-Sha256.

The match is case-insensitive, as the upstream implementation has always
accepted it, but runs through hmac.compare_digest so it is constant-time.
"""

import base64
import hashlib
import hmac

import structlog

logger = structlog.get_logger()


def compute_signature(payload: bytes, secret: str) -> str:
    """Base64 HMAC-SHA256 of the raw body."""
    digest = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(payload: bytes, signature: str, secret: str) -> bool:
    """True if `signature` is the signature of `payload` under `secret`.

    Never raises: a missing secret, a missing signature or anything odd in
    the inputs is reported as False so callers treat it as unauthorized.
    """
    if not secret or not signature:
        return False
    try:
        expected = compute_signature(payload, secret).lower().encode("ascii")
        provided = signature.strip().lower().encode("ascii")
    except (UnicodeError, TypeError, AttributeError) as e:
        logger.warning("webhook_signature_unreadable", error=str(e))
        return False
    return hmac.compare_digest(expected, provided)
