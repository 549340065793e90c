"""
Token generation and validation for one-click unsubscribe functionality.

Uses cryptographically signed tokens with expiry for secure unsubscribe links.
Tokens are stateless (no database storage needed) and expire after 90 days.
A token either targets one saved search or all of a user's alerts.
"""

import os
import hashlib
from typing import Any, Optional
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

UNSUBSCRIBE_SALT = "saved-search-unsubscribe"


def _get_serializer() -> URLSafeTimedSerializer:
    """
    Get configured serializer for token generation and validation.

    Returns:
        URLSafeTimedSerializer instance

    Raises:
        ValueError: If UNSUBSCRIBE_SECRET_KEY environment variable not set
    """
    secret_key = os.getenv("UNSUBSCRIBE_SECRET_KEY")
    if not secret_key:
        raise ValueError("UNSUBSCRIBE_SECRET_KEY environment variable must be set.")

    return URLSafeTimedSerializer(
        secret_key,
        salt=UNSUBSCRIBE_SALT,
        signer_kwargs={"digest_method": hashlib.sha256},
    )


def generate_unsubscribe_token(user_id: str, saved_search_id: Optional[str] = None) -> str:
    """
    Generate a signed unsubscribe token.

    Args:
        user_id: User's unique identifier (UUID)
        saved_search_id: Saved search to stop alerts for; None means all alerts

    Returns:
        URL-safe token string (format: payload.timestamp.signature)

    Raises:
        ValueError: If UNSUBSCRIBE_SECRET_KEY not configured
    """
    serializer = _get_serializer()
    payload = {
        "user_id": user_id,
        "type": "saved_search" if saved_search_id else "all",
        "saved_search_id": saved_search_id,
    }
    return serializer.dumps(payload)


def validate_unsubscribe_token(
    token: str, max_age_days: int = 90
) -> Optional[dict[str, Any]]:
    """
    Validate an unsubscribe token and extract its payload.

    Never raises exceptions - returns None for any invalid token.

    Args:
        token: Token string from URL parameter
        max_age_days: Maximum token age in days (default: 90)

    Returns:
        Dict with user_id, type ("saved_search" or "all") and saved_search_id,
        or None if invalid or expired
    """
    try:
        serializer = _get_serializer()
        max_age_seconds = max_age_days * 24 * 60 * 60
        payload = serializer.loads(
            token, max_age=max_age_seconds, salt=UNSUBSCRIBE_SALT
        )
    except (BadSignature, SignatureExpired, ValueError, TypeError):
        # Invalid signature, expired, or malformed token
        return None

    if not isinstance(payload, dict) or not payload.get("user_id"):
        return None
    return payload
