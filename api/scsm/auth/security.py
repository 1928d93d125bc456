"""Session token utilities.

Provides:
- JWT session token creation (HS256 by default)
- Token validation with type separation
- Expiry inspection without verification

The signing key is passed in by the caller so services can be built with
any secret (tests use their own).
"""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from jose import JWTError, jwt


SESSION_TOKEN_TYPE = "session"
DEFAULT_SESSION_LIFETIME = timedelta(hours=24)


def create_session_token(
    data: dict[str, Any],
    secret_key: str,
    algorithm: str = "HS256",
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed session token.

    Args:
        data: Payload data (typically {"sub": student_id, "mobile": ..., "name": ...})
        secret_key: Signing key
        algorithm: JWT algorithm
        expires_delta: Token lifetime (default 24 hours)

    Returns:
        Encoded JWT string

    Token payload includes:
        - All provided data
        - exp: Expiration timestamp
        - iat: Issued at timestamp
        - type: "session" (for validation)
        - jti: Random id, so two tokens minted in the same second differ
    """
    now = datetime.now(UTC)
    to_encode = data.copy()
    to_encode.update(
        {
            "exp": now + (expires_delta or DEFAULT_SESSION_LIFETIME),
            "iat": now,
            "type": SESSION_TOKEN_TYPE,
            "jti": uuid4().hex,
        }
    )

    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


def decode_session_token(
    token: str,
    secret_key: str,
    algorithm: str = "HS256",
) -> dict[str, Any]:
    """Decode and validate a session token.

    Validates:
    - JWT signature
    - Expiration time
    - Token type == "session"
    - Presence of sub claim

    Raises:
        JWTError: If token is invalid, expired, or wrong type
    """
    payload = jwt.decode(token, secret_key, algorithms=[algorithm])

    if payload.get("type") != SESSION_TOKEN_TYPE:
        msg = "Invalid token type: expected 'session'"
        raise JWTError(msg)

    if not payload.get("sub"):
        msg = "Session token missing sub claim"
        raise JWTError(msg)

    return payload


def get_token_expiration(token: str) -> datetime | None:
    """Extract expiration time from a token without full validation.

    Args:
        token: JWT string

    Returns:
        Expiration datetime or None if invalid
    """
    try:
        payload = jwt.get_unverified_claims(token)
        exp = payload.get("exp")
        if exp:
            return datetime.fromtimestamp(exp, tz=UTC)
    except JWTError:
        pass
    return None
