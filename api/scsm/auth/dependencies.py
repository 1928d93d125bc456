"""FastAPI dependencies for student sessions.

Provides dependency injection for:
- SessionService instance (getter set by main.py)
- Current student extraction from the bearer session token
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Request

from scsm.auth.schemas import SessionIdentity
from scsm.auth.service import SessionService
from scsm.core.context import set_student_id


# ==============================================================================
# Service Getter (set by main.py)
# ==============================================================================

_session_service_getter: Callable[[], SessionService] | None = None


def set_session_service_getter(getter: Callable[[], SessionService]) -> None:
    """Set the session service getter function."""
    global _session_service_getter  # noqa: PLW0603 - Required for DI pattern
    _session_service_getter = getter


def get_session_service() -> SessionService:
    """Get SessionService instance from app state."""
    if _session_service_getter is None:
        msg = "SessionService not configured"
        raise RuntimeError(msg)
    return _session_service_getter()


SessionServiceDep = Annotated[SessionService, Depends(get_session_service)]


# ==============================================================================
# Current Student
# ==============================================================================


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header.

    Returns:
        Token string or None if absent or not a Bearer header
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


async def get_current_student(
    token: Annotated[str | None, Depends(get_token_from_header)],
    sessions: SessionServiceDep,
) -> SessionIdentity:
    """Verify the bearer token as the student's current session.

    Raises:
        AuthError: If the token is missing, invalid, expired or superseded
    """
    identity = await sessions.verify_token(token or "")

    # Set student_id in context for logging
    set_student_id(identity.student_id)
    return identity


CurrentStudent = Annotated[SessionIdentity, Depends(get_current_student)]
