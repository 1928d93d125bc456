"""Student login endpoint."""

from fastapi import APIRouter

from scsm.auth.dependencies import SessionServiceDep
from scsm.auth.schemas import LoginRequest
from scsm.enrollments.schemas import SessionGrant


router = APIRouter(prefix="/api", tags=["auth"])


@router.post(
    "/login",
    response_model=SessionGrant,
    summary="Student login",
    responses={
        400: {"description": "Missing name, mobile or email"},
        401: {"description": "Name does not match"},
        403: {"description": "No active course"},
        404: {"description": "No student with this mobile and email"},
    },
)
async def login(data: LoginRequest, sessions: SessionServiceDep) -> SessionGrant:
    """Log in with name, mobile and email.

    Issues a new session token; any token issued before stops working.
    """
    return await sessions.login(
        name=data.name or "",
        mobile=data.mobile or "",
        email=data.email or "",
    )
