"""Course usage endpoints (authenticated).

The acting student is always the owner of the bearer session token.
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends

from scsm.auth.dependencies import CurrentStudent
from scsm.usage.schemas import (
    StartExamRequest,
    StartExamResponse,
    UpdateProgressRequest,
    UpdateProgressResponse,
)
from scsm.usage.service import UsageService


router = APIRouter(prefix="/api", tags=["usage"])


_usage_service_getter: Callable[[], UsageService] | None = None


def set_usage_service_getter(getter: Callable[[], UsageService]) -> None:
    """Set the usage service getter function."""
    global _usage_service_getter  # noqa: PLW0603 - Required for DI pattern
    _usage_service_getter = getter


def get_usage_service() -> UsageService:
    """Get UsageService instance."""
    if _usage_service_getter is None:
        msg = "UsageService not configured"
        raise RuntimeError(msg)
    return _usage_service_getter()


UsageServiceDep = Annotated[UsageService, Depends(get_usage_service)]


@router.post(
    "/start-exam",
    response_model=StartExamResponse,
    summary="Start an exam attempt",
    responses={
        401: {"description": "Missing, invalid or superseded token"},
        403: {"description": "No attempts left"},
        404: {"description": "Course not purchased"},
    },
)
async def start_exam(
    data: StartExamRequest,
    student: CurrentStudent,
    usage: UsageServiceDep,
) -> StartExamResponse:
    """Consume one attempt of a paid course."""
    remaining = await usage.consume_attempt(student.mobile, data.course_id)
    return StartExamResponse(attempts_left=remaining)


@router.post(
    "/update-progress",
    response_model=UpdateProgressResponse,
    summary="Record completed modules",
    responses={
        400: {"description": "Modules is not a list"},
        401: {"description": "Missing, invalid or superseded token"},
        404: {"description": "Course not purchased"},
    },
)
async def update_progress(
    data: UpdateProgressRequest,
    student: CurrentStudent,
    usage: UsageServiceDep,
) -> UpdateProgressResponse:
    """Merge completed module ids into the course's progress."""
    merged = await usage.record_progress(student.mobile, data.course_id, data.modules)
    return UpdateProgressResponse(modules_completed=merged)
