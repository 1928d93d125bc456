"""Pydantic schemas for course usage."""

from typing import Any

from pydantic import BaseModel, Field


class StartExamRequest(BaseModel):
    """Start an exam (consumes one attempt)."""

    course_id: str = Field(..., min_length=1, description="Course being attempted")


class StartExamResponse(BaseModel):
    success: bool = True
    attempts_left: int


class UpdateProgressRequest(BaseModel):
    """Report completed modules.

    ``modules`` is left untyped so the service reports a non-list value as
    its own validation error.
    """

    course_id: str = Field(..., min_length=1, description="Course being studied")
    modules: Any = Field(default=None, description="Completed module ids")


class UpdateProgressResponse(BaseModel):
    success: bool = True
    modules_completed: list[str]
