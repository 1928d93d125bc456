"""Pydantic schemas for entitlement projections.

Shared by login and payment verification responses.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .models import Entitlement, StudentAccount


class EntitlementSummary(BaseModel):
    """A usable course as shown to the student."""

    course_id: str
    course_name: str
    selected_subject: str = Field(..., description="Subject code (CSS, CLS, PD)")
    attempts_left: int
    modules_completed: list[str] = Field(default_factory=list)
    expiry_date: datetime

    @classmethod
    def from_entitlement(cls, course: Entitlement) -> "EntitlementSummary":
        """Create summary from Entitlement entity."""
        return cls(
            course_id=course.course_id,
            course_name=course.course_name,
            selected_subject=course.subject,
            attempts_left=course.attempts_left,
            modules_completed=list(course.modules_completed),
            expiry_date=course.expiry_date,
        )


class StudentSummary(BaseModel):
    """Student identity returned alongside a session."""

    id: UUID
    name: str
    mobile: str
    email: str
    center_name: str
    courses: list[EntitlementSummary]

    @classmethod
    def from_student(
        cls, student: StudentAccount, courses: list[Entitlement]
    ) -> "StudentSummary":
        """Create summary from a student and the courses to expose."""
        return cls(
            id=student.id,
            name=student.name,
            mobile=student.mobile,
            email=student.email,
            center_name=student.center_name,
            courses=[EntitlementSummary.from_entitlement(c) for c in courses],
        )


class SessionGrant(BaseModel):
    """Session token plus the courses it unlocks."""

    success: bool = True
    token: str
    expires_at: datetime | None = None
    user: StudentSummary
