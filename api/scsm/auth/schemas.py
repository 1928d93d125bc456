"""Pydantic schemas for student sessions.

Request and response models for:
- Login
- Verified session identity
"""

from uuid import UUID

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Student login request (no password: name, mobile and email)."""

    name: str | None = Field(None, description="Full name used at enrollment")
    mobile: str | None = Field(None, description="Mobile number")
    email: str | None = Field(None, description="Email address")


class SessionIdentity(BaseModel):
    """Identity proven by a verified, current session token."""

    student_id: UUID
    mobile: str
    name: str
    token: str = Field(..., repr=False)
