"""Course usage service.

Business logic for:
- Consuming one exam attempt of a paid course
- Recording completed modules of a paid course

Usage only requires the course to be paid. Expiry gates login (no token is
issued without a valid course) and is not re-checked here, so a student
with a still-valid token keeps using a course that expired mid-session.
"""

from typing import Any

from scsm.core.exceptions import AccessError, NotFoundError, ValidationError
from scsm.core.locks import UserLocks, mobile_key
from scsm.core.logging import get_logger
from scsm.enrollments.models import Entitlement
from scsm.enrollments.store import UserStore


logger = get_logger(__name__)


class UsageService:
    """Tracks attempts and progress on entitlements."""

    def __init__(self, store: UserStore, locks: UserLocks | None = None):
        self.store = store
        self.locks = locks or UserLocks()

    async def consume_attempt(self, mobile: str, course_id: str) -> int:
        """Use one exam attempt.

        Returns:
            Attempts remaining after this one

        Raises:
            NotFoundError: If the student or paid course is missing
            AccessError: If no attempts are left (nothing is changed)
            StorageError: If the store fails
        """
        async with self.locks.hold(mobile_key(mobile)):
            student, course = await self._paid_course(mobile, course_id)

            if course.attempts_left <= 0:
                logger.info(
                    "attempt_denied_exhausted",
                    student_id=str(student.id),
                    course_id=course_id,
                )
                raise AccessError("No attempts left", code="no_attempts_left")

            course.attempts_left -= 1
            await self.store.save(student)

        logger.info(
            "attempt_consumed",
            student_id=str(student.id),
            course_id=course_id,
            attempts_left=course.attempts_left,
        )
        return course.attempts_left

    async def record_progress(self, mobile: str, course_id: str, modules: Any) -> list[str]:
        """Merge completed module ids into the course's progress.

        Returns:
            The full completed-module list, in first-completion order

        Raises:
            ValidationError: If modules is not a list
            NotFoundError: If the student or paid course is missing
            StorageError: If the store fails
        """
        if not isinstance(modules, list):
            raise ValidationError("Modules must be a list")

        async with self.locks.hold(mobile_key(mobile)):
            student, course = await self._paid_course(mobile, course_id)
            merged = course.merge_modules([str(m) for m in modules])
            await self.store.save(student)

        logger.info(
            "progress_recorded",
            student_id=str(student.id),
            course_id=course_id,
            modules_completed=len(merged),
        )
        return merged

    async def _paid_course(self, mobile: str, course_id: str):
        student = await self.store.find_by_mobile(mobile)
        if student is None:
            raise NotFoundError("User not found")

        course: Entitlement | None = student.find_paid_entitlement(course_id)
        if course is None:
            raise NotFoundError("Course not purchased")

        return student, course
