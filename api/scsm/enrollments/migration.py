"""Legacy enrollment migration.

Brings accounts stored under the older schemas into the multi-course shape:

- Accounts from the single-course era have no entitlements, only the
  scalar fields kept in LegacyEnrollment. When those say "paid" and the
  expiry is in the future, both practice courses are synthesized.
- Accounts from the partial migration hold exactly one practice course.
  The missing sibling is added with the same order, expiry and attempts.

Policy: every legacy paid student is entitled to BOTH practice courses
(soft skills and language skills). This is a business rule carried over
from how legacy purchases were sold, not something derivable from the data.

The migration is idempotent. An account already holding both practice
courses is never touched, whatever its order ids look like.
"""

from datetime import UTC, datetime, timedelta

from scsm.core.logging import get_logger

from .catalog import PRACTICE_PAIR, practice_sibling
from .models import (
    DEFAULT_ATTEMPTS,
    LEGACY_MIGRATION_ORDER_ID,
    Entitlement,
    LegacyEnrollment,
    StudentAccount,
)


logger = get_logger(__name__)

# Legacy records without an expiry get one more day of access
LEGACY_DEFAULT_VALIDITY = timedelta(days=1)


def holds_practice_pair(student: StudentAccount) -> bool:
    return all(student.has_course(course.id) for course in PRACTICE_PAIR)


def migrate_legacy(student: StudentAccount, now: datetime | None = None) -> bool:
    """Normalize a student record in place.

    Args:
        student: Account loaded from the store
        now: Reference time (defaults to current UTC time)

    Returns:
        True if the record changed and must be persisted
    """
    now = now or datetime.now(UTC)

    if holds_practice_pair(student):
        return False

    if len(student.courses) == 1:
        return _add_missing_sibling(student, now)

    if not student.courses and student.legacy is not None:
        return _synthesize_from_legacy(student, student.legacy, now)

    return False


def _add_missing_sibling(student: StudentAccount, now: datetime) -> bool:
    existing = student.courses[0]

    if not existing.is_valid(now) or existing.order_id == LEGACY_MIGRATION_ORDER_ID:
        return False

    sibling = practice_sibling(existing.course_id)
    if sibling is None:
        return False

    student.courses.append(
        Entitlement(
            course_id=sibling.id,
            course_name=sibling.name,
            subject=sibling.subject,
            order_id=existing.order_id,
            is_paid=True,
            payment_date=existing.payment_date,
            expiry_date=existing.expiry_date,
            attempts_left=existing.attempts_left,
        )
    )

    logger.info(
        "legacy_sibling_added",
        mobile=student.mobile,
        existing_course=existing.course_id,
        added_course=sibling.id,
        order_id=existing.order_id,
    )
    return True


def _synthesize_from_legacy(
    student: StudentAccount, legacy: LegacyEnrollment, now: datetime
) -> bool:
    if not legacy.is_paid:
        return False

    expiry = legacy.expiry_date or now + LEGACY_DEFAULT_VALIDITY
    if expiry <= now:
        return False

    attempts = (
        legacy.attempts_left if legacy.attempts_left is not None else DEFAULT_ATTEMPTS
    )

    student.courses = [
        Entitlement(
            course_id=course.id,
            course_name=course.name,
            subject=course.subject,
            order_id=LEGACY_MIGRATION_ORDER_ID,
            is_paid=True,
            payment_date=now,
            expiry_date=expiry,
            attempts_left=attempts,
        )
        for course in PRACTICE_PAIR
    ]

    logger.info(
        "legacy_user_migrated",
        mobile=student.mobile,
        legacy_course=legacy.enrolled_course,
        expiry_date=expiry.isoformat(),
        attempts_left=attempts,
    )
    return True
