"""Student account and course entitlement models.

Cassandra table definitions for:
- Students: one row per account, entitlements embedded as JSON text
- Lookup tables: mobile -> student and order id -> student

A student owns an ordered list of entitlements (one per course) plus an
optional LegacyEnrollment carrying the single-course fields of accounts
created before multi-course purchases existed. Only the legacy migration
reads LegacyEnrollment.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

import orjson

from .catalog import CourseDescriptor


if TYPE_CHECKING:
    from cassandra.cluster import Row


DEFAULT_ATTEMPTS = 30

# Order id stamped on entitlements synthesized from legacy fields
LEGACY_MIGRATION_ORDER_ID = "LEGACY_MIGRATION"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

STUDENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.students (
    id UUID PRIMARY KEY,
    name TEXT,
    email TEXT,
    mobile TEXT,
    center_name TEXT,
    session_token TEXT,
    courses TEXT,
    legacy TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Mobile is the natural key for every mutation path
STUDENTS_BY_MOBILE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.students_by_mobile (
    mobile TEXT PRIMARY KEY,
    student_id UUID
)
"""

# One row per order id ever attached to an entitlement
STUDENTS_BY_ORDER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.students_by_order (
    order_id TEXT PRIMARY KEY,
    student_id UUID
)
"""

ENROLLMENTS_TABLES_CQL = [
    STUDENTS_TABLE_CQL,
    STUDENTS_BY_MOBILE_TABLE_CQL,
    STUDENTS_BY_ORDER_TABLE_CQL,
]


def get_enrollments_tables_cql(keyspace: str) -> list[str]:
    """Get all CQL statements for enrollment tables."""
    return [cql.format(keyspace=keyspace) for cql in ENROLLMENTS_TABLES_CQL]


# ==============================================================================
# Helper Functions
# ==============================================================================


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    return ensure_utc_aware(datetime.fromisoformat(value))


def _format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# ==============================================================================
# Entities
# ==============================================================================


@dataclass
class Entitlement:
    """One course's access grant for a student."""

    course_id: str
    course_name: str
    subject: str
    order_id: str
    expiry_date: datetime
    payment_date: datetime = field(default_factory=lambda: datetime.now(UTC))
    is_paid: bool = False
    attempts_left: int = DEFAULT_ATTEMPTS
    modules_completed: list[str] = field(default_factory=list)

    def is_valid(self, now: datetime | None = None) -> bool:
        """Paid and expiry strictly in the future."""
        now = now or datetime.now(UTC)
        return self.is_paid and self.expiry_date > now

    def merge_modules(self, modules: list[str]) -> list[str]:
        """Union new module ids into the completed set, keeping first-seen order."""
        seen = set(self.modules_completed)
        for module_id in modules:
            if module_id not in seen:
                self.modules_completed.append(module_id)
                seen.add(module_id)
        return list(self.modules_completed)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "course_id": self.course_id,
            "course_name": self.course_name,
            "subject": self.subject,
            "order_id": self.order_id,
            "is_paid": self.is_paid,
            "payment_date": _format_datetime(self.payment_date),
            "expiry_date": _format_datetime(self.expiry_date),
            "attempts_left": self.attempts_left,
            "modules_completed": list(self.modules_completed),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Entitlement":
        """Create instance from a serialized dictionary."""
        return cls(
            course_id=data["course_id"],
            course_name=data.get("course_name") or data["course_id"],
            subject=data.get("subject") or "CSS",
            order_id=data.get("order_id") or "",
            is_paid=bool(data.get("is_paid", False)),
            payment_date=_parse_datetime(data.get("payment_date"))
            or datetime.now(UTC),
            expiry_date=_parse_datetime(data.get("expiry_date")) or datetime.now(UTC),
            attempts_left=int(data.get("attempts_left", DEFAULT_ATTEMPTS)),
            modules_completed=list(data.get("modules_completed") or []),
        )


@dataclass
class LegacyEnrollment:
    """Single-course fields of accounts created before multi-course orders."""

    is_paid: bool = False
    enrolled_course: str | None = None
    course_name: str | None = None
    payment_date: datetime | None = None
    expiry_date: datetime | None = None
    attempts_left: int | None = None
    order_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "is_paid": self.is_paid,
            "enrolled_course": self.enrolled_course,
            "course_name": self.course_name,
            "payment_date": _format_datetime(self.payment_date),
            "expiry_date": _format_datetime(self.expiry_date),
            "attempts_left": self.attempts_left,
            "order_id": self.order_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LegacyEnrollment":
        """Create instance from a serialized dictionary."""
        attempts = data.get("attempts_left")
        return cls(
            is_paid=bool(data.get("is_paid", False)),
            enrolled_course=data.get("enrolled_course"),
            course_name=data.get("course_name"),
            payment_date=_parse_datetime(data.get("payment_date")),
            expiry_date=_parse_datetime(data.get("expiry_date")),
            attempts_left=int(attempts) if attempts is not None else None,
            order_id=data.get("order_id"),
        )


@dataclass
class StudentAccount:
    """A student identified by mobile, holding per-course entitlements.

    Attributes:
        name: Full name given at enrollment
        email: Email given at enrollment
        mobile: Unique mobile number (natural key)
        center_name: Display center/branch name
        id: Unique identifier (UUID)
        session_token: The only session token currently accepted
        courses: Entitlements in purchase order
        legacy: Pre-multi-course fields, None for accounts created later
    """

    name: str
    email: str
    mobile: str
    center_name: str = "Online Student"
    id: UUID = field(default_factory=uuid4)
    session_token: str | None = None
    courses: list[Entitlement] = field(default_factory=list)
    legacy: LegacyEnrollment | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    # ==========================================================================
    # Accessors
    # ==========================================================================

    def find_entitlement(self, course_id: str) -> Entitlement | None:
        """Return the entitlement for a course, paid or not."""
        for course in self.courses:
            if course.course_id == course_id:
                return course
        return None

    def find_paid_entitlement(self, course_id: str) -> Entitlement | None:
        """Return the entitlement for a course only if it is paid."""
        course = self.find_entitlement(course_id)
        if course is not None and course.is_paid:
            return course
        return None

    def has_course(self, course_id: str) -> bool:
        return self.find_entitlement(course_id) is not None

    def entitlements_for_order(self, order_id: str) -> list[Entitlement]:
        return [c for c in self.courses if c.order_id == order_id]

    def valid_entitlements(self, now: datetime | None = None) -> list[Entitlement]:
        """Entitlements usable right now (paid and not expired)."""
        now = now or datetime.now(UTC)
        return [c for c in self.courses if c.is_valid(now)]

    @property
    def order_ids(self) -> set[str]:
        return {c.order_id for c in self.courses if c.order_id}

    # ==========================================================================
    # Mutations
    # ==========================================================================

    def upsert_entitlement(
        self,
        course: CourseDescriptor,
        order_id: str,
        now: datetime,
        expiry: datetime,
        attempts: int = DEFAULT_ATTEMPTS,
    ) -> Entitlement:
        """Attach a course to a pending order.

        An existing entitlement for the course is refreshed in place (new
        order id, unpaid, new payment and expiry dates) and keeps its
        attempts and progress. Otherwise a new unpaid entitlement is
        appended.
        """
        existing = self.find_entitlement(course.id)
        if existing is not None:
            existing.order_id = order_id
            existing.is_paid = False
            existing.payment_date = now
            existing.expiry_date = expiry
            return existing

        entitlement = Entitlement(
            course_id=course.id,
            course_name=course.name,
            subject=course.subject,
            order_id=order_id,
            is_paid=False,
            payment_date=now,
            expiry_date=expiry,
            attempts_left=attempts,
        )
        self.courses.append(entitlement)
        return entitlement

    def mark_order_paid(self, order_id: str, now: datetime) -> list[Entitlement]:
        """Activate every entitlement tied to order_id.

        Returns:
            The entitlements that were activated (empty if none matched)
        """
        matched = self.entitlements_for_order(order_id)
        for course in matched:
            course.is_paid = True
            course.payment_date = now
        return matched

    # ==========================================================================
    # Serialization
    # ==========================================================================

    def courses_json(self) -> str:
        return orjson.dumps([c.to_dict() for c in self.courses]).decode()

    def legacy_json(self) -> str | None:
        if self.legacy is None:
            return None
        return orjson.dumps(self.legacy.to_dict()).decode()

    @classmethod
    def from_row(cls, row: "Row") -> "StudentAccount":
        """Create instance from Cassandra row."""
        courses_raw = getattr(row, "courses", None)
        legacy_raw = getattr(row, "legacy", None)
        return cls(
            id=row.id,
            name=row.name or "",
            email=row.email or "",
            mobile=row.mobile,
            center_name=row.center_name or "Online Student",
            session_token=row.session_token,
            courses=[Entitlement.from_dict(c) for c in orjson.loads(courses_raw)]
            if courses_raw
            else [],
            legacy=LegacyEnrollment.from_dict(orjson.loads(legacy_raw))
            if legacy_raw
            else None,
            created_at=ensure_utc_aware(row.created_at) or datetime.now(UTC),
            updated_at=ensure_utc_aware(row.updated_at) or datetime.now(UTC),
        )
