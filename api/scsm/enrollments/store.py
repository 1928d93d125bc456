# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Record store for student accounts.

UserStore is the persistence contract the entitlement services depend on.
"Not found" is a normal outcome (None); any driver failure surfaces as
StorageError. CassandraUserStore implements it with a main table plus two
lookup tables (dual-write pattern).
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol
from uuid import UUID

from scsm.core.exceptions import StorageError
from scsm.core.logging import get_logger

from .models import LEGACY_MIGRATION_ORDER_ID, StudentAccount


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


class UserStore(Protocol):
    """Persistence operations on student accounts."""

    async def find_by_mobile(self, mobile: str) -> StudentAccount | None: ...

    async def find_by_mobile_and_email(
        self, mobile: str, email: str
    ) -> StudentAccount | None: ...

    async def find_by_order_id(self, order_id: str) -> StudentAccount | None: ...

    async def find_by_id(self, student_id: UUID) -> StudentAccount | None: ...

    async def create(self, student: StudentAccount) -> None: ...

    async def save(self, student: StudentAccount) -> None: ...


def emails_match(stored: str, given: str) -> bool:
    """Case-insensitive exact email comparison."""
    return stored.strip().lower() == given.strip().lower()


class CassandraUserStore:
    """UserStore backed by Cassandra (cassandra-asyncio-driver session)."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session.

        Args:
            session: Cassandra session with aexecute() support
            keyspace: Keyspace name for queries
        """
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._get_student_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.students WHERE id = ?"
        )
        self._get_student_id_by_mobile = self.session.prepare(
            f"SELECT student_id FROM {self.keyspace}.students_by_mobile WHERE mobile = ?"
        )
        self._get_student_id_by_order = self.session.prepare(
            f"SELECT student_id FROM {self.keyspace}.students_by_order WHERE order_id = ?"
        )
        self._upsert_student = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.students
            (id, name, email, mobile, center_name, session_token, courses,
             legacy, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._insert_mobile_lookup = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.students_by_mobile (mobile, student_id)
            VALUES (?, ?)
        """)
        self._insert_order_lookup = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.students_by_order (order_id, student_id)
            VALUES (?, ?)
        """)

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def find_by_id(self, student_id: UUID) -> StudentAccount | None:
        """Find student by ID."""
        try:
            result = await self.session.aexecute(self._get_student_by_id, [student_id])
            row = result.one()
        except Exception as e:
            raise self._storage_error("find_by_id", e) from e
        return StudentAccount.from_row(row) if row else None

    async def find_by_mobile(self, mobile: str) -> StudentAccount | None:
        """Find student by mobile number."""
        student_id = await self._lookup(self._get_student_id_by_mobile, mobile)
        if student_id is None:
            return None
        return await self.find_by_id(student_id)

    async def find_by_mobile_and_email(
        self, mobile: str, email: str
    ) -> StudentAccount | None:
        """Find student by mobile whose email matches case-insensitively."""
        student = await self.find_by_mobile(mobile)
        if student is None or not emails_match(student.email, email):
            return None
        return student

    async def find_by_order_id(self, order_id: str) -> StudentAccount | None:
        """Find the student holding any entitlement with this order id."""
        student_id = await self._lookup(self._get_student_id_by_order, order_id)
        if student_id is None:
            return None

        student = await self.find_by_id(student_id)
        # The lookup row outlives re-purchases that replaced the order id
        if student is None or order_id not in student.order_ids:
            return None
        return student

    # ==========================================================================
    # Writes
    # ==========================================================================

    async def create(self, student: StudentAccount) -> None:
        """Insert a new student with its mobile and order lookups."""
        await self._write(student, include_mobile=True)
        logger.info(
            "student_created",
            student_id=str(student.id),
            mobile=student.mobile,
        )

    async def save(self, student: StudentAccount) -> None:
        """Persist the full student record (last write wins)."""
        student.updated_at = datetime.now(UTC)
        await self._write(student, include_mobile=False)

    # ==========================================================================
    # Private Helpers
    # ==========================================================================

    async def _lookup(self, statement, key: str) -> UUID | None:
        try:
            result = await self.session.aexecute(statement, [key])
            row = result.one()
        except Exception as e:
            raise self._storage_error("lookup", e) from e
        return row.student_id if row else None

    async def _write(self, student: StudentAccount, include_mobile: bool) -> None:
        try:
            await self.session.aexecute(
                self._upsert_student,
                [
                    student.id,
                    student.name,
                    student.email,
                    student.mobile,
                    student.center_name,
                    student.session_token,
                    student.courses_json(),
                    student.legacy_json(),
                    student.created_at,
                    student.updated_at,
                ],
            )

            if include_mobile:
                await self.session.aexecute(
                    self._insert_mobile_lookup, [student.mobile, student.id]
                )

            for order_id in sorted(student.order_ids - {LEGACY_MIGRATION_ORDER_ID}):
                await self.session.aexecute(
                    self._insert_order_lookup, [order_id, student.id]
                )
        except Exception as e:
            raise self._storage_error("save_student", e, student_id=str(student.id)) from e

    def _storage_error(self, operation: str, error: Exception, **context) -> StorageError:
        logger.exception(
            "database_error",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
            **context,
        )
        return StorageError("Database operation failed", original_error=error)
