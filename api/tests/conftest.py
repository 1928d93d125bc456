"""Shared fixtures: in-memory record store, fake gateway and wired services."""

import copy
import os
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

import pytest


# Must be set before scsm.config caches settings
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fastapi.testclient import TestClient  # noqa: E402

from scsm.auth.service import SessionService  # noqa: E402
from scsm.core.exceptions import GatewayError, StorageError  # noqa: E402
from scsm.core.locks import UserLocks  # noqa: E402
from scsm.enrollments.catalog import resolve_courses  # noqa: E402
from scsm.enrollments.models import StudentAccount  # noqa: E402
from scsm.enrollments.store import emails_match  # noqa: E402
from scsm.orders.service import OrderService  # noqa: E402
from scsm.payments.gateway import CustomerDetails  # noqa: E402
from scsm.payments.service import PaymentService  # noqa: E402
from scsm.usage.service import UsageService  # noqa: E402


TEST_SECRET = "test-secret-key-with-at-least-32-characters"

COURSE_PRICES = {
    "soft-lang-combo": Decimal("199.00"),
    "combo": Decimal("199.00"),
    "comm-personality": Decimal("49.00"),
}


# ==============================================================================
# Fakes
# ==============================================================================


class InMemoryUserStore:
    """UserStore keeping deep copies, so unsaved mutations are not visible."""

    def __init__(self) -> None:
        self.students: dict[UUID, StudentAccount] = {}
        self.fail_writes = False
        self.save_count = 0

    def _copy(self, student: StudentAccount | None) -> StudentAccount | None:
        return copy.deepcopy(student) if student is not None else None

    async def find_by_id(self, student_id: UUID) -> StudentAccount | None:
        return self._copy(self.students.get(student_id))

    async def find_by_mobile(self, mobile: str) -> StudentAccount | None:
        for student in self.students.values():
            if student.mobile == mobile:
                return self._copy(student)
        return None

    async def find_by_mobile_and_email(
        self, mobile: str, email: str
    ) -> StudentAccount | None:
        student = await self.find_by_mobile(mobile)
        if student is None or not emails_match(student.email, email):
            return None
        return student

    async def find_by_order_id(self, order_id: str) -> StudentAccount | None:
        for student in self.students.values():
            if order_id in student.order_ids:
                return self._copy(student)
        return None

    async def create(self, student: StudentAccount) -> None:
        await self.save(student)

    async def save(self, student: StudentAccount) -> None:
        if self.fail_writes:
            raise StorageError("Database operation failed")
        self.save_count += 1
        self.students[student.id] = copy.deepcopy(student)

    def get(self, mobile: str) -> StudentAccount | None:
        """Synchronous peek for assertions."""
        for student in self.students.values():
            if student.mobile == mobile:
                return student
        return None


class FakeGateway:
    """PaymentGateway recording calls, with settable order statuses."""

    def __init__(self) -> None:
        self.created: list[dict[str, Any]] = []
        self.statuses: dict[str, str] = {}
        self.fail_with: GatewayError | None = None

    async def create_remote_order(
        self,
        order_id: str,
        amount: Decimal,
        currency: str,
        customer: CustomerDetails,
        return_url: str,
    ) -> dict[str, Any]:
        if self.fail_with is not None:
            raise self.fail_with
        call = {
            "order_id": order_id,
            "amount": amount,
            "currency": currency,
            "customer": customer,
            "return_url": return_url,
        }
        self.created.append(call)
        self.statuses.setdefault(order_id, "ACTIVE")
        return {
            "order_id": order_id,
            "order_status": "ACTIVE",
            "payment_session_id": f"session_{order_id}",
        }

    async def get_remote_order_status(self, order_id: str) -> str:
        if self.fail_with is not None:
            raise self.fail_with
        return self.statuses.get(order_id, "ACTIVE")

    def mark_paid(self, order_id: str) -> None:
        self.statuses[order_id] = "PAID"


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def locks() -> UserLocks:
    return UserLocks()


@pytest.fixture
def secret_key() -> str:
    return TEST_SECRET


@pytest.fixture
def session_service(store, locks, secret_key) -> SessionService:
    return SessionService(store=store, secret_key=secret_key, locks=locks)


@pytest.fixture
def order_service(store, gateway, locks) -> OrderService:
    return OrderService(
        store=store,
        gateway=gateway,
        locks=locks,
        course_prices=COURSE_PRICES,
    )


@pytest.fixture
def payment_service(store, gateway, session_service, locks) -> PaymentService:
    return PaymentService(
        store=store, gateway=gateway, sessions=session_service, locks=locks
    )


@pytest.fixture
def usage_service(store, locks) -> UsageService:
    return UsageService(store=store, locks=locks)


@pytest.fixture
def now() -> datetime:
    return datetime.now(UTC)


@pytest.fixture
def paid_student_factory(store, now):
    """Factory storing a student with paid, unexpired entitlements."""

    def _create(
        mobile: str = "9876543210",
        name: str = "Asha Verma",
        email: str = "asha@example.com",
        selection: str = "combo",
        order_id: str = "ORDER_1_paid",
        attempts: int = 30,
        expiry: datetime | None = None,
    ) -> StudentAccount:
        student = StudentAccount(name=name, email=email, mobile=mobile)
        for course in resolve_courses(selection):
            entitlement = student.upsert_entitlement(
                course,
                order_id=order_id,
                now=now,
                expiry=expiry or now + timedelta(days=20),
                attempts=attempts,
            )
            entitlement.is_paid = True
        store.students[student.id] = copy.deepcopy(student)
        return student

    return _create


@pytest.fixture
def client(session_service, order_service, payment_service, usage_service) -> TestClient:
    """Test client wired to the in-memory services (no lifespan)."""
    from scsm.auth.dependencies import set_session_service_getter
    from scsm.main import app
    from scsm.orders.router import set_order_service_getter
    from scsm.payments.router import set_payment_service_getter
    from scsm.usage.router import set_usage_service_getter

    set_session_service_getter(lambda: session_service)
    set_order_service_getter(lambda: order_service)
    set_payment_service_getter(lambda: payment_service)
    set_usage_service_getter(lambda: usage_service)

    return TestClient(app)
