"""Order creation service.

Business logic for:
- Server-side pricing of course selections
- Recording pending (unpaid) entitlements before payment
- Requesting the remote payment order

Pending entitlements are saved BEFORE the gateway call. If that save fails
the order still goes to the gateway: the failure is logged and the student
can be re-synchronized later.
"""

import secrets
import time
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any

from scsm.auth.validators import names_match, require_fields
from scsm.core.exceptions import StorageError, ValidationError
from scsm.core.locks import UserLocks, mobile_key
from scsm.core.logging import get_logger
from scsm.enrollments.catalog import CourseDescriptor, resolve_courses
from scsm.enrollments.models import DEFAULT_ATTEMPTS, StudentAccount
from scsm.enrollments.store import UserStore
from scsm.payments.gateway import CustomerDetails, PaymentGateway

from .schemas import ORDER_ID_PLACEHOLDER, CreateOrderRequest


logger = get_logger(__name__)


def generate_order_id() -> str:
    """Order id from epoch milliseconds plus a random suffix."""
    return f"ORDER_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


class OrderService:
    """Turns checkout requests into pending entitlements and remote orders."""

    def __init__(
        self,
        store: UserStore,
        gateway: PaymentGateway,
        locks: UserLocks | None = None,
        course_prices: dict[str, Decimal] | None = None,
        validity_days: int = 20,
        default_attempts: int = DEFAULT_ATTEMPTS,
        currency: str = "INR",
        default_center_name: str = "Online Student",
    ):
        self.store = store
        self.gateway = gateway
        self.locks = locks or UserLocks()
        self.course_prices = course_prices or {}
        self.validity_days = validity_days
        self.default_attempts = default_attempts
        self.currency = currency
        self.default_center_name = default_center_name

    def resolve_amount(self, selection: str, client_amount: Decimal | None) -> Decimal | None:
        """Server price for the selection, else the client amount."""
        return self.course_prices.get(selection, client_amount)

    async def create_order(self, data: CreateOrderRequest) -> dict[str, Any]:
        """Create pending entitlements and a remote payment order.

        Args:
            data: Checkout request

        Returns:
            Gateway order payload, unchanged

        Raises:
            ValidationError: If name, mobile, email or amount is
                missing, or the return URL lacks the order id placeholder
            GatewayError: If the gateway rejects or fails the request
        """
        selection = (data.course_id or "").strip()
        amount = self.resolve_amount(selection, data.order_amount)

        require_fields(
            "Missing Details",
            customer_name=data.customer_name,
            customer_phone=data.customer_phone,
            customer_email=data.customer_email,
            order_amount=amount,
        )
        if amount is None or amount <= 0:
            raise ValidationError("Order amount must be positive")

        return_url = data.return_url or ""
        if ORDER_ID_PLACEHOLDER not in return_url:
            raise ValidationError(
                f"Return URL must contain the {ORDER_ID_PLACEHOLDER} placeholder"
            )

        name = data.customer_name.strip()
        mobile = data.customer_phone.strip()
        email = data.customer_email.strip()
        order_id = generate_order_id()
        courses = resolve_courses(selection)

        logger.info(
            "order_requested",
            mobile=mobile,
            selection=selection,
            courses=[c.id for c in courses],
            amount=str(amount),
            order_id=order_id,
        )

        try:
            async with self.locks.hold(mobile_key(mobile)):
                await self._record_pending(
                    name=name,
                    mobile=mobile,
                    email=email,
                    center_name=(data.center_name or "").strip(),
                    courses=courses,
                    order_id=order_id,
                )
        except StorageError as e:
            logger.error(
                "order_persist_failed",
                order_id=order_id,
                mobile=mobile,
                error=e.message,
            )

        customer = CustomerDetails(
            id=(data.customer_id or "").strip() or f"CUST_{mobile}",
            name=name,
            email=email,
            phone=mobile,
        )
        payload = await self.gateway.create_remote_order(
            order_id=order_id,
            amount=amount,
            currency=self.currency,
            customer=customer,
            return_url=return_url.replace(ORDER_ID_PLACEHOLDER, order_id),
        )

        logger.info("order_created", order_id=order_id, mobile=mobile)
        return payload

    async def _record_pending(
        self,
        name: str,
        mobile: str,
        email: str,
        center_name: str,
        courses: list[CourseDescriptor],
        order_id: str,
    ) -> StudentAccount:
        now = datetime.now(UTC)
        expiry = now + timedelta(days=self.validity_days)

        student = await self.store.find_by_mobile(mobile)
        is_new = student is None

        if student is None:
            student = StudentAccount(
                name=name,
                email=email,
                mobile=mobile,
                center_name=center_name or self.default_center_name,
            )
        elif not names_match(student.name, name):
            # Mobile is the merge key; a different name does not block the order
            logger.warning(
                "order_name_mismatch",
                mobile=mobile,
                student_id=str(student.id),
            )

        for course in courses:
            student.upsert_entitlement(
                course,
                order_id=order_id,
                now=now,
                expiry=expiry,
                attempts=self.default_attempts,
            )

        if is_new:
            await self.store.create(student)
        else:
            await self.store.save(student)

        logger.info(
            "pending_entitlements_saved",
            student_id=str(student.id),
            order_id=order_id,
            new_student=is_new,
        )
        return student
