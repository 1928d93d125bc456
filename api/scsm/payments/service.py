"""Payment reconciliation service.

Confirms a payment with the gateway, activates the entitlements bound to
the order and logs the student in on the paying device.
"""

from datetime import UTC, datetime

from scsm.auth.service import SessionService
from scsm.core.exceptions import NotFoundError, PaymentNotConfirmedError, ValidationError
from scsm.core.locks import UserLocks, mobile_key, order_key
from scsm.core.logging import get_logger
from scsm.enrollments.schemas import SessionGrant
from scsm.enrollments.store import UserStore

from .gateway import PAID_STATUS, PaymentGateway


logger = get_logger(__name__)


class PaymentService:
    """Activates entitlements once the gateway reports an order as paid."""

    def __init__(
        self,
        store: UserStore,
        gateway: PaymentGateway,
        sessions: SessionService,
        locks: UserLocks | None = None,
    ):
        self.store = store
        self.gateway = gateway
        self.sessions = sessions
        self.locks = locks or sessions.locks

    async def verify_payment(self, order_id: str) -> SessionGrant:
        """Reconcile an order with the gateway.

        The gateway status is read before any lock is taken. Only a "PAID"
        order mutates the store.

        Args:
            order_id: Order id returned by create_order

        Returns:
            SessionGrant with a fresh token and the valid courses

        Raises:
            ValidationError: If order_id is empty
            GatewayError: If the gateway cannot be queried
            PaymentNotConfirmedError: If the order is not paid, or no
                entitlement is bound to it
            NotFoundError: If no student holds the order
            StorageError: If the store fails
        """
        order_id = (order_id or "").strip()
        if not order_id:
            raise ValidationError("Order ID required")

        status = await self.gateway.get_remote_order_status(order_id)
        if status != PAID_STATUS:
            logger.info("payment_not_confirmed", order_id=order_id, status=status)
            raise PaymentNotConfirmedError()

        async with self.locks.hold(order_key(order_id)):
            owner = await self.store.find_by_order_id(order_id)
            if owner is None:
                logger.warning("payment_order_unknown", order_id=order_id)
                raise NotFoundError("User not found for this order")

            async with self.locks.hold(mobile_key(owner.mobile)):
                # Re-read under the user lock so concurrent usage is not lost
                student = await self.store.find_by_id(owner.id) or owner

                now = datetime.now(UTC)
                activated = student.mark_order_paid(order_id, now)
                if not activated:
                    logger.warning(
                        "payment_order_not_bound",
                        order_id=order_id,
                        student_id=str(student.id),
                    )
                    raise PaymentNotConfirmedError()

                await self.store.save(student)
                token = await self.sessions.issue_session(student)

        logger.info(
            "payment_verified",
            order_id=order_id,
            student_id=str(student.id),
            courses=[c.course_id for c in activated],
        )
        return self.sessions.build_grant(student, token, student.valid_entitlements(now))
