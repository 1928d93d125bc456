"""Payment verification endpoint."""

from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends

from scsm.core.context import set_order_id
from scsm.enrollments.schemas import SessionGrant
from scsm.payments.schemas import VerifyPaymentRequest
from scsm.payments.service import PaymentService


router = APIRouter(prefix="/api", tags=["payments"])


_payment_service_getter: Callable[[], PaymentService] | None = None


def set_payment_service_getter(getter: Callable[[], PaymentService]) -> None:
    """Set the payment service getter function."""
    global _payment_service_getter  # noqa: PLW0603 - Required for DI pattern
    _payment_service_getter = getter


def get_payment_service() -> PaymentService:
    """Get PaymentService instance."""
    if _payment_service_getter is None:
        msg = "PaymentService not configured"
        raise RuntimeError(msg)
    return _payment_service_getter()


PaymentServiceDep = Annotated[PaymentService, Depends(get_payment_service)]


@router.post(
    "/verify-payment",
    response_model=SessionGrant,
    summary="Verify a payment and log in",
    responses={
        400: {"description": "Missing order id"},
        402: {"description": "Payment not confirmed"},
        404: {"description": "No student holds this order"},
        502: {"description": "Payment gateway error"},
    },
)
async def verify_payment(
    data: VerifyPaymentRequest,
    payments: PaymentServiceDep,
) -> SessionGrant:
    """Activate the order's courses once the gateway reports it paid."""
    set_order_id(data.order_id)
    return await payments.verify_payment(data.order_id or "")
