"""Order creation endpoint."""

from collections.abc import Callable
from typing import Annotated, Any

from fastapi import APIRouter, Depends

from scsm.orders.schemas import CreateOrderRequest
from scsm.orders.service import OrderService


router = APIRouter(prefix="/api", tags=["orders"])


# ==============================================================================
# Dependency for OrderService
# ==============================================================================

# Module-level reference to be overridden by main.py
_order_service_getter: Callable[[], OrderService] | None = None


def set_order_service_getter(getter: Callable[[], OrderService]) -> None:
    """Set the order service getter function."""
    global _order_service_getter  # noqa: PLW0603 - Required for DI pattern
    _order_service_getter = getter


def get_order_service() -> OrderService:
    """Get OrderService instance."""
    if _order_service_getter is None:
        msg = "OrderService not configured"
        raise RuntimeError(msg)
    return _order_service_getter()


OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]


@router.post(
    "/create-order",
    summary="Create a payment order",
    responses={
        400: {"description": "Missing details or bad return URL"},
        502: {"description": "Payment gateway error"},
    },
)
async def create_order(
    data: CreateOrderRequest,
    orders: OrderServiceDep,
) -> dict[str, Any]:
    """Record pending courses for the student and open a gateway order.

    The gateway's order payload (payment session id etc.) is returned as is.
    """
    return await orders.create_order(data)
