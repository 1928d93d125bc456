"""Course orders module.

Turns a checkout request into pending (unpaid) entitlements and a remote
payment order priced on the server.
"""

from .schemas import CreateOrderRequest
from .service import OrderService, generate_order_id


__all__ = ["CreateOrderRequest", "OrderService", "generate_order_id"]
