"""Payments module.

- PaymentGateway: remote order contract (Cashfree implementation included)
- PaymentService: activates an order's entitlements once it is paid
"""

from .gateway import PAID_STATUS, CashfreeGateway, CustomerDetails, PaymentGateway
from .service import PaymentService


__all__ = [
    "PAID_STATUS",
    "CashfreeGateway",
    "CustomerDetails",
    "PaymentGateway",
    "PaymentService",
]
