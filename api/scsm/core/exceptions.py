"""Error taxonomy shared by the entitlement services.

Every error carries a stable ``code`` so the HTTP layer can map it to a
status with a single table:

- ValidationError: missing or malformed input (caller must fix the request)
- NotFoundError: no matching user, course or order
- AuthError: bad credentials, bad/expired/superseded token
- AccessError: business-rule denial (no active course, no attempts left)
- PaymentNotConfirmedError: gateway has not reported the order as paid
- GatewayError: payment provider failure (retry later)
- StorageError: record store unavailable (retry later)
"""

from typing import Any


class EntitlementError(Exception):
    """Base entitlement engine error."""

    def __init__(self, message: str, code: str = "entitlement_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(EntitlementError):
    """Missing or malformed input."""

    def __init__(self, message: str = "Missing required fields"):
        super().__init__(message, "validation_error")


class NotFoundError(EntitlementError):
    """No matching record."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message, "not_found")


class AuthError(EntitlementError):
    """Credential or session token rejected."""

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message, "auth_error")


class AccessError(EntitlementError):
    """Business rule denies the operation."""

    def __init__(self, message: str = "Access denied", code: str = "access_denied"):
        super().__init__(message, code)


class PaymentNotConfirmedError(AccessError):
    """Gateway has not confirmed the order, or nothing was left to activate."""

    def __init__(self, message: str = "Payment Not Paid"):
        super().__init__(message, "payment_not_confirmed")


class GatewayError(EntitlementError):
    """Payment gateway call failed.

    ``details`` holds the provider's error payload, relayed to the caller.
    """

    def __init__(
        self,
        message: str = "Payment gateway error",
        details: Any = None,
        status_code: int | None = None,
    ):
        super().__init__(message, "gateway_error")
        self.details = details
        self.status_code = status_code


class StorageError(EntitlementError):
    """Raised when a record store operation fails.

    Wraps the underlying driver exception while preserving it for logging.
    """

    def __init__(
        self,
        message: str = "Storage unavailable",
        original_error: Exception | None = None,
    ):
        super().__init__(message, "storage_error")
        self.original_error = original_error
