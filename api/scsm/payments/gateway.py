"""Payment gateway client.

The entitlement services only need two remote operations:
- create a remote order for a generated order id
- read the status of that order

PaymentGateway is that contract; CashfreeGateway implements it against the
Cashfree PG REST API. Sandbox credentials (app id starting with TEST) are
sent to the sandbox host.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from scsm.config.settings import Settings
from scsm.core.exceptions import GatewayError
from scsm.core.logging import get_logger


logger = get_logger(__name__)

PAID_STATUS = "PAID"


@dataclass(frozen=True)
class CustomerDetails:
    """Customer block sent with a remote order."""

    id: str
    name: str
    email: str
    phone: str


class PaymentGateway(Protocol):
    """Remote payment provider operations."""

    async def create_remote_order(
        self,
        order_id: str,
        amount: Decimal,
        currency: str,
        customer: CustomerDetails,
        return_url: str,
    ) -> dict[str, Any]: ...

    async def get_remote_order_status(self, order_id: str) -> str: ...


class CashfreeGateway:
    """PaymentGateway backed by the Cashfree PG orders API."""

    def __init__(self, settings: Settings):
        self._app_id = (settings.cashfree_app_id or "").strip()
        self._secret_key = (settings.cashfree_secret_key or "").strip()
        self._api_version = settings.cashfree_api_version
        self._base_url = settings.cashfree_base_url
        self._timeout = settings.cashfree_timeout_seconds

    @property
    def is_configured(self) -> bool:
        """Check if credentials are present."""
        return bool(self._app_id and self._secret_key)

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "x-api-version": self._api_version,
            "x-client-id": self._app_id,
            "x-client-secret": self._secret_key,
        }

    def _ensure_configured(self) -> None:
        if not self.is_configured:
            raise GatewayError("Payment gateway not configured")

    async def create_remote_order(
        self,
        order_id: str,
        amount: Decimal,
        currency: str,
        customer: CustomerDetails,
        return_url: str,
    ) -> dict[str, Any]:
        """Create a Cashfree order.

        Args:
            order_id: Locally generated order id
            amount: Server-enforced order amount
            currency: ISO currency code
            customer: Customer details
            return_url: URL the customer is sent back to after paying

        Returns:
            Cashfree order payload (relayed verbatim to the client)

        Raises:
            GatewayError: If not configured or the request fails
        """
        self._ensure_configured()

        payload = {
            "order_id": order_id,
            "order_amount": float(amount),
            "order_currency": currency,
            "customer_details": {
                "customer_id": customer.id,
                "customer_name": customer.name,
                "customer_email": customer.email,
                "customer_phone": customer.phone,
            },
            "order_meta": {"return_url": return_url},
        }

        return await self._request("POST", "/orders", order_id, json=payload)

    async def get_remote_order_status(self, order_id: str) -> str:
        """Return the raw order_status of a Cashfree order (e.g. "PAID")."""
        self._ensure_configured()
        data = await self._request(
            "GET", f"/orders/{quote(order_id, safe='')}", order_id
        )
        return str(data.get("order_status", ""))

    async def _request(
        self,
        method: str,
        path: str,
        order_id: str,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(
                    method, url, json=json, headers=self._headers()
                )
        except httpx.TimeoutException as e:
            logger.error("cashfree_timeout", order_id=order_id, error=str(e))
            raise GatewayError("Payment gateway timeout") from e
        except httpx.RequestError as e:
            logger.error("cashfree_request_error", order_id=order_id, error=str(e))
            raise GatewayError(f"Payment gateway request error: {e}") from e

        if response.is_error:
            details = _error_payload(response)
            logger.error(
                "cashfree_request_failed",
                order_id=order_id,
                method=method,
                status_code=response.status_code,
                details=details,
            )
            raise GatewayError(
                "Payment gateway rejected the request",
                details=details,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            data = None

        if not isinstance(data, dict):
            logger.error(
                "cashfree_invalid_response",
                order_id=order_id,
                method=method,
                body=response.text[:500],
            )
            raise GatewayError("Payment gateway returned an invalid response")

        return data


def _error_payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text[:500]
