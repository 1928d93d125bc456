"""HTTP surface tests: routes, bearer auth and the error envelope."""

import pytest
from fastapi.testclient import TestClient

from scsm.core.exceptions import GatewayError


CHECKOUT = {
    "customer_id": "cust_1",
    "customer_name": "Asha Verma",
    "customer_phone": "9876543210",
    "customer_email": "asha@example.com",
    "order_amount": 10,
    "return_url": "https://example.com/status?order_id={order_id}",
    "course_id": "combo",
}

LOGIN = {"name": "Asha Verma", "mobile": "9876543210", "email": "asha@example.com"}


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def paid_token(client: TestClient, gateway) -> str:
    """Buy the combo over HTTP and return the session token."""
    order = client.post("/api/create-order", json=CHECKOUT).json()
    gateway.mark_paid(order["order_id"])
    response = client.post("/api/verify-payment", json={"order_id": order["order_id"]})
    assert response.status_code == 200
    return response.json()["token"]


class TestCreateOrderEndpoint:
    """Tests for POST /api/create-order."""

    def test_returns_gateway_payload(self, client: TestClient, gateway) -> None:
        response = client.post("/api/create-order", json=CHECKOUT)

        assert response.status_code == 200
        data = response.json()
        assert data["order_id"].startswith("ORDER_")
        assert data["payment_session_id"] == f"session_{data['order_id']}"
        assert gateway.created[0]["amount"] == 199

    def test_missing_details(self, client: TestClient) -> None:
        response = client.post(
            "/api/create-order", json={**CHECKOUT, "customer_email": ""}
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] is True
        assert data["code"] == "validation_error"
        assert "customer_email" in data["message"]
        assert "request_id" in data

    def test_gateway_error_relays_details(self, client: TestClient, gateway) -> None:
        gateway.fail_with = GatewayError(
            "Payment gateway rejected the request",
            details={"message": "order_amount invalid"},
            status_code=400,
        )

        response = client.post("/api/create-order", json=CHECKOUT)

        assert response.status_code == 502
        assert response.json()["details"] == {"message": "order_amount invalid"}


class TestVerifyPaymentEndpoint:
    """Tests for POST /api/verify-payment."""

    def test_paid_order_logs_in(self, client: TestClient, gateway) -> None:
        order = client.post("/api/create-order", json=CHECKOUT).json()
        gateway.mark_paid(order["order_id"])

        response = client.post(
            "/api/verify-payment", json={"order_id": order["order_id"]}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["token"]
        assert [c["selected_subject"] for c in data["user"]["courses"]] == [
            "CSS",
            "CLS",
        ]

    def test_unpaid_order(self, client: TestClient) -> None:
        order = client.post("/api/create-order", json=CHECKOUT).json()

        response = client.post(
            "/api/verify-payment", json={"order_id": order["order_id"]}
        )

        assert response.status_code == 402
        assert response.json()["code"] == "payment_not_confirmed"

    def test_unknown_order(self, client: TestClient, gateway) -> None:
        gateway.mark_paid("ORDER_0_unknown")

        response = client.post(
            "/api/verify-payment", json={"order_id": "ORDER_0_unknown"}
        )

        assert response.status_code == 404

    def test_missing_order_id(self, client: TestClient) -> None:
        response = client.post("/api/verify-payment", json={})
        assert response.status_code == 400


class TestLoginEndpoint:
    """Tests for POST /api/login."""

    def test_login(self, client: TestClient, paid_token: str) -> None:
        response = client.post("/api/login", json=LOGIN)

        assert response.status_code == 200
        assert response.json()["token"] != paid_token

    def test_wrong_name(self, client: TestClient, paid_token: str) -> None:
        response = client.post("/api/login", json={**LOGIN, "name": "Asha"})

        assert response.status_code == 401
        assert response.json()["code"] == "auth_error"

    def test_unknown_student(self, client: TestClient) -> None:
        response = client.post("/api/login", json=LOGIN)
        assert response.status_code == 404

    def test_missing_fields(self, client: TestClient) -> None:
        response = client.post("/api/login", json={"mobile": "9876543210"})
        assert response.status_code == 400


class TestUsageEndpoints:
    """Tests for the bearer-protected usage routes."""

    def test_start_exam(self, client: TestClient, paid_token: str) -> None:
        response = client.post(
            "/api/start-exam", json={"course_id": "fttp"}, headers=bearer(paid_token)
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "attempts_left": 29}

    def test_start_exam_requires_token(self, client: TestClient) -> None:
        response = client.post("/api/start-exam", json={"course_id": "fttp"})

        assert response.status_code == 401
        assert response.json()["code"] == "auth_error"

    def test_superseded_token_rejected(
        self, client: TestClient, paid_token: str
    ) -> None:
        client.post("/api/login", json=LOGIN)

        response = client.post(
            "/api/start-exam", json={"course_id": "fttp"}, headers=bearer(paid_token)
        )

        assert response.status_code == 401

    def test_course_not_purchased(self, client: TestClient, paid_token: str) -> None:
        response = client.post(
            "/api/start-exam",
            json={"course_id": "comm-personality"},
            headers=bearer(paid_token),
        )
        assert response.status_code == 404

    def test_update_progress(self, client: TestClient, paid_token: str) -> None:
        client.post(
            "/api/update-progress",
            json={"course_id": "dttp", "modules": ["m1", "m2"]},
            headers=bearer(paid_token),
        )
        response = client.post(
            "/api/update-progress",
            json={"course_id": "dttp", "modules": ["m2", "m3"]},
            headers=bearer(paid_token),
        )

        assert response.status_code == 200
        assert response.json()["modules_completed"] == ["m1", "m2", "m3"]

    def test_update_progress_rejects_non_list(
        self, client: TestClient, paid_token: str
    ) -> None:
        response = client.post(
            "/api/update-progress",
            json={"course_id": "dttp", "modules": "m1"},
            headers=bearer(paid_token),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"
