"""Integration tests for standardized error responses.

Every error body has the shape ``{"status": "error", "kind", "message"}``;
DRF validation errors add ``errors`` with per-field details.
"""

import uuid

import pytest

pytestmark = pytest.mark.integration


def assert_error_shape(data, kind):
    assert data["status"] == "error"
    assert data["kind"] == kind
    assert isinstance(data["message"], str)
    assert data["message"]


class TestStandardizedErrors:
    def test_auth_error_has_standard_format(self, api_client):
        response = api_client.get("/api/v1/orders/")
        assert response.status_code == 401
        assert_error_shape(response.json(), "not_authenticated")

    def test_malformed_json_is_a_validation_error(self, buyer_client):
        response = buyer_client.post(
            "/api/v1/orders/", data="{", content_type="application/json"
        )
        assert response.status_code == 400
        assert_error_shape(response.json(), "validation_error")

    def test_field_errors_are_listed(self, buyer_client, order_payload):
        del order_payload["first_name"]
        order_payload["payment_method"] = "bitcoin"

        response = buyer_client.post("/api/v1/orders/", order_payload, format="json")

        assert response.status_code == 400
        data = response.json()
        assert_error_shape(data, "validation_error")
        assert set(data["errors"]) == {"first_name", "payment_method"}

    def test_not_found_has_standard_format(self, buyer_client):
        response = buyer_client.get(f"/api/v1/orders/{uuid.uuid4()}/")
        assert response.status_code == 404
        data = response.json()
        assert_error_shape(data, "not_found")
        assert "errors" not in data

    def test_authorization_error_has_standard_format(self, manager_client, order_payload):
        response = manager_client.post("/api/v1/orders/", order_payload, format="json")
        assert response.status_code == 403
        data = response.json()
        assert_error_shape(data, "authorization_error")
        assert data["message"] == "Only buyers can place orders."

    def test_business_rule_violation(self, buyer_client, order_payload):
        order_payload["quantity"] = 1

        response = buyer_client.post("/api/v1/orders/", order_payload, format="json")

        assert response.status_code == 400
        data = response.json()
        assert_error_shape(data, "validation_error")
        assert data["message"] == "Minimum order quantity is 2."

    def test_state_error_has_standard_format(self, manager_client, pending_order):
        manager_client.put(f"/api/v1/orders/{pending_order.id}/approve/", {}, format="json")

        response = manager_client.put(
            f"/api/v1/orders/{pending_order.id}/approve/", {}, format="json"
        )

        assert response.status_code == 400
        assert_error_shape(response.json(), "state_error")

    def test_method_not_allowed(self, buyer_client, pending_order):
        response = buyer_client.delete(f"/api/v1/orders/{pending_order.id}/")
        assert response.status_code == 405
        assert_error_shape(response.json(), "method_not_allowed")
