"""
Tests for the input sanitization middleware.

These tests verify:
  - Markup and script payloads are stripped from JSON string fields
  - Oversized strings in a body or query string are refused with 413
  - Non-JSON and invalid-JSON bodies are left for request validation
"""

import pytest

from conftest import API
from ledger_api.sanitization import sanitize_data, sanitize_string, validate_input_length


class TestSanitizeHelpers:

    @pytest.mark.parametrize(
        "raw, clean",
        [
            ("Salary", "Salary"),
            ("<script>alert('x')</script>Rent", "Rent"),
            ("<b>bold</b> move", "bold move"),
            ('<img src=x onerror="alert(1)">', ""),
            ("javascript:alert(1)", "alert(1)"),
            ("  padded  ", "padded"),
        ],
    )
    def test_sanitize_string(self, raw, clean):
        assert sanitize_string(raw) == clean

    def test_sanitize_data_recurses(self):
        data = {"note": "<i>hi</i>", "items": ["<b>a</b>", 3], "nested": {"x": None}}
        assert sanitize_data(data) == {
            "note": "hi",
            "items": ["a", 3],
            "nested": {"x": None},
        }

    def test_validate_input_length(self):
        assert validate_input_length({"a": "x" * 10}, 10)
        assert not validate_input_length({"a": ["x" * 11]}, 10)
        assert not validate_input_length({"k" * 11: 1}, 10)


class TestSanitizationMiddleware:

    async def test_description_is_stripped(self, authenticated_client, account_id):
        response = await authenticated_client.post(
            f"{API}/accounts/{account_id}/transactions",
            json={
                "type": "DEPOSIT",
                "amount": "10.00",
                "description": "<script>steal()</script>Birthday <b>gift</b>",
            },
        )
        assert response.status_code == 201
        assert response.json()["data"]["description"] == "Birthday gift"

    async def test_names_are_stripped(self, client):
        response = await client.post(
            f"{API}/users",
            json={
                "email": "markup@example.com",
                "password": "SecurePass123",
                "first_name": "<em>Ada</em>",
                "last_name": "Lovelace",
            },
        )
        assert response.status_code == 201
        assert response.json()["data"]["first_name"] == "Ada"

    async def test_oversized_body_rejected(self, authenticated_client, account_id):
        response = await authenticated_client.post(
            f"{API}/accounts/{account_id}/transactions",
            json={"type": "DEPOSIT", "amount": "10.00", "description": "x" * 10_001},
        )
        assert response.status_code == 413
        assert response.json() == {"success": False, "error": "Input too large"}

    async def test_oversized_query_rejected(self, authenticated_client):
        response = await authenticated_client.get(
            f"{API}/transactions", params={"type": "x" * 10_001}
        )
        assert response.status_code == 413
        assert response.json()["error"] == "Query parameters too large"

    async def test_invalid_json_reaches_validation(self, authenticated_client, account_id):
        response = await authenticated_client.post(
            f"{API}/accounts/{account_id}/transactions",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["error"].startswith("Validation failed")


class TestErrorEnvelope:

    async def test_unknown_route(self, client):
        response = await client.get(f"{API}/nowhere")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Route not found"}

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
