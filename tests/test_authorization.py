"""
Cross-user authorization tests.

These tests verify that User B can never see or touch User A's accounts or
transactions. Another user's account is always reported as 404 "Account
not found", exactly like an account that doesn't exist, so responses never
reveal which account ids are real.
"""

from decimal import Decimal

from conftest import API


class TestCrossUserAccounts:

    async def test_cannot_get_other_users_account(
        self, account_id, second_authenticated_client
    ):
        response = await second_authenticated_client.get(f"{API}/accounts/{account_id}")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Account not found"}

    async def test_cannot_update_other_users_account(
        self, authenticated_client, account_id, second_authenticated_client
    ):
        response = await second_authenticated_client.patch(
            f"{API}/accounts/{account_id}",
            json={"status": "CLOSED"},
        )
        assert response.status_code == 404

        owner_view = await authenticated_client.get(f"{API}/accounts/{account_id}")
        assert owner_view.json()["data"]["status"] == "ACTIVE"

    async def test_cannot_delete_other_users_account(
        self, authenticated_client, account_id, second_authenticated_client
    ):
        response = await second_authenticated_client.delete(f"{API}/accounts/{account_id}")
        assert response.status_code == 404

        owner_view = await authenticated_client.get(f"{API}/accounts/{account_id}")
        assert owner_view.status_code == 200

    async def test_cannot_check_other_users_balance(
        self, account_id, second_authenticated_client
    ):
        response = await second_authenticated_client.get(
            f"{API}/accounts/{account_id}/balance"
        )
        assert response.status_code == 404


class TestCrossUserTransactions:

    async def test_cannot_deposit_into_other_users_account(
        self, authenticated_client, account_id, second_authenticated_client
    ):
        response = await second_authenticated_client.post(
            f"{API}/accounts/{account_id}/transactions",
            json={"type": "DEPOSIT", "amount": "100.00"},
        )
        assert response.status_code == 404
        assert response.json()["error"] == "Account not found"

        owner_view = await authenticated_client.get(f"{API}/accounts/{account_id}")
        assert Decimal(owner_view.json()["data"]["balance"]) == Decimal("0")

    async def test_cannot_withdraw_from_other_users_account(
        self, authenticated_client, account_id, second_authenticated_client
    ):
        await authenticated_client.post(
            f"{API}/accounts/{account_id}/transactions",
            json={"type": "DEPOSIT", "amount": "500.00"},
        )

        response = await second_authenticated_client.post(
            f"{API}/accounts/{account_id}/transactions",
            json={"type": "WITHDRAWAL", "amount": "500.00"},
        )
        assert response.status_code == 404

        owner_view = await authenticated_client.get(f"{API}/accounts/{account_id}")
        assert Decimal(owner_view.json()["data"]["balance"]) == Decimal("500.00")

    async def test_cannot_list_other_users_transactions(
        self, authenticated_client, account_id, second_authenticated_client
    ):
        await authenticated_client.post(
            f"{API}/accounts/{account_id}/transactions",
            json={"type": "DEPOSIT", "amount": "10.00"},
        )
        response = await second_authenticated_client.get(
            f"{API}/accounts/{account_id}/transactions"
        )
        assert response.status_code == 404

    async def test_cannot_read_other_users_transaction(
        self, authenticated_client, account_id, second_authenticated_client
    ):
        created = await authenticated_client.post(
            f"{API}/accounts/{account_id}/transactions",
            json={"type": "DEPOSIT", "amount": "10.00"},
        )
        txn_id = created.json()["data"]["id"]

        response = await second_authenticated_client.get(
            f"{API}/accounts/{account_id}/transactions/{txn_id}"
        )
        assert response.status_code == 404

    async def test_history_excludes_other_users_transactions(
        self, authenticated_client, account_id, second_authenticated_client
    ):
        await authenticated_client.post(
            f"{API}/accounts/{account_id}/transactions",
            json={"type": "DEPOSIT", "amount": "10.00"},
        )

        response = await second_authenticated_client.get(f"{API}/transactions")
        assert response.json()["data"] == []
        assert response.json()["pagination"]["total"] == 0

        # Naming the account explicitly doesn't help either
        response = await second_authenticated_client.get(
            f"{API}/transactions", params={"account_id": account_id}
        )
        assert response.json()["data"] == []
