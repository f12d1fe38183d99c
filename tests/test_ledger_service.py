"""
Service-level tests for the ledger operation processor.

These call transaction_service directly against the test database, which
makes it possible to exercise failure paths the HTTP layer can't reach:
  - The storage layer rejecting the commit
  - A writer whose view of the account is stale
  - The domain errors carrying the details of what was refused
"""

from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from ledger_api.exceptions import (
    AccountNotFoundError,
    InactiveAccountError,
    InsufficientFundsError,
    InternalError,
    InvalidAmountError,
)
from ledger_api.models.account import Account, AccountStatus, AccountType, Currency
from ledger_api.models.transaction import Transaction, TransactionType
from ledger_api.models.user import User
from ledger_api.services import account_service, transaction_service


@pytest_asyncio.fixture
async def owner(db_session):
    user = User(
        email="ledger@example.com",
        hashed_password="not-a-real-hash",
        first_name="Ledger",
        last_name="Owner",
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def account(db_session, owner):
    account = await account_service.create_account(
        db_session,
        user_id=owner.id,
        currency=Currency.GBP,
        account_type=AccountType.CHECKING,
        account_number="55555555",
    )
    await db_session.commit()
    return account


async def _stored_state(session_factory, account_id):
    """Balance in cents and transaction count, read through a fresh session."""
    async with session_factory() as session:
        stored = await session.get(Account, account_id)
        count = await session.scalar(
            select(func.count())
            .select_from(Transaction)
            .where(Transaction.account_id == account_id)
        )
        return stored.balance_cents, count


class TestCreateTransaction:

    async def test_deposit_then_withdraw(self, db_session, owner, account):
        deposit = await transaction_service.create_transaction(
            db_session, account.id, owner.id, TransactionType.DEPOSIT, Decimal("75.00")
        )
        assert deposit.balance_before_cents == 0
        assert deposit.balance_after_cents == 7500

        withdrawal = await transaction_service.create_transaction(
            db_session, account.id, owner.id, TransactionType.WITHDRAWAL, Decimal("25.50")
        )
        assert withdrawal.balance_before_cents == 7500
        assert withdrawal.balance_after_cents == 4950
        assert withdrawal.description == "WITHDRAWAL transaction"
        assert account.balance_cents == 4950

    async def test_non_positive_amount(self, db_session, owner, account):
        with pytest.raises(InvalidAmountError):
            await transaction_service.create_transaction(
                db_session, account.id, owner.id, TransactionType.DEPOSIT, Decimal("0")
            )

    async def test_insufficient_funds_details(self, db_session, owner, account):
        with pytest.raises(InsufficientFundsError) as exc_info:
            await transaction_service.create_transaction(
                db_session, account.id, owner.id, TransactionType.WITHDRAWAL, Decimal("1.00")
            )
        assert exc_info.value.requested_cents == 100
        assert exc_info.value.available_cents == 0
        assert exc_info.value.status_code == 400

    async def test_inactive_account(self, db_session, owner, account):
        account.status = AccountStatus.SUSPENDED
        await db_session.commit()

        with pytest.raises(InactiveAccountError):
            await transaction_service.create_transaction(
                db_session, account.id, owner.id, TransactionType.DEPOSIT, Decimal("1.00")
            )

    async def test_wrong_owner_is_not_found(self, db_session, owner, account):
        stranger = User(
            email="stranger@example.com",
            hashed_password="not-a-real-hash",
            first_name="Some",
            last_name="One",
        )
        db_session.add(stranger)
        await db_session.commit()

        with pytest.raises(AccountNotFoundError):
            await transaction_service.create_transaction(
                db_session, account.id, stranger.id, TransactionType.DEPOSIT, Decimal("1.00")
            )


class TestStorageFailures:

    async def test_failed_commit_changes_nothing(
        self, db_session, session_factory, owner, account, monkeypatch
    ):
        """If the commit is rejected, neither the row nor the balance persists."""
        # The rollback expires loaded objects, so keep plain ids
        account_id, owner_id = account.id, owner.id
        await transaction_service.create_transaction(
            db_session, account_id, owner_id, TransactionType.DEPOSIT, Decimal("10.00")
        )

        async def failing_commit():
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db_session, "commit", failing_commit)

        with pytest.raises(InternalError) as exc_info:
            await transaction_service.create_transaction(
                db_session, account_id, owner_id, TransactionType.DEPOSIT, Decimal("5.00")
            )
        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "Failed to create transaction"

        assert await _stored_state(session_factory, account_id) == (1000, 1)

    async def test_stale_writer_is_rejected(
        self, db_session, session_factory, owner, account
    ):
        """A writer holding an outdated balance can't overwrite a newer one."""
        account_id, owner_id = account.id, owner.id

        # This session now holds the account at version 1, balance 0
        stale = await db_session.get(Account, account_id)
        assert stale.balance_cents == 0

        async with session_factory() as other:
            await transaction_service.create_transaction(
                other, account_id, owner_id, TransactionType.DEPOSIT, Decimal("40.00")
            )

        with pytest.raises(InternalError):
            await transaction_service.create_transaction(
                db_session, account_id, owner_id, TransactionType.DEPOSIT, Decimal("1.00")
            )

        assert await _stored_state(session_factory, account_id) == (4000, 1)


class TestHistoryQueries:

    async def test_history_is_scoped_to_owner(self, db_session, owner, account):
        for amount in ("1.00", "2.00", "3.00"):
            await transaction_service.create_transaction(
                db_session, account.id, owner.id, TransactionType.DEPOSIT, Decimal(amount)
            )

        items, pagination = await transaction_service.get_transaction_history(
            db_session, owner.id, page=1, limit=2
        )
        assert len(items) == 2
        assert pagination.total == 3
        assert pagination.pages == 2

        items, pagination = await transaction_service.get_transaction_history(
            db_session, owner.id, txn_type=TransactionType.WITHDRAWAL
        )
        assert items == []
        assert pagination.pages == 0
