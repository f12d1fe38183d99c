"""
Account service — business logic for bank account operations.

This module handles:
  - Account creation (unique account number, zero balance, ACTIVE status)
  - Account retrieval (single or list, scoped to a user)
  - Account update (currency, type, status — never the balance)
  - Account deletion (blocked while transactions reference the account)
  - Balance verification (stored vs. computed from transactions)

Ownership enforcement:
  All query functions accept a `user_id` parameter. This is always the
  authenticated user's id, set by the dependency layer.

  get_account() distinguishes "doesn't exist" (returns None) from "belongs
  to someone else" (raises AccountAccessDeniedError). Callers facing the
  client go through get_owned_account(), which reports both as
  AccountNotFoundError so the API never reveals that another user's
  account exists.
"""

import logging
import random
import string
import uuid

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_api.exceptions import (
    AccountAccessDeniedError,
    AccountHasTransactionsError,
    AccountNotFoundError,
    DuplicateAccountNumberError,
    UserNotFoundError,
)
from ledger_api.models.account import Account, AccountStatus, AccountType, Currency
from ledger_api.models.transaction import Transaction, TransactionType
from ledger_api.models.user import User
from ledger_api.money import from_cents


logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"currency", "type", "status"})


def _generate_account_number() -> str:
    """
    Generate a random 10-digit account number.

    In a real bank, this would follow a specific format (sort code, check
    digit, etc.). A random 10-digit string avoids sequential guessing.
    """
    return "".join(random.choices(string.digits, k=10))


async def _account_number_taken(db: AsyncSession, account_number: str) -> bool:
    result = await db.execute(
        select(Account.id).where(Account.account_number == account_number)
    )
    return result.first() is not None


async def create_account(
    db: AsyncSession,
    user_id: uuid.UUID,
    currency: Currency,
    account_type: AccountType,
    account_number: str | None = None,
) -> Account:
    """
    Create a new bank account for a user.

    The balance always starts at 0 and the status at ACTIVE, whatever the
    client sent.

    Raises:
        DuplicateAccountNumberError: If the requested number is taken.
        UserNotFoundError: If the owning user doesn't exist.
    """
    if account_number is not None:
        if await _account_number_taken(db, account_number):
            raise DuplicateAccountNumberError(account_number)
    else:
        # Retry on collision (extremely unlikely with 10 random digits)
        for _ in range(10):
            account_number = _generate_account_number()
            if not await _account_number_taken(db, account_number):
                break
        else:
            raise RuntimeError("Failed to generate a unique account number")

    if await db.get(User, user_id) is None:
        raise UserNotFoundError(user_id)

    account = Account(
        user_id=user_id,
        account_number=account_number,
        currency=currency,
        type=account_type,
        balance_cents=0,
        status=AccountStatus.ACTIVE,
    )
    db.add(account)
    await db.flush()

    logger.info(
        "Account created",
        extra={"account_id": str(account.id), "user_id": str(user_id)},
    )
    return account


async def get_accounts(
    db: AsyncSession,
    user_id: uuid.UUID,
) -> list[Account]:
    """List all accounts belonging to a user, newest first."""
    result = await db.execute(
        select(Account)
        .where(Account.user_id == user_id)
        .order_by(Account.created_at.desc())
    )
    return list(result.scalars().all())


async def get_account(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Account | None:
    """
    Get a single account, verifying ownership.

    Returns:
        The Account instance, or None if it doesn't exist.

    Raises:
        AccountAccessDeniedError: If the account belongs to someone else.
    """
    result = await db.execute(select(Account).where(Account.id == account_id))
    account = result.scalar_one_or_none()

    if account is None:
        return None

    if account.user_id != user_id:
        raise AccountAccessDeniedError(account_id)

    return account


async def get_owned_account(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Account:
    """
    Get an account for a caller-facing operation.

    Raises:
        AccountNotFoundError: If the account doesn't exist OR belongs to
            another user — the two cases are deliberately indistinguishable.
    """
    try:
        account = await get_account(db, account_id, user_id)
    except AccountAccessDeniedError:
        logger.warning(
            "Cross-user account access refused",
            extra={"account_id": str(account_id), "user_id": str(user_id)},
        )
        account = None

    if account is None:
        raise AccountNotFoundError(account_id)
    return account


async def update_account(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
    **fields,
) -> Account:
    """
    Update currency, type and/or status. Any other field is ignored.

    Raises:
        AccountNotFoundError: If the account doesn't exist or isn't owned.
    """
    account = await get_owned_account(db, account_id, user_id)

    for field, value in fields.items():
        if field in UPDATABLE_FIELDS and value is not None:
            setattr(account, field, value)

    await db.flush()
    return account


async def delete_account(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
) -> None:
    """
    Delete an account that has never been transacted on.

    Raises:
        AccountNotFoundError: If the account doesn't exist or isn't owned.
        AccountHasTransactionsError: If any transaction references it.
    """
    account = await get_owned_account(db, account_id, user_id)

    transaction_count = await db.scalar(
        select(func.count())
        .select_from(Transaction)
        .where(Transaction.account_id == account_id)
    )
    if transaction_count:
        raise AccountHasTransactionsError(account_id)

    await db.delete(account)
    await db.flush()
    logger.info("Account deleted", extra={"account_id": str(account_id)})


async def get_balance(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
) -> dict:
    """
    Get the account balance — both stored and computed from transactions.

    The computed balance is the sum of all deposits minus the sum of all
    withdrawals. If it doesn't match the stored balance, that signals a
    data integrity issue.

    Returns:
        Dict with balance, computed_balance, match, currency.
    """
    account = await get_owned_account(db, account_id, user_id)
    computed_cents = await _compute_balance_from_transactions(db, account_id)

    return {
        "account_id": account.id,
        "balance": account.balance,
        "computed_balance": from_cents(computed_cents),
        "match": account.balance_cents == computed_cents,
        "currency": account.currency,
    }


async def _compute_balance_from_transactions(
    db: AsyncSession,
    account_id: uuid.UUID,
) -> int:
    """Net of all transactions on the account, in cents."""
    signed_amount = case(
        (Transaction.type == TransactionType.DEPOSIT, Transaction.amount_cents),
        else_=-Transaction.amount_cents,
    )
    result = await db.execute(
        select(func.coalesce(func.sum(signed_amount), 0))
        .where(Transaction.account_id == account_id)
    )
    return int(result.scalar())
