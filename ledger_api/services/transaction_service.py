"""
Transaction service — the ledger operation processor.

THIS IS THE MOST CRITICAL FILE IN THE PROJECT. It handles:
  - Deposits and withdrawals against a single account
  - Balance enforcement (no overdrafts, no activity on inactive accounts)
  - Reading a single transaction, an account's transactions, and a user's
    transaction history across all their accounts

Processing a deposit or withdrawal:
    Validated -> OwnershipChecked -> StatusChecked -> FundsChecked -> Committed

  Any failed check raises a domain error and nothing is written. FundsChecked
  only applies to withdrawals. Committed is the only step with persistent
  effects.

Atomicity:
  The Transaction row and the new account balance are written inside
  unit_of_work(): they commit together or roll back together. This
  guarantees that balance_cents on the Account always equals the sum of
  its deposits minus its withdrawals.

Concurrency:
  The account row is read with SELECT ... FOR UPDATE, so on PostgreSQL a
  second operation on the same account waits for the first to commit and
  then sees the new balance. SQLite ignores FOR UPDATE but serializes
  writers; on top of that, Account carries a version counter, so a writer
  that computed its new balance from a stale read fails at flush instead
  of overwriting a committed balance. That failure surfaces as an
  InternalError like any other storage rejection.

Ownership:
  Every function takes the authenticated user's id. An account that exists
  but belongs to someone else is reported exactly like one that doesn't
  exist (404), so the API never leaks account existence.
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_api.database import unit_of_work
from ledger_api.exceptions import (
    AccountNotFoundError,
    InactiveAccountError,
    InsufficientFundsError,
    InternalError,
    InvalidAmountError,
    TransactionNotFoundError,
)
from ledger_api.models.account import Account, AccountStatus
from ledger_api.models.transaction import Transaction, TransactionType
from ledger_api.money import to_cents
from ledger_api.schemas.common import Pagination
from ledger_api.services.account_service import get_owned_account


logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 50


async def create_transaction(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
    txn_type: TransactionType,
    amount: Decimal,
    description: str | None = None,
) -> Transaction:
    """
    Deposit into or withdraw from an account.

    Args:
        db: Database session.
        account_id: The account to deposit into / withdraw from.
        user_id: The authenticated user's id (for ownership verification).
        txn_type: DEPOSIT or WITHDRAWAL.
        amount: Positive amount with at most two decimal places.
        description: Optional memo; defaults to "<TYPE> transaction".

    Returns:
        The committed Transaction, with balance_before/balance_after set.

    Raises:
        InvalidAmountError: If the amount is not finite and positive.
        AccountNotFoundError: If the account doesn't exist or isn't owned.
        InactiveAccountError: If the account status isn't ACTIVE.
        InsufficientFundsError: If a withdrawal exceeds the balance.
        InternalError: If the storage layer rejects the operation.
    """
    # --- Validated ---
    amount_cents = to_cents(amount)
    if amount_cents <= 0:
        raise InvalidAmountError()

    try:
        # --- OwnershipChecked (row locked for the rest of the operation) ---
        result = await db.execute(
            select(Account)
            .where(Account.id == account_id)
            .where(Account.user_id == user_id)
            .with_for_update()  # No-op on SQLite, locks row on PostgreSQL
        )
        account = result.scalar_one_or_none()

        if account is None:
            raise AccountNotFoundError(account_id)

        # --- StatusChecked ---
        if account.status != AccountStatus.ACTIVE:
            logger.warning(
                "Transaction rejected: inactive account",
                extra={"account_id": str(account_id), "status": account.status.value},
            )
            raise InactiveAccountError(account_id)

        balance_before = account.balance_cents

        # --- FundsChecked (strict: withdrawing the whole balance is allowed) ---
        if txn_type == TransactionType.WITHDRAWAL and amount_cents > balance_before:
            logger.warning(
                "Transaction rejected: insufficient funds",
                extra={
                    "account_id": str(account_id),
                    "requested_cents": amount_cents,
                    "available_cents": balance_before,
                },
            )
            raise InsufficientFundsError(
                account_id=account_id,
                requested_cents=amount_cents,
                available_cents=balance_before,
            )

        if txn_type == TransactionType.DEPOSIT:
            balance_after = balance_before + amount_cents
        else:
            balance_after = balance_before - amount_cents

        # --- Committed ---
        async with unit_of_work(db):
            txn = Transaction(
                type=txn_type,
                amount_cents=amount_cents,
                description=description or f"{txn_type.value} transaction",
                balance_before_cents=balance_before,
                balance_after_cents=balance_after,
                account=account,
            )
            db.add(txn)
            account.balance_cents = balance_after

    except SQLAlchemyError as exc:
        logger.error(
            "Transaction failed in storage",
            exc_info=exc,
            extra={"account_id": str(account_id)},
        )
        raise InternalError("Failed to create transaction") from exc

    logger.info(
        "Transaction committed",
        extra={
            "transaction_id": str(txn.id),
            "account_id": str(account_id),
            "type": txn_type.value,
            "amount_cents": amount_cents,
            "balance_after_cents": balance_after,
        },
    )
    return txn


async def get_transaction(
    db: AsyncSession,
    account_id: uuid.UUID,
    transaction_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Transaction:
    """
    Get a single transaction, scoped to an account the caller owns.

    Raises:
        TransactionNotFoundError: If the transaction doesn't exist, belongs
            to a different account, or the account isn't the caller's.
    """
    result = await db.execute(
        select(Transaction)
        .join(Account, Transaction.account_id == Account.id)
        .where(Transaction.id == transaction_id)
        .where(Transaction.account_id == account_id)
        .where(Account.user_id == user_id)
    )
    txn = result.unique().scalar_one_or_none()

    if txn is None:
        raise TransactionNotFoundError(transaction_id)

    return txn


async def get_account_transactions(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    txn_type: TransactionType | None = None,
) -> tuple[list[Transaction], Pagination]:
    """
    List one account's transactions, newest first.

    Ownership is verified before anything is read.

    Raises:
        AccountNotFoundError: If the account doesn't exist or isn't owned.
    """
    await get_owned_account(db, account_id, user_id)

    conditions = [Transaction.account_id == account_id]
    if txn_type is not None:
        conditions.append(Transaction.type == txn_type)

    return await _paginate(db, conditions, page, limit)


async def get_transaction_history(
    db: AsyncSession,
    user_id: uuid.UUID,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    account_id: uuid.UUID | None = None,
    txn_type: TransactionType | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> tuple[list[Transaction], Pagination]:
    """
    List transactions across every account the user owns, newest first.

    Optional filters narrow the result to one account, one type, and/or a
    created_at range (inclusive at both ends). An account_id the user
    doesn't own simply yields no rows.
    """
    owned_accounts = select(Account.id).where(Account.user_id == user_id)
    conditions = [Transaction.account_id.in_(owned_accounts)]

    if account_id is not None:
        conditions.append(Transaction.account_id == account_id)
    if txn_type is not None:
        conditions.append(Transaction.type == txn_type)
    if start_date is not None:
        conditions.append(Transaction.created_at >= _as_utc(start_date))
    if end_date is not None:
        conditions.append(Transaction.created_at <= _as_utc(end_date))

    return await _paginate(db, conditions, page, limit)


def _as_utc(value: datetime) -> datetime:
    """Normalize a datetime to UTC; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


async def _paginate(
    db: AsyncSession,
    conditions: list,
    page: int,
    limit: int,
) -> tuple[list[Transaction], Pagination]:
    """Run a filtered, newest-first, paged transaction query plus its count."""
    total = await db.scalar(
        select(func.count()).select_from(Transaction).where(*conditions)
    ) or 0
    pagination = Pagination.build(page=page, limit=limit, total=total)

    # Pages past the end are empty; the offset may not even fit a database integer
    offset = (page - 1) * limit
    if offset >= total:
        return [], pagination

    result = await db.execute(
        select(Transaction)
        .where(*conditions)
        .order_by(Transaction.created_at.desc(), Transaction.id)
        .limit(limit)
        .offset(offset)
    )
    return list(result.unique().scalars().all()), pagination
