"""
Transactions routers — deposits, withdrawals and transaction history.

Account-scoped endpoints (mounted under /accounts):
  POST /accounts/{account_id}/transactions                   — Deposit or withdraw
  GET  /accounts/{account_id}/transactions                   — List (paged, filterable)
  GET  /accounts/{account_id}/transactions/{transaction_id}  — Get one

User-wide history (mounted under /transactions):
  GET  /transactions   — Every transaction across the caller's accounts

There is deliberately no update or delete endpoint: transactions are
immutable once recorded.
"""

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_api.database import get_db
from ledger_api.dependencies import get_current_user
from ledger_api.models.transaction import TransactionType
from ledger_api.models.user import User
from ledger_api.schemas.common import ApiResponse, PaginatedResponse
from ledger_api.schemas.transaction import (
    TransactionCreateRequest,
    TransactionResponse,
)
from ledger_api.services import transaction_service

router = APIRouter()
history_router = APIRouter()


@router.post(
    "/{account_id}/transactions",
    response_model=ApiResponse[TransactionResponse],
    status_code=201,
    summary="Create a transaction (deposit or withdrawal)",
)
async def create_transaction(
    account_id: uuid.UUID,
    request: TransactionCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Deposit into or withdraw from one of your accounts.

    - **DEPOSIT**: Adds money to the account
    - **WITHDRAWAL**: Removes money; rejected with 400 "Insufficient funds"
      if it exceeds the balance (withdrawing the whole balance is fine)

    Only ACTIVE accounts accept transactions. Amounts are decimals with at
    most two places, e.g. `1000.50`.
    """
    txn = await transaction_service.create_transaction(
        db=db,
        account_id=account_id,
        user_id=current_user.id,
        txn_type=request.type,
        amount=request.amount,
        description=request.description,
    )
    return {"data": txn, "message": "Transaction created successfully"}


@router.get(
    "/{account_id}/transactions",
    response_model=PaginatedResponse[TransactionResponse],
    summary="List transactions for an account",
)
async def list_transactions(
    account_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    type: TransactionType | None = Query(None, description="Filter by type: DEPOSIT, WITHDRAWAL"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List transactions for a specific account, newest first."""
    items, pagination = await transaction_service.get_account_transactions(
        db=db,
        account_id=account_id,
        user_id=current_user.id,
        page=page,
        limit=limit,
        txn_type=type,
    )
    return {
        "data": items,
        "pagination": pagination,
        "message": "Transactions retrieved successfully",
    }


@router.get(
    "/{account_id}/transactions/{transaction_id}",
    response_model=ApiResponse[TransactionResponse],
    summary="Get a single transaction",
)
async def get_transaction(
    account_id: uuid.UUID,
    transaction_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    txn = await transaction_service.get_transaction(
        db=db,
        account_id=account_id,
        transaction_id=transaction_id,
        user_id=current_user.id,
    )
    return {"data": txn, "message": "Transaction retrieved successfully"}


@history_router.get(
    "",
    response_model=PaginatedResponse[TransactionResponse],
    summary="Transaction history across all your accounts",
)
async def transaction_history(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    account_id: uuid.UUID | None = Query(None),
    type: TransactionType | None = Query(None),
    start_date: datetime | None = Query(None, description="Inclusive lower bound on created_at"),
    end_date: datetime | None = Query(None, description="Inclusive upper bound on created_at"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Every transaction on every account you own, newest first.

    Narrow the result with account_id, type, and/or a start_date/end_date
    range (ISO 8601; timestamps without an offset are read as UTC).
    """
    items, pagination = await transaction_service.get_transaction_history(
        db=db,
        user_id=current_user.id,
        page=page,
        limit=limit,
        account_id=account_id,
        txn_type=type,
        start_date=start_date,
        end_date=end_date,
    )
    return {
        "data": items,
        "pagination": pagination,
        "message": "Transaction history retrieved successfully",
    }
