"""
Accounts router — bank account management endpoints.

All endpoints require a bearer token and are scoped to the authenticated
user:
    POST   /accounts                       — Create a new account
    GET    /accounts                       — List own accounts
    GET    /accounts/{account_id}          — Get own account details
    PATCH  /accounts/{account_id}          — Change currency, type or status
    DELETE /accounts/{account_id}          — Delete an account with no history
    GET    /accounts/{account_id}/balance  — Balance integrity check

Another user's account is reported as 404, exactly like a missing one.
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_api.database import get_db
from ledger_api.dependencies import get_current_user
from ledger_api.models.user import User
from ledger_api.schemas.account import (
    AccountCreateRequest,
    AccountResponse,
    AccountUpdateRequest,
    BalanceResponse,
)
from ledger_api.schemas.common import ApiResponse
from ledger_api.services import account_service

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[AccountResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a new bank account",
)
async def create_account(
    request: AccountCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a new account owned by the authenticated user.

    The account always starts with a zero balance and ACTIVE status. If no
    account_number is supplied, a random 10-digit number is generated.
    """
    account = await account_service.create_account(
        db=db,
        user_id=current_user.id,
        currency=request.currency,
        account_type=request.type,
        account_number=request.account_number,
    )
    return {"data": account, "message": "Account created successfully"}


@router.get(
    "",
    response_model=ApiResponse[list[AccountResponse]],
    summary="List your accounts",
)
async def list_accounts(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List all accounts owned by the authenticated user, newest first."""
    accounts = await account_service.get_accounts(db, current_user.id)
    return {"data": accounts, "message": "Accounts retrieved successfully"}


@router.get(
    "/{account_id}",
    response_model=ApiResponse[AccountResponse],
    summary="Get account details",
)
async def get_account(
    account_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    account = await account_service.get_owned_account(db, account_id, current_user.id)
    return {"data": account, "message": "Account retrieved successfully"}


@router.patch(
    "/{account_id}",
    response_model=ApiResponse[AccountResponse],
    summary="Update account details",
)
async def update_account(
    account_id: uuid.UUID,
    updates: AccountUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Change an account's currency, type and/or status.

    The balance is not updatable — sending it is a validation error.
    """
    account = await account_service.update_account(
        db,
        account_id,
        current_user.id,
        **updates.model_dump(exclude_unset=True, exclude_none=True),
    )
    return {"data": account, "message": "Account updated successfully"}


@router.delete(
    "/{account_id}",
    response_model=ApiResponse[None],
    summary="Delete an account",
)
async def delete_account(
    account_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete an account. Fails with 409 once any transaction references it."""
    await account_service.delete_account(db, account_id, current_user.id)
    return {"message": "Account deleted successfully"}


@router.get(
    "/{account_id}/balance",
    response_model=ApiResponse[BalanceResponse],
    summary="Check account balance",
)
async def get_balance(
    account_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get the account balance — both stored and computed from transactions.

    The response includes a `match` boolean indicating whether the stored
    balance agrees with the sum of all transactions. A mismatch would
    indicate a data integrity issue that needs investigation.
    """
    balance = await account_service.get_balance(db, account_id, current_user.id)
    return {"data": balance, "message": "Balance retrieved successfully"}
