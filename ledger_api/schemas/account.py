"""
Pydantic schemas for Account endpoints.

These schemas define the API contract for account creation, retrieval,
update and the balance integrity check. Monetary amounts are two-place
decimals, serialized as JSON strings ("1000.50") so no precision is lost
in transit.

Note what is NOT accepted from clients: balance and (on creation) status.
An account always starts ACTIVE with a zero balance, and the balance only
moves through deposits and withdrawals.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from ledger_api.models.account import AccountStatus, AccountType, Currency


class AccountCreateRequest(BaseModel):
    """Request body for POST /accounts. Unknown fields (e.g. balance) are ignored."""
    account_number: str | None = Field(
        default=None,
        min_length=1,
        max_length=20,
        description="Unique account number; generated when omitted",
    )
    currency: Currency
    type: AccountType


class AccountUpdateRequest(BaseModel):
    """Request body for PATCH /accounts/{id}. Balance cannot be updated."""
    currency: Currency | None = None
    type: AccountType | None = None
    status: AccountStatus | None = None

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        return self


class AccountResponse(BaseModel):
    """Public representation of a bank account."""
    id: uuid.UUID
    user_id: uuid.UUID
    account_number: str
    balance: Decimal
    currency: Currency
    type: AccountType
    status: AccountStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AccountSummary(BaseModel):
    """Minimal account info embedded in transaction responses."""
    id: uuid.UUID
    account_number: str
    type: AccountType
    currency: Currency

    model_config = {"from_attributes": True}


class BalanceResponse(BaseModel):
    """
    Balance check response — includes both stored and computed values.

    The `match` field indicates whether the stored balance agrees with the
    balance computed by summing all deposits and subtracting all
    withdrawals. A mismatch would indicate a data integrity issue.
    """
    account_id: uuid.UUID
    balance: Decimal
    computed_balance: Decimal
    match: bool
    currency: Currency
