"""
Pydantic schemas for Transaction endpoints.

Amounts are decimals with at most two places. Pydantic rejects NaN and
Infinity for Decimal fields, so "finite and strictly positive" is enforced
here, before any request reaches the ledger.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from ledger_api.models.transaction import TransactionType
from ledger_api.schemas.account import AccountSummary


class TransactionCreateRequest(BaseModel):
    """Request body for POST /accounts/{id}/transactions."""
    type: TransactionType
    amount: Decimal = Field(
        gt=0,
        max_digits=14,
        decimal_places=2,
        description="Positive amount with at most two decimal places",
    )
    description: str | None = Field(None, max_length=500)


class TransactionResponse(BaseModel):
    """Public representation of a transaction."""
    id: uuid.UUID
    type: TransactionType
    amount: Decimal
    description: str | None
    balance_before: Decimal
    balance_after: Decimal
    account_id: uuid.UUID
    account: AccountSummary
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
