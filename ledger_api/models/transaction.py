"""
Transaction model — records every change to an account balance.

Every deposit or withdrawal creates exactly one Transaction row, written in
the same database transaction as the balance update it explains.

Key fields:
  - type: DEPOSIT (money in) or WITHDRAWAL (money out)
  - amount_cents: Always positive (the direction is implied by the type)
  - balance_before_cents / balance_after_cents: Snapshots of the account
    balance taken while the account row was locked, so that
      after = before + amount   for DEPOSIT
      after = before - amount   for WITHDRAWAL
  - account_id: The account whose balance changed

Transactions are immutable: there is no update or delete path anywhere in
the API. Correcting a mistake means recording a new transaction.

Why amount_cents is always positive:
  Storing a positive amount with a separate type field is clearer than using
  signed integers. You never wonder "does negative mean deposit or
  withdrawal?" — the type field makes the direction explicit.
"""

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, BigInteger, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_api.database import Base
from ledger_api.money import from_cents


class TransactionType(str, enum.Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"


class Transaction(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        # Amount must always be positive; direction is indicated by type
        CheckConstraint("amount_cents > 0", name="ck_transactions_positive_amount"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType),
        nullable=False,
        index=True,
    )

    # Amount in cents, always positive
    amount_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    balance_before_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )
    balance_after_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )

    # Indexed for newest-first listing and date-range history queries
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # --- Relationships ---
    # Joined eagerly: responses embed an account summary, and lazy loading
    # is not available on an AsyncSession.
    account: Mapped["Account"] = relationship(lazy="joined")

    @property
    def amount(self) -> Decimal:
        return from_cents(self.amount_cents)

    @property
    def balance_before(self) -> Decimal:
        return from_cents(self.balance_before_cents)

    @property
    def balance_after(self) -> Decimal:
        return from_cents(self.balance_after_cents)
