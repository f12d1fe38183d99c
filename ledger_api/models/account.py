"""
Account model — a bank account owned by a User.

Each account has:
  - A unique account number (client-supplied, or a random 10-digit string)
  - A currency (GBP, USD, EUR) and a type (CHECKING, SAVINGS, BUSINESS)
  - A status; only ACTIVE accounts accept deposits and withdrawals
  - A balance in integer cents, changed only by the ledger operation
    processor in transaction_service.py

Balance management:
  `balance_cents` stores the current balance as an integer (in cents, e.g.,
  $10.50 = 1050). It is updated in the same database transaction as the
  Transaction row that explains the change, so it always equals the sum of
  deposits minus withdrawals.

  A CHECK constraint at the database level enforces that the balance can
  never go negative. The application checks funds before debiting; the
  constraint is the final safety net against bugs.

Concurrency:
  `version` is a SQLAlchemy version counter. Every UPDATE is issued as
  "... WHERE id = :id AND version = :seen_version" and bumps the counter.
  If two requests read the same balance and both try to write, the second
  UPDATE matches zero rows and SQLAlchemy raises StaleDataError instead of
  silently overwriting the first write (no lost update), on every backend.

Why integer cents?
  Floating-point numbers introduce rounding errors in financial calculations
  (0.1 + 0.2 != 0.3 in IEEE 754). Integer cents make every addition and
  subtraction exact; the API converts to two-place decimals at the edge.
"""

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Integer, BigInteger, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_api.database import Base
from ledger_api.money import from_cents


class Currency(str, enum.Enum):
    GBP = "GBP"
    USD = "USD"
    EUR = "EUR"


class AccountType(str, enum.Enum):
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    BUSINESS = "BUSINESS"


class AccountStatus(str, enum.Enum):
    """
    Lifecycle state of an account.

    Inherits from str so the enum value serializes naturally to JSON
    and can be stored as a simple string in the database.
    """
    ACTIVE = "ACTIVE"          # Accepts deposits and withdrawals
    SUSPENDED = "SUSPENDED"    # Temporarily frozen: readable, not transactable
    CLOSED = "CLOSED"          # Permanently retired


class Account(Base):
    __tablename__ = "accounts"

    # Database-level constraint: balance can never be negative
    __table_args__ = (
        CheckConstraint(
            "balance_cents >= 0",
            name="ck_accounts_non_negative_balance",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Owner of this account
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    account_number: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
    )

    # Balance in cents, 64-bit on every backend. Only the ledger operation
    # processor writes this.
    balance_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    currency: Mapped[Currency] = mapped_column(
        Enum(Currency),
        nullable=False,
        default=Currency.GBP,
    )

    type: Mapped[AccountType] = mapped_column(
        Enum(AccountType),
        nullable=False,
        default=AccountType.CHECKING,
    )

    status: Mapped[AccountStatus] = mapped_column(
        Enum(AccountStatus),
        nullable=False,
        default=AccountStatus.ACTIVE,
    )

    # Optimistic concurrency counter (see module docstring)
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def balance(self) -> Decimal:
        """Balance as a two-place decimal, for API responses."""
        return from_cents(self.balance_cents)
