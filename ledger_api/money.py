"""
Conversions between API decimals and stored integer cents.

Amounts cross the API as decimals with two places ("1000.50") and are stored
as integer cents (100050). All ledger arithmetic happens on the integers, so
no floating-point value is ever involved in a balance.
"""

from decimal import Decimal

from ledger_api.exceptions import InvalidAmountError


CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> int:
    """
    Convert a decimal currency amount to integer cents.

    Raises:
        InvalidAmountError: If the amount is NaN/infinite or has more than
            two decimal places.
    """
    if not amount.is_finite():
        raise InvalidAmountError("Amount must be a valid number")
    if amount != amount.quantize(CENT):
        raise InvalidAmountError("Amount must have at most 2 decimal places")
    return int(amount.scaleb(2))


def from_cents(cents: int) -> Decimal:
    """Convert integer cents back to a two-place decimal (1050 -> Decimal("10.50"))."""
    return Decimal(cents).scaleb(-2).quantize(CENT)
