"""Fixed-point Guincoin amounts.

Balances and amounts are stored as NUMERIC(14, 2) and handled as Decimal in
Python. Floats only appear at the JSON boundary.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from src.gc_common.errors import InvalidAmountError

SCALE = Decimal("0.01")


def to_amount(value: object) -> Decimal:
    """Coerce int/str/float/Decimal to a 2-dp Decimal: 12.345 -> Decimal('12.35').

    Floats go through str() so 0.1 stays 0.10 instead of 0.1000000000000000055.
    Raises ValueError for anything that is not a finite number.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not an amount: {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        dec = Decimal(value)  # type: ignore[arg-type]
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Not an amount: {value!r}") from exc
    if not dec.is_finite():
        raise ValueError(f"Not an amount: {value!r}")
    return dec.quantize(SCALE, rounding=ROUND_HALF_UP)


def amount_to_number(value: Decimal | None) -> float:
    """Serialize an amount as a plain JSON number (None -> 0.0)."""
    if value is None:
        return 0.0
    return float(value.quantize(SCALE, rounding=ROUND_HALF_UP))


def positive_amount(value: object) -> Decimal:
    """to_amount() that also rejects zero and negatives with InvalidAmountError."""
    try:
        amount = to_amount(value)
    except ValueError:
        raise InvalidAmountError(value) from None
    if amount <= 0:
        raise InvalidAmountError(value)
    return amount
