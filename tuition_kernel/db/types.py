"""
Module: tuition_kernel.db.types
Responsibility: The money rounding policy.
    Centralizes precision and rounding so that every model and service uses
    identical definitions for monetary values.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - Canonical money form: every persisted installment amount and semester
      total has exactly MONEY_DECIMAL_PLACES (2) decimal places.
    - round_money() is the ONLY sanctioned rounding function for monetary
      values.  It is idempotent: round_money(round_money(x)) == round_money(x).
    - Floats never reach a column.  A float argument is converted through
      its shortest repr, so binary drift such as 1.005 -> 1.00499999...
      rounds the way a person reading "1.005" expects (1.01).

Failure modes:
    - ValueError on NaN / infinity or a non-numeric string.
"""

import math
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP
ZERO = Decimal("0.00")


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    """
    Convert a numeric value to Decimal without rounding.

    Preconditions: value is a Decimal, int, finite float or numeric string.
    Postconditions: Returns a finite Decimal.

    Raises:
        ValueError: If value is not finite or cannot be parsed.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid monetary value: {value!r}")
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Monetary value must be finite, got {value!r}")
        return Decimal(repr(value))
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Invalid monetary value: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Monetary value must be finite, got {value!r}")
    return result


def round_money(
    value: Decimal | float | int | str,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to its canonical form.

    Applied before every persisted write of an installment amount or a
    semester total.

    Args:
        value: Amount to round.
        decimal_places: Number of decimal places to keep.
        rounding: Decimal rounding mode (default: ROUND_HALF_UP).

    Returns:
        Decimal quantized to ``decimal_places``.

    Raises:
        ValueError: If value is not a finite number.
    """
    quantum = Decimal(1).scaleb(-decimal_places)
    rounded = to_decimal(value).quantize(quantum, rounding=rounding)
    # Normalize negative zero so "-0.00" never reaches a column.
    return rounded if rounded else abs(rounded)


def split_evenly(total: Decimal, parts: int) -> list[Decimal]:
    """
    Divide ``total`` into ``parts`` canonical amounts that sum to ``total``.

    Every part is ``total / parts`` truncated to cents except the last,
    which absorbs the residue (less than one cent per part), so the parts
    never go negative for a non-negative total.

    Raises:
        ValueError: If parts < 1.
    """
    if parts < 1:
        raise ValueError(f"Cannot split into {parts} parts")
    total = round_money(total)
    share = round_money(total / parts, rounding=ROUND_DOWN)
    amounts = [share] * parts
    amounts[-1] = round_money(total - share * (parts - 1))
    return amounts
