"""
Module: fleet_kernel.db.types
Responsibility: Column type definitions and the monetary/quantity
    normalizer.  Centralizes precision and rounding so that every order line,
    stock movement, and financial document uses identical definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and every module.  MUST NOT import from any of those layers.

Invariants enforced:
    - round_currency() and round_quantity() are the ONLY sanctioned rounding
      functions for order and ledger values.  Both are deterministic and
      idempotent: round(round(x)) == round(x).
    - Floats are converted through str() before quantization, so binary
      noise (0.1 + 0.2) never survives normalization.
    - Non-finite values (NaN, Infinity) are rejected.

Failure modes:
    - ValueError on a non-numeric string or a non-finite value.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from sqlalchemy import Numeric, String


# Monetary amount column: two fractional digits after normalization
Money = Numeric(18, 2)

# Quantity column: four fractional digits, enough for liters or kilograms
Quantity = Numeric(18, 4)

# Short identifier strings (order numbers, codes)
ShortCode = String(50)

# Long text for notes and descriptions
LongText = String(4000)


CURRENCY_DECIMAL_PLACES = 2
QUANTITY_DECIMAL_PLACES = 4
DEFAULT_ROUNDING = ROUND_HALF_UP

_CURRENCY_EXPONENT = Decimal(1).scaleb(-CURRENCY_DECIMAL_PLACES)
_QUANTITY_EXPONENT = Decimal(1).scaleb(-QUANTITY_DECIMAL_PLACES)

ZERO = Decimal("0")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """
    Convert a raw numeric value to Decimal without rounding.

    Floats go through str() so that the shortest repr is used
    (``0.1`` -> ``Decimal("0.1")``, not the 55-digit binary expansion).

    Raises:
        ValueError: If the value is not numeric or not finite.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a numeric value: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a numeric value: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Value must be finite: {value!r}")
    return result


def round_currency(value: Decimal | int | float | str) -> Decimal:
    """
    Normalize a monetary amount to CURRENCY_DECIMAL_PLACES.

    Preconditions: value is finite.
    Postconditions: Returns a Decimal with exactly two fractional digits,
        rounded ROUND_HALF_UP.  Idempotent.
    """
    return to_decimal(value).quantize(_CURRENCY_EXPONENT, rounding=DEFAULT_ROUNDING)


def round_quantity(value: Decimal | int | float | str) -> Decimal:
    """
    Normalize a quantity to QUANTITY_DECIMAL_PLACES.

    Preconditions: value is finite.
    Postconditions: Returns a Decimal with exactly four fractional digits,
        rounded ROUND_HALF_UP.  Idempotent.
    """
    return to_decimal(value).quantize(_QUANTITY_EXPONENT, rounding=DEFAULT_ROUNDING)


def line_total(
    quantity: Decimal | int | float | str,
    unit_price: Decimal | int | float | str | None,
) -> Decimal | None:
    """
    Derive a line total from normalized quantity and price.

    Returns None when the line carries no price.
    """
    if unit_price is None:
        return None
    return round_currency(round_quantity(quantity) * round_currency(unit_price))
