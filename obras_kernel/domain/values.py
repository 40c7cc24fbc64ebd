"""
Decimal value helpers shared by the valorization engines.

All amounts, quantities and percentages enter the engines through
``to_decimal`` (``Decimal(str(value))``, so that floats keep their printed
value rather than their binary expansion) and leave them quantized to two
places with ROUND_HALF_UP.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
CIEN = Decimal("100")
_TWO_PLACES = Decimal("0.01")


def to_decimal(value: Any, name: str = "value") -> Decimal:
    """Convert an int/str/float/Decimal to Decimal.

    Raises:
        ValueError: If value is None, a bool, or not a finite number.
    """
    if isinstance(value, Decimal):
        result = value
    elif value is None or isinstance(value, bool):
        raise ValueError(f"{name} must be numeric, got {value!r}")
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation as exc:
            raise ValueError(f"{name} must be numeric, got {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"{name} must be finite, got {value!r}")
    return result


def redondear(value: Decimal) -> Decimal:
    """Quantize to 0.01 using ROUND_HALF_UP."""
    return value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def porcentaje(parte: Decimal, total: Decimal) -> Decimal:
    """``parte / total * 100`` quantized; 0 when ``total`` is 0."""
    if total == 0:
        return redondear(ZERO)
    return redondear(parte / total * CIEN)


def dias_inclusivos(inicio: date | None, fin: date | None) -> int:
    """Inclusive calendar-day count of a period; 0 if unset or reversed."""
    if inicio is None or fin is None or fin < inicio:
        return 0
    return (fin - inicio).days + 1
