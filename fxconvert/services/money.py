"""Money / rounding helpers.

Display-only: stored rates and amounts keep full float precision, and these
helpers are applied when a value is rendered.
"""

from __future__ import annotations
import math
from decimal import Context, Decimal, ROUND_HALF_UP

# Wide enough to quantize any finite double (exponent <= 308) to 4 places.
_CTX = Context(prec=400, rounding=ROUND_HALF_UP)


def _quantize(value: float, exp: str) -> float:
    if not math.isfinite(value):
        raise ValueError(f"cannot round non-finite value {value!r}")
    return float(Decimal(str(value)).quantize(Decimal(exp), context=_CTX))


def round2(value: float) -> float:
    return _quantize(value, "0.01")


def round4(value: float) -> float:
    return _quantize(value, "0.0001")


def format_amount(value: float) -> str:
    return f"{round2(value):.2f}"


def format_rate(value: float) -> str:
    return f"{round4(value):.4f}"


def format_input_amount(value: float) -> str:
    """Echo a user-supplied amount without exponent notation or lost digits."""
    if value.is_integer():
        return str(int(value))
    return format(Decimal(repr(value)), "f")
