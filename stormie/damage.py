"""
Damage estimator
================

NOAA stores each damage figure as a mantissa (PROPDMG / CROPDMG) plus an
"exponent code" (PROPDMGEXP / CROPDMGEXP). The dollar amount is

    mantissa * 10 ** exponent

where the exponent comes from the code:

    h -> 2, k -> 3, m -> 6, b -> 9   (any letter case)
    a number ("0".."8", "2.5")       -> that number
    "", "-", "?", "+"                -> 0
    anything else                    -> InvalidExponentError

A numeric code whose power of ten does not fit in a float ("400", "1e400")
is rejected as invalid too, and so is a pair whose product overflows.
"""

from __future__ import annotations
from typing import Dict, Optional
import math
import re

from .errors import InvalidExponentError

EXPONENT_LETTERS: Dict[str, int] = {"h": 2, "k": 3, "m": 6, "b": 9}

# Codes that carry no magnitude information: multiply by 10**0.
NEUTRAL_CODES = frozenset({"", "-", "?", "+"})

# Plain decimal numbers only; "nan" / "inf" are not accepted as exponents.
_NUMBER_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")


def resolve_exponent(code: Optional[str]) -> float:
    """Map an exponent code to its power of ten."""
    token = "" if code is None else str(code).strip()
    if token in NEUTRAL_CODES:
        return 0
    letter = EXPONENT_LETTERS.get(token.lower())
    if letter is not None:
        return letter
    if _NUMBER_RE.match(token):
        value = float(token)
        if not math.isfinite(value):
            raise InvalidExponentError(token)
        try:
            10.0 ** value
        except OverflowError:
            raise InvalidExponentError(token) from None
        return value
    raise InvalidExponentError(token)


def estimate_damage(mantissa: Optional[float], code: Optional[str]) -> float:
    """Return the dollar amount for one (mantissa, exponent code) pair.

    A missing mantissa counts as zero, but the code is still validated.
    """
    exponent = resolve_exponent(code)
    if mantissa is None:
        return 0.0
    amount = float(mantissa) * 10.0 ** exponent
    if not math.isfinite(amount):
        raise InvalidExponentError(str(code).strip())
    return amount


def is_valid_exponent(code: Optional[str]) -> bool:
    try:
        resolve_exponent(code)
    except InvalidExponentError:
        return False
    return True
