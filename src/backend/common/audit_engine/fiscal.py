from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from .validators import only_digits

CENTS = Decimal("0.01")
NCM_LENGTH = 8
# NF-e amounts carry at most 13 integer digits; anything at or above this is not a real amount.
MAX_ABS_AMOUNT = Decimal("1E15")


class CfopScope(str, Enum):
    INTERNAL = "internal"
    INTERSTATE = "interstate"
    FOREIGN = "foreign"


def _usable(number: Decimal) -> Optional[Decimal]:
    if not number.is_finite() or abs(number) >= MAX_ABS_AMOUNT:
        return None
    return number


def to_decimal(value: Any) -> Optional[Decimal]:
    """Parse an XML leaf into a Decimal; accepts ',' as decimal separator.

    Non-numeric, non-finite and out-of-range values are treated as absent.
    """
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, Decimal):
        return _usable(value)
    text = str(value).strip().replace(",", ".", 1)
    if not text:
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    return _usable(number)


def round2(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_amount(value: Optional[Decimal]) -> str:
    if value is None:
        return "-"
    return str(round2(value))


def cfop_scope(cfop: Any) -> Optional[CfopScope]:
    digits = only_digits(cfop)
    if not digits:
        return None
    lead = digits[0]
    if lead in ("1", "5"):
        return CfopScope.INTERNAL
    if lead in ("2", "6"):
        return CfopScope.INTERSTATE
    if lead in ("3", "7"):
        return CfopScope.FOREIGN
    return None


def ncm_digit_count(ncm: Any) -> int:
    return len(only_digits(ncm))


def is_valid_ncm(ncm: Any) -> bool:
    return ncm_digit_count(ncm) == NCM_LENGTH
