"""Check-digit validators for Brazilian identifiers (CPF, CNPJ, NF-e access key, CEP).

All functions are pure and accept raw user text; formatting characters are
stripped before validation.
"""

from __future__ import annotations

import re
from typing import Any, Optional, Sequence

ACCESS_KEY_LENGTH = 44

_NON_DIGITS = re.compile(r"[^0-9]")
_ASCII_DIGITS = frozenset("0123456789")
_ACCESS_KEY_WEIGHTS = (2, 3, 4, 5, 6, 7, 8, 9)
_CNPJ_WEIGHTS_1 = (5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
_CNPJ_WEIGHTS_2 = (6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)


def only_digits(value: Any) -> str:
    if value is None:
        return ""
    return _NON_DIGITS.sub("", str(value))


def _is_repeated_digit(digits: str) -> bool:
    return len(set(digits)) == 1


def _mod11_digit(digits: str, weights: Sequence[int]) -> int:
    total = sum(int(d) * w for d, w in zip(digits, weights))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def is_valid_cpf(raw: Any) -> bool:
    cpf = only_digits(raw)
    if len(cpf) != 11 or _is_repeated_digit(cpf):
        return False
    d1 = _mod11_digit(cpf[:9], range(10, 1, -1))
    d2 = _mod11_digit(cpf[:10], range(11, 1, -1))
    return int(cpf[9]) == d1 and int(cpf[10]) == d2


def is_valid_cnpj(raw: Any) -> bool:
    cnpj = only_digits(raw)
    if len(cnpj) != 14 or _is_repeated_digit(cnpj):
        return False
    base = cnpj[:12]
    d1 = _mod11_digit(base, _CNPJ_WEIGHTS_1)
    d2 = _mod11_digit(base + str(d1), _CNPJ_WEIGHTS_2)
    return int(cnpj[12]) == d1 and int(cnpj[13]) == d2


def document_kind(raw: Any) -> str:
    """Return "CNPJ" for 14-digit values and "CPF" otherwise."""
    return "CNPJ" if len(only_digits(raw)) == 14 else "CPF"


def is_valid_tax_id(raw: Any) -> bool:
    if document_kind(raw) == "CNPJ":
        return is_valid_cnpj(raw)
    return is_valid_cpf(raw)


def access_key_check_digit(key: str) -> Optional[int]:
    """Compute the NF-e access key DV from a 43- or 44-digit key.

    Returns None when the key does not hold exactly 43 usable digits.
    """
    key = (key or "").strip()
    base = key[:43] if len(key) == ACCESS_KEY_LENGTH else key
    if len(base) != 43 or not all(c in _ASCII_DIGITS for c in base):
        return None

    total = 0
    for idx, char in enumerate(reversed(base)):
        total += int(char) * _ACCESS_KEY_WEIGHTS[idx % len(_ACCESS_KEY_WEIGHTS)]
    dv = 11 - (total % 11)
    return 0 if dv in (10, 11) else dv


def is_valid_cep(raw: Any) -> bool:
    cep = only_digits(raw)
    if len(cep) != 8:
        return False
    return not _is_repeated_digit(cep)
