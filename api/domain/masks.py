# SPDX-License-Identifier: Apache-2.0

"""
Display masks for Brazilian document, phone and postal code fields.

Every mask strips non-digits, truncates to the field's canonical length and
only inserts separators when the digit count matches the pattern exactly, so
a partially typed value is shown as plain digits.
"""

import re
from typing import Callable, Dict, Optional

CPF_LENGTH = 11
NIS_PIS_LENGTH = 11
VOTER_REGISTRATION_LENGTH = 12
CEP_LENGTH = 8
PHONE_MIN_LENGTH = 10
PHONE_MAX_LENGTH = 11

_NON_DIGITS = re.compile(r"[^0-9]")


def unmask(value: Optional[str]) -> str:
    """Remove every non-digit character. Never fails."""
    if value is None:
        return ""
    return _NON_DIGITS.sub("", str(value))


def mask_cpf(value: str) -> str:
    """000.000.000-00"""
    digits = unmask(value)[:CPF_LENGTH]
    if len(digits) != CPF_LENGTH:
        return digits
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def mask_phone(value: str) -> str:
    """(00) 00000-0000 for mobile numbers, (00) 0000-0000 for landlines."""
    digits = unmask(value)[:PHONE_MAX_LENGTH]
    if len(digits) == PHONE_MAX_LENGTH:
        return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"
    if len(digits) == PHONE_MIN_LENGTH:
        return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"
    return digits


def mask_cep(value: str) -> str:
    """00000-000"""
    digits = unmask(value)[:CEP_LENGTH]
    if len(digits) != CEP_LENGTH:
        return digits
    return f"{digits[:5]}-{digits[5:]}"


def mask_nis_pis(value: str) -> str:
    return unmask(value)[:NIS_PIS_LENGTH]


def mask_voter_registration(value: str) -> str:
    return unmask(value)[:VOTER_REGISTRATION_LENGTH]


FIELD_MASKS: Dict[str, Callable[[str], str]] = {
    "cpf": mask_cpf,
    "nis_pis": mask_nis_pis,
    "voter_registration": mask_voter_registration,
    "personal_phone": mask_phone,
    "reference_phone_1": mask_phone,
    "reference_phone_2": mask_phone,
    "reference_phone_3": mask_phone,
    "cep": mask_cep,
}


def is_masked_field(field: str) -> bool:
    return field in FIELD_MASKS


def apply_mask(field: str, value: Optional[str]) -> str:
    """Format a value for display according to its field; unmasked fields pass through."""
    if value is None:
        return ""
    mask = FIELD_MASKS.get(field)
    if mask is None:
        return str(value)
    return mask(str(value))
