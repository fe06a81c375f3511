# SPDX-License-Identifier: Apache-2.0

"""
Field validation for the social registration form.

This module contains the pure predicates used by the registration wizard and
the admin endpoints, plus the per-field rule table that maps a field key and
its value to a pt-BR error message.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from domain.masks import (
    CPF_LENGTH, CEP_LENGTH, NIS_PIS_LENGTH, PHONE_MAX_LENGTH, PHONE_MIN_LENGTH,
    VOTER_REGISTRATION_LENGTH, unmask
)
from models.enums import TriState

MIN_NAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
MIN_ADULTS_COUNT = 1
MIN_DISABILITY_COUNT = 1

ERROR_MESSAGES = {
    "NAME_REQUIRED": "Nome é obrigatório",
    "NAME_TOO_SHORT": "Nome deve ter pelo menos 3 caracteres",
    "CPF_REQUIRED": "CPF é obrigatório",
    "INVALID_CPF": "CPF inválido",
    "NIS_PIS_REQUIRED": "NIS/PIS é obrigatório",
    "INVALID_NIS_PIS": "NIS/PIS deve ter 11 dígitos",
    "INVALID_VOTER_REGISTRATION": "Título eleitoral inválido",
    "PASSWORD_TOO_SHORT": "A senha deve ter pelo menos 6 caracteres",
    "PASSWORDS_DONT_MATCH": "As senhas não coincidem",
    "PHONE_REQUIRED": "Telefone é obrigatório",
    "PHONE_LENGTH": "Telefone deve ter 10 ou 11 dígitos",
    "INVALID_PHONE": "Telefone inválido",
    "ADULTS_REQUIRED": "Informe ao menos 1 adulto",
    "INVALID_COUNT": "Quantidade inválida",
    "DISABILITY_COUNT_REQUIRED": "Informe quantas pessoas possuem deficiência",
    "ADDRESS_REQUIRED": "Endereço é obrigatório",
    "NEIGHBORHOOD_REQUIRED": "Bairro é obrigatório",
    "CEP_REQUIRED": "CEP é obrigatório",
    "INVALID_CEP": "CEP inválido",
    "REQUIRED_FIELD": "Campo obrigatório",
}


# Predicates

def is_valid_cpf(cpf: str) -> bool:
    """
    Validate a CPF with the Receita Federal check-digit algorithm.

    Args:
        cpf: CPF with or without mask

    Returns:
        True when both check digits match
    """
    digits = unmask(cpf)

    if len(digits) != CPF_LENGTH:
        return False

    # Sequences like 111.111.111-11 pass the arithmetic but are not issued
    if len(set(digits)) == 1:
        return False

    numbers = [int(d) for d in digits]

    total = sum(numbers[i - 1] * (11 - i) for i in range(1, 10))
    remainder = (total * 10) % 11
    if remainder in (10, 11):
        remainder = 0
    if remainder != numbers[9]:
        return False

    total = sum(numbers[i - 1] * (12 - i) for i in range(1, 11))
    remainder = (total * 10) % 11
    if remainder in (10, 11):
        remainder = 0
    return remainder == numbers[10]


def is_valid_phone(phone: str) -> bool:
    return len(unmask(phone)) in (PHONE_MIN_LENGTH, PHONE_MAX_LENGTH)


def is_valid_cep(cep: str) -> bool:
    return len(unmask(cep)) == CEP_LENGTH


def is_valid_name(name: str) -> bool:
    return len((name or "").strip()) >= MIN_NAME_LENGTH


def is_required_field(value: Any) -> bool:
    """Booleans always count as filled, numbers when non-negative, strings when not blank."""
    if value is None:
        return False
    if isinstance(value, bool):
        return True
    if isinstance(value, (int, float)):
        return value >= 0
    return len(str(value).strip()) > 0


# Coercion helpers

def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _as_count(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    text = str(value).strip()
    if text.lstrip("-").isdigit():
        return int(text)
    return None


def _answer(value: Any) -> TriState:
    try:
        return TriState.from_value(value)
    except ValueError:
        return TriState.UNANSWERED


# Rule table

@dataclass(frozen=True)
class FieldRule:
    """Validation rule for one form field."""
    check: Callable[[Any, Mapping[str, Any]], Optional[str]]
    applies_when: Optional[Callable[[Mapping[str, Any]], bool]] = None

    def evaluate(self, value: Any, values: Mapping[str, Any]) -> Optional[str]:
        if self.applies_when is not None and not self.applies_when(values):
            return None
        return self.check(value, values)


def _check_full_name(value, values):
    text = _as_text(value)
    if not is_required_field(text):
        return ERROR_MESSAGES["NAME_REQUIRED"]
    if not is_valid_name(text):
        return ERROR_MESSAGES["NAME_TOO_SHORT"]
    return None


def _check_cpf(value, values):
    text = _as_text(value)
    if not is_required_field(text):
        return ERROR_MESSAGES["CPF_REQUIRED"]
    if not is_valid_cpf(text):
        return ERROR_MESSAGES["INVALID_CPF"]
    return None


def _check_nis_pis(value, values):
    text = _as_text(value)
    if not is_required_field(text):
        return ERROR_MESSAGES["NIS_PIS_REQUIRED"]
    if len(unmask(text)) != NIS_PIS_LENGTH:
        return ERROR_MESSAGES["INVALID_NIS_PIS"]
    return None


def _check_voter_registration(value, values):
    # Length floor only: no official check digit is applied to this document here
    text = _as_text(value)
    if not text:
        return None
    if len(unmask(text)) < VOTER_REGISTRATION_LENGTH:
        return ERROR_MESSAGES["INVALID_VOTER_REGISTRATION"]
    return None


def _check_password(value, values):
    text = _as_text(value)
    if len(text) < MIN_PASSWORD_LENGTH:
        return ERROR_MESSAGES["PASSWORD_TOO_SHORT"]
    return None


def _check_confirm_password(value, values):
    if _as_text(value) != _as_text(values.get("password")):
        return ERROR_MESSAGES["PASSWORDS_DONT_MATCH"]
    return None


def _check_required_phone(value, values):
    text = _as_text(value)
    if not is_required_field(text):
        return ERROR_MESSAGES["PHONE_REQUIRED"]
    if not is_valid_phone(text):
        return ERROR_MESSAGES["PHONE_LENGTH"]
    return None


def _check_optional_phone(value, values):
    text = _as_text(value)
    if text and not is_valid_phone(text):
        return ERROR_MESSAGES["INVALID_PHONE"]
    return None


def _check_adults_count(value, values):
    count = _as_count(value)
    if count is None or count < MIN_ADULTS_COUNT:
        return ERROR_MESSAGES["ADULTS_REQUIRED"]
    return None


def _check_minors_count(value, values):
    count = _as_count(value)
    if count is None or not is_required_field(count):
        return ERROR_MESSAGES["INVALID_COUNT"]
    return None


def _check_disability_count(value, values):
    count = _as_count(value)
    if count is None or count < MIN_DISABILITY_COUNT:
        return ERROR_MESSAGES["DISABILITY_COUNT_REQUIRED"]
    return None


def _has_disability(values: Mapping[str, Any]) -> bool:
    return _answer(values.get("has_disability")) is TriState.YES


def _required_text(message_key: str):
    def check(value, values):
        if not is_required_field(_as_text(value)):
            return ERROR_MESSAGES[message_key]
        return None
    return check


def _check_cep(value, values):
    text = _as_text(value)
    if not is_required_field(text):
        return ERROR_MESSAGES["CEP_REQUIRED"]
    if not is_valid_cep(text):
        return ERROR_MESSAGES["INVALID_CEP"]
    return None


def _check_answered(value, values):
    if _answer(value) is TriState.UNANSWERED:
        return ERROR_MESSAGES["REQUIRED_FIELD"]
    return None


SOCIOECONOMIC_FLAGS = (
    "female_head_of_household",
    "has_elderly",
    "vulnerable_situation",
    "homeless",
    "domestic_violence_victim",
    "cohabitation",
)

# has_disability is intentionally absent: an unanswered flag is stored as False.
FIELD_RULES: Dict[str, FieldRule] = {
    "full_name": FieldRule(_check_full_name),
    "cpf": FieldRule(_check_cpf),
    "nis_pis": FieldRule(_check_nis_pis),
    "voter_registration": FieldRule(_check_voter_registration),
    "password": FieldRule(_check_password),
    "confirm_password": FieldRule(_check_confirm_password),
    "personal_phone": FieldRule(_check_required_phone),
    "reference_phone_1": FieldRule(_check_required_phone),
    "reference_phone_2": FieldRule(_check_optional_phone),
    "reference_phone_3": FieldRule(_check_optional_phone),
    "adults_count": FieldRule(_check_adults_count),
    "minors_count": FieldRule(_check_minors_count),
    "disability_count": FieldRule(_check_disability_count, applies_when=_has_disability),
    "address": FieldRule(_required_text("ADDRESS_REQUIRED")),
    "neighborhood": FieldRule(_required_text("NEIGHBORHOOD_REQUIRED")),
    "cep": FieldRule(_check_cep),
}
FIELD_RULES.update({flag: FieldRule(_check_answered) for flag in SOCIOECONOMIC_FLAGS})


def get_validation_error(
    field: str,
    value: Any,
    values: Optional[Mapping[str, Any]] = None
) -> Optional[str]:
    """
    Resolve the error message for a single field.

    Args:
        field: Field key
        value: Current field value
        values: Sibling values, needed by conditional and cross-field rules

    Returns:
        Error message, or None when valid or when the field has no rule
    """
    rule = FIELD_RULES.get(field)
    if rule is None:
        return None
    siblings = dict(values or {})
    siblings.setdefault(field, value)
    return rule.evaluate(value, siblings)


def validate_fields(fields: Iterable[str], values: Mapping[str, Any]) -> Dict[str, str]:
    """Validate several fields at once and collect every failure."""
    errors = {}
    for field in fields:
        error = get_validation_error(field, values.get(field), values)
        if error:
            errors[field] = error
    return errors
