# SPDX-License-Identifier: Apache-2.0

"""
Shape a registration draft into the payload accepted by the registration store.
"""

from typing import Any, Dict, Mapping, Optional

from domain.masks import unmask
from domain.validation import SOCIOECONOMIC_FLAGS
from models.enums import TriState

STORED_FIELDS = (
    "full_name",
    "cpf",
    "nis_pis",
    "voter_registration",
    "password",
    "personal_phone",
    "reference_phone_1",
    "reference_phone_2",
    "reference_phone_3",
    "adults_count",
    "minors_count",
    "has_disability",
    "disability_count",
    "address",
    "neighborhood",
    "cep",
) + SOCIOECONOMIC_FLAGS


def _optional_digits(value: Any) -> Optional[str]:
    digits = unmask(value)
    return digits or None


def _count(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def build_registration_payload(values: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Build the insert payload from wizard values.

    Masked fields are reduced to digits, unanswered flags become False,
    the password confirmation is dropped and the disability count is only
    kept when the disability flag is answered yes.

    Args:
        values: Field values held by the wizard

    Returns:
        Payload dictionary keyed by stored field names
    """
    has_disability = TriState.from_value(values.get("has_disability"))

    payload = {
        "full_name": str(values.get("full_name") or "").strip(),
        "cpf": unmask(values.get("cpf")),
        "nis_pis": unmask(values.get("nis_pis")),
        "voter_registration": _optional_digits(values.get("voter_registration")),
        "password": values.get("password") or "",
        "personal_phone": unmask(values.get("personal_phone")),
        "reference_phone_1": unmask(values.get("reference_phone_1")),
        "reference_phone_2": _optional_digits(values.get("reference_phone_2")),
        "reference_phone_3": _optional_digits(values.get("reference_phone_3")),
        "adults_count": _count(values.get("adults_count"), 1),
        "minors_count": _count(values.get("minors_count"), 0),
        "has_disability": has_disability.to_bool(),
        "disability_count": (
            _count(values.get("disability_count"), 0)
            if has_disability is TriState.YES else None
        ),
        "address": str(values.get("address") or "").strip(),
        "neighborhood": str(values.get("neighborhood") or "").strip(),
        "cep": unmask(values.get("cep")),
    }

    for flag in SOCIOECONOMIC_FLAGS:
        payload[flag] = TriState.from_value(values.get(flag)).to_bool()

    return payload
