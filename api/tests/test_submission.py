# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for shaping the insert payload.
"""

from domain.submission import build_registration_payload, STORED_FIELDS
from models.enums import TriState


class TestBuildRegistrationPayload:
    """Test payload shaping."""

    def test_masked_fields_become_digits(self):
        payload = build_registration_payload({
            "cpf": "111.444.777-35",
            "personal_phone": "(11) 98765-4321",
            "reference_phone_1": "(11) 3456-7890",
            "cep": "01310-100",
        })

        assert payload["cpf"] == "11144477735"
        assert payload["personal_phone"] == "11987654321"
        assert payload["reference_phone_1"] == "1134567890"
        assert payload["cep"] == "01310100"

    def test_empty_optionals_become_none(self):
        payload = build_registration_payload({"reference_phone_2": "", "voter_registration": ""})

        assert payload["reference_phone_2"] is None
        assert payload["reference_phone_3"] is None
        assert payload["voter_registration"] is None

    def test_unanswered_flags_become_false(self):
        payload = build_registration_payload({"homeless": TriState.UNANSWERED, "has_elderly": TriState.YES})

        assert payload["homeless"] is False
        assert payload["has_elderly"] is True
        assert payload["has_disability"] is False

    def test_disability_count_only_with_flag(self):
        assert build_registration_payload(
            {"has_disability": TriState.NO, "disability_count": 3}
        )["disability_count"] is None
        assert build_registration_payload(
            {"has_disability": TriState.YES, "disability_count": 3}
        )["disability_count"] == 3

    def test_confirmation_dropped(self, filled_values):
        payload = build_registration_payload(filled_values)

        assert "confirm_password" not in payload
        assert payload["password"] == "segredo1"
        assert set(payload) == set(STORED_FIELDS)

    def test_text_trimmed(self):
        payload = build_registration_payload({"full_name": "  Maria  ", "neighborhood": " Centro "})

        assert payload["full_name"] == "Maria"
        assert payload["neighborhood"] == "Centro"
