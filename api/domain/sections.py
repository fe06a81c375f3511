# SPDX-License-Identifier: Apache-2.0

"""
Section renderers for the registration wizard.

Each renderer turns the wizard's values and errors for one step into a
JSON-ready description of the fields to draw. Renderers are stateless.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional

from domain.masks import apply_mask
from models.enums import FieldKind, TriState

FIELD_LABELS = {
    "full_name": "Nome Completo",
    "cpf": "CPF",
    "nis_pis": "Número do NIS (PIS)",
    "voter_registration": "Título Eleitoral",
    "password": "Senha",
    "confirm_password": "Confirme a Senha",
    "personal_phone": "Telefone Pessoal",
    "reference_phone_1": "Telefone para Recado 1",
    "reference_phone_2": "Telefone para Recado 2 (Opcional)",
    "reference_phone_3": "Telefone para Recado 3 (Opcional)",
    "adults_count": "Quantidade de Pessoas Adultas na Casa",
    "minors_count": "Quantidade de Pessoas de Menor na Casa",
    "has_disability": "Tem alguma pessoa na casa que possua deficiência?",
    "disability_count": "Quantas pessoas com deficiência?",
    "address": "Endereço Completo",
    "neighborhood": "Bairro",
    "cep": "CEP",
    "female_head_of_household": "Mulher responsável pela família?",
    "has_elderly": "Tem idosos (+60) na composição familiar?",
    "vulnerable_situation": "Encontra-se em situação de vulnerabilidade?",
    "homeless": "É morador de rua?",
    "domestic_violence_victim": "É mulher vítima de violência doméstica?",
    "cohabitation": "(Coabitação) Mora mais de uma família na mesma residência?",
}

PLACEHOLDERS = {
    "cpf": "000.000.000-00",
    "personal_phone": "(00) 00000-0000",
    "reference_phone_1": "(00) 00000-0000",
    "reference_phone_2": "(00) 00000-0000",
    "reference_phone_3": "(00) 00000-0000",
    "cep": "00000-000",
}

YES_NO_OPTIONS = [
    {"value": True, "label": "Sim"},
    {"value": False, "label": "Não"},
]

OPTIONAL_FIELDS = {"voter_registration", "reference_phone_2", "reference_phone_3", "has_disability"}


def _display_value(name: str, kind: FieldKind, value: Any) -> Any:
    if kind == FieldKind.SECRET:
        return ""
    if kind == FieldKind.TRI_STATE:
        return TriState.from_value(value).to_optional_bool()
    if kind == FieldKind.MASKED:
        return apply_mask(name, value)
    return value


def render_field(
    name: str,
    kind: FieldKind,
    values: Mapping[str, Any],
    errors: Mapping[str, str],
    visible: bool = True
) -> Dict[str, Any]:
    """Describe a single input."""
    field = {
        "name": name,
        "label": FIELD_LABELS[name],
        "kind": kind.value,
        "value": _display_value(name, kind, values.get(name)),
        "error": errors.get(name),
        "required": name not in OPTIONAL_FIELDS,
        "visible": visible,
    }
    if name in PLACEHOLDERS:
        field["placeholder"] = PLACEHOLDERS[name]
    if kind == FieldKind.TRI_STATE:
        field["options"] = YES_NO_OPTIONS
    return field


def render_personal_data(values: Mapping[str, Any], errors: Mapping[str, str]) -> List[Dict[str, Any]]:
    return [
        render_field("full_name", FieldKind.TEXT, values, errors),
        render_field("cpf", FieldKind.MASKED, values, errors),
        render_field("nis_pis", FieldKind.MASKED, values, errors),
        render_field("voter_registration", FieldKind.MASKED, values, errors),
        render_field("password", FieldKind.SECRET, values, errors),
        render_field("confirm_password", FieldKind.SECRET, values, errors),
    ]


def render_contacts(values: Mapping[str, Any], errors: Mapping[str, str]) -> List[Dict[str, Any]]:
    return [
        render_field(name, FieldKind.MASKED, values, errors)
        for name in ("personal_phone", "reference_phone_1", "reference_phone_2", "reference_phone_3")
    ]


def render_family_address(values: Mapping[str, Any], errors: Mapping[str, str]) -> List[Dict[str, Any]]:
    has_disability = TriState.from_value(values.get("has_disability")) is TriState.YES
    return [
        render_field("adults_count", FieldKind.COUNT, values, errors),
        render_field("minors_count", FieldKind.COUNT, values, errors),
        render_field("has_disability", FieldKind.TRI_STATE, values, errors),
        render_field("disability_count", FieldKind.COUNT, values, errors, visible=has_disability),
        render_field("address", FieldKind.TEXT, values, errors),
        render_field("neighborhood", FieldKind.TEXT, values, errors),
        render_field("cep", FieldKind.MASKED, values, errors),
    ]


def render_socioeconomic(values: Mapping[str, Any], errors: Mapping[str, str]) -> List[Dict[str, Any]]:
    return [
        render_field(name, FieldKind.TRI_STATE, values, errors)
        for name in (
            "female_head_of_household",
            "has_elderly",
            "vulnerable_situation",
            "homeless",
            "domestic_violence_victim",
            "cohabitation",
        )
    ]


SECTION_RENDERERS: Dict[str, Callable[[Mapping[str, Any], Mapping[str, str]], List[Dict[str, Any]]]] = {
    "personal_data": render_personal_data,
    "contacts": render_contacts,
    "family_address": render_family_address,
    "socioeconomic": render_socioeconomic,
}


def render_section(wizard, step_index: Optional[int] = None) -> Dict[str, Any]:
    """
    Render a wizard step.

    Args:
        wizard: RegistrationWizard instance
        step_index: Step to render, defaults to the current step

    Returns:
        Section description with title, progress and fields
    """
    index = wizard.current_step if step_index is None else step_index
    step = wizard.steps[index]
    renderer = SECTION_RENDERERS[step.key]

    return {
        "key": step.key,
        "title": step.title,
        "index": index,
        "total_steps": wizard.total_steps,
        "progress": f"Etapa {index + 1} de {wizard.total_steps}",
        "fields": renderer(wizard.values, wizard.errors),
    }
