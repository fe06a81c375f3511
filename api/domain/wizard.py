# SPDX-License-Identifier: Apache-2.0

"""
Registration wizard state machine.

The wizard owns the draft of a social registration while a citizen fills the
multi-step form: the current step, the field values, the per-field error map
and the submission status. It has no knowledge of HTTP or rendering; routes
drive it and persist it through ``snapshot``/``restore``.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from domain.masks import apply_mask
from domain.submission import build_registration_payload
from domain.validation import SOCIOECONOMIC_FLAGS, get_validation_error, validate_fields
from models.enums import FieldKind, SubmitStatus, TriState
from services.errors import CollaboratorError, ConflictError

logger = logging.getLogger(__name__)

SUBMIT_SUCCESS_MESSAGE = "Pré-inscrição realizada com sucesso!"
SUBMIT_ERROR_MESSAGE = "Erro ao enviar o formulário. Tente novamente."
DUPLICATE_ERROR_MESSAGE = "Erro ao enviar o formulário. Verifique se o CPF já não está cadastrado."


@dataclass(frozen=True)
class WizardStep:
    """One page of the registration wizard."""
    key: str
    title: str
    fields: Tuple[str, ...]


REGISTRATION_STEPS: Tuple[WizardStep, ...] = (
    WizardStep(
        "personal_data",
        "Dados Pessoais",
        ("full_name", "cpf", "nis_pis", "voter_registration", "password", "confirm_password"),
    ),
    WizardStep(
        "contacts",
        "Contatos",
        ("personal_phone", "reference_phone_1", "reference_phone_2", "reference_phone_3"),
    ),
    WizardStep(
        "family_address",
        "Composição Familiar e Domicílio",
        ("adults_count", "minors_count", "has_disability", "disability_count",
         "address", "neighborhood", "cep"),
    ),
    WizardStep("socioeconomic", "Perfil Socioeconômico", SOCIOECONOMIC_FLAGS),
)

FIELD_KINDS: Dict[str, FieldKind] = {
    "full_name": FieldKind.TEXT,
    "cpf": FieldKind.MASKED,
    "nis_pis": FieldKind.MASKED,
    "voter_registration": FieldKind.MASKED,
    "password": FieldKind.SECRET,
    "confirm_password": FieldKind.SECRET,
    "personal_phone": FieldKind.MASKED,
    "reference_phone_1": FieldKind.MASKED,
    "reference_phone_2": FieldKind.MASKED,
    "reference_phone_3": FieldKind.MASKED,
    "adults_count": FieldKind.COUNT,
    "minors_count": FieldKind.COUNT,
    "has_disability": FieldKind.TRI_STATE,
    "disability_count": FieldKind.COUNT,
    "address": FieldKind.TEXT,
    "neighborhood": FieldKind.TEXT,
    "cep": FieldKind.MASKED,
}
FIELD_KINDS.update({flag: FieldKind.TRI_STATE for flag in SOCIOECONOMIC_FLAGS})

# Fields that only make sense while their controlling question is answered yes
DEPENDENT_FIELDS: Dict[str, Tuple[str, ...]] = {
    "has_disability": ("disability_count",),
}


def initial_values() -> Dict[str, Any]:
    """Default values of a fresh draft."""
    values = {}
    for field, kind in FIELD_KINDS.items():
        if kind == FieldKind.TRI_STATE:
            values[field] = TriState.UNANSWERED
        elif kind == FieldKind.COUNT:
            values[field] = 0
        else:
            values[field] = ""
    values["adults_count"] = 1
    return values


class UnknownFieldError(KeyError):
    """Raised when a field key is not part of the registration form."""


def _coerce(field: str, value: Any) -> Any:
    kind = FIELD_KINDS[field]
    if kind == FieldKind.TRI_STATE:
        return TriState.from_value(value)
    if kind == FieldKind.COUNT:
        if value is None or value == "" or isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None
    if kind == FieldKind.MASKED:
        return apply_mask(field, value)
    return "" if value is None else str(value)


class RegistrationWizard:
    """State machine for the multi-step registration form."""

    SUCCESS_DISPLAY_SECONDS = 5
    SUBMIT_LEASE_SECONDS = 30

    def __init__(
        self,
        steps: Tuple[WizardStep, ...] = REGISTRATION_STEPS,
        clock: Callable[[], float] = time.time
    ):
        self.steps = steps
        self._clock = clock
        self.current_step = 0
        self.values: Dict[str, Any] = initial_values()
        self.errors: Dict[str, str] = {}
        self._status = SubmitStatus.IDLE
        self._status_changed_at: Optional[float] = None
        self.status_message: Optional[str] = None

    # State inspection

    @property
    def step(self) -> WizardStep:
        return self.steps[self.current_step]

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def is_first_step(self) -> bool:
        return self.current_step == 0

    @property
    def is_last_step(self) -> bool:
        return self.current_step == len(self.steps) - 1

    @property
    def status(self) -> SubmitStatus:
        """Submission status; a success notice clears itself after a few seconds."""
        if (
            self._status == SubmitStatus.SUCCESS
            and self._status_changed_at is not None
            and self._clock() - self._status_changed_at >= self.SUCCESS_DISPLAY_SECONDS
        ):
            self._set_status(SubmitStatus.IDLE)
        return self._status

    def _set_status(self, status: SubmitStatus, message: Optional[str] = None) -> None:
        self._status = status
        self.status_message = message
        self._status_changed_at = self._clock()

    def _submit_in_flight(self) -> bool:
        return (
            self._status_changed_at is not None
            and self._clock() - self._status_changed_at < self.SUBMIT_LEASE_SECONDS
        )

    def reset(self) -> None:
        """Return the draft to its initial values on the first step."""
        self.current_step = 0
        self.values = initial_values()
        self.errors = {}

    # Field events

    def update_field(self, field: str, value: Any) -> None:
        """
        Store a new value for a field and clear its error.

        Errors are recomputed only on blur or step change, never on every keystroke.
        Answering a controlling question with anything but yes also resets
        its dependent fields.

        Raises:
            UnknownFieldError: If the field is not part of the form
            ValueError: If a tri-state value cannot be interpreted
        """
        if field not in FIELD_KINDS:
            raise UnknownFieldError(field)

        self.values[field] = _coerce(field, value)
        self.errors.pop(field, None)

        if field in DEPENDENT_FIELDS and self.values[field] is not TriState.YES:
            defaults = initial_values()
            for dependent in DEPENDENT_FIELDS[field]:
                self.values[dependent] = defaults[dependent]
                self.errors.pop(dependent, None)

    def blur_field(self, field: str) -> Optional[str]:
        """Validate a single field after the user leaves it."""
        if field not in FIELD_KINDS:
            raise UnknownFieldError(field)

        error = get_validation_error(field, self.values.get(field), self.values)
        if error:
            self.errors[field] = error
        else:
            self.errors.pop(field, None)
        return error

    # Transitions

    def validate_step(self) -> bool:
        """Validate every field of the current step, replacing the error map."""
        self.errors = validate_fields(self.step.fields, self.values)
        return not self.errors

    def next_step(self) -> bool:
        if self.is_last_step:
            return False
        if not self.validate_step():
            logger.debug(
                "Wizard step blocked by validation",
                extra={"step": self.step.key, "fields": sorted(self.errors)}
            )
            return False
        self.current_step += 1
        return True

    def previous_step(self) -> bool:
        if self.is_first_step:
            return False
        self.current_step -= 1
        return True

    def _first_invalid_step(self) -> Optional[int]:
        for index in range(self.current_step + 1):
            if validate_fields(self.steps[index].fields, self.values):
                return index
        return None

    def submit(self, store, on_submitting: Optional[Callable[["RegistrationWizard"], None]] = None) -> bool:
        """
        Validate and hand the draft to the registration store.

        Args:
            store: Collaborator exposing ``insert_registration(payload)``
            on_submitting: Called with the wizard once it is SUBMITTING and
                before the store is called, so the status can be persisted

        Returns:
            True when the registration was stored and the draft reset
        """
        if not self.is_last_step:
            logger.warning("Submit requested before the last step", extra={"step": self.step.key})
            return False

        if self.status == SubmitStatus.SUBMITTING:
            logger.warning("Submit ignored: another submission is in flight")
            return False

        invalid_step = self._first_invalid_step()
        if invalid_step is not None:
            self.current_step = invalid_step
            self.validate_step()
            return False

        payload = build_registration_payload(self.values)
        self._set_status(SubmitStatus.SUBMITTING)
        if on_submitting is not None:
            try:
                on_submitting(self)
            except Exception:
                self._set_status(SubmitStatus.IDLE)
                raise

        try:
            store.insert_registration(payload)
        except ConflictError as e:
            logger.warning(f"Registration rejected as duplicate: {e}")
            self._set_status(SubmitStatus.FAILURE, DUPLICATE_ERROR_MESSAGE)
            return False
        except CollaboratorError as e:
            logger.error(f"Registration store failed: {e}")
            self._set_status(SubmitStatus.FAILURE, e.message or SUBMIT_ERROR_MESSAGE)
            return False
        except Exception as e:
            logger.exception(f"Unexpected error submitting registration: {e}")
            self._set_status(SubmitStatus.FAILURE, SUBMIT_ERROR_MESSAGE)
            return False

        logger.info("Registration submitted")
        self.reset()
        self._set_status(SubmitStatus.SUCCESS, SUBMIT_SUCCESS_MESSAGE)
        return True

    # Persistence

    def snapshot(self) -> Dict[str, Any]:
        """JSON-safe representation of the whole wizard state."""
        values = {}
        for field, value in self.values.items():
            values[field] = value.to_optional_bool() if isinstance(value, TriState) else value

        return {
            "current_step": self.current_step,
            "values": values,
            "errors": dict(self.errors),
            "status": self.status.value,
            "status_message": self.status_message,
            "status_changed_at": self._status_changed_at,
        }

    @classmethod
    def restore(
        cls,
        snapshot: Dict[str, Any],
        clock: Callable[[], float] = time.time
    ) -> "RegistrationWizard":
        """Rebuild a wizard from ``snapshot`` output."""
        wizard = cls(clock=clock)
        for field, value in (snapshot.get("values") or {}).items():
            if field in FIELD_KINDS:
                wizard.values[field] = _coerce(field, value)

        step = int(snapshot.get("current_step", 0))
        wizard.current_step = min(max(step, 0), len(wizard.steps) - 1)
        wizard.errors = dict(snapshot.get("errors") or {})
        wizard._status = SubmitStatus(snapshot.get("status", SubmitStatus.IDLE.value))
        wizard.status_message = snapshot.get("status_message")
        wizard._status_changed_at = snapshot.get("status_changed_at")

        # A submission older than the lease was interrupted and is not resumable
        if wizard._status == SubmitStatus.SUBMITTING and not wizard._submit_in_flight():
            wizard._status = SubmitStatus.IDLE
        return wizard
