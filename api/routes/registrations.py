# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Registration wizard endpoints.

A citizen fills the registration form through a draft session: every field
edit, blur and step change is sent here, applied to the wizard restored from
Redis and saved back. The response always carries the rendered current
section and HAL links for the transitions the step allows.
"""

from flask import jsonify, current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging

from domain.sections import render_section
from domain.wizard import RegistrationWizard, UnknownFieldError
from models.requests import DraftPath, FieldUpdateRequest, FieldBlurRequest
from models.responses import WizardStateResponse
from models.enums import SubmitStatus
from middleware.error_handler import ConflictException, NotFoundException, ValidationException
from middleware.validation import parse_json_body

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DRAFT_NOT_FOUND_MESSAGE = "Rascunho não encontrado ou expirado"
SUBMIT_IN_FLIGHT_MESSAGE = "Envio já em andamento. Aguarde."

registrations_tag = Tag(name="Registrations", description="Citizen registration wizard")
registrations_bp = APIBlueprint(
    'registrations',
    __name__,
    url_prefix='/api/registrations',
    abp_tags=[registrations_tag]
)


def draft_state(session_id: str, wizard: RegistrationWizard) -> dict:
    """Serialize a wizard for the client; secret values are never echoed."""
    state = WizardStateResponse(
        session_id=session_id,
        current_step=wizard.current_step,
        total_steps=wizard.total_steps,
        is_first_step=wizard.is_first_step,
        is_last_step=wizard.is_last_step,
        status=wizard.status.value,
        status_message=wizard.status_message,
        errors=wizard.errors,
        section=render_section(wizard)
    )
    return current_app.hal_formatter.format_draft(state.model_dump())


def load_draft(session_id: str) -> RegistrationWizard:
    wizard = current_app.draft_store.load(session_id)
    if wizard is None:
        raise NotFoundException(DRAFT_NOT_FOUND_MESSAGE)
    return wizard


def unknown_field(field: str) -> ValidationException:
    return ValidationException(
        "Campo desconhecido",
        [{"field": "field", "message": f"Unknown field: {field}"}]
    )


@registrations_bp.post('/drafts')
def create_draft():
    """Start a new registration draft on the first step."""
    with tracer.start_as_current_span("registrations.create_draft"):
        session_id, wizard = current_app.draft_store.create()
        return jsonify(draft_state(session_id, wizard)), 201


@registrations_bp.get('/drafts/<string:session_id>')
def get_draft(path: DraftPath):
    """Return the current state of a draft."""
    wizard = load_draft(path.session_id)
    return jsonify(draft_state(path.session_id, wizard))


@registrations_bp.delete('/drafts/<string:session_id>')
def discard_draft(path: DraftPath):
    """Discard a draft and everything typed into it."""
    if not current_app.draft_store.delete(path.session_id):
        raise NotFoundException(DRAFT_NOT_FOUND_MESSAGE)
    return '', 204


@registrations_bp.patch('/drafts/<string:session_id>/fields')
def update_draft_field(path: DraftPath):
    """
    Store a new value for one field.

    Masked fields are re-masked as the value is stored and the field's error
    is cleared; validation waits for blur or a step change.
    """
    update = parse_json_body(FieldUpdateRequest)

    with tracer.start_as_current_span("registrations.update_field") as span:
        span.set_attribute("wizard.field", update.field)
        wizard = load_draft(path.session_id)

        try:
            wizard.update_field(update.field, update.value)
        except UnknownFieldError:
            raise unknown_field(update.field)
        except ValueError as e:
            raise ValidationException(
                "Valor inválido",
                [{"field": update.field, "message": str(e)}]
            )

        current_app.draft_store.save(path.session_id, wizard)
        return jsonify(draft_state(path.session_id, wizard))


@registrations_bp.post('/drafts/<string:session_id>/blur')
def blur_draft_field(path: DraftPath):
    """Validate a single field after the user leaves it."""
    blur = parse_json_body(FieldBlurRequest)

    with tracer.start_as_current_span("registrations.blur_field") as span:
        span.set_attribute("wizard.field", blur.field)
        wizard = load_draft(path.session_id)

        try:
            wizard.blur_field(blur.field)
        except UnknownFieldError:
            raise unknown_field(blur.field)

        current_app.draft_store.save(path.session_id, wizard)
        return jsonify(draft_state(path.session_id, wizard))


@registrations_bp.post('/drafts/<string:session_id>/next')
def next_draft_step(path: DraftPath):
    """Advance when every field of the current step is valid."""
    with tracer.start_as_current_span("registrations.next_step") as span:
        wizard = load_draft(path.session_id)
        advanced = wizard.next_step()
        span.set_attributes({"wizard.advanced": advanced, "wizard.step": wizard.current_step})

        current_app.draft_store.save(path.session_id, wizard)
        return jsonify(draft_state(path.session_id, wizard))


@registrations_bp.post('/drafts/<string:session_id>/previous')
def previous_draft_step(path: DraftPath):
    """Go back one step without validating."""
    wizard = load_draft(path.session_id)
    wizard.previous_step()
    current_app.draft_store.save(path.session_id, wizard)
    return jsonify(draft_state(path.session_id, wizard))


@registrations_bp.post('/drafts/<string:session_id>/submit')
def submit_draft(path: DraftPath):
    """
    Submit the draft to the registration store.

    Returns 201 with a reset draft on success. Otherwise the draft comes back
    with 200, either moved to the first invalid step with its errors or with
    a failure banner in ``status_message``. A draft whose previous submit is
    still running is refused with 409.
    """
    with tracer.start_as_current_span("registrations.submit") as span:
        draft_store = current_app.draft_store
        wizard = load_draft(path.session_id)
        if wizard.status == SubmitStatus.SUBMITTING:
            logger.warning("Draft submission already in flight")
            raise ConflictException(SUBMIT_IN_FLIGHT_MESSAGE)

        submitted = wizard.submit(
            current_app.mongodb_service,
            on_submitting=lambda submitting: draft_store.save(path.session_id, submitting)
        )
        span.set_attributes({"wizard.submitted": submitted, "wizard.status": wizard.status.value})

        draft_store.save(path.session_id, wizard)

        if submitted:
            logger.info("Registration submitted from draft")
            return jsonify(draft_state(path.session_id, wizard)), 201

        if wizard.status == SubmitStatus.FAILURE:
            logger.warning("Draft submission failed", extra={"reason": wizard.status_message})
        return jsonify(draft_state(path.session_id, wizard))
