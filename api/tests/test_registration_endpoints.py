# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the registration wizard endpoints.
"""

import pytest

from services.errors import ConflictError
from domain.wizard import DUPLICATE_ERROR_MESSAGE, SUBMIT_SUCCESS_MESSAGE
from models.enums import SubmitStatus
from routes.registrations import SUBMIT_IN_FLIGHT_MESSAGE

DRAFTS = '/api/registrations/drafts'


@pytest.fixture
def session_id(client):
    response = client.post(DRAFTS)
    assert response.status_code == 201
    return response.get_json()['session_id']


def set_field(client, session_id, field, value):
    return client.patch(f'{DRAFTS}/{session_id}/fields', json={"field": field, "value": value})


def fill_all(client, session_id, values):
    for field, value in values.items():
        assert set_field(client, session_id, field, value).status_code == 200


class TestDraftLifecycle:
    """Test creating, reading and discarding drafts."""

    def test_create_draft(self, client):
        response = client.post(DRAFTS)

        assert response.status_code == 201
        data = response.get_json()
        assert data['current_step'] == 0
        assert data['total_steps'] == 4
        assert data['is_first_step'] is True
        assert data['section']['title'] == 'Dados Pessoais'
        assert 'next' in data['_links']
        assert 'previous' not in data['_links']

    def test_get_draft(self, client, session_id):
        response = client.get(f'{DRAFTS}/{session_id}')

        assert response.status_code == 200
        assert response.get_json()['session_id'] == session_id

    def test_unknown_draft(self, client):
        response = client.get(f'{DRAFTS}/nao-existe')

        assert response.status_code == 404
        assert response.get_json()['detail'] == 'Rascunho não encontrado ou expirado'

    def test_discard_draft(self, client, session_id):
        assert client.delete(f'{DRAFTS}/{session_id}').status_code == 204
        assert client.get(f'{DRAFTS}/{session_id}').status_code == 404
        assert client.delete(f'{DRAFTS}/{session_id}').status_code == 404


class TestFieldEndpoints:
    """Test field edits and blur validation."""

    def test_update_masks_value(self, client, session_id):
        response = set_field(client, session_id, "cpf", "11144477735")

        fields = {f['name']: f for f in response.get_json()['section']['fields']}
        assert fields['cpf']['value'] == '111.444.777-35'

    def test_password_never_echoed(self, client, session_id):
        response = set_field(client, session_id, "password", "segredo1")

        fields = {f['name']: f for f in response.get_json()['section']['fields']}
        assert fields['password']['value'] == ''
        assert 'segredo1' not in response.get_data(as_text=True)

    def test_blur_reports_error(self, client, session_id):
        set_field(client, session_id, "cpf", "11111111111")

        response = client.post(f'{DRAFTS}/{session_id}/blur', json={"field": "cpf"})

        assert response.status_code == 200
        assert response.get_json()['errors'] == {"cpf": "CPF inválido"}

    def test_unknown_field(self, client, session_id):
        response = set_field(client, session_id, "favorite_color", "blue")

        assert response.status_code == 400
        assert response.get_json()['errors'][0]['message'] == 'Unknown field: favorite_color'

        response = client.post(f'{DRAFTS}/{session_id}/blur', json={"field": "favorite_color"})
        assert response.status_code == 400

    def test_invalid_tri_state(self, client, session_id):
        response = set_field(client, session_id, "homeless", "talvez")

        assert response.status_code == 400
        assert response.get_json()['errors'][0]['field'] == 'homeless'

    def test_missing_field_name(self, client, session_id):
        response = client.patch(f'{DRAFTS}/{session_id}/fields', json={"value": "x"})

        assert response.status_code == 400
        assert response.get_json()['type'].endswith('/validation-error')

    def test_non_object_body(self, client, session_id):
        response = client.patch(f'{DRAFTS}/{session_id}/fields', json=["cpf"])

        assert response.status_code == 400


class TestStepEndpoints:
    """Test step navigation and submission over HTTP."""

    def test_next_blocked_with_errors(self, client, session_id):
        response = client.post(f'{DRAFTS}/{session_id}/next')

        data = response.get_json()
        assert response.status_code == 200
        assert data['current_step'] == 0
        assert data['errors']['full_name'] == 'Nome é obrigatório'

    def test_full_flow_submits(self, client, session_id, filled_values, flask_app):
        fill_all(client, session_id, filled_values)
        for expected_step in (1, 2, 3):
            data = client.post(f'{DRAFTS}/{session_id}/next').get_json()
            assert data['current_step'] == expected_step
        assert 'submit' in data['_links']
        assert 'next' not in data['_links']

        response = client.post(f'{DRAFTS}/{session_id}/submit')

        assert response.status_code == 201
        data = response.get_json()
        assert data['status'] == 'success'
        assert data['status_message'] == SUBMIT_SUCCESS_MESSAGE
        assert data['current_step'] == 0

        payload = flask_app.mongodb_service.insert_registration.call_args[0][0]
        assert payload['cpf'] == '11144477735'
        assert payload['cep'] == '01310100'
        assert 'confirm_password' not in payload

    def test_previous_step(self, client, session_id, filled_values):
        fill_all(client, session_id, filled_values)
        client.post(f'{DRAFTS}/{session_id}/next')

        data = client.post(f'{DRAFTS}/{session_id}/previous').get_json()

        assert data['current_step'] == 0
        assert data['is_first_step'] is True

    def test_submit_before_last_step(self, client, session_id, flask_app):
        response = client.post(f'{DRAFTS}/{session_id}/submit')

        assert response.status_code == 200
        flask_app.mongodb_service.insert_registration.assert_not_called()

    def test_duplicate_cpf_keeps_draft(self, client, session_id, filled_values, flask_app):
        flask_app.mongodb_service.insert_registration.side_effect = ConflictError()
        fill_all(client, session_id, filled_values)
        for _ in range(3):
            client.post(f'{DRAFTS}/{session_id}/next')

        response = client.post(f'{DRAFTS}/{session_id}/submit')

        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'failure'
        assert data['status_message'] == DUPLICATE_ERROR_MESSAGE
        assert data['is_last_step'] is True

        restored = client.get(f'{DRAFTS}/{session_id}').get_json()
        fields = {f['name']: f for f in restored['section']['fields']}
        assert fields['homeless']['value'] is False

    def test_drafts_unavailable_without_redis(self, client, flask_app):
        flask_app.draft_store.redis_service.client = None

        response = client.post(DRAFTS)

        assert response.status_code == 503
        assert response.get_json()['type'].endswith('/service-unavailable')

    def test_draft_marked_submitting_during_insert(self, client, session_id, filled_values, flask_app):
        fill_all(client, session_id, filled_values)
        for _ in range(3):
            client.post(f'{DRAFTS}/{session_id}/next')
        statuses = []
        flask_app.mongodb_service.insert_registration.side_effect = (
            lambda payload: statuses.append(flask_app.draft_store.load(session_id).status)
        )

        assert client.post(f'{DRAFTS}/{session_id}/submit').status_code == 201
        assert statuses == [SubmitStatus.SUBMITTING]

    def test_submit_refused_while_previous_in_flight(self, client, session_id, filled_values, flask_app):
        fill_all(client, session_id, filled_values)
        for _ in range(3):
            client.post(f'{DRAFTS}/{session_id}/next')
        wizard = flask_app.draft_store.load(session_id)
        wizard._set_status(SubmitStatus.SUBMITTING)
        flask_app.draft_store.save(session_id, wizard)

        response = client.post(f'{DRAFTS}/{session_id}/submit')

        assert response.status_code == 409
        assert response.get_json()['detail'] == SUBMIT_IN_FLIGHT_MESSAGE
        flask_app.mongodb_service.insert_registration.assert_not_called()
        assert flask_app.draft_store.load(session_id).status == SubmitStatus.SUBMITTING
