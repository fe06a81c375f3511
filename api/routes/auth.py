# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Authentication endpoints for staff sessions and citizen password checks.
"""

from flask import request, jsonify, current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
import logging

from models.requests import LoginRequest, CitizenLoginRequest
from models.responses import AuthTokenResponse, AdminUserResponse, SuccessResponse
from middleware.auth import require_auth
from middleware.validation import parse_json_body

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

auth_tag = Tag(name="Authentication", description="Staff sessions and citizen login")
auth_bp = APIBlueprint(
    'auth',
    __name__,
    url_prefix='/api/auth',
    abp_tags=[auth_tag]
)


@auth_bp.post('/login')
def login():
    """
    Authenticate a staff member and return an access token.

    A valid credential that is not mapped to an administrator is refused with
    403 and no token is issued.
    """
    credentials = parse_json_body(LoginRequest)

    with tracer.start_as_current_span(
        "auth.login",
        attributes={"operation": "login", "ip_address": request.remote_addr or ""}
    ) as span:
        try:
            result = current_app.auth_service.authenticate_staff(credentials.email, credentials.password)
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, e.__class__.__name__))
            raise

        user = result["user"]
        logger.info("Staff login succeeded", extra={"user_id": user.id, "ip_address": request.remote_addr})

        response = AuthTokenResponse(
            access_token=result["access_token"],
            token_type=result["token_type"],
            expires_in=result["expires_in"],
            user=AdminUserResponse.model_validate(user)
        )
        return jsonify(response.model_dump())


@auth_bp.post('/logout')
@require_auth
def logout(user_context):
    """Revoke the current access token."""
    token = current_app.auth_middleware.extract_token_from_request()

    with tracer.start_as_current_span("auth.logout") as span:
        span.set_attribute("user.id", user_context.user_id)
        current_app.auth_service.revoke_token(token)

    logger.info("Staff logout", extra={"user_id": user_context.user_id})
    return jsonify(SuccessResponse(message="Sessão encerrada").model_dump())


@auth_bp.post('/citizen/login')
def citizen_login():
    """Check a citizen's CPF and the password chosen at registration."""
    credentials = parse_json_body(CitizenLoginRequest)

    with tracer.start_as_current_span("auth.citizen_login"):
        registration = current_app.auth_service.authenticate_citizen(credentials.cpf, credentials.password)

    logger.info("Citizen login succeeded", extra={"registration_id": registration.id})
    return jsonify(SuccessResponse(
        message="Login realizado com sucesso",
        data={"id": registration.id, "full_name": registration.full_name}
    ).model_dump())
