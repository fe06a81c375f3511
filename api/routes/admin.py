# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Admin dashboard endpoints.

Every request fetches the full record set and runs it through the table
engine, so search, category filter, pagination, statistics and the CSV
export always agree with each other.
"""

import os
import time

from flask import request, jsonify, current_app, Response
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging

from domain.registrations import (
    RegistrationTable,
    calculate_stats,
    calculate_daily_data,
    export_csv,
    export_filename,
)
from models.requests import (
    RegistrationPath,
    CreateRegistrationRequest,
    UpdateRegistrationRequest,
    RegistrationFilters,
)
from models.responses import RegistrationResponse, AdminUserResponse, StatsResponse
from services.errors import ConflictError
from middleware.auth import require_admin
from middleware.error_handler import ConflictException, NotFoundException, ValidationException
from middleware.validation import parse_json_body, parse_query_params

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

AVATARS_BUCKET = "avatars"
CREATE_CONFLICT_MESSAGE = "Erro ao adicionar cadastro. Verifique se o CPF já não está cadastrado."

admin_tag = Tag(name="Admin", description="Registration dashboard for staff")
admin_bp = APIBlueprint(
    'admin',
    __name__,
    url_prefix='/api/admin',
    abp_tags=[admin_tag]
)


def serialize_registration(registration) -> dict:
    data = RegistrationResponse.model_validate(registration).model_dump(mode="json")
    return current_app.hal_formatter.format_registration(data)


def build_table(filters: RegistrationFilters) -> RegistrationTable:
    with tracer.start_as_current_span("admin.fetch_registrations") as span:
        registrations = current_app.mongodb_service.fetch_all_registrations()
        span.set_attribute("registrations.count", len(registrations))

    table = RegistrationTable(registrations)
    table.search = filters.search
    table.filter_type = filters.filter_type
    table.go_to_page(filters.page)
    return table


@admin_bp.get('/registrations')
@require_admin
def list_registrations(user_context):
    """List registrations with search, category filter and 30-row pages."""
    filters = parse_query_params(RegistrationFilters)
    table = build_table(filters)
    info = table.page_info()

    logger.debug(
        "Registrations listed",
        extra={
            "user_id": user_context.user_id,
            "filter_type": table.filter_type.value,
            "total_items": info["total_items"]
        }
    )

    response = current_app.hal_formatter.format_registration_collection(
        [RegistrationResponse.model_validate(r).model_dump(mode="json") for r in table.current_items()],
        info["total_items"],
        info["page"],
        info["page_size"],
        {"search": table.search, "filter_type": table.filter_type.value}
    )
    response["first_item"] = info["first_item"]
    response["last_item"] = info["last_item"]
    return jsonify(response)


@admin_bp.post('/registrations')
@require_admin
def create_registration(user_context):
    """Add a registration on behalf of a citizen."""
    new_registration = parse_json_body(CreateRegistrationRequest)

    with tracer.start_as_current_span("admin.create_registration"):
        try:
            registration_id = current_app.mongodb_service.insert_registration(new_registration.model_dump())
        except ConflictError:
            raise ConflictException(CREATE_CONFLICT_MESSAGE)

        registration = current_app.mongodb_service.get_registration(registration_id)

    logger.info(
        "Registration created by staff",
        extra={"user_id": user_context.user_id, "registration_id": registration_id}
    )
    return jsonify(serialize_registration(registration)), 201


@admin_bp.patch('/registrations/<string:registration_id>')
@require_admin
def update_registration(user_context, path: RegistrationPath):
    """Edit some fields of a registration."""
    changes = parse_json_body(UpdateRegistrationRequest)

    with tracer.start_as_current_span("admin.update_registration") as span:
        span.set_attribute("registration.id", path.registration_id)
        try:
            registration = current_app.mongodb_service.update_registration(
                path.registration_id,
                changes.to_update()
            )
        except ValueError as e:
            raise ValidationException("Dados inválidos", [{"field": "body", "message": str(e)}])

    logger.info(
        "Registration updated by staff",
        extra={"user_id": user_context.user_id, "registration_id": path.registration_id}
    )
    return jsonify(serialize_registration(registration))


@admin_bp.delete('/registrations/<string:registration_id>')
@require_admin
def delete_registration(user_context, path: RegistrationPath):
    """Delete a registration."""
    with tracer.start_as_current_span("admin.delete_registration") as span:
        span.set_attribute("registration.id", path.registration_id)
        current_app.mongodb_service.delete_registration(path.registration_id)

    logger.info(
        "Registration deleted by staff",
        extra={"user_id": user_context.user_id, "registration_id": path.registration_id}
    )
    return '', 204


@admin_bp.get('/registrations/export')
@require_admin
def export_registrations(user_context):
    """Download the filtered registrations as a CSV spreadsheet."""
    filters = parse_query_params(RegistrationFilters)
    table = build_table(filters)

    with tracer.start_as_current_span("admin.export_csv") as span:
        content = export_csv(table.filtered)
        span.set_attribute("export.rows", table.total_items)

    filename = export_filename()
    logger.info(
        "Registrations exported",
        extra={"user_id": user_context.user_id, "rows": table.total_items}
    )
    return Response(
        content,
        content_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@admin_bp.get('/stats')
@require_admin
def get_stats(user_context):
    """Dashboard counters and registrations per day."""
    registrations = current_app.mongodb_service.fetch_all_registrations()

    stats = StatsResponse(
        **calculate_stats(registrations),
        daily=calculate_daily_data(registrations)
    )
    return jsonify(stats.model_dump())


@admin_bp.get('/me')
@require_admin
def get_profile(user_context):
    """Profile of the signed-in staff member."""
    admin = current_app.mongodb_service.get_admin_user(user_context.user_id)
    if admin is None:
        raise NotFoundException("Administrador não encontrado")

    return jsonify(AdminUserResponse.model_validate(admin).model_dump())


@admin_bp.post('/me/photo')
@require_admin
def upload_profile_photo(user_context):
    """
    Replace the staff member's profile photo.

    Expects a multipart upload with the image in the ``photo`` field.
    """
    photo = request.files.get('photo')
    if photo is None or not photo.filename:
        raise ValidationException(
            "Selecione uma imagem",
            [{"field": "photo", "message": "Missing file"}]
        )

    extension = os.path.splitext(photo.filename)[1].lstrip('.').lower() or "img"
    object_path = f"{AVATARS_BUCKET}/{user_context.user_id}-{int(time.time() * 1000)}.{extension}"

    with tracer.start_as_current_span("admin.upload_photo"):
        try:
            photo_url = current_app.storage_service.upload_image(
                AVATARS_BUCKET,
                object_path,
                photo.read(),
                photo.mimetype
            )
        except ValueError as e:
            raise ValidationException(str(e), [{"field": "photo", "message": str(e)}])

        current_app.mongodb_service.update_admin_photo(user_context.user_id, photo_url)

    logger.info("Profile photo updated", extra={"user_id": user_context.user_id})
    return jsonify({"profile_photo_url": photo_url})
