# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request validation helpers using Pydantic models.

Views call these instead of reading ``request`` directly; failures are raised
as ``ValidationException`` and rendered by the error handlers.
"""

from flask import request
from typing import Type, TypeVar
from pydantic import BaseModel, ValidationError
from opentelemetry import trace
import logging

from middleware.error_handler import ValidationException, pydantic_errors

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

INVALID_REQUEST_MESSAGE = "Dados inválidos"


def parse_json_body(model_class: Type[ModelT]) -> ModelT:
    """
    Validate the JSON request body against a Pydantic model.

    Raises:
        ValidationException: If the body is missing, not JSON or invalid
    """
    with tracer.start_as_current_span("validation.validate_json_body") as span:
        span.set_attributes({
            "validation.model": model_class.__name__,
            "http.path": request.path
        })

        json_data = request.get_json(silent=True)
        if not isinstance(json_data, dict):
            span.set_attribute("validation.result", "invalid_json")
            raise ValidationException(
                "Corpo da requisição deve ser um objeto JSON",
                [{"field": "body", "message": "Expected a JSON object"}]
            )

        try:
            validated = model_class(**json_data)
        except ValidationError as e:
            span.set_attribute("validation.result", "validation_error")
            errors = pydantic_errors(e)
            logger.warning(
                "Request validation failed",
                extra={
                    "model": model_class.__name__,
                    "path": request.path,
                    "fields": [error["field"] for error in errors]
                }
            )
            raise ValidationException(INVALID_REQUEST_MESSAGE, errors)

        span.set_attribute("validation.result", "success")
        return validated


def parse_query_params(model_class: Type[ModelT]) -> ModelT:
    """
    Validate query string parameters against a Pydantic model.

    Raises:
        ValidationException: If a parameter is invalid
    """
    with tracer.start_as_current_span("validation.validate_query_params") as span:
        span.set_attribute("validation.model", model_class.__name__)

        query_data = {key: value for key, value in request.args.items() if value != ""}

        try:
            validated = model_class(**query_data)
        except ValidationError as e:
            span.set_attribute("validation.result", "validation_error")
            raise ValidationException(INVALID_REQUEST_MESSAGE, pydantic_errors(e))

        span.set_attribute("validation.result", "success")
        return validated
