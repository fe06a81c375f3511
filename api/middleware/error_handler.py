# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Error handling middleware with structured HAL responses.

HTTP errors, application exceptions and collaborator failures are all
rendered as RFC 7807 problem documents so that no failure escapes a request
as an unformatted stack trace.
"""

from flask import Flask, request, jsonify
from werkzeug.exceptions import HTTPException
from pydantic import ValidationError
from typing import Dict, Any, List, Tuple
from opentelemetry import trace
import logging

from services.auth import AuthenticationError, AuthorizationError, TokenValidationError
from services.errors import CollaboratorError, ConflictError, NotFoundError
from services.hal import HalFormatter

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

DUPLICATE_DETAIL = "Erro ao salvar. Verifique se o CPF já não está cadastrado."
COLLABORATOR_DETAIL = "Erro ao processar solicitação. Tente novamente."


def pydantic_errors(error: ValidationError) -> List[Dict[str, Any]]:
    """Flatten pydantic errors into ``{field, message}`` entries."""
    return [
        {
            "field": ".".join(str(part) for part in item.get("loc", ())),
            "message": item.get("msg", "")
        }
        for item in error.errors()
    ]


class ErrorHandlerMiddleware:
    """Centralized error handling middleware with HAL response formatting."""

    CLIENT_ERRORS = {
        400: ("bad-request", "Bad Request"),
        401: ("authentication-required", "Authentication Required"),
        403: ("insufficient-permissions", "Insufficient Permissions"),
        404: ("resource-not-found", "Resource Not Found"),
        405: ("method-not-allowed", "Method Not Allowed"),
        409: ("resource-conflict", "Resource Conflict"),
        413: ("payload-too-large", "Payload Too Large"),
        415: ("unsupported-media-type", "Unsupported Media Type"),
        422: ("validation-error", "Validation Error"),
    }
    SERVER_ERRORS = {
        500: ("internal-server-error", "Internal Server Error"),
        502: ("bad-gateway", "Bad Gateway"),
        503: ("service-unavailable", "Service Unavailable"),
        504: ("gateway-timeout", "Gateway Timeout"),
    }

    def __init__(self, app: Flask, base_url: str):
        self.app = app
        self.hal_formatter = HalFormatter(base_url)
        self.register_error_handlers()

    def register_error_handlers(self):
        """Register error handlers with Flask application."""
        for code, (error_type, title) in self.CLIENT_ERRORS.items():
            self.app.register_error_handler(code, self._client_handler(error_type, title))

        for code, (error_type, title) in self.SERVER_ERRORS.items():
            self.app.register_error_handler(code, self._server_handler(error_type, title))

        @self.app.errorhandler(Exception)
        def handle_generic_exception(error):
            if isinstance(error, HTTPException):
                return self.handle_client_error(error, "http-error", error.name)
            return self.handle_unexpected_error(error)

    def _client_handler(self, error_type: str, title: str):
        def handler(error):
            return self.handle_client_error(error, error_type, title)
        return handler

    def _server_handler(self, error_type: str, title: str):
        def handler(error):
            return self.handle_server_error(error, error_type, title)
        return handler

    def _is_production(self) -> bool:
        return self.app.config.get('ENVIRONMENT') == 'production'

    def handle_client_error(
        self,
        error: HTTPException,
        error_type: str,
        title: str
    ) -> Tuple[Dict[str, Any], int]:
        """Handle client errors (4xx status codes)."""
        with tracer.start_as_current_span("error_handler.client_error") as span:
            span.set_attributes({
                "error.type": error_type,
                "error.status": error.code,
                "http.method": request.method,
                "http.path": request.path
            })

            detail = str(error.description) if error.description else title

            logger.warning(
                f"Client error: {title}",
                extra={
                    "error_type": error_type,
                    "status_code": error.code,
                    "detail": detail,
                    "path": request.path,
                    "method": request.method,
                    "ip_address": request.remote_addr
                }
            )

            if error_type == "authentication-required":
                error_response = self.hal_formatter.format_authentication_error(detail, request.path)
            elif error_type == "insufficient-permissions":
                error_response = self.hal_formatter.format_authorization_error(detail, request.path)
            elif error_type == "resource-not-found":
                error_response = self.hal_formatter.format_not_found_error(detail, request.path)
            elif error_type == "resource-conflict":
                error_response = self.hal_formatter.format_conflict_error(detail, request.path)
            else:
                error_response = self.hal_formatter.builder.build_error_response(
                    error_type,
                    title,
                    error.code,
                    detail,
                    request.path
                )

            return error_response, error.code

    def handle_server_error(
        self,
        error: HTTPException,
        error_type: str,
        title: str
    ) -> Tuple[Dict[str, Any], int]:
        """Handle server errors (5xx status codes)."""
        with tracer.start_as_current_span("error_handler.server_error") as span:
            code = getattr(error, "code", 500) or 500
            span.set_attributes({
                "error.type": error_type,
                "error.status": code,
                "http.method": request.method,
                "http.path": request.path
            })

            description = getattr(error, "description", None)
            detail = str(description) if description else title

            logger.error(
                f"Server error: {title}",
                extra={
                    "error_type": error_type,
                    "status_code": code,
                    "detail": detail,
                    "path": request.path,
                    "method": request.method
                },
                exc_info=True
            )

            if self._is_production():
                detail = "An internal server error occurred"

            error_response = self.hal_formatter.builder.build_error_response(
                error_type, title, code, detail, request.path
            )
            return error_response, code

    def handle_unexpected_error(self, error: Exception) -> Tuple[Dict[str, Any], int]:
        """Handle unexpected exceptions not caught by specific handlers."""
        with tracer.start_as_current_span("error_handler.unexpected_error") as span:
            span.set_attributes({
                "error.type": "unexpected-error",
                "error.class": error.__class__.__name__,
                "http.method": request.method,
                "http.path": request.path
            })
            span.record_exception(error)

            logger.error(
                f"Unexpected error: {error.__class__.__name__}",
                extra={
                    "error_type": "unexpected-error",
                    "error_class": error.__class__.__name__,
                    "error_message": str(error),
                    "path": request.path,
                    "method": request.method
                },
                exc_info=True
            )

            detail = "An unexpected error occurred"
            if not self._is_production():
                detail = f"{error.__class__.__name__}: {str(error)}"

            error_response = self.hal_formatter.format_server_error(detail, request.path)
            return error_response, 500


class CustomException(Exception):
    """Base class for custom application exceptions."""

    def __init__(self, message: str, status_code: int = 500, error_type: str = "application-error"):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_type = error_type


class ValidationException(CustomException):
    """Exception for validation errors."""

    def __init__(self, message: str, validation_errors: list = None):
        super().__init__(message, 400, "validation-error")
        self.validation_errors = validation_errors or []


class AuthenticationException(CustomException):
    """Exception for authentication errors."""

    def __init__(self, message: str):
        super().__init__(message, 401, "authentication-required")


class AuthorizationException(CustomException):
    """Exception for authorization errors."""

    def __init__(self, message: str):
        super().__init__(message, 403, "insufficient-permissions")


class NotFoundException(CustomException):
    """Exception for resource not found errors."""

    def __init__(self, message: str):
        super().__init__(message, 404, "resource-not-found")


class ConflictException(CustomException):
    """Exception for resource conflict errors."""

    def __init__(self, message: str):
        super().__init__(message, 409, "resource-conflict")


class ServiceUnavailableException(CustomException):
    """Exception for service unavailable errors."""

    def __init__(self, message: str):
        super().__init__(message, 503, "service-unavailable")


def to_custom_exception(error: Exception) -> CustomException:
    """Translate service and validation errors into their HTTP counterparts."""
    if isinstance(error, CustomException):
        return error
    if isinstance(error, ValidationError):
        return ValidationException("Dados inválidos", pydantic_errors(error))
    if isinstance(error, ConflictError):
        return ConflictException(DUPLICATE_DETAIL)
    if isinstance(error, NotFoundError):
        return NotFoundException(str(error))
    if isinstance(error, CollaboratorError):
        return ServiceUnavailableException(error.message or COLLABORATOR_DETAIL)
    if isinstance(error, AuthorizationError):
        return AuthorizationException(str(error))
    if isinstance(error, (AuthenticationError, TokenValidationError)):
        return AuthenticationException(str(error))
    raise TypeError(f"No HTTP mapping for {error.__class__.__name__}")


def register_custom_error_handlers(app: Flask, hal_formatter: HalFormatter):
    """
    Register handlers for custom exceptions and service errors.

    Args:
        app: Flask application
        hal_formatter: HAL formatter instance
    """

    def render(error: CustomException):
        with tracer.start_as_current_span("error_handler.custom_exception") as span:
            span.set_attributes({
                "error.type": error.error_type,
                "error.status": error.status_code,
                "http.method": request.method,
                "http.path": request.path
            })

            logger.warning(
                f"Custom exception: {error.error_type}",
                extra={
                    "error_type": error.error_type,
                    "status_code": error.status_code,
                    "detail": error.message,
                    "path": request.path,
                    "method": request.method
                }
            )

            if isinstance(error, ValidationException):
                error_response = hal_formatter.format_validation_error(
                    error.message,
                    request.path,
                    error.validation_errors
                )
            elif isinstance(error, AuthenticationException):
                error_response = hal_formatter.format_authentication_error(error.message, request.path)
            elif isinstance(error, AuthorizationException):
                error_response = hal_formatter.format_authorization_error(error.message, request.path)
            elif isinstance(error, NotFoundException):
                error_response = hal_formatter.format_not_found_error(error.message, request.path)
            elif isinstance(error, ConflictException):
                error_response = hal_formatter.format_conflict_error(error.message, request.path)
            else:
                error_response = hal_formatter.builder.build_error_response(
                    error.error_type,
                    "Service Unavailable" if error.status_code == 503 else "Application Error",
                    error.status_code,
                    error.message,
                    request.path
                )

            return jsonify(error_response), error.status_code

    @app.errorhandler(CustomException)
    def handle_custom_exception(error: CustomException):
        return render(error)

    @app.errorhandler(ValidationError)
    @app.errorhandler(CollaboratorError)
    @app.errorhandler(AuthenticationError)
    @app.errorhandler(AuthorizationError)
    @app.errorhandler(TokenValidationError)
    def handle_service_error(error: Exception):
        return render(to_custom_exception(error))
