# SPDX-License-Identifier: Apache-2.0

"""
Authentication middleware for staff JWT validation and user context extraction.

Staff endpoints are wrapped with ``require_auth`` or ``require_admin``. Both
read the ``AuthMiddleware`` configured on the application, validate the
bearer token and pass a ``UserContext`` as first argument to the view.
"""

from functools import wraps
from flask import request, g, current_app
from typing import Optional, Dict, Any, Callable
from opentelemetry import trace
import logging

from models.entities import UserContext
from services.auth import TokenValidationError, ADMIN_NOT_AUTHORIZED_MESSAGE
from middleware.error_handler import AuthenticationException, AuthorizationException

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

MISSING_TOKEN_MESSAGE = "Sessão expirada ou ausente. Faça login novamente."


class AuthMiddleware:
    """
    JWT authentication middleware for Flask applications.

    Handles token extraction, validation (including the revocation check
    done by the auth service) and user context building.
    """

    def __init__(self, auth_service):
        self.auth_service = auth_service

    def extract_token_from_request(self) -> Optional[str]:
        """Extract the bearer token from the Authorization header."""
        auth_header = request.headers.get('Authorization', '')

        if not auth_header.startswith('Bearer '):
            return None

        return auth_header[7:].strip() or None

    def build_user_context(self, token_payload: Dict[str, Any], request_info: Dict[str, Any]) -> UserContext:
        return UserContext(
            user_id=token_payload["sub"],
            email=token_payload.get("email"),
            name=token_payload.get("name"),
            is_admin=token_payload.get("role") == "admin",
            token_payload=token_payload,
            ip_address=request_info.get("ip_address"),
            user_agent=request_info.get("user_agent"),
            session_id=request_info.get("session_id")
        )

    def get_request_info(self) -> Dict[str, Any]:
        return {
            "ip_address": request.remote_addr,
            "user_agent": request.headers.get('User-Agent', ''),
            "session_id": request.headers.get('X-Session-ID')
        }

    def authenticate(self) -> UserContext:
        """
        Validate the current request's token.

        Raises:
            AuthenticationException: If the token is missing, invalid, expired or revoked
        """
        with tracer.start_as_current_span("auth.middleware.validate_request") as span:
            token = self.extract_token_from_request()
            if not token:
                span.set_attribute("auth.result", "missing_token")
                logger.warning("Authentication failed: missing token")
                raise AuthenticationException(MISSING_TOKEN_MESSAGE)

            try:
                token_payload = self.auth_service.validate_token(token, "access")
            except TokenValidationError as e:
                span.set_attribute("auth.result", "invalid_token")
                logger.warning(f"Authentication failed: {str(e)}")
                raise AuthenticationException(MISSING_TOKEN_MESSAGE)

            user_context = self.build_user_context(token_payload, self.get_request_info())
            g.user_context = user_context

            span.set_attributes({
                "auth.result": "success",
                "user.id": user_context.user_id
            })
            logger.debug(
                "Authentication successful",
                extra={
                    "user_id": user_context.user_id,
                    "ip_address": user_context.ip_address
                }
            )
            return user_context


def require_auth(f: Callable) -> Callable:
    """Require a valid staff token and pass the user context to the view."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_context = current_app.auth_middleware.authenticate()
        return f(user_context, *args, **kwargs)

    return decorated_function


def require_admin(f: Callable) -> Callable:
    """Require a valid staff token issued to an administrator."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_context = current_app.auth_middleware.authenticate()

        if not user_context.is_admin:
            logger.warning(
                "Authorization failed: not an administrator",
                extra={"user_id": user_context.user_id}
            )
            raise AuthorizationException(ADMIN_NOT_AUTHORIZED_MESSAGE)

        return f(user_context, *args, **kwargs)

    return decorated_function
