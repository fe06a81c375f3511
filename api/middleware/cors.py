# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
CORS middleware for the registration and admin frontends.
"""

from flask import Flask, request, make_response
from typing import List, Optional
import os
import logging

logger = logging.getLogger(__name__)

DEVELOPMENT_ORIGINS = [
    'http://localhost:3000',
    'http://localhost:5173',
    'http://127.0.0.1:3000',
    'http://127.0.0.1:5173'
]


def parse_origins(value: Optional[str]) -> List[str]:
    """Split a comma separated origin list, ignoring blanks."""
    if not value:
        return []
    return [origin.strip().rstrip('/') for origin in value.split(',') if origin.strip()]


class CORSMiddleware:
    """
    CORS middleware for Flask applications.

    Origins come from ``CORS_ALLOWED_ORIGINS``; local dev servers are added
    automatically outside production. An entry ending in ``*`` matches by
    prefix and a lone ``*`` matches everything.
    """

    def __init__(
        self,
        app: Flask,
        allowed_origins: Optional[List[str]] = None,
        allow_credentials: bool = True,
        max_age: int = 86400
    ):
        self.app = app
        self.allowed_origins = allowed_origins if allowed_origins is not None else self._get_default_origins()
        self.allowed_methods = ['GET', 'POST', 'PATCH', 'DELETE', 'OPTIONS']
        self.allowed_headers = [
            'Accept',
            'Authorization',
            'Content-Type',
            'X-Requested-With',
            'X-Session-ID'
        ]
        # Content-Disposition carries the CSV export filename
        self.expose_headers = ['Content-Disposition', 'Content-Length', 'Content-Type']
        self.allow_credentials = allow_credentials
        self.max_age = max_age

        self.register_cors_handlers()

    def _get_default_origins(self) -> List[str]:
        origins = parse_origins(os.getenv('CORS_ALLOWED_ORIGINS'))

        if os.getenv('ENVIRONMENT', 'development') != 'production':
            origins.extend(o for o in DEVELOPMENT_ORIGINS if o not in origins)

        return origins

    def is_origin_allowed(self, origin: Optional[str]) -> bool:
        if not origin:
            return False

        for allowed_origin in self.allowed_origins:
            if allowed_origin == '*' or allowed_origin == origin:
                return True
            if allowed_origin.endswith('*') and origin.startswith(allowed_origin[:-1]):
                return True

        return False

    def add_cors_headers(self, response, origin: str):
        response.headers['Access-Control-Allow-Origin'] = origin
        response.headers['Vary'] = 'Origin'

        if self.allow_credentials:
            response.headers['Access-Control-Allow-Credentials'] = 'true'

        response.headers['Access-Control-Allow-Methods'] = ', '.join(self.allowed_methods)
        response.headers['Access-Control-Allow-Headers'] = ', '.join(self.allowed_headers)
        response.headers['Access-Control-Expose-Headers'] = ', '.join(self.expose_headers)
        response.headers['Access-Control-Max-Age'] = str(self.max_age)

        return response

    def register_cors_handlers(self):
        """Register CORS handlers with Flask application."""

        @self.app.before_request
        def handle_preflight():
            if request.method != 'OPTIONS':
                return None

            origin = request.headers.get('Origin')
            if not self.is_origin_allowed(origin):
                logger.warning(f"CORS preflight rejected for origin: {origin}")
                return make_response('', 403)

            return self.add_cors_headers(make_response('', 204), origin)

        @self.app.after_request
        def add_cors_headers_to_response(response):
            origin = request.headers.get('Origin')

            if self.is_origin_allowed(origin):
                self.add_cors_headers(response, origin)
            elif origin and request.method != 'OPTIONS':
                logger.warning(f"CORS rejected for origin: {origin}")

            return response


def configure_cors(app: Flask, **kwargs) -> CORSMiddleware:
    """Configure CORS for a Flask application."""
    return CORSMiddleware(app, **kwargs)
