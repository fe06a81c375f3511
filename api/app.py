"""
Cadastro Social API - Flask Application Entry Point

This module initializes the Flask application with OpenAPI 3.0 support,
configures middleware and wires the collaborators used by the citizen
registration wizard and the staff dashboard.
"""

import os
import time
from datetime import datetime

import psutil
from flask import jsonify
from flask_openapi3 import OpenAPI, Info, Tag
from observability.config import setup_observability
from observability.middleware import add_observability_middleware

from middleware.cors import configure_cors
from middleware.error_handler import ErrorHandlerMiddleware, register_custom_error_handlers
from middleware.auth import AuthMiddleware
from services.hal import create_hal_formatter
from services.mongodb import MongoDBService
from services.redis import RedisService
from services.auth import AuthService
from services.drafts import DraftSessionStore
from services.storage import ObjectStorageService
from services.health import HealthCheckService, SERVICE_NAME

SERVICE_VERSION = os.getenv('SERVICE_VERSION', '1.0.0')

# Initialize observability first
setup_observability()

info = Info(
    title="Cadastro Social API",
    version=SERVICE_VERSION,
    description="Citizen social registration wizard and staff dashboard API with HAL responses"
)

tags = [
    Tag(name="Registrations", description="Citizen registration wizard"),
    Tag(name="Authentication", description="Staff sessions and citizen login"),
    Tag(name="Admin", description="Registration dashboard for staff"),
    Tag(name="Media", description="Public files"),
    Tag(name="Health", description="System health and status")
]

app = OpenAPI(__name__, info=info)

add_observability_middleware(app)

# Environment configuration
app.config['ENVIRONMENT'] = os.getenv('ENVIRONMENT', 'development')
app.config['DEBUG'] = app.config['ENVIRONMENT'] == 'development'
app.config['DOCS_ENABLED'] = os.getenv('DOCS_ENABLED', 'true').lower() == 'true'
app.config['OTEL_ENABLED'] = os.getenv('OTEL_ENABLED', 'true').lower() == 'true'

# Collaborators
app.config['MONGODB_URI'] = os.getenv('MONGODB_URI', 'mongodb://localhost:27017/cadastro_social_dev')
app.config['MONGODB_DATABASE'] = os.getenv('MONGODB_DATABASE', 'cadastro_social_dev')
app.config['REDIS_URL'] = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
app.config['DRAFT_SESSION_TTL_SECONDS'] = int(os.getenv('DRAFT_SESSION_TTL_SECONDS', '1800'))

# Security
app.config['JWT_PRIVATE_KEY'] = os.getenv('JWT_PRIVATE_KEY')
app.config['JWT_PUBLIC_KEY'] = os.getenv('JWT_PUBLIC_KEY')
app.config['MAX_CONTENT_LENGTH'] = 4 * 1024 * 1024

# API configuration
app.config['BASE_URL'] = os.getenv('BASE_URL', 'http://localhost:5000')

# Initialize services
mongodb_service = MongoDBService(app.config['MONGODB_URI'], app.config['MONGODB_DATABASE'])
redis_service = RedisService(app.config['REDIS_URL'])
auth_service = AuthService(
    mongodb_service,
    redis_service,
    app.config['JWT_PRIVATE_KEY'],
    app.config['JWT_PUBLIC_KEY']
)
draft_store = DraftSessionStore(redis_service, app.config['DRAFT_SESSION_TTL_SECONDS'])
storage_service = ObjectStorageService(mongodb_service, app.config['BASE_URL'])
health_service = HealthCheckService(mongodb_service, redis_service, SERVICE_VERSION)

# Initialize middleware
hal_formatter = create_hal_formatter(app.config['BASE_URL'])
auth_middleware = AuthMiddleware(auth_service)
error_handler = ErrorHandlerMiddleware(app, app.config['BASE_URL'])
cors_middleware = configure_cors(app)
register_custom_error_handlers(app, hal_formatter)

# Make services available to routes
app.mongodb_service = mongodb_service
app.redis_service = redis_service
app.auth_service = auth_service
app.draft_store = draft_store
app.storage_service = storage_service
app.hal_formatter = hal_formatter
app.auth_middleware = auth_middleware

# Register routes
from routes.registrations import registrations_bp
from routes.auth import auth_bp
from routes.admin import admin_bp
from routes.media import media_bp

app.register_api(registrations_bp)
app.register_api(auth_bp)
app.register_api(admin_bp)
app.register_api(media_bp)


@app.route('/api/healthz')
def health_check():
    """Health check with dependency monitoring; 503 when nothing is reachable."""
    health_data = health_service.get_comprehensive_health()

    status_code = 503 if health_data["status"] == "unhealthy" else 200

    health_response = hal_formatter.builder.build_resource_response(
        health_data,
        {
            'self': hal_formatter.builder.link_builder.build_self_link('/api/healthz'),
            'status': hal_formatter.builder.link_builder.build_link('/api/status', title="System status")
        }
    )
    return jsonify(health_response), status_code


@app.route('/api/status')
def system_status():
    """Detailed system status and metrics endpoint"""
    status_data = {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "environment": app.config['ENVIRONMENT'],
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "uptime": _get_application_uptime(),
        "configuration": _get_configuration_summary(),
        "feature_flags": _get_feature_flags_status(),
        "openapi_status": _get_openapi_status(),
        "system_metrics": health_service._get_system_metrics(),
        "dependencies": {
            "mongodb": health_service._check_mongodb_health(),
            "redis": health_service._check_redis_health()
        }
    }

    status_response = hal_formatter.builder.build_resource_response(
        status_data,
        {
            'self': hal_formatter.builder.link_builder.build_self_link('/api/status'),
            'health': hal_formatter.builder.link_builder.build_link('/api/healthz', title="Health check")
        }
    )
    return jsonify(status_response)


def _get_application_uptime():
    """Get application uptime information."""
    process = psutil.Process(os.getpid())
    create_time = process.create_time()

    return {
        "uptime_seconds": round(time.time() - create_time, 2),
        "started_at": datetime.utcfromtimestamp(create_time).isoformat() + "Z",
        "process_id": os.getpid()
    }


def _get_configuration_summary():
    return {
        "mongodb_configured": bool(os.getenv('MONGODB_URI')),
        "redis_configured": bool(os.getenv('REDIS_URL')),
        "jwt_configured": bool(app.config.get('JWT_PRIVATE_KEY') and app.config.get('JWT_PUBLIC_KEY')),
        "base_url": app.config.get('BASE_URL', 'not_set'),
        "draft_session_ttl_seconds": app.config['DRAFT_SESSION_TTL_SECONDS'],
        "debug_mode": app.config.get('DEBUG', False)
    }


def _get_feature_flags_status():
    return {
        "docs_enabled": app.config.get('DOCS_ENABLED', False),
        "otel_enabled": app.config.get('OTEL_ENABLED', True),
        "debug_mode": app.config.get('DEBUG', False)
    }


def _get_openapi_status():
    docs_enabled = app.config.get('DOCS_ENABLED', False)
    return {
        "spec_endpoint": "/openapi/openapi.json",
        "docs_endpoint": "/openapi/swagger" if docs_enabled else None,
        "redoc_endpoint": "/openapi/redoc" if docs_enabled else None
    }


if __name__ == '__main__':
    if app.config['ENVIRONMENT'] == 'development':
        mongodb_service.create_indexes()

    app.run(
        host='0.0.0.0',
        port=int(os.getenv('PORT', 5000)),
        debug=app.config['DEBUG']
    )
