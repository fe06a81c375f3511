"""
Health Check Service

Provides health monitoring for the registration service dependencies
(MongoDB, Redis) and basic system metrics.
"""

import os
import time
import psutil
from datetime import datetime
from typing import Dict, Any
from opentelemetry import trace

tracer = trace.get_tracer(__name__)

SERVICE_NAME = "cadastro-social-api"


class HealthCheckService:
    """Service for system health monitoring."""

    def __init__(self, mongodb_service, redis_service, service_version: str = "1.0.0"):
        self.mongodb_service = mongodb_service
        self.redis_service = redis_service
        self.service_version = service_version

    def get_comprehensive_health(self) -> Dict[str, Any]:
        """Get health status including all dependencies and metrics."""
        with tracer.start_as_current_span("health.comprehensive_check") as span:
            start_time = time.time()

            mongodb_health = self._check_mongodb_health()
            redis_health = self._check_redis_health()

            overall_status = self._determine_overall_status([
                mongodb_health["status"],
                redis_health["status"]
            ])

            response_time_ms = round((time.time() - start_time) * 1000, 2)

            health_data = {
                "status": overall_status,
                "service": SERVICE_NAME,
                "version": self.service_version,
                "environment": os.getenv('ENVIRONMENT', 'development'),
                "timestamp": datetime.utcnow().isoformat() + "Z",
                "response_time_ms": response_time_ms,
                "dependencies": {
                    "mongodb": mongodb_health,
                    "redis": redis_health
                },
                "system_metrics": self._get_system_metrics(),
                "feature_flags": self._get_feature_flags(),
                "configuration": self._get_configuration_status()
            }

            span.set_attributes({
                "health.overall_status": overall_status,
                "health.response_time_ms": response_time_ms,
                "health.mongodb_status": mongodb_health["status"],
                "health.redis_status": redis_health["status"]
            })

            return health_data

    def _check_mongodb_health(self) -> Dict[str, Any]:
        """Check MongoDB connectivity."""
        with tracer.start_as_current_span("health.mongodb_check") as span:
            start_time = time.time()
            result = self.mongodb_service.health_check()
            result["response_time_ms"] = round((time.time() - start_time) * 1000, 2)
            result["last_check"] = datetime.utcnow().isoformat() + "Z"
            span.set_attribute("mongodb.status", result["status"])
            return result

    def _check_redis_health(self) -> Dict[str, Any]:
        """Check Redis connectivity."""
        with tracer.start_as_current_span("health.redis_check") as span:
            result = self.redis_service.health_check()
            result["last_check"] = datetime.utcnow().isoformat() + "Z"
            span.set_attribute("redis.status", result["status"])
            return result

    def _get_system_metrics(self) -> Dict[str, Any]:
        """Get basic system performance metrics."""
        try:
            cpu_percent = psutil.cpu_percent(interval=0.1)

            memory = psutil.virtual_memory()
            disk = psutil.disk_usage('/')

            return {
                "cpu_percent": cpu_percent,
                "memory": {
                    "used_mb": round(memory.used / 1024 / 1024, 2),
                    "total_mb": round(memory.total / 1024 / 1024, 2),
                    "percent": memory.percent
                },
                "disk": {
                    "used_gb": round(disk.used / 1024 / 1024 / 1024, 2),
                    "total_gb": round(disk.total / 1024 / 1024 / 1024, 2),
                    "percent": round((disk.used / disk.total) * 100, 2)
                },
                "load_average": list(os.getloadavg()) if hasattr(os, 'getloadavg') else None
            }
        except Exception as e:
            return {
                "error": f"Failed to collect system metrics: {str(e)}"
            }

    def _get_feature_flags(self) -> Dict[str, bool]:
        return {
            "docs_enabled": os.getenv('DOCS_ENABLED', 'true').lower() == 'true',
            "otel_enabled": os.getenv('OTEL_ENABLED', 'true').lower() == 'true'
        }

    def _get_configuration_status(self) -> Dict[str, Any]:
        config_status = {
            "mongodb_uri_configured": bool(os.getenv('MONGODB_URI')),
            "redis_configured": bool(os.getenv('REDIS_URL')),
            "jwt_keys_configured": bool(os.getenv('JWT_PRIVATE_KEY') and os.getenv('JWT_PUBLIC_KEY')),
            "environment": os.getenv('ENVIRONMENT', 'development')
        }

        critical_configs = ['mongodb_uri_configured', 'redis_configured']
        config_status["all_critical_configured"] = all(
            config_status[config] for config in critical_configs
        )

        return config_status

    def _determine_overall_status(self, dependency_statuses: list) -> str:
        """Determine overall system status based on dependency health."""
        if all(status == "healthy" for status in dependency_statuses):
            return "healthy"
        elif any(status == "healthy" for status in dependency_statuses):
            return "degraded"
        else:
            return "unhealthy"
