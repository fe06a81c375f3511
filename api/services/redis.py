# SPDX-License-Identifier: Apache-2.0

"""
Redis service for draft sessions and the JWT token blocklist.

This module wraps the redis-py client. Cache-style operations fail gracefully
and report False/None when Redis is unreachable; callers that cannot work
without Redis check ``is_available`` first.
"""

import os
import json
import time
from typing import Optional, List, Dict, Any, Union
import redis
from opentelemetry import trace
import logging

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class RedisConnectionError(Exception):
    """Raised when Redis connection fails."""
    pass


class RedisService:
    """
    Redis service built on the redis-py client.

    Args:
        redis_url: Redis connection URL (redis://host:port/db)
        client: Pre-built client, mainly for tests
    """

    def __init__(self, redis_url: Optional[str] = None, client=None):
        self.redis_url = redis_url or os.getenv("REDIS_URL", "redis://localhost:6379/0")

        if client is not None:
            self.client = client
            return

        try:
            self.client = redis.from_url(self.redis_url, decode_responses=True)
            self._test_connection()
            logger.info(f"Redis service initialized successfully at {self.redis_url}")
        except Exception as e:
            logger.error(f"Failed to initialize Redis service: {str(e)}")
            self.client = None

    def _test_connection(self) -> None:
        """Test Redis connection."""
        try:
            if not self.client.ping():
                raise RedisConnectionError("Redis ping failed")
        except redis.RedisError as e:
            logger.error(f"Redis connection test failed: {str(e)}")
            raise RedisConnectionError(f"Redis connection failed: {str(e)}")

    def is_available(self) -> bool:
        """Check if Redis service is available."""
        return self.client is not None

    def _handle_redis_error(self, operation: str, error: Exception) -> None:
        logger.error(f"Redis {operation} failed: {str(error)}")

    def set_with_ttl(self, key: str, value: Union[str, Dict, List], ttl_seconds: int) -> bool:
        """
        Set a key-value pair with TTL.

        Args:
            key: Redis key
            value: Value to store (will be JSON serialized if not string)
            ttl_seconds: Time to live in seconds

        Returns:
            True if successful, False otherwise
        """
        if not self.is_available():
            return False

        with tracer.start_as_current_span("redis.set_with_ttl") as span:
            span.set_attributes({
                "redis.operation": "set_with_ttl",
                "redis.key": key,
                "redis.ttl": ttl_seconds
            })

            try:
                if isinstance(value, (dict, list)):
                    value = json.dumps(value)

                result = self.client.setex(key, ttl_seconds, value)

                span.set_attribute("redis.result", "success")
                logger.debug(f"Redis SET successful: {key} (TTL: {ttl_seconds}s)")
                return bool(result)

            except redis.RedisError as e:
                span.set_attribute("redis.result", "error")
                self._handle_redis_error("SET", e)
                return False

    def get(self, key: str) -> Optional[str]:
        """Get value by key, or None if missing."""
        if not self.is_available():
            return None

        with tracer.start_as_current_span("redis.get") as span:
            span.set_attributes({
                "redis.operation": "get",
                "redis.key": key
            })

            try:
                result = self.client.get(key)
                span.set_attribute("redis.result", "hit" if result else "miss")
                return result

            except redis.RedisError as e:
                span.set_attribute("redis.result", "error")
                self._handle_redis_error("GET", e)
                return None

    def get_json(self, key: str) -> Optional[Union[Dict, List]]:
        """Get and deserialize JSON value by key."""
        value = self.get(key)
        if value is None:
            return None

        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to deserialize JSON from Redis key {key}: {str(e)}")
            return None

    def delete(self, key: str) -> bool:
        """Delete a key; True if it existed."""
        if not self.is_available():
            return False

        with tracer.start_as_current_span("redis.delete") as span:
            span.set_attributes({
                "redis.operation": "delete",
                "redis.key": key
            })

            try:
                result = self.client.delete(key)
                span.set_attribute("redis.result", "success")
                return result > 0

            except redis.RedisError as e:
                span.set_attribute("redis.result", "error")
                self._handle_redis_error("DELETE", e)
                return False

    def exists(self, key: str) -> bool:
        if not self.is_available():
            return False

        try:
            return self.client.exists(key) > 0
        except redis.RedisError as e:
            self._handle_redis_error("EXISTS", e)
            return False

    # JWT Token Blocklist Methods

    def is_token_blocked(self, token_id: str) -> bool:
        """
        Check if a JWT token is in the blocklist.

        Returns:
            True if token is blocked, False otherwise (also when Redis is down)
        """
        if not self.is_available():
            logger.warning("Redis unavailable for token blocklist check - allowing token")
            return False

        with tracer.start_as_current_span("redis.is_token_blocked") as span:
            span.set_attribute("redis.operation", "is_token_blocked")
            result = self.exists(f"jwt:blocked:{token_id}")
            span.set_attribute("auth.token_blocked", result)
            return result

    def block_token(self, token_id: str, ttl_seconds: int) -> bool:
        """Add a JWT token to the blocklist until it expires."""
        if not self.is_available():
            logger.error("Redis unavailable - cannot block token")
            return False

        result = self.set_with_ttl(f"jwt:blocked:{token_id}", "1", ttl_seconds)
        if result:
            logger.info(f"Token blocked successfully (TTL: {ttl_seconds}s)")
        else:
            logger.error("Failed to block token")
        return result

    # Health Check Methods

    def ping(self) -> bool:
        if not self.is_available():
            return False

        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            logger.error(f"Redis ping failed: {str(e)}")
            return False

    def health_check(self) -> Dict[str, Any]:
        """
        Perform Redis health check.

        Returns:
            Health check results
        """
        if not self.is_available():
            return {
                "status": "unavailable",
                "message": "Redis client not initialized",
                "timestamp": time.time()
            }

        start_time = time.time()
        healthy = self.ping()
        response_time = (time.time() - start_time) * 1000

        return {
            "status": "healthy" if healthy else "unhealthy",
            "response_time_ms": round(response_time, 2),
            "timestamp": time.time()
        }
