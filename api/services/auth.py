# SPDX-License-Identifier: Apache-2.0

"""
Authentication service for staff sessions and citizen password checks.

This module provides JWT token generation, validation and revocation using
RS256 signing, and bcrypt password hashing. Staff login is a two-step check:
the credential must be valid and the email must map to an admin record.
"""

import os
import uuid
import jwt
import bcrypt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Tuple
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from opentelemetry import trace
import logging

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Email ou senha incorretos"
ADMIN_NOT_AUTHORIZED_MESSAGE = "Usuário não autorizado como administrador"
CITIZEN_INVALID_CREDENTIALS_MESSAGE = "CPF ou senha incorretos"


class AuthenticationError(Exception):
    """Raised when a credential is rejected."""
    pass


class AuthorizationError(Exception):
    """Raised when an authenticated identity is not an administrator."""
    pass


class TokenValidationError(Exception):
    """Raised when token validation fails."""
    pass


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt with salt.

    Args:
        password: Plain text password to hash

    Returns:
        Hashed password string
    """
    with tracer.start_as_current_span("auth.hash_password") as span:
        span.set_attribute("auth.operation", "hash_password")

        salt = bcrypt.gensalt(rounds=12)
        hashed = bcrypt.hashpw(password.encode('utf-8'), salt)

        logger.debug("Password hashed successfully")
        return hashed.decode('utf-8')


def verify_password(password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a password against its hash.

    Returns:
        True if password matches, False otherwise (including a missing hash)
    """
    with tracer.start_as_current_span("auth.verify_password") as span:
        span.set_attribute("auth.operation", "verify_password")

        if not password or not hashed_password:
            span.set_attribute("auth.verification_result", "failed")
            return False

        try:
            result = bcrypt.checkpw(
                password.encode('utf-8'),
                hashed_password.encode('utf-8')
            )
        except ValueError as e:
            span.set_attribute("auth.verification_result", "error")
            logger.error(f"Password verification error: {str(e)}")
            return False

        span.set_attribute("auth.verification_result", "success" if result else "failed")
        logger.debug(f"Password verification: {'success' if result else 'failed'}")
        return result


def generate_key_pair() -> Tuple[str, str]:
    """Generate an RSA key pair (PEM private, PEM public)."""
    private_key = rsa.generate_private_key(
        public_exponent=65537,
        key_size=2048
    )

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    ).decode('utf-8')

    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo
    ).decode('utf-8')

    return private_pem, public_pem


class AuthService:
    """
    JWT authentication service with RS256 signing and bcrypt password hashing.

    Args:
        mongodb_service: Directory with ``find_staff_account``, ``find_admin_by_email``
            and ``find_registration_by_cpf``
        redis_service: Optional token blocklist
        private_key: RS256 private key for token signing (PEM format)
        public_key: RS256 public key for token verification (PEM format)
    """

    def __init__(
        self,
        mongodb_service=None,
        redis_service=None,
        private_key: Optional[str] = None,
        public_key: Optional[str] = None
    ):
        self.mongodb_service = mongodb_service
        self.redis_service = redis_service
        self.algorithm = "RS256"
        self.access_token_expire_minutes = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

        private_key = private_key or os.getenv("JWT_PRIVATE_KEY")
        public_key = public_key or os.getenv("JWT_PUBLIC_KEY")
        if not private_key or not public_key:
            # One pair for both halves, otherwise tokens would never verify
            logger.warning("No JWT key pair configured, generating development key pair")
            private_key, public_key = generate_key_pair()

        self.private_key = private_key
        self.public_key = public_key

    # Staff

    def authenticate_staff(self, email: str, password: str) -> Dict[str, Any]:
        """
        Authenticate a staff member and issue an access token.

        Raises:
            AuthenticationError: If the email/password pair is wrong
            AuthorizationError: If the credential is valid but not mapped to an admin
        """
        with tracer.start_as_current_span("auth.authenticate_staff") as span:
            span.set_attribute("auth.operation", "authenticate_staff")

            account = self.mongodb_service.find_staff_account(email)
            if not account or not verify_password(password, account.get("password_hash")):
                span.set_attribute("auth.result", "invalid_credentials")
                logger.warning("Staff login rejected: invalid credentials")
                raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

            admin = self.mongodb_service.find_admin_by_email(email)
            if admin is None:
                span.set_attribute("auth.result", "not_admin")
                logger.warning(
                    "Staff login rejected: no admin mapping",
                    extra={"account_id": account.get("id")}
                )
                raise AuthorizationError(ADMIN_NOT_AUTHORIZED_MESSAGE)

            span.set_attributes({"auth.result": "success", "user.id": admin.id})
            tokens = self.generate_access_token(admin)
            tokens["user"] = admin
            return tokens

    def generate_access_token(self, admin) -> Dict[str, Any]:
        """Issue an access token for an admin user."""
        now = datetime.now(timezone.utc)
        access_exp = now + timedelta(minutes=self.access_token_expire_minutes)

        payload = {
            "sub": admin.id,
            "email": admin.email,
            "name": admin.full_name,
            "role": "admin",
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": access_exp,
            "type": "access"
        }

        try:
            access_token = jwt.encode(payload, self.private_key, algorithm=self.algorithm)
        except Exception as e:
            logger.error(f"Token generation failed: {str(e)}")
            raise AuthenticationError(f"Failed to generate token: {str(e)}")

        logger.info(
            "JWT token generated successfully",
            extra={"user_id": admin.id, "access_expires_at": access_exp.isoformat()}
        )

        return {
            "access_token": access_token,
            "token_type": "Bearer",
            "expires_in": self.access_token_expire_minutes * 60,
            "access_expires_at": access_exp.isoformat()
        }

    def validate_token(self, token: str, token_type: str = "access") -> Dict[str, Any]:
        """
        Validate and decode a JWT token.

        Raises:
            TokenValidationError: If token is invalid, expired or revoked
        """
        with tracer.start_as_current_span("auth.validate_token") as span:
            span.set_attributes({
                "auth.operation": "validate_token",
                "auth.token_type": token_type
            })

            try:
                payload = jwt.decode(
                    token,
                    self.public_key,
                    algorithms=[self.algorithm],
                    options={"verify_exp": True}
                )
            except jwt.ExpiredSignatureError:
                span.set_attribute("auth.validation_result", "expired")
                logger.warning("Token validation failed: token expired")
                raise TokenValidationError("Token has expired")
            except jwt.InvalidTokenError as e:
                span.set_attribute("auth.validation_result", "invalid")
                logger.warning(f"Token validation failed: {str(e)}")
                raise TokenValidationError(f"Invalid token: {str(e)}")

            if payload.get("type") != token_type:
                raise TokenValidationError(f"Invalid token type. Expected {token_type}")

            if self.redis_service and self.redis_service.is_token_blocked(payload.get("jti", "")):
                span.set_attribute("auth.validation_result", "revoked")
                raise TokenValidationError("Token has been revoked")

            span.set_attributes({
                "auth.validation_result": "success",
                "user.id": payload.get("sub")
            })
            return payload

    def revoke_token(self, token: str) -> bool:
        """
        Add a token to the blocklist until it would have expired.

        Returns:
            True when the token was blocklisted
        """
        payload = self.validate_token(token)
        if not self.redis_service:
            logger.warning("Token revocation skipped: no blocklist configured")
            return False

        remaining = int(payload["exp"] - datetime.now(timezone.utc).timestamp())
        blocked = self.redis_service.block_token(payload["jti"], max(remaining, 1))
        logger.info("Token revoked", extra={"user_id": payload.get("sub")})
        return blocked

    # Citizens

    def verify_citizen_password(self, password: str, stored_hash: Optional[str]) -> bool:
        return verify_password(password, stored_hash)

    def authenticate_citizen(self, cpf: str, password: str):
        """
        Look up a registration by CPF and check its password.

        Raises:
            AuthenticationError: If no registration matches or the password is wrong
        """
        with tracer.start_as_current_span("auth.authenticate_citizen"):
            registration = self.mongodb_service.find_registration_by_cpf(cpf)
            if registration is None or not self.verify_citizen_password(password, registration.password_hash):
                logger.warning("Citizen login rejected")
                raise AuthenticationError(CITIZEN_INVALID_CREDENTIALS_MESSAGE)
            return registration
