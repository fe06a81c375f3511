# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the authentication service.
"""

import pytest
import jwt
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from services.auth import (
    AuthService, AuthenticationError, AuthorizationError, TokenValidationError,
    hash_password, verify_password, generate_key_pair,
    INVALID_CREDENTIALS_MESSAGE, ADMIN_NOT_AUTHORIZED_MESSAGE, CITIZEN_INVALID_CREDENTIALS_MESSAGE
)


@pytest.fixture(scope="module")
def key_pair():
    return generate_key_pair()


@pytest.fixture(scope="module")
def stored_hash():
    return hash_password("senha-forte")


@pytest.fixture
def directory():
    return MagicMock()


@pytest.fixture
def auth_service(key_pair, directory, redis_service):
    private_key, public_key = key_pair
    return AuthService(directory, redis_service, private_key, public_key)


class TestPasswordHashing:
    """Test bcrypt helpers."""

    def test_hash_and_verify(self, stored_hash):
        assert stored_hash.startswith("$2b$12$")
        assert verify_password("senha-forte", stored_hash)
        assert not verify_password("senha-errada", stored_hash)

    def test_missing_hash_never_verifies(self):
        assert not verify_password("qualquer", None)
        assert not verify_password("", "$2b$12$abc")

    def test_malformed_hash(self):
        assert not verify_password("qualquer", "not-a-bcrypt-hash")


class TestStaffLogin:
    """Test the two-step staff login."""

    def test_success_issues_token(self, auth_service, directory, admin_user, stored_hash):
        directory.find_staff_account.return_value = {"id": "acc-1", "password_hash": stored_hash}
        directory.find_admin_by_email.return_value = admin_user

        result = auth_service.authenticate_staff(admin_user.email, "senha-forte")

        assert result["user"] is admin_user
        assert result["token_type"] == "Bearer"
        payload = auth_service.validate_token(result["access_token"])
        assert payload["sub"] == admin_user.id
        assert payload["role"] == "admin"

    def test_wrong_password(self, auth_service, directory, admin_user, stored_hash):
        directory.find_staff_account.return_value = {"id": "acc-1", "password_hash": stored_hash}

        with pytest.raises(AuthenticationError) as exc_info:
            auth_service.authenticate_staff(admin_user.email, "senha-errada")

        assert str(exc_info.value) == INVALID_CREDENTIALS_MESSAGE
        directory.find_admin_by_email.assert_not_called()

    def test_unknown_email(self, auth_service, directory):
        directory.find_staff_account.return_value = None

        with pytest.raises(AuthenticationError):
            auth_service.authenticate_staff("ninguem@exemplo.com", "senha-forte")

    def test_valid_credential_without_admin_record(self, auth_service, directory, stored_hash):
        directory.find_staff_account.return_value = {"id": "acc-2", "password_hash": stored_hash}
        directory.find_admin_by_email.return_value = None

        with pytest.raises(AuthorizationError) as exc_info:
            auth_service.authenticate_staff("servidor@prefeitura.gov.br", "senha-forte")

        assert str(exc_info.value) == ADMIN_NOT_AUTHORIZED_MESSAGE


class TestTokens:
    """Test token validation and revocation."""

    def test_tampered_token(self, auth_service, admin_user):
        token = auth_service.generate_access_token(admin_user)["access_token"]

        with pytest.raises(TokenValidationError):
            auth_service.validate_token(token[:-4] + "abcd")

    def test_token_from_other_key_rejected(self, auth_service, admin_user):
        other_private, other_public = generate_key_pair()
        other = AuthService(private_key=other_private, public_key=other_public)
        token = other.generate_access_token(admin_user)["access_token"]

        with pytest.raises(TokenValidationError):
            auth_service.validate_token(token)

    def test_expired_token(self, auth_service, key_pair, admin_user):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": admin_user.id, "jti": "x", "type": "access",
             "iat": now - timedelta(hours=2), "exp": now - timedelta(hours=1)},
            key_pair[0], algorithm="RS256"
        )

        with pytest.raises(TokenValidationError, match="expired"):
            auth_service.validate_token(token)

    def test_wrong_token_type(self, auth_service, key_pair, admin_user):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": admin_user.id, "jti": "x", "type": "refresh", "iat": now, "exp": now + timedelta(hours=1)},
            key_pair[0], algorithm="RS256"
        )

        with pytest.raises(TokenValidationError, match="token type"):
            auth_service.validate_token(token)

    def test_revoked_token_rejected(self, auth_service, admin_user, redis_client):
        token = auth_service.generate_access_token(admin_user)["access_token"]

        assert auth_service.revoke_token(token)

        payload = jwt.decode(token, options={"verify_signature": False})
        assert redis_client.ttls[f"jwt:blocked:{payload['jti']}"] > 0
        with pytest.raises(TokenValidationError, match="revoked"):
            auth_service.validate_token(token)

    def test_revoke_without_blocklist(self, key_pair, admin_user):
        service = AuthService(private_key=key_pair[0], public_key=key_pair[1])
        token = service.generate_access_token(admin_user)["access_token"]

        assert service.revoke_token(token) is False
        assert service.validate_token(token)["sub"] == admin_user.id


class TestCitizenLogin:
    """Test CPF/password check."""

    def test_success(self, auth_service, directory, registration_factory, stored_hash):
        registration = registration_factory(password_hash=stored_hash)
        directory.find_registration_by_cpf.return_value = registration

        assert auth_service.authenticate_citizen("11144477735", "senha-forte") is registration
        directory.find_registration_by_cpf.assert_called_once_with("11144477735")

    def test_wrong_password(self, auth_service, directory, registration_factory, stored_hash):
        directory.find_registration_by_cpf.return_value = registration_factory(password_hash=stored_hash)

        with pytest.raises(AuthenticationError) as exc_info:
            auth_service.authenticate_citizen("11144477735", "outra")

        assert str(exc_info.value) == CITIZEN_INVALID_CREDENTIALS_MESSAGE

    def test_unknown_cpf(self, auth_service, directory):
        directory.find_registration_by_cpf.return_value = None

        with pytest.raises(AuthenticationError):
            auth_service.authenticate_citizen("52998224725", "senha-forte")

    def test_registration_without_password(self, auth_service, directory, registration_factory):
        directory.find_registration_by_cpf.return_value = registration_factory()

        with pytest.raises(AuthenticationError):
            auth_service.authenticate_citizen("11144477735", "senha-forte")
