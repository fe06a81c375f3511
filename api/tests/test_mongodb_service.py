# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for MongoDB service layer.
"""

import pytest
from datetime import datetime
from unittest.mock import MagicMock, patch
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, PyMongoError

from services.mongodb import MongoDBService, REGISTRATIONS, ADMIN_USERS, STAFF_ACCOUNTS
from services.errors import CollaboratorError, ConflictError, NotFoundError


class TestMongoDBService:
    """Test MongoDB service functionality against mocked collections."""

    @pytest.fixture
    def collections(self):
        return {
            REGISTRATIONS: MagicMock(),
            ADMIN_USERS: MagicMock(),
            STAFF_ACCOUNTS: MagicMock(),
        }

    @pytest.fixture
    def mongodb_service(self, collections):
        service = MongoDBService("mongodb://localhost:27017/cadastro_social_test", "cadastro_social_test")
        with patch.object(service, "get_collection", side_effect=lambda name: collections[name]):
            yield service

    @pytest.fixture
    def registration_document(self, filled_values):
        document = {
            key: value for key, value in filled_values.items()
            if key not in ("password", "confirm_password")
        }
        document.update({
            "_id": ObjectId(),
            "voter_registration": None,
            "reference_phone_2": None,
            "reference_phone_3": None,
            "disability_count": None,
            "password_hash": "$2b$12$stored.hash",
            "created_at": datetime(2024, 3, 10, 14, 30, 0),
            "updated_at": None,
            "schema_version": 1,
        })
        return document

    def test_insert_hashes_password(self, mongodb_service, collections, filled_values):
        from domain.submission import build_registration_payload

        inserted_id = ObjectId()
        collections[REGISTRATIONS].insert_one.return_value = MagicMock(inserted_id=inserted_id)

        with patch("services.mongodb.hash_password", return_value="$2b$12$hashed") as hasher:
            result = mongodb_service.insert_registration(build_registration_payload(filled_values))

        assert result == str(inserted_id)
        hasher.assert_called_once_with("segredo1")

        document = collections[REGISTRATIONS].insert_one.call_args[0][0]
        assert document["password_hash"] == "$2b$12$hashed"
        assert "password" not in document
        assert document["cpf"] == "11144477735"
        assert isinstance(document["_id"], ObjectId)
        assert isinstance(document["created_at"], datetime)

    def test_insert_duplicate_cpf(self, mongodb_service, collections, filled_values):
        from domain.submission import build_registration_payload

        collections[REGISTRATIONS].insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")

        with patch("services.mongodb.hash_password", return_value="$2b$12$hashed"):
            with pytest.raises(ConflictError):
                mongodb_service.insert_registration(build_registration_payload(filled_values))

    def test_insert_driver_failure(self, mongodb_service, collections, filled_values):
        from domain.submission import build_registration_payload

        collections[REGISTRATIONS].insert_one.side_effect = PyMongoError("connection reset")

        with patch("services.mongodb.hash_password", return_value="$2b$12$hashed"):
            with pytest.raises(CollaboratorError) as exc_info:
                mongodb_service.insert_registration(build_registration_payload(filled_values))

        assert not isinstance(exc_info.value, ConflictError)

    def test_fetch_all_sorted_newest_first(self, mongodb_service, collections, registration_document):
        cursor = MagicMock()
        cursor.sort.return_value = [registration_document]
        collections[REGISTRATIONS].find.return_value = cursor

        registrations = mongodb_service.fetch_all_registrations()

        cursor.sort.assert_called_once_with("created_at", -1)
        assert len(registrations) == 1
        assert registrations[0].id == str(registration_document["_id"])
        assert registrations[0].password_hash == "$2b$12$stored.hash"

    def test_get_registration_invalid_id(self, mongodb_service):
        with pytest.raises(NotFoundError):
            mongodb_service.get_registration("not-an-object-id")

    def test_update_stamps_updated_at(self, mongodb_service, collections, registration_document):
        collections[REGISTRATIONS].find_one.return_value = registration_document
        collections[REGISTRATIONS].update_one.return_value = MagicMock(matched_count=1)
        registration_id = str(registration_document["_id"])

        updated = mongodb_service.update_registration(registration_id, {"neighborhood": "Vila Nova"})

        assert updated.neighborhood == "Vila Nova"
        assert updated.updated_at is not None
        update = collections[REGISTRATIONS].update_one.call_args[0][1]["$set"]
        assert update["neighborhood"] == "Vila Nova"
        assert "updated_at" in update
        assert "password_hash" not in update

    def test_update_clears_disability_count(self, mongodb_service, collections, registration_document):
        registration_document.update({"has_disability": True, "disability_count": 2})
        collections[REGISTRATIONS].find_one.return_value = registration_document
        collections[REGISTRATIONS].update_one.return_value = MagicMock(matched_count=1)

        updated = mongodb_service.update_registration(str(registration_document["_id"]), {"has_disability": False})

        assert updated.disability_count is None
        update = collections[REGISTRATIONS].update_one.call_args[0][1]["$set"]
        assert update["disability_count"] is None

    def test_update_writes_normalized_values(self, mongodb_service, collections, registration_document):
        collections[REGISTRATIONS].find_one.return_value = registration_document
        collections[REGISTRATIONS].update_one.return_value = MagicMock(matched_count=1)

        updated = mongodb_service.update_registration(str(registration_document["_id"]), {
            "full_name": "  Maria Aparecida  ",
            "neighborhood": " Vila Nova ",
            "reference_phone_2": "",
            "personal_phone": "(11) 91234-5678",
        })

        update = collections[REGISTRATIONS].update_one.call_args[0][1]["$set"]
        assert update["full_name"] == "Maria Aparecida" == updated.full_name
        assert update["neighborhood"] == "Vila Nova"
        assert update["reference_phone_2"] is None
        assert update["personal_phone"] == "11912345678"
        assert set(update) == {"full_name", "neighborhood", "reference_phone_2", "personal_phone", "updated_at"}

    def test_update_rejects_orphan_disability_count(self, mongodb_service, collections, registration_document):
        collections[REGISTRATIONS].find_one.return_value = registration_document

        with pytest.raises(ValueError):
            mongodb_service.update_registration(str(registration_document["_id"]), {"disability_count": 3})

        collections[REGISTRATIONS].update_one.assert_not_called()

    def test_update_unknown_id(self, mongodb_service, collections):
        collections[REGISTRATIONS].find_one.return_value = None

        with pytest.raises(NotFoundError):
            mongodb_service.update_registration(str(ObjectId()), {"neighborhood": "Centro"})

    def test_delete_unknown_id(self, mongodb_service, collections):
        collections[REGISTRATIONS].delete_one.return_value = MagicMock(deleted_count=0)

        with pytest.raises(NotFoundError):
            mongodb_service.delete_registration(str(ObjectId()))

    def test_find_registration_by_cpf(self, mongodb_service, collections, registration_document):
        collections[REGISTRATIONS].find_one.return_value = registration_document

        registration = mongodb_service.find_registration_by_cpf("11144477735")

        collections[REGISTRATIONS].find_one.assert_called_once_with({"cpf": "11144477735"})
        assert registration.full_name == "Maria da Silva"

    def test_find_admin_by_email(self, mongodb_service, collections):
        admin_id = ObjectId()
        collections[ADMIN_USERS].find_one.return_value = {
            "_id": admin_id,
            "email": "gestora@prefeitura.gov.br",
            "full_name": "Gestora Municipal",
            "created_at": datetime(2024, 1, 1),
        }

        admin = mongodb_service.find_admin_by_email("Gestora@Prefeitura.gov.br")

        assert admin.id == str(admin_id)
        assert admin.full_name == "Gestora Municipal"

    def test_update_admin_photo_unknown_admin(self, mongodb_service, collections):
        collections[ADMIN_USERS].update_one.return_value = MagicMock(matched_count=0)

        with pytest.raises(NotFoundError):
            mongodb_service.update_admin_photo(str(ObjectId()), "http://localhost/api/media/avatars/x.png")

    def test_health_check_unhealthy(self):
        service = MongoDBService("mongodb://localhost:27017/cadastro_social_test", "cadastro_social_test")
        client = MagicMock()
        client.admin.command.side_effect = Exception("MongoDB down")
        service._client = client

        health = service.health_check()

        assert health["status"] == "unhealthy"
        assert health["database"] == "cadastro_social_test"

    def test_register_admin_upserts_both_records(self, mongodb_service, collections):
        admin_id = ObjectId()
        collections[ADMIN_USERS].find_one_and_update.return_value = {
            "_id": admin_id,
            "email": "gestora@prefeitura.gov.br",
            "full_name": "Gestora Municipal",
            "created_at": datetime(2024, 1, 1),
        }

        with patch("services.mongodb.hash_password", return_value="$2b$12$hashed"):
            admin = mongodb_service.register_admin("Gestora@Prefeitura.gov.br", "Gestora Municipal", "senha-forte")

        assert admin.id == str(admin_id)
        account_filter, account_update = collections[STAFF_ACCOUNTS].update_one.call_args[0]
        assert account_filter == {"email": "gestora@prefeitura.gov.br"}
        assert account_update["$set"]["password_hash"] == "$2b$12$hashed"
        assert collections[STAFF_ACCOUNTS].update_one.call_args[1]["upsert"] is True
