# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
MongoDB service layer: registration store and admin directory.
"""

import os
import logging
from datetime import datetime
from typing import List, Dict, Optional, Any
from pymongo import MongoClient, ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import (
    ConnectionFailure,
    ServerSelectionTimeoutError,
    DuplicateKeyError,
    PyMongoError
)
from pydantic import ValidationError
from bson import ObjectId
from bson.errors import InvalidId

from models.entities import Registration, AdminUser
from services.auth import hash_password
from services.errors import CollaboratorError, ConflictError, NotFoundError

logger = logging.getLogger(__name__)

REGISTRATIONS = "registrations"
ADMIN_USERS = "admin_users"
STAFF_ACCOUNTS = "staff_accounts"


class MongoDBService:
    """MongoDB service with connection pooling."""

    def __init__(self, connection_string: str = None, database_name: str = None):
        """Initialize MongoDB service with connection pooling."""
        self.connection_string = connection_string or os.getenv(
            'MONGODB_URI',
            'mongodb://localhost:27017/cadastro_social_dev'
        )
        self.database_name = database_name or os.getenv('MONGODB_DATABASE', 'cadastro_social_dev')
        self._client: Optional[MongoClient] = None
        self._database: Optional[Database] = None

        # Connection pool settings
        self.max_pool_size = int(os.getenv('MONGODB_MAX_POOL_SIZE', '10'))
        self.min_pool_size = int(os.getenv('MONGODB_MIN_POOL_SIZE', '1'))
        self.max_idle_time_ms = int(os.getenv('MONGODB_MAX_IDLE_TIME_MS', '30000'))
        self.server_selection_timeout_ms = int(os.getenv('MONGODB_SERVER_SELECTION_TIMEOUT_MS', '5000'))

        logger.info(f"MongoDB service initialized for database: {self.database_name}")

    @property
    def client(self) -> MongoClient:
        """Get MongoDB client with connection pooling."""
        if self._client is None:
            try:
                self._client = MongoClient(
                    self.connection_string,
                    maxPoolSize=self.max_pool_size,
                    minPoolSize=self.min_pool_size,
                    maxIdleTimeMS=self.max_idle_time_ms,
                    serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                    retryWrites=True,
                    retryReads=True
                )
                # Test connection
                self._client.admin.command('ping')
                logger.info("MongoDB connection established successfully")
            except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                logger.error(f"Failed to connect to MongoDB: {e}")
                self._client = None
                raise CollaboratorError() from e

        return self._client

    @property
    def database(self) -> Database:
        """Get MongoDB database."""
        if self._database is None:
            self._database = self.client[self.database_name]
        return self._database

    def get_collection(self, collection_name: str) -> Collection:
        """Get MongoDB collection."""
        return self.database[collection_name]

    def close_connection(self) -> None:
        """Close MongoDB connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._database = None
            logger.info("MongoDB connection closed")

    def health_check(self) -> Dict[str, Any]:
        """Check MongoDB connection health."""
        try:
            result = self.client.admin.command('ping')
            server_info = self.client.server_info()

            return {
                'status': 'healthy',
                'ping': result.get('ok') == 1,
                'version': server_info.get('version'),
                'database': self.database_name,
                'connection_pool_size': self.max_pool_size
            }
        except Exception as e:
            logger.error(f"MongoDB health check failed: {e}")
            return {
                'status': 'unhealthy',
                'error': str(e),
                'database': self.database_name
            }

    def _validate_object_id(self, doc_id: str) -> ObjectId:
        """Validate and convert string ID to ObjectId."""
        try:
            return ObjectId(doc_id)
        except (InvalidId, TypeError):
            raise NotFoundError(f"Registro não encontrado: {doc_id}")

    # Registration store

    def insert_registration(self, payload: Dict[str, Any]) -> str:
        """
        Persist a new registration.

        The plain password in ``payload`` is replaced by its bcrypt hash.

        Returns:
            Identifier of the stored registration

        Raises:
            ConflictError: If the CPF is already registered
            CollaboratorError: If the database is unavailable
        """
        data = dict(payload)
        password = data.pop("password", None)
        data.pop("confirm_password", None)
        if password:
            data["password_hash"] = hash_password(password)

        registration = Registration(**data)

        try:
            result = self.get_collection(REGISTRATIONS).insert_one(registration.to_document())
        except DuplicateKeyError as e:
            logger.warning(f"Duplicate registration rejected: {e}")
            raise ConflictError() from e
        except PyMongoError as e:
            logger.error(f"Failed to insert registration: {e}")
            raise CollaboratorError() from e

        logger.info(f"Created registration: {result.inserted_id}")
        return str(result.inserted_id)

    def fetch_all_registrations(self) -> List[Registration]:
        """All registrations, newest first."""
        try:
            cursor = self.get_collection(REGISTRATIONS).find({}).sort("created_at", DESCENDING)
            documents = list(cursor)
        except PyMongoError as e:
            logger.error(f"Failed to fetch registrations: {e}")
            raise CollaboratorError() from e

        logger.debug(f"Fetched {len(documents)} registrations")
        return [Registration.from_document(doc) for doc in documents]

    def get_registration(self, registration_id: str) -> Registration:
        object_id = self._validate_object_id(registration_id)
        try:
            document = self.get_collection(REGISTRATIONS).find_one({"_id": object_id})
        except PyMongoError as e:
            logger.error(f"Failed to load registration {registration_id}: {e}")
            raise CollaboratorError() from e

        if document is None:
            raise NotFoundError(f"Registro não encontrado: {registration_id}")
        return Registration.from_document(document)

    def find_registration_by_cpf(self, cpf: str) -> Optional[Registration]:
        try:
            document = self.get_collection(REGISTRATIONS).find_one({"cpf": cpf})
        except PyMongoError as e:
            logger.error(f"Failed to look up registration by CPF: {e}")
            raise CollaboratorError() from e

        return Registration.from_document(document) if document else None

    def update_registration(self, registration_id: str, fields: Dict[str, Any]) -> Registration:
        """
        Apply a partial update and stamp ``updated_at``.

        The merged record is validated before writing, so a disability count
        can never be stored next to a false disability flag.

        Raises:
            NotFoundError: If no registration has this id
        """
        current = self.get_registration(registration_id)

        updates = {k: v for k, v in fields.items() if k not in ("id", "_id", "created_at", "password_hash")}
        if updates.get("has_disability") is False:
            updates["disability_count"] = None

        merged = current.model_dump()
        merged.update(updates)
        merged["password_hash"] = current.password_hash
        try:
            updated = Registration(**merged)
        except ValidationError as e:
            raise ValueError(f"Invalid registration update: {e}") from e

        updated.update_timestamp()
        validated = updated.model_dump()
        changes = {field: validated[field] for field in updates if field in validated}
        changes["updated_at"] = updated.updated_at

        try:
            result = self.get_collection(REGISTRATIONS).update_one(
                {"_id": ObjectId(registration_id)},
                {"$set": changes}
            )
        except DuplicateKeyError as e:
            raise ConflictError() from e
        except PyMongoError as e:
            logger.error(f"Failed to update registration {registration_id}: {e}")
            raise CollaboratorError() from e

        if result.matched_count == 0:
            raise NotFoundError(f"Registro não encontrado: {registration_id}")

        logger.info(f"Updated registration {registration_id}", extra={"fields": sorted(changes)})
        return updated

    def delete_registration(self, registration_id: str) -> None:
        """Hard delete a registration."""
        object_id = self._validate_object_id(registration_id)
        try:
            result = self.get_collection(REGISTRATIONS).delete_one({"_id": object_id})
        except PyMongoError as e:
            logger.error(f"Failed to delete registration {registration_id}: {e}")
            raise CollaboratorError() from e

        if result.deleted_count == 0:
            raise NotFoundError(f"Registro não encontrado: {registration_id}")
        logger.warning(f"Deleted registration {registration_id}")

    # Admin directory

    def find_staff_account(self, email: str) -> Optional[Dict[str, Any]]:
        """Credential record of a staff member, keyed by email."""
        try:
            document = self.get_collection(STAFF_ACCOUNTS).find_one({"email": email.lower()})
        except PyMongoError as e:
            logger.error(f"Failed to look up staff account: {e}")
            raise CollaboratorError() from e

        if document:
            document["id"] = str(document.pop("_id"))
        return document

    def find_admin_by_email(self, email: str) -> Optional[AdminUser]:
        try:
            document = self.get_collection(ADMIN_USERS).find_one({"email": email.lower()})
        except PyMongoError as e:
            logger.error(f"Failed to look up admin user: {e}")
            raise CollaboratorError() from e

        return AdminUser.from_document(document) if document else None

    def get_admin_user(self, user_id: str) -> Optional[AdminUser]:
        try:
            object_id = self._validate_object_id(user_id)
        except NotFoundError:
            return None
        try:
            document = self.get_collection(ADMIN_USERS).find_one({"_id": object_id})
        except PyMongoError as e:
            logger.error(f"Failed to load admin user {user_id}: {e}")
            raise CollaboratorError() from e

        return AdminUser.from_document(document) if document else None

    def update_admin_photo(self, user_id: str, photo_url: str) -> None:
        object_id = self._validate_object_id(user_id)
        try:
            result = self.get_collection(ADMIN_USERS).update_one(
                {"_id": object_id},
                {"$set": {"profile_photo_url": photo_url, "updated_at": datetime.utcnow()}}
            )
        except PyMongoError as e:
            logger.error(f"Failed to update admin photo {user_id}: {e}")
            raise CollaboratorError() from e

        if result.matched_count == 0:
            raise NotFoundError(f"Administrador não encontrado: {user_id}")

    def register_admin(self, email: str, full_name: str, password: str) -> AdminUser:
        """
        Create or refresh a staff credential and its admin mapping.

        Used by the operator scripts; there is no HTTP endpoint for it.
        """
        admin = AdminUser(email=email, full_name=full_name)
        now = datetime.utcnow()

        try:
            self.get_collection(STAFF_ACCOUNTS).update_one(
                {"email": admin.email},
                {
                    "$set": {"password_hash": hash_password(password), "updated_at": now},
                    "$setOnInsert": {"created_at": now}
                },
                upsert=True
            )
            document = self.get_collection(ADMIN_USERS).find_one_and_update(
                {"email": admin.email},
                {
                    "$set": {"full_name": admin.full_name, "updated_at": now},
                    "$setOnInsert": {"_id": ObjectId(admin.id), "created_at": now, "schema_version": 1}
                },
                upsert=True,
                return_document=ReturnDocument.AFTER
            )
        except PyMongoError as e:
            logger.error(f"Failed to register admin {admin.email}: {e}")
            raise CollaboratorError() from e

        logger.info(f"Registered admin user {document['_id']}")
        return AdminUser.from_document(document)

    # Index Management

    def create_indexes(self) -> None:
        """Create the unique and query indexes."""
        try:
            logger.info("Creating MongoDB indexes...")

            registrations = self.get_collection(REGISTRATIONS)
            registrations.create_index("cpf", unique=True)
            registrations.create_index([("created_at", DESCENDING)])
            registrations.create_index([("neighborhood", ASCENDING)])

            admins = self.get_collection(ADMIN_USERS)
            admins.create_index("email", unique=True)

            accounts = self.get_collection(STAFF_ACCOUNTS)
            accounts.create_index("email", unique=True)

            logger.info("MongoDB indexes created successfully")

        except Exception as e:
            logger.error(f"Failed to create MongoDB indexes: {e}")
            raise
