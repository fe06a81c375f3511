# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Services package - Collaborators with side effects (MongoDB, Redis, GridFS, JWT).
"""

from .errors import CollaboratorError, ConflictError, NotFoundError
from .mongodb import MongoDBService
from .redis import RedisService
from .auth import AuthService
from .storage import ObjectStorageService

__all__ = [
    "CollaboratorError",
    "ConflictError",
    "NotFoundError",
    "MongoDBService",
    "RedisService",
    "AuthService",
    "ObjectStorageService"
]
