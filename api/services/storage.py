# SPDX-License-Identifier: Apache-2.0

"""
Object storage on MongoDB GridFS.

Buckets map to GridFS buckets and are registered on first use. Objects are
addressed by path inside their bucket and served publicly under
``{BASE_URL}/api/media/{bucket}/{path}``.
"""

import os
import re
import logging
from datetime import datetime
from typing import Dict, Optional, Tuple

from gridfs import GridFSBucket
from gridfs.errors import NoFile
from pymongo.errors import PyMongoError
from opentelemetry import trace

from services.errors import CollaboratorError, NotFoundError

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

BUCKETS_COLLECTION = "storage_buckets"
ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}
MAX_IMAGE_BYTES = 2 * 1024 * 1024

_BUCKET_PATTERN = re.compile(r'^[a-z0-9_-]{1,63}$')


class ObjectStorageService:
    """GridFS-backed public object storage."""

    def __init__(self, mongodb_service, base_url: Optional[str] = None):
        self.mongodb_service = mongodb_service
        self.base_url = (base_url or os.getenv("BASE_URL", "http://localhost:5000")).rstrip('/')
        self._buckets: Dict[str, GridFSBucket] = {}

    @staticmethod
    def _check_location(bucket: str, path: str) -> None:
        if not _BUCKET_PATTERN.match(bucket or ""):
            raise ValueError(f"Invalid bucket name: {bucket}")
        if not path or path.startswith('/') or '..' in path.split('/'):
            raise ValueError(f"Invalid object path: {path}")

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/api/media/{bucket}/{path}"

    def ensure_bucket(self, bucket: str) -> GridFSBucket:
        """Return the bucket, registering it when it does not exist yet."""
        if bucket in self._buckets:
            return self._buckets[bucket]

        database = self.mongodb_service.database
        result = database[BUCKETS_COLLECTION].update_one(
            {"_id": bucket},
            {"$setOnInsert": {"public": True, "created_at": datetime.utcnow()}},
            upsert=True
        )
        if result.upserted_id is not None:
            logger.info(f"Created storage bucket: {bucket}")

        self._buckets[bucket] = GridFSBucket(database, bucket_name=bucket)
        return self._buckets[bucket]

    def upload_image(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        """
        Store an image, replacing any object already at ``path``.

        Args:
            bucket: Bucket name, created on first use
            path: Object path inside the bucket
            data: Raw image bytes
            content_type: MIME type of the image

        Returns:
            Public URL of the stored image

        Raises:
            ValueError: If the location, type or size is not accepted
            CollaboratorError: If the storage backend fails
        """
        self._check_location(bucket, path)
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise ValueError(f"Unsupported image type: {content_type}")
        if not data or len(data) > MAX_IMAGE_BYTES:
            raise ValueError("A imagem deve ter no máximo 2MB.")

        with tracer.start_as_current_span("storage.upload_image") as span:
            span.set_attributes({
                "storage.bucket": bucket,
                "storage.size": len(data),
                "storage.content_type": content_type
            })

            try:
                grid = self.ensure_bucket(bucket)
                for existing in grid.find({"filename": path}):
                    grid.delete(existing._id)
                grid.upload_from_stream(path, data, metadata={"contentType": content_type})
            except PyMongoError as e:
                logger.error(f"Failed to upload {bucket}/{path}: {e}")
                raise CollaboratorError("Erro ao enviar imagem") from e

        logger.info(f"Uploaded object {bucket}/{path}", extra={"size": len(data)})
        return self.public_url(bucket, path)

    def open_image(self, bucket: str, path: str) -> Tuple[bytes, str]:
        """
        Read an object.

        Returns:
            Tuple of (content bytes, content type)

        Raises:
            NotFoundError: If no object exists at this location
        """
        self._check_location(bucket, path)

        with tracer.start_as_current_span("storage.open_image"):
            try:
                stream = self.ensure_bucket(bucket).open_download_stream_by_name(path)
            except NoFile:
                raise NotFoundError(f"Arquivo não encontrado: {bucket}/{path}")
            except PyMongoError as e:
                logger.error(f"Failed to read {bucket}/{path}: {e}")
                raise CollaboratorError() from e

            metadata = stream.metadata or {}
            return stream.read(), metadata.get("contentType", "application/octet-stream")
