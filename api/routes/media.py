# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Public media endpoint serving objects from the storage buckets.
"""

from flask import current_app, Response
from flask_openapi3 import APIBlueprint, Tag
import logging

from models.requests import MediaPath
from middleware.error_handler import NotFoundException

logger = logging.getLogger(__name__)

media_tag = Tag(name="Media", description="Public files such as profile photos")
media_bp = APIBlueprint(
    'media',
    __name__,
    url_prefix='/api/media',
    abp_tags=[media_tag]
)


@media_bp.get('/<string:bucket>/<path:path>')
def get_media(path: MediaPath):
    """Serve a stored object."""
    try:
        content, content_type = current_app.storage_service.open_image(path.bucket, path.path)
    except ValueError:
        raise NotFoundException("Arquivo não encontrado")

    response = Response(content, content_type=content_type)
    response.headers['Cache-Control'] = 'public, max-age=3600'
    return response
