# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the public media endpoint.
"""

from services.errors import NotFoundError


class TestMediaEndpoint:
    """Test serving stored objects."""

    def test_serves_object(self, client, flask_app):
        flask_app.storage_service.open_image.return_value = (b"\x89PNG data", "image/png")

        response = client.get('/api/media/avatars/avatars/u1-1700000000000.png')

        assert response.status_code == 200
        assert response.data == b"\x89PNG data"
        assert response.headers['Content-Type'] == 'image/png'
        assert response.headers['Cache-Control'] == 'public, max-age=3600'
        flask_app.storage_service.open_image.assert_called_once_with('avatars', 'avatars/u1-1700000000000.png')

    def test_missing_object(self, client, flask_app):
        flask_app.storage_service.open_image.side_effect = NotFoundError("Arquivo não encontrado: avatars/x.png")

        response = client.get('/api/media/avatars/x.png')

        assert response.status_code == 404

    def test_invalid_bucket(self, client, flask_app):
        flask_app.storage_service.open_image.side_effect = ValueError("Invalid bucket name: Bad")

        response = client.get('/api/media/Bad/x.png')

        assert response.status_code == 404
        assert response.get_json()['detail'] == 'Arquivo não encontrado'

    def test_no_auth_required(self, client, flask_app):
        flask_app.storage_service.open_image.return_value = (b"GIF89a", "image/gif")

        assert client.get('/api/media/avatars/a.gif').status_code == 200
