# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.
"""

import os
import pytest
from datetime import datetime
from unittest.mock import MagicMock
from bson import ObjectId

# Set test environment before the application module is imported
os.environ['ENVIRONMENT'] = 'test'
os.environ['OTEL_ENABLED'] = 'false'
os.environ['MONGODB_DATABASE'] = 'cadastro_social_test'
os.environ.setdefault('REDIS_URL', 'redis://localhost:6399/15')

from models.entities import Registration, AdminUser  # noqa: E402


VALID_CPF = "111.444.777-35"


class InMemoryRedisClient:
    """Dict-backed stand-in for the handful of redis-py calls the services make."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def ping(self):
        return True

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    def get(self, key):
        return self.store.get(key)

    def delete(self, key):
        self.ttls.pop(key, None)
        return 1 if self.store.pop(key, None) is not None else 0

    def exists(self, key):
        return 1 if key in self.store else 0

    def info(self, section=None):
        return {"redis_version": "7.2.0", "connected_clients": 1, "used_memory_human": "1M"}


class FakeClock:
    """Controllable replacement for ``time.time``."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def redis_client():
    return InMemoryRedisClient()


@pytest.fixture
def redis_service(redis_client):
    from services.redis import RedisService
    return RedisService(client=redis_client)


@pytest.fixture
def draft_store(redis_service, clock):
    from services.drafts import DraftSessionStore
    return DraftSessionStore(redis_service, ttl_seconds=1800, clock=clock)


@pytest.fixture
def registration_store():
    """Mock collaborator with the ``insert_registration`` contract."""
    store = MagicMock()
    store.insert_registration.return_value = str(ObjectId())
    return store


@pytest.fixture
def filled_values():
    """Raw (unmasked) answers that pass every step."""
    return {
        "full_name": "Maria da Silva",
        "cpf": "11144477735",
        "nis_pis": "12345678901",
        "voter_registration": "",
        "password": "segredo1",
        "confirm_password": "segredo1",
        "personal_phone": "11987654321",
        "reference_phone_1": "1134567890",
        "reference_phone_2": "",
        "reference_phone_3": "",
        "adults_count": 2,
        "minors_count": 1,
        "has_disability": False,
        "address": "Rua das Flores, 10",
        "neighborhood": "Centro",
        "cep": "01310100",
        "female_head_of_household": True,
        "has_elderly": False,
        "vulnerable_situation": False,
        "homeless": False,
        "domestic_violence_victim": False,
        "cohabitation": False,
    }


def make_registration(**overrides) -> Registration:
    """Build a stored registration with sensible defaults."""
    data = {
        "id": str(ObjectId()),
        "full_name": "Maria da Silva",
        "cpf": "11144477735",
        "nis_pis": "12345678901",
        "voter_registration": None,
        "personal_phone": "11987654321",
        "reference_phone_1": "1134567890",
        "reference_phone_2": None,
        "reference_phone_3": None,
        "adults_count": 2,
        "minors_count": 1,
        "has_disability": False,
        "disability_count": None,
        "address": "Rua das Flores, 10",
        "neighborhood": "Centro",
        "cep": "01310100",
        "female_head_of_household": False,
        "has_elderly": False,
        "vulnerable_situation": False,
        "homeless": False,
        "domestic_violence_victim": False,
        "cohabitation": False,
        "created_at": datetime(2024, 3, 10, 14, 30, 0),
    }
    data.update(overrides)
    return Registration(**data)


@pytest.fixture
def registration_factory():
    return make_registration


@pytest.fixture
def sample_registrations():
    """Five records spread over categories and days."""
    return [
        make_registration(
            full_name="Ana Souza", cpf="52998224725", neighborhood="Jardim América",
            homeless=True, created_at=datetime(2024, 3, 12, 9, 0, 0)
        ),
        make_registration(
            full_name="Bruno Lima", cpf="39053344705", neighborhood="Centro",
            has_disability=True, disability_count=1, reference_phone_2="11912345678",
            created_at=datetime(2024, 3, 12, 10, 0, 0)
        ),
        make_registration(
            full_name="Carla Mendes", cpf="15350946056", neighborhood="Vila Nova",
            domestic_violence_victim=True, female_head_of_household=True,
            created_at=datetime(2024, 3, 11, 8, 0, 0)
        ),
        make_registration(
            full_name="Daniel Rocha", cpf="86288366757", neighborhood="Centro",
            has_elderly=True, vulnerable_situation=True,
            created_at=datetime(2024, 3, 10, 16, 0, 0)
        ),
        make_registration(
            full_name="Elisa Prado", cpf="11144477735", neighborhood="Boa Vista",
            created_at=datetime(2024, 3, 10, 11, 0, 0)
        ),
    ]


@pytest.fixture
def admin_user():
    return AdminUser(
        id=str(ObjectId()),
        email="gestora@prefeitura.gov.br",
        full_name="Gestora Municipal",
        profile_photo_url=None
    )


@pytest.fixture
def flask_app(redis_service, clock):
    """The application with its collaborators replaced by test doubles."""
    from app import app
    from services.auth import AuthService
    from services.drafts import DraftSessionStore

    mongodb = MagicMock()
    storage = MagicMock()
    auth_service = AuthService(mongodb, redis_service, app.auth_service.private_key, app.auth_service.public_key)

    originals = {
        name: getattr(app, name)
        for name in ("mongodb_service", "redis_service", "auth_service", "draft_store", "storage_service")
    }
    app.config['TESTING'] = True
    app.mongodb_service = mongodb
    app.redis_service = redis_service
    app.auth_service = auth_service
    app.auth_middleware.auth_service = auth_service
    app.draft_store = DraftSessionStore(redis_service, ttl_seconds=1800, clock=clock)
    app.storage_service = storage

    yield app

    for name, value in originals.items():
        setattr(app, name, value)
    app.auth_middleware.auth_service = originals["auth_service"]


@pytest.fixture
def client(flask_app):
    with flask_app.test_client() as client:
        yield client


@pytest.fixture
def admin_headers(flask_app, admin_user):
    token = flask_app.auth_service.generate_access_token(admin_user)["access_token"]
    return {"Authorization": f"Bearer {token}"}
