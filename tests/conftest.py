"""
Shared fixtures: an in-memory MongoDB and an HTTP client wired to the app.
"""

from datetime import datetime
from uuid import uuid4
from unittest.mock import Mock

import pytest
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from hermetia.database import COMPONENTS, DEFAULT_ROLES, INCUBATOR_INFO, ROLES, USERS, get_database
from hermetia.main import app
from hermetia.routers.device import get_device_token, get_email_service, get_watchdog
from hermetia.services import EmailService, SensorWatchdog

DEVICE_TOKEN = "test-device-token"

COMPONENTS_SEED = [
    {"_id": 1, "name": "DHT11 A", "type": "sensor", "active": True},
    {"_id": 2, "name": "DHT11 B", "type": "sensor", "active": True},
    {"_id": 3, "name": "Humidifier", "type": "actuator", "active": True},
    {"_id": 4, "name": "Fan", "type": "actuator", "active": False},
    {"_id": 5, "name": "Heater", "type": "actuator", "active": True},
]

ADMIN = {
    "_id": 1,
    "name": "Ana",
    "first_surname": "Lopez",
    "second_surname": "Diaz",
    "phone": "5512345678",
    "email": "ana@example.com",
    "password": "s3cure-pass",
    "active": True,
    "role_id": 1,
}


def at(hour: int, minute: int = 0, second: int = 0, day: int = 19) -> datetime:
    """Naive UTC datetime on 2026-10-<day>."""
    return datetime(2026, 10, day, hour, minute, second)


@pytest.fixture
def db():
    return AsyncMongoMockClient()[f"hermetia_test_{uuid4().hex}"]


@pytest.fixture
async def seeded_db(db):
    await db[ROLES].insert_many([dict(role) for role in DEFAULT_ROLES])
    await db[COMPONENTS].insert_many([dict(component) for component in COMPONENTS_SEED])
    await db[USERS].insert_one(dict(ADMIN))
    await db[INCUBATOR_INFO].insert_one({
        "_id": 1,
        "current_temperature": 27.5,
        "current_humidity": 70.0,
        "sensors": [1, 2],
        "actuators": [3, 4, 5],
    })
    return db


@pytest.fixture
def email_service():
    return Mock(spec=EmailService)


@pytest.fixture
def watchdog(seeded_db, email_service):
    return SensorWatchdog(seeded_db, email_service, interval_seconds=0, stale_minutes=10)


@pytest.fixture
async def client(seeded_db, email_service, watchdog):
    app.dependency_overrides[get_database] = lambda: seeded_db
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_watchdog] = lambda: watchdog
    app.dependency_overrides[get_device_token] = lambda: DEVICE_TOKEN

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http

    app.dependency_overrides.clear()
