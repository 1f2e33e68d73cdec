"""
MongoDB Connection
==================

One AsyncIOMotorClient is shared by the whole app. It's opened when the server
starts (see the lifespan in main.py) and closed on shutdown. Endpoints get the
database through the `get_database` dependency, so tests can swap in an
in-memory database with `app.dependency_overrides`.

COLLECTIONS:
-----------
    users, roles, components          - reference / CRUD data
    incubator_info, notification_config - singletons (_id = 1)
    temperature_history, humidity_history - append-only readings
    actuator_alerts, threshold_logs   - append-only event logs
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


USERS = "users"
ROLES = "roles"
COMPONENTS = "components"
INCUBATOR_INFO = "incubator_info"
NOTIFICATION_CONFIG = "notification_config"
TEMPERATURE_HISTORY = "temperature_history"
HUMIDITY_HISTORY = "humidity_history"
ACTUATOR_ALERTS = "actuator_alerts"
THRESHOLD_LOGS = "threshold_logs"

# Singleton documents (incubator info, notification config) always live at this id
SINGLETON_ID = 1
DEFAULT_INCUBATOR_ID = 1

# Set on a component the sensor watchdog switched off (value: when)
OFFLINE_FLAG = "offline_by_watchdog"

DEFAULT_ROLES = [
    {"_id": 1, "role_name": "Administrator"},
    {"_id": 2, "role_name": "User"},
]


_client: Optional[AsyncIOMotorClient] = None
_database: Optional[AsyncIOMotorDatabase] = None


# =============================================================================
# CONNECTION LIFECYCLE
# =============================================================================

async def connect_database(url: str, name: str) -> AsyncIOMotorDatabase:
    """Open the shared client. Motor connects lazily, so this never blocks."""
    global _client, _database
    _client = AsyncIOMotorClient(url, serverSelectionTimeoutMS=5000)
    _database = _client[name]
    logger.info(f"MongoDB client created for database '{name}'")
    return _database


async def close_database():
    global _client, _database
    if _client is not None:
        _client.close()
        logger.info("MongoDB client closed")
    _client = None
    _database = None


def get_database() -> AsyncIOMotorDatabase:
    """
    Dependency that hands the database to an endpoint.

    Raises a 500 if the app hasn't finished starting yet.
    """
    if _database is None:
        raise HTTPException(status_code=500, detail="Database not connected yet")
    return _database


def current_database() -> Optional[AsyncIOMotorDatabase]:
    """Like get_database() but returns None instead of raising (used by /health)."""
    return _database


async def ping(db: Optional[AsyncIOMotorDatabase]) -> bool:
    if db is None:
        return False
    try:
        await db.command("ping")
        return True
    except PyMongoError as e:
        logger.warning(f"MongoDB ping failed: {e}")
        return False


# =============================================================================
# STARTUP HELPERS
# =============================================================================

async def ensure_indexes(db: AsyncIOMotorDatabase):
    """Create the indexes the queries rely on. Safe to call on every start."""
    await db[USERS].create_index("email", unique=True)
    await db[USERS].create_index("phone")
    await db[TEMPERATURE_HISTORY].create_index([("recorded_at", ASCENDING)])
    await db[TEMPERATURE_HISTORY].create_index([("component_id", ASCENDING), ("recorded_at", DESCENDING)])
    await db[HUMIDITY_HISTORY].create_index([("recorded_at", ASCENDING)])
    await db[HUMIDITY_HISTORY].create_index([("component_id", ASCENDING), ("recorded_at", DESCENDING)])
    await db[ACTUATOR_ALERTS].create_index([("recorded_at", DESCENDING)])
    await db[THRESHOLD_LOGS].create_index([("logged_at", DESCENDING)])
    logger.info("MongoDB indexes ensured")


async def seed_reference_data(db: AsyncIOMotorDatabase) -> int:
    """Insert the static roles when the collection is empty. Returns how many were added."""
    if await db[ROLES].count_documents({}) > 0:
        return 0
    await db[ROLES].insert_many([dict(role) for role in DEFAULT_ROLES])
    logger.info(f"Seeded {len(DEFAULT_ROLES)} roles")
    return len(DEFAULT_ROLES)


# =============================================================================
# SMALL SHARED HELPERS
# =============================================================================

async def next_id(collection: AsyncIOMotorCollection) -> int:
    """Numeric ids are allocated as max(_id) + 1, starting at 1."""
    last = await collection.find_one({}, sort=[("_id", DESCENDING)])
    return last["_id"] + 1 if last else 1


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (that's what MongoDB hands back)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)
