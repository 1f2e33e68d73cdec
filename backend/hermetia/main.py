"""
Hermetia Incubator Monitor - Backend API
========================================
FastAPI application behind the dashboard for a Hermetia illucens (black
soldier fly) larvae incubator.

ARCHITECTURE:
    [Dashboard (browser)] --HTTP--> [This Backend] <--HTTP-- [Incubator controller]
                                          |                   (DHT11 x2, humidifier,
                                          v                    fan, heater)
                                      [MongoDB]
                                          |
                                          v
                                   [Email alerts]

WHAT IT DOES:
    1. Users & roles - admin screen, login, forced password change
    2. Dashboard - live values, hourly chart, CSV/JSON export
    3. Alerts - threshold config and the alert feeds
    4. Device ingestion - the controller pushes readings and actuator events
    5. Sensor watchdog - flags sensors that stopped reporting

HOW TO RUN:
    # Install dependencies
    python -m venv venv
    source venv/bin/activate  # Windows: venv\\Scripts\\activate
    pip install -e .

    # Copy environment config
    cp backend/env.example.txt .env
    # Edit .env with your settings

    # Run the server (MongoDB must be reachable at MONGODB_URL)
    uvicorn hermetia.main:app --reload --port 8000

API DOCUMENTATION:
    After starting the server, visit:
    - Swagger UI: http://localhost:8000/docs
    - ReDoc: http://localhost:8000/redoc
    - OpenAPI JSON: http://localhost:8000/openapi.json
"""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.middleware.base import BaseHTTPMiddleware

from hermetia import __version__
from hermetia.database import (
    close_database,
    connect_database,
    current_database,
    ensure_indexes,
    ping,
    seed_reference_data,
)
from hermetia.errors import HermetiaError
from hermetia.routers import (
    alerts_router,
    auth_router,
    components_router,
    dashboard_router,
    device_router,
    roles_router,
    set_device_services,
    users_router,
)
from hermetia.services import EmailService, SensorWatchdog


# Load environment variables from .env file
load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

class Config:
    """
    Application configuration loaded from environment variables.

    Environment Variables:
        MONGODB_URL: MongoDB connection string
        MONGODB_DB: Database name (default: hermetia)
        FRONTEND_URL: URL of the dashboard for CORS
        DEVICE_TOKEN: Shared secret the incubator controller sends in `device-token`
        WATCHDOG_INTERVAL: Seconds between sensor checks (default: 60, 0 disables)
        SENSOR_STALE_MINUTES: Minutes without readings before a sensor is offline (default: 10)
        SEED_REFERENCE_DATA: Insert the default roles on an empty database (default: true)

    Email settings (SMTP_*, ALERT_EMAIL, FROM_EMAIL, ALERT_COOLDOWN) are read
    by EmailService itself.
    """

    MONGODB_URL = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
    MONGODB_DB = os.getenv("MONGODB_DB", "hermetia")

    # Default: Matches the value in env.example.txt
    DEVICE_TOKEN = os.getenv("DEVICE_TOKEN", "change-me-device-token")

    WATCHDOG_INTERVAL = int(os.getenv("WATCHDOG_INTERVAL", "60"))
    SENSOR_STALE_MINUTES = int(os.getenv("SENSOR_STALE_MINUTES", "10"))

    SEED_REFERENCE_DATA = os.getenv("SEED_REFERENCE_DATA", "true").lower() in ("1", "true", "yes")

    # Frontend URL for CORS
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # Allowed CORS origins
    CORS_ORIGINS = [
        FRONTEND_URL,
        "http://localhost:5173",    # Vite dev server
        "http://localhost:3000",    # Create React App
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ]


# =============================================================================
# APPLICATION LIFESPAN
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    STARTUP:
        1. Open the MongoDB client, create indexes, seed the roles
        2. Create the email service and the sensor watchdog
        3. Inject them into the device router
        4. Start the watchdog job

    SHUTDOWN:
        1. Stop the watchdog
        2. Close the MongoDB client
    """
    # ========== STARTUP ==========
    logger.info("=" * 60)
    logger.info("HERMETIA INCUBATOR MONITOR - Starting Backend")
    logger.info("=" * 60)

    db = await connect_database(Config.MONGODB_URL, Config.MONGODB_DB)
    try:
        await ensure_indexes(db)
        if Config.SEED_REFERENCE_DATA:
            await seed_reference_data(db)
    except PyMongoError:
        # Keep serving: /health reports the database as unreachable
        logger.exception("MongoDB setup failed")

    email_service = EmailService()
    watchdog = SensorWatchdog(
        db,
        email_service,
        interval_seconds=Config.WATCHDOG_INTERVAL,
        stale_minutes=Config.SENSOR_STALE_MINUTES,
    )
    set_device_services(watchdog, email_service, Config.DEVICE_TOKEN)
    watchdog.start()

    logger.info(f"Database: {Config.MONGODB_DB}")
    logger.info(f"CORS origins: {len(Config.CORS_ORIGINS)} configured")
    logger.info("API Documentation: http://localhost:8000/docs")

    yield  # Application runs here

    # ========== SHUTDOWN ==========
    logger.info("Shutting down...")
    await watchdog.shutdown()
    await close_database()
    logger.info("Shutdown complete")


# =============================================================================
# CREATE FASTAPI APPLICATION
# =============================================================================

app = FastAPI(
    title="Hermetia Incubator Monitor API",
    description="""
## Overview

Backend for monitoring a Hermetia illucens larvae incubator: temperature and
humidity history, alert thresholds, actuator activity and user accounts.

## How It Works

1. **The controller reports** - readings and actuator activations arrive at `/api/device/*`
2. **We store and check** - every reading is compared against the configured thresholds
3. **The dashboard reads** - live values, hourly charts, alert feeds and exports

## Authentication

- Dashboard endpoints are open; login only tells the dashboard who is using it
- Device endpoints require the header `device-token: <DEVICE_TOKEN>`
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# =============================================================================
# ERROR HANDLING
# =============================================================================

class CatchAllExceptionMiddleware(BaseHTTPMiddleware):
    """Anything that escapes a handler becomes a generic 500 (traceback goes to the log)."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception(f"Unhandled error on {request.method} {request.url.path}")
            return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.exception_handler(HermetiaError)
async def hermetia_error_handler(request: Request, exc: HermetiaError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_content())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return JSONResponse(status_code=400, content={"detail": "Invalid request", "errors": errors})


app.add_middleware(CatchAllExceptionMiddleware)


# =============================================================================
# CORS MIDDLEWARE
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# INCLUDE ROUTERS
# =============================================================================

app.include_router(users_router)
app.include_router(roles_router)
app.include_router(auth_router)
app.include_router(components_router)
app.include_router(alerts_router)
app.include_router(dashboard_router)

# Incubator controller endpoints
app.include_router(device_router)


# =============================================================================
# ROOT ENDPOINTS
# =============================================================================

@app.get(
    "/",
    summary="API Information",
    description="Get basic API information and available endpoints."
)
async def root():
    """
    Root endpoint with API overview.

    Returns links to all available endpoints.
    """
    return {
        "name": "Hermetia Incubator Monitor API",
        "version": __version__,
        "documentation": {
            "swagger": "/docs",
            "redoc": "/redoc",
            "openapi": "/openapi.json"
        },
        "endpoints": {
            "users": {
                "list": "GET /api/users",
                "create": "POST /api/users",
                "update": "PUT /api/users/{id}",
                "delete": "DELETE /api/users/{id}",
                "reset_password": "POST /api/users/{id}/reset-password"
            },
            "auth": {
                "login": "POST /api/auth/login",
                "change_password": "POST /api/auth/change-password"
            },
            "roles": "GET /api/roles",
            "components": {
                "list": "GET /api/components",
                "update": "PUT /api/components"
            },
            "alerts": {
                "config": "GET|POST /api/alerts/config",
                "active": "GET /api/alerts/active",
                "history": "GET /api/alerts/history",
                "thresholds": "GET /api/alerts/thresholds",
                "notifications": "GET /api/alerts/notifications"
            },
            "dashboard": {
                "config": "GET /api/dashboard/config",
                "current": "GET /api/dashboard/current",
                "sensors": "GET /api/dashboard/sensors",
                "historical": "GET /api/dashboard/historical?range=24h|7d|30d",
                "export": "GET /api/dashboard/export?range=24h|7d|30d&format=json|csv"
            },
            "device": {
                "readings": "POST /api/device/readings",
                "actuator_events": "POST /api/device/actuator-events"
            }
        }
    }


@app.get(
    "/health",
    summary="Health Check",
    description="Check if the backend is running and MongoDB answers."
)
async def health():
    """Health check endpoint."""
    database_ok = await ping(current_database())
    return {
        "status": "healthy",
        "database": "ok" if database_ok else "unreachable",
    }
