"""
Device Inbound API Router
=========================

The incubator controller (DHT11 sensors + relay-driven actuators) POSTs here.

Endpoints:
  POST /api/device/readings         - Report a temperature and/or humidity reading
  POST /api/device/actuator-events  - Report that an actuator switched on

Auth: Header `device-token: <DEVICE_TOKEN>` (same value as in the backend .env).
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from hermetia.database import get_database
from hermetia.models import ActuatorEventRequest, ActuatorEventResult, ReadingRequest, ReadingResult
from hermetia.services import EmailService, IngestionService, SensorWatchdog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/device", tags=["device"])


# -----------------------------------------------------------------------------
# Dependency injection
# -----------------------------------------------------------------------------
# Long-lived objects created at startup (see the lifespan in main.py)

_watchdog: Optional[SensorWatchdog] = None
_email_service: Optional[EmailService] = None
_device_token: Optional[str] = None


def set_device_services(watchdog: SensorWatchdog, email_service: EmailService, device_token: str):
    """Called when the app starts to hand over the watchdog, mailer and token."""
    global _watchdog, _email_service, _device_token
    _watchdog = watchdog
    _email_service = email_service
    _device_token = device_token


def get_watchdog() -> SensorWatchdog:
    if _watchdog is None:
        raise HTTPException(status_code=500, detail="Server not fully started yet")
    return _watchdog


def get_email_service() -> EmailService:
    if _email_service is None:
        raise HTTPException(status_code=500, detail="Server not fully started yet")
    return _email_service


def get_device_token() -> Optional[str]:
    return _device_token


def verify_device_token(
    device_token: Optional[str] = Header(None, alias="device-token"),
    expected: Optional[str] = Depends(get_device_token),
):
    if not device_token or not device_token.strip():
        raise HTTPException(status_code=401, detail="Missing header: device-token")
    if not expected or device_token.strip() != expected:
        raise HTTPException(status_code=401, detail="Invalid device-token")


def get_ingestion_service(
    db=Depends(get_database),
    email_service: EmailService = Depends(get_email_service),
    watchdog: SensorWatchdog = Depends(get_watchdog),
) -> IngestionService:
    return IngestionService(db, email_service, watchdog)


# -----------------------------------------------------------------------------
# Endpoints
# -----------------------------------------------------------------------------


@router.post("/readings", response_model=ReadingResult, dependencies=[Depends(verify_device_token)])
async def report_reading(
    body: ReadingRequest,
    service: IngestionService = Depends(get_ingestion_service),
):
    """
    Controller reports a sensor reading.

    **Headers**
    - `device-token`: The DEVICE_TOKEN configured on the backend.

    **Body (JSON)**
    - component_id (required): Sensor component id (1 or 2 on the stock incubator).
    - temperature, humidity (at least one): °C and %.
    - recorded_at (optional): When it was measured. Defaults to now.

    Any value outside the configured thresholds is logged and returned in
    `alerts`, and an email goes out (subject to cooldown).
    """
    return await service.record_reading(body)


@router.post("/actuator-events", response_model=ActuatorEventResult, dependencies=[Depends(verify_device_token)])
async def report_actuator_event(
    body: ActuatorEventRequest,
    service: IngestionService = Depends(get_ingestion_service),
):
    """Controller reports that the humidifier, fan or heater switched on."""
    alert = await service.record_actuator_event(body)
    return ActuatorEventResult(alert=alert)
