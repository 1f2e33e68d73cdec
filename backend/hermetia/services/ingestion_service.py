"""
Device Ingestion Service
========================

Handles what the incubator controller pushes to us.

THE DATA FLOW:
-------------
    Controller (DHT11 + relays)
            |
            | POST /api/device/readings
            v
    [temperature_history / humidity_history]  <- append
    [incubator_info]                          <- current values
    [threshold_logs]                          <- if outside the thresholds
            |
            v
    [Email alert] + [Watchdog: sensor seen]
"""

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase

from hermetia.database import (
    ACTUATOR_ALERTS,
    COMPONENTS,
    DEFAULT_INCUBATOR_ID,
    HUMIDITY_HISTORY,
    INCUBATOR_INFO,
    SINGLETON_ID,
    TEMPERATURE_HISTORY,
    next_id,
    to_naive_utc,
    utcnow,
)
from hermetia.errors import NotFound, ValidationFailed
from hermetia.models import (
    ActuatorAlertEntry,
    ActuatorEventRequest,
    AlertKind,
    ComponentType,
    ReadingRequest,
    ReadingResult,
    Severity,
)
from hermetia.services.alert_service import AlertService, evaluate_reading
from hermetia.services.email_service import EmailService
from hermetia.services.sensor_watchdog import SensorWatchdog
from hermetia.utils.timeseries import iso_utc

logger = logging.getLogger(__name__)


class IngestionService:
    """Stores readings and actuator events coming from the controller."""

    def __init__(self, db: AsyncIOMotorDatabase, email_service: EmailService, watchdog: SensorWatchdog):
        self.components = db[COMPONENTS]
        self.incubator_info = db[INCUBATOR_INFO]
        self.temperature_history = db[TEMPERATURE_HISTORY]
        self.humidity_history = db[HUMIDITY_HISTORY]
        self.actuator_alerts = db[ACTUATOR_ALERTS]
        self.alert_service = AlertService(db)
        self.email_service = email_service
        self.watchdog = watchdog

    async def _get_component(self, component_id: int, expected: ComponentType) -> dict:
        component = await self.components.find_one({"_id": component_id})
        if not component:
            raise NotFound("Component not found. Check component_id.")
        if component.get("type") != expected.value:
            raise ValidationFailed(f"Component {component_id} is not a {expected.value}")
        return component

    async def record_reading(self, request: ReadingRequest) -> ReadingResult:
        """
        Store one sensor reading and check it against the thresholds.

        Temperature and humidity are independent: either or both may be sent.
        """
        if request.temperature is None and request.humidity is None:
            raise ValidationFailed("A reading needs a temperature or a humidity value")

        sensor = await self._get_component(request.component_id, ComponentType.SENSOR)
        recorded_at = to_naive_utc(request.recorded_at) if request.recorded_at else utcnow()

        values: dict[AlertKind, float] = {}
        if request.temperature is not None:
            values[AlertKind.TEMPERATURE] = request.temperature
            await self.temperature_history.insert_one({
                "recorded_at": recorded_at,
                "temperature": request.temperature,
                "component_id": request.component_id,
            })
        if request.humidity is not None:
            values[AlertKind.HUMIDITY] = request.humidity
            await self.humidity_history.insert_one({
                "recorded_at": recorded_at,
                "humidity": request.humidity,
                "component_id": request.component_id,
            })

        await self._update_snapshot(values)

        alerts = []
        thresholds = await self.alert_service.load_thresholds()
        if thresholds:
            for kind, value in values.items():
                crossing = evaluate_reading(kind, value, thresholds)
                if crossing is None:
                    continue
                condition, threshold = crossing
                alerts.append(await self.alert_service.log_threshold_crossing(
                    kind, condition, value, threshold, request.component_id, recorded_at
                ))
                self.email_service.send_threshold_alert(
                    kind=kind.value,
                    condition=condition.value,
                    value=value,
                    threshold=threshold,
                    component_id=request.component_id,
                    component_name=sensor["name"],
                )
        else:
            logger.debug("No notification configuration yet, skipping threshold checks")

        recovered = await self.watchdog.mark_seen(request.component_id)

        logger.info(
            f"[{sensor['name']}] Reading stored: "
            + ", ".join(f"{kind.value}={value}" for kind, value in values.items())
        )
        return ReadingResult(
            component_id=request.component_id,
            recorded_at=iso_utc(recorded_at),
            alerts=alerts,
            recovered=recovered,
        )

    async def _update_snapshot(self, values: dict[AlertKind, float]):
        """Overwrite the current values on the incubator_info singleton."""
        fields = {
            AlertKind.TEMPERATURE: "current_temperature",
            AlertKind.HUMIDITY: "current_humidity",
        }
        to_set = {fields[kind]: value for kind, value in values.items()}

        defaults = {"current_temperature": 0.0, "current_humidity": 0.0, "sensors": [], "actuators": []}
        on_insert = {key: value for key, value in defaults.items() if key not in to_set}

        await self.incubator_info.update_one(
            {"_id": SINGLETON_ID},
            {"$set": to_set, "$setOnInsert": on_insert},
            upsert=True,
        )

    async def record_actuator_event(self, request: ActuatorEventRequest) -> ActuatorAlertEntry:
        """Append an actuator activation to the alert log."""
        actuator = await self._get_component(request.component_id, ComponentType.ACTUATOR)
        recorded_at = to_naive_utc(request.recorded_at) if request.recorded_at else utcnow()

        alert_id = await next_id(self.actuator_alerts)
        await self.actuator_alerts.insert_one({
            "_id": alert_id,
            "recorded_at": recorded_at,
            "component_id": request.component_id,
            "incubator_id": DEFAULT_INCUBATOR_ID,
        })
        logger.info(f"[{actuator['name']}] Activation logged (alert {alert_id})")

        return ActuatorAlertEntry(
            id=str(alert_id),
            recorded_at=iso_utc(recorded_at),
            actuator_id=request.component_id,
            actuator_name=actuator["name"],
            type=Severity.WARNING,
            message=f"Activation of {actuator['name']}",
        )
