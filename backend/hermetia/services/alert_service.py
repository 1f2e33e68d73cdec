"""
Alert Service
=============

Reads and formats every alert feed of the dashboard, and owns the threshold
configuration.

THE FEEDS:
---------
    active        - last 24h, threshold logs + actuator activations merged
    history       - every actuator activation of the incubator
    thresholds    - every threshold crossing, with a readable message
    notifications - latest 50 threshold logs, enriched with component info

SEVERITY:
--------
A logged value above its threshold is "critical"; a value below it (and any
actuator activation) is a "warning".
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument

from hermetia.database import (
    ACTUATOR_ALERTS,
    COMPONENTS,
    DEFAULT_INCUBATOR_ID,
    NOTIFICATION_CONFIG,
    SINGLETON_ID,
    THRESHOLD_LOGS,
    utcnow,
)
from hermetia.errors import NotFound, ValidationFailed
from hermetia.models import (
    ActiveAlert,
    ActuatorAlertEntry,
    AlertKind,
    AlertSource,
    Condition,
    NotificationConfig,
    NotificationEntry,
    Severity,
    ThresholdAlertEntry,
    UpdateNotificationConfigRequest,
    format_number,
)
from hermetia.utils.timeseries import iso_utc
from hermetia.utils.validation import validate_thresholds

logger = logging.getLogger(__name__)


# =============================================================================
# FORMATTING HELPERS
# =============================================================================

def threshold_message(kind: str, condition: str, value: float, threshold: float, capitalize: bool = False) -> str:
    """
    Human-readable description of a threshold crossing.

    Example: "temperature above threshold: 31.2°C (limit: 30°C)"
    """
    kind = AlertKind(kind)
    unit = kind.unit
    label = kind.value.capitalize() if capitalize else kind.value
    return (
        f"{label} {condition} threshold: {format_number(value)}{unit} "
        f"(limit: {format_number(threshold)}{unit})"
    )


def severity_for(value: float, threshold: float) -> Severity:
    return Severity.CRITICAL if value > threshold else Severity.WARNING


def evaluate_reading(kind: AlertKind, value: float, config: dict) -> Optional[tuple[Condition, float]]:
    """
    Compare one reading with the configured thresholds.

    Returns:
        (condition, threshold) if the value is outside the window, else None
    """
    if kind == AlertKind.TEMPERATURE:
        low, high = config["temp_min"], config["temp_max"]
    else:
        low, high = config["humidity_min"], config["humidity_max"]

    if value > high:
        return Condition.ABOVE, high
    if value < low:
        return Condition.BELOW, low
    return None


# =============================================================================
# THE SERVICE
# =============================================================================

class AlertService:
    """Threshold configuration plus the four alert feeds."""

    ACTIVE_WINDOW = timedelta(hours=24)
    NOTIFICATION_LIMIT = 50

    def __init__(self, db: AsyncIOMotorDatabase):
        self.config = db[NOTIFICATION_CONFIG]
        self.threshold_logs = db[THRESHOLD_LOGS]
        self.actuator_alerts = db[ACTUATOR_ALERTS]
        self.components = db[COMPONENTS]

    async def _components_by_id(self, ids: Optional[Iterable[int]] = None) -> dict[int, dict]:
        query = {} if ids is None else {"_id": {"$in": list(set(ids))}}
        docs = await self.components.find(query).to_list(length=None)
        return {doc["_id"]: doc for doc in docs}

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    async def get_config(self) -> NotificationConfig:
        doc = await self.config.find_one({"_id": SINGLETON_ID})
        if not doc:
            raise NotFound("No notification configuration found")
        return NotificationConfig.from_document(doc)

    async def save_config(self, request: UpdateNotificationConfigRequest) -> NotificationConfig:
        """Validate and upsert the singleton configuration."""
        errors = validate_thresholds(
            request.temp_min, request.temp_max, request.humidity_min, request.humidity_max
        )
        if errors:
            raise ValidationFailed("Invalid threshold configuration", errors=errors)

        doc = await self.config.find_one_and_update(
            {"_id": SINGLETON_ID},
            {"$set": {**request.model_dump(), "incubator_id": DEFAULT_INCUBATOR_ID}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        logger.info(
            f"Thresholds updated: temp {request.temp_min}-{request.temp_max}°C, "
            f"humidity {request.humidity_min}-{request.humidity_max}%"
        )
        return NotificationConfig.from_document(doc)

    # =========================================================================
    # FEEDS
    # =========================================================================

    async def active_alerts(self, now: Optional[datetime] = None) -> list[ActiveAlert]:
        """Everything that happened in the last 24 hours, newest first."""
        since = (now or utcnow()) - self.ACTIVE_WINDOW

        logs = await self.threshold_logs.find(
            {"logged_at": {"$gte": since}}, sort=[("logged_at", DESCENDING)]
        ).to_list(length=None)
        activations = await self.actuator_alerts.find(
            {"recorded_at": {"$gte": since}}, sort=[("recorded_at", DESCENDING)]
        ).to_list(length=None)

        components = await self._components_by_id(
            [log["component_id"] for log in logs] + [alert["component_id"] for alert in activations]
        )

        entries: list[tuple[datetime, ActiveAlert]] = []
        for log in logs:
            component = components.get(log["component_id"])
            entries.append((log["logged_at"], ActiveAlert(
                id=str(log["_id"]),
                recorded_at=iso_utc(log["logged_at"]),
                component_id=log["component_id"],
                component_name=component["name"] if component else "Unknown component",
                type=severity_for(log["value"], log["threshold"]),
                message=threshold_message(log["type"], log["condition"], log["value"], log["threshold"]),
                source=AlertSource.SENSOR,
            )))

        for alert in activations:
            component = components.get(alert["component_id"])
            entries.append((alert["recorded_at"], ActiveAlert(
                id=str(alert["_id"]),
                recorded_at=iso_utc(alert["recorded_at"]),
                component_id=alert["component_id"],
                component_name=component["name"] if component else "Unknown actuator",
                type=Severity.WARNING,
                message=f"Activated {component['name'] if component else 'actuator'}",
                source=AlertSource.ACTUATOR,
            )))

        entries.sort(key=lambda entry: entry[0], reverse=True)
        return [alert for _, alert in entries]

    async def actuator_history(self) -> list[ActuatorAlertEntry]:
        alerts = await self.actuator_alerts.find(
            {"incubator_id": DEFAULT_INCUBATOR_ID}, sort=[("recorded_at", DESCENDING)]
        ).to_list(length=None)
        components = await self._components_by_id()

        history = []
        for alert in alerts:
            component = components.get(alert["component_id"])
            name = component["name"] if component else f"Actuator {alert['component_id']}"
            history.append(ActuatorAlertEntry(
                id=str(alert["_id"]),
                recorded_at=iso_utc(alert["recorded_at"]),
                actuator_id=alert["component_id"],
                actuator_name=name,
                type=Severity.WARNING,
                message=f"Activation of {name}",
            ))
        return history

    async def threshold_history(self) -> list[ThresholdAlertEntry]:
        logs = await self.threshold_logs.find({}, sort=[("logged_at", DESCENDING)]).to_list(length=None)
        components = await self._components_by_id()
        return [self._threshold_entry(log, components.get(log["component_id"])) for log in logs]

    @staticmethod
    def _threshold_entry(log: dict, component: Optional[dict]) -> ThresholdAlertEntry:
        return ThresholdAlertEntry(
            id=str(log["_id"]),
            recorded_at=iso_utc(log["logged_at"]),
            type=log["type"],
            value=log["value"],
            threshold=log["threshold"],
            condition=log["condition"],
            component_id=log["component_id"],
            component_name=component["name"] if component else f"Component {log['component_id']}",
            message=threshold_message(
                log["type"], log["condition"], log["value"], log["threshold"], capitalize=True
            ),
        )

    async def notifications(self) -> list[NotificationEntry]:
        logs = await self.threshold_logs.find(
            {}, sort=[("logged_at", DESCENDING)], limit=self.NOTIFICATION_LIMIT
        ).to_list(length=None)
        components = await self._components_by_id(log["component_id"] for log in logs)

        entries = []
        for log in logs:
            component = components.get(log["component_id"])
            entries.append(NotificationEntry(
                id=str(log["_id"]),
                logged_at=iso_utc(log["logged_at"]),
                type=log["type"],
                value=log["value"],
                threshold=log["threshold"],
                condition=log["condition"],
                component_id=log["component_id"],
                incubator_id=log.get("incubator_id", DEFAULT_INCUBATOR_ID),
                component_name=component["name"] if component else "Unknown component",
                component_type=component["type"] if component else "unknown",
            ))
        return entries

    # =========================================================================
    # WRITING (used by device ingestion)
    # =========================================================================

    async def log_threshold_crossing(
        self,
        kind: AlertKind,
        condition: Condition,
        value: float,
        threshold: float,
        component_id: int,
        logged_at: datetime,
    ) -> ThresholdAlertEntry:
        document = {
            "logged_at": logged_at,
            "type": kind.value,
            "value": value,
            "threshold": threshold,
            "condition": condition.value,
            "component_id": component_id,
            "incubator_id": DEFAULT_INCUBATOR_ID,
        }
        result = await self.threshold_logs.insert_one(document)
        component = await self.components.find_one({"_id": component_id})
        logger.warning(
            f"[{component['name'] if component else component_id}] "
            f"{threshold_message(kind, condition.value, value, threshold)}"
        )
        return self._threshold_entry({**document, "_id": result.inserted_id}, component)

    async def load_thresholds(self) -> Optional[dict]:
        return await self.config.find_one({"_id": SINGLETON_ID})
