"""
Alert Models
============
Pydantic models for the threshold configuration and every alert feed the
dashboard shows.

WHERE ALERTS COME FROM:
    threshold_logs  - a sensor reading went above max / below min
    actuator_alerts - an actuator (heater, fan, humidifier) switched on
"""

from enum import Enum

from pydantic import BaseModel, Field


# =============================================================================
# ENUMS
# =============================================================================

class AlertKind(str, Enum):
    """What was measured when the threshold was crossed."""
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"

    @property
    def unit(self) -> str:
        return "°C" if self is AlertKind.TEMPERATURE else "%"


class Condition(str, Enum):
    ABOVE = "above"
    BELOW = "below"


class Severity(str, Enum):
    """
    How loud the dashboard should be.

    A reading over its bound is CRITICAL, anything else is a WARNING
    (below-minimum readings and actuator activations).
    """
    CRITICAL = "critical"
    WARNING = "warning"


class AlertSource(str, Enum):
    SENSOR = "sensor"
    ACTUATOR = "actuator"


# =============================================================================
# THRESHOLD CONFIGURATION
# =============================================================================

class NotificationConfig(BaseModel):
    """
    Alert thresholds for the incubator (singleton, id 1).

    Allowed ranges:
        temperature: 25-35 °C, min < max
        humidity:    60-80 %,  min < max
    """
    id: int = Field(1, description="Always 1")
    temp_min: float = Field(..., description="Minimum temperature (°C)")
    temp_max: float = Field(..., description="Maximum temperature (°C)")
    humidity_min: float = Field(..., description="Minimum relative humidity (%)")
    humidity_max: float = Field(..., description="Maximum relative humidity (%)")
    incubator_id: int = Field(1, description="Incubator these thresholds apply to")

    @classmethod
    def from_document(cls, doc: dict) -> "NotificationConfig":
        return cls(
            id=doc["_id"],
            temp_min=doc["temp_min"],
            temp_max=doc["temp_max"],
            humidity_min=doc["humidity_min"],
            humidity_max=doc["humidity_max"],
            incubator_id=doc.get("incubator_id", 1),
        )


class UpdateNotificationConfigRequest(BaseModel):
    """
    Request body for saving thresholds.

    Example Request:
        POST /api/alerts/config
        {"temp_min": 26, "temp_max": 29, "humidity_min": 60, "humidity_max": 80}
    """
    temp_min: float
    temp_max: float
    humidity_min: float
    humidity_max: float


# =============================================================================
# ALERT FEEDS
# =============================================================================

class ActiveAlert(BaseModel):
    """One entry of the 'last 24 hours' feed (both sources merged)."""
    id: str
    recorded_at: str = Field(..., description="ISO 8601 UTC")
    component_id: int
    component_name: str
    type: Severity
    message: str
    source: AlertSource


class ActuatorAlertEntry(BaseModel):
    """One actuator activation in the history feed."""
    id: str
    recorded_at: str
    actuator_id: int
    actuator_name: str
    type: Severity = Severity.WARNING
    message: str


class ThresholdAlertEntry(BaseModel):
    """One threshold crossing in the history feed."""
    id: str
    recorded_at: str
    type: AlertKind
    value: float
    threshold: float
    condition: Condition
    component_id: int
    component_name: str
    message: str


class NotificationEntry(BaseModel):
    """A raw threshold log enriched with the component's name and type."""
    id: str
    logged_at: str
    type: AlertKind
    value: float
    threshold: float
    condition: Condition
    component_id: int
    incubator_id: int = 1
    component_name: str
    component_type: str


class ReadingResult(BaseModel):
    """What the controller gets back after posting a reading."""
    status: str = "ok"
    component_id: int
    recorded_at: str
    alerts: list[ThresholdAlertEntry] = Field(default_factory=list)
    recovered: bool = Field(False, description="True if the watchdog had marked this sensor offline")


class ActuatorEventResult(BaseModel):
    status: str = "ok"
    alert: ActuatorAlertEntry
