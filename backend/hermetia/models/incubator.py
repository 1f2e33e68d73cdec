"""
Incubator Models
================
Pydantic models for the hardware (components), the live snapshot of the
incubator and the historical / export data built from the reading history.

HARDWARE LAYOUT:
    Sensors:   1 = DHT11 A, 2 = DHT11 B
    Actuators: 3 = Humidifier, 4 = Fan, 5 = Heater
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# ENUMS
# =============================================================================

class ComponentType(str, Enum):
    """
    What a component does.

    - SENSOR: reports temperature / humidity readings
    - ACTUATOR: heater, fan, humidifier... (reports activation events)
    """
    SENSOR = "sensor"
    ACTUATOR = "actuator"


class TimeRange(str, Enum):
    """Selectable history windows. Anything else falls back to 24h."""
    LAST_24_HOURS = "24h"
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"


# =============================================================================
# COMPONENTS
# =============================================================================

class Component(BaseModel):
    id: int = Field(..., description="Component id")
    name: str = Field(..., description="Human-readable name (e.g. 'Heater')")
    type: ComponentType = Field(..., description="sensor or actuator")
    active: bool = Field(..., description="Whether the component is enabled")

    @classmethod
    def from_document(cls, doc: dict) -> "Component":
        return cls(id=doc["_id"], name=doc["name"], type=doc["type"], active=doc["active"])


class UpdateComponentRequest(BaseModel):
    """
    Request body for switching a component on or off.

    Example Request:
        PUT /api/components
        {"id": 4, "active": false}
    """
    id: int = Field(..., description="Component id")
    active: bool = Field(..., description="New active flag")


# =============================================================================
# LIVE SNAPSHOT
# =============================================================================

class IncubatorInfo(BaseModel):
    """
    The current state of the incubator (singleton, id 1).

    current_temperature / current_humidity are overwritten every time the
    controller reports a reading.
    """
    id: int = Field(..., description="Always 1")
    current_temperature: float = Field(0.0, description="Last temperature (°C)")
    current_humidity: float = Field(0.0, description="Last relative humidity (%)")
    sensors: list[int] = Field(default_factory=list, description="Sensor component ids")
    actuators: list[int] = Field(default_factory=list, description="Actuator component ids")

    @classmethod
    def from_document(cls, doc: dict) -> "IncubatorInfo":
        return cls(
            id=doc["_id"],
            current_temperature=doc.get("current_temperature", 0.0),
            current_humidity=doc.get("current_humidity", 0.0),
            sensors=doc.get("sensors", []),
            actuators=doc.get("actuators", []),
        )


class SensorStates(BaseModel):
    """On/off state of each piece of hardware. Missing components read as False."""
    dht11_a: bool = False
    dht11_b: bool = False
    humidifier: bool = False
    fan: bool = False
    heater: bool = False


# =============================================================================
# HISTORY & EXPORT
# =============================================================================

class HistoricalPoint(BaseModel):
    """
    One hourly bucket of the historical chart.

    temperature / humidity are averages over every sensor that reported in
    that hour, rounded to 2 decimals. The counts say how many readings went in.
    """
    time: str = Field(..., description="Label for the chart axis")
    temperature: float
    humidity: float
    timestamp: str = Field(..., description="Start of the hour, ISO 8601 UTC")
    temp_count: int
    hum_count: int


def format_number(value: float) -> str:
    """27.0 -> "27", 27.5 -> "27.5" """
    value = float(value)
    return str(int(value)) if value.is_integer() else str(value)


class ExportRow(BaseModel):
    """
    One exported row: every reading that shares an exact timestamp, averaged.

    CSV Columns (in order):
        Date, Time, Temperature (°C), Humidity (%)
    """
    timestamp: str = Field(..., description="Reading time, ISO 8601 UTC")
    time: str = Field(..., description="Reading time as 'DD/MM/YYYY, HH:MM:SS'")
    temperature: float
    humidity: float

    def to_csv_row(self) -> str:
        """Convert row to CSV row string."""
        date_part, time_part = self.time.split(", ")
        return f"{date_part},{time_part},{format_number(self.temperature)},{format_number(self.humidity)}"

    @staticmethod
    def csv_header() -> str:
        """Return CSV header row."""
        return "Date,Time,Temperature (°C),Humidity (%)"


# =============================================================================
# DEVICE INGESTION
# =============================================================================

class ReadingRequest(BaseModel):
    """
    JSON body for POST /api/device/readings.

    The controller can send temperature, humidity or both in one call.
    recorded_at defaults to the time the backend receives the reading.
    """
    component_id: int = Field(..., description="Sensor component id")
    temperature: Optional[float] = Field(None, description="Temperature in °C")
    humidity: Optional[float] = Field(None, description="Relative humidity in %")
    recorded_at: Optional[datetime] = Field(None, description="When the reading was taken")


class ActuatorEventRequest(BaseModel):
    """JSON body for POST /api/device/actuator-events."""
    component_id: int = Field(..., description="Actuator component id")
    recorded_at: Optional[datetime] = Field(None, description="When the actuator switched on")
