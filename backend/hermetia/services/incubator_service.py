"""
Incubator Service
=================

The dashboard's data source: hardware components, the live snapshot, and the
temperature / humidity history (hourly chart + export).

HISTORY QUERIES:
---------------
Both series are fetched in parallel for the selected window (24h, 7d, 30d),
sorted oldest first, then handed to the pure helpers in
hermetia.utils.timeseries for bucketing.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument

from hermetia.database import (
    COMPONENTS,
    HUMIDITY_HISTORY,
    INCUBATOR_INFO,
    OFFLINE_FLAG,
    SINGLETON_ID,
    TEMPERATURE_HISTORY,
    utcnow,
)
from hermetia.errors import NotFound
from hermetia.models import (
    Component,
    ComponentType,
    ExportRow,
    HistoricalPoint,
    IncubatorInfo,
    SensorStates,
    TimeRange,
)
from hermetia.utils.timeseries import hourly_averages, merge_by_timestamp, range_start

logger = logging.getLogger(__name__)


class IncubatorService:
    """Components, live snapshot and reading history."""

    # Which component backs each entry of the sensor-state snapshot
    HARDWARE_LAYOUT = {
        "dht11_a": (1, ComponentType.SENSOR),
        "dht11_b": (2, ComponentType.SENSOR),
        "humidifier": (3, ComponentType.ACTUATOR),
        "fan": (4, ComponentType.ACTUATOR),
        "heater": (5, ComponentType.ACTUATOR),
    }

    def __init__(self, db: AsyncIOMotorDatabase):
        self.components = db[COMPONENTS]
        self.incubator_info = db[INCUBATOR_INFO]
        self.temperature_history = db[TEMPERATURE_HISTORY]
        self.humidity_history = db[HUMIDITY_HISTORY]

    # =========================================================================
    # COMPONENTS
    # =========================================================================

    async def list_components(self) -> list[Component]:
        docs = await self.components.find({}, sort=[("_id", ASCENDING)]).to_list(length=None)
        return [Component.from_document(doc) for doc in docs]

    async def set_component_active(self, component_id: int, active: bool) -> Component:
        # A manual switch takes the component back from the sensor watchdog
        doc = await self.components.find_one_and_update(
            {"_id": component_id},
            {"$set": {"active": active}, "$unset": {OFFLINE_FLAG: ""}},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise NotFound("Component not found")
        logger.info(f"[{doc['name']}] Switched {'ON' if active else 'OFF'} from the dashboard")
        return Component.from_document(doc)

    async def get_sensor_states(self) -> SensorStates:
        docs = await self.components.find({}).to_list(length=None)
        by_id = {doc["_id"]: doc for doc in docs}

        states = {}
        for field, (component_id, component_type) in self.HARDWARE_LAYOUT.items():
            doc = by_id.get(component_id)
            states[field] = bool(doc and doc.get("type") == component_type.value and doc.get("active"))
        return SensorStates(**states)

    # =========================================================================
    # LIVE SNAPSHOT
    # =========================================================================

    async def get_current(self) -> IncubatorInfo:
        doc = await self.incubator_info.find_one({"_id": SINGLETON_ID})
        if not doc:
            raise NotFound("No incubator information found")
        return IncubatorInfo.from_document(doc)

    # =========================================================================
    # HISTORY
    # =========================================================================

    async def _fetch_history(self, start: datetime, end: Optional[datetime] = None) -> tuple[list[dict], list[dict]]:
        window = {"$gte": start}
        if end is not None:
            window["$lte"] = end
        query = {"recorded_at": window}

        temperatures, humidities = await asyncio.gather(
            self.temperature_history.find(query, sort=[("recorded_at", ASCENDING)]).to_list(length=None),
            self.humidity_history.find(query, sort=[("recorded_at", ASCENDING)]).to_list(length=None),
        )
        return temperatures, humidities

    async def historical(self, time_range: TimeRange, now: Optional[datetime] = None) -> list[HistoricalPoint]:
        """Hourly averages for the chart."""
        now = now or utcnow()
        start = range_start(time_range, now)
        logger.debug(f"Historical query {time_range.value}: {start.isoformat()} -> {now.isoformat()}")

        temperatures, humidities = await self._fetch_history(start, now)
        points = hourly_averages(temperatures, humidities, time_range)

        logger.debug(
            f"Historical {time_range.value}: {len(temperatures)} temperature / "
            f"{len(humidities)} humidity readings -> {len(points)} hourly points"
        )
        return points

    async def export(self, time_range: TimeRange, now: Optional[datetime] = None) -> list[ExportRow]:
        """Every reading since the start of the window, merged per timestamp."""
        start = range_start(time_range, now or utcnow())
        temperatures, humidities = await self._fetch_history(start)
        return merge_by_timestamp(temperatures, humidities)
