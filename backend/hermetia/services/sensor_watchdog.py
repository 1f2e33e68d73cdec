"""
Sensor Watchdog
===============

Keeps an eye on the sensors so the dashboard doesn't show a dead DHT11 as
"active" forever.

WHAT IT DOES:
------------
1. Every WATCHDOG_INTERVAL seconds, looks at each ACTIVE sensor component
2. If its newest temperature/humidity reading is older than
   SENSOR_STALE_MINUTES (or it never reported), marks it inactive
3. Sends an "offline" email (with cooldown, see EmailService)
4. When that sensor reports again, the ingestion endpoint calls mark_seen()
   and the watchdog switches it back on and sends a recovery email

Sensors switched off by hand from the dashboard are never touched: the
watchdog only looks at active ones, and only re-enables the ones it disabled.
That mark lives on the component document (OFFLINE_FLAG), so it survives a
restart and is cleared whenever someone switches the component by hand.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from hermetia.database import COMPONENTS, HUMIDITY_HISTORY, OFFLINE_FLAG, TEMPERATURE_HISTORY, utcnow
from hermetia.models import ComponentType
from hermetia.services.email_service import EmailService

logger = logging.getLogger(__name__)


class SensorWatchdog:
    """Periodic job that flags sensors that stopped reporting."""

    JOB_ID = "sensor-watchdog"

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        email_service: EmailService,
        interval_seconds: int = 60,
        stale_minutes: int = 10,
    ):
        """
        Args:
            db: The MongoDB database
            email_service: Used for offline / recovery emails
            interval_seconds: How often to check. 0 or less disables the job.
            stale_minutes: How old the newest reading may be before a sensor
                           counts as offline
        """
        self.components = db[COMPONENTS]
        self.temperature_history = db[TEMPERATURE_HISTORY]
        self.humidity_history = db[HUMIDITY_HISTORY]
        self.email_service = email_service
        self.interval_seconds = interval_seconds
        self.stale_after = timedelta(minutes=stale_minutes)

        self.scheduler = AsyncIOScheduler()

    # =========================================================================
    # SCHEDULING
    # =========================================================================

    def start(self):
        """Start the periodic check. Must be called from inside the event loop."""
        if self.interval_seconds <= 0:
            logger.info("Sensor watchdog disabled (WATCHDOG_INTERVAL <= 0)")
            return

        self.scheduler.add_job(
            self.check_now,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=self.JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info(
            f"Sensor watchdog started: every {self.interval_seconds}s, "
            f"stale after {int(self.stale_after.total_seconds() // 60)} min"
        )

    async def shutdown(self):
        try:
            if self.scheduler.running:
                self.scheduler.shutdown(wait=False)
        except Exception as e:
            logger.error(f"Error shutting down watchdog scheduler: {e}", exc_info=True)

    # =========================================================================
    # THE CHECK
    # =========================================================================

    async def _last_reading_at(self, component_id: int) -> Optional[datetime]:
        latest = None
        for collection in (self.temperature_history, self.humidity_history):
            doc = await collection.find_one(
                {"component_id": component_id}, sort=[("recorded_at", DESCENDING)]
            )
            if doc and (latest is None or doc["recorded_at"] > latest):
                latest = doc["recorded_at"]
        return latest

    async def check_now(self, now: Optional[datetime] = None) -> list[int]:
        """
        Run one pass over the active sensors.

        Returns:
            Ids of the sensors that were switched off in this pass
        """
        now = now or utcnow()
        cutoff = now - self.stale_after
        went_offline = []

        sensors = await self.components.find(
            {"type": ComponentType.SENSOR.value, "active": True}
        ).to_list(length=None)

        for sensor in sensors:
            last_seen = await self._last_reading_at(sensor["_id"])
            if last_seen is not None and last_seen >= cutoff:
                continue

            await self.components.update_one(
                {"_id": sensor["_id"]}, {"$set": {"active": False, OFFLINE_FLAG: now}}
            )
            went_offline.append(sensor["_id"])

            logger.warning(
                f"[{sensor['name']}] Status changed: active -> offline "
                f"(last reading: {last_seen.isoformat() if last_seen else 'never'})"
            )
            self.email_service.send_sensor_offline_alert(
                component_id=sensor["_id"],
                component_name=sensor["name"],
                last_seen=last_seen,
            )

        return went_offline

    async def mark_seen(self, component_id: int) -> bool:
        """
        Called for every incoming reading.

        Returns:
            True if the sensor had been taken offline by the watchdog and was
            switched back on
        """
        sensor = await self.components.find_one_and_update(
            {"_id": component_id, OFFLINE_FLAG: {"$exists": True}},
            {"$set": {"active": True}, "$unset": {OFFLINE_FLAG: ""}},
        )
        if not sensor:
            return False

        name = sensor["name"]
        logger.info(f"[{name}] Recovered: offline -> active")
        self.email_service.send_sensor_recovery_alert(component_id=component_id, component_name=name)
        return True

    async def is_offline(self, component_id: int) -> bool:
        return await self.components.count_documents({"_id": component_id, OFFLINE_FLAG: {"$exists": True}}) > 0
