"""
Services Package
================

These are the "workers" that do the actual work.

- UserService: Accounts, login and passwords
- AlertService: Threshold config and the alert feeds
- IncubatorService: Components, live snapshot and history
- IngestionService: Readings and actuator events from the controller
- SensorWatchdog: Flags sensors that stopped reporting
- EmailService: Alert emails
"""

from .email_service import EmailService
from .user_service import UserService
from .alert_service import AlertService
from .incubator_service import IncubatorService
from .sensor_watchdog import SensorWatchdog
from .ingestion_service import IngestionService

__all__ = [
    "EmailService",
    "UserService",
    "AlertService",
    "IncubatorService",
    "SensorWatchdog",
    "IngestionService",
]
