"""
Alerts API Router
=================

ALL ENDPOINTS:
-------------
GET  /api/alerts/config         - Current thresholds (404 until configured)
POST /api/alerts/config         - Save thresholds (temp 25-35 °C, humidity 60-80 %)
GET  /api/alerts/active         - Last 24h: threshold crossings + actuator activations
GET  /api/alerts/history        - Every actuator activation
GET  /api/alerts/thresholds     - Every threshold crossing
GET  /api/alerts/notifications  - Latest 50 threshold crossings
"""

from fastapi import APIRouter, Depends

from hermetia.database import get_database
from hermetia.models import (
    ActiveAlert,
    ActuatorAlertEntry,
    NotificationConfig,
    NotificationEntry,
    ThresholdAlertEntry,
    UpdateNotificationConfigRequest,
)
from hermetia.services import AlertService

router = APIRouter(prefix="/api/alerts", tags=["alerts"])


def get_alert_service(db=Depends(get_database)) -> AlertService:
    return AlertService(db)


# =============================================================================
# CONFIGURATION
# =============================================================================

@router.get("/config", response_model=NotificationConfig)
async def get_config(service: AlertService = Depends(get_alert_service)):
    return await service.get_config()


@router.post("/config", response_model=NotificationConfig)
async def save_config(
    request: UpdateNotificationConfigRequest,
    service: AlertService = Depends(get_alert_service),
):
    """
    Save the alert thresholds.

    Every rule is checked and all the problems come back together:

        {"detail": "Invalid threshold configuration",
         "errors": ["Minimum temperature must be lower than the maximum", ...]}
    """
    return await service.save_config(request)


# =============================================================================
# FEEDS
# =============================================================================

@router.get("/active", response_model=list[ActiveAlert])
async def active_alerts(service: AlertService = Depends(get_alert_service)):
    return await service.active_alerts()


@router.get("/history", response_model=list[ActuatorAlertEntry])
async def actuator_history(service: AlertService = Depends(get_alert_service)):
    return await service.actuator_history()


@router.get("/thresholds", response_model=list[ThresholdAlertEntry])
async def threshold_history(service: AlertService = Depends(get_alert_service)):
    return await service.threshold_history()


@router.get("/notifications", response_model=list[NotificationEntry])
async def notifications(service: AlertService = Depends(get_alert_service)):
    return await service.notifications()
