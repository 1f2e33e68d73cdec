"""
Dashboard API Router
====================

Everything the main dashboard screen reads.

ALL ENDPOINTS:
-------------
GET /api/dashboard/config                     - Alert thresholds (same as /api/alerts/config)
GET /api/dashboard/current                    - Latest temperature / humidity
GET /api/dashboard/sensors                    - On/off state of the five components
GET /api/dashboard/historical?range=24h       - Hourly averages for the chart
GET /api/dashboard/export?range=7d&format=csv - Download every reading

range is one of 24h, 7d, 30d (anything else means 24h).
format is json or csv (anything else means json).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response

from hermetia.models import ExportFormat, HistoricalPoint, IncubatorInfo, NotificationConfig, SensorStates
from hermetia.routers.alerts import get_alert_service
from hermetia.routers.components import get_incubator_service
from hermetia.services import AlertService, IncubatorService
from hermetia.utils.timeseries import normalize_range, rows_to_csv

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/config", response_model=NotificationConfig)
async def get_config(service: AlertService = Depends(get_alert_service)):
    return await service.get_config()


@router.get("/current", response_model=IncubatorInfo)
async def get_current(service: IncubatorService = Depends(get_incubator_service)):
    """Live snapshot. 404 until the controller has sent a first reading."""
    return await service.get_current()


@router.get("/sensors", response_model=SensorStates)
async def get_sensor_states(service: IncubatorService = Depends(get_incubator_service)):
    return await service.get_sensor_states()


@router.get("/historical", response_model=list[HistoricalPoint])
async def get_historical(
    range: Optional[str] = Query(None, description="24h, 7d or 30d"),
    service: IncubatorService = Depends(get_incubator_service),
):
    """
    Hourly averages for the chart.

    Each point looks like:
        {"time": "14:00", "temperature": 27.35, "humidity": 70.1,
         "timestamp": "2026-10-19T14:00:00.000Z", "temp_count": 12, "hum_count": 12}
    """
    return await service.historical(normalize_range(range))


@router.get("/export")
async def export_data(
    range: Optional[str] = Query(None, description="24h, 7d or 30d"),
    format: Optional[str] = Query(None, description="json or csv"),
    service: IncubatorService = Depends(get_incubator_service),
):
    """
    Download every reading since the start of the range as a file.

    Readings that share a timestamp are merged into one row.
    """
    time_range = normalize_range(range)
    export_format = ExportFormat.CSV if format == ExportFormat.CSV.value else ExportFormat.JSON

    rows = await service.export(time_range)
    filename = f"hermetia_data_{time_range.value}.{export_format.value}"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    logger.info(f"Export {filename}: {len(rows)} rows")

    if export_format == ExportFormat.CSV:
        return Response(
            content=rows_to_csv(rows),
            media_type="text/csv",
            headers=headers,
        )

    return JSONResponse(
        content=[row.model_dump() for row in rows],
        headers=headers,
    )
