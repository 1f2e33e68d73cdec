"""
Components API Router
=====================

GET /api/components  - List sensors and actuators
PUT /api/components  - Switch one on or off ({"id": 4, "active": false})
"""

from fastapi import APIRouter, Depends

from hermetia.database import get_database
from hermetia.models import Component, UpdateComponentRequest
from hermetia.services import IncubatorService

router = APIRouter(prefix="/api/components", tags=["components"])


def get_incubator_service(db=Depends(get_database)) -> IncubatorService:
    return IncubatorService(db)


@router.get("", response_model=list[Component])
async def list_components(service: IncubatorService = Depends(get_incubator_service)):
    return await service.list_components()


@router.put("", response_model=Component)
async def update_component(
    request: UpdateComponentRequest,
    service: IncubatorService = Depends(get_incubator_service),
):
    """
    Set a component's active flag.

    A sensor switched off here stays off: the watchdog only brings back the
    sensors it took offline itself.
    """
    return await service.set_component_active(request.id, request.active)
