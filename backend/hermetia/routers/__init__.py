"""
Routers Package
===============

Routers are like the reception desk - they direct incoming requests
to the right place.
"""

from .users import router as users_router, roles_router
from .auth import router as auth_router
from .components import router as components_router
from .alerts import router as alerts_router
from .dashboard import router as dashboard_router
from .device import router as device_router, set_device_services

__all__ = [
    "users_router",
    "roles_router",
    "auth_router",
    "components_router",
    "alerts_router",
    "dashboard_router",
    "device_router",
    "set_device_services",
]
