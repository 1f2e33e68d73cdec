"""
Models Package
==============

This is where all our data models live.
Import from here instead of the individual files.

Example:
    from hermetia.models import Component, NotificationConfig
"""

from .users import (
    Role,
    CreateUserRequest,
    UpdateUserRequest,
    LoginRequest,
    ChangePasswordRequest,
    UserResponse,
    UserCreatedResponse,
    LoginResponse,
    PasswordResetResponse,
    MessageResponse,
)
from .incubator import (
    ComponentType,
    TimeRange,
    ExportFormat,
    Component,
    UpdateComponentRequest,
    IncubatorInfo,
    SensorStates,
    HistoricalPoint,
    ExportRow,
    format_number,
    ReadingRequest,
    ActuatorEventRequest,
)
from .alerts import (
    AlertKind,
    Condition,
    Severity,
    AlertSource,
    NotificationConfig,
    UpdateNotificationConfigRequest,
    ActiveAlert,
    ActuatorAlertEntry,
    ThresholdAlertEntry,
    NotificationEntry,
    ReadingResult,
    ActuatorEventResult,
)

__all__ = [
    "Role",
    "CreateUserRequest",
    "UpdateUserRequest",
    "LoginRequest",
    "ChangePasswordRequest",
    "UserResponse",
    "UserCreatedResponse",
    "LoginResponse",
    "PasswordResetResponse",
    "MessageResponse",
    "ComponentType",
    "TimeRange",
    "ExportFormat",
    "Component",
    "UpdateComponentRequest",
    "IncubatorInfo",
    "SensorStates",
    "HistoricalPoint",
    "ExportRow",
    "format_number",
    "ReadingRequest",
    "ActuatorEventRequest",
    "AlertKind",
    "Condition",
    "Severity",
    "AlertSource",
    "NotificationConfig",
    "UpdateNotificationConfigRequest",
    "ActiveAlert",
    "ActuatorAlertEntry",
    "ThresholdAlertEntry",
    "NotificationEntry",
    "ReadingResult",
    "ActuatorEventResult",
]
