"""Pydantic models for telemetry, policy payloads and operator messages."""

from .messages import (
    ACTIONS,
    GYRO_AXES,
    MODES,
    ActionCommand,
    CalibrateMessage,
    ControllerSnapshot,
    ControlMode,
    Counts,
    GyroBias,
    NewRunMessage,
    PolicyDecision,
    PressEndMessage,
    PressStartMessage,
    SchemaDocument,
    SetModeMessage,
    StateMessage,
    StopNowMessage,
    SyncPayload,
    TelemetrySample,
    is_valid_action,
)

__all__ = [
    "ACTIONS",
    "GYRO_AXES",
    "MODES",
    "ActionCommand",
    "CalibrateMessage",
    "ControllerSnapshot",
    "ControlMode",
    "Counts",
    "GyroBias",
    "NewRunMessage",
    "PolicyDecision",
    "PressEndMessage",
    "PressStartMessage",
    "SchemaDocument",
    "SetModeMessage",
    "StateMessage",
    "StopNowMessage",
    "SyncPayload",
    "TelemetrySample",
    "is_valid_action",
]
