from typing import Any, Dict, List, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field


ActionCommand = Literal["forward", "backward", "left", "right", "stop"]
ControlMode = Literal["manual", "auto"]

ACTIONS: tuple[str, ...] = get_args(ActionCommand)
MODES: tuple[str, ...] = get_args(ControlMode)
GYRO_AXES = ("gx", "gy", "gz")


def is_valid_action(value: Any) -> bool:
    return isinstance(value, str) and value in ACTIONS


class GyroBias(BaseModel):
    """Per-axis gyroscope offset subtracted from raw readings."""

    gx: float = 0.0
    gy: float = 0.0
    gz: float = 0.0


class Counts(BaseModel):
    left: int = Field(default=0, description="Left wheel encoder ticks.")
    right: int = Field(default=0, description="Right wheel encoder ticks.")


class TelemetrySample(BaseModel):
    """One acquisition of encoder counts and raw IMU values."""

    model_config = ConfigDict(frozen=True)

    left_count: int = 0
    right_count: int = 0
    imu: Dict[str, Any] = Field(
        default_factory=dict, description="Raw IMU axes (gx, gy, gz plus pass-through keys)."
    )


class SyncPayload(BaseModel):
    """Outbound record posted to the policy service once per cycle."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: int = Field(..., description="Epoch milliseconds when the payload was built.")
    run_id: str = Field(..., alias="runId", description="Logging session identifier.")
    imu: Dict[str, Any] = Field(..., description="Bias-corrected IMU reading.")
    counts: Counts
    action: str = Field(..., description="Action currently applied on the robot.")
    mode: ControlMode


class PolicyDecision(BaseModel):
    """Parsed policy response; action is None when there is no suggestion."""

    action: Optional[str] = None


class ControllerSnapshot(BaseModel):
    """Read-only view of the loop state for the display layer."""

    mode: ControlMode
    run_id: str
    counts: Counts
    imu: Dict[str, Any] = Field(default_factory=dict, description="Latest bias-corrected IMU.")
    applied_action: str
    suggested_action: Optional[str] = None
    calibrating: bool = False
    bias: GyroBias


class SetModeMessage(BaseModel):
    type: Literal["set_mode"] = "set_mode"
    mode: ControlMode


class PressStartMessage(BaseModel):
    type: Literal["press_start"] = "press_start"
    action: ActionCommand


class PressEndMessage(BaseModel):
    type: Literal["press_end"] = "press_end"


class NewRunMessage(BaseModel):
    type: Literal["new_run"] = "new_run"


class CalibrateMessage(BaseModel):
    type: Literal["calibrate"] = "calibrate"


class StopNowMessage(BaseModel):
    type: Literal["stop"] = "stop"


class StateMessage(BaseModel):
    """Outbound snapshot from controller -> operator clients."""

    type: Literal["state"] = "state"
    state: ControllerSnapshot


class SchemaDocument(BaseModel):
    """Documentation payload served at /docs for quick reference."""

    http_endpoints: Dict[str, str]
    websocket_endpoints: Dict[str, str]
    inbound_messages: Dict[str, Dict[str, Any]]
    outbound_messages: Dict[str, Dict[str, Any]]
    policy_request_schema: Optional[Dict[str, Any]] = None
    policy_response_schema: Optional[Dict[str, Any]] = None
    examples: Dict[str, Any] = Field(default_factory=dict)
    notes: List[str] = []
