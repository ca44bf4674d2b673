from .bias_estimator import BiasEstimator
from .command_dispatcher import CommandDispatcher
from .device_gateway import DeviceGateway
from .policy_client import PolicyClient
from .session import Schedule, SessionManager
from .sync_loop import SyncLoopController
from .telemetry_corrector import correct

__all__ = [
    "BiasEstimator",
    "CommandDispatcher",
    "DeviceGateway",
    "PolicyClient",
    "Schedule",
    "SessionManager",
    "SyncLoopController",
    "correct",
]
