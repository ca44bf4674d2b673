from .health_handler import HealthHandler
from .docs_handler import DocsHandler
from .state_handler import StateHandler
from .operator_ws_handler import OperatorWebSocketHandler

__all__ = [
    "HealthHandler",
    "DocsHandler",
    "StateHandler",
    "OperatorWebSocketHandler",
]
