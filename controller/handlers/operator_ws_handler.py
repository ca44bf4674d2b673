import json
from typing import Any, Dict

import tornado.websocket
from pydantic import BaseModel, ValidationError
from tornado.ioloop import IOLoop

from controller.errors import OperatorAuthError
from controller.models import (
    CalibrateMessage,
    NewRunMessage,
    PressEndMessage,
    PressStartMessage,
    SetModeMessage,
    StateMessage,
    StopNowMessage,
)
from controller.services.operator_auth import OperatorAuth, bearer_token
from controller.services.sync_loop import SyncLoopController


OPERATOR_MESSAGES: Dict[str, type[BaseModel]] = {
    "set_mode": SetModeMessage,
    "press_start": PressStartMessage,
    "press_end": PressEndMessage,
    "new_run": NewRunMessage,
    "calibrate": CalibrateMessage,
    "stop": StopNowMessage,
}


class OperatorWebSocketHandler(tornado.websocket.WebSocketHandler):
    def initialize(
        self,
        controller: SyncLoopController,
        state: Dict[str, Any],
        auth: OperatorAuth,
    ):
        self.controller = controller
        self.state = state
        self.auth = auth
        self.operator: str | None = None

    def check_origin(self, origin: str) -> bool:
        # Allow cross-origin WebSocket connections (lock down in production).
        return True

    async def open(self):
        if not self._authenticate():
            return
        self.state["operator_clients"].add(self)
        await self.write_message(StateMessage(state=self.controller.snapshot()).model_dump_json())

    async def on_message(self, message: str):
        parsed = self._parse_operator_message(message)
        if isinstance(parsed, SetModeMessage):
            await self.controller.set_mode(parsed.mode)
        elif isinstance(parsed, PressStartMessage):
            await self.controller.press_start(parsed.action)
        elif isinstance(parsed, PressEndMessage):
            await self.controller.press_end()
        elif isinstance(parsed, StopNowMessage):
            await self.controller.stop_now()
        elif isinstance(parsed, NewRunMessage):
            await self.controller.new_run()
        elif isinstance(parsed, CalibrateMessage):
            # Calibration takes seconds; keep serving press/stop messages meanwhile.
            IOLoop.current().spawn_callback(self.controller.calibrate)

    def _parse_operator_message(self, message: str):
        try:
            payload = json.loads(message)
        except json.JSONDecodeError:
            return None
        if not isinstance(payload, dict):
            return None

        model = OPERATOR_MESSAGES.get(payload.get("type"))
        if model is None:
            return None
        try:
            return model.model_validate(payload)
        except ValidationError:
            return None

    def on_close(self):
        self.state["operator_clients"].discard(self)

    def _authenticate(self) -> bool:
        try:
            self.operator = self.auth.operator_for(self._extract_token())
        except OperatorAuthError as exc:
            self.close(code=exc.close_code, reason=str(exc))
            return False
        return True

    def _extract_token(self) -> str | None:
        return bearer_token(self.request.headers.get("Authorization")) or self.get_argument("token", default=None)
