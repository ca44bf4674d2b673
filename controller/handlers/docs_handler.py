import tornado.web

from controller.models import (
    ACTIONS,
    CalibrateMessage,
    ControllerSnapshot,
    NewRunMessage,
    PolicyDecision,
    PressEndMessage,
    PressStartMessage,
    SchemaDocument,
    SetModeMessage,
    StateMessage,
    StopNowMessage,
    SyncPayload,
)


class DocsHandler(tornado.web.RequestHandler):
    def get(self):
        policy_request_example = {
            "timestamp": 1760659200000,
            "runId": "5f0c8e2a9b1d4c7e8a3f6b2d1e9c0a47",
            "imu": {"gx": 0.012, "gy": -0.004, "gz": 0.031, "ax": 0.02, "ay": 0.01, "az": 9.81},
            "counts": {"left": 1532, "right": 1498},
            "action": "forward",
            "mode": "auto",
        }
        policy_response_example = {"action": "left"}

        schema = SchemaDocument(
            http_endpoints={
                "health": "/health",
                "docs": "/docs",
                "state": "/state",
            },
            websocket_endpoints={
                "operator": "/ws/operator",
            },
            inbound_messages={
                "SetModeMessage": SetModeMessage.model_json_schema(),
                "PressStartMessage": PressStartMessage.model_json_schema(),
                "PressEndMessage": PressEndMessage.model_json_schema(),
                "StopNowMessage": StopNowMessage.model_json_schema(),
                "NewRunMessage": NewRunMessage.model_json_schema(),
                "CalibrateMessage": CalibrateMessage.model_json_schema(),
            },
            outbound_messages={
                "StateMessage": StateMessage.model_json_schema(),
                "ControllerSnapshot": ControllerSnapshot.model_json_schema(),
            },
            policy_request_schema=SyncPayload.model_json_schema(by_alias=True),
            policy_response_schema=PolicyDecision.model_json_schema(),
            examples={
                "policy_request": policy_request_example,
                "policy_response": policy_response_example,
                "press_start": {"type": "press_start", "action": "forward"},
            },
            notes=[
                "All WebSocket messages are JSON.",
                f"Allowed actions: {', '.join(ACTIONS)}.",
                "A StateMessage is sent on connect and broadcast to every operator after each cycle or command.",
                "press_start/press_end are only honoured in manual mode; switching to manual always sends stop.",
                "Authentication (only when a JWT key is configured): Bearer token via 'Authorization: Bearer <token>' header or '?token=' query param.",
            ],
        )
        self.set_header("Content-Type", "application/json")
        self.write(schema.model_dump(mode="json"))
