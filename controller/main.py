import os
from typing import Any, Dict, Set

import logging

import tornado.ioloop
import tornado.web
import tornado.websocket

from controller.handlers import DocsHandler, HealthHandler, OperatorWebSocketHandler, StateHandler
from controller.models import ControllerSnapshot, StateMessage
from controller.services.device_gateway import DeviceGateway
from controller.services.operator_auth import OperatorAuth
from controller.services.policy_client import PolicyClient
from controller.services.sync_loop import SyncLoopController


def make_broadcaster(state: Dict[str, Set[tornado.websocket.WebSocketHandler]]):
    async def broadcast(snapshot: ControllerSnapshot) -> None:
        message = StateMessage(state=snapshot).model_dump_json()
        for client in list(state["operator_clients"]):
            try:
                await client.write_message(message)
            except tornado.websocket.WebSocketClosedError:
                state["operator_clients"].discard(client)

    return broadcast


def make_app() -> tornado.web.Application:
    gateway = DeviceGateway()
    policy_client = PolicyClient()
    controller = SyncLoopController(gateway=gateway, policy_client=policy_client)
    auth = OperatorAuth()
    state: Dict[str, Set[tornado.websocket.WebSocketHandler]] = {
        "operator_clients": set(),
    }
    controller.listeners.append(make_broadcaster(state))

    return tornado.web.Application(
        [
            (r"/health", HealthHandler),
            (r"/docs", DocsHandler),
            (
                r"/state",
                StateHandler,
                dict(controller=controller, auth=auth),
            ),
            (
                r"/ws/operator",
                OperatorWebSocketHandler,
                dict(controller=controller, state=state, auth=auth),
            ),
        ],
        controller=controller,
    )


def setup_logger(name):
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
        logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())
    return logger


def main() -> None:
    # Configure the package logger so every controller.* module shares it.
    logger = setup_logger("controller")
    logger.info(f"Started controller process {os.getpid()}")
    port = int(os.environ.get("PORT", "8000"))
    address = os.environ.get("ADDRESS", "0.0.0.0")
    app = make_app()
    controller: SyncLoopController = app.settings["controller"]
    logger.info(f"Device at {controller.gateway.base_url}, policy at {controller.policy_client.url}")
    app.listen(port=port, address=address)
    controller.start()
    logger.info(f"Tornado running on http://{address}:{port} (Press Ctrl+C to quit)")
    try:
        tornado.ioloop.IOLoop.current().start()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        controller.stop()


if __name__ == "__main__":
    main()
