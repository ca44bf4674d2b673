import tornado.web

from controller.errors import OperatorAuthError
from controller.services.operator_auth import OperatorAuth, bearer_token
from controller.services.sync_loop import SyncLoopController


class StateHandler(tornado.web.RequestHandler):
    """Current ControllerSnapshot as JSON, for displays that poll."""

    def initialize(self, controller: SyncLoopController, auth: OperatorAuth):
        self.controller = controller
        self.auth = auth

    def get(self):
        token = bearer_token(self.request.headers.get("Authorization")) or self.get_argument("token", default=None)
        try:
            self.auth.operator_for(token)
        except OperatorAuthError as exc:
            self.set_status(401)
            self.write({"error": str(exc)})
            return
        self.set_header("Content-Type", "application/json")
        self.write(self.controller.snapshot().model_dump(mode="json"))
