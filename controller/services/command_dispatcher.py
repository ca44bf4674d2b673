import logging
from typing import Optional

from controller.models import is_valid_action


logger = logging.getLogger(__name__)


class CommandDispatcher:
    """
    Sends motion commands to the device, suppressing repeats.

    Owns the currently applied action and the last sent action. Both are
    updated when a dispatch is initiated, before the device answers, so the
    most recently initiated command is the one reported as in effect.

    Switching from one motion command to a different one sends `stop` first,
    so at most one motion command is ever in effect on the device.
    """

    def __init__(self, gateway):
        self.gateway = gateway
        self.current_action: str = "stop"
        self.last_sent: Optional[str] = None
        self.sequence = 0

    async def dispatch(self, action: Optional[str], force: bool = False) -> bool:
        """Dispatch `action`; returns False when it was invalid, a duplicate or superseded."""
        if not is_valid_action(action):
            logger.debug("Ignoring action outside the allowed set: %r", action)
            return False
        if not force and action == self.last_sent:
            return False

        needs_stop = action != "stop" and self.current_action not in ("stop", action)
        self.sequence += 1
        ticket = self.sequence
        self.current_action = action
        self.last_sent = action
        logger.info("Dispatching '%s' (#%d)", action, ticket)
        if needs_stop:
            await self.gateway.execute("stop")
            if self.sequence != ticket:
                logger.info("'%s' (#%d) superseded before it was sent", action, ticket)
                return False
        await self.gateway.execute(action)
        return True

    async def stop(self) -> bool:
        return await self.dispatch("stop", force=True)
