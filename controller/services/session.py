import logging
import os
import uuid
from typing import Callable, Dict, Optional

from tornado.ioloop import PeriodicCallback

from controller.models import MODES
from controller.services.command_dispatcher import CommandDispatcher


logger = logging.getLogger(__name__)


def new_run_id() -> str:
    return uuid.uuid4().hex


class Schedule:
    """Restartable periodic trigger built on tornado's PeriodicCallback."""

    def __init__(self, callback: Callable[[], None], interval_ms: float):
        self.callback = callback
        self.interval_ms = interval_ms
        self._periodic: Optional[PeriodicCallback] = None

    @property
    def is_running(self) -> bool:
        return self._periodic is not None and self._periodic.is_running()

    def start(self, interval_ms: Optional[float] = None) -> None:
        if interval_ms is not None:
            self.interval_ms = interval_ms
        if self.is_running:
            return
        self._periodic = PeriodicCallback(self.callback, self.interval_ms)
        self._periodic.start()

    def stop(self) -> None:
        if self._periodic is not None:
            self._periodic.stop()
            self._periodic = None

    def restart(self, interval_ms: float) -> None:
        self.stop()
        self.start(interval_ms)


class SessionManager:
    """
    Holds the control mode and run id, and owns the tick schedule.

    Tick intervals come from MANUAL_INTERVAL_MS (default 500) and
    AUTO_INTERVAL_MS (default 200).
    """

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        on_tick: Callable[[], None],
        mode: Optional[str] = None,
        intervals: Optional[Dict[str, float]] = None,
    ):
        self.dispatcher = dispatcher
        self.mode = mode or os.getenv("CONTROL_MODE", "manual")
        if self.mode not in MODES:
            raise ValueError(f"Unknown control mode '{self.mode}'")
        self.intervals = intervals or {
            "manual": float(os.getenv("MANUAL_INTERVAL_MS", "500")),
            "auto": float(os.getenv("AUTO_INTERVAL_MS", "200")),
        }
        self.run_id = new_run_id()
        self.schedule = Schedule(on_tick, self.intervals[self.mode])

    def start(self) -> None:
        self.schedule.start(self.intervals[self.mode])

    def stop(self) -> None:
        self.schedule.stop()

    async def set_mode(self, mode: str) -> None:
        """Switch mode; entering manual always stops the robot first."""
        if mode not in MODES:
            raise ValueError(f"Unknown control mode '{mode}'")
        previous, self.mode = self.mode, mode
        logger.info("Mode %s -> %s", previous, mode)
        if mode == "manual":
            await self.dispatcher.stop()
        if self.schedule.is_running:
            self.schedule.restart(self.intervals[mode])
        else:
            self.schedule.interval_ms = self.intervals[mode]

    def new_run(self) -> str:
        self.run_id = new_run_id()
        logger.info("Started run %s", self.run_id)
        return self.run_id
