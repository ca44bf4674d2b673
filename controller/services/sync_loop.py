"""
Sync loop: one acquire -> correct -> report -> act pass per tick.

Each pass:

  1. counts, imu = device.read_counts(), device.read_imu()
  2. imu         = correct(imu, bias)
  3. decision    = policy.decide(SyncPayload(...))
  4. auto mode only: dispatch the suggestion unless invalid or a repeat

A tick that fires while a pass is still running is dropped. Operator
operations (mode changes, press-and-hold, stop, calibration) are methods on
the controller and run on the same IOLoop, so they interleave with a pass
only at its await points and can always issue a stop immediately.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from tornado.ioloop import IOLoop

from controller.errors import PolicySyncError
from controller.models import (
    ControllerSnapshot,
    Counts,
    GyroBias,
    SyncPayload,
    TelemetrySample,
    is_valid_action,
)
from controller.services.bias_estimator import BiasEstimator
from controller.services.command_dispatcher import CommandDispatcher
from controller.services.policy_client import PolicyClient
from controller.services.session import SessionManager
from controller.services.telemetry_corrector import correct


logger = logging.getLogger(__name__)

StateListener = Callable[[ControllerSnapshot], Awaitable[None]]


class SyncLoopController:
    """
    Owns the loop state and the operator-facing operations.

    Args:
        gateway:        DeviceGateway (or a stand-in with the same coroutines).
        policy_client:  PolicyClient posting the per-cycle payload.
        dispatcher:     CommandDispatcher; built over `gateway` when omitted.
        estimator:      BiasEstimator; built over `gateway` when omitted.
        mode:           Initial control mode (default: CONTROL_MODE or manual).
    """

    def __init__(
        self,
        gateway,
        policy_client: PolicyClient,
        dispatcher: Optional[CommandDispatcher] = None,
        estimator: Optional[BiasEstimator] = None,
        mode: Optional[str] = None,
        intervals: Optional[Dict[str, float]] = None,
    ):
        self.gateway = gateway
        self.policy_client = policy_client
        self.dispatcher = dispatcher or CommandDispatcher(gateway)
        self.estimator = estimator or BiasEstimator(gateway)
        self.session = SessionManager(self.dispatcher, self.on_tick, mode=mode, intervals=intervals)

        self.sample = TelemetrySample()
        self.corrected_imu: Dict[str, Any] = {}
        self.bias = GyroBias()
        self.suggested_action: Optional[str] = None
        self.listeners: List[StateListener] = []
        self._cycle_in_flight = False

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def mode(self) -> str:
        return self.session.mode

    @property
    def applied_action(self) -> str:
        return self.dispatcher.current_action

    @property
    def cycle_in_flight(self) -> bool:
        return self._cycle_in_flight

    def snapshot(self) -> ControllerSnapshot:
        return ControllerSnapshot(
            mode=self.session.mode,
            run_id=self.session.run_id,
            counts=Counts(left=self.sample.left_count, right=self.sample.right_count),
            imu=dict(self.corrected_imu),
            applied_action=self.dispatcher.current_action,
            suggested_action=self.suggested_action,
            calibrating=self.estimator.in_progress,
            bias=self.bias.model_copy(),
        )

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def start(self) -> None:
        logger.info("Sync loop starting in %s mode (run %s)", self.session.mode, self.session.run_id)
        self.session.start()

    def stop(self) -> None:
        self.session.stop()

    def on_tick(self) -> None:
        """Schedule callback: start a pass unless one is still running."""
        if not self._claim_cycle():
            logger.debug("Tick dropped; previous cycle still in flight")
            return
        IOLoop.current().spawn_callback(self._run_claimed_cycle)

    async def run_cycle(self) -> bool:
        """Run one pass now. Returns False when a pass was already in flight."""
        if not self._claim_cycle():
            return False
        await self._run_claimed_cycle()
        return True

    def _claim_cycle(self) -> bool:
        if self._cycle_in_flight:
            return False
        self._cycle_in_flight = True
        return True

    async def _run_claimed_cycle(self) -> None:
        try:
            await self._cycle()
        except Exception:
            logger.exception("Sync cycle failed")
        finally:
            self._cycle_in_flight = False
        await self._publish()

    # ------------------------------------------------------------------
    # The cycle
    # ------------------------------------------------------------------

    async def _cycle(self) -> None:
        sample = await self._acquire()
        if sample is None:
            if self.session.mode == "auto":
                logger.warning("Telemetry unavailable in auto mode; forcing stop")
                await self.dispatcher.stop()
            return

        mode = self.session.mode
        self.corrected_imu = correct(sample.imu, self.bias)
        payload = SyncPayload(
            timestamp=int(time.time() * 1000),
            run_id=self.session.run_id,
            imu=self.corrected_imu,
            counts=Counts(left=sample.left_count, right=sample.right_count),
            action=self.dispatcher.current_action,
            mode=mode,
        )

        try:
            decision = await self.policy_client.decide(payload)
        except PolicySyncError as exc:
            logger.warning("Policy sync failed: %s", exc)
            if self.session.mode == "auto":
                logger.warning("Forcing stop after failed policy sync")
                await self.dispatcher.stop()
            return

        self.suggested_action = decision.action
        # Act only on a decision made for auto, and only if still in auto.
        if mode != "auto" or self.session.mode != "auto":
            return
        if not is_valid_action(decision.action):
            logger.debug("No usable suggestion this cycle: %r", decision.action)
            return
        await self.dispatcher.dispatch(decision.action)

    async def _acquire(self) -> Optional[TelemetrySample]:
        counts, imu = await asyncio.gather(self.gateway.read_counts(), self.gateway.read_imu())
        if counts is None and imu is None:
            return None

        previous = self.sample
        left, right = counts if counts is not None else (previous.left_count, previous.right_count)
        self.sample = TelemetrySample(
            left_count=left,
            right_count=right,
            imu=imu if imu is not None else previous.imu,
        )
        return self.sample

    # ------------------------------------------------------------------
    # Operator operations
    # ------------------------------------------------------------------

    async def set_mode(self, mode: str) -> None:
        await self.session.set_mode(mode)
        await self._publish()

    async def press_start(self, action: str) -> bool:
        """Manual press: apply `action` immediately. Ignored outside manual mode."""
        if self.session.mode != "manual":
            logger.debug("press_start(%s) ignored in %s mode", action, self.session.mode)
            return False
        sent = await self.dispatcher.dispatch(action, force=True)
        await self._publish()
        return sent

    async def press_end(self) -> bool:
        """Manual release or cancel: always reverts to stop."""
        if self.session.mode != "manual":
            logger.debug("press_end ignored in %s mode", self.session.mode)
            return False
        await self.dispatcher.stop()
        await self._publish()
        return True

    async def stop_now(self) -> None:
        await self.dispatcher.stop()
        await self._publish()

    async def new_run(self) -> str:
        run_id = self.session.new_run()
        await self._publish()
        return run_id

    async def calibrate(self) -> bool:
        """Run gyro calibration; returns False if one was already running."""
        bias = await self.estimator.calibrate(self.bias, on_started=self._publish)
        if bias is None:
            return False
        self.bias = bias
        await self._publish()
        return True

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    async def _publish(self) -> None:
        if not self.listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self.listeners):
            try:
                await listener(snapshot)
            except Exception:
                logger.exception("State listener failed")
