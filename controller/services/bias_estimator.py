import asyncio
import logging
import os
from typing import Any, Awaitable, Callable, Dict, Optional

from controller.models import GYRO_AXES, GyroBias


logger = logging.getLogger(__name__)


def _gyro_reading(imu: Optional[Dict[str, Any]]) -> Optional[Dict[str, float]]:
    if imu is None:
        return None
    reading: Dict[str, float] = {}
    for axis in GYRO_AXES:
        value = imu.get(axis)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        reading[axis] = float(value)
    return reading


class BiasEstimator:
    """
    Estimates the static gyroscope offset while the robot is held still.

    Args:
        gateway:       Anything with an async read_imu() -> Optional[dict].
        sample_count:  Readings to request (default: CALIBRATION_SAMPLES or 20).
        spacing:       Seconds between readings (default: CALIBRATION_SPACING_MS or 100 ms).
    """

    def __init__(self, gateway, sample_count: Optional[int] = None, spacing: Optional[float] = None):
        self.gateway = gateway
        self.sample_count = sample_count if sample_count is not None else int(
            os.getenv("CALIBRATION_SAMPLES", "20")
        )
        self.spacing = spacing if spacing is not None else float(
            os.getenv("CALIBRATION_SPACING_MS", "100")
        ) / 1000.0
        self._in_progress = False

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    async def calibrate(
        self,
        current: GyroBias,
        on_started: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> Optional[GyroBias]:
        """
        Average the successful gyro samples into a new bias.

        Returns None when a calibration is already running, and `current`
        unchanged when no sample could be collected. `on_started` is awaited
        once the run is marked in progress, before the first reading.
        """
        if self._in_progress:
            logger.info("Calibration already in progress; request ignored")
            return None

        self._in_progress = True
        try:
            if on_started is not None:
                await on_started()
            sums = {axis: 0.0 for axis in GYRO_AXES}
            collected = 0
            for index in range(self.sample_count):
                if index and self.spacing > 0:
                    await asyncio.sleep(self.spacing)
                reading = _gyro_reading(await self.gateway.read_imu())
                if reading is None:
                    continue
                for axis, value in reading.items():
                    sums[axis] += value
                collected += 1

            if collected == 0:
                logger.warning("Calibration collected no samples; bias unchanged")
                return current

            bias = GyroBias(**{axis: total / collected for axis, total in sums.items()})
            logger.info(
                "Calibration complete (%d/%d samples): gx=%.4f gy=%.4f gz=%.4f",
                collected,
                self.sample_count,
                bias.gx,
                bias.gy,
                bias.gz,
            )
            return bias
        finally:
            self._in_progress = False
