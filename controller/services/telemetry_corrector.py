from typing import Any, Dict, Mapping

from controller.models import GYRO_AXES, GyroBias


def _axis_value(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def correct(raw: Mapping[str, Any], bias: GyroBias) -> Dict[str, Any]:
    """Subtract the gyro bias from gx/gy/gz; every other key passes through."""
    corrected = dict(raw)
    for axis in GYRO_AXES:
        corrected[axis] = _axis_value(raw.get(axis)) - getattr(bias, axis)
    return corrected
