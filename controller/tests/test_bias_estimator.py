import asyncio

import pytest

from controller.models import GyroBias
from controller.services.bias_estimator import BiasEstimator
from controller.services.telemetry_corrector import correct


def test_correct_subtracts_bias_from_gyro_axes_only():
    corrected = correct(
        {"gx": 1.0, "gy": 2.0, "gz": 3.0, "ax": 9.8},
        GyroBias(gx=0.1, gy=0.2, gz=0.3),
    )
    assert corrected == pytest.approx({"gx": 0.9, "gy": 1.8, "gz": 2.7, "ax": 9.8})


def test_correct_treats_missing_or_non_numeric_axes_as_zero():
    raw = {"gx": "n/a", "temp": "31C"}
    corrected = correct(raw, GyroBias(gx=0.5, gy=0.25, gz=0.0))

    assert corrected == {"gx": -0.5, "gy": -0.25, "gz": 0.0, "temp": "31C"}
    assert raw == {"gx": "n/a", "temp": "31C"}


@pytest.mark.asyncio
async def test_calibration_averages_only_successful_samples(gateway):
    successes = [{"gx": 0.0, "gy": 0.1, "gz": gz} for gz in [0.3, 0.7] * 7 + [0.5]]
    failures = [None, {"gx": 1.0, "gy": 1.0}, None, None, None]
    gateway.imu_script = successes[:10] + failures[:2] + successes[10:] + failures[2:]
    assert len(gateway.imu_script) == 20

    estimator = BiasEstimator(gateway, sample_count=20, spacing=0)
    bias = await estimator.calibrate(GyroBias())

    assert bias.gz == pytest.approx(0.5)
    assert bias.gy == pytest.approx(0.1)
    assert bias.gx == 0.0
    assert gateway.imu_script == []


@pytest.mark.asyncio
async def test_samples_missing_a_gyro_axis_are_skipped(gateway):
    gateway.imu_script = [{"gx": 9.0, "gy": 9.0}, {"gx": 1.0, "gy": 2.0, "gz": 3.0}]
    estimator = BiasEstimator(gateway, sample_count=2, spacing=0)

    bias = await estimator.calibrate(GyroBias())

    assert bias == GyroBias(gx=1.0, gy=2.0, gz=3.0)


@pytest.mark.asyncio
async def test_no_successful_samples_leaves_bias_unchanged(gateway):
    gateway.imu_script = [None] * 20
    current = GyroBias(gx=0.4, gy=0.5, gz=0.6)
    estimator = BiasEstimator(gateway, sample_count=20, spacing=0)

    bias = await estimator.calibrate(current)

    assert bias == current
    assert not estimator.in_progress


@pytest.mark.asyncio
async def test_second_calibration_while_running_is_a_no_op(gateway):
    estimator = BiasEstimator(gateway, sample_count=3, spacing=0.01)

    first = asyncio.ensure_future(estimator.calibrate(GyroBias()))
    await asyncio.sleep(0)
    assert estimator.in_progress

    assert await estimator.calibrate(GyroBias()) is None
    bias = await first

    assert bias.gz == pytest.approx(0.3)
    assert not estimator.in_progress


def test_defaults_come_from_environment(monkeypatch, gateway):
    monkeypatch.setenv("CALIBRATION_SAMPLES", "12")
    monkeypatch.setenv("CALIBRATION_SPACING_MS", "50")

    estimator = BiasEstimator(gateway)

    assert estimator.sample_count == 12
    assert estimator.spacing == pytest.approx(0.05)
