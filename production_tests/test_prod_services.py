import os
import time

import pytest
import requests


DEVICE_BASE_URL = os.getenv("DEVICE_BASE_URL")
POLICY_URL = os.getenv("POLICY_URL")
CONTROLLER_BASE_URL = os.getenv("CONTROLLER_BASE_URL")


def _url(base: str, path: str) -> str:
    return f"{base.rstrip('/')}{path}"


@pytest.mark.skipif(not DEVICE_BASE_URL, reason="DEVICE_BASE_URL not set")
def test_device_counts():
    resp = requests.get(_url(DEVICE_BASE_URL, "/counts"), timeout=2)
    assert resp.status_code == 200
    assert "|" in resp.text, f"Unexpected counts body: {resp.text!r}"


@pytest.mark.skipif(not DEVICE_BASE_URL, reason="DEVICE_BASE_URL not set")
def test_device_imu():
    resp = requests.get(_url(DEVICE_BASE_URL, "/imu"), timeout=2)
    assert resp.status_code == 200
    body = resp.json()
    assert {"gx", "gy", "gz"}.issubset(body.keys())


@pytest.mark.skipif(not DEVICE_BASE_URL, reason="DEVICE_BASE_URL not set")
def test_device_stop_command():
    resp = requests.get(_url(DEVICE_BASE_URL, "/stop"), timeout=2)
    assert resp.status_code == 200


@pytest.mark.skipif(not POLICY_URL, reason="POLICY_URL not set")
def test_policy_round_trip():
    payload = {
        "timestamp": int(time.time() * 1000),
        "runId": "production-smoke-test",
        "imu": {"gx": 0.0, "gy": 0.0, "gz": 0.0},
        "counts": {"left": 0, "right": 0},
        "action": "stop",
        "mode": "manual",
    }
    resp = requests.post(POLICY_URL, json=payload, timeout=3)
    assert resp.status_code == 200, f"Unexpected status {resp.status_code} from {POLICY_URL}: {resp.text}"
    action = resp.json().get("action")
    assert action is None or isinstance(action, str)


@pytest.mark.skipif(not CONTROLLER_BASE_URL, reason="CONTROLLER_BASE_URL not set")
def test_controller_health():
    resp = requests.get(_url(CONTROLLER_BASE_URL, "/health"), timeout=10)
    assert resp.status_code == 200
    assert resp.json().get("status") == "ok"
