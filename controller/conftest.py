import asyncio
import sys
from pathlib import Path

import pytest

# Ensure repository root is importable for `import controller`
ROOT = Path(__file__).resolve().parent
REPO_ROOT = ROOT.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


class FakeGateway:
    """In-memory device: scripted readings, recorded commands."""

    def __init__(self, counts=(10, 20), imu=None):
        self.counts = counts
        self.imu = imu if imu is not None else {"gx": 0.1, "gy": 0.2, "gz": 0.3, "ax": 9.8}
        self.imu_script = None
        self.executed = []

    async def read_counts(self):
        return self.counts

    async def read_imu(self):
        if self.imu_script is not None:
            return self.imu_script.pop(0)
        return self.imu

    async def execute(self, action):
        self.executed.append(action)
        return True


class FakePolicyClient:
    """Returns queued decisions or raises queued errors; can be held open."""

    def __init__(self, action=None):
        from controller.models import PolicyDecision

        self.decision = PolicyDecision(action=action)
        self.error = None
        self.payloads = []
        self.started = asyncio.Event()
        self.release = None

    async def decide(self, payload):
        self.payloads.append(payload)
        self.started.set()
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.decision


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def policy():
    return FakePolicyClient()


@pytest.fixture
def make_controller(gateway, policy):
    def _make(mode="manual", intervals=None):
        from controller.services.bias_estimator import BiasEstimator
        from controller.services.sync_loop import SyncLoopController

        return SyncLoopController(
            gateway=gateway,
            policy_client=policy,
            estimator=BiasEstimator(gateway, sample_count=20, spacing=0),
            mode=mode,
            intervals=intervals or {"manual": 500, "auto": 200},
        )

    return _make
