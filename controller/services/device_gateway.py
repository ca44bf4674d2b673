import json
import logging
import os
import re
from typing import Any, Dict, Optional, Tuple

from tornado.httpclient import AsyncHTTPClient, HTTPClientError, HTTPResponse

from controller.errors import DeviceUnavailableError


logger = logging.getLogger(__name__)

DEFAULT_DEVICE_URL = "http://192.168.4.1"
DEFAULT_DEVICE_TIMEOUT = 2.0

_NON_NUMERIC = re.compile(r"[^0-9-]")


def parse_count(field: str) -> Optional[int]:
    """Strip noise from one encoder field, keeping only a leading minus sign."""
    cleaned = _NON_NUMERIC.sub("", field)
    sign = "-" if cleaned.startswith("-") else ""
    digits = cleaned.replace("-", "")
    if not digits:
        return None
    return int(sign + digits)


class DeviceGateway:
    """HTTP wrapper around the robot's onboard sensor and motion endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[AsyncHTTPClient] = None,
    ):
        self.base_url = (base_url or os.getenv("DEVICE_BASE_URL") or DEFAULT_DEVICE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else float(
            os.getenv("DEVICE_TIMEOUT", str(DEFAULT_DEVICE_TIMEOUT))
        )
        self._http_client = http_client
        self.last_counts: Tuple[int, int] = (0, 0)

    @property
    def http_client(self) -> AsyncHTTPClient:
        return self._http_client or AsyncHTTPClient()

    async def read_counts(self) -> Optional[Tuple[int, int]]:
        """
        Read "<left>|<right>" encoder ticks.

        A field that cannot be parsed keeps the previous value for that side.
        Returns None when the device cannot be reached.
        """
        try:
            body = await self._get_text("/counts")
        except DeviceUnavailableError as exc:
            logger.warning("Counts read failed: %s", exc)
            return None

        fields = body.split("|")
        sides = []
        for index, previous in enumerate(self.last_counts):
            value = parse_count(fields[index]) if index < len(fields) else None
            if value is None:
                logger.debug("Malformed counts %r; side %d kept at %d", body, index, previous)
                value = previous
            sides.append(value)
        self.last_counts = (sides[0], sides[1])
        return self.last_counts

    async def read_imu(self) -> Optional[Dict[str, Any]]:
        """Read the raw IMU object. Returns None on transport or parse failure."""
        try:
            body = await self._get_text("/imu")
        except DeviceUnavailableError as exc:
            logger.warning("IMU read failed: %s", exc)
            return None
        try:
            data = json.loads(body)
        except json.JSONDecodeError:
            logger.debug("IMU body is not JSON: %r", body)
            return None
        if not isinstance(data, dict):
            logger.debug("IMU body is not an object: %r", body)
            return None
        return data

    async def execute(self, action: str) -> bool:
        """Fire a motion command. Failures are logged, never raised."""
        try:
            await self._get_text(f"/{action}")
        except DeviceUnavailableError as exc:
            logger.warning("Command '%s' was not delivered: %s", action, exc)
            return False
        return True

    async def _get_text(self, path: str) -> str:
        url = f"{self.base_url}{path}"
        try:
            response: HTTPResponse = await self.http_client.fetch(
                url,
                request_timeout=self.timeout,
                connect_timeout=self.timeout,
                raise_error=False,
            )
        except (HTTPClientError, OSError) as exc:
            raise DeviceUnavailableError(f"GET {url}: {exc}") from exc
        if response.code != 200:
            raise DeviceUnavailableError(f"GET {url}: HTTP {response.code}")
        return (response.body or b"").decode("utf-8", errors="replace")
