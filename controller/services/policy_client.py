import json
import logging
import os
from typing import Optional

from tornado.httpclient import AsyncHTTPClient, HTTPClientError, HTTPRequest

from controller.errors import PolicySyncError
from controller.models import PolicyDecision, SyncPayload


logger = logging.getLogger(__name__)

DEFAULT_POLICY_TIMEOUT = 3.0


class PolicyClient:
    """Posts one SyncPayload per cycle to the remote policy service."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[AsyncHTTPClient] = None,
    ):
        self.url = url or os.getenv("POLICY_URL")
        if not self.url:
            raise RuntimeError("POLICY_URL environment variable is not set")
        self.timeout = timeout if timeout is not None else float(
            os.getenv("POLICY_TIMEOUT", str(DEFAULT_POLICY_TIMEOUT))
        )
        self._http_client = http_client

    @property
    def http_client(self) -> AsyncHTTPClient:
        return self._http_client or AsyncHTTPClient()

    async def decide(self, payload: SyncPayload) -> PolicyDecision:
        """
        POST the payload and parse the suggested action.

        Raises PolicySyncError on transport errors, non-200 responses and
        bodies that are not a JSON object. A missing or non-string action is
        "no suggestion", not an error.
        """
        request = HTTPRequest(
            self.url,
            method="POST",
            headers={"Content-Type": "application/json"},
            body=payload.model_dump_json(by_alias=True),
            request_timeout=self.timeout,
            connect_timeout=self.timeout,
        )
        try:
            response = await self.http_client.fetch(request, raise_error=False)
        except (HTTPClientError, OSError) as exc:
            raise PolicySyncError(f"POST {self.url}: {exc}") from exc

        if response.code != 200:
            raise PolicySyncError(f"POST {self.url}: HTTP {response.code}", status_code=response.code)

        try:
            body = json.loads(response.body or b"")
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise PolicySyncError(f"POST {self.url}: invalid JSON response ({exc})", status_code=200) from exc
        if not isinstance(body, dict):
            raise PolicySyncError(f"POST {self.url}: response is not a JSON object", status_code=200)

        action = body.get("action")
        if not isinstance(action, str):
            return PolicyDecision()
        return PolicyDecision(action=action)
