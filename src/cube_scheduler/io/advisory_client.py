"""
HTTP transport for the advisory capability.

HttpAdvisoryClient is an AdvisoryClient: an async callable that posts the
advisory request and returns the decoded JSON body.  Validation of that body
is the strategy's job; transport errors propagate and are turned into a
formula fallback by AdvisoryStrategy.

Settings come from the environment:
    CUBE_SCHEDULER_ADVISORY_URL       endpoint (required to enable the client)
    CUBE_SCHEDULER_ADVISORY_API_KEY   bearer token (optional)
"""

import os
from typing import Any

import httpx
from loguru import logger

ADVISORY_URL_ENV = "CUBE_SCHEDULER_ADVISORY_URL"
ADVISORY_API_KEY_ENV = "CUBE_SCHEDULER_ADVISORY_API_KEY"

# Transport-level timeout; the strategy applies its own overall bound on top
HTTP_TIMEOUT = 10.0


class HttpAdvisoryClient:
    def __init__(
        self,
        url: str,
        api_key: str | None = None,
        timeout: float = HTTP_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def __call__(self, request: dict[str, Any]) -> Any:
        """
        POST the request and return the JSON response body.

        Raises:
            httpx.HTTPError: Transport failure or non-2xx status
            ValueError: Response body is not JSON
        """
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            logger.debug("Advisory request to {} for session {}", self.url, request.get("session_id"))
            response = await client.post(self.url, json=request, headers=self._headers())
            response.raise_for_status()
            return response.json()


def client_from_env() -> HttpAdvisoryClient | None:
    """Client configured from the environment, or None when no URL is set."""
    url = os.environ.get(ADVISORY_URL_ENV, "").strip()
    if not url:
        return None
    api_key = os.environ.get(ADVISORY_API_KEY_ENV) or None
    return HttpAdvisoryClient(url, api_key=api_key)
