"""
HTTP transport for the daemon's Web API.

One pooled httpx.AsyncClient is shared by every caller (search jobs, plugin
listing, torrent refreshes); the transport only translates failures into the
SearchError taxonomy and attaches the session token to each request.
"""

from typing import Any, Dict, Optional

import httpx

from .config import Config
from .errors import AuthRejected, ProtocolError, TransportError
from .logger import logger


API_PREFIX = "/api/v2"
SESSION_COOKIE = "SID"


class DaemonTransport:
    def __init__(
        self,
        base_url: str = Config.QBT_URL,
        timeout: float = Config.REQUEST_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = base_url.rstrip('/')
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def request(
        self,
        method: str,
        endpoint: str,
        token: Optional[str] = None,
        **kwargs
    ) -> httpx.Response:
        url = f"{API_PREFIX}/{endpoint.lstrip('/')}"

        # The daemon rejects cross-origin POSTs without a matching Referer
        headers = {"Referer": self.base_url}
        if token:
            headers["Cookie"] = f"{SESSION_COOKIE}={token}"

        try:
            response = await self.client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"Could not reach daemon at {self.base_url}: {e}") from e

        if response.status_code in (401, 403):
            logger.debug(f"{method} {url} rejected with HTTP {response.status_code}")
            raise AuthRejected(f"Daemon rejected session for {method} {url} (HTTP {response.status_code})")

        if response.is_error:
            raise TransportError(
                f"{method} {url} failed with HTTP {response.status_code}: {response.text.strip()}",
                status_code=response.status_code
            )

        return response

    async def get(self, endpoint: str, token: Optional[str] = None, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        return await self.request("GET", endpoint, token=token, params=params)

    async def post(self, endpoint: str, token: Optional[str] = None, data: Optional[Dict[str, Any]] = None) -> httpx.Response:
        return await self.request("POST", endpoint, token=token, data=data)

    @staticmethod
    def json(response: httpx.Response) -> Any:
        """Decode a JSON body, treating malformed content as a protocol violation."""
        try:
            return response.json()
        except ValueError as e:
            raise ProtocolError(f"Malformed JSON from {response.request.url}: {e}") from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "DaemonTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
