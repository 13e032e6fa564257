"""
HTTP client utilities for the R2 storage SDK
"""

import logging
from typing import Dict, Optional

import httpx

from .error import TransportFailure

logger = logging.getLogger(__name__)


class HttpClient:
    """
    Thin wrapper around ``httpx.AsyncClient``.

    Each call sends exactly one request. Transport errors surface as
    ``TransportFailure``; status codes are left to the caller.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def get(self, url: str, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        return await self.request("GET", url, headers=headers)

    async def put(
        self,
        url: str,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        return await self.request("PUT", url, headers=headers, content=content)

    async def delete(self, url: str, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        return await self.request("DELETE", url, headers=headers)

    async def head(self, url: str, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        return await self.request("HEAD", url, headers=headers)

    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        content: Optional[bytes] = None,
    ) -> httpx.Response:
        """Send a request and read the full response body."""
        try:
            response = await self._client.request(method, url, headers=headers, content=content)
        except httpx.RequestError as ex:
            raise TransportFailure(f"{method} {_redact(url)} failed: {ex!r}") from ex
        logger.debug("[R2][Http] %s %s -> %s", method, _redact(url), response.status_code)
        return response

    async def stream(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """Send a request and return the response with its body still unread."""
        request = self._client.build_request(method, url, headers=headers)
        try:
            response = await self._client.send(request, stream=True)
        except httpx.RequestError as ex:
            raise TransportFailure(f"{method} {_redact(url)} failed: {ex!r}") from ex
        logger.debug("[R2][Http] %s %s -> %s (streamed)", method, _redact(url), response.status_code)
        return response

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def _redact(url: str) -> str:
    """Drop the query string, which may hold signature material."""
    return url.split("?", 1)[0]
