"""
API Client - thin httpx wrapper around the external portfolio backend
"""
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """
    Error raised for any failed call to the backend.

    status == 0 means the request never completed (network or parse failure);
    any other status is the HTTP status of a non-2xx response.
    """

    def __init__(self, message: str, status: int = 0, data: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data or {}

    @property
    def is_network_error(self) -> bool:
        return self.status == 0

    def __repr__(self) -> str:
        return f"ApiError(status={self.status}, message={self.message!r})"


def error_message_from(response: httpx.Response, default: Optional[str] = None) -> str:
    """Pull the backend's `error`/`message` field out of an error response"""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if isinstance(body, dict):
        message = body.get("error") or body.get("message") or body.get("details")
        if message:
            return str(message)
    return default or f"HTTP {response.status_code}: {response.reason_phrase}"


def encode_path(path: str) -> str:
    """URL-encode every segment of a backend-relative path, keeping the slashes"""
    return "/".join(quote(segment, safe="") for segment in path.split("/"))


class ApiClient:
    """
    Async client for the portfolio backend.

    Every other component talks to the backend through this class; it owns the
    base URL and the underlying httpx.AsyncClient.
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def absolute_url(self, path: str) -> str:
        """Absolute, per-segment encoded URL for a backend-relative file path"""
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}{encode_path(path)}"

    async def send(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        """
        Issue a raw request and return the response whatever its status.

        Raises:
            ApiError: with status 0 if the request never completed
        """
        try:
            return await self._client.request(method, endpoint, **kwargs)
        except httpx.RequestError as e:
            logger.warning(f"{method} {endpoint} failed: {e}")
            raise ApiError(f"Network error: {e}", 0, {"originalError": str(e)}) from e

    async def request(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        """
        Issue a request and decode its JSON body.

        Raises:
            ApiError: on network failure, non-2xx status or an undecodable body
        """
        response = await self.send(method, endpoint, **kwargs)
        return self.decode(response)

    @staticmethod
    def decode(response: httpx.Response) -> Dict[str, Any]:
        """Decode a response the same way `request` does"""
        if not response.is_success:
            try:
                data = response.json()
            except ValueError:
                data = {}
            raise ApiError(error_message_from(response), response.status_code, data if isinstance(data, dict) else {})

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(f"Network error: invalid JSON from {response.request.url}", 0) from e

    async def get(self, endpoint: str, **kwargs) -> Dict[str, Any]:
        return await self.request("GET", endpoint, **kwargs)

    async def post(self, endpoint: str, json: Any = None, **kwargs) -> Dict[str, Any]:
        return await self.request("POST", endpoint, json=json, **kwargs)

    async def put(self, endpoint: str, json: Any = None, **kwargs) -> Dict[str, Any]:
        return await self.request("PUT", endpoint, json=json, **kwargs)

    async def delete(self, endpoint: str, **kwargs) -> Dict[str, Any]:
        return await self.request("DELETE", endpoint, **kwargs)
