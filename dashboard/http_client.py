"""HTTP client for the dashboard backend with typed failure results."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from .errors import DecodeError, FetchError, FetchTimeout, HttpError

logger = logging.getLogger(__name__)

# Global HTTP client (for connection pooling)
_http_client: Optional[httpx.AsyncClient] = None


def get_http_client(timeout: float = 10) -> httpx.AsyncClient:
    """Get or create global HTTP client."""
    global _http_client
    if _http_client is None:
        _http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(max_keepalive_connections=20, max_connections=50),
        )
    return _http_client


async def close_http_client() -> None:
    """Close global HTTP client."""
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


@dataclass
class FetchResult:
    """Outcome of a single backend call: decoded JSON or a typed error."""
    success: bool
    path: str
    data: Any = None
    error: Optional[FetchError] = None
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now(timezone.utc)

    @classmethod
    def ok(cls, path: str, data: Any) -> "FetchResult":
        return cls(success=True, path=path, data=data)

    @classmethod
    def fail(cls, path: str, error: FetchError) -> "FetchResult":
        return cls(success=False, path=path, error=error)

    def unwrap(self) -> Any:
        """Return data or raise the carried error."""
        if not self.success:
            raise self.error
        return self.data


class ApiClient:
    """
    Thin wrapper over httpx that normalizes backend failures.

    Every call returns a FetchResult; nothing is raised for network, status
    or decoding problems and nothing is retried.
    """

    def __init__(
        self,
        base_url: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10,
        max_concurrent: int = 5,
    ):
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client or get_http_client(timeout)
        self.timeout = timeout
        self.semaphore = asyncio.Semaphore(max_concurrent)

    def _url(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return self.base_url + path

    async def get(self, path: str, params: Optional[dict] = None) -> FetchResult:
        """GET a JSON resource."""
        return await self._request("GET", path, params=params)

    async def post(self, path: str, body: Optional[dict] = None) -> FetchResult:
        """POST a JSON body and decode the JSON reply."""
        return await self._request("POST", path, json_body=body)

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        json_body: Optional[dict] = None,
    ) -> FetchResult:
        url = self._url(path)
        async with self.semaphore:
            try:
                logger.debug("HTTP %s %s", method, url)
                response = await self.http_client.request(
                    method,
                    url,
                    params=params,
                    json=json_body,
                    timeout=self.timeout,
                )
            except httpx.TimeoutException as exc:
                logger.error("HTTP %s %s timed out after %ss", method, path, self.timeout)
                return FetchResult.fail(path, FetchTimeout(f"Timed out: {exc}", path=path))
            except httpx.HTTPError as exc:
                logger.error("HTTP %s %s failed: %s", method, path, exc)
                return FetchResult.fail(path, FetchError(str(exc) or exc.__class__.__name__, path=path))

        return self._decode(method, path, response)

    def _decode(self, method: str, path: str, response: httpx.Response) -> FetchResult:
        if not response.is_success:
            body = response.text
            logger.error("API Error (%d): %s %s %s", response.status_code, method, path, body[:200])
            return FetchResult.fail(path, HttpError(response.status_code, body, path=path))

        if response.status_code == 204 or not response.content:
            return FetchResult.ok(path, None)

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            logger.error("Expected JSON but got %s: %s", content_type or "unknown", path)
            return FetchResult.fail(
                path,
                DecodeError(f"Expected JSON response but got {content_type or 'unknown'}", path=path),
            )

        try:
            data = response.json()
        except ValueError as exc:
            logger.error("JSON parsing error for %s: %s", path, exc)
            return FetchResult.fail(path, DecodeError(f"Failed to parse JSON: {exc}", path=path))

        logger.debug("HTTP %s success: %s", method, path)
        return FetchResult.ok(path, data)
