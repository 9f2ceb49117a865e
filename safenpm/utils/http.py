"""
HTTP client utilities for safenpm.

This module provides an asynchronous HTTP client with bounded timeouts,
concurrency control, and registry-specific error mapping. Every request
is attempted exactly once: a transient failure is reported to the caller
as a :class:`TransportError` rather than retried here.
"""

from __future__ import annotations

import httpx
import asyncio
from typing import Any, Optional, Dict, cast

from safenpm.utils.logger import get_logger
from safenpm.__version__ import __version__
from safenpm.exceptions import NotFoundError, TransportError
from safenpm.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_MAX_CONCURRENCY,
    USER_AGENT_TEMPLATE,
)

logger = get_logger("http")


class HTTPClient:
    """Asynchronous HTTP client with timeouts and concurrency control.

    Args:
        timeout: Request timeout in seconds.
        verify_ssl: Whether to verify SSL certificates.
        user_agent: Custom User-Agent header value.
        max_concurrency: Maximum number of concurrent requests.

    Example:
        >>> async with HTTPClient() as client:
        ...     data = await client.get_json("https://registry.npmjs.org/react")
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent or USER_AGENT_TEMPLATE.format(version=__version__)
        self.max_concurrency = max_concurrency

        self._client: Optional[httpx.AsyncClient] = None
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def __aenter__(self) -> "HTTPClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> None:
        """Initialize the underlying httpx client if needed."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                http2=True,
                verify=self.verify_ssl,
                follow_redirects=True,
                headers={
                    "User-Agent": self.user_agent,
                    "Accept": "application/json",
                },
            )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Execute a single HTTP request and map failures to safenpm errors."""
        await self._ensure_client()
        assert self._client is not None

        clean_url = url.strip().strip("\"'")

        try:
            async with self._semaphore:
                response = await self._client.request(method, clean_url, **kwargs)

        except httpx.TimeoutException as exc:
            logger.warning("Request timed out after %ss: %s", self.timeout, clean_url)
            raise TransportError(
                f"Request timed out after {self.timeout}s: {clean_url}",
                url=clean_url,
            ) from exc

        except httpx.HTTPError as exc:
            logger.warning("Network error for %s: %s", clean_url, exc)
            raise TransportError(
                f"Network error while fetching {clean_url}: {exc}",
                url=clean_url,
            ) from exc

        if response.status_code == 404:
            raise NotFoundError(f"Resource not found: {clean_url}")

        if response.status_code >= 400:
            raise TransportError(
                f"HTTP {response.status_code} error for {clean_url}",
                url=clean_url,
                status_code=response.status_code,
                response_body=response.text,
            )

        return response

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Perform a GET request."""
        return await self._request("GET", url, **kwargs)

    async def get_json(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        """Fetch a URL and parse the response as a JSON object."""
        response = await self.get(url, **kwargs)

        try:
            data = response.json()
        except ValueError as exc:
            raise TransportError(
                f"Invalid JSON response from {url}",
                url=url,
                response_body=response.text,
            ) from exc

        if not isinstance(data, dict):
            raise TransportError(
                f"Expected JSON object from {url}",
                url=url,
                response_body=response.text,
            )

        return cast(Dict[str, Any], data)
