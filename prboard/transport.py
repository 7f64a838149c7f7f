"""
Async HTTP transport for the GitHub REST API.

Handles async HTTP communication with automatic retry logic, token
authentication and error handling using the httpx async client.
"""

import asyncio
import random
import time
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any

import httpx

from prboard.exceptions import (
    NotFoundError,
    RateLimitedError,
    ServerError,
    TransportError,
)
from prboard.logging import log_http_request, log_http_response


@dataclass
class RetryConfig:
    """Configuration for automatic retry behavior."""

    max_retries: int = 3
    backoff_factor: float = 2.0
    retry_on: list[int] = field(default_factory=lambda: [429, 500, 502, 503])
    respect_retry_after: bool = True
    max_backoff: float = 60.0  # Maximum backoff time in seconds
    jitter: float = 0.1  # Jitter factor (0.1 = ±10%)


class AsyncHTTPTransport:
    """
    Async HTTP transport layer with token authentication and retry logic.

    Handles:
    - Bearer token authentication
    - Exponential backoff with jitter for retries
    - Retry-After header respect for rate limiting
    - Error response parsing into typed exceptions
    """

    DEFAULT_BASE_URL = "https://api.github.com"

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        retry_config: RetryConfig | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize async HTTP transport.

        Args:
            token: GitHub token sent as a Bearer credential
            base_url: Base URL for API requests (e.g., "https://api.github.com")
            timeout: Request timeout in seconds
            retry_config: Configuration for retry behavior
            http_transport: Optional httpx transport (used by tests to stub the network)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=http_transport,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {token}",
                "X-GitHub-Api-Version": "2022-11-28",
            },
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHTTPTransport":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """
        Make a GET request with automatic retry.

        Args:
            path: API path (e.g., "/repos/octo/app/pulls")
            params: Query parameters

        Returns:
            The successful response (status < 400)

        Raises:
            TransportError: On API errors
        """
        async def make_request() -> httpx.Response:
            log_http_request("GET", path, dict(self._client.headers), params)
            started = time.perf_counter()
            response = await self._client.get(path, params=params)
            log_http_response(
                response.status_code,
                path,
                elapsed_ms=(time.perf_counter() - started) * 1000,
            )
            return response

        return await self._execute_with_retry(make_request)

    async def _execute_with_retry(
        self, request_fn: Callable[[], Coroutine[Any, Any, httpx.Response]]
    ) -> httpx.Response:
        """
        Execute a request with automatic retry on retryable errors.

        Args:
            request_fn: Async function that makes the HTTP request

        Returns:
            The successful response

        Raises:
            TransportError: On non-retryable errors or after max retries
        """
        last_error: Exception | None = None

        for attempt in range(self.retry_config.max_retries + 1):
            try:
                response = await request_fn()

                if response.status_code < 400:
                    return response

                error = self._parse_error_response(response)

                if not self._should_retry(response.status_code, attempt):
                    raise error

                last_error = error

                retry_after = response.headers.get("Retry-After")
                wait_time = self._get_backoff_time(attempt, retry_after)
                await asyncio.sleep(wait_time)

            except httpx.RequestError as e:
                # Network errors are retryable
                if attempt >= self.retry_config.max_retries:
                    raise ServerError("CONNECTION_ERROR", str(e)) from e

                last_error = e
                wait_time = self._get_backoff_time(attempt, None)
                await asyncio.sleep(wait_time)

        if last_error:
            if isinstance(last_error, TransportError):
                raise last_error
            raise ServerError("MAX_RETRIES_EXCEEDED", str(last_error))

        raise ServerError("UNKNOWN_ERROR", "Request failed with no error details")

    def _should_retry(self, status_code: int, attempt: int) -> bool:
        """
        Determine if a request should be retried.

        Args:
            status_code: HTTP status code
            attempt: Current attempt number (0-indexed)

        Returns:
            True if the request should be retried
        """
        if attempt >= self.retry_config.max_retries:
            return False

        return status_code in self.retry_config.retry_on

    def _get_backoff_time(
        self, attempt: int, retry_after: str | None
    ) -> float:
        """
        Calculate backoff time for retry.

        Uses exponential backoff with jitter, respecting Retry-After header
        if present.

        Args:
            attempt: Current attempt number (0-indexed)
            retry_after: Value of Retry-After header (if present)

        Returns:
            Time to wait in seconds
        """
        if retry_after and self.retry_config.respect_retry_after:
            try:
                return min(float(retry_after), self.retry_config.max_backoff)
            except ValueError:
                pass  # Fall through to exponential backoff

        base_wait = self.retry_config.backoff_factor ** attempt

        jitter_range = base_wait * self.retry_config.jitter
        jitter = random.uniform(-jitter_range, jitter_range)
        wait_time = base_wait + jitter

        return min(wait_time, self.retry_config.max_backoff)

    def _parse_error_response(self, response: httpx.Response) -> TransportError:
        """
        Parse an error response into a typed exception.

        Args:
            response: HTTP response with error status

        Returns:
            Appropriate TransportError subclass
        """
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        status_code = response.status_code
        message = data.get("message") or f"HTTP {status_code}"

        if status_code == 429 or (
            status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0"
        ):
            retry_after_str = response.headers.get("Retry-After", "60")
            try:
                retry_after = int(retry_after_str)
            except ValueError:
                retry_after = 60
            return RateLimitedError("RATE_LIMITED", message, retry_after, status_code)
        elif status_code == 401:
            return TransportError("UNAUTHORIZED", message, status_code)
        elif status_code == 403:
            return TransportError("FORBIDDEN", message, status_code)
        elif status_code == 404:
            return NotFoundError("NOT_FOUND", message, status_code)
        elif status_code >= 500:
            return ServerError("SERVER_ERROR", message, status_code)
        else:
            return TransportError("UPSTREAM_ERROR", message, status_code)
