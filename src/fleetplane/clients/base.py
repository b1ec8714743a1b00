from __future__ import annotations

from typing import Any

import httpx
import structlog
from circuitbreaker import CircuitBreaker
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger()


class HTTPClientError(Exception):
    """HTTP failure carrying the response status and decoded body, when any."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class RetryableHTTPError(HTTPClientError):
    """HTTP errors that may succeed when retried."""


class PermanentHTTPError(HTTPClientError):
    """HTTP errors that should not be retried."""


def is_retryable_status(status_code: int) -> bool:
    """Determine if HTTP status code is retryable."""
    return status_code in (408, 429, 500, 502, 503, 504)


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return {"message": response.text}


class BaseHTTPClient:
    """Base HTTP client with optional retries and a circuit breaker.

    Retries are off unless ``max_retries`` is raised: the orchestration layer
    leaves retry policy to its callers.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        timeout: float = 30.0,
        max_retries: int = 0,
        backoff_factor: float = 2.0,
        circuit_failure_threshold: int | None = 5,
        circuit_recovery_timeout: int = 60,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff_factor = backoff_factor
        # One breaker per client so unrelated endpoints do not trip each other.
        # A threshold of None sends every request.
        self._send = self._send_once
        if circuit_failure_threshold is not None:
            breaker = CircuitBreaker(
                failure_threshold=circuit_failure_threshold,
                recovery_timeout=circuit_recovery_timeout,
                expected_exception=RetryableHTTPError,
            )
            self._send = breaker(self._send_once)

    def _headers(self) -> dict[str, str]:
        """Override to provide custom headers."""
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Execute HTTP request through the retry policy and circuit breaker."""
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(RetryableHTTPError),
            stop=stop_after_attempt(self._max_retries + 1),
            wait=wait_exponential(multiplier=self._backoff_factor, min=1, max=30),
            reraise=True,
        )
        return await retrying(
            self._send,
            method,
            path,
            params=params,
            json=json,
            headers=headers,
        )

    async def _send_once(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        url = f"{self._base_url}{path}"
        req_headers = self._headers()
        if headers:
            req_headers.update(headers)

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers=req_headers,
                )
        except (httpx.TimeoutException, httpx.ConnectError, httpx.ReadError) as exc:
            logger.warning("http_network_error", method=method, url=url, error=str(exc))
            raise RetryableHTTPError(str(exc)) from exc
        except Exception as exc:
            logger.error("http_unexpected_error", method=method, url=url, error=str(exc))
            raise

        payload = _decode(response)
        if response.is_success:
            return payload

        if is_retryable_status(response.status_code):
            logger.warning(
                "http_retryable_error",
                status=response.status_code,
                method=method,
                url=url,
            )
            raise RetryableHTTPError(
                f"HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
                payload=payload,
            )

        logger.error(
            "http_permanent_error",
            status=response.status_code,
            method=method,
            url=url,
        )
        raise PermanentHTTPError(
            f"HTTP {response.status_code}: {response.text}",
            status_code=response.status_code,
            payload=payload,
        )

    async def get(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Execute GET request."""
        return await self._request("GET", path, params=params, json=json, headers=headers)

    async def post(
        self,
        path: str,
        *,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Execute POST request."""
        return await self._request("POST", path, json=json, headers=headers)

    async def put(
        self,
        path: str,
        *,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Execute PUT request."""
        return await self._request("PUT", path, json=json, headers=headers)

    async def patch(
        self,
        path: str,
        *,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Execute PATCH request."""
        return await self._request("PATCH", path, json=json, headers=headers)

    async def delete(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Execute DELETE request."""
        return await self._request("DELETE", path, headers=headers)
