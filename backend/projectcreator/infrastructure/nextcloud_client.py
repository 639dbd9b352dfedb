"""Resilient Nextcloud Client - wraps httpx.AsyncClient with retry, backoff, and error mapping.

Invariants:
    - Rate limits (429): exponential backoff with jitter, respects Retry-After header
    - Transient errors (5xx, dropped connection): max N retries with exponential backoff,
      idempotent methods only; POST, MKCOL and MOVE fail on the first 5xx
    - Connection refused: retried for every method (the request never reached the server)
    - Client errors (4xx except 429): immediate failure, no retry
    - Timeouts: immediate failure (the request may already have side effects)
    - All failures mapped to PlatformError (core/errors.py) carrying the HTTP status

Design Decisions:
    - One shared AsyncClient per process (created in lifespan, closed on shutdown)
    - Basic auth with the service account's app password; OCS-APIRequest header always sent
    - Callers pass allow_status for statuses that are answers, not failures (404 on exists checks)
    - ±25% jitter on backoff: prevents thundering herd against the same instance
"""

import asyncio
import random
import logging
from typing import Any

import httpx

from projectcreator.core.errors import PlatformError, ErrorContext

logger = logging.getLogger(__name__)

OCS_BASE = "/ocs/v2.php"
# 5xx and dropped connections are retried for these only
IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE", "PROPFIND"})


class ResilientNextcloudClient:
    """HTTP client for OCS, Deck REST, group folders and WebDAV endpoints."""

    def __init__(
        self,
        base_url: str,
        user: str,
        app_password: str,
        max_retries: int = 3,
        base_delay_ms: int = 500,
        max_delay_ms: int = 10_000,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client = httpx.AsyncClient(
            base_url=base_url,
            auth=(user, app_password),
            timeout=timeout_seconds,
            headers={"OCS-APIRequest": "true", "Accept": "application/json"},
            transport=transport,
        )
        self.user = user
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def request(
        self,
        method: str,
        url: str,
        *,
        service: str,
        allow_status: tuple[int, ...] = (),
        context: ErrorContext | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request with automatic retry on transient failures."""
        retryable = method.upper() in IDEMPOTENT_METHODS
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.request(method, url, **kwargs)
            except httpx.TimeoutException:
                raise PlatformError(
                    f"{method} {url} timed out", service, context=context,
                )
            except httpx.ConnectError as e:
                # nothing reached the server
                await self._handle_transient_error(e, attempt, service, context)
                continue
            except httpx.TransportError as e:
                await self._handle_transient_error(
                    e, attempt, service, context, retryable=retryable,
                )
                continue

            status = response.status_code
            if status in allow_status:
                return response
            if status == 429:
                await self._handle_rate_limit(response, attempt, service, context)
                continue
            if status >= 500:
                await self._handle_transient_error(
                    f"HTTP {status}", attempt, service, context, status, retryable=retryable,
                )
                continue
            if status >= 400:
                raise PlatformError(
                    f"{method} {url} returned {status}", service,
                    status_code=status, context=context,
                )
            if attempt:
                logger.info(
                    f"{service} call succeeded after retry",
                    extra={"attempt": attempt + 1, "service": service},
                )
            return response
        raise PlatformError("retries exhausted", service, context=context)

    async def ocs(
        self,
        method: str,
        path: str,
        *,
        service: str,
        base: str = OCS_BASE,
        allow_status: tuple[int, ...] = (),
        context: ErrorContext | None = None,
        **kwargs: Any,
    ) -> Any:
        """Call an OCS endpoint and unwrap ocs.data. Returns None for allowed error statuses."""
        params = dict(kwargs.pop("params", None) or {})
        params.setdefault("format", "json")
        response = await self.request(
            method, f"{base}{path}", service=service,
            allow_status=allow_status, context=context, params=params, **kwargs,
        )
        if response.status_code in allow_status and response.status_code >= 400:
            return None
        try:
            payload = response.json()
        except ValueError:
            raise PlatformError(
                f"non-JSON OCS response from {path}", service,
                status_code=response.status_code, context=context,
            )
        ocs = payload.get("ocs", {}) if isinstance(payload, dict) else {}
        meta = ocs.get("meta", {})
        code = int(meta.get("statuscode", 200) or 200)
        if code not in (100, 200):
            if code in allow_status:
                return None
            raise PlatformError(
                meta.get("message") or f"OCS status {code}", service,
                status_code=code, context=context,
            )
        return ocs.get("data")

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _handle_rate_limit(
        self, response: httpx.Response, attempt: int, service: str,
        context: ErrorContext | None,
    ) -> None:
        """Handle rate limit response with retry or raise."""
        if attempt >= self.max_retries:
            raise PlatformError(
                "Rate limit exceeded after retries", service,
                status_code=429, context=context,
            )
        delay = self._extract_retry_after(response) or self._backoff(attempt)
        logger.warning(
            f"Rate limit hit, retry after {delay}ms (attempt {attempt + 1})",
            extra={"attempt": attempt + 1, "service": service},
        )
        await asyncio.sleep(delay / 1000)

    async def _handle_transient_error(
        self, e: object, attempt: int, service: str,
        context: ErrorContext | None, status_code: int | None = None,
        retryable: bool = True,
    ) -> None:
        """Handle transient errors with retry or raise."""
        if not retryable:
            raise PlatformError(
                f"Transient failure on non-idempotent request: {e}",
                service, status_code=status_code, context=context,
            )
        if attempt >= self.max_retries:
            raise PlatformError(
                f"Transient failure after {self.max_retries} retries: {e}",
                service, status_code=status_code, context=context,
            )
        delay = self._backoff(attempt)
        logger.warning(
            f"Transient error, retry after {delay}ms: {e}",
            extra={"attempt": attempt + 1, "service": service},
        )
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _extract_retry_after(self, response: httpx.Response) -> int | None:
        """Retry-After header in milliseconds (seconds form only)."""
        val = response.headers.get("retry-after")
        if val and val.strip().isdigit():
            return int(val.strip()) * 1000
        return None
