"""HTTP provider source with per-attempt timeout and exponential backoff."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import aiohttp

from .errors import FetchError, FetchTimeout, HTTPStatusError, NetworkError, RateLimited
from .interface import PRIMARY, ProviderSource

logger = logging.getLogger(__name__)


class HttpProviderSource(ProviderSource):
    """ProviderSource backed by a single JSON GET endpoint.

    Each attempt carries its own timeout. Failed attempts are retried up to
    `attempts` times in total, sleeping backoff_base * 2**(n-1) seconds after
    the n-th failure. HTTP 429 is classified as RateLimited but takes the
    same retry path as any other failure.

    `payload_key` names the field holding the entry list when the provider
    wraps it in an object (DexScreener returns {"pairs": [...]}); when None
    the body itself must be the list.
    """

    def __init__(
        self,
        name: str,
        url: str,
        role: str = PRIMARY,
        *,
        payload_key: str | None = None,
        timeout: float = 8.0,
        attempts: int = 3,
        backoff_base: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self.name = name
        self.role = role
        self._url = url
        self._payload_key = payload_key
        self._timeout = timeout
        self._attempts = attempts
        self._backoff_base = backoff_base
        self._sleep = sleep
        self._session: aiohttp.ClientSession | None = None

    @property
    def url(self) -> str:
        return self._url

    async def fetch(self) -> list[dict[str, Any]]:
        for attempt in range(1, self._attempts + 1):
            log_fields = {"provider": self.name, "attempt": attempt}
            try:
                payload = await self._attempt()
            except FetchError as exc:
                if attempt == self._attempts:
                    logger.error(
                        "%s: giving up after %d attempts: %s",
                        self.name,
                        attempt,
                        exc,
                        extra={**log_fields, "outcome": "exhausted"},
                    )
                    raise
                delay = self._backoff_base * 2 ** (attempt - 1)
                logger.warning(
                    "%s: attempt %d/%d failed (%s), retrying in %.1fs",
                    self.name,
                    attempt,
                    self._attempts,
                    exc,
                    delay,
                    extra={**log_fields, "outcome": "retry"},
                )
                await self._sleep(delay)
                continue

            entries = self._extract(payload)
            logger.info(
                "%s: received %d entries",
                self.name,
                len(entries),
                extra={**log_fields, "outcome": "success"},
            )
            return entries

        raise AssertionError("unreachable")  # pragma: no cover

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    # --- Internal ---

    async def _attempt(self) -> Any:
        """Perform one GET and decode the JSON body, classifying failures."""
        session = self._get_session()
        logger.debug("%s: GET %s", self.name, self._url)
        try:
            async with session.get(
                self._url, timeout=aiohttp.ClientTimeout(total=self._timeout)
            ) as response:
                if response.status == 429:
                    raise RateLimited(self.name)
                if response.status >= 400:
                    raise HTTPStatusError(self.name, response.status)
                return await response.json(content_type=None)
        except asyncio.TimeoutError as exc:
            raise FetchTimeout(self.name, self._timeout) from exc
        except (aiohttp.ClientError, ValueError) as exc:
            # ValueError covers malformed JSON bodies.
            raise NetworkError(self.name, str(exc) or type(exc).__name__) from exc

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    def _extract(self, payload: Any) -> list[dict[str, Any]]:
        if self._payload_key is not None:
            payload = payload.get(self._payload_key) if isinstance(payload, dict) else None
        if not isinstance(payload, list):
            logger.warning("%s: unexpected payload shape, treating as empty", self.name)
            return []
        return [entry for entry in payload if isinstance(entry, dict)]
