"""
base.py — Common request / normalise / degrade cycle for upstream sources.

Error Handling Strategy
========================
    Network errors (DNS, connection refused)   → NETWORK_ERROR
    Request exceeded the fixed timeout         → TIMEOUT
    HTTP 4xx/5xx                               → API_ERROR
    Body is not JSON / expected arrays missing → PARSE_ERROR
    Well-formed but empty                      → NO_DATA
    Anything else raised while normalising     → PARSE_ERROR

Every one of these ends as a ``SourceResult.failure``; ``fetch()`` never
raises. There are no retries: one attempt per source per cycle, and the
next refresh heals a transient failure.

Only successful results are cached, so a failed source is re-tried on the
next call rather than pinned as failed for the whole TTL window.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

import httpx

from damwatch.core.cache import TTLCache, make_cache_key
from damwatch.core.config import Settings, get_settings
from damwatch.core.errors import SourceUnavailableError
from .models import FetchStatus, SourceKind, SourceResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0  # seconds

T = TypeVar("T")


async def fetch_json(
    http: httpx.AsyncClient,
    source: SourceKind,
    url: str,
    params: Dict[str, Any],
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """
    Single GET returning decoded JSON.

    Raises SourceUnavailableError with ``details["status"]`` set to the
    matching FetchStatus value.
    """
    try:
        response = await http.get(
            url,
            params=params,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )
        response.raise_for_status()
    except httpx.TimeoutException as e:
        raise SourceUnavailableError(
            source.value, f"timed out after {timeout:.0f}s", status=FetchStatus.TIMEOUT.value,
        ) from e
    except httpx.HTTPStatusError as e:
        raise SourceUnavailableError(
            source.value,
            f"HTTP {e.response.status_code}",
            status=FetchStatus.API_ERROR.value,
            status_code=e.response.status_code,
        ) from e
    except httpx.RequestError as e:
        raise SourceUnavailableError(
            source.value, f"{type(e).__name__}: {e}", status=FetchStatus.NETWORK_ERROR.value,
        ) from e

    try:
        return response.json()
    except ValueError as e:
        raise SourceUnavailableError(
            source.value, "response body is not valid JSON", status=FetchStatus.PARSE_ERROR.value,
        ) from e


def parse_error(source: SourceKind, message: str) -> SourceUnavailableError:
    return SourceUnavailableError(source.value, message, status=FetchStatus.PARSE_ERROR.value)


def no_data(source: SourceKind, message: str) -> SourceUnavailableError:
    return SourceUnavailableError(source.value, message, status=FetchStatus.NO_DATA.value)


class SourceClient(ABC, Generic[T]):
    """
    One upstream API: request, normalise, degrade.

    Subclasses set ``kind`` and ``label`` and implement ``_request`` and
    ``_normalise``. ``_request`` returns decoded JSON; ``_normalise`` turns it
    into the typed payload and raises SourceUnavailableError (via
    ``parse_error`` / ``no_data``) when the payload is unusable.
    """

    kind: SourceKind
    label: str = ""

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        cache: Optional[TTLCache] = None,
        timeout: Optional[float] = None,
        config: Optional[Settings] = None,
        today: Callable[[], date] = date.today,
    ):
        self.http = http
        self.cache = cache
        self.config = config or get_settings()
        self.timeout = timeout if timeout is not None else self.default_timeout()
        self.today = today

    def default_timeout(self) -> float:
        return self.config.SOURCE_TIMEOUT_SECONDS

    def cache_key(self, latitude: float, longitude: float, **params: Any) -> str:
        return make_cache_key(self.kind.value, latitude, longitude, **params)

    async def fetch(self, latitude: float, longitude: float, **params: Any) -> SourceResult[T]:
        """Fetch and normalise one payload. Never raises."""
        if not (-90.0 <= latitude <= 90.0) or not (-180.0 <= longitude <= 180.0):
            return SourceResult.failure(
                self.kind,
                FetchStatus.INVALID_INPUT,
                f"Coordinates out of range: ({latitude}, {longitude})",
            )

        key = self.cache_key(latitude, longitude, **params)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Cache HIT: %s", key, extra={"source": self.kind.value, "cache_hit": True})
                return cached

        start = time.monotonic()
        try:
            raw = await self._request(latitude, longitude, **params)
            data = self._normalise(raw, latitude, longitude, **params)
        except SourceUnavailableError as e:
            elapsed = int((time.monotonic() - start) * 1000)
            status = FetchStatus(e.details.get("status", FetchStatus.API_ERROR.value))
            logger.warning(
                "[%s] %s for (%s, %s)", self.kind.value, e.reason, latitude, longitude,
                extra={"source": self.kind.value, "status": status.value, "duration_ms": elapsed},
            )
            return SourceResult.failure(self.kind, status, e.reason, fetch_duration_ms=elapsed)
        except Exception as e:
            elapsed = int((time.monotonic() - start) * 1000)
            logger.warning(
                "[%s] unexpected payload for (%s, %s): %s", self.kind.value, latitude, longitude, e,
                extra={"source": self.kind.value, "duration_ms": elapsed},
            )
            return SourceResult.failure(
                self.kind,
                FetchStatus.PARSE_ERROR,
                f"Unexpected error: {type(e).__name__}: {e}",
                fetch_duration_ms=elapsed,
            )

        elapsed = int((time.monotonic() - start) * 1000)
        result = SourceResult.success(self.kind, data, label=self.label, fetch_duration_ms=elapsed)
        if self.cache is not None:
            self.cache.set(key, result)
        logger.debug(
            "Fetched %s for (%s, %s) in %d ms", self.kind.value, latitude, longitude, elapsed,
            extra={"source": self.kind.value, "duration_ms": elapsed},
        )
        return result

    async def _get(self, url: str, params: Dict[str, Any]) -> Any:
        return await fetch_json(self.http, self.kind, url, params, timeout=self.timeout)

    @abstractmethod
    async def _request(self, latitude: float, longitude: float, **params: Any) -> Any:
        ...

    @abstractmethod
    def _normalise(self, raw: Any, latitude: float, longitude: float, **params: Any) -> T:
        ...
