"""Source adapter contract and the shared HTTP machinery behind it."""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any, ClassVar, Protocol

import httpx

from cacaw_search.data import Query, SearchResponse
from cacaw_search.errors import AdapterError, AdapterErrorKind, RateLimitExceeded
from cacaw_search.ratelimit import FixedWindowRateLimiter, RateLimitPolicy

logger = logging.getLogger(__name__)

USER_AGENT = "CacawInventory/1.0 (https://cacaw.site)"


@dataclass(frozen=True)
class AdapterCapabilities:
    """Which query filters a source can honour.

    Filters a source cannot honour are dropped from the outbound request.
    """

    supports_dimension_filter: bool = False
    supports_image_kind_filter: bool = False
    supports_color_filter: bool = False
    supports_usage_rights_filter: bool = False
    supports_safety: bool = False


class SourceAdapter(Protocol):
    """Interface every content source implements."""

    name: str
    rate_limit: RateLimitPolicy
    max_results: int
    capabilities: AdapterCapabilities

    async def search(self, query: Query) -> SearchResponse:
        """Search the source.

        Raises:
            AdapterError: On any failure; partial results are never returned.
        """
        ...

    async def download_binary(self, url: str) -> bytes:
        """Fetch the raw bytes of an asset.

        Raises:
            AdapterError: On any failure.
        """
        ...

    async def validate_credentials(self) -> bool:
        """Best-effort liveness/credential check. Never raises."""
        ...


def bucket(value: int | None, tiers: list[tuple[int, str]]) -> str | None:
    """Map ``value`` onto the first tier whose threshold it reaches.

    ``tiers`` must be ordered from the largest threshold down. Returns None
    when ``value`` is unset or below every threshold.
    """
    if not value:
        return None
    for threshold, label in tiers:
        if value >= threshold:
            return label
    return None


class HttpImageAdapter(ABC):
    """Base class for adapters that talk to a JSON-over-HTTP image API.

    Subclasses set the class-level declarations and implement
    ``_build_search_request``, ``_parse_search_response`` and
    ``_build_validation_request``. Everything else (rate limiting, transport
    timeouts, status mapping, JSON decoding) lives here.

    Args:
        request_timeout: Per-request transport timeout in seconds.
        requests_per_minute: Override of the declared per-minute quota.
        clock: Time source for the rate limiter.
    """

    name: ClassVar[str]
    display_name: ClassVar[str]
    rate_limit: ClassVar[RateLimitPolicy]
    max_results: ClassVar[int]
    default_count: ClassVar[int] = 20
    capabilities: ClassVar[AdapterCapabilities]

    def __init__(
        self,
        *,
        request_timeout: float = 10.0,
        requests_per_minute: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        policy = self.rate_limit
        if requests_per_minute is not None:
            policy = replace(policy, requests_per_minute=requests_per_minute)
        self._limiter = FixedWindowRateLimiter(policy, clock=clock)
        self._request_timeout = request_timeout

    @property
    def limiter(self) -> FixedWindowRateLimiter:
        return self._limiter

    async def search(self, query: Query) -> SearchResponse:
        """Search the source for ``query``.

        The rate limiter is consulted first; a denial fails fast without any
        network traffic.

        Raises:
            AdapterError: On any failure.
        """
        self._acquire_slot()
        url, params, headers = self._build_search_request(query)
        logger.debug(f"{self.name} search params: {_redact(params)}")
        data = await self._get_json(url, params=params, headers=headers)
        try:
            return self._parse_search_response(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise AdapterError(
                AdapterErrorKind.MALFORMED,
                f"Unexpected {self.display_name} response: {e!r}",
                provider=self.name,
            ) from e

    async def download_binary(self, url: str) -> bytes:
        """Fetch the raw asset bytes.

        Raises:
            AdapterError: On any failure.
        """
        headers = {"Accept": "image/*", "User-Agent": USER_AGENT, **self._auth_headers()}
        response = await self._request(url, headers=headers)
        return response.content

    async def validate_credentials(self) -> bool:
        """Issue a minimal request and report whether it succeeded."""
        try:
            url, params, headers = self._build_validation_request()
            await self._request(url, params=params, headers=headers)
        except Exception as e:
            logger.info(f"{self.name} credential check failed: {e}")
            return False
        return True

    # -- subclass hooks --

    @abstractmethod
    def _build_search_request(
        self, query: Query
    ) -> tuple[str, dict[str, str | int], dict[str, str]]:
        """Return (url, params, headers) for a search call."""

    @abstractmethod
    def _parse_search_response(self, data: Any) -> SearchResponse:
        """Turn the decoded JSON body into a SearchResponse.

        May raise KeyError/TypeError/ValueError on unexpected shapes; those
        are reported as MALFORMED.
        """

    @abstractmethod
    def _build_validation_request(
        self,
    ) -> tuple[str, dict[str, str | int], dict[str, str]]:
        """Return (url, params, headers) for a cheap credential probe."""

    def _auth_headers(self) -> dict[str, str]:
        return {}

    # -- shared helpers --

    def _page_size(self, query: Query) -> int:
        return max(1, min(query.desired_count or self.default_count, self.max_results))

    def _acquire_slot(self) -> None:
        try:
            self._limiter.acquire()
        except RateLimitExceeded as e:
            raise AdapterError(
                AdapterErrorKind.RATE_LIMITED,
                str(e),
                provider=self.name,
                retry_after_ms=e.retry_after_ms,
            ) from e

    async def _request(
        self,
        url: str,
        *,
        params: dict[str, str | int] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        return await http_get(
            url,
            params=params,
            headers=headers,
            timeout=self._request_timeout,
            provider=self.name,
            display_name=self.display_name,
        )

    async def _get_json(
        self,
        url: str,
        *,
        params: dict[str, str | int] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        response = await self._request(url, params=params, headers=headers)
        try:
            return response.json()
        except ValueError as e:
            raise AdapterError(
                AdapterErrorKind.MALFORMED,
                f"{self.display_name} returned a non-JSON body",
                provider=self.name,
            ) from e


def _redact(params: dict[str, str | int]) -> dict[str, str | int]:
    return {k: ("***" if k in {"key", "apikey", "api_key"} else v) for k, v in params.items()}


async def http_get(
    url: str,
    *,
    params: dict[str, str | int] | None = None,
    headers: dict[str, str] | None = None,
    timeout: float = 10.0,
    provider: str | None = None,
    display_name: str = "upstream",
) -> httpx.Response:
    """GET ``url`` and map every failure onto ``AdapterError``.

    Raises:
        AdapterError: TIMEOUT on transport timeouts, UPSTREAM on other
            transport errors and unexpected statuses, INVALID_CREDENTIALS on
            401/403, RATE_LIMITED on 429.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            response = await client.get(url, params=params, headers=headers)
    except httpx.TimeoutException as e:
        raise AdapterError(
            AdapterErrorKind.TIMEOUT,
            f"{display_name} request timed out",
            provider=provider,
        ) from e
    except httpx.HTTPError as e:
        raise AdapterError(
            AdapterErrorKind.UPSTREAM,
            f"Unable to connect to {display_name}: {e}",
            provider=provider,
        ) from e

    raise_for_status(response, provider=provider, display_name=display_name)
    return response


def raise_for_status(
    response: httpx.Response,
    *,
    provider: str | None = None,
    display_name: str = "upstream",
) -> None:
    status = response.status_code
    if status < 400:
        return
    if status in (401, 403):
        raise AdapterError(
            AdapterErrorKind.INVALID_CREDENTIALS,
            f"{display_name} API key is invalid or quota exhausted ({status})",
            provider=provider,
            status_code=status,
        )
    if status == 429:
        retry_after = response.headers.get("Retry-After", "")
        raise AdapterError(
            AdapterErrorKind.RATE_LIMITED,
            f"{display_name} API rate limit exceeded",
            provider=provider,
            retry_after_ms=int(retry_after) * 1000 if retry_after.isdigit() else None,
            status_code=status,
        )
    raise AdapterError(
        AdapterErrorKind.UPSTREAM,
        f"{display_name} API error: {status}",
        provider=provider,
        status_code=status,
    )
