"""Error taxonomy shared by adapters, the rate limiter and the aggregator."""

from enum import StrEnum


class AdapterErrorKind(StrEnum):
    """Why an adapter call failed."""

    INVALID_CREDENTIALS = "invalid_credentials"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    UPSTREAM = "upstream"
    MALFORMED = "malformed"


class AdapterError(Exception):
    """Failure of a single adapter call.

    Args:
        kind: Failure category.
        message: Human-readable detail.
        provider: Name of the adapter that failed.
        retry_after_ms: For ``RATE_LIMITED``, how long to back off.
        status_code: Upstream HTTP status, when there was one.
    """

    def __init__(
        self,
        kind: AdapterErrorKind,
        message: str,
        *,
        provider: str | None = None,
        retry_after_ms: int | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.provider = provider
        self.retry_after_ms = retry_after_ms
        self.status_code = status_code

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class RateLimitExceeded(Exception):
    """Raised by the rate limiter when the current window is full."""

    def __init__(self, retry_after_ms: int) -> None:
        super().__init__(f"Rate limit exceeded. Please wait {-(-retry_after_ms // 1000)} seconds.")
        self.retry_after_ms = retry_after_ms
