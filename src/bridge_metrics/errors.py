"""Error taxonomy shared by the transport, retry and pipeline layers."""

from __future__ import annotations

from enum import Enum

from .constants import DEFAULT_RETRY_AFTER_SECONDS


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    RATE_LIMITED = "rate_limited"
    TRANSIENT = "transient"
    VALIDATION = "validation"
    HTTP = "http"


RETRYABLE_KINDS = frozenset({ErrorKind.RATE_LIMITED, ErrorKind.TRANSIENT})


class BridgeDataError(Exception):
    """Base class for every classified upstream failure.

    Subclasses pin ``kind``; the retry policy only ever looks at ``kind``.
    """

    kind: ErrorKind = ErrorKind.HTTP

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.status = status
        self.attempts = 0

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS


class ConfigurationError(BridgeDataError):
    """Bad or missing credentials, unauthorized access, malformed requests."""

    kind = ErrorKind.CONFIGURATION


class RateLimitedError(BridgeDataError):
    """Upstream answered 429. Carries the Retry-After hint in seconds."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(
        self,
        message: str,
        *,
        retry_after: float = DEFAULT_RETRY_AFTER_SECONDS,
        status: int | None = 429,
    ):
        super().__init__(message, status=status)
        self.retry_after = retry_after


class TransientNetworkError(BridgeDataError):
    """Timeouts, connection failures and 5xx answers."""

    kind = ErrorKind.TRANSIENT


class ValidationError(BridgeDataError):
    """Malformed upstream payload or invalid amounts/decimals."""

    kind = ErrorKind.VALIDATION


class HttpStatusError(BridgeDataError):
    """Any other non-2xx answer."""

    kind = ErrorKind.HTTP


class SnapshotError(Exception):
    """Raised when a snapshot cannot be produced under the active policy."""

    def __init__(self, message: str, failures: list[tuple[str, BaseException]]):
        super().__init__(message)
        self.failures = failures
