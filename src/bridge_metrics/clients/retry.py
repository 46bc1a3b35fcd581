from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

import backoff

from ..errors import BridgeDataError, TransientNetworkError, ValidationError
from .bridge_api import ApiResponse
from .rate_limiter import RateLimiter

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RetryExecutor:
    """Runs one request-and-parse operation with bounded retry and backoff.

    Every attempt takes a rate limiter slot, runs under ``timeout_seconds``
    and is classified through the error taxonomy. Only retryable kinds
    (rate limited, transient) are retried; the delay before attempt ``i``
    is ``min(max_delay, initial_delay * multiplier ** (i - 1))``.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        *,
        max_retries: int = 3,
        timeout_seconds: float = 10.0,
        initial_delay: float = 1.0,
        multiplier: float = 2.0,
        max_delay: float = 10.0,
        log: logging.Logger | None = None,
    ):
        if max_retries < 0:
            raise ValueError(f"max_retries must be non-negative, got {max_retries}")
        self.rate_limiter = rate_limiter
        self.max_retries = max_retries
        self.timeout_seconds = timeout_seconds
        self.initial_delay = initial_delay
        self.multiplier = multiplier
        self.max_delay = max_delay
        self.log = log or logger

    def delay_before(self, attempt: int) -> float:
        """Backoff delay preceding the 0-indexed ``attempt`` (``attempt >= 1``)."""
        return min(self.max_delay, self.initial_delay * self.multiplier ** (attempt - 1))

    async def _attempt(
        self,
        request_fn: Callable[[], Awaitable[ApiResponse]],
        parse_fn: Callable[[ApiResponse], T],
    ) -> T:
        await self.rate_limiter.acquire_slot()
        try:
            async with asyncio.timeout(self.timeout_seconds):
                response = await request_fn()
        except TimeoutError as e:
            raise TransientNetworkError(
                f"Request timed out after {self.timeout_seconds}s"
            ) from e

        response.raise_for_status()

        try:
            return parse_fn(response)
        except BridgeDataError:
            raise
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            raise ValidationError(f"Malformed upstream payload: {e}") from e

    async def execute(
        self,
        request_fn: Callable[[], Awaitable[ApiResponse]],
        parse_fn: Callable[[ApiResponse], T],
        *,
        description: str = "request",
    ) -> T:
        """Run ``request_fn`` then ``parse_fn`` with retries.

        Args:
            request_fn: Zero-argument coroutine factory issuing the request
            parse_fn: Turns a 2xx response into the caller's value
            description: Label used in log lines

        Returns:
            Whatever ``parse_fn`` returns for the first successful attempt.

        Raises:
            BridgeDataError: The last classified error, with ``attempts`` set.
        """
        max_tries = self.max_retries + 1

        def _should_giveup(exc: Exception) -> bool:
            return isinstance(exc, BridgeDataError) and not exc.retryable

        def _on_backoff(details: Any) -> None:
            self.log.warning(
                "%s failed (attempt %d of %d), retrying in %.2fs: %s",
                description,
                details["tries"],
                max_tries,
                details["wait"],
                details.get("exception"),
            )

        def _on_giveup(details: Any) -> None:
            exc = details.get("exception")
            if isinstance(exc, BridgeDataError):
                exc.attempts = details["tries"]
                if not exc.retryable:
                    self.log.error(
                        "%s failed with %s error (retry not applicable): %s",
                        description,
                        exc.kind.value,
                        exc,
                    )
                    return
            self.log.error(
                "%s failed after %d attempts: %s",
                description,
                details["tries"],
                exc,
            )

        @backoff.on_exception(
            backoff.expo,
            BridgeDataError,
            max_tries=max_tries,
            giveup=_should_giveup,
            on_backoff=_on_backoff,
            on_giveup=_on_giveup,
            jitter=None,
            base=self.multiplier,
            factor=self.initial_delay,
            max_value=self.max_delay,
        )
        async def _run_with_retry() -> T:
            return await self._attempt(request_fn, parse_fn)

        return await _run_with_retry()
