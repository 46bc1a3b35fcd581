"""HTTP transport for the bridge metrics API.

The client only moves bytes and maps transport failures to the error
taxonomy. Status classification lives on ``ApiResponse.raise_for_status``;
retries live in ``RetryExecutor``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Mapping

import requests

from ..constants import API_KEY_HEADER, DEFAULT_RETRY_AFTER_SECONDS
from ..errors import (
    ConfigurationError,
    HttpStatusError,
    RateLimitedError,
    TransientNetworkError,
)
from ..logger import get_logger

logger = get_logger(__name__)

# Requests that can never succeed no matter how often they are retried
MALFORMED_REQUEST_ERRORS = (
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
    requests.exceptions.InvalidURL,
    requests.exceptions.InvalidHeader,
    requests.exceptions.URLRequired,
)


def parse_retry_after(value: str | None) -> float:
    """Parse a Retry-After header given as seconds or as an HTTP date."""
    if not value:
        return DEFAULT_RETRY_AFTER_SECONDS
    value = value.strip()
    if value.isascii() and value.isdigit():
        return float(value)
    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER_SECONDS
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)
    return max(0.0, (retry_at - datetime.now(timezone.utc)).total_seconds())


@dataclass(frozen=True)
class ApiResponse:
    """Raw upstream answer: status, headers and decoded body."""

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    def raise_for_status(self) -> None:
        """Raise the classified error for a non-2xx status.

        Raises:
            RateLimitedError: 429, with the Retry-After hint.
            ConfigurationError: 401 or 403.
            TransientNetworkError: 5xx.
            HttpStatusError: any other non-2xx status.
        """
        if self.ok:
            return
        if self.status == 429:
            retry_after = parse_retry_after(self.header("Retry-After"))
            raise RateLimitedError(
                f"Rate limited by upstream. Retry after {retry_after:.0f} seconds",
                retry_after=retry_after,
            )
        if self.status in (401, 403):
            raise ConfigurationError(
                f"Upstream rejected credentials (HTTP {self.status})",
                status=self.status,
            )
        if self.status >= 500:
            raise TransientNetworkError(
                f"Upstream unavailable (HTTP {self.status})", status=self.status
            )
        raise HttpStatusError(f"Unexpected HTTP {self.status}", status=self.status)


def _decode_body(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class BridgeAPIClient:
    """Client for the abstract quote/volume/assets/health capability.

    Blocking ``requests`` calls run in a worker thread so callers stay async.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._headers = {"Accept": "application/json"}
        if api_key:
            self._headers[API_KEY_HEADER] = api_key

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        params: Mapping[str, Any] | None = None,
        timeout: float,
    ) -> ApiResponse:
        """Issue one request and return the raw response.

        Raises:
            ConfigurationError: If the request itself is malformed.
            TransientNetworkError: On timeouts and connection failures.
        """
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = await asyncio.to_thread(
                self._session.request,
                method,
                url,
                params=params,
                json=body,
                headers=self._headers,
                timeout=timeout,
            )
        except MALFORMED_REQUEST_ERRORS as e:
            raise ConfigurationError(f"Malformed request to {url}: {e}") from e
        except requests.exceptions.Timeout as e:
            raise TransientNetworkError(
                f"Request to {url} timed out after {timeout}s"
            ) from e
        except requests.exceptions.RequestException as e:
            raise TransientNetworkError(f"Transport failure calling {url}: {e}") from e

        return ApiResponse(
            status=response.status_code,
            headers=dict(response.headers),
            body=_decode_body(response),
        )

    def close(self) -> None:
        self._session.close()
