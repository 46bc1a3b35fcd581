from __future__ import annotations

from .bridge_api import ApiResponse, BridgeAPIClient
from .rate_limiter import RateLimiter
from .retry import RetryExecutor

__all__ = ["ApiResponse", "BridgeAPIClient", "RateLimiter", "RetryExecutor"]
