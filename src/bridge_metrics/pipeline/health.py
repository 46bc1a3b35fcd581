"""Liveness probe."""

from __future__ import annotations

import asyncio

from ..constants import PING_TIMEOUT_SECONDS
from ..domain import isoformat_z, utc_now
from ..state import AppState


async def ping(state: AppState, timeout: float = PING_TIMEOUT_SECONDS) -> dict[str, str]:
    """Report service liveness.

    Issues one lightweight upstream request under ``timeout`` and reports
    ``ok`` whatever the outcome: liveness of this service is decoupled from
    upstream availability. The upstream outcome is only logged.
    """
    log = state.logger
    try:
        async with asyncio.timeout(timeout):
            await state.adapter.check_health(timeout)
        log.debug("Upstream health probe succeeded")
    except Exception as exc:  # liveness must not depend on upstream
        log.warning("Upstream health probe failed: %s", str(exc) or type(exc).__name__)

    return {"status": "ok", "timestamp": isoformat_z(utc_now())}
