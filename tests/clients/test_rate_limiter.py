import asyncio
import time

import pytest

from bridge_metrics.clients.rate_limiter import RateLimiter


def test_min_interval_is_floored_at_100ms():
    assert RateLimiter(100).min_interval == pytest.approx(0.1)
    assert RateLimiter(10).min_interval == pytest.approx(0.1)
    assert RateLimiter(4).min_interval == pytest.approx(0.25)


def test_rejects_non_positive_rate():
    with pytest.raises(ValueError):
        RateLimiter(0)


@pytest.mark.asyncio
async def test_first_slot_is_granted_immediately():
    limiter = RateLimiter(10)

    start = time.monotonic()
    await limiter.acquire_slot()

    assert time.monotonic() - start < 0.05


@pytest.mark.asyncio
async def test_sequential_calls_are_spaced():
    limiter = RateLimiter(10)
    calls = 4

    start = time.monotonic()
    for _ in range(calls):
        await limiter.acquire_slot()
    elapsed = time.monotonic() - start

    assert elapsed >= (calls - 1) * limiter.min_interval - 0.01


@pytest.mark.asyncio
async def test_concurrent_callers_are_spaced():
    limiter = RateLimiter(10)
    grants: list[float] = []

    async def caller() -> None:
        await limiter.acquire_slot()
        grants.append(time.monotonic())

    await asyncio.gather(*(caller() for _ in range(4)))

    grants.sort()
    gaps = [later - earlier for earlier, later in zip(grants, grants[1:])]
    assert all(gap >= limiter.min_interval - 0.01 for gap in gaps)


@pytest.mark.asyncio
async def test_no_wait_once_interval_has_passed():
    now = [100.0]
    limiter = RateLimiter(10, clock=lambda: now[0])

    await limiter.acquire_slot()
    now[0] += 1.0

    start = time.monotonic()
    await limiter.acquire_slot()

    assert time.monotonic() - start < 0.05
