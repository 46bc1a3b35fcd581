import asyncio

import pytest

from bridge_metrics.domain import Provenance, SnapshotRequest, SnapshotStatus
from bridge_metrics.errors import SnapshotError
from bridge_metrics.pipeline import run as pipeline_run
from bridge_metrics.settings import ResilienceMode


@pytest.mark.asyncio
async def test_run_snapshot_completes_within_deadline(make_state, routes):
    state = make_state(snapshot_deadline_seconds=5)
    request = SnapshotRequest.build(routes, [1_000_000])

    snapshot = await pipeline_run.run_snapshot(state, request)

    assert snapshot.status is SnapshotStatus.LIVE


@pytest.mark.asyncio
async def test_deadline_keeps_completed_items(make_state, routes):
    state = make_state(snapshot_deadline_seconds=0.2)
    state.adapter.hangs.add("assets")
    request = SnapshotRequest.build(routes, [1_000_000])

    snapshot = await pipeline_run.run_snapshot(state, request)

    assert snapshot.fallbacks == ("listed_assets/all",)
    assert snapshot.listed_assets.provenance is Provenance.ESTIMATED
    assert all(v.provenance is Provenance.LIVE for v in snapshot.volumes)
    assert all(r.provenance is Provenance.LIVE for r in snapshot.rates)
    assert all(d.provenance is Provenance.LIVE for d in snapshot.liquidity)


@pytest.mark.asyncio
async def test_deadline_in_strict_mode_raises(make_state, routes):
    state = make_state(
        snapshot_deadline_seconds=0.1, resilience_mode=ResilienceMode.STRICT
    )
    state.adapter.hangs.add("volume:24h")
    request = SnapshotRequest.build(routes, [1_000_000])

    with pytest.raises(SnapshotError) as exc_info:
        await pipeline_run.run_snapshot(state, request)

    assert [label for label, _ in exc_info.value.failures] == ["deadline"]


@pytest.mark.asyncio
async def test_branches_are_cancelled_at_deadline(make_state, routes, monkeypatch):
    cancelled: list[str] = []

    async def hanging_branch(ctx):
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            cancelled.append("volumes")
            raise

    monkeypatch.setattr(pipeline_run, "collect_volumes", hanging_branch)
    state = make_state(snapshot_deadline_seconds=0.2)
    request = SnapshotRequest.build(routes, [1_000_000], ["24h", "30d"])

    snapshot = await pipeline_run.run_snapshot(state, request)

    assert cancelled == ["volumes"]
    assert [v.window for v in snapshot.volumes] == ["24h", "30d"]
    assert snapshot.fallbacks == ("volumes/24h", "volumes/30d")
