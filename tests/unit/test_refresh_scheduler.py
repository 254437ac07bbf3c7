import asyncio

import pytest

from portfolio_tracker.domain.services.hybrid_merge_engine import HybridMergeEngine
from portfolio_tracker.domain.services.symbol_mapper import SymbolMapper
from portfolio_tracker.infrastructure.market_data.provider_chain import (
    NamedSource,
    QuoteFetchOrchestrator,
)
from portfolio_tracker.realtime.refresh_scheduler import (
    STATE_IDLE,
    STATE_RUNNING,
    RefreshScheduler,
)
from portfolio_tracker.realtime.subscription_bus import SubscriptionBus

from tests.helpers import FakeSource, make_holding, make_quote


@pytest.fixture()
def source():
    return FakeSource("primary", quote=make_quote(price=1100.0))


@pytest.fixture()
def engine(source):
    return HybridMergeEngine(SymbolMapper({}), QuoteFetchOrchestrator([NamedSource("primary", source)]))


@pytest.fixture()
def bus():
    return SubscriptionBus()


@pytest.fixture()
async def scheduler(engine, bus):
    built = RefreshScheduler(engine, bus, interval_seconds=3600)
    yield built
    built.shutdown()


@pytest.fixture()
def initial_views(engine):
    return [
        engine.build_static_view(make_holding()),
        engine.build_static_view(make_holding(**{"No": 2, "NSE/BSE": "INFY"})),
    ]


async def _wait_for_calls(source, count=1):
    for _ in range(100):
        if len(source.calls) >= count:
            return
        await asyncio.sleep(0.01)
    raise AssertionError("source was never called")


async def test_start_twice_keeps_one_timer(scheduler, initial_views):
    scheduler.start(initial_views)
    scheduler.start(initial_views)

    assert scheduler.state == STATE_RUNNING
    assert scheduler.active_jobs() == 1


async def test_start_twice_publishes_at_single_timer_rate(engine, bus, initial_views):
    scheduler = RefreshScheduler(engine, bus, interval_seconds=0.1)
    published = []
    bus.subscribe(published.append)
    try:
        scheduler.start(initial_views)
        scheduler.start(initial_views)
        await asyncio.sleep(0.35)
    finally:
        scheduler.shutdown()

    # Two live timers would publish about twice as often
    assert 2 <= len(published) <= 4


async def test_stop_returns_to_idle(scheduler, initial_views):
    scheduler.start(initial_views)
    scheduler.stop()

    assert scheduler.state == STATE_IDLE
    assert scheduler.active_jobs() == 0
    # Stopping twice is harmless
    scheduler.stop()


async def test_tick_publishes_new_collection(scheduler, bus, initial_views):
    published = []
    bus.subscribe(published.append)
    scheduler.start(initial_views)

    await scheduler.tick()

    assert len(published) == 1
    refreshed = published[0]
    assert len(refreshed) == 2
    assert all(view.is_live for view in refreshed)
    assert refreshed[0] is not initial_views[0]
    assert refreshed[0].calculated.current_price == 1100.0
    assert scheduler.last_refreshed is not None
    # Old collection untouched
    assert initial_views[0].live_data is None


async def test_tick_when_idle_does_nothing(scheduler, bus, source, initial_views):
    published = []
    bus.subscribe(published.append)
    scheduler.seed(initial_views)

    await scheduler.tick()

    assert published == []
    assert source.calls == []


async def test_refresh_now_works_without_timer(scheduler, initial_views):
    scheduler.seed(initial_views)
    refreshed = await scheduler.refresh_now()
    assert [v.is_live for v in refreshed] == [True, True]
    assert scheduler.views == refreshed


async def test_overlapping_refresh_is_skipped(scheduler, bus, source, initial_views):
    source.gate = asyncio.Event()
    published = []
    bus.subscribe(published.append)
    scheduler.seed(initial_views)

    first = asyncio.create_task(scheduler.refresh_now())
    await _wait_for_calls(source)

    assert await scheduler.refresh_now() is None

    source.gate.set()
    assert len(await first) == 2
    assert len(published) == 1


async def test_stop_discards_in_flight_results(scheduler, bus, source, initial_views):
    source.gate = asyncio.Event()
    published = []
    bus.subscribe(published.append)
    scheduler.start(initial_views)

    tick = asyncio.create_task(scheduler.tick())
    await _wait_for_calls(source)
    scheduler.stop()
    source.gate.set()
    await tick

    assert published == []
    assert all(not view.is_live for view in scheduler.views)


async def test_failed_refresh_falls_back_to_stored_price(scheduler, source, initial_views):
    scheduler.seed(initial_views)
    await scheduler.refresh_now()

    source.quote = None
    refreshed = await scheduler.refresh_now()

    assert refreshed[0].live_data is None
    assert refreshed[0].calculated.current_price == 1050.0


async def test_timer_fires_on_interval(engine, bus, initial_views):
    scheduler = RefreshScheduler(engine, bus, interval_seconds=0.1)
    published = []
    bus.subscribe(published.append)
    try:
        scheduler.start(initial_views)
        await asyncio.sleep(0.55)
    finally:
        scheduler.shutdown()

    assert 2 <= len(published) <= 6
