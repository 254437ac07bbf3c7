import pytest

from portfolio_tracker.domain.services.hybrid_merge_engine import (
    HybridMergeEngine,
    calculate_metrics,
    resolve_current_price,
)
from portfolio_tracker.domain.services.summary import summarize_holdings, summarize_views
from portfolio_tracker.domain.services.symbol_mapper import SymbolMapper
from portfolio_tracker.infrastructure.market_data.provider_chain import (
    NamedSource,
    QuoteFetchOrchestrator,
)

from tests.helpers import FakeSource, make_holding, make_quote


def _engine(*sources) -> HybridMergeEngine:
    mapper = SymbolMapper({"SBLIFE": "SBILIFE.NS"}, default_suffix=".NS")
    return HybridMergeEngine(mapper, QuoteFetchOrchestrator([NamedSource(s.name, s) for s in sources]))


class RaisingOrchestrator:
    async def resolve_quote(self, symbol):
        raise RuntimeError("boom")


async def test_live_quote_drives_metrics():
    source = FakeSource("primary", quote=make_quote(price=1100.0))
    view = await _engine(source).build_view(make_holding())

    assert view.is_live
    assert view.provider_symbol == "TCS.NS"
    assert view.live_data.symbol == "TCS.NS"
    assert view.calculated.current_price == 1100.0
    assert view.calculated.present_value == 11000.0
    assert view.calculated.gain_loss == 1000.0
    assert view.calculated.gain_loss_percent == pytest.approx(10.0)
    assert view.calculated.portfolio_percentage == 0.2
    assert source.calls == ["TCS.NS"]


async def test_all_sources_fail_with_zero_cmp_uses_purchase_price():
    holding = make_holding(CMP=0)
    view = await _engine(FakeSource("a"), FakeSource("b")).build_view(holding)

    assert view.live_data is None
    assert view.calculated.current_price == 1000.0
    assert view.calculated.present_value == 10000.0
    assert view.calculated.gain_loss == 0.0
    assert view.calculated.gain_loss_percent == 0.0


async def test_all_sources_fail_uses_stored_price():
    view = await _engine(FakeSource("a")).build_view(make_holding())
    assert view.calculated.current_price == 1050.0
    assert view.calculated.present_value == 10500.0


def test_zero_investment_gives_zero_percent():
    holding = make_holding(Investment=0)
    metrics = calculate_metrics(holding, 1100.0)
    assert metrics.gain_loss == 11000.0
    assert metrics.gain_loss_percent == 0.0


def test_missing_prices_resolve_to_zero():
    holding = make_holding(**{"CMP": None, "Purchase Price": None})
    assert resolve_current_price(holding, None) == 0.0


async def test_no_listing_code_skips_fetch():
    source = FakeSource("primary", quote=make_quote())
    view = await _engine(source).build_view(make_holding(**{"NSE/BSE": None}))

    assert view.live_data is None
    assert view.provider_symbol is None
    assert source.calls == []


async def test_mapped_symbol_is_requested():
    source = FakeSource("primary", quote=make_quote(price=1400.0))
    view = await _engine(source).build_view(make_holding(**{"NSE/BSE": "SBLIFE"}))
    assert source.calls == ["SBILIFE.NS"]
    assert view.provider_symbol == "SBILIFE.NS"


async def test_orchestrator_error_falls_back_to_static():
    engine = HybridMergeEngine(SymbolMapper({}), RaisingOrchestrator())
    view = await engine.build_view(make_holding())
    assert view.live_data is None
    assert view.calculated.current_price == 1050.0


async def test_refresh_falls_back_to_stored_not_last_live():
    source = FakeSource("primary", quote=make_quote(price=1100.0))
    engine = _engine(source)
    first = await engine.build_view(make_holding())

    source.quote = None
    refreshed = await engine.refresh_view(first)

    assert refreshed is not first
    assert first.calculated.current_price == 1100.0
    assert refreshed.live_data is None
    assert refreshed.calculated.current_price == 1050.0


def test_static_view_does_not_fetch():
    source = FakeSource("primary", quote=make_quote())
    view = _engine(source).build_static_view(make_holding())
    assert view.live_data is None
    assert view.provider_symbol == "TCS.NS"
    assert source.calls == []


async def test_summaries():
    source = FakeSource("primary", quote=make_quote(price=1100.0))
    holdings = [make_holding(), make_holding(**{"No": 2, "Investment": 0, "Qty": 0})]
    views = await _engine(source).build_views(holdings)

    live = summarize_views(views)
    assert live.total_stocks == 2
    assert live.total_investment == 10000.0
    assert live.total_present_value == 11000.0
    assert live.total_gain_loss_percent == pytest.approx(10.0)

    stored = summarize_holdings([make_holding(**{"Present value": 10500})])
    assert stored.total_present_value == 10500.0
    assert stored.total_gain_loss == 500.0

    assert summarize_views([]).total_gain_loss_percent == 0.0
