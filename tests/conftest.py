import json
from pathlib import Path
from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from portfolio_tracker.api.routes import portfolio, quotes
from portfolio_tracker.config import Settings
from portfolio_tracker.container import Container
from portfolio_tracker.domain.services.config_engine import ConfigEngine
from portfolio_tracker.domain.services.hybrid_merge_engine import HybridMergeEngine
from portfolio_tracker.domain.services.symbol_mapper import SymbolMapper
from portfolio_tracker.infrastructure.market_data.provider_chain import (
    NamedSource,
    QuoteFetchOrchestrator,
)
from portfolio_tracker.realtime.refresh_scheduler import RefreshScheduler
from portfolio_tracker.realtime.subscription_bus import SubscriptionBus
from portfolio_tracker.services.portfolio_service import PortfolioService

from tests.helpers import FakeFundamentals, FakeSource, make_quote

REPO_ROOT = Path(__file__).resolve().parents[1]

SNAPSHOT = {
    "metadata": {
        "source_file": "portfolio.xlsx",
        "total_rows": 5,
        "total_columns": 9,
        "columns": ["No", "Particulars", "Purchase Price", "Qty", "Investment",
                    "Portfolio (%)", "NSE/BSE", "CMP", "Present value"],
    },
    "data": [
        {"No": None, "Particulars": "Particulars", "NSE/BSE": None},
        {"No": None, "Particulars": "IT Sector", "Investment": 30000},
        {"No": 1, "Particulars": "Tata Consultancy Services", "Purchase Price": 1000, "Qty": 10,
         "Investment": 10000, "Portfolio (%)": 0.25, "NSE/BSE": "TCS", "CMP": 1050,
         "Present value": 10500},
        {"No": 2, "Particulars": "SBI Life Insurance", "Purchase Price": 1500, "Qty": 10,
         "Investment": 15000, "Portfolio (%)": 0.5, "NSE/BSE": "SBLIFE", "CMP": 0,
         "Present value": None},
        {"No": 3, "Particulars": "Reliance Industries", "Purchase Price": 2400, "Qty": 5,
         "Investment": 12000, "Portfolio (%)": 0.25, "NSE/BSE": 500325, "CMP": 2500,
         "Present value": 12500},
        {"No": 4, "Particulars": "Unlisted Holding", "Purchase Price": 100, "Qty": 10,
         "Investment": 1000, "Portfolio (%)": 0.0, "NSE/BSE": None, "CMP": None},
    ],
}


@pytest.fixture()
def config_engine() -> ConfigEngine:
    engine = ConfigEngine(REPO_ROOT / "config")
    engine.load_all()
    return engine


@pytest.fixture()
def snapshot_path(tmp_path) -> Path:
    path = tmp_path / "data.json"
    path.write_text(json.dumps(SNAPSHOT), encoding="utf-8")
    return path


@pytest.fixture()
def test_settings(snapshot_path) -> Settings:
    return Settings(
        _env_file=None,
        CONFIG_DIR=str(REPO_ROOT / "config"),
        PORTFOLIO_SNAPSHOT_PATH=str(snapshot_path),
        REFRESH_ENABLED=False,
    )


@pytest.fixture()
def primary() -> FakeSource:
    return FakeSource("primary", quote=make_quote(price=1100.0, source="Primary"))


@pytest.fixture()
def scrape() -> FakeSource:
    return FakeSource("scrape", quote=make_quote(price=990.0, source="Scrape"))


@pytest.fixture()
async def container(test_settings, config_engine, primary, scrape) -> AsyncGenerator[Container, None]:
    mapper = SymbolMapper.from_config(config_engine)
    orchestrator = QuoteFetchOrchestrator([
        NamedSource("primary", primary),
        NamedSource("scrape", scrape),
    ])
    engine = HybridMergeEngine(mapper, orchestrator)
    bus = SubscriptionBus()
    scheduler = RefreshScheduler(engine, bus, interval_seconds=3600)
    built = Container(
        settings=test_settings,
        mapper=mapper,
        orchestrator=orchestrator,
        scrape_sources=("scrape",),
        fundamentals=FakeFundamentals(),
        portfolio=PortfolioService(Path(test_settings.PORTFOLIO_SNAPSHOT_PATH)),
        engine=engine,
        bus=bus,
        scheduler=scheduler,
    )
    yield built
    scheduler.shutdown()


@pytest.fixture()
async def app(container, primary, scrape) -> FastAPI:
    app = FastAPI()
    app.include_router(quotes.router, prefix="/api", tags=["Quotes"])
    app.include_router(portfolio.router, prefix="/api/v1/portfolio", tags=["Portfolio"])

    holdings = container.portfolio.get_individual_stocks()
    container.scheduler.seed(await container.engine.build_views(holdings))
    primary.calls.clear()
    scrape.calls.clear()
    app.state.container = container
    return app


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
