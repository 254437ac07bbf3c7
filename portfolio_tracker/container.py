"""
Composition root: build every service once per process.

Nothing here is a module-level singleton; main.py builds a Container in
its lifespan and tests build their own with fakes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from portfolio_tracker.config import Settings
from portfolio_tracker.domain.services.config_engine import ConfigEngine
from portfolio_tracker.domain.services.hybrid_merge_engine import HybridMergeEngine
from portfolio_tracker.domain.services.symbol_mapper import SymbolMapper
from portfolio_tracker.infrastructure.market_data.fundamentals_scraper import FundamentalsScraper
from portfolio_tracker.infrastructure.market_data.provider_chain import QuoteFetchOrchestrator
from portfolio_tracker.infrastructure.market_data.provider_factory import (
    build_fundamentals_scraper,
    build_quote_orchestrator,
)
from portfolio_tracker.realtime.refresh_scheduler import RefreshScheduler
from portfolio_tracker.realtime.subscription_bus import SubscriptionBus
from portfolio_tracker.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)


@dataclass
class Container:
    settings: Settings
    mapper: SymbolMapper
    orchestrator: QuoteFetchOrchestrator
    scrape_sources: tuple
    fundamentals: FundamentalsScraper
    portfolio: PortfolioService
    engine: HybridMergeEngine
    bus: SubscriptionBus
    scheduler: RefreshScheduler

    @property
    def structured_chain(self) -> QuoteFetchOrchestrator:
        return self.orchestrator.exclude(self.scrape_sources)

    @property
    def scrape_chain(self) -> QuoteFetchOrchestrator:
        return self.orchestrator.subset(self.scrape_sources)


def build_container(settings: Settings, config_engine: Optional[ConfigEngine] = None) -> Container:
    if config_engine is None:
        config_engine = ConfigEngine(Path(settings.CONFIG_DIR))
        config_engine.load_all()

    mapper = SymbolMapper.from_config(
        config_engine,
        overrides=settings.SYMBOL_OVERRIDES,
        default_suffix=settings.DEFAULT_MARKET_SUFFIX,
    )
    orchestrator = build_quote_orchestrator(config_engine, settings)
    engine = HybridMergeEngine(mapper, orchestrator)
    bus = SubscriptionBus()

    return Container(
        settings=settings,
        mapper=mapper,
        orchestrator=orchestrator,
        scrape_sources=tuple(config_engine.scrape_sources),
        fundamentals=build_fundamentals_scraper(config_engine, settings),
        portfolio=PortfolioService(Path(settings.PORTFOLIO_SNAPSHOT_PATH)),
        engine=engine,
        bus=bus,
        scheduler=RefreshScheduler(
            engine,
            bus,
            interval_seconds=settings.REFRESH_INTERVAL_SECONDS,
            timezone=settings.TIMEZONE,
        ),
    )
