"""
Quote source factory (config-driven).
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from portfolio_tracker.config import Settings, settings as default_settings
from portfolio_tracker.domain.services.config_engine import ConfigEngine
from portfolio_tracker.infrastructure.market_data.alpha_vantage_adapter import AlphaVantageAdapter
from portfolio_tracker.infrastructure.market_data.fundamentals_scraper import FundamentalsScraper
from portfolio_tracker.infrastructure.market_data.provider_chain import (
    NamedSource,
    QuoteFetchOrchestrator,
)
from portfolio_tracker.infrastructure.market_data.screener_adapter import ScreenerScrapeAdapter
from portfolio_tracker.infrastructure.market_data.types import QuoteSource
from portfolio_tracker.infrastructure.market_data.yahoo_chart_adapter import YahooChartAdapter
from portfolio_tracker.infrastructure.market_data.yahoo_quote_adapter import YahooQuoteAdapter

logger = logging.getLogger(__name__)


def _build_source(name: str, app_config: Dict, settings: Settings) -> QuoteSource:
    name = (name or "").lower()
    user_agent = app_config.get("user_agent")

    if name == "yahoo_chart":
        cfg = app_config.get("yahoo_chart", {})
        return YahooChartAdapter(
            base_url=cfg.get("base_url", "https://query1.finance.yahoo.com/v8/finance/chart"),
            interval=cfg.get("interval", "1m"),
            range_=cfg.get("range", "1d"),
            timeout_seconds=settings.QUOTE_TIMEOUT_SECONDS,
            user_agent=user_agent,
        )
    if name == "alpha_vantage":
        cfg = app_config.get("alpha_vantage", {})
        # Raises ValueError when the key is not configured
        return AlphaVantageAdapter(
            api_key=settings.ALPHA_VANTAGE_API_KEY or "",
            base_url=cfg.get("base_url", "https://www.alphavantage.co/query"),
            timeout_seconds=settings.QUOTE_TIMEOUT_SECONDS,
            user_agent=user_agent,
        )
    if name == "yahoo_quote":
        return YahooQuoteAdapter(timeout_seconds=settings.QUOTE_TIMEOUT_SECONDS)
    if name == "screener_scrape":
        cfg = app_config.get("screener", {})
        return ScreenerScrapeAdapter(
            base_url=cfg.get("base_url", "https://www.screener.in/company"),
            timeout_seconds=settings.SCRAPE_TIMEOUT_SECONDS,
            user_agent=user_agent,
        )
    raise ValueError(f"Unknown quote source: {name}")


def build_quote_orchestrator(
    config_engine: ConfigEngine,
    settings: Optional[Settings] = None,
) -> QuoteFetchOrchestrator:
    settings = settings or default_settings
    app_config = config_engine.market_data

    sources: List[NamedSource] = []
    for name in config_engine.source_order:
        try:
            sources.append(NamedSource(name, _build_source(name, app_config, settings)))
        except ValueError as exc:
            # Unconfigured sources are skipped, not fatal
            logger.info("Quote source %s unavailable: %s", name, exc)

    if not sources:
        logger.warning("No quote sources configured; every holding will use stored prices")
    else:
        logger.info("Quote chain: %s", " -> ".join(s.name for s in sources))
    return QuoteFetchOrchestrator(sources)


def build_fundamentals_scraper(
    config_engine: ConfigEngine,
    settings: Optional[Settings] = None,
) -> FundamentalsScraper:
    settings = settings or default_settings
    app_config = config_engine.market_data
    cfg = app_config.get("fundamentals", {})
    return FundamentalsScraper(
        google_url=cfg.get("google_url", "https://www.google.com/finance/quote"),
        yahoo_url=cfg.get("yahoo_url", "https://finance.yahoo.com/quote"),
        timeout_seconds=settings.SCRAPE_TIMEOUT_SECONDS,
        user_agent=app_config.get("user_agent"),
    )
