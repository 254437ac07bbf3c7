"""
Yahoo Finance Chart API adapter (primary source).

GET /v8/finance/chart/{symbol}?interval=1m&range=1d
Quote fields come from chart.result[0].meta, volume from the last
non-null intraday bar.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from portfolio_tracker.domain.models import LiveQuote
from portfolio_tracker.infrastructure.market_data.base import (
    HttpQuoteAdapter,
    percent_change,
    to_number,
)
from portfolio_tracker.utils.time import now_utc

logger = logging.getLogger(__name__)


class YahooChartAdapter(HttpQuoteAdapter):
    name = "yahoo_chart"
    source_label = "Yahoo Finance"

    def __init__(
        self,
        base_url: str = "https://query1.finance.yahoo.com/v8/finance/chart",
        interval: str = "1m",
        range_: str = "1d",
        timeout_seconds: float = 10.0,
        user_agent: Optional[str] = None,
    ):
        super().__init__(timeout_seconds=timeout_seconds, user_agent=user_agent)
        self.base_url = base_url.rstrip("/")
        self.interval = interval
        self.range = range_

    async def fetch(self, symbol: str) -> Optional[LiveQuote]:
        payload = await self._request_json(
            f"{self.base_url}/{symbol}",
            params={"interval": self.interval, "range": self.range},
        )
        if payload is None:
            return None
        quote = self.parse(symbol, payload)
        if quote is None:
            logger.debug("Yahoo chart payload for %s missing price fields", symbol)
        return quote

    def parse(self, symbol: str, payload: dict) -> Optional[LiveQuote]:
        chart = payload.get("chart") or {}
        results = chart.get("result") or []
        if not results or not isinstance(results[0], dict):
            return None
        result = results[0]
        meta = result.get("meta") or {}

        price = to_number(meta.get("regularMarketPrice"))
        if price is None or price <= 0:
            return None
        previous = to_number(meta.get("previousClose"))
        if previous is None:
            previous = to_number(meta.get("chartPreviousClose"))
        if previous is None:
            return None

        return LiveQuote(
            symbol=symbol,
            current_price=price,
            previous_close=previous,
            change=price - previous,
            change_percent=percent_change(price, previous),
            volume=self._last_volume(result),
            market_cap=to_number(meta.get("marketCap")) or 0.0,
            pe_ratio=to_number(meta.get("trailingPE")) or 0.0,
            earnings_per_share=to_number(meta.get("trailingEps")) or 0.0,
            dividend_yield=to_number(meta.get("dividendYield")) or 0.0,
            last_updated=now_utc(),
            source=self.source_label,
        )

    @staticmethod
    def _last_volume(result: dict) -> float:
        indicators: Any = result.get("indicators") or {}
        quotes = indicators.get("quote") or [{}]
        volumes = (quotes[0] or {}).get("volume") or []
        for value in reversed(volumes):
            number = to_number(value)
            if number is not None:
                return number
        return 0.0
