"""
Screener.in HTML scrape adapter (last-resort source).

Markup is not a contract: a missing element and an unparseable value are
treated the same way (no quote). Only price is required.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup

from portfolio_tracker.domain.models import LiveQuote
from portfolio_tracker.domain.services.symbol_mapper import SymbolMapper
from portfolio_tracker.infrastructure.market_data.base import HttpQuoteAdapter, to_number
from portfolio_tracker.utils.time import now_utc

logger = logging.getLogger(__name__)

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


def parse_scraped_number(text: Optional[str]) -> Optional[float]:
    """'₹ 1,234.50' -> 1234.5, 'Rs. 2,500' -> 2500.0; no digits -> None."""
    if not text:
        return None
    match = _NUMBER.search(text.replace(",", ""))
    return to_number(match.group()) if match else None


class ScreenerScrapeAdapter(HttpQuoteAdapter):
    name = "screener_scrape"
    source_label = "Screener.in (Scraped)"

    PRICE_SELECTOR = 'span[class*="price"]'
    CHANGE_SELECTOR = 'span[class*="change"]'

    def __init__(
        self,
        base_url: str = "https://www.screener.in/company",
        timeout_seconds: float = 5.0,
        user_agent: Optional[str] = None,
    ):
        super().__init__(timeout_seconds=timeout_seconds, user_agent=user_agent)
        self.base_url = base_url.rstrip("/")
        self.headers.update({
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        })

    async def fetch(self, symbol: str) -> Optional[LiveQuote]:
        code = SymbolMapper.listing_code_of(symbol)
        html = await self._request_text(f"{self.base_url}/{code}/")
        if html is None:
            return None
        quote = self.parse(symbol, html)
        if quote is None:
            logger.warning("Screener.in markup for %s had no parseable price", code)
        return quote

    def parse(self, symbol: str, html: str) -> Optional[LiveQuote]:
        soup = BeautifulSoup(html, "html.parser")

        price_node = soup.select_one(self.PRICE_SELECTOR)
        price = parse_scraped_number(price_node.get_text() if price_node else None)
        if price is None or price <= 0:
            return None

        change_node = soup.select_one(self.CHANGE_SELECTOR)
        change = parse_scraped_number(change_node.get_text() if change_node else None)
        if change is None:
            change = 0.0
        previous = price - change
        change_percent = change / previous * 100.0 if change and previous > 0 else 0.0

        return LiveQuote(
            symbol=symbol,
            current_price=price,
            previous_close=previous,
            change=change,
            change_percent=change_percent,
            volume=0.0,
            market_cap=0.0,
            pe_ratio=0.0,
            earnings_per_share=0.0,
            dividend_yield=0.0,
            last_updated=now_utc(),
            source=self.source_label,
        )
