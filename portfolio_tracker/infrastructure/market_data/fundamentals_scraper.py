"""
Fundamentals scraper: P/E and EPS from public quote pages.

Google Finance first, Yahoo Finance's HTML page second. Both are scraped
markup and will drift; a page that yields nothing is just a miss.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from bs4 import BeautifulSoup

from portfolio_tracker.infrastructure.market_data.base import HttpQuoteAdapter
from portfolio_tracker.infrastructure.market_data.screener_adapter import parse_scraped_number
from portfolio_tracker.utils.time import now_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fundamentals:
    symbol: str
    pe_ratio: float
    earnings: float
    source: str

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "peRatio": round(self.pe_ratio, 2),
            "earnings": round(self.earnings, 2),
            "source": self.source,
            "timestamp": now_utc().isoformat(),
        }


def _value_after_label(soup: BeautifulSoup, patterns: Iterable[str]) -> Optional[float]:
    """Find a text node matching a label and parse the element that follows it."""
    for pattern in patterns:
        regex = re.compile(pattern, re.IGNORECASE)
        for text_node in soup.find_all(string=regex):
            label = text_node.parent
            if label is None:
                continue
            sibling = label.find_next_sibling()
            value = parse_scraped_number(sibling.get_text() if sibling else None)
            if value is not None:
                return value
    return None


def _value_from_selectors(soup: BeautifulSoup, selectors: Iterable[str]) -> Optional[float]:
    for selector in selectors:
        node = soup.select_one(selector)
        value = parse_scraped_number(node.get_text() if node else None)
        if value is not None:
            return value
    return None


class FundamentalsScraper(HttpQuoteAdapter):
    name = "fundamentals"

    def __init__(
        self,
        google_url: str = "https://www.google.com/finance/quote",
        yahoo_url: str = "https://finance.yahoo.com/quote",
        timeout_seconds: float = 5.0,
        user_agent: Optional[str] = None,
    ):
        super().__init__(timeout_seconds=timeout_seconds, user_agent=user_agent)
        self.google_url = google_url.rstrip("/")
        self.yahoo_url = yahoo_url.rstrip("/")

    @staticmethod
    def normalize_symbol(symbol: str) -> str:
        """'NSE:BHARTIARTL' -> 'BHARTIARTL'."""
        parts = symbol.split(":")
        return (parts[1] if len(parts) > 1 and parts[1] else parts[0]).strip()

    async def fetch(self, symbol: str) -> Optional[Fundamentals]:
        code = self.normalize_symbol(symbol)
        pe_ratio, earnings = 0.0, 0.0
        sources = []

        html = await self._request_text(f"{self.google_url}/{code}:NSE")
        if html is not None:
            pe_ratio, earnings = self.parse_google(html)
            if pe_ratio > 0 or earnings > 0:
                sources.append("Google Finance")
        else:
            logger.info("Google Finance unavailable for %s, trying Yahoo Finance", code)

        if pe_ratio == 0 and earnings == 0:
            html = await self._request_text(f"{self.yahoo_url}/{code}.NS")
            if html is not None:
                pe_ratio, earnings = self.parse_yahoo(html)
                if pe_ratio > 0 or earnings > 0:
                    sources.append("Yahoo Finance")

        if pe_ratio == 0 and earnings == 0:
            return None
        return Fundamentals(
            symbol=code,
            pe_ratio=pe_ratio,
            earnings=earnings,
            source=" + ".join(sources),
        )

    def parse_google(self, html: str) -> Tuple[float, float]:
        soup = BeautifulSoup(html, "html.parser")
        pe_ratio = (
            _value_after_label(soup, [r"P/E ratio"])
            or _value_from_selectors(soup, ['[data-attrid*="P/E"]', '[data-attrid*="pe"]'])
            or 0.0
        )
        earnings = (
            _value_after_label(soup, [r"^\s*Earnings", r"\bEPS\b"])
            or _value_from_selectors(soup, ['[data-attrid*="earnings"]'])
            or 0.0
        )
        return pe_ratio, earnings

    def parse_yahoo(self, html: str) -> Tuple[float, float]:
        soup = BeautifulSoup(html, "html.parser")
        pe_ratio = (
            _value_from_selectors(soup, ['[data-test="PE_RATIO"]'])
            or _value_after_label(soup, [r"P/E Ratio", r"PE Ratio"])
            or 0.0
        )
        earnings = (
            _value_from_selectors(soup, ['[data-test="EPS_RATIO"]'])
            or _value_after_label(soup, [r"\bEPS\b"])
            or 0.0
        )
        return pe_ratio, earnings
