"""
Yahoo Finance quote adapter via yfinance (alternate structured source).

yfinance is blocking, so calls are offloaded to a thread and bounded by
an explicit timeout.
"""

import asyncio
import logging
from typing import Dict, Optional

import yfinance as yf

from portfolio_tracker.domain.models import LiveQuote
from portfolio_tracker.infrastructure.market_data.base import percent_change, to_number
from portfolio_tracker.utils.time import now_utc

logger = logging.getLogger(__name__)


class YahooQuoteAdapter:
    """
    Reads Ticker.fast_info: last price, previous close, market cap and
    last volume. P/E, EPS and yield need the slow .info call and are
    zero-filled.
    """

    name = "yahoo_quote"
    source_label = "Yahoo Finance Quote"

    def __init__(self, timeout_seconds: float = 10.0):
        self.timeout_seconds = timeout_seconds

    def _read_fast_info(self, symbol: str) -> Dict[str, Optional[float]]:
        info = yf.Ticker(symbol).fast_info
        return {
            "last_price": to_number(info["last_price"]),
            "previous_close": to_number(info["previous_close"]),
            "market_cap": to_number(info["market_cap"]),
            "last_volume": to_number(info["last_volume"]),
        }

    async def fetch(self, symbol: str) -> Optional[LiveQuote]:
        # fast_info takes no timeout; on expiry the worker thread is left to
        # finish on its own and its result is dropped
        try:
            data = await asyncio.wait_for(
                asyncio.to_thread(self._read_fast_info, symbol),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.debug("yfinance timed out for %s", symbol)
            return None
        except Exception as exc:
            logger.debug("yfinance lookup failed for %s: %s", symbol, exc)
            return None
        return self.parse(symbol, data)

    def parse(self, symbol: str, data: Dict[str, Optional[float]]) -> Optional[LiveQuote]:
        price = data.get("last_price")
        previous = data.get("previous_close")
        if price is None or price <= 0 or previous is None:
            return None
        return LiveQuote(
            symbol=symbol,
            current_price=price,
            previous_close=previous,
            change=price - previous,
            change_percent=percent_change(price, previous),
            volume=data.get("last_volume") or 0.0,
            market_cap=data.get("market_cap") or 0.0,
            pe_ratio=0.0,
            earnings_per_share=0.0,
            dividend_yield=0.0,
            last_updated=now_utc(),
            source=self.source_label,
        )
