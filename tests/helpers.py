"""Test doubles shared across unit and integration tests."""

import asyncio
from datetime import datetime, timezone
from typing import List, Optional

from portfolio_tracker.domain.models import HoldingRecord, LiveQuote
from portfolio_tracker.infrastructure.market_data.fundamentals_scraper import Fundamentals


def make_quote(symbol: str = "TCS.NS", price: float = 1100.0, source: str = "fake") -> LiveQuote:
    return LiveQuote(
        symbol=symbol,
        current_price=price,
        previous_close=price - 10,
        change=10.0,
        change_percent=10.0 / (price - 10) * 100,
        volume=1000.0,
        market_cap=0.0,
        pe_ratio=0.0,
        earnings_per_share=0.0,
        dividend_yield=0.0,
        last_updated=datetime(2026, 2, 7, 9, 30, tzinfo=timezone.utc),
        source=source,
    )


def make_holding(**overrides) -> HoldingRecord:
    row = {
        "No": 1,
        "Particulars": "Tata Consultancy Services",
        "Purchase Price": 1000,
        "Qty": 10,
        "Investment": 10000,
        "Portfolio (%)": 0.2,
        "NSE/BSE": "TCS",
        "CMP": 1050,
        "P/E (TTM)": 31.2,
    }
    row.update(overrides)
    return HoldingRecord.from_row(row)


class FakeSource:
    """Quote source returning a fixed quote (or None), counting calls."""

    def __init__(
        self,
        name: str,
        quote: Optional[LiveQuote] = None,
        exc: Optional[Exception] = None,
        gate: Optional[asyncio.Event] = None,
    ):
        self.name = name
        self.quote = quote
        self.exc = exc
        self.gate = gate
        self.calls: List[str] = []

    async def fetch(self, symbol: str) -> Optional[LiveQuote]:
        self.calls.append(symbol)
        if self.gate is not None:
            await self.gate.wait()
        if self.exc is not None:
            raise self.exc
        if self.quote is None:
            return None
        return LiveQuote(**{**self.quote.__dict__, "symbol": symbol})


class FakeFundamentals:
    def __init__(self, result: Optional[Fundamentals] = None, exc: Optional[Exception] = None):
        self.result = result
        self.exc = exc

    @staticmethod
    def normalize_symbol(symbol: str) -> str:
        parts = symbol.split(":")
        return parts[1] if len(parts) > 1 and parts[1] else parts[0]

    async def fetch(self, symbol: str) -> Optional[Fundamentals]:
        if self.exc is not None:
            raise self.exc
        return self.result
