"""
Quote source protocol for type hints.
"""

from __future__ import annotations

from typing import Optional, Protocol

from portfolio_tracker.domain.models import LiveQuote


class QuoteSource(Protocol):
    name: str

    async def fetch(self, symbol: str) -> Optional[LiveQuote]:
        """Return a normalized quote, or None on any failure. Must not raise."""
        ...
