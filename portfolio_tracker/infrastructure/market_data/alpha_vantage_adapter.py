"""
Alpha Vantage GLOBAL_QUOTE adapter (alternate vendor).

Requires an API key. Market cap, P/E, EPS and dividend yield are not part
of GLOBAL_QUOTE and are zero-filled.
"""

from __future__ import annotations

import logging
from typing import Optional

from portfolio_tracker.domain.models import LiveQuote
from portfolio_tracker.infrastructure.market_data.base import HttpQuoteAdapter, to_number
from portfolio_tracker.utils.time import now_utc

logger = logging.getLogger(__name__)


class AlphaVantageAdapter(HttpQuoteAdapter):
    name = "alpha_vantage"
    source_label = "Alpha Vantage"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://www.alphavantage.co/query",
        timeout_seconds: float = 10.0,
        user_agent: Optional[str] = None,
    ):
        api_key = (api_key or "").strip()
        if not api_key:
            raise ValueError("Alpha Vantage API key missing")
        super().__init__(timeout_seconds=timeout_seconds, user_agent=user_agent)
        self.api_key = api_key
        self.base_url = base_url

    async def fetch(self, symbol: str) -> Optional[LiveQuote]:
        payload = await self._request_json(
            self.base_url,
            params={"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self.api_key},
        )
        if payload is None:
            return None
        if "Note" in payload or "Information" in payload:
            # Rate limit / plan notices come back as 200 with no quote
            logger.warning("Alpha Vantage declined request for %s: %s", symbol,
                           payload.get("Note") or payload.get("Information"))
            return None
        return self.parse(symbol, payload)

    def parse(self, symbol: str, payload: dict) -> Optional[LiveQuote]:
        quote = payload.get("Global Quote") or {}
        price = to_number(quote.get("05. price"))
        if price is None or price <= 0:
            return None

        previous = to_number(quote.get("08. previous close"))
        change = to_number(quote.get("09. change"))
        change_pct = to_number(str(quote.get("10. change percent", "")).replace("%", ""))
        if previous is None or change is None or change_pct is None:
            return None

        return LiveQuote(
            symbol=symbol,
            current_price=price,
            previous_close=previous,
            change=change,
            change_percent=change_pct,
            volume=to_number(quote.get("06. volume")) or 0.0,
            market_cap=0.0,
            pe_ratio=0.0,
            earnings_per_share=0.0,
            dividend_yield=0.0,
            last_updated=now_utc(),
            source=self.source_label,
        )
