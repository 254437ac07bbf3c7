"""
HYBRID MERGE ENGINE
Combine a static holding with an optional live quote

RESPONSIBILITIES:
- Map listing code to provider ticker
- Ask the quote orchestrator for a live quote
- Resolve the display price and derive P&L metrics

RULES:
- Never raises on fetch problems; the dashboard always renders
- Never invents a price: live, else stored CMP, else purchase price
- Portfolio weight is carried from the snapshot, not recomputed
"""

import asyncio
import logging
from typing import Iterable, List, Optional

from portfolio_tracker.domain.models import (
    CalculatedMetrics,
    HoldingRecord,
    HybridView,
    LiveQuote,
)
from portfolio_tracker.domain.services.symbol_mapper import SymbolMapper
from portfolio_tracker.infrastructure.market_data.provider_chain import QuoteFetchOrchestrator

logger = logging.getLogger(__name__)


def resolve_current_price(holding: HoldingRecord, live: Optional[LiveQuote]) -> float:
    """Live price, else stored price if positive, else purchase price."""
    if live is not None:
        return live.current_price
    if holding.stored_price is not None and holding.stored_price > 0:
        return holding.stored_price
    if holding.purchase_price is not None:
        return holding.purchase_price
    return 0.0


def calculate_metrics(holding: HoldingRecord, current_price: float) -> CalculatedMetrics:
    quantity = holding.quantity or 0.0
    investment = holding.investment or 0.0

    present_value = current_price * quantity
    gain_loss = present_value - investment
    gain_loss_percent = gain_loss / investment * 100.0 if investment > 0 else 0.0

    return CalculatedMetrics(
        current_price=current_price,
        present_value=present_value,
        gain_loss=gain_loss,
        gain_loss_percent=gain_loss_percent,
        portfolio_percentage=holding.portfolio_weight or 0.0,
    )


class HybridMergeEngine:
    """
    Hybrid Merge Engine
    Builds HybridViews; each call returns a new view
    """

    def __init__(self, mapper: SymbolMapper, orchestrator: QuoteFetchOrchestrator):
        self.mapper = mapper
        self.orchestrator = orchestrator

    def provider_symbol_for(self, holding: HoldingRecord) -> Optional[str]:
        if not holding.listing_code:
            return None
        return self.mapper.to_provider_symbol(holding.listing_code)

    def build_static_view(self, holding: HoldingRecord) -> HybridView:
        """View from snapshot values only, no network."""
        return self._compose(holding, None, self.provider_symbol_for(holding))

    async def build_view(self, holding: HoldingRecord) -> HybridView:
        provider_symbol = self.provider_symbol_for(holding)
        live = await self._fetch(provider_symbol)
        return self._compose(holding, live, provider_symbol)

    async def refresh_view(self, view: HybridView) -> HybridView:
        """
        Re-fetch and recompute from the holding. A failed refresh falls
        back to the stored price, not the previous live price.
        """
        live = await self._fetch(view.provider_symbol)
        return self._compose(view.holding, live, view.provider_symbol)

    async def build_views(self, holdings: Iterable[HoldingRecord]) -> List[HybridView]:
        return list(await asyncio.gather(*(self.build_view(h) for h in holdings)))

    async def _fetch(self, provider_symbol: Optional[str]) -> Optional[LiveQuote]:
        if not provider_symbol:
            return None
        try:
            return await self.orchestrator.resolve_quote(provider_symbol)
        except Exception:
            logger.exception("Unexpected error fetching %s; using stored price", provider_symbol)
            return None

    @staticmethod
    def _compose(
        holding: HoldingRecord,
        live: Optional[LiveQuote],
        provider_symbol: Optional[str],
    ) -> HybridView:
        price = resolve_current_price(holding, live)
        return HybridView(
            holding=holding,
            live_data=live,
            calculated=calculate_metrics(holding, price),
            provider_symbol=provider_symbol,
        )
