from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from portfolio_tracker.domain.models import (
    CalculatedMetrics,
    HybridView,
    LiveQuote,
    PortfolioSummary,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LiveQuoteSchema(CamelModel):
    symbol: str
    current_price: float
    previous_close: float
    change: float
    change_percent: float
    volume: float
    market_cap: float
    pe_ratio: float
    earnings_per_share: float
    dividend_yield: float
    last_updated: datetime
    source: str

    @classmethod
    def from_quote(cls, quote: LiveQuote) -> "LiveQuoteSchema":
        return cls(**quote.__dict__)


class CalculatedMetricsSchema(CamelModel):
    current_cmp: float
    present_value: float
    gain_loss: float
    gain_loss_percent: float
    portfolio_percentage: float

    @classmethod
    def from_metrics(cls, metrics: CalculatedMetrics) -> "CalculatedMetricsSchema":
        return cls(
            current_cmp=metrics.current_price,
            present_value=metrics.present_value,
            gain_loss=metrics.gain_loss,
            gain_loss_percent=metrics.gain_loss_percent,
            portfolio_percentage=metrics.portfolio_percentage,
        )


class HybridViewSchema(CamelModel):
    base_data: Dict[str, Any]
    live_data: Optional[LiveQuoteSchema]
    calculated: CalculatedMetricsSchema
    provider_symbol: Optional[str]

    @classmethod
    def from_view(cls, view: HybridView) -> "HybridViewSchema":
        return cls(
            base_data=dict(view.holding.raw),
            live_data=LiveQuoteSchema.from_quote(view.live_data) if view.live_data else None,
            calculated=CalculatedMetricsSchema.from_metrics(view.calculated),
            provider_symbol=view.provider_symbol,
        )


class PortfolioSummarySchema(CamelModel):
    total_stocks: int
    total_investment: float
    total_present_value: float
    total_gain_loss: float
    total_gain_loss_percent: float
    last_updated: datetime

    @classmethod
    def from_summary(cls, summary: PortfolioSummary) -> "PortfolioSummarySchema":
        return cls(**summary.__dict__)


class HoldingsResponse(CamelModel):
    count: int
    live_count: int
    last_refreshed: Optional[datetime]
    holdings: List[HybridViewSchema]


class SummaryResponse(CamelModel):
    live: PortfolioSummarySchema
    snapshot: PortfolioSummarySchema
