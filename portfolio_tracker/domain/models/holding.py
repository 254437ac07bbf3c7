"""
DOMAIN MODELS - HOLDINGS, QUOTES & HYBRID VIEWS

Immutable structures. A HybridView is never mutated; every refresh
produces a new one.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

# Spreadsheet column keys, as exported in the snapshot
COL_NUMBER = "No"
COL_NAME = "Particulars"
COL_PURCHASE_PRICE = "Purchase Price"
COL_QUANTITY = "Qty"
COL_INVESTMENT = "Investment"
COL_PORTFOLIO_WEIGHT = "Portfolio (%)"
COL_LISTING_CODE = "NSE/BSE"
COL_STORED_PRICE = "CMP"
COL_PRESENT_VALUE = "Present value"
COL_GAIN_LOSS = "Gain/Loss"
COL_GAIN_LOSS_PCT = "Gain/Loss\n(%)"

_CORE_COLUMNS = frozenset({
    COL_NUMBER,
    COL_NAME,
    COL_PURCHASE_PRICE,
    COL_QUANTITY,
    COL_INVESTMENT,
    COL_PORTFOLIO_WEIGHT,
    COL_LISTING_CODE,
    COL_STORED_PRICE,
    COL_PRESENT_VALUE,
    COL_GAIN_LOSS,
    COL_GAIN_LOSS_PCT,
})


def to_float(value: Any) -> Optional[float]:
    """Lenient numeric parse for spreadsheet cells. Non-numeric becomes None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", "")
        try:
            number = float(text)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def clean_cell(value: Any) -> Any:
    """NaN cells (pandas exports) become None so rows stay JSON-safe."""
    if isinstance(value, float) and value != value:
        return None
    return value


def normalize_listing_code(value: Any) -> Optional[str]:
    """NSE codes arrive as strings, BSE codes often as numbers (500325.0)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class HoldingRecord:
    """
    One portfolio position from the static snapshot.
    Read once at load; immutable for the session.
    """
    number: Optional[float]
    name: Optional[str]
    purchase_price: Optional[float]
    quantity: Optional[float]
    investment: Optional[float]
    portfolio_weight: Optional[float]
    listing_code: Optional[str]
    stored_price: Optional[float] = None
    stored_present_value: Optional[float] = None
    stored_gain_loss: Optional[float] = None
    stored_gain_loss_percent: Optional[float] = None
    fundamentals: Mapping[str, Any] = field(default_factory=dict)
    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "HoldingRecord":
        row = {k: clean_cell(v) for k, v in row.items()}
        name = row.get(COL_NAME)
        return cls(
            number=to_float(row.get(COL_NUMBER)),
            name=str(name).strip() if name is not None else None,
            purchase_price=to_float(row.get(COL_PURCHASE_PRICE)),
            quantity=to_float(row.get(COL_QUANTITY)),
            investment=to_float(row.get(COL_INVESTMENT)),
            portfolio_weight=to_float(row.get(COL_PORTFOLIO_WEIGHT)),
            listing_code=normalize_listing_code(row.get(COL_LISTING_CODE)),
            stored_price=to_float(row.get(COL_STORED_PRICE)),
            stored_present_value=to_float(row.get(COL_PRESENT_VALUE)),
            stored_gain_loss=to_float(row.get(COL_GAIN_LOSS)),
            stored_gain_loss_percent=to_float(row.get(COL_GAIN_LOSS_PCT)),
            fundamentals=MappingProxyType(
                {k: v for k, v in row.items() if k not in _CORE_COLUMNS}
            ),
            raw=MappingProxyType(dict(row)),
        )


@dataclass(frozen=True)
class LiveQuote:
    """Point-in-time quote from one provider. Never persisted."""
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

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "currentPrice": self.current_price,
            "previousClose": self.previous_close,
            "change": self.change,
            "changePercent": self.change_percent,
            "volume": self.volume,
            "marketCap": self.market_cap,
            "peRatio": self.pe_ratio,
            "earningsPerShare": self.earnings_per_share,
            "dividendYield": self.dividend_yield,
            "lastUpdated": self.last_updated.isoformat(),
            "source": self.source,
        }


@dataclass(frozen=True)
class CalculatedMetrics:
    current_price: float
    present_value: float
    gain_loss: float
    gain_loss_percent: float
    portfolio_percentage: float


@dataclass(frozen=True)
class HybridView:
    """Static holding + optional live quote + derived metrics."""
    holding: HoldingRecord
    live_data: Optional[LiveQuote]
    calculated: CalculatedMetrics
    provider_symbol: Optional[str] = None

    @property
    def is_live(self) -> bool:
        return self.live_data is not None


@dataclass(frozen=True)
class PortfolioSummary:
    total_stocks: int
    total_investment: float
    total_present_value: float
    total_gain_loss: float
    total_gain_loss_percent: float
    last_updated: datetime
