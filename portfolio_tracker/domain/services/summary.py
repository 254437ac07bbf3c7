"""
Portfolio totals, from live views or from snapshot values.
"""

from typing import Iterable, Sequence

from portfolio_tracker.domain.models import HoldingRecord, HybridView, PortfolioSummary
from portfolio_tracker.utils.time import now_utc


def _summary(count: int, total_investment: float, total_present_value: float) -> PortfolioSummary:
    total_gain_loss = total_present_value - total_investment
    total_gain_loss_percent = (
        total_gain_loss / total_investment * 100.0 if total_investment > 0 else 0.0
    )
    return PortfolioSummary(
        total_stocks=count,
        total_investment=total_investment,
        total_present_value=total_present_value,
        total_gain_loss=total_gain_loss,
        total_gain_loss_percent=total_gain_loss_percent,
        last_updated=now_utc(),
    )


def summarize_views(views: Sequence[HybridView]) -> PortfolioSummary:
    return _summary(
        len(views),
        sum(v.holding.investment or 0.0 for v in views),
        sum(v.calculated.present_value for v in views),
    )


def summarize_holdings(holdings: Iterable[HoldingRecord]) -> PortfolioSummary:
    """Totals as recorded in the spreadsheet (stored present value)."""
    holdings = list(holdings)
    return _summary(
        len(holdings),
        sum(h.investment or 0.0 for h in holdings),
        sum(h.stored_present_value or 0.0 for h in holdings),
    )
