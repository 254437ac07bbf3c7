"""
Domain Models Package
Export all domain entities
"""

from .holding import (
    CalculatedMetrics,
    HoldingRecord,
    HybridView,
    LiveQuote,
    PortfolioSummary,
)

__all__ = [
    "CalculatedMetrics",
    "HoldingRecord",
    "HybridView",
    "LiveQuote",
    "PortfolioSummary",
]
