"""
Quote fetch orchestrator - try the primary source, then fallbacks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from portfolio_tracker.domain.models import LiveQuote
from portfolio_tracker.infrastructure.market_data.types import QuoteSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NamedSource:
    name: str
    source: QuoteSource


class QuoteFetchOrchestrator:
    """
    Ordered fallback across quote sources.

    The first source returning a quote wins and later sources are not
    called. A source that raises is treated like one that returned None.
    """

    def __init__(self, sources: Sequence[NamedSource]):
        self.sources: List[NamedSource] = list(sources)
        self.last_sources: Dict[str, str] = {}

    @property
    def source_names(self) -> List[str]:
        return [named.name for named in self.sources]

    def get_last_sources(self) -> Dict[str, str]:
        return dict(self.last_sources)

    def subset(self, names: Sequence[str]) -> "QuoteFetchOrchestrator":
        """Chain restricted to the given source names, same order."""
        wanted = set(names)
        return QuoteFetchOrchestrator([n for n in self.sources if n.name in wanted])

    def exclude(self, names: Sequence[str]) -> "QuoteFetchOrchestrator":
        unwanted = set(names)
        return QuoteFetchOrchestrator([n for n in self.sources if n.name not in unwanted])

    async def resolve_quote(self, symbol: str) -> Optional[LiveQuote]:
        for named in self.sources:
            try:
                quote = await named.source.fetch(symbol)
            except Exception:
                logger.exception("Quote source %s raised for %s", named.name, symbol)
                continue
            if quote is not None:
                self.last_sources[symbol] = named.name
                logger.debug("Resolved %s from %s = %s", symbol, named.name, quote.current_price)
                return quote
            logger.debug("Quote source %s had nothing for %s", named.name, symbol)

        logger.warning("All quote sources failed for %s", symbol)
        return None
