"""
Portfolio Service
Static holdings snapshot: loaded once, filtered to individual stocks.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from portfolio_tracker.core.exceptions import SnapshotLoadError
from portfolio_tracker.domain.models import HoldingRecord, PortfolioSummary
from portfolio_tracker.domain.models.holding import COL_NAME, COL_NUMBER
from portfolio_tracker.domain.services.summary import summarize_holdings

logger = logging.getLogger(__name__)


class PortfolioService:
    """
    Reads {metadata, data} JSON exported from the portfolio spreadsheet.
    The spreadsheet mixes header and sector rows in with stocks; those are
    dropped by get_individual_stocks().
    """

    def __init__(self, snapshot_path: Path):
        self.snapshot_path = Path(snapshot_path)
        self._snapshot: Optional[Dict[str, Any]] = None
        self._stocks: Optional[List[HoldingRecord]] = None

    def load(self) -> Dict[str, Any]:
        if self._snapshot is not None:
            return self._snapshot

        try:
            with open(self.snapshot_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as exc:
            raise SnapshotLoadError(f"Portfolio snapshot not found: {self.snapshot_path}") from exc
        except json.JSONDecodeError as exc:
            raise SnapshotLoadError(f"Invalid JSON in {self.snapshot_path}: {exc}") from exc

        if not isinstance(data, dict) or not isinstance(data.get("data"), list):
            raise SnapshotLoadError(f"{self.snapshot_path}: expected an object with a 'data' list")

        self._snapshot = data
        logger.info(
            "Loaded portfolio snapshot %s (%d rows)",
            data.get("metadata", {}).get("source_file", self.snapshot_path.name),
            len(data["data"]),
        )
        return data

    @property
    def metadata(self) -> Dict[str, Any]:
        return self.load().get("metadata", {})

    @staticmethod
    def _is_stock_row(row: Dict[str, Any]) -> bool:
        name = row.get(COL_NAME)
        if row.get(COL_NUMBER) is None or not name:
            return False
        name = str(name)
        return name != "Particulars" and "Sector" not in name

    def get_individual_stocks(self) -> List[HoldingRecord]:
        if self._stocks is None:
            rows = self.load()["data"]
            self._stocks = [
                HoldingRecord.from_row(row)
                for row in rows
                if isinstance(row, dict) and self._is_stock_row(row)
            ]
        return list(self._stocks)

    def get_stock_by_symbol(self, symbol: str) -> Optional[HoldingRecord]:
        wanted = symbol.strip().lower()
        for stock in self.get_individual_stocks():
            if stock.listing_code and stock.listing_code.lower() == wanted:
                return stock
        return None

    def get_stock_by_name(self, name: str) -> Optional[HoldingRecord]:
        fragment = name.strip().lower()
        for stock in self.get_individual_stocks():
            if stock.name and fragment in stock.name.lower():
                return stock
        return None

    def get_portfolio_summary(self) -> PortfolioSummary:
        return summarize_holdings(self.get_individual_stocks())
