"""
Symbol mapper: spreadsheet listing code -> quote provider ticker.

Table-driven with a default market suffix for anything not in the table.
Never raises.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional, Union

logger = logging.getLogger(__name__)

MARKET_SUFFIXES = (".NS", ".BO")


def parse_symbol_overrides(raw: str) -> Dict[str, str]:
    """
    Parse ticker overrides from env.

    Format: SYMBOL_OVERRIDES="SBLIFE=SBILIFE.NS,FOO=FOO.BO"
    """
    overrides: Dict[str, str] = {}
    for pair in (raw or "").split(","):
        pair = pair.strip()
        if not pair or "=" not in pair:
            continue
        key, value = pair.split("=", 1)
        key = key.strip().upper()
        value = value.strip()
        if key and value:
            overrides[key] = value
    return overrides


class SymbolMapper:
    def __init__(self, mapping: Optional[Mapping[str, str]] = None, default_suffix: str = ".NS"):
        self._mapping = {str(k).strip().upper(): v for k, v in (mapping or {}).items()}
        self.default_suffix = default_suffix

    @classmethod
    def from_config(cls, config_engine, overrides: str = "", default_suffix: Optional[str] = None) -> "SymbolMapper":
        mapping = dict(config_engine.symbol_table)
        extra = parse_symbol_overrides(overrides)
        if extra:
            logger.info("Applying %d symbol overrides from environment", len(extra))
            mapping.update(extra)
        return cls(mapping, default_suffix or config_engine.default_suffix)

    def to_provider_symbol(self, code: Union[str, int, float]) -> str:
        if isinstance(code, float) and code.is_integer():
            code = int(code)
        symbol = str(code).strip()
        key = symbol.upper()
        if key in self._mapping:
            return self._mapping[key]
        # Already a provider ticker
        if key.endswith(MARKET_SUFFIXES):
            return symbol
        return f"{symbol}{self.default_suffix}"

    @staticmethod
    def listing_code_of(provider_symbol: str) -> str:
        """Strip a market suffix: 'TCS.NS' -> 'TCS'."""
        for suffix in MARKET_SUFFIXES:
            if provider_symbol.upper().endswith(suffix):
                return provider_symbol[: -len(suffix)]
        return provider_symbol

    def __contains__(self, code: object) -> bool:
        return str(code).strip().upper() in self._mapping
