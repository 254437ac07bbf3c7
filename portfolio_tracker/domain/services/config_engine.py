"""
CONFIG ENGINE
Load, validate, and expose YAML configuration

RESPONSIBILITIES:
- Load app.yml (market data sources) and symbols.yml (ticker table)
- Validate structure
- Expose read-only values

Fails fast on missing files or malformed sections.
"""

import yaml
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping

from portfolio_tracker.core.exceptions import ConfigError

KNOWN_SOURCES = ("yahoo_chart", "alpha_vantage", "yahoo_quote", "screener_scrape")


class ConfigEngine:
    """
    Configuration Engine
    Single source of truth for file-based configuration
    """

    def __init__(self, config_dir: Path):
        """Initialize with config directory"""
        self.config_dir = Path(config_dir)
        self._app_config: Dict[str, Any] = None
        self._symbol_table: Dict[str, str] = None
        self._default_suffix: str = None

    def load_all(self) -> None:
        """Load all configuration files"""
        self._load_app_config()
        self._load_symbols()
        self._validate_all()

    def _read_yaml(self, filename: str) -> Dict[str, Any]:
        path = self.config_dir / filename
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping at top level")
        return data

    def _load_app_config(self) -> None:
        """Load application settings from app.yml"""
        self._app_config = self._read_yaml("app.yml")

    def _load_symbols(self) -> None:
        """Load listing-code -> ticker table from symbols.yml"""
        data = self._read_yaml("symbols.yml")
        table = data.get("symbols") or {}
        if not isinstance(table, dict):
            raise ConfigError("symbols.yml: 'symbols' must be a mapping")
        self._symbol_table = {
            str(code).strip().upper(): str(ticker).strip()
            for code, ticker in table.items()
        }
        self._default_suffix = str(data.get("default_suffix", ".NS"))

    def _validate_all(self) -> None:
        market_data = self._app_config.get("market_data")
        if not isinstance(market_data, dict):
            raise ConfigError("app.yml: 'market_data' section is required")

        sources = market_data.get("sources")
        if not isinstance(sources, list):
            raise ConfigError("app.yml: market_data.sources must be a list")
        unknown = [s for s in sources if s not in KNOWN_SOURCES]
        if unknown:
            raise ConfigError(f"app.yml: unknown market data sources {unknown}")
        if len(sources) != len(set(sources)):
            raise ConfigError("app.yml: duplicate market data sources")

        for ticker in self._symbol_table.values():
            if not ticker:
                raise ConfigError("symbols.yml: empty ticker in symbol table")

    # ------------------------------------------------------------------
    # ACCESSORS
    # ------------------------------------------------------------------

    def get_app_setting(self, section: str, key: str = None) -> Any:
        """Get an app.yml section, or one key inside it"""
        if self._app_config is None:
            raise RuntimeError("Configuration not loaded. Call load_all() first.")
        value = self._app_config.get(section, {})
        if key is None:
            return value
        return value.get(key)

    @property
    def market_data(self) -> Dict[str, Any]:
        return self.get_app_setting("market_data")

    @property
    def source_order(self) -> List[str]:
        return list(self.market_data.get("sources", []))

    @property
    def scrape_sources(self) -> List[str]:
        return list(self.market_data.get("scrape_sources", []))

    @property
    def symbol_table(self) -> Mapping[str, str]:
        if self._symbol_table is None:
            raise RuntimeError("Configuration not loaded. Call load_all() first.")
        return MappingProxyType(self._symbol_table)

    @property
    def default_suffix(self) -> str:
        return self._default_suffix
