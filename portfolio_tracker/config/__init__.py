"""
Application Settings
Load from environment variables
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings from environment"""

    # ======================
    # Application
    # ======================
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # ======================
    # Data files
    # ======================
    CONFIG_DIR: str = "config"
    PORTFOLIO_SNAPSHOT_PATH: str = "data/data.json"

    # ======================
    # Market Data
    # ======================
    ALPHA_VANTAGE_API_KEY: Optional[str] = None
    # Overrides default_suffix from symbols.yml when set
    DEFAULT_MARKET_SUFFIX: Optional[str] = None
    # Format: "SBLIFE=SBILIFE.NS,FOO=FOO.BO"
    SYMBOL_OVERRIDES: str = ""
    QUOTE_TIMEOUT_SECONDS: float = 10.0
    SCRAPE_TIMEOUT_SECONDS: float = 5.0

    # ======================
    # Refresh loop
    # ======================
    REFRESH_ENABLED: bool = True
    REFRESH_INTERVAL_SECONDS: int = 15
    FETCH_ON_STARTUP: bool = True

    # ======================
    # Timezone
    # ======================
    TIMEZONE: str = "Asia/Kolkata"

    # ======================
    # Pydantic v2 config
    # ======================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="forbid",
    )


settings = Settings()
