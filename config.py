"""
Application configuration settings.

Centralizes all configuration parameters for the net worth dashboard.
Supports environment-based configuration and sensible defaults.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar


@dataclass(frozen=True)
class DatabaseConfig:
    """Database configuration."""
    path: Path = field(default_factory=lambda: Path("db/networth.db"))

    @property
    def url(self) -> str:
        """SQLAlchemy connection URL."""
        # Prefer direct URL if provided in environment
        env_url = os.environ.get("NETWORTH_DB_URL") or os.environ.get("DATABASE_URL")
        if env_url:
            return env_url

        return f"sqlite:///{self.path}"


@dataclass(frozen=True)
class QuoteConfig:
    """Quote provider configuration (Yahoo Finance + CoinGecko)."""
    # Client-side timeout for every provider call (seconds)
    timeout_seconds: float = 8.0

    # Concurrent quote lookups during a price refresh
    max_workers: int = 8

    # Currency CoinGecko prices are requested in
    quote_currency: str = "eur"

    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

    # Asset search
    search_min_query_length: int = 2
    search_max_results: int = 10


@dataclass(frozen=True)
class LedgerConfig:
    """
    Position ledger policies.

    oversell_policy decides what a sell larger than the held quantity does:
    - reject: validation error, nothing is written
    - clamp: the position is reduced to zero
    - allow: the quantity goes negative
    """
    oversell_policy: str = "reject"

    OVERSELL_POLICIES: ClassVar[tuple[str, ...]] = ("reject", "clamp", "allow")


@dataclass(frozen=True)
class HistoryConfig:
    """Portfolio history configuration."""
    # Number of most recent snapshots exposed to readers
    read_window: int = 30

    # Snapshots older than this are rolled up to one per day by prune_history
    retention_days: int = 365


@dataclass(frozen=True)
class UIConfig:
    """Dashboard UI configuration."""
    page_title: str = "Net Worth"
    layout: str = "wide"
    default_currency: str = "EUR"

    # Number formatting
    decimal_places: int = 2

    # Persisted display preferences (theme, balance visibility)
    preferences_path: Path = field(
        default_factory=lambda: Path.home() / ".networth" / "preferences.json"
    )


@dataclass
class Config:
    """
    Main configuration container.

    Usage:
        from config import config
        db_path = config.database.path
    """
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    quotes: QuoteConfig = field(default_factory=QuoteConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    ui: UIConfig = field(default_factory=UIConfig)

    # Base paths
    project_root: ClassVar[Path] = Path(__file__).parent

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create config from environment variables.

        Supports overrides via:
        - NETWORTH_DB_PATH: Custom database path
        - NETWORTH_OVERSELL_POLICY: reject, clamp or allow
        - NETWORTH_QUOTE_TIMEOUT: Provider timeout in seconds
        """
        db_path_env = os.getenv("NETWORTH_DB_PATH")
        db_config = DatabaseConfig(
            path=Path(db_path_env) if db_path_env else DatabaseConfig().path
        )

        policy = os.getenv("NETWORTH_OVERSELL_POLICY", LedgerConfig.oversell_policy).lower()
        if policy not in LedgerConfig.OVERSELL_POLICIES:
            raise ValueError(
                f"Invalid NETWORTH_OVERSELL_POLICY={policy!r}, "
                f"expected one of {LedgerConfig.OVERSELL_POLICIES}"
            )

        timeout_env = os.getenv("NETWORTH_QUOTE_TIMEOUT")
        quote_config = (
            QuoteConfig(timeout_seconds=float(timeout_env)) if timeout_env else QuoteConfig()
        )

        return cls(
            database=db_config,
            quotes=quote_config,
            ledger=LedgerConfig(oversell_policy=policy),
        )


# Global config instance
config = Config.from_env()
