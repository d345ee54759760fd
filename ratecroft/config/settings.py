"""Configuration settings for the rates service."""

from dataclasses import dataclass, field
import os

from dotenv import load_dotenv


load_dotenv()


# FRED series definitions - logical name to FRED series ID
FRED_SERIES: dict[str, str] = {
    "rate_30yr": "MORTGAGE30US",
    "rate_15yr": "MORTGAGE15US",
    "treasury10": "DGS10",
    "fed_funds": "FEDFUNDS",
    "prime_rate": "DPRIME",
}

# Human-readable titles for the series above
SERIES_TITLES: dict[str, str] = {
    "MORTGAGE30US": "30-Year Fixed Rate Mortgage Average",
    "MORTGAGE15US": "15-Year Fixed Rate Mortgage Average",
    "DGS10": "10-Year Treasury Yield",
    "FEDFUNDS": "Federal Funds Effective Rate",
    "DPRIME": "Bank Prime Loan Rate",
}

# Fallback rates, served when no FRED key is configured or FRED is down.
# Update these manually each week if needed.
FALLBACK_RATES: dict[str, dict] = {
    "MORTGAGE30US": {"value": 6.76, "change": -0.04, "date": "2026-02-20"},
    "MORTGAGE15US": {"value": 6.03, "change": -0.03, "date": "2026-02-20"},
    "DGS10": {"value": 4.28, "change": 0.05, "date": "2026-02-27"},
    "FEDFUNDS": {"value": 5.33, "change": 0.00, "date": "2026-02-01"},
    "DPRIME": {"value": 8.50, "change": 0.00, "date": "2026-02-01"},
}

# Unknown series get this
DEFAULT_FALLBACK: dict = {"value": 6.75, "change": 0.0, "date": "2026-02-20"}


@dataclass
class Settings:
    """Application settings."""

    fred_api_key: str = field(default_factory=lambda: os.getenv("FRED_API_KEY", ""))
    cache_ttl: float = field(
        default_factory=lambda: float(os.getenv("RATECROFT_CACHE_TTL", "3600"))
    )
    request_timeout: float = 10.0  # hard limit on latest-value fetches
    history_timeout: float = 15.0
    lookback_weeks: int = 8
    observation_limit: int = 10
    history_points: int = 8

    def has_fred_key(self) -> bool:
        """Check if a FRED API key is configured."""
        return bool(self.fred_api_key)

    def validate(self) -> None:
        """Validate numeric settings."""
        if self.cache_ttl <= 0:
            raise ValueError(f"cache_ttl must be positive, got {self.cache_ttl}")
        if self.request_timeout <= 0 or self.history_timeout <= 0:
            raise ValueError("Upstream timeouts must be positive")
