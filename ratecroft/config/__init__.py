"""Settings and static series tables."""

from .settings import (
    DEFAULT_FALLBACK,
    FALLBACK_RATES,
    FRED_SERIES,
    SERIES_TITLES,
    Settings,
)

__all__ = ["Settings", "FRED_SERIES", "SERIES_TITLES", "FALLBACK_RATES", "DEFAULT_FALLBACK"]
