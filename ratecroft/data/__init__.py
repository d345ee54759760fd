"""Data fetching, caching and resolution."""

from .cache import SeriesCache
from .fred_fetcher import FredClient
from .resolver import SeriesResolver

__all__ = ["FredClient", "SeriesCache", "SeriesResolver"]
