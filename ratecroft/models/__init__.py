"""Core data models."""

from .market_data import Alert, ResolvedSeries, SeriesObservation

__all__ = ["SeriesObservation", "ResolvedSeries", "Alert"]
