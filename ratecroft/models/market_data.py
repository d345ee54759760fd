"""Data models for market data."""

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class SeriesObservation:
    """Single observation from a FRED series."""

    date: date
    value: float

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "value": self.value}


@dataclass(frozen=True)
class ResolvedSeries:
    """Latest value of a series with its recent history (newest first)."""

    series_id: str
    value: float
    previous_value: float
    change: float  # value - previous_value, rounded to 3 decimals
    as_of_date: date
    history: tuple[SeriesObservation, ...] = field(default_factory=tuple)
    live: bool = True

    def to_dict(self) -> dict:
        return {
            "seriesId": self.series_id,
            "value": self.value,
            "previousValue": self.previous_value,
            "change": self.change,
            "date": self.as_of_date.isoformat(),
            "history": [obs.to_dict() for obs in self.history],
            "live": self.live,
        }


@dataclass(frozen=True)
class Alert:
    """Rate alert as held by the external alert store (read-only here)."""

    email: str
    target_rate: float
    loan_type: str = "30yr"
    token: str = ""
    triggered: bool = False
