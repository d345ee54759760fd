"""Bounded, time-windowed rate history for charts."""

import logging
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import date, timedelta

import numpy as np
import pandas as pd

from ratecroft.config import DEFAULT_FALLBACK, FALLBACK_RATES, Settings
from ratecroft.data.cache import SeriesCache
from ratecroft.data.fred_fetcher import FredClient, observations_frame
from ratecroft.errors import UnknownSeriesError, UpstreamEmptyError, UpstreamError
from ratecroft.pricing.rates import SPREAD_ARM51


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Period:
    days: int
    max_points: int  # cap on live observations
    synthetic_points: int  # monthly points when synthesizing


PERIODS: dict[str, Period] = {
    "1yr": Period(365, 55, 12),
    "3yr": Period(1095, 160, 36),
    "5yr": Period(1825, 265, 60),
    "10yr": Period(3650, 530, 120),
}

# Chart series -> (FRED series, spread applied to each value)
HISTORY_SERIES: dict[str, tuple[str, float]] = {
    "30yr": ("MORTGAGE30US", 0.0),
    "15yr": ("MORTGAGE15US", 0.0),
    "arm": ("MORTGAGE30US", SPREAD_ARM51),
}

SYNTHETIC_AMPLITUDE = 0.8
SYNTHETIC_FREQUENCY = 0.4


@dataclass(frozen=True)
class RateHistory:
    """Point series oldest first, with summary statistics."""

    series: str
    period: str
    live: bool
    data: list[dict] = field(default_factory=list)
    min: float | None = None
    max: float | None = None
    current: float | None = None
    start: float | None = None
    change: float | None = None

    def to_dict(self) -> dict:
        return {
            "series": self.series,
            "period": self.period,
            "live": self.live,
            "data": list(self.data),
            "min": self.min,
            "max": self.max,
            "current": self.current,
            "start": self.start,
            "change": self.change,
        }


def summarize(series: str, period: str, values: pd.Series, live: bool) -> RateHistory:
    """Build a RateHistory from a date-indexed Series, oldest first."""
    data = [{"date": idx.isoformat(), "value": float(val)} for idx, val in values.items()]
    if values.empty:
        return RateHistory(series=series, period=period, live=live, data=data)
    return RateHistory(
        series=series,
        period=period,
        live=live,
        data=data,
        min=float(values.min()),
        max=float(values.max()),
        current=float(values.iloc[-1]),
        start=float(values.iloc[0]),
        change=round(float(values.iloc[-1] - values.iloc[0]), 3),
    )


def synthetic_history(
    series: str, period: str, today: date | None = None
) -> RateHistory:
    """
    Smooth monthly series around the fallback value for a series.

    value(i) = anchor + 0.8 * sin(0.4 * i), i months before today, so the
    series stays within +/-0.8 of the anchor.
    """
    spec = _period(period)
    series_id, spread = _series(series)
    anchor = FALLBACK_RATES.get(series_id, DEFAULT_FALLBACK)["value"] + spread
    today = pd.Timestamp(today or date.today())

    months_back = np.arange(spec.synthetic_points, -1, -1)
    values = np.round(anchor + np.sin(months_back * SYNTHETIC_FREQUENCY) * SYNTHETIC_AMPLITUDE, 2)
    index = [(today - pd.DateOffset(months=int(m))).date() for m in months_back]
    return summarize(series, period, pd.Series(values, index=index), live=False)


def _period(period: str) -> Period:
    if period not in PERIODS:
        raise UnknownSeriesError("period", period, PERIODS)
    return PERIODS[period]


def _series(series: str) -> tuple[str, float]:
    if series not in HISTORY_SERIES:
        raise UnknownSeriesError("series", series, HISTORY_SERIES)
    return HISTORY_SERIES[series]


class HistoryWindow:
    """Rate history per (series, period), cached in the shared SeriesCache."""

    KEY_PREFIX = "history:"

    def __init__(
        self,
        client: FredClient,
        cache: SeriesCache,
        settings: Settings | None = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.settings = settings or client.settings

    def history(self, series: str = "30yr", period: str = "1yr") -> RateHistory:
        """
        Windowed history for a chart series.

        Falls back to a synthetic series when FRED is unconfigured or
        unavailable; a synthetic result standing in for a failed fetch is
        not cached, so the next request tries FRED again.

        Raises:
            UnknownSeriesError: unknown series or period
        """
        _period(period)
        _series(series)
        key = f"{self.KEY_PREFIX}{series}:{period}"

        if not self.settings.has_fred_key():
            return self.cache.get_or_load(key, lambda: synthetic_history(series, period))

        try:
            return self.cache.get_or_load(
                key,
                lambda: self._fetch(series, period),
                timeout=self.settings.history_timeout * 2,
            )
        except (UpstreamError, FutureTimeoutError) as e:
            logger.warning(f"Synthesizing {series}/{period} history after upstream error: {e}")
            return synthetic_history(series, period)

    def _fetch(self, series: str, period: str) -> RateHistory:
        spec = _period(period)
        series_id, spread = _series(series)
        start = date.today() - timedelta(days=spec.days)

        raw = self.client.fetch_observations(
            series_id,
            observation_start=start,
            limit=spec.max_points,
            sort_order="desc",
            timeout=self.settings.history_timeout,
        )
        df = observations_frame(raw)
        if df.empty:
            raise UpstreamEmptyError(series_id, f"no observations since {start}")

        values = df["value"].iloc[::-1]
        if spread:
            values = (values + spread).round(2)
        logger.info(f"  {series}/{period}: {len(values)} observations")
        return summarize(series, period, values, live=True)
