"""Resolve series to their latest value through the cache, with fallback."""

import logging
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import date, timedelta

from ratecroft.config import DEFAULT_FALLBACK, FALLBACK_RATES, SERIES_TITLES, Settings
from ratecroft.data.cache import SeriesCache
from ratecroft.data.fred_fetcher import FredClient, observations_frame
from ratecroft.errors import UpstreamEmptyError, UpstreamError, UpstreamUnavailableError
from ratecroft.models import ResolvedSeries, SeriesObservation


logger = logging.getLogger(__name__)


def fallback_series(series_id: str) -> ResolvedSeries:
    """Build a ResolvedSeries from the static fallback table."""
    record = FALLBACK_RATES.get(series_id, DEFAULT_FALLBACK)
    as_of = date.fromisoformat(record["date"])
    value = record["value"]
    return ResolvedSeries(
        series_id=series_id,
        value=value,
        previous_value=round(value - record["change"], 3),
        change=record["change"],
        as_of_date=as_of,
        history=(SeriesObservation(as_of, value),),
        live=False,
    )


class SeriesResolver:
    """Latest-value lookups for FRED series, shielded by the shared cache."""

    KEY_PREFIX = "fred:"

    def __init__(
        self,
        client: FredClient,
        cache: SeriesCache,
        settings: Settings | None = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.settings = settings or client.settings

    def resolve(self, series_id: str) -> ResolvedSeries:
        """
        Resolve a series to its latest value.

        Served from cache within the TTL. Without a FRED key the fallback
        record is cached in place of live data, so the upstream is never
        attempted while the key stays missing.

        Raises:
            UpstreamUnavailableError: upstream timed out or failed
            UpstreamEmptyError: no usable observations
        """
        key = self.KEY_PREFIX + series_id
        if not self.settings.has_fred_key():
            return self.cache.get_or_load(key, lambda: fallback_series(series_id))

        try:
            return self.cache.get_or_load(
                key,
                lambda: self._fetch(series_id),
                timeout=self.settings.request_timeout * 2,
            )
        except FutureTimeoutError as e:
            raise UpstreamUnavailableError(series_id, "timed out waiting for fetch") from e

    def resolve_or_fallback(self, series_id: str) -> ResolvedSeries:
        """Resolve a series, degrading to stale cache or the fallback record."""
        try:
            return self.resolve(series_id)
        except UpstreamError as e:
            stale = self.cache.get_stale(self.KEY_PREFIX + series_id)
            if stale is not None:
                logger.warning(f"Serving stale {series_id} after upstream error: {e}")
                return stale
            logger.warning(f"Serving fallback {series_id} after upstream error: {e}")
            return fallback_series(series_id)

    def fallback(self, series_id: str) -> ResolvedSeries:
        return fallback_series(series_id)

    def _fetch(self, series_id: str) -> ResolvedSeries:
        """Fetch the last few weeks of a series and summarize it."""
        start = date.today() - timedelta(weeks=self.settings.lookback_weeks)
        raw = self.client.fetch_observations(
            series_id,
            observation_start=start,
            limit=self.settings.observation_limit,
            sort_order="desc",
            timeout=self.settings.request_timeout,
        )
        df = observations_frame(raw)
        if df.empty:
            raise UpstreamEmptyError(series_id, "no observations")

        history = tuple(
            SeriesObservation(idx, float(val))
            for idx, val in df["value"].head(self.settings.history_points).items()
        )
        latest = history[0]
        previous = history[1] if len(history) > 1 else latest

        logger.info(f"  {series_id} = {latest.value} as of {latest.date}")
        return ResolvedSeries(
            series_id=series_id,
            value=latest.value,
            previous_value=previous.value,
            change=round(latest.value - previous.value, 3),
            as_of_date=latest.date,
            history=history,
            live=True,
        )


def main() -> None:
    """CLI entry point for resolving series."""
    import argparse
    import json
    import sys

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Resolve FRED rate series")
    parser.add_argument(
        "--series",
        type=str,
        help="Resolve a specific series only",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Show latest value of every series and exit",
    )
    args = parser.parse_args()

    settings = Settings()
    if not settings.has_fred_key():
        logger.warning("FRED_API_KEY not set, using built-in fallback rates")

    with FredClient(settings) as client:
        resolver = SeriesResolver(client, SeriesCache(settings.cache_ttl), settings)

        if args.status:
            print("\nSeries Status:")
            print("-" * 70)
            for series_id, title in SERIES_TITLES.items():
                resolved = resolver.resolve_or_fallback(series_id)
                source = "live" if resolved.live else "fallback"
                print(
                    f"{series_id:14} | {resolved.value:6.2f} | {resolved.change:+.3f} | "
                    f"{resolved.as_of_date} | {source:8} | {title}"
                )
            return

        if args.series and args.series not in SERIES_TITLES:
            print(f"Unknown series: {args.series}")
            print(f"Available: {', '.join(SERIES_TITLES)}")
            sys.exit(1)

        try:
            for series_id in [args.series] if args.series else SERIES_TITLES:
                print(json.dumps(resolver.resolve(series_id).to_dict(), indent=2))
        except UpstreamError as e:
            print(f"Upstream error: {e}")
            sys.exit(1)


if __name__ == "__main__":
    main()
