"""FRED API client for series observations."""

import logging
import threading
from datetime import date

import httpx
import pandas as pd

from ratecroft.config import Settings
from ratecroft.errors import UpstreamUnavailableError


logger = logging.getLogger(__name__)

# FRED reports missing observations as "."
MISSING_VALUE = "."


class FredClient:
    """Fetches raw observations from the FRED API."""

    BASE_URL = "https://api.stlouisfed.org/fred"

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self._transport = transport
        self._client: httpx.Client | None = None
        self._client_lock = threading.Lock()

    @property
    def client(self) -> httpx.Client:
        """Lazy-initialize HTTP client, once across threads."""
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = httpx.Client(
                        timeout=self.settings.request_timeout, transport=self._transport
                    )
        return self._client

    def close(self) -> None:
        """Close HTTP client."""
        with self._client_lock:
            if self._client is not None:
                self._client.close()
                self._client = None

    def __enter__(self) -> "FredClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def fetch_observations(
        self,
        series_id: str,
        observation_start: date | None = None,
        limit: int | None = None,
        sort_order: str = "desc",
        timeout: float | None = None,
    ) -> list[tuple[date, str]]:
        """
        Fetch raw observations for a series.

        Args:
            series_id: FRED series ID
            observation_start: Earliest observation date to include
            limit: Maximum number of observations returned
            sort_order: "desc" (newest first) or "asc"
            timeout: Request timeout in seconds, defaults to settings

        Returns:
            List of (date, raw value) pairs in upstream order. Raw values
            may be the MISSING_VALUE sentinel.

        Raises:
            UpstreamUnavailableError: on timeout, transport failure,
                non-success status or an undecodable body
        """
        params: dict = {
            "series_id": series_id,
            "api_key": self.settings.fred_api_key,
            "file_type": "json",
            "sort_order": sort_order,
        }
        if observation_start:
            params["observation_start"] = observation_start.isoformat()
        if limit:
            params["limit"] = limit

        logger.info(f"Fetching {series_id} from FRED...")
        try:
            response = self.client.get(
                f"{self.BASE_URL}/series/observations",
                params=params,
                timeout=timeout or self.settings.request_timeout,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.error(f"Timeout fetching {series_id}")
            raise UpstreamUnavailableError(series_id, "request timed out") from e
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error fetching {series_id}: {e.response.status_code}")
            raise UpstreamUnavailableError(
                series_id, f"HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Error fetching {series_id}: {e}")
            raise UpstreamUnavailableError(series_id, str(e)) from e
        except ValueError as e:
            logger.error(f"Malformed response for {series_id}")
            raise UpstreamUnavailableError(series_id, "malformed response body") from e

        try:
            return [
                (date.fromisoformat(obs["date"]), str(obs["value"]))
                for obs in data.get("observations", [])
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamUnavailableError(series_id, "malformed observation") from e


def observations_frame(raw: list[tuple[date, str]]) -> pd.DataFrame:
    """
    Convert raw observations into a DataFrame, dropping missing values.

    Returns:
        DataFrame with date index and float 'value' column, in input order
    """
    if not raw:
        return pd.DataFrame(columns=["value"])

    df = pd.DataFrame(raw, columns=["date", "value"])
    df = df[df["value"] != MISSING_VALUE].copy()
    df["value"] = pd.to_numeric(df["value"], errors="coerce")
    df = df.dropna()
    df.set_index("date", inplace=True)
    return df
