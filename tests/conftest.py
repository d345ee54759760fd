"""
Shared test fixtures for the rates core test suite.
"""
import threading
import time

import httpx
import pytest

from ratecroft.config import Settings
from ratecroft.data.cache import SeriesCache
from ratecroft.data.fred_fetcher import FredClient
from ratecroft.data.resolver import SeriesResolver
from ratecroft.service import RateService


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeFred:
    """In-process stand-in for the FRED observations endpoint."""

    def __init__(self):
        self.payloads: dict[str, list[tuple[str, str]]] = {}
        self.requests: list[httpx.Request] = []
        self.status = 200
        self.timeout = False
        self.delay = 0.0
        self._lock = threading.Lock()

    def handler(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
        if self.delay:
            time.sleep(self.delay)
        if self.timeout:
            raise httpx.ReadTimeout("timed out", request=request)
        if self.status != 200:
            return httpx.Response(self.status, json={"error_message": "unavailable"})
        series_id = request.url.params["series_id"]
        observations = [
            {"date": d, "value": v} for d, v in self.payloads.get(series_id, [])
        ]
        return httpx.Response(200, json={"observations": observations})

    def calls(self, series_id: str | None = None) -> int:
        with self._lock:
            if series_id is None:
                return len(self.requests)
            return sum(1 for r in self.requests if r.url.params["series_id"] == series_id)

    def wait_for_calls(self, count: int, timeout: float = 5.0) -> bool:
        """Block until at least count requests have arrived."""
        deadline = time.monotonic() + timeout
        while self.calls() < count:
            if time.monotonic() > deadline:
                return False
            time.sleep(0.01)
        return True


# Newest first, as FRED returns with sort_order=desc
MORTGAGE30_OBS = [
    ("2026-10-15", "6.30"),
    ("2026-10-08", "."),
    ("2026-10-01", "6.35"),
    ("2026-09-24", "6.40"),
    ("2026-09-17", "6.42"),
    ("2026-09-10", "6.38"),
    ("2026-09-03", "6.45"),
    ("2026-08-27", "6.50"),
    ("2026-08-20", "6.55"),
    ("2026-08-13", "6.60"),
    ("2026-08-06", "6.62"),
]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_fred():
    fred = FakeFred()
    fred.payloads["MORTGAGE30US"] = list(MORTGAGE30_OBS)
    fred.payloads["MORTGAGE15US"] = [("2026-10-15", "5.60"), ("2026-10-08", "5.65")]
    fred.payloads["DGS10"] = [("2026-10-16", "4.10"), ("2026-10-15", "4.12")]
    fred.payloads["FEDFUNDS"] = [("2026-09-01", "4.33")]
    fred.payloads["DPRIME"] = [("2026-10-16", "7.50")]
    return fred


@pytest.fixture
def live_settings():
    return Settings(fred_api_key="test-key", cache_ttl=3600)


@pytest.fixture
def offline_settings():
    return Settings(fred_api_key="", cache_ttl=3600)


@pytest.fixture
def cache(clock):
    return SeriesCache(ttl=3600, clock=clock)


@pytest.fixture
def live_client(live_settings, fake_fred):
    client = FredClient(live_settings, transport=httpx.MockTransport(fake_fred.handler))
    yield client
    client.close()


@pytest.fixture
def offline_client(offline_settings, fake_fred):
    client = FredClient(offline_settings, transport=httpx.MockTransport(fake_fred.handler))
    yield client
    client.close()


@pytest.fixture
def live_resolver(live_client, cache, live_settings):
    return SeriesResolver(live_client, cache, live_settings)


@pytest.fixture
def offline_resolver(offline_client, cache, offline_settings):
    return SeriesResolver(offline_client, cache, offline_settings)


@pytest.fixture
def offline_service(offline_settings, offline_client, cache):
    return RateService(offline_settings, client=offline_client, cache=cache)


@pytest.fixture
def live_service(live_settings, live_client, cache):
    return RateService(live_settings, client=live_client, cache=cache)
