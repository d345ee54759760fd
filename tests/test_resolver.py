import threading
from datetime import date

import httpx
import pytest

from ratecroft.config import Settings
from ratecroft.data.cache import SeriesCache
from ratecroft.data.fred_fetcher import FredClient
from ratecroft.data.resolver import SeriesResolver
from ratecroft.errors import UpstreamEmptyError, UpstreamUnavailableError


# ---------------------------------------------------------------------------
# No FRED key
# ---------------------------------------------------------------------------

def test_missing_key_serves_fallback_without_upstream(offline_resolver, fake_fred):
    resolved = offline_resolver.resolve("MORTGAGE30US")

    assert resolved.live is False
    assert resolved.value == 6.76
    assert resolved.change == -0.04
    assert resolved.previous_value == 6.8
    assert resolved.as_of_date == date(2026, 2, 20)
    assert len(resolved.history) == 1
    assert fake_fred.calls() == 0


def test_missing_key_fallback_is_cached(offline_resolver, cache):
    first = offline_resolver.resolve("DGS10")
    assert offline_resolver.resolve("DGS10") is first
    assert "fred:DGS10" in cache.keys()


def test_unknown_series_gets_default_fallback(offline_resolver):
    resolved = offline_resolver.resolve("NOTASERIES")
    assert resolved.value == 6.75
    assert resolved.change == 0.0


# ---------------------------------------------------------------------------
# Live fetch
# ---------------------------------------------------------------------------

def test_live_resolve_skips_missing_values(live_resolver, fake_fred):
    resolved = live_resolver.resolve("MORTGAGE30US")

    assert resolved.live is True
    assert resolved.value == 6.30
    assert resolved.previous_value == 6.35
    assert resolved.change == -0.05
    assert resolved.as_of_date == date(2026, 10, 15)
    assert len(resolved.history) == 8
    assert [obs.date for obs in resolved.history][:2] == [date(2026, 10, 15), date(2026, 10, 1)]

    params = fake_fred.requests[0].url.params
    assert params["limit"] == "10"
    assert params["sort_order"] == "desc"
    assert "observation_start" in params


def test_single_observation_has_zero_change(live_resolver):
    resolved = live_resolver.resolve("DPRIME")
    assert resolved.value == 7.5
    assert resolved.previous_value == 7.5
    assert resolved.change == 0.0


def test_all_missing_is_empty_error(live_resolver, fake_fred, cache):
    fake_fred.payloads["MORTGAGE15US"] = [("2026-10-15", "."), ("2026-10-08", ".")]
    with pytest.raises(UpstreamEmptyError):
        live_resolver.resolve("MORTGAGE15US")
    assert cache.get_stale("fred:MORTGAGE15US") is None


def test_hit_within_ttl_makes_no_call(live_resolver, fake_fred, clock):
    live_resolver.resolve("MORTGAGE30US")
    clock.advance(3599)
    live_resolver.resolve("MORTGAGE30US")
    assert fake_fred.calls("MORTGAGE30US") == 1

    clock.advance(1)
    live_resolver.resolve("MORTGAGE30US")
    assert fake_fred.calls("MORTGAGE30US") == 2


def test_concurrent_cold_resolves_issue_one_request(live_resolver, fake_fred):
    fake_fred.delay = 0.2
    results = []

    def worker():
        results.append(live_resolver.resolve("MORTGAGE30US"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert fake_fred.calls("MORTGAGE30US") == 1
    assert len(results) == 8
    assert all(r is results[0] for r in results)


# ---------------------------------------------------------------------------
# Outage
# ---------------------------------------------------------------------------

def test_outage_surfaces_from_resolve(live_resolver, fake_fred, cache):
    fake_fred.timeout = True
    with pytest.raises(UpstreamUnavailableError):
        live_resolver.resolve("MORTGAGE30US")
    assert cache.get_stale("fred:MORTGAGE30US") is None


def test_outage_degrades_to_fallback(live_resolver, fake_fred):
    fake_fred.status = 500
    resolved = live_resolver.resolve_or_fallback("MORTGAGE30US")
    assert resolved.live is False
    assert resolved.value == 6.76


def test_outage_prefers_stale_cache(live_resolver, fake_fred, clock):
    fresh = live_resolver.resolve("MORTGAGE30US")
    clock.advance(7200)
    fake_fred.status = 502

    assert live_resolver.resolve_or_fallback("MORTGAGE30US") is fresh


def test_recovers_after_outage(live_resolver, fake_fred):
    fake_fred.status = 503
    with pytest.raises(UpstreamUnavailableError):
        live_resolver.resolve("MORTGAGE30US")

    fake_fred.status = 200
    assert live_resolver.resolve("MORTGAGE30US").value == 6.30


def test_waiter_gives_up_while_owner_completes(fake_fred, clock):
    settings = Settings(fred_api_key="test-key", request_timeout=0.2)
    cache = SeriesCache(ttl=3600, clock=clock)
    fake_fred.delay = 1.0
    outcome = {}

    with FredClient(settings, transport=httpx.MockTransport(fake_fred.handler)) as client:
        resolver = SeriesResolver(client, cache, settings)

        def owner():
            outcome["owner"] = resolver.resolve("MORTGAGE30US")

        t = threading.Thread(target=owner)
        t.start()
        assert fake_fred.wait_for_calls(1)

        # waiters give up after twice the request timeout
        with pytest.raises(UpstreamUnavailableError, match="timed out waiting"):
            resolver.resolve("MORTGAGE30US")

        t.join(timeout=5)

    assert outcome["owner"].value == 6.30
    assert fake_fred.calls("MORTGAGE30US") == 1
    assert cache.get("fred:MORTGAGE30US") is outcome["owner"]


# ---------------------------------------------------------------------------
# Static records
# ---------------------------------------------------------------------------

def test_fallback_ignores_live_data(live_resolver, fake_fred):
    live_resolver.resolve("MORTGAGE15US")
    record = live_resolver.fallback("MORTGAGE15US")

    assert record.live is False
    assert record.value == 6.03
    assert record.previous_value == 6.06
    assert fake_fred.calls("MORTGAGE15US") == 1
