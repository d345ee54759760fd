import json

import pytest

from ratecroft.errors import InvalidLoanError, UnknownSeriesError, UpstreamUnavailableError
from ratecroft.pricing.mortgage import LoanRequest
from ratecroft.service import TODAY_RATE_ROWS, RateService


# ---------------------------------------------------------------------------
# Rates snapshot
# ---------------------------------------------------------------------------

def test_offline_rates_snapshot(offline_service, fake_fred):
    rates = offline_service.get_rates()

    assert rates["live"] is False
    assert rates["asOf"] == "2026-02-20"
    assert rates["mortgage"]["rate_30yr"]["value"] == 6.76
    assert rates["mortgage"]["rate_20yr"]["value"] == 6.51
    assert rates["mortgage"]["rate_arm51"]["value"] == 6.21
    assert rates["byLoanType"]["fha"] == {"rate30": 6.51, "apr30": 6.66}
    assert rates["benchmarks"]["prime_rate"]["value"] == 8.5
    assert fake_fred.calls() == 0
    json.dumps(rates)


def test_live_rates_snapshot(live_service):
    rates = live_service.get_rates()

    assert rates["live"] is True
    assert rates["mortgage"]["rate_30yr"] == {"value": 6.30, "change": -0.05, "date": "2026-10-15"}
    assert rates["benchmarks"]["treasury_10yr"]["change"] == -0.02
    assert len(rates["history"]["rate_30yr"]) == 8


def test_outage_degrades_snapshot_but_not_single_series(live_service, fake_fred):
    fake_fred.timeout = True

    rates = live_service.get_rates()
    assert rates["mortgage"]["rate_30yr"]["value"] == 6.76

    with pytest.raises(UpstreamUnavailableError):
        live_service.get_series("30yr")


def test_get_series(live_service):
    series = live_service.get_series("treasury10")
    assert series["seriesId"] == "DGS10"
    assert series["value"] == 4.10
    assert series["live"] is True


def test_unknown_rate_type(offline_service):
    with pytest.raises(UnknownSeriesError) as exc:
        offline_service.get_series("30yr-jumbo")
    assert "treasury10" in exc.value.valid


def test_summary_rows(offline_service):
    summary = offline_service.get_summary()
    labels = [row["label"] for row in summary["rates"]]

    assert len(labels) == 8
    assert labels[0] == "30-Yr Fixed"
    assert summary["rates"][3]["value"] == 6.21


# ---------------------------------------------------------------------------
# Today's table
# ---------------------------------------------------------------------------

def test_today_rates_table(offline_service):
    today = offline_service.get_today_rates()
    rows = today["rates"]

    assert len(rows) == len(TODAY_RATE_ROWS) == 17
    assert rows[0]["type"] == "30-Year Fixed"
    assert rows[0]["rate"] == 6.76
    assert rows[0]["apr"] == 6.9
    assert rows[0]["weekChange"] == -0.04
    assert rows[1]["weekChange"] is None
    assert rows[2]["rate"] == 6.03
    assert today["summary"]["rateArm"]["value"] == 6.21


def test_today_rates_payment_matches_term(offline_service):
    rows = {row["type"]: row for row in offline_service.get_today_rates()["rates"]}
    assert rows["15-Year Fixed"]["monthlyPayment"] > rows["30-Year Fixed"]["monthlyPayment"]
    assert rows["30-Year VA"]["rate"] == 6.26


def test_today_history_is_oldest_first(live_service):
    history = live_service.get_today_rates()["history7"]
    assert history[0]["date"] < history[-1]["date"]
    assert history[-1]["value"] == 6.30


# ---------------------------------------------------------------------------
# Calculators and quotes
# ---------------------------------------------------------------------------

def test_calculate(offline_service):
    result = offline_service.calculate(
        LoanRequest(price=400_000, down_payment=80_000, annual_rate=6.75)
    )
    assert result["monthly"]["principal_interest"] == pytest.approx(2075.51, abs=0.01)


def test_calculate_rejects_bad_loan(offline_service):
    with pytest.raises(InvalidLoanError):
        offline_service.calculate(LoanRequest(price=0, down_payment=0, annual_rate=6.75))


def test_affordability_and_refinance_defaults(offline_service):
    assert offline_service.affordability()["monthly_income"] == pytest.approx(8333.33, abs=0.01)
    assert offline_service.refinance()["breakeven"]["worth_it"] is True


def test_lender_quotes_default_request(offline_service):
    quotes = offline_service.lender_quotes()
    assert quotes["state"] == "CA"
    assert quotes["baseRate"] == 6.76
    assert quotes["loan"] == 400_000
    assert len(quotes["quotes"]) == 8


def test_lender_quotes_for_fifteen_year(offline_service):
    quotes = offline_service.lender_quotes(state="ZZ", loan_type="15yr")
    assert quotes["baseRate"] == 6.03
    assert quotes["term"] == 15
    assert quotes["adjustments"]["state"] == 0.01


def test_lender_quotes_unknown_loan_type(offline_service):
    with pytest.raises(UnknownSeriesError):
        offline_service.lender_quotes(loan_type="heloc")


def test_rate_history_offline(offline_service):
    history = offline_service.rate_history("3yr", "arm")
    assert history["period"] == "3yr"
    assert history["live"] is False
    assert len(history["data"]) == 37


# ---------------------------------------------------------------------------
# Alerts support and health
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("loan_type,expected", [("30yr", 6.76), ("15yr", 6.03), ("arm51", 6.21)])
def test_current_rate(offline_service, loan_type, expected):
    assert offline_service.current_rate(loan_type) == expected


def test_current_rate_unknown(offline_service):
    with pytest.raises(UnknownSeriesError):
        offline_service.current_rate("jumbo30")


def test_health(offline_service):
    offline_service.get_rates()
    health = offline_service.health()

    assert health["status"] == "ok"
    assert health["live"] is False
    assert health["cache_keys"] == 5
    assert health["uptime_sec"] >= 0


def test_service_context_manager(offline_settings):
    with RateService(offline_settings) as service:
        assert service.get_summary()["live"] is False
