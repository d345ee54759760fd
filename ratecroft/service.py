"""Rates service: the entry points behind the API and the dashboard.

One RateService is built at process start. It owns the shared SeriesCache
and hands it, with the FRED client, to the resolver and the history window.
Every entry point returns a JSON-serializable dict.
"""

import logging
import time
from datetime import datetime, timezone

from ratecroft.config import FRED_SERIES, Settings
from ratecroft.data.cache import SeriesCache
from ratecroft.data.fred_fetcher import FredClient
from ratecroft.data.resolver import SeriesResolver
from ratecroft.errors import UnknownSeriesError
from ratecroft.models import ResolvedSeries
from ratecroft.pricing.history import HistoryWindow
from ratecroft.pricing.mortgage import (
    LoanRequest,
    affordability,
    amortize,
    monthly_payment,
    refinance,
)
from ratecroft.pricing.quotes import base_rate_for, synthesize_quotes
from ratecroft.pricing.rates import LOAN_TYPE_APR_SPREADS, derive, derive_arm51


logger = logging.getLogger(__name__)

SERVICE_NAME = "RateCroft Rates API"
VERSION = "1.0.0"

# Single-series lookups by rate type
RATE_TYPES: dict[str, str] = {
    "30yr": FRED_SERIES["rate_30yr"],
    "15yr": FRED_SERIES["rate_15yr"],
    "treasury10": FRED_SERIES["treasury10"],
    "fedfunds": FRED_SERIES["fed_funds"],
    "prime": FRED_SERIES["prime_rate"],
}

ALERT_LOAN_TYPES = ("30yr", "15yr", "arm51")

TODAY_TABLE_LOAN = 320_000  # $400k home, 20% down

# (label, benchmark, spread, term, apr spread, points, category, min down,
#  min credit, week-change source)
TODAY_RATE_ROWS: list[tuple] = [
    ("30-Year Fixed", "30yr", 0.00, 30, 0.14, 0.7, "fixed", "3%", 620, "30yr"),
    ("20-Year Fixed", "30yr", -0.25, 20, 0.12, 0.6, "fixed", "5%", 620, None),
    ("15-Year Fixed", "15yr", 0.00, 15, 0.11, 0.6, "fixed", "3%", 620, "15yr"),
    ("10-Year Fixed", "30yr", -0.50, 10, 0.10, 0.5, "fixed", "5%", 620, None),
    ("5/1 ARM", "arm51", 0.00, 30, 0.12, 0.5, "arm", "5%", 640, "arm51"),
    ("7/1 ARM", "30yr", -0.40, 30, 0.11, 0.5, "arm", "5%", 640, "arm51"),
    ("10/1 ARM", "30yr", -0.20, 30, 0.10, 0.4, "arm", "5%", 640, "arm51"),
    ("30-Year FHA", "30yr", -0.25, 30, 0.15, 0.5, "fha", "3.5%", 580, None),
    ("15-Year FHA", "15yr", -0.20, 15, 0.14, 0.4, "fha", "3.5%", 580, None),
    ("30-Year VA", "30yr", -0.50, 30, 0.10, 0.3, "va", "0%", 580, None),
    ("15-Year VA", "15yr", -0.40, 15, 0.09, 0.3, "va", "0%", 580, None),
    ("30-Year USDA", "30yr", -0.30, 30, 0.12, 0.4, "usda", "0%", 580, None),
    ("30-Year Jumbo", "30yr", 0.25, 30, 0.15, 0.8, "jumbo", "10%", 700, None),
    ("15-Year Jumbo", "15yr", 0.15, 15, 0.13, 0.7, "jumbo", "10%", 700, None),
    ("30-Year Fixed Refi", "30yr", 0.10, 30, 0.14, 0.6, "refi", None, 620, None),
    ("15-Year Fixed Refi", "15yr", 0.10, 15, 0.12, 0.5, "refi", None, 620, None),
    ("Cash-Out Refi", "30yr", 0.30, 30, 0.16, 0.7, "refi", None, 640, None),
]


def _point(series: ResolvedSeries) -> dict:
    return {
        "value": series.value,
        "change": series.change,
        "date": series.as_of_date.isoformat(),
    }


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class RateService:
    """Cache-backed and pure entry points for rates and loan math."""

    def __init__(
        self,
        settings: Settings | None = None,
        client: FredClient | None = None,
        cache: SeriesCache | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.settings.validate()
        self.client = client or FredClient(self.settings)
        self.cache = cache or SeriesCache(self.settings.cache_ttl)
        self.resolver = SeriesResolver(self.client, self.cache, self.settings)
        self.history_window = HistoryWindow(self.client, self.cache, self.settings)
        self._started = time.monotonic()

        if not self.settings.has_fred_key():
            logger.warning("FRED_API_KEY not set, using built-in fallback rates")

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "RateService":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    @property
    def live(self) -> bool:
        return self.settings.has_fred_key()

    def _source(self) -> str:
        if self.live:
            return "Federal Reserve Economic Data (FRED) / Freddie Mac"
        return "Built-in fallback rates (set FRED_API_KEY for live data)"

    def _benchmarks(self) -> dict[str, ResolvedSeries]:
        """Resolve every headline series, degrading to fallback records."""
        return {
            name: self.resolver.resolve_or_fallback(series_id)
            for name, series_id in FRED_SERIES.items()
        }

    def get_rates(self) -> dict:
        """Full rates snapshot: mortgage products, loan types, benchmarks."""
        b = self._benchmarks()
        r30, r15 = b["rate_30yr"], b["rate_15yr"]
        d = derive(r30.value)
        arm51 = derive_arm51(r30.value)

        def by_type(rate: float, kind: str) -> dict:
            return {"rate30": rate, "apr30": round(rate + LOAN_TYPE_APR_SPREADS[kind], 2)}

        return {
            "source": self._source(),
            "live": self.live,
            "updatedAt": _now(),
            "asOf": r30.as_of_date.isoformat(),
            "mortgage": {
                "rate_30yr": _point(r30),
                "rate_15yr": _point(r15),
                "rate_20yr": {"value": d.rate_20yr, "change": None},
                "rate_arm51": {
                    "value": arm51,
                    "change": r30.change,
                    "date": r30.as_of_date.isoformat(),
                },
                "rate_arm71": {"value": d.rate_arm71, "change": None},
            },
            "byLoanType": {
                "conventional": {"rate30": r30.value, "rate15": r15.value},
                "fha": by_type(d.rate_fha30, "fha"),
                "va": by_type(d.rate_va30, "va"),
                "usda": by_type(d.rate_usda30, "usda"),
                "jumbo": by_type(d.rate_jumbo30, "jumbo"),
                "cashout_refi": by_type(d.rate_cashout, "cashout_refi"),
            },
            "benchmarks": {
                "treasury_10yr": _point(b["treasury10"]),
                "fed_funds": _point(b["fed_funds"]),
                "prime_rate": _point(b["prime_rate"]),
            },
            "history": {
                "rate_30yr": [obs.to_dict() for obs in r30.history],
                "rate_15yr": [obs.to_dict() for obs in r15.history],
            },
        }

    def get_summary(self) -> dict:
        """Headline figures for a rates ticker."""
        r30 = self.resolver.resolve_or_fallback(FRED_SERIES["rate_30yr"])
        r15 = self.resolver.resolve_or_fallback(FRED_SERIES["rate_15yr"])
        t10 = self.resolver.resolve_or_fallback(FRED_SERIES["treasury10"])
        d = derive(r30.value)

        def row(label: str, value: float, change: float | None) -> dict:
            return {"label": label, "value": value, "change": change, "unit": "%"}

        return {
            "live": self.live,
            "updatedAt": _now(),
            "asOf": r30.as_of_date.isoformat(),
            "rates": [
                row("30-Yr Fixed", r30.value, r30.change),
                row("15-Yr Fixed", r15.value, r15.change),
                row("20-Yr Fixed", d.rate_20yr, None),
                row("5/1 ARM", derive_arm51(r30.value), r30.change),
                row("FHA 30-Yr", d.rate_fha30, None),
                row("VA 30-Yr", d.rate_va30, None),
                row("Jumbo 30-Yr", d.rate_jumbo30, None),
                row("10-Yr Treasury", t10.value, t10.change),
            ],
        }

    def get_today_rates(self) -> dict:
        """Daily product table with payments on a $320,000 loan."""
        b = self._benchmarks()
        r30, r15 = b["rate_30yr"], b["rate_15yr"]
        bases = {"30yr": r30.value, "15yr": r15.value, "arm51": derive_arm51(r30.value)}
        changes = {"30yr": r30.change, "15yr": r15.change, "arm51": r30.change}

        rows = []
        for (label, base, spread, term, apr_spread, points, category,
             min_down, min_credit, change_source) in TODAY_RATE_ROWS:
            rate = round(bases[base] + spread, 2)
            rows.append({
                "type": label,
                "rate": rate,
                "term": term,
                "apr": round(bases[base] + spread + apr_spread, 2),
                "points": points,
                "category": category,
                "minDown": min_down,
                "minCredit": min_credit,
                "monthlyPayment": round(monthly_payment(TODAY_TABLE_LOAN, rate, term), 2),
                "weekChange": changes[change_source] if change_source else None,
            })

        return {
            "source": self._source(),
            "live": self.live,
            "updatedAt": _now(),
            "asOf": r30.as_of_date.isoformat(),
            "summary": {
                "rate30yr": {"value": r30.value, "change": r30.change},
                "rate15yr": {"value": r15.value, "change": r15.change},
                "rateArm": {"value": bases["arm51"], "change": r30.change},
                "treasury": {"value": b["treasury10"].value, "change": b["treasury10"].change},
                "fedFunds": {"value": b["fed_funds"].value, "change": b["fed_funds"].change},
            },
            "rates": rows,
            "history7": [obs.to_dict() for obs in reversed(r30.history)],
        }

    def get_series(self, rate_type: str) -> dict:
        """
        Single-series lookup. No fallback path: upstream errors propagate.

        Raises:
            UnknownSeriesError: rate_type not in RATE_TYPES
            UpstreamUnavailableError, UpstreamEmptyError
        """
        if rate_type not in RATE_TYPES:
            raise UnknownSeriesError("rate type", rate_type, RATE_TYPES)
        return self.resolver.resolve(RATE_TYPES[rate_type]).to_dict()

    def calculate(self, request: LoanRequest) -> dict:
        return amortize(request).to_dict()

    def affordability(
        self,
        annual_income: float = 100_000,
        monthly_debts: float = 500,
        down_payment: float = 60_000,
        rate: float = 6.75,
        term: int = 30,
        dti_limit: float = 43,
    ) -> dict:
        return affordability(annual_income, monthly_debts, down_payment, rate, term, dti_limit)

    def refinance(
        self,
        current_balance: float = 320_000,
        current_rate: float = 7.5,
        new_rate: float = 6.75,
        remaining_term: float = 25,
        new_term: float = 30,
        closing_costs: float = 6_000,
    ) -> dict:
        return refinance(
            current_balance, current_rate, new_rate, remaining_term, new_term, closing_costs
        )

    def lender_quotes(
        self,
        state: str = "CA",
        loan_type: str = "30yr",
        credit_score: int = 760,
        price: float = 500_000,
        down_payment: float = 100_000,
        purpose: str = "purchase",
    ) -> dict:
        """
        Ranked lender quotes for a request.

        Raises:
            UnknownSeriesError: unknown loan type
            InvalidLoanError: bad state, purpose or loan amount
        """
        benchmarks = {
            "30yr": self.resolver.resolve_or_fallback(FRED_SERIES["rate_30yr"]).value,
            "15yr": self.resolver.resolve_or_fallback(FRED_SERIES["rate_15yr"]).value,
        }
        base_rate, term = base_rate_for(loan_type, benchmarks)
        quote_set = synthesize_quotes(
            base_rate=base_rate,
            state=state,
            loan_type=loan_type,
            credit_score=credit_score,
            price=price,
            down_payment=down_payment,
            purpose=purpose,
            term=term,
        )
        return quote_set.to_dict()

    def rate_history(self, period: str = "1yr", series: str = "30yr") -> dict:
        return self.history_window.history(series, period).to_dict()

    def current_rate(self, loan_type: str) -> float:
        """
        Current rate for an alert loan type. Read-only, for the alert store.

        Raises:
            UnknownSeriesError: loan type not in ALERT_LOAN_TYPES
        """
        if loan_type not in ALERT_LOAN_TYPES:
            raise UnknownSeriesError("loan type", loan_type, ALERT_LOAN_TYPES)
        if loan_type == "15yr":
            return self.resolver.resolve_or_fallback(FRED_SERIES["rate_15yr"]).value
        r30 = self.resolver.resolve_or_fallback(FRED_SERIES["rate_30yr"]).value
        return derive_arm51(r30) if loan_type == "arm51" else r30

    def health(self) -> dict:
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "version": VERSION,
            "live": self.live,
            "cache_keys": len(self.cache),
            "uptime_sec": int(time.monotonic() - self._started),
            "timestamp": _now(),
        }
