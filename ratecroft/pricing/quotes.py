"""Synthesize a ranked set of competing lender quotes from one base rate.

Quotes are illustrative. Every figure is a deterministic function of the
request, so identical requests always produce identical quote sets.
"""

import math
from dataclasses import dataclass, field, replace
from typing import Protocol

from ratecroft.errors import InvalidLoanError, UnknownSeriesError
from ratecroft.pricing.mortgage import monthly_payment
from ratecroft.pricing.rates import (
    SPREAD_ARM51,
    SPREAD_ARM71,
    SPREAD_FHA30,
    SPREAD_JUMBO30,
    SPREAD_USDA30,
    SPREAD_VA30,
)


@dataclass(frozen=True)
class Lender:
    id: str
    name: str
    type: str  # online, broker, bank, credit
    nmls: str
    min_credit: int
    url: str


LENDERS: list[Lender] = [
    Lender("rocket", "Rocket Mortgage", "online", "3030", 580, "https://www.rocketmortgage.com/"),
    Lender("uwm", "United Wholesale", "broker", "3038", 620, "https://www.uwm.com/"),
    Lender("loanDepot", "loanDepot", "online", "174457", 620, "https://www.loandepot.com/"),
    Lender("newrez", "NewRez", "online", "3013", 620, "https://www.newrez.com/"),
    Lender("penfed", "PenFed CU", "credit", "401822", 650, "https://www.penfed.org/mortgage"),
    Lender("bofa", "Bank of America", "bank", "399802", 620, "https://www.bankofamerica.com/mortgage/"),
    Lender("chase", "Chase", "bank", "399798", 620, "https://www.chase.com/personal/mortgage"),
    Lender("wells", "Wells Fargo", "bank", "399801", 620, "https://www.wellsfargo.com/mortgage/"),
    Lender("better", "Better.com", "online", "330511", 620, "https://better.com/"),
    Lender("guaranteed", "Guaranteed Rate", "online", "2611", 580, "https://www.rate.com/"),
    Lender("ally", "Ally Bank", "online", "196733", 620, "https://www.ally.com/home-loans/"),
    Lender("flagstar", "Flagstar Bank", "bank", "417490", 580, "https://www.flagstar.com/"),
]

MAX_QUOTES = 8

# State-level rate adjustments
STATE_RATE_ADJ: dict[str, float] = {
    "CA": -0.03, "NY": -0.04, "MA": -0.03, "WA": -0.02, "CO": -0.02, "OR": -0.02,
    "TX": 0.02, "FL": 0.01, "GA": 0.01, "AZ": 0.00, "NC": 0.00, "VA": -0.01,
    "OH": 0.02, "MI": 0.02, "PA": 0.01, "IL": 0.01, "NJ": -0.01, "MD": -0.01,
}
DEFAULT_STATE_ADJ = 0.01  # unlisted states run slightly above national average

# (minimum score, adjustment), best band first
CREDIT_BANDS: list[tuple[int, float]] = [
    (780, 0.00),
    (760, 0.05),
    (740, 0.10),
    (720, 0.18),
    (700, 0.25),
    (680, 0.35),
    (660, 0.45),
    (640, 0.60),
    (620, 0.75),
]
CREDIT_FLOOR_ADJ = 1.00

# (maximum LTV, adjustment), lowest leverage first
LTV_BANDS: list[tuple[float, float]] = [
    (60, -0.15),
    (70, -0.10),
    (75, -0.05),
    (80, 0.00),
    (85, 0.10),
    (90, 0.20),
    (95, 0.30),
]
LTV_CEILING_ADJ = 0.40

PURPOSE_ADJ: dict[str, float] = {
    "purchase": 0.0,
    "refinance": 0.10,
    "cashout": 0.30,
}

# Loan type -> (benchmark it prices off, spread, term in years)
LOAN_TYPES: dict[str, tuple[str, float, int]] = {
    "30yr": ("30yr", 0.0, 30),
    "15yr": ("15yr", 0.0, 15),
    "arm51": ("30yr", SPREAD_ARM51, 30),
    "arm71": ("30yr", SPREAD_ARM71, 30),
    "fha30": ("30yr", SPREAD_FHA30, 30),
    "va30": ("30yr", SPREAD_VA30, 30),
    "usda30": ("30yr", SPREAD_USDA30, 30),
    "jumbo30": ("30yr", SPREAD_JUMBO30, 30),
}

BADGE_LOWEST_RATE = "Lowest Rate"
BADGE_BEST_VALUE = "Best Value"
BADGE_LOWEST_FEES = "Lowest Fees"


def round_half_up(x: float) -> int:
    """Round to the nearest integer, ties up. Built-in round() sends ties to even."""
    return math.floor(x + 0.5)


def base_rate_for(loan_type: str, benchmarks: dict[str, float]) -> tuple[float, int]:
    """
    Base rate and term for a loan type.

    Args:
        loan_type: Key of LOAN_TYPES
        benchmarks: Observed rates keyed "30yr" and "15yr"

    Raises:
        UnknownSeriesError: loan type not in LOAN_TYPES
    """
    if loan_type not in LOAN_TYPES:
        raise UnknownSeriesError("loan type", loan_type, LOAN_TYPES)
    benchmark, spread, term = LOAN_TYPES[loan_type]
    return round(benchmarks[benchmark] + spread, 2), term


def normalize_state(state: str) -> str:
    code = str(state).strip().upper()[:2]
    if len(code) != 2 or not code.isalpha():
        raise InvalidLoanError(f"State must be a two-letter code, got {state!r}")
    return code


def state_adjustment(state: str) -> float:
    return STATE_RATE_ADJ.get(normalize_state(state), DEFAULT_STATE_ADJ)


def credit_adjustment(score: int) -> float:
    """Worse credit, larger add-on."""
    for floor, adj in CREDIT_BANDS:
        if score >= floor:
            return adj
    return CREDIT_FLOOR_ADJ


def ltv_adjustment(price: float, down_payment: float) -> float:
    """Higher leverage, larger add-on."""
    ltv = (price - down_payment) * 100 / price
    for ceiling, adj in LTV_BANDS:
        if ltv <= ceiling:
            return adj
    return LTV_CEILING_ADJ


def purpose_adjustment(purpose: str) -> float:
    try:
        return PURPOSE_ADJ[purpose]
    except KeyError:
        raise InvalidLoanError(
            f"Unknown purpose {purpose!r}, expected one of {', '.join(PURPOSE_ADJ)}"
        ) from None


class QuoteVariation(Protocol):
    """Source of the per-lender spread. Must be reproducible from its inputs."""

    def seed(self, state: str) -> int: ...

    def order(self, lenders: list[Lender], seed: int) -> list[Lender]: ...

    def spread(self, seed: int, index: int) -> float: ...


class TrigQuoteVariation:
    """
    Frozen variation formula. Tests assert exact output, so changes here
    change every quote.

        seed       = ord(state[0]) + ord(state[1])
        order key  = (ord(lender.id[0]) + seed) % 7, stable
        spread(i)  = round(0.04 * i - 0.08 + 0.05 * sin(seed + i), 3)

    Spreads have three decimals, so fee amounts regularly land on .5 and
    are rounded half up (see round_half_up).
    """

    def seed(self, state: str) -> int:
        return ord(state[0]) + ord(state[1])

    def order(self, lenders: list[Lender], seed: int) -> list[Lender]:
        return sorted(lenders, key=lambda lender: (ord(lender.id[0]) + seed) % 7)

    def spread(self, seed: int, index: int) -> float:
        return round((index * 0.04 - 0.08) + math.sin(seed + index) * 0.05, 3)


@dataclass(frozen=True)
class LenderQuote:
    lender_id: str
    lender: str
    lender_type: str
    nmls: str
    url: str
    rate: float
    apr: float
    points: float
    fees: int
    monthly_payment: float
    loan_amount: float
    term: int
    loan_type: str
    badge: str | None = None

    def to_dict(self) -> dict:
        return {
            "lenderId": self.lender_id,
            "lender": self.lender,
            "lenderType": self.lender_type,
            "nmls": self.nmls,
            "url": self.url,
            "rate": self.rate,
            "apr": self.apr,
            "points": self.points,
            "fees": self.fees,
            "monthlyPayment": self.monthly_payment,
            "loanAmount": self.loan_amount,
            "term": self.term,
            "loanType": self.loan_type,
            "badge": self.badge,
        }


@dataclass(frozen=True)
class QuoteSet:
    """All quotes for one request, sorted by rate with badges assigned."""

    state: str
    loan_type: str
    credit_score: int
    price: float
    down_payment: float
    loan_amount: float
    purpose: str
    term: int
    base_rate: float
    adjustments: dict[str, float] = field(default_factory=dict)
    quotes: list[LenderQuote] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "state": self.state,
            "loanType": self.loan_type,
            "creditScore": self.credit_score,
            "price": self.price,
            "down": self.down_payment,
            "loan": self.loan_amount,
            "purpose": self.purpose,
            "term": self.term,
            "baseRate": self.base_rate,
            "adjustments": dict(self.adjustments),
            "quotes": [q.to_dict() for q in self.quotes],
        }


def quote_apr(rate: float, points: float, fees: float, loan_amount: float) -> float:
    """
    Illustrative APR: rate + 0.08 + 0.06 per point + 0.04 x fee ratio.

    Not an amortized cost-of-credit APR. Never below the note rate.
    """
    apr = round(rate + 0.08 + points * 0.06 + fees / loan_amount * 0.04, 3)
    return max(apr, rate)


def assign_badges(quotes: list[LenderQuote]) -> list[LenderQuote]:
    """
    Badge a quote set. Applied last, over the final sorted set.

    Lowest Rate goes to the minimum rate, Best Value to the second-lowest
    APR (or the lowest-APR quote still unbadged if that one already holds
    a badge), Lowest Fees to the third-lowest fees among quotes still
    unbadged. Existing badges are discarded first.
    """
    result = [replace(q, badge=None) for q in quotes]
    if not result:
        return result

    lowest = min(range(len(result)), key=lambda i: result[i].rate)
    result[lowest] = replace(result[lowest], badge=BADGE_LOWEST_RATE)

    by_apr = sorted(range(len(result)), key=lambda i: result[i].apr)
    if len(by_apr) > 1:
        best = by_apr[1]
        if result[best].badge is not None:
            best = next((i for i in by_apr if result[i].badge is None), None)
        if best is not None:
            result[best] = replace(result[best], badge=BADGE_BEST_VALUE)

    unbadged = sorted(
        (i for i in range(len(result)) if result[i].badge is None),
        key=lambda i: result[i].fees,
    )
    if len(unbadged) > 2:
        cheap = unbadged[2]
        result[cheap] = replace(result[cheap], badge=BADGE_LOWEST_FEES)

    return result


def synthesize_quotes(
    base_rate: float,
    state: str,
    loan_type: str,
    credit_score: int,
    price: float,
    down_payment: float,
    purpose: str = "purchase",
    term: int = 30,
    variation: QuoteVariation | None = None,
) -> QuoteSet:
    """
    Build the ranked quote set for a request.

    Args:
        base_rate: Rate for the requested loan type before adjustments
        state: Two-letter state code
        loan_type: Loan type key, echoed on each quote
        credit_score: Borrower credit score; filters the lender roster
        price: Purchase price
        down_payment: Down payment
        purpose: purchase, refinance or cashout
        term: Loan term in years
        variation: Per-lender spread source

    Raises:
        InvalidLoanError: non-positive loan amount, bad state or purpose
    """
    variation = variation or TrigQuoteVariation()
    state = normalize_state(state)
    loan_amount = price - down_payment
    if price <= 0 or loan_amount <= 0:
        raise InvalidLoanError("Down payment cannot exceed price")

    adjustments = {
        "state": state_adjustment(state),
        "credit": credit_adjustment(credit_score),
        "ltv": ltv_adjustment(price, down_payment),
        "purpose": purpose_adjustment(purpose),
    }
    adjusted_base = base_rate + sum(adjustments.values())

    seed = variation.seed(state)
    eligible = [lender for lender in LENDERS if credit_score >= lender.min_credit]
    selected = variation.order(eligible, seed)[:MAX_QUOTES]

    quotes = []
    for i, lender in enumerate(selected):
        spread = variation.spread(seed, i)
        rate = round(adjusted_base + spread, 3)
        points = max(0.0, round(0.5 + i * 0.08 - spread * 2, 2))
        fees = max(1500, round_half_up(2800 + i * 200 - spread * 500))
        quotes.append(
            LenderQuote(
                lender_id=lender.id,
                lender=lender.name,
                lender_type=lender.type,
                nmls=lender.nmls,
                url=lender.url,
                rate=rate,
                apr=quote_apr(rate, points, fees, loan_amount),
                points=points,
                fees=fees,
                monthly_payment=round(monthly_payment(loan_amount, rate, term), 2),
                loan_amount=loan_amount,
                term=term,
                loan_type=loan_type,
            )
        )

    quotes.sort(key=lambda q: q.rate)
    return QuoteSet(
        state=state,
        loan_type=loan_type,
        credit_score=credit_score,
        price=price,
        down_payment=down_payment,
        loan_amount=loan_amount,
        purpose=purpose,
        term=term,
        base_rate=base_rate,
        adjustments=adjustments,
        quotes=assign_badges(quotes),
    )
