"""Rate derivation, mortgage math, lender quotes and history windowing."""

from ratecroft.pricing.history import HistoryWindow, RateHistory
from ratecroft.pricing.mortgage import LoanRequest, affordability, amortize, refinance
from ratecroft.pricing.quotes import QuoteSet, synthesize_quotes
from ratecroft.pricing.rates import DerivedRateSet, derive

__all__ = [
    "DerivedRateSet",
    "HistoryWindow",
    "LoanRequest",
    "QuoteSet",
    "RateHistory",
    "affordability",
    "amortize",
    "derive",
    "refinance",
    "synthesize_quotes",
]
