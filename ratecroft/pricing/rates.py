"""Derive related product rates from the 30-year benchmark."""

from dataclasses import asdict, dataclass


# Spreads over the 30-year fixed benchmark
SPREAD_20YR = -0.25
SPREAD_FHA30 = -0.25
SPREAD_VA30 = -0.50
SPREAD_USDA30 = -0.30
SPREAD_JUMBO30 = 0.25
SPREAD_ARM71 = -0.40
SPREAD_CASHOUT = 0.30

# MORTGAGE5US was discontinued in Nov 2022, so the 5/1 ARM is derived too
SPREAD_ARM51 = -0.55

# APR spread over the product rate, by loan type
LOAN_TYPE_APR_SPREADS: dict[str, float] = {
    "fha": 0.15,
    "va": 0.10,
    "usda": 0.12,
    "jumbo": 0.15,
    "cashout_refi": 0.15,
}


@dataclass(frozen=True)
class DerivedRateSet:
    """Product rates implied by one benchmark rate."""

    rate_20yr: float
    rate_fha30: float
    rate_va30: float
    rate_usda30: float
    rate_jumbo30: float
    rate_arm71: float
    rate_cashout: float

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def derive(benchmark: float) -> DerivedRateSet:
    """Apply the fixed spreads to a 30-year benchmark rate."""
    return DerivedRateSet(
        rate_20yr=round(benchmark + SPREAD_20YR, 2),
        rate_fha30=round(benchmark + SPREAD_FHA30, 2),
        rate_va30=round(benchmark + SPREAD_VA30, 2),
        rate_usda30=round(benchmark + SPREAD_USDA30, 2),
        rate_jumbo30=round(benchmark + SPREAD_JUMBO30, 2),
        rate_arm71=round(benchmark + SPREAD_ARM71, 2),
        rate_cashout=round(benchmark + SPREAD_CASHOUT, 2),
    )


def derive_arm51(benchmark: float) -> float:
    return round(benchmark + SPREAD_ARM51, 2)
