"""Level-payment mortgage math: amortization, affordability, refinance."""

import math
from dataclasses import asdict, dataclass, field
from typing import Iterator

from ratecroft.errors import InvalidLoanError


PMI_LTV_THRESHOLD = 80.0  # PMI applies strictly above this LTV
PMI_ANNUAL_RATE = 0.01  # of principal per year, billed monthly
CONSERVATIVE_HOUSING_RATIO = 28.0
FULL_SCHEDULE_MONTHS = 24  # every month reported up to here, then yearly


def payment_factor(annual_rate: float, term_years: float) -> float:
    """
    Monthly payment per dollar of principal.

    Args:
        annual_rate: Annual rate in percent (6.75 means 6.75%)
        term_years: Loan term in years

    Returns:
        r(1+r)^n / ((1+r)^n - 1), or 1/n for a zero rate
    """
    if term_years <= 0:
        raise InvalidLoanError(f"Term must be positive, got {term_years}")
    r = annual_rate / 100 / 12
    n = term_years * 12
    if r == 0:
        return 1 / n
    growth = (1 + r) ** n
    return r * growth / (growth - 1)


def monthly_payment(principal: float, annual_rate: float, term_years: float) -> float:
    """Unrounded principal and interest payment."""
    return principal * payment_factor(annual_rate, term_years)


@dataclass(frozen=True)
class LoanRequest:
    """Inputs to the payment calculator. Taxes and insurance are annual."""

    price: float
    down_payment: float
    annual_rate: float
    term_years: int = 30
    property_tax: float = 0.0
    insurance: float = 0.0
    hoa: float = 0.0

    @property
    def principal(self) -> float:
        return self.price - self.down_payment


@dataclass(frozen=True)
class AmortizationRow:
    month: int
    payment: float
    principal: float
    interest: float
    balance: float


@dataclass(frozen=True)
class MonthlyBreakdown:
    principal_interest: float
    property_tax: float
    insurance: float
    hoa: float
    pmi: float
    total: float


@dataclass(frozen=True)
class LoanSummary:
    amount: float
    ltv: float
    pmi_required: bool
    total_payments: float
    total_interest: float


@dataclass(frozen=True)
class AmortizationResult:
    """Payment breakdown, loan summary and the thinned schedule."""

    request: LoanRequest
    monthly: MonthlyBreakdown
    loan: LoanSummary
    schedule: list[AmortizationRow] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "inputs": {
                "price": self.request.price,
                "down": self.request.down_payment,
                "rate": self.request.annual_rate,
                "term": self.request.term_years,
            },
            "monthly": asdict(self.monthly),
            "loan": asdict(self.loan),
            "amortization": [asdict(row) for row in self.schedule],
        }


def amortization_walk(
    principal: float, annual_rate: float, term_years: float
) -> Iterator[AmortizationRow]:
    """
    Yield every month of the schedule at full precision.

    The balance is carried unrounded from month to month; nothing here is
    floored or rounded.
    """
    payment = monthly_payment(principal, annual_rate, term_years)
    r = annual_rate / 100 / 12
    balance = principal
    for month in range(1, int(round(term_years * 12)) + 1):
        interest = balance * r
        principal_part = payment - interest
        balance -= principal_part
        yield AmortizationRow(month, payment, principal_part, interest, balance)


def _is_reported(month: int) -> bool:
    return month <= FULL_SCHEDULE_MONTHS or month % 12 == 0


def amortize(request: LoanRequest) -> AmortizationResult:
    """
    Compute monthly cost, LTV/PMI and the reported amortization schedule.

    Raises:
        InvalidLoanError: principal, price or term not positive
    """
    principal = request.principal
    if request.price <= 0:
        raise InvalidLoanError(f"Price must be positive, got {request.price}")
    if principal <= 0:
        raise InvalidLoanError("Down payment cannot exceed price")
    if request.term_years <= 0:
        raise InvalidLoanError(f"Term must be positive, got {request.term_years}")

    pi = monthly_payment(principal, request.annual_rate, request.term_years)
    n = request.term_years * 12
    tax_mo = request.property_tax / 12
    ins_mo = request.insurance / 12
    ltv = principal * 100 / request.price
    pmi_required = ltv > PMI_LTV_THRESHOLD
    pmi = round(principal * PMI_ANNUAL_RATE / 12, 2) if pmi_required else 0.0

    schedule = [
        AmortizationRow(
            month=row.month,
            payment=round(row.payment, 2),
            principal=round(row.principal, 2),
            interest=round(row.interest, 2),
            balance=round(max(0.0, row.balance), 2),
        )
        for row in amortization_walk(principal, request.annual_rate, request.term_years)
        if _is_reported(row.month)
    ]

    return AmortizationResult(
        request=request,
        monthly=MonthlyBreakdown(
            principal_interest=round(pi, 2),
            property_tax=round(tax_mo, 2),
            insurance=round(ins_mo, 2),
            hoa=round(request.hoa, 2),
            pmi=pmi,
            total=round(pi + tax_mo + ins_mo + request.hoa + pmi, 2),
        ),
        loan=LoanSummary(
            amount=round(principal, 2),
            ltv=round(ltv, 1),
            pmi_required=pmi_required,
            total_payments=round(pi * n, 2),
            total_interest=round(pi * n - principal, 2),
        ),
        schedule=schedule,
    )


def _budget_branch(budget: float, factor: float, down_payment: float, dti: float) -> dict:
    budget = max(0.0, budget)
    max_loan = budget / factor
    return {
        "max_home_price": round(max_loan + down_payment),
        "max_loan": round(max_loan),
        "monthly_payment": round(budget, 2),
        "dti": dti,
    }


def affordability(
    annual_income: float,
    monthly_debts: float,
    down_payment: float,
    rate: float,
    term: int = 30,
    dti_limit: float = 43.0,
) -> dict:
    """
    Maximum loan and home price for an income.

    "recommended" spends up to the caller's DTI ceiling after existing
    debts; "conservative" is pinned to a 28% housing ratio regardless of
    the caller's DTI and debts.
    """
    if annual_income < 0:
        raise InvalidLoanError(f"Income cannot be negative, got {annual_income}")
    factor = payment_factor(rate, term)
    monthly_income = annual_income / 12

    return {
        "inputs": {
            "annual_income": annual_income,
            "monthly_debts": monthly_debts,
            "down_payment": down_payment,
            "rate": rate,
        },
        "recommended": _budget_branch(
            monthly_income * dti_limit / 100 - monthly_debts, factor, down_payment, dti_limit
        ),
        "conservative": _budget_branch(
            monthly_income * CONSERVATIVE_HOUSING_RATIO / 100,
            factor,
            down_payment,
            CONSERVATIVE_HOUSING_RATIO,
        ),
        "monthly_income": round(monthly_income, 2),
    }


def refinance(
    current_balance: float,
    current_rate: float,
    new_rate: float,
    remaining_term: float = 25,
    new_term: float = 30,
    closing_costs: float = 0.0,
) -> dict:
    """
    Compare the current loan against a refinance.

    Breakeven is the first whole month at which cumulative savings cover
    closing costs; None when the new payment is not lower.
    """
    if current_balance <= 0:
        raise InvalidLoanError(f"Balance must be positive, got {current_balance}")

    current_pmt = monthly_payment(current_balance, current_rate, remaining_term)
    new_pmt = monthly_payment(current_balance, new_rate, new_term)
    savings = current_pmt - new_pmt

    months = math.ceil(closing_costs / savings) if savings > 0 else None
    interest_savings = (current_pmt * remaining_term * 12 - current_balance) - (
        new_pmt * new_term * 12 - current_balance
    )

    return {
        "inputs": {
            "current_balance": current_balance,
            "current_rate": current_rate,
            "new_rate": new_rate,
            "closing_costs": closing_costs,
        },
        "monthly": {
            "current_payment": round(current_pmt, 2),
            "new_payment": round(new_pmt, 2),
            "monthly_savings": round(savings, 2),
        },
        "breakeven": {
            "months": months,
            "years": round(months / 12, 1) if months is not None else None,
            "worth_it": months is not None and months < new_term * 12,
        },
        "lifetime": {
            "interest_savings": round(interest_savings, 2),
            "net_savings_after_costs": round(interest_savings - closing_costs, 2),
        },
    }
