"""
Investment limit rules.

An investor may put at most a fixed percentage of their declared annual income
into a single project: 10% when income is at least 2,000,000, otherwise 5%.
Investors without an income on record are assessed against
``config.DEFAULT_ANNUAL_INCOME`` and ``config.DEFAULT_VERIFICATION_STATUS``;
the returned snapshot records that the default was applied.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from config import DEFAULT_ANNUAL_INCOME, DEFAULT_VERIFICATION_STATUS

HIGH_INCOME_THRESHOLD = Decimal("2000000")
HIGH_INCOME_LIMIT_PERCENT = 10
STANDARD_LIMIT_PERCENT = 5

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class InvestmentLimit:
    annual_income: Decimal
    max_percentage: int
    max_amount: Decimal


@dataclass(frozen=True)
class InvestorFinancials:
    annual_income: Decimal
    verification_status: Optional[str]
    used_defaults: bool


def compute_limit(annual_income) -> InvestmentLimit:
    income = Decimal(str(annual_income))
    if income < 0:
        raise ValueError("annual_income cannot be negative")
    pct = HIGH_INCOME_LIMIT_PERCENT if income >= HIGH_INCOME_THRESHOLD else STANDARD_LIMIT_PERCENT
    max_amount = (income * pct / 100).quantize(_CENT, rounding=ROUND_HALF_UP)
    return InvestmentLimit(annual_income=income, max_percentage=pct, max_amount=max_amount)


def resolve_investor_financials(profile) -> InvestorFinancials:
    """Income and verification status to assess, falling back to the platform defaults."""
    income = getattr(profile, "annual_income", None) if profile is not None else None
    verification = getattr(profile, "verification_status", None) if profile is not None else None

    used_defaults = False
    if income is None:
        income = DEFAULT_ANNUAL_INCOME
        used_defaults = True
    if verification is None:
        verification = DEFAULT_VERIFICATION_STATUS
        used_defaults = True

    return InvestorFinancials(
        annual_income=Decimal(str(income)),
        verification_status=verification,
        used_defaults=used_defaults,
    )


def limit_exceeded_detail(limit: InvestmentLimit, requested_amount) -> dict:
    requested = Decimal(str(requested_amount))
    return {
        "error": "Investment amount exceeds your limit",
        "annual_income": float(limit.annual_income),
        "max_percentage": limit.max_percentage,
        "max_amount": float(limit.max_amount),
        "requested_amount": float(requested),
        "excess": float(requested - limit.max_amount),
    }
