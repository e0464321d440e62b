from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

_FROZEN = ConfigDict(frozen=True)


class LoanTerms(BaseModel):
    model_config = _FROZEN

    principal_cents: int
    annual_rate_percent: Decimal = Field(..., description="7.25 means 7.25%")
    term_months: int
    start_date: date


class PaymentModification(BaseModel):
    model_config = _FROZEN

    extra_monthly_payment_cents: int = 0
    one_time_payment_cents: int = 0
    one_time_payment_month: Optional[int] = Field(default=None, description="1-based payment number")
    use_biweekly: bool = False


class AmortizationEntry(BaseModel):
    model_config = _FROZEN

    payment_number: int
    payment_date: date
    beginning_balance_cents: int
    scheduled_payment_cents: int
    extra_payment_cents: int
    principal_cents: int
    interest_cents: int
    total_payment_cents: int
    ending_balance_cents: int
    cumulative_principal_cents: int
    cumulative_interest_cents: int


class AmortizationSchedule(BaseModel):
    model_config = _FROZEN

    entries: List[AmortizationEntry]
    monthly_payment_cents: int = Field(..., description="Level payment from the annuity formula")
    effective_monthly_payment_cents: int = Field(..., description="Payment actually applied each month (biweekly-adjusted)")
    payment_frequency: Literal["monthly", "biweekly"] = "monthly"
    total_payments_cents: int
    total_interest_cents: int
    total_principal_cents: int
    original_term_months: int
    payoff_month: int
    start_date: date
    payoff_date: date


class EarlyPayoffAnalysis(BaseModel):
    model_config = _FROZEN

    original_schedule: AmortizationSchedule
    modified_schedule: AmortizationSchedule
    months_saved: int
    interest_saved_cents: int
    is_paid_off_early: bool
    original_payoff_date: date
    new_payoff_date: date


class LoanBalanceSummary(BaseModel):
    model_config = _FROZEN

    current_balance_cents: int
    principal_paid_cents: int
    interest_paid_cents: int
    remaining_payments: int
    remaining_interest_cents: int


class YearlyLoanSummary(BaseModel):
    model_config = _FROZEN

    year: int
    payments_cents: int
    principal_cents: int
    interest_cents: int
    extra_payments_cents: int
    ending_balance_cents: int
