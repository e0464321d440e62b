"""Loan amortization schedules on a monthly grid.

Rounding reconciliation: every period's interest is rounded to the cent, and
whatever residual that leaves is folded into the final period's principal.
The final period is the nominal last payment (``term_months``) or the first
earlier period whose balance fits within that period's principal capacity.
The principal column therefore always sums to the original principal.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional

from finengine.core.config import SETTINGS
from finengine.core.errors import NonConvergenceError
from finengine.utils.dates import add_months
from finengine.utils.loan_models import (
    AmortizationEntry,
    AmortizationSchedule,
    EarlyPayoffAnalysis,
    LoanBalanceSummary,
    LoanTerms,
    PaymentModification,
    YearlyLoanSummary,
)
from finengine.utils.logging import get_logger
from finengine.utils.money import MONTHS_PER_YEAR, apply_rate, monthly_rate, round_cents
from finengine.utils.outcomes import run_guarded
from finengine.utils.validators import validate_loan, validate_modification

logger = get_logger(__name__)

_ONE = Decimal(1)
_NO_MODS = PaymentModification()


def calculate_monthly_payment(principal_cents: int, annual_rate_percent: Decimal, term_months: int) -> int:
    """Level annuity payment, rounded half-up to the cent."""
    if principal_cents == 0:
        return 0
    r = monthly_rate(annual_rate_percent)
    if r == 0:
        return round_cents(Decimal(principal_cents) / Decimal(term_months))
    factor = (_ONE + r) ** term_months
    return round_cents(Decimal(principal_cents) * r * factor / (factor - _ONE))


def calculate_monthly_interest(balance_cents: int, annual_rate_percent: Decimal) -> int:
    return apply_rate(balance_cents, monthly_rate(annual_rate_percent))


def biweekly_monthly_equivalent(monthly_payment_cents: int) -> int:
    """26 half-payments a year expressed per month."""
    half = round_cents(Decimal(monthly_payment_cents) / 2)
    return round_cents(Decimal(half) * 26 / MONTHS_PER_YEAR)


def _iterate(loan: LoanTerms, mods: PaymentModification, max_periods: int) -> AmortizationSchedule:
    payment = calculate_monthly_payment(loan.principal_cents, loan.annual_rate_percent, loan.term_months)
    effective = biweekly_monthly_equivalent(payment) if mods.use_biweekly else payment
    r = monthly_rate(loan.annual_rate_percent)

    entries: List[AmortizationEntry] = []
    balance = loan.principal_cents
    cum_principal = 0
    cum_interest = 0
    n = 0

    while balance > 0:
        if n >= max_periods:
            raise NonConvergenceError(periods=n, remaining_balance_cents=balance)
        n += 1

        interest = apply_rate(balance, r)
        regular = effective - interest
        extra = mods.extra_monthly_payment_cents
        if mods.one_time_payment_month == n:
            extra += mods.one_time_payment_cents

        if n == loan.term_months or balance <= regular + extra:
            # final period: residual lands here
            extra_applied = min(extra, max(0, balance - regular))
            regular = balance - extra_applied
        else:
            extra_applied = extra

        principal = regular + extra_applied
        ending = balance - principal
        cum_principal += principal
        cum_interest += interest

        entries.append(
            AmortizationEntry(
                payment_number=n,
                payment_date=add_months(loan.start_date, n),
                beginning_balance_cents=balance,
                scheduled_payment_cents=regular + interest,
                extra_payment_cents=extra_applied,
                principal_cents=principal,
                interest_cents=interest,
                total_payment_cents=principal + interest,
                ending_balance_cents=ending,
                cumulative_principal_cents=cum_principal,
                cumulative_interest_cents=cum_interest,
            )
        )
        balance = ending

    payoff_date = entries[-1].payment_date if entries else loan.start_date
    return AmortizationSchedule(
        entries=entries,
        monthly_payment_cents=payment,
        effective_monthly_payment_cents=effective,
        payment_frequency="biweekly" if mods.use_biweekly else "monthly",
        total_payments_cents=cum_principal + cum_interest,
        total_interest_cents=cum_interest,
        total_principal_cents=cum_principal,
        original_term_months=loan.term_months,
        payoff_month=len(entries),
        start_date=loan.start_date,
        payoff_date=payoff_date,
    )


def _validate(loan: LoanTerms, mods: Optional[PaymentModification]):
    report = validate_loan(loan)
    if mods is not None and report.ok:
        report.extend(validate_modification(mods, loan), prefix="mods")
        report.finalize()
    return report


def build_schedule(loan: LoanTerms, mods: Optional[PaymentModification] = None):
    """Success[AmortizationSchedule] | Failure (INVALID_INPUT or NON_CONVERGENCE)."""
    cap = SETTINGS.schedule_safety_factor * max(loan.term_months, 1)
    return run_guarded(
        "amortization",
        _validate(loan, mods),
        lambda: _iterate(loan, mods or _NO_MODS, cap),
        logger,
    )


def analyze_early_payoff(loan: LoanTerms, mods: PaymentModification):
    """Compare the unmodified schedule with the modified one."""

    def compute() -> EarlyPayoffAnalysis:
        cap = SETTINGS.schedule_safety_factor * loan.term_months
        original = _iterate(loan, _NO_MODS, cap)
        modified = _iterate(loan, mods, cap)
        months_saved = original.payoff_month - modified.payoff_month
        return EarlyPayoffAnalysis(
            original_schedule=original,
            modified_schedule=modified,
            months_saved=months_saved,
            interest_saved_cents=original.total_interest_cents - modified.total_interest_cents,
            is_paid_off_early=months_saved > 0,
            original_payoff_date=original.payoff_date,
            new_payoff_date=modified.payoff_date,
        )

    return run_guarded("early_payoff", _validate(loan, mods), compute, logger)


def balance_at_payment(schedule: AmortizationSchedule, payment_number: int) -> LoanBalanceSummary:
    """State of the loan right after ``payment_number`` payments (0 = at origination)."""
    entries = schedule.entries
    if payment_number <= 0 or not entries:
        return LoanBalanceSummary(
            current_balance_cents=entries[0].beginning_balance_cents if entries else 0,
            principal_paid_cents=0,
            interest_paid_cents=0,
            remaining_payments=len(entries),
            remaining_interest_cents=schedule.total_interest_cents,
        )

    e = entries[min(payment_number, len(entries)) - 1]
    return LoanBalanceSummary(
        current_balance_cents=e.ending_balance_cents,
        principal_paid_cents=e.cumulative_principal_cents,
        interest_paid_cents=e.cumulative_interest_cents,
        remaining_payments=len(entries) - e.payment_number,
        remaining_interest_cents=schedule.total_interest_cents - e.cumulative_interest_cents,
    )


def summarize_by_year(schedule: AmortizationSchedule) -> List[YearlyLoanSummary]:
    """Totals per loan year (payments 1-12 are year 1)."""
    buckets: Dict[int, Dict[str, int]] = {}
    for e in schedule.entries:
        year = (e.payment_number - 1) // MONTHS_PER_YEAR + 1
        b = buckets.setdefault(year, {"payments": 0, "principal": 0, "interest": 0, "extra": 0, "ending": 0})
        b["payments"] += e.total_payment_cents
        b["principal"] += e.principal_cents
        b["interest"] += e.interest_cents
        b["extra"] += e.extra_payment_cents
        b["ending"] = e.ending_balance_cents

    return [
        YearlyLoanSummary(
            year=year,
            payments_cents=b["payments"],
            principal_cents=b["principal"],
            interest_cents=b["interest"],
            extra_payments_cents=b["extra"],
            ending_balance_cents=b["ending"],
        )
        for year, b in sorted(buckets.items())
    ]
