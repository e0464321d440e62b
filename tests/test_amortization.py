import dataclasses
from datetime import date
from decimal import Decimal

import pytest

from finengine.core.config import SETTINGS
from finengine.core.errors import NonConvergenceError
from finengine.utils import amortization
from finengine.utils.amortization import (
    analyze_early_payoff,
    balance_at_payment,
    biweekly_monthly_equivalent,
    build_schedule,
    calculate_monthly_payment,
    summarize_by_year,
)
from finengine.utils.loan_models import LoanTerms, PaymentModification


def _loan(**kw):
    base = dict(principal_cents=30_000_000, annual_rate_percent=Decimal("6"), term_months=360, start_date=date(2025, 1, 1))
    base.update(kw)
    return LoanTerms(**base)


def test_thirty_year_schedule():
    out = build_schedule(_loan())
    assert out.ok
    s = out.value
    assert s.entries[0].interest_cents == 150_000
    assert len(s.entries) == 360
    assert s.entries[-1].ending_balance_cents == 0
    assert s.payoff_date == date(2055, 1, 1)
    assert s.monthly_payment_cents == calculate_monthly_payment(30_000_000, Decimal("6"), 360)


def test_schedule_invariants():
    s = build_schedule(_loan()).value
    assert sum(e.principal_cents for e in s.entries) == 30_000_000
    assert s.total_principal_cents == 30_000_000
    assert s.total_payments_cents == s.total_principal_cents + s.total_interest_cents

    for prev, cur in zip(s.entries, s.entries[1:]):
        assert cur.beginning_balance_cents <= prev.beginning_balance_cents
        assert cur.beginning_balance_cents == prev.ending_balance_cents
        assert cur.cumulative_principal_cents >= prev.cumulative_principal_cents
        assert cur.cumulative_interest_cents >= prev.cumulative_interest_cents


def test_extra_payment_shortens_schedule():
    base = build_schedule(_loan()).value
    faster = build_schedule(_loan(), PaymentModification(extra_monthly_payment_cents=50_000)).value
    assert len(faster.entries) < 360
    assert faster.total_interest_cents < base.total_interest_cents
    assert faster.entries[-1].ending_balance_cents == 0
    assert sum(e.principal_cents for e in faster.entries) == 30_000_000


def test_one_time_payment_lands_in_its_month():
    mods = PaymentModification(one_time_payment_cents=1_000_000, one_time_payment_month=12)
    s = build_schedule(_loan(), mods).value
    assert s.entries[11].extra_payment_cents == 1_000_000
    assert s.entries[10].extra_payment_cents == 0
    assert len(s.entries) < 360


def test_biweekly_pays_off_early():
    s = build_schedule(_loan(), PaymentModification(use_biweekly=True)).value
    assert s.payment_frequency == "biweekly"
    assert s.effective_monthly_payment_cents == biweekly_monthly_equivalent(s.monthly_payment_cents)
    assert s.effective_monthly_payment_cents > s.monthly_payment_cents
    assert len(s.entries) < 360


def test_zero_rate_and_zero_principal():
    s = build_schedule(_loan(annual_rate_percent=Decimal("0"), principal_cents=1_000_000, term_months=7)).value
    assert all(e.interest_cents == 0 for e in s.entries)
    assert len(s.entries) == 7
    assert sum(e.principal_cents for e in s.entries) == 1_000_000

    empty = build_schedule(_loan(principal_cents=0)).value
    assert empty.entries == []
    assert empty.total_interest_cents == 0


def test_invalid_inputs_fail_with_locations():
    out = build_schedule(_loan(principal_cents=-1, term_months=0))
    assert not out.ok
    assert out.error.code == "INVALID_INPUT"
    locations = {i.location for i in out.issues}
    assert {"principal_cents", "term_months"} <= locations

    out = build_schedule(_loan(), PaymentModification(one_time_payment_cents=100))
    assert not out.ok
    assert out.issues[0].location == "mods.one_time_payment_month"


def test_non_convergence_is_reported():
    with pytest.raises(NonConvergenceError) as exc:
        amortization._iterate(_loan(), PaymentModification(), max_periods=5)
    assert exc.value.periods == 5
    assert exc.value.remaining_balance_cents > 0


def test_non_convergence_becomes_failure(monkeypatch):
    monkeypatch.setattr(amortization, "SETTINGS", dataclasses.replace(SETTINGS, schedule_safety_factor=0))
    out = build_schedule(_loan())
    assert not out.ok
    assert out.error.code == "NON_CONVERGENCE"
    assert out.error.details["remaining_balance_cents"] == 30_000_000


def test_early_payoff_analysis():
    out = analyze_early_payoff(_loan(), PaymentModification(extra_monthly_payment_cents=50_000))
    assert out.ok
    a = out.value
    assert a.is_paid_off_early
    assert a.months_saved == len(a.original_schedule.entries) - len(a.modified_schedule.entries)
    assert a.interest_saved_cents > 0
    assert a.new_payoff_date < a.original_payoff_date


def test_balance_and_yearly_summary():
    s = build_schedule(_loan()).value
    start = balance_at_payment(s, 0)
    assert start.current_balance_cents == 30_000_000
    assert start.remaining_payments == 360

    after_year = balance_at_payment(s, 12)
    assert after_year.current_balance_cents == s.entries[11].ending_balance_cents
    assert after_year.interest_paid_cents + after_year.remaining_interest_cents == s.total_interest_cents

    years = summarize_by_year(s)
    assert len(years) == 30
    assert years[-1].ending_balance_cents == 0
    assert sum(y.principal_cents for y in years) == 30_000_000


def test_identical_inputs_identical_outputs():
    a = build_schedule(_loan(), PaymentModification(extra_monthly_payment_cents=12_345))
    b = build_schedule(_loan(), PaymentModification(extra_monthly_payment_cents=12_345))
    assert a.model_dump() == b.model_dump()
