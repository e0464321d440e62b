"""Pay extra on the mortgage, or invest the same cash?

Three tracks run on the same monthly grid:

* baseline: the loan with no extra payment
* pay extra (A): the loan with the extra payment; once it is paid off, the
  cash A no longer sends to the lender is invested
* invest (B): the baseline loan, with the extra amount invested every month

Both A and B spend ``baseline payment + extra`` every month, so the gap
between them is purely a function of where the money went.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional

from finengine.core.config import SETTINGS
from finengine.core.errors import raise_for_failure
from finengine.utils.amortization import build_schedule
from finengine.utils.comparison_models import (
    InvestSummary,
    MortgageVsInvestInput,
    MortgageVsInvestResult,
    MortgageVsInvestYearPoint,
    PayExtraSummary,
)
from finengine.utils.growth import project_with_contributions
from finengine.utils.loan_models import AmortizationSchedule, PaymentModification
from finengine.utils.logging import get_logger
from finengine.utils.money import MONTHS_PER_YEAR, percent_of, round_cents, round_percent
from finengine.utils.outcomes import run_guarded
from finengine.utils.validators import validate_mortgage_vs_invest

logger = get_logger(__name__)

_ONE = Decimal(1)
_HUNDRED = Decimal(100)


def after_tax_value(portfolio_cents: int, contributed_cents: int, capital_gains_tax_percent: Decimal) -> int:
    """Liquidation value: gains taxed once; losses are not credited."""
    gain = portfolio_cents - contributed_cents
    if gain <= 0:
        return portfolio_cents
    return contributed_cents + round_cents(Decimal(gain) * (_ONE - capital_gains_tax_percent / _HUNDRED))


def _monthly_track(schedule: AmortizationSchedule, months: int) -> Dict[str, List[int]]:
    """Per-month payment, cumulative interest/extra and ending balance, padded past payoff."""
    payments: List[int] = []
    cum_interest: List[int] = []
    cum_extra: List[int] = []
    balances: List[int] = []

    entries = schedule.entries
    ci = 0
    ce = 0
    for m in range(months):
        if m < len(entries):
            e = entries[m]
            payments.append(e.total_payment_cents)
            ci = e.cumulative_interest_cents
            ce += e.extra_payment_cents
            balances.append(e.ending_balance_cents)
        else:
            payments.append(0)
            balances.append(0)
        cum_interest.append(ci)
        cum_extra.append(ce)

    return {"payments": payments, "cum_interest": cum_interest, "cum_extra": cum_extra, "balances": balances}


class _Tracks:
    """Loan-side tracks; they do not depend on the investment return."""

    def __init__(self, inp: MortgageVsInvestInput) -> None:
        self.months = inp.horizon_years * MONTHS_PER_YEAR
        self.baseline_schedule = raise_for_failure(build_schedule(inp.loan), side="baseline")
        self.pay_extra_schedule = raise_for_failure(
            build_schedule(inp.loan, PaymentModification(extra_monthly_payment_cents=inp.extra_monthly_payment_cents)),
            side="pay_extra",
        )
        self.baseline = _monthly_track(self.baseline_schedule, self.months)
        self.pay_extra = _monthly_track(self.pay_extra_schedule, self.months)

        extra = inp.extra_monthly_payment_cents
        self.redirected = [
            b + extra - a for b, a in zip(self.baseline["payments"], self.pay_extra["payments"])
        ]
        self.invested = [extra] * self.months


def _yearly(inp: MortgageVsInvestInput, t: _Tracks, return_percent: Decimal) -> List[MortgageVsInvestYearPoint]:
    cg = inp.capital_gains_tax_percent
    invest_values = project_with_contributions(0, return_percent, t.invested)
    redirect_values = project_with_contributions(0, return_percent, t.redirected)

    points: List[MortgageVsInvestYearPoint] = []
    redirected_in = 0
    invested_in = 0
    for year in range(1, inp.horizon_years + 1):
        lo, hi = (year - 1) * MONTHS_PER_YEAR, year * MONTHS_PER_YEAR
        redirected_in += sum(t.redirected[lo:hi])
        invested_in += sum(t.invested[lo:hi])
        i = hi - 1

        gross_saved = t.baseline["cum_interest"][i] - t.pay_extra["cum_interest"][i]
        lost = percent_of(gross_saved, inp.marginal_tax_rate_percent) if inp.mortgage_interest_deductible else 0
        equity_gain = t.baseline["balances"][i] - t.pay_extra["balances"][i]
        redirected_value = after_tax_value(redirect_values[i], redirected_in, cg)
        position = equity_gain - lost + redirected_value

        invest_after_tax = after_tax_value(invest_values[i], invested_in, cg)

        points.append(
            MortgageVsInvestYearPoint(
                year=year,
                pay_extra_cumulative_extra_cents=t.pay_extra["cum_extra"][i],
                pay_extra_interest_saved_gross_cents=gross_saved,
                pay_extra_lost_deduction_cents=lost,
                pay_extra_interest_saved_net_cents=gross_saved - lost,
                pay_extra_remaining_balance_cents=t.pay_extra["balances"][i],
                baseline_remaining_balance_cents=t.baseline["balances"][i],
                pay_extra_equity_gain_cents=equity_gain,
                pay_extra_redirected_value_cents=redirected_value,
                pay_extra_position_cents=position,
                invest_cumulative_contributed_cents=invested_in,
                invest_portfolio_value_cents=invest_values[i],
                invest_after_tax_value_cents=invest_after_tax,
                net_advantage_cents=invest_after_tax - position,
            )
        )
    return points


def _break_even(inp: MortgageVsInvestInput, t: _Tracks) -> Optional[Decimal]:
    """Expected return at which the terminal advantage changes sign, by bisection."""

    def advantage(rate: Decimal) -> int:
        return _yearly(inp, t, rate)[-1].net_advantage_cents

    lo = Decimal(0)
    hi = SETTINGS.break_even_max_return_percent
    f_lo = advantage(lo)
    if f_lo == 0:
        return round_percent(lo)
    f_hi = advantage(hi)
    if f_hi == 0:
        return round_percent(hi)
    if (f_lo > 0) == (f_hi > 0):
        return None

    for _ in range(SETTINGS.break_even_iterations):
        mid = (lo + hi) / 2
        f_mid = advantage(mid)
        if f_mid == 0:
            return round_percent(mid)
        if (f_mid > 0) == (f_lo > 0):
            lo, f_lo = mid, f_mid
        else:
            hi = mid
    return round_percent((lo + hi) / 2)


def _recommend(advantage_cents: int) -> str:
    threshold = SETTINGS.recommendation_threshold_cents
    if advantage_cents > threshold:
        return "invest"
    if advantage_cents < -threshold:
        return "pay_extra"
    return "neutral"


def _compare(inp: MortgageVsInvestInput) -> MortgageVsInvestResult:
    t = _Tracks(inp)
    yearly = _yearly(inp, t, inp.expected_return_percent)
    last = yearly[-1]

    base_s, extra_s = t.baseline_schedule, t.pay_extra_schedule
    pay_extra_summary = PayExtraSummary(
        total_interest_without_extra_cents=base_s.total_interest_cents,
        total_interest_with_extra_cents=extra_s.total_interest_cents,
        interest_saved_cents=base_s.total_interest_cents - extra_s.total_interest_cents,
        original_payoff_months=base_s.payoff_month,
        new_payoff_months=extra_s.payoff_month,
        months_saved=base_s.payoff_month - extra_s.payoff_month,
    )
    gain = last.invest_portfolio_value_cents - last.invest_cumulative_contributed_cents
    invest_summary = InvestSummary(
        total_contributed_cents=last.invest_cumulative_contributed_cents,
        final_portfolio_value_cents=last.invest_portfolio_value_cents,
        total_gain_cents=gain,
        after_tax_gain_cents=last.invest_after_tax_value_cents - last.invest_cumulative_contributed_cents,
        after_tax_portfolio_value_cents=last.invest_after_tax_value_cents,
    )

    logger.debug("terminal advantage=%d horizon=%d", last.net_advantage_cents, inp.horizon_years)
    return MortgageVsInvestResult(
        input=inp,
        yearly=yearly,
        pay_extra_summary=pay_extra_summary,
        invest_summary=invest_summary,
        recommendation=_recommend(last.net_advantage_cents),
        break_even_return_percent=_break_even(inp, t),
    )


def compare_mortgage_vs_invest(inp: MortgageVsInvestInput):
    """Success[MortgageVsInvestResult] | Failure; a schedule failure carries ``details.side``."""
    return run_guarded("mortgage_vs_invest", validate_mortgage_vs_invest(inp), lambda: _compare(inp), logger)
