"""Buy a home, or rent and invest what buying would have cost?

The buyer pays the down payment and closing costs up front, then the
mortgage, property tax, maintenance, insurance and HOA each month, less the
tax saved on mortgage interest. The renter invests the up-front cash (less
the security deposit) and each month adds the difference between the two
outflows to the portfolio; when renting costs more, the difference is
withdrawn instead.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional

from finengine.core.config import SETTINGS
from finengine.core.errors import raise_for_failure
from finengine.utils.amortization import build_schedule
from finengine.utils.comparison_models import (
    RentVsBuyAssumptions,
    RentVsBuyInput,
    RentVsBuyResult,
    RentVsBuySummary,
    RentVsBuyYearPoint,
)
from finengine.utils.dates import add_years
from finengine.utils.growth import compound_annual, project_balances, project_with_contributions
from finengine.utils.loan_models import AmortizationEntry, LoanTerms
from finengine.utils.logging import get_logger
from finengine.utils.money import MONTHS_PER_YEAR, apply_rate, monthly_rate, percent_of, round_cents
from finengine.utils.outcomes import run_guarded
from finengine.utils.validators import validate_rent_vs_buy

logger = get_logger(__name__)

_TWELVE = Decimal(MONTHS_PER_YEAR)


def resolve_assumptions(inp: RentVsBuyInput) -> RentVsBuyAssumptions:
    """Configured defaults, then explicit assumptions, then per-side rate overrides."""
    values: Dict[str, Decimal] = {}
    for name, default in SETTINGS.rent_vs_buy_defaults.items():
        given = getattr(inp.assumptions, name, None)
        values[name] = default if given is None else given

    if inp.buy.property_tax_rate_percent is not None:
        values["property_tax_rate_percent"] = inp.buy.property_tax_rate_percent
    if inp.buy.maintenance_rate_percent is not None:
        values["maintenance_rate_percent"] = inp.buy.maintenance_rate_percent
    if inp.rent.rent_increase_rate_percent is not None:
        values["rent_increase_rate_percent"] = inp.rent.rent_increase_rate_percent
    return RentVsBuyAssumptions(**values)


def _sign(x: int) -> int:
    return (x > 0) - (x < 0)


def find_break_even_year(advantages: List[int]) -> Optional[int]:
    """First year (1-based) whose sign differs from year 1's."""
    if not advantages:
        return None
    first = _sign(advantages[0])
    for i, adv in enumerate(advantages[1:], start=2):
        if _sign(adv) != first:
            return i
    return None


def _simulate(inp: RentVsBuyInput) -> RentVsBuyResult:
    a = resolve_assumptions(inp)
    buy, rent = inp.buy, inp.rent
    months = inp.horizon_years * MONTHS_PER_YEAR

    price = buy.home_price_cents
    down = percent_of(price, buy.down_payment_percent)
    closing = percent_of(price, buy.closing_cost_percent)
    deposit = round_cents(Decimal(rent.monthly_rent_cents) * rent.security_deposit_months)

    entries: List[AmortizationEntry] = []
    if price - down > 0:
        loan = LoanTerms(
            principal_cents=price - down,
            annual_rate_percent=buy.mortgage_rate_percent,
            term_months=buy.mortgage_term_years * MONTHS_PER_YEAR,
            start_date=inp.start_date,
        )
        entries = raise_for_failure(build_schedule(loan), side="buy").entries

    home_values = project_balances(price, a.property_appreciation_rate_percent, 0, months)
    ptax_rate = monthly_rate(a.property_tax_rate_percent)
    maint_rate = monthly_rate(a.maintenance_rate_percent)

    # month-level flows
    flows: Dict[str, List[int]] = {
        k: []
        for k in (
            "payment", "principal", "interest", "balance", "ptax", "maint", "ins", "hoa",
            "tax_save", "buy_out", "rent", "rins", "rent_out", "contribution",
        )
    }
    for m in range(months):
        k = m // MONTHS_PER_YEAR
        value_start = price if m == 0 else home_values[m - 1]

        if m < len(entries):
            e = entries[m]
            payment, principal, interest, balance = (
                e.total_payment_cents, e.principal_cents, e.interest_cents, e.ending_balance_cents,
            )
        else:
            payment = principal = interest = balance = 0

        ptax = apply_rate(value_start, ptax_rate)
        maint = apply_rate(value_start, maint_rate)
        ins = round_cents(Decimal(compound_annual(buy.homeowners_insurance_annual_cents, a.inflation_rate_percent, k)) / _TWELVE)
        hoa = compound_annual(buy.hoa_monthly_cents, a.inflation_rate_percent, k)
        tax_save = percent_of(interest, a.marginal_tax_rate_percent)
        buy_out = payment + ptax + maint + ins + hoa - tax_save

        rent_m = compound_annual(rent.monthly_rent_cents, a.rent_increase_rate_percent, k)
        rins = round_cents(Decimal(compound_annual(rent.renters_insurance_annual_cents, a.inflation_rate_percent, k)) / _TWELVE)
        rent_out = rent_m + rins

        for key, v in (
            ("payment", payment), ("principal", principal), ("interest", interest), ("balance", balance),
            ("ptax", ptax), ("maint", maint), ("ins", ins), ("hoa", hoa), ("tax_save", tax_save),
            ("buy_out", buy_out), ("rent", rent_m), ("rins", rins), ("rent_out", rent_out),
            ("contribution", buy_out - rent_out),
        ):
            flows[key].append(v)

    initial_investment = down + closing - deposit
    portfolio = project_with_contributions(initial_investment, a.investment_return_rate_percent, flows["contribution"])

    points: List[RentVsBuyYearPoint] = []
    buy_cum = down + closing
    rent_cum = deposit
    prev_portfolio = initial_investment
    for year in range(1, inp.horizon_years + 1):
        lo, hi = (year - 1) * MONTHS_PER_YEAR, year * MONTHS_PER_YEAR
        i = hi - 1

        def total(key: str) -> int:
            return sum(flows[key][lo:hi])

        buy_annual = total("buy_out")
        rent_annual = total("rent_out")
        buy_cum += buy_annual
        rent_cum += rent_annual

        value = home_values[i]
        balance = flows["balance"][i]
        equity = value - balance
        buy_nw = equity - percent_of(value, a.selling_cost_percent)

        contributions = total("contribution")
        gains = portfolio[i] - prev_portfolio - contributions
        prev_portfolio = portfolio[i]
        rent_nw = portfolio[i] + deposit

        points.append(
            RentVsBuyYearPoint(
                year=year,
                date=add_years(inp.start_date, year),
                home_value_cents=value,
                mortgage_balance_cents=balance,
                home_equity_cents=equity,
                mortgage_payments_cents=total("payment"),
                principal_paid_cents=total("principal"),
                interest_paid_cents=total("interest"),
                property_taxes_cents=total("ptax"),
                homeowners_insurance_cents=total("ins"),
                maintenance_cents=total("maint"),
                hoa_cents=total("hoa"),
                tax_savings_cents=total("tax_save"),
                buy_annual_cost_cents=buy_annual,
                buy_cumulative_cost_cents=buy_cum,
                monthly_rent_cents=flows["rent"][lo],
                annual_rent_cents=total("rent"),
                renters_insurance_cents=total("rins"),
                rent_annual_cost_cents=rent_annual,
                rent_cumulative_cost_cents=rent_cum,
                investment_balance_cents=portfolio[i],
                investment_contributions_cents=contributions,
                investment_gains_cents=gains,
                buy_net_worth_cents=buy_nw,
                rent_net_worth_cents=rent_nw,
                net_advantage_cents=buy_nw - rent_nw,
            )
        )

    last = points[-1]
    advantages = [p.net_advantage_cents for p in points]
    threshold = SETTINGS.recommendation_threshold_cents
    if last.net_advantage_cents > threshold:
        recommendation = "buy"
    elif last.net_advantage_cents < -threshold:
        recommendation = "rent"
    else:
        recommendation = "neutral"

    summary = RentVsBuySummary(
        initial_buy_costs_cents=down + closing,
        initial_rent_costs_cents=deposit,
        total_buy_costs_cents=last.buy_cumulative_cost_cents,
        total_rent_costs_cents=last.rent_cumulative_cost_cents,
        final_home_equity_cents=last.home_equity_cents,
        final_investment_balance_cents=last.investment_balance_cents,
        final_buy_net_worth_cents=last.buy_net_worth_cents,
        final_rent_net_worth_cents=last.rent_net_worth_cents,
        net_advantage_cents=last.net_advantage_cents,
        break_even_year=find_break_even_year(advantages),
        recommendation=recommendation,
        years_buying_better=sum(1 for x in advantages if x > 0),
        years_renting_better=sum(1 for x in advantages if x < 0),
        total_mortgage_interest_cents=sum(p.interest_paid_cents for p in points),
        total_property_taxes_cents=sum(p.property_taxes_cents for p in points),
        total_maintenance_cents=sum(p.maintenance_cents for p in points),
        total_tax_savings_cents=sum(p.tax_savings_cents for p in points),
        total_rent_paid_cents=sum(p.annual_rent_cents for p in points),
        total_investment_gains_cents=sum(p.investment_gains_cents for p in points),
    )
    logger.debug("net advantage=%d break_even=%s", summary.net_advantage_cents, summary.break_even_year)
    return RentVsBuyResult(input=inp, effective_assumptions=a, yearly=points, summary=summary)


def compare_rent_vs_buy(inp: RentVsBuyInput):
    """Success[RentVsBuyResult] | Failure."""
    return run_guarded("rent_vs_buy", validate_rent_vs_buy(inp), lambda: _simulate(inp), logger)
