"""Year-by-year net worth from assets, liabilities and recurring cash flows.

Snapshot ``year`` reports balances as of ``start_date + year`` years and the
cash flows of the twelve months that follow that date. Summary totals cover
the projected years only (snapshots ``0..horizon-1``).
"""

from __future__ import annotations

import contextvars
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence

from finengine.core.errors import raise_for_failure
from finengine.utils.amortization import build_schedule
from finengine.utils.dates import add_years
from finengine.utils.growth import compound_annual, project_balances, step_balance
from finengine.utils.loan_models import LoanTerms
from finengine.utils.logging import get_logger
from finengine.utils.money import MONTHS_PER_YEAR, monthly_rate, round_percent
from finengine.utils.outcomes import run_guarded
from finengine.utils.projection_models import (
    FREQUENCY_MULTIPLIERS,
    EntityAmount,
    NetWorthInput,
    NetWorthProjection,
    NetWorthSummary,
    ProjectionCashFlowItem,
    ProjectionLiability,
    Scenario,
    YearlySnapshot,
)
from finengine.utils.scenario import apply_scenario
from finengine.utils.validators import validate_net_worth_input

logger = get_logger(__name__)

_MAX_WORKERS = 4


@dataclass
class LiabilityTrack:
    """Monthly payment, interest and ending balance for one liability."""

    id: str
    opening_cents: int
    payments: List[int]
    interest: List[int]
    balances: List[int]

    def balance_after(self, months: int) -> int:
        if months <= 0:
            return self.opening_cents
        return self.balances[months - 1]


def _track_liability(liability: ProjectionLiability, start, months: int) -> LiabilityTrack:
    opening = max(0, liability.current_balance_cents)
    payments: List[int] = []
    interest: List[int] = []
    balances: List[int] = []

    if opening == 0:
        return LiabilityTrack(liability.id, 0, [0] * months, [0] * months, [0] * months)

    if liability.term_months is not None:
        loan = LoanTerms(
            principal_cents=opening,
            annual_rate_percent=liability.interest_rate_percent,
            term_months=liability.term_months,
            start_date=start,
        )
        entries = raise_for_failure(build_schedule(loan), entity_id=liability.id).entries
        for m in range(months):
            if m < len(entries):
                payments.append(entries[m].total_payment_cents)
                interest.append(entries[m].interest_cents)
                balances.append(entries[m].ending_balance_cents)
            else:
                payments.append(0)
                interest.append(0)
                balances.append(0)
        return LiabilityTrack(liability.id, opening, payments, interest, balances)

    # open-ended: grows at its rate, minimum payment drawn down each month
    rate = monthly_rate(liability.interest_rate_percent)
    balance = opening
    for _ in range(months):
        if balance == 0:
            payments.append(0)
            interest.append(0)
            balances.append(0)
            continue
        after = step_balance(balance, rate, -liability.minimum_payment_cents)
        accrued = after + liability.minimum_payment_cents - balance
        paid = liability.minimum_payment_cents
        if after < 0:
            paid += after
            after = 0
        payments.append(paid)
        interest.append(accrued)
        balances.append(after)
        balance = after
    return LiabilityTrack(liability.id, opening, payments, interest, balances)


def annualize(amount_cents: int, frequency: str) -> int:
    return amount_cents * FREQUENCY_MULTIPLIERS[frequency]


def cash_flow_for_year(item: ProjectionCashFlowItem, start, year: int) -> int:
    """Annual amount of ``item`` in the twelve months starting ``start + year`` years."""
    window_start = add_years(start, year)
    window_end = add_years(start, year + 1)
    if item.frequency == "one_time" and year > 0:
        return 0
    if item.start_date is not None and item.start_date >= window_end:
        return 0
    if item.end_date is not None and item.end_date < window_start:
        return 0
    annual = annualize(item.amount_cents, item.frequency)
    if not item.annual_growth_rate_percent or year == 0:
        return annual
    return compound_annual(annual, item.annual_growth_rate_percent, year)


def resolve_scenario(inp: NetWorthInput) -> NetWorthInput:
    """Copy of ``inp`` with its scenario's overrides already applied to every entity.

    The scenario itself is kept so the projection still reports its id.
    """
    if inp.scenario is None:
        return inp
    return inp.model_copy(
        update={
            "assets": apply_scenario(inp.assets, inp.scenario),
            "liabilities": apply_scenario(inp.liabilities, inp.scenario),
            "cash_flow_items": apply_scenario(inp.cash_flow_items, inp.scenario),
        }
    )


def _project(inp: NetWorthInput) -> NetWorthProjection:
    # entities arrive with overrides applied
    assets = sorted(inp.assets, key=lambda a: a.id)
    liabilities = sorted(inp.liabilities, key=lambda x: x.id)
    items = sorted(inp.cash_flow_items, key=lambda c: c.id)

    horizon = inp.horizon_years
    # one extra year so the final snapshot carries its following-year flows
    months = (horizon + 1) * MONTHS_PER_YEAR

    asset_paths = {
        a.id: project_balances(a.current_value_cents, a.annual_growth_rate_percent, 0, horizon * MONTHS_PER_YEAR)
        for a in assets
    }
    tracks = [_track_liability(li, inp.start_date, months) for li in liabilities]

    snapshots: List[YearlySnapshot] = []
    for year in range(horizon + 1):
        m = year * MONTHS_PER_YEAR
        asset_values = [
            EntityAmount(id=a.id, amount_cents=a.current_value_cents if m == 0 else asset_paths[a.id][m - 1])
            for a in assets
        ]
        liability_balances = [EntityAmount(id=t.id, amount_cents=t.balance_after(m)) for t in tracks]

        debt_payments = sum(sum(t.payments[m:m + MONTHS_PER_YEAR]) for t in tracks)
        debt_interest = sum(sum(t.interest[m:m + MONTHS_PER_YEAR]) for t in tracks)
        income = sum(cash_flow_for_year(c, inp.start_date, year) for c in items if c.type == "income")
        expenses = sum(cash_flow_for_year(c, inp.start_date, year) for c in items if c.type == "expense")

        total_assets = sum(v.amount_cents for v in asset_values)
        total_liabilities = sum(v.amount_cents for v in liability_balances)
        snapshots.append(
            YearlySnapshot(
                year=year,
                date=add_years(inp.start_date, year),
                total_assets_cents=total_assets,
                total_liabilities_cents=total_liabilities,
                net_worth_cents=total_assets - total_liabilities,
                total_income_cents=income,
                total_expenses_cents=expenses,
                debt_payments_cents=debt_payments,
                debt_interest_cents=debt_interest,
                net_cash_flow_cents=income - expenses - debt_payments,
                asset_values=asset_values,
                liability_balances=liability_balances,
            )
        )

    first, last = snapshots[0], snapshots[-1]
    change = last.net_worth_cents - first.net_worth_cents
    pct = Decimal("0.00")
    if first.net_worth_cents != 0:
        pct = round_percent(Decimal(change) / Decimal(abs(first.net_worth_cents)) * 100)
    covered = snapshots[:horizon]
    summary = NetWorthSummary(
        starting_net_worth_cents=first.net_worth_cents,
        ending_net_worth_cents=last.net_worth_cents,
        net_worth_change_cents=change,
        net_worth_change_percent=pct,
        total_income_cents=sum(s.total_income_cents for s in covered),
        total_expenses_cents=sum(s.total_expenses_cents for s in covered),
        total_debt_payments_cents=sum(s.debt_payments_cents for s in covered),
        total_interest_paid_cents=sum(s.debt_interest_cents for s in covered),
    )
    return NetWorthProjection(
        start_date=inp.start_date,
        horizon_years=horizon,
        scenario_id=inp.scenario.id if inp.scenario else None,
        snapshots=snapshots,
        summary=summary,
    )


def project_net_worth(inp: NetWorthInput):
    """Success[NetWorthProjection] | Failure.

    Scenario overrides are applied before validation; issues point at the
    overridden entity field.
    """
    resolved = resolve_scenario(inp)
    return run_guarded("net_worth", validate_net_worth_input(resolved), lambda: _project(resolved), logger)


def compare_scenarios(inp: NetWorthInput, scenarios: Sequence[Optional[Scenario]]) -> list:
    """One projection per scenario (None = no overrides), in input order."""
    if not scenarios:
        return []
    variants = [inp.model_copy(update={"scenario": s}) for s in scenarios]
    with ThreadPoolExecutor(max_workers=min(_MAX_WORKERS, len(variants))) as pool:
        futures = [pool.submit(contextvars.copy_context().run, project_net_worth, v) for v in variants]
        return [f.result() for f in futures]
