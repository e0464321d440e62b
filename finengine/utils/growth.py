from __future__ import annotations

from decimal import Decimal
from typing import List, Sequence

from finengine.utils.logging import get_logger
from finengine.utils.money import grow, monthly_rate, round_cents
from finengine.utils.outcomes import run_guarded
from finengine.utils.projection_models import GrowthAssumption, GrowthProjection
from finengine.utils.validators import validate_growth

logger = get_logger(__name__)

_ONE = Decimal(1)
_HUNDRED = Decimal(100)


def step_balance(balance_cents: int, rate: Decimal, contribution_cents: int) -> int:
    """One period: round(balance * (1 + rate)) + contribution."""
    return grow(balance_cents, rate) + contribution_cents


def project_balances(initial_cents: int, annual_rate_percent: Decimal, monthly_contribution_cents: int, periods: int) -> List[int]:
    rate = monthly_rate(annual_rate_percent)
    out: List[int] = []
    balance = initial_cents
    for _ in range(periods):
        balance = step_balance(balance, rate, monthly_contribution_cents)
        out.append(balance)
    return out


def project_with_contributions(initial_cents: int, annual_rate_percent: Decimal, contributions: Sequence[int]) -> List[int]:
    """Like :func:`project_balances` with a different contribution each period."""
    rate = monthly_rate(annual_rate_percent)
    out: List[int] = []
    balance = initial_cents
    for c in contributions:
        balance = step_balance(balance, rate, c)
        out.append(balance)
    return out


def compound_annual(value_cents: int, annual_rate_percent: Decimal, years: int) -> int:
    """value * (1 + rate)^years, rounded once."""
    if years <= 0:
        return value_cents
    factor = (_ONE + Decimal(annual_rate_percent) / _HUNDRED) ** years
    return round_cents(Decimal(value_cents) * factor)


def project(initial_cents: int, assumption: GrowthAssumption, periods: int):
    """Success[GrowthProjection] | Failure. Balances are period-end values."""

    def compute() -> GrowthProjection:
        balances = project_balances(
            initial_cents,
            assumption.annual_rate_percent,
            assumption.monthly_contribution_cents,
            periods,
        )
        return GrowthProjection(
            initial_cents=initial_cents,
            balances_cents=balances,
            total_contributed_cents=assumption.monthly_contribution_cents * periods,
            final_balance_cents=balances[-1] if balances else initial_cents,
        )

    return run_guarded("growth", validate_growth(initial_cents, assumption, periods), compute, logger)
