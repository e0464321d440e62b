from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from finengine.core.config import SETTINGS
from finengine.core.errors import InvalidInputError
from finengine.core.schemas import ValidationReport
from finengine.utils.dates import add_months, months_between
from finengine.utils.goal_models import (
    BalanceObservation,
    GoalEvaluationInput,
    GoalMilestone,
    GoalProgressSummary,
    TrajectoryEstimate,
)
from finengine.utils.growth import step_balance
from finengine.utils.logging import get_logger
from finengine.utils.money import monthly_rate, ratio_percent, round_cents
from finengine.utils.outcomes import run_guarded
from finengine.utils.validators import validate_goal_input

logger = get_logger(__name__)

_ONE = Decimal(1)
_MILESTONES = (25, 50, 75, 100)


def months_to_reach(
    current_cents: int,
    target_cents: int,
    monthly_contribution_cents: int,
    annual_return_percent: Decimal,
    cap_months: int,
) -> Optional[int]:
    """First month the projected balance reaches ``target_cents``; None past the cap."""
    if current_cents >= target_cents:
        return 0
    rate = monthly_rate(annual_return_percent)
    balance = current_cents
    for month in range(1, cap_months + 1):
        balance = step_balance(balance, rate, monthly_contribution_cents)
        if balance >= target_cents:
            return month
    return None


def required_monthly_savings(current_cents: int, target_cents: int, months: int, annual_return_percent: Decimal) -> int:
    """Level monthly contribution that grows ``current`` to ``target`` in ``months``.

    Inverted future-value annuity; with a zero rate this is remaining / months.
    """
    remaining = target_cents - current_cents
    if remaining <= 0:
        return 0
    if months <= 0:
        return remaining
    r = monthly_rate(annual_return_percent)
    if r == 0:
        return round_cents(Decimal(remaining) / Decimal(months))
    growth = (_ONE + r) ** months
    shortfall = Decimal(target_cents) - Decimal(current_cents) * growth
    if shortfall <= 0:
        return 0
    return round_cents(shortfall * r / (growth - _ONE))


def _milestones(inp: GoalEvaluationInput, cap: int) -> List[GoalMilestone]:
    out: List[GoalMilestone] = []
    target = inp.goal.target_amount_cents
    for pct in _MILESTONES:
        amount = round_cents(Decimal(target) * pct / 100)
        months = months_to_reach(
            inp.current_amount_cents, amount, inp.monthly_net_cash_flow_cents, inp.assumed_return_percent, cap
        )
        out.append(
            GoalMilestone(
                percent=pct,
                amount_cents=amount,
                reached=inp.current_amount_cents >= amount,
                months_to_reach=months,
                projected_date=add_months(inp.as_of_date, months) if months is not None else None,
            )
        )
    return out


def _evaluate(inp: GoalEvaluationInput) -> GoalProgressSummary:
    goal = inp.goal
    cap = SETTINGS.goal_search_cap_months
    current = inp.current_amount_cents
    target = goal.target_amount_cents

    progress = max(Decimal("0.00"), ratio_percent(current, target))
    met = current >= target

    months = months_to_reach(current, target, inp.monthly_net_cash_flow_cents, inp.assumed_return_percent, cap)
    reachable = months is not None
    completion = add_months(inp.as_of_date, months) if reachable else None

    months_left: Optional[int] = None
    if goal.target_date is not None:
        months_left = months_between(inp.as_of_date, goal.target_date)

    if met:
        on_track = True
    elif goal.target_date is not None:
        on_track = completion is not None and completion <= goal.target_date
    else:
        on_track = reachable

    needed = 0
    if not on_track and goal.target_date is not None:
        if months_left is None or months_left <= 0:
            needed = target - current
        else:
            needed = required_monthly_savings(current, target, months_left, inp.assumed_return_percent)

    if met:
        status = "achieved"
    elif on_track:
        status = "on_track"
    elif reachable:
        status = "behind"
    else:
        status = "unreachable"

    return GoalProgressSummary(
        name=goal.name,
        current_amount_cents=current,
        target_amount_cents=target,
        remaining_cents=max(0, target - current),
        progress_percent=progress,
        target_date=goal.target_date,
        months_until_target_date=months_left,
        reachable=reachable,
        months_to_goal=months,
        projected_completion_date=completion,
        on_track=on_track,
        status=status,
        monthly_savings_needed_cents=needed,
        milestones=_milestones(inp, cap),
    )


def evaluate_goal(inp: GoalEvaluationInput):
    """Success[GoalProgressSummary] | Failure. An unreachable goal is a Success."""
    return run_guarded("goal_progress", validate_goal_input(inp), lambda: _evaluate(inp), logger)


def _trajectory(history: Sequence[BalanceObservation]) -> TrajectoryEstimate:
    ordered: List[Tuple] = sorted((o.as_of_date, o.amount_cents) for o in history)
    first_date, first_amount = ordered[0]
    last_date, last_amount = ordered[-1]
    months = months_between(first_date, last_date)
    if months <= 0:
        raise InvalidInputError("observations must span at least one month", details={"months_spanned": months})
    return TrajectoryEstimate(
        observations=len(ordered),
        months_spanned=months,
        average_monthly_change_cents=round_cents(Decimal(last_amount - first_amount) / Decimal(months)),
    )


def derive_trajectory(history: Sequence[BalanceObservation]):
    """Success[TrajectoryEstimate] | Failure: average monthly change from first to last observation."""
    report = ValidationReport(ok=True)
    if len(history) < 2:
        report.add_error(f"at least two observations are required, got {len(history)}", location="history")
    return run_guarded("trajectory", report.finalize(), lambda: _trajectory(history), logger)
