from datetime import date
from decimal import Decimal

from finengine.utils.goal_models import BalanceObservation, GoalEvaluationInput, GoalRecord
from finengine.utils.goal_progress import derive_trajectory, evaluate_goal, months_to_reach, required_monthly_savings

AS_OF = date(2025, 1, 1)


def _inp(current, target, flow=0, rate="0", target_date=None):
    return GoalEvaluationInput(
        goal=GoalRecord(name="House fund", target_amount_cents=target, target_date=target_date),
        current_amount_cents=current,
        monthly_net_cash_flow_cents=flow,
        assumed_return_percent=Decimal(rate),
        as_of_date=AS_OF,
    )


def test_unreachable_goal_with_deadline():
    out = evaluate_goal(_inp(500_000, 1_000_000, target_date=date(2027, 1, 1)))
    assert out.ok
    g = out.value
    assert g.months_to_goal is None
    assert not g.reachable
    assert not g.on_track
    assert g.status == "unreachable"
    assert g.months_until_target_date == 24
    assert g.monthly_savings_needed_cents == 20_833
    assert g.progress_percent == Decimal("50.00")


def test_on_track_and_behind():
    on = evaluate_goal(_inp(500_000, 1_000_000, flow=50_000, target_date=date(2027, 1, 1))).value
    assert on.months_to_goal == 10
    assert on.projected_completion_date == date(2025, 11, 1)
    assert on.status == "on_track"
    assert on.monthly_savings_needed_cents == 0

    behind = evaluate_goal(_inp(500_000, 1_000_000, flow=10_000, target_date=date(2026, 1, 1))).value
    assert behind.reachable
    assert behind.status == "behind"
    assert behind.monthly_savings_needed_cents == required_monthly_savings(500_000, 1_000_000, 12, Decimal("0"))


def test_achieved_goal():
    g = evaluate_goal(_inp(1_200_000, 1_000_000)).value
    assert g.status == "achieved"
    assert g.months_to_goal == 0
    assert g.remaining_cents == 0
    assert all(m.reached for m in g.milestones)


def test_milestones_are_ordered():
    g = evaluate_goal(_inp(0, 1_200_000, flow=100_000)).value
    assert [m.percent for m in g.milestones] == [25, 50, 75, 100]
    assert [m.months_to_reach for m in g.milestones] == [3, 6, 9, 12]


def test_required_savings_with_return():
    needed = required_monthly_savings(0, 1_000_000, 24, Decimal("6"))
    assert needed < round(1_000_000 / 24)
    assert months_to_reach(0, 1_000_000, needed, Decimal("6"), 600) in (24, 25)


def test_negative_target_rejected():
    out = evaluate_goal(_inp(0, 0))
    assert not out.ok
    assert out.issues[0].location == "goal.target_amount_cents"


def test_trajectory():
    history = [
        BalanceObservation(as_of_date=date(2025, 7, 1), amount_cents=160_000),
        BalanceObservation(as_of_date=date(2025, 1, 1), amount_cents=100_000),
    ]
    t = derive_trajectory(history).value
    assert t.months_spanned == 6
    assert t.average_monthly_change_cents == 10_000

    assert not derive_trajectory(history[:1]).ok
    same_month = [
        BalanceObservation(as_of_date=date(2025, 1, 1), amount_cents=1),
        BalanceObservation(as_of_date=date(2025, 1, 20), amount_cents=2),
    ]
    out = derive_trajectory(same_month)
    assert not out.ok
    assert out.error.code == "INVALID_INPUT"
