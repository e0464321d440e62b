from decimal import Decimal

from finengine.utils.growth import compound_annual, project, project_balances, project_with_contributions, step_balance
from finengine.utils.money import monthly_rate
from finengine.utils.projection_models import GrowthAssumption


def test_step_balance_rounds_before_contribution():
    assert step_balance(100_000, monthly_rate("6"), 500) == 100_500 + 500


def test_zero_rate_is_linear():
    balances = project_balances(1_000, Decimal("0"), 100, 12)
    assert balances[-1] == 1_000 + 1_200
    assert balances == project_with_contributions(1_000, Decimal("0"), [100] * 12)


def test_compound_annual_rounds_once():
    assert compound_annual(100_000, Decimal("3"), 0) == 100_000
    assert compound_annual(100_000, Decimal("3"), 2) == 106_090


def test_project_outcome():
    out = project(1_000_000, GrowthAssumption(annual_rate_percent=Decimal("7"), monthly_contribution_cents=10_000), 120)
    assert out.ok
    g = out.value
    assert len(g.balances_cents) == 120
    assert g.total_contributed_cents == 1_200_000
    assert g.final_balance_cents == g.balances_cents[-1]
    assert g.final_balance_cents > 1_000_000 + 1_200_000


def test_project_no_periods_and_invalid_rate():
    g = project(5_000, GrowthAssumption(annual_rate_percent=Decimal("5")), 0).value
    assert g.balances_cents == []
    assert g.final_balance_cents == 5_000

    bad = project(5_000, GrowthAssumption(annual_rate_percent=Decimal("-100")), 12)
    assert not bad.ok
    assert bad.issues[0].location == "assumption.annual_rate_percent"
