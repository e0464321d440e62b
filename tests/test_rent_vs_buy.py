from datetime import date
from decimal import Decimal

from finengine.core.config import SETTINGS
from finengine.utils.comparison_models import BuyParams, RentParams, RentVsBuyAssumptions, RentVsBuyInput
from finengine.utils.rent_vs_buy import compare_rent_vs_buy, find_break_even_year, resolve_assumptions

FLAT = RentVsBuyAssumptions(
    property_appreciation_rate_percent=Decimal("4"),
    investment_return_rate_percent=Decimal("4"),
    maintenance_rate_percent=Decimal("0"),
    property_tax_rate_percent=Decimal("0"),
    marginal_tax_rate_percent=Decimal("0"),
    rent_increase_rate_percent=Decimal("0"),
    inflation_rate_percent=Decimal("0"),
    selling_cost_percent=Decimal("0"),
)


def _typical(**kw):
    base = dict(
        start_date=date(2025, 1, 1),
        horizon_years=10,
        buy=BuyParams(
            home_price_cents=50_000_000,
            down_payment_percent=Decimal("20"),
            mortgage_rate_percent=Decimal("6.5"),
            closing_cost_percent=Decimal("3"),
            homeowners_insurance_annual_cents=180_000,
        ),
        rent=RentParams(monthly_rent_cents=250_000, security_deposit_months=Decimal("1")),
    )
    base.update(kw)
    return RentVsBuyInput(**base)


def test_identical_cost_structure_has_no_advantage():
    # all cash purchase; the HOA matches the rent and the down payment earns the appreciation rate
    inp = RentVsBuyInput(
        start_date=date(2025, 1, 1),
        horizon_years=15,
        buy=BuyParams(
            home_price_cents=40_000_000,
            down_payment_percent=Decimal("100"),
            mortgage_rate_percent=Decimal("5"),
            hoa_monthly_cents=200_000,
        ),
        rent=RentParams(monthly_rent_cents=200_000),
        assumptions=FLAT,
    )
    out = compare_rent_vs_buy(inp)
    assert out.ok
    r = out.value
    for year, p in enumerate(r.yearly, start=1):
        assert abs(p.net_advantage_cents) <= year
    assert r.summary.recommendation == "neutral"
    assert r.summary.total_mortgage_interest_cents == 0


def test_typical_comparison():
    out = compare_rent_vs_buy(_typical())
    assert out.ok
    r = out.value
    s = r.summary
    assert len(r.yearly) == 10
    assert s.initial_buy_costs_cents == 10_000_000 + 1_500_000
    assert s.initial_rent_costs_cents == 250_000
    assert s.net_advantage_cents == s.final_buy_net_worth_cents - s.final_rent_net_worth_cents
    assert s.years_buying_better + s.years_renting_better <= 10
    assert s.recommendation in ("buy", "rent", "neutral")
    assert r.yearly[0].mortgage_balance_cents < 40_000_000
    assert r.yearly[1].monthly_rent_cents > r.yearly[0].monthly_rent_cents


def test_defaults_and_overrides():
    a = resolve_assumptions(_typical())
    assert a.selling_cost_percent == SETTINGS.rent_vs_buy_defaults["selling_cost_percent"]

    inp = _typical(
        buy=BuyParams(
            home_price_cents=50_000_000,
            down_payment_percent=Decimal("20"),
            mortgage_rate_percent=Decimal("6.5"),
            property_tax_rate_percent=Decimal("2"),
        ),
        assumptions=RentVsBuyAssumptions(property_tax_rate_percent=Decimal("1"), inflation_rate_percent=Decimal("0")),
    )
    a = resolve_assumptions(inp)
    assert a.property_tax_rate_percent == Decimal("2")
    assert a.inflation_rate_percent == Decimal("0")


def test_break_even_year():
    assert find_break_even_year([-5, -3, 2, 4]) == 3
    assert find_break_even_year([1, 2, 3]) is None
    assert find_break_even_year([0, 0, 1]) == 3
    assert find_break_even_year([]) is None


def test_invalid_inputs():
    out = compare_rent_vs_buy(
        _typical(
            horizon_years=0,
            rent=RentParams(monthly_rent_cents=0),
        )
    )
    assert not out.ok
    locations = {i.location for i in out.issues}
    assert {"horizon_years", "rent.monthly_rent_cents"} <= locations
