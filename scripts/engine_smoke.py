from __future__ import annotations

from finengine.core.config import SETTINGS
from finengine.tools.engine_tools import run_calculation
from finengine.utils.logging import setup_logging
from finengine.utils.money import cents_to_dollars


def main():
    setup_logging(SETTINGS.log_level)

    loan = {"principal_cents": 30_000_000, "annual_rate_percent": "6", "term_months": 360, "start_date": "2025-01-01"}
    sched = run_calculation({"kind": "amortization", "loan": loan})
    v = sched["value"]
    print("Monthly payment:", cents_to_dollars(v["monthly_payment_cents"]))
    print("Total interest:", cents_to_dollars(v["total_interest_cents"]))
    print("Payoff date:", v["payoff_date"])

    early = run_calculation({"kind": "early_payoff", "loan": loan, "modification": {"extra_monthly_payment_cents": 50_000}})
    print("Months saved with +$500/mo:", early["value"]["months_saved"])

    tax = run_calculation({"kind": "tax_liability", "gross_income_cents": 9_500_000, "filing_status": "single", "tax_year": 2025})
    print("Estimated tax:", cents_to_dollars(tax["value"]["estimated_tax_liability_cents"]), tax["value"]["deduction_used"])

    mvi = run_calculation(
        {
            "kind": "mortgage_vs_invest",
            "loan": loan,
            "extra_monthly_payment_cents": 50_000,
            "expected_return_percent": "7",
            "horizon_years": 10,
        }
    )
    print("Mortgage vs invest:", mvi["value"]["recommendation"], "break-even", mvi["value"]["break_even_return_percent"])

    rvb = run_calculation(
        {
            "kind": "rent_vs_buy",
            "start_date": "2025-01-01",
            "horizon_years": 10,
            "buy": {"home_price_cents": 50_000_000, "down_payment_percent": "20", "mortgage_rate_percent": "6.5", "closing_cost_percent": "3"},
            "rent": {"monthly_rent_cents": 250_000},
        }
    )
    s = rvb["value"]["summary"]
    print("Rent vs buy:", s["recommendation"], "break-even year", s["break_even_year"])

    goal = run_calculation(
        {
            "kind": "goal",
            "goal": {"name": "Emergency fund", "target_amount_cents": 2_000_000, "target_date": "2027-01-01"},
            "current_amount_cents": 500_000,
            "monthly_net_cash_flow_cents": 40_000,
            "assumed_return_percent": "4",
            "as_of_date": "2025-01-01",
        }
    )
    print("Goal:", goal["value"]["status"], "needed/mo", cents_to_dollars(goal["value"]["monthly_savings_needed_cents"]))

    nw = run_calculation(
        {
            "kind": "net_worth",
            "start_date": "2025-01-01",
            "horizon_years": 5,
            "assets": [{"id": "brokerage", "name": "Brokerage", "current_value_cents": 5_000_000, "annual_growth_rate_percent": "7"}],
            "liabilities": [
                {"id": "car", "name": "Car loan", "current_balance_cents": 1_500_000, "interest_rate_percent": "5", "term_months": 48}
            ],
            "cash_flow_items": [{"id": "salary", "name": "Salary", "type": "income", "amount_cents": 700_000}],
            "scenario": {
                "id": "bull",
                "name": "Bull market",
                "overrides": [
                    {"entity_id": "brokerage", "target_type": "asset", "field_name": "annual_growth_rate_percent", "value": "10"}
                ],
            },
        }
    )
    for snap in nw["value"]["snapshots"]:
        print("Year", snap["year"], "net worth", cents_to_dollars(snap["net_worth_cents"]))

    pf = run_calculation(
        {
            "kind": "portfolio",
            "holdings": [{"symbol": "VTI", "shares": "42.5", "cost_basis_cents": 800_000, "current_price_cents": 21_000}],
            "transactions": [
                {"type": "contribution", "date": "2025-01-15", "amount_cents": 800_000},
                {"type": "dividend", "date": "2025-03-31", "amount_cents": 3_100, "symbol": "VTI"},
            ],
        }
    )
    print("Portfolio value:", cents_to_dollars(pf["value"]["total_value_cents"]), "return %", pf["value"]["total_return_percent"])


if __name__ == "__main__":
    main()
