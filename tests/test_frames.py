from datetime import date
from decimal import Decimal

from finengine.tools.frames import net_worth_frame, schedule_to_frame, with_dollars, yearly_loan_frame
from finengine.utils.amortization import build_schedule
from finengine.utils.loan_models import LoanTerms
from finengine.utils.net_worth import project_net_worth
from finengine.utils.projection_models import NetWorthInput, ProjectionAsset, ProjectionLiability


def test_schedule_frame():
    s = build_schedule(
        LoanTerms(principal_cents=2_400_000, annual_rate_percent=Decimal("0"), term_months=24, start_date=date(2025, 1, 1))
    ).value
    df = schedule_to_frame(s)
    assert len(df) == 24
    assert df.index.name == "payment_number"
    assert int(df["principal_cents"].sum()) == 2_400_000

    usd = with_dollars(df, ["principal_cents"])
    assert usd.loc[1, "principal_usd"] == "1000.00"
    assert "principal_cents" in usd.columns

    years = yearly_loan_frame(s)
    assert list(years.index) == [1, 2]


def test_net_worth_frame_per_entity():
    p = project_net_worth(
        NetWorthInput(
            start_date=date(2025, 1, 1),
            horizon_years=2,
            assets=[ProjectionAsset(id="cash", current_value_cents=500_000)],
            liabilities=[ProjectionLiability(id="card", current_balance_cents=100_000, minimum_payment_cents=10_000)],
        )
    ).value
    df = net_worth_frame(p, per_entity=True)
    assert list(df.index) == [0, 1, 2]
    assert "asset:cash" in df.columns
    assert int(df.loc[0, "liability:card"]) == 100_000
    assert int(df.loc[2, "net_worth_cents"]) == 500_000
