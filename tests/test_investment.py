from datetime import date
from decimal import Decimal

import pytest

from finengine.core.errors import InvalidInputError
from finengine.tools.engine_tools import run_calculation
from finengine.tools.frames import holdings_frame, period_frame
from finengine.utils.cache import TTLCache
from finengine.utils.investment import (
    aggregate_by_period,
    aggregate_portfolio,
    build_portfolio_time_series,
    dividends_by_period,
    holding_value,
    period_bounds,
    transaction_totals,
    unrealized_gain,
)
from finengine.utils.investment_models import Holding, PortfolioInput, PortfolioSnapshot, Transaction

AAPL = Holding(symbol="AAPL", shares=Decimal("10.5"), cost_basis_cents=150_000, current_price_cents=15_000)
VTI = Holding(symbol="VTI", shares=Decimal("20"), cost_basis_cents=400_000, current_price_cents=19_000)

TXS = [
    Transaction(type="contribution", date=date(2025, 1, 15), amount_cents=500_000),
    Transaction(type="contribution", date=date(2025, 2, 10), amount_cents=100_000),
    Transaction(type="withdrawal", date=date(2025, 3, 5), amount_cents=50_000),
    Transaction(type="dividend", date=date(2025, 6, 30), amount_cents=4_000, symbol="VTI"),
    Transaction(type="dividend", date=date(2025, 3, 31), amount_cents=3_000, symbol="AAPL"),
    Transaction(type="reinvestment", date=date(2025, 6, 30), amount_cents=4_000, symbol="VTI", shares=Decimal("0.2")),
]


def test_holding_value_rounds_half_up():
    assert holding_value(AAPL) == 157_500
    assert holding_value(Holding(symbol="X", shares=Decimal("0.333"), cost_basis_cents=0, current_price_cents=100)) == 33
    assert holding_value(Holding(symbol="X", shares=Decimal("0.5"), cost_basis_cents=0, current_price_cents=1)) == 1
    assert holding_value(Holding(symbol="X", shares=Decimal("0"), cost_basis_cents=10, current_price_cents=999)) == 0
    assert unrealized_gain([AAPL, VTI]) == -12_500


def test_transaction_totals_cover_every_type():
    assert transaction_totals(TXS) == {
        "contribution": 600_000,
        "withdrawal": 50_000,
        "dividend": 7_000,
        "reinvestment": 4_000,
    }
    assert transaction_totals([]) == {"contribution": 0, "withdrawal": 0, "dividend": 0, "reinvestment": 0}


def test_aggregate_portfolio():
    out = aggregate_portfolio(PortfolioInput(holdings=[AAPL, VTI], transactions=TXS))
    assert out.ok
    s = out.value
    assert s.total_value_cents == 537_500
    assert s.total_cost_basis_cents == 550_000
    assert s.net_contributions_cents == 550_000
    assert s.unrealized_gain_cents == -12_500
    assert s.unrealized_gain_percent == Decimal("-2.27")
    assert s.total_return_cents == -5_500
    assert s.total_return_percent == Decimal("-1.00")

    aapl, vti = s.holdings
    assert (aapl.gain_loss_cents, aapl.gain_loss_percent) == (7_500, Decimal("5.00"))
    assert (vti.gain_loss_cents, vti.gain_loss_percent) == (-20_000, Decimal("-5.00"))
    assert (aapl.allocation_percent, vti.allocation_percent) == (Decimal("29.30"), Decimal("70.70"))


def test_empty_and_zero_value_portfolios():
    empty = aggregate_portfolio(PortfolioInput()).value
    assert empty.total_value_cents == 0
    assert empty.total_return_percent == Decimal("0.00")

    sold = Holding(symbol="OLD", shares=Decimal("0"), cost_basis_cents=0, current_price_cents=5_000)
    s = aggregate_portfolio(PortfolioInput(holdings=[sold])).value
    assert s.holdings[0].allocation_percent == Decimal("0.00")
    assert s.holdings[0].gain_loss_percent == Decimal("0.00")


def test_invalid_holdings_and_transactions():
    bad = PortfolioInput(
        holdings=[Holding(symbol=" ", shares=Decimal("-1"), cost_basis_cents=-5, current_price_cents=100)],
        transactions=[Transaction(type="dividend", date=date(2025, 1, 1), amount_cents=-1)],
    )
    out = aggregate_portfolio(bad)
    assert not out.ok
    assert out.error.code == "INVALID_INPUT"
    assert {i.location for i in out.issues} == {
        "holdings[0].symbol",
        "holdings[0].shares",
        "holdings[0].cost_basis_cents",
        "transactions[0].amount_cents",
    }

    dup = aggregate_portfolio(PortfolioInput(holdings=[AAPL, AAPL]))
    assert dup.ok


def test_period_bounds():
    assert period_bounds(date(2024, 2, 10), "month") == ("2024-02", date(2024, 2, 1), date(2024, 2, 29))
    assert period_bounds(date(2025, 11, 3), "quarter") == ("2025-Q4", date(2025, 10, 1), date(2025, 12, 31))
    assert period_bounds(date(2025, 5, 1), "year") == ("2025", date(2025, 1, 1), date(2025, 12, 31))
    with pytest.raises(InvalidInputError):
        period_bounds(date(2025, 5, 1), "week")


def test_aggregate_by_quarter_sorted():
    rows = aggregate_by_period(TXS, "quarter").value
    assert [r.label for r in rows] == ["2025-Q1", "2025-Q2"]
    q1, q2 = rows
    assert (q1.contributions_cents, q1.withdrawals_cents, q1.dividends_cents, q1.transaction_count) == (600_000, 50_000, 3_000, 4)
    assert q1.period_end == date(2025, 3, 31)
    assert (q2.dividends_cents, q2.reinvestments_cents, q2.transaction_count) == (4_000, 4_000, 2)

    months = aggregate_by_period(TXS, "month").value
    assert [r.label for r in months] == ["2025-01", "2025-02", "2025-03", "2025-06"]
    assert aggregate_by_period([], "month").value == []


def test_dividends_by_period_ignores_other_types():
    rows = dividends_by_period(TXS, "year").value
    assert len(rows) == 1
    assert (rows[0].label, rows[0].dividends_cents, rows[0].contributions_cents, rows[0].transaction_count) == ("2025", 7_000, 0, 2)


def test_time_series_sorted_and_duplicates_rejected():
    later = PortfolioSnapshot(date=date(2025, 6, 30), total_value_cents=2, total_contributions_cents=2, total_dividends_cents=0)
    earlier = PortfolioSnapshot(date=date(2025, 1, 31), total_value_cents=1, total_contributions_cents=1, total_dividends_cents=0)
    assert [s.date for s in build_portfolio_time_series([later, earlier]).value] == [earlier.date, later.date]

    out = build_portfolio_time_series([earlier, later, earlier])
    assert not out.ok
    assert out.issues[0].location == "snapshots[2].date"


def test_portfolio_frames():
    s = aggregate_portfolio(PortfolioInput(holdings=[AAPL, VTI])).value
    df = holdings_frame(s)
    assert list(df.index) == ["AAPL", "VTI"]
    assert int(df["current_value_cents"].sum()) == s.total_value_cents

    periods = period_frame(aggregate_by_period(TXS, "quarter").value)
    assert list(periods.index) == ["2025-Q1", "2025-Q2"]
    assert period_frame([]).empty


def test_portfolio_kinds_through_dispatcher():
    cache = TTLCache(default_ttl_seconds=60)
    out = run_calculation(
        {
            "kind": "portfolio",
            "holdings": [{"symbol": "VTI", "shares": "20", "cost_basis_cents": 400_000, "current_price_cents": 19_000}],
            "transactions": [{"type": "contribution", "date": "2025-01-15", "amount_cents": 400_000}],
        },
        cache=cache,
    )
    assert out["ok"] is True
    assert out["value"]["total_return_percent"] == Decimal("-5.00")

    txs = [{"type": "dividend", "date": "2025-03-31", "amount_cents": 3_000},
           {"type": "contribution", "date": "2025-03-01", "amount_cents": 10}]
    periods = run_calculation({"kind": "portfolio_periods", "transactions": txs, "period": "year", "dividends_only": True}, cache=cache)
    assert [r["dividends_cents"] for r in periods["value"]] == [3_000]
    assert periods["value"][0]["transaction_count"] == 1

    bad = run_calculation({"kind": "portfolio_periods", "transactions": txs, "period": "week"}, cache=cache)
    assert bad["error"]["code"] == "INVALID_INPUT"
    assert bad["error"]["details"]["valid"] == ["month", "quarter", "year"]

    series = run_calculation({"kind": "portfolio_series", "snapshots": [{"date": "2025-01-01"}]}, cache=cache)
    assert series["error"]["code"] == "BAD_INPUT"
