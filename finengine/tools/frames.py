"""pandas views of calculator results for tables, charts and CSV export.

Money columns stay integer cents; ``with_dollars`` appends a string
``<column>_usd`` column per cents column for display.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

import pandas as pd

from finengine.utils.amortization import summarize_by_year
from finengine.utils.comparison_models import MortgageVsInvestResult, RentVsBuyResult
from finengine.utils.investment_models import PeriodAggregate, PortfolioSummary
from finengine.utils.loan_models import AmortizationSchedule
from finengine.utils.money import cents_to_dollars
from finengine.utils.projection_models import NetWorthProjection


def with_dollars(df: pd.DataFrame, columns: Optional[Iterable[str]] = None) -> pd.DataFrame:
    out = df.copy()
    cols = list(columns) if columns is not None else [c for c in df.columns if c.endswith("_cents")]
    for c in cols:
        out[c[: -len("_cents")] + "_usd"] = [cents_to_dollars(int(v)) for v in out[c]]
    return out


def schedule_to_frame(schedule: AmortizationSchedule) -> pd.DataFrame:
    df = pd.DataFrame([e.model_dump() for e in schedule.entries])
    if df.empty:
        return df
    df["payment_date"] = pd.to_datetime(df["payment_date"])
    return df.set_index("payment_number")


def yearly_loan_frame(schedule: AmortizationSchedule) -> pd.DataFrame:
    return pd.DataFrame([y.model_dump() for y in summarize_by_year(schedule)]).set_index("year")


def mortgage_vs_invest_frame(result: MortgageVsInvestResult) -> pd.DataFrame:
    return pd.DataFrame([p.model_dump() for p in result.yearly]).set_index("year")


def rent_vs_buy_frame(result: RentVsBuyResult) -> pd.DataFrame:
    df = pd.DataFrame([p.model_dump() for p in result.yearly])
    df["date"] = pd.to_datetime(df["date"])
    return df.set_index("year")


def net_worth_frame(projection: NetWorthProjection, per_entity: bool = False) -> pd.DataFrame:
    """One row per snapshot; ``per_entity`` adds ``asset:<id>`` / ``liability:<id>`` columns."""
    rows: List[dict] = []
    for s in projection.snapshots:
        row = s.model_dump(exclude={"asset_values", "liability_balances"})
        if per_entity:
            for a in s.asset_values:
                row[f"asset:{a.id}"] = a.amount_cents
            for li in s.liability_balances:
                row[f"liability:{li.id}"] = li.amount_cents
        rows.append(row)
    df = pd.DataFrame(rows)
    df["date"] = pd.to_datetime(df["date"])
    return df.set_index("year")


def holdings_frame(summary: PortfolioSummary) -> pd.DataFrame:
    return pd.DataFrame([h.model_dump() for h in summary.holdings]).set_index("symbol")


def period_frame(rows: Sequence[PeriodAggregate]) -> pd.DataFrame:
    df = pd.DataFrame([r.model_dump() for r in rows])
    if df.empty:
        return df
    for c in ("period_start", "period_end"):
        df[c] = pd.to_datetime(df[c])
    return df.set_index("label")
