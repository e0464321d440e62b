"""Portfolio valuation and transaction roll-ups.

Holding values are ``shares * current_price_cents`` rounded half-up to a
cent per holding; every total is a sum of those whole-cent values. Period
labels are ``YYYY-MM``, ``YYYY-Qn`` or ``YYYY``.
"""

from __future__ import annotations

import calendar
from collections import Counter
from datetime import date
from decimal import Decimal
from typing import Dict, List, Sequence, Tuple

from finengine.core.errors import InvalidInputError
from finengine.utils.investment_models import (
    AggregationPeriod,
    Holding,
    HoldingSummary,
    PeriodAggregate,
    PortfolioInput,
    PortfolioSnapshot,
    PortfolioSummary,
    Transaction,
)
from finengine.utils.logging import get_logger
from finengine.utils.money import ratio_percent, round_cents
from finengine.utils.outcomes import run_guarded
from finengine.utils.validators import validate_portfolio, validate_snapshots, validate_transactions

logger = get_logger(__name__)

_PERIOD_FIELDS = {
    "contribution": "contributions_cents",
    "withdrawal": "withdrawals_cents",
    "dividend": "dividends_cents",
    "reinvestment": "reinvestments_cents",
}


def holding_value(h: Holding) -> int:
    if h.shares == 0:
        return 0
    return round_cents(h.shares * Decimal(h.current_price_cents))


def portfolio_value(holdings: Sequence[Holding]) -> int:
    return sum(holding_value(h) for h in holdings)


def total_cost_basis(holdings: Sequence[Holding]) -> int:
    return sum(h.cost_basis_cents for h in holdings)


def unrealized_gain(holdings: Sequence[Holding]) -> int:
    return portfolio_value(holdings) - total_cost_basis(holdings)


def transaction_totals(transactions: Sequence[Transaction]) -> Dict[str, int]:
    """Sum of ``amount_cents`` per transaction type; every type is present."""
    totals = {t: 0 for t in _PERIOD_FIELDS}
    for tx in transactions:
        totals[tx.type] += tx.amount_cents
    return totals


def summarize_holding(h: Holding, portfolio_total_cents: int) -> HoldingSummary:
    value = holding_value(h)
    gain = value - h.cost_basis_cents
    if portfolio_total_cents > 0:
        allocation = ratio_percent(value, portfolio_total_cents)
    else:
        allocation = Decimal("100.00") if value > 0 else Decimal("0.00")
    return HoldingSummary(
        symbol=h.symbol,
        shares=h.shares,
        cost_basis_cents=h.cost_basis_cents,
        current_value_cents=value,
        gain_loss_cents=gain,
        gain_loss_percent=ratio_percent(gain, h.cost_basis_cents),
        allocation_percent=allocation,
    )


def _aggregate(inp: PortfolioInput) -> PortfolioSummary:
    total_value = portfolio_value(inp.holdings)
    basis = total_cost_basis(inp.holdings)
    totals = transaction_totals(inp.transactions)

    net_contributions = totals["contribution"] - totals["withdrawal"]
    gain = total_value - basis
    total_return = gain + totals["dividend"]
    return PortfolioSummary(
        holdings=[summarize_holding(h, total_value) for h in inp.holdings],
        total_value_cents=total_value,
        total_cost_basis_cents=basis,
        total_contributions_cents=totals["contribution"],
        total_withdrawals_cents=totals["withdrawal"],
        net_contributions_cents=net_contributions,
        total_dividends_cents=totals["dividend"],
        unrealized_gain_cents=gain,
        unrealized_gain_percent=ratio_percent(gain, basis) if basis > 0 else Decimal("0.00"),
        total_return_cents=total_return,
        total_return_percent=ratio_percent(total_return, net_contributions) if net_contributions > 0 else Decimal("0.00"),
    )


def aggregate_portfolio(inp: PortfolioInput):
    """Success[PortfolioSummary] | Failure."""
    return run_guarded("portfolio", validate_portfolio(inp), lambda: _aggregate(inp), logger)


# -------------------------
# Periods
# -------------------------

def period_bounds(d: date, period: AggregationPeriod) -> Tuple[str, date, date]:
    """(label, first day, last day) of the period containing ``d``."""
    if period == "month":
        last = calendar.monthrange(d.year, d.month)[1]
        return f"{d.year}-{d.month:02d}", date(d.year, d.month, 1), date(d.year, d.month, last)
    if period == "quarter":
        q = (d.month - 1) // 3 + 1
        first_month = 3 * (q - 1) + 1
        last = calendar.monthrange(d.year, first_month + 2)[1]
        return f"{d.year}-Q{q}", date(d.year, first_month, 1), date(d.year, first_month + 2, last)
    if period == "year":
        return str(d.year), date(d.year, 1, 1), date(d.year, 12, 31)
    raise InvalidInputError(f"unknown period {period!r}", details={"valid": ["month", "quarter", "year"]})


def _by_period(transactions: Sequence[Transaction], period: AggregationPeriod) -> List[PeriodAggregate]:
    buckets: Dict[str, Dict[str, object]] = {}
    counts: Counter = Counter()
    for tx in transactions:
        label, start, end = period_bounds(tx.date, period)
        bucket = buckets.setdefault(label, {"label": label, "period_start": start, "period_end": end})
        field = _PERIOD_FIELDS[tx.type]
        bucket[field] = bucket.get(field, 0) + tx.amount_cents
        counts[label] += 1
    rows = [PeriodAggregate(transaction_count=counts[label], **b) for label, b in buckets.items()]
    return sorted(rows, key=lambda r: r.period_start)


def aggregate_by_period(transactions: Sequence[Transaction], period: AggregationPeriod):
    """Success[List[PeriodAggregate]] | Failure; only periods with a transaction appear."""
    return run_guarded(
        "portfolio_periods",
        validate_transactions(transactions),
        lambda: _by_period(transactions, period),
        logger,
    )


def dividends_by_period(transactions: Sequence[Transaction], period: AggregationPeriod):
    return aggregate_by_period([tx for tx in transactions if tx.type == "dividend"], period)


def build_portfolio_time_series(snapshots: Sequence[PortfolioSnapshot]):
    """Success[List[PortfolioSnapshot]] sorted by date | Failure on duplicate dates."""
    return run_guarded(
        "portfolio_series",
        validate_snapshots(snapshots),
        lambda: sorted(snapshots, key=lambda s: s.date),
        logger,
    )
