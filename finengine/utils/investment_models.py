from __future__ import annotations

import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

_FROZEN = ConfigDict(frozen=True)

TransactionType = Literal["contribution", "withdrawal", "dividend", "reinvestment"]
AggregationPeriod = Literal["month", "quarter", "year"]


class Holding(BaseModel):
    model_config = _FROZEN

    symbol: str
    shares: Decimal = Field(..., description="May be fractional")
    cost_basis_cents: int = Field(..., description="Total paid for all shares")
    current_price_cents: int = Field(..., description="Per share")


class Transaction(BaseModel):
    model_config = _FROZEN

    type: TransactionType
    date: datetime.date
    amount_cents: int
    symbol: Optional[str] = None
    shares: Optional[Decimal] = None


class PortfolioInput(BaseModel):
    model_config = _FROZEN

    holdings: List[Holding] = Field(default_factory=list)
    transactions: List[Transaction] = Field(default_factory=list)


class HoldingSummary(BaseModel):
    model_config = _FROZEN

    symbol: str
    shares: Decimal
    cost_basis_cents: int
    current_value_cents: int
    gain_loss_cents: int
    gain_loss_percent: Decimal = Field(..., description="Of cost basis; 0 when the basis is 0")
    allocation_percent: Decimal = Field(..., description="Of total portfolio value")


class PortfolioSummary(BaseModel):
    model_config = _FROZEN

    holdings: List[HoldingSummary]
    total_value_cents: int
    total_cost_basis_cents: int
    total_contributions_cents: int
    total_withdrawals_cents: int
    net_contributions_cents: int
    total_dividends_cents: int
    unrealized_gain_cents: int
    unrealized_gain_percent: Decimal
    total_return_cents: int = Field(..., description="Unrealized gain + dividends")
    total_return_percent: Decimal = Field(..., description="Of net contributions; 0 when those are <= 0")


class PeriodAggregate(BaseModel):
    model_config = _FROZEN

    label: str = Field(..., description='"2025-01", "2025-Q1" or "2025"')
    period_start: datetime.date
    period_end: datetime.date
    contributions_cents: int = 0
    withdrawals_cents: int = 0
    dividends_cents: int = 0
    reinvestments_cents: int = 0
    transaction_count: int = 0


class PortfolioSnapshot(BaseModel):
    """Portfolio state recorded at ``date``; totals are cumulative."""

    model_config = _FROZEN

    date: datetime.date
    total_value_cents: int
    total_contributions_cents: int
    total_dividends_cents: int
