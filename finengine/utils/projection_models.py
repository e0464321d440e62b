from __future__ import annotations

import datetime
from datetime import date
from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

_FROZEN = ConfigDict(frozen=True)

Frequency = Literal["one_time", "weekly", "biweekly", "monthly", "quarterly", "annually"]
CashFlowType = Literal["income", "expense"]

FREQUENCY_MULTIPLIERS = {
    "one_time": 1,
    "weekly": 52,
    "biweekly": 26,
    "monthly": 12,
    "quarterly": 4,
    "annually": 1,
}


# -------------------------
# Growth
# -------------------------

class GrowthAssumption(BaseModel):
    model_config = _FROZEN

    annual_rate_percent: Decimal
    monthly_contribution_cents: int = Field(default=0, description="Negative for drawdown")
    compounding: Literal["monthly"] = "monthly"


class GrowthProjection(BaseModel):
    model_config = _FROZEN

    initial_cents: int
    balances_cents: List[int] = Field(..., description="Period-end balances, one per period")
    total_contributed_cents: int
    final_balance_cents: int


# -------------------------
# Entities
# -------------------------

class ProjectionAsset(BaseModel):
    model_config = _FROZEN

    id: str
    name: str = ""
    current_value_cents: int
    annual_growth_rate_percent: Decimal = Decimal(0)


class ProjectionLiability(BaseModel):
    model_config = _FROZEN

    id: str
    name: str = ""
    current_balance_cents: int
    interest_rate_percent: Decimal = Decimal(0)
    minimum_payment_cents: int = 0
    term_months: Optional[int] = Field(default=None, description="None = open-ended (revolving)")


class ProjectionCashFlowItem(BaseModel):
    model_config = _FROZEN

    id: str
    name: str = ""
    type: CashFlowType
    amount_cents: int
    frequency: Frequency = "monthly"
    annual_growth_rate_percent: Optional[Decimal] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


# -------------------------
# Scenario overrides
# -------------------------

AssetField = Literal["annual_growth_rate_percent", "current_value_cents", "name"]
LiabilityField = Literal[
    "current_balance_cents",
    "interest_rate_percent",
    "minimum_payment_cents",
    "name",
    "term_months",
]
CashFlowField = Literal[
    "amount_cents",
    "annual_growth_rate_percent",
    "end_date",
    "frequency",
    "name",
    "start_date",
    "type",
]

OverrideValue = Union[int, Decimal, date, str, None]


class AssetOverride(BaseModel):
    model_config = _FROZEN

    target_type: Literal["asset"] = "asset"
    entity_id: str
    field_name: AssetField
    value: OverrideValue


class LiabilityOverride(BaseModel):
    model_config = _FROZEN

    target_type: Literal["liability"] = "liability"
    entity_id: str
    field_name: LiabilityField
    value: OverrideValue


class CashFlowOverride(BaseModel):
    model_config = _FROZEN

    target_type: Literal["cash_flow_item"] = "cash_flow_item"
    entity_id: str
    field_name: CashFlowField
    value: OverrideValue


ScenarioOverride = Annotated[
    Union[AssetOverride, LiabilityOverride, CashFlowOverride],
    Field(discriminator="target_type"),
]


class RawOverride(BaseModel):
    """Override as stored by callers: every value is a string (or None)."""

    model_config = _FROZEN

    entity_id: str
    target_type: str
    field_name: str
    value: Optional[str] = None


class Scenario(BaseModel):
    model_config = _FROZEN

    id: str
    name: str
    description: Optional[str] = None
    is_baseline: bool = False
    overrides: List[ScenarioOverride] = Field(default_factory=list)


# -------------------------
# Net worth projection
# -------------------------

class NetWorthInput(BaseModel):
    model_config = _FROZEN

    assets: List[ProjectionAsset] = Field(default_factory=list)
    liabilities: List[ProjectionLiability] = Field(default_factory=list)
    cash_flow_items: List[ProjectionCashFlowItem] = Field(default_factory=list)
    start_date: date
    horizon_years: int
    scenario: Optional[Scenario] = None


class EntityAmount(BaseModel):
    model_config = _FROZEN

    id: str
    amount_cents: int


class YearlySnapshot(BaseModel):
    """State at ``date`` plus the cash flows of the twelve months that follow it."""

    model_config = _FROZEN

    year: int
    date: datetime.date
    total_assets_cents: int
    total_liabilities_cents: int
    net_worth_cents: int
    total_income_cents: int
    total_expenses_cents: int
    debt_payments_cents: int
    debt_interest_cents: int
    net_cash_flow_cents: int
    asset_values: List[EntityAmount]
    liability_balances: List[EntityAmount]


class NetWorthSummary(BaseModel):
    model_config = _FROZEN

    starting_net_worth_cents: int
    ending_net_worth_cents: int
    net_worth_change_cents: int
    net_worth_change_percent: Decimal
    total_income_cents: int
    total_expenses_cents: int
    total_debt_payments_cents: int
    total_interest_paid_cents: int


class NetWorthProjection(BaseModel):
    model_config = _FROZEN

    start_date: date
    horizon_years: int
    scenario_id: Optional[str] = None
    snapshots: List[YearlySnapshot]
    summary: NetWorthSummary
