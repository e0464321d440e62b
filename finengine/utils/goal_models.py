from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

_FROZEN = ConfigDict(frozen=True)

GoalStatus = Literal["achieved", "on_track", "behind", "unreachable"]


class GoalRecord(BaseModel):
    model_config = _FROZEN

    name: str = ""
    target_amount_cents: int
    target_date: Optional[date] = None


class GoalEvaluationInput(BaseModel):
    model_config = _FROZEN

    goal: GoalRecord
    current_amount_cents: int
    monthly_net_cash_flow_cents: int = 0
    assumed_return_percent: Decimal = Decimal(0)
    as_of_date: date


class GoalMilestone(BaseModel):
    model_config = _FROZEN

    percent: int
    amount_cents: int
    reached: bool
    months_to_reach: Optional[int] = None
    projected_date: Optional[date] = None


class GoalProgressSummary(BaseModel):
    model_config = _FROZEN

    name: str
    current_amount_cents: int
    target_amount_cents: int
    remaining_cents: int
    progress_percent: Decimal = Field(..., description="Floored at 0, may exceed 100")
    target_date: Optional[date]
    months_until_target_date: Optional[int]
    reachable: bool
    months_to_goal: Optional[int] = Field(default=None, description="None when not reachable within the search cap")
    projected_completion_date: Optional[date] = None
    on_track: bool
    status: GoalStatus
    monthly_savings_needed_cents: int
    milestones: List[GoalMilestone]


class BalanceObservation(BaseModel):
    model_config = _FROZEN

    as_of_date: date
    amount_cents: int


class TrajectoryEstimate(BaseModel):
    model_config = _FROZEN

    observations: int
    months_spanned: int
    average_monthly_change_cents: int
