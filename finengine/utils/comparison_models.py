from __future__ import annotations

import datetime
from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from finengine.utils.loan_models import LoanTerms

_FROZEN = ConfigDict(frozen=True)


# -------------------------
# Mortgage vs invest
# -------------------------

class MortgageVsInvestInput(BaseModel):
    model_config = _FROZEN

    loan: LoanTerms = Field(..., description="Current balance, rate and remaining term")
    extra_monthly_payment_cents: int
    expected_return_percent: Decimal
    capital_gains_tax_percent: Decimal = Decimal(15)
    horizon_years: int
    mortgage_interest_deductible: bool = False
    marginal_tax_rate_percent: Decimal = Decimal(0)


class MortgageVsInvestYearPoint(BaseModel):
    model_config = _FROZEN

    year: int

    pay_extra_cumulative_extra_cents: int
    pay_extra_interest_saved_gross_cents: int
    pay_extra_lost_deduction_cents: int
    pay_extra_interest_saved_net_cents: int
    pay_extra_remaining_balance_cents: int
    baseline_remaining_balance_cents: int
    pay_extra_equity_gain_cents: int
    pay_extra_redirected_value_cents: int = Field(..., description="After-tax value of cash redirected after payoff")
    pay_extra_position_cents: int

    invest_cumulative_contributed_cents: int
    invest_portfolio_value_cents: int
    invest_after_tax_value_cents: int

    net_advantage_cents: int = Field(..., description="Positive = investing wins")


class PayExtraSummary(BaseModel):
    model_config = _FROZEN

    total_interest_without_extra_cents: int
    total_interest_with_extra_cents: int
    interest_saved_cents: int
    original_payoff_months: int
    new_payoff_months: int
    months_saved: int


class InvestSummary(BaseModel):
    model_config = _FROZEN

    total_contributed_cents: int
    final_portfolio_value_cents: int
    total_gain_cents: int
    after_tax_gain_cents: int
    after_tax_portfolio_value_cents: int


class MortgageVsInvestResult(BaseModel):
    model_config = _FROZEN

    input: MortgageVsInvestInput
    yearly: List[MortgageVsInvestYearPoint]
    pay_extra_summary: PayExtraSummary
    invest_summary: InvestSummary
    recommendation: Literal["invest", "pay_extra", "neutral"]
    break_even_return_percent: Optional[Decimal] = Field(
        default=None, description="None when the advantage keeps one sign across the search range"
    )


# -------------------------
# Rent vs buy
# -------------------------

class BuyParams(BaseModel):
    model_config = _FROZEN

    home_price_cents: int
    down_payment_percent: Decimal
    mortgage_rate_percent: Decimal
    mortgage_term_years: int = 30
    closing_cost_percent: Decimal = Decimal(0)
    homeowners_insurance_annual_cents: int = 0
    hoa_monthly_cents: int = 0
    property_tax_rate_percent: Optional[Decimal] = None
    maintenance_rate_percent: Optional[Decimal] = None


class RentParams(BaseModel):
    model_config = _FROZEN

    monthly_rent_cents: int
    security_deposit_months: Decimal = Decimal(0)
    renters_insurance_annual_cents: int = 0
    rent_increase_rate_percent: Optional[Decimal] = None


class RentVsBuyAssumptions(BaseModel):
    """Any field left as None falls back to the configured default."""

    model_config = _FROZEN

    property_appreciation_rate_percent: Optional[Decimal] = None
    maintenance_rate_percent: Optional[Decimal] = None
    property_tax_rate_percent: Optional[Decimal] = None
    marginal_tax_rate_percent: Optional[Decimal] = None
    investment_return_rate_percent: Optional[Decimal] = None
    rent_increase_rate_percent: Optional[Decimal] = None
    inflation_rate_percent: Optional[Decimal] = None
    selling_cost_percent: Optional[Decimal] = None


class RentVsBuyInput(BaseModel):
    model_config = _FROZEN

    start_date: date
    horizon_years: int
    buy: BuyParams
    rent: RentParams
    assumptions: RentVsBuyAssumptions = Field(default_factory=RentVsBuyAssumptions)


class RentVsBuyYearPoint(BaseModel):
    model_config = _FROZEN

    year: int
    date: datetime.date

    home_value_cents: int
    mortgage_balance_cents: int
    home_equity_cents: int
    mortgage_payments_cents: int
    principal_paid_cents: int
    interest_paid_cents: int
    property_taxes_cents: int
    homeowners_insurance_cents: int
    maintenance_cents: int
    hoa_cents: int
    tax_savings_cents: int
    buy_annual_cost_cents: int
    buy_cumulative_cost_cents: int

    monthly_rent_cents: int
    annual_rent_cents: int
    renters_insurance_cents: int
    rent_annual_cost_cents: int
    rent_cumulative_cost_cents: int
    investment_balance_cents: int
    investment_contributions_cents: int = Field(..., description="Net of withdrawals for the year")
    investment_gains_cents: int

    buy_net_worth_cents: int
    rent_net_worth_cents: int
    net_advantage_cents: int = Field(..., description="Positive = buying wins")


class RentVsBuySummary(BaseModel):
    model_config = _FROZEN

    initial_buy_costs_cents: int
    initial_rent_costs_cents: int
    total_buy_costs_cents: int
    total_rent_costs_cents: int
    final_home_equity_cents: int
    final_investment_balance_cents: int
    final_buy_net_worth_cents: int
    final_rent_net_worth_cents: int
    net_advantage_cents: int
    break_even_year: Optional[int] = None
    recommendation: Literal["buy", "rent", "neutral"]
    years_buying_better: int
    years_renting_better: int
    total_mortgage_interest_cents: int
    total_property_taxes_cents: int
    total_maintenance_cents: int
    total_tax_savings_cents: int
    total_rent_paid_cents: int
    total_investment_gains_cents: int


class RentVsBuyResult(BaseModel):
    model_config = _FROZEN

    input: RentVsBuyInput
    effective_assumptions: RentVsBuyAssumptions
    yearly: List[RentVsBuyYearPoint]
    summary: RentVsBuySummary
