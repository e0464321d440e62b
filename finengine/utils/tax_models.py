from __future__ import annotations

from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

_FROZEN = ConfigDict(frozen=True)

FilingStatus = Literal[
    "single",
    "married_filing_jointly",
    "married_filing_separately",
    "head_of_household",
]


class TaxBracket(BaseModel):
    model_config = _FROZEN

    min_cents: int
    max_cents: Optional[int] = Field(default=None, description="None = unbounded top bracket")
    rate_percent: Decimal


class TaxBracketInfo(BaseModel):
    model_config = _FROZEN

    min_cents: int
    max_cents: Optional[int]
    rate_percent: Decimal
    taxable_in_bracket_cents: int
    tax_in_bracket_cents: int


class TaxResult(BaseModel):
    model_config = _FROZEN

    taxable_income_cents: int
    total_tax_cents: int
    marginal_rate_percent: Decimal
    effective_rate_percent: Decimal
    per_bracket: List[TaxBracketInfo]


class Deductions(BaseModel):
    model_config = _FROZEN

    mortgage_interest_cents: int = 0
    property_tax_cents: int = 0
    state_tax_cents: int = 0
    charitable_cents: int = 0


class TaxLiabilityInput(BaseModel):
    model_config = _FROZEN

    gross_income_cents: int
    filing_status: FilingStatus = "single"
    tax_year: int
    deductions: Deductions = Field(default_factory=Deductions)


class TaxLiabilityResult(BaseModel):
    model_config = _FROZEN

    gross_income_cents: int
    standard_deduction_cents: int
    itemized_deduction_cents: int
    deduction_used: Literal["standard", "itemized"]
    taxable_income_cents: int
    estimated_tax_liability_cents: int
    effective_rate_percent: Decimal = Field(..., description="Against gross income")
    marginal_rate_percent: Decimal
    per_bracket: List[TaxBracketInfo]
