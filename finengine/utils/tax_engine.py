from __future__ import annotations

from decimal import Decimal
from typing import List, Sequence

from finengine.core.errors import InvalidInputError
from finengine.utils.logging import get_logger
from finengine.utils.money import percent_of, ratio_percent
from finengine.utils.outcomes import run_guarded
from finengine.utils.tax_models import (
    FilingStatus,
    TaxBracket,
    TaxBracketInfo,
    TaxLiabilityInput,
    TaxLiabilityResult,
    TaxResult,
)
from finengine.utils.tax_tables import get_capital_gains_brackets, get_standard_deduction, get_tax_brackets
from finengine.utils.validators import validate_brackets, validate_tax_liability_input

logger = get_logger(__name__)

_ZERO_RATE = Decimal(0)


def _walk_brackets(income_cents: int, brackets: Sequence[TaxBracket]) -> TaxResult:
    rows: List[TaxBracketInfo] = []
    total = 0
    marginal = _ZERO_RATE

    for b in brackets:
        taxed = 0
        if income_cents > b.min_cents:
            top = income_cents if b.max_cents is None else min(income_cents, b.max_cents)
            taxed = max(0, top - b.min_cents)
            marginal = b.rate_percent
        tax = percent_of(taxed, b.rate_percent)
        total += tax
        rows.append(
            TaxBracketInfo(
                min_cents=b.min_cents,
                max_cents=b.max_cents,
                rate_percent=b.rate_percent,
                taxable_in_bracket_cents=taxed,
                tax_in_bracket_cents=tax,
            )
        )

    return TaxResult(
        taxable_income_cents=max(0, income_cents),
        total_tax_cents=total,
        marginal_rate_percent=marginal,
        effective_rate_percent=ratio_percent(total, income_cents) if income_cents > 0 else Decimal("0.00"),
        per_bracket=rows,
    )


def compute_tax(taxable_income_cents: int, brackets: Sequence[TaxBracket]):
    """Progressive tax over an ascending bracket table.

    Income <= 0 gives an all-zero result that still lists every bracket.
    """
    return run_guarded(
        "tax",
        validate_brackets(brackets),
        lambda: _walk_brackets(taxable_income_cents, brackets),
        logger,
    )


def calculate_tax_liability(inp: TaxLiabilityInput):
    """Federal liability using the larger of the standard and itemized deductions."""

    def compute() -> TaxLiabilityResult:
        standard = get_standard_deduction(inp.tax_year, inp.filing_status)
        d = inp.deductions
        itemized = d.mortgage_interest_cents + d.property_tax_cents + d.state_tax_cents + d.charitable_cents
        used = "itemized" if itemized > standard else "standard"
        taxable = max(0, inp.gross_income_cents - (itemized if used == "itemized" else standard))

        brackets = get_tax_brackets(inp.tax_year, inp.filing_status)
        table = validate_brackets(brackets)
        if not table.ok:
            raise InvalidInputError(
                "Configured bracket table is invalid",
                details={"tax_year": inp.tax_year, "filing_status": inp.filing_status},
            )
        res = _walk_brackets(taxable, brackets)

        return TaxLiabilityResult(
            gross_income_cents=inp.gross_income_cents,
            standard_deduction_cents=standard,
            itemized_deduction_cents=itemized,
            deduction_used=used,
            taxable_income_cents=taxable,
            estimated_tax_liability_cents=res.total_tax_cents,
            effective_rate_percent=ratio_percent(res.total_tax_cents, inp.gross_income_cents),
            marginal_rate_percent=res.marginal_rate_percent,
            per_bracket=res.per_bracket,
        )

    return run_guarded("tax_liability", validate_tax_liability_input(inp), compute, logger)


def estimate_capital_gains_tax(gains_cents: int, total_income_cents: int, filing_status: FilingStatus) -> int:
    """Long-term gains taxed at the single rate of the bracket ``total_income_cents`` falls in."""
    if gains_cents <= 0:
        return 0
    rate = _ZERO_RATE
    for b in get_capital_gains_brackets(filing_status):
        if total_income_cents > b.min_cents:
            rate = b.rate_percent
    return percent_of(gains_cents, rate)
