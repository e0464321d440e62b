from decimal import Decimal

import pytest

from finengine.core.errors import InvalidInputError
from finengine.utils.tax_engine import calculate_tax_liability, compute_tax, estimate_capital_gains_tax
from finengine.utils.tax_models import Deductions, TaxBracket, TaxLiabilityInput
from finengine.utils.tax_tables import get_standard_deduction, get_tax_brackets, load_tax_tables, resolve_year

TWO_BRACKETS = [
    TaxBracket(min_cents=0, max_cents=1_000_000, rate_percent=Decimal("10")),
    TaxBracket(min_cents=1_000_000, max_cents=None, rate_percent=Decimal("20")),
]


def test_two_bracket_example():
    out = compute_tax(1_500_000, TWO_BRACKETS)
    assert out.ok
    r = out.value
    assert [b.tax_in_bracket_cents for b in r.per_bracket] == [100_000, 100_000]
    assert r.total_tax_cents == 200_000
    assert r.marginal_rate_percent == Decimal("20")
    assert r.effective_rate_percent == Decimal("13.33")


def test_zero_income_lists_every_bracket():
    r = compute_tax(0, TWO_BRACKETS).value
    assert r.total_tax_cents == 0
    assert len(r.per_bracket) == 2
    assert r.effective_rate_percent == Decimal("0.00")


def test_bracket_sum_and_monotone():
    brackets = get_tax_brackets(2025, "single")
    prev = -1
    for income in range(0, 80_000_000, 1_234_567):
        r = compute_tax(income, brackets).value
        assert sum(b.tax_in_bracket_cents for b in r.per_bracket) == r.total_tax_cents
        assert r.total_tax_cents >= prev
        prev = r.total_tax_cents


@pytest.mark.parametrize(
    "brackets,location",
    [
        ([TaxBracket(min_cents=5, max_cents=None, rate_percent=Decimal("10"))], "brackets[0].min_cents"),
        (
            [
                TaxBracket(min_cents=0, max_cents=100, rate_percent=Decimal("10")),
                TaxBracket(min_cents=200, max_cents=None, rate_percent=Decimal("20")),
            ],
            "brackets[1].min_cents",
        ),
        (
            [
                TaxBracket(min_cents=0, max_cents=None, rate_percent=Decimal("10")),
                TaxBracket(min_cents=100, max_cents=None, rate_percent=Decimal("20")),
            ],
            "brackets[0].max_cents",
        ),
        ([TaxBracket(min_cents=0, max_cents=None, rate_percent=Decimal("120"))], "brackets[0].rate_percent"),
    ],
)
def test_bad_bracket_tables_rejected(brackets, location):
    out = compute_tax(1_000, brackets)
    assert not out.ok
    assert out.error.code == "INVALID_INPUT"
    assert location in {i.location for i in out.issues}


def test_configured_tables_are_valid():
    tables = load_tax_tables()
    for status in ("single", "married_filing_jointly", "married_filing_separately", "head_of_household"):
        assert compute_tax(10_000_000, get_tax_brackets(2025, status)).ok
    assert resolve_year(2031, tables) == 2025
    assert resolve_year(1990, tables) == 2025


def test_unknown_filing_status():
    with pytest.raises(InvalidInputError):
        get_tax_brackets(2025, "widowed")


def test_liability_standard_deduction():
    out = calculate_tax_liability(TaxLiabilityInput(gross_income_cents=9_500_000, filing_status="single", tax_year=2025))
    assert out.ok
    r = out.value
    standard = get_standard_deduction(2025, "single")
    assert r.deduction_used == "standard"
    assert r.taxable_income_cents == 9_500_000 - standard
    assert r.estimated_tax_liability_cents == compute_tax(r.taxable_income_cents, get_tax_brackets(2025, "single")).value.total_tax_cents
    assert r.marginal_rate_percent == Decimal("22")


def test_liability_itemized_when_larger():
    d = Deductions(mortgage_interest_cents=2_000_000, property_tax_cents=500_000, state_tax_cents=0, charitable_cents=100_000)
    r = calculate_tax_liability(
        TaxLiabilityInput(gross_income_cents=20_000_000, filing_status="single", tax_year=2025, deductions=d)
    ).value
    assert r.deduction_used == "itemized"
    assert r.itemized_deduction_cents == 2_600_000
    assert r.taxable_income_cents == 17_400_000


def test_liability_income_below_deduction():
    r = calculate_tax_liability(TaxLiabilityInput(gross_income_cents=500_000, tax_year=2025)).value
    assert r.taxable_income_cents == 0
    assert r.estimated_tax_liability_cents == 0


def test_capital_gains_rate_from_total_income():
    assert estimate_capital_gains_tax(1_000_000, 3_000_000, "single") == 0
    assert estimate_capital_gains_tax(1_000_000, 10_000_000, "single") == 150_000
    assert estimate_capital_gains_tax(-500, 10_000_000, "single") == 0
