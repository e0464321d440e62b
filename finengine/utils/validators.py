"""Pre-computation checks for every calculator input.

Each ``validate_*`` returns a finalized :class:`ValidationReport`; calculators
refuse to run when ``report.ok`` is False.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from finengine.core.config import SETTINGS
from finengine.core.schemas import ValidationReport
from finengine.utils.comparison_models import MortgageVsInvestInput, RentVsBuyInput
from finengine.utils.goal_models import GoalEvaluationInput
from finengine.utils.investment_models import Holding, PortfolioInput, PortfolioSnapshot, Transaction
from finengine.utils.loan_models import LoanTerms, PaymentModification
from finengine.utils.projection_models import GrowthAssumption, NetWorthInput
from finengine.utils.tax_models import TaxBracket, TaxLiabilityInput

_ZERO = Decimal(0)
_HUNDRED = Decimal(100)


def _loc(prefix: Optional[str], name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def _non_negative(report: ValidationReport, value: int, location: str) -> None:
    if value < 0:
        report.add_error(f"must be >= 0, got {value}", location=location)


def _percent(report: ValidationReport, value: Decimal, location: str, *, low: Decimal = _ZERO, high: Decimal = _HUNDRED) -> None:
    if value < low or value > high:
        report.add_error(f"must be between {low} and {high}, got {value}", location=location)


def validate_horizon(report: ValidationReport, years: int, location: str = "horizon_years") -> None:
    lo, hi = SETTINGS.min_horizon_years, SETTINGS.max_horizon_years
    if years < lo or years > hi:
        report.add_error(f"must be between {lo} and {hi} years, got {years}", location=location)


def validate_loan(loan: LoanTerms, prefix: Optional[str] = None) -> ValidationReport:
    report = ValidationReport(ok=True)
    _non_negative(report, loan.principal_cents, _loc(prefix, "principal_cents"))
    if loan.annual_rate_percent < 0:
        report.add_error(f"must be >= 0, got {loan.annual_rate_percent}", location=_loc(prefix, "annual_rate_percent"))
    if loan.term_months <= 0:
        report.add_error(f"must be > 0, got {loan.term_months}", location=_loc(prefix, "term_months"))
    return report.finalize()


def validate_modification(mods: PaymentModification, loan: LoanTerms, prefix: Optional[str] = None) -> ValidationReport:
    report = ValidationReport(ok=True)
    _non_negative(report, mods.extra_monthly_payment_cents, _loc(prefix, "extra_monthly_payment_cents"))
    _non_negative(report, mods.one_time_payment_cents, _loc(prefix, "one_time_payment_cents"))

    month = mods.one_time_payment_month
    if mods.one_time_payment_cents > 0 and month is None:
        report.add_error("required when one_time_payment_cents > 0", location=_loc(prefix, "one_time_payment_month"))
    if month is not None and (month < 1 or month > loan.term_months):
        report.add_error(
            f"must be between 1 and {loan.term_months}, got {month}",
            location=_loc(prefix, "one_time_payment_month"),
        )
    if month is not None and mods.one_time_payment_cents == 0:
        report.add_warning("one_time_payment_month set without an amount", location=_loc(prefix, "one_time_payment_month"))
    return report.finalize()


def validate_brackets(brackets: Sequence[TaxBracket], prefix: str = "brackets") -> ValidationReport:
    report = ValidationReport(ok=True)
    if not brackets:
        report.add_error("at least one bracket is required", location=prefix)
        return report.finalize()

    if brackets[0].min_cents != 0:
        report.add_error(f"first bracket must start at 0, got {brackets[0].min_cents}", location=f"{prefix}[0].min_cents")

    last = len(brackets) - 1
    for i, b in enumerate(brackets):
        loc = f"{prefix}[{i}]"
        _percent(report, b.rate_percent, f"{loc}.rate_percent")
        if b.max_cents is None:
            if i != last:
                report.add_error("only the last bracket may be unbounded", location=f"{loc}.max_cents")
            continue
        if i == last:
            report.add_error("last bracket must be unbounded (max_cents = None)", location=f"{loc}.max_cents")
        if b.max_cents <= b.min_cents:
            report.add_error(f"max_cents {b.max_cents} must exceed min_cents {b.min_cents}", location=loc)
        if i < last and brackets[i + 1].min_cents != b.max_cents:
            kind = "gap" if brackets[i + 1].min_cents > b.max_cents else "overlap"
            report.add_error(
                f"{kind} between {b.max_cents} and {brackets[i + 1].min_cents}",
                location=f"{prefix}[{i + 1}].min_cents",
            )
    return report.finalize()


def validate_growth(initial_cents: int, assumption: GrowthAssumption, periods: int) -> ValidationReport:
    report = ValidationReport(ok=True)
    if periods < 0:
        report.add_error(f"must be >= 0, got {periods}", location="periods")
    if assumption.annual_rate_percent <= -_HUNDRED:
        report.add_error("must be greater than -100", location="assumption.annual_rate_percent")
    if initial_cents < 0:
        report.add_info("negative starting balance", location="initial_cents")
    return report.finalize()


def validate_mortgage_vs_invest(inp: MortgageVsInvestInput) -> ValidationReport:
    report = ValidationReport(ok=True)
    report.extend(validate_loan(inp.loan), prefix="loan")
    if inp.loan.principal_cents == 0:
        report.add_error("mortgage balance must be > 0", location="loan.principal_cents")
    _non_negative(report, inp.extra_monthly_payment_cents, "extra_monthly_payment_cents")
    if inp.expected_return_percent <= -_HUNDRED:
        report.add_error("must be greater than -100", location="expected_return_percent")
    _percent(report, inp.capital_gains_tax_percent, "capital_gains_tax_percent")
    _percent(report, inp.marginal_tax_rate_percent, "marginal_tax_rate_percent")
    validate_horizon(report, inp.horizon_years)
    if inp.extra_monthly_payment_cents == 0:
        report.add_warning("extra payment is 0; both strategies are identical", location="extra_monthly_payment_cents")
    return report.finalize()


def validate_rent_vs_buy(inp: RentVsBuyInput) -> ValidationReport:
    report = ValidationReport(ok=True)
    validate_horizon(report, inp.horizon_years)

    b = inp.buy
    if b.home_price_cents <= 0:
        report.add_error(f"must be > 0, got {b.home_price_cents}", location="buy.home_price_cents")
    _percent(report, b.down_payment_percent, "buy.down_payment_percent")
    _percent(report, b.closing_cost_percent, "buy.closing_cost_percent")
    if b.mortgage_rate_percent < 0:
        report.add_error(f"must be >= 0, got {b.mortgage_rate_percent}", location="buy.mortgage_rate_percent")
    if b.mortgage_term_years < 1 or b.mortgage_term_years > 50:
        report.add_error(f"must be between 1 and 50, got {b.mortgage_term_years}", location="buy.mortgage_term_years")
    _non_negative(report, b.homeowners_insurance_annual_cents, "buy.homeowners_insurance_annual_cents")
    _non_negative(report, b.hoa_monthly_cents, "buy.hoa_monthly_cents")
    for name in ("property_tax_rate_percent", "maintenance_rate_percent"):
        v = getattr(b, name)
        if v is not None:
            _percent(report, v, f"buy.{name}")

    r = inp.rent
    if r.monthly_rent_cents <= 0:
        report.add_error(f"must be > 0, got {r.monthly_rent_cents}", location="rent.monthly_rent_cents")
    if r.security_deposit_months < 0 or r.security_deposit_months > 12:
        report.add_error(f"must be between 0 and 12, got {r.security_deposit_months}", location="rent.security_deposit_months")
    _non_negative(report, r.renters_insurance_annual_cents, "rent.renters_insurance_annual_cents")
    if r.rent_increase_rate_percent is not None and r.rent_increase_rate_percent <= -_HUNDRED:
        report.add_error("must be greater than -100", location="rent.rent_increase_rate_percent")

    a = inp.assumptions
    for name in ("maintenance_rate_percent", "property_tax_rate_percent", "marginal_tax_rate_percent", "selling_cost_percent"):
        v = getattr(a, name)
        if v is not None:
            _percent(report, v, f"assumptions.{name}")
    for name in (
        "property_appreciation_rate_percent",
        "investment_return_rate_percent",
        "rent_increase_rate_percent",
        "inflation_rate_percent",
    ):
        v = getattr(a, name)
        if v is not None and v <= -_HUNDRED:
            report.add_error("must be greater than -100", location=f"assumptions.{name}")
    return report.finalize()


def validate_goal_input(inp: GoalEvaluationInput) -> ValidationReport:
    report = ValidationReport(ok=True)
    if inp.goal.target_amount_cents <= 0:
        report.add_error(f"must be > 0, got {inp.goal.target_amount_cents}", location="goal.target_amount_cents")
    _non_negative(report, inp.current_amount_cents, "current_amount_cents")
    if inp.assumed_return_percent <= -_HUNDRED:
        report.add_error("must be greater than -100", location="assumed_return_percent")
    if inp.goal.target_date is not None and inp.goal.target_date <= inp.as_of_date:
        report.add_warning("target date is not after the as-of date", location="goal.target_date")
    return report.finalize()


def validate_tax_liability_input(inp: TaxLiabilityInput) -> ValidationReport:
    report = ValidationReport(ok=True)
    d = inp.deductions
    for name in ("mortgage_interest_cents", "property_tax_cents", "state_tax_cents", "charitable_cents"):
        _non_negative(report, getattr(d, name), f"deductions.{name}")
    if inp.gross_income_cents < 0:
        report.add_error(f"must be >= 0, got {inp.gross_income_cents}", location="gross_income_cents")
    return report.finalize()


def validate_net_worth_input(inp: NetWorthInput) -> ValidationReport:
    report = ValidationReport(ok=True)
    validate_horizon(report, inp.horizon_years)

    seen = set()
    for kind, items in (("assets", inp.assets), ("liabilities", inp.liabilities), ("cash_flow_items", inp.cash_flow_items)):
        for i, item in enumerate(items):
            if not item.id:
                report.add_error("id must be non-empty", location=f"{kind}[{i}].id")
            elif item.id in seen:
                report.add_error(f"duplicate id {item.id!r}", location=f"{kind}[{i}].id")
            seen.add(item.id)

    for i, a in enumerate(inp.assets):
        if a.annual_growth_rate_percent <= -_HUNDRED:
            report.add_error("must be greater than -100", location=f"assets[{i}].annual_growth_rate_percent")

    for i, l in enumerate(inp.liabilities):
        loc = f"liabilities[{i}]"
        _non_negative(report, l.current_balance_cents, f"{loc}.current_balance_cents")
        _non_negative(report, l.minimum_payment_cents, f"{loc}.minimum_payment_cents")
        if l.interest_rate_percent < 0:
            report.add_error(f"must be >= 0, got {l.interest_rate_percent}", location=f"{loc}.interest_rate_percent")
        if l.term_months is not None and l.term_months <= 0:
            report.add_error(f"must be > 0, got {l.term_months}", location=f"{loc}.term_months")
        if l.term_months is None and l.current_balance_cents > 0 and l.minimum_payment_cents == 0:
            report.add_warning("open-ended liability with no minimum payment never pays down", location=loc)

    for i, c in enumerate(inp.cash_flow_items):
        loc = f"cash_flow_items[{i}]"
        _non_negative(report, c.amount_cents, f"{loc}.amount_cents")
        if c.start_date and c.end_date and c.end_date < c.start_date:
            report.add_error("end_date is before start_date", location=f"{loc}.end_date")
        if c.annual_growth_rate_percent is not None and c.annual_growth_rate_percent <= -_HUNDRED:
            report.add_error("must be greater than -100", location=f"{loc}.annual_growth_rate_percent")

    if inp.scenario is not None:
        for i, o in enumerate(inp.scenario.overrides):
            if o.entity_id not in seen:
                report.add_warning(f"override targets unknown entity {o.entity_id!r}", location=f"scenario.overrides[{i}]")
    return report.finalize()


def validate_holdings(holdings: Sequence[Holding], prefix: str = "holdings") -> ValidationReport:
    report = ValidationReport(ok=True)
    for i, h in enumerate(holdings):
        loc = f"{prefix}[{i}]"
        if not h.symbol.strip():
            report.add_error("symbol must be non-empty", location=f"{loc}.symbol")
        if not h.shares.is_finite() or h.shares < 0:
            report.add_error(f"must be a finite number >= 0, got {h.shares}", location=f"{loc}.shares")
        _non_negative(report, h.cost_basis_cents, f"{loc}.cost_basis_cents")
        _non_negative(report, h.current_price_cents, f"{loc}.current_price_cents")
    return report.finalize()


def validate_transactions(transactions: Sequence[Transaction], prefix: str = "transactions") -> ValidationReport:
    report = ValidationReport(ok=True)
    for i, t in enumerate(transactions):
        loc = f"{prefix}[{i}]"
        _non_negative(report, t.amount_cents, f"{loc}.amount_cents")
        if t.shares is not None and (not t.shares.is_finite() or t.shares < 0):
            report.add_error(f"must be a finite number >= 0, got {t.shares}", location=f"{loc}.shares")
        if t.symbol is not None and not t.symbol.strip():
            report.add_warning("blank symbol", location=f"{loc}.symbol")
    return report.finalize()


def validate_portfolio(inp: PortfolioInput) -> ValidationReport:
    report = ValidationReport(ok=True)
    report.extend(validate_holdings(inp.holdings))
    report.extend(validate_transactions(inp.transactions))
    symbols = [h.symbol for h in inp.holdings]
    for sym in sorted({s for s in symbols if symbols.count(s) > 1}):
        report.add_warning(f"symbol {sym!r} appears in more than one holding", location="holdings")
    return report.finalize()


def validate_snapshots(snapshots: Sequence[PortfolioSnapshot]) -> ValidationReport:
    report = ValidationReport(ok=True)
    seen = set()
    for i, s in enumerate(snapshots):
        if s.date in seen:
            report.add_error(f"duplicate snapshot date {s.date.isoformat()}", location=f"snapshots[{i}].date")
        seen.add(s.date)
    return report.finalize()
