from __future__ import annotations

import copy
import functools
import uuid
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from finengine.core.config import SETTINGS
from finengine.core.errors import EngineError, InvalidInputError
from finengine.core.schemas import Failure, Success
from finengine.utils.amortization import analyze_early_payoff, balance_at_payment, build_schedule, summarize_by_year
from finengine.utils.cache import TTLCache, payload_key
from finengine.utils.comparison_models import MortgageVsInvestInput, RentVsBuyInput
from finengine.utils.goal_models import BalanceObservation, GoalEvaluationInput
from finengine.utils.goal_progress import derive_trajectory, evaluate_goal
from finengine.utils.growth import project
from finengine.utils.investment import aggregate_by_period, aggregate_portfolio, build_portfolio_time_series, dividends_by_period
from finengine.utils.investment_models import PortfolioInput, PortfolioSnapshot, Transaction
from finengine.utils.loan_models import LoanTerms, PaymentModification
from finengine.utils.logging import get_logger, request_context
from finengine.utils.mortgage_vs_invest import compare_mortgage_vs_invest
from finengine.utils.net_worth import compare_scenarios, project_net_worth
from finengine.utils.projection_models import GrowthAssumption, NetWorthInput, RawOverride
from finengine.utils.rent_vs_buy import compare_rent_vs_buy
from finengine.utils.scenario import build_scenario
from finengine.utils.tax_engine import calculate_tax_liability, compute_tax, estimate_capital_gains_tax
from finengine.utils.tax_models import TaxBracket, TaxLiabilityInput
from finengine.utils.tax_tables import get_tax_brackets

logger = get_logger(__name__)

Payload = Dict[str, Any]

RESULT_CACHE = TTLCache(default_ttl_seconds=SETTINGS.cache_ttl_seconds)


def _bad_input(e: ValidationError) -> Dict[str, Any]:
    errors = [{"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]} for err in e.errors()]
    return Failure.of("BAD_INPUT", "Payload could not be parsed", errors=errors).model_dump()


def _tool(fn: Callable[[Payload], Dict[str, Any]]) -> Callable[[Payload], Dict[str, Any]]:
    """Parse errors become BAD_INPUT, engine errors raised outside a calculator become a Failure."""

    @functools.wraps(fn)
    def wrapper(payload: Optional[Payload]) -> Dict[str, Any]:
        try:
            return fn(dict(payload or {}))
        except ValidationError as e:
            logger.warning("bad payload tool=%s errors=%d", fn.__name__, e.error_count())
            return _bad_input(e)
        except EngineError as e:
            logger.warning("tool failed tool=%s code=%s msg=%s", fn.__name__, e.code, e.message)
            return Failure.of(e.code, e.message, **e.details).model_dump()

    return wrapper


def _mods(p: Payload) -> Optional[PaymentModification]:
    raw = p.get("modification")
    return PaymentModification(**raw) if raw else None


# -------------------------
# Loans
# -------------------------

@_tool
def tool_build_schedule(p: Payload) -> Dict[str, Any]:
    """payload: loan, modification (optional), include_yearly (optional)."""
    loan = LoanTerms(**(p.get("loan") or {}))
    out = build_schedule(loan, _mods(p))
    data = out.model_dump()
    if out.ok and p.get("include_yearly"):
        data["yearly"] = [y.model_dump() for y in summarize_by_year(out.value)]
    return data


@_tool
def tool_early_payoff(p: Payload) -> Dict[str, Any]:
    loan = LoanTerms(**(p.get("loan") or {}))
    return analyze_early_payoff(loan, _mods(p) or PaymentModification()).model_dump()


@_tool
def tool_loan_balance(p: Payload) -> Dict[str, Any]:
    """payload: loan, modification (optional), payment_number."""
    loan = LoanTerms(**(p.get("loan") or {}))
    out = build_schedule(loan, _mods(p))
    if not out.ok:
        return out.model_dump()
    summary = balance_at_payment(out.value, int(p.get("payment_number", 0)))
    return Success[type(summary)](value=summary).model_dump()


# -------------------------
# Tax
# -------------------------

@_tool
def tool_compute_tax(p: Payload) -> Dict[str, Any]:
    """payload: taxable_income_cents plus either brackets or tax_year + filing_status."""
    if p.get("brackets") is not None:
        brackets: List[TaxBracket] = [TaxBracket(**b) for b in p["brackets"]]
    else:
        brackets = get_tax_brackets(int(p.get("tax_year", 2025)), p.get("filing_status", "single"))
    return compute_tax(int(p.get("taxable_income_cents", 0)), brackets).model_dump()


@_tool
def tool_tax_liability(p: Payload) -> Dict[str, Any]:
    return calculate_tax_liability(TaxLiabilityInput(**p)).model_dump()


@_tool
def tool_capital_gains_tax(p: Payload) -> Dict[str, Any]:
    tax = estimate_capital_gains_tax(
        int(p.get("gains_cents", 0)),
        int(p.get("total_income_cents", 0)),
        p.get("filing_status", "single"),
    )
    return Success[int](value=tax).model_dump()


# -------------------------
# Growth, comparisons, goals
# -------------------------

@_tool
def tool_project_growth(p: Payload) -> Dict[str, Any]:
    """payload: initial_cents, assumption, periods."""
    assumption = GrowthAssumption(**(p.get("assumption") or {}))
    return project(int(p.get("initial_cents", 0)), assumption, int(p.get("periods", 0))).model_dump()


@_tool
def tool_mortgage_vs_invest(p: Payload) -> Dict[str, Any]:
    return compare_mortgage_vs_invest(MortgageVsInvestInput(**p)).model_dump()


@_tool
def tool_rent_vs_buy(p: Payload) -> Dict[str, Any]:
    return compare_rent_vs_buy(RentVsBuyInput(**p)).model_dump()


@_tool
def tool_evaluate_goal(p: Payload) -> Dict[str, Any]:
    return evaluate_goal(GoalEvaluationInput(**p)).model_dump()


@_tool
def tool_goal_trajectory(p: Payload) -> Dict[str, Any]:
    """payload: history = [{as_of_date, amount_cents}, ...]."""
    history = [BalanceObservation(**o) for o in (p.get("history") or [])]
    return derive_trajectory(history).model_dump()


# -------------------------
# Portfolio
# -------------------------

_PERIODS = ("month", "quarter", "year")


def _period(p: Payload) -> str:
    period = p.get("period", "month")
    if period not in _PERIODS:
        raise InvalidInputError(f"unknown period {period!r}", details={"valid": list(_PERIODS)})
    return period


@_tool
def tool_aggregate_portfolio(p: Payload) -> Dict[str, Any]:
    """payload: holdings, transactions."""
    return aggregate_portfolio(PortfolioInput(**p)).model_dump()


@_tool
def tool_portfolio_periods(p: Payload) -> Dict[str, Any]:
    """payload: transactions, period (month | quarter | year), dividends_only (optional)."""
    period = _period(p)
    txs = [Transaction(**t) for t in (p.get("transactions") or [])]
    calc = dividends_by_period if p.get("dividends_only") else aggregate_by_period
    return calc(txs, period).model_dump()


@_tool
def tool_portfolio_series(p: Payload) -> Dict[str, Any]:
    """payload: snapshots = [{date, total_value_cents, ...}, ...]."""
    snapshots = [PortfolioSnapshot(**s) for s in (p.get("snapshots") or [])]
    return build_portfolio_time_series(snapshots).model_dump()


# -------------------------
# Scenarios + net worth
# -------------------------

def _scenario(raw: Optional[Payload]):
    """Scenario payloads carry overrides as stored records (string values)."""
    return build_scenario(
        str(raw.get("id", "")),
        str(raw.get("name", "")),
        [RawOverride(**o) for o in (raw.get("overrides") or [])],
        description=raw.get("description"),
        is_baseline=bool(raw.get("is_baseline", False)),
    )


@_tool
def tool_build_scenario(p: Payload) -> Dict[str, Any]:
    return _scenario(p).model_dump()


@_tool
def tool_project_net_worth(p: Payload) -> Dict[str, Any]:
    raw = p.pop("scenario", None)
    scenario = None
    if raw is not None:
        built = _scenario(raw)
        if not built.ok:
            return built.model_dump()
        scenario = built.value
    inp = NetWorthInput(**p, scenario=scenario)
    return project_net_worth(inp).model_dump()


@_tool
def tool_compare_scenarios(p: Payload) -> Dict[str, Any]:
    """payload: input (net worth input without scenario), scenarios = [scenario | None, ...]."""
    inp = NetWorthInput(**(p.get("input") or {}))
    scenarios = []
    for raw in p.get("scenarios") or []:
        if raw is None:
            scenarios.append(None)
            continue
        s = _scenario(raw)
        if not s.ok:
            return s.model_dump()
        scenarios.append(s.value)
    results = compare_scenarios(inp, scenarios)
    return {"ok": all(r.ok for r in results), "results": [r.model_dump() for r in results]}


# -------------------------
# Dispatcher
# -------------------------

TOOLS: Dict[str, Callable[[Optional[Payload]], Dict[str, Any]]] = {
    "amortization": tool_build_schedule,
    "early_payoff": tool_early_payoff,
    "loan_balance": tool_loan_balance,
    "tax": tool_compute_tax,
    "tax_liability": tool_tax_liability,
    "capital_gains_tax": tool_capital_gains_tax,
    "growth": tool_project_growth,
    "mortgage_vs_invest": tool_mortgage_vs_invest,
    "rent_vs_buy": tool_rent_vs_buy,
    "goal": tool_evaluate_goal,
    "goal_trajectory": tool_goal_trajectory,
    "portfolio": tool_aggregate_portfolio,
    "portfolio_periods": tool_portfolio_periods,
    "portfolio_series": tool_portfolio_series,
    "scenario": tool_build_scenario,
    "net_worth": tool_project_net_worth,
    "compare_scenarios": tool_compare_scenarios,
}


def run_calculation(payload: Optional[Payload], use_cache: bool = True, cache: Optional[TTLCache] = None) -> Dict[str, Any]:
    """Dispatch on ``payload["kind"]``; the remaining keys are the tool payload.

    Successful results are cached by kind + payload hash. ``request_id`` is
    used for log context only and never affects the key.
    """
    p = dict(payload or {})
    kind = p.pop("kind", None)
    request_id = p.pop("request_id", None) or uuid.uuid4().hex[:12]
    with request_context(request_id):
        return _dispatch(kind, p, use_cache, cache if cache is not None else RESULT_CACHE)


def _dispatch(kind: Any, p: Payload, use_cache: bool, store: TTLCache) -> Dict[str, Any]:
    tool = TOOLS.get(kind) if isinstance(kind, str) else None
    if tool is None:
        logger.warning("unknown kind=%r", kind)
        return Failure.of(
            "BAD_INPUT_KIND",
            "Missing/invalid payload.kind",
            kind=kind,
            valid=sorted(TOOLS),
        ).model_dump()

    try:
        if use_cache:
            key = payload_key(kind, p)
            result, was_cached = store.get_or_compute(
                key, lambda: tool(copy.deepcopy(p)), cache_if=lambda r: bool(r.get("ok"))
            )
        else:
            result, was_cached = tool(p), False
    except Exception as e:
        logger.exception("calculation failed kind=%s", kind)
        return Failure.of("COMPUTE_FAILED", str(e), kind=kind).model_dump()
    logger.info("calculation kind=%s cached=%s ok=%s", kind, was_cached, result.get("ok"))
    return copy.deepcopy(result)
