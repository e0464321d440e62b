"""What-if overrides for projection entities.

Callers store overrides as ``(entity_id, target_type, field_name, value)``
with the value as a string. They are parsed once, into typed
AssetOverride / LiabilityOverride / CashFlowOverride records, when a
scenario is built; applying a scenario never re-parses strings.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar, Union

from finengine.core.errors import InvalidInputError
from finengine.core.schemas import ValidationReport
from finengine.utils.logging import get_logger
from finengine.utils.outcomes import run_guarded
from finengine.utils.projection_models import (
    FREQUENCY_MULTIPLIERS,
    AssetOverride,
    CashFlowOverride,
    LiabilityOverride,
    ProjectionAsset,
    ProjectionCashFlowItem,
    ProjectionLiability,
    RawOverride,
    Scenario,
)

logger = get_logger(__name__)

E = TypeVar("E", ProjectionAsset, ProjectionLiability, ProjectionCashFlowItem)
Override = Union[AssetOverride, LiabilityOverride, CashFlowOverride]


def _int(raw: Optional[str]) -> int:
    if raw is None:
        raise ValueError("value is required")
    return int(raw.strip())


def _optional_int(raw: Optional[str]) -> Optional[int]:
    return None if raw is None or raw.strip() == "" else _int(raw)


def _decimal(raw: Optional[str]) -> Decimal:
    if raw is None:
        raise ValueError("value is required")
    try:
        return Decimal(raw.strip())
    except InvalidOperation:
        raise ValueError(f"not a number: {raw!r}") from None


def _optional_decimal(raw: Optional[str]) -> Optional[Decimal]:
    return None if raw is None or raw.strip() == "" else _decimal(raw)


def _optional_date(raw: Optional[str]) -> Optional[date]:
    return None if raw is None or raw.strip() == "" else date.fromisoformat(raw.strip())


def _text(raw: Optional[str]) -> str:
    return raw or ""


def _choice(*allowed: str) -> Callable[[Optional[str]], str]:
    def parse(raw: Optional[str]) -> str:
        v = (raw or "").strip()
        if v not in allowed:
            raise ValueError(f"must be one of {', '.join(allowed)}")
        return v

    return parse


_PARSERS: Dict[str, Dict[str, Callable[[Optional[str]], Any]]] = {
    "asset": {
        "annual_growth_rate_percent": _decimal,
        "current_value_cents": _int,
        "name": _text,
    },
    "liability": {
        "current_balance_cents": _int,
        "interest_rate_percent": _decimal,
        "minimum_payment_cents": _int,
        "name": _text,
        "term_months": _optional_int,
    },
    "cash_flow_item": {
        "amount_cents": _int,
        "annual_growth_rate_percent": _optional_decimal,
        "end_date": _optional_date,
        "frequency": _choice(*FREQUENCY_MULTIPLIERS),
        "name": _text,
        "start_date": _optional_date,
        "type": _choice("income", "expense"),
    },
}

_VARIANTS = {
    "asset": AssetOverride,
    "liability": LiabilityOverride,
    "cash_flow_item": CashFlowOverride,
}

_TARGET_OF = {
    ProjectionAsset: "asset",
    ProjectionLiability: "liability",
    ProjectionCashFlowItem: "cash_flow_item",
}


def resolve_override(raw: RawOverride) -> Override:
    """Parse one stored override into its typed variant; InvalidInputError on bad input."""
    if not raw.entity_id:
        raise InvalidInputError("entity_id must be non-empty")
    parsers = _PARSERS.get(raw.target_type)
    if parsers is None:
        raise InvalidInputError(
            f"unknown target type {raw.target_type!r}", details={"valid": sorted(_PARSERS)}
        )
    parse = parsers.get(raw.field_name)
    if parse is None:
        raise InvalidInputError(
            f"invalid field {raw.field_name!r} for {raw.target_type}", details={"valid": sorted(parsers)}
        )
    try:
        value = parse(raw.value)
    except ValueError as e:
        raise InvalidInputError(f"{raw.field_name}: {e}") from e
    return _VARIANTS[raw.target_type](entity_id=raw.entity_id, field_name=raw.field_name, value=value)


def _resolve_all(raws: Sequence[RawOverride]) -> Tuple[List[Override], ValidationReport]:
    report = ValidationReport(ok=True)
    out: List[Override] = []
    for i, raw in enumerate(raws):
        try:
            out.append(resolve_override(raw))
        except InvalidInputError as e:
            report.add_error(e.message, location=f"overrides[{i}]")
    return out, report.finalize()


def build_scenario(
    scenario_id: str,
    name: str,
    raws: Sequence[RawOverride],
    *,
    description: Optional[str] = None,
    is_baseline: bool = False,
):
    """Success[Scenario] | Failure listing every override that failed to resolve."""
    overrides, report = _resolve_all(raws)
    if not scenario_id:
        report.add_error("must be non-empty", location="id")
    if not name:
        report.add_error("must be non-empty", location="name")
    report.finalize()
    return run_guarded(
        "scenario",
        report,
        lambda: Scenario(
            id=scenario_id,
            name=name,
            description=description,
            is_baseline=is_baseline,
            overrides=overrides,
        ),
        logger,
    )


def apply_overrides(entity: E, scenario: Optional[Scenario]) -> Tuple[E, List[str]]:
    """Return a copy of ``entity`` with its overrides applied, and the fields that changed.

    Overrides apply in field-name order; for a repeated field the later one wins.
    """
    if scenario is None:
        return entity, []
    target = _TARGET_OF[type(entity)]
    mine = [o for o in scenario.overrides if o.entity_id == entity.id and o.target_type == target]
    if not mine:
        return entity, []

    update: Dict[str, Any] = {}
    for o in sorted(mine, key=lambda o: o.field_name):
        update[o.field_name] = o.value
    return entity.model_copy(update=update), sorted(update)


def apply_scenario(entities: Sequence[E], scenario: Optional[Scenario]) -> List[E]:
    return [apply_overrides(e, scenario)[0] for e in entities]


def merge_scenarios(base: Scenario, overlay: Scenario) -> Scenario:
    """Overlay wins per (target, entity, field); the merged scenario is never a baseline."""
    merged: Dict[Tuple[str, str, str], Override] = {}
    for o in list(base.overrides) + list(overlay.overrides):
        merged[(o.target_type, o.entity_id, o.field_name)] = o
    return Scenario(
        id=overlay.id,
        name=overlay.name,
        description=overlay.description if overlay.description is not None else base.description,
        is_baseline=False,
        overrides=list(merged.values()),
    )


def overridden_entity_ids(scenario: Scenario) -> List[str]:
    return sorted({o.entity_id for o in scenario.overrides})
