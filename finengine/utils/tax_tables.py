from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import yaml

from finengine.core.config import SETTINGS
from finengine.core.errors import InvalidInputError
from finengine.utils.tax_models import FilingStatus, TaxBracket

_DEFAULT_TABLES = Path(__file__).resolve().parent.parent / "data" / "tax_tables.yaml"


def _tables_path() -> Path:
    return Path(SETTINGS.tax_tables_path) if SETTINGS.tax_tables_path else _DEFAULT_TABLES


@lru_cache(maxsize=4)
def load_tax_tables(path: str = "") -> Dict[str, Any]:
    p = Path(path) if path else _tables_path()
    with open(p, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not data.get("years"):
        raise InvalidInputError(f"No tax years configured in {p}", details={"path": str(p)})
    return data


def _to_brackets(rows: List[Dict[str, Any]]) -> List[TaxBracket]:
    return [
        TaxBracket(min_cents=int(r["min"]), max_cents=r.get("max"), rate_percent=str(r["rate"]))
        for r in rows
    ]


def resolve_year(tax_year: int, tables: Dict[str, Any]) -> int:
    """Latest configured year at or before ``tax_year`` (earliest configured year if none)."""
    years = sorted(int(y) for y in tables["years"])
    eligible = [y for y in years if y <= tax_year]
    return eligible[-1] if eligible else years[0]


def _year_section(tax_year: int, tables: Dict[str, Any]) -> Dict[str, Any]:
    return tables["years"][resolve_year(tax_year, tables)]


def get_tax_brackets(tax_year: int, filing_status: FilingStatus) -> List[TaxBracket]:
    tables = load_tax_tables()
    rows = _year_section(tax_year, tables)["brackets"].get(filing_status)
    if rows is None:
        raise InvalidInputError(f"No brackets for filing status {filing_status!r}", details={"filing_status": filing_status})
    return _to_brackets(rows)


def get_standard_deduction(tax_year: int, filing_status: FilingStatus) -> int:
    tables = load_tax_tables()
    value = _year_section(tax_year, tables)["standard_deductions"].get(filing_status)
    if value is None:
        raise InvalidInputError(
            f"No standard deduction for filing status {filing_status!r}", details={"filing_status": filing_status}
        )
    return int(value)


def get_capital_gains_brackets(filing_status: FilingStatus) -> List[TaxBracket]:
    rows = load_tax_tables().get("capital_gains_long_term", {}).get(filing_status)
    if rows is None:
        raise InvalidInputError(
            f"No capital gains brackets for filing status {filing_status!r}", details={"filing_status": filing_status}
        )
    return _to_brackets(rows)
