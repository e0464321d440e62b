from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict

import yaml
from dotenv import load_dotenv


DEFAULT_RENT_VS_BUY: Dict[str, str] = {
    "property_appreciation_rate_percent": "3",
    "maintenance_rate_percent": "1",
    "property_tax_rate_percent": "1.2",
    "marginal_tax_rate_percent": "25",
    "investment_return_rate_percent": "7",
    "rent_increase_rate_percent": "3",
    "inflation_rate_percent": "2.5",
    "selling_cost_percent": "6",
}


@dataclass(frozen=True)
class Settings:
    env: str
    log_level: str

    min_horizon_years: int
    max_horizon_years: int
    schedule_safety_factor: int
    goal_search_cap_months: int
    recommendation_threshold_cents: int
    break_even_max_return_percent: Decimal
    break_even_iterations: int
    cache_ttl_seconds: int

    tax_tables_path: str

    rent_vs_buy_defaults: Dict[str, Decimal] = field(default_factory=dict)


def _deep_get(d: Dict[str, Any], path: str, default=None):
    cur = d
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


def load_settings(config_path: str = "config.yaml") -> Settings:
    """
    Loads config.yaml + overrides from .env/environment variables.
    """
    load_dotenv()  # loads .env into env vars

    cfg: Dict[str, Any] = {}
    if os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}

    # Empty env vars count as "not set" so a blank MAX_HORIZON_YEARS= in .env
    # does not wipe the file value.
    def _env_or_cfg(key: str, cfg_path: str, default):
        v = os.getenv(key)
        if v is None:
            return _deep_get(cfg, cfg_path, default)
        v = v.strip()
        return _deep_get(cfg, cfg_path, default) if v == "" else v

    env = _env_or_cfg("APP_ENV", "app.env", "dev")
    log_level = _env_or_cfg("LOG_LEVEL", "app.log_level", "INFO")

    min_horizon_years = int(_env_or_cfg("MIN_HORIZON_YEARS", "engine.min_horizon_years", 1))
    max_horizon_years = int(_env_or_cfg("MAX_HORIZON_YEARS", "engine.max_horizon_years", 30))
    schedule_safety_factor = int(_env_or_cfg("SCHEDULE_SAFETY_FACTOR", "engine.schedule_safety_factor", 2))
    goal_search_cap_months = int(_env_or_cfg("GOAL_SEARCH_CAP_MONTHS", "engine.goal_search_cap_months", 600))
    recommendation_threshold_cents = int(
        _env_or_cfg("RECOMMENDATION_THRESHOLD_CENTS", "engine.recommendation_threshold_cents", 10000)
    )
    break_even_max_return_percent = Decimal(
        str(_env_or_cfg("BREAK_EVEN_MAX_RETURN_PERCENT", "engine.break_even_max_return_percent", 30))
    )
    break_even_iterations = int(_env_or_cfg("BREAK_EVEN_ITERATIONS", "engine.break_even_iterations", 50))
    cache_ttl_seconds = int(_env_or_cfg("CACHE_TTL_SECONDS", "engine.cache_ttl_seconds", 1800))

    tax_tables_path = str(_env_or_cfg("TAX_TABLES_PATH", "tax.tables_path", "") or "")

    rvb_cfg = _deep_get(cfg, "rent_vs_buy", {}) or {}
    rent_vs_buy_defaults = {
        k: Decimal(str(rvb_cfg.get(k, v))) for k, v in DEFAULT_RENT_VS_BUY.items()
    }

    if isinstance(log_level, str):
        log_level = log_level.strip().upper()

    return Settings(
        env=env,
        log_level=log_level,
        min_horizon_years=min_horizon_years,
        max_horizon_years=max_horizon_years,
        schedule_safety_factor=schedule_safety_factor,
        goal_search_cap_months=goal_search_cap_months,
        recommendation_threshold_cents=recommendation_threshold_cents,
        break_even_max_return_percent=break_even_max_return_percent,
        break_even_iterations=break_even_iterations,
        cache_ttl_seconds=cache_ttl_seconds,
        tax_tables_path=tax_tables_path,
        rent_vs_buy_defaults=rent_vs_buy_defaults,
    )


# Optional convenience singleton
SETTINGS = load_settings()
