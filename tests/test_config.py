from decimal import Decimal

from finengine.core.config import load_settings


def test_file_values_and_env_override(tmp_path, monkeypatch):
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        "app:\n  log_level: debug\n"
        "engine:\n  max_horizon_years: 25\n  cache_ttl_seconds: 10\n"
        "rent_vs_buy:\n  selling_cost_percent: 5.5\n",
        encoding="utf-8",
    )
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("CACHE_TTL_SECONDS", raising=False)
    monkeypatch.setenv("MAX_HORIZON_YEARS", "20")

    s = load_settings(str(cfg))
    assert s.log_level == "DEBUG"
    assert s.max_horizon_years == 20
    assert s.cache_ttl_seconds == 10
    assert s.rent_vs_buy_defaults["selling_cost_percent"] == Decimal("5.5")
    assert s.rent_vs_buy_defaults["inflation_rate_percent"] == Decimal("2.5")


def test_blank_env_falls_back_to_file(tmp_path, monkeypatch):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("engine:\n  goal_search_cap_months: 120\n", encoding="utf-8")
    monkeypatch.setenv("GOAL_SEARCH_CAP_MONTHS", "  ")
    assert load_settings(str(cfg)).goal_search_cap_months == 120


def test_missing_file_uses_defaults(tmp_path, monkeypatch):
    for key in ("MIN_HORIZON_YEARS", "MAX_HORIZON_YEARS", "SCHEDULE_SAFETY_FACTOR"):
        monkeypatch.delenv(key, raising=False)
    s = load_settings(str(tmp_path / "nope.yaml"))
    assert (s.min_horizon_years, s.max_horizon_years) == (1, 30)
    assert s.schedule_safety_factor == 2
