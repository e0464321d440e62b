from datetime import date

from finengine.utils.dates import add_months, add_years, months_between


def test_add_months_clamps_day():
    assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2025, 11, 15), 3) == date(2026, 2, 15)


def test_add_years_leap_day():
    assert add_years(date(2024, 2, 29), 1) == date(2025, 2, 28)


def test_months_between():
    assert months_between(date(2025, 1, 1), date(2027, 1, 1)) == 24
    assert months_between(date(2025, 1, 15), date(2025, 2, 14)) == 0
    assert months_between(date(2025, 3, 1), date(2025, 1, 1)) == -2
