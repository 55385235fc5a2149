"""
Calendar helpers for monthly bookkeeping.

Definitions
- ym: integer YYYYMM, e.g. 202501 for Jan 2025
- closing date: a month's date pinned to a closing day, clamped to the
  month's last day (closing day 31 in February -> Feb 28/29)
- period: one of PERIODS, always relative to "today"

Public API:
- ym_from_date(date) -> int
- is_same_month(date, ref) -> bool
- add_months(year, month, n) -> (year, month)
- closing_date(year, month, day) -> date
- period_start(period, today) -> date
- in_period(period, d, today) -> bool
"""

from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import Tuple, Union

__all__ = [
    "PERIODS",
    "ym_from_date",
    "is_same_month",
    "add_months",
    "closing_date",
    "period_start",
    "in_period",
]

PERIODS = (
    "current-month",
    "last-month",
    "last-3-months",
    "last-6-months",
    "year",
)

DateLike = Union[date, datetime]


def ym_from_date(d: DateLike) -> int:
    """2025-01-15 -> 202501."""
    return d.year * 100 + d.month


def is_same_month(d: DateLike, ref: DateLike) -> bool:
    """True when both fall in the same calendar month of the same year."""
    return d.year == ref.year and d.month == ref.month


def add_months(year: int, month: int, n: int) -> Tuple[int, int]:
    """Shift (year, month) by n months; n may be negative."""
    index = year * 12 + (month - 1) + n
    return index // 12, index % 12 + 1


def closing_date(year: int, month: int, day: int) -> date:
    """Date for `day` in the given month, clamped to the month's length."""
    if day < 1 or day > 31:
        raise ValueError("closing day must be 1–31")
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last))


def period_start(period: str, today: date) -> date:
    """First day covered by a rolling period."""
    if period == "current-month":
        return today.replace(day=1)
    if period == "last-month":
        y, m = add_months(today.year, today.month, -1)
        return date(y, m, 1)
    if period == "last-3-months":
        y, m = add_months(today.year, today.month, -2)
        return date(y, m, 1)
    if period == "last-6-months":
        y, m = add_months(today.year, today.month, -5)
        return date(y, m, 1)
    if period == "year":
        return date(today.year, 1, 1)
    raise ValueError(f"unknown period: {period!r}")


def in_period(period: str, d: DateLike, today: date) -> bool:
    """
    Does `d` fall inside `period` as seen from `today`?
    - current-month / last-month: exact calendar month
    - last-N-months: from the first day N-1 months back, no upper bound
    - year: same calendar year
    """
    if isinstance(d, datetime):
        d = d.date()
    if period == "current-month":
        return is_same_month(d, today)
    if period == "last-month":
        return is_same_month(d, period_start(period, today))
    if period == "year":
        return d.year == today.year
    return d >= period_start(period, today)
