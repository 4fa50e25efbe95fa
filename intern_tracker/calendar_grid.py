"""Month grid helpers for the planning calendar."""

from __future__ import annotations

import calendar
from datetime import date
from typing import Iterable, List, Optional

from .models import PlanEntry

MONTH_NAMES = (
    "Ocak",
    "Şubat",
    "Mart",
    "Nisan",
    "Mayıs",
    "Haziran",
    "Temmuz",
    "Ağustos",
    "Eylül",
    "Ekim",
    "Kasım",
    "Aralık",
)
WEEKDAY_NAMES = ("Pzt", "Sal", "Çar", "Per", "Cum", "Cmt", "Paz")


def month_days(month: date) -> List[Optional[date]]:
    """Days of ``month`` preceded by ``None`` padding so weeks start on Monday."""

    first = month.replace(day=1)
    _, last_day = calendar.monthrange(first.year, first.month)
    days: List[Optional[date]] = [None] * first.weekday()
    days.extend(first.replace(day=day) for day in range(1, last_day + 1))
    return days


def month_bounds(month: date) -> tuple[date, date]:
    first = month.replace(day=1)
    _, last_day = calendar.monthrange(first.year, first.month)
    return first, first.replace(day=last_day)


def shift_month(month: date, step: int) -> date:
    index = month.year * 12 + (month.month - 1) + step
    return date(index // 12, index % 12 + 1, 1)


def month_title(month: date) -> str:
    return f"{MONTH_NAMES[month.month - 1]} {month.year}"


def plans_on(plans: Iterable[PlanEntry], day: date) -> List[PlanEntry]:
    return [plan for plan in plans if plan.date == day]


__all__ = ["MONTH_NAMES", "WEEKDAY_NAMES", "month_bounds", "month_days", "month_title", "plans_on", "shift_month"]
