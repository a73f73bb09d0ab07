"""
Daily and monthly aggregates derived from a snapshot of water entries.

Everything here is a pure function of its arguments: callers pass the
entries (any iterable of ``WaterEntry``) and the goal in effect, nothing is
read from the store.
"""

from __future__ import annotations

import calendar
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .models import DailyStats, MonthlyStats, WaterEntry


def percentage_of_goal(total_ml: int, goal_ml: int) -> float:
    if goal_ml <= 0:
        return 0.0
    return total_ml / goal_ml * 100.0


def _make_daily(day: date, amounts: Sequence[int], goal_ml: int) -> DailyStats:
    total = sum(amounts)
    return DailyStats(
        date=day,
        total_ml=total,
        goal_ml=goal_ml,
        entries_count=len(amounts),
        percentage=percentage_of_goal(total, goal_ml),
    )


def daily_stats(entries: Iterable[WaterEntry], day: date, goal_ml: int) -> DailyStats:
    amounts = [entry.amount_ml for entry in entries if entry.date == day]
    return _make_daily(day, amounts, goal_ml)


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def compute_streaks(days: Sequence[DailyStats]) -> Tuple[int, int]:
    """
    Return ``(current_streak, best_streak)`` for days sorted by date.

    Only days that appear in ``days`` can count; a missing calendar day
    breaks a run the same way a day below goal does. The current streak is
    anchored at the most recent day with data.
    """
    current = 0
    for index in range(len(days) - 1, -1, -1):
        day = days[index]
        if not day.goal_met:
            break
        if index < len(days) - 1 and days[index + 1].date - day.date != timedelta(days=1):
            break
        current += 1

    best = 0
    run = 0
    previous: Optional[DailyStats] = None
    for day in days:
        if not day.goal_met:
            run = 0
        elif previous is not None and previous.goal_met and day.date - previous.date == timedelta(days=1):
            run += 1
        else:
            run = 1
        best = max(best, run)
        previous = day

    return current, best


def monthly_stats(entries: Iterable[WaterEntry], year: int, month: int, goal_ml: int) -> MonthlyStats:
    start, end = month_bounds(year, month)

    amounts_by_day: Dict[date, List[int]] = defaultdict(list)
    for entry in entries:
        if start <= entry.date <= end:
            amounts_by_day[entry.date].append(entry.amount_ml)

    days = tuple(_make_daily(day, amounts_by_day[day], goal_ml) for day in sorted(amounts_by_day))
    total = sum(day.total_ml for day in days)
    average = total / len(days) if days else 0.0
    current_streak, best_streak = compute_streaks(days)

    return MonthlyStats(
        month=calendar.month_name[month],
        year=year,
        days=days,
        total_ml=total,
        average_ml=average,
        days_goal_met=sum(1 for day in days if day.goal_met),
        current_streak=current_streak,
        best_streak=best_streak,
    )


def yearly_overview(entries: Iterable[WaterEntry], year: int, goal_ml: int) -> List[MonthlyStats]:
    snapshot = list(entries)
    return [monthly_stats(snapshot, year, month, goal_ml) for month in range(1, 13)]
