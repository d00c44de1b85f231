"""Habit streak computation for Planboard.

Streaks are always derived from a habit's completed days; nothing here
keeps incremental state between calls.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta
from typing import Any, Iterable

from planboard.models import Habit, calendar_day, day_str


def compute_streak(completed_days: Iterable[Any], today: Any) -> int:
    """Count consecutive completed days ending at and including today.

    Returns 0 when today itself is not completed. Entries may be dates,
    datetimes or ISO strings; only the calendar day is compared.
    """
    days = {calendar_day(d) for d in completed_days}
    current = calendar_day(today)
    streak = 0
    while current in days:
        streak += 1
        current -= timedelta(days=1)
    return streak


def toggle_day(habit: Habit, day: Any, today: Any) -> Habit:
    """Flip completion for *day*, returning a habit with a freshly computed streak."""
    key = day_str(day)
    if key in habit.completed_days:
        days = [d for d in habit.completed_days if d != key]
    else:
        days = [*habit.completed_days, key]
    return replace(habit, completed_days=days, streak=compute_streak(days, today))


def refresh_streaks(habits: list[Habit], today: Any) -> list[Habit]:
    """Recompute every streak against *today* (stored values go stale overnight)."""
    return [replace(h, streak=compute_streak(h.completed_days, today)) for h in habits]


def week_window(today: Any, days: int = 7) -> list[str]:
    """The last *days* calendar days ending today, oldest first."""
    end = calendar_day(today)
    return [(end - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]
