"""Calendar bucketing and navigation for Planboard.

Groups events by calendar day for the day, week and month views, steps
the visible range backwards and forwards, and converts between pixel
positions in a 24-hour day column and wall-clock times.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable

from planboard.models import WEEKDAY_INDEX, Event, GridDay, calendar_day


# ── Constants ─────────────────────────────────────────────────

VIEWS = ("day", "week", "month")
MINUTES_PER_DAY = 24 * 60
SLOT_MINUTES = 30
MIN_EVENT_MINUTES = 15


# ── Weeks & months ────────────────────────────────────────────


def start_of_week(day: Any, week_start: str = "sun") -> date:
    d = calendar_day(day)
    first = WEEKDAY_INDEX.get(week_start, 6)
    return d - timedelta(days=(d.weekday() - first) % 7)


def week_days(day: Any, week_start: str = "sun") -> list[date]:
    start = start_of_week(day, week_start)
    return [start + timedelta(days=i) for i in range(7)]


def add_months(d: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length.

    Works for date and datetime alike (Jan 31 + 1 month -> Feb 28/29).
    """
    index = d.year * 12 + (d.month - 1) + months
    year, month0 = divmod(index, 12)
    month = month0 + 1
    last = calendar.monthrange(year, month)[1]
    return d.replace(year=year, month=month, day=min(d.day, last))


def month_grid_days(month_date: Any, week_start: str = "sun", today: Any = None) -> list[GridDay]:
    """Complete weeks covering the month of *month_date*.

    Starts at the week start on/before the 1st and ends at the week end
    on/after the last day; days of adjacent months are flagged outside.
    """
    first = calendar_day(month_date).replace(day=1)
    last = first.replace(day=calendar.monthrange(first.year, first.month)[1])
    start = start_of_week(first, week_start)
    end = start_of_week(last, week_start) + timedelta(days=6)
    today_day = calendar_day(today) if today is not None else None

    grid = []
    current = start
    while current <= end:
        grid.append(GridDay(
            day=current,
            outside=current.month != first.month,
            is_today=current == today_day,
        ))
        current += timedelta(days=1)
    return grid


# ── Bucketing ─────────────────────────────────────────────────


def events_on_day(events: Iterable[Event], day: Any) -> list[Event]:
    """Events starting on *day*, in insertion order."""
    target = calendar_day(day)
    return [e for e in events if e.date is not None and e.date.date() == target]


def events_by_hour(events: Iterable[Event], day: Any) -> dict[int, list[Event]]:
    """Day-grid buckets {hour: events}, each sorted by start minute."""
    buckets: dict[int, list[Event]] = {hour: [] for hour in range(24)}
    for event in sorted(events_on_day(events, day), key=lambda e: minute_offset(e.date)):
        buckets[event.date.hour].append(event)
    return buckets


def events_by_day(events: Iterable[Event], days: Iterable[Any]) -> dict[str, list[Event]]:
    """Bucket events for each visible day of a week or month view."""
    events = list(events)
    return {calendar_day(d).isoformat(): events_on_day(events, d) for d in days}


# ── Time markers ──────────────────────────────────────────────


def minute_offset(ts: datetime | time) -> int:
    """Minutes since midnight, in [0, 1440)."""
    return ts.hour * 60 + ts.minute


def column_fraction(ts: datetime | time) -> float:
    """Vertical position of *ts* as a fraction of a 24-hour column."""
    return minute_offset(ts) / MINUTES_PER_DAY


def is_current_day(day: Any, now: datetime) -> bool:
    return calendar_day(day) == now.date()


def now_marker(day: Any, now: datetime) -> float | None:
    """Column fraction of the current-time line, or None when *day* is not today."""
    if not is_current_day(day, now):
        return None
    return column_fraction(now)


# ── Navigation ────────────────────────────────────────────────


def navigate(view: str, current: date, direction: int) -> date:
    """Step the visible range: ±1 day, ±1 week or ±1 month (clamped)."""
    if view == "day":
        return current + timedelta(days=direction)
    if view == "week":
        return current + timedelta(weeks=direction)
    if view == "month":
        return add_months(current, direction)
    raise ValueError(f"Invalid calendar view: {view!r}")


@dataclass
class CalendarView:
    """Which range the calendar shows and which day is highlighted."""

    view: str = "month"
    current_date: date = field(default_factory=date.today)
    selected: date | None = None
    week_start: str = "sun"

    def __post_init__(self) -> None:
        if self.view not in VIEWS:
            raise ValueError(f"Invalid calendar view: {self.view!r}")

    def previous(self) -> None:
        self.current_date = navigate(self.view, self.current_date, -1)

    def next(self) -> None:
        self.current_date = navigate(self.view, self.current_date, 1)

    def today(self, today: date | None = None) -> None:
        today = today or date.today()
        self.current_date = today
        self.selected = today

    def select(self, day: date) -> None:
        self.selected = day

    def open_day(self, day: date) -> None:
        """Drill down from a week/month cell into the day view."""
        self.view = "day"
        self.current_date = day
        self.selected = day

    def visible_days(self) -> list[date]:
        if self.view == "day":
            return [calendar_day(self.current_date)]
        if self.view == "week":
            return week_days(self.current_date, self.week_start)
        return [g.day for g in month_grid_days(self.current_date, self.week_start)]

    def to_dict(self) -> dict[str, Any]:
        return {
            "view": self.view,
            "currentDate": calendar_day(self.current_date).isoformat(),
            "selected": self.selected.isoformat() if self.selected else None,
            "weekStart": self.week_start,
        }


def jump_to_today(view: str, today: date | None = None, week_start: str = "sun") -> CalendarView:
    """A view of *view* granularity positioned and highlighted on today."""
    cal = CalendarView(view=view, week_start=week_start)
    cal.today(today)
    return cal


# ── Drag to create ────────────────────────────────────────────


def slot_from_position(y: float, column_height: float) -> tuple[int, int]:
    """Map a pixel offset in a day column to an (hour, minute) on the 30-minute grid."""
    if column_height <= 0:
        raise ValueError("column_height must be positive")
    y = min(max(y, 0.0), column_height)
    hours = y / column_height * 24
    hour = int(hours)
    minute = int((hours - hour) * 60 / SLOT_MINUTES + 0.5) * SLOT_MINUTES
    if minute == 60:
        hour += 1
        minute = 0
    return min(hour, 23), minute


def drag_span(day: Any, y_start: float, y_end: float, column_height: float) -> tuple[datetime, datetime]:
    """Provisional event span for a drag between two offsets of one day column."""
    base = calendar_day(day)
    start = datetime.combine(base, time(*slot_from_position(y_start, column_height)))
    end = datetime.combine(base, time(*slot_from_position(y_end, column_height)))
    if end < start:
        start, end = end, start
    if end == start:
        end = start + timedelta(minutes=SLOT_MINUTES)
    return start, end


# ── Time edits ────────────────────────────────────────────────


def _check_timezone_style(event: Event, value: datetime) -> None:
    if event.date is not None and (event.date.tzinfo is None) != (value.tzinfo is None):
        raise ValueError("new time must share the event's timezone style")


def set_event_start(event: Event, new_start: datetime) -> Event:
    """Move the start; an end at/before the new start is pushed to start+15min.

    Raises ValueError when *new_start* is aware and the event is naive, or
    the other way round.
    """
    _check_timezone_style(event, new_start)
    end = event.end_time
    if end is not None and end <= new_start:
        end = new_start + timedelta(minutes=MIN_EVENT_MINUTES)
    return replace(event, date=new_start, end_time=end)


def set_event_end(event: Event, new_end: datetime) -> tuple[Event, bool]:
    """Move the end. Returns (event, accepted); ends at/before the start are refused."""
    _check_timezone_style(event, new_end)
    if event.date is not None and new_end <= event.date:
        return event, False
    return replace(event, end_time=new_end), True
