"""Workout CSV export and calendar quick-add links."""

from __future__ import annotations

import csv
import io
import re
from datetime import datetime, timezone
from urllib.parse import urlencode

from planboard.models import Event, Workout, day_str


CSV_HEADER = ["Exercise", "Sets", "Reps", "Weight"]
QUICK_ADD_URL = "https://calendar.google.com/calendar/render"


def _number(value: float) -> str:
    value = float(value)
    return str(int(value)) if value.is_integer() else str(value)


def workout_csv(workout: Workout) -> str:
    """Header row plus one row per exercise, in workout order."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for exercise in workout.exercises:
        writer.writerow([exercise.name, exercise.sets, exercise.reps, _number(exercise.weight)])
    return buf.getvalue().rstrip("\n")


def workout_export_filename(workout: Workout) -> str:
    """'Leg Day' on 2026-10-18 -> 'Leg-Day_2026-10-18.csv'."""
    name = re.sub(r"\s+", "-", workout.name.strip()) or "workout"
    try:
        day = day_str(workout.date)
    except ValueError:
        day = "undated"
    return f"{name}_{day}.csv"


def _calendar_stamp(value: datetime) -> str:
    # Aware times go out as UTC; naive ones are left for the calendar to read as local.
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return value.strftime("%Y%m%dT%H%M%S")


def event_quick_add_url(event: Event) -> str:
    """Google Calendar template link for one event (end defaults to start + 1h)."""
    if event.date is None:
        raise ValueError("event has no start time")
    end = event.effective_end()
    params = {
        "action": "TEMPLATE",
        "text": event.title,
        "details": event.description,
        "dates": f"{_calendar_stamp(event.date)}/{_calendar_stamp(end)}",
    }
    return f"{QUICK_ADD_URL}?{urlencode(params)}"
