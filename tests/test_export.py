"""Tests for planboard/export.py — workout CSV and calendar links."""

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import pytest

from planboard.export import event_quick_add_url, workout_csv, workout_export_filename
from planboard.models import Event, Exercise, Workout


def _workout() -> Workout:
    return Workout(
        id="w1",
        date="2026-02-15T07:00:00",
        name="Leg Day",
        exercises=[
            Exercise(id="e1", name="Squats", sets=5, reps=5, weight=100),
            Exercise(id="e2", name="Lunges", sets=3, reps=12, weight=22.5),
        ],
    )


def test_workout_csv_two_exercises_three_lines():
    lines = workout_csv(_workout()).split("\n")
    assert lines == [
        "Exercise,Sets,Reps,Weight",
        "Squats,5,5,100",
        "Lunges,3,12,22.5",
    ]


def test_workout_csv_quotes_commas():
    w = Workout(name="Mixed", exercises=[Exercise(name="Curl, hammer", sets=3, reps=10, weight=12)])
    assert workout_csv(w).split("\n")[1] == '"Curl, hammer",3,10,12'


def test_workout_csv_empty_is_header_only():
    assert workout_csv(Workout(name="Empty")) == "Exercise,Sets,Reps,Weight"


def test_export_filename():
    assert workout_export_filename(_workout()) == "Leg-Day_2026-02-15.csv"
    assert workout_export_filename(Workout(name="Push  Day")) == "Push-Day_undated.csv"


def test_quick_add_url_naive_times():
    event = Event(title="Dentist", date=datetime(2026, 2, 16, 9, 0), description="Bring card")
    query = parse_qs(urlparse(event_quick_add_url(event)).query)
    assert query["action"] == ["TEMPLATE"]
    assert query["text"] == ["Dentist"]
    assert query["details"] == ["Bring card"]
    assert query["dates"] == ["20260216T090000/20260216T100000"]


def test_quick_add_url_aware_times_in_utc():
    plus_two = timezone(timedelta(hours=2))
    event = Event(
        title="Call",
        date=datetime(2026, 2, 16, 9, 0, tzinfo=plus_two),
        end_time=datetime(2026, 2, 16, 9, 30, tzinfo=plus_two),
    )
    query = parse_qs(urlparse(event_quick_add_url(event)).query)
    assert query["dates"] == ["20260216T070000Z/20260216T073000Z"]


def test_quick_add_url_requires_start():
    with pytest.raises(ValueError):
        event_quick_add_url(Event(title="Someday"))
