"""Typed dataclasses for the Planboard data model.

All models use from_dict/to_dict for JSON serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date as date_type, datetime, timedelta
from typing import Any


PRIORITIES = ("low", "medium", "high")
FAMILY_KEYS = ("tasks", "habits", "workouts", "events")
DEFAULT_HABIT_COLOR = "#3B82F6"
DEFAULT_EVENT_MINUTES = 60


# ── Primitives ────────────────────────────────────────────────


def parse_datetime(value: Any) -> datetime | None:
    """Parse an ISO-8601 string (trailing 'Z' allowed), date or datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date_type):
        return datetime(value.year, value.month, value.day)
    s = str(value).strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s)


def calendar_day(value: Any) -> date_type:
    """Truncate a timestamp (or day string) to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date_type):
        return value
    parsed = parse_datetime(value)
    if parsed is None:
        raise ValueError(f"Invalid calendar day: {value!r}")
    return parsed.date()


def day_str(value: Any) -> str:
    return calendar_day(value).isoformat()


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _timestamp_str(value: Any) -> str:
    if isinstance(value, date_type):
        return value.isoformat()
    return str(value or "")


def _int(value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    return int(float(value))


# ── Tasks ─────────────────────────────────────────────────────


@dataclass
class Task:
    id: str = ""
    title: str = ""
    completed: bool = False
    priority: str = "medium"  # low, medium, high
    date: str = ""  # ISO timestamp

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Task:
        return cls(
            id=str(d.get("id", "")),
            title=str(d.get("title", "")),
            completed=bool(d.get("completed", False)),
            priority=str(d.get("priority", "medium")).lower(),
            date=_timestamp_str(d.get("date")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "priority": self.priority,
            "date": self.date,
        }


# ── Habits ────────────────────────────────────────────────────


@dataclass
class Habit:
    id: str = ""
    name: str = ""
    streak: int = 0
    target: int = 1
    completed_days: list[str] = field(default_factory=list)
    color: str = DEFAULT_HABIT_COLOR

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Habit:
        days: list[str] = []
        for day in d.get("completedDays") or []:
            try:
                day = day_str(day)
            except (TypeError, ValueError):
                continue
            if day not in days:
                days.append(day)
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", "")),
            streak=int(d.get("streak", 0) or 0),
            target=_int(d.get("target"), 1),
            completed_days=days,
            color=str(d.get("color", DEFAULT_HABIT_COLOR) or DEFAULT_HABIT_COLOR),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "streak": self.streak,
            "target": self.target,
            "completedDays": list(self.completed_days),
            "color": self.color,
        }


# ── Workouts ──────────────────────────────────────────────────


@dataclass
class Exercise:
    id: str = ""
    name: str = ""
    sets: int = 3
    reps: int = 10
    weight: float = 0.0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Exercise:
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", "")),
            sets=_int(d.get("sets"), 3),
            reps=_int(d.get("reps"), 10),
            weight=float(d.get("weight", 0) or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "sets": self.sets,
            "reps": self.reps,
            "weight": self.weight,
        }


@dataclass
class Workout:
    id: str = ""
    date: str = ""  # ISO timestamp
    name: str = ""
    exercises: list[Exercise] = field(default_factory=list)
    completed: bool = False

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Workout:
        exercises = [Exercise.from_dict(e) for e in (d.get("exercises") or []) if isinstance(e, dict)]
        return cls(
            id=str(d.get("id", "")),
            date=_timestamp_str(d.get("date")),
            name=str(d.get("name", "")),
            exercises=exercises,
            completed=bool(d.get("completed", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "name": self.name,
            "exercises": [e.to_dict() for e in self.exercises],
            "completed": self.completed,
        }


# ── Events ────────────────────────────────────────────────────


@dataclass
class Event:
    id: str = ""
    title: str = ""
    date: datetime | None = None  # start
    description: str = ""
    end_time: datetime | None = None
    color: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Event:
        return cls(
            id=str(d.get("id", "")),
            title=str(d.get("title", "")),
            date=parse_datetime(d.get("date")),
            description=str(d.get("description", "") or ""),
            end_time=parse_datetime(d.get("endTime")),
            color=str(d.get("color", "") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "date": _iso(self.date),
            "description": self.description,
        }
        if self.end_time is not None:
            d["endTime"] = _iso(self.end_time)
        if self.color:
            d["color"] = self.color
        return d

    def effective_end(self) -> datetime | None:
        """End time, defaulting to one hour after the start."""
        if self.end_time is not None:
            return self.end_time
        if self.date is None:
            return None
        return self.date + timedelta(minutes=DEFAULT_EVENT_MINUTES)

    def duration_minutes(self) -> int:
        end = self.effective_end()
        if self.date is None or end is None:
            return 0
        return max(0, int((end - self.date).total_seconds() // 60))


# ── User document ─────────────────────────────────────────────


@dataclass
class UserDocument:
    """The per-user persisted record: four entity families plus profile fields."""

    tasks: list[Task] = field(default_factory=list)
    habits: list[Habit] = field(default_factory=list)
    workouts: list[Workout] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)
    updated_at: str = ""
    extra: dict[str, Any] = field(default_factory=dict)  # name, email, createdAt, ...

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> UserDocument:
        if not d or not isinstance(d, dict):
            return cls()
        extra = {k: v for k, v in d.items() if k not in FAMILY_KEYS and k != "updatedAt"}
        return cls(
            tasks=[Task.from_dict(t) for t in (d.get("tasks") or [])],
            habits=[Habit.from_dict(h) for h in (d.get("habits") or [])],
            workouts=[Workout.from_dict(w) for w in (d.get("workouts") or [])],
            events=[Event.from_dict(e) for e in (d.get("events") or [])],
            updated_at=str(d.get("updatedAt", "") or ""),
            extra=extra,
        )

    @classmethod
    def empty(cls, updated_at: str = "") -> UserDocument:
        return cls(updated_at=updated_at)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = dict(self.extra)
        d.update(
            {
                "tasks": [t.to_dict() for t in self.tasks],
                "habits": [h.to_dict() for h in self.habits],
                "workouts": [w.to_dict() for w in self.workouts],
                "events": [e.to_dict() for e in self.events],
                "updatedAt": self.updated_at,
            }
        )
        return d


# ── Settings ──────────────────────────────────────────────────


WEEKDAY_INDEX = {"mon": 0, "tue": 1, "wed": 2, "thu": 3, "fri": 4, "sat": 5, "sun": 6}


@dataclass
class Settings:
    timezone: str = "UTC"
    week_start: str = "sun"
    sync_debounce_seconds: float = 1.0
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        week_start = str(d.get("week_start", "sun")).strip().lower()[:3]
        if week_start not in WEEKDAY_INDEX:
            week_start = "sun"
        return cls(
            timezone=str(d.get("timezone", "UTC")),
            week_start=week_start,
            sync_debounce_seconds=max(0.0, float(d.get("sync_debounce_seconds", 1.0))),
            log_level=str(d.get("log_level", "INFO")).upper(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timezone": self.timezone,
            "week_start": self.week_start,
            "sync_debounce_seconds": self.sync_debounce_seconds,
            "log_level": self.log_level,
        }


# ── Calendar ──────────────────────────────────────────────────


@dataclass
class GridDay:
    day: date_type
    outside: bool = False
    is_today: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"day": self.day.isoformat(), "outside": self.outside, "isToday": self.is_today}


# ── Analytics ─────────────────────────────────────────────────


@dataclass
class AnalyticsSummary:
    total_tasks: int = 0
    completed_tasks: int = 0
    task_completion_rate: int = 0  # percent
    priority_breakdown: dict[str, int] = field(default_factory=dict)
    habit_streaks: list[dict[str, Any]] = field(default_factory=list)
    total_workouts: int = 0
    completed_workouts: int = 0
    workout_completion_rate: int = 0  # percent
    recent_workouts: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalTasks": self.total_tasks,
            "completedTasks": self.completed_tasks,
            "taskCompletionRate": self.task_completion_rate,
            "priorityBreakdown": self.priority_breakdown,
            "habitStreaks": self.habit_streaks,
            "totalWorkouts": self.total_workouts,
            "completedWorkouts": self.completed_workouts,
            "workoutCompletionRate": self.workout_completion_rate,
            "recentWorkouts": self.recent_workouts,
        }
