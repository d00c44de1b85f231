"""In-memory application state for one user session.

AppStore owns the task, habit, workout and event collections. Every
mutation is applied locally first; listeners are notified and, when a
sync adapter is attached, the new state is handed to it for a remote
write. Remote failures never roll local state back.
"""

from __future__ import annotations

import functools
import logging
import math
import re
import threading
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable

from planboard.exercises import find_exercise
from planboard.models import (
    FAMILY_KEYS,
    PRIORITIES,
    Event,
    Exercise,
    Habit,
    Task,
    UserDocument,
    Workout,
    calendar_day,
    parse_datetime,
)
from planboard.scheduler import set_event_end, set_event_start
from planboard.streaks import compute_streak, toggle_day

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]


# ── Validation ────────────────────────────────────────────────


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return int(number) if number.is_integer() else None


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _blank(value: Any) -> bool:
    return not str(value or "").strip()


def validate_task(task: dict[str, Any]) -> list[str]:
    """Validate task fields (camelCase) and return list of errors (empty if valid)."""
    errors = []
    if _blank(task.get("title")):
        errors.append("title must not be empty")
    priority = str(task.get("priority", "medium")).lower()
    if priority not in PRIORITIES:
        errors.append(f"Invalid priority: {task.get('priority')}")
    return errors


def validate_habit(habit: dict[str, Any]) -> list[str]:
    errors = []
    if _blank(habit.get("name")):
        errors.append("name must not be empty")
    target = _as_int(habit.get("target", 1))
    if target is None or target < 1:
        errors.append("target must be an integer >= 1")
    days = habit.get("completedDays") or []
    if not isinstance(days, (list, tuple, set)):
        errors.append("completedDays must be a list of days")
    else:
        for day in days:
            try:
                calendar_day(day)
            except (TypeError, ValueError):
                errors.append(f"Invalid completed day: {day!r}")
    return errors


def validate_exercise(exercise: dict[str, Any]) -> list[str]:
    errors = []
    if _blank(exercise.get("name")):
        errors.append("name must not be empty")
    for key in ("sets", "reps"):
        value = _as_int(exercise.get(key, 1))
        if value is None or value < 1:
            errors.append(f"{key} must be an integer >= 1")
    weight = _as_number(exercise.get("weight", 0))
    if weight is None or not math.isfinite(weight) or weight < 0:
        errors.append("weight must be a finite number >= 0")
    return errors


def validate_workout(workout: dict[str, Any]) -> list[str]:
    errors = []
    if _blank(workout.get("name")):
        errors.append("name must not be empty")
    exercises = workout.get("exercises") or []
    if not exercises:
        errors.append("a workout needs at least one exercise")
    for i, exercise in enumerate(exercises, start=1):
        if not isinstance(exercise, dict):
            errors.append(f"exercise {i}: must be an object")
            continue
        errors.extend(f"exercise {i}: {e}" for e in validate_exercise(wire_keys(exercise)))
    return errors


def validate_event(event: dict[str, Any]) -> list[str]:
    errors = []
    if _blank(event.get("title")):
        errors.append("title must not be empty")
    try:
        start = parse_datetime(event.get("date"))
        end = parse_datetime(event.get("endTime"))
    except (TypeError, ValueError) as exc:
        return errors + [f"Invalid timestamp: {exc}"]
    if start is None:
        errors.append("date is required")
    elif end is not None:
        try:
            if end <= start:
                errors.append("endTime must be after date")
        except TypeError:
            errors.append("date and endTime must share a timezone style")
    return errors


_SNAKE = re.compile(r"_([a-z])")


def wire_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Accept snake_case or camelCase keys; return camelCase (the JSON form)."""
    return {_SNAKE.sub(lambda m: m.group(1).upper(), k): v for k, v in (data or {}).items()}


# ── Store ─────────────────────────────────────────────────────


def _locked(method):
    """Run *method* holding the store lock; lookups and writes stay together."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


class AppStore:
    """Per-session container for the four entity collections."""

    def __init__(
        self,
        document: UserDocument | None = None,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        document = document or UserDocument()
        self.tasks: list[Task] = list(document.tasks)
        self.habits: list[Habit] = list(document.habits)
        self.workouts: list[Workout] = list(document.workouts)
        self.events: list[Event] = list(document.events)
        self._clock = clock or datetime.now
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))
        self._listeners: list[Listener] = []
        self._sync = None
        self._closed = False
        self._lock = threading.RLock()

    # ── plumbing ──

    @property
    def closed(self) -> bool:
        return self._closed

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> str:
        return self._clock().date().isoformat()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def attach_sync(self, sync: Any) -> None:
        """Attach an object with a schedule(snapshot) method (see planboard.sync.RemoteSync)."""
        self._sync = sync

    def _fresh_id(self, items: list[Any]) -> str:
        taken = {item.id for item in items}
        new_id = self._new_id()
        while new_id in taken:
            new_id = self._new_id()
        return new_id

    @staticmethod
    def _index(items: list[Any], record_id: str) -> int | None:
        for i, item in enumerate(items):
            if item.id == record_id:
                return i
        return None

    def _changed(self, family: str) -> None:
        for listener in list(self._listeners):
            listener(family)
        if self._sync is not None:
            self._sync.schedule(self.snapshot())

    def _remove(self, family: str, record_id: str) -> bool:
        items = getattr(self, family)
        index = self._index(items, record_id)
        if index is None:
            return False
        del items[index]
        self._changed(family)
        return True

    def _replace(self, family: str, index: int, record: Any) -> Any:
        getattr(self, family)[index] = record
        self._changed(family)
        return record

    # ── tasks ──

    @_locked
    def add_task(self, data: dict[str, Any]) -> tuple[Task | None, list[str]]:
        """Create a task. Returns (task, errors); nothing is stored when errors is non-empty."""
        data = wire_keys(data)
        errors = validate_task(data)
        if errors:
            logger.debug("Rejected task: %s", errors)
            return None, errors
        data.setdefault("date", self.now().isoformat(timespec="seconds"))
        task = Task.from_dict({**data, "id": self._fresh_id(self.tasks)})
        task.title = task.title.strip()
        self.tasks.append(task)
        self._changed("tasks")
        return task, []

    @_locked
    def update_task(self, task_id: str, patch: dict[str, Any]) -> tuple[Task | None, list[str]]:
        """Merge *patch* into a task. Unknown ids are a silent no-op."""
        index = self._index(self.tasks, task_id)
        if index is None:
            return None, []
        merged = self.tasks[index].to_dict()
        merged.update(wire_keys(patch))
        merged["id"] = task_id
        errors = validate_task(merged)
        if errors:
            logger.debug("Rejected task update %s: %s", task_id, errors)
            return None, errors
        return self._replace("tasks", index, Task.from_dict(merged)), []

    @_locked
    def remove_task(self, task_id: str) -> bool:
        return self._remove("tasks", task_id)

    @_locked
    def toggle_task(self, task_id: str) -> Task | None:
        index = self._index(self.tasks, task_id)
        if index is None:
            return None
        task = self.tasks[index]
        return self._replace("tasks", index, replace(task, completed=not task.completed))

    @_locked
    def tasks_for_day(self, day: Any = None) -> list[Task]:
        """Tasks dated on *day* (default today), in creation order."""
        target = calendar_day(day if day is not None else self.today())
        result = []
        for task in self.tasks:
            try:
                if task.date and calendar_day(task.date) == target:
                    result.append(task)
            except ValueError:
                logger.debug("Skipping task %s with unreadable date %r", task.id, task.date)
        return result

    # ── habits ──

    @_locked
    def add_habit(self, data: dict[str, Any]) -> tuple[Habit | None, list[str]]:
        data = wire_keys(data)
        data.pop("streak", None)
        errors = validate_habit(data)
        if errors:
            logger.debug("Rejected habit: %s", errors)
            return None, errors
        habit = Habit.from_dict({**data, "id": self._fresh_id(self.habits)})
        habit = replace(habit, name=habit.name.strip(), streak=compute_streak(habit.completed_days, self.today()))
        self.habits.append(habit)
        self._changed("habits")
        return habit, []

    @_locked
    def update_habit(self, habit_id: str, patch: dict[str, Any]) -> tuple[Habit | None, list[str]]:
        """Merge *patch* into a habit. streak is never taken from the patch."""
        index = self._index(self.habits, habit_id)
        if index is None:
            return None, []
        patch = wire_keys(patch)
        patch.pop("streak", None)
        merged = self.habits[index].to_dict()
        merged.update(patch)
        merged["id"] = habit_id
        errors = validate_habit(merged)
        if errors:
            logger.debug("Rejected habit update %s: %s", habit_id, errors)
            return None, errors
        habit = Habit.from_dict(merged)
        if "completedDays" in patch:
            habit = replace(habit, streak=compute_streak(habit.completed_days, self.today()))
        return self._replace("habits", index, habit), []

    @_locked
    def remove_habit(self, habit_id: str) -> bool:
        return self._remove("habits", habit_id)

    @_locked
    def toggle_habit_day(self, habit_id: str, day: Any = None) -> Habit | None:
        """Flip one day's completion; completed days and streak change together."""
        index = self._index(self.habits, habit_id)
        if index is None:
            return None
        today = self.today()
        habit = toggle_day(self.habits[index], day if day is not None else today, today)
        return self._replace("habits", index, habit)

    # ── workouts ──

    def _build_exercises(self, raw: list[dict[str, Any]], previous: list[Exercise]) -> list[Exercise]:
        """Exercises rebuilt wholesale; ids are kept by position, new rows get fresh ids."""
        exercises = []
        for i, item in enumerate(raw):
            exercise = Exercise.from_dict(wire_keys(item))
            known = find_exercise(exercise.name)
            exercise.name = known.name if known else exercise.name.strip()
            exercise.id = previous[i].id if i < len(previous) else self._fresh_id(previous + exercises)
            exercises.append(exercise)
        return exercises

    @_locked
    def add_workout(self, data: dict[str, Any]) -> tuple[Workout | None, list[str]]:
        data = wire_keys(data)
        data["exercises"] = [e.to_dict() if isinstance(e, Exercise) else e for e in data.get("exercises") or []]
        errors = validate_workout(data)
        if errors:
            logger.debug("Rejected workout: %s", errors)
            return None, errors
        data.setdefault("date", self.now().isoformat(timespec="seconds"))
        workout = Workout.from_dict({**data, "id": self._fresh_id(self.workouts), "exercises": []})
        workout.name = workout.name.strip()
        workout.exercises = self._build_exercises(data["exercises"], [])
        self.workouts.append(workout)
        self._changed("workouts")
        return workout, []

    @_locked
    def update_workout(self, workout_id: str, patch: dict[str, Any]) -> tuple[Workout | None, list[str]]:
        """Merge *patch* into a workout; an exercises key replaces the whole list."""
        index = self._index(self.workouts, workout_id)
        if index is None:
            return None, []
        current = self.workouts[index]
        patch = wire_keys(patch)
        if "exercises" in patch:
            patch["exercises"] = [e.to_dict() if isinstance(e, Exercise) else e for e in patch["exercises"] or []]
        merged = current.to_dict()
        merged.update(patch)
        merged["id"] = workout_id
        errors = validate_workout(merged)
        if errors:
            logger.debug("Rejected workout update %s: %s", workout_id, errors)
            return None, errors
        workout = Workout.from_dict({**merged, "exercises": []})
        if "exercises" in patch:
            workout.exercises = self._build_exercises(patch["exercises"], current.exercises)
        else:
            workout.exercises = list(current.exercises)
        return self._replace("workouts", index, workout), []

    def replace_exercises(self, workout_id: str, exercises: list[dict[str, Any]]) -> tuple[Workout | None, list[str]]:
        return self.update_workout(workout_id, {"exercises": exercises})

    @_locked
    def remove_workout(self, workout_id: str) -> bool:
        return self._remove("workouts", workout_id)

    @_locked
    def toggle_workout(self, workout_id: str) -> Workout | None:
        index = self._index(self.workouts, workout_id)
        if index is None:
            return None
        workout = self.workouts[index]
        return self._replace("workouts", index, replace(workout, completed=not workout.completed))

    # ── events ──

    @_locked
    def add_event(self, data: dict[str, Any]) -> tuple[Event | None, list[str]]:
        data = wire_keys(data)
        errors = validate_event(data)
        if errors:
            logger.debug("Rejected event: %s", errors)
            return None, errors
        event = Event.from_dict({**data, "id": self._fresh_id(self.events)})
        event.title = event.title.strip()
        self.events.append(event)
        self._changed("events")
        return event, []

    @_locked
    def update_event(self, event_id: str, patch: dict[str, Any]) -> tuple[Event | None, list[str]]:
        index = self._index(self.events, event_id)
        if index is None:
            return None, []
        merged = self.events[index].to_dict()
        merged.update(wire_keys(patch))
        merged["id"] = event_id
        errors = validate_event(merged)
        if errors:
            logger.debug("Rejected event update %s: %s", event_id, errors)
            return None, errors
        return self._replace("events", index, Event.from_dict(merged)), []

    @_locked
    def remove_event(self, event_id: str) -> bool:
        return self._remove("events", event_id)

    @_locked
    def move_event_start(self, event_id: str, new_start: Any) -> Event | None:
        """Set the start time; an end at/before it is advanced to start+15min."""
        index = self._index(self.events, event_id)
        start = parse_datetime(new_start)
        if index is None or start is None:
            return None
        event = set_event_start(self.events[index], start)
        return self._replace("events", index, event)

    @_locked
    def move_event_end(self, event_id: str, new_end: Any) -> tuple[Event | None, bool]:
        """Set the end time. Returns (event, accepted); ends at/before the start are ignored."""
        index = self._index(self.events, event_id)
        end = parse_datetime(new_end)
        if index is None or end is None:
            return None, False
        event, accepted = set_event_end(self.events[index], end)
        if accepted:
            self._replace("events", index, event)
        return event, accepted

    # ── snapshots ──

    @_locked
    def snapshot(self) -> dict[str, Any]:
        """Persisted shape of the four families plus updatedAt."""
        document = UserDocument(
            tasks=list(self.tasks),
            habits=list(self.habits),
            workouts=list(self.workouts),
            events=list(self.events),
            updated_at=self.now().isoformat(timespec="seconds"),
        )
        return document.to_dict()

    @_locked
    def apply_remote(self, snapshot: dict[str, Any]) -> bool:
        """Replace each family present in *snapshot* wholesale (last writer wins).

        Snapshots arriving after close() are dropped.
        """
        if self._closed:
            logger.debug("Dropping remote snapshot for closed store")
            return False
        document = UserDocument.from_dict(snapshot)
        applied = [key for key in FAMILY_KEYS if key in (snapshot or {})]
        for key in applied:
            setattr(self, key, list(getattr(document, key)))
        for key in applied:
            for listener in list(self._listeners):
                listener(key)
        return bool(applied)

    @_locked
    def close(self) -> None:
        self._closed = True
        self._listeners.clear()
        self._sync = None
