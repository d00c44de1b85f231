"""Derived analytics summary over tasks, habits and workouts."""

from __future__ import annotations

from planboard.models import PRIORITIES, AnalyticsSummary, Habit, Task, Workout, parse_datetime


def _percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return int(part / whole * 100 + 0.5)


def _workout_sort_key(workout: Workout) -> float:
    try:
        parsed = parse_datetime(workout.date)
    except ValueError:
        parsed = None
    return parsed.timestamp() if parsed is not None else float("-inf")


def compute_summary(
    tasks: list[Task],
    habits: list[Habit],
    workouts: list[Workout],
    recent: int = 3,
) -> AnalyticsSummary:
    """Completion rates, priority mix, current streaks and latest workouts."""
    completed_tasks = sum(1 for t in tasks if t.completed)
    completed_workouts = sum(1 for w in workouts if w.completed)

    breakdown = {p: 0 for p in reversed(PRIORITIES)}  # high, medium, low
    for task in tasks:
        if task.priority in breakdown:
            breakdown[task.priority] += 1

    newest = sorted(workouts, key=_workout_sort_key, reverse=True)[:recent]

    return AnalyticsSummary(
        total_tasks=len(tasks),
        completed_tasks=completed_tasks,
        task_completion_rate=_percent(completed_tasks, len(tasks)),
        priority_breakdown=breakdown,
        habit_streaks=[{"name": h.name, "streak": h.streak, "color": h.color} for h in habits],
        total_workouts=len(workouts),
        completed_workouts=completed_workouts,
        workout_completion_rate=_percent(completed_workouts, len(workouts)),
        recent_workouts=[
            {"id": w.id, "name": w.name, "date": w.date, "completed": w.completed} for w in newest
        ],
    )
