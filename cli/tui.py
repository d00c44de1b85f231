#!/usr/bin/env python3
"""Planboard TUI — today's tasks, habit week and agenda, powered by Textual."""

from __future__ import annotations

import logging
import os
import sys
from datetime import timedelta

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.reactive import reactive
from textual.widgets import DataTable, Footer, Header, Input, Label, Static

from planboard import (
    AccountRegistry,
    AuthError,
    FileDocumentStore,
    Session,
    compute_summary,
    configure_logging,
    data_root,
    events_on_day,
    load_settings,
    minute_offset,
    open_session,
    week_window,
)

logger = logging.getLogger("planboard.cli")


CSS = """
Screen {
    layout: vertical;
}

#main-layout {
    height: 1fr;
}

#left-pane {
    width: 1fr;
    min-width: 30;
    border-right: tall $primary-background-darken-2;
    padding: 0 1;
}

#right-pane {
    width: 1fr;
    min-width: 30;
    padding: 0 1;
}

.section-title {
    text-style: bold;
    color: $text;
    margin: 1 0 0 0;
    padding: 0 1;
}

#task-input {
    height: 3;
    display: none;
}

#tasks-table {
    height: 1fr;
}

#habits-table {
    height: auto;
    max-height: 50%;
}

#agenda {
    height: auto;
    padding: 0 1;
    color: $text-muted;
}

#workouts-screen, #stats-screen {
    padding: 1 2;
}

#workouts-table {
    height: 1fr;
}

#stats-info {
    height: auto;
    padding: 1 2;
    border: tall $primary-background-darken-2;
}
"""

AGENDA_DAYS = 7


# ── Screens ────────────────────────────────────────────────────


class WorkoutsScreen(Vertical):
    """Workout log as a data table, newest first."""

    def __init__(self, session: Session, **kwargs) -> None:
        super().__init__(**kwargs)
        self.session = session

    def compose(self) -> ComposeResult:
        yield Label("Workouts", classes="section-title")
        yield DataTable(id="workouts-table")

    def on_mount(self) -> None:
        table: DataTable = self.query_one("#workouts-table", DataTable)
        table.add_columns("Date", "Name", "Exercises", "Done")
        for w in sorted(self.session.store.workouts, key=lambda w: w.date, reverse=True):
            names = ", ".join(e.name for e in w.exercises[:3])
            if len(w.exercises) > 3:
                names += f" (+{len(w.exercises) - 3})"
            table.add_row(w.date[:10], w.name, names, "✓" if w.completed else "")


class StatsScreen(Vertical):
    """Completion rates and current streaks."""

    def __init__(self, session: Session, **kwargs) -> None:
        super().__init__(**kwargs)
        self.session = session

    def compose(self) -> ComposeResult:
        yield Label("Stats", classes="section-title")
        yield Static(id="stats-info")

    def on_mount(self) -> None:
        store = self.session.store
        summary = compute_summary(store.tasks, store.habits, store.workouts)
        lines = [
            f"Tasks: {summary.completed_tasks}/{summary.total_tasks} ({summary.task_completion_rate}%)",
            "Priority: " + ", ".join(f"{k} {v}" for k, v in summary.priority_breakdown.items()),
            f"Workouts: {summary.completed_workouts}/{summary.total_workouts} ({summary.workout_completion_rate}%)",
        ]
        if summary.habit_streaks:
            lines.append("")
            lines.extend(f"🔥 {h['streak']:>3}  {h['name']}" for h in summary.habit_streaks)
        self.query_one("#stats-info", Static).update("\n".join(lines))


# ── Main app ───────────────────────────────────────────────────


class PlanboardApp(App):
    """Planboard — today at a glance in the terminal."""

    TITLE = "Planboard"
    CSS = CSS
    AUTO_FOCUS = "#tasks-table"

    BINDINGS = [
        Binding("d", "show_dashboard", "Today"),
        Binding("a", "add_task", "Add Task"),
        Binding("x", "toggle_task", "Done"),
        Binding("h", "toggle_habit", "Habit"),
        Binding("w", "show_workouts", "Workouts"),
        Binding("s", "show_stats", "Stats"),
        Binding("escape", "blur_focus", "Back"),
        Binding("q", "quit_app", "Quit"),
    ]

    current_view: reactive[str] = reactive("dashboard")

    def __init__(self, session: Session) -> None:
        super().__init__()
        self.session = session
        self._unsubscribe = None

    @property
    def store(self):
        return self.session.store

    def compose(self) -> ComposeResult:
        yield Header()
        yield Horizontal(
            Vertical(
                Label("Today", classes="section-title"),
                Input(placeholder="New task… (prefix !high or !low)", id="task-input"),
                DataTable(id="tasks-table", cursor_type="row"),
                id="left-pane",
            ),
            VerticalScroll(
                Label("Habits", classes="section-title"),
                DataTable(id="habits-table", cursor_type="row"),
                Label("Agenda", classes="section-title"),
                Static(id="agenda"),
                id="right-pane",
            ),
            id="main-layout",
        )
        yield Footer()

    def on_mount(self) -> None:
        self._unsubscribe = self.store.subscribe(self._on_store_change)
        self._load_data()

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()

    def _on_store_change(self, family: str) -> None:
        # Remote snapshots arrive on the sync thread.
        if family in ("tasks", "habits", "events"):
            try:
                self.call_from_thread(self._load_data)
            except RuntimeError:
                self._load_data()

    def _load_data(self) -> None:
        """Populate tasks, habit grid and agenda from the store."""
        today = self.store.today()

        tasks_table = self.query_one("#tasks-table", DataTable)
        tasks_table.clear(columns=True)
        tasks_table.add_columns("", "Task", "Pri")
        for t in self.store.tasks_for_day(today):
            tasks_table.add_row("✓" if t.completed else "·", t.title, t.priority, key=t.id)

        days = week_window(today)
        habits_table = self.query_one("#habits-table", DataTable)
        habits_table.clear(columns=True)
        habits_table.add_columns("Habit", *[d[5:] for d in days], "🔥")
        for h in self.store.habits:
            marks = ["●" if d in h.completed_days else "○" for d in days]
            habits_table.add_row(h.name, *marks, str(h.streak), key=h.id)

        self.query_one("#agenda", Static).update(self._agenda_text())

        done = sum(1 for t in self.store.tasks_for_day(today) if t.completed)
        total = len(self.store.tasks_for_day(today))
        self.sub_title = f"{today}  {done}/{total} done"

    def _agenda_text(self) -> str:
        start = self.store.now().date()
        lines = []
        for offset in range(AGENDA_DAYS):
            day = start + timedelta(days=offset)
            for e in sorted(events_on_day(self.store.events, day), key=lambda e: minute_offset(e.date)):
                end = e.effective_end()
                lines.append(f"{day:%a %d}  {e.date:%H:%M}-{end:%H:%M}  {e.title}")
        return "\n".join(lines) if lines else "(nothing scheduled this week)"

    def _selected_key(self, table_id: str) -> str | None:
        table = self.query_one(table_id, DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return row_key.value

    # ── Actions ────────────────────────────────────────────────

    def action_add_task(self) -> None:
        if self.current_view != "dashboard":
            self._switch_to("dashboard")
        field = self.query_one("#task-input", Input)
        field.display = True
        field.focus()

    @on(Input.Submitted, "#task-input")
    def _on_task_submitted(self, event: Input.Submitted) -> None:
        text = event.value.strip()
        priority = "medium"
        for marker in ("high", "low"):
            if text.startswith(f"!{marker} "):
                priority, text = marker, text[len(marker) + 2:]
        task, errors = self.store.add_task({"title": text, "priority": priority})
        if errors:
            self.notify("; ".join(errors), title="Task not added", severity="warning")
            return
        event.input.value = ""
        event.input.display = False
        self.query_one("#tasks-table", DataTable).focus()
        self.notify(f"Added: {task.title}")

    def action_toggle_task(self) -> None:
        key = self._selected_key("#tasks-table")
        if key is not None:
            self.store.toggle_task(key)

    def action_toggle_habit(self) -> None:
        """Flip today's completion for the highlighted habit."""
        key = self._selected_key("#habits-table")
        if key is None:
            return
        habit = self.store.toggle_habit_day(key)
        if habit is not None:
            self.notify(f"{habit.name}: streak {habit.streak}")

    def action_show_workouts(self) -> None:
        self._switch_to("dashboard" if self.current_view == "workouts" else "workouts")

    def action_show_stats(self) -> None:
        self._switch_to("dashboard" if self.current_view == "stats" else "stats")

    def action_show_dashboard(self) -> None:
        self._switch_to("dashboard")

    def action_blur_focus(self) -> None:
        field = self.query_one("#task-input", Input)
        if field.display:
            field.value = ""
            field.display = False
        self.set_focus(None)

    def action_quit_app(self) -> None:
        self.exit()

    def _switch_to(self, view: str) -> None:
        main = self.query_one("#main-layout", Horizontal)
        for old in self.query(".overlay-screen"):
            old.remove()

        dashboard = view == "dashboard"
        self.query_one("#left-pane").display = dashboard
        self.query_one("#right-pane").display = dashboard
        if view == "workouts":
            main.mount(WorkoutsScreen(self.session, id="workouts-screen", classes="overlay-screen"))
        elif view == "stats":
            main.mount(StatsScreen(self.session, id="stats-screen", classes="overlay-screen"))
        else:
            self._load_data()
        self.current_view = view


# ── Entry point ────────────────────────────────────────────────


def _resolve_user(root) -> str:
    """User id from PLANBOARD_USER, or by logging in with PLANBOARD_EMAIL/PLANBOARD_PASSWORD."""
    user_id = os.environ.get("PLANBOARD_USER", "").strip()
    if user_id:
        return user_id
    email = os.environ.get("PLANBOARD_EMAIL", "")
    password = os.environ.get("PLANBOARD_PASSWORD", "")
    return AccountRegistry(root).login(email, password)


def main() -> None:
    root = data_root()
    if not root.exists():
        print(f"Data root not found: {root}")
        print("Set PLANBOARD_ROOT or sign up through the web app first.")
        sys.exit(1)

    settings = load_settings(root)
    configure_logging(settings.log_level)
    try:
        user_id = _resolve_user(root)
    except AuthError as exc:
        print(f"Login failed: {exc}")
        print("Set PLANBOARD_USER, or PLANBOARD_EMAIL and PLANBOARD_PASSWORD.")
        sys.exit(1)

    session = open_session(user_id, FileDocumentStore(root), settings)
    try:
        PlanboardApp(session).run()
    finally:
        session.close()


if __name__ == "__main__":
    main()
