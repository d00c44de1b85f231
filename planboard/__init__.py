"""Planboard core library — data model, engines, state store and sync.

Public API re-exports for convenient imports:
    from planboard import open_session, compute_streak, month_grid_days, ...
"""

# Data root & settings
from planboard.workspace import (
    data_root,
    config_path,
    accounts_path,
    documents_dir,
    load_settings,
    save_settings,
    get_user_timezone,
    now_local,
    today_str,
)

# Models
from planboard.models import (
    PRIORITIES,
    Task,
    Habit,
    Exercise,
    Workout,
    Event,
    UserDocument,
    Settings,
    GridDay,
    AnalyticsSummary,
    calendar_day,
    day_str,
    parse_datetime,
)

# Streaks
from planboard.streaks import (
    compute_streak,
    toggle_day,
    refresh_streaks,
    week_window,
)

# Calendar
from planboard.scheduler import (
    CalendarView,
    events_on_day,
    events_by_hour,
    events_by_day,
    navigate,
    jump_to_today,
    minute_offset,
    column_fraction,
    now_marker,
    month_grid_days,
    week_days,
    start_of_week,
    slot_from_position,
    drag_span,
    set_event_start,
    set_event_end,
)

# State store & sync
from planboard.store import (
    AppStore,
    validate_task,
    validate_habit,
    validate_workout,
    validate_exercise,
    validate_event,
)
from planboard.sync import DocumentStore, FileDocumentStore, RemoteSync
from planboard.session import Session, SessionRegistry, open_session

# Accounts
from planboard.accounts import AccountRegistry, AuthError

# Exports, catalog, analytics
from planboard.export import workout_csv, workout_export_filename, event_quick_add_url
from planboard.exercises import categories, find_exercise, search_exercises
from planboard.analytics import compute_summary
from planboard.logging_config import configure_logging
