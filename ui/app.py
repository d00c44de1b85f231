from __future__ import annotations

import logging
import os
from datetime import date as date_type
from pathlib import Path
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import PlainTextResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from planboard import (
    AccountRegistry,
    AppStore,
    AuthError,
    CalendarView,
    FileDocumentStore,
    Session,
    SessionRegistry,
    categories,
    column_fraction,
    compute_summary,
    configure_logging,
    data_root,
    drag_span,
    event_quick_add_url,
    events_by_day,
    events_by_hour,
    events_on_day,
    load_settings,
    minute_offset,
    month_grid_days,
    navigate,
    now_marker,
    search_exercises,
    week_days,
    week_window,
    workout_csv,
    workout_export_filename,
)
from planboard.models import Event

logger = logging.getLogger("planboard.ui")

security = HTTPBasic(auto_error=False)


def _start_minute(event: Event) -> int:
    return minute_offset(event.date)


# ── App factory ───────────────────────────────────────────────

def create_app(root: Path | None = None) -> FastAPI:
    root = root or data_root()
    settings = load_settings(root)
    configure_logging(settings.log_level)

    app = FastAPI(title="Planboard", version="0.1.0")
    documents = FileDocumentStore(root)
    app.state.root = root
    app.state.settings = settings
    app.state.accounts = AccountRegistry(root, documents)
    app.state.sessions = SessionRegistry(documents, settings)

    @app.on_event("shutdown")
    def _close_sessions() -> None:
        logger.info("Shutting down, closing open sessions")
        app.state.sessions.close_all()

    _register_routes(app)
    return app


# ── Auth & injection ──────────────────────────────────────────

def get_current_user(
    request: Request,
    credentials: HTTPBasicCredentials | None = Depends(security),
) -> str:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )
    try:
        return request.app.state.accounts.login(credentials.username, credentials.password)
    except AuthError as exc:
        logger.warning("Rejected login for %s", credentials.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Basic"},
        ) from exc


def get_session(request: Request, user_id: str = Depends(get_current_user)) -> Session:
    return request.app.state.sessions.get(user_id)


def get_store(session: Session = Depends(get_session)) -> AppStore:
    return session.store


def _result(key: str, record: Any, errors: list[str]) -> dict[str, Any]:
    # Rejected input is reported in the body; nothing was changed.
    if errors:
        return {"ok": False, "errors": errors}
    return {"ok": True, key: record.to_dict() if record is not None else None}


def _event_view(event: Event) -> dict[str, Any]:
    d = event.to_dict()
    d["offset"] = round(column_fraction(event.date), 4) if event.date else None
    d["durationMinutes"] = event.duration_minutes()
    return d


def _register_routes(app: FastAPI) -> None:

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"ok": "true"}

    # ── Accounts ──

    @app.post("/api/signup")
    def api_signup(request: Request, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
        """Create an account and its empty document."""
        try:
            user_id = request.app.state.accounts.signup(
                str(payload.get("email", "")),
                str(payload.get("password", "")),
                str(payload.get("name", "")),
            )
        except AuthError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"ok": True, "userId": user_id}

    @app.post("/api/logout")
    def api_logout(request: Request, user_id: str = Depends(get_current_user)) -> dict[str, Any]:
        closed = request.app.state.sessions.close(user_id)
        return {"ok": True, "closed": closed}

    @app.get("/api/state")
    def api_state(store: AppStore = Depends(get_store)) -> dict[str, Any]:
        """Full document snapshot."""
        return store.snapshot()

    # ── Tasks ──

    @app.get("/api/tasks")
    def api_list_tasks(
        day: date_type | None = Query(None),
        store: AppStore = Depends(get_store),
    ) -> dict[str, Any]:
        tasks = store.tasks_for_day(day) if day else store.tasks
        return {"tasks": [t.to_dict() for t in tasks]}

    @app.post("/api/tasks")
    def api_create_task(payload: dict[str, Any] = Body(...), store: AppStore = Depends(get_store)) -> dict[str, Any]:
        return _result("task", *store.add_task(payload))

    @app.patch("/api/tasks/{task_id}")
    def api_update_task(task_id: str, payload: dict[str, Any] = Body(...), store: AppStore = Depends(get_store)) -> dict[str, Any]:
        return _result("task", *store.update_task(task_id, payload))

    @app.post("/api/tasks/{task_id}/toggle")
    def api_toggle_task(task_id: str, store: AppStore = Depends(get_store)) -> dict[str, Any]:
        return _result("task", store.toggle_task(task_id), [])

    @app.delete("/api/tasks/{task_id}")
    def api_delete_task(task_id: str, store: AppStore = Depends(get_store)) -> dict[str, Any]:
        return {"ok": True, "removed": store.remove_task(task_id)}

    # ── Habits ──

    @app.get("/api/habits")
    def api_list_habits(store: AppStore = Depends(get_store)) -> dict[str, Any]:
        """Habits with the 7-day completion grid."""
        days = week_window(store.today())
        return {
            "days": days,
            "habits": [
                {**h.to_dict(), "week": {d: d in h.completed_days for d in days}}
                for h in store.habits
            ],
        }

    @app.post("/api/habits")
    def api_create_habit(payload: dict[str, Any] = Body(...), store: AppStore = Depends(get_store)) -> dict[str, Any]:
        return _result("habit", *store.add_habit(payload))

    @app.patch("/api/habits/{habit_id}")
    def api_update_habit(habit_id: str, payload: dict[str, Any] = Body(...), store: AppStore = Depends(get_store)) -> dict[str, Any]:
        return _result("habit", *store.update_habit(habit_id, payload))

    @app.post("/api/habits/{habit_id}/days/{day}")
    def api_toggle_habit_day(habit_id: str, day: date_type, store: AppStore = Depends(get_store)) -> dict[str, Any]:
        return _result("habit", store.toggle_habit_day(habit_id, day), [])

    @app.delete("/api/habits/{habit_id}")
    def api_delete_habit(habit_id: str, store: AppStore = Depends(get_store)) -> dict[str, Any]:
        return {"ok": True, "removed": store.remove_habit(habit_id)}

    # ── Workouts ──

    @app.get("/api/workouts")
    def api_list_workouts(store: AppStore = Depends(get_store)) -> dict[str, Any]:
        """Workouts, newest first."""
        workouts = sorted(store.workouts, key=lambda w: w.date, reverse=True)
        return {"workouts": [w.to_dict() for w in workouts]}

    @app.post("/api/workouts")
    def api_create_workout(payload: dict[str, Any] = Body(...), store: AppStore = Depends(get_store)) -> dict[str, Any]:
        return _result("workout", *store.add_workout(payload))

    @app.patch("/api/workouts/{workout_id}")
    def api_update_workout(workout_id: str, payload: dict[str, Any] = Body(...), store: AppStore = Depends(get_store)) -> dict[str, Any]:
        return _result("workout", *store.update_workout(workout_id, payload))

    @app.post("/api/workouts/{workout_id}/toggle")
    def api_toggle_workout(workout_id: str, store: AppStore = Depends(get_store)) -> dict[str, Any]:
        return _result("workout", store.toggle_workout(workout_id), [])

    @app.delete("/api/workouts/{workout_id}")
    def api_delete_workout(workout_id: str, store: AppStore = Depends(get_store)) -> dict[str, Any]:
        return {"ok": True, "removed": store.remove_workout(workout_id)}

    @app.get("/api/workouts/{workout_id}/export")
    def api_export_workout(workout_id: str, store: AppStore = Depends(get_store)) -> PlainTextResponse:
        workout = next((w for w in store.workouts if w.id == workout_id), None)
        if workout is None:
            raise HTTPException(status_code=404, detail=f"Workout not found: {workout_id}")
        filename = workout_export_filename(workout)
        return PlainTextResponse(
            workout_csv(workout),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    # ── Events ──

    @app.get("/api/events")
    def api_list_events(
        day: date_type | None = Query(None),
        store: AppStore = Depends(get_store),
    ) -> dict[str, Any]:
        events = events_on_day(store.events, day) if day else store.events
        return {"events": [_event_view(e) for e in events]}

    @app.post("/api/events")
    def api_create_event(payload: dict[str, Any] = Body(...), store: AppStore = Depends(get_store)) -> dict[str, Any]:
        return _result("event", *store.add_event(payload))

    @app.patch("/api/events/{event_id}")
    def api_update_event(event_id: str, payload: dict[str, Any] = Body(...), store: AppStore = Depends(get_store)) -> dict[str, Any]:
        return _result("event", *store.update_event(event_id, payload))

    @app.post("/api/events/{event_id}/start")
    def api_move_event_start(event_id: str, payload: dict[str, Any] = Body(...), store: AppStore = Depends(get_store)) -> dict[str, Any]:
        try:
            event = store.move_event_start(event_id, payload.get("start"))
        except ValueError as exc:
            return {"ok": False, "errors": [str(exc)]}
        return _result("event", event, [])

    @app.post("/api/events/{event_id}/end")
    def api_move_event_end(event_id: str, payload: dict[str, Any] = Body(...), store: AppStore = Depends(get_store)) -> dict[str, Any]:
        try:
            event, accepted = store.move_event_end(event_id, payload.get("end"))
        except ValueError as exc:
            return {"ok": False, "errors": [str(exc)]}
        return {"ok": accepted, "event": event.to_dict() if event else None}

    @app.delete("/api/events/{event_id}")
    def api_delete_event(event_id: str, store: AppStore = Depends(get_store)) -> dict[str, Any]:
        return {"ok": True, "removed": store.remove_event(event_id)}

    @app.get("/api/events/{event_id}/quick-add")
    def api_event_quick_add(event_id: str, store: AppStore = Depends(get_store)) -> dict[str, Any]:
        event = next((e for e in store.events if e.id == event_id), None)
        if event is None:
            raise HTTPException(status_code=404, detail=f"Event not found: {event_id}")
        return {"url": event_quick_add_url(event)}

    # ── Calendar ──

    @app.get("/api/calendar")
    def api_calendar(
        request: Request,
        view: str = Query("month"),
        day: date_type | None = Query(None),
        store: AppStore = Depends(get_store),
    ) -> dict[str, Any]:
        """Events bucketed for the day, week or month view around *day*."""
        week_start = request.app.state.settings.week_start
        now = store.now()
        try:
            cal = CalendarView(view=view, current_date=day or now.date(), week_start=week_start)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        result: dict[str, Any] = {"view": cal.to_dict()}
        if view == "day":
            hours = events_by_hour(store.events, cal.current_date)
            result["hours"] = {str(h): [_event_view(e) for e in items] for h, items in hours.items()}
            result["nowMarker"] = now_marker(cal.current_date, now)
        elif view == "week":
            days = week_days(cal.current_date, week_start)
            buckets = events_by_day(store.events, days)
            result["days"] = [
                {
                    "day": d.isoformat(),
                    "isToday": d == now.date(),
                    "nowMarker": now_marker(d, now),
                    "events": [_event_view(e) for e in sorted(buckets[d.isoformat()], key=_start_minute)],
                }
                for d in days
            ]
        else:
            grid = month_grid_days(cal.current_date, week_start, today=now.date())
            buckets = events_by_day(store.events, [g.day for g in grid])
            result["days"] = [
                {**g.to_dict(), "events": [e.to_dict() for e in buckets[g.day.isoformat()]]}
                for g in grid
            ]
        return result

    @app.get("/api/calendar/navigate")
    def api_calendar_navigate(
        view: str = Query(...),
        day: date_type = Query(...),
        direction: int = Query(1),
    ) -> dict[str, Any]:
        try:
            target = navigate(view, day, 1 if direction >= 0 else -1)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"view": view, "day": target.isoformat()}

    @app.post("/api/calendar/drag")
    def api_calendar_drag(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
        """Provisional event span for a drag inside a day column."""
        try:
            start, end = drag_span(
                payload["day"],
                float(payload["yStart"]),
                float(payload["yEnd"]),
                float(payload["columnHeight"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            return {"ok": False, "errors": [f"Invalid drag: {exc}"]}
        return {"ok": True, "date": start.isoformat(), "endTime": end.isoformat()}

    # ── Analytics & catalog ──

    @app.get("/api/analytics")
    def api_analytics(store: AppStore = Depends(get_store)) -> dict[str, Any]:
        return compute_summary(store.tasks, store.habits, store.workouts).to_dict()

    @app.get("/api/exercises")
    def api_exercises(q: str = "", limit: int = 20) -> dict[str, Any]:
        return {
            "exercises": [e.to_dict() for e in search_exercises(q, limit)],
            "categories": categories(),
        }


app = create_app()


def main() -> None:
    import uvicorn

    uvicorn.run(
        "ui.app:app",
        host=os.environ.get("PLANBOARD_HOST", "127.0.0.1"),
        port=int(os.environ.get("PLANBOARD_PORT", "8000")),
    )


if __name__ == "__main__":
    main()
