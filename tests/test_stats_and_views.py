from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta, timezone

from intern_tracker.calendar_grid import month_days, month_title, shift_month
from intern_tracker.models import (
    AttendanceLogEntry,
    AttendanceType,
    PlanCategory,
    PlanEntry,
    RecordKind,
    Role,
    UserProfile,
)
from intern_tracker.state import (
    AppState,
    NoticesDismissed,
    RegistrationOpened,
    Tab,
    TabSelected,
    ToggleReverted,
    ToggleStarted,
    UserSelected,
    initial_state,
    reduce,
)
from intern_tracker.stats import DEFAULT_SESSION_HOURS, compute_user_stats, to_analysis_records
from intern_tracker.toggle import ToggleAttempt
from intern_tracker.views import app_view, calendar_view, dashboard_view, format_date, format_time, profile_view

MORNING = datetime(2026, 10, 19, 6, 0, tzinfo=timezone.utc)
PROFILE = UserProfile(id="u1", first_name="ayşe", last_name="yıldız", role=Role.INTERN, department="Yazılım")


def entry(id: str, type: AttendanceType, at: datetime) -> AttendanceLogEntry:
    return AttendanceLogEntry(id=id, user_id="u1", full_name="Ayşe Yıldız", type=type, timestamp=at)


LOGS = [
    entry("l4", AttendanceType.CHECKED_IN, MORNING + timedelta(days=1)),
    entry("l3", AttendanceType.CHECKED_OUT, MORNING + timedelta(hours=9)),
    entry("l2", AttendanceType.CHECKED_IN, MORNING + timedelta(hours=1)),
    entry("l1", AttendanceType.CHECKED_IN, MORNING),
]


def test_stats_pair_check_ins_with_following_check_out():
    plans = [
        PlanEntry("p1", "u1", "Ayşe Yıldız", date(2026, 10, 23), PlanCategory.LEAVE),
        PlanEntry("p2", "u1", "Ayşe Yıldız", date(2026, 10, 23), PlanCategory.LEAVE),
        PlanEntry("p3", "u2", "Can Demir", date(2026, 10, 24), PlanCategory.LEAVE),
        PlanEntry("p4", "u1", "Ayşe Yıldız", date(2026, 10, 25), PlanCategory.OFFICE),
    ]

    stats = compute_user_stats(LOGS, plans, "u1")

    assert stats.total_work_days == 2
    assert stats.total_work_hours == 8.0
    assert stats.total_leave_days == 1


def test_analysis_records_keep_log_order_and_default_open_sessions():
    records = to_analysis_records(LOGS)

    assert [r.kind for r in records] == [RecordKind.WORK, RecordKind.LEAVE, RecordKind.WORK, RecordKind.WORK]
    assert records[0].hours == DEFAULT_SESSION_HOURS
    assert records[1].hours == 0.0
    assert records[2].hours == 8.0
    assert records[3].hours == DEFAULT_SESSION_HOURS
    assert records[1].description == "Çıkış"


def test_month_grid_starts_on_monday():
    days = month_days(date(2026, 10, 1))

    # 1 October 2026 is a Thursday
    assert days[:3] == [None, None, None]
    assert days[3] == date(2026, 10, 1)
    assert days[-1] == date(2026, 10, 31)
    assert month_title(date(2026, 2, 1)) == "Şubat 2026"
    assert shift_month(date(2026, 1, 1), -1) == date(2025, 12, 1)


def test_local_time_formatting():
    assert format_time(MORNING) == "09:00"
    assert format_date(MORNING) == "19 Eki"
    assert format_time(None) == "-"


def test_reducer_funnels_toggle_through_attempt_phases():
    state = reduce(initial_state(date(2026, 10, 19)), UserSelected(PROFILE))
    attempt = ToggleAttempt.begin(PROFILE, AttendanceType.CHECKED_IN, MORNING)

    pending = reduce(state, ToggleStarted(attempt))
    assert pending.current_user.current_status is AttendanceType.CHECKED_IN
    assert pending.action_loading

    reverted = reduce(pending, ToggleReverted(attempt, "İşlem kaydedilemedi."))
    assert reverted.current_user.current_status is AttendanceType.CHECKED_OUT
    assert reverted.notices == ("İşlem kaydedilemedi.",)
    assert reduce(reverted, NoticesDismissed()).notices == ()


def test_dashboard_counts_people_inside():
    inside = replace(PROFILE, id="u2", current_status=AttendanceType.CHECKED_IN)
    state = replace(initial_state(date(2026, 10, 19)), users=(PROFILE, inside), loading=False)

    view = dashboard_view(state)

    assert view["inside_count"] == 1
    assert view["total_count"] == 2
    assert [row["status_label"] for row in view["users"]] == ["Dışarıda", "İçeride"]
    assert view["users"][0]["initials"] == "AY"


def test_profile_view_modes():
    base = initial_state(date(2026, 10, 19))
    assert profile_view(base)["mode"] == "select"
    assert profile_view(reduce(base, RegistrationOpened()))["mode"] == "register"

    panel = profile_view(replace(reduce(base, UserSelected(PROFILE)), logs=tuple(LOGS)))
    assert panel["mode"] == "panel"
    assert panel["headline"] == "DIŞARIDASIN"
    assert panel["can_check_in"] and not panel["can_check_out"]
    assert panel["logs"][0]["time"] == "09:00"
    assert panel["stats"]["total_work_hours"] == 8.0


def test_calendar_view_places_plans_in_weeks():
    plan = PlanEntry("p1", "u1", "Ayşe Yıldız", date(2026, 10, 21), PlanCategory.OFFICE)
    state = replace(initial_state(date(2026, 10, 19)), plans=(plan,))

    view = calendar_view(state)

    assert view["title"] == "Ekim 2026"
    assert all(len(week) == 7 for week in view["weeks"])
    cells = [cell for week in view["weeks"] for cell in week if cell]
    assert len(cells) == 31
    assert next(c for c in cells if c["day"] == 21)["plans"][0]["category"] == "Ofis"


def test_app_view_renders_active_tab():
    state: AppState = reduce(initial_state(date(2026, 10, 19)), TabSelected(Tab.CALENDAR))

    view = app_view(state)

    assert view["tab"] == "calendar"
    assert view["content"]["month"] == "2026-10"


def test_hours_per_day_averages_worked_days():
    assert compute_user_stats(LOGS).hours_per_day == 4.0
    assert compute_user_stats([]).hours_per_day == 0.0

    panel = profile_view(replace(reduce(initial_state(date(2026, 10, 19)), UserSelected(PROFILE)), logs=tuple(LOGS)))
    assert panel["stats"]["hours_per_day"] == 4.0
