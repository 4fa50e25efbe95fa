"""Pure view functions turning :class:`AppState` into JSON-ready dicts."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from .calendar_grid import WEEKDAY_NAMES, month_days, month_title, plans_on
from .models import AttendanceLogEntry, AttendanceType, PlanEntry, UserProfile
from .state import AppState, SubView, Tab
from .stats import compute_user_stats
from .toggle import can_toggle

# Turkey stays on UTC+3 all year.
LOCAL_TZ = timezone(timedelta(hours=3), "TRT")
SHORT_MONTHS = ("Oca", "Şub", "Mar", "Nis", "May", "Haz", "Tem", "Ağu", "Eyl", "Eki", "Kas", "Ara")


def format_time(value: Optional[datetime]) -> str:
    if value is None:
        return "-"
    return _local(value).strftime("%H:%M")


def format_date(value: Optional[datetime]) -> str:
    if value is None:
        return "-"
    local = _local(value)
    return f"{local.day} {SHORT_MONTHS[local.month - 1]}"


def _local(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(LOCAL_TZ)


def status_label(profile: UserProfile) -> str:
    return "İçeride" if profile.current_status is AttendanceType.CHECKED_IN else "Dışarıda"


def profile_summary(profile: UserProfile) -> Dict[str, Any]:
    return {
        "id": profile.id,
        "full_name": profile.full_name,
        "initials": profile.initials,
        "role": profile.role.value,
        "department": profile.department,
        "avatar_color": profile.avatar_color,
        "current_status": profile.current_status.value,
        "status_label": status_label(profile),
        "last_seen": profile.last_seen.isoformat() if profile.last_seen else None,
    }


def log_row(entry: AttendanceLogEntry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "type": entry.type.value,
        "label": entry.type.label,
        "time": format_time(entry.timestamp),
        "date": format_date(entry.timestamp),
        "timestamp": entry.timestamp.isoformat(),
    }


def plan_row(plan: PlanEntry) -> Dict[str, Any]:
    return {
        "id": plan.id,
        "user_id": plan.user_id,
        "full_name": plan.full_name,
        "date": plan.date.isoformat(),
        "category": plan.category.value,
        "notes": plan.notes,
    }


def dashboard_view(state: AppState) -> Dict[str, Any]:
    return {
        "error_message": state.error_message,
        "loading": state.loading and not state.error_message,
        "inside_count": state.inside_count,
        "total_count": len(state.users),
        "users": [profile_summary(user) for user in state.users],
    }


def profile_view(state: AppState) -> Dict[str, Any]:
    if state.sub_view is SubView.REGISTER:
        draft = state.draft
        return {
            "mode": "register",
            "saving": state.action_loading,
            "draft": {
                "first_name": draft.first_name,
                "last_name": draft.last_name,
                "role": draft.role.value,
                "department": draft.department,
                "email": draft.email,
                "phone": draft.phone,
            },
        }

    user = state.current_user
    if user is None:
        return {"mode": "select", "users": [profile_summary(u) for u in state.users]}

    stats = compute_user_stats(state.logs, state.plans, user.id)
    return {
        "mode": "panel",
        "user": profile_summary(user),
        "headline": "OFİSTESİN" if user.current_status is AttendanceType.CHECKED_IN else "DIŞARIDASIN",
        "can_check_in": can_toggle(user, AttendanceType.CHECKED_IN, busy=state.action_loading),
        "can_check_out": can_toggle(user, AttendanceType.CHECKED_OUT, busy=state.action_loading),
        "stats": {
            "total_work_days": stats.total_work_days,
            "total_work_hours": stats.total_work_hours,
            "total_leave_days": stats.total_leave_days,
            "hours_per_day": stats.hours_per_day,
        },
        "ai_loading": state.ai_loading,
        "ai_insight": state.ai_insight,
        "python_code": state.python_code,
        "logs": [log_row(entry) for entry in state.logs],
    }


def calendar_view(state: AppState) -> Dict[str, Any]:
    weeks: List[List[Optional[Dict[str, Any]]]] = []
    week: List[Optional[Dict[str, Any]]] = []
    for day in month_days(state.calendar_month):
        if day is None:
            week.append(None)
        else:
            week.append(
                {
                    "date": day.isoformat(),
                    "day": day.day,
                    "plans": [plan_row(plan) for plan in plans_on(state.plans, day)],
                }
            )
        if len(week) == 7:
            weeks.append(week)
            week = []
    if week:
        weeks.append(week + [None] * (7 - len(week)))

    return {
        "title": month_title(state.calendar_month),
        "month": state.calendar_month.strftime("%Y-%m"),
        "loading": state.calendar_loading,
        "weekdays": list(WEEKDAY_NAMES),
        "weeks": weeks,
    }


def app_view(state: AppState) -> Dict[str, Any]:
    """Full render: the active tab plus banner and notices."""

    renderers = {Tab.DASHBOARD: dashboard_view, Tab.CALENDAR: calendar_view, Tab.PROFILE: profile_view}
    return {
        "tab": state.main_tab.value,
        "error_message": state.error_message,
        "notices": list(state.notices),
        "content": renderers[state.main_tab](state),
    }


__all__ = [
    "app_view",
    "calendar_view",
    "dashboard_view",
    "format_date",
    "format_time",
    "log_row",
    "plan_row",
    "profile_summary",
    "profile_view",
]
