"""Attendance statistics derived from the log trail."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .models import AnalysisRecord, AttendanceLogEntry, AttendanceType, PlanCategory, PlanEntry, RecordKind, UserStats

# Hours credited to a check-in whose session has not been closed yet.
DEFAULT_SESSION_HOURS = 4.0

Session = Tuple[AttendanceLogEntry, Optional[AttendanceLogEntry]]


def pair_sessions(logs: Iterable[AttendanceLogEntry]) -> List[Session]:
    """Pair every check-in with the check-out that directly follows it."""

    sessions: List[Session] = []
    open_entry: Optional[AttendanceLogEntry] = None
    for entry in sorted(logs, key=lambda e: e.timestamp):
        if entry.type is AttendanceType.CHECKED_IN:
            if open_entry is not None:
                sessions.append((open_entry, None))
            open_entry = entry
        elif open_entry is not None:
            sessions.append((open_entry, entry))
            open_entry = None
    if open_entry is not None:
        sessions.append((open_entry, None))
    return sessions


def _hours(session: Session) -> Optional[float]:
    start, end = session
    if end is None:
        return None
    return (end.timestamp - start.timestamp).total_seconds() / 3600


def compute_user_stats(
    logs: Sequence[AttendanceLogEntry],
    plans: Sequence[PlanEntry] = (),
    user_id: Optional[str] = None,
) -> UserStats:
    sessions = pair_sessions(logs)
    work_days = {start.timestamp.date() for start, _ in sessions}
    total_hours = sum(h for h in (_hours(s) for s in sessions) if h is not None)
    leave_days = {
        plan.date
        for plan in plans
        if plan.category is PlanCategory.LEAVE and (user_id is None or plan.user_id == user_id)
    }
    return UserStats(
        total_work_days=len(work_days),
        total_work_hours=round(total_hours, 1),
        total_leave_days=len(leave_days),
    )


def to_analysis_records(logs: Sequence[AttendanceLogEntry]) -> List[AnalysisRecord]:
    session_hours: Dict[str, float] = {}
    for session in pair_sessions(logs):
        hours = _hours(session)
        session_hours[session[0].id] = round(hours, 2) if hours is not None else DEFAULT_SESSION_HOURS

    records = []
    for entry in logs:
        is_work = entry.type is AttendanceType.CHECKED_IN
        records.append(
            AnalysisRecord(
                date=entry.timestamp.isoformat(),
                hours=session_hours.get(entry.id, 0.0) if is_work else 0.0,
                kind=RecordKind.WORK if is_work else RecordKind.LEAVE,
                description=entry.type.label,
            )
        )
    return records


__all__ = ["DEFAULT_SESSION_HOURS", "compute_user_stats", "pair_sessions", "to_analysis_records"]
