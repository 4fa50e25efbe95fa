"""Dataclasses and enums representing the intern tracker domain."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class AttendanceType(str, Enum):
    """Attendance status of a person, also the type of a log entry."""

    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"

    @property
    def label(self) -> str:
        return "Giriş" if self is AttendanceType.CHECKED_IN else "Çıkış"


class Role(str, Enum):
    INTERN = "Stajyer"
    ASSOCIATE_ENGINEER = "Aday Mühendis"


class PlanCategory(str, Enum):
    OFFICE = "Ofis"
    LEAVE = "İzin"
    SCHOOL = "Okul"


class RecordKind(str, Enum):
    WORK = "Çalışma"
    LEAVE = "İzin"


AVATAR_COLORS = ("blue", "indigo", "purple", "emerald", "yellow", "red")


@dataclass(frozen=True, slots=True)
class UserProfile:
    id: str
    first_name: str
    last_name: str
    role: Role
    department: str
    email: str | None = None
    phone: str | None = None
    avatar_color: str | None = None
    current_status: AttendanceType = AttendanceType.CHECKED_OUT
    last_seen: datetime | None = None
    created_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def initials(self) -> str:
        return f"{self.first_name[:1]}{self.last_name[:1]}".upper()


@dataclass(frozen=True, slots=True)
class AttendanceLogEntry:
    id: str
    user_id: str
    full_name: str
    type: AttendanceType
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class PlanEntry:
    id: str
    user_id: str
    full_name: str
    date: date
    category: PlanCategory
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class UserStats:
    total_work_days: int
    total_work_hours: float
    total_leave_days: int

    @property
    def hours_per_day(self) -> float:
        if not self.total_work_days:
            return 0.0
        return round(self.total_work_hours / self.total_work_days, 1)


@dataclass(frozen=True, slots=True)
class AnalysisRecord:
    """Flattened log row handed to the AI service."""

    date: str
    hours: float
    kind: RecordKind
    description: str


__all__ = [
    "AVATAR_COLORS",
    "AnalysisRecord",
    "AttendanceLogEntry",
    "AttendanceType",
    "PlanCategory",
    "PlanEntry",
    "RecordKind",
    "Role",
    "UserProfile",
    "UserStats",
]
