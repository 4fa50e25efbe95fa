from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List

import pytest

from intern_tracker.directory import Directory
from intern_tracker.insights import AITextService
from intern_tracker.models import AttendanceLogEntry, AttendanceType, PlanEntry, UserProfile
from intern_tracker.service import TrackerService


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryBackend:
    """Directory backend keeping documents in dicts; ``fail`` names operations that raise."""

    def __init__(self, clock: FakeClock):
        self.profiles: Dict[str, UserProfile] = {}
        self.logs: List[AttendanceLogEntry] = []
        self.plans: List[PlanEntry] = []
        self.fail: set[str] = set()
        self.calls: List[str] = []
        self._clock = clock
        self._seq = 0

    def _check(self, op: str) -> None:
        self.calls.append(op)
        if op in self.fail:
            raise RuntimeError(f"{op} rejected")

    async def connect(self) -> None:
        self._check("connect")

    async def close(self) -> None:
        return None

    async def fetch_profiles(self, limit: int) -> List[UserProfile]:
        self._check("fetch_profiles")
        return sorted(self.profiles.values(), key=lambda p: p.first_name)[:limit]

    async def insert_profile(self, profile: UserProfile) -> None:
        self._check("insert_profile")
        self.profiles[profile.id] = profile

    async def insert_log(self, user_id: str, full_name: str, type: AttendanceType) -> str:
        self._check("insert_log")
        self._seq += 1
        log_id = f"log-{self._seq}"
        self.logs.append(AttendanceLogEntry(log_id, user_id, full_name, type, self._clock()))
        return log_id

    async def update_status(self, user_id: str, status: AttendanceType) -> None:
        self._check("update_status")
        if user_id not in self.profiles:
            raise LookupError(user_id)
        self.profiles[user_id] = replace(self.profiles[user_id], current_status=status, last_seen=self._clock())

    async def fetch_logs(self, user_id: str, limit: int) -> List[AttendanceLogEntry]:
        self._check("fetch_logs")
        return [entry for entry in reversed(self.logs) if entry.user_id == user_id][:limit]

    async def fetch_plans(self, start: date, end: date) -> List[PlanEntry]:
        self._check("fetch_plans")
        return sorted((p for p in self.plans if start <= p.date <= end), key=lambda p: p.date)

    async def insert_plan(self, plan: PlanEntry) -> None:
        self._check("insert_plan")
        self.plans.append(plan)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 19, 6, 30, tzinfo=timezone.utc))


@pytest.fixture
def backend(clock: FakeClock) -> InMemoryBackend:
    return InMemoryBackend(clock)


@pytest.fixture
def directory(backend: InMemoryBackend, clock: FakeClock) -> Directory:
    return Directory(backend, clock=clock)


@pytest.fixture
def service(directory: Directory, clock: FakeClock) -> TrackerService:
    return TrackerService(directory, AITextService(None), clock=clock)
