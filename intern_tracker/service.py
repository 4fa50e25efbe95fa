"""Core orchestration logic for the intern tracker."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional

from .backends import FirestoreBackend, SQLiteBackend, now_utc
from .calendar_grid import month_bounds, shift_month
from .config import Settings
from .db import Database
from .directory import Directory
from .exceptions import DirectoryUnavailable
from .firestore_client import FirestoreClient
from .gemini_client import GeminiClient
from .insights import AITextService
from .models import AttendanceType, PlanCategory, PlanEntry, Role, UserProfile
from .state import (
    AiRequested,
    AppState,
    InitFailed,
    InitStarted,
    InsightReady,
    LogsLoaded,
    MonthChanged,
    NoticesDismissed,
    PlanRejected,
    PlanSaved,
    PlansLoaded,
    ProfileRegistered,
    RegistrationCancelled,
    RegistrationDraft,
    RegistrationFailed,
    RegistrationOpened,
    RegistrationStarted,
    ScriptReady,
    Tab,
    TabSelected,
    ToggleConfirmed,
    ToggleReverted,
    ToggleStarted,
    UserSelected,
    UsersLoaded,
    initial_state,
    reduce,
)
from .stats import to_analysis_records
from .toggle import ToggleAttempt

logger = logging.getLogger(__name__)

CONNECTION_ERROR = "Bağlantı hatası oluştu."
ANON_AUTH_DISABLED = "HATA: Firebase Anonymous Auth kapalı."
PERMISSION_DENIED = "HATA: Firestore izin hatası."
REGISTRATION_REJECTED = "Kayıt işlemi veritabanı tarafından reddedildi."
TOGGLE_FAILED = "İşlem kaydedilemedi."
PLAN_REJECTED = "Plan kaydedilemedi."


def init_error_message(exc: DirectoryUnavailable) -> str:
    if exc.code == "auth/operation-not-allowed":
        return ANON_AUTH_DISABLED
    if exc.code == "permission-denied":
        return PERMISSION_DENIED
    if str(exc):
        return f"Hata: {exc}"
    return CONNECTION_ERROR


class TrackerService:
    """Owns the application state; every handler mutates it through actions."""

    def __init__(
        self,
        directory: Directory,
        ai: AITextService,
        *,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self.directory = directory
        self.ai = ai
        self._clock = clock
        self._state = initial_state(clock().date())

    @property
    def state(self) -> AppState:
        return self._state

    def dispatch(self, action: object) -> AppState:
        self._state = reduce(self._state, action)
        return self._state

    async def close(self) -> None:
        await self.directory.close()
        await self.ai.close()

    # region Session
    async def initialize(self) -> AppState:
        """Connect, load the roster and the visible month. Also the retry action."""

        self.dispatch(InitStarted())
        try:
            await self.directory.connect()
        except DirectoryUnavailable as exc:
            logger.error("Initialization error: %s", exc)
            return self.dispatch(InitFailed(init_error_message(exc)))
        await self.refresh_roster()
        await self.load_plans()
        return self._state

    async def refresh_roster(self) -> AppState:
        users = await self.directory.list_profiles()
        return self.dispatch(UsersLoaded(tuple(users)))

    def select_tab(self, tab: Tab) -> AppState:
        return self.dispatch(TabSelected(tab))

    def open_registration(self) -> AppState:
        return self.dispatch(RegistrationOpened())

    def cancel_registration(self) -> AppState:
        return self.dispatch(RegistrationCancelled())

    def dismiss_notices(self) -> AppState:
        return self.dispatch(NoticesDismissed())

    async def select_user(self, user_id: str) -> Optional[UserProfile]:
        profile = self._state.find_user(user_id)
        if profile is None:
            return None
        self.dispatch(UserSelected(profile))
        logs = await self.directory.list_recent_logs(profile.id)
        self.dispatch(LogsLoaded(profile.id, tuple(logs)))
        return profile

    async def register(self, fields: Dict[str, Any]) -> Optional[UserProfile]:
        """Create a profile from the registration form and select it."""

        draft = RegistrationDraft(**{**fields, "role": Role(fields.get("role", Role.INTERN))})
        if not draft.complete:
            return None
        self.dispatch(RegistrationStarted(draft))
        try:
            await self.directory.connect()
        except DirectoryUnavailable as exc:
            self.dispatch(RegistrationFailed(init_error_message(exc)))
            return None
        created = await self.directory.create_profile(draft.as_fields())
        if created is None:
            self.dispatch(RegistrationFailed(REGISTRATION_REJECTED))
            return None
        self.dispatch(ProfileRegistered(created))
        return created

    # endregion

    # region Attendance
    async def toggle_attendance(self, requested: AttendanceType) -> bool:
        """Optimistically switch the selected user's status, rolling back on failure.

        Whether ``requested`` differs from the current status is not checked
        here; callers disable the redundant control (see ``can_toggle``).
        """

        profile = self._state.current_user
        if profile is None:
            return False

        attempt = ToggleAttempt.begin(profile, requested, self._clock())
        self.dispatch(ToggleStarted(attempt))

        success = await self.directory.append_log_and_update_status(profile, requested)
        if not success:
            self.dispatch(ToggleReverted(attempt, TOGGLE_FAILED))
            return False

        self.dispatch(ToggleConfirmed(attempt))
        logger.info("%s -> %s", profile.full_name, requested.value)
        await self.refresh_roster()
        return True

    # endregion

    # region AI
    async def generate_insight(self) -> Optional[str]:
        profile = self._state.current_user
        if profile is None:
            return None
        self.dispatch(AiRequested())
        records = to_analysis_records(self._state.logs)
        text = await self.ai.get_insight(profile, records, self._upcoming_plans(profile))
        self.dispatch(InsightReady(text))
        return text

    async def generate_script(self) -> Optional[str]:
        profile = self._state.current_user
        if profile is None:
            return None
        self.dispatch(AiRequested())
        records = to_analysis_records(self._state.logs)
        code = await self.ai.get_analysis_script(profile, records)
        self.dispatch(ScriptReady(code))
        return code

    def _upcoming_plans(self, profile: UserProfile) -> list[PlanEntry]:
        today = self._clock().date()
        return [plan for plan in self._state.plans if plan.user_id == profile.id and plan.date >= today]

    # endregion

    # region Calendar
    async def load_plans(self) -> AppState:
        month = self._state.calendar_month
        start, end = month_bounds(month)
        plans = await self.directory.list_plans(start, end)
        return self.dispatch(PlansLoaded(month, tuple(plans)))

    async def change_month(self, step: int) -> AppState:
        self.dispatch(MonthChanged(shift_month(self._state.calendar_month, step)))
        return await self.load_plans()

    async def save_plan(
        self,
        day: date,
        category: PlanCategory,
        *,
        user_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Optional[PlanEntry]:
        """Save a plan for ``user_id``, defaulting to the selected user, then the first one."""

        state = self._state
        if user_id:
            profile = state.find_user(user_id)
        else:
            profile = state.current_user or (state.users[0] if state.users else None)
        if profile is None:
            return None

        plan = await self.directory.create_plan(
            {
                "user_id": profile.id,
                "full_name": profile.full_name,
                "date": day,
                "category": category,
                "notes": notes,
            }
        )
        if plan is None:
            self.dispatch(PlanRejected(PLAN_REJECTED))
            return None
        self.dispatch(PlanSaved(plan))
        return plan

    # endregion


def build_service(settings: Settings) -> TrackerService:
    """Wire the configured backend and AI client into a service."""

    if settings.store_backend == "firestore":
        client = FirestoreClient(
            settings.firebase_project_id or "",
            settings.firebase_api_key or "",
            timeout=settings.http_timeout,
        )
        backend: Any = FirestoreBackend(client)
    else:
        backend = SQLiteBackend(Database(settings.database_path))

    directory = Directory(backend, profile_limit=settings.profile_limit, log_limit=settings.log_limit)
    gemini = (
        GeminiClient(settings.gemini_api_key, settings.gemini_model, timeout=settings.http_timeout * 2)
        if settings.gemini_api_key
        else None
    )
    if gemini is None:
        logger.warning("GEMINI_API_KEY is not set. AI texts will fall back to placeholders.")
    return TrackerService(directory, AITextService(gemini))


__all__ = [
    "TrackerService",
    "build_service",
    "init_error_message",
    "CONNECTION_ERROR",
    "PLAN_REJECTED",
    "REGISTRATION_REJECTED",
    "TOGGLE_FAILED",
]
