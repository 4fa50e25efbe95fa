"""Application state and the reducer that applies actions to it.

State is immutable; every change goes through :func:`reduce` with one of the
action dataclasses below, which keeps view state free of ambient mutation and
lets tests replay action sequences deterministically.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from .models import AttendanceLogEntry, AttendanceType, PlanEntry, Role, UserProfile
from .toggle import ToggleAttempt


class Tab(str, Enum):
    DASHBOARD = "dashboard"
    CALENDAR = "calendar"
    PROFILE = "profile"


class SubView(str, Enum):
    NONE = "none"
    REGISTER = "register"


@dataclass(frozen=True, slots=True)
class RegistrationDraft:
    first_name: str = ""
    last_name: str = ""
    role: Role = Role.INTERN
    department: str = "Yazılım"
    email: Optional[str] = None
    phone: Optional[str] = None

    @property
    def complete(self) -> bool:
        return bool(self.first_name.strip() and self.last_name.strip())

    def as_fields(self) -> Dict[str, Any]:
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
            "department": self.department,
            "email": self.email,
            "phone": self.phone,
        }


@dataclass(frozen=True, slots=True)
class AppState:
    calendar_month: date
    main_tab: Tab = Tab.DASHBOARD
    sub_view: SubView = SubView.NONE
    users: Tuple[UserProfile, ...] = ()
    current_user: Optional[UserProfile] = None
    logs: Tuple[AttendanceLogEntry, ...] = ()
    loading: bool = True
    action_loading: bool = False
    ai_loading: bool = False
    calendar_loading: bool = False
    error_message: Optional[str] = None
    notices: Tuple[str, ...] = ()
    draft: RegistrationDraft = field(default_factory=RegistrationDraft)
    ai_insight: str = ""
    python_code: str = ""
    plans: Tuple[PlanEntry, ...] = ()
    last_toggle: Optional[ToggleAttempt] = None

    @property
    def inside_count(self) -> int:
        return sum(1 for user in self.users if user.current_status is AttendanceType.CHECKED_IN)

    def find_user(self, user_id: str) -> Optional[UserProfile]:
        for user in self.users:
            if user.id == user_id:
                return user
        if self.current_user is not None and self.current_user.id == user_id:
            return self.current_user
        return None


def initial_state(today: date) -> AppState:
    return AppState(calendar_month=today.replace(day=1))


# region Actions
@dataclass(frozen=True, slots=True)
class InitStarted:
    pass


@dataclass(frozen=True, slots=True)
class InitFailed:
    message: str


@dataclass(frozen=True, slots=True)
class UsersLoaded:
    users: Tuple[UserProfile, ...]


@dataclass(frozen=True, slots=True)
class TabSelected:
    tab: Tab


@dataclass(frozen=True, slots=True)
class RegistrationOpened:
    pass


@dataclass(frozen=True, slots=True)
class RegistrationCancelled:
    pass


@dataclass(frozen=True, slots=True)
class RegistrationStarted:
    draft: RegistrationDraft


@dataclass(frozen=True, slots=True)
class ProfileRegistered:
    profile: UserProfile


@dataclass(frozen=True, slots=True)
class RegistrationFailed:
    message: str


@dataclass(frozen=True, slots=True)
class UserSelected:
    profile: UserProfile


@dataclass(frozen=True, slots=True)
class LogsLoaded:
    user_id: str
    logs: Tuple[AttendanceLogEntry, ...]


@dataclass(frozen=True, slots=True)
class ToggleStarted:
    attempt: ToggleAttempt


@dataclass(frozen=True, slots=True)
class ToggleConfirmed:
    attempt: ToggleAttempt


@dataclass(frozen=True, slots=True)
class ToggleReverted:
    attempt: ToggleAttempt
    message: str


@dataclass(frozen=True, slots=True)
class AiRequested:
    pass


@dataclass(frozen=True, slots=True)
class InsightReady:
    text: str


@dataclass(frozen=True, slots=True)
class ScriptReady:
    text: str


@dataclass(frozen=True, slots=True)
class MonthChanged:
    month: date


@dataclass(frozen=True, slots=True)
class PlansLoaded:
    month: date
    plans: Tuple[PlanEntry, ...]


@dataclass(frozen=True, slots=True)
class PlanSaved:
    plan: PlanEntry


@dataclass(frozen=True, slots=True)
class PlanRejected:
    message: str


@dataclass(frozen=True, slots=True)
class NoticesDismissed:
    pass


# endregion

Handler = Callable[[AppState, Any], AppState]
_HANDLERS: Dict[type, Handler] = {}


def _handles(action_type: type) -> Callable[[Handler], Handler]:
    def register(func: Handler) -> Handler:
        _HANDLERS[action_type] = func
        return func

    return register


def reduce(state: AppState, action: object) -> AppState:
    try:
        handler = _HANDLERS[type(action)]
    except KeyError:
        raise TypeError(f"unknown action {type(action).__name__}") from None
    return handler(state, action)


@_handles(InitStarted)
def _init_started(state: AppState, action: InitStarted) -> AppState:
    return replace(state, loading=True, error_message=None)


@_handles(InitFailed)
def _init_failed(state: AppState, action: InitFailed) -> AppState:
    return replace(state, loading=False, error_message=action.message)


@_handles(UsersLoaded)
def _users_loaded(state: AppState, action: UsersLoaded) -> AppState:
    return replace(state, users=action.users, loading=False)


@_handles(TabSelected)
def _tab_selected(state: AppState, action: TabSelected) -> AppState:
    return replace(state, main_tab=action.tab)


@_handles(RegistrationOpened)
def _registration_opened(state: AppState, action: RegistrationOpened) -> AppState:
    return replace(state, main_tab=Tab.PROFILE, sub_view=SubView.REGISTER)


@_handles(RegistrationCancelled)
def _registration_cancelled(state: AppState, action: RegistrationCancelled) -> AppState:
    return replace(state, sub_view=SubView.NONE)


@_handles(RegistrationStarted)
def _registration_started(state: AppState, action: RegistrationStarted) -> AppState:
    return replace(state, draft=action.draft, action_loading=True, error_message=None)


@_handles(ProfileRegistered)
def _profile_registered(state: AppState, action: ProfileRegistered) -> AppState:
    return replace(
        state,
        users=state.users + (action.profile,),
        current_user=action.profile,
        logs=(),
        ai_insight="",
        python_code="",
        sub_view=SubView.NONE,
        draft=RegistrationDraft(),
        action_loading=False,
    )


@_handles(RegistrationFailed)
def _registration_failed(state: AppState, action: RegistrationFailed) -> AppState:
    return replace(state, action_loading=False, notices=state.notices + (action.message,))


@_handles(UserSelected)
def _user_selected(state: AppState, action: UserSelected) -> AppState:
    return replace(
        state,
        current_user=action.profile,
        logs=(),
        ai_insight="",
        python_code="",
        main_tab=Tab.PROFILE,
        sub_view=SubView.NONE,
    )


@_handles(LogsLoaded)
def _logs_loaded(state: AppState, action: LogsLoaded) -> AppState:
    if state.current_user is None or state.current_user.id != action.user_id:
        return state
    return replace(state, logs=action.logs)


@_handles(ToggleStarted)
def _toggle_started(state: AppState, action: ToggleStarted) -> AppState:
    current = action.attempt.apply(state.current_user) if state.current_user else None
    return replace(state, current_user=current, action_loading=True, last_toggle=action.attempt)


@_handles(ToggleConfirmed)
def _toggle_confirmed(state: AppState, action: ToggleConfirmed) -> AppState:
    attempt = action.attempt.confirm()
    logs = state.logs
    current = state.current_user
    if current is not None and current.id == attempt.user_id:
        logs = (attempt.local_entry(),) + logs
    return replace(state, logs=logs, action_loading=False, last_toggle=attempt)


@_handles(ToggleReverted)
def _toggle_reverted(state: AppState, action: ToggleReverted) -> AppState:
    attempt = action.attempt.revert()
    current = attempt.apply(state.current_user) if state.current_user else None
    return replace(
        state,
        current_user=current,
        action_loading=False,
        last_toggle=attempt,
        notices=state.notices + (action.message,),
    )


@_handles(AiRequested)
def _ai_requested(state: AppState, action: AiRequested) -> AppState:
    return replace(state, ai_loading=True)


@_handles(InsightReady)
def _insight_ready(state: AppState, action: InsightReady) -> AppState:
    return replace(state, ai_insight=action.text, ai_loading=False)


@_handles(ScriptReady)
def _script_ready(state: AppState, action: ScriptReady) -> AppState:
    return replace(state, python_code=action.text, ai_loading=False)


@_handles(MonthChanged)
def _month_changed(state: AppState, action: MonthChanged) -> AppState:
    return replace(state, calendar_month=action.month.replace(day=1), calendar_loading=True)


@_handles(PlansLoaded)
def _plans_loaded(state: AppState, action: PlansLoaded) -> AppState:
    if action.month.replace(day=1) != state.calendar_month:
        return state
    return replace(state, plans=action.plans, calendar_loading=False)


@_handles(PlanSaved)
def _plan_saved(state: AppState, action: PlanSaved) -> AppState:
    if action.plan.date.replace(day=1) != state.calendar_month:
        return state
    plans = tuple(sorted(state.plans + (action.plan,), key=lambda p: (p.date, p.full_name)))
    return replace(state, plans=plans)


@_handles(PlanRejected)
def _plan_rejected(state: AppState, action: PlanRejected) -> AppState:
    return replace(state, notices=state.notices + (action.message,))


@_handles(NoticesDismissed)
def _notices_dismissed(state: AppState, action: NoticesDismissed) -> AppState:
    return replace(state, notices=())


__all__ = [
    "AppState",
    "RegistrationDraft",
    "SubView",
    "Tab",
    "initial_state",
    "reduce",
]
