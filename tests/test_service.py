from __future__ import annotations

import asyncio
from datetime import date

from intern_tracker.exceptions import DirectoryUnavailable
from intern_tracker.insights import INSIGHT_NO_KEY, SCRIPT_NO_KEY
from intern_tracker.models import AttendanceType, PlanCategory, Role
from intern_tracker.service import (
    PLAN_REJECTED,
    REGISTRATION_REJECTED,
    TOGGLE_FAILED,
    init_error_message,
)
from intern_tracker.state import SubView, Tab
from intern_tracker.toggle import TogglePhase, can_toggle

AYSE = {"first_name": "Ayşe", "last_name": "Yıldız", "role": "Stajyer", "department": "Yazılım"}


def test_scenario_register_check_in_then_failed_check_out(service, backend):
    async def scenario():
        await service.initialize()
        profile = await service.register(AYSE)
        assert profile is not None
        assert service.state.current_user.current_status is AttendanceType.CHECKED_OUT

        assert await service.toggle_attendance(AttendanceType.CHECKED_IN)
        state = service.state
        assert state.current_user.current_status is AttendanceType.CHECKED_IN
        assert state.logs[0].type is AttendanceType.CHECKED_IN

        assert not can_toggle(state.current_user, AttendanceType.CHECKED_IN, busy=state.action_loading)

        backend.fail.add("insert_log")
        assert not await service.toggle_attendance(AttendanceType.CHECKED_OUT)
        assert service.state.current_user.current_status is AttendanceType.CHECKED_IN
        assert service.state.notices[-1] == TOGGLE_FAILED

    asyncio.run(scenario())


def test_status_follows_last_successful_toggle(service, backend, clock):
    async def scenario():
        await service.initialize()
        await service.register(AYSE)
        sequence = [
            (AttendanceType.CHECKED_IN, True),
            (AttendanceType.CHECKED_OUT, False),
            (AttendanceType.CHECKED_OUT, True),
            (AttendanceType.CHECKED_IN, False),
        ]
        for requested, succeeds in sequence:
            clock.advance(minutes=30)
            backend.fail = set() if succeeds else {"update_status"}
            assert await service.toggle_attendance(requested) is succeeds
        return service.state

    state = asyncio.run(scenario())
    assert state.current_user.current_status is AttendanceType.CHECKED_OUT
    assert state.last_toggle.phase is TogglePhase.REVERTED


def test_optimistic_status_is_visible_while_store_call_is_in_flight(service, backend):
    seen = []

    async def scenario():
        await service.initialize()
        await service.register(AYSE)
        original = backend.insert_log

        async def observing_insert_log(*args):
            seen.append((service.state.current_user.current_status, service.state.action_loading))
            return await original(*args)

        backend.insert_log = observing_insert_log
        await service.toggle_attendance(AttendanceType.CHECKED_IN)

    asyncio.run(scenario())
    assert seen == [(AttendanceType.CHECKED_IN, True)]
    assert service.state.action_loading is False


def test_success_prepends_exactly_one_entry_and_refreshes_roster(service, backend):
    async def scenario():
        await service.initialize()
        profile = await service.register(AYSE)
        await service.select_user(profile.id)
        before = service.state.logs
        await service.toggle_attendance(AttendanceType.CHECKED_IN)
        return before, service.state

    before, state = asyncio.run(scenario())
    assert len(state.logs) == len(before) + 1
    assert state.logs[0].id.startswith("temp-")
    assert state.logs[0].type is AttendanceType.CHECKED_IN
    assert state.logs[1:] == before
    assert state.inside_count == 1
    assert backend.calls[-1] == "fetch_profiles"


def test_failure_rolls_back_without_log_or_refresh(service, backend):
    async def scenario():
        await service.initialize()
        await service.register(AYSE)
        backend.fail.add("update_status")
        calls_before = len(backend.calls)
        ok = await service.toggle_attendance(AttendanceType.CHECKED_IN)
        return ok, backend.calls[calls_before:]

    ok, calls = asyncio.run(scenario())
    assert ok is False
    assert service.state.current_user.current_status is AttendanceType.CHECKED_OUT
    assert service.state.logs == ()
    assert "fetch_profiles" not in calls
    # the audit entry was written before the status update failed
    assert [entry.type for entry in backend.logs] == [AttendanceType.CHECKED_IN]


def test_controller_does_not_block_redundant_toggle(service, backend):
    async def scenario():
        await service.initialize()
        await service.register(AYSE)
        await service.toggle_attendance(AttendanceType.CHECKED_IN)
        return await service.toggle_attendance(AttendanceType.CHECKED_IN)

    assert asyncio.run(scenario()) is True
    assert len(backend.logs) == 2


def test_toggle_without_selected_user_is_noop(service, backend):
    assert asyncio.run(service.toggle_attendance(AttendanceType.CHECKED_IN)) is False
    assert backend.calls == []


def test_registration_round_trip(service):
    async def scenario():
        await service.initialize()
        created = await service.register({**AYSE, "role": Role.ASSOCIATE_ENGINEER, "department": "Test"})
        await service.refresh_roster()
        return created, service.state.users

    created, users = asyncio.run(scenario())
    fetched = next(user for user in users if user.id == created.id)
    assert (fetched.first_name, fetched.last_name) == ("Ayşe", "Yıldız")
    assert fetched.role is Role.ASSOCIATE_ENGINEER
    assert fetched.department == "Test"
    assert fetched.current_status is AttendanceType.CHECKED_OUT
    assert fetched.avatar_color.startswith("bg-") and fetched.avatar_color.endswith("-600")


def test_registration_selects_profile_and_resets_form(service):
    async def scenario():
        await service.initialize()
        service.open_registration()
        assert service.state.sub_view is SubView.REGISTER
        return await service.register(AYSE)

    created = asyncio.run(scenario())
    state = service.state
    assert state.current_user == created
    assert state.sub_view is SubView.NONE
    assert state.draft.first_name == ""
    assert state.draft.department == "Yazılım"
    assert state.users[-1] == created


def test_incomplete_registration_is_ignored(service, backend):
    result = asyncio.run(service.register({"first_name": "Ayşe", "last_name": "  "}))

    assert result is None
    assert "insert_profile" not in backend.calls
    assert service.state.action_loading is False


def test_rejected_registration_surfaces_notice(service, backend):
    backend.fail.add("insert_profile")

    result = asyncio.run(service.register(AYSE))

    assert result is None
    assert service.state.notices == (REGISTRATION_REJECTED,)
    assert service.state.current_user is None
    assert service.state.action_loading is False


def test_initialization_failure_sets_banner_and_retry_clears_it(service, backend):
    backend.fail.add("connect")
    state = asyncio.run(service.initialize())
    assert state.error_message == "Hata: connect rejected"
    assert state.loading is False

    backend.fail.clear()
    state = asyncio.run(service.initialize())
    assert state.error_message is None
    assert state.loading is False


def test_init_error_messages():
    assert init_error_message(DirectoryUnavailable("x", "auth/operation-not-allowed")).startswith("HATA: Firebase")
    assert init_error_message(DirectoryUnavailable("x", "permission-denied")) == "HATA: Firestore izin hatası."
    assert init_error_message(DirectoryUnavailable("")) == "Bağlantı hatası oluştu."


def test_listing_failure_fails_open(service, backend):
    backend.fail.add("fetch_profiles")

    state = asyncio.run(service.initialize())

    assert state.users == ()
    assert state.error_message is None


def test_select_user_loads_logs_and_switches_tab(service, backend):
    async def scenario():
        await service.initialize()
        created = await service.register(AYSE)
        await service.toggle_attendance(AttendanceType.CHECKED_IN)
        service.select_tab(Tab.DASHBOARD)
        return await service.select_user(created.id)

    profile = asyncio.run(scenario())
    state = service.state
    assert profile is not None
    assert state.main_tab is Tab.PROFILE
    assert [entry.id for entry in state.logs] == ["log-1"]


def test_select_unknown_user_returns_none(service):
    assert asyncio.run(service.select_user("missing")) is None


def test_ai_texts_fall_back_without_credentials(service):
    async def scenario():
        await service.initialize()
        await service.register(AYSE)
        return await service.generate_insight(), await service.generate_script()

    insight, script = asyncio.run(scenario())
    assert insight == INSIGHT_NO_KEY
    assert script == SCRIPT_NO_KEY
    assert service.state.ai_insight == INSIGHT_NO_KEY
    assert service.state.python_code == SCRIPT_NO_KEY
    assert service.state.ai_loading is False


def test_save_plan_defaults_to_selected_user(service):
    async def scenario():
        await service.initialize()
        await service.register(AYSE)
        return await service.save_plan(date(2026, 10, 21), PlanCategory.SCHOOL)

    plan = asyncio.run(scenario())
    assert plan.full_name == "Ayşe Yıldız"
    assert plan.category is PlanCategory.SCHOOL
    assert service.state.plans == (plan,)


def test_save_plan_outside_visible_month_is_stored_but_not_shown(service, backend):
    async def scenario():
        await service.initialize()
        await service.register(AYSE)
        plan = await service.save_plan(date(2026, 11, 2), PlanCategory.OFFICE)
        assert service.state.plans == ()
        await service.change_month(1)
        return plan

    plan = asyncio.run(scenario())
    assert service.state.calendar_month == date(2026, 11, 1)
    assert service.state.plans == (plan,)


def test_rejected_plan_surfaces_notice(service, backend):
    async def scenario():
        await service.initialize()
        await service.register(AYSE)
        backend.fail.add("insert_plan")
        return await service.save_plan(date(2026, 10, 21), PlanCategory.LEAVE)

    assert asyncio.run(scenario()) is None
    assert service.state.notices[-1] == PLAN_REJECTED


def test_save_plan_without_users_is_noop(service):
    asyncio.run(service.initialize())

    assert asyncio.run(service.save_plan(date(2026, 10, 21), PlanCategory.OFFICE)) is None


def test_change_month_wraps_year(service):
    asyncio.run(service.initialize())

    for _ in range(3):
        asyncio.run(service.change_month(1))

    assert service.state.calendar_month == date(2027, 1, 1)
    assert service.state.calendar_loading is False
