"""MCP server exposing intern tracker tools."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

from mcp.server.fastmcp import FastMCP

from .config import load_settings
from .models import AttendanceType
from .service import TrackerService, build_service
from .toggle import can_toggle
from .views import dashboard_view, log_row, profile_summary

mcp = FastMCP("intern-tracker")

_settings = load_settings()
_service: TrackerService = build_service(_settings)
_lock = asyncio.Lock()
_ready = False


async def _ensure_ready() -> None:
    global _ready
    if not _ready:
        state = await _service.initialize()
        if state.error_message:
            raise RuntimeError(state.error_message)
        _ready = True


async def _toggle(user_id: str, requested: AttendanceType) -> Dict[str, Any]:
    async with _lock:
        await _ensure_ready()
        profile = await _service.select_user(user_id)
        if profile is None:
            raise ValueError("User not found")
        if not can_toggle(profile, requested):
            return {"success": False, "reason": f"already {requested.value}", "user": profile_summary(profile)}
        success = await _service.toggle_attendance(requested)
        current = _service.state.current_user or profile
        return {"success": success, "user": profile_summary(current)}


@mcp.tool()
async def get_roster() -> dict:
    """Return everyone with their current status and how many are inside."""

    async with _lock:
        await _ensure_ready()
        await _service.refresh_roster()
        return dashboard_view(_service.state)


@mcp.tool()
async def get_user_logs(user_id: str) -> List[dict]:
    """Return the most recent attendance log entries of a user."""

    async with _lock:
        await _ensure_ready()
        if await _service.select_user(user_id) is None:
            raise ValueError("User not found")
        return [log_row(entry) for entry in _service.state.logs]


@mcp.tool()
async def check_in(user_id: str) -> dict:
    """Check a user in."""

    return await _toggle(user_id, AttendanceType.CHECKED_IN)


@mcp.tool()
async def check_out(user_id: str) -> dict:
    """Check a user out."""

    return await _toggle(user_id, AttendanceType.CHECKED_OUT)


@mcp.tool()
async def get_insight(user_id: str) -> dict:
    """Return an AI-written evaluation of the user's attendance."""

    async with _lock:
        await _ensure_ready()
        if await _service.select_user(user_id) is None:
            raise ValueError("User not found")
        return {"user_id": user_id, "insight": await _service.generate_insight()}


__all__ = [
    "mcp",
    "get_roster",
    "get_user_logs",
    "check_in",
    "check_out",
    "get_insight",
]
