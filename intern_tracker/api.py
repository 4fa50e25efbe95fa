"""FastAPI application exposing the intern tracker views and actions."""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, Literal, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from .config import Settings, load_settings
from .models import AttendanceType, PlanCategory, Role
from .service import TrackerService, build_service
from .state import Tab
from .toggle import can_toggle
from .views import app_view, calendar_view, dashboard_view, plan_row, profile_summary, profile_view


class RegistrationRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    role: Role = Role.INTERN
    department: str = "Yazılım"
    email: Optional[str] = None
    phone: Optional[str] = None


class PlanRequest(BaseModel):
    date: dt.date
    category: PlanCategory = PlanCategory.OFFICE
    user_id: Optional[str] = None
    notes: Optional[str] = None


def create_app(settings: Optional[Settings] = None, service: Optional[TrackerService] = None) -> FastAPI:
    settings = settings or load_settings()
    service = service or build_service(settings)

    async def verify_api_key(x_api_key: Optional[str] = Header(None, alias="X-API-Key")) -> None:
        if settings.api_key and x_api_key != settings.api_key:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid api key")

    app = FastAPI(title="Intern Tracker API", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def startup_event() -> None:  # pragma: no cover - io bound
        await service.initialize()

    @app.on_event("shutdown")
    async def shutdown_event() -> None:  # pragma: no cover - io bound
        await service.close()

    def get_service() -> TrackerService:
        return service

    def require_user(svc: TrackerService) -> None:
        if svc.state.current_user is None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="no user selected")

    @app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/state", dependencies=[Depends(verify_api_key)])
    async def get_state(svc: TrackerService = Depends(get_service)) -> Dict[str, Any]:
        return app_view(svc.state)

    @app.post("/api/init", dependencies=[Depends(verify_api_key)])
    async def retry_init(svc: TrackerService = Depends(get_service)) -> Dict[str, Any]:
        return app_view(await svc.initialize())

    @app.post("/api/tabs/{tab}", dependencies=[Depends(verify_api_key)])
    async def select_tab(tab: Tab, svc: TrackerService = Depends(get_service)) -> Dict[str, Any]:
        return app_view(svc.select_tab(tab))

    @app.get("/api/users", dependencies=[Depends(verify_api_key)])
    async def list_users(svc: TrackerService = Depends(get_service)) -> Dict[str, Any]:
        return dashboard_view(svc.state)

    @app.post("/api/register/open", dependencies=[Depends(verify_api_key)])
    async def open_registration(svc: TrackerService = Depends(get_service)) -> Dict[str, Any]:
        return profile_view(svc.open_registration())

    @app.post("/api/register/cancel", dependencies=[Depends(verify_api_key)])
    async def cancel_registration(svc: TrackerService = Depends(get_service)) -> Dict[str, Any]:
        return profile_view(svc.cancel_registration())

    @app.post("/api/users", status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
    async def register(
        payload: RegistrationRequest,
        svc: TrackerService = Depends(get_service),
    ) -> Dict[str, Any]:
        created = await svc.register(payload.model_dump())
        if created is None:
            detail = svc.state.notices[-1] if svc.state.notices else "registration rejected"
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)
        return profile_summary(created)

    @app.get("/api/profile", dependencies=[Depends(verify_api_key)])
    async def get_profile(svc: TrackerService = Depends(get_service)) -> Dict[str, Any]:
        return profile_view(svc.state)

    @app.post("/api/session/{user_id}", dependencies=[Depends(verify_api_key)])
    async def select_user(user_id: str, svc: TrackerService = Depends(get_service)) -> Dict[str, Any]:
        if await svc.select_user(user_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="user not found")
        return profile_view(svc.state)

    @app.post("/api/attendance/{requested}", dependencies=[Depends(verify_api_key)])
    async def toggle_attendance(
        requested: AttendanceType,
        svc: TrackerService = Depends(get_service),
    ) -> Dict[str, Any]:
        require_user(svc)
        if not can_toggle(svc.state.current_user, requested, busy=svc.state.action_loading):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="action disabled")
        success = await svc.toggle_attendance(requested)
        return {"success": success, "notices": list(svc.state.notices), "view": profile_view(svc.state)}

    @app.post("/api/ai/{kind}", dependencies=[Depends(verify_api_key)])
    async def generate_ai(
        kind: Literal["insight", "script"],
        svc: TrackerService = Depends(get_service),
    ) -> Dict[str, Any]:
        require_user(svc)
        text = await (svc.generate_insight() if kind == "insight" else svc.generate_script())
        return {"kind": kind, "text": text}

    @app.get("/api/calendar", dependencies=[Depends(verify_api_key)])
    async def get_calendar(svc: TrackerService = Depends(get_service)) -> Dict[str, Any]:
        return calendar_view(svc.state)

    @app.post("/api/calendar/{step}", dependencies=[Depends(verify_api_key)])
    async def change_month(
        step: Literal["prev", "next"],
        svc: TrackerService = Depends(get_service),
    ) -> Dict[str, Any]:
        return calendar_view(await svc.change_month(-1 if step == "prev" else 1))

    @app.post("/api/plans", status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
    async def save_plan(payload: PlanRequest, svc: TrackerService = Depends(get_service)) -> Dict[str, Any]:
        if payload.user_id and svc.state.find_user(payload.user_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="user not found")
        if not payload.user_id and svc.state.current_user is None and not svc.state.users:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="no users registered")
        plan = await svc.save_plan(payload.date, payload.category, user_id=payload.user_id, notes=payload.notes)
        if plan is None:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="plan rejected")
        return plan_row(plan)

    @app.post("/api/notices/dismiss", dependencies=[Depends(verify_api_key)])
    async def dismiss_notices(svc: TrackerService = Depends(get_service)) -> Dict[str, Any]:
        return app_view(svc.dismiss_notices())

    return app


__all__ = ["create_app", "RegistrationRequest", "PlanRequest"]
