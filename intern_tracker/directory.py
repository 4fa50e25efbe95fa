"""Directory access: profiles, attendance logs and plans.

Every operation except :meth:`Directory.connect` swallows backend failures and
reports them as an empty list, ``None`` or ``False`` so nothing propagates to
the presentation layer.
"""

from __future__ import annotations

import logging
import random
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from .backends import DirectoryBackend, now_utc
from .exceptions import DirectoryUnavailable
from .firestore_client import FirestoreApiError, new_document_id
from .models import (
    AVATAR_COLORS,
    AttendanceLogEntry,
    AttendanceType,
    PlanCategory,
    PlanEntry,
    Role,
    UserProfile,
)

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_LIMIT = 50
DEFAULT_LOG_LIMIT = 20


class Directory:
    def __init__(
        self,
        backend: DirectoryBackend,
        *,
        profile_limit: int = DEFAULT_PROFILE_LIMIT,
        log_limit: int = DEFAULT_LOG_LIMIT,
        clock: Callable[[], datetime] = now_utc,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.backend = backend
        self.profile_limit = profile_limit
        self.log_limit = log_limit
        self._clock = clock
        self._rng = rng or random.Random()

    async def connect(self) -> None:
        """Sign in / open the store. Raises :class:`DirectoryUnavailable`."""

        try:
            await self.backend.connect()
        except FirestoreApiError as exc:
            raise DirectoryUnavailable(str(exc), exc.code) from exc
        except Exception as exc:  # noqa: BLE001
            raise DirectoryUnavailable(str(exc)) from exc

    async def close(self) -> None:
        await self.backend.close()

    async def list_profiles(self) -> List[UserProfile]:
        try:
            return await self.backend.fetch_profiles(self.profile_limit)
        except Exception:  # noqa: BLE001
            logger.exception("Error fetching users")
            return []

    async def create_profile(self, fields: Dict[str, Any]) -> Optional[UserProfile]:
        """Register a profile; the store assigns id, status and colour."""

        try:
            profile = UserProfile(
                id=new_document_id(),
                first_name=str(fields["first_name"]).strip(),
                last_name=str(fields["last_name"]).strip(),
                role=Role(fields.get("role", Role.INTERN)),
                department=str(fields.get("department") or ""),
                email=fields.get("email") or None,
                phone=fields.get("phone") or None,
                avatar_color=f"bg-{self._rng.choice(AVATAR_COLORS)}-600",
                current_status=AttendanceType.CHECKED_OUT,
                created_at=self._clock(),
            )
            await self.backend.insert_profile(profile)
        except Exception:  # noqa: BLE001
            logger.exception("Error creating user")
            return None
        logger.info("Registered %s (%s)", profile.full_name, profile.id)
        return profile

    async def append_log_and_update_status(self, profile: UserProfile, type: AttendanceType) -> bool:
        """Append an audit entry, then update the denormalized status.

        The two writes are not atomic: a failure in the second leaves the log
        entry in place.
        """

        try:
            await self.backend.insert_log(profile.id, profile.full_name, type)
            await self.backend.update_status(profile.id, type)
        except Exception:  # noqa: BLE001
            logger.exception("Error logging %s for %s", type.value, profile.id)
            return False
        return True

    async def list_recent_logs(self, user_id: str) -> List[AttendanceLogEntry]:
        try:
            return await self.backend.fetch_logs(user_id, self.log_limit)
        except Exception:  # noqa: BLE001
            logger.exception("Error fetching logs")
            return []

    async def list_plans(self, start: date, end: date) -> List[PlanEntry]:
        try:
            return await self.backend.fetch_plans(start, end)
        except Exception:  # noqa: BLE001
            logger.exception("Error fetching plans")
            return []

    async def create_plan(self, fields: Dict[str, Any]) -> Optional[PlanEntry]:
        try:
            plan = PlanEntry(
                id=new_document_id(),
                user_id=fields["user_id"],
                full_name=fields["full_name"],
                date=fields["date"],
                category=PlanCategory(fields.get("category", PlanCategory.OFFICE)),
                notes=fields.get("notes") or None,
            )
            await self.backend.insert_plan(plan)
        except Exception:  # noqa: BLE001
            logger.exception("Error creating plan")
            return None
        return plan


__all__ = ["Directory", "DEFAULT_PROFILE_LIMIT", "DEFAULT_LOG_LIMIT"]
