"""Optimistic attendance toggle.

A toggle attempt starts ``PENDING`` with the requested status already shown,
then moves exactly once to ``CONFIRMED`` (the store accepted both writes) or
``REVERTED`` (the store rejected; the previous status is shown again).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from .exceptions import ToggleStateError
from .models import AttendanceLogEntry, AttendanceType, UserProfile


class TogglePhase(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REVERTED = "reverted"


@dataclass(frozen=True, slots=True)
class ToggleAttempt:
    user_id: str
    full_name: str
    requested: AttendanceType
    previous: AttendanceType
    started_at: datetime
    phase: TogglePhase = TogglePhase.PENDING

    @classmethod
    def begin(cls, profile: UserProfile, requested: AttendanceType, now: datetime) -> "ToggleAttempt":
        return cls(
            user_id=profile.id,
            full_name=profile.full_name,
            requested=requested,
            previous=profile.current_status,
            started_at=now,
        )

    @property
    def shown_status(self) -> AttendanceType:
        """Status the interface should display for this attempt."""

        if self.phase is TogglePhase.REVERTED:
            return self.previous
        return self.requested

    def confirm(self) -> "ToggleAttempt":
        return self._move(TogglePhase.CONFIRMED)

    def revert(self) -> "ToggleAttempt":
        return self._move(TogglePhase.REVERTED)

    def _move(self, phase: TogglePhase) -> "ToggleAttempt":
        if self.phase is not TogglePhase.PENDING:
            raise ToggleStateError(f"cannot move toggle from {self.phase.value} to {phase.value}")
        return replace(self, phase=phase)

    def apply(self, profile: UserProfile) -> UserProfile:
        """Return ``profile`` with the status this attempt shows."""

        if profile.id != self.user_id:
            return profile
        return replace(profile, current_status=self.shown_status)

    def local_entry(self) -> AttendanceLogEntry:
        """Client-side log entry prepended after a confirmed toggle."""

        stamp = int(self.started_at.timestamp() * 1000)
        return AttendanceLogEntry(
            id=f"temp-{stamp}",
            user_id=self.user_id,
            full_name=self.full_name,
            type=self.requested,
            timestamp=self.started_at,
        )


def can_toggle(profile: UserProfile | None, requested: AttendanceType, *, busy: bool = False) -> bool:
    """Whether the control for ``requested`` is enabled.

    The check-in control is disabled while checked in, the check-out control
    while not checked in, and both while an action is in flight.
    """

    if profile is None or busy:
        return False
    if requested is AttendanceType.CHECKED_IN:
        return profile.current_status is not AttendanceType.CHECKED_IN
    return profile.current_status is AttendanceType.CHECKED_IN


__all__ = ["TogglePhase", "ToggleAttempt", "can_toggle"]
