"""Document store backends used by the directory.

Backends raise whatever their transport raises; converting failures into
empty results, ``None`` or ``False`` is the job of :class:`Directory`.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol, TypeVar

from .db import Database, Row
from .firestore_client import (
    SERVER_TIMESTAMP,
    FirestoreClient,
    decode_fields,
    document_id,
    encode_fields,
    new_document_id,
)
from .models import AttendanceLogEntry, AttendanceType, PlanCategory, PlanEntry, Role, UserProfile

USERS = "users"
ATTENDANCE_LOGS = "attendance_logs"
PLANS = "plans"

# Documents written by the first browser client stored the Turkish labels.
_LEGACY_STATUS = {"Giriş": AttendanceType.CHECKED_IN, "Çıkış": AttendanceType.CHECKED_OUT}

logger = logging.getLogger(__name__)

T = TypeVar("T")


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_status(value: Optional[str]) -> AttendanceType:
    if value in _LEGACY_STATUS:
        return _LEGACY_STATUS[value]
    try:
        return AttendanceType(value)
    except ValueError:
        return AttendanceType.CHECKED_OUT


def parse_role(value: Optional[str], doc_id: str = "") -> Role:
    if value is None:
        return Role.INTERN
    try:
        return Role(value)
    except ValueError:
        logger.warning("Unknown role %r on user %s, reading it as %s", value, doc_id, Role.INTERN.value)
        return Role.INTERN


def parse_category(value: Optional[str], doc_id: str = "") -> PlanCategory:
    if value is None:
        return PlanCategory.OFFICE
    try:
        return PlanCategory(value)
    except ValueError:
        logger.warning(
            "Unknown plan category %r on plan %s, reading it as %s", value, doc_id, PlanCategory.OFFICE.value
        )
        return PlanCategory.OFFICE


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


class DirectoryBackend(Protocol):
    async def connect(self) -> None: ...

    async def close(self) -> None: ...

    async def fetch_profiles(self, limit: int) -> List[UserProfile]: ...

    async def insert_profile(self, profile: UserProfile) -> None: ...

    async def insert_log(self, user_id: str, full_name: str, type: AttendanceType) -> str: ...

    async def update_status(self, user_id: str, status: AttendanceType) -> None: ...

    async def fetch_logs(self, user_id: str, limit: int) -> List[AttendanceLogEntry]: ...

    async def fetch_plans(self, start: date, end: date) -> List[PlanEntry]: ...

    async def insert_plan(self, plan: PlanEntry) -> None: ...


# region SQLite
class SQLiteBackend:
    """Local backend on top of :class:`Database`; timestamps come from ``clock``."""

    def __init__(self, database: Database, *, clock: Callable[[], datetime] = now_utc) -> None:
        self.database = database
        self._clock = clock

    async def connect(self) -> None:
        with self.database.connect() as conn:
            conn.execute("SELECT 1")

    async def close(self) -> None:
        return None

    async def fetch_profiles(self, limit: int) -> List[UserProfile]:
        return [_profile_from_row(row) for row in self.database.get_users(limit)]

    async def insert_profile(self, profile: UserProfile) -> None:
        created_at = profile.created_at or self._clock()
        self.database.insert_user(
            {
                "id": profile.id,
                "first_name": profile.first_name,
                "last_name": profile.last_name,
                "role": profile.role.value,
                "department": profile.department,
                "email": profile.email,
                "phone": profile.phone,
                "avatar_color": profile.avatar_color,
                "current_status": profile.current_status.value,
                "last_seen": profile.last_seen.isoformat() if profile.last_seen else None,
                "created_at": created_at.isoformat(),
            }
        )

    async def insert_log(self, user_id: str, full_name: str, type: AttendanceType) -> str:
        log_id = new_document_id()
        self.database.insert_log(
            {
                "id": log_id,
                "user_id": user_id,
                "full_name": full_name,
                "type": type.value,
                "timestamp": self._clock().isoformat(),
            }
        )
        return log_id

    async def update_status(self, user_id: str, status: AttendanceType) -> None:
        if not self.database.update_user_status(user_id, status.value, self._clock().isoformat()):
            raise LookupError(f"user {user_id} not found")

    async def fetch_logs(self, user_id: str, limit: int) -> List[AttendanceLogEntry]:
        return [_log_from_row(row) for row in self.database.get_logs_for_user(user_id, limit)]

    async def fetch_plans(self, start: date, end: date) -> List[PlanEntry]:
        return [_plan_from_row(row) for row in self.database.get_plans_between(start, end)]

    async def insert_plan(self, plan: PlanEntry) -> None:
        self.database.insert_plan(
            {
                "id": plan.id,
                "user_id": plan.user_id,
                "full_name": plan.full_name,
                "date": plan.date.isoformat(),
                "category": plan.category.value,
                "notes": plan.notes,
            }
        )


def _profile_from_row(row: Row) -> UserProfile:
    return UserProfile(
        id=row["id"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        role=parse_role(row["role"], row["id"]),
        department=row["department"],
        email=row["email"],
        phone=row["phone"],
        avatar_color=row["avatar_color"],
        current_status=parse_status(row["current_status"]),
        last_seen=_parse_datetime(row["last_seen"]),
        created_at=_parse_datetime(row["created_at"]),
    )


def _log_from_row(row: Row) -> AttendanceLogEntry:
    return AttendanceLogEntry(
        id=row["id"],
        user_id=row["user_id"],
        full_name=row["full_name"],
        type=parse_status(row["type"]),
        timestamp=datetime.fromisoformat(row["timestamp"]),
    )


def _plan_from_row(row: Row) -> PlanEntry:
    return PlanEntry(
        id=row["id"],
        user_id=row["user_id"],
        full_name=row["full_name"],
        date=date.fromisoformat(row["date"]),
        category=parse_category(row["category"], row["id"]),
        notes=row["notes"],
    )


# endregion


# region Firestore
class FirestoreBackend:
    """Backend talking to Cloud Firestore with server-side timestamps."""

    def __init__(self, client: FirestoreClient) -> None:
        self.client = client

    async def connect(self) -> None:
        await self.client.ensure_signed_in()

    async def close(self) -> None:
        await self.client.close()

    async def fetch_profiles(self, limit: int) -> List[UserProfile]:
        documents = await self.client.run_query(
            {
                "from": [{"collectionId": USERS}],
                "orderBy": [{"field": {"fieldPath": "firstName"}, "direction": "ASCENDING"}],
                "limit": limit,
            }
        )
        return _decode_all(documents, _profile_from_document)

    async def insert_profile(self, profile: UserProfile) -> None:
        fields = {
            "firstName": profile.first_name,
            "lastName": profile.last_name,
            "role": profile.role,
            "department": profile.department,
            "currentStatus": profile.current_status,
            "avatarColor": profile.avatar_color,
        }
        if profile.email:
            fields["email"] = profile.email
        if profile.phone:
            fields["phone"] = profile.phone
        await self.client.commit([self._create_write(USERS, profile.id, fields, "createdAt")])

    async def insert_log(self, user_id: str, full_name: str, type: AttendanceType) -> str:
        log_id = new_document_id()
        fields = {"userId": user_id, "fullName": full_name, "type": type}
        await self.client.commit([self._create_write(ATTENDANCE_LOGS, log_id, fields, "timestamp")])
        return log_id

    async def update_status(self, user_id: str, status: AttendanceType) -> None:
        await self.client.commit(
            [
                {
                    "update": {
                        "name": self.client.document_name(USERS, user_id),
                        "fields": encode_fields({"currentStatus": status}),
                    },
                    "updateMask": {"fieldPaths": ["currentStatus"]},
                    "updateTransforms": [{"fieldPath": "lastSeen", "setToServerValue": SERVER_TIMESTAMP}],
                    "currentDocument": {"exists": True},
                }
            ]
        )

    async def fetch_logs(self, user_id: str, limit: int) -> List[AttendanceLogEntry]:
        documents = await self.client.run_query(
            {
                "from": [{"collectionId": ATTENDANCE_LOGS}],
                "where": _field_filter("userId", "EQUAL", user_id),
                "orderBy": [{"field": {"fieldPath": "timestamp"}, "direction": "DESCENDING"}],
                "limit": limit,
            }
        )
        return _decode_all(documents, _log_from_document)

    async def fetch_plans(self, start: date, end: date) -> List[PlanEntry]:
        documents = await self.client.run_query(
            {
                "from": [{"collectionId": PLANS}],
                "where": {
                    "compositeFilter": {
                        "op": "AND",
                        "filters": [
                            _field_filter("date", "GREATER_THAN_OR_EQUAL", start.isoformat()),
                            _field_filter("date", "LESS_THAN_OR_EQUAL", end.isoformat()),
                        ],
                    }
                },
                "orderBy": [{"field": {"fieldPath": "date"}, "direction": "ASCENDING"}],
            }
        )
        return _decode_all(documents, _plan_from_document)

    async def insert_plan(self, plan: PlanEntry) -> None:
        fields = {
            "userId": plan.user_id,
            "fullName": plan.full_name,
            "date": plan.date,
            "category": plan.category,
            "notes": plan.notes,
        }
        await self.client.commit([self._create_write(PLANS, plan.id, fields, None)])

    def _create_write(
        self, collection: str, doc_id: str, fields: Dict[str, Any], server_time_field: Optional[str]
    ) -> Dict[str, Any]:
        write: Dict[str, Any] = {
            "update": {"name": self.client.document_name(collection, doc_id), "fields": encode_fields(fields)},
            "currentDocument": {"exists": False},
        }
        if server_time_field:
            write["updateTransforms"] = [{"fieldPath": server_time_field, "setToServerValue": SERVER_TIMESTAMP}]
        return write


def _decode_all(documents: List[Dict[str, Any]], decode: Callable[[Dict[str, Any]], T]) -> List[T]:
    decoded = []
    for document in documents:
        try:
            decoded.append(decode(document))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping unreadable document %s: %s", document.get("name"), exc)
    return decoded


def _field_filter(path: str, op: str, value: str) -> Dict[str, Any]:
    return {"fieldFilter": {"field": {"fieldPath": path}, "op": op, "value": {"stringValue": value}}}


def _profile_from_document(document: Dict[str, Any]) -> UserProfile:
    data = decode_fields(document.get("fields", {}))
    return UserProfile(
        id=document_id(document),
        first_name=data.get("firstName", ""),
        last_name=data.get("lastName", ""),
        role=parse_role(data.get("role"), document_id(document)),
        department=data.get("department", ""),
        email=data.get("email"),
        phone=data.get("phone"),
        avatar_color=data.get("avatarColor"),
        current_status=parse_status(data.get("currentStatus")),
        last_seen=data.get("lastSeen"),
        created_at=data.get("createdAt"),
    )


def _log_from_document(document: Dict[str, Any]) -> AttendanceLogEntry:
    data = decode_fields(document.get("fields", {}))
    return AttendanceLogEntry(
        id=document_id(document),
        user_id=data.get("userId", ""),
        full_name=data.get("fullName", ""),
        type=parse_status(data.get("type")),
        # a pending server timestamp reads back as null
        timestamp=data.get("timestamp") or now_utc(),
    )


def _plan_from_document(document: Dict[str, Any]) -> PlanEntry:
    data = decode_fields(document.get("fields", {}))
    return PlanEntry(
        id=document_id(document),
        user_id=data.get("userId", ""),
        full_name=data.get("fullName", ""),
        date=date.fromisoformat(data["date"]),
        # the first browser client stored the category under "type"
        category=parse_category(data.get("category", data.get("type")), document_id(document)),
        notes=data.get("notes"),
    )


# endregion


__all__ = [
    "DirectoryBackend",
    "FirestoreBackend",
    "SQLiteBackend",
    "now_utc",
    "parse_category",
    "parse_role",
    "parse_status",
]
