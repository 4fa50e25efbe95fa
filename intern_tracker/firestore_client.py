"""HTTP client for the Cloud Firestore REST API and Firebase anonymous auth."""

from __future__ import annotations

import logging
import re
import secrets
import string
import time
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import httpx

FIRESTORE_API_BASE = "https://firestore.googleapis.com/v1"
IDENTITY_TOOLKIT_BASE = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_BASE = "https://securetoken.googleapis.com/v1"
SERVER_TIMESTAMP = "REQUEST_TIME"

# Seconds; Firebase id tokens live for an hour.
DEFAULT_TOKEN_LIFETIME = 3600.0
TOKEN_REFRESH_MARGIN = 60.0

_AUTO_ID_ALPHABET = string.ascii_letters + string.digits
_FRACTION = re.compile(r"\.(\d+)")
_ANON_DISABLED = {"ADMIN_ONLY_OPERATION", "OPERATION_NOT_ALLOWED"}

logger = logging.getLogger(__name__)


class FirestoreApiError(RuntimeError):
    """Raised when Firestore or the auth endpoint returns an error response."""

    def __init__(self, method: str, error: str, status: str | None = None) -> None:
        super().__init__(f"Firestore API error for {method}: {error}")
        self.method = method
        self.error = error
        self.status = status

    @property
    def code(self) -> str | None:
        if self.status == "PERMISSION_DENIED":
            return "permission-denied"
        if self.error in _ANON_DISABLED:
            return "auth/operation-not-allowed"
        return None


def new_document_id() -> str:
    """Return a 20 character id in the same alphabet Firestore uses."""

    return "".join(secrets.choice(_AUTO_ID_ALPHABET) for _ in range(20))


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    # Firestore returns nanosecond precision; datetime keeps microseconds.
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    return datetime.fromisoformat(text.replace("Z", "+00:00"))


def encode_value(value: Any) -> Dict[str, Any]:
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, datetime):
        return {"timestampValue": format_timestamp(value)}
    if isinstance(value, date):
        return {"stringValue": value.isoformat()}
    if isinstance(value, Enum):
        return {"stringValue": value.value}
    return {"stringValue": str(value)}


def decode_value(value: Dict[str, Any]) -> Any:
    if "nullValue" in value:
        return None
    if "stringValue" in value:
        return value["stringValue"]
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        return parse_timestamp(value["timestampValue"])
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "arrayValue" in value:
        return [decode_value(item) for item in value["arrayValue"].get("values", [])]
    return None


def encode_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: encode_value(item) for key, item in data.items()}


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: decode_value(item) for key, item in fields.items()}


def document_id(document: Dict[str, Any]) -> str:
    return document["name"].rsplit("/", 1)[-1]


class FirestoreClient:
    """Async wrapper around the Firestore endpoints used by the directory.

    The anonymous id token is refreshed shortly before it expires, and a
    request rejected as unauthenticated is retried once with a fresh token.
    """

    def __init__(
        self,
        project_id: str,
        api_key: str,
        *,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.project_id = project_id
        self._api_key = api_key
        self._id_token: Optional[str] = None
        self._refresh_token: Optional[str] = None
        self._expires_at = 0.0
        self._clock = clock
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def database_path(self) -> str:
        return f"projects/{self.project_id}/databases/(default)"

    @property
    def signed_in(self) -> bool:
        return self._id_token is not None and self._clock() < self._expires_at - TOKEN_REFRESH_MARGIN

    def document_name(self, collection: str, doc_id: str) -> str:
        return f"{self.database_path}/documents/{collection}/{doc_id}"

    async def close(self) -> None:
        await self._client.aclose()

    async def sign_in_anonymously(self) -> str:
        """Create an anonymous Firebase user and keep its tokens."""

        method = "accounts:signUp"
        response = await self._client.post(
            f"{IDENTITY_TOOLKIT_BASE}/{method}",
            params={"key": self._api_key},
            json={"returnSecureToken": True},
        )
        data = _json(response)
        if response.is_error or "idToken" not in data:
            error = data.get("error", {})
            raise FirestoreApiError(method, error.get("message", "unknown_error"), error.get("status"))
        self._store_token(data["idToken"], data.get("refreshToken"), data.get("expiresIn"))
        return data["idToken"]

    async def refresh_id_token(self) -> str:
        """Exchange the refresh token for a new id token of the same user."""

        method = "token"
        if not self._refresh_token:
            raise FirestoreApiError(method, "MISSING_REFRESH_TOKEN")
        response = await self._client.post(
            f"{SECURE_TOKEN_BASE}/{method}",
            params={"key": self._api_key},
            data={"grant_type": "refresh_token", "refresh_token": self._refresh_token},
        )
        data = _json(response)
        if response.is_error or "id_token" not in data:
            error = data.get("error", {})
            raise FirestoreApiError(method, error.get("message", "unknown_error"), error.get("status"))
        self._store_token(data["id_token"], data.get("refresh_token"), data.get("expires_in"))
        return data["id_token"]

    async def ensure_signed_in(self) -> str:
        """Return a usable id token, refreshing or signing in again as needed."""

        if self._id_token and self.signed_in:
            return self._id_token
        if self._refresh_token:
            try:
                return await self.refresh_id_token()
            except (FirestoreApiError, httpx.HTTPError) as exc:
                logger.warning("Token refresh failed, signing in again: %s", exc)
        return await self.sign_in_anonymously()

    def invalidate_token(self) -> None:
        self._id_token = None
        self._expires_at = 0.0

    async def run_query(self, structured_query: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Run a structured query and return the matching documents."""

        data = await self._request("runQuery", {"structuredQuery": structured_query})
        return [entry["document"] for entry in data if "document" in entry]

    async def commit(self, writes: List[Dict[str, Any]]) -> Dict[str, Any]:
        return await self._request("commit", {"writes": writes})

    async def _request(self, method: str, payload: Dict[str, Any]) -> Any:
        response = await self._post_document(method, payload)
        if response.status_code == httpx.codes.UNAUTHORIZED:
            logger.info("Firestore rejected the id token for %s, authenticating again", method)
            self.invalidate_token()
            response = await self._post_document(method, payload)
        data = response.json()
        if response.is_error:
            error = data.get("error", {}) if isinstance(data, dict) else {}
            if isinstance(data, list) and data:
                error = data[0].get("error", {})
            raise FirestoreApiError(method, error.get("message", "unknown_error"), error.get("status"))
        return data

    async def _post_document(self, method: str, payload: Dict[str, Any]) -> httpx.Response:
        token = await self.ensure_signed_in()
        return await self._client.post(
            f"{FIRESTORE_API_BASE}/{self.database_path}/documents:{method}",
            json=payload,
            headers={"Authorization": f"Bearer {token}"},
        )

    def _store_token(self, id_token: str, refresh_token: Optional[str], expires_in: Any) -> None:
        self._id_token = id_token
        if refresh_token:
            self._refresh_token = refresh_token
        self._expires_at = self._clock() + float(expires_in or DEFAULT_TOKEN_LIFETIME)


def _json(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


__all__ = [
    "FirestoreApiError",
    "FirestoreClient",
    "SERVER_TIMESTAMP",
    "decode_fields",
    "document_id",
    "encode_fields",
    "new_document_id",
    "parse_timestamp",
]
