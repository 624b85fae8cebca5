"""HTTP client for the storage/auth backend (PostgREST tables + GoTrue auth).

The backend owns persistence, sessions and row-level security; this client
only issues owner-scoped calls. Two constructors exist: one for server-side
request handling, where the session travels in cookies, and one for direct
use from a user's client with an explicit access token. Each call returns a
fresh client; nothing is shared between requests.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

import httpx

from aitodo.core.config import Settings
from aitodo.models.profile import UserProfile, UserProfileUpdate
from aitodo.models.task import TaskCreate, TaskRecord, TaskUpdate

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "sb-access-token"
REFRESH_TOKEN_COOKIE = "sb-refresh-token"
TODOS_TABLE = "todos"
PROFILES_TABLE = "users"
DEFAULT_TIMEOUT = 30.0

# PostgREST / GoTrue codes meaning the JWT is missing, invalid or expired
SESSION_EXPIRED_CODES = {"PGRST301", "PGRST302", "bad_jwt", "session_not_found"}
PERMISSION_DENIED_CODE = "42501"


class BackendConfigError(RuntimeError):
    """Backend URL or key is not configured."""


class BackendError(Exception):
    """A backend call failed."""

    def __init__(self, message: str, code: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class SessionExpiredError(BackendError):
    """The session is missing or expired; the user must sign in again."""


class PermissionDeniedError(BackendError):
    """Row-level security rejected the call."""


class NotFoundError(BackendError):
    """No row matched the owner-scoped filter."""


class CookieAccessor(Protocol):
    """Read/write access to the cookies of the current request."""

    def get_all(self) -> Mapping[str, str]: ...

    def set_all(self, cookies: Mapping[str, str]) -> None: ...


@dataclass
class AuthSession:
    access_token: str
    refresh_token: str | None
    user_id: uuid.UUID
    email: str | None = None
    expires_at: datetime | None = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "AuthSession":
        user = data.get("user") or {}
        expires_at = data.get("expires_at")
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            user_id=uuid.UUID(str(user["id"])),
            email=user.get("email"),
            expires_at=(
                datetime.fromtimestamp(expires_at, tz=timezone.utc) if expires_at else None
            ),
        )


def _raise_for_status(resp: httpx.Response) -> None:
    if resp.status_code < 400:
        return
    try:
        body = resp.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    code = body.get("code") or body.get("error_code") or body.get("error")
    code = str(code) if code is not None else None
    message = (
        body.get("message")
        or body.get("msg")
        or body.get("error_description")
        or resp.text[:200]
        or f"HTTP {resp.status_code}"
    )
    if code in SESSION_EXPIRED_CODES or "jwt" in str(message).lower() or resp.status_code == 401:
        raise SessionExpiredError(message, code, resp.status_code)
    if code == PERMISSION_DENIED_CODE or resp.status_code == 403:
        raise PermissionDeniedError(message, code, resp.status_code)
    raise BackendError(message, code, resp.status_code)


class BackendClient:
    """Owner-scoped CRUD and auth calls against the backend."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        access_token: str | None = None,
        refresh_token: str | None = None,
        cookies: CookieAccessor | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._access_token = access_token
        self._refresh_token = refresh_token
        self._cookies = cookies
        self._http = httpx.Client(timeout=timeout, transport=transport)
        self.session: AuthSession | None = None

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "BackendClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- plumbing ---------------------------------------------------------

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._access_token or self._api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        resp = self._http.request(
            method,
            f"{self._base_url}{path}",
            params=params,
            json=json,
            headers=self._headers(prefer),
        )
        _raise_for_status(resp)
        if not resp.content:
            return None
        return resp.json()

    def _set_session(self, session: AuthSession | None) -> None:
        self.session = session
        self._access_token = session.access_token if session else None
        self._refresh_token = session.refresh_token if session else None
        if self._cookies is not None:
            self._cookies.set_all(
                {
                    ACCESS_TOKEN_COOKIE: self._access_token or "",
                    REFRESH_TOKEN_COOKIE: self._refresh_token or "",
                }
            )

    def _require_user_id(self) -> uuid.UUID:
        if self.session is None:
            self.get_user()
        if self.session is None:
            raise SessionExpiredError("No signed-in session")
        return self.session.user_id

    # -- auth -------------------------------------------------------------

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        data = self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        session = AuthSession.from_payload(data)
        self._set_session(session)
        logger.info("Signed in user %s", session.user_id)
        return session

    def sign_up(self, email: str, password: str, name: str | None = None) -> Optional[AuthSession]:
        """Create an identity; returns a session unless email confirmation is pending."""
        payload: dict[str, Any] = {"email": email, "password": password}
        if name:
            payload["data"] = {"name": name}
        data = self._request("POST", "/auth/v1/signup", json=payload)
        if data and data.get("access_token"):
            session = AuthSession.from_payload(data)
            self._set_session(session)
            return session
        return None

    def refresh_session(self) -> AuthSession:
        if not self._refresh_token:
            raise SessionExpiredError("No refresh token")
        data = self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": self._refresh_token},
        )
        session = AuthSession.from_payload(data)
        self._set_session(session)
        return session

    def sign_out(self) -> None:
        if self._access_token:
            try:
                self._request("POST", "/auth/v1/logout")
            except SessionExpiredError:
                logger.info("Session already expired at sign-out")
        self._set_session(None)

    def get_user(self) -> AuthSession:
        """Resolve the user behind the current access token."""
        if not self._access_token:
            raise SessionExpiredError("No access token")
        data = self._request("GET", "/auth/v1/user")
        self.session = AuthSession(
            access_token=self._access_token,
            refresh_token=self._refresh_token,
            user_id=uuid.UUID(str(data["id"])),
            email=data.get("email"),
        )
        return self.session

    # -- todos ------------------------------------------------------------

    def list_todos(self, order: str = "created_date.desc") -> list[TaskRecord]:
        user_id = self._require_user_id()
        rows = self._request(
            "GET",
            f"/rest/v1/{TODOS_TABLE}",
            params={"select": "*", "user_id": f"eq.{user_id}", "order": order},
        )
        return [TaskRecord.model_validate(row) for row in rows or []]

    def insert_todo(self, data: TaskCreate) -> TaskRecord:
        user_id = self._require_user_id()
        payload = data.model_dump(mode="json")
        payload["user_id"] = str(user_id)
        rows = self._request(
            "POST", f"/rest/v1/{TODOS_TABLE}", json=payload, prefer="return=representation"
        )
        return TaskRecord.model_validate(rows[0])

    def update_todo(self, todo_id: uuid.UUID, fields: Mapping[str, Any]) -> TaskRecord:
        user_id = self._require_user_id()
        rows = self._request(
            "PATCH",
            f"/rest/v1/{TODOS_TABLE}",
            params={"id": f"eq.{todo_id}", "user_id": f"eq.{user_id}"},
            json=dict(fields),
            prefer="return=representation",
        )
        if not rows:
            raise NotFoundError("Todo not found", status_code=404)
        return TaskRecord.model_validate(rows[0])

    def patch_todo(self, todo_id: uuid.UUID, data: TaskUpdate) -> TaskRecord:
        return self.update_todo(todo_id, data.model_dump(mode="json", exclude_unset=True))

    def delete_todo(self, todo_id: uuid.UUID) -> None:
        user_id = self._require_user_id()
        rows = self._request(
            "DELETE",
            f"/rest/v1/{TODOS_TABLE}",
            params={"id": f"eq.{todo_id}", "user_id": f"eq.{user_id}"},
            prefer="return=representation",
        )
        if not rows:
            raise NotFoundError("Todo not found", status_code=404)

    # -- profile ----------------------------------------------------------

    def get_profile(self) -> UserProfile:
        user_id = self._require_user_id()
        rows = self._request(
            "GET",
            f"/rest/v1/{PROFILES_TABLE}",
            params={"select": "*", "id": f"eq.{user_id}"},
        )
        if not rows:
            raise NotFoundError("Profile not found", status_code=404)
        return UserProfile.model_validate(rows[0])

    def update_profile(self, data: UserProfileUpdate) -> UserProfile:
        user_id = self._require_user_id()
        rows = self._request(
            "PATCH",
            f"/rest/v1/{PROFILES_TABLE}",
            params={"id": f"eq.{user_id}"},
            json=data.model_dump(exclude_unset=True),
            prefer="return=representation",
        )
        if not rows:
            raise NotFoundError("Profile not found", status_code=404)
        return UserProfile.model_validate(rows[0])


def _require_backend(settings: Settings) -> tuple[str, str]:
    if not settings.backend_url or not settings.backend_key:
        logger.error(
            "Backend not configured: has_url=%s has_key=%s",
            bool(settings.backend_url),
            bool(settings.backend_key),
        )
        raise BackendConfigError(
            "Missing backend settings. Set BACKEND_URL and BACKEND_KEY."
        )
    return settings.backend_url, settings.backend_key


def create_server_client(
    settings: Settings,
    cookies: CookieAccessor,
    transport: httpx.BaseTransport | None = None,
) -> BackendClient:
    """Client for server-side request handling; the session lives in ``cookies``."""
    url, key = _require_backend(settings)
    jar = cookies.get_all()
    return BackendClient(
        base_url=url,
        api_key=key,
        access_token=jar.get(ACCESS_TOKEN_COOKIE) or None,
        refresh_token=jar.get(REFRESH_TOKEN_COOKIE) or None,
        cookies=cookies,
        transport=transport,
    )


def create_browser_client(
    settings: Settings,
    access_token: str | None = None,
    refresh_token: str | None = None,
    transport: httpx.BaseTransport | None = None,
) -> BackendClient:
    """Client for direct use by a signed-in user's own front end."""
    url, key = _require_backend(settings)
    return BackendClient(
        base_url=url,
        api_key=key,
        access_token=access_token,
        refresh_token=refresh_token,
        transport=transport,
    )
