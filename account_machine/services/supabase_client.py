"""
Client for the hosted Supabase backend

Covers the two REST surfaces the machine game needs:

    SupabaseAuth   -> GoTrue   (/auth/v1)  sign up, sign in, sign out, refresh
    SupabaseTable  -> PostgREST (/rest/v1) insert, select, upsert, delete

Sessions are kept in the local store so a signed-in user stays signed in
between runs.
"""

import logging
import time
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Optional

import requests

from ..config import SupabaseConfig
from ..exceptions import AuthenticationError, RemoteStoreError
from .local_store import LocalStore

SESSION_KEY = "auth_session"

# Auth events delivered to on_auth_state_change listeners
INITIAL_SESSION = "INITIAL_SESSION"
SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"


def _error_message(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason or f"HTTP {response.status_code}"
    if isinstance(data, dict):
        for key in ("error_description", "msg", "message", "error"):
            if data.get(key):
                return str(data[key])
    return f"HTTP {response.status_code}"


@dataclass
class AuthSession:
    access_token: str
    refresh_token: str
    user_id: str
    email: str
    expires_at: Optional[float] = None

    @property
    def is_expired(self) -> bool:
        return self.expires_at is not None and self.expires_at <= time.time()

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "AuthSession":
        user = data.get("user") or {}
        expires_at = data.get("expires_at")
        if expires_at is None and data.get("expires_in"):
            expires_at = time.time() + float(data["expires_in"])
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token", ""),
            user_id=str(user.get("id", "")),
            email=user.get("email", ""),
            expires_at=float(expires_at) if expires_at is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SupabaseAuth:
    """Authentication/session provider"""

    def __init__(self, config: SupabaseConfig, store: Optional[LocalStore] = None,
                 session: Optional[requests.Session] = None):
        config.validate()
        self.config = config
        self.store = store
        self.http = session or requests.Session()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._listeners: List[Callable[[str, Optional[AuthSession]], None]] = []
        self._session: Optional[AuthSession] = self._restore_session()

    # Session bookkeeping
    def _restore_session(self) -> Optional[AuthSession]:
        if self.store is None:
            return None
        data = self.store.load_object(SESSION_KEY)
        if not data:
            return None
        try:
            return AuthSession(**data)
        except TypeError:
            self.logger.warning("Discarding unreadable stored session")
            self.store.remove(SESSION_KEY)
            return None

    def _set_session(self, session: Optional[AuthSession], event: str):
        self._session = session
        if self.store is not None:
            if session is None:
                self.store.remove(SESSION_KEY)
            else:
                self.store.save_object(SESSION_KEY, session.to_dict())
        self._notify(event)

    def _notify(self, event: str):
        for listener in list(self._listeners):
            listener(event, self._session)

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        return {
            "apikey": self.config.anon_key,
            "Authorization": f"Bearer {access_token or self.config.anon_key}",
            "Content-Type": "application/json",
        }

    def _post(self, path: str, body: Optional[dict] = None, params: Optional[dict] = None,
              access_token: Optional[str] = None) -> requests.Response:
        try:
            response = self.http.post(f"{self.config.auth_url}/{path}", json=body or {}, params=params,
                                      headers=self._headers(access_token),
                                      timeout=self.config.timeout_seconds)
        except requests.RequestException as e:
            raise AuthenticationError(f"Authentication service unreachable: {e}") from e
        if not response.ok:
            raise AuthenticationError(_error_message(response), response.status_code)
        return response

    # Public API
    def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        """Create a user; returns a session when the project auto-confirms"""
        data = self._post("signup", {"email": email, "password": password}).json()
        self.logger.info(f"Signed up {email}")
        if data.get("access_token"):
            session = AuthSession.from_response(data)
            self._set_session(session, SIGNED_IN)
            return session
        return None

    def sign_in(self, email: str, password: str) -> AuthSession:
        """Password sign-in"""
        data = self._post("token", {"email": email, "password": password},
                          params={"grant_type": "password"}).json()
        session = AuthSession.from_response(data)
        self._set_session(session, SIGNED_IN)
        self.logger.info(f"Signed in {email}")
        return session

    def refresh_session(self) -> Optional[AuthSession]:
        """Exchange the refresh token for a new session, None when not possible"""
        if self._session is None or not self._session.refresh_token:
            return None
        try:
            data = self._post("token", {"refresh_token": self._session.refresh_token},
                              params={"grant_type": "refresh_token"}).json()
        except AuthenticationError as e:
            self.logger.warning(f"Session refresh failed: {e.message}")
            self._set_session(None, SIGNED_OUT)
            return None
        session = AuthSession.from_response(data)
        self._set_session(session, TOKEN_REFRESHED)
        return session

    def get_session(self) -> Optional[AuthSession]:
        """Current session, refreshed first when it has expired"""
        if self._session is not None and self._session.is_expired:
            return self.refresh_session()
        return self._session

    def sign_out(self):
        """End the session locally, revoking it remotely when possible"""
        session = self._session
        if session is None:
            return
        try:
            self._post("logout", access_token=session.access_token)
        except AuthenticationError as e:
            self.logger.warning(f"Remote sign-out failed: {e.message}")
        finally:
            self._set_session(None, SIGNED_OUT)

    def on_auth_state_change(self, callback: Callable[[str, Optional[AuthSession]], None]) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it"""
        self._listeners.append(callback)
        callback(INITIAL_SESSION, self._session)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    @property
    def access_token(self) -> Optional[str]:
        session = self.get_session()
        return session.access_token if session else None


class SupabaseTable:
    """Row-oriented access to one PostgREST table"""

    def __init__(self, config: SupabaseConfig, table: str, auth: Optional[SupabaseAuth] = None,
                 session: Optional[requests.Session] = None):
        config.validate()
        self.config = config
        self.table = table
        self.auth = auth
        self.http = session or (auth.http if auth else requests.Session())
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def url(self) -> str:
        return f"{self.config.rest_url}/{self.table}"

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        token = (self.auth.access_token if self.auth else None) or self.config.anon_key
        headers = {
            "apikey": self.config.anon_key,
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    @staticmethod
    def _filter_params(filters: Optional[Dict[str, Any]]) -> Dict[str, str]:
        return {column: f"eq.{value}" for column, value in (filters or {}).items()}

    def _request(self, method: str, operation: str, params=None, body=None, prefer=None) -> Any:
        try:
            response = self.http.request(method, self.url, params=params, json=body,
                                         headers=self._headers(prefer),
                                         timeout=self.config.timeout_seconds)
        except requests.RequestException as e:
            raise RemoteStoreError(self.table, operation, str(e)) from e

        if not response.ok:
            raise RemoteStoreError(self.table, operation, _error_message(response), response.status_code)
        if not response.content:
            return []
        try:
            return response.json()
        except ValueError as e:
            raise RemoteStoreError(self.table, operation, "response body is not JSON") from e

    def select(self, filters: Optional[Dict[str, Any]] = None, order_by: Optional[str] = None,
               ascending: bool = True, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        params = {"select": "*"}
        params.update(self._filter_params(filters))
        if order_by:
            params["order"] = f"{order_by}.{'asc' if ascending else 'desc'}"
        if limit is not None:
            params["limit"] = str(limit)
        return self._request("GET", "select", params=params)

    def maybe_single(self, filters: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """The one matching row, None when there is none"""
        rows = self.select(filters, limit=2)
        if len(rows) > 1:
            raise RemoteStoreError(self.table, "select", "multiple rows returned where at most one was expected")
        return rows[0] if rows else None

    def insert(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Insert rows and return them as stored"""
        if not rows:
            return []
        return self._request("POST", "insert", body=rows, prefer="return=representation")

    def upsert(self, row: Dict[str, Any], on_conflict: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"on_conflict": on_conflict} if on_conflict else None
        return self._request("POST", "upsert", params=params, body=row,
                             prefer="resolution=merge-duplicates,return=representation")

    def delete(self, filters: Dict[str, Any]):
        """Delete matching rows; refuses to run without a filter"""
        if not filters:
            raise RemoteStoreError(self.table, "delete", "refusing to delete without a filter")
        self._request("DELETE", "delete", params=self._filter_params(filters))
