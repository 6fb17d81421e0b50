"""
Identity provider backends.

SupabaseIdentityProvider wraps ``supabase.auth``; InMemoryIdentityProvider keeps
accounts in a dict for mock mode and tests. Both report users as SessionUser
and raise AuthError with a human-readable message on failure.
"""
import logging
import secrets
import threading
import uuid
from typing import Callable, Dict, List, Optional, Protocol

from ..core.errors import AuthError
from ..models.user import AuthSession, SessionUser

logger = logging.getLogger(__name__)

AuthListener = Callable[[Optional[SessionUser]], None]
Unsubscribe = Callable[[], None]


class IdentityProvider(Protocol):
    def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> AuthSession: ...

    def sign_in_with_password(self, email: str, password: str) -> AuthSession: ...

    def sign_in_with_google(self, id_token: str) -> AuthSession: ...

    def sign_out(self) -> None: ...

    def get_user(self, access_token: str) -> Optional[SessionUser]: ...

    def on_auth_state_change(self, callback: AuthListener) -> Unsubscribe: ...


def _error_message(exc: Exception) -> str:
    return getattr(exc, "message", None) or str(exc) or exc.__class__.__name__


def _to_session_user(user) -> Optional[SessionUser]:
    if user is None:
        return None
    metadata = getattr(user, "user_metadata", None) or {}
    return SessionUser(
        uid=str(user.id),
        email=getattr(user, "email", None),
        displayName=metadata.get("full_name") or metadata.get("name"),
    )


class SupabaseIdentityProvider:
    def __init__(self, client):
        self.client = client

    def _to_auth_session(self, response) -> AuthSession:
        if not response.user:
            raise AuthError("Authentication failed")
        session = response.session
        return AuthSession(
            access_token=session.access_token if session else "",
            refresh_token=session.refresh_token if session else "",
            user=_to_session_user(response.user),
        )

    def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> AuthSession:
        metadata = {"full_name": full_name} if full_name else {}
        try:
            response = self.client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": metadata},
            })
        except Exception as e:
            raise AuthError(_error_message(e)) from e
        return self._to_auth_session(response)

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        try:
            response = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            raise AuthError(_error_message(e)) from e
        return self._to_auth_session(response)

    def sign_in_with_google(self, id_token: str) -> AuthSession:
        try:
            response = self.client.auth.sign_in_with_id_token({"provider": "google", "token": id_token})
        except Exception as e:
            raise AuthError(_error_message(e)) from e
        return self._to_auth_session(response)

    def sign_out(self) -> None:
        try:
            self.client.auth.sign_out()
        except Exception as e:
            raise AuthError(_error_message(e)) from e

    def get_user(self, access_token: str) -> Optional[SessionUser]:
        try:
            response = self.client.auth.get_user(access_token)
        except Exception as e:
            raise AuthError(_error_message(e)) from e
        return _to_session_user(response.user if response else None)

    def on_auth_state_change(self, callback: AuthListener) -> Unsubscribe:
        def _on_change(event, session):
            logger.info(f"🔐 Auth state change: {event}")
            callback(_to_session_user(session.user) if session else None)

        subscription = self.client.auth.on_auth_state_change(_on_change)

        # 订阅后立即推送当前会话，保证 loading 能结束
        session = self.client.auth.get_session()
        callback(_to_session_user(session.user) if session else None)
        return subscription.unsubscribe


class InMemoryIdentityProvider:
    """Accounts and tokens held in memory; emits auth-state changes synchronously."""

    def __init__(self):
        self._accounts: Dict[str, Dict] = {}
        self._tokens: Dict[str, str] = {}
        self._users: Dict[str, SessionUser] = {}
        self._listeners: List[AuthListener] = []
        self._current: Optional[SessionUser] = None
        self._lock = threading.Lock()

    @property
    def current_user(self) -> Optional[SessionUser]:
        return self._current

    def add_user(self, email: str, password: str, display_name: Optional[str] = None,
                 uid: Optional[str] = None) -> SessionUser:
        user = SessionUser(uid=uid or str(uuid.uuid4()), email=email, displayName=display_name)
        with self._lock:
            self._accounts[email.lower()] = {"password": password, "uid": user.uid}
            self._users[user.uid] = user
        return user

    def _issue(self, user: SessionUser) -> AuthSession:
        token = secrets.token_urlsafe(24)
        with self._lock:
            self._tokens[token] = user.uid
            self._current = user
        self._emit(user)
        return AuthSession(access_token=token, refresh_token=secrets.token_urlsafe(24), user=user)

    def _emit(self, user: Optional[SessionUser]) -> None:
        for listener in list(self._listeners):
            listener(user)

    def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> AuthSession:
        if email.lower() in self._accounts:
            raise AuthError("User already registered")
        return self._issue(self.add_user(email, password, display_name=full_name))

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        account = self._accounts.get(email.lower())
        if not account or account["password"] != password:
            raise AuthError("Invalid login credentials")
        return self._issue(self._users[account["uid"]])

    def sign_in_with_google(self, id_token: str) -> AuthSession:
        if not id_token:
            raise AuthError("Missing Google ID token")
        uid = f"google-{uuid.uuid5(uuid.NAMESPACE_URL, id_token)}"
        user = self._users.get(uid)
        if user is None:
            user = SessionUser(uid=uid)
            with self._lock:
                self._users[uid] = user
        return self._issue(user)

    def sign_out(self) -> None:
        with self._lock:
            self._current = None
        self._emit(None)

    def get_user(self, access_token: str) -> Optional[SessionUser]:
        uid = self._tokens.get(access_token)
        return self._users.get(uid) if uid else None

    def on_auth_state_change(self, callback: AuthListener) -> Unsubscribe:
        with self._lock:
            self._listeners.append(callback)
        callback(self._current)

        def unsubscribe():
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe
