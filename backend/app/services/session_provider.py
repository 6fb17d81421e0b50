"""
Session provider: one subscription to the identity provider's auth-state stream,
republished as a single {user, loading} value.

``loading`` stays True until the first auth callback arrives and is False from
then on. The provider is created per application (see core/db.py) and passed to
whatever needs it; there is no module-level session.
"""
import asyncio
import inspect
import logging
import threading
from typing import Any, Callable, List, Optional

from ..models.user import SessionState, SessionUser
from .identity import IdentityProvider, Unsubscribe

logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionState], None]
SignInHook = Callable[[SessionUser], Any]


class SessionProvider:
    def __init__(self, identity: IdentityProvider, on_sign_in: Optional[SignInHook] = None):
        self.identity = identity
        self.on_sign_in = on_sign_in
        self._state = SessionState()
        self._listeners: List[SessionListener] = []
        self._unsubscribe: Optional[Unsubscribe] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def user(self) -> Optional[SessionUser]:
        return self._state.user

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def started(self) -> bool:
        return self._unsubscribe is not None

    def start(self) -> None:
        """Subscribe to the identity provider. Calling it again is a no-op."""
        if self._unsubscribe is not None:
            return
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None
        self._unsubscribe = self.identity.on_auth_state_change(self._handle_auth_change)
        logger.info("✅ Session provider subscribed to auth state changes")

    def close(self) -> None:
        if self._unsubscribe is None:
            return
        self._unsubscribe()
        self._unsubscribe = None
        logger.info("👋 Session provider unsubscribed")

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; it is called right away with the current state."""
        with self._lock:
            self._listeners.append(listener)
        listener(self._state)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _handle_auth_change(self, user: Optional[SessionUser]) -> None:
        previous = self._state.user
        self._state = SessionState(user=user, loading=False)

        if user is not None and (previous is None or previous.uid != user.uid):
            self._run_sign_in_hook(user)

        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.error(f"❌ Session listener failed: {e}", exc_info=True)

    def _run_sign_in_hook(self, user: SessionUser) -> None:
        if self.on_sign_in is None:
            return
        try:
            result = self.on_sign_in(user)
            if inspect.isawaitable(result):
                if self._loop is not None and self._loop.is_running():
                    asyncio.run_coroutine_threadsafe(result, self._loop)
                else:
                    asyncio.run(result)
        except Exception as e:
            logger.warning(f"⚠️ Sign-in hook failed for user {user.uid}: {e}")
