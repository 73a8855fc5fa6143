# mobileshop/services/session.py
import threading
import time
from typing import Dict, Optional, Tuple

from mobileshop.domain.errors import AuthRequired
from mobileshop.domain.models import User
from mobileshop.services.gateway import DataGateway
from mobileshop.utils.logging import get_logger
from mobileshop.utils.settings import SESSION_CACHE_TTL_SECONDS

logger = get_logger(__name__)


class SessionRegistry:
    """
    Process-wide holder of signed-in users, keyed by access token.

    Created once at application start; kept current by the gateway's
    auth-change notifications (sign-out evicts the cached user). A cached
    user is trusted for ttl seconds, then the token is resolved again, so a
    token revoked at the backend stops working here too. Services never
    read it directly, the acting user is passed to them explicitly.
    """

    def __init__(self, gateway: DataGateway, ttl: float = SESSION_CACHE_TTL_SECONDS):
        self.gateway = gateway
        self.ttl = ttl
        self._users: Dict[str, Tuple[User, float]] = {}
        self._lock = threading.Lock()
        self._unsubscribe = gateway.on_auth_change(self._on_auth_change)

    def current_user(self, access_token: Optional[str]) -> Optional[User]:
        if not access_token:
            return None

        cached = self._cached(access_token)
        if cached is not None:
            return cached

        user = self.gateway.get_current_user(access_token)
        if user is not None:
            self._store(access_token, user)
        return user

    def require_user(self, access_token: Optional[str]) -> User:
        user = self.current_user(access_token)
        if user is None:
            raise AuthRequired()
        return user

    def sign_out(self, access_token: str) -> None:
        self.gateway.sign_out(access_token)

    def close(self) -> None:
        self._unsubscribe()
        with self._lock:
            self._users.clear()

    def _cached(self, access_token: str) -> Optional[User]:
        now = time.monotonic()
        with self._lock:
            entry = self._users.get(access_token)
            if entry is None:
                return None
            user, expires_at = entry
            if expires_at <= now:
                del self._users[access_token]
                return None
        return user

    def _store(self, access_token: str, user: User) -> None:
        now = time.monotonic()
        with self._lock:
            # tokens nobody sends again must not pile up
            self._drop_expired(now)
            self._users[access_token] = (user, now + self.ttl)

    def _drop_expired(self, now: float) -> None:
        for token in [t for t, (_, expires_at) in self._users.items() if expires_at <= now]:
            del self._users[token]

    def _on_auth_change(self, access_token: str, user: Optional[User]) -> None:
        if user is None:
            with self._lock:
                self._users.pop(access_token, None)
            logger.info("Session signed out")
        else:
            self._store(access_token, user)
