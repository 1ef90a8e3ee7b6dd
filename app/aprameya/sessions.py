from __future__ import annotations

import logging
import secrets
import threading
from collections.abc import Callable
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import delete, select

from app.aprameya.errors import InvalidCredentials, Unauthenticated
from app.aprameya.identity import get_user_by_username, verify_credentials
from app.aprameya.models import UserSession

if TYPE_CHECKING:
    from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionRecord:
    token: str
    user_id: int
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class SessionStore:
    def put(self, record: SessionRecord) -> None:
        raise NotImplementedError

    def get(self, token: str) -> SessionRecord | None:
        raise NotImplementedError

    def delete(self, token: str) -> None:
        raise NotImplementedError

    def delete_for_user(self, user_id: int) -> int:
        raise NotImplementedError

    def prune(self, now: datetime) -> int:
        """Drop expired records; returns how many were removed."""
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    """Process-local store. Sessions do not survive a restart."""

    def __init__(self) -> None:
        self._records: dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def put(self, record: SessionRecord) -> None:
        with self._lock:
            self._records[record.token] = record

    def get(self, token: str) -> SessionRecord | None:
        with self._lock:
            return self._records.get(token)

    def delete(self, token: str) -> None:
        with self._lock:
            self._records.pop(token, None)

    def delete_for_user(self, user_id: int) -> int:
        with self._lock:
            stale = [t for t, r in self._records.items() if r.user_id == user_id]
            for t in stale:
                del self._records[t]
            return len(stale)

    def prune(self, now: datetime) -> int:
        with self._lock:
            stale = [t for t, r in self._records.items() if r.is_expired(now)]
            for t in stale:
                del self._records[t]
            return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


@dataclass
class DatabaseSessionStore(SessionStore):
    """Sessions in the user_sessions table, committed independently of the request transaction."""

    session_factory: "sessionmaker"

    @contextmanager
    def _scope(self):
        s: Session = self.session_factory()
        try:
            yield s
            s.commit()
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    def put(self, record: SessionRecord) -> None:
        with self._scope() as s:
            s.add(
                UserSession(
                    token=record.token,
                    user_id=record.user_id,
                    created_at=record.created_at,
                    expires_at=record.expires_at,
                )
            )

    def get(self, token: str) -> SessionRecord | None:
        with self._scope() as s:
            row = s.get(UserSession, token)
            if row is None:
                return None
            return SessionRecord(token=row.token, user_id=row.user_id, created_at=row.created_at, expires_at=row.expires_at)

    def delete(self, token: str) -> None:
        with self._scope() as s:
            s.execute(delete(UserSession).where(UserSession.token == token))

    def delete_for_user(self, user_id: int) -> int:
        with self._scope() as s:
            tokens = list(s.execute(select(UserSession.token).where(UserSession.user_id == user_id)).scalars())
            if tokens:
                s.execute(delete(UserSession).where(UserSession.token.in_(tokens)))
            return len(tokens)

    def prune(self, now: datetime) -> int:
        with self._scope() as s:
            tokens = list(s.execute(select(UserSession.token).where(UserSession.expires_at <= now)).scalars())
            if tokens:
                s.execute(delete(UserSession).where(UserSession.token.in_(tokens)))
            return len(tokens)


class SessionManager:
    """
    Maps opaque session tokens to user ids.

    Every session has an absolute lifetime (`ttl`) checked on each resolve().
    A prune sweep runs at most once per `prune_interval` to drop entries that
    were never resolved again after expiring.
    """

    def __init__(
        self,
        store: SessionStore,
        *,
        ttl: timedelta = timedelta(hours=8),
        prune_interval: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.store = store
        self.ttl = ttl
        self.prune_interval = prune_interval
        self.clock = clock
        self._last_prune = clock()
        self._prune_lock = threading.Lock()

    def _maybe_prune(self, now: datetime) -> None:
        if now - self._last_prune < self.prune_interval:
            return
        with self._prune_lock:
            if now - self._last_prune < self.prune_interval:
                return
            self._last_prune = now
        removed = self.store.prune(now)
        if removed:
            logger.info("Pruned %d expired sessions", removed)

    def create(self, user_id: int) -> str:
        now = self.clock()
        self._maybe_prune(now)
        token = secrets.token_urlsafe(32)
        self.store.put(SessionRecord(token=token, user_id=user_id, created_at=now, expires_at=now + self.ttl))
        return token

    def login(self, s: "Session", username: str, password: str) -> tuple[str, int]:
        """
        Returns (token, user_id). Unknown username and wrong password fail
        identically with InvalidCredentials.
        """
        user = get_user_by_username(s, username)
        if not verify_credentials(user, password):
            raise InvalidCredentials()
        return self.create(user.id), user.id

    def resolve(self, token: str | None) -> int:
        if not token:
            raise Unauthenticated()
        now = self.clock()
        self._maybe_prune(now)
        record = self.store.get(token)
        if record is None:
            raise Unauthenticated()
        if record.is_expired(now):
            self.store.delete(token)
            raise Unauthenticated("Session expired.")
        return record.user_id

    def destroy(self, token: str | None) -> None:
        """Idempotent: unknown or already destroyed tokens are ignored."""
        if not token:
            return
        self.store.delete(token)

    def destroy_all_for_user(self, user_id: int) -> int:
        return self.store.delete_for_user(user_id)

    def prune(self) -> int:
        now = self.clock()
        self._last_prune = now
        return self.store.prune(now)


def session_manager_from_config(config: dict, session_factory: "sessionmaker | None" = None) -> SessionManager:
    backend = (config.get("SESSION_BACKEND") or "memory").strip().lower()
    if backend == "database":
        if session_factory is None:
            raise RuntimeError("SESSION_BACKEND=database requires a sessionmaker.")
        store: SessionStore = DatabaseSessionStore(session_factory=session_factory)
    elif backend == "memory":
        store = MemorySessionStore()
    else:
        raise RuntimeError(f"Unknown SESSION_BACKEND {backend!r} (expected 'memory' or 'database').")
    return SessionManager(
        store,
        ttl=timedelta(seconds=int(config.get("SESSION_TTL_SECONDS") or 8 * 60 * 60)),
        prune_interval=timedelta(seconds=int(config.get("SESSION_PRUNE_INTERVAL_SECONDS") or 24 * 60 * 60)),
    )
