"""Tests for the session manager and its stores."""
from datetime import timedelta

import pytest

from app.aprameya.errors import InvalidCredentials, Unauthenticated
from app.aprameya.sessions import (
    DatabaseSessionStore,
    MemorySessionStore,
    SessionManager,
    session_manager_from_config,
)


def test_login_then_resolve(s, sessions, make_user):
    user = make_user("alice")
    token, user_id = sessions.login(s, "alice", "pw")
    assert user_id == user.id
    assert sessions.resolve(token) == user.id


def test_tokens_are_unique(s, sessions, make_user):
    make_user("alice")
    tokens = {sessions.login(s, "alice", "pw")[0] for _ in range(5)}
    assert len(tokens) == 5


def test_wrong_password_and_unknown_user_fail_identically(s, sessions, make_user):
    make_user("alice")
    with pytest.raises(InvalidCredentials) as wrong_password:
        sessions.login(s, "alice", "nope")
    with pytest.raises(InvalidCredentials) as unknown_user:
        sessions.login(s, "nobody", "pw")
    assert wrong_password.value.to_dict() == unknown_user.value.to_dict()


def test_failed_login_creates_no_session(s, make_user, clock):
    store = MemorySessionStore()
    manager = SessionManager(store, clock=clock)
    make_user("alice")
    with pytest.raises(InvalidCredentials):
        manager.login(s, "alice", "nope")
    assert len(store) == 0


@pytest.mark.parametrize("token", [None, "", "not-a-real-token"])
def test_resolve_rejects_missing_or_unknown(sessions, token):
    with pytest.raises(Unauthenticated):
        sessions.resolve(token)


def test_destroy_is_idempotent(s, sessions, make_user):
    make_user("alice")
    token, _ = sessions.login(s, "alice", "pw")
    sessions.destroy(token)
    sessions.destroy(token)
    sessions.destroy(None)
    sessions.destroy("never-issued")
    with pytest.raises(Unauthenticated):
        sessions.resolve(token)


def test_sessions_are_independent(s, sessions, make_user):
    alice = make_user("alice")
    first, _ = sessions.login(s, "alice", "pw")
    second, _ = sessions.login(s, "alice", "pw")
    sessions.destroy(first)
    assert sessions.resolve(second) == alice.id


def test_destroy_all_for_user(s, sessions, make_user):
    make_user("alice")
    bob = make_user("bob")
    a1, _ = sessions.login(s, "alice", "pw")
    a2, _ = sessions.login(s, "alice", "pw")
    b1, _ = sessions.login(s, "bob", "pw")
    assert sessions.destroy_all_for_user(sessions.resolve(a1)) == 2
    for token in (a1, a2):
        with pytest.raises(Unauthenticated):
            sessions.resolve(token)
    assert sessions.resolve(b1) == bob.id


class TestExpiry:
    def test_valid_until_ttl(self, s, sessions, make_user, clock):
        user = make_user("alice")
        token, _ = sessions.login(s, "alice", "pw")
        clock.advance(hours=7, minutes=59)
        assert sessions.resolve(token) == user.id

    def test_expires_at_ttl(self, s, make_user, clock):
        store = MemorySessionStore()
        manager = SessionManager(store, clock=clock)
        make_user("alice")
        token, _ = manager.login(s, "alice", "pw")
        clock.advance(hours=8)
        with pytest.raises(Unauthenticated, match="expired"):
            manager.resolve(token)
        # The expired entry is dropped on the failed resolve.
        assert len(store) == 0

    def test_activity_does_not_extend_lifetime(self, s, sessions, make_user, clock):
        make_user("alice")
        token, _ = sessions.login(s, "alice", "pw")
        for _ in range(7):
            clock.advance(hours=1)
            sessions.resolve(token)
        clock.advance(hours=1)
        with pytest.raises(Unauthenticated):
            sessions.resolve(token)

    def test_custom_ttl(self, s, make_user, clock):
        manager = SessionManager(MemorySessionStore(), ttl=timedelta(minutes=5), clock=clock)
        make_user("alice")
        token, _ = manager.login(s, "alice", "pw")
        clock.advance(minutes=5)
        with pytest.raises(Unauthenticated):
            manager.resolve(token)


class TestPrune:
    def test_explicit_prune(self, s, make_user, clock):
        store = MemorySessionStore()
        manager = SessionManager(store, clock=clock)
        make_user("alice")
        manager.login(s, "alice", "pw")
        manager.login(s, "alice", "pw")
        clock.advance(hours=1)
        fresh, _ = manager.login(s, "alice", "pw")
        clock.advance(hours=7, minutes=30)
        assert manager.prune() == 2
        assert len(store) == 1
        assert manager.resolve(fresh)

    def test_sweep_runs_on_interval(self, s, make_user, clock):
        store = MemorySessionStore()
        manager = SessionManager(store, prune_interval=timedelta(hours=1), clock=clock)
        make_user("alice")
        manager.login(s, "alice", "pw")
        clock.advance(hours=9)
        manager.login(s, "alice", "pw")
        assert len(store) == 1

    def test_sweep_waits_for_interval(self, s, make_user, clock):
        store = MemorySessionStore()
        manager = SessionManager(store, clock=clock)
        make_user("alice")
        manager.login(s, "alice", "pw")
        clock.advance(hours=9)
        manager.login(s, "alice", "pw")
        # Default sweep interval is 24h, so the expired entry is still stored.
        assert len(store) == 2


class TestDatabaseStore:
    @pytest.fixture()
    def db_sessions(self, session_factory, clock):
        return SessionManager(DatabaseSessionStore(session_factory=session_factory), clock=clock)

    def test_round_trip(self, s, db_sessions, make_user):
        user = make_user("alice")
        token, _ = db_sessions.login(s, "alice", "pw")
        assert db_sessions.resolve(token) == user.id
        db_sessions.destroy(token)
        with pytest.raises(Unauthenticated):
            db_sessions.resolve(token)

    def test_shared_between_managers(self, s, session_factory, db_sessions, make_user, clock):
        user = make_user("alice")
        token, _ = db_sessions.login(s, "alice", "pw")
        other_process = SessionManager(DatabaseSessionStore(session_factory=session_factory), clock=clock)
        assert other_process.resolve(token) == user.id

    def test_expiry_and_prune(self, s, db_sessions, make_user, clock):
        make_user("alice")
        old, _ = db_sessions.login(s, "alice", "pw")
        db_sessions.login(s, "alice", "pw")
        clock.advance(hours=8)
        with pytest.raises(Unauthenticated):
            db_sessions.resolve(old)
        assert db_sessions.prune() == 1

    def test_destroy_all_for_user(self, s, db_sessions, make_user):
        alice = make_user("alice")
        db_sessions.login(s, "alice", "pw")
        db_sessions.login(s, "alice", "pw")
        assert db_sessions.destroy_all_for_user(alice.id) == 2


class TestFromConfig:
    def test_memory_backend(self):
        manager = session_manager_from_config({"SESSION_BACKEND": "memory", "SESSION_TTL_SECONDS": 60})
        assert isinstance(manager.store, MemorySessionStore)
        assert manager.ttl == timedelta(seconds=60)
        assert manager.prune_interval == timedelta(hours=24)

    def test_database_backend(self, session_factory):
        manager = session_manager_from_config({"SESSION_BACKEND": "database"}, session_factory)
        assert isinstance(manager.store, DatabaseSessionStore)
        assert manager.ttl == timedelta(hours=8)

    def test_database_backend_needs_sessionmaker(self):
        with pytest.raises(RuntimeError):
            session_manager_from_config({"SESSION_BACKEND": "database"})

    def test_unknown_backend(self):
        with pytest.raises(RuntimeError):
            session_manager_from_config({"SESSION_BACKEND": "redis"})
