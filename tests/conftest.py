from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from werkzeug.security import generate_password_hash

from app.aprameya.models import Base, User
from app.aprameya.sessions import MemorySessionStore, SessionManager


class FakeClock:
    def __init__(self, start: datetime = datetime(2024, 3, 1, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture()
def session_factory(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path/'service.db'}", future=True)
    Base.metadata.create_all(bind=engine)
    sm = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
    yield sm
    engine.dispose()


@pytest.fixture()
def s(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def sessions(clock):
    return SessionManager(MemorySessionStore(), clock=clock)


@pytest.fixture()
def make_user(s):
    def _make(username: str, role: str = "aspirant", password: str = "pw") -> User:
        u = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=generate_password_hash(password),
            role=role,
        )
        s.add(u)
        s.commit()
        return u

    return _make


@pytest.fixture()
def login(s, sessions):
    """Log a seeded user in and return the session token."""

    def _login(username: str, password: str = "pw") -> str:
        token, _ = sessions.login(s, username, password)
        return token

    return _login
