import sys
from pathlib import Path
import os

from werkzeug.security import generate_password_hash
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from contextlib import contextmanager

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.aprameya.constants import Role
from app.aprameya.models import User

DEMO_USERS = (
    ("core", "core@aprameya.club", Role.CORE_TEAM),
    ("aspirant", "aspirant@aprameya.club", Role.ASPIRANT),
)


@contextmanager
def _session_scope(database_url: str):
    engine = create_engine(database_url, future=True)
    sm = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
    s: Session = sm()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()


def _ensure_user(s: Session, username: str, email: str, password: str, role: Role) -> tuple[User, bool]:
    user = s.execute(select(User).where(User.username == username)).scalar_one_or_none()
    if user:
        return user, False
    user = User(username=username, email=email, password_hash=generate_password_hash(password), role=role.value)
    s.add(user)
    return user, True


def seed_only(*, database_url: str | None = None) -> None:
    """
    Seed the admin account (and optional demo members) in an idempotent way.
    Does NOT overwrite an existing user's password or role.
    """
    admin_username = (os.environ.get("ADMIN_USERNAME") or "admin").strip()
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@aprameya.club").strip().lower()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "change-me"
    seed_demo = (os.environ.get("SEED_DEMO_USERS") or "").strip().lower() in ("1", "true", "yes")

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///aprameya.db").strip()

    # Direct engine/session so this can run in release without building the Flask app.
    with _session_scope(db_url) as s:
        _, created = _ensure_user(s, admin_username, admin_email, admin_password, Role.ADMIN)
        print(f"Admin user {admin_username}: {'created' if created else 'already present'}")

        if seed_demo:
            demo_password = os.environ.get("DEMO_PASSWORD") or "change-me"
            for username, email, role in DEMO_USERS:
                _, created = _ensure_user(s, username, email, demo_password, role)
                print(f"Demo user {username} ({role.value}): {'created' if created else 'already present'}")

    print("Initialized database (seed_only).")
    print("Admin password: (from ADMIN_PASSWORD)")


def main() -> None:
    seed_only(database_url=None)


if __name__ == "__main__":
    main()
