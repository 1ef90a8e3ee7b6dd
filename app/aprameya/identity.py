"""
Identity store: user records and their roles.

Absence is signalled with None; conflicts and bad input raise the access-layer
errors. Callers own the transaction (flush here, commit in the request layer).
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from app.aprameya.constants import PROFILE_FIELDS, Role
from app.aprameya.errors import DuplicateEmail, DuplicateUsername, ValidationError
from app.aprameya.models import User, column_max_length

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

# Compared against when the username does not exist, so both login failure
# paths do the same amount of work.
_DUMMY_PASSWORD_HASH = generate_password_hash("aprameya-dummy-password")


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def validate_registration(username: str | None, password: str | None, email: str | None) -> list[str]:
    errors = []
    if not (username or "").strip():
        errors.append("Username is required.")
    elif len(username.strip()) > 64:
        errors.append("Username must be at most 64 characters.")
    if not password:
        errors.append("Password is required.")
    email = _normalize_email(email)
    if not email:
        errors.append("Email is required.")
    elif "@" not in email:
        errors.append("Email is invalid.")
    elif len(email) > column_max_length(User, "email"):
        errors.append("Email is too long.")
    return errors


def get_user_by_id(s: "Session", user_id: int) -> User | None:
    return s.get(User, user_id)


def get_user_by_username(s: "Session", username: str) -> User | None:
    username = (username or "").strip()
    if not username:
        return None
    return s.execute(select(User).where(User.username == username)).scalar_one_or_none()


def get_user_by_email(s: "Session", email: str) -> User | None:
    email = _normalize_email(email)
    if not email:
        return None
    return s.execute(select(User).where(User.email == email)).scalar_one_or_none()


def create_user(s: "Session", username: str, password: str, email: str) -> User:
    """
    Register a new member. The role is always aspirant; there is deliberately
    no parameter for it.
    """
    errors = validate_registration(username, password, email)
    if errors:
        raise ValidationError(errors)
    username = username.strip()
    email = _normalize_email(email)

    if get_user_by_username(s, username) is not None:
        raise DuplicateUsername()
    if get_user_by_email(s, email) is not None:
        raise DuplicateEmail()

    user = User(
        username=username,
        email=email,
        password_hash=generate_password_hash(password),
        role=Role.ASPIRANT.value,
    )
    s.add(user)
    try:
        s.flush()
    except IntegrityError:
        # Lost a race with a concurrent registration.
        s.rollback()
        if get_user_by_username(s, username) is not None:
            raise DuplicateUsername()
        raise DuplicateEmail()
    return user


def verify_credentials(user: User | None, password: str) -> bool:
    if user is None:
        check_password_hash(_DUMMY_PASSWORD_HASH, password or "")
        return False
    return check_password_hash(user.password_hash, password or "")


def set_user_role(s: "Session", user_id: int, new_role: Role | str) -> User | None:
    """Unconditional write; the caller has already checked the policy and the role value."""
    user = s.get(User, user_id)
    if user is None:
        return None
    user.role = Role(new_role).value
    s.flush()
    return user


def list_users(s: "Session") -> list[User]:
    return list(s.execute(select(User).order_by(User.id.asc())).scalars())


def list_users_by_role(s: "Session", role: Role | str) -> list[User]:
    value = role.value if isinstance(role, Role) else str(role)
    return list(s.execute(select(User).where(User.role == value).order_by(User.id.asc())).scalars())


def count_users_by_role(s: "Session") -> dict[str, int]:
    counts = {r.value: 0 for r in Role}
    for user in list_users(s):
        counts[user.role] = counts.get(user.role, 0) + 1
    return counts


def update_profile(s: "Session", user: User, payload: dict) -> dict:
    """
    Update profile fields, email and password. Role and username are never
    changed through this path. Returns the changed field names (old/new for
    non-secret fields) for the audit trail.
    """
    changes: dict = {}

    for name in ("email", "password"):
        value = payload.get(name)
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{name.capitalize()} must be a string.")

    errors = []
    for name in PROFILE_FIELDS + ("email",):
        limit = column_max_length(User, name)
        if len(str(payload.get(name) or "").strip()) > limit:
            errors.append(f"{name} must be at most {limit} characters.")
    if errors:
        raise ValidationError(errors)

    new_email = user.email
    if "email" in payload:
        new_email = _normalize_email(payload.get("email"))
        if not new_email or "@" not in new_email:
            raise ValidationError("Email is invalid.")
        if new_email != user.email:
            existing = get_user_by_email(s, new_email)
            if existing is not None and existing.id != user.id:
                raise DuplicateEmail()

    for name in PROFILE_FIELDS:
        if name not in payload:
            continue
        new_value = str(payload.get(name) or "").strip() or None
        if new_value != getattr(user, name):
            changes[name] = {"old": getattr(user, name), "new": new_value}
            setattr(user, name, new_value)

    if new_email != user.email:
        changes["email"] = {"old": user.email, "new": new_email}
        user.email = new_email

    if payload.get("password"):
        user.password_hash = generate_password_hash(payload["password"])
        changes["password"] = {"changed": True}

    s.flush()
    return changes
