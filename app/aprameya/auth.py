from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from flask import Blueprint, current_app, g, jsonify, request, session

from app.aprameya.audit import record_event
from app.aprameya.db import db_session
from app.aprameya.errors import AccessError, InvalidCredentials, Unauthenticated
from app.aprameya.identity import create_user, get_user_by_id
from app.aprameya.security import rotate_csrf_token
from app.aprameya.utils import current_token, current_user, request_payload, session_manager

bp = Blueprint("auth", __name__)
_login_attempts: dict[str, list[datetime]] = defaultdict(list)


class TooManyAttempts(AccessError):
    status_code = 429
    code = "too_many_attempts"
    default_message = "Too many login attempts. Please wait a few minutes."


def _check_rate_limit(ip: str) -> bool:
    limit = int(current_app.config.get("LOGIN_RATE_LIMIT", 5))
    window = int(current_app.config.get("LOGIN_RATE_WINDOW_SECONDS", 300))
    now = datetime.utcnow()
    cutoff = now - timedelta(seconds=window)
    _login_attempts[ip] = [t for t in _login_attempts[ip] if t > cutoff]
    return len(_login_attempts[ip]) >= limit


def _record_attempt(ip: str) -> None:
    _login_attempts[ip].append(datetime.utcnow())


def load_current_user() -> None:
    """
    Resolves the request's session token to g.current_user (None when absent,
    unknown or expired). Also assigns a per-request request_id for audit/log correlation.
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    g.current_user = None
    if request.path.startswith(("/static/", "/health", "/healthz")):
        return

    token = current_token()
    if not token:
        return
    try:
        user_id = session_manager().resolve(token)
    except Unauthenticated:
        session.pop("sid", None)
        return

    user = get_user_by_id(db_session(), user_id)
    if user is None:
        session_manager().destroy(token)
        session.pop("sid", None)
        return
    g.current_user = user


@bp.post("/register")
def register():
    s = db_session()
    data = request_payload()
    # Any client-supplied role is ignored; new members are always aspirants.
    user = create_user(
        s,
        username=str(data.get("username") or ""),
        password=str(data.get("password") or ""),
        email=str(data.get("email") or ""),
    )
    record_event(s, actor=user, action="user.register", entity_type="User", entity_id=str(user.id))
    s.commit()
    current_app.logger.info("Registered user id=%s username=%s", user.id, user.username)
    return jsonify(user.to_dict()), 201


@bp.post("/login")
def login():
    data = request_payload()
    username = str(data.get("username") or "").strip()
    password = str(data.get("password") or "")
    ip = request.remote_addr or "unknown"

    if _check_rate_limit(ip):
        current_app.logger.warning("Login rate limit hit (ip=%s)", ip)
        raise TooManyAttempts()
    _record_attempt(ip)

    s = db_session()
    try:
        token, user_id = session_manager().login(s, username, password)
    except InvalidCredentials:
        record_event(
            s,
            actor=None,
            action="auth.login_failed",
            entity_type="User",
            entity_id=username or None,
            reason="Invalid credentials",
            metadata={"username": username},
        )
        s.commit()
        current_app.logger.warning("Failed login (username=%s ip=%s request_id=%s)", username, ip, g.request_id)
        raise

    # Drop whatever token this browser held before.
    session_manager().destroy(session.get("sid"))
    session.clear()
    session.permanent = True
    session["sid"] = token
    csrf_token = rotate_csrf_token()
    _login_attempts[ip].clear()

    user = get_user_by_id(s, user_id)
    record_event(s, actor=user, action="auth.login", entity_type="User", entity_id=str(user.id))
    s.commit()
    body = user.to_dict()
    body["csrf_token"] = csrf_token
    body["session_token"] = token
    return jsonify(body)


@bp.post("/logout")
def logout():
    token = current_token()
    user = getattr(g, "current_user", None)
    if user:
        s = db_session()
        record_event(s, actor=user, action="auth.logout", entity_type="User", entity_id=str(user.id))
        s.commit()
    session_manager().destroy(token)
    session.pop("sid", None)
    return jsonify({"success": True})


@bp.get("/me")
def me():
    return jsonify(current_user().to_dict())
