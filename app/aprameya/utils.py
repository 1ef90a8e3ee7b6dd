from __future__ import annotations

from flask import current_app, g, request, session

from app.aprameya.errors import Unauthenticated, ValidationError
from app.aprameya.models import User
from app.aprameya.sessions import SessionManager


def request_payload() -> dict:
    """JSON object body, or form fields for plain form posts."""
    if request.is_json:
        data = request.get_json(silent=True)
        if data is None:
            raise ValidationError("Request body is not valid JSON.")
        if not isinstance(data, dict):
            raise ValidationError("Payload must be a JSON object.")
        return data
    return request.form.to_dict()


def session_manager() -> SessionManager:
    return current_app.extensions["session_manager"]


def current_token() -> str | None:
    """Bearer header first, then the signed session cookie."""
    auth = request.headers.get("Authorization") or ""
    if auth.startswith("Bearer "):
        return auth[len("Bearer "):].strip() or None
    return session.get("sid")


def current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise Unauthenticated()
    return u
