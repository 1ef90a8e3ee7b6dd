import secrets

from flask import Request, current_app, session


def ensure_csrf_token() -> str:
    """Ensure a CSRF token exists in the session and return it."""
    token = session.get("csrf_token")
    if not token:
        token = secrets.token_urlsafe(32)
        session["csrf_token"] = token
    return token


def rotate_csrf_token() -> str:
    """New token on login so a pre-login token cannot be replayed."""
    session["csrf_token"] = secrets.token_urlsafe(32)
    return session["csrf_token"]


def csrf_required(req: Request) -> bool:
    """
    Only cookie-authenticated mutations need a token. Bearer-token clients and
    anonymous requests carry no ambient credentials.
    """
    if not current_app.config.get("CSRF_ENABLED", True):
        return False
    if req.method not in ("POST", "PUT", "PATCH", "DELETE"):
        return False
    if (req.headers.get("Authorization") or "").startswith("Bearer "):
        return False
    return bool(session.get("sid"))


def validate_csrf(req: Request) -> bool:
    """Validate CSRF token from header or JSON body."""
    token = req.headers.get("X-CSRF-Token")

    if not token and req.is_json:
        json_data = req.get_json(silent=True) or {}
        if isinstance(json_data, dict):
            token = json_data.get("csrf_token")

    expected = session.get("csrf_token")
    return bool(token and expected and secrets.compare_digest(str(token), str(expected)))
