from flask import Blueprint, g, jsonify

from app.aprameya.dashboard import LOGIN_PATH, DashboardView, build_dashboard_context, resolve_dashboard
from app.aprameya.db import db_session
from app.aprameya.utils import session_manager

bp = Blueprint("routes", __name__)


@bp.get("/")
def index():
    return {"status": "Aprameya club API running"}


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for probes. No DB access, minimal overhead.
    """
    return "ok", 200


@bp.get("/api/dashboard")
def dashboard():
    user = getattr(g, "current_user", None)
    view = resolve_dashboard(user)
    if view is DashboardView.UNAUTHENTICATED:
        return jsonify({"view": view.value, "redirect": LOGIN_PATH, "code": "unauthenticated"}), 401
    context = build_dashboard_context(db_session(), session_manager(), view, user)
    return jsonify({"view": view.value, "user": user.to_dict(), "context": context})
