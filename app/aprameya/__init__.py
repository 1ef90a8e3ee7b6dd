import logging
import os
from datetime import timedelta

from flask import Flask, g, jsonify, request, session
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException

from app.aprameya.config import load_config
from app.aprameya.db import init_db, teardown_db_session
from app.aprameya.models import Base
from app.aprameya.errors import AccessError, Unauthenticated
from app.aprameya.sessions import session_manager_from_config
from app.aprameya.routes import bp as routes_bp
from app.aprameya.auth import bp as auth_bp, load_current_user
from app.aprameya.admin import bp as admin_bp
from app.aprameya.modules.content.admin import bp as content_bp
from app.aprameya.modules.comments.admin import bp as comments_bp
from app.aprameya.modules.messages.admin import bp as messages_bp
from app.aprameya.modules.registrations.admin import bp as registrations_bp

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(seconds=app.config["SESSION_TTL_SECONDS"])

    from app.aprameya.security import csrf_required, validate_csrf
    from app.aprameya.utils import session_manager

    @app.before_request
    def _csrf_guard():
        if request.path.startswith(("/health", "/healthz")):
            return None
        # Allow safe auth endpoints to pass through (register/login/logout)
        if (request.endpoint or "").startswith("auth."):
            return None
        if csrf_required(request) and not validate_csrf(request):
            try:
                session_manager().resolve(session.get("sid"))
            except Unauthenticated:
                # Stale cookie: the request is anonymous and gets a 401 downstream.
                return None
            return jsonify({"error": "CSRF token missing or invalid.", "code": "csrf_failed"}), 400
        return None

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")
        if app.config.get("SESSION_BACKEND") == "memory":
            app.logger.warning("SESSION_BACKEND=memory in production: sessions are per-process and lost on restart.")

    init_db(app)

    if (os.environ.get("AUTO_CREATE_TABLES") or "").strip() == "1":
        Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
        app.logger.info("AUTO_CREATE_TABLES=1: ensured all tables exist")

    def _dispose_engine_on_fork() -> None:
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    app.extensions["session_manager"] = session_manager_from_config(
        app.config, app.extensions["sqlalchemy_sessionmaker"]
    )

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_blueprint(admin_bp, url_prefix="/api")
    app.register_blueprint(content_bp, url_prefix="/api")
    app.register_blueprint(comments_bp, url_prefix="/api")
    app.register_blueprint(messages_bp, url_prefix="/api")
    app.register_blueprint(registrations_bp, url_prefix="/api")

    app.before_request(load_current_user)
    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(AccessError)
    def _err_access(e: AccessError):  # type: ignore[no-redef]
        if e.status_code == 403:
            app.logger.warning(
                "Forbidden: %s %s user=%s request_id=%s",
                request.method,
                request.path,
                getattr(getattr(g, "current_user", None), "id", None),
                getattr(g, "request_id", None),
            )
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def _err_http(e: HTTPException):  # type: ignore[no-redef]
        return jsonify({"error": e.description, "code": (e.name or "error").lower().replace(" ", "_")}), e.code

    @app.errorhandler(Exception)
    def _err_500(e: Exception):  # type: ignore[no-redef]
        # Ensure stack trace shows in logs.
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return jsonify({"error": "Internal server error.", "code": "internal_error"}), 500

    logger.info("create_app() complete; app ready to serve")

    return app
