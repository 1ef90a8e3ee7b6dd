import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    session_backend: str
    session_ttl_seconds: int
    session_prune_interval_seconds: int

    login_rate_limit: int
    login_rate_window_seconds: int
    csrf_enabled: bool


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getint(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer (got {raw!r}).")


def _getbool(name: str, default: bool) -> bool:
    raw = _getenv(name)
    if not raw:
        return default
    return raw.lower() in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///aprameya.db"),
        session_backend=_getenv("SESSION_BACKEND", "memory").lower(),
        session_ttl_seconds=_getint("SESSION_TTL_SECONDS", 8 * 60 * 60),
        session_prune_interval_seconds=_getint("SESSION_PRUNE_INTERVAL_SECONDS", 24 * 60 * 60),
        login_rate_limit=_getint("LOGIN_RATE_LIMIT", 5),
        login_rate_window_seconds=_getint("LOGIN_RATE_WINDOW_SECONDS", 300),
        csrf_enabled=_getbool("CSRF_ENABLED", True),
    )


def load_config() -> dict:
    s = load_settings()
    is_production = s.env in ("prod", "production")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "SESSION_BACKEND": s.session_backend,
        "SESSION_TTL_SECONDS": s.session_ttl_seconds,
        "SESSION_PRUNE_INTERVAL_SECONDS": s.session_prune_interval_seconds,
        "LOGIN_RATE_LIMIT": s.login_rate_limit,
        "LOGIN_RATE_WINDOW_SECONDS": s.login_rate_window_seconds,
        "CSRF_ENABLED": s.csrf_enabled,
        # security defaults
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,  # Require HTTPS in production
        "MAX_CONTENT_LENGTH": 2 * 1024 * 1024,
    }
