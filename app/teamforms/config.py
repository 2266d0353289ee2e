import os
from dataclasses import dataclass
from datetime import timedelta

from app.teamforms.utils import parse_positive_int


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    log_level: str
    session_hours: int
    login_rate_limit: int  # failed attempts per IP per window


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///teamforms.db"),
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
        session_hours=parse_positive_int(_getenv("SESSION_HOURS"), 8),
        login_rate_limit=parse_positive_int(_getenv("LOGIN_RATE_LIMIT"), 5),
    )


def load_config() -> dict:
    s = load_settings()
    is_production = s.env in ("prod", "production")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "LOG_LEVEL": s.log_level,
        "LOGIN_RATE_LIMIT": s.login_rate_limit,
        "PERMANENT_SESSION_LIFETIME": timedelta(hours=s.session_hours),
        # cookie session for a JSON API
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,
        "MAX_CONTENT_LENGTH": 1 * 1024 * 1024,
    }
