from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parent


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value or default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_host: str
    app_port: int
    log_level: str
    log_format: str
    log_redact_fields: str
    log_requests: bool
    log_request_skip_paths: str
    log_uvicorn_access: bool
    session_secret_key: str
    session_cookie_secure: bool
    page_session_max_pages: int
    page_session_max_sessions: int
    page_session_idle_seconds: int
    themes_root: Path


def load_settings() -> Settings:
    return Settings(
        app_name=_env_str("APP_NAME", "themecookie"),
        app_host=_env_str("APP_HOST", "127.0.0.1"),
        app_port=_env_int("APP_PORT", 8000),
        log_level=_env_str("LOG_LEVEL", "INFO"),
        log_format=_env_str("LOG_FORMAT", "console"),
        log_redact_fields=_env_str("LOG_REDACT_FIELDS", ""),
        log_requests=_env_bool("LOG_REQUESTS", True),
        log_request_skip_paths=_env_str("LOG_REQUEST_SKIP_PATHS", "/healthz,/themes/"),
        log_uvicorn_access=_env_bool("LOG_UVICORN_ACCESS", False),
        session_secret_key=_env_str("SESSION_SECRET_KEY", "dev-insecure-session-secret"),
        session_cookie_secure=_env_bool("SESSION_COOKIE_SECURE", False),
        page_session_max_pages=_env_int("PAGE_SESSION_MAX_PAGES", 10),
        page_session_max_sessions=_env_int("PAGE_SESSION_MAX_SESSIONS", 1000),
        page_session_idle_seconds=_env_int("PAGE_SESSION_IDLE_SECONDS", 1800),
        themes_root=Path(_env_str("THEMES_ROOT", str(PACKAGE_ROOT / "static" / "themes"))),
    )


settings = load_settings()
