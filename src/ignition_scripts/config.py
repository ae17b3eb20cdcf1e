import os
from dataclasses import dataclass


def _bool(val: str | None, default: bool) -> bool:
    if val is None:
        return default
    return val.lower() in {"1", "true", "yes", "y", "on"}


def _int(val: str | None, default: int) -> int:
    if val is None or not val.strip():
        return default
    return int(val)


@dataclass
class Settings:
    # Core settings
    app_env: str = os.getenv("APP_ENV", "development")
    app_port: int = _int(os.getenv("APP_PORT"), 8000)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    api_version: str = os.getenv("API_VERSION", "1.0.0")

    # Security
    api_key_required: bool = _bool(os.getenv("API_KEY_REQUIRED"), False)
    api_key: str | None = os.getenv("API_KEY")

    # JSON handling
    default_json_indent: int = _int(os.getenv("DEFAULT_JSON_INDENT"), 2)
    max_document_chars: int = _int(os.getenv("MAX_DOCUMENT_CHARS"), 5_000_000)

    # Conflict sessions
    max_sessions: int = _int(os.getenv("MAX_SESSIONS"), 256)


settings = Settings()
