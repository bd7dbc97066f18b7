"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time; missing AWS ids only matter when the
  corresponding backend is actually used.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .models import NluBackend, StorageBackend

ENV_PREFIX = "TASKBOT"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_local_dotenv() -> None:
    """Load a local .env without overriding variables already set."""
    load_dotenv(override=False)


_load_local_dotenv()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_enum(name: str, enum_cls, default):
    raw = (os.getenv(name) or "").strip().lower()
    try:
        return enum_cls(raw) if raw else default
    except ValueError:
        return default


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    log_dir: Path

    # ---- Task persistence ----
    storage_backend: StorageBackend
    data_dir: Path
    local_store_path: Path
    graphql_url: str
    http_timeout: float

    # ---- AWS / Cognito ----
    aws_region: str
    user_pool_id: str
    user_pool_client_id: str
    identity_pool_id: str

    # ---- Conversational engine ----
    nlu_backend: NluBackend
    lex_bot_id: str
    lex_bot_alias_id: str
    lex_locale: str
    lex_session_id: str
    openai_api_key: Optional[str]
    openai_model: str

    # ---- Voice / transcription ----
    audio_bucket: str
    transcribe_language: str
    transcribe_media_format: str
    poll_interval_seconds: float
    poll_max_attempts: int

    @property
    def voice_enabled(self) -> bool:
        return bool(self.audio_bucket)

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "Task Manager")
        log_level = _env(_k("LOG_LEVEL"), "INFO").upper()

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskbot"))
        log_dir = _env_path(_k("LOG_DIR"), data_dir)
        local_store_path = _env_path(_k("LOCAL_STORE_PATH"), data_dir / "storage.json")

        storage_backend = _env_enum(
            _k("STORAGE_BACKEND"), StorageBackend, StorageBackend.LOCAL
        )
        nlu_backend = _env_enum(_k("NLU_BACKEND"), NluBackend, NluBackend.LEX)

        aws_region = (
            _first_env(_k("AWS_REGION"), "AWS_REGION", "AWS_DEFAULT_REGION", default="")
            or "us-east-1"
        )

        return Settings(
            app_name=app_name,
            log_level=log_level,
            log_dir=log_dir,
            storage_backend=storage_backend,
            data_dir=data_dir,
            local_store_path=local_store_path,
            graphql_url=_env(_k("GRAPHQL_URL"), "").strip(),
            http_timeout=_env_float(_k("HTTP_TIMEOUT"), 15.0),
            aws_region=aws_region,
            user_pool_id=_env(_k("USER_POOL_ID"), "").strip(),
            user_pool_client_id=_env(_k("USER_POOL_CLIENT_ID"), "").strip(),
            identity_pool_id=_env(_k("IDENTITY_POOL_ID"), "").strip(),
            nlu_backend=nlu_backend,
            lex_bot_id=_env(_k("LEX_BOT_ID"), "").strip(),
            lex_bot_alias_id=_env(_k("LEX_BOT_ALIAS_ID"), "").strip(),
            lex_locale=_env(_k("LEX_LOCALE"), "en_US"),
            lex_session_id=_env(_k("LEX_SESSION_ID"), "").strip(),
            openai_api_key=_first_env(_k("OPENAI_API_KEY"), "OPENAI_API_KEY", default=None),
            openai_model=_env(_k("OPENAI_MODEL"), "gpt-4o-mini"),
            audio_bucket=_env(_k("AUDIO_BUCKET"), "").strip(),
            transcribe_language=_env(_k("TRANSCRIBE_LANGUAGE"), "en-US"),
            transcribe_media_format=_env(_k("TRANSCRIBE_MEDIA_FORMAT"), "wav"),
            poll_interval_seconds=_env_float(_k("POLL_INTERVAL_SECONDS"), 5.0),
            poll_max_attempts=_env_int(_k("POLL_MAX_ATTEMPTS"), 60),
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
