"""Configuration helpers for the intern tracker."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

STORE_BACKENDS = ("sqlite", "firestore")
DEFAULT_GEMINI_MODEL = "gemini-3-flash-preview"


@dataclass(slots=True)
class Settings:
    """Runtime configuration values loaded from environment variables."""

    store_backend: str = "sqlite"
    database_path: Path = Path("intern_tracker.db")
    api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    firebase_project_id: Optional[str] = None
    firebase_api_key: Optional[str] = None
    profile_limit: int = 50
    log_limit: int = 20
    http_timeout: float = 15.0


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer") from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be positive")
    return value


def load_settings(env_file: str | None = None) -> Settings:
    """Load settings from the environment, optionally from a specific file."""

    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    backend = os.getenv("STORE_BACKEND", "sqlite").strip().lower()
    if backend not in STORE_BACKENDS:
        raise RuntimeError(f"STORE_BACKEND must be one of: {', '.join(STORE_BACKENDS)}")

    project_id = os.getenv("FIREBASE_PROJECT_ID")
    firebase_key = os.getenv("FIREBASE_API_KEY")
    if backend == "firestore":
        if not project_id:
            raise RuntimeError("FIREBASE_PROJECT_ID must be configured")
        if not firebase_key:
            raise RuntimeError("FIREBASE_API_KEY must be configured")

    try:
        timeout = float(os.getenv("HTTP_TIMEOUT", "15"))
    except ValueError as exc:
        raise RuntimeError("HTTP_TIMEOUT must be a number") from exc

    return Settings(
        store_backend=backend,
        database_path=Path(os.getenv("DATABASE_PATH", "intern_tracker.db")).expanduser(),
        api_key=os.getenv("API_KEY") or None,
        gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
        gemini_model=os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
        firebase_project_id=project_id,
        firebase_api_key=firebase_key,
        profile_limit=_int_env("PROFILE_LIMIT", 50),
        log_limit=_int_env("LOG_LIMIT", 20),
        http_timeout=timeout,
    )


__all__ = ["Settings", "load_settings", "STORE_BACKENDS", "DEFAULT_GEMINI_MODEL"]
