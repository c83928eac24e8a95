from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .paths import database_path

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str
    gemini_model: str
    database_path: Path
    host: str
    port: int
    log_level: str


def load_settings(env_file: str | None = None) -> Settings:
    """Read settings from the environment, after merging any ``.env`` file."""
    load_dotenv(env_file)
    return Settings(
        gemini_api_key=os.environ.get("GEMINI_API_KEY", "").strip(),
        gemini_model=os.environ.get("GEMINI_MODEL", "").strip() or DEFAULT_MODEL,
        database_path=database_path(),
        host=os.environ.get("HOST", "").strip() or DEFAULT_HOST,
        port=_env_int("PORT", DEFAULT_PORT),
        log_level=os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _env_int(key: str, default: int) -> int:
    value = os.environ.get(key, "").strip()
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    if parsed <= 0:
        return default
    return parsed
