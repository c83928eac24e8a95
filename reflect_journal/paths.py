from __future__ import annotations

import os
from pathlib import Path

APP_DIR_NAME = ".reflect_journal"


def data_directory() -> Path:
    custom = os.environ.get("REFLECT_DATA_DIR", "").strip()
    if custom:
        return Path(custom).expanduser()
    return Path.home() / APP_DIR_NAME


def database_path() -> Path:
    custom = os.environ.get("REFLECT_DB_PATH", "").strip()
    if custom:
        return Path(custom).expanduser()
    return data_directory() / "journal.sqlite3"
