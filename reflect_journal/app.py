from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from datetime import date
from pathlib import Path

from . import __version__
from .ai import InsightGenerator
from .api import create_app
from .config import Settings, configure_logging, load_settings
from .database import JournalDatabase
from .themes import rank_themes
from .timeline import WINDOW_DAYS, build_timeline

_logger = logging.getLogger(__name__)


def _patterns_cli(db: JournalDatabase) -> int:
    ranked = rank_themes(db.list_entries())
    print("Your themes:")
    if not ranked:
        print("  (no themes yet)")
    for theme in ranked:
        print(f"  {theme.name}: {theme.label}")

    today = date.today()
    days = build_timeline(db.list_recent_entries(WINDOW_DAYS, today), today)
    print("Your emotional patterns:")
    if not days:
        print("  (no entries in the last week)")
    for day in days:
        print(f"  {day.label} ({day.day})")
        for segment in day.segments:
            print(
                f"    {segment.time_label:>8} {segment.emotion or 'No emotion':<10} "
                f"left={segment.left:.2f} width={segment.width:.2f} {segment.excerpt}"
            )
    return 0


def _serve(settings: Settings, db: JournalDatabase) -> int:
    import uvicorn

    generator = InsightGenerator(api_key=settings.gemini_api_key, model=settings.gemini_model)
    app = create_app(db, generator)
    _logger.info("Serving Reflect on %s:%s (db=%s)", settings.host, settings.port, db.path)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="reflect-journal")
    parser.add_argument("--version", action="store_true", help="Print app version and exit")
    parser.add_argument("--patterns", action="store_true", help="Print themes and the weekly timeline and exit")
    parser.add_argument("--host", help="Interface to bind the HTTP server to")
    parser.add_argument("--port", type=int, help="Port for the HTTP server")
    parser.add_argument("--db-path", type=Path, help="SQLite database file")
    args = parser.parse_args(argv)
    if args.version:
        print(__version__)
        return 0

    settings = load_settings()
    configure_logging(settings.log_level)
    db = JournalDatabase(args.db_path or settings.database_path)
    if args.patterns:
        return _patterns_cli(db)

    overrides = replace(
        settings,
        database_path=db.path,
        host=args.host or settings.host,
        port=args.port or settings.port,
    )
    return _serve(overrides, db)
