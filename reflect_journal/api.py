"""HTTP surface for the journal.

Routes return plain JSON built from the store and the aggregation helpers.
The database handle and the insight generator are passed to ``create_app``
so that tests and the CLI decide their lifecycle.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import date
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import __version__
from .ai import InsightGenerator
from .database import JournalDatabase
from .models import JournalEntry, ThemeCount, TimelineDay
from .themes import rank_themes
from .timeline import WINDOW_DAYS, build_timeline, format_day_heading, group_entries_by_date

_logger = logging.getLogger(__name__)

_SQLITE_MIN_ID = -(2**63)
_SQLITE_MAX_ID = 2**63 - 1


def create_app(database: JournalDatabase, generator: InsightGenerator) -> FastAPI:
    app = FastAPI(title="Reflect Journal", version=__version__)
    app.state.database = database
    app.state.generator = generator

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Only the entry body is validated, so a malformed one reads as a missing reflection.
        return JSONResponse(status_code=400, content={"detail": "Reflection text is required"})

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {"status": "ok", "ai_configured": generator.configured}

    @app.get("/entries")
    def list_entries(
        days: str | None = Query(None),
        day: str | None = Query(None, alias="date"),
    ) -> dict[str, Any]:
        try:
            if day is not None:
                entries = database.list_entries_for_date(_parse_day(day))
            elif days is not None:
                entries = database.list_recent_entries(_parse_days(days))
            else:
                entries = database.list_entries()
            return {"entries": [entry_to_dict(entry) for entry in entries]}
        except HTTPException:
            raise
        except Exception:
            _logger.exception("Listing entries failed")
            raise HTTPException(status_code=500, detail="Failed to fetch journal entries")

    @app.get("/entries/{entry_id}")
    def get_entry(entry_id: str) -> dict[str, Any]:
        try:
            parsed_id = int(entry_id)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid entry ID")
        if not _SQLITE_MIN_ID <= parsed_id <= _SQLITE_MAX_ID:
            raise HTTPException(status_code=404, detail="Entry not found")
        try:
            entry = database.get_entry(parsed_id)
        except Exception:
            _logger.exception("Fetching entry %s failed", parsed_id)
            raise HTTPException(status_code=500, detail="Failed to fetch journal entry")
        if entry is None:
            raise HTTPException(status_code=404, detail="Entry not found")
        return {"entry": entry_to_dict(entry)}

    @app.post("/entries")
    def create_entry(payload: Any = Body(None)) -> dict[str, Any]:
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Reflection text is required")
        reflection = payload.get("reflection")
        if not isinstance(reflection, str) or not reflection.strip():
            raise HTTPException(status_code=400, detail="Reflection text is required")
        emotion = payload.get("emotion")
        emotion = emotion if isinstance(emotion, str) and emotion.strip() else None

        try:
            entry = database.create_entry(emotion, reflection)
            insight = generator.generate(entry.reflection, entry.emotion)
            database.create_insight(entry.id, insight.summary, insight.themes)
            stored = database.get_entry(entry.id)
        except Exception:
            _logger.exception("Creating entry failed")
            raise HTTPException(status_code=500, detail="Failed to create journal entry")
        _logger.info("Created entry %s with %d themes", entry.id, len(insight.themes))
        return {"entry": entry_to_dict(stored or entry)}

    @app.get("/themes")
    def themes() -> dict[str, Any]:
        try:
            ranked = rank_themes(database.list_entries())
        except Exception:
            _logger.exception("Ranking themes failed")
            raise HTTPException(status_code=500, detail="Failed to compute themes")
        return {"themes": [theme_to_dict(theme) for theme in ranked]}

    @app.get("/timeline")
    def timeline() -> dict[str, Any]:
        today = date.today()
        try:
            days = build_timeline(database.list_recent_entries(WINDOW_DAYS, today), today)
        except Exception:
            _logger.exception("Building timeline failed")
            raise HTTPException(status_code=500, detail="Failed to build timeline")
        return {"days": [timeline_day_to_dict(day) for day in days]}

    @app.get("/reflections")
    def reflections() -> dict[str, Any]:
        try:
            grouped = group_entries_by_date(database.list_entries())
        except Exception:
            _logger.exception("Listing reflections failed")
            raise HTTPException(status_code=500, detail="Failed to fetch journal entries")
        return {
            "days": [
                {
                    "day": day,
                    "label": format_day_heading(day),
                    "entries": [entry_to_dict(entry) for entry in day_entries],
                }
                for day, day_entries in grouped
            ]
        }

    return app


def entry_to_dict(entry: JournalEntry) -> dict[str, Any]:
    insight = entry.insight
    return {
        "id": entry.id,
        "date": entry.date,
        "emotion": entry.emotion,
        "reflection": entry.reflection,
        "created_at": entry.created_at,
        "insights": (
            {"summary": insight.summary, "themes": list(insight.themes)}
            if insight is not None
            else None
        ),
    }


def theme_to_dict(theme: ThemeCount) -> dict[str, Any]:
    return {"name": theme.name, "count": theme.count, "label": theme.label}


def timeline_day_to_dict(day: TimelineDay) -> dict[str, Any]:
    return {
        "day": day.day,
        "days_ago": day.days_ago,
        "label": day.label,
        "segments": [asdict(segment) for segment in day.segments],
    }


def _parse_day(value: str) -> str:
    try:
        return date.fromisoformat(value.strip()).isoformat()
    except ValueError:
        raise HTTPException(status_code=400, detail="date must be YYYY-MM-DD")


def _parse_days(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        raise HTTPException(status_code=400, detail="days must be an integer")
