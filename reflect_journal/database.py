from __future__ import annotations

import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Sequence

from .models import MAX_THEMES_PER_INSIGHT, AIInsight, JournalEntry

_ENTRY_COLUMNS = """
    e.id, e.date, e.emotion, e.reflection, e.created_at,
    i.entry_id AS insight_entry_id,
    i.summary AS insight_summary,
    i.themes AS insight_themes,
    i.created_at AS insight_created_at
"""


class JournalDatabase:
    def __init__(self, db_file: Path):
        self._db_file = Path(db_file)
        self._db_file.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._init_schema()

    @property
    def path(self) -> Path:
        return self._db_file

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_file, timeout=30)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    @contextmanager
    def _connection(self):
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._lock, self._connection() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS journal_entries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    date TEXT NOT NULL,
                    emotion TEXT,
                    reflection TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_journal_entries_date
                ON journal_entries(date);

                CREATE TABLE IF NOT EXISTS ai_insights (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    entry_id INTEGER NOT NULL UNIQUE,
                    summary TEXT NOT NULL,
                    themes TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY (entry_id) REFERENCES journal_entries(id) ON DELETE CASCADE
                );

                CREATE INDEX IF NOT EXISTS idx_ai_insights_entry_id
                ON ai_insights(entry_id);
                """
            )
            conn.commit()

    def create_entry(
        self,
        emotion: str | None,
        reflection: str,
        created_at: datetime | None = None,
    ) -> JournalEntry:
        text = reflection.strip()
        if not text:
            raise ValueError("Reflection text is required.")
        moment = created_at or datetime.now().astimezone()
        label = (emotion or "").strip() or None

        with self._lock, self._connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO journal_entries(date, emotion, reflection, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (moment.date().isoformat(), label, text, moment.isoformat()),
            )
            conn.commit()
            entry_id = int(cursor.lastrowid)

        return JournalEntry(
            id=entry_id,
            date=moment.date().isoformat(),
            emotion=label,
            reflection=text,
            created_at=moment.isoformat(),
        )

    def get_entry(self, entry_id: int) -> JournalEntry | None:
        with self._lock, self._connection() as conn:
            row = conn.execute(
                f"""
                SELECT {_ENTRY_COLUMNS}
                FROM journal_entries e
                LEFT JOIN ai_insights i ON i.entry_id = e.id
                WHERE e.id = ?
                """,
                (int(entry_id),),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_entry(row)

    def list_entries(self) -> list[JournalEntry]:
        with self._lock, self._connection() as conn:
            rows = conn.execute(
                f"""
                SELECT {_ENTRY_COLUMNS}
                FROM journal_entries e
                LEFT JOIN ai_insights i ON i.entry_id = e.id
                ORDER BY e.date DESC, e.created_at DESC, e.id DESC
                """
            ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def list_entries_for_date(self, day: str) -> list[JournalEntry]:
        with self._lock, self._connection() as conn:
            rows = conn.execute(
                f"""
                SELECT {_ENTRY_COLUMNS}
                FROM journal_entries e
                LEFT JOIN ai_insights i ON i.entry_id = e.id
                WHERE e.date = ?
                ORDER BY e.created_at DESC, e.id DESC
                """,
                (day,),
            ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def list_recent_entries(self, days: int, today: date | None = None) -> list[JournalEntry]:
        reference = today or date.today()
        try:
            cutoff = reference - timedelta(days=int(days))
        except OverflowError:
            cutoff = date.min if int(days) > 0 else date.max
        with self._lock, self._connection() as conn:
            rows = conn.execute(
                f"""
                SELECT {_ENTRY_COLUMNS}
                FROM journal_entries e
                LEFT JOIN ai_insights i ON i.entry_id = e.id
                WHERE e.date >= ?
                ORDER BY e.date DESC, e.created_at DESC, e.id DESC
                """,
                (cutoff.isoformat(),),
            ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def delete_entry(self, entry_id: int) -> bool:
        with self._lock, self._connection() as conn:
            cursor = conn.execute("DELETE FROM journal_entries WHERE id = ?", (int(entry_id),))
            conn.commit()
            return cursor.rowcount > 0

    def create_insight(self, entry_id: int, summary: str, themes: Sequence[str]) -> AIInsight:
        kept = tuple(str(theme) for theme in themes)[:MAX_THEMES_PER_INSIGHT]
        now = datetime.now().astimezone().isoformat()
        with self._lock, self._connection() as conn:
            conn.execute(
                """
                INSERT INTO ai_insights(entry_id, summary, themes, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (int(entry_id), summary.strip(), json.dumps(list(kept)), now),
            )
            conn.commit()
        return AIInsight(entry_id=int(entry_id), summary=summary.strip(), themes=kept, created_at=now)

    def get_insight(self, entry_id: int) -> AIInsight | None:
        with self._lock, self._connection() as conn:
            row = conn.execute(
                """
                SELECT entry_id, summary, themes, created_at
                FROM ai_insights
                WHERE entry_id = ?
                """,
                (int(entry_id),),
            ).fetchone()
        if row is None:
            return None
        return AIInsight(
            entry_id=int(row["entry_id"]),
            summary=str(row["summary"]),
            themes=_decode_themes(row["themes"]),
            created_at=str(row["created_at"]),
        )

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> JournalEntry:
        insight = None
        if row["insight_entry_id"] is not None:
            insight = AIInsight(
                entry_id=int(row["insight_entry_id"]),
                summary=str(row["insight_summary"]),
                themes=_decode_themes(row["insight_themes"]),
                created_at=str(row["insight_created_at"]),
            )
        return JournalEntry(
            id=int(row["id"]),
            date=str(row["date"]),
            emotion=row["emotion"],
            reflection=str(row["reflection"]),
            created_at=str(row["created_at"]),
            insight=insight,
        )


def _decode_themes(raw: str | None) -> tuple[str, ...]:
    try:
        parsed = json.loads(raw or "[]")
    except json.JSONDecodeError:
        return ()
    if not isinstance(parsed, list):
        return ()
    return tuple(str(theme) for theme in parsed)[:MAX_THEMES_PER_INSIGHT]
