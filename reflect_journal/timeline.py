from __future__ import annotations

from datetime import date, datetime
from itertools import groupby
from typing import Sequence

from .models import JournalEntry, TimelineDay, TimelineSegment, emotion_color

WINDOW_DAYS = 7
MIN_SEGMENT_WIDTH = 8.0
EXCERPT_LENGTH = 50
MINUTES_PER_DAY = 24 * 60


def build_timeline(
    entries: Sequence[JournalEntry],
    today: date | None = None,
    window_days: int = WINDOW_DAYS,
) -> list[TimelineDay]:
    reference = today or date.today()
    days: list[TimelineDay] = []
    for day, day_entries in group_recent_entries(entries, reference, window_days):
        days.append(
            TimelineDay(
                day=day,
                days_ago=(reference - date.fromisoformat(day)).days,
                segments=tuple(build_day_segments(day_entries)),
            )
        )
    return days


def group_recent_entries(
    entries: Sequence[JournalEntry],
    today: date,
    window_days: int = WINDOW_DAYS,
) -> list[tuple[str, tuple[JournalEntry, ...]]]:
    """Bucket entries dated within ``[today - window_days + 1, today]`` by day.

    Buckets are returned newest day first. Entry order inside a bucket follows
    the input order.
    """
    recent = [entry for entry in entries if 0 <= _days_ago(entry, today) < window_days]
    return group_entries_by_date(recent)[:window_days]


def group_entries_by_date(entries: Sequence[JournalEntry]) -> list[tuple[str, tuple[JournalEntry, ...]]]:
    ordered = sorted(entries, key=lambda entry: entry.date, reverse=True)
    return [(day, tuple(bucket)) for day, bucket in groupby(ordered, key=lambda entry: entry.date)]


def format_day_heading(day: str) -> str:
    """Render ``2026-10-19`` as ``Monday, October 19, 2026``; unparseable days pass through."""
    try:
        parsed = date.fromisoformat(day)
    except (TypeError, ValueError):
        return day
    return f"{parsed:%A, %B} {parsed.day}, {parsed.year}"


def build_day_segments(entries: Sequence[JournalEntry]) -> list[TimelineSegment]:
    if not entries:
        return []

    ordered = sorted(entries, key=_chronological_key)
    times = [time_of_day_percent(entry.created_at) for entry in ordered]
    last = len(ordered) - 1

    segments: list[TimelineSegment] = []
    for index, entry in enumerate(ordered):
        if last == 0:
            left, width = 0.0, 100.0
        elif index == 0:
            left = 0.0
            width = _midpoint(times[0], times[1])
        elif index == last:
            left = _midpoint(times[index - 1], times[index])
            width = 100.0 - left
        else:
            left = _midpoint(times[index - 1], times[index])
            width = _midpoint(times[index], times[index + 1]) - left

        # Clamped segments may overlap their neighbours.
        segments.append(
            TimelineSegment(
                entry_id=entry.id,
                emotion=entry.emotion,
                color=emotion_color(entry.emotion),
                left=max(0.0, left),
                width=max(width, MIN_SEGMENT_WIDTH),
                time_label=format_time_label(entry.created_at),
                excerpt=entry.reflection[:EXCERPT_LENGTH],
            )
        )
    return segments


def time_of_day_percent(created_at: str) -> float:
    moment = _parse_timestamp(created_at)
    if moment is None:
        return 0.0
    return (moment.hour * 60 + moment.minute) / MINUTES_PER_DAY * 100


def format_time_label(created_at: str) -> str:
    moment = _parse_timestamp(created_at)
    hour, minute = (moment.hour, moment.minute) if moment is not None else (0, 0)
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12}:{minute:02d} {suffix}"


def _midpoint(a: float, b: float) -> float:
    return (a + b) / 2


def _days_ago(entry: JournalEntry, today: date) -> int:
    try:
        day = date.fromisoformat(entry.date)
    except (TypeError, ValueError):
        return -1
    return (today - day).days


def _chronological_key(entry: JournalEntry) -> tuple[float, int]:
    moment = _parse_timestamp(entry.created_at)
    if moment is None:
        return (float("-inf"), entry.id)
    return (moment.timestamp(), entry.id)


def _parse_timestamp(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError:
        return None
