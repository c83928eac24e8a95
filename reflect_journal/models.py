from __future__ import annotations

from dataclasses import dataclass

EMOTION_COLORS: dict[str, str] = {
    "Happy": "#fef9c3",
    "Calm": "#dbeafe",
    "Peaceful": "#d1fae5",
    "Anxious": "#f3e8ff",
    "Sad": "#e0e7ff",
    "Angry": "#fee2e2",
}
NEUTRAL_COLOR = "#f1f5f9"
MAX_THEMES_PER_INSIGHT = 5


def emotion_color(emotion: str | None) -> str:
    if not emotion:
        return NEUTRAL_COLOR
    return EMOTION_COLORS.get(emotion, NEUTRAL_COLOR)


@dataclass(frozen=True)
class AIInsight:
    entry_id: int
    summary: str
    themes: tuple[str, ...]
    created_at: str


@dataclass(frozen=True)
class JournalEntry:
    id: int
    date: str
    emotion: str | None
    reflection: str
    created_at: str
    insight: AIInsight | None = None


@dataclass(frozen=True)
class InsightResult:
    summary: str
    themes: tuple[str, ...]


@dataclass(frozen=True)
class ThemeCount:
    name: str
    count: int

    @property
    def label(self) -> str:
        return f"{self.count} {'entry' if self.count == 1 else 'entries'}"


@dataclass(frozen=True)
class TimelineSegment:
    entry_id: int
    emotion: str | None
    color: str
    left: float
    width: float
    time_label: str
    excerpt: str


@dataclass(frozen=True)
class TimelineDay:
    day: str
    days_ago: int
    segments: tuple[TimelineSegment, ...]

    @property
    def label(self) -> str:
        if self.days_ago == 0:
            return "Today"
        return f"{self.days_ago}d ago"
