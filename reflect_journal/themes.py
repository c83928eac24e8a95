from __future__ import annotations

from collections import Counter
from typing import Sequence

from .models import JournalEntry, ThemeCount

TOP_THEME_LIMIT = 6


def rank_themes(entries: Sequence[JournalEntry], limit: int = TOP_THEME_LIMIT) -> list[ThemeCount]:
    """Most frequent insight themes across ``entries``.

    Themes are matched as exact, case-sensitive strings. Equal counts keep the
    order in which each theme was first seen.
    """
    counts = Counter(
        theme
        for entry in entries
        if entry.insight is not None
        for theme in entry.insight.themes
    )
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [ThemeCount(name=name, count=count) for name, count in ranked[: max(0, limit)]]
