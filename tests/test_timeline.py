from __future__ import annotations

import unittest
from datetime import date

from reflect_journal.models import NEUTRAL_COLOR, JournalEntry
from reflect_journal.timeline import (
    build_day_segments,
    build_timeline,
    format_day_heading,
    format_time_label,
    group_entries_by_date,
    group_recent_entries,
    time_of_day_percent,
)

TODAY = date(2026, 10, 19)


def _entry(
    idx: int,
    clock: str = "09:00",
    day: str = "2026-10-19",
    emotion: str | None = "Calm",
    reflection: str = "A quiet morning with coffee.",
    created_at: str | None = None,
) -> JournalEntry:
    return JournalEntry(
        id=idx,
        date=day,
        emotion=emotion,
        reflection=reflection,
        created_at=created_at if created_at is not None else f"{day}T{clock}:00+00:00",
    )


class DaySegmentTests(unittest.TestCase):
    def test_single_entry_spans_whole_day(self) -> None:
        segments = build_day_segments([_entry(1, "15:45")])
        self.assertEqual(len(segments), 1)
        self.assertEqual(segments[0].left, 0)
        self.assertEqual(segments[0].width, 100)

    def test_boundaries_sit_at_midpoints(self) -> None:
        segments = build_day_segments([_entry(1, "09:00"), _entry(2, "12:00"), _entry(3, "18:00")])
        self.assertEqual([s.entry_id for s in segments], [1, 2, 3])
        self.assertAlmostEqual(segments[0].left, 0.0)
        self.assertAlmostEqual(segments[0].width, 43.75)
        self.assertAlmostEqual(segments[1].left, 43.75)
        self.assertAlmostEqual(segments[1].width, 18.75)
        self.assertAlmostEqual(segments[2].left, 62.5)
        self.assertAlmostEqual(segments[2].width, 37.5)
        self.assertAlmostEqual(sum(s.width for s in segments), 100.0)

    def test_sorts_unordered_input_by_creation_time(self) -> None:
        segments = build_day_segments([_entry(3, "18:00"), _entry(1, "09:00"), _entry(2, "12:00")])
        self.assertEqual([s.entry_id for s in segments], [1, 2, 3])
        self.assertEqual(segments[0].left, 0)
        self.assertAlmostEqual(segments[-1].left + segments[-1].width, 100.0)

    def test_clustered_entries_clamp_to_minimum_width(self) -> None:
        segments = build_day_segments([_entry(1, "09:00"), _entry(2, "09:10"), _entry(3, "09:20")])
        self.assertEqual(segments[1].width, 8)
        self.assertTrue(all(s.width >= 8 for s in segments))
        self.assertTrue(all(s.left >= 0 for s in segments))

    def test_malformed_timestamp_counts_as_midnight(self) -> None:
        segments = build_day_segments([_entry(1, created_at="yesterday-ish"), _entry(2, "12:00")])
        self.assertEqual(segments[0].entry_id, 1)
        self.assertEqual(segments[0].time_label, "12:00 AM")
        self.assertAlmostEqual(segments[0].width, 25.0)
        self.assertAlmostEqual(segments[1].left, 25.0)
        self.assertAlmostEqual(segments[1].width, 75.0)

    def test_segment_carries_display_details(self) -> None:
        long_text = "x" * 80
        segments = build_day_segments(
            [_entry(1, "09:05", emotion="Happy", reflection=long_text), _entry(2, "21:30", emotion="Bored")]
        )
        self.assertEqual(segments[0].color, "#fef9c3")
        self.assertEqual(segments[0].time_label, "9:05 AM")
        self.assertEqual(segments[0].excerpt, "x" * 50)
        self.assertEqual(segments[1].color, NEUTRAL_COLOR)
        self.assertEqual(segments[1].time_label, "9:30 PM")

    def test_empty_day_has_no_segments(self) -> None:
        self.assertEqual(build_day_segments([]), [])


class ClockTests(unittest.TestCase):
    def test_percent_ignores_seconds(self) -> None:
        self.assertAlmostEqual(time_of_day_percent("2026-10-19T18:00:59"), 75.0)
        self.assertEqual(time_of_day_percent("garbage"), 0.0)

    def test_labels_use_twelve_hour_clock(self) -> None:
        self.assertEqual(format_time_label("2026-10-19T00:07:00"), "12:07 AM")
        self.assertEqual(format_time_label("2026-10-19T12:00:00"), "12:00 PM")
        self.assertEqual(format_time_label("2026-10-19 18:30:00"), "6:30 PM")


class RecentWindowTests(unittest.TestCase):
    def test_window_bounds(self) -> None:
        entries = [
            _entry(1, day="2026-10-13"),
            _entry(2, day="2026-10-12"),
            _entry(3, day="2026-10-20"),
            _entry(4, day="2026-10-19"),
        ]
        grouped = group_recent_entries(entries, TODAY)
        self.assertEqual([day for day, _ in grouped], ["2026-10-19", "2026-10-13"])

    def test_groups_by_date_newest_first(self) -> None:
        entries = [
            _entry(1, "08:00", day="2026-10-17"),
            _entry(2, "10:00", day="2026-10-19"),
            _entry(3, "20:00", day="2026-10-17"),
        ]
        grouped = group_recent_entries(entries, TODAY)
        self.assertEqual(len(grouped), 2)
        self.assertEqual(grouped[0][0], "2026-10-19")
        self.assertEqual([e.id for e in grouped[1][1]], [1, 3])

    def test_unparseable_dates_are_skipped(self) -> None:
        grouped = group_recent_entries([_entry(1, day="someday"), _entry(2)], TODAY)
        self.assertEqual([day for day, _ in grouped], ["2026-10-19"])

    def test_build_timeline_labels_days(self) -> None:
        entries = [
            _entry(1, "09:00", day="2026-10-19"),
            _entry(2, "18:00", day="2026-10-19"),
            _entry(3, "07:00", day="2026-10-18"),
            _entry(4, "07:00", day="2026-10-16"),
        ]
        days = build_timeline(entries, TODAY)
        self.assertEqual([d.label for d in days], ["Today", "1d ago", "3d ago"])
        self.assertEqual(len(days[0].segments), 2)
        self.assertEqual(days[1].segments[0].width, 100)

    def test_build_timeline_of_nothing(self) -> None:
        self.assertEqual(build_timeline([], TODAY), [])


class ArchiveTests(unittest.TestCase):
    def test_groups_every_day_without_a_window(self) -> None:
        entries = [
            _entry(1, day="2025-01-02"),
            _entry(2, day="2026-10-19"),
            _entry(3, day="2025-01-02"),
            _entry(4, day="2026-12-31"),
        ]
        grouped = group_entries_by_date(entries)
        self.assertEqual([day for day, _ in grouped], ["2026-12-31", "2026-10-19", "2025-01-02"])
        self.assertEqual([e.id for e in grouped[2][1]], [1, 3])
        self.assertEqual(group_entries_by_date([]), [])

    def test_day_heading(self) -> None:
        self.assertEqual(format_day_heading("2026-10-19"), "Monday, October 19, 2026")
        self.assertEqual(format_day_heading("2026-03-01"), "Sunday, March 1, 2026")
        self.assertEqual(format_day_heading("someday"), "someday")


if __name__ == "__main__":
    unittest.main()
