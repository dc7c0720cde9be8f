"""Tests for streak math: day markers, streak length, progress and milestones."""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta

import pytest

from conftest import FIXED_TODAY, days_back
from streakone.models.streak import Milestone
from streakone.services import streaks
from streakone.services.streaks import (
    MILESTONES,
    STREAK_COLORS,
    calculate_progress,
    calculate_streak,
    check_milestone_reached,
    default_color,
    format_day,
    generate_streak_id,
    get_achieved_milestones,
    get_current_milestone,
    get_milestone_message,
    get_motivation_message,
    get_next_milestone,
    parse_day,
)

BRONZE, SILVER, GOLD, DIAMOND = MILESTONES


class TestDayMarkers:
    """Tests for the calendar-day marker format."""

    def test_format_matches_verbose_date_string(self):
        """Markers use the ``Mon Jan 15 2024`` form with a zero-padded day."""
        assert format_day(date(2024, 1, 15)) == "Mon Jan 15 2024"
        assert format_day(date(2024, 3, 5)) == "Tue Mar 05 2024"

    def test_parse_reads_back_formatted_day(self):
        day = date(2023, 12, 31)
        assert parse_day(format_day(day)) == day

    def test_parse_accepts_iso_forms(self):
        """ISO dates and datetimes parse to their calendar day."""
        assert parse_day("2024-01-15") == date(2024, 1, 15)
        assert parse_day("2024-01-15T21:30:00.000Z") == date(2024, 1, 15)

    @pytest.mark.parametrize("junk", ["", "yesterday", "Mon Foo 15 2024", "Mon Feb 31 2024", None])
    def test_parse_rejects_junk(self, junk):
        assert parse_day(junk) is None


class TestCalculateStreak:
    """Tests for the consecutive-day count ending today."""

    def test_empty_returns_zero(self):
        assert calculate_streak([], today=FIXED_TODAY) == 0

    def test_three_consecutive_days_ending_today(self):
        assert calculate_streak(days_back(0, 1, 2), today=FIXED_TODAY) == 3

    def test_gap_yesterday_stops_at_today(self):
        """A missing yesterday leaves only today in the streak."""
        assert calculate_streak(days_back(0, 2), today=FIXED_TODAY) == 1

    def test_missing_today_returns_zero(self):
        """The chain is anchored on today, so a run ending yesterday counts as 0."""
        assert calculate_streak(days_back(1, 2, 3), today=FIXED_TODAY) == 0

    def test_duplicates_do_not_double_count(self):
        dates = days_back(0, 0, 1, 1, 2)
        assert calculate_streak(dates, today=FIXED_TODAY) == 3

    def test_order_does_not_matter(self):
        dates = days_back(2, 0, 1)
        assert calculate_streak(dates, today=FIXED_TODAY) == 3

    def test_mixed_marker_formats_are_same_day(self):
        """An ISO marker and a verbose marker for one day count once."""
        dates = [format_day(FIXED_TODAY), FIXED_TODAY.isoformat(), *days_back(1)]
        assert calculate_streak(dates, today=FIXED_TODAY) == 2

    def test_unparseable_markers_are_ignored(self):
        dates = ["not a date", *days_back(0, 1)]
        assert calculate_streak(dates, today=FIXED_TODAY) == 2

    def test_accepts_date_objects(self):
        dates = [FIXED_TODAY, FIXED_TODAY - timedelta(days=1)]
        assert calculate_streak(dates, today=FIXED_TODAY) == 2

    def test_crosses_month_and_year_boundaries(self):
        new_year = date(2024, 1, 1)
        dates = [format_day(new_year - timedelta(days=i)) for i in range(5)]
        assert calculate_streak(dates, today=new_year) == 5

    def test_defaults_to_current_day(self, monkeypatch):
        """Without ``today`` the local calendar day anchors the walk."""
        monkeypatch.setattr(streaks, "current_day", lambda: FIXED_TODAY)
        assert calculate_streak(days_back(0, 1)) == 2

    def test_datetime_anchor_uses_its_calendar_day(self):
        anchor = datetime(2024, 3, 20, 21, 45)
        assert calculate_streak(days_back(0, 1, 2), today=anchor) == 3


class TestCalculateProgress:
    """Tests for target progress percentages."""

    def test_half_way(self):
        assert calculate_progress(15, 30) == 50

    def test_clamped_to_one_hundred(self):
        assert calculate_progress(40, 30) == 100

    @pytest.mark.parametrize("target", [None, 0, -5])
    def test_missing_or_non_positive_target_is_zero(self, target):
        assert calculate_progress(10, target) == 0

    def test_rounds_half_up(self):
        assert calculate_progress(1, 8) == 13

    def test_monotonic_in_current(self):
        values = [calculate_progress(current, 45) for current in range(0, 60)]
        assert values == sorted(values)
        assert values[0] == 0
        assert values[-1] == 100


class TestMilestones:
    """Tests for milestone lookups and crossings."""

    def test_current_milestone_below_first_threshold(self):
        assert get_current_milestone(6) is None

    def test_current_milestone_is_highest_reached(self):
        assert get_current_milestone(29) == BRONZE
        assert get_current_milestone(30) == SILVER
        assert get_current_milestone(1000) == DIAMOND

    def test_next_milestone(self):
        assert get_next_milestone(0) == BRONZE
        assert get_next_milestone(7) == SILVER
        assert get_next_milestone(365) is None

    def test_achieved_milestones_ascending(self):
        assert get_achieved_milestones(6) == []
        assert get_achieved_milestones(100) == [BRONZE, SILVER, GOLD]

    def test_crossing_exact_threshold(self):
        assert check_milestone_reached(7, 6) == BRONZE

    def test_no_crossing(self):
        assert check_milestone_reached(6, 5) is None
        assert check_milestone_reached(8, 7) is None

    def test_jump_over_several_returns_lowest(self):
        """A jump crossing several thresholds celebrates the first one."""
        assert check_milestone_reached(120, 5) == BRONZE
        assert check_milestone_reached(120, 10) == SILVER

    def test_custom_milestone_table(self):
        table = (Milestone(3, "Spark", "✨", "#fff"), Milestone(10, "Blaze", "🔥", "#f00"))
        assert get_current_milestone(5, table) == table[0]
        assert get_next_milestone(5, table) == table[1]
        assert check_milestone_reached(10, 9, table) == table[1]

    def test_milestone_message_mentions_days_and_name(self):
        message = get_milestone_message(SILVER)
        assert "30 days" in message
        assert "Silver" in message


class TestMotivationMessage:
    """Tests for the banded motivation text."""

    @pytest.mark.parametrize(
        "progress,fragment",
        [
            (100, "reached your goal"),
            (95, "Only 2 days left"),
            (80, "2 days left."),
            (50, "Halfway"),
            (25, "Good start"),
            (0, "Every day matters"),
        ],
    )
    def test_bands(self, progress, fragment):
        assert fragment in get_motivation_message(progress, 2)


class TestIdsAndColors:
    """Tests for streak id generation and palette colors."""

    def test_id_shape(self):
        assert re.fullmatch(r"streak-\d{13}-[0-9a-z]{9}", generate_streak_id())

    def test_ids_are_unique(self):
        ids = {generate_streak_id() for _ in range(500)}
        assert len(ids) == 500

    def test_default_color_wraps_palette(self):
        assert default_color(0) == STREAK_COLORS[0]
        assert default_color(len(STREAK_COLORS) + 2) == STREAK_COLORS[2]
