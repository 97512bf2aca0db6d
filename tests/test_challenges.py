"""Tests for weekly challenge rotation — based_bingo/challenges.py."""

from datetime import date

from based_bingo.challenges import (
    ALL_CHALLENGES,
    SUPPORTED_CHALLENGES,
    current_challenge,
    get_challenge,
    iso_week,
    week_key,
    week_number,
)


class TestWeeks:

    def test_iso_week_year_boundary(self):
        # 2021-01-01 belongs to ISO week 53 of 2020
        assert iso_week(date(2021, 1, 1)) == (2020, 53)
        assert week_key(date(2021, 1, 1)) == "2020-W53"

    def test_week_key_has_no_padding(self):
        assert week_key(date(2025, 2, 12)) == "2025-W7"
        assert week_number(date(2025, 2, 12)) == 202507


class TestRotation:

    def test_five_supported(self):
        assert len(ALL_CHALLENGES) == 8
        assert [c.id for c in SUPPORTED_CHALLENGES] == [
            "LINE_MASTER",
            "FULL_HOUSE_HUNT",
            "STREAK_BUILDER",
            "MULTI_WIN_MARATHON",
            "SPEED_BINGO",
        ]

    def test_week_one_is_line_master(self):
        assert current_challenge(date(2025, 1, 1)).id == "LINE_MASTER"

    def test_rotation_wraps(self):
        # ISO week 6 -> index 5 % 5 == 0
        assert current_challenge(date(2025, 2, 3)).id == "LINE_MASTER"
        assert current_challenge(date(2025, 1, 27)).id == "SPEED_BINGO"

    def test_only_supported_rotate(self):
        for week in range(1, 53):
            day = date.fromisocalendar(2025, week, 1)
            assert current_challenge(day).supported

    def test_lookup(self):
        assert get_challenge("SPEED_BINGO").reward_bingo == 1200
        assert get_challenge("NOPE") is None
