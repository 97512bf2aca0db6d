from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class WeeklyChallenge:
    id: str
    name: str
    description: str
    goal: str
    reward_bingo: int
    supported: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


ALL_CHALLENGES: Tuple[WeeklyChallenge, ...] = (
    WeeklyChallenge(
        "LINE_MASTER",
        "Line Master",
        "Win at least 5 lines across all games this week.",
        "Get 5 line wins (rows, columns, or diagonals).",
        500,
        True,
    ),
    WeeklyChallenge(
        "FULL_HOUSE_HUNT",
        "Full House Hunt",
        "Achieve 1 full house win this week.",
        "Get at least one Full House!",
        2000,
        True,
    ),
    WeeklyChallenge(
        "STREAK_BUILDER",
        "Streak Builder",
        "Maintain a 5-day play streak with at least 1 win per day.",
        "Play and win once per day for 5 days.",
        1000,
        True,
    ),
    WeeklyChallenge(
        "SOCIAL_DAUBER",
        "Social Dauber",
        "Share 3 wins on Farcaster and get 2 shares back.",
        "Share wins and get replies.",
        400,
        False,
    ),
    WeeklyChallenge(
        "TOKEN_BURNER",
        "Token Burner",
        "Burn 100 $BINGO for a lucky card and win.",
        "Burn and win with lucky card.",
        1500,
        False,
    ),
    WeeklyChallenge(
        "MULTI_WIN_MARATHON",
        "Multi-Win Marathon",
        "Achieve 3 multi-wins (double line or better).",
        "Get 3 double-line or full house wins.",
        2500,
        True,
    ),
    WeeklyChallenge(
        "REFERRAL_RALLY",
        "Referral Rally",
        "Refer 2 friends who complete 1 game.",
        "Get two friends to play a game.",
        600,
        False,
    ),
    WeeklyChallenge(
        "SPEED_BINGO",
        "Speed Bingo",
        "Complete a line in under 1 minute (short timer mode).",
        "Win a line with 60s or more remaining.",
        1200,
        True,
    ),
)

SUPPORTED_CHALLENGES = tuple(c for c in ALL_CHALLENGES if c.supported)


def iso_week(day: Optional[date] = None) -> Tuple[int, int]:
    year, week, _ = (day or date.today()).isocalendar()
    return year, week


def week_key(day: Optional[date] = None) -> str:
    year, week = iso_week(day)
    return f"{year}-W{week}"


def week_number(day: Optional[date] = None) -> int:
    """Integer form of the week key passed to awardWeeklyChallenge, e.g. 202507."""
    year, week = iso_week(day)
    return year * 100 + week


def current_challenge(day: Optional[date] = None) -> WeeklyChallenge:
    _, week = iso_week(day)
    return SUPPORTED_CHALLENGES[(week - 1) % len(SUPPORTED_CHALLENGES)]


def get_challenge(challenge_id: str) -> Optional[WeeklyChallenge]:
    for c in ALL_CHALLENGES:
        if c.id == challenge_id:
            return c
    return None
