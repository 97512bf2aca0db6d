from __future__ import annotations

import random
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Tuple, Union

from .project_constants import CENTER, COLUMN_RANGES, FREE, REWARD_PER_WIN

Cell = Union[int, str]
# Column-major: card[col][row]
BingoCard = List[List[Cell]]
MarkedSet = FrozenSet[str]

LINE = "LINE"
DOUBLE_LINE = "DOUBLE_LINE"
FULL_HOUSE = "FULL_HOUSE"

DISPLAY_LABELS = {
    LINE: "Line Bingo!",
    DOUBLE_LINE: "Double Line!",
    FULL_HOUSE: "Full House!",
}


def position(col: int, row: int) -> str:
    return f"{col}{row}"


def _build_lines() -> Tuple[Tuple[str, ...], ...]:
    rows = [tuple(position(c, r) for c in range(5)) for r in range(5)]
    cols = [tuple(position(c, r) for r in range(5)) for c in range(5)]
    diags = [
        tuple(position(i, i) for i in range(5)),
        tuple(position(4 - i, i) for i in range(5)),
    ]
    return tuple(rows + cols + diags)


LINES = _build_lines()
ALL_POSITIONS: MarkedSet = frozenset(position(c, r) for c in range(5) for r in range(5))


@dataclass(frozen=True)
class WinResult:
    count: int
    labels: Tuple[str, ...]

    @property
    def has_win(self) -> bool:
        return self.count > 0


def generate_card(rng: Optional[random.Random] = None) -> BingoCard:
    rng = rng or random.Random()
    card: BingoCard = [
        list(rng.sample(range(lo, hi + 1), 5)) for _, lo, hi in COLUMN_RANGES
    ]
    card[2][2] = FREE
    return card


def new_marked_set() -> MarkedSet:
    return frozenset({CENTER})


def mark(
    card: BingoCard,
    marked: MarkedSet,
    row: int,
    col: int,
    recent_draws: Iterable[int],
) -> MarkedSet:
    """Return ``marked`` plus (col, row) when its number was recently drawn.

    Anything else (FREE cell, undrawn number, out-of-grid) leaves the set as is.
    """
    if not (0 <= row < 5 and 0 <= col < 5):
        return marked
    value = card[col][row]
    # bool is an int subclass; a card never holds one
    if not isinstance(value, int) or isinstance(value, bool):
        return marked
    if value not in set(recent_draws):
        return marked
    return marked | {position(col, row)}


def completed_lines(marked: Iterable[str]) -> List[Tuple[str, ...]]:
    have = set(marked)
    return [line for line in LINES if all(p in have or p == CENTER for p in line)]


def check_win(marked: Iterable[str]) -> WinResult:
    count = len(completed_lines(marked))
    labels: List[str] = []
    if count >= 1:
        labels.append(LINE)
    if count >= 2:
        labels.append(DOUBLE_LINE)
    if count == len(LINES):
        labels.append(FULL_HOUSE)
    return WinResult(count=count, labels=tuple(labels))


def display_labels(result: WinResult) -> List[str]:
    return [DISPLAY_LABELS[label] for label in result.labels]


def reward_for(result: WinResult) -> int:
    return REWARD_PER_WIN * len(result.labels)


def render_card(card: BingoCard, marked: Iterable[str] = ()) -> str:
    """Plain-text grid, marked cells wrapped in brackets."""
    have = set(marked)
    header = " ".join(f"{letter:^4}" for letter, _, _ in COLUMN_RANGES)
    lines = [header]
    for row in range(5):
        cells = []
        for col in range(5):
            value = card[col][row]
            text = str(value) if value != FREE else "**"
            if position(col, row) in have and value != FREE:
                text = f"[{text}]"
            cells.append(f"{text:^4}")
        lines.append(" ".join(cells))
    return "\n".join(lines)
