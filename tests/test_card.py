"""Tests for the card/win engine — based_bingo/card.py."""

import random

import pytest

from based_bingo.card import (
    ALL_POSITIONS,
    DOUBLE_LINE,
    FULL_HOUSE,
    LINE,
    LINES,
    check_win,
    display_labels,
    generate_card,
    mark,
    new_marked_set,
    position,
    render_card,
    reward_for,
)
from based_bingo.project_constants import CENTER, COLUMN_RANGES, FREE


def _card_with_known_values():
    card = [[lo + r for r in range(5)] for _, lo, _ in COLUMN_RANGES]
    card[2][2] = FREE
    return card


class TestGenerateCard:

    @pytest.mark.parametrize("seed", range(25))
    def test_columns_distinct_and_in_range(self, seed):
        card = generate_card(random.Random(seed))
        assert len(card) == 5
        for col, (_, lo, hi) in enumerate(COLUMN_RANGES):
            values = [v for v in card[col] if v != FREE]
            assert len(card[col]) == 5
            assert len(set(values)) == len(values)
            assert all(lo <= v <= hi for v in values)

    def test_center_is_free(self):
        for _ in range(50):
            assert generate_card()[2][2] == FREE

    def test_only_center_is_free(self):
        card = generate_card(random.Random(3))
        frees = [(c, r) for c in range(5) for r in range(5) if card[c][r] == FREE]
        assert frees == [(2, 2)]


class TestMark:

    def test_marks_recent_draw(self):
        card = _card_with_known_values()
        marked = mark(card, new_marked_set(), row=1, col=0, recent_draws=[2, 40])
        assert marked == {CENTER, "01"}

    def test_undrawn_number_is_ignored(self):
        card = _card_with_known_values()
        marked = new_marked_set()
        assert mark(card, marked, row=1, col=0, recent_draws=[3]) is marked

    def test_free_cell_cannot_be_marked(self):
        card = _card_with_known_values()
        marked = new_marked_set()
        assert mark(card, marked, row=2, col=2, recent_draws=[33]) is marked

    def test_already_marked_is_noop(self):
        card = _card_with_known_values()
        once = mark(card, new_marked_set(), 0, 0, [1])
        assert mark(card, once, 0, 0, [1]) == once

    def test_out_of_grid_is_noop(self):
        card = _card_with_known_values()
        marked = new_marked_set()
        assert mark(card, marked, 5, 0, [1]) is marked
        assert mark(card, marked, 0, -1, [1]) is marked

    def test_original_set_not_mutated(self):
        card = _card_with_known_values()
        marked = new_marked_set()
        mark(card, marked, 0, 0, [1])
        assert marked == {CENTER}


class TestCheckWin:

    def test_twelve_lines(self):
        assert len(LINES) == 12
        assert all(len(line) == 5 for line in LINES)

    def test_center_only_is_no_win(self):
        result = check_win(new_marked_set())
        assert result.count == 0
        assert result.labels == ()
        assert not result.has_win

    def test_single_row(self):
        marked = {position(c, 0) for c in range(5)} | {CENTER}
        result = check_win(marked)
        assert result.count == 1
        assert result.labels == (LINE,)

    def test_middle_row_uses_free_center(self):
        marked = {position(c, 2) for c in (0, 1, 3, 4)}
        assert check_win(marked).count == 1

    def test_diagonal_without_explicit_center(self):
        marked = {position(i, i) for i in (0, 1, 3, 4)}
        assert check_win(marked).labels == (LINE,)

    def test_double_line(self):
        marked = {position(c, 0) for c in range(5)} | {position(0, r) for r in range(5)}
        result = check_win(marked)
        assert result.count == 2
        assert result.labels == (LINE, DOUBLE_LINE)

    def test_full_card(self):
        result = check_win(ALL_POSITIONS)
        assert result.count == 12
        assert set(result.labels) == {LINE, DOUBLE_LINE, FULL_HOUSE}

    def test_five_lines_is_not_full_house(self):
        marked = ALL_POSITIONS - {"44"}
        result = check_win(marked)
        assert result.count == 9
        assert FULL_HOUSE not in result.labels

    def test_monotonic_in_marks(self):
        rng = random.Random(11)
        for _ in range(20):
            order = sorted(ALL_POSITIONS)
            rng.shuffle(order)
            marked = set(new_marked_set())
            last = 0
            for pos in order:
                marked.add(pos)
                count = check_win(marked).count
                assert count >= last
                last = count
            assert last == 12


class TestPresentation:

    def test_display_labels_and_reward(self):
        result = check_win(ALL_POSITIONS)
        assert display_labels(result) == ["Line Bingo!", "Double Line!", "Full House!"]
        assert reward_for(result) == 3000

    def test_render_card_brackets_marks(self):
        card = _card_with_known_values()
        text = render_card(card, {"00", CENTER})
        assert "[1]" in text
        assert "**" in text
        assert text.splitlines()[0].split() == ["B", "I", "N", "G", "O"]
