"""
Tests for the scoring engine.
"""

import pytest

from ..engine.scoring import rank_players, recalculate_scores, score, update_score, winners_of
from ..engine.state import Player


class TestScore:
    """Tests for score()."""

    def test_zero_before_first_flip(self):
        assert score(0, 0) == 0

    @pytest.mark.parametrize("matches, flips, expected", [
        (1, 2, 500),
        (4, 8, 500),
        (2, 3, 667),
        (1, 3, 333),
        (3, 8, 375),
        (0, 6, 0),
    ])
    def test_known_values(self, matches, flips, expected):
        assert score(matches, flips) == expected

    def test_half_rounds_up(self):
        # 1000 / 16 = 62.5
        assert score(1, 16) == 63
        # 3000 / 16 = 187.5
        assert score(3, 16) == 188

    def test_non_decreasing_in_matches(self):
        flips = 20
        scores = [score(m, flips) for m in range(flips // 2 + 1)]
        assert scores == sorted(scores)


class TestRanking:
    """Tests for ranking and winner selection."""

    def _player(self, pid, matches, flips):
        player = Player(player_id=pid, name=pid, matches=matches, total_flips=flips)
        update_score(player)
        return player

    def test_recalculate_is_idempotent(self):
        players = [self._player("a", 2, 6), self._player("b", 1, 4)]
        recalculate_scores(players)
        first = [p.score for p in players]
        recalculate_scores(players)
        assert [p.score for p in players] == first == [333, 250]

    def test_rank_highest_first(self):
        ranked = rank_players([self._player("a", 1, 4), self._player("b", 2, 4)])
        assert [p.player_id for p in ranked] == ["b", "a"]

    def test_single_winner(self):
        ranked = rank_players([self._player("a", 1, 4), self._player("b", 2, 4)])
        assert [p.player_id for p in winners_of(ranked)] == ["b"]

    def test_tie_keeps_seating_order(self):
        ranked = rank_players([
            self._player("a", 2, 6),
            self._player("b", 1, 6),
            self._player("c", 2, 6),
        ])
        assert [p.player_id for p in winners_of(ranked)] == ["a", "c"]

    def test_no_players(self):
        assert winners_of([]) == []
