"""
Tests for the game-rule tables and phase classification.
"""

from datetime import date, datetime

import pytest

from kubb_trainer.models.phases import FullGamePhase, InkastPhase
from kubb_trainer.rules import (
    attacking_baton_limit,
    attacking_team,
    classify_inkast_phase,
    current_baseline,
    expected_baton_cost,
    is_same_day,
    next_full_game_phase,
)


class TestBatonBudgets:
    """Tests for the attacking ceiling and expected baton cost tables."""

    @pytest.mark.parametrize("round_number,limit", [(1, 2), (2, 4), (3, 6), (5, 6), (12, 6)])
    def test_attacking_ceiling(self, round_number, limit):
        assert attacking_baton_limit(round_number) == limit

    @pytest.mark.parametrize("kubbs,cost", [
        (1, 1), (2, 1), (3, 2), (4, 2), (5, 3), (6, 3), (7, 3), (8, 4), (9, 4), (10, 4),
    ])
    def test_expected_cost_table(self, kubbs, cost):
        assert expected_baton_cost(kubbs) == cost

    def test_expected_cost_falls_back_to_formula(self):
        """Counts outside the table use ceil((n + 1) / 2)."""
        assert expected_baton_cost(11) == 6
        assert expected_baton_cost(12) == 7
        assert expected_baton_cost(0) == 1


class TestPhaseClassification:
    """Tests for Inkast phase buckets."""

    @pytest.mark.parametrize("kubbs,phase", [
        (1, InkastPhase.EARLY), (3, InkastPhase.EARLY),
        (4, InkastPhase.MID), (7, InkastPhase.MID),
        (8, InkastPhase.END), (10, InkastPhase.END),
        (0, InkastPhase.ALL), (11, InkastPhase.ALL),
    ])
    def test_classify(self, kubbs, phase):
        assert classify_inkast_phase(kubbs) is phase

    def test_random_kubb_count_stays_in_range(self, rng):
        counts = {InkastPhase.MID.random_kubb_count(rng) for _ in range(200)}
        assert counts <= set(range(4, 8))
        assert len(counts) > 1

    def test_display_names(self):
        assert InkastPhase.ALL.display_name == "All Phases"
        assert InkastPhase.EARLY.display_name == "Early Game"


class TestFullGamePhases:
    """Tests for the full game phase transition table."""

    def test_round_one_skips_inkast(self):
        assert next_full_game_phase(FullGamePhase.ATTACKING, 1) == (FullGamePhase.ROUND_COMPLETE, 1)

    def test_later_rounds_go_to_inkast(self):
        assert next_full_game_phase(FullGamePhase.ATTACKING, 2) == (FullGamePhase.INKAST, 2)

    def test_inkast_returns_to_attacking(self):
        assert next_full_game_phase(FullGamePhase.INKAST, 3) == (FullGamePhase.ATTACKING, 3)

    def test_round_complete_starts_next_round(self):
        assert next_full_game_phase(FullGamePhase.ROUND_COMPLETE, 1) == (FullGamePhase.ATTACKING, 2)

    def test_attacking_team_parity(self):
        assert [attacking_team(r) for r in range(1, 5)] == [1, 2, 1, 2]


class TestParityAndCalendar:

    def test_baseline_alternates_with_throws(self):
        assert [current_baseline(t) for t in range(4)] == [1, 2, 1, 2]

    def test_same_day_ignores_time(self):
        assert is_same_day(datetime(2026, 1, 2, 0, 1), datetime(2026, 1, 2, 23, 59))
        assert is_same_day(date(2026, 1, 2), datetime(2026, 1, 2, 12))
        assert not is_same_day(datetime(2026, 1, 1, 23, 59), datetime(2026, 1, 2, 0, 0))
