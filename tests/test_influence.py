"""
Unit tests for the influence scorer.
"""
import pytest

from conftest import random_history
from numerix.influence import compute_influence
from numerix.models import DrawRecord, UnsuccessfulCombination


class TestInfluence:

    def test_one_record_per_number(self, superenalotto_history):
        records = compute_influence(superenalotto_history, 90, recent_window=20)
        assert len(records) == 90
        assert sorted(r.number for r in records) == list(range(1, 91))

    def test_normalized_scores_sum_to_100(self, superenalotto_history):
        records = compute_influence(superenalotto_history, 90, recent_window=20)
        assert sum(r.normalized_score for r in records) == pytest.approx(100.0, abs=0.5)
        assert all(r.normalized_score >= 0 for r in records)

    def test_sorted_descending(self, superenalotto_history):
        records = compute_influence(superenalotto_history, 90, recent_window=20)
        scores = [r.normalized_score for r in records]
        assert scores == sorted(scores, reverse=True)

    def test_penalty_lowers_score(self, superenalotto_history):
        unsuccessful = [
            UnsuccessfulCombination(game_type='superenalotto', numbers=[13, 22, 35, 48, 61, 77]),
            UnsuccessfulCombination(game_type='superenalotto', numbers=[13, 24, 36, 50, 62, 79]),
        ]
        base = {r.number: r for r in compute_influence(superenalotto_history, 90, recent_window=20)}
        penalized = {r.number: r for r in compute_influence(
            superenalotto_history, 90, recent_window=20, unsuccessful=unsuccessful)}

        assert penalized[13].unsuccessful_penalty > 0
        assert penalized[13].influence_score < base[13].influence_score
        assert penalized[13].unsuccessful_penalty > penalized[22].unsuccessful_penalty
        assert penalized[1].unsuccessful_penalty == 0

    def test_recent_window_weighs_more(self):
        # 90 appears only in the most recent draw
        history = [DrawRecord(date="2024-02-01", numbers=[90, 2, 3, 4, 5, 6])] + random_history(50, max_number=80)
        records = {r.number: r for r in compute_influence(history, 90, recent_window=5)}
        assert records[90].recent_frequency == pytest.approx(20.0)
        assert records[90].historical_frequency == pytest.approx(100 / 51)

    def test_empty_history_is_uniform(self):
        records = compute_influence([], 90, recent_window=20)
        assert len(records) == 90
        assert all(r.normalized_score == pytest.approx(100 / 90) for r in records)
        assert records[0].confidence == 0.0

    def test_confidence_capped(self, superenalotto_history):
        records = compute_influence(superenalotto_history, 90, recent_window=20)
        assert records[0].confidence == pytest.approx(100.0)

    def test_all_scores_negative_fall_back_to_uniform(self):
        history = [DrawRecord(date="2024-01-01", numbers=[1, 2, 3, 4, 5, 6])]
        unsuccessful = [UnsuccessfulCombination(game_type='superenalotto', numbers=[1, 2, 3, 4, 5, 6])]
        records = compute_influence(history, 6, recent_window=1, unsuccessful=unsuccessful,
                                    params={'penalty_weight': 10.0})
        assert all(r.normalized_score == pytest.approx(100 / 6) for r in records)
