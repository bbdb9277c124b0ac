"""
Unit tests for the pattern scorer and the expected-value record.
"""
from dataclasses import replace

import numpy as np
import pytest

from numerix.config import SUPERENALOTTO
from numerix.distribution import analyze_distribution, optimal_distribution
from numerix.models import DrawRecord, InfluenceRecord
from numerix.pattern import compute_expected_value, score_pattern

OPTIMAL = optimal_distribution(SUPERENALOTTO)


def _influence(favoured):
    """Ninety records; favoured numbers share most of the normalized mass."""
    records = []
    for n in range(1, 91):
        score = 10.0 if n in favoured else 40.0 / 84
        records.append(InfluenceRecord(n, 0.0, 0.0, 0.0, score, score, 50.0))
    return records


class TestPatternScore:

    def test_bounded(self):
        rng = np.random.default_rng(3)
        for _ in range(200):
            combo = sorted(rng.choice(np.arange(1, 91), size=6, replace=False).tolist())
            score = score_pattern(analyze_distribution(combo), OPTIMAL, [], combo)
            assert 0.0 <= score <= 100.0

    def test_non_increasing_in_consecutive_runs(self):
        base = analyze_distribution([8, 25, 41, 52, 69, 80])
        scores = [
            score_pattern(replace(base, consecutive_sequences=runs), OPTIMAL, [], [8, 25, 41, 52, 69, 80])
            for runs in range(5)
        ]
        assert all(a >= b for a, b in zip(scores, scores[1:]))
        assert scores[0] > scores[1]

    def test_optimal_shape_scores_high(self):
        balanced = analyze_distribution([12, 27, 38, 51, 70, 75])
        lopsided = analyze_distribution([1, 2, 3, 4, 5, 6])
        assert score_pattern(balanced, OPTIMAL, [], [12, 27, 38, 51, 70, 75]) > \
            score_pattern(lopsided, OPTIMAL, [], [1, 2, 3, 4, 5, 6])

    def test_influence_rewards_ranked_numbers(self):
        favoured = [12, 27, 38, 51, 70, 75]
        others = [13, 26, 39, 50, 71, 74]
        influence = _influence(favoured)
        dist = analyze_distribution(favoured)
        assert score_pattern(dist, OPTIMAL, influence, favoured) > score_pattern(dist, OPTIMAL, influence, others)

    def test_clamped_at_zero(self):
        dist = replace(analyze_distribution([1, 2, 3, 4, 5, 6]), consecutive_sequences=20)
        assert score_pattern(dist, OPTIMAL, [], [1, 2, 3, 4, 5, 6]) == 0.0


class TestExpectedValue:

    def test_identical_draws(self):
        history = [DrawRecord(date=f"2024-01-0{i + 1}", numbers=[1, 2, 3, 4, 5, 6]) for i in range(6)]
        ev = compute_expected_value([1, 2, 3, 4, 5, 6], history, 6)
        assert ev.expected_matches == pytest.approx(6.0)
        assert ev.match_distribution[6] == pytest.approx(1.0)
        assert ev.impact_score == pytest.approx(36.0)

    def test_distribution_sums_to_one(self, superenalotto_history):
        ev = compute_expected_value([5, 17, 33, 48, 62, 81], superenalotto_history, 6)
        assert len(ev.match_distribution) == 7
        assert sum(ev.match_distribution) == pytest.approx(1.0)
        assert 0.0 <= ev.expected_matches <= 6.0

    def test_empty_history(self):
        ev = compute_expected_value([1, 2, 3, 4, 5, 6], [], 6)
        assert ev.expected_matches == 0.0
