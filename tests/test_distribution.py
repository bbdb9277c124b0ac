"""
Unit tests for the distribution analyzer, optimal targets and history profile.
"""
import pytest

from numerix.config import LOTTO, MILLIONDAY, SUPERENALOTTO
from numerix.distribution import (
    analyze_distribution, count_consecutive_runs, decade_buckets,
    history_profile, optimal_distribution,
)
from numerix.models import DrawRecord


class TestAnalyzeDistribution:

    @pytest.mark.parametrize("numbers", [
        [4, 17, 23, 56, 71, 88],
        [1, 2, 3, 4, 5, 6],
        [90, 10, 45, 33, 2, 67],
        [7, 8, 40, 41, 42, 89],
    ])
    def test_spread_and_gaps(self, numbers):
        result = analyze_distribution(numbers)
        assert result.spread == max(numbers) - min(numbers)
        assert len(result.gap_analysis) == len(numbers) - 1
        assert sum(result.gap_analysis) == result.spread
        assert result.sum == sum(numbers)
        assert sum(result.decade_distribution) == len(numbers)

    def test_even_odd_ratio(self):
        assert analyze_distribution([2, 4, 6, 1, 3, 5]).even_odd_ratio == pytest.approx(1.0)
        assert analyze_distribution([2, 4, 6, 8, 1, 3]).even_odd_ratio == pytest.approx(2.0)

    def test_all_even_ratio_is_even_count(self):
        assert analyze_distribution([2, 4, 6, 8, 10, 12]).even_odd_ratio == pytest.approx(6.0)

    def test_empty_combination_is_zero_valued(self):
        result = analyze_distribution([])
        assert result.sum == 0
        assert result.spread == 0
        assert result.gap_analysis == []
        assert result.consecutive_sequences == 0

    def test_unordered_input(self):
        assert analyze_distribution([50, 10, 30]).gap_analysis == [20, 20]

    def test_density_of_even_gaps(self):
        # Identical gaps have zero variance
        assert analyze_distribution([10, 20, 30, 40]).number_density == pytest.approx(1.0)


class TestConsecutiveRuns:

    def test_run_of_three_counts(self):
        assert count_consecutive_runs([1, 2, 3, 10, 20, 30]) == 1

    def test_pairs_do_not_count(self):
        assert count_consecutive_runs([1, 2, 10, 11, 20, 21]) == 0

    def test_whole_combination_is_one_run(self):
        assert count_consecutive_runs([1, 2, 3, 4, 5, 6]) == 1

    def test_two_runs(self):
        assert count_consecutive_runs([5, 6, 7, 40, 41, 42]) == 2

    def test_custom_min_length(self):
        assert count_consecutive_runs([1, 2, 10, 11, 20, 21], min_length=2) == 3


class TestDecadeBuckets:

    def test_boundaries(self):
        buckets = decade_buckets([1, 10, 11, 90])
        assert len(buckets) == 9
        assert buckets[0] == 2
        assert buckets[1] == 1
        assert buckets[8] == 1

    def test_smaller_range(self):
        assert len(decade_buckets([1, 55], max_number=55)) == 6


class TestOptimalDistribution:

    def test_superenalotto_targets(self):
        optimal = optimal_distribution(SUPERENALOTTO)
        assert optimal.sum == pytest.approx(273)
        assert optimal.spread == pytest.approx(63)
        assert optimal.even_odd_ratio == pytest.approx(1.0)
        assert optimal.average_gap == pytest.approx(15)

    def test_decades_are_uniform(self):
        optimal = optimal_distribution(LOTTO)
        assert len(optimal.decade_distribution) == 9
        assert sum(optimal.decade_distribution) == pytest.approx(5)

    def test_millionday_range(self):
        optimal = optimal_distribution(MILLIONDAY)
        assert optimal.sum == pytest.approx(140)
        assert len(optimal.decade_distribution) == 6


class TestHistoryProfile:

    def test_mean_over_draws(self):
        history = [
            DrawRecord(date="2024-01-02", numbers=[1, 2, 3, 4, 5, 6]),
            DrawRecord(date="2024-01-01", numbers=[10, 20, 30, 40, 50, 60]),
        ]
        profile = history_profile(history, SUPERENALOTTO)
        assert profile.sum == pytest.approx(115.5)
        assert profile.spread == pytest.approx(27.5)

    def test_empty_history(self):
        assert history_profile([], SUPERENALOTTO).sum == 0

    def test_wheel_profile_ignores_main_numbers(self):
        history = [DrawRecord(date="2024-01-01", numbers=[1, 2, 3, 4, 5], wheels={'Roma': [10, 20, 30, 40, 50]})]
        assert history_profile(history, LOTTO, wheel='Roma').sum == pytest.approx(150)
        assert history_profile(history, LOTTO, wheel='Bari').sum == 0
