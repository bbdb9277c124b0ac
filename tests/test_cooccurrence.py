"""
Unit tests for pairwise co-occurrence and lift.
"""
import pytest

from numerix.cooccurrence import compute_co_occurrences, find_co_occurrence, lift_score, presence_matrix
from numerix.models import DrawRecord


def _paired_history():
    """Ten draws; 5 and 7 appear together in the four most recent and nowhere else."""
    history = []
    for i in range(4):
        base = 20 + 4 * i
        history.append(DrawRecord(date=f"2024-01-{20 - i:02d}", numbers=[5, 7, base, base + 1, base + 2, base + 3]))
    for i in range(6):
        base = 36 + 6 * i
        history.append(DrawRecord(date=f"2024-01-{10 - i:02d}", numbers=list(range(base, base + 6))))
    return history


class TestCoOccurrence:

    def test_pair_count_and_lift(self):
        records = compute_co_occurrences(_paired_history(), 90, min_count=3)
        assert len(records) == 1
        pair = records[0]
        assert pair.numbers == (5, 7)
        assert pair.count == 4
        assert pair.frequency == pytest.approx(40.0)
        assert pair.expected_frequency == pytest.approx(16.0)
        assert pair.lift == pytest.approx(2.5)
        assert pair.lift_score == pytest.approx(1.5 / 3.5)

    def test_min_count_filters_rare_pairs(self):
        records = compute_co_occurrences(_paired_history(), 90, min_count=5)
        assert records == []

    def test_lower_threshold_includes_single_pairs(self):
        records = compute_co_occurrences(_paired_history(), 90, min_count=1)
        assert find_co_occurrence(records, 7, 5).count == 4
        assert find_co_occurrence(records, 36, 37).count == 1
        assert find_co_occurrence(records, 5, 36) is None

    def test_sorted_by_lift_score(self):
        records = compute_co_occurrences(_paired_history(), 90, min_count=1)
        scores = [r.lift_score for r in records]
        assert scores == sorted(scores, reverse=True)

    def test_empty_history(self):
        assert compute_co_occurrences([], 90) == []

    def test_wheel_without_data(self):
        assert compute_co_occurrences(_paired_history(), 90, wheel='Roma') == []


class TestLiftScore:

    def test_independence_is_zero(self):
        assert lift_score(1.0) == pytest.approx(0.0)

    def test_bounds(self):
        assert lift_score(0.0) == pytest.approx(-1.0)
        assert -1.0 <= lift_score(1000.0) < 1.0
        assert lift_score(None) == 0.0


def test_presence_matrix_shape():
    matrix = presence_matrix([[1, 2, 3], [90, 1, 45]], 90)
    assert matrix.shape == (2, 90)
    assert matrix[:, 0].tolist() == [1, 1]
    assert matrix.sum() == 6
