"""
Unit tests for CombinationGenerator: output invariants under normal, empty and
adversarial statistics, repair step, recommendations.
"""
import pytest

from conftest import random_history
from numerix.config import GAMES, LOTTO_WHEELS
from numerix.distribution import count_consecutive_runs
from numerix.errors import ValidationError
from numerix.generators import CombinationGenerator, to_generated
from numerix.models import Delay, Frequency, GameStatistics, GenerationResult, UnluckyPair
from numerix.statistical import compute_game_statistics

TRIALS = 1000

BANNED_PHRASES = ("will win", "more likely", "guarantee", "higher chance", "probability of winning")


def _assert_valid(result, game):
    numbers = result.numbers
    assert len(numbers) == game.numbers_to_select
    assert len(set(numbers)) == len(numbers)
    assert all(1 <= n <= game.max_number for n in numbers)
    assert numbers == sorted(numbers)
    if game.has_secondary:
        assert result.jolly not in numbers
        assert 1 <= result.jolly <= game.secondary_max
        assert 1 <= result.superstar <= game.secondary_max
    else:
        assert result.jolly is None
        assert result.superstar is None


def _adversarial_statistics():
    """Every number unlucky, every adjacent pair unlucky, overlapping pools."""
    return GameStatistics(
        frequent_numbers=[Frequency(n, 50, 100.0) for n in range(1, 11)],
        infrequent_numbers=[Frequency(n, 0, 0.0) for n in range(1, 11)],
        delays=[Delay(n, 99) for n in range(1, 11)],
        unlucky_numbers=[Frequency(n, 10, 100.0) for n in range(1, 91)],
        unlucky_pairs=[UnluckyPair((n, n + 1), 9) for n in range(1, 90)],
    )


class TestGenerateInvariants:

    @pytest.mark.parametrize("strategy", ["standard", "high-variability"])
    def test_superenalotto(self, superenalotto_history, strategy):
        game = GAMES['superenalotto']
        stats = compute_game_statistics(game, superenalotto_history)
        generator = CombinationGenerator(seed=1)
        for _ in range(TRIALS):
            _assert_valid(generator.generate(game, strategy, stats), game)

    @pytest.mark.parametrize("game_id", ["10elotto", "millionday"])
    def test_other_games(self, game_id):
        game = GAMES[game_id]
        history = random_history(80, game.numbers_to_select, game.max_number, seed=5)
        stats = compute_game_statistics(game, history)
        generator = CombinationGenerator(seed=2)
        for _ in range(TRIALS):
            _assert_valid(generator.generate(game, 'standard', stats), game)

    def test_lotto_wheel(self, lotto_history):
        game = GAMES['lotto']
        stats = compute_game_statistics(game, lotto_history)
        generator = CombinationGenerator(seed=3)
        for i in range(TRIALS):
            wheel = LOTTO_WHEELS[i % len(LOTTO_WHEELS)]
            _assert_valid(generator.generate(game, 'high-variability', stats, wheel=wheel), game)

    @pytest.mark.parametrize("strategy", ["standard", "high-variability"])
    def test_empty_statistics(self, strategy):
        game = GAMES['superenalotto']
        generator = CombinationGenerator(seed=4)
        for _ in range(TRIALS):
            _assert_valid(generator.generate(game, strategy, GameStatistics()), game)

    @pytest.mark.parametrize("strategy", ["standard", "high-variability"])
    def test_adversarial_statistics(self, strategy):
        game = GAMES['superenalotto']
        stats = _adversarial_statistics()
        generator = CombinationGenerator(seed=5)
        for _ in range(TRIALS):
            _assert_valid(generator.generate(game, strategy, stats), game)

    def test_unknown_strategy(self, superenalotto_history):
        stats = compute_game_statistics('superenalotto', superenalotto_history)
        with pytest.raises(ValidationError) as exc:
            CombinationGenerator(seed=0).generate('superenalotto', 'martingale', stats)
        assert exc.value.field == 'strategy'

    def test_unknown_game_falls_back(self):
        result = CombinationGenerator(seed=0).generate('bingo', 'standard', GameStatistics())
        _assert_valid(result, GAMES['superenalotto'])

    def test_seed_is_reproducible(self, superenalotto_history):
        stats = compute_game_statistics('superenalotto', superenalotto_history)
        first = [CombinationGenerator(seed=42).generate('superenalotto', 'standard', stats) for _ in range(3)]
        second = [CombinationGenerator(seed=42).generate('superenalotto', 'standard', stats) for _ in range(3)]
        assert first == second


class TestRepair:

    def test_dedupes_and_fills(self):
        numbers = CombinationGenerator(seed=0).ensure_unique_count([5, 5, 5, 91, 0], 6, 90)
        assert len(numbers) == 6
        assert len(set(numbers)) == 6
        assert 5 in numbers
        assert all(1 <= n <= 90 for n in numbers)

    def test_trims_extra(self):
        numbers = CombinationGenerator(seed=0).ensure_unique_count(list(range(1, 12)), 6, 90)
        assert numbers == [1, 2, 3, 4, 5, 6]

    def test_exclusions_leave_exactly_enough(self):
        numbers = CombinationGenerator(seed=0).ensure_unique_count([], 5, 10, exclude=range(1, 6))
        assert numbers == [6, 7, 8, 9, 10]

    def test_impossible_exclusions_still_fill(self):
        numbers = CombinationGenerator(seed=0).ensure_unique_count([], 3, 10, exclude=range(1, 11))
        assert len(set(numbers)) == 3

    def test_random_numbers_avoid_runs(self):
        generator = CombinationGenerator(seed=9)
        for _ in range(300):
            numbers = generator.unique_random_numbers(6, 90, _adversarial_statistics())
            assert len(set(numbers)) == 6
            assert count_consecutive_runs(numbers) == 0


class TestRecommend:

    def test_advanced_recommendation(self, superenalotto_history):
        game = GAMES['superenalotto']
        stats = compute_game_statistics(game, superenalotto_history)
        generator = CombinationGenerator(seed=6)
        for _ in range(100):
            rec = generator.recommend(game, stats)
            _assert_valid(rec, game)
            assert 0.0 <= rec.pattern_score <= 100.0
            assert len(rec.reasons) >= game.numbers_to_select
            assert all(isinstance(r, str) for r in rec.reasons)

    def test_rationale_uses_ranking_language(self, superenalotto_history):
        stats = compute_game_statistics('superenalotto', superenalotto_history)
        rec = CombinationGenerator(seed=7).recommend('superenalotto', stats)
        text = " ".join(rec.reasons).lower()
        assert "influence score" in text
        assert not any(phrase in text for phrase in BANNED_PHRASES)

    def test_fallback_without_advanced_statistics(self):
        game = GAMES['superenalotto']
        generator = CombinationGenerator(seed=8)
        for _ in range(200):
            rec = generator.recommend(game, GameStatistics())
            _assert_valid(rec, game)
            assert rec.pattern_score is None
            assert rec.reasons

    def test_lotto_wheel_recommendation(self, lotto_history):
        game = GAMES['lotto']
        stats = compute_game_statistics(game, lotto_history)
        rec = CombinationGenerator(seed=9).recommend(game, stats, wheel='Napoli')
        _assert_valid(rec, game)
        assert any("Napoli" in r for r in rec.reasons)

    def test_wheel_without_draws_does_not_borrow_statistics(self):
        game = GAMES['lotto']
        history = random_history(30, numbers_to_select=5, wheels=('Bari',), seed=3)
        stats = compute_game_statistics(game, history)
        generator = CombinationGenerator(seed=4)

        rec = generator.recommend(game, stats, wheel='Napoli')
        _assert_valid(rec, game)
        assert rec.pattern_score is None
        assert not any("influence score" in r for r in rec.reasons)

        bari = generator.recommend(game, stats, wheel='Bari')
        assert bari.pattern_score is not None
        assert any("influence score" in r for r in bari.reasons)

    def test_fallback_fill_avoids_runs(self):
        game = GAMES['superenalotto']
        generator = CombinationGenerator(seed=10)
        for _ in range(100):
            rec = generator.recommend(game, GameStatistics())
            assert count_consecutive_runs(rec.numbers) == 0


def test_to_generated():
    result = GenerationResult(numbers=[3, 9, 27, 45, 60, 88], jolly=12, superstar=4)
    combo = to_generated(result, 'superenalotto', 'standard')
    assert combo.game_type == 'superenalotto'
    assert combo.numbers == (3, 9, 27, 45, 60, 88)
    assert combo.wheel is None
    assert not combo.is_ai
    assert combo.ai_provider is None
    assert combo.to_dict()['numbers'] == [3, 9, 27, 45, 60, 88]

    ai_combo = to_generated(result, 'superenalotto', 'ai-advanced', is_ai=True, is_advanced_ai=True,
                            ai_provider='anthropic')
    assert ai_combo.ai_provider == 'anthropic'


def test_to_generated_rejects_invalid_shape():
    with pytest.raises(ValidationError) as exc:
        to_generated(GenerationResult(numbers=[3, 9, 27, 45, 60]), 'superenalotto', 'standard')
    assert exc.value.field == 'numbers'
    with pytest.raises(ValidationError) as exc:
        to_generated(GenerationResult(numbers=[3, 9, 27, 45, 60, 88]), 'superenalotto', 'lucky-dip')
    assert exc.value.field == 'strategy'
