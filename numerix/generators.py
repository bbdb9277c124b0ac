"""
Combination generator.

Two strategies fill part of the slots from statistics (frequent/delayed or
infrequent numbers) and leave the rest to a repair step that guarantees an
exact count of unique, in-range numbers. Avoidance of unlucky numbers and
pairs is probabilistic: it biases the pick, it never excludes a number.
"""

import logging
import math
from typing import Iterable, List, Optional, Sequence

import numpy as np

from .config import GENERATOR_CONFIG, STRATEGIES, GameConfig, get_game, resolve_wheel
from .cooccurrence import find_co_occurrence
from .distribution import analyze_distribution, count_consecutive_runs, optimal_distribution
from .errors import ConstraintExhaustionError, ValidationError
from .frequency import has_unlucky_pair, is_unlucky_number
from .models import (
    AdvancedStatistics, GameStatistics, GeneratedCombination,
    GenerationResult, Recommendation,
)
from .pattern import score_pattern

logger = logging.getLogger(__name__)


class CombinationGenerator:
    """Generate combinations from game statistics with bounded, seedable randomness."""

    def __init__(self, seed: Optional[int] = None, rng: Optional[np.random.Generator] = None,
                 params: Optional[dict] = None):
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.params = {**GENERATOR_CONFIG, **(params or {})}

    # Random helpers

    def _random_number(self, low: int, high: int) -> int:
        return int(self.rng.integers(low, high + 1))

    def _chance(self, probability: float) -> bool:
        return self.rng.random() < probability

    def _random_excluding(self, max_number: int, exclude: Iterable[int]) -> int:
        excluded = set(exclude)
        for _ in range(self.params['max_attempts']):
            candidate = self._random_number(1, max_number)
            if candidate not in excluded:
                return candidate
        remaining = [n for n in range(1, max_number + 1) if n not in excluded]
        if not remaining:
            raise ConstraintExhaustionError(f"No number in 1..{max_number} left to choose")
        return int(self.rng.choice(remaining))

    # Repair

    def ensure_unique_count(self, numbers: Sequence[int], required: int, max_number: int,
                            exclude: Iterable[int] = ()) -> List[int]:
        """
        Dedupe, top up with uniform random numbers, trim and sort.

        Random top-up skips chosen and excluded numbers under the attempt
        ceiling; after that the remaining slots are filled from a shuffled
        list of whatever is left, excluded numbers last.
        """
        unique = []
        for n in numbers:
            n = int(n)
            if 1 <= n <= max_number and n not in unique:
                unique.append(n)

        blocked = set(exclude) | set(unique)
        attempts = 0
        while len(unique) < required and attempts < self.params['max_attempts']:
            attempts += 1
            candidate = self._random_number(1, max_number)
            if candidate not in blocked:
                unique.append(candidate)
                blocked.add(candidate)

        if len(unique) < required:
            logger.debug("Random fill exhausted after %d attempts; filling from remaining range", attempts)
            free = [n for n in self.rng.permutation(np.arange(1, max_number + 1)).tolist() if n not in blocked]
            fallback = [n for n in self.rng.permutation(sorted(set(exclude))).tolist() if n not in unique]
            for n in free + fallback:
                if len(unique) >= required:
                    break
                unique.append(int(n))

        return sorted(unique[:required])

    def unique_random_numbers(self, count: int, max_number: int,
                              statistics: Optional[GameStatistics] = None) -> List[int]:
        """Random numbers avoiding runs of three and, probabilistically, unlucky numbers/pairs."""
        numbers: List[int] = []
        attempts = 0
        while len(numbers) < count and attempts < self.params['max_attempts']:
            attempts += 1
            candidate = self._random_number(1, max_number)
            if candidate in numbers:
                continue
            if statistics is not None and is_unlucky_number(candidate, statistics) \
                    and self._chance(self.params['unlucky_skip_probability']):
                continue
            trial = numbers + [candidate]
            if len(trial) >= 3 and count_consecutive_runs(trial) > 0:
                continue
            if statistics is not None and len(trial) >= 2 and has_unlucky_pair(trial, statistics) \
                    and self._chance(self.params['unlucky_pair_skip_probability']):
                continue
            numbers.append(candidate)

        return self.ensure_unique_count(numbers, count, max_number)

    # Statistic-driven picks

    def _from_frequency(self, count: int, statistics: GameStatistics, use_frequent: bool = True) -> List[int]:
        pool = statistics.frequent_numbers if use_frequent else statistics.infrequent_numbers
        keep = self.params['frequent_pool_keep_probability']
        pool = [f for f in pool
                if not is_unlucky_number(f.number, statistics) or self._chance(keep)]

        # Frequent numbers are weighted by count, infrequent ones uniformly
        weights = np.array([max(f.count, 0) if use_frequent else 1 for f in pool], dtype=float)
        if not pool or weights.sum() <= 0:
            return []
        weights /= weights.sum()

        numbers: List[int] = []
        attempts = 0
        while len(numbers) < count and attempts < self.params['max_attempts']:
            attempts += 1
            candidate = pool[int(self.rng.choice(len(pool), p=weights))].number
            if candidate in numbers:
                continue
            if len(numbers) >= 1 and has_unlucky_pair(numbers + [candidate], statistics) \
                    and self._chance(self.params['unlucky_pair_skip_probability']):
                continue
            numbers.append(candidate)
        return sorted(numbers)

    def _from_delays(self, count: int, statistics: GameStatistics) -> List[int]:
        keep = self.params['delay_pool_keep_probability']
        pool = [d for d in statistics.delays
                if not is_unlucky_number(d.number, statistics) or self._chance(keep)]

        numbers: List[int] = []
        for delay in pool[:count]:
            if numbers and has_unlucky_pair(numbers + [delay.number], statistics) \
                    and self._chance(self.params['unlucky_pair_skip_probability']):
                continue
            numbers.append(delay.number)
        return sorted(numbers)

    def _secondary_number(self, game: GameConfig, statistics: GameStatistics,
                          exclude: Sequence[int], avoid_probability: float) -> int:
        """One Jolly/SuperStar draw, retried a few times when it lands on an unlucky number."""
        upper = game.secondary_max or game.max_number
        number = self._random_excluding(upper, exclude)
        if statistics.unlucky_numbers and is_unlucky_number(number, statistics) \
                and self._chance(avoid_probability):
            for _ in range(self.params['secondary_retries']):
                candidate = self._random_excluding(upper, exclude)
                if not is_unlucky_number(candidate, statistics):
                    number = candidate
                    break
        return number

    # Public API

    def generate(self, game_type, strategy: str, statistics: GameStatistics,
                 wheel: Optional[str] = None) -> GenerationResult:
        """Produce one combination; the result always has exactly numbers_to_select unique numbers."""
        if strategy not in STRATEGIES:
            raise ValidationError(f"Unknown strategy: {strategy!r}", field='strategy')

        game = get_game(game_type)
        wheel = resolve_wheel(game, wheel)
        stats = statistics.for_wheel(wheel)
        k = game.numbers_to_select

        if strategy == 'standard':
            frequent = self._from_frequency(math.ceil(k * self.params['frequent_share']), stats, True)
            delayed = [n for n in self._from_delays(math.floor(k * self.params['delay_share']), stats)
                       if n not in frequent]
            combination = frequent + delayed
        else:
            combination = self._from_frequency(math.ceil(k * self.params['infrequent_share']), stats, False)

        combination = self.ensure_unique_count(combination, k, game.max_number)
        logger.debug("Generated %s combination for %s: %s", strategy, game.name, combination)

        if not game.has_secondary:
            return GenerationResult(numbers=combination)

        avoid = self.params['secondary_avoid_probability']
        jolly = self._secondary_number(game, stats, combination, avoid)
        superstar = self._secondary_number(game, stats, (), avoid)
        return GenerationResult(numbers=combination, jolly=jolly, superstar=superstar)

    def _influence_pick(self, advanced: AdvancedStatistics, k: int, max_number: int) -> List[int]:
        top = advanced.influence[:k * 2]
        weights = np.array([max(r.normalized_score, 0.0) for r in top], dtype=float)
        if not top or weights.sum() <= 0:
            return self.ensure_unique_count([], k, max_number)
        weights /= weights.sum()

        selected: List[int] = []
        attempts = 0
        while len(selected) < k and attempts < self.params['max_attempts']:
            attempts += 1
            candidate = top[int(self.rng.choice(len(top), p=weights))].number
            if candidate not in selected:
                selected.append(candidate)
        return self.ensure_unique_count(selected, k, max_number)

    def _substitute_lift_pair(self, combination: List[int], advanced: AdvancedStatistics) -> List[int]:
        """Swap one number for a member of a top positive-lift pair when neither is present."""
        positive = [c for c in advanced.co_occurrences if c.lift_score > 0][:self.params['top_lift_pairs']]
        if not positive:
            return combination
        pair = positive[int(self.rng.integers(0, min(self.params['lift_pair_choices'], len(positive))))]
        if pair.numbers[0] in combination or pair.numbers[1] in combination:
            return combination
        candidate = pair.numbers[0] if self._chance(0.5) else pair.numbers[1]
        updated = list(combination)
        updated[int(self.rng.integers(0, len(updated)))] = candidate
        return sorted(updated)

    def recommend(self, game_type, statistics: GameStatistics, wheel: Optional[str] = None,
                  advanced: Optional[AdvancedStatistics] = None) -> Recommendation:
        """
        Local recommendation with one rationale string per number.

        Uses influence and lift when advanced statistics are available (for
        wheel games, the wheel's own or the ones passed in), otherwise mixes
        hot and due numbers topped up by unique_random_numbers.
        Rationale strings describe rankings, never chances of winning.
        """
        game = get_game(game_type)
        wheel = resolve_wheel(game, wheel)
        stats = statistics.for_wheel(wheel)
        # A wheel without draws has no advanced statistics of its own; never borrow another wheel's
        if wheel:
            effective = stats.advanced or advanced
        else:
            effective = advanced or statistics.advanced

        if effective is not None:
            return self._recommend_advanced(game, stats, effective, wheel)
        return self._recommend_basic(game, stats)

    def _recommend_advanced(self, game: GameConfig, stats: GameStatistics,
                            advanced: AdvancedStatistics, wheel: Optional[str]) -> Recommendation:
        k = game.numbers_to_select
        combination = self._influence_pick(advanced, k, game.max_number)
        combination = self._substitute_lift_pair(combination, advanced)

        distribution = analyze_distribution(combination, game.max_number)
        pattern_score = score_pattern(distribution, optimal_distribution(game), advanced.influence, combination)

        reasons = []
        for number in combination:
            record = advanced.influence_for(number)
            if record is not None:
                reason = (f"Number {number}: influence score {record.normalized_score:.1f} "
                          f"(historical frequency {record.historical_frequency:.1f}%, "
                          f"recent frequency {record.recent_frequency:.1f}%)")
            else:
                reason = f"Number {number}: selected to balance the distribution"
            partners = [find_co_occurrence(advanced.co_occurrences, number, other)
                        for other in combination if other != number]
            partners = [p for p in partners if p is not None and p.lift_score > 0]
            if partners:
                best = max(partners, key=lambda p: p.lift_score)
                other = best.numbers[1] if best.numbers[0] == number else best.numbers[0]
                reason += f". Positive lift with {other} ({best.lift:.2f})"
            reasons.append(reason)

        wheel_label = f" (wheel: {wheel})" if wheel else ""
        reasons.append(f"Pattern score: {pattern_score:.1f}/100{wheel_label}")
        reasons.append(f"Distribution: sum={distribution.sum}, spread={distribution.spread}, "
                       f"even/odd={distribution.even_odd_ratio * 100:.0f}%")
        reasons.append("Scores rank past data only; every combination has the same chance of being drawn.")

        jolly = superstar = None
        if game.has_secondary:
            candidates = [r.number for r in advanced.influence if r.number not in combination][:10]
            if candidates:
                jolly = int(self.rng.choice(candidates))
                superstar = int(self.rng.choice(candidates))
            else:
                jolly = self._random_excluding(game.secondary_max, combination)
                superstar = self._random_number(1, game.secondary_max)
            reasons.append(f"Jolly {jolly}: chosen among the highest influence scores")
            reasons.append(f"SuperStar {superstar}: chosen among the highest influence scores")

        return Recommendation(numbers=combination, reasons=reasons, jolly=jolly, superstar=superstar,
                              pattern_score=pattern_score, distribution=distribution)

    def _recommend_basic(self, game: GameConfig, stats: GameStatistics) -> Recommendation:
        k = game.numbers_to_select
        hot = self._from_frequency(math.ceil(k * self.params['hot_share']), stats, True)
        due = [n for n in self._from_delays(math.ceil(k * self.params['due_share']), stats) if n not in hot]
        picked = hot + due
        if len(picked) < k:
            extra = [n for n in self.unique_random_numbers(k, game.max_number, stats) if n not in picked]
            picked += extra[:k - len(picked)]
        combination = self.ensure_unique_count(picked, k, game.max_number)

        frequent = {f.number: f for f in stats.frequent_numbers if f.count > 0}
        delays = {d.number: d for d in stats.delays if d.delay > 0}
        reasons = []
        for number in combination:
            if number in frequent:
                f = frequent[number]
                reasons.append(f"Number {number} was drawn {f.count} times ({f.percentage:.1f}% of draws).")
            elif number in delays:
                reasons.append(f"Number {number} has not been drawn for {delays[number].delay} draws.")
            else:
                reasons.append(f"Number {number} was selected to balance the combination.")

        if stats.unlucky_numbers:
            reasons.append("Numbers and pairs frequent in your unsuccessful combinations were avoided where possible.")

        jolly = superstar = None
        if game.has_secondary:
            avoid = self.params['recommendation_secondary_avoid_probability']
            jolly = self._secondary_number(game, stats, combination, avoid)
            superstar = self._secondary_number(game, stats, (), avoid)
            reasons.append(f"Jolly {jolly} was selected as the complementary number.")
            reasons.append(f"SuperStar {superstar} was drawn at random, avoiding unlucky numbers where possible.")

        distribution = analyze_distribution(combination, game.max_number)
        return Recommendation(numbers=combination, reasons=reasons, jolly=jolly, superstar=superstar,
                              distribution=distribution)


def to_generated(result, game_type, strategy: str, wheel: Optional[str] = None,
                 is_ai: bool = False, is_advanced_ai: bool = False,
                 ai_provider: Optional[str] = None) -> GeneratedCombination:
    """Wrap a generator/AI result as a validated GeneratedCombination ready for persistence."""
    game = get_game(game_type)
    return GeneratedCombination.create(
        game,
        result.numbers,
        strategy,
        wheel=resolve_wheel(game, wheel),
        jolly=result.jolly,
        superstar=result.superstar,
        is_ai=is_ai,
        is_advanced_ai=is_advanced_ai,
        ai_provider=ai_provider if is_advanced_ai else None,
    )
