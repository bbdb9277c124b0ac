import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

from .config import RANKING_CONFIG, get_game
from .distribution import analyze_distribution, optimal_distribution
from .filters import CombinationFilter
from .models import AdvancedStatistics, DistributionAnalysis
from .pattern import score_pattern

logger = logging.getLogger(__name__)


@dataclass
class RankedCandidate:
    numbers: List[int]
    score: float
    source: str = "generator"
    jolly: Optional[int] = None
    superstar: Optional[int] = None
    distribution: Optional[DistributionAnalysis] = None


class CandidateRanker:
    """Rank several candidate combinations by pattern score, then pick a diverse top-k."""

    def __init__(self, game_type, advanced: Optional[AdvancedStatistics] = None, params=None):
        self.game = get_game(game_type)
        self.advanced = advanced
        self.params = {**RANKING_CONFIG, **(params or {})}
        self.filter = CombinationFilter(self.game)
        self.optimal = advanced.optimal if advanced is not None else optimal_distribution(self.game)

    def score(self, numbers: Sequence[int]) -> float:
        influence = self.advanced.influence if self.advanced is not None else []
        distribution = analyze_distribution(numbers, self.game.max_number)
        return score_pattern(distribution, self.optimal, influence, numbers)

    def rank(self, candidates, source: str = "generator") -> List[RankedCandidate]:
        """
        Score candidates (lists of numbers or objects with a .numbers attribute),
        dropping exact duplicates and combinations the filter rejects.
        """
        ranked = []
        seen = set()
        rejected = 0
        for candidate in candidates:
            numbers = sorted(getattr(candidate, 'numbers', candidate))
            key = tuple(numbers)
            if key in seen:
                continue
            seen.add(key)

            is_valid, reason = self.filter.validate(numbers)
            if not is_valid:
                rejected += 1
                logger.debug("Rejected %s: %s", numbers, reason)
                continue

            ranked.append(RankedCandidate(
                numbers=numbers,
                score=self.score(numbers),
                source=source,
                jolly=getattr(candidate, 'jolly', None),
                superstar=getattr(candidate, 'superstar', None),
                distribution=analyze_distribution(numbers, self.game.max_number),
            ))

        ranked.sort(key=lambda c: c.score, reverse=True)
        logger.info("Ranked %d candidates (%d rejected by filters)", len(ranked), rejected)
        return ranked

    def choose_diverse_top(self, ranked: List[RankedCandidate], k: int) -> List[RankedCandidate]:
        """
        Select top-k candidates with a greedy diversity-aware score to avoid near-duplicates.
        """
        chosen = []
        candidates = list(ranked)

        while candidates and len(chosen) < k:
            best_idx = -1
            best_score = -1.0
            for idx, candidate in enumerate(candidates):
                score = candidate.score * self._diversity_factor(candidate, chosen)
                if score > best_score:
                    best_idx, best_score = idx, score

            if best_idx < 0:
                break
            chosen.append(replace(candidates.pop(best_idx), score=best_score))

        return chosen

    def _diversity_factor(self, candidate: RankedCandidate, selected: List[RankedCandidate]) -> float:
        """
        Penalize candidates that overlap heavily with already selected ones,
        blending the worst and the average overlap.
        """
        if not selected:
            return 1.0
        numbers = set(candidate.numbers)
        k = float(self.game.numbers_to_select)
        overlaps = [len(numbers & set(s.numbers)) / k for s in selected]

        penalty = (0.5 * max(overlaps) + 0.5 * sum(overlaps) / len(overlaps)) * self.params['diversity_penalty_base']
        return max(1.0 - penalty, self.params['diversity_floor'])
