import logging
from typing import Optional, Sequence

import numpy as np

from .config import PATTERN_CONFIG
from .frequency import draw_numbers
from .models import DistributionAnalysis, DrawRecord, ExpectedValue, InfluenceRecord, OptimalDistribution

logger = logging.getLogger(__name__)


def _axis_penalty(actual: float, target: float, weight: float) -> float:
    """Relative deviation mapped to [0, weight) so one axis cannot zero the score."""
    if target == 0:
        deviation = abs(actual)
    else:
        deviation = abs(actual - target) / abs(target)
    return weight * deviation / (1.0 + deviation)


def score_pattern(actual: DistributionAnalysis, optimal: OptimalDistribution,
                  influence: Sequence[InfluenceRecord], combination: Sequence[int],
                  params: Optional[dict] = None) -> float:
    """
    Quality score in [0, 100] for a combination.

    Starts at 100, subtracts bounded penalties for sum/spread/parity deviation
    from the target and a flat penalty per consecutive run, then adds or
    subtracts up to influence_weight depending on how the chosen numbers'
    normalized influence compares with the range average.
    """
    params = {**PATTERN_CONFIG, **(params or {})}
    score = 100.0

    score -= _axis_penalty(actual.sum, optimal.sum, params['sum_weight'])
    score -= _axis_penalty(actual.spread, optimal.spread, params['spread_weight'])
    score -= _axis_penalty(actual.even_odd_ratio, optimal.even_odd_ratio, params['parity_weight'])
    score -= actual.consecutive_sequences * params['consecutive_penalty']

    if influence and len(combination):
        by_number = {r.number: r.normalized_score for r in influence}
        range_mean = 100.0 / len(influence)
        selected_mean = float(np.mean([by_number.get(n, 0.0) for n in combination]))
        ratio = min(selected_mean / range_mean, params['influence_ratio_cap'])
        score += params['influence_weight'] * (ratio - 1.0)

    return float(max(0.0, min(100.0, score)))


def compute_expected_value(combination: Sequence[int], history: Sequence[DrawRecord],
                           numbers_to_select: int, wheel: Optional[str] = None) -> ExpectedValue:
    """
    How the combination would have fared against every draw in the history.

    The impact score weights each match count by its square; it is a
    pattern-quality figure, not a monetary value.
    """
    combos = draw_numbers(history, wheel)
    size = max(numbers_to_select, len(combination))
    counts = np.zeros(size + 1)
    chosen = set(combination)

    for numbers in combos:
        counts[len(chosen.intersection(numbers))] += 1

    distribution = counts / (len(combos) or 1)
    matches = np.arange(size + 1)

    return ExpectedValue(
        combination=list(combination),
        expected_matches=float(np.sum(distribution * matches)),
        match_distribution=distribution.tolist(),
        impact_score=float(np.sum(distribution * matches ** 2)),
    )
