import logging
import math
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from .config import PATTERN_CONFIG, GameConfig
from .models import DistributionAnalysis, DrawRecord, OptimalDistribution

logger = logging.getLogger(__name__)


def count_consecutive_runs(numbers: Sequence[int], min_length: int = 3) -> int:
    """Count maximal runs of consecutive integers with at least min_length members."""
    ordered = sorted(set(numbers))
    runs = 0
    current = 1
    for prev, nxt in zip(ordered, ordered[1:]):
        if nxt == prev + 1:
            current += 1
            continue
        if current >= min_length:
            runs += 1
        current = 1
    if ordered and current >= min_length:
        runs += 1
    return runs


def decade_buckets(numbers: Sequence[int], max_number: int = 90) -> List[int]:
    """Counts per block of ten: 1-10 -> 0, 11-20 -> 1, ..."""
    buckets = [0] * max(1, math.ceil(max_number / 10))
    for n in numbers:
        idx = (n - 1) // 10
        if 0 <= idx < len(buckets):
            buckets[idx] += 1
    return buckets


def analyze_distribution(numbers: Sequence[int], max_number: int = 90) -> DistributionAnalysis:
    """
    Descriptive statistics for a single combination.
    Empty input yields a zero-valued analysis instead of an error.
    """
    if len(numbers) == 0:
        return DistributionAnalysis()

    ordered = np.sort(np.asarray(numbers, dtype=int))
    even = int(np.sum(ordered % 2 == 0))
    odd = len(ordered) - even
    gaps = np.diff(ordered)

    average_gap = float(gaps.mean()) if len(gaps) else 0.0
    gap_variance = float(gaps.var()) if len(gaps) else 0.0

    return DistributionAnalysis(
        sum=int(ordered.sum()),
        spread=int(ordered[-1] - ordered[0]),
        even_odd_ratio=even / odd if odd > 0 else float(even),
        consecutive_sequences=count_consecutive_runs(ordered.tolist(), PATTERN_CONFIG['min_run_length']),
        gap_analysis=gaps.tolist(),
        average_gap=average_gap,
        decade_distribution=decade_buckets(ordered.tolist(), max_number),
        number_density=1.0 / (1.0 + gap_variance),
    )


def optimal_distribution(game: GameConfig) -> OptimalDistribution:
    """Target distribution for a game: mean sum, 70% spread, balanced parity."""
    k, n = game.numbers_to_select, game.max_number
    n_buckets = max(1, math.ceil(n / 10))
    return OptimalDistribution(
        sum=k * (n + 1) / 2,
        spread=n * PATTERN_CONFIG['spread_factor'],
        even_odd_ratio=1.0,
        average_gap=n / k,
        decade_distribution=[k / n_buckets] * n_buckets,
    )


def history_profile(history: Sequence[DrawRecord], game: GameConfig,
                    wheel: Optional[str] = None) -> DistributionAnalysis:
    """Average distribution of the draws in a history."""
    rows = []
    decades = []
    for draw in history:
        numbers = draw.numbers_for(wheel)
        if not numbers:
            continue
        analysis = analyze_distribution(numbers, game.max_number)
        rows.append({
            'sum': analysis.sum,
            'spread': analysis.spread,
            'even_odd_ratio': analysis.even_odd_ratio,
            'consecutive_sequences': analysis.consecutive_sequences,
            'average_gap': analysis.average_gap,
            'number_density': analysis.number_density,
        })
        decades.append(analysis.decade_distribution)

    if not rows:
        logger.debug("No draws available for history profile.")
        return DistributionAnalysis()

    means = pd.DataFrame(rows).mean()
    return DistributionAnalysis(
        sum=float(means['sum']),
        spread=float(means['spread']),
        even_odd_ratio=float(means['even_odd_ratio']),
        consecutive_sequences=int(round(means['consecutive_sequences'])),
        gap_analysis=[],
        average_gap=float(means['average_gap']),
        decade_distribution=np.mean(np.array(decades, dtype=float), axis=0).tolist(),
        number_density=float(means['number_density']),
    )
