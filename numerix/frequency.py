import itertools
import logging
from collections import Counter
from typing import Iterable, List, Optional, Sequence

import numpy as np

from .config import STATISTICAL_CONFIG, GameConfig
from .models import (
    Delay, DrawRecord, Frequency, GameStatistics, SecondaryStatistics,
    UnluckyPair, UnsuccessfulCombination,
)

logger = logging.getLogger(__name__)


def count_numbers(combos: Iterable[Sequence[int]], max_number: int) -> np.ndarray:
    """Occurrences of each number (index i -> number i+1), ignoring out-of-range values."""
    counts = np.zeros(max_number, dtype=int)
    for numbers in combos:
        for num in numbers:
            if 1 <= num <= max_number:
                counts[num - 1] += 1
    return counts


def to_frequencies(counts: np.ndarray, total: int, keep_zero: bool = True) -> List[Frequency]:
    # Participation rate: share of combinations containing the number
    records = [
        Frequency(number=i + 1, count=int(c), percentage=(c / total * 100) if total else 0.0)
        for i, c in enumerate(counts)
        if keep_zero or c > 0
    ]
    records.sort(key=lambda f: (-f.count, f.number))
    return records


def draw_numbers(history: Sequence[DrawRecord], wheel: Optional[str] = None) -> List[Sequence[int]]:
    """Number sets of every draw that has data for the wheel (or main numbers)."""
    return [nums for nums in (draw.numbers_for(wheel) for draw in history) if nums]


def compute_frequencies(history: Sequence[DrawRecord], max_number: int,
                        wheel: Optional[str] = None) -> List[Frequency]:
    """Per-number draw counts, most frequent first."""
    combos = draw_numbers(history, wheel)
    counts = count_numbers(combos, max_number)
    return to_frequencies(counts, len(combos))


def compute_delays(history: Sequence[DrawRecord], max_number: int,
                   wheel: Optional[str] = None) -> List[Delay]:
    """
    Draws since each number last appeared, most overdue first.
    History is ordered most recent first; numbers never drawn get len(history).
    """
    combos = draw_numbers(history, wheel)
    last_seen = np.full(max_number, -1)

    for idx, numbers in enumerate(combos):
        for num in numbers:
            if 1 <= num <= max_number and last_seen[num - 1] == -1:
                last_seen[num - 1] = idx

    last_seen[last_seen == -1] = len(combos)
    delays = [Delay(number=i + 1, delay=int(d)) for i, d in enumerate(last_seen)]
    delays.sort(key=lambda d: (-d.delay, d.number))
    return delays


def compute_unlucky_numbers(unsuccessful: Sequence[UnsuccessfulCombination],
                            max_number: int) -> List[Frequency]:
    """How often each number appears in the user's unsuccessful combinations."""
    counts = count_numbers((combo.numbers for combo in unsuccessful), max_number)
    return to_frequencies(counts, len(unsuccessful), keep_zero=False)


def compute_unlucky_pairs(unsuccessful: Sequence[UnsuccessfulCombination],
                          min_count: int = STATISTICAL_CONFIG['unlucky_pair_min_count']) -> List[UnluckyPair]:
    """Pairs that recur across unsuccessful combinations; rarer pairs are noise."""
    pair_counts = Counter()
    for combo in unsuccessful:
        for pair in itertools.combinations(sorted(set(combo.numbers)), 2):
            pair_counts[pair] += 1

    pairs = [UnluckyPair(pair=p, count=c) for p, c in pair_counts.items() if c >= min_count]
    pairs.sort(key=lambda p: (-p.count, p.pair))
    return pairs


def is_unlucky_number(number: int, statistics: GameStatistics,
                      threshold: float = STATISTICAL_CONFIG['unlucky_threshold']) -> bool:
    for record in statistics.unlucky_numbers:
        if record.number == number:
            return record.percentage > threshold
    return False


def has_unlucky_pair(numbers: Sequence[int], statistics: GameStatistics,
                     min_count: int = STATISTICAL_CONFIG['unlucky_pair_min_count']) -> bool:
    if not statistics.unlucky_pairs:
        return False
    flagged = {p.pair for p in statistics.unlucky_pairs if p.count >= min_count}
    return any(pair in flagged for pair in itertools.combinations(sorted(set(numbers)), 2))


def filter_unsuccessful(unsuccessful: Sequence[UnsuccessfulCombination], game: GameConfig,
                        wheel: Optional[str] = None) -> List[UnsuccessfulCombination]:
    """Combinations for this game; wheel games keep only the requested wheel."""
    relevant = []
    for combo in unsuccessful:
        if combo.game_type != game.id:
            continue
        if game.has_wheels and wheel is not None and combo.wheel != wheel:
            continue
        if not game.has_wheels and combo.wheel:
            continue
        relevant.append(combo)
    return relevant


def compute_secondary_statistics(history: Sequence[DrawRecord], attribute: str, max_number: int,
                                 top_n: int = STATISTICAL_CONFIG['top_n']) -> SecondaryStatistics:
    """Frequencies and delays of a secondary number ('jolly' or 'superstar')."""
    values = [getattr(draw, attribute) for draw in history if getattr(draw, attribute) is not None]
    counts = count_numbers(([v] for v in values), max_number)
    frequencies = to_frequencies(counts, len(values))

    last_seen = np.full(max_number, -1)
    for idx, value in enumerate(values):
        if 1 <= value <= max_number and last_seen[value - 1] == -1:
            last_seen[value - 1] = idx
    last_seen[last_seen == -1] = len(values)
    delays = sorted((Delay(i + 1, int(d)) for i, d in enumerate(last_seen)), key=lambda d: (-d.delay, d.number))

    return SecondaryStatistics(
        frequent_numbers=frequencies[:top_n],
        infrequent_numbers=list(reversed(frequencies))[:top_n],
        delays=delays[:top_n],
    )
