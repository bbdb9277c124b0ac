import logging
from typing import List, Optional, Sequence

import numpy as np

from .config import STATISTICAL_CONFIG
from .frequency import draw_numbers
from .models import CoOccurrence, DrawRecord

logger = logging.getLogger(__name__)


def presence_matrix(combos: Sequence[Sequence[int]], max_number: int) -> np.ndarray:
    """Binary matrix (n_draws, max_number); cell [i, n-1] is 1 when draw i contains n."""
    presence = np.zeros((len(combos), max_number), dtype=np.int64)
    for i, numbers in enumerate(combos):
        for num in numbers:
            if 1 <= num <= max_number:
                presence[i, num - 1] = 1
    return presence


def lift_score(lift: Optional[float]) -> float:
    """Map lift in [0, inf) onto [-1, 1); 0 means independence."""
    if lift is None:
        return 0.0
    return (lift - 1.0) / (lift + 1.0)


def compute_co_occurrences(history: Sequence[DrawRecord], max_number: int,
                           min_count: int = STATISTICAL_CONFIG['min_co_occurrence'],
                           wheel: Optional[str] = None) -> List[CoOccurrence]:
    """
    Observed vs expected joint appearance of every number pair.

    Expected frequency assumes independence of the two numbers' marginal draw
    rates. Pairs seen fewer than min_count times are discarded.
    """
    combos = draw_numbers(history, wheel)
    total = len(combos)
    if total == 0:
        return []

    presence = presence_matrix(combos, max_number)
    joint = presence.T @ presence
    marginal = np.diag(joint) / total

    rows, cols = np.nonzero(np.triu(joint, k=1) >= min_count)
    records = []
    for a, b in zip(rows.tolist(), cols.tolist()):
        count = int(joint[a, b])
        frequency = count / total * 100
        expected = float(marginal[a] * marginal[b] * 100)
        lift = frequency / expected if expected > 0 else None
        records.append(CoOccurrence(
            numbers=(a + 1, b + 1),
            count=count,
            frequency=frequency,
            expected_frequency=expected,
            lift=lift,
            lift_score=lift_score(lift),
        ))

    records.sort(key=lambda r: (-r.lift_score, -r.count, r.numbers))
    logger.debug("Found %d co-occurring pairs over %d draws (min_count=%d)", len(records), total, min_count)
    return records


def find_co_occurrence(records: Sequence[CoOccurrence], a: int, b: int) -> Optional[CoOccurrence]:
    key = (min(a, b), max(a, b))
    for record in records:
        if record.numbers == key:
            return record
    return None
