import logging
from typing import List, Optional, Sequence

import numpy as np

from .config import STATISTICAL_CONFIG
from .frequency import count_numbers, draw_numbers
from .models import DrawRecord, InfluenceRecord, UnsuccessfulCombination

logger = logging.getLogger(__name__)


def compute_influence(history: Sequence[DrawRecord], max_number: int,
                      recent_window: Optional[int] = None,
                      unsuccessful: Sequence[UnsuccessfulCombination] = (),
                      wheel: Optional[str] = None,
                      params: Optional[dict] = None) -> List[InfluenceRecord]:
    """
    Rank every number 1..max_number by blending historical frequency (prior),
    recent-window frequency (likelihood) and a penalty for appearing in the
    user's unsuccessful combinations.

    The score is a ranking metric: normalized scores sum to 100 across the
    whole range and say nothing about the chance of a number being drawn.
    """
    params = {**STATISTICAL_CONFIG, **(params or {})}
    combos = draw_numbers(history, wheel)
    total = len(combos)

    window = total if recent_window is None else max(0, min(recent_window, total))
    recent = combos[:window]

    hist_counts = count_numbers(combos, max_number)
    recent_counts = count_numbers(recent, max_number)
    unsuccessful_counts = count_numbers((c.numbers for c in unsuccessful), max_number)

    historical = hist_counts / total * 100 if total else np.zeros(max_number)
    recent_freq = recent_counts / window * 100 if window else historical.copy()

    if len(unsuccessful):
        penalty = unsuccessful_counts / len(unsuccessful) * 100 * params['penalty_weight']
    else:
        penalty = np.zeros(max_number)

    scores = params['historical_weight'] * historical + params['recent_weight'] * recent_freq - penalty

    positive = np.clip(scores, 0.0, None)
    if positive.sum() > 0:
        normalized = positive / positive.sum() * 100
    else:
        normalized = np.full(max_number, 100.0 / max_number)

    confidence = min(100.0, float(np.sqrt(total + window) * 10))

    records = [
        InfluenceRecord(
            number=i + 1,
            historical_frequency=float(historical[i]),
            recent_frequency=float(recent_freq[i]),
            unsuccessful_penalty=float(penalty[i]),
            influence_score=float(scores[i]),
            normalized_score=float(normalized[i]),
            confidence=confidence,
        )
        for i in range(max_number)
    ]
    records.sort(key=lambda r: (-r.normalized_score, -r.influence_score, r.number))
    logger.debug("Influence computed for %d numbers over %d draws (window=%d)", max_number, total, window)
    return records
