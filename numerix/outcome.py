"""
How the user's combinations fared against the draws that followed.

Every figure here is retrospective: it describes past matches and says
nothing about future draws.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from .config import OUTCOME_CONFIG, get_game, resolve_wheel
from .frequency import count_numbers, filter_unsuccessful, to_frequencies
from .models import (
    DrawRecord, MatchDetail, MatchVariance, MissedOpportunity, NearMissAnalysis,
    NearMissMatch, NearMissResult, OverlapRecord, UnsuccessfulCombination, WinningAnalysis,
)
from .probability import expected_matches, match_probability

logger = logging.getLogger(__name__)


def _timestamp(value) -> Optional[pd.Timestamp]:
    if value is None:
        return None
    stamp = pd.to_datetime(value, errors='coerce')
    return None if pd.isna(stamp) else stamp.normalize()


def _draws_for(history: Sequence[DrawRecord], wheel: Optional[str]):
    return [(draw, draw.numbers_for(wheel)) for draw in history if draw.numbers_for(wheel)]


def analyze_unsuccessful(unsuccessful: Sequence[UnsuccessfulCombination], history: Sequence[DrawRecord],
                         game_type, wheel: Optional[str] = None) -> WinningAnalysis:
    """Match every relevant combination against every draw of the game/wheel."""
    game = get_game(game_type)
    wheel = resolve_wheel(game, wheel)
    params = OUTCOME_CONFIG

    relevant = filter_unsuccessful(unsuccessful, game, wheel)
    draws = _draws_for(history, wheel)
    if not relevant or not draws:
        return WinningAnalysis()

    details: List[MatchDetail] = []
    missed: List[MissedOpportunity] = []
    for combo in relevant:
        chosen = set(combo.numbers)
        for draw, winning in draws:
            matched = sorted(chosen.intersection(winning))
            if matched:
                details.append(MatchDetail(draw.date, matched, len(matched), wheel))
            if len(matched) >= params['missed_opportunity_min_matches']:
                missed.append(MissedOpportunity(draw.date, list(winning), list(combo.numbers), len(matched), wheel))

    your_frequent = to_frequencies(count_numbers((c.numbers for c in relevant), game.max_number),
                                   len(relevant), keep_zero=False)
    winning_combos = [w for _, w in draws]
    winning_frequent = to_frequencies(count_numbers(winning_combos, game.max_number),
                                      len(winning_combos), keep_zero=False)
    winning_by_number = {f.number: f.percentage for f in winning_frequent}

    overlap = []
    for yours in your_frequent[:20]:
        winning_pct = winning_by_number.get(yours.number, 0.0)
        efficiency = winning_pct / yours.percentage * 100 if winning_pct > 0 else 0.0
        overlap.append(OverlapRecord(yours.number, yours.percentage, winning_pct, efficiency))
    overlap.sort(key=lambda o: -o.efficiency)

    details.sort(key=lambda d: -d.match_count)
    missed.sort(key=lambda m: -m.matches)
    logger.info("Analyzed %d unsuccessful combinations against %d draws", len(relevant), len(draws))

    return WinningAnalysis(
        total_matches=sum(d.match_count for d in details),
        match_details=details,
        missed_opportunities=missed[:params['top_missed']],
        your_frequent_numbers=your_frequent[:params['top_frequent']],
        winning_frequent_numbers=winning_frequent[:params['top_frequent']],
        overlap=overlap[:params['top_overlap']],
    )


def analysis_insights(analysis: WinningAnalysis) -> List[str]:
    """Plain-language summary of a WinningAnalysis."""
    params = OUTCOME_CONFIG
    insights = []

    if analysis.total_matches == 0:
        insights.append("None of your combinations matched any drawn number.")
    else:
        insights.append(f"Your combinations matched {analysis.total_matches} drawn numbers "
                        f"across {len(analysis.match_details)} draws.")

    if analysis.missed_opportunities:
        best = analysis.missed_opportunities[0]
        insights.append(f"Your closest result was {best.matches} matching numbers on {best.draw_date}.")

    efficient = [o.number for o in analysis.overlap if o.efficiency > params['efficient_threshold']]
    inefficient = [o.number for o in analysis.overlap if o.efficiency < params['inefficient_threshold']]
    if efficient:
        insights.append(f"Numbers you play often that were also drawn often: {', '.join(map(str, efficient))}.")
    if inefficient:
        insights.append(f"Numbers you play often that were rarely drawn: {', '.join(map(str, inefficient))}.")

    if analysis.your_frequent_numbers:
        top_winning = {f.number for f in analysis.winning_frequent_numbers[:5]}
        common = [f.number for f in analysis.your_frequent_numbers[:5] if f.number in top_winning]
        if common:
            insights.append(f"Your favourite numbers among the most drawn: {', '.join(map(str, common))}.")
        else:
            insights.append("Your favourite numbers do not overlap with the most drawn numbers.")

    insights.append("Past matches do not change the chance of any future combination.")
    return insights


def near_miss_analysis(combinations: Sequence[UnsuccessfulCombination], history: Sequence[DrawRecord],
                       game_type, wheel: Optional[str] = None, min_score: float = 2.0) -> NearMissAnalysis:
    """
    Exact matches plus numbers one away from a drawn number.

    Each combination/draw pair scores exact + off_by_one_weight * off-by-one;
    pairs scoring at least min_score are reported, best first.
    """
    game = get_game(game_type)
    wheel = resolve_wheel(game, wheel)
    weight = OUTCOME_CONFIG['off_by_one_weight']
    relevant = filter_unsuccessful(combinations, game, wheel)
    draws = _draws_for(history, wheel)

    results = []
    for combo in relevant:
        for draw, winning in draws:
            drawn = set(winning)
            matches = []
            for number in combo.numbers:
                if number in drawn:
                    matches.append(NearMissMatch(number, 'exact', number))
                    continue
                neighbour = next((w for w in (number - 1, number + 1) if w in drawn), None)
                if neighbour is not None:
                    matches.append(NearMissMatch(number, 'off-by-one', neighbour))

            exact = sum(1 for m in matches if m.kind == 'exact')
            off_by_one = len(matches) - exact
            score = exact + weight * off_by_one
            if score >= min_score:
                results.append(NearMissResult(
                    combination=tuple(combo.numbers),
                    draw_date=draw.date,
                    winning_numbers=list(winning),
                    matches=matches,
                    exact_matches=exact,
                    off_by_one_matches=off_by_one,
                    total_score=score,
                    wheel=wheel,
                ))

    results.sort(key=lambda r: (-r.total_score, -r.exact_matches))
    return NearMissAnalysis(
        near_misses=results,
        total_analyzed=len(relevant) * len(draws),
        criteria=f"exact + {weight} x off-by-one >= {min_score}",
    )


def match_variance(combinations: Sequence[UnsuccessfulCombination], history: Sequence[DrawRecord],
                   game_type, wheel: Optional[str] = None) -> Optional[MatchVariance]:
    """
    Observed match counts against the hypergeometric expectation.

    A play is one combination checked against one draw on or after the
    combination's draw date (all draws when it has none). Returns None when
    there are no plays.
    """
    game = get_game(game_type)
    wheel = resolve_wheel(game, wheel)
    params = OUTCOME_CONFIG
    k, n = game.numbers_to_select, game.max_number

    plays = []
    for combo in filter_unsuccessful(combinations, game, wheel):
        since = _timestamp(combo.draw_date)
        chosen = set(combo.numbers)
        for draw, winning in _draws_for(history, wheel):
            drawn_on = _timestamp(draw.date)
            if since is not None and drawn_on is not None and drawn_on < since:
                continue
            plays.append((drawn_on, len(chosen.intersection(winning))))

    if not plays:
        return None

    # Most recent first; undated draws keep their history order at the end
    plays.sort(key=lambda p: (p[0] is None, -(p[0].value if p[0] is not None else 0)))
    counts = np.array([m for _, m in plays])
    total = len(counts)

    observed = np.bincount(counts, minlength=k + 1)[:k + 1]
    expected = np.array([match_probability(n, k, k, m) * total for m in range(k + 1)])
    average = float(counts.mean())
    expected_average = expected_matches(n, k, k)
    deviation = average - expected_average
    deviation_percent = deviation / expected_average * 100 if expected_average else 0.0

    if deviation_percent > params['period_threshold']:
        period = 'lucky'
    elif deviation_percent < -params['period_threshold']:
        period = 'unlucky'
    else:
        period = 'normal'

    return MatchVariance(
        total_plays=total,
        match_distribution=observed.tolist(),
        expected_distribution=expected.tolist(),
        average_matches=average,
        expected_average=expected_average,
        deviation=deviation,
        deviation_percent=deviation_percent,
        period=period,
        variance=float(np.mean((observed - expected) ** 2)),
        recent_average=float(counts[:params['recent_plays']].mean()),
    )
