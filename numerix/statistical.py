import logging
from typing import Optional, Sequence

from .config import STATISTICAL_CONFIG, GameConfig, get_game
from .cooccurrence import compute_co_occurrences
from .distribution import analyze_distribution, history_profile, optimal_distribution
from .frequency import (
    compute_delays, compute_frequencies, compute_secondary_statistics,
    compute_unlucky_numbers, compute_unlucky_pairs, draw_numbers, filter_unsuccessful,
)
from .influence import compute_influence
from .models import AdvancedStatistics, DrawRecord, GameStatistics, UnsuccessfulCombination
from .pattern import compute_expected_value, score_pattern

logger = logging.getLogger(__name__)


def compute_advanced_statistics(game: GameConfig, history: Sequence[DrawRecord],
                                unsuccessful: Sequence[UnsuccessfulCombination] = (),
                                wheel: Optional[str] = None) -> AdvancedStatistics:
    """Co-occurrence, influence, expected value and pattern score for one game/wheel."""
    params = STATISTICAL_CONFIG
    k = game.numbers_to_select

    co_occurrences = compute_co_occurrences(history, game.max_number, params['min_co_occurrence'], wheel=wheel)
    influence = compute_influence(
        history, game.max_number,
        recent_window=params['recent_window'],
        unsuccessful=unsuccessful,
        wheel=wheel,
    )
    optimal = optimal_distribution(game)

    # Reference combination: the k highest-ranked numbers
    top_combination = sorted(r.number for r in influence[:k])
    expected_values = [compute_expected_value(top_combination, history, k, wheel=wheel)]
    pattern_score = score_pattern(
        analyze_distribution(top_combination, game.max_number),
        optimal,
        influence,
        top_combination,
    )

    return AdvancedStatistics(
        optimal=optimal,
        distribution=history_profile(history, game, wheel),
        co_occurrences=co_occurrences[:params['top_co_occurrences']],
        influence=influence,
        expected_values=expected_values,
        pattern_score=pattern_score,
    )


def _single_statistics(game: GameConfig, history: Sequence[DrawRecord],
                       unsuccessful: Sequence[UnsuccessfulCombination],
                       wheel: Optional[str] = None) -> GameStatistics:
    top_n = STATISTICAL_CONFIG['top_n']
    relevant = filter_unsuccessful(unsuccessful, game, wheel)

    frequencies = compute_frequencies(history, game.max_number, wheel)
    has_draws = bool(draw_numbers(history, wheel))

    return GameStatistics(
        frequent_numbers=frequencies[:top_n],
        infrequent_numbers=list(reversed(frequencies))[:top_n],
        delays=compute_delays(history, game.max_number, wheel)[:top_n],
        unlucky_numbers=compute_unlucky_numbers(relevant, game.max_number)[:top_n],
        unlucky_pairs=compute_unlucky_pairs(relevant)[:top_n],
        advanced=compute_advanced_statistics(game, history, relevant, wheel) if has_draws else None,
    )


def compute_game_statistics(game, history: Sequence[DrawRecord],
                            unsuccessful: Sequence[UnsuccessfulCombination] = ()) -> GameStatistics:
    """
    Build the statistics snapshot the generator consumes.

    Wheel games get independent statistics per wheel; the first wheel doubles
    as the top-level view. Games with Jolly/SuperStar also get secondary
    number statistics.
    """
    game = get_game(game)
    logger.info("Analyzing statistical patterns for %s (%d draws, %d unsuccessful)...",
                game.name, len(history), len(unsuccessful))
    if not history:
        logger.warning("Empty draw history for %s; statistics will be zero-valued.", game.name)

    if game.has_wheels:
        wheel_stats = {
            wheel: _single_statistics(game, history, unsuccessful, wheel)
            for wheel in game.wheels
        }
        default = wheel_stats[game.wheels[0]]
        stats = GameStatistics(
            frequent_numbers=default.frequent_numbers,
            infrequent_numbers=default.infrequent_numbers,
            delays=default.delays,
            unlucky_numbers=default.unlucky_numbers,
            unlucky_pairs=default.unlucky_pairs,
            wheel_stats=wheel_stats,
            advanced=default.advanced,
        )
    else:
        stats = _single_statistics(game, history, unsuccessful)

    if game.has_secondary:
        stats.jolly_stats = compute_secondary_statistics(history, 'jolly', game.secondary_max)
        stats.superstar_stats = compute_secondary_statistics(history, 'superstar', game.secondary_max)

    logger.info("Statistical analysis complete.")
    return stats
