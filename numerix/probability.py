"""
Exact match probabilities for a uniformly random draw.

These are the only true probabilities in the package; every other score is
a ranking heuristic.
"""

from dataclasses import dataclass
from math import comb
from typing import List

from .config import get_game


def match_probability(total_numbers: int, drawn_numbers: int, picks: int, matches: int) -> float:
    """P(exactly `matches` hits) = C(M, k) * C(N - M, P - k) / C(N, P)."""
    if matches < 0 or matches > min(drawn_numbers, picks) or picks > total_numbers:
        return 0.0
    return comb(drawn_numbers, matches) * comb(total_numbers - drawn_numbers, picks - matches) \
        / comb(total_numbers, picks)


def expected_matches(total_numbers: int, drawn_numbers: int, picks: int) -> float:
    return sum(k * match_probability(total_numbers, drawn_numbers, picks, k)
               for k in range(min(drawn_numbers, picks) + 1))


@dataclass
class MatchOdds:
    matches: int
    probability: float
    odds: str
    expected_plays: float


@dataclass
class LotteryProbabilities:
    game: str
    total_numbers: int
    drawn_numbers: int
    picks: int
    total_combinations: int
    expected_matches: float
    match_odds: List[MatchOdds]


def lottery_probabilities(game_type) -> LotteryProbabilities:
    """Odds table for one play of the game (picks equal to numbers drawn)."""
    game = get_game(game_type)
    n, k = game.max_number, game.numbers_to_select

    table = []
    for m in range(k + 1):
        p = match_probability(n, k, k, m)
        table.append(MatchOdds(
            matches=m,
            probability=p,
            odds=f"1 in {round(1 / p):,}" if p > 0 else "Never",
            expected_plays=1 / p if p > 0 else float('inf'),
        ))

    return LotteryProbabilities(
        game=game.name,
        total_numbers=n,
        drawn_numbers=k,
        picks=k,
        total_combinations=comb(n, k),
        expected_matches=expected_matches(n, k, k),
        match_odds=table,
    )
