import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameConfig:
    """Rules of one supported game variant."""
    id: str
    name: str
    numbers_to_select: int
    max_number: int
    wheels: Tuple[str, ...] = ()
    has_secondary: bool = False
    secondary_max: int = 0

    @property
    def has_wheels(self) -> bool:
        return bool(self.wheels)


# Lottery Rules
LOTTO_WHEELS = (
    'Bari', 'Cagliari', 'Firenze', 'Genova', 'Milano',
    'Napoli', 'Palermo', 'Roma', 'Torino', 'Venezia', 'Nazionale',
)

SUPERENALOTTO = GameConfig('superenalotto', 'SuperEnalotto', 6, 90, has_secondary=True, secondary_max=90)
LOTTO = GameConfig('lotto', 'Lotto', 5, 90, wheels=LOTTO_WHEELS)
DIECI_E_LOTTO = GameConfig('10elotto', '10eLotto', 10, 90)
MILLIONDAY = GameConfig('millionday', 'MillionDAY', 5, 55)

GAMES = {game.id: game for game in (SUPERENALOTTO, LOTTO, DIECI_E_LOTTO, MILLIONDAY)}
DEFAULT_GAME = SUPERENALOTTO

STRATEGIES = ('standard', 'high-variability')
UNSUCCESSFUL_STRATEGIES = ('standard', 'high-variability', 'ai', 'ai-advanced', 'manual')
GENERATED_STRATEGIES = STRATEGIES + ('ai', 'ai-advanced')

# File Paths
PROJECT_ROOT = Path(__file__).parent.parent.absolute()
DATA_DIR = PROJECT_ROOT / "lottery_data"
LOGS_DIR = PROJECT_ROOT / "logs"
PREDICTIONS_DIR = PROJECT_ROOT / "predictions"

STATISTICAL_CONFIG = {
    "recent_window": 20,           # most recent draws used for recent frequency
    "top_n": 10,                   # size of frequent/infrequent/delay slices
    "min_co_occurrence": 3,
    "top_co_occurrences": 20,
    "unlucky_threshold": 20.0,     # percentage of unsuccessful combos
    "unlucky_pair_min_count": 3,
    "historical_weight": 0.4,
    "recent_weight": 0.6,
    "penalty_weight": 0.25,
}

PATTERN_CONFIG = {
    "spread_factor": 0.7,          # empirical share of the range
    "sum_weight": 20.0,
    "spread_weight": 15.0,
    "parity_weight": 10.0,
    "consecutive_penalty": 10.0,   # per run of 3+
    "influence_weight": 15.0,
    "influence_ratio_cap": 2.0,
    "min_run_length": 3,
}

# Skip/keep probabilities bias away from unlucky patterns without excluding them
GENERATOR_CONFIG = {
    "frequent_share": 0.6,
    "delay_share": 0.3,
    "infrequent_share": 0.4,
    "hot_share": 0.4,
    "due_share": 0.3,
    "max_attempts": 1000,
    "unlucky_skip_probability": 0.7,
    "unlucky_pair_skip_probability": 0.6,
    "frequent_pool_keep_probability": 0.3,
    "delay_pool_keep_probability": 0.4,
    "secondary_avoid_probability": 0.7,
    "recommendation_secondary_avoid_probability": 0.8,
    "secondary_retries": 10,
    "top_lift_pairs": 10,
    "lift_pair_choices": 3,
}

AI_CONFIG = {
    "providers": ("openai", "anthropic"),
    "default_provider": "openai",
    "models": {
        "openai": "gpt-4o",
        "anthropic": "claude-sonnet-4-5",
    },
    "temperature": 0.8,
    "max_tokens": 1500,
    "top_influence": 15,
    "top_co_occurrences": 10,
    "recent_draws": 5,
}

OUTCOME_CONFIG = {
    "missed_opportunity_min_matches": 3,
    "top_missed": 10,
    "top_frequent": 15,
    "top_overlap": 10,
    "efficient_threshold": 80.0,
    "inefficient_threshold": 20.0,
    "off_by_one_weight": 0.5,
    "period_threshold": 20.0,       # deviation % for lucky/unlucky periods
    "recent_plays": 10,
}

FILTER_CONFIG = {
    "sum_buffer": 0.2,             # share of the possible sum span trimmed at each end
    "max_run_length": 2,
    "max_decade_share": 0.5,
    "max_last_digit_share": 0.5,
}

RANKING_CONFIG = {
    "diversity_penalty_base": 0.5,
    "diversity_floor": 0.6,
}


def get_game(game_id: str, strict: bool = False) -> GameConfig:
    """Look up a game variant; unknown ids fall back to DEFAULT_GAME unless strict."""
    if isinstance(game_id, GameConfig):
        return game_id
    game = GAMES.get(game_id)
    if game is not None:
        return game
    if strict:
        raise ConfigurationError(f"Unknown game type: {game_id!r}")
    logger.warning("Unknown game type %r; falling back to %s", game_id, DEFAULT_GAME.id)
    return DEFAULT_GAME


def resolve_wheel(game: GameConfig, wheel: Optional[str]) -> Optional[str]:
    """Return the wheel to analyse for a game, or None for games without wheels."""
    if not game.has_wheels:
        return None
    if wheel in game.wheels:
        return wheel
    if wheel is not None:
        logger.warning("Unknown wheel %r for %s; using %s", wheel, game.name, game.wheels[0])
    return game.wheels[0]
