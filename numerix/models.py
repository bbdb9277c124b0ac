"""
Data model for the statistics and recommendation engine.

Historical draws and the user's unsuccessful combinations are immutable
facts; everything else is produced transiently by the analyzers.
"""

import uuid
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .config import GENERATED_STRATEGIES, UNSUCCESSFUL_STRATEGIES, GameConfig
from .errors import ValidationError

DateLike = Union[date, datetime, str, None]


def _new_id() -> str:
    return uuid.uuid4().hex


def _as_numbers(numbers: Sequence[int]) -> Tuple[int, ...]:
    return tuple(int(n) for n in numbers)


def validate_combination(numbers: Sequence[int], game: GameConfig, label: str = "numbers") -> Tuple[int, ...]:
    """Check count, range and uniqueness of a main-number set; returns it sorted."""
    if isinstance(numbers, (str, bytes)) or not isinstance(numbers, Sequence):
        raise ValidationError(f"Invalid combination: {label} must be a list of integers", field=label)
    if any(isinstance(n, bool) or not isinstance(n, int) for n in numbers):
        raise ValidationError(f"Invalid combination: {label} must contain only integers", field=label)
    if len(numbers) != game.numbers_to_select:
        raise ValidationError(
            f"Invalid combination: {game.name} requires exactly {game.numbers_to_select} numbers, got {len(numbers)}",
            field=label,
        )
    if any(n < 1 or n > game.max_number for n in numbers):
        raise ValidationError(
            f"Invalid combination: all numbers must be between 1 and {game.max_number}", field=label
        )
    if len(set(numbers)) != len(numbers):
        raise ValidationError("Invalid combination: numbers must be unique", field=label)
    return tuple(sorted(numbers))


@dataclass(frozen=True)
class DrawRecord:
    """A single historical draw."""
    date: DateLike
    numbers: Tuple[int, ...] = ()
    jolly: Optional[int] = None
    superstar: Optional[int] = None
    wheels: Dict[str, Tuple[int, ...]] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'numbers', _as_numbers(self.numbers))
        object.__setattr__(self, 'wheels', {k: _as_numbers(v) for k, v in self.wheels.items()})

    def numbers_for(self, wheel: Optional[str] = None) -> Tuple[int, ...]:
        # Wheel data never falls back to the main numbers
        if wheel is not None:
            return self.wheels.get(wheel, ())
        return self.numbers


@dataclass(frozen=True)
class UnsuccessfulCombination:
    game_type: str
    numbers: Tuple[int, ...]
    wheel: Optional[str] = None
    jolly: Optional[int] = None
    superstar: Optional[int] = None
    strategy: Optional[str] = None
    notes: Optional[str] = None
    draw_date: DateLike = None
    created_at: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        object.__setattr__(self, 'numbers', _as_numbers(self.numbers))

    @classmethod
    def create(cls, game: GameConfig, numbers: Sequence[int], **kwargs) -> 'UnsuccessfulCombination':
        """Validate user input and build a new record."""
        checked = validate_combination(list(numbers), game)
        strategy = kwargs.get('strategy')
        if strategy is not None and strategy not in UNSUCCESSFUL_STRATEGIES:
            raise ValidationError(f"Invalid combination: unknown strategy {strategy!r}", field='strategy')
        wheel = kwargs.get('wheel')
        if game.has_wheels and wheel not in game.wheels:
            raise ValidationError(f"Invalid combination: {game.name} requires a valid wheel", field='wheel')
        return cls(game_type=game.id, numbers=checked, **kwargs)


@dataclass(frozen=True)
class GeneratedCombination:
    game_type: str
    numbers: Tuple[int, ...]
    strategy: str
    wheel: Optional[str] = None
    jolly: Optional[int] = None
    superstar: Optional[int] = None
    is_ai: bool = False
    is_advanced_ai: bool = False
    ai_provider: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        object.__setattr__(self, 'numbers', _as_numbers(self.numbers))

    @classmethod
    def create(cls, game: GameConfig, numbers: Sequence[int], strategy: str, **kwargs) -> 'GeneratedCombination':
        """Validate the shape of a generated or AI-provided combination before it is persisted."""
        checked = validate_combination(list(numbers), game)
        if strategy not in GENERATED_STRATEGIES:
            raise ValidationError(f"Invalid combination: unknown strategy {strategy!r}", field='strategy')
        wheel = kwargs.get('wheel')
        if game.has_wheels and wheel not in game.wheels:
            raise ValidationError(f"Invalid combination: {game.name} requires a valid wheel", field='wheel')
        if not game.has_wheels and wheel is not None:
            raise ValidationError(f"Invalid combination: {game.name} has no wheels", field='wheel')
        return cls(game_type=game.id, numbers=checked, strategy=strategy, **kwargs)

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['numbers'] = list(self.numbers)
        data['created_at'] = self.created_at.isoformat()
        return data


@dataclass
class Frequency:
    number: int
    count: int
    percentage: float


@dataclass
class Delay:
    number: int
    delay: int


@dataclass
class UnluckyPair:
    pair: Tuple[int, int]
    count: int


@dataclass
class CoOccurrence:
    numbers: Tuple[int, int]
    count: int
    frequency: float               # observed % of draws with both numbers
    expected_frequency: float      # % expected under independence
    lift: Optional[float]
    lift_score: float              # bounded to [-1, 1]


@dataclass
class InfluenceRecord:
    number: int
    historical_frequency: float
    recent_frequency: float
    unsuccessful_penalty: float
    influence_score: float
    normalized_score: float
    confidence: float


@dataclass
class DistributionAnalysis:
    sum: float = 0
    spread: float = 0
    even_odd_ratio: float = 0.0
    consecutive_sequences: int = 0
    gap_analysis: List[int] = field(default_factory=list)
    average_gap: float = 0.0
    decade_distribution: List[float] = field(default_factory=list)
    number_density: float = 0.0


@dataclass
class OptimalDistribution:
    sum: float
    spread: float
    even_odd_ratio: float
    average_gap: float
    decade_distribution: List[float]


@dataclass
class ExpectedValue:
    combination: List[int]
    expected_matches: float
    match_distribution: List[float]
    impact_score: float


@dataclass
class AdvancedStatistics:
    optimal: OptimalDistribution
    distribution: DistributionAnalysis
    co_occurrences: List[CoOccurrence]
    influence: List[InfluenceRecord]
    expected_values: List[ExpectedValue]
    pattern_score: float

    def influence_for(self, number: int) -> Optional[InfluenceRecord]:
        for record in self.influence:
            if record.number == number:
                return record
        return None


@dataclass
class SecondaryStatistics:
    frequent_numbers: List[Frequency]
    infrequent_numbers: List[Frequency]
    delays: List[Delay]


@dataclass
class GameStatistics:
    frequent_numbers: List[Frequency] = field(default_factory=list)
    infrequent_numbers: List[Frequency] = field(default_factory=list)
    delays: List[Delay] = field(default_factory=list)
    unlucky_numbers: List[Frequency] = field(default_factory=list)
    unlucky_pairs: List[UnluckyPair] = field(default_factory=list)
    jolly_stats: Optional[SecondaryStatistics] = None
    superstar_stats: Optional[SecondaryStatistics] = None
    wheel_stats: Dict[str, 'GameStatistics'] = field(default_factory=dict)
    advanced: Optional[AdvancedStatistics] = None

    def for_wheel(self, wheel: Optional[str]) -> 'GameStatistics':
        if wheel and wheel in self.wheel_stats:
            return self.wheel_stats[wheel]
        return self


@dataclass
class GenerationResult:
    numbers: List[int]
    jolly: Optional[int] = None
    superstar: Optional[int] = None


@dataclass
class Recommendation:
    numbers: List[int]
    reasons: List[str]
    jolly: Optional[int] = None
    superstar: Optional[int] = None
    pattern_score: Optional[float] = None
    distribution: Optional[DistributionAnalysis] = None


@dataclass
class AIRecommendation:
    numbers: List[int]
    reasons: List[str]
    confidence: float
    jolly: Optional[int] = None
    superstar: Optional[int] = None
    analysis: Dict = field(default_factory=dict)


# Outcome analysis records

@dataclass
class MatchDetail:
    draw_date: DateLike
    matched_numbers: List[int]
    match_count: int
    wheel: Optional[str] = None


@dataclass
class MissedOpportunity:
    draw_date: DateLike
    winning_numbers: List[int]
    your_numbers: List[int]
    matches: int
    wheel: Optional[str] = None


@dataclass
class OverlapRecord:
    number: int
    your_frequency: float
    winning_frequency: float
    efficiency: float


@dataclass
class WinningAnalysis:
    total_matches: int = 0
    match_details: List[MatchDetail] = field(default_factory=list)
    missed_opportunities: List[MissedOpportunity] = field(default_factory=list)
    your_frequent_numbers: List[Frequency] = field(default_factory=list)
    winning_frequent_numbers: List[Frequency] = field(default_factory=list)
    overlap: List[OverlapRecord] = field(default_factory=list)


@dataclass
class NearMissMatch:
    number: int
    kind: str                      # 'exact' or 'off-by-one'
    winning_number: Optional[int] = None


@dataclass
class NearMissResult:
    combination: Tuple[int, ...]
    draw_date: DateLike
    winning_numbers: List[int]
    matches: List[NearMissMatch]
    exact_matches: int
    off_by_one_matches: int
    total_score: float
    wheel: Optional[str] = None


@dataclass
class NearMissAnalysis:
    near_misses: List[NearMissResult]
    total_analyzed: int
    criteria: str


@dataclass
class MatchVariance:
    total_plays: int
    match_distribution: List[int]
    expected_distribution: List[float]
    average_matches: float
    expected_average: float
    deviation: float
    deviation_percent: float
    period: str                    # 'lucky', 'normal' or 'unlucky'
    variance: float
    recent_average: float
