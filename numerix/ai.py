"""
Contract with an external text-generation provider.

Builds the prompt payload for a recommendation request and validates the
JSON the provider sends back. Transport is the caller's concern; nothing
here performs network I/O.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
from pydantic import BaseModel, StrictFloat, StrictInt, StrictStr, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError

from .config import AI_CONFIG, DEFAULT_GAME, GameConfig, get_game
from .distribution import analyze_distribution
from .errors import ConfigurationError, ValidationError
from .frequency import filter_unsuccessful
from .models import (
    AdvancedStatistics, AIRecommendation, DrawRecord, GameStatistics,
    UnsuccessfulCombination,
)

logger = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)

VARIATION_HINTS = (
    "Focus on exploring alternative statistically interesting combinations. "
    "Consider different number ranges and distributions.",
    "Try a different approach this time: emphasize different statistical factors "
    "or explore less obvious but still valid combinations.",
)


@dataclass(frozen=True)
class AIConfig:
    """Provider selection, passed explicitly to every call that needs it."""
    provider: str = AI_CONFIG['default_provider']
    model: Optional[str] = None

    def __post_init__(self):
        if self.provider not in AI_CONFIG['providers']:
            raise ConfigurationError(
                f"Unknown AI provider: {self.provider!r} (expected one of {', '.join(AI_CONFIG['providers'])})"
            )
        if self.model is None:
            object.__setattr__(self, 'model', AI_CONFIG['models'][self.provider])


def build_system_prompt(game: GameConfig, wheel: Optional[str] = None) -> str:
    k, n = game.numbers_to_select, game.max_number
    target_sum = round(k * (n + 1) / 2)
    wheel_label = f" (wheel: {wheel})" if wheel else ""
    if game.has_secondary:
        secondary = (f'  "jolly": number between 1-{game.secondary_max} (different from main numbers),\n'
                     f'  "superstar": number between 1-{game.secondary_max},\n')
    else:
        secondary = '  "jolly": null,\n  "superstar": null,\n'

    return (
        "You are a lottery statistics analyst.\n"
        "Every lottery combination has the same probability of winning; draws are uniformly random.\n"
        "The statistics below are for analysis only and cannot predict outcomes.\n"
        "Influence scores and pattern scores are ranking metrics, not probabilities.\n\n"
        f"Select {k} numbers between 1 and {n} for {game.name}{wheel_label}.\n\n"
        "Guidelines:\n"
        "1. Rank numbers by influence score (historical + recent frequency)\n"
        f"2. Aim for a sum near {target_sum}, a wide spread and balanced parity\n"
        "3. Prefer pairs with positive lift scores\n"
        "4. Avoid numbers and pairs frequent in the user's unsuccessful combinations\n"
        "5. Avoid runs of consecutive numbers\n"
        "6. Never describe a choice as more likely to win\n\n"
        "Respond ONLY with a JSON object:\n"
        "{\n"
        f'  "numbers": [{k} unique integers between 1 and {n}],\n'
        f"{secondary}"
        '  "reasons": ["reason", ...],\n'
        '  "confidence": number between 0-100 (data quality indicator),\n'
        '  "analysis": {"distribution_score": 0-100, "influence_confidence": 0-100, "lift_score": 0-100}\n'
        "}\n"
    )


def _format_draw(draw: DrawRecord, game: GameConfig, wheel: Optional[str]) -> Optional[str]:
    numbers = list(draw.numbers_for(wheel))
    if not numbers:
        return None
    dist = analyze_distribution(numbers, game.max_number)
    line = f"- {draw.date}: [{', '.join(map(str, numbers))}]"
    if game.has_secondary and draw.jolly is not None:
        line += f" (Jolly: {draw.jolly})"
    if game.has_secondary and draw.superstar is not None:
        line += f" (SuperStar: {draw.superstar})"
    return line + f" | Sum={dist.sum}, Spread={dist.spread}, Even/Odd={dist.even_odd_ratio * 100:.0f}%"


def build_user_context(game, statistics: GameStatistics,
                       unsuccessful: Sequence[UnsuccessfulCombination] = (),
                       recent_draws: Sequence[DrawRecord] = (),
                       wheel: Optional[str] = None,
                       advanced: Optional[AdvancedStatistics] = None,
                       model_label: Optional[str] = None,
                       rng: Optional[np.random.Generator] = None) -> str:
    """Statistics summary sent as the user message. rng only picks the variation hint."""
    game = get_game(game)
    rng = rng if rng is not None else np.random.default_rng()
    stats = statistics.for_wheel(wheel)
    advanced = advanced or stats.advanced
    lines = [
        "LOTTERY ANALYSIS REQUEST",
        "",
        f"Game: {game.name}",
        f"Numbers to select: {game.numbers_to_select}",
        f"Number range: 1-{game.max_number}",
    ]
    if wheel:
        lines.append(f"Wheel: {wheel}")
    if model_label:
        lines.append(f"Model: {model_label}")
    lines.append("")

    if advanced is not None:
        optimal = advanced.optimal
        lines += [
            "TARGET DISTRIBUTION (ranking criteria, not predictions):",
            f"- Target sum: {optimal.sum:.1f}",
            f"- Target spread: {optimal.spread:.1f}",
            f"- Target even/odd ratio: {optimal.even_odd_ratio:.2f}",
            f"- Reference pattern score: {advanced.pattern_score:.1f}/100",
            "",
        ]
        if advanced.influence:
            lines.append(f"INFLUENCE SCORES (top {AI_CONFIG['top_influence']}, ranking metric):")
            for record in advanced.influence[:AI_CONFIG['top_influence']]:
                lines.append(f"- Number {record.number}: historical={record.historical_frequency:.1f}%, "
                             f"recent={record.recent_frequency:.1f}%, influence={record.normalized_score:.1f}, "
                             f"confidence={record.confidence:.1f}")
            lines.append("")
        if advanced.co_occurrences:
            lines.append("CO-OCCURRENCE LIFT (pairs seen together more or less than expected):")
            for co in advanced.co_occurrences[:AI_CONFIG['top_co_occurrences']]:
                lift = f"{co.lift:.2f}" if co.lift is not None else "N/A"
                lines.append(f"- {co.numbers[0]}-{co.numbers[1]}: observed={co.frequency:.1f}%, "
                             f"expected={co.expected_frequency:.1f}%, lift={lift}, lift_score={co.lift_score:.2f}")
            lines.append("")

    if stats.frequent_numbers:
        lines.append("FREQUENT NUMBERS:")
        lines += [f"- {f.number}: {f.count} times ({f.percentage:.1f}%)" for f in stats.frequent_numbers]
        lines.append("")
    if stats.delays:
        lines.append("DELAYED NUMBERS:")
        lines += [f"- {d.number}: {d.delay} draws ago" for d in stats.delays]
        lines.append("")

    if game.has_secondary:
        for label, secondary in (("Jolly", statistics.jolly_stats), ("SuperStar", statistics.superstar_stats)):
            if secondary is None or not secondary.frequent_numbers:
                continue
            lines.append(f"{label.upper()} FREQUENT NUMBERS:")
            lines += [f"- {label} {f.number}: {f.count} times ({f.percentage:.1f}%)"
                      for f in secondary.frequent_numbers]
            lines.append("")

    if stats.unlucky_numbers:
        lines.append("UNLUCKY NUMBERS (frequent in unsuccessful combinations):")
        lines += [f"- {f.number}: in {f.count} unsuccessful combinations ({f.percentage:.1f}%)"
                  for f in stats.unlucky_numbers]
        lines.append("")
    if stats.unlucky_pairs:
        lines.append("UNLUCKY PAIRS:")
        lines += [f"- {p.pair[0]}-{p.pair[1]}: together {p.count} times" for p in stats.unlucky_pairs[:5]]
        lines.append("")

    formatted = [_format_draw(d, game, wheel) for d in recent_draws[:AI_CONFIG['recent_draws']]]
    formatted = [line for line in formatted if line]
    if formatted:
        lines.append(f"RECENT DRAWS (last {len(formatted)}):")
        lines += formatted
        lines.append("")

    relevant = filter_unsuccessful(unsuccessful, game, wheel)
    if relevant:
        lines.append(f"UNSUCCESSFUL COMBINATIONS: {len(relevant)} total")
        for combo in relevant[:5]:
            dist = analyze_distribution(combo.numbers, game.max_number)
            lines.append(f"- [{', '.join(map(str, combo.numbers))}] ({combo.strategy or 'unknown'}) "
                         f"| Sum={dist.sum}, Spread={dist.spread}")
        lines.append("")

    lines.append("Generate a different combination each time and explain choices without "
                 "claiming a higher chance of winning.")
    lines.append("VARIATION HINT: " + VARIATION_HINTS[int(rng.integers(0, len(VARIATION_HINTS)))])
    return "\n".join(lines)


def build_payload(config: AIConfig, game, statistics: GameStatistics,
                  unsuccessful: Sequence[UnsuccessfulCombination] = (),
                  recent_draws: Sequence[DrawRecord] = (),
                  wheel: Optional[str] = None,
                  advanced: Optional[AdvancedStatistics] = None,
                  rng: Optional[np.random.Generator] = None) -> Dict:
    """Request body for the configured provider; the caller sends it."""
    game = get_game(game)
    system = build_system_prompt(game, wheel)
    user = build_user_context(game, statistics, unsuccessful, recent_draws, wheel,
                              advanced, model_label=config.model, rng=rng)
    payload = {
        'provider': config.provider,
        'model': config.model,
        'temperature': AI_CONFIG['temperature'],
        'max_tokens': AI_CONFIG['max_tokens'],
    }
    if config.provider == 'anthropic':
        payload['system'] = system
        payload['messages'] = [{'role': 'user', 'content': user}]
    else:
        payload['messages'] = [
            {'role': 'system', 'content': system},
            {'role': 'user', 'content': user},
        ]
        payload['response_format'] = {'type': 'json_object'}
    logger.debug("Built %s payload for %s (%d chars of context)", config.provider, game.name, len(user))
    return payload


def parse_ai_response(text: str) -> Dict:
    """Decode the provider reply: raw JSON, or JSON inside a fenced code block."""
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Invalid response: empty reply", field='response')
    candidates = [text.strip()]
    match = _FENCED_BLOCK.search(text)
    if match:
        candidates.insert(0, match.group(1).strip())

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    raise ValidationError("Invalid response: reply is not valid JSON", field='response')


class AIResponse(BaseModel):
    """
    Reply schema. Game rules (count, range, secondary bound) are read from the
    validation context: AIResponse.model_validate(data, context={'game': game}).
    """
    numbers: List[StrictInt]
    jolly: Optional[StrictInt] = None
    superstar: Optional[StrictInt] = None
    reasons: List[StrictStr]
    confidence: Union[StrictInt, StrictFloat]
    analysis: Optional[Dict[str, Any]] = None

    @field_validator('numbers')
    @classmethod
    def check_numbers(cls, numbers: List[int], info: ValidationInfo) -> List[int]:
        game = _context_game(info)
        if len(numbers) != game.numbers_to_select:
            raise ValueError(f"must have exactly {game.numbers_to_select} numbers")
        if any(n < 1 or n > game.max_number for n in numbers):
            raise ValueError(f"all numbers must be between 1 and {game.max_number}")
        if len(set(numbers)) != len(numbers):
            raise ValueError("numbers must be unique")
        return sorted(numbers)

    @field_validator('jolly', 'superstar')
    @classmethod
    def check_secondary(cls, value: Optional[int], info: ValidationInfo) -> Optional[int]:
        if value is None:
            return value
        game = _context_game(info)
        upper = game.secondary_max or game.max_number
        if not 1 <= value <= upper:
            raise ValueError(f"must be an integer between 1 and {upper}")
        if info.field_name == 'jolly' and value in info.data.get('numbers', ()):
            raise ValueError("must differ from the main numbers")
        return value

    @field_validator('confidence')
    @classmethod
    def check_confidence(cls, value: float) -> float:
        if not 0 <= value <= 100:
            raise ValueError("must be between 0 and 100")
        return value


def _context_game(info: ValidationInfo) -> GameConfig:
    return get_game((info.context or {}).get('game', DEFAULT_GAME))


def _to_validation_error(error: PydanticValidationError) -> ValidationError:
    # First violation only; loc is empty when the reply is not an object
    first = error.errors()[0]
    field = str(first['loc'][0]) if first['loc'] else 'response'
    message = str(first['ctx']['error']) if first['type'] == 'value_error' else first['msg']
    return ValidationError(f"Invalid response: {field}: {message}", field=field)


def validate_ai_response(result, game) -> AIRecommendation:
    """Check a decoded reply against AIResponse; the first violation raises ValidationError."""
    game = get_game(game)
    try:
        reply = AIResponse.model_validate(result, context={'game': game})
    except PydanticValidationError as e:
        raise _to_validation_error(e) from e

    return AIRecommendation(
        numbers=reply.numbers,
        reasons=list(reply.reasons),
        confidence=float(reply.confidence),
        jolly=reply.jolly if game.has_secondary else None,
        superstar=reply.superstar if game.has_secondary else None,
        analysis=reply.analysis or {},
    )


def recommendation_from_reply(text: str, game) -> AIRecommendation:
    """parse_ai_response followed by validate_ai_response."""
    recommendation = validate_ai_response(parse_ai_response(text), game)
    logger.info("Validated AI recommendation: %s", recommendation.numbers)
    return recommendation
