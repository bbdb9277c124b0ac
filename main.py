import argparse
import json
import logging
import sys
from dataclasses import asdict

import numpy as np

from numerix.ai import AIConfig, build_payload, recommendation_from_reply
from numerix.config import AI_CONFIG, GAMES, LOGS_DIR, PREDICTIONS_DIR, STRATEGIES, get_game, resolve_wheel
from numerix.data import LotteryDataManager, save_generated
from numerix.errors import NumerixError
from numerix.generators import CombinationGenerator, to_generated
from numerix.outcome import analysis_insights, analyze_unsuccessful, match_variance, near_miss_analysis
from numerix.probability import lottery_probabilities
from numerix.ranking import CandidateRanker
from numerix.statistical import compute_game_statistics

logger = logging.getLogger(__name__)

DISCLAIMER = "Every combination has the same chance of being drawn; scores only rank past data."


def setup_logging(verbose: bool = False):
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(LOGS_DIR / "numerix.log"),
            logging.StreamHandler(sys.stdout)
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Lottery statistics and combination generator")
    parser.add_argument("--game", default="superenalotto", help=f"Game type ({', '.join(GAMES)})")
    parser.add_argument("--history", help="Draw history file (CSV or JSON)")
    parser.add_argument("--unsuccessful", help="Unsuccessful combinations file (JSON)")
    parser.add_argument("--wheel", help="Lotto wheel to analyse")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible output")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate combinations")
    gen.add_argument("--strategy", choices=STRATEGIES, default="standard")
    gen.add_argument("--count", type=int, default=5, help="Number of combinations to output")
    gen.add_argument("--rank", action="store_true", help="Over-generate, filter and keep the best diverse ones")
    gen.add_argument("--output", help="JSON output file")

    sub.add_parser("recommend", help="Local recommendation with rationale")

    analyze = sub.add_parser("analyze", help="Statistics and unsuccessful-combination analysis")
    analyze.add_argument("--min-score", type=float, default=2.0, help="Near-miss score threshold")

    prompt = sub.add_parser("prompt", help="Print the AI request payload")
    prompt.add_argument("--provider", default=AI_CONFIG['default_provider'])
    prompt.add_argument("--model")

    validate = sub.add_parser("validate", help="Validate an AI reply (file, or stdin)")
    validate.add_argument("response", nargs="?", help="File holding the provider reply")
    validate.add_argument("--provider", default=AI_CONFIG['default_provider'])
    validate.add_argument("--output", help="JSON output file")
    return parser


def _load(args, game):
    manager = LotteryDataManager(game, args.history, args.unsuccessful)
    history = manager.load_history()
    unsuccessful = manager.load_unsuccessful()
    return history, unsuccessful


def cmd_generate(args, game, history, unsuccessful):
    stats = compute_game_statistics(game, history, unsuccessful)
    generator = CombinationGenerator(seed=args.seed)
    wheel = resolve_wheel(game, args.wheel)

    n_candidates = max(args.count * 4, 20) if args.rank else args.count
    logger.info(f"Generating {n_candidates} candidates ({args.strategy})...")
    results = [generator.generate(game, args.strategy, stats, wheel) for _ in range(n_candidates)]

    if args.rank:
        ranker = CandidateRanker(game, stats.for_wheel(wheel).advanced)
        results = ranker.choose_diverse_top(ranker.rank(results, source=args.strategy), args.count)

    generated = [to_generated(r, game, args.strategy, wheel) for r in results]
    output_file = args.output or PREDICTIONS_DIR / f"{game.id}_{args.strategy}.json"
    save_generated(generated, output_file)

    print(f"\n=== {game.name} combinations ({args.strategy}) ===")
    for i, (combo, result) in enumerate(zip(generated, results), 1):
        line = f"{i}. {list(combo.numbers)}"
        if combo.jolly is not None:
            line += f" | Jolly {combo.jolly} | SuperStar {combo.superstar}"
        if getattr(result, 'score', None) is not None:
            line += f" | Pattern score {result.score:.1f}"
        print(line)
    print(f"\n{DISCLAIMER}")


def cmd_recommend(args, game, history, unsuccessful):
    stats = compute_game_statistics(game, history, unsuccessful)
    recommendation = CombinationGenerator(seed=args.seed).recommend(game, stats, args.wheel)

    print(f"\n=== {game.name} recommendation ===")
    print(f"Numbers: {recommendation.numbers}")
    if recommendation.jolly is not None:
        print(f"Jolly: {recommendation.jolly} | SuperStar: {recommendation.superstar}")
    for reason in recommendation.reasons:
        print(f"- {reason}")


def cmd_analyze(args, game, history, unsuccessful):
    wheel = resolve_wheel(game, args.wheel)
    stats = compute_game_statistics(game, history, unsuccessful).for_wheel(wheel)

    print(f"\n=== {game.name} statistics{f' ({wheel})' if wheel else ''} ===")
    print("Frequent: " + ", ".join(f"{f.number} ({f.count})" for f in stats.frequent_numbers))
    print("Delayed:  " + ", ".join(f"{d.number} ({d.delay})" for d in stats.delays))
    if stats.unlucky_numbers:
        print("Unlucky:  " + ", ".join(f"{f.number} ({f.percentage:.0f}%)" for f in stats.unlucky_numbers))
    if stats.advanced is not None:
        top = stats.advanced.influence[:10]
        print("Influence ranking: " + ", ".join(f"{r.number} ({r.normalized_score:.2f})" for r in top))
        print(f"Reference pattern score: {stats.advanced.pattern_score:.1f}/100")

    if unsuccessful:
        analysis = analyze_unsuccessful(unsuccessful, history, game, wheel)
        print("\n=== Your combinations ===")
        for insight in analysis_insights(analysis):
            print(f"- {insight}")

        near = near_miss_analysis(unsuccessful, history, game, wheel, min_score=args.min_score)
        print(f"Near misses ({near.criteria}): {len(near.near_misses)} of {near.total_analyzed}")
        for result in near.near_misses[:5]:
            print(f"  {list(result.combination)} vs {result.winning_numbers} on {result.draw_date}: "
                  f"{result.exact_matches} exact, {result.off_by_one_matches} off by one")

        variance = match_variance(unsuccessful, history, game, wheel)
        if variance is not None:
            print(f"Average matches {variance.average_matches:.3f} vs expected {variance.expected_average:.3f} "
                  f"({variance.deviation_percent:+.1f}%, {variance.period} period)")

    odds = lottery_probabilities(game)
    print(f"\n=== Odds per play ({odds.total_combinations:,} combinations) ===")
    for row in odds.match_odds:
        print(f"{row.matches} matches: {row.odds}")
    print(f"\n{DISCLAIMER}")


def cmd_prompt(args, game, history, unsuccessful):
    config = AIConfig(args.provider, args.model)
    wheel = resolve_wheel(game, args.wheel)
    stats = compute_game_statistics(game, history, unsuccessful)
    payload = build_payload(config, game, stats, unsuccessful, history, wheel,
                            rng=np.random.default_rng(args.seed))
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def cmd_validate(args, game):
    if args.response:
        with open(args.response, 'r') as f:
            text = f.read()
    else:
        text = sys.stdin.read()

    AIConfig(args.provider)
    recommendation = recommendation_from_reply(text, game)
    generated = to_generated(recommendation, game, 'ai-advanced', args.wheel,
                             is_ai=True, is_advanced_ai=True, ai_provider=args.provider)
    if args.output:
        save_generated([generated], args.output)
    print(json.dumps(asdict(recommendation), indent=2))


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    PREDICTIONS_DIR.mkdir(parents=True, exist_ok=True)

    try:
        logger.info("=== Starting Numerix ===")
        game = get_game(args.game)

        if args.command == "validate":
            cmd_validate(args, game)
        else:
            history, unsuccessful = _load(args, game)
            handler = {
                "generate": cmd_generate,
                "recommend": cmd_recommend,
                "analyze": cmd_analyze,
                "prompt": cmd_prompt,
            }[args.command]
            handler(args, game, history, unsuccessful)

        logger.info("=== Execution Complete ===")

    except NumerixError as e:
        logger.error(f"Error: {str(e)}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {str(e)}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()

# python3 main.py --game superenalotto --history lottery_data/superenalotto.csv generate --rank --count 5
# python3 main.py --game lotto --wheel Roma --history lottery_data/lotto.csv recommend
