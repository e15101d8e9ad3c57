"""
Main entry point for running ChainLink games.

Usage:
    python -m src.main config.yaml
    python -m src.main config.yaml --output results/run1.json --verbose
    python -m src.main --interactive --offline
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path

import yaml

from .engine import GameRunner, RunConfig


def load_config(config_path: str) -> RunConfig:
    """Load run configuration from a YAML file."""
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return RunConfig(**data)


def main():
    parser = argparse.ArgumentParser(
        description="Play a game of ChainLink",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example config.yaml:
  max_turns: 100
  game:
    total_rounds: 10
    seed: 42
  player:
    model: gpt-4o
    temperature: 0.7
    max_tokens: 1024
        """
    )
    parser.add_argument(
        "config",
        nargs="?",
        help="Path to YAML configuration file (defaults apply when omitted)"
    )
    parser.add_argument(
        "--output", "-o",
        help="Path to save results JSON (default: results/<timestamp>.json)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print progress to stdout"
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Validate words against the built-in corpus instead of the dictionary API"
    )
    parser.add_argument(
        "--interactive", "-i",
        action="store_true",
        help="Play yourself from the terminal instead of an LLM"
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed for word selection"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config) if args.config else RunConfig()
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    if args.offline:
        config.game.offline = True
    if args.seed is not None:
        config.game.seed = args.seed
    if args.interactive:
        config.player.kind = "console"

    if args.output:
        output_path = Path(args.output)
    else:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_path = Path("results") / f"chainlink_{timestamp}.json"

    runner = GameRunner.create(config=config)
    # A human always wants to see the board
    verbose = args.verbose or args.interactive

    if args.verbose:
        print(f"Config: {args.config or '(defaults)'}")
        print(f"Output: {output_path}")
        print()

    try:
        result = asyncio.run(runner.run(verbose=verbose))
    except KeyboardInterrupt:
        print("\nGame interrupted by user")
        runner.engine.end("Interrupted by user")
        result = runner.get_result()
    except Exception as e:
        print(f"Error during game: {e}", file=sys.stderr)
        runner.engine.end(f"Error: {str(e)}")
        result = runner.get_result()

    runner.save_result(output_path)

    if args.verbose:
        print()
        print(f"Results saved to: {output_path}")

    print()
    print("=== Game Summary ===")
    print(f"Final score: {result.final_score}")
    print(f"Rounds solved: {result.solved}  Best streak: {result.best_streak}  Level: {result.level}")
    print(f"Total turns: {result.total_turns}")
    print(f"End reason: {result.end_reason}")
    print(f"Duration: {result.duration_seconds:.2f}s")

    return 0


if __name__ == "__main__":
    sys.exit(main())
