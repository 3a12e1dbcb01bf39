"""
Command-line interface for the Go tutor engine.

Usage:
    # Analyse a position given as moves
    python -m go_tutor.cli --size 9 --moves "B E5" "W C3" "B G3"

    # Handicap game
    python -m go_tutor.cli --size 19 --handicap 4 --moves "W C3"

    # Analyse move 40 of a game record
    python -m go_tutor.cli --sgf game.sgf --move-number 40

    # JSON output
    python -m go_tutor.cli --size 9 --moves "B E5" --json
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .board import BoardState, create_board
from .config import load_config
from .providers import select_provider
from .report import build_report, format_report
from .rules import IllegalMoveError
from .sgf_handler import load_sgf_file


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="go-tutor",
        description="Go position analysis: rules, influence, shapes and group safety",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyse an opening position
  %(prog)s --size 19 --moves "B Q16" "W D4" "B Q3"

  # Handicap game (4 stones)
  %(prog)s --size 19 --handicap 4 --moves "W C3"

  # Position after move 40 of a game record
  %(prog)s --sgf game.sgf --move-number 40
        """
    )

    parser.add_argument(
        "--size", "-s",
        type=int,
        default=19,
        help="Board size (default: 19)"
    )

    parser.add_argument(
        "--moves", "-m",
        nargs="+",
        help='Moves in "COLOR COORD" format, e.g., "B Q16" "W D4"'
    )

    parser.add_argument(
        "--handicap", "-H",
        type=int,
        default=0,
        choices=range(0, 10),
        metavar="N",
        help="Number of handicap stones (0-9, default: 0)"
    )

    parser.add_argument(
        "--sgf",
        type=str,
        default=None,
        help="Load the position from an SGF file (main line)"
    )

    parser.add_argument(
        "--move-number", "-n",
        type=int,
        default=None,
        help="With --sgf: analyse the position after this many nodes (default: last)"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to config.yaml file"
    )

    parser.add_argument(
        "--no-engine",
        action="store_true",
        help="Use only the built-in heuristics, even if KataGo is configured"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Output report as JSON"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )

    return parser.parse_args(args)


def load_position(args: argparse.Namespace) -> BoardState:
    """
    Build the position to analyse from the parsed arguments.

    Raises:
        ValueError: On invalid sizes, moves or SGF content
        IllegalMoveError: If the moves break the rules
        OSError: If the SGF file cannot be read
    """
    if args.sgf:
        history = load_sgf_file(args.sgf)
        if args.move_number is None:
            return history[-1]
        if not 0 <= args.move_number < len(history):
            raise ValueError(
                f"Move number must be between 0 and {len(history) - 1}, got {args.move_number}"
            )
        return history[args.move_number]

    return create_board(size=args.size, handicap=args.handicap, moves=args.moves)


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parsed = parse_args(args)

    try:
        config = load_config(parsed.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1

    level = logging.INFO if parsed.verbose else getattr(logging, config.logging.level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        state = load_position(parsed)
    except IllegalMoveError as e:
        print(f"Illegal move: {e}", file=sys.stderr)
        return 1
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    provider = None
    if not parsed.no_engine:
        provider = select_provider(config)

    try:
        report = build_report(state, provider=provider, config=config)
    finally:
        if provider is not None:
            provider.close()

    if parsed.json:
        output = report.to_dict()
        output["captures"] = state.captures.to_dict()
        print(json.dumps(output, indent=2))
    else:
        print(state.to_ascii())
        print()
        print(f"Captures: Black {state.captures.black}, White {state.captures.white}")
        print()
        print(format_report(report, limit=config.analysis.report_limit))

    return 0


if __name__ == "__main__":
    sys.exit(main())
