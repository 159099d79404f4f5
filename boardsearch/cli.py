"""Command-line analysis: ``python -m boardsearch`` or the ``boardsearch`` script."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence, Tuple

from .adapters import (
    ChessEvaluator,
    ChessPosition,
    GomokuEvaluator,
    GomokuPosition,
    chess_opening_book,
    gomoku_opening_book,
)
from .config import DifficultyRegistry
from .engine import GameEngine
from .errors import BoardSearchError, MalformedPositionError
from .evaluation import Evaluator
from .position import Position
from .reporting import debug_text, info_text

EXIT_USAGE = 2


def difficulty_level(value: str) -> int:
    try:
        level = int(value)
        DifficultyRegistry.resolve(level)
    except ValueError as exc:
        levels = ", ".join(str(key) for key in sorted(DifficultyRegistry.PRESETS))
        raise argparse.ArgumentTypeError(f"Unknown difficulty '{value}'. Choose from: {levels}") from exc
    return level


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="boardsearch",
        description="Analyse a chess or gomoku position with the boardsearch engine.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--game", choices=("chess", "gomoku"), default="chess", help="Game to analyse")
    parser.add_argument("--fen", default="", help="Chess FEN (default: start position)")
    parser.add_argument("--moves", nargs="*", default=(), help="Chess UCI moves played from --fen")
    parser.add_argument(
        "--rows",
        default="",
        help="Gomoku board as 15 '/'-separated rows of '.', 'x' and 'o' (default: empty board)",
    )
    parser.add_argument("--difficulty", type=difficulty_level, default=2, help="Difficulty level")
    parser.add_argument("--top", type=int, default=0, help="Also list the top N suggestions")
    parser.add_argument("--seed", type=int, default=None, help="Seed for book and low-difficulty randomness")
    parser.add_argument("--quiet", action="store_true", help="Suppress per-depth search output")
    return parser


def load_position(args: argparse.Namespace) -> Tuple[Position, Evaluator]:
    if args.game == "gomoku":
        if args.rows:
            return GomokuPosition.from_rows(args.rows.split("/")), GomokuEvaluator()
        return GomokuPosition(), GomokuEvaluator()
    if args.moves:
        return ChessPosition.from_uci_moves(list(args.moves), args.fen or None), ChessEvaluator()
    if args.fen:
        return ChessPosition.from_fen(args.fen), ChessEvaluator()
    return ChessPosition(), ChessEvaluator()


def run(args: argparse.Namespace) -> None:
    position, evaluator = load_position(args)
    book = gomoku_opening_book() if args.game == "gomoku" else chess_opening_book()
    logger = None if args.quiet else (lambda message: print(debug_text(message)))
    engine = GameEngine(evaluator, book=book, seed=args.seed, logger=logger)

    assessment = engine.evaluate_position(position)
    print(info_text(f"{assessment.label} (score {assessment.score}, {assessment.win_probability:.0%} for the first player)"))
    if assessment.game_state:
        print(info_text(assessment.game_state))

    if args.top > 0:
        for suggestion in engine.get_top_moves(position, args.top, args.difficulty):
            print(
                info_text(
                    f"{suggestion.rank}. {suggestion.text} score={suggestion.score} "
                    f"win={suggestion.win_probability:.0%} - {suggestion.explanation}"
                )
            )

    result = engine.find_best_move(position, args.difficulty)
    if result.move is None:
        print(info_text("No legal moves"))
        return
    flag = " (timed out)" if result.timed_out else ""
    print(
        info_text(
            f"bestmove {position.move_text(result.move)} score={result.score} "
            f"depth={result.depth} source={result.source}{flag}"
        )
    )
    print(info_text(engine.explain_move(position, result.move)))


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        run(args)
    except MalformedPositionError as exc:
        print(info_text(f"Invalid position: {exc}"))
        return EXIT_USAGE
    except BoardSearchError as exc:
        print(info_text(f"Search failed: {exc}"))
        return EXIT_USAGE
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
