"""Reference position adapters and their evaluators."""

from ..evaluation import ChessEvaluator
from .chess_board import CHESS_OPENING_LINES, ChessPosition, chess_opening_book
from .gomoku import GOMOKU_OPENING_LINES, GomokuEvaluator, GomokuPosition, gomoku_opening_book

__all__ = [
    "CHESS_OPENING_LINES",
    "ChessEvaluator",
    "ChessPosition",
    "GOMOKU_OPENING_LINES",
    "GomokuEvaluator",
    "GomokuPosition",
    "chess_opening_book",
    "gomoku_opening_book",
]
