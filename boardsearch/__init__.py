"""Public package interface for the boardsearch engine."""

from .adapters import (
    ChessEvaluator,
    ChessPosition,
    GomokuEvaluator,
    GomokuPosition,
    chess_opening_book,
    gomoku_opening_book,
)
from .book import BookMove, OpeningBook
from .config import DifficultyProfile, DifficultyRegistry, SearchTuning
from .engine import GameEngine, PositionAssessment
from .errors import BoardSearchError, MalformedPositionError, SearchAbortedError
from .evaluation import MATE_VALUE, Evaluator
from .position import Move, Position
from .search import AlphaBetaSearcher, SearchResult, SearchSession
from .suggest import Suggestion

__all__ = [
    "AlphaBetaSearcher",
    "BoardSearchError",
    "BookMove",
    "ChessEvaluator",
    "ChessPosition",
    "DifficultyProfile",
    "DifficultyRegistry",
    "Evaluator",
    "GameEngine",
    "GomokuEvaluator",
    "GomokuPosition",
    "MATE_VALUE",
    "MalformedPositionError",
    "Move",
    "OpeningBook",
    "Position",
    "PositionAssessment",
    "SearchAbortedError",
    "SearchResult",
    "SearchSession",
    "SearchTuning",
    "Suggestion",
    "chess_opening_book",
    "gomoku_opening_book",
]
