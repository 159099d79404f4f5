"""Static evaluation for the search core.

Every evaluator scores a position from the reference side's perspective
(White in chess, Black in gomoku): positive numbers favour the side that
moves first, regardless of whose turn it is. The search tracks the
maximizing side explicitly instead of flipping signs between plies.

The chess evaluator is a compact hand-crafted function: material, mirrored
piece-square tables, development terms while the opening material is still
on the board, an endgame king table with advanced-pawn bonuses once most of
the material is gone, a pawn shield for the king in the middlegame, mobility
and a check penalty. It is exactly antisymmetric: mirroring the board,
swapping the colours and handing the move to the other side negates the
score.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Dict, Optional

import chess

from .position import REFERENCE_SIDE, Position

MATE_VALUE = 100_000
MATE_THRESHOLD = MATE_VALUE - 1_000


def is_mate_score(score: int) -> bool:
    return abs(score) >= MATE_THRESHOLD


def mover_relative(score: int, side: bool) -> int:
    """Convert a reference-side score into the given side's perspective."""

    return score if side == REFERENCE_SIDE else -score


def win_probability(score: float, scale: float = 400.0, floor: float = 0.001) -> float:
    """Logistic transform of a score, clamped to ``[floor, 1 - floor]``."""

    exponent = _clamp(-score / scale, -700.0, 700.0)
    probability = 1.0 / (1.0 + math.exp(exponent))
    return _clamp(probability, floor, 1.0 - floor)


def _clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


class Evaluator(ABC):
    """Game-specific static scoring used by the search core."""

    opening_material: int = 0

    @abstractmethod
    def evaluate(self, position: Position) -> int:
        ...

    def piece_value(self, kind: Optional[int]) -> int:
        return 0

    def total_material(self, position: Position) -> int:
        return 0

    def in_opening(self, position: Position) -> bool:
        return self.total_material(position) > self.opening_material


class ChessEvaluator(Evaluator):
    """Hand-crafted evaluation of a :class:`~boardsearch.adapters.chess_board.ChessPosition`."""

    PIECE_VALUES: Dict[int, int] = {
        chess.PAWN: 100,
        chess.KNIGHT: 320,
        chess.BISHOP: 330,
        chess.ROOK: 500,
        chess.QUEEN: 900,
        chess.KING: 20_000,
    }

    # Tables are written rank 8 first, the way a diagram reads, from White's
    # point of view. White squares are flipped with ``square ^ 56``.
    _PAWN = (
        0, 0, 0, 0, 0, 0, 0, 0,
        50, 50, 50, 50, 50, 50, 50, 50,
        10, 10, 20, 30, 30, 20, 10, 10,
        5, 5, 10, 25, 25, 10, 5, 5,
        0, 0, 0, 20, 20, 0, 0, 0,
        5, -5, -10, 0, 0, -10, -5, 5,
        5, 10, 10, -20, -20, 10, 10, 5,
        0, 0, 0, 0, 0, 0, 0, 0,
    )

    _KNIGHT = (
        -50, -40, -30, -30, -30, -30, -40, -50,
        -40, -20, 0, 0, 0, 0, -20, -40,
        -30, 0, 10, 15, 15, 10, 0, -30,
        -30, 5, 15, 20, 20, 15, 5, -30,
        -30, 0, 15, 20, 20, 15, 0, -30,
        -30, 5, 10, 15, 15, 10, 5, -30,
        -40, -20, 0, 5, 5, 0, -20, -40,
        -50, -40, -30, -30, -30, -30, -40, -50,
    )

    _BISHOP = (
        -20, -10, -10, -10, -10, -10, -10, -20,
        -10, 0, 0, 0, 0, 0, 0, -10,
        -10, 0, 5, 10, 10, 5, 0, -10,
        -10, 5, 5, 10, 10, 5, 5, -10,
        -10, 0, 10, 10, 10, 10, 0, -10,
        -10, 10, 10, 10, 10, 10, 10, -10,
        -10, 5, 0, 0, 0, 0, 5, -10,
        -20, -10, -10, -10, -10, -10, -10, -20,
    )

    _ROOK = (
        0, 0, 0, 0, 0, 0, 0, 0,
        5, 10, 10, 10, 10, 10, 10, 5,
        -5, 0, 0, 0, 0, 0, 0, -5,
        -5, 0, 0, 0, 0, 0, 0, -5,
        -5, 0, 0, 0, 0, 0, 0, -5,
        -5, 0, 0, 0, 0, 0, 0, -5,
        -5, 0, 0, 0, 0, 0, 0, -5,
        0, 0, 0, 5, 5, 0, 0, 0,
    )

    _QUEEN = (
        -20, -10, -10, -5, -5, -10, -10, -20,
        -10, 0, 0, 0, 0, 0, 0, -10,
        -10, 0, 5, 5, 5, 5, 0, -10,
        -5, 0, 5, 5, 5, 5, 0, -5,
        0, 0, 5, 5, 5, 5, 0, -5,
        -10, 5, 5, 5, 5, 5, 0, -10,
        -10, 0, 5, 0, 0, 0, 0, -10,
        -20, -10, -10, -5, -5, -10, -10, -20,
    )

    _KING_MIDDLE = (
        -30, -40, -40, -50, -50, -40, -40, -30,
        -30, -40, -40, -50, -50, -40, -40, -30,
        -30, -40, -40, -50, -50, -40, -40, -30,
        -30, -40, -40, -50, -50, -40, -40, -30,
        -20, -30, -30, -40, -40, -30, -30, -20,
        -10, -20, -20, -20, -20, -20, -20, -10,
        20, 20, 0, 0, 0, 0, 20, 20,
        20, 30, 10, 0, 0, 10, 30, 20,
    )

    _KING_END = (
        -50, -40, -30, -20, -20, -30, -40, -50,
        -30, -20, -10, 0, 0, -10, -20, -30,
        -30, -10, 20, 30, 30, 20, -10, -30,
        -30, -10, 30, 40, 40, 30, -10, -30,
        -30, -10, 30, 40, 40, 30, -10, -30,
        -30, -10, 20, 30, 30, 20, -10, -30,
        -30, -30, 0, 0, 0, 0, -30, -30,
        -50, -30, -30, -30, -30, -30, -30, -50,
    )

    PST = {
        chess.PAWN: _PAWN,
        chess.KNIGHT: _KNIGHT,
        chess.BISHOP: _BISHOP,
        chess.ROOK: _ROOK,
        chess.QUEEN: _QUEEN,
        chess.KING: _KING_MIDDLE,
    }

    opening_material = 6_600
    endgame_material = 2_600

    CHECK_PENALTY = 30
    MOBILITY_UNIT = 2
    UNDEVELOPED_PENALTY = 12
    CASTLED_KING_BONUS = 15
    KING_SHIELD_BONUS = 8
    ADVANCED_PAWN_BONUS = (0, 0, 5, 10, 20, 35, 60, 0)

    # White's home squares; Black's are the vertical mirror.
    MINOR_HOMES = {
        chess.KNIGHT: (chess.B1, chess.G1),
        chess.BISHOP: (chess.C1, chess.F1),
    }
    CASTLED_KING_SQUARES = (chess.G1, chess.C1, chess.B1)

    def evaluate(self, position: Position) -> int:
        board: chess.Board = position.board
        outcome = board.outcome()
        if outcome is not None:
            if outcome.winner is None:
                return 0
            return MATE_VALUE if outcome.winner == chess.WHITE else -MATE_VALUE

        material = self._material(board)
        opening = material > self.opening_material
        endgame = material <= self.endgame_material

        score = 0
        for square, piece in board.piece_map().items():
            sign = 1 if piece.color == chess.WHITE else -1
            index = square ^ 56 if piece.color == chess.WHITE else square
            table = self._KING_END if piece.piece_type == chess.KING and endgame else self.PST[piece.piece_type]
            value = 0 if piece.piece_type == chess.KING else self.PIECE_VALUES[piece.piece_type]
            score += sign * (value + table[index])

            if piece.piece_type in (chess.KNIGHT, chess.BISHOP, chess.ROOK, chess.QUEEN):
                reach = board.attacks_mask(square) & ~board.occupied_co[piece.color]
                score += sign * chess.popcount(reach) * self.MOBILITY_UNIT
            elif piece.piece_type == chess.PAWN and endgame:
                score += sign * self.ADVANCED_PAWN_BONUS[self._relative_rank(piece.color, square)]

        for color in (chess.WHITE, chess.BLACK):
            sign = 1 if color == chess.WHITE else -1
            if opening:
                score += sign * self._development(board, color)
            if not endgame:
                score += sign * self._king_shield(board, color)

        if board.is_check():
            score += -self.CHECK_PENALTY if board.turn == chess.WHITE else self.CHECK_PENALTY
        return score

    def piece_value(self, kind: Optional[int]) -> int:
        return self.PIECE_VALUES.get(kind, 0)

    def total_material(self, position: Position) -> int:
        return self._material(position.board)

    def _material(self, board: chess.Board) -> int:
        total = 0
        for piece_type in (chess.PAWN, chess.KNIGHT, chess.BISHOP, chess.ROOK, chess.QUEEN):
            count = chess.popcount(board.pieces_mask(piece_type, chess.WHITE))
            count += chess.popcount(board.pieces_mask(piece_type, chess.BLACK))
            total += count * self.PIECE_VALUES[piece_type]
        return total

    @staticmethod
    def _relative_rank(color: chess.Color, square: int) -> int:
        rank = chess.square_rank(square)
        return rank if color == chess.WHITE else 7 - rank

    @staticmethod
    def _home(color: chess.Color, square: int) -> int:
        return square if color == chess.WHITE else chess.square_mirror(square)

    def _development(self, board: chess.Board, color: chess.Color) -> int:
        score = 0
        for piece_type, homes in self.MINOR_HOMES.items():
            for home in homes:
                if board.piece_type_at(self._home(color, home)) == piece_type and board.color_at(self._home(color, home)) == color:
                    score -= self.UNDEVELOPED_PENALTY
        king = board.king(color)
        if king is not None and king in {self._home(color, sq) for sq in self.CASTLED_KING_SQUARES}:
            score += self.CASTLED_KING_BONUS
        return score

    def _king_shield(self, board: chess.Board, color: chess.Color) -> int:
        king = board.king(color)
        if king is None:
            return 0
        rank = chess.square_rank(king) + (1 if color == chess.WHITE else -1)
        if not 0 <= rank <= 7:
            return 0
        shield = 0
        file_index = chess.square_file(king)
        for df in (-1, 0, 1):
            f = file_index + df
            if 0 <= f <= 7:
                piece = board.piece_at(chess.square(f, rank))
                if piece is not None and piece.color == color and piece.piece_type == chess.PAWN:
                    shield += 1
        return shield * self.KING_SHIELD_BONUS


__all__ = [
    "ChessEvaluator",
    "Evaluator",
    "MATE_THRESHOLD",
    "MATE_VALUE",
    "is_mate_score",
    "mover_relative",
    "win_probability",
]
