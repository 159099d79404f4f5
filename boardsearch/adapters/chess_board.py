"""Chess position adapter backed by :mod:`python-chess`.

The rules (legal move generation, check, checkmate, stalemate, insufficient
material) all come from :class:`chess.Board`. This module only translates
between python-chess objects and the engine's :class:`~boardsearch.position.Move`.
"""

from __future__ import annotations

from typing import List, Optional

import chess

from ..book import OpeningBook
from ..errors import MalformedPositionError
from ..position import Move, Position

PIECE_NAMES = {
    chess.PAWN: "Pawn",
    chess.KNIGHT: "Knight",
    chess.BISHOP: "Bishop",
    chess.ROOK: "Rook",
    chess.QUEEN: "Queen",
    chess.KING: "King",
}

CENTER_SQUARES = frozenset((chess.D4, chess.E4, chess.D5, chess.E5))
MINOR_HOME_SQUARES = frozenset(
    (chess.B1, chess.G1, chess.C1, chess.F1, chess.B8, chess.G8, chess.C8, chess.F8)
)


class ChessPosition(Position):
    SIDE_NAMES = ("White", "Black")

    __slots__ = ("_board", "_moves")

    def __init__(self, board: Optional[chess.Board] = None) -> None:
        self._board = board if board is not None else chess.Board()
        self._moves: Optional[List[Move]] = None

    @classmethod
    def from_fen(cls, fen: str) -> "ChessPosition":
        try:
            board = chess.Board(fen)
        except ValueError as exc:
            raise MalformedPositionError(f"Invalid FEN '{fen}': {exc}") from exc
        position = cls(board)
        position.validate()
        return position

    @classmethod
    def from_uci_moves(cls, moves: List[str], fen: Optional[str] = None) -> "ChessPosition":
        position = cls.from_fen(fen) if fen else cls()
        board = position.board.copy(stack=False)
        for text in moves:
            try:
                board.push_uci(text)
            except ValueError as exc:
                raise MalformedPositionError(f"Illegal move '{text}' for {board.fen()}") from exc
        return cls(board)

    @property
    def board(self) -> chess.Board:
        return self._board

    @property
    def turn(self) -> bool:
        return self._board.turn == chess.WHITE

    def key(self) -> str:
        return self._board.epd()

    def legal_moves(self) -> List[Move]:
        if self._moves is None:
            self._moves = [self.to_move(mv) for mv in self._board.generate_legal_moves()]
        return list(self._moves)

    def play(self, move: Move) -> "ChessPosition":
        native = self.to_native(move)
        if not self._board.is_legal(native):
            raise MalformedPositionError(f"Move {native.uci()} is not legal in {self._board.fen()}")
        child = self._board.copy(stack=False)
        child.push(native)
        return ChessPosition(child)

    def is_terminal(self) -> bool:
        return self._board.is_game_over()

    def validate(self) -> None:
        status = self._board.status()
        if status != chess.STATUS_VALID:
            raise MalformedPositionError(f"Illegal chess position '{self._board.fen()}' (status={status!r})")

    def winner(self) -> Optional[bool]:
        outcome = self._board.outcome()
        if outcome is None or outcome.winner is None:
            return None
        return outcome.winner == chess.WHITE

    def in_check(self) -> bool:
        return self._board.is_check()

    def gives_check(self, move: Move) -> bool:
        return self._board.gives_check(self.to_native(move))

    def mirrored(self) -> "ChessPosition":
        """Colour-swapped, vertically flipped copy with the other side to move."""

        return ChessPosition(self._board.mirror())

    # ------------------------------------------------------------------
    # Conversion helpers
    # ------------------------------------------------------------------
    def to_move(self, native: chess.Move) -> Move:
        board = self._board
        captured = board.piece_type_at(native.to_square)
        if captured is None and board.is_en_passant(native):
            captured = chess.PAWN
        return Move(
            native.from_square,
            native.to_square,
            piece=board.piece_type_at(native.from_square) or 0,
            captured=captured,
            promotion=native.promotion,
        )

    @staticmethod
    def to_native(move: Move) -> chess.Move:
        if move.from_square is None:
            raise MalformedPositionError("Chess moves need an origin square")
        return chess.Move(move.from_square, move.to_square, promotion=move.promotion)

    def find_uci(self, text: str) -> Move:
        try:
            native = chess.Move.from_uci(text)
        except ValueError as exc:
            raise MalformedPositionError(f"Unreadable move '{text}'") from exc
        if native not in self._board.legal_moves:
            raise MalformedPositionError(f"Move '{text}' is not legal in {self._board.fen()}")
        return self.to_move(native)

    def find_san(self, text: str) -> Move:
        try:
            native = self._board.parse_san(text)
        except ValueError as exc:
            raise MalformedPositionError(f"Move '{text}' is not legal in {self._board.fen()}") from exc
        return self.to_move(native)

    # ------------------------------------------------------------------
    # Presentation hooks
    # ------------------------------------------------------------------
    def piece_name(self, kind: Optional[int]) -> str:
        return PIECE_NAMES.get(kind, "piece")

    def is_center(self, square: int) -> bool:
        return square in CENTER_SQUARES

    def claims_center(self, move: Move) -> bool:
        # Only pawns stake a claim; pieces merely visit.
        return move.piece == chess.PAWN and self.is_center(move.to_square)

    def is_development(self, move: Move) -> bool:
        return move.piece in (chess.KNIGHT, chess.BISHOP) and move.from_square in MINOR_HOME_SQUARES

    def castling_side(self, move: Move) -> Optional[str]:
        native = self.to_native(move)
        if self._board.is_kingside_castling(native):
            return "kingside"
        if self._board.is_queenside_castling(native):
            return "queenside"
        return None

    def move_text(self, move: Move) -> str:
        return self._board.san(self.to_native(move))

    def __repr__(self) -> str:
        return f"ChessPosition({self._board.fen()!r})"


# ----------------------------------------------------------------------
# Opening repertoire
# ----------------------------------------------------------------------
# (name, popularity, SAN moves from the initial position)
CHESS_OPENING_LINES = (
    ("Italian Game", 95, ("e4", "e5", "Nf3", "Nc6", "Bc4")),
    ("Evans Gambit", 60, ("e4", "e5", "Nf3", "Nc6", "Bc4", "Bc5", "b4")),
    ("Sicilian Defense", 98, ("e4", "c5")),
    ("Sicilian Najdorf", 85, ("e4", "c5", "Nf3", "d6", "d4", "cxd4", "Nxd4", "Nf6", "Nc3", "a6")),
    ("French Defense", 75, ("e4", "e6")),
    ("Queen's Gambit", 90, ("d4", "d5", "c4")),
    ("Queen's Gambit Declined", 80, ("d4", "d5", "c4", "e6")),
    ("London System", 70, ("d4", "d5", "Nf3", "Nf6", "Bf4")),
    ("King's Indian Defense", 75, ("d4", "Nf6", "c4", "g6")),
    ("Ruy Lopez", 92, ("e4", "e5", "Nf3", "Nc6", "Bb5")),
    ("Caro-Kann Defense", 70, ("e4", "c6")),
    ("Scotch Game", 65, ("e4", "e5", "Nf3", "Nc6", "d4")),
)


def chess_opening_book() -> OpeningBook:
    return OpeningBook.from_lines(ChessPosition(), CHESS_OPENING_LINES, ChessPosition.find_san)


__all__ = ["CHESS_OPENING_LINES", "ChessPosition", "PIECE_NAMES", "chess_opening_book"]
