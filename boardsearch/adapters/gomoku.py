"""Gomoku (WuziQi) position adapter and pattern evaluator.

Black moves first and is the reference side. A move places one stone; five
or more in a row wins. Legal moves are restricted to empty intersections
within two cells of an existing stone, which is the usual way to keep the
branching factor of connection games manageable. The empty board only
offers the centre point.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from ..book import OpeningBook
from ..errors import MalformedPositionError
from ..evaluation import MATE_THRESHOLD, MATE_VALUE, Evaluator
from ..position import Move, Position

BOARD_SIZE = 15
EMPTY = "."
BLACK = "x"
WHITE = "o"
STONE = 1
DIRECTIONS = ((0, 1), (1, 0), (1, 1), (1, -1))
CANDIDATE_RADIUS = 2
CENTER = (BOARD_SIZE // 2) * BOARD_SIZE + BOARD_SIZE // 2
FILES = "abcdefghijklmnopqrstuvwxyz"


def square_of(row: int, col: int) -> int:
    return row * BOARD_SIZE + col


def coords_of(square: int) -> Tuple[int, int]:
    return divmod(square, BOARD_SIZE)


def _on_board(row: int, col: int) -> bool:
    return 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE


class GomokuPosition(Position):
    SIDE_NAMES = ("Black", "White")

    def __init__(self, cells: Optional[Sequence[str]] = None, black_to_move: bool = True) -> None:
        self._cells: Tuple[str, ...] = tuple(cells) if cells is not None else (EMPTY,) * (BOARD_SIZE * BOARD_SIZE)
        self._black_to_move = black_to_move
        self._winner: Optional[bool] = None
        self._winner_known = False
        self._moves: Optional[List[Move]] = None

    @classmethod
    def from_rows(cls, rows: Sequence[str], black_to_move: Optional[bool] = None) -> "GomokuPosition":
        """Build a position from ``BOARD_SIZE`` strings of ``.``, ``x`` and ``o``.

        When ``black_to_move`` is omitted the side to move is inferred from
        the stone counts, the same way a move list would produce it.
        """

        if len(rows) != BOARD_SIZE or any(len(row) != BOARD_SIZE for row in rows):
            raise MalformedPositionError(f"Gomoku boards must be {BOARD_SIZE}x{BOARD_SIZE}")
        cells = "".join(rows)
        if black_to_move is None:
            black_to_move = cells.count(BLACK) == cells.count(WHITE)
        position = cls(cells, black_to_move)
        position.validate()
        return position

    @property
    def cells(self) -> Tuple[str, ...]:
        return self._cells

    @property
    def turn(self) -> bool:
        return self._black_to_move

    def rows(self) -> List[str]:
        return ["".join(self._cells[r * BOARD_SIZE:(r + 1) * BOARD_SIZE]) for r in range(BOARD_SIZE)]

    def key(self) -> str:
        return "/".join(self.rows()) + (" b" if self._black_to_move else " w")

    def validate(self) -> None:
        if len(self._cells) != BOARD_SIZE * BOARD_SIZE:
            raise MalformedPositionError(f"Gomoku boards must have {BOARD_SIZE * BOARD_SIZE} points")
        invalid = set(self._cells) - {EMPTY, BLACK, WHITE}
        if invalid:
            raise MalformedPositionError(f"Unknown gomoku cell symbols: {''.join(sorted(invalid))}")
        blacks = self._cells.count(BLACK)
        whites = self._cells.count(WHITE)
        if blacks - whites not in (0, 1):
            raise MalformedPositionError(f"Impossible stone counts: {blacks} black, {whites} white")

    def stone_count(self) -> int:
        return sum(1 for cell in self._cells if cell != EMPTY)

    def legal_moves(self) -> List[Move]:
        if self._moves is None:
            if self.winner() is not None:
                self._moves = []
            else:
                self._moves = [Move(None, sq, piece=STONE) for sq in self._candidates()]
        return list(self._moves)

    def _candidates(self) -> Iterable[int]:
        if all(cell == EMPTY for cell in self._cells):
            return [CENTER]
        found = []
        for square, cell in enumerate(self._cells):
            if cell != EMPTY:
                continue
            row, col = coords_of(square)
            if self._has_neighbour(row, col):
                found.append(square)
        return found

    def _has_neighbour(self, row: int, col: int) -> bool:
        for dr in range(-CANDIDATE_RADIUS, CANDIDATE_RADIUS + 1):
            for dc in range(-CANDIDATE_RADIUS, CANDIDATE_RADIUS + 1):
                if dr == 0 and dc == 0:
                    continue
                r, c = row + dr, col + dc
                if _on_board(r, c) and self._cells[square_of(r, c)] != EMPTY:
                    return True
        return False

    def play(self, move: Move) -> "GomokuPosition":
        if not 0 <= move.to_square < BOARD_SIZE * BOARD_SIZE:
            raise MalformedPositionError(f"Square {move.to_square} is off the board")
        if self._cells[move.to_square] != EMPTY:
            raise MalformedPositionError(f"Square {self.move_text(move)} is already occupied")
        cells = list(self._cells)
        cells[move.to_square] = BLACK if self._black_to_move else WHITE
        return GomokuPosition(cells, not self._black_to_move)

    def is_terminal(self) -> bool:
        return self.winner() is not None or EMPTY not in self._cells

    def winner(self) -> Optional[bool]:
        if not self._winner_known:
            self._winner = self._find_five()
            self._winner_known = True
        return self._winner

    def _find_five(self) -> Optional[bool]:
        for square, cell in enumerate(self._cells):
            if cell == EMPTY:
                continue
            row, col = coords_of(square)
            for dr, dc in DIRECTIONS:
                if run_length(self._cells, row, col, dr, dc, cell) >= 5:
                    return cell == BLACK
        return None

    def mirrored(self) -> "GomokuPosition":
        """Colour-swapped copy with the other side to move."""

        swap = {BLACK: WHITE, WHITE: BLACK, EMPTY: EMPTY}
        return GomokuPosition([swap[cell] for cell in self._cells], not self._black_to_move)

    def is_center(self, square: int) -> bool:
        row, col = coords_of(square)
        middle = BOARD_SIZE // 2
        return abs(row - middle) <= 2 and abs(col - middle) <= 2

    def piece_name(self, kind: Optional[int]) -> str:
        return "stone"

    def move_text(self, move: Move) -> str:
        row, col = coords_of(move.to_square)
        return f"{FILES[col]}{BOARD_SIZE - row}"

    def find_point(self, text: str) -> Move:
        """Move for a point written like ``h8`` (file letter, rank from the bottom).

        Any empty point of a live game is accepted, including points the
        search would not generate because they are far from every stone.
        """

        text = text.strip().lower()
        if len(text) < 2 or text[0] not in FILES[:BOARD_SIZE] or not text[1:].isdigit():
            raise MalformedPositionError(f"Unreadable gomoku point '{text}'")
        row = BOARD_SIZE - int(text[1:])
        col = FILES.index(text[0])
        if not _on_board(row, col):
            raise MalformedPositionError(f"Point '{text}' is off the board")
        if self.winner() is not None:
            raise MalformedPositionError(f"The game is already over; '{text}' cannot be played")
        square = square_of(row, col)
        if self._cells[square] != EMPTY:
            raise MalformedPositionError(f"Point '{text}' is already occupied")
        return Move(None, square, piece=STONE)

    def __repr__(self) -> str:
        return f"GomokuPosition({self.key()!r})"


def run_length(cells: Sequence[str], row: int, col: int, dr: int, dc: int, color: str) -> int:
    """Length of the run of ``color`` starting at (row, col) going (dr, dc)."""

    count = 0
    r, c = row, col
    while _on_board(r, c) and cells[square_of(r, c)] == color:
        count += 1
        r += dr
        c += dc
    return count


class GomokuEvaluator(Evaluator):
    """Line-pattern evaluation: fives, open and closed fours, threes and twos."""

    FIVE = 1_000_000
    OPEN_FOUR = 100_000
    CLOSED_FOUR = 10_000
    OPEN_THREE = 5_000
    CLOSED_THREE = 500
    OPEN_TWO = 200
    CLOSED_TWO = 20
    ONE = 5

    # Threats of the side not on move are weighted up by a tenth.
    DEFENCE_NUMERATOR = 11
    DEFENCE_DENOMINATOR = 10
    PATTERN_CAP = MATE_THRESHOLD - 1

    # Material here is the number of empty points, so the book stays active
    # only for the first couple of stones.
    opening_material = BOARD_SIZE * BOARD_SIZE - 3

    def evaluate(self, position: Position) -> int:
        winner = position.winner()
        if winner is not None:
            return MATE_VALUE if winner else -MATE_VALUE

        cells = position.cells
        black = self._side_score(cells, BLACK)
        white = self._side_score(cells, WHITE)
        mover, other = (black, white) if position.turn else (white, black)
        relative = mover - (other * self.DEFENCE_NUMERATOR) // self.DEFENCE_DENOMINATOR
        # Pattern sums stay below the mate band so threats never read as wins.
        relative = max(-self.PATTERN_CAP, min(self.PATTERN_CAP, relative))
        return relative if position.turn else -relative

    def total_material(self, position: Position) -> int:
        return sum(1 for cell in position.cells if cell == EMPTY)

    def _side_score(self, cells: Sequence[str], color: str) -> int:
        total = 0
        for square, cell in enumerate(cells):
            if cell != color:
                continue
            row, col = coords_of(square)
            for dr, dc in DIRECTIONS:
                pr, pc = row - dr, col - dc
                if _on_board(pr, pc) and cells[square_of(pr, pc)] == color:
                    continue
                total += self._line_score(cells, row, col, dr, dc, color)
        return total

    def _line_score(self, cells: Sequence[str], row: int, col: int, dr: int, dc: int, color: str) -> int:
        count = run_length(cells, row, col, dr, dc, color)
        open_ends = 0
        after_r, after_c = row + dr * count, col + dc * count
        if _on_board(after_r, after_c) and cells[square_of(after_r, after_c)] == EMPTY:
            open_ends += 1
        before_r, before_c = row - dr, col - dc
        if _on_board(before_r, before_c) and cells[square_of(before_r, before_c)] == EMPTY:
            open_ends += 1

        if count >= 5:
            return self.FIVE
        if open_ends == 0:
            return 0
        if count == 4:
            return self.OPEN_FOUR if open_ends == 2 else self.CLOSED_FOUR
        if count == 3:
            return self.OPEN_THREE if open_ends == 2 else self.CLOSED_THREE
        if count == 2:
            return self.OPEN_TWO if open_ends == 2 else self.CLOSED_TWO
        return self.ONE


# Black takes the centre; White answers next to it, either orthogonally
# (direct opening) or diagonally (indirect opening).
GOMOKU_OPENING_LINES = (
    ("Direct opening", 100, ("h8", "h9")),
    ("Direct opening", 100, ("h8", "i8")),
    ("Direct opening", 100, ("h8", "h7")),
    ("Direct opening", 100, ("h8", "g8")),
    ("Indirect opening", 95, ("h8", "i9")),
    ("Indirect opening", 95, ("h8", "i7")),
    ("Indirect opening", 95, ("h8", "g7")),
    ("Indirect opening", 95, ("h8", "g9")),
)


def gomoku_opening_book() -> OpeningBook:
    return OpeningBook.from_lines(GomokuPosition(), GOMOKU_OPENING_LINES, GomokuPosition.find_point)


__all__ = [
    "BLACK",
    "BOARD_SIZE",
    "CENTER",
    "EMPTY",
    "GOMOKU_OPENING_LINES",
    "GomokuEvaluator",
    "GomokuPosition",
    "WHITE",
    "coords_of",
    "gomoku_opening_book",
    "square_of",
]
