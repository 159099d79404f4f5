"""Position adapter interface consumed by the search core.

A game plugs into the engine by subclassing :class:`Position`. The core only
relies on a canonical key, the side to move, legal move generation, move
application and terminal detection. Everything else on the class is a
presentation hook used when explaining moves to a human.

Positions have value semantics: :meth:`Position.play` returns a new object
and never mutates the receiver, so sibling branches of the search tree can
never observe each other's moves.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

REFERENCE_SIDE = True


@dataclass(frozen=True, slots=True)
class Move:
    """A generated move.

    Only ``from_square``, ``to_square`` and ``promotion`` take part in
    equality and hashing; the piece kinds are metadata captured at generation
    time for move ordering and explanations.
    """

    from_square: Optional[int]
    to_square: int
    piece: int = field(default=0, compare=False)
    captured: Optional[int] = field(default=None, compare=False)
    promotion: Optional[int] = None

    @property
    def is_capture(self) -> bool:
        return self.captured is not None

    def reverses(self, other: "Move") -> bool:
        """Return ``True`` if this move walks ``other`` straight back."""

        if self.from_square is None or other.from_square is None:
            return False
        return self.from_square == other.to_square and self.to_square == other.from_square


class Position(ABC):
    SIDE_NAMES: Tuple[str, str] = ("First", "Second")

    @property
    @abstractmethod
    def turn(self) -> bool:
        """``True`` when the reference (first) side is to move."""

    @abstractmethod
    def key(self) -> str:
        """Canonical encoding; equal keys mean identical positions."""

    @abstractmethod
    def legal_moves(self) -> List[Move]:
        """Legal moves in a deterministic generation order."""

    @abstractmethod
    def play(self, move: Move) -> "Position":
        """Return the position after ``move`` without touching ``self``."""

    @abstractmethod
    def is_terminal(self) -> bool:
        ...

    @abstractmethod
    def winner(self) -> Optional[bool]:
        """Winning side of a finished game, ``None`` for a draw or a live game."""

    def validate(self) -> None:
        """Raise :class:`MalformedPositionError` if the position cannot arise in play."""

    def in_check(self) -> bool:
        return False

    def gives_check(self, move: Move) -> bool:
        return self.play(move).in_check()

    # ------------------------------------------------------------------
    # Presentation hooks
    # ------------------------------------------------------------------
    def side_name(self, side: bool) -> str:
        return self.SIDE_NAMES[0] if side else self.SIDE_NAMES[1]

    def piece_name(self, kind: Optional[int]) -> str:
        return "piece"

    def is_center(self, square: int) -> bool:
        return False

    def claims_center(self, move: Move) -> bool:
        return self.is_center(move.to_square)

    def is_development(self, move: Move) -> bool:
        return False

    def castling_side(self, move: Move) -> Optional[str]:
        return None

    def move_text(self, move: Move) -> str:
        origin = "" if move.from_square is None else f"{move.from_square}-"
        return f"{origin}{move.to_square}"


def find_legal(position: Position, from_square: Optional[int], to_square: int, promotion: Optional[int] = None) -> Optional[Move]:
    """Return the live legal move matching the given encoding, if any."""

    wanted = Move(from_square, to_square, promotion=promotion)
    for move in position.legal_moves():
        if move == wanted:
            return move
    return None


__all__ = ["Move", "Position", "REFERENCE_SIDE", "find_legal"]
