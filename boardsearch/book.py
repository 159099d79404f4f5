"""Opening book: named candidate moves for known opening positions."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .position import Move, Position, find_legal

# (name, priority, moves as the adapter writes them)
OpeningLine = Tuple[str, int, Sequence[str]]


@dataclass(frozen=True, slots=True)
class BookMove:
    from_square: Optional[int]
    to_square: int
    priority: int
    name: str
    promotion: Optional[int] = None

    def same_move(self, move: Move) -> bool:
        return (self.from_square, self.to_square, self.promotion) == (
            move.from_square,
            move.to_square,
            move.promotion,
        )


class OpeningBook:
    """Read-only mapping from position keys to ranked book moves.

    Book entries are never trusted blindly: :meth:`choose` filters them
    against the live legal moves, so a line that no longer applies is simply
    ignored. Among the surviving entries, every move within ``band`` of the
    best priority is equally likely to be played.
    """

    def __init__(self, entries: Optional[Dict[str, Sequence[BookMove]]] = None) -> None:
        self._entries: Dict[str, Tuple[BookMove, ...]] = {
            key: tuple(sorted(moves, key=lambda entry: entry.priority, reverse=True))
            for key, moves in (entries or {}).items()
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def lookup(self, key: str) -> Optional[List[BookMove]]:
        moves = self._entries.get(key)
        return list(moves) if moves else None

    def candidates(self, position: Position) -> List[Tuple[Move, BookMove]]:
        found = []
        for entry in self.lookup(position.key()) or ():
            move = find_legal(position, entry.from_square, entry.to_square, entry.promotion)
            if move is not None:
                found.append((move, entry))
        return found

    def choose(self, position: Position, rng: random.Random, band: int = 10) -> Optional[Tuple[Move, BookMove]]:
        candidates = self.candidates(position)
        if not candidates:
            return None
        top = max(entry.priority for _, entry in candidates)
        pool = [item for item in candidates if item[1].priority >= top - band]
        return pool[rng.randrange(len(pool))]

    @classmethod
    def from_lines(
        cls,
        start: Position,
        lines: Iterable[OpeningLine],
        parse: Callable[[Position, str], Move],
    ) -> "OpeningBook":
        """Build a book by replaying named lines from ``start``.

        Every prefix of a line becomes a book position. When several lines
        share a move, the entry keeps the highest priority and the name of
        the line that contributed it.
        """

        table: Dict[str, Dict[Tuple[Optional[int], int, Optional[int]], BookMove]] = {}
        for name, priority, moves in lines:
            position = start
            for text in moves:
                move = parse(position, text)
                slot = table.setdefault(position.key(), {})
                ident = (move.from_square, move.to_square, move.promotion)
                existing = slot.get(ident)
                if existing is None or existing.priority < priority:
                    slot[ident] = BookMove(move.from_square, move.to_square, priority, name, move.promotion)
                position = position.play(move)
        return cls({key: list(slot.values()) for key, slot in table.items()})


__all__ = ["BookMove", "OpeningBook", "OpeningLine"]
