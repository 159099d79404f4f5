"""Move ordering heuristics: MVV-LVA captures, killer moves and history."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .config import SearchTuning
from .position import Move


class KillerTable:
    """Quiet moves that caused a beta cutoff, indexed by ply from the root."""

    __slots__ = ("slots", "table")

    def __init__(self, slots: int = 2) -> None:
        self.slots = max(1, slots)
        self.table: Dict[int, List[Move]] = {}

    def reset(self) -> None:
        self.table = {}

    def record(self, ply: int, move: Move) -> None:
        killers = self.table.setdefault(ply, [])
        if move in killers:
            return
        killers.insert(0, move)
        del killers[self.slots:]

    def is_killer(self, ply: int, move: Move) -> bool:
        return move in self.table.get(ply, ())

    def at(self, ply: int) -> Tuple[Move, ...]:
        return tuple(self.table.get(ply, ()))


class HistoryTable:
    """Cutoff counts per (from, to) pair, kept across searches in a session."""

    __slots__ = ("ceiling", "values")

    def __init__(self, ceiling: int = 500_000) -> None:
        self.ceiling = ceiling
        self.values: Dict[Tuple[Optional[int], int], int] = {}

    def score(self, move: Move) -> int:
        return self.values.get((move.from_square, move.to_square), 0)

    def record(self, move: Move, depth: int) -> None:
        key = (move.from_square, move.to_square)
        self.values[key] = self.values.get(key, 0) + depth * depth
        if self.values[key] > self.ceiling:
            for other in self.values:
                self.values[other] //= 2

    def clear(self) -> None:
        self.values.clear()


class MoveOrderer:
    """Sorts moves so that alpha-beta sees the likely refutations first.

    Captures come first, ranked by ``victim * 100 - attacker``; quiet moves
    that are killers for the current ply follow, and every other quiet move
    is ranked by its history score. ``sorted`` is stable, so equal scores
    keep the order in which the position adapter generated the moves.
    """

    def __init__(
        self,
        piece_value: Callable[[Optional[int]], int],
        killers: KillerTable,
        history: HistoryTable,
        tuning: SearchTuning,
    ) -> None:
        self.piece_value = piece_value
        self.killers = killers
        self.history = history
        self.tuning = tuning

    def score(self, move: Move, ply: int, hash_move: Optional[Move] = None) -> int:
        if hash_move is not None and move == hash_move:
            return self.tuning.hash_move_bonus
        if move.is_capture:
            return self.tuning.capture_base + self.mvv_lva(move)
        if self.killers.is_killer(ply, move):
            return self.tuning.killer_bonus
        return self.history.score(move)

    def mvv_lva(self, move: Move) -> int:
        return self.piece_value(move.captured) * 100 - self.piece_value(move.piece)

    def order(self, moves: Sequence[Move], ply: int, hash_move: Optional[Move] = None) -> List[Move]:
        return sorted(moves, key=lambda move: self.score(move, ply, hash_move), reverse=True)

    def order_captures(self, moves: Sequence[Move]) -> List[Move]:
        captures = [move for move in moves if move.is_capture]
        return sorted(captures, key=self.mvv_lva, reverse=True)


__all__ = ["HistoryTable", "KillerTable", "MoveOrderer"]
