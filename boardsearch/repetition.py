"""Repetition ledger and the guard that steers away from repeated positions."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Dict, Optional

from .evaluation import mover_relative
from .reporting import SearchReporter

if TYPE_CHECKING:
    from .position import Move, Position
    from .search import AlphaBetaSearcher, SearchResult

# Share of the move's time budget given to re-searching alternatives.
RESEARCH_FRACTION = 0.25


class RepetitionLedger:
    """Visit counts per canonical position key for the current game."""

    def __init__(self) -> None:
        self._visits: Dict[str, int] = {}

    def record(self, key: str) -> int:
        self._visits[key] = self._visits.get(key, 0) + 1
        return self._visits[key]

    def count_of(self, key: str) -> int:
        return self._visits.get(key, 0)

    def reset(self) -> None:
        self._visits.clear()

    def __len__(self) -> int:
        return len(self._visits)


class RepetitionGuard:
    """Replace a move that revisits a known position with a near-equal alternative.

    The alternative is found with a shallower re-search and is only accepted
    when it is at most ``tolerance`` worse for the mover than the original
    choice, so the engine never plays a clearly worse move just to avoid a
    repetition.
    """

    def __init__(self, ledger: RepetitionLedger, tolerance: int = 200, reporter: Optional[SearchReporter] = None) -> None:
        self.ledger = ledger
        self.tolerance = tolerance
        self.reporter = reporter or SearchReporter()

    def repeats(self, position: "Position", move: "Move") -> bool:
        return self.ledger.count_of(position.play(move).key()) >= 1

    def review(
        self,
        position: "Position",
        result: "SearchResult",
        searcher: "AlphaBetaSearcher",
        depth: int,
        time_limit: float,
    ) -> "SearchResult":
        if result.move is None or not self.repeats(position, result.move):
            return result

        alternatives = [
            move for move in position.legal_moves()
            if move != result.move and not self.repeats(position, move)
        ]
        if not alternatives:
            return result

        mover = position.turn
        original = mover_relative(result.score, mover)
        child_depth = max(1, depth - 2) - 1
        deadline = searcher.clock() + time_limit * RESEARCH_FRACTION

        best_move = None
        best_score = None
        for move in alternatives:
            outcome = searcher.search(position.play(move), child_depth, deadline)
            if outcome.timed_out:
                break
            score = mover_relative(outcome.score, mover)
            if best_score is None or score > best_score:
                best_move, best_score = move, score

        if best_move is None or best_score < original - self.tolerance:
            self.reporter.trace(f"repetition kept: {position.move_text(result.move)}")
            return result

        self.reporter.trace(
            f"repetition avoided: {position.move_text(result.move)} -> {position.move_text(best_move)} "
            f"({original} -> {best_score})"
        )
        return replace(
            result,
            score=mover_relative(best_score, mover),
            move=best_move,
            depth=max(1, depth - 2),
            source="repetition",
        )


__all__ = ["RESEARCH_FRACTION", "RepetitionGuard", "RepetitionLedger"]
