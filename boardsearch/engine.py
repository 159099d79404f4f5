"""Engine facade tying the search, book, repetition and suggestion layers together."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from .book import OpeningBook
from .config import DifficultyRegistry, SearchTuning
from .evaluation import Evaluator, win_probability
from .position import Move, Position
from .repetition import RepetitionGuard
from .reporting import Logger, SearchReporter
from .search import AlphaBetaSearcher, SearchResult, SearchSession, terminal_score
from .suggest import MultiCandidateSuggester, Suggestion, explain_move


@dataclass
class PositionAssessment:
    score: int
    label: str
    win_probability: float
    advantage: str
    game_state: str


class GameEngine:
    """Plays and analyses one game at a time.

    The engine owns a :class:`SearchSession`, so its cache, killer and
    history tables and repetition ledger belong to a single game. Call
    :meth:`clear_search_state` when a new game starts. The engine is not
    thread-safe: run searches on a worker thread if the caller must stay
    responsive, and give every concurrent game its own engine.
    """

    EQUAL_MARGIN = 50
    CLEAR_ADVANTAGE = 300
    WINNING = 900

    def __init__(
        self,
        evaluator: Evaluator,
        book: Optional[OpeningBook] = None,
        tuning: Optional[SearchTuning] = None,
        seed: Optional[int] = None,
        logger: Optional[Logger] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.evaluator = evaluator
        self.book = book
        self.session = SearchSession(tuning, seed)
        self.tuning = self.session.tuning
        self.reporter = SearchReporter(logger=logger)
        self.searcher = AlphaBetaSearcher(evaluator, self.session, self.reporter, clock)
        self.guard = RepetitionGuard(self.session.ledger, self.tuning.repetition_tolerance, self.reporter)
        self.suggester = MultiCandidateSuggester(self.searcher, self.session.ledger, self.tuning)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    def find_best_move(self, position: Position, difficulty: int = 2) -> SearchResult:
        profile = DifficultyRegistry.resolve(difficulty)
        position.validate()
        self.session.ledger.record(position.key())

        if position.is_terminal() or not position.legal_moves():
            return SearchResult(terminal_score(position, 0), None, source="terminal")

        result = self._book_move(position, difficulty)
        if result is None:
            result = self.searcher.iterative_deepening(position, profile.max_depth, profile.time_limit)
            result = self._random_bias(position, result, difficulty)
            result = self.guard.review(position, result, self.searcher, profile.max_depth, profile.time_limit)

        if result.move is not None:
            self.session.ledger.record(position.play(result.move).key())
            self.reporter.trace(
                f"bestmove {position.move_text(result.move)} score={result.score} source={result.source}"
            )
        return result

    def get_top_moves(
        self,
        position: Position,
        n: int = 3,
        difficulty: int = 2,
        recent_moves: Sequence[Move] = (),
    ) -> List[Suggestion]:
        profile = DifficultyRegistry.resolve(difficulty)
        position.validate()
        return self.suggester.suggest(position, n, profile, recent_moves)

    def evaluate_position(self, position: Position) -> PositionAssessment:
        """Static assessment from the reference side's point of view."""

        position.validate()
        if position.is_terminal():
            score = terminal_score(position, 0)
        else:
            score = self.evaluator.evaluate(position)
        label, advantage = self._label(position, score)
        return PositionAssessment(
            score=score,
            label=label,
            win_probability=win_probability(
                score, self.tuning.win_probability_scale, self.tuning.probability_floor
            ),
            advantage=advantage,
            game_state=self._game_state(position),
        )

    def explain_move(self, position: Position, move: Move) -> str:
        return explain_move(position, move, self.evaluator)

    def clear_search_state(self) -> None:
        self.session.reset()
        self.reporter.trace("search state cleared")

    # ------------------------------------------------------------------
    # Move selection stages
    # ------------------------------------------------------------------
    def _book_move(self, position: Position, difficulty: int) -> Optional[SearchResult]:
        if self.book is None or difficulty < self.tuning.book_min_difficulty:
            return None
        if not self.evaluator.in_opening(position):
            return None
        choice = self.book.choose(position, self.session.rng, self.tuning.book_band)
        if choice is None:
            return None
        move, entry = choice
        self.reporter.trace(f"book hit: {entry.name} ({position.move_text(move)}, priority={entry.priority})")
        score = self.evaluator.evaluate(position.play(move))
        return SearchResult(score, move, source="book")

    def _random_bias(self, position: Position, result: SearchResult, difficulty: int) -> SearchResult:
        if difficulty != DifficultyRegistry.LOWEST:
            return result
        if self.session.rng.random() >= self.tuning.random_pick_probability:
            return result
        ranking = self.searcher.static_ranking(position)
        top_half = ranking[: max(1, (len(ranking) + 1) // 2)]
        move, score = top_half[self.session.rng.randrange(len(top_half))]
        self.reporter.trace(f"random pick: {position.move_text(move)} from top {len(top_half)}")
        return SearchResult(score, move, timed_out=result.timed_out, depth=1, nodes=result.nodes, source="random")

    # ------------------------------------------------------------------
    # Assessment helpers
    # ------------------------------------------------------------------
    def _label(self, position: Position, score: int) -> Tuple[str, str]:
        if abs(score) < self.EQUAL_MARGIN:
            return "Equal position", "even"
        side = position.side_name(score > 0)
        tag = side.lower()
        magnitude = abs(score)
        if magnitude > self.WINNING:
            return f"{side} is winning", f"{tag}-winning"
        if magnitude > self.CLEAR_ADVANTAGE:
            return f"{side} has clear advantage", f"{tag}-better"
        return f"{side} is slightly better", f"{tag}-slight"

    @staticmethod
    def _game_state(position: Position) -> str:
        if position.is_terminal():
            winner = position.winner()
            if winner is None:
                return "Draw"
            suffix = " by checkmate" if position.in_check() else ""
            return f"{position.side_name(winner)} wins{suffix}"
        if position.in_check():
            return f"{position.side_name(position.turn)} is in check"
        return ""


__all__ = ["GameEngine", "PositionAssessment"]
