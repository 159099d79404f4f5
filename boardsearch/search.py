"""Alpha-beta search core.

:class:`AlphaBetaSearcher` runs a minimax search with an explicit
maximizing flag: every score is expressed from the reference side's point of
view and the side being maximized is passed down the recursion rather than
being implied by negating scores between plies. Each call is in one of three
states:

``Terminal``
    The game is over. Wins and losses score ``MATE_VALUE - ply`` so that a
    shorter mate is always preferred; draws score zero.
``Horizon``
    ``depth == 0``. A capture-only quiescence search with a stand-pat cutoff
    takes over, capped at ``SearchTuning.quiescence_depth`` plies.
``Interior``
    The wall-clock deadline is checked first. A timeout returns the static
    evaluation with ``timed_out`` set and every caller returns immediately.
    Otherwise the transposition cache is probed, moves are ordered and
    searched with an alpha/beta window.

The searcher mutates nothing but the tables owned by its
:class:`SearchSession`.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .config import SearchTuning
from .errors import MalformedPositionError, SearchAbortedError
from .evaluation import MATE_VALUE, Evaluator, is_mate_score, mover_relative
from .ordering import HistoryTable, KillerTable, MoveOrderer
from .position import REFERENCE_SIDE, Move, Position
from .repetition import RepetitionLedger
from .reporting import SearchReporter
from .transposition import (
    BOUND_EXACT,
    BOUND_LOWER,
    BOUND_UPPER,
    TranspositionCache,
    TranspositionEntry,
    cache_key,
    score_from_cache,
    score_to_cache,
)

INFINITY = MATE_VALUE * 10
START_DEPTH = 2


@dataclass
class SearchResult:
    score: int
    move: Optional[Move]
    timed_out: bool = False
    depth: int = 0
    nodes: int = 0
    source: str = "search"


class SearchSession:
    """Tables shared by consecutive searches of one game.

    The session owns the transposition cache, the killer and history tables,
    the repetition ledger and the random source used for opening variety and
    low-difficulty play. :meth:`reset` clears the four tables together and
    should be called whenever a new game starts.
    """

    def __init__(self, tuning: Optional[SearchTuning] = None, seed: Optional[int] = None) -> None:
        self.tuning = (tuning or SearchTuning()).clamp()
        self.cache = TranspositionCache(self.tuning.cache_capacity)
        self.killers = KillerTable(self.tuning.killer_slots)
        self.history = HistoryTable(self.tuning.history_ceiling)
        self.ledger = RepetitionLedger()
        self.rng = random.Random(seed)

    def reset(self) -> None:
        self.cache.clear()
        self.killers.reset()
        self.history.clear()
        self.ledger.reset()


def terminal_score(position: Position, ply: int) -> int:
    winner = position.winner()
    if winner is None:
        return 0
    return MATE_VALUE - ply if winner == REFERENCE_SIDE else -(MATE_VALUE - ply)


class AlphaBetaSearcher:
    def __init__(
        self,
        evaluator: Evaluator,
        session: SearchSession,
        reporter: Optional[SearchReporter] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.evaluator = evaluator
        self.session = session
        self.tuning = session.tuning
        self.reporter = reporter or SearchReporter()
        self.clock = clock
        self.orderer = MoveOrderer(evaluator.piece_value, session.killers, session.history, self.tuning)
        self.nodes = 0
        self._deadline: Optional[float] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def search(self, position: Position, depth: int, deadline: Optional[float] = None) -> SearchResult:
        """Fixed-depth search of ``position``; ``deadline`` is a ``clock()`` value."""

        self.session.killers.reset()
        return self._search_depth(position, depth, deadline)

    def iterative_deepening(self, position: Position, max_depth: int, time_limit: float) -> SearchResult:
        """Deepen from depth two up to ``max_depth`` until ``time_limit`` seconds pass.

        The deepest completed iteration wins. If the deadline expires before
        any iteration completes, the best move of a one-ply static ranking is
        returned instead so the caller always gets a legal move.
        """

        start = self.clock()
        deadline = start + max(0.0, time_limit)
        self.session.killers.reset()

        if position.is_terminal() or not position.legal_moves():
            return SearchResult(terminal_score(position, 0), None, source="terminal")

        best: Optional[SearchResult] = None
        timed_out = False
        total_nodes = 0
        for depth in range(min(START_DEPTH, max(1, max_depth)), max(1, max_depth) + 1):
            result = self._search_depth(position, depth, deadline)
            total_nodes += result.nodes
            if result.timed_out:
                timed_out = True
                self.reporter.trace(f"timeout during depth={depth} after {self.clock() - start:.2f}s")
                break
            best = result
            self.reporter.depth_summary(
                depth,
                result.score,
                total_nodes,
                self.clock() - start,
                position.move_text(result.move) if result.move is not None else "",
            )
            if is_mate_score(result.score):
                break

        if best is None:
            ranking = self.static_ranking(position)
            move, score = ranking[0]
            self.reporter.trace(f"no iteration completed, falling back to {position.move_text(move)}")
            return SearchResult(score, move, timed_out=True, depth=1, nodes=total_nodes, source="fallback")

        best.timed_out = timed_out
        best.nodes = total_nodes
        return best

    def static_ranking(self, position: Position) -> List[Tuple[Move, int]]:
        """Legal moves scored by the static evaluation of their children, best first for the mover."""

        scored = []
        for move in position.legal_moves():
            child = self._child(position, move)
            if child.is_terminal():
                score = terminal_score(child, 1)
            else:
                score = self.evaluator.evaluate(child)
            scored.append((move, score))
        side = position.turn
        return sorted(scored, key=lambda item: mover_relative(item[1], side), reverse=True)

    # ------------------------------------------------------------------
    # Core search methods
    # ------------------------------------------------------------------
    def _search_depth(self, position: Position, depth: int, deadline: Optional[float]) -> SearchResult:
        self.nodes = 0
        self._deadline = deadline
        maximizing = position.turn == REFERENCE_SIDE
        result = self._minimax(position, depth, -INFINITY, INFINITY, maximizing, 0)
        result.depth = depth
        result.nodes = self.nodes
        return result

    def _minimax(
        self,
        position: Position,
        depth: int,
        alpha: int,
        beta: int,
        maximizing: bool,
        ply: int,
    ) -> SearchResult:
        self.nodes += 1

        # Terminal -----------------------------------------------------------
        if position.is_terminal():
            return SearchResult(terminal_score(position, ply), None)

        # Horizon ------------------------------------------------------------
        if depth <= 0:
            return SearchResult(self._quiescence(position, alpha, beta, maximizing, 0, ply), None)

        # Interior -----------------------------------------------------------
        if self._deadline is not None and self.clock() >= self._deadline:
            return SearchResult(self.evaluator.evaluate(position), None, timed_out=True)

        key = cache_key(position)
        entry = self.session.cache.lookup(key)
        hash_move = entry.move if entry is not None else None
        if entry is not None and entry.depth >= depth and entry.move is not None:
            cached = score_from_cache(entry.score, ply)
            if entry.bound == BOUND_EXACT:
                return SearchResult(cached, entry.move)
            if entry.bound == BOUND_LOWER and cached >= beta:
                return SearchResult(cached, entry.move)
            if entry.bound == BOUND_UPPER and cached <= alpha:
                return SearchResult(cached, entry.move)

        moves = position.legal_moves()
        if not moves:
            return SearchResult(terminal_score(position, ply), None)

        alpha_original, beta_original = alpha, beta
        best_score = -INFINITY if maximizing else INFINITY
        best_move: Optional[Move] = None

        for move in self.orderer.order(moves, ply, hash_move):
            child = self._child(position, move)
            result = self._minimax(child, depth - 1, alpha, beta, not maximizing, ply + 1)
            if result.timed_out:
                return SearchResult(result.score, best_move or move, timed_out=True)

            if maximizing:
                if result.score > best_score:
                    best_score, best_move = result.score, move
                alpha = max(alpha, best_score)
            else:
                if result.score < best_score:
                    best_score, best_move = result.score, move
                beta = min(beta, best_score)

            if beta <= alpha:
                if not move.is_capture:
                    self.session.killers.record(ply, move)
                    self.session.history.record(move, depth)
                break

        if best_score <= alpha_original:
            bound = BOUND_UPPER
        elif best_score >= beta_original:
            bound = BOUND_LOWER
        else:
            bound = BOUND_EXACT
        self.session.cache.insert(
            key, TranspositionEntry(key, depth, score_to_cache(best_score, ply), best_move, bound)
        )
        return SearchResult(best_score, best_move)

    def _quiescence(
        self,
        position: Position,
        alpha: int,
        beta: int,
        maximizing: bool,
        qdepth: int,
        ply: int,
    ) -> int:
        self.nodes += 1
        if position.is_terminal():
            return terminal_score(position, ply)

        stand_pat = self.evaluator.evaluate(position)
        if qdepth >= self.tuning.quiescence_depth:
            return stand_pat

        best = stand_pat
        if maximizing:
            if best >= beta:
                return best
            alpha = max(alpha, best)
        else:
            if best <= alpha:
                return best
            beta = min(beta, best)

        for move in self.orderer.order_captures(position.legal_moves()):
            child = self._child(position, move)
            score = self._quiescence(child, alpha, beta, not maximizing, qdepth + 1, ply + 1)
            if maximizing:
                best = max(best, score)
                alpha = max(alpha, best)
            else:
                best = min(best, score)
                beta = min(beta, best)
            if beta <= alpha:
                break
        return best

    def _child(self, position: Position, move: Move) -> Position:
        try:
            return position.play(move)
        except MalformedPositionError as exc:
            raise SearchAbortedError(f"Cannot apply {move} to {position.key()}") from exc


__all__ = [
    "AlphaBetaSearcher",
    "INFINITY",
    "SearchResult",
    "SearchSession",
    "terminal_score",
]
