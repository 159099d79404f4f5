import itertools

import chess
import pytest

from boardsearch.adapters import ChessEvaluator, ChessPosition, GomokuEvaluator, GomokuPosition
from boardsearch.config import SearchTuning
from boardsearch.errors import MalformedPositionError, SearchAbortedError
from boardsearch.evaluation import MATE_VALUE, Evaluator
from boardsearch.position import Move, Position
from boardsearch.reporting import SearchReporter
from boardsearch.search import AlphaBetaSearcher, SearchSession, terminal_score
from boardsearch.transposition import cache_key

MATE_IN_ONE = "6k1/5ppp/8/8/8/8/8/R5K1 w - - 0 1"
MATE_IN_TWO = "k7/8/2K5/8/8/8/8/7R w - - 0 1"
FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
HANGING_PAWN = "4k3/8/2p5/3p4/8/8/8/3QK3 w - - 0 1"


def make_searcher(evaluator=None, clock=None, logger=None, **tuning):
    session = SearchSession(SearchTuning(**tuning), seed=7)
    reporter = SearchReporter(logger=logger)
    if clock is None:
        return AlphaBetaSearcher(evaluator or ChessEvaluator(), session, reporter)
    return AlphaBetaSearcher(evaluator or ChessEvaluator(), session, reporter, clock)


def reference_quiescence(evaluator, position, maximizing: bool, limit: int, qdepth: int = 0, ply: int = 0) -> int:
    if position.is_terminal():
        return terminal_score(position, ply)
    stand_pat = evaluator.evaluate(position)
    if qdepth >= limit:
        return stand_pat
    scores = [stand_pat] + [
        reference_quiescence(evaluator, position.play(move), not maximizing, limit, qdepth + 1, ply + 1)
        for move in position.legal_moves()
        if move.is_capture
    ]
    return max(scores) if maximizing else min(scores)


def reference_minimax(evaluator, position, depth: int, maximizing: bool, ply: int = 0, limit: int = 0) -> int:
    if position.is_terminal():
        return terminal_score(position, ply)
    if depth == 0:
        return reference_quiescence(evaluator, position, maximizing, limit, 0, ply)
    scores = [
        reference_minimax(evaluator, position.play(move), depth - 1, not maximizing, ply + 1, limit)
        for move in position.legal_moves()
    ]
    return max(scores) if maximizing else min(scores)


def gomoku_position() -> GomokuPosition:
    rows = [["."] * 15 for _ in range(15)]
    rows[7][7] = "x"
    rows[7][8] = "o"
    rows[8][7] = "x"
    return GomokuPosition.from_rows(["".join(row) for row in rows])


@pytest.mark.parametrize(
    "position,depth",
    [
        (ChessPosition.from_fen("8/8/8/2k5/8/3K4/3P4/8 w - - 0 1"), 3),
        (ChessPosition.from_fen("r1bqkb1r/pppp1ppp/2n2n2/4p2Q/2B1P3/8/PPPP1PPP/RNB1K1NR w KQkq - 4 4"), 2),
        (ChessPosition.from_fen("4k3/8/8/3q4/4P3/8/8/3QK3 b - - 0 1"), 2),
        (gomoku_position(), 2),
    ],
)
def test_alpha_beta_matches_full_minimax(position, depth: int) -> None:
    evaluator = GomokuEvaluator() if isinstance(position, GomokuPosition) else ChessEvaluator()
    searcher = make_searcher(evaluator, quiescence_depth=0)
    maximizing = position.turn

    result = searcher.search(position, depth)
    expected = reference_minimax(evaluator, position, depth, maximizing)

    assert result.score == expected
    assert not result.timed_out
    chosen = reference_minimax(evaluator, position.play(result.move), depth - 1, not maximizing, 1)
    assert chosen == expected


@pytest.mark.parametrize(
    "fen,depth",
    [
        (HANGING_PAWN, 2),
        ("4k3/8/8/3q4/4P3/8/8/3QK3 b - - 0 1", 2),
        ("4k3/8/2n5/3p4/4P3/5N2/8/4K3 w - - 0 1", 2),
    ],
)
def test_quiescence_matches_full_capture_search(fen: str, depth: int) -> None:
    evaluator = ChessEvaluator()
    position = ChessPosition.from_fen(fen)
    searcher = make_searcher(evaluator)

    result = searcher.search(position, depth)

    assert result.score == reference_minimax(evaluator, position, depth, position.turn, limit=6)


def test_quiescence_sees_the_recapture_beyond_the_horizon() -> None:
    position = ChessPosition.from_fen(HANGING_PAWN)
    grab = position.find_uci("d1d5")
    after_grab = position.play(grab)

    # Without quiescence the queen looks safe on d5; with it, cxd5 is found.
    assert make_searcher(quiescence_depth=0).search(after_grab, 0).score > 0
    assert make_searcher().search(after_grab, 0).score < 0

    result = make_searcher().search(position, 1)
    assert result.move != grab
    assert result.score > 0


def test_quiescence_depth_caps_the_capture_sequence() -> None:
    evaluator = ChessEvaluator()
    position = ChessPosition.from_fen(HANGING_PAWN)
    standing = evaluator.evaluate(position)
    after_grab = evaluator.evaluate(position.play(position.find_uci("d1d5")))
    assert after_grab > standing

    scores = {limit: make_searcher(quiescence_depth=limit).search(position, 0).score for limit in (0, 1, 2, 6)}

    # One ply of captures stops before Black can recapture.
    assert scores == {0: standing, 1: after_grab, 2: standing, 6: standing}


def test_quiescence_without_captures_is_the_static_score() -> None:
    evaluator = ChessEvaluator()
    position = ChessPosition.from_fen("8/8/8/2k5/8/3K4/3P4/8 w - - 0 1")
    assert make_searcher(evaluator).search(position, 0).score == evaluator.evaluate(position)


# ----------------------------------------------------------------------
# Cutoff bookkeeping on a hand-built tree
# ----------------------------------------------------------------------
QUIET_REFUTATION = Move(40, 41, piece=1)
CAPTURE_REFUTATION = Move(50, 51, piece=1, captured=1)

# node -> [(move, child)]; leaves are scored by LEAF_SCORES.
TREE = {
    "root": [(Move(1, 2, piece=1), "a"), (Move(3, 4, piece=1), "b"), (Move(5, 6, piece=1), "c")],
    "a": [(Move(10, 11, piece=1), "x")],
    "x": [(Move(20, 21, piece=1), "x-leaf")],
    "b": [(QUIET_REFUTATION, "y")],
    "y": [(Move(22, 23, piece=1), "y-leaf")],
    "c": [(CAPTURE_REFUTATION, "z")],
    "z": [(Move(24, 25, piece=1), "z-leaf")],
}
LEAF_SCORES = {"x-leaf": 3, "y-leaf": 1, "z-leaf": 0}


class TreePosition(Position):
    def __init__(self, name: str = "root", first_to_move: bool = True) -> None:
        self.name = name
        self._turn = first_to_move

    @property
    def turn(self) -> bool:
        return self._turn

    def key(self) -> str:
        return self.name

    def legal_moves(self):
        return [move for move, _ in TREE.get(self.name, ())]

    def play(self, move):
        for candidate, child in TREE.get(self.name, ()):
            if candidate == move:
                return TreePosition(child, not self._turn)
        raise MalformedPositionError(f"{move} is not playable from {self.name}")

    def is_terminal(self) -> bool:
        return False

    def winner(self):
        return None


class TreeEvaluator(Evaluator):
    def evaluate(self, position) -> int:
        return LEAF_SCORES.get(position.key(), 0)


def test_quiet_cutoffs_feed_killers_and_history() -> None:
    searcher = make_searcher(TreeEvaluator())
    session = searcher.session

    result = searcher.search(TreePosition(), 3)

    assert result.score == 3
    assert result.move == Move(1, 2)
    # "b" is refuted at depth 2 by a quiet move, "c" by a capture.
    assert session.killers.table == {1: [QUIET_REFUTATION]}
    assert session.history.values == {(40, 41): 4}


def test_killers_reset_per_search_but_history_persists() -> None:
    searcher = make_searcher(TreeEvaluator())
    session = searcher.session
    searcher.search(TreePosition(), 3)

    session.killers.record(7, Move(60, 61))
    session.cache.clear()
    searcher.search(TreePosition(), 3)

    assert session.killers.table == {1: [QUIET_REFUTATION]}
    assert session.history.values == {(40, 41): 8}

    session.killers.record(7, Move(60, 61))
    session.cache.clear()
    searcher.iterative_deepening(TreePosition(), 3, 10.0)

    assert 7 not in session.killers.table
    assert session.history.values[(40, 41)] > 8


def test_forced_mate_in_one_is_found() -> None:
    position = ChessPosition.from_fen(MATE_IN_ONE)
    result = make_searcher().search(position, 1)
    assert (result.move.from_square, result.move.to_square) == (chess.A1, chess.A8)
    assert result.score == MATE_VALUE - 1


def test_black_mate_scores_are_negative() -> None:
    position = ChessPosition.from_fen(MATE_IN_ONE).mirrored()
    result = make_searcher().search(position, 2)
    assert (result.move.from_square, result.move.to_square) == (chess.A8, chess.A1)
    assert result.score == -(MATE_VALUE - 1)


def test_shorter_mates_score_higher() -> None:
    mate_in_one = make_searcher().search(ChessPosition.from_fen(MATE_IN_ONE), 3)
    mate_in_two = make_searcher().search(ChessPosition.from_fen(MATE_IN_TWO), 3)

    assert mate_in_one.score == MATE_VALUE - 1
    assert mate_in_two.score == MATE_VALUE - 3
    assert mate_in_one.score > mate_in_two.score

    mated = ChessPosition.from_fen(FOOLS_MATE)
    assert terminal_score(mated, 1) < terminal_score(mated, 3) < 0


def test_terminal_draw_scores_zero() -> None:
    stalemate = ChessPosition.from_fen("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")
    result = make_searcher().iterative_deepening(stalemate, 3, 1.0)
    assert result.move is None
    assert result.score == 0
    assert result.source == "terminal"


def test_zero_budget_falls_back_to_a_legal_move() -> None:
    position = ChessPosition()
    result = make_searcher().iterative_deepening(position, 4, 0.0)

    assert result.timed_out
    assert result.source == "fallback"
    assert result.move in position.legal_moves()


def test_timeout_short_circuits_the_whole_stack() -> None:
    calls = itertools.count()
    # Three interior nodes see the clock before the deadline passes.
    clock = lambda: 0.0 if next(calls) < 3 else 10.0
    searcher = make_searcher(clock=clock)
    position = ChessPosition()

    result = searcher.search(position, 2, deadline=5.0)

    assert result.timed_out
    assert result.move is not None
    assert cache_key(position) not in searcher.session.cache
    assert len(searcher.session.cache) == 2


def test_iterative_deepening_keeps_deepest_completed_iteration() -> None:
    calls = itertools.count()
    messages = []
    # Depth two needs at most eight clock reads here; depth three needs more than twelve.
    clock = lambda: 0.0 if next(calls) < 12 else 10.0
    searcher = make_searcher(clock=clock, logger=messages.append)

    result = searcher.iterative_deepening(ChessPosition.from_fen("8/8/8/2k5/8/3K4/3P4/8 w - - 0 1"), 5, 5.0)

    assert result.timed_out
    assert result.source == "search"
    assert result.depth == 2
    assert any(message.startswith("depth=2 ") for message in messages)
    assert any("timeout" in message for message in messages)


def test_iterative_deepening_stops_at_mate() -> None:
    messages = []
    searcher = make_searcher(logger=messages.append)
    result = searcher.iterative_deepening(ChessPosition.from_fen(MATE_IN_ONE), 5, 30.0)

    assert not result.timed_out
    assert result.depth == 2
    assert result.score == MATE_VALUE - 1
    assert len([message for message in messages if message.startswith("depth=")]) == 1


def test_search_results_are_reproducible_with_a_cleared_or_warm_cache() -> None:
    position = ChessPosition.from_fen("r1bqkb1r/pppp1ppp/2n2n2/4p3/2B1P3/5N2/PPPP1PPP/RNBQK2R w KQkq - 4 4")
    searcher = make_searcher()

    cold = searcher.search(position, 2)
    searcher.session.reset()
    cleared = searcher.search(position, 2)
    warm = searcher.search(position, 2)

    assert (cold.score, cold.move) == (cleared.score, cleared.move)
    assert (warm.score, warm.move) == (cold.score, cold.move)
    assert len(searcher.session.cache) > 0


def test_static_ranking_orders_best_first_for_the_mover() -> None:
    position = ChessPosition.from_fen("4k3/8/8/3q4/4P3/8/8/3QK3 b - - 0 1")
    ranking = make_searcher().static_ranking(position)
    scores = [score for _, score in ranking]

    assert scores == sorted(scores)
    assert len(ranking) == len(position.legal_moves())


def test_search_does_not_mutate_the_root() -> None:
    position = ChessPosition()
    before = position.key()
    make_searcher().search(position, 2)
    assert position.key() == before


class BrokenPosition(ChessPosition):
    def play(self, move):
        raise MalformedPositionError("corrupt child")


def test_child_failures_abort_the_search() -> None:
    with pytest.raises(SearchAbortedError) as excinfo:
        make_searcher().search(BrokenPosition(), 2)
    assert isinstance(excinfo.value.__cause__, MalformedPositionError)


def test_malformed_positions_are_rejected_before_search() -> None:
    with pytest.raises(MalformedPositionError):
        ChessPosition.from_fen("not a fen")
    with pytest.raises(MalformedPositionError):
        ChessPosition.from_fen("8/8/8/8/8/8/8/8 w - - 0 1")
    with pytest.raises(ValueError):
        ChessPosition.from_fen("rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR x KQkq - 0 1")
