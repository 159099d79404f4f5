import chess
import pytest

from boardsearch.adapters import ChessEvaluator, ChessPosition, GomokuEvaluator, GomokuPosition
from boardsearch.config import SearchTuning
from boardsearch.engine import GameEngine
from boardsearch.position import Move
from boardsearch.suggest import explain_move

MATE_IN_ONE = "6k1/5ppp/8/8/8/8/8/R5K1 w - - 0 1"
frozen_clock = lambda: 0.0


def make_engine(tuning=None) -> GameEngine:
    return GameEngine(ChessEvaluator(), tuning=tuning, seed=11, clock=frozen_clock)


def find(position: ChessPosition, uci: str):
    return position.find_uci(uci)


def explain(fen: str, uci: str, is_best: bool = True) -> str:
    position = ChessPosition.from_fen(fen)
    return explain_move(position, find(position, uci), ChessEvaluator(), is_best)


def test_top_moves_are_ranked_and_bounded() -> None:
    engine = make_engine()
    suggestions = engine.get_top_moves(ChessPosition(), 3, 2)

    assert [s.rank for s in suggestions] == [1, 2, 3]
    scores = [s.score for s in suggestions]
    assert scores == sorted(scores, reverse=True)
    assert len({s.move for s in suggestions}) == 3
    for suggestion in suggestions:
        assert 0.001 <= suggestion.win_probability <= 0.999
        assert suggestion.explanation
        assert suggestion.text
        assert not suggestion.timed_out


def test_top_moves_never_exceed_the_candidate_prefilter() -> None:
    engine = make_engine(SearchTuning(suggestion_candidates=4))
    assert len(engine.get_top_moves(ChessPosition(), 10, 2)) == 4


def test_mate_in_one_tops_the_suggestions() -> None:
    engine = make_engine()
    position = ChessPosition.from_fen(MATE_IN_ONE)
    best = engine.get_top_moves(position, 3, 2)[0]

    assert best.text == "Ra8#"
    assert best.explanation == "Checkmate!"
    assert best.win_probability == pytest.approx(0.999)


def test_scores_are_relative_to_the_mover() -> None:
    engine = make_engine()
    position = ChessPosition.from_fen(MATE_IN_ONE).mirrored()
    best = engine.get_top_moves(position, 1, 2)[0]
    assert best.score > 0
    assert best.text == "Ra1#"


def test_reversing_a_recent_move_is_penalised() -> None:
    position = ChessPosition.from_fen("4k3/8/8/8/8/8/8/R3K3 w - - 0 1")
    tuning = SearchTuning(suggestion_candidates=64)
    plain = {s.text: s for s in make_engine(tuning).get_top_moves(position, 64, 2)}
    recent = [Move(chess.A2, chess.A1)]
    penalised = {s.text: s for s in make_engine(tuning).get_top_moves(position, 64, 2, recent)}

    assert penalised["Ra2"].score == plain["Ra2"].score - tuning.repeat_penalty
    assert "Repeats a recent position" in penalised["Ra2"].explanation
    assert penalised["Rb1"].score == plain["Rb1"].score


def test_no_suggestions_for_finished_games() -> None:
    engine = make_engine()
    mated = ChessPosition.from_fen("rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3")
    assert engine.get_top_moves(mated, 3, 2) == []


def test_unknown_difficulty_is_rejected() -> None:
    with pytest.raises(ValueError):
        make_engine().get_top_moves(ChessPosition(), 3, 9)


@pytest.mark.parametrize(
    "fen,uci,expected",
    [
        ("4k3/8/8/3q4/4P3/8/8/4K3 w - - 0 1", "e4d5", "Wins Queen (+8 pawns), Controls the center"),
        ("4k3/8/8/3n4/8/4N3/8/4K3 w - - 0 1", "e3d5", "Trades Knight for Knight"),
        ("4k3/8/8/8/8/8/8/3QK3 w - - 0 1", "d1d4", "Best move - improves position"),
        ("4k3/8/8/8/8/8/1p6/1Q2K3 w - - 0 1", "b1b2", "Captures Pawn"),
        (chess.STARTING_FEN, "g1f3", "Develops piece"),
        (chess.STARTING_FEN, "e2e4", "Controls the center"),
        ("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1", "e1g1", "Castles kingside for safety"),
        ("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1", "e1c1", "Castles queenside"),
        ("4k3/P7/8/8/8/8/8/4K3 w - - 0 1", "a7a8q", "Gives check, Promotes to Queen"),
        (MATE_IN_ONE, "a1a8", "Checkmate!"),
    ],
)
def test_explanations_describe_the_move(fen: str, uci: str, expected: str) -> None:
    assert explain(fen, uci) == expected


def test_quiet_moves_get_a_generic_explanation() -> None:
    fen = "4k3/8/8/8/8/8/4P3/4K3 w - - 0 1"
    assert explain(fen, "e1d1") == "Best move - improves position"
    assert explain(fen, "e1d1", is_best=False) == "Good alternative"


def test_engine_explains_gomoku_wins() -> None:
    rows = [["."] * 15 for _ in range(15)]
    for col in range(3, 7):
        rows[1][col] = "x"
    for col in range(3, 7):
        rows[13][col] = "o"
    position = GomokuPosition.from_rows(["".join(row) for row in rows])
    engine = GameEngine(GomokuEvaluator(), seed=1, clock=frozen_clock)
    move = position.find_point("h14")
    assert engine.explain_move(position, move) == "Wins the game"


def test_check_detection_matches_the_resulting_position() -> None:
    position = ChessPosition.from_fen("4k3/P7/8/8/8/8/8/4K3 w - - 0 1")
    for move in position.legal_moves():
        assert position.gives_check(move) == position.play(move).in_check()
    assert position.gives_check(find(position, "a7a8q"))
    assert not position.gives_check(find(position, "e1d1"))

    gomoku = GomokuPosition()
    assert not gomoku.gives_check(gomoku.legal_moves()[0])
