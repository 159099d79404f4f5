"""Multi-candidate suggestions with plain-language explanations.

The suggester ranks every legal move with a one-ply static evaluation,
keeps the best ``SearchTuning.suggestion_candidates`` of them and searches
only those. A strong move that looks poor statically and falls outside that
prefilter is never searched; this keeps coaching requests cheap and is an
accepted limitation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .config import DifficultyProfile, SearchTuning
from .evaluation import Evaluator, mover_relative, win_probability
from .position import Move, Position
from .repetition import RepetitionLedger
from .search import AlphaBetaSearcher, terminal_score


@dataclass
class Suggestion:
    rank: int
    move: Move
    text: str
    score: int
    win_probability: float
    explanation: str
    timed_out: bool = False


def explain_move(
    position: Position,
    move: Move,
    evaluator: Evaluator,
    is_best: bool = True,
    repeated: bool = False,
) -> str:
    """Describe ``move`` from its attributes alone; no search is involved."""

    reasons = []
    piece = position.piece_name(move.piece)

    if move.is_capture:
        captured = position.piece_name(move.captured)
        gained = evaluator.piece_value(move.captured) - evaluator.piece_value(move.piece)
        if gained > 0:
            reasons.append(f"Wins {captured} (+{round(gained / 100)} pawns)")
        elif gained == 0:
            reasons.append(f"Trades {piece} for {captured}")
        else:
            reasons.append(f"Captures {captured}")

    checks = position.gives_check(move)
    child = position.play(move)
    if child.is_terminal() and child.winner() == position.turn:
        reasons.append("Checkmate!" if checks else "Wins the game")
    elif checks:
        reasons.append("Gives check")

    castling = position.castling_side(move)
    if castling == "kingside":
        reasons.append("Castles kingside for safety")
    elif castling == "queenside":
        reasons.append("Castles queenside")

    if move.promotion is not None:
        reasons.append(f"Promotes to {position.piece_name(move.promotion)}")

    if position.claims_center(move):
        reasons.append("Controls the center")

    if position.is_development(move):
        reasons.append("Develops piece")

    if repeated:
        reasons.append("Repeats a recent position")

    if not reasons:
        reasons.append("Best move - improves position" if is_best else "Good alternative")
    return ", ".join(reasons)


class MultiCandidateSuggester:
    def __init__(
        self,
        searcher: AlphaBetaSearcher,
        ledger: RepetitionLedger,
        tuning: Optional[SearchTuning] = None,
    ) -> None:
        self.searcher = searcher
        self.evaluator = searcher.evaluator
        self.ledger = ledger
        self.tuning = tuning or searcher.tuning

    def suggest(
        self,
        position: Position,
        n: int,
        profile: DifficultyProfile,
        recent_moves: Sequence[Move] = (),
    ) -> List[Suggestion]:
        """Return up to ``n`` suggestions, best first, with mover-relative scores."""

        if n <= 0 or position.is_terminal():
            return []
        ranking = self.searcher.static_ranking(position)[: self.tuning.suggestion_candidates]
        if not ranking:
            return []

        mover = position.turn
        budget = profile.time_limit / len(ranking)
        child_depth = max(0, profile.max_depth - 1)

        scored = []
        for move, static_score in ranking:
            child = position.play(move)
            timed_out = False
            if child.is_terminal():
                score = terminal_score(child, 1)
            else:
                result = self.searcher.search(child, child_depth, self.searcher.clock() + budget)
                timed_out = result.timed_out
                score = static_score if timed_out else result.score

            relative = mover_relative(score, mover)
            repeated = any(move.reverses(previous) for previous in recent_moves)
            repeated = repeated or self.ledger.count_of(child.key()) >= 1
            if repeated:
                relative -= self.tuning.repeat_penalty
            scored.append((move, relative, timed_out, repeated))

        scored.sort(key=lambda item: item[1], reverse=True)

        suggestions = []
        for index, (move, relative, timed_out, repeated) in enumerate(scored[:n]):
            suggestions.append(
                Suggestion(
                    rank=index + 1,
                    move=move,
                    text=position.move_text(move),
                    score=relative,
                    win_probability=win_probability(
                        relative,
                        self.tuning.win_probability_scale,
                        self.tuning.probability_floor,
                    ),
                    explanation=explain_move(position, move, self.evaluator, index == 0, repeated),
                    timed_out=timed_out,
                )
            )
        return suggestions


__all__ = ["MultiCandidateSuggester", "Suggestion", "explain_move"]
