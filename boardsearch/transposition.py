"""Bounded transposition cache.

The cache is insert-only: once it holds ``capacity`` keys, new keys are
silently dropped and the search simply recomputes them. Existing keys may
still be refreshed with results of equal or greater depth since that never
grows the table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .evaluation import MATE_THRESHOLD
from .position import Move, Position

BOUND_EXACT = 0
BOUND_LOWER = 1
BOUND_UPPER = 2


@dataclass(frozen=True, slots=True)
class TranspositionEntry:
    key: str
    depth: int
    score: int
    move: Optional[Move]
    bound: int = BOUND_EXACT


def cache_key(position: Position) -> str:
    return f"{position.key()}|{'1' if position.turn else '2'}"


def score_to_cache(score: int, ply: int) -> int:
    """Store mate scores as distance from the storing node, not the root."""

    if score >= MATE_THRESHOLD:
        return score + ply
    if score <= -MATE_THRESHOLD:
        return score - ply
    return score


def score_from_cache(score: int, ply: int) -> int:
    if score >= MATE_THRESHOLD:
        return score - ply
    if score <= -MATE_THRESHOLD:
        return score + ply
    return score


class TranspositionCache:
    def __init__(self, capacity: int = 100_000) -> None:
        self.capacity = max(0, int(capacity))
        self._table: Dict[str, TranspositionEntry] = {}
        self.hits = 0
        self.probes = 0

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, key: str) -> bool:
        return key in self._table

    @property
    def full(self) -> bool:
        return len(self._table) >= self.capacity

    def lookup(self, key: str, depth: int = 0) -> Optional[TranspositionEntry]:
        """Return the entry for ``key`` if it was searched at least ``depth`` deep."""

        self.probes += 1
        entry = self._table.get(key)
        if entry is None or entry.depth < depth:
            return None
        self.hits += 1
        return entry

    def insert(self, key: str, entry: TranspositionEntry) -> bool:
        existing = self._table.get(key)
        if existing is None:
            if self.full:
                return False
        elif existing.depth > entry.depth:
            return False
        self._table[key] = entry
        return True

    def clear(self) -> None:
        self._table.clear()
        self.hits = 0
        self.probes = 0

    def hit_rate(self) -> float:
        return self.hits / max(1, self.probes)


__all__ = [
    "BOUND_EXACT",
    "BOUND_LOWER",
    "BOUND_UPPER",
    "TranspositionCache",
    "TranspositionEntry",
    "cache_key",
    "score_from_cache",
    "score_to_cache",
]
