"""Configuration model: difficulty presets and search tuning constants."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict


def _clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


@dataclass(slots=True, frozen=True)
class DifficultyProfile:
    max_depth: int
    time_limit_ms: int

    @property
    def time_limit(self) -> float:
        return self.time_limit_ms / 1000.0


class DifficultyRegistry:
    PRESETS: Dict[int, DifficultyProfile] = {
        1: DifficultyProfile(max_depth=2, time_limit_ms=1000),
        2: DifficultyProfile(max_depth=3, time_limit_ms=2000),
        3: DifficultyProfile(max_depth=4, time_limit_ms=4000),
        4: DifficultyProfile(max_depth=5, time_limit_ms=8000),
    }

    LOWEST = min(PRESETS)
    HIGHEST = max(PRESETS)

    @classmethod
    def resolve(cls, level: int) -> DifficultyProfile:
        if level not in cls.PRESETS:
            raise ValueError(f"Unknown difficulty level '{level}'")
        return cls.PRESETS[level]


@dataclass(slots=True, frozen=True)
class SearchTuning:
    quiescence_depth: int = 6
    cache_capacity: int = 100_000
    killer_slots: int = 2
    capture_base: int = 10_000_000
    killer_bonus: int = 5_000_000
    history_ceiling: int = 500_000
    hash_move_bonus: int = 50_000_000
    repetition_tolerance: int = 200
    repeat_penalty: int = 50
    random_pick_probability: float = 0.15
    book_min_difficulty: int = 2
    book_band: int = 10
    suggestion_candidates: int = 8
    win_probability_scale: float = 400.0
    probability_floor: float = 0.001

    def clamp(self) -> "SearchTuning":
        return replace(
            self,
            quiescence_depth=max(0, int(self.quiescence_depth)),
            cache_capacity=max(0, int(self.cache_capacity)),
            killer_slots=max(1, int(self.killer_slots)),
            history_ceiling=min(int(self.history_ceiling), int(self.killer_bonus) - 1),
            repetition_tolerance=max(0, int(self.repetition_tolerance)),
            random_pick_probability=_clamp(self.random_pick_probability, 0.0, 1.0),
            book_band=max(0, int(self.book_band)),
            suggestion_candidates=max(1, int(self.suggestion_candidates)),
            win_probability_scale=max(1.0, float(self.win_probability_scale)),
            probability_floor=_clamp(self.probability_floor, 1e-9, 0.49),
        )


__all__ = ["DifficultyProfile", "DifficultyRegistry", "SearchTuning"]
