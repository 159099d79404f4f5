from __future__ import annotations

from typing import Callable, Optional

Logger = Callable[[str], None]


def color_text(text, color_code):
    return f"\033[{color_code}m{text}\033[0m"


def debug_text(text):
    return f"{color_text('DEBUG', '31')} {text}"


def info_text(text):
    return f"{color_text('INFO', '34')}  {text}"


def silent(*_: object) -> None:
    pass


class SearchReporter:
    def __init__(self, *, logger: Optional[Logger] = None):
        self._log = logger or silent

    def trace(self, message: str) -> None:
        self._log(message)

    def depth_summary(
        self,
        depth: int,
        score: int,
        nodes: int,
        time_spent: float,
        move_text: str,
    ) -> None:
        self._log(
            f"depth={depth} score={score} nodes={nodes} "
            f"time={time_spent:.2f}s move={move_text or '(none)'}"
        )


__all__ = ["Logger", "SearchReporter", "color_text", "debug_text", "info_text", "silent"]
